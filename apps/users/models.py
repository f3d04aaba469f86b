"""
Custom User model with subscription and usage tracking.
"""
import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


def generate_id() -> str:
    """Opaque string identifier shared by every ProjectFlow entity."""
    return str(uuid.uuid4())


class CustomUser(AbstractUser):
    """User identity resolved from Google sign-in or an accepted invitation."""

    class SubscriptionTier(models.TextChoices):
        FREE = 'free', 'Free'
        MANAGED_API = 'managed_api', 'Managed API'
        PREMIUM = 'premium', 'Premium'

    class SubscriptionStatus(models.TextChoices):
        ACTIVE = 'active', 'Active'
        CANCELLED = 'cancelled', 'Cancelled'
        EXPIRED = 'expired', 'Expired'

    id = models.CharField(max_length=255, primary_key=True, default=generate_id, editable=False)
    email = models.EmailField(unique=True)
    profile_image_url = models.URLField(blank=True)

    # Subscription
    subscription_tier = models.CharField(
        max_length=20,
        choices=SubscriptionTier.choices,
        default=SubscriptionTier.FREE
    )
    subscription_status = models.CharField(max_length=20, choices=SubscriptionStatus.choices, blank=True)
    subscription_expiry = models.DateTimeField(null=True, blank=True)
    google_pay_subscription_id = models.CharField(max_length=255, blank=True)
    stripe_customer_id = models.CharField(max_length=255, blank=True)

    # The user's own Google API credential bundle, restored into new sessions
    google_api_config = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'

    def __str__(self):
        return self.email or self.username

    @property
    def display_name(self) -> str:
        return self.first_name or self.email


class UsageTracking(models.Model):
    """Monthly counters of external API usage. Advisory only, never enforced."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='usage_records'
    )
    month = models.CharField(max_length=7, help_text="YYYY-MM")
    google_drive_requests = models.PositiveIntegerField(default=0)
    gemini_requests = models.PositiveIntegerField(default=0)
    projects_created = models.PositiveIntegerField(default=0)
    storage_used = models.PositiveBigIntegerField(default=0, help_text="Bytes")

    class Meta:
        unique_together = ['user', 'month']
        verbose_name = 'Usage Record'
        verbose_name_plural = 'Usage Records'

    def __str__(self):
        return f"{self.user_id} - {self.month}"
