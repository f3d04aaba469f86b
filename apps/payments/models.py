"""
Models for subscription and payment tracking.
"""
from django.db import models
from django.conf import settings


class SubscriptionPlan(models.Model):
    """Available subscription plans."""

    class Tier(models.TextChoices):
        FREE = 'free', 'Free'
        MANAGED_API = 'managed_api', 'Managed API'
        PREMIUM = 'premium', 'Premium'

    id = models.CharField(max_length=50, primary_key=True)  # 'free', 'managed_api', 'premium'
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    tier = models.CharField(max_length=20, choices=Tier.choices)

    # Pricing (USD per month)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    stripe_price_id = models.CharField(max_length=255, blank=True)

    features = models.JSONField(default=list, blank=True)
    popular = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['sort_order']
        verbose_name = 'Subscription Plan'
        verbose_name_plural = 'Subscription Plans'

    def __str__(self):
        return self.name

    @property
    def is_free(self) -> bool:
        return self.price == 0

    @property
    def amount_cents(self) -> int:
        return int(self.price * 100)


class PaymentHistory(models.Model):
    """Record of all payments."""

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        SUCCEEDED = 'succeeded', 'Succeeded'
        FAILED = 'failed', 'Failed'
        REFUNDED = 'refunded', 'Refunded'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='payments'
    )
    plan = models.ForeignKey(
        SubscriptionPlan,
        on_delete=models.SET_NULL,
        null=True,
        blank=True
    )

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default='USD')
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    # Billing backend that took the payment and its reference (PaymentIntent id, Google Pay token id)
    provider = models.CharField(max_length=20)
    payment_reference = models.CharField(max_length=255, blank=True)

    # Billing period
    period_start = models.DateTimeField(null=True, blank=True)
    period_end = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Payment History'
        verbose_name_plural = 'Payment History'

    def __str__(self):
        return f"{self.user_id} - ${self.amount} - {self.status}"
