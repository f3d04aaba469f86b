from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser, UsageTracking


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ('email', 'first_name', 'last_name', 'subscription_tier', 'subscription_status', 'is_staff')
    list_filter = ('subscription_tier', 'subscription_status', 'is_staff')
    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('email',)
    fieldsets = UserAdmin.fieldsets + (
        ('Subscription', {
            'fields': ('subscription_tier', 'subscription_status', 'subscription_expiry',
                       'stripe_customer_id', 'google_pay_subscription_id')
        }),
        ('Google', {'fields': ('profile_image_url', 'google_api_config')}),
    )


@admin.register(UsageTracking)
class UsageTrackingAdmin(admin.ModelAdmin):
    list_display = ('user', 'month', 'google_drive_requests', 'gemini_requests', 'projects_created', 'storage_used')
    list_filter = ('month',)
    search_fields = ('user__email',)
