from django.contrib import admin
from .models import SubscriptionPlan, PaymentHistory

@admin.register(SubscriptionPlan)
class SubscriptionPlanAdmin(admin.ModelAdmin):
    list_display = ('name', 'id', 'tier', 'price', 'popular', 'is_active', 'sort_order')
    list_filter = ('is_active', 'tier')
    search_fields = ('id', 'name')
    ordering = ('sort_order',)

@admin.register(PaymentHistory)
class PaymentHistoryAdmin(admin.ModelAdmin):
    list_display = ('user', 'plan', 'amount', 'provider', 'status', 'created_at')
    list_filter = ('status', 'provider', 'plan', 'created_at')
    search_fields = ('user__email', 'payment_reference')
    readonly_fields = ('created_at',)
