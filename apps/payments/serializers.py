from rest_framework import serializers

from .models import PaymentHistory, SubscriptionPlan


class SubscriptionPlanSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False)

    class Meta:
        model = SubscriptionPlan
        fields = ['id', 'name', 'description', 'price', 'tier', 'features', 'popular']


class PaymentHistorySerializer(serializers.ModelSerializer):
    planId = serializers.CharField(source='plan_id', read_only=True)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False)
    paymentReference = serializers.CharField(source='payment_reference', read_only=True)
    periodStart = serializers.DateTimeField(source='period_start', read_only=True)
    periodEnd = serializers.DateTimeField(source='period_end', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = PaymentHistory
        fields = ['id', 'planId', 'amount', 'currency', 'status', 'provider', 'paymentReference',
                  'periodStart', 'periodEnd', 'createdAt']


class PlanSelectionSerializer(serializers.Serializer):
    planId = serializers.CharField(source='plan_id', max_length=50)
