import logging

from rest_framework import permissions, views
from rest_framework.response import Response

from apps.projects.exceptions import EntityNotFound
from apps.projects.storage import storage
from apps.users.serializers import UserProfileSerializer
from .billing import activate_subscription, get_billing_backend
from .serializers import PaymentHistorySerializer, PlanSelectionSerializer, SubscriptionPlanSerializer

logger = logging.getLogger(__name__)


def get_selected_plan(request):
    serializer = PlanSelectionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    plan = storage.get_subscription_plan(serializer.validated_data['plan_id'])
    if plan is None:
        raise EntityNotFound('Plan not found')
    return plan


class SubscriptionPlansView(views.APIView):
    """List available subscription plans."""
    permission_classes = [permissions.AllowAny]  # Public info

    def get(self, request):
        plans = storage.get_subscription_plans()
        return Response(SubscriptionPlanSerializer(plans, many=True).data)


class SubscriptionView(views.APIView):
    """The caller's current plan and recent payments."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        user = request.user
        plan = storage.get_subscription_plan(user.subscription_tier)
        return Response({
            'tier': user.subscription_tier,
            'status': user.subscription_status or None,
            'expiry': user.subscription_expiry,
            'plan': SubscriptionPlanSerializer(plan).data if plan else None,
            'billingBackend': get_billing_backend().name,
            'payments': PaymentHistorySerializer(user.payments.all()[:10], many=True).data,
        })


class CreatePaymentIntentView(views.APIView):
    """Starts paying for a plan with the configured billing backend."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        plan = get_selected_plan(request)
        backend = get_billing_backend()
        payload = backend.create_payment(request.user, plan)
        logger.info(f"Payment started for {request.user.email}: plan {plan.id} via {backend.name}")
        return Response({'planId': plan.id, 'provider': backend.name, **payload})


class ActivateSubscriptionView(views.APIView):
    """Confirms the payment and moves the caller onto the plan."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        plan = get_selected_plan(request)
        backend = get_billing_backend()
        reference = backend.confirm_payment(request.user, plan, request.data)
        user = activate_subscription(request.user, plan, backend.name, reference)
        return Response({'success': True, 'user': UserProfileSerializer(user).data})
