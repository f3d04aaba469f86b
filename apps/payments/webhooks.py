import logging

import stripe
from django.conf import settings
from django.contrib.auth import get_user_model
from django.http import HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from apps.projects.exceptions import Conflict
from apps.projects.storage import storage
from .billing import StripeBilling, activate_subscription

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def stripe_webhook(request):
    payload = request.body
    sig_header = request.headers.get('Stripe-Signature')
    endpoint_secret = settings.STRIPE_WEBHOOK_SECRET

    try:
        event = stripe.Webhook.construct_event(
            payload, sig_header, endpoint_secret
        )
    except ValueError:
        # Invalid payload
        return HttpResponse(status=400)
    except stripe.SignatureVerificationError:
        # Invalid signature
        return HttpResponse(status=400)

    if event['type'] == 'payment_intent.succeeded':
        handle_payment_intent_succeeded(event['data']['object'])
    elif event['type'] == 'payment_intent.payment_failed':
        intent = event['data']['object']
        logger.warning(f"Payment failed for intent {intent['id']}")

    return HttpResponse(status=200)


def handle_payment_intent_succeeded(intent):
    """Activates the plan if the client never confirmed the payment itself."""
    metadata = intent.get('metadata') or {}
    User = get_user_model()

    user = User.objects.filter(pk=metadata.get('user_id')).first()
    plan = storage.get_subscription_plan(metadata.get('plan_id'))
    if user is None or plan is None:
        logger.warning(f"Payment intent {intent['id']} does not reference a known user and plan")
        return

    try:
        activate_subscription(user, plan, StripeBilling.name, intent['id'])
    except Conflict:
        logger.info(f"Payment intent {intent['id']} already applied")
