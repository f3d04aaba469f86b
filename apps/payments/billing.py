"""
Billing backends, selected by ``settings.BILLING_BACKEND``.

``none`` only lets users (re)activate the free plan, ``stripe`` charges
through PaymentIntents, ``google_pay`` hands the client a Google Pay payment
data request and charges the Stripe card token it returns.
"""
import json
import logging
from datetime import timedelta

import stripe
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.db import transaction
from django.utils import timezone

from apps.projects.exceptions import Conflict, UpstreamServiceError, ValidationError
from apps.projects.storage import storage
from .models import PaymentHistory

logger = logging.getLogger(__name__)


class BillingBackend:
    name = None

    def create_payment(self, user, plan) -> dict:
        """Client-side payload needed to pay for ``plan``."""
        raise NotImplementedError

    def confirm_payment(self, user, plan, data) -> str:
        """Check the client's proof of payment and return a payment reference."""
        raise NotImplementedError


class NoBilling(BillingBackend):
    name = 'none'

    def create_payment(self, user, plan):
        if not plan.is_free:
            raise ValidationError('Paid plans are not available')
        return {'free': True}

    def confirm_payment(self, user, plan, data):
        if not plan.is_free:
            raise ValidationError('Paid plans are not available')
        return ''


class StripeBilling(BillingBackend):
    name = 'stripe'

    def __init__(self):
        stripe.api_key = settings.STRIPE_SECRET_KEY

    def create_payment(self, user, plan):
        if plan.is_free:
            return {'free': True}
        try:
            intent = stripe.PaymentIntent.create(
                amount=plan.amount_cents,
                currency='usd',
                receipt_email=user.email,
                automatic_payment_methods={'enabled': True},
                metadata={'user_id': user.id, 'plan_id': plan.id},
            )
        except stripe.StripeError as e:
            raise UpstreamServiceError('Failed to create payment intent', detail=str(e))

        return {
            'clientSecret': intent.client_secret,
            'paymentIntentId': intent.id,
            'publishableKey': settings.STRIPE_PUBLISHABLE_KEY,
        }

    def confirm_payment(self, user, plan, data):
        if plan.is_free:
            return ''
        intent_id = data.get('paymentIntentId')
        if not intent_id:
            raise ValidationError('paymentIntentId is required', errors={'paymentIntentId': ['This field is required.']})

        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
        except stripe.StripeError as e:
            raise UpstreamServiceError('Failed to verify payment', detail=str(e))

        metadata = intent.metadata or {}
        if metadata.get('user_id') != user.id or metadata.get('plan_id') != plan.id:
            raise ValidationError('Payment does not match this plan')
        if intent.status != 'succeeded' or intent.amount != plan.amount_cents:
            raise ValidationError('Payment has not been completed')
        return intent.id


class GooglePayBilling(BillingBackend):
    """
    Google Pay wallet on top of Stripe: the client gets a payment data request
    tokenized for Stripe, and activation charges the returned card token.
    """
    name = 'google_pay'
    STRIPE_API_VERSION = '2018-10-31'

    def __init__(self):
        if settings.GOOGLE_PAY_GATEWAY != 'stripe':
            raise ImproperlyConfigured(f"Unsupported GOOGLE_PAY_GATEWAY: {settings.GOOGLE_PAY_GATEWAY}")
        stripe.api_key = settings.STRIPE_SECRET_KEY

    def create_payment(self, user, plan):
        if plan.is_free:
            return {'free': True}
        return {
            'environment': settings.GOOGLE_PAY_ENVIRONMENT,
            'paymentDataRequest': {
                'apiVersion': 2,
                'apiVersionMinor': 0,
                'allowedPaymentMethods': [{
                    'type': 'CARD',
                    'parameters': {
                        'allowedAuthMethods': ['PAN_ONLY', 'CRYPTOGRAM_3DS'],
                        'allowedCardNetworks': ['AMEX', 'DISCOVER', 'MASTERCARD', 'VISA'],
                    },
                    'tokenizationSpecification': {
                        'type': 'PAYMENT_GATEWAY',
                        'parameters': {
                            'gateway': 'stripe',
                            'stripe:version': self.STRIPE_API_VERSION,
                            'stripe:publishableKey': settings.STRIPE_PUBLISHABLE_KEY,
                        },
                    },
                }],
                'merchantInfo': {
                    'merchantId': settings.GOOGLE_PAY_MERCHANT_ID,
                    'merchantName': settings.GOOGLE_PAY_MERCHANT_NAME,
                },
                'transactionInfo': {
                    'totalPriceStatus': 'FINAL',
                    'totalPrice': f"{plan.price:.2f}",
                    'currencyCode': 'USD',
                    'countryCode': 'US',
                },
            },
        }

    def confirm_payment(self, user, plan, data):
        """Charges the wallet's Stripe card token and returns the PaymentIntent id."""
        if plan.is_free:
            return ''
        token = (
            ((data.get('paymentData') or {}).get('paymentMethodData') or {})
            .get('tokenizationData', {})
            .get('token')
        )
        if not token:
            raise ValidationError('A tokenized Google Pay payment method is required',
                                  errors={'paymentData': ['Missing payment token.']})
        try:
            card_token = json.loads(token)['id']
        except (ValueError, TypeError, KeyError):
            raise ValidationError('Unreadable Google Pay payment token',
                                  errors={'paymentData': ['Invalid payment token.']})

        try:
            intent = stripe.PaymentIntent.create(
                amount=plan.amount_cents,
                currency='usd',
                confirm=True,
                payment_method_types=['card'],
                payment_method_data={'type': 'card', 'card': {'token': card_token}},
                receipt_email=user.email,
                metadata={'user_id': user.id, 'plan_id': plan.id, 'wallet': 'google_pay'},
            )
        except stripe.CardError as e:
            logger.warning(f"Google Pay charge declined for {user.email}: {e.user_message}")
            raise ValidationError('Payment was declined')
        except stripe.InvalidRequestError as e:
            logger.warning(f"Google Pay token rejected for {user.email}: {e}")
            raise ValidationError('Payment token was rejected')
        except stripe.StripeError as e:
            raise UpstreamServiceError('Failed to charge Google Pay payment', detail=str(e))

        if intent.status != 'succeeded' or intent.amount != plan.amount_cents:
            raise ValidationError('Payment has not been completed')
        return intent.id


BACKENDS = {
    NoBilling.name: NoBilling,
    StripeBilling.name: StripeBilling,
    GooglePayBilling.name: GooglePayBilling,
}


def get_billing_backend():
    try:
        return BACKENDS[settings.BILLING_BACKEND]()
    except KeyError:
        raise ImproperlyConfigured(f"Unknown BILLING_BACKEND: {settings.BILLING_BACKEND}")


def activate_subscription(user, plan, provider, reference=''):
    """
    Move ``user`` onto ``plan`` for one billing period and record the payment.
    A payment reference can only be applied once, whichever backend reports it.
    """
    now = timezone.now()
    expiry = None if plan.is_free else now + timedelta(days=settings.SUBSCRIPTION_PERIOD_DAYS)

    with transaction.atomic():
        # A Google Pay charge is also reported by the Stripe webhook under the same PaymentIntent id
        if reference and PaymentHistory.objects.filter(payment_reference=reference).exists():
            raise Conflict('Payment already applied')

        extra = {'google_pay_subscription_id': reference} if provider == GooglePayBilling.name else {}
        user = storage.update_user_subscription(
            user.id,
            tier=plan.tier,
            status=user.SubscriptionStatus.ACTIVE,
            expiry=expiry,
            **extra
        )
        PaymentHistory.objects.create(
            user=user,
            plan=plan,
            amount=plan.price,
            currency='USD',
            status=PaymentHistory.Status.SUCCEEDED,
            provider=provider,
            payment_reference=reference,
            period_start=now,
            period_end=expiry,
        )

    logger.info(f"Subscription activated: {user.email} -> {plan.id} via {provider}")
    return user
