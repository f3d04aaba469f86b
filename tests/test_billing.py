from unittest.mock import MagicMock, patch

import pytest
import stripe
from django.core.exceptions import ImproperlyConfigured
from django.urls import reverse

from apps.payments.billing import GooglePayBilling, activate_subscription, get_billing_backend
from apps.payments.models import PaymentHistory
from apps.projects.exceptions import Conflict
from apps.projects.storage import storage

pytestmark = pytest.mark.django_db


def gpay_body(plan_id='premium', token='{"id": "tok_visa", "object": "token"}'):
    return {
        'planId': plan_id,
        'paymentData': {'paymentMethodData': {'tokenizationData': {'type': 'PAYMENT_GATEWAY', 'token': token}}},
    }


def test_plans_are_public(api_client):
    response = api_client.get(reverse('payments:subscription-plans'))

    assert response.status_code == 200
    assert [p['id'] for p in response.data] == ['free', 'managed_api', 'premium']
    assert response.data[1]['price'] == 9
    assert response.data[1]['popular'] is True


def test_unknown_billing_backend(settings):
    settings.BILLING_BACKEND = 'paypal'

    with pytest.raises(ImproperlyConfigured):
        get_billing_backend()


def test_no_billing_only_allows_free_plan(login, owner, settings):
    settings.BILLING_BACKEND = 'none'
    client = login(owner)

    paid = client.post(reverse('payments:create-payment-intent'), {'planId': 'premium'})
    free = client.post(reverse('payments:subscription-activate'), {'planId': 'free'})

    assert paid.status_code == 400
    assert free.status_code == 200
    assert free.data['user']['subscriptionTier'] == 'free'
    assert free.data['user']['subscriptionStatus'] == 'active'


def test_unknown_plan(login, owner):
    response = login(owner).post(reverse('payments:create-payment-intent'), {'planId': 'platinum'})

    assert response.status_code == 404


def test_stripe_payment_intent(login, owner, settings):
    settings.BILLING_BACKEND = 'stripe'
    settings.STRIPE_PUBLISHABLE_KEY = 'pk_test_123'
    intent = MagicMock(id='pi_123', client_secret='pi_123_secret')

    with patch('stripe.PaymentIntent.create', return_value=intent) as create:
        response = login(owner).post(reverse('payments:create-payment-intent'), {'planId': 'managed_api'})

    assert response.status_code == 200
    assert response.data == {
        'planId': 'managed_api',
        'provider': 'stripe',
        'clientSecret': 'pi_123_secret',
        'paymentIntentId': 'pi_123',
        'publishableKey': 'pk_test_123',
    }
    kwargs = create.call_args.kwargs
    assert kwargs['amount'] == 900
    assert kwargs['metadata'] == {'user_id': owner.id, 'plan_id': 'managed_api'}


def test_stripe_activation_checks_intent(login, owner, settings):
    settings.BILLING_BACKEND = 'stripe'
    client = login(owner)
    intent = MagicMock(id='pi_123', status='succeeded', amount=1900,
                       metadata={'user_id': owner.id, 'plan_id': 'premium'})

    with patch('stripe.PaymentIntent.retrieve', return_value=intent):
        response = client.post(reverse('payments:subscription-activate'),
                               {'planId': 'premium', 'paymentIntentId': 'pi_123'})
        replay = client.post(reverse('payments:subscription-activate'),
                             {'planId': 'premium', 'paymentIntentId': 'pi_123'})

    assert response.status_code == 200
    assert response.data['user']['subscriptionTier'] == 'premium'
    assert response.data['user']['subscriptionExpiry'] is not None
    assert replay.status_code == 409
    assert PaymentHistory.objects.filter(user=owner, payment_reference='pi_123').count() == 1


def test_stripe_activation_rejects_unpaid_intent(login, owner, settings):
    settings.BILLING_BACKEND = 'stripe'
    intent = MagicMock(id='pi_123', status='requires_payment_method', amount=1900,
                       metadata={'user_id': owner.id, 'plan_id': 'premium'})

    with patch('stripe.PaymentIntent.retrieve', return_value=intent):
        response = login(owner).post(reverse('payments:subscription-activate'),
                                     {'planId': 'premium', 'paymentIntentId': 'pi_123'})

    assert response.status_code == 400
    owner.refresh_from_db()
    assert owner.subscription_tier == 'free'


def test_stripe_errors_are_upstream_failures(login, owner, settings):
    settings.BILLING_BACKEND = 'stripe'

    with patch('stripe.PaymentIntent.create', side_effect=stripe.StripeError('card declined')):
        response = login(owner).post(reverse('payments:create-payment-intent'), {'planId': 'premium'})

    assert response.status_code == 500
    assert response.data == {'message': 'Failed to create payment intent'}


def test_google_pay_request(login, owner, settings):
    settings.BILLING_BACKEND = 'google_pay'
    settings.GOOGLE_PAY_MERCHANT_ID = 'BCR2DN4T'
    settings.STRIPE_PUBLISHABLE_KEY = 'pk_test_123'

    response = login(owner).post(reverse('payments:create-payment-intent'), {'planId': 'premium'})

    request = response.data['paymentDataRequest']
    assert response.data['provider'] == 'google_pay'
    assert request['transactionInfo']['totalPrice'] == '19.00'
    assert request['merchantInfo']['merchantId'] == 'BCR2DN4T'
    tokenization = request['allowedPaymentMethods'][0]['tokenizationSpecification']['parameters']
    assert tokenization['gateway'] == 'stripe'
    assert tokenization['stripe:publishableKey'] == 'pk_test_123'


def test_google_pay_activation_charges_card_token(login, owner, settings):
    settings.BILLING_BACKEND = 'google_pay'
    client = login(owner)
    intent = MagicMock(id='pi_gpay', status='succeeded', amount=1900)

    missing = client.post(reverse('payments:subscription-activate'), {'planId': 'premium'})
    with patch('stripe.PaymentIntent.create', return_value=intent) as create:
        response = client.post(reverse('payments:subscription-activate'), gpay_body())

    assert missing.status_code == 400
    assert response.status_code == 200
    kwargs = create.call_args.kwargs
    assert kwargs['amount'] == 1900
    assert kwargs['confirm'] is True
    assert kwargs['payment_method_data'] == {'type': 'card', 'card': {'token': 'tok_visa'}}
    owner.refresh_from_db()
    assert owner.subscription_tier == 'premium'
    assert owner.google_pay_subscription_id == 'pi_gpay'


def test_google_pay_declined_token_keeps_tier(login, owner, settings):
    settings.BILLING_BACKEND = 'google_pay'
    client = login(owner)
    declined = stripe.CardError('Your card was declined.', None, 'card_declined')

    unreadable = client.post(reverse('payments:subscription-activate'), gpay_body(token='not-a-real-token'))
    with patch('stripe.PaymentIntent.create', side_effect=declined):
        response = client.post(reverse('payments:subscription-activate'), gpay_body())

    assert unreadable.status_code == 400
    assert response.status_code == 400
    assert response.data == {'message': 'Payment was declined'}
    owner.refresh_from_db()
    assert owner.subscription_tier == 'free'
    assert not PaymentHistory.objects.filter(user=owner).exists()


def test_google_pay_unpaid_intent_is_rejected(login, owner, settings):
    settings.BILLING_BACKEND = 'google_pay'
    intent = MagicMock(id='pi_gpay', status='requires_action', amount=1900)

    with patch('stripe.PaymentIntent.create', return_value=intent):
        response = login(owner).post(reverse('payments:subscription-activate'), gpay_body())

    assert response.status_code == 400
    owner.refresh_from_db()
    assert owner.subscription_tier == 'free'


def test_webhook_does_not_reapply_google_pay_charge(api_client, owner, settings):
    settings.STRIPE_WEBHOOK_SECRET = 'whsec_test'
    plan = storage.get_subscription_plan('premium')
    activate_subscription(owner, plan, GooglePayBilling.name, 'pi_gpay')
    event = {
        'type': 'payment_intent.succeeded',
        'data': {'object': {'id': 'pi_gpay', 'metadata': {'user_id': owner.id, 'plan_id': 'premium'}}},
    }

    with patch('stripe.Webhook.construct_event', return_value=event):
        response = api_client.post(reverse('payments:stripe-webhook'), {}, HTTP_STRIPE_SIGNATURE='sig')

    assert response.status_code == 200
    assert PaymentHistory.objects.filter(payment_reference='pi_gpay').count() == 1


def test_google_pay_requires_stripe_gateway(settings):
    settings.BILLING_BACKEND = 'google_pay'
    settings.GOOGLE_PAY_GATEWAY = 'adyen'

    with pytest.raises(ImproperlyConfigured):
        get_billing_backend()


def test_activate_subscription_is_idempotent_per_reference(owner):
    plan = storage.get_subscription_plan('premium')
    activate_subscription(owner, plan, GooglePayBilling.name, 'gpay-1')

    with pytest.raises(Conflict):
        activate_subscription(owner, plan, GooglePayBilling.name, 'gpay-1')


def test_subscription_view(login, owner, settings):
    settings.BILLING_BACKEND = 'none'
    activate_subscription(owner, storage.get_subscription_plan('free'), 'none')

    response = login(owner).get(reverse('payments:subscription'))

    assert response.data['tier'] == 'free'
    assert response.data['status'] == 'active'
    assert response.data['plan']['id'] == 'free'
    assert response.data['billingBackend'] == 'none'
    assert len(response.data['payments']) == 1


def test_webhook_activates_paid_plan(api_client, owner, settings):
    settings.STRIPE_WEBHOOK_SECRET = 'whsec_test'
    event = {
        'type': 'payment_intent.succeeded',
        'data': {'object': {'id': 'pi_777', 'metadata': {'user_id': owner.id, 'plan_id': 'managed_api'}}},
    }

    with patch('stripe.Webhook.construct_event', return_value=event):
        first = api_client.post(reverse('payments:stripe-webhook'), {}, HTTP_STRIPE_SIGNATURE='sig')
        second = api_client.post(reverse('payments:stripe-webhook'), {}, HTTP_STRIPE_SIGNATURE='sig')

    assert first.status_code == 200
    assert second.status_code == 200
    owner.refresh_from_db()
    assert owner.subscription_tier == 'managed_api'
    assert PaymentHistory.objects.filter(payment_reference='pi_777').count() == 1


def test_webhook_rejects_bad_signature(api_client, db):
    error = stripe.SignatureVerificationError('bad signature', 'sig')

    with patch('stripe.Webhook.construct_event', side_effect=error):
        response = api_client.post(reverse('payments:stripe-webhook'), {}, HTTP_STRIPE_SIGNATURE='sig')

    assert response.status_code == 400
