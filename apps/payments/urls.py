from django.urls import path

from .views import (
    ActivateSubscriptionView,
    CreatePaymentIntentView,
    SubscriptionPlansView,
    SubscriptionView,
)
from .webhooks import stripe_webhook

app_name = 'payments'

urlpatterns = [
    path('subscription/plans', SubscriptionPlansView.as_view(), name='subscription-plans'),
    path('subscription', SubscriptionView.as_view(), name='subscription'),
    path('create-payment-intent', CreatePaymentIntentView.as_view(), name='create-payment-intent'),
    path('subscription/activate', ActivateSubscriptionView.as_view(), name='subscription-activate'),
    path('subscription/webhook', stripe_webhook, name='stripe-webhook'),
]
