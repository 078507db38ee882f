"""
Payment URLs.
"""
from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import PaymentViewSet, StripeWebhookView

app_name = 'payments'

router = SimpleRouter()
router.register(r'', PaymentViewSet, basename='payment')

urlpatterns = [
    path('webhook/', StripeWebhookView.as_view(), name='payment-webhook'),
    path('', include(router.urls)),
]
