"""URL routing for payments."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import CreatePaymentIntentView, PaymentViewSet, stripe_webhook

router = DefaultRouter()
router.register(r"", PaymentViewSet, basename="payment")

urlpatterns = [
    path("create-intent/", CreatePaymentIntentView.as_view(), name="create-intent"),
    path("webhook/", stripe_webhook, name="stripe-webhook"),
    path("", include(router.urls)),
]
