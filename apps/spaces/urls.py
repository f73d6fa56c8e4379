"""URL routing for spaces and booking settings."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    AdditionalServiceViewSet,
    BookingSettingsView,
    CalculatePriceView,
    ExceptionalClosureViewSet,
    SpaceConfigurationViewSet,
)

router = DefaultRouter()
router.register(r"additional-services", AdditionalServiceViewSet, basename="additional-service")
router.register(r"closures", ExceptionalClosureViewSet, basename="closure")
router.register(r"", SpaceConfigurationViewSet, basename="space")

urlpatterns = [
    path("calculate-price/", CalculatePriceView.as_view(), name="calculate-price"),
    path("booking-settings/", BookingSettingsView.as_view(), name="booking-settings"),
    path("", include(router.urls)),
]
