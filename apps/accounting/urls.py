"""URL routing for accounting."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    B2BRevenueViewSet,
    CashEntryViewSet,
    CashRegisterCountViewSet,
    ConsolidatedRangeView,
    DailyTurnoverViewSet,
    DashboardView,
)

router = DefaultRouter()
router.register(r"turnovers", DailyTurnoverViewSet, basename="turnover")
router.register(r"b2b-revenues", B2BRevenueViewSet, basename="b2b-revenue")
router.register(r"cash-entries", CashEntryViewSet, basename="cash-entry")
router.register(r"cash-counts", CashRegisterCountViewSet, basename="cash-count")

urlpatterns = [
    path("consolidated/", ConsolidatedRangeView.as_view(), name="consolidated-range"),
    path("dashboard/", DashboardView.as_view(), name="dashboard"),
    path("", include(router.urls)),
]
