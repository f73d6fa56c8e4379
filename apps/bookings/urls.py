"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AdminReservationViewSet, CronView, ReservationViewSet

router = DefaultRouter()
router.register(r"admin/reservations", AdminReservationViewSet, basename="admin-reservation")
router.register(r"reservations", ReservationViewSet, basename="reservation")

urlpatterns = [
    path("", include(router.urls)),
]

cron_urlpatterns = [
    path("<slug:job>/", CronView.as_view(), name="cron-job"),
]
