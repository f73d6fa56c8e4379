"""URL routing for the HR domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import (
    AvailabilityViewSet,
    ClockInView,
    ClockOutView,
    EmployeeViewSet,
    KioskEmployeeListView,
    RecurringTaskViewSet,
    ShiftViewSet,
    TaskViewSet,
    TimeEntryViewSet,
    UnavailabilityViewSet,
)

router = DefaultRouter()
router.register(r"employees", EmployeeViewSet, basename="employee")
router.register(r"time-entries", TimeEntryViewSet, basename="time-entry")
router.register(r"shifts", ShiftViewSet, basename="shift")
router.register(r"unavailabilities", UnavailabilityViewSet, basename="unavailability")
router.register(r"availabilities", AvailabilityViewSet, basename="availability")
router.register(r"tasks", TaskViewSet, basename="task")
router.register(r"recurring-tasks", RecurringTaskViewSet, basename="recurring-task")

urlpatterns = [
    path("clocking/employees/", KioskEmployeeListView.as_view(), name="clocking-employees"),
    path("clocking/clock-in/", ClockInView.as_view(), name="clock-in"),
    path("clocking/clock-out/", ClockOutView.as_view(), name="clock-out"),
    path("", include(router.urls)),
]
