"""Shared builders for booking tests."""

from __future__ import annotations

from datetime import time, timedelta
from decimal import Decimal

from django.utils import timezone

from apps.bookings.models import Reservation
from apps.payments.stripe_service import IntentResult, SetupIntentResult
from apps.spaces.models import SpaceConfiguration


def make_open_space(**overrides) -> SpaceConfiguration:
    fields = {
        "space_type": "open-space",
        "name": "Open space",
        "min_capacity": 1,
        "max_capacity": 20,
        "hourly_price": Decimal("6.00"),
        "daily_price": Decimal("29.00"),
        "per_person": True,
    }
    fields.update(overrides)
    return SpaceConfiguration.objects.create(**fields)


def make_meeting_room(**overrides) -> SpaceConfiguration:
    fields = {
        "space_type": "meeting-room",
        "name": "Salle de réunion",
        "min_capacity": 1,
        "max_capacity": 10,
        "hourly_price": Decimal("25.00"),
        "daily_price": Decimal("150.00"),
        "per_person": False,
        "is_exclusive": True,
    }
    fields.update(overrides)
    return SpaceConfiguration.objects.create(**fields)


def make_reservation(space, user=None, *, days_ahead: int = 1, **overrides) -> Reservation:
    fields = {
        "user": user,
        "space": space,
        "date": timezone.localdate() + timedelta(days=days_ahead),
        "start_time": time(9, 0),
        "end_time": time(13, 0),
        "reservation_type": "hourly",
        "number_of_people": 2,
        "base_price": Decimal("100.00"),
        "total_price": Decimal("100.00"),
        "contact_name": "Alice Martin",
        "contact_email": user.email if user is not None else "alice@example.com",
        "status": Reservation.Status.CONFIRMED,
    }
    fields.update(overrides)
    return Reservation.objects.create(**fields)


def intent(intent_id: str = "pi_test", status: str = "requires_capture", amount: int = 10000, **extra) -> IntentResult:
    return IntentResult(id=intent_id, status=status, amount=amount, client_secret=f"{intent_id}_secret", **extra)


def setup_intent(setup_id: str = "seti_test", status: str = "succeeded", **extra) -> SetupIntentResult:
    extra.setdefault("payment_method", "pm_card")
    extra.setdefault("customer", "cus_test")
    return SetupIntentResult(id=setup_id, status=status, client_secret=f"{setup_id}_secret", **extra)
