from datetime import timedelta
from unittest.mock import patch

import pytest
from django.core import mail
from django.utils import timezone

from apps.bookings.models import Reservation
from apps.bookings.tasks import (
    build_daily_report,
    check_attendance,
    create_deferred_payment_intents,
    create_deposit_holds,
    send_booking_reminders,
    send_daily_report,
)
from apps.payments.models import Payment
from apps.payments.stripe_service import PaymentGatewayError
from apps.users.models import User

from .helpers import intent, make_meeting_room, make_reservation, setup_intent


@pytest.fixture
def customer(db):
    return User.objects.create_user(email="client@example.com", password="ClientPass123")


@pytest.fixture
def room(db):
    return make_meeting_room()


@patch("apps.payments.stripe_service.create_payment_intent")
@patch("apps.payments.stripe_service.retrieve_setup_intent")
def test_deposit_holds_use_the_saved_card(retrieve_setup, create_intent, customer, room):
    reservation = make_reservation(
        room,
        customer,
        days_ahead=7,
        stripe_setup_intent_id="seti_1",
        stripe_customer_id="cus_1",
        capture_method=Reservation.CaptureMethod.DEFERRED,
        deposit_amount=5000,
    )
    retrieve_setup.return_value = setup_intent("seti_1", payment_method="pm_saved", customer="cus_1")
    create_intent.return_value = intent("pi_hold", amount=5000)

    result = create_deposit_holds()

    assert result["success_count"] == 1
    kwargs = create_intent.call_args.kwargs
    assert create_intent.call_args.args == (5000,)
    assert kwargs["payment_method"] == "pm_saved"
    assert kwargs["confirm"] is True
    assert kwargs["off_session"] is True
    assert kwargs["capture_method"] == "manual"
    reservation.refresh_from_db()
    assert reservation.stripe_payment_intent_id == "pi_hold"
    assert reservation.capture_method == Reservation.CaptureMethod.MANUAL
    assert Payment.objects.get(stripe_payment_intent_id="pi_hold").status == Payment.Status.REQUIRES_CAPTURE
    assert len(mail.outbox) == 1


@patch("apps.payments.stripe_service.create_payment_intent")
@patch("apps.payments.stripe_service.retrieve_setup_intent")
def test_deposit_holds_ignore_other_dates_and_existing_intents(retrieve_setup, create_intent, customer, room):
    make_reservation(room, customer, days_ahead=8, stripe_setup_intent_id="seti_1")
    make_reservation(
        room, customer, days_ahead=7, stripe_setup_intent_id="seti_2", stripe_payment_intent_id="pi_existing"
    )

    result = create_deposit_holds()

    assert result["success_count"] == 0
    create_intent.assert_not_called()


@patch("apps.payments.stripe_service.create_payment_intent")
@patch("apps.payments.stripe_service.retrieve_setup_intent")
def test_one_failure_does_not_stop_the_batch(retrieve_setup, create_intent, customer, room):
    make_reservation(room, customer, days_ahead=7, stripe_setup_intent_id="seti_1")
    make_reservation(room, customer, days_ahead=7, stripe_setup_intent_id="seti_2")
    retrieve_setup.return_value = setup_intent()
    create_intent.side_effect = [PaymentGatewayError("card_declined", code="card_declined"), intent("pi_ok")]

    result = create_deposit_holds()

    assert result["failed_count"] == 1
    assert result["success_count"] == 1
    assert result["failed"][0]["error"] == "card_declined"


@patch("apps.payments.stripe_service.retrieve_setup_intent")
def test_deposit_hold_skipped_without_usable_card(retrieve_setup, customer, room):
    make_reservation(room, customer, days_ahead=7, stripe_setup_intent_id="seti_1")
    retrieve_setup.return_value = setup_intent(payment_method=None)

    result = create_deposit_holds()

    assert result["skipped_count"] == 1


@patch("apps.payments.stripe_service.create_payment_intent")
@patch("apps.payments.stripe_service.retrieve_setup_intent")
def test_deferred_intents_only_for_confirmed_reservations_with_customer(retrieve_setup, create_intent, customer, room):
    target = make_reservation(
        room,
        customer,
        days_ahead=6,
        capture_method=Reservation.CaptureMethod.DEFERRED,
        stripe_setup_intent_id="seti_1",
        stripe_customer_id="cus_1",
    )
    make_reservation(
        room,
        customer,
        days_ahead=6,
        status=Reservation.Status.PENDING,
        capture_method=Reservation.CaptureMethod.DEFERRED,
        stripe_setup_intent_id="seti_2",
        stripe_customer_id="cus_1",
    )
    make_reservation(
        room,
        customer,
        days_ahead=6,
        capture_method=Reservation.CaptureMethod.DEFERRED,
        stripe_setup_intent_id="seti_3",
    )
    retrieve_setup.return_value = setup_intent("seti_1")
    create_intent.return_value = intent("pi_deferred")

    result = create_deferred_payment_intents()

    assert result["success_count"] == 1
    assert result["success"][0]["reservation"] == target.confirmation_number
    assert create_intent.call_args.kwargs["customer_id"] == "cus_1"


@patch("apps.payments.stripe_service.capture_payment_intent")
@patch("apps.payments.stripe_service.retrieve_payment_intent")
def test_check_attendance_captures_no_shows(retrieve, capture, customer, room):
    reservation = make_reservation(
        room,
        customer,
        days_ahead=-1,
        stripe_payment_intent_id="pi_hold",
        capture_method=Reservation.CaptureMethod.MANUAL,
    )
    Payment.objects.create(
        reservation=reservation, amount=10000, status=Payment.Status.REQUIRES_CAPTURE, stripe_payment_intent_id="pi_hold"
    )
    retrieve.return_value = intent("pi_hold")
    capture.return_value = intent("pi_hold", status="succeeded")

    result = check_attendance()

    assert result["success_count"] == 1
    capture.assert_called_once_with("pi_hold", amount_to_capture=None)
    reservation.refresh_from_db()
    assert reservation.attendance_status == Reservation.AttendanceStatus.ABSENT
    assert reservation.status == Reservation.Status.COMPLETED
    assert reservation.completed_at is not None
    assert reservation.payment_status == Reservation.PaymentStatus.PAID
    assert Payment.objects.get().status == Payment.Status.SUCCEEDED
    assert len(mail.outbox) == 1


@patch("apps.payments.stripe_service.capture_payment_intent")
@patch("apps.payments.stripe_service.retrieve_payment_intent")
def test_check_attendance_skips_non_capturable_and_validated(retrieve, capture, customer, room):
    make_reservation(room, customer, days_ahead=-1, stripe_payment_intent_id="pi_done")
    make_reservation(
        room,
        customer,
        days_ahead=-1,
        stripe_payment_intent_id="pi_present",
        attendance_status=Reservation.AttendanceStatus.PRESENT,
    )
    retrieve.return_value = intent("pi_done", status="canceled")

    result = check_attendance()

    assert result["skipped_count"] == 1
    assert result["success_count"] == 0
    capture.assert_not_called()


def test_reminders_sent_for_tomorrow_confirmed(customer, room):
    make_reservation(room, customer, days_ahead=1)
    make_reservation(room, customer, days_ahead=1, status=Reservation.Status.PENDING)
    make_reservation(room, customer, days_ahead=2)

    result = send_booking_reminders()

    assert result["success_count"] == 1
    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ["client@example.com"]


def test_daily_report_sections(customer, room):
    today = timezone.localdate()
    make_reservation(room, customer, days_ahead=-1)
    make_reservation(room, customer, days_ahead=3, status=Reservation.Status.PENDING)
    make_reservation(room, customer, days_ahead=4)
    make_reservation(
        room,
        customer,
        days_ahead=6,
        capture_method=Reservation.CaptureMethod.DEFERRED,
        stripe_setup_intent_id="seti_1",
    )

    report = build_daily_report(today)

    assert len(report["unvalidated_yesterday"]) == 1
    assert len(report["pending"]) == 1
    assert len(report["upcoming"]) == 2
    assert len(report["deposit_pending"]) == 1
    assert today + timedelta(days=6) == report["deposit_pending"][0].date


def test_daily_report_email(db):
    result = send_daily_report()

    assert result["sent"] is True
    assert mail.outbox[0].to == [result["recipient"]]
