"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core import mail
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Reservation
from apps.notifications.models import Notification
from apps.payments.models import Payment
from apps.payments.stripe_service import RefundResult
from apps.spaces.models import ExceptionalClosure
from apps.users.models import User

from .helpers import intent, make_meeting_room, make_open_space, make_reservation, setup_intent


class ReservationAPITests(APITestCase):
    """Création, conflits de créneau et annulation côté client."""

    def setUp(self) -> None:
        self.client_user = User.objects.create_user(
            email="client@example.com", password="ClientPass123", first_name="Alice"
        )
        self.other = User.objects.create_user(email="other@example.com", password="OtherPass123")
        self.admin = User.objects.create_user(
            email="admin@example.com", password="AdminPass123", role=User.RoleChoices.ADMIN
        )
        self.open_space = make_open_space()
        self.meeting_room = make_meeting_room()
        self.client.force_authenticate(self.client_user)
        self.list_url = reverse("reservation-list")
        self.day = timezone.localdate() + timedelta(days=10)

    def _payload(self, space_type: str = "open-space", **overrides) -> dict:
        payload = {
            "space": space_type,
            "date": str(self.day),
            "reservation_type": "hourly",
            "start_time": "09:00",
            "end_time": "12:00",
            "number_of_people": 2,
        }
        payload.update(overrides)
        return payload

    def test_client_creates_pending_reservation_with_server_price(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(self.list_url, self._payload(total_price="1.00"), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        reservation = Reservation.objects.get()
        self.assertEqual(reservation.user, self.client_user)
        self.assertEqual(reservation.status, Reservation.Status.PENDING)
        self.assertEqual(reservation.total_price, Decimal("36.00"))
        self.assertEqual(reservation.deposit_amount, 3600)
        self.assertEqual(reservation.contact_email, "client@example.com")
        self.assertTrue(reservation.confirmation_number.startswith("BT-"))
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["client@example.com"])
        self.assertEqual(Notification.objects.filter(user=self.admin).count(), 1)

    def test_exclusive_space_rejects_overlap(self) -> None:
        make_reservation(self.meeting_room, self.other, days_ahead=10)

        response = self.client.post(
            self.list_url,
            self._payload("meeting-room", start_time="11:00", end_time="14:00"),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)

    def test_exclusive_space_accepts_adjacent_slot(self) -> None:
        make_reservation(self.meeting_room, self.other, days_ahead=10)

        response = self.client.post(
            self.list_url,
            self._payload("meeting-room", start_time="13:00", end_time="15:00"),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_shared_space_rejects_when_capacity_exceeded(self) -> None:
        self.open_space.max_capacity = 3
        self.open_space.save()
        make_reservation(self.open_space, self.other, days_ahead=10, number_of_people=2)

        response = self.client.post(
            self.list_url, self._payload(start_time="10:00", end_time="11:00"), format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT, response.data)

    def test_cancelled_reservation_frees_capacity(self) -> None:
        self.open_space.max_capacity = 3
        self.open_space.save()
        make_reservation(
            self.open_space, self.other, days_ahead=10, number_of_people=2, status=Reservation.Status.CANCELLED
        )

        response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_closure_blocks_reservation(self) -> None:
        ExceptionalClosure.objects.create(date=self.day, reason="Inventaire")

        response = self.client.post(self.list_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertIn("Inventaire", response.data["detail"])

    def test_hourly_reservation_requires_times(self) -> None:
        response = self.client.post(
            self.list_url, self._payload(start_time=None, end_time=None), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_only_returns_own_reservations(self) -> None:
        make_reservation(self.open_space, self.client_user)
        make_reservation(self.open_space, self.other)

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_cancel_pending_reservation_is_free(self) -> None:
        reservation = make_reservation(self.open_space, self.client_user, status=Reservation.Status.PENDING)

        response = self.client.post(reverse("reservation-cancel", args=[reservation.pk]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["cancellation"]["charge_percentage"], 0)
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.Status.CANCELLED)
        self.assertEqual(reservation.cancelled_by, self.client_user)
        self.assertEqual(reservation.cancellation_fee, Decimal("0.00"))
        self.assertEqual(len(mail.outbox), 1)

    @patch("apps.payments.stripe_service.capture_payment_intent")
    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_cancel_confirmed_reservation_captures_fee(self, retrieve, capture) -> None:
        reservation = make_reservation(
            self.meeting_room,
            self.client_user,
            stripe_payment_intent_id="pi_hold",
            capture_method=Reservation.CaptureMethod.MANUAL,
            deposit_amount=10000,
            payment_status=Reservation.PaymentStatus.PENDING,
        )
        Payment.objects.create(
            reservation=reservation, amount=10000, status=Payment.Status.REQUIRES_CAPTURE,
            stripe_payment_intent_id="pi_hold",
        )
        retrieve.return_value = intent("pi_hold", amount=10000)
        capture.return_value = intent("pi_hold", status="succeeded", amount=10000)

        response = self.client.post(reverse("reservation-cancel", args=[reservation.pk]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        # Meeting rooms cancelled the day before are charged 70 %.
        capture.assert_called_once_with("pi_hold", amount_to_capture=7000)
        reservation.refresh_from_db()
        self.assertEqual(reservation.cancellation_fee, Decimal("70.00"))
        self.assertEqual(reservation.refund_amount, Decimal("30.00"))
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PARTIAL)
        payment = Payment.objects.get(stripe_payment_intent_id="pi_hold")
        self.assertEqual(payment.status, Payment.Status.SUCCEEDED)
        self.assertEqual(payment.cancellation_fee, 7000)
        self.assertEqual(payment.amount_captured, 7000)
        self.assertEqual(payment.refund_amount, 0)

    @patch("apps.payments.stripe_service.create_refund")
    @patch("apps.payments.stripe_service.capture_payment_intent")
    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_fee_kept_on_cancellation_can_be_refunded(self, retrieve, capture, create_refund) -> None:
        reservation = make_reservation(
            self.meeting_room,
            self.client_user,
            stripe_payment_intent_id="pi_hold",
            capture_method=Reservation.CaptureMethod.MANUAL,
            deposit_amount=10000,
        )
        Payment.objects.create(
            reservation=reservation, amount=10000, status=Payment.Status.REQUIRES_CAPTURE,
            stripe_payment_intent_id="pi_hold",
        )
        retrieve.return_value = intent("pi_hold", amount=10000)
        capture.return_value = intent("pi_hold", status="succeeded", amount=10000)
        create_refund.return_value = RefundResult(id="re_fee", status="succeeded", amount=7000)
        self.client.post(reverse("reservation-cancel", args=[reservation.pk]), {}, format="json")
        payment = Payment.objects.get(stripe_payment_intent_id="pi_hold")
        self.client.force_authenticate(self.admin)

        response = self.client.post(reverse("payment-refund", args=[payment.pk]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(create_refund.call_args.kwargs["amount"], 7000)
        payment.refresh_from_db()
        self.assertEqual(payment.refund_amount, 7000)
        reservation.refresh_from_db()
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.REFUNDED)

    @patch("apps.payments.stripe_service.create_refund")
    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_cancel_paid_reservation_refunds_the_balance(self, retrieve, create_refund) -> None:
        reservation = make_reservation(
            self.meeting_room,
            self.client_user,
            stripe_payment_intent_id="pi_paid",
            deposit_amount=10000,
            payment_status=Reservation.PaymentStatus.PAID,
        )
        Payment.objects.create(
            reservation=reservation, amount=10000, status=Payment.Status.SUCCEEDED, stripe_payment_intent_id="pi_paid"
        )
        retrieve.return_value = intent("pi_paid", status="succeeded", amount=10000, amount_received=10000)
        create_refund.return_value = RefundResult(id="re_balance", status="succeeded", amount=3000)

        response = self.client.post(reverse("reservation-cancel", args=[reservation.pk]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        create_refund.assert_called_once_with(
            "pi_paid", amount=3000, metadata={"reservation_id": reservation.pk, "cancellation_fee": 7000}
        )
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.Status.CANCELLED)
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PARTIAL)
        payment = Payment.objects.get(stripe_payment_intent_id="pi_paid")
        self.assertEqual(payment.status, Payment.Status.REFUNDED)
        self.assertEqual(payment.refund_amount, 3000)
        self.assertEqual(payment.amount_captured, 10000)
        self.assertEqual(payment.stripe_refund_id, "re_balance")

    @patch("apps.payments.stripe_service.create_refund")
    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_cancel_paid_reservation_without_balance_keeps_it_paid(self, retrieve, create_refund) -> None:
        reservation = make_reservation(
            self.meeting_room,
            self.client_user,
            stripe_payment_intent_id="pi_paid",
            deposit_amount=7000,
            payment_status=Reservation.PaymentStatus.PAID,
        )
        Payment.objects.create(
            reservation=reservation, amount=7000, status=Payment.Status.SUCCEEDED, stripe_payment_intent_id="pi_paid"
        )
        retrieve.return_value = intent("pi_paid", status="succeeded", amount=7000, amount_received=7000)

        response = self.client.post(reverse("reservation-cancel", args=[reservation.pk]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        create_refund.assert_not_called()
        reservation.refresh_from_db()
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PAID)
        self.assertEqual(reservation.cancellation_fee, Decimal("70.00"))
        self.assertEqual(reservation.refund_amount, Decimal("0.00"))
        payment = Payment.objects.get(stripe_payment_intent_id="pi_paid")
        self.assertEqual(payment.status, Payment.Status.SUCCEEDED)
        self.assertEqual(payment.cancellation_fee, 7000)

    @patch("apps.payments.stripe_service.cancel_setup_intent")
    @patch("apps.payments.stripe_service.retrieve_setup_intent")
    def test_cancel_drops_an_unconfirmed_saved_card(self, retrieve_setup, cancel_setup) -> None:
        reservation = make_reservation(
            self.meeting_room, self.client_user, days_ahead=30, stripe_setup_intent_id="seti_saved"
        )
        retrieve_setup.return_value = setup_intent("seti_saved", status="requires_payment_method")

        response = self.client.post(reverse("reservation-cancel", args=[reservation.pk]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        retrieve_setup.assert_called_once_with("seti_saved")
        cancel_setup.assert_called_once_with("seti_saved")
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.Status.CANCELLED)
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.UNPAID)

    @patch("apps.payments.stripe_service.cancel_setup_intent")
    @patch("apps.payments.stripe_service.retrieve_setup_intent")
    def test_cancel_keeps_a_confirmed_saved_card(self, retrieve_setup, cancel_setup) -> None:
        reservation = make_reservation(
            self.meeting_room, self.client_user, days_ahead=30, stripe_setup_intent_id="seti_saved"
        )
        retrieve_setup.return_value = setup_intent("seti_saved", status="succeeded")

        response = self.client.post(reverse("reservation-cancel", args=[reservation.pk]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        cancel_setup.assert_not_called()

    def test_cancellation_fees_preview_has_no_side_effects(self) -> None:
        reservation = make_reservation(
            self.meeting_room, self.client_user, stripe_payment_intent_id="pi_hold", deposit_amount=10000
        )

        response = self.client.get(reverse("reservation-cancellation-fees", args=[reservation.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["charge_percentage"], 70)
        self.assertEqual(response.data["cancellation_fee"], "70.00")
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.Status.CONFIRMED)

    def test_client_cannot_cancel_someone_elses_reservation(self) -> None:
        reservation = make_reservation(self.open_space, self.other)

        response = self.client.post(reverse("reservation-cancel", args=[reservation.pk]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_completed_reservation_cannot_be_cancelled(self) -> None:
        reservation = make_reservation(self.open_space, self.client_user, status=Reservation.Status.COMPLETED)

        response = self.client.post(reverse("reservation-cancel", args=[reservation.pk]), {}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AdminReservationAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com", password="AdminPass123", role=User.RoleChoices.ADMIN
        )
        self.staff = User.objects.create_user(
            email="staff@example.com", password="StaffPass123", role=User.RoleChoices.STAFF
        )
        self.customer = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.space = make_meeting_room()

    def _detail(self, reservation: Reservation) -> str:
        return reverse("admin-reservation-detail", args=[reservation.pk])

    def test_client_cannot_list_all_reservations(self) -> None:
        self.client.force_authenticate(self.customer)
        response = self.client.get(reverse("admin-reservation-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_filters_by_status(self) -> None:
        make_reservation(self.space, self.customer, status=Reservation.Status.PENDING)
        make_reservation(self.space, self.customer, days_ahead=2)
        self.client.force_authenticate(self.admin)

        response = self.client.get(reverse("admin-reservation-list"), {"status": "pending"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_staff_may_only_change_attendance(self) -> None:
        reservation = make_reservation(self.space, self.customer, status=Reservation.Status.PENDING)
        self.client.force_authenticate(self.staff)

        response = self.client.patch(self._detail(reservation), {"status": "confirmed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_confirm_requires_a_payment(self) -> None:
        reservation = make_reservation(self.space, self.customer, status=Reservation.Status.PENDING)
        self.client.force_authenticate(self.admin)

        response = self.client.patch(self._detail(reservation), {"status": "confirmed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_confirm_rejected_while_card_not_authorised(self, retrieve) -> None:
        reservation = make_reservation(
            self.space, self.customer, status=Reservation.Status.PENDING, stripe_payment_intent_id="pi_new"
        )
        retrieve.return_value = intent("pi_new", status="requires_payment_method")
        self.client.force_authenticate(self.admin)

        response = self.client.patch(self._detail(reservation), {"status": "confirmed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("requires_payment_method", response.data["detail"])

    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_confirm_sends_email(self, retrieve) -> None:
        reservation = make_reservation(
            self.space, self.customer, status=Reservation.Status.PENDING, stripe_payment_intent_id="pi_ok"
        )
        retrieve.return_value = intent("pi_ok")
        self.client.force_authenticate(self.admin)

        response = self.client.patch(self._detail(reservation), {"status": "confirmed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "confirmed")
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("confirmée", mail.outbox[0].subject)

    def test_confirmed_event_privatisation_adds_closure(self) -> None:
        event_space = make_meeting_room(space_type="evenementiel", name="Privatisation")
        reservation = make_reservation(
            event_space, self.customer, status=Reservation.Status.PENDING, requires_payment=False
        )
        self.client.force_authenticate(self.admin)

        response = self.client.patch(self._detail(reservation), {"status": "confirmed"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        closure = ExceptionalClosure.objects.get(date=reservation.date)
        self.assertEqual(closure.reason, "Privatisation")
        self.assertFalse(closure.is_full_day)

    @patch("apps.payments.stripe_service.cancel_payment_intent")
    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_staff_marks_present_and_releases_hold(self, retrieve, cancel) -> None:
        reservation = make_reservation(
            self.space,
            self.customer,
            stripe_payment_intent_id="pi_hold",
            capture_method=Reservation.CaptureMethod.MANUAL,
            deposit_amount=10000,
        )
        retrieve.return_value = intent("pi_hold")
        cancel.return_value = intent("pi_hold", status="canceled")
        self.client.force_authenticate(self.staff)

        response = self.client.patch(self._detail(reservation), {"attendance_status": "present"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        cancel.assert_called_once_with("pi_hold")
        reservation.refresh_from_db()
        self.assertEqual(reservation.attendance_status, Reservation.AttendanceStatus.PRESENT)
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.UNPAID)
        self.assertEqual(len(mail.outbox), 1)

    @patch("apps.payments.stripe_service.capture_payment_intent")
    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_marking_absent_captures_hold(self, retrieve, capture) -> None:
        reservation = make_reservation(
            self.space,
            self.customer,
            stripe_payment_intent_id="pi_hold",
            capture_method=Reservation.CaptureMethod.MANUAL,
            deposit_amount=10000,
        )
        retrieve.return_value = intent("pi_hold")
        capture.return_value = intent("pi_hold", status="succeeded")
        self.client.force_authenticate(self.staff)

        response = self.client.patch(self._detail(reservation), {"attendance_status": "absent"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        capture.assert_called_once_with("pi_hold", amount_to_capture=None)
        reservation.refresh_from_db()
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PAID)

    @patch("apps.payments.stripe_service.cancel_payment_intent")
    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_reject_pending_releases_hold_and_sends_rejection(self, retrieve, cancel) -> None:
        reservation = make_reservation(
            self.space, self.customer, status=Reservation.Status.PENDING, stripe_payment_intent_id="pi_hold"
        )
        retrieve.return_value = intent("pi_hold")
        cancel.return_value = intent("pi_hold", status="canceled")
        self.client.force_authenticate(self.admin)

        response = self.client.delete(self._detail(reservation), {"reason": "Salle indisponible"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        cancel.assert_called_once_with("pi_hold")
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.Status.CANCELLED)
        self.assertEqual(reservation.cancellation_reason, "Salle indisponible")
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("Salle indisponible", mail.outbox[0].alternatives[0][0])
        self.assertEqual(mail.outbox[0].subject, "Votre demande de réservation n'a pas pu être acceptée")

    @patch("apps.payments.stripe_service.cancel_payment_intent")
    @patch("apps.payments.stripe_service.retrieve_payment_intent")
    def test_cancelling_confirmed_reservation_sends_cancellation_notice(self, retrieve, cancel) -> None:
        reservation = make_reservation(self.space, self.customer, stripe_payment_intent_id="pi_hold")
        retrieve.return_value = intent("pi_hold")
        cancel.return_value = intent("pi_hold", status="canceled")
        self.client.force_authenticate(self.admin)

        response = self.client.delete(self._detail(reservation), {"reason": "Dégât des eaux"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["detail"], "Réservation annulée.")
        cancel.assert_called_once_with("pi_hold")
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.Status.CANCELLED)
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.UNPAID)
        self.assertEqual([message.subject for message in mail.outbox], ["Votre réservation a été annulée"])
        self.assertIn("Dégât des eaux", mail.outbox[0].alternatives[0][0])

    def test_staff_cannot_reject(self) -> None:
        reservation = make_reservation(self.space, self.customer)
        self.client.force_authenticate(self.staff)

        response = self.client.delete(self._detail(reservation))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


@override_settings(CRON_SECRET="test-cron-secret")
class CronAPITests(APITestCase):
    def test_missing_secret_is_rejected(self) -> None:
        response = self.client.get(reverse("cron-job", args=["daily-report"]))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_wrong_secret_is_rejected(self) -> None:
        response = self.client.get(
            reverse("cron-job", args=["daily-report"]), HTTP_AUTHORIZATION="Bearer nope"
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_unknown_job(self) -> None:
        response = self.client.get(
            reverse("cron-job", args=["nothing"]), HTTP_AUTHORIZATION="Bearer test-cron-secret"
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_daily_report_runs(self) -> None:
        response = self.client.post(
            reverse("cron-job", args=["daily-report"]), HTTP_AUTHORIZATION="Bearer test-cron-secret"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["data"]["stats"]["pending"], 0)
        self.assertEqual(len(mail.outbox), 1)
