"""Celery tasks for the booking domain.

Every periodic task processes reservations one by one: a failure is
logged, recorded in the result and never stops the batch. The same
functions back the ``/api/v1/cron/<job>/`` endpoints.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications import booking_emails
from apps.hr.tasks import generate_recurring_tasks
from apps.payments import stripe_service
from apps.spaces.models import BookingSettings

from .models import Reservation
from .services import BookingError, capture_hold, place_deposit_hold

logger = logging.getLogger(__name__)


def _new_results() -> dict[str, list]:
    return {"success": [], "failed": [], "skipped": []}


def _failure(reservation: Reservation, error: Exception) -> dict[str, str]:
    return {"reservation": reservation.confirmation_number, "error": str(error)}


def _summary(results: dict[str, list]) -> dict:
    return {
        **results,
        "success_count": len(results["success"]),
        "failed_count": len(results["failed"]),
        "skipped_count": len(results["skipped"]),
    }


def _hold_batch(queryset, source: str) -> dict:
    results = _new_results()
    for reservation in queryset:
        try:
            intent = place_deposit_hold(reservation, source=source)
            results["success"].append(
                {"reservation": reservation.confirmation_number, "payment_intent": intent.id, "status": intent.status}
            )
        except BookingError as e:
            logger.warning(f"Deposit hold skipped for {reservation.confirmation_number}: {e}")
            results["skipped"].append(reservation.confirmation_number)
        except Exception as e:
            logger.error(f"Deposit hold failed for {reservation.confirmation_number}: {e}", exc_info=True)
            results["failed"].append(_failure(reservation, e))
    return _summary(results)


# ============================================================================
# PERIODIC TASKS (lancées par Celery Beat ou par les routes cron)
# ============================================================================

@shared_task(name="bookings.create_deposit_holds")
def create_deposit_holds() -> dict:
    """
    Pose l'empreinte bancaire J-7 sur les cartes enregistrées.

    Cible les réservations actives dont la carte a été enregistrée
    (setup intent) et qui n'ont pas encore de payment intent.
    """
    booking_settings = BookingSettings.load()
    target = timezone.localdate() + timedelta(days=booking_settings.deposit_hold_days)

    reservations = Reservation.objects.filter(
        date=target,
        status__in=Reservation.ACTIVE_STATUSES,
        requires_payment=True,
        stripe_setup_intent_id__isnull=False,
        stripe_payment_intent_id__isnull=True,
    ).select_related("space", "user")

    logger.info(f"create_deposit_holds: {reservations.count()} reservation(s) on {target}")
    results = _hold_batch(reservations, source="deposit_hold")
    logger.info(
        f"create_deposit_holds finished: {results['success_count']} placed, "
        f"{results['failed_count']} failed, {results['skipped_count']} skipped"
    )
    return results


@shared_task(name="bookings.create_deferred_payment_intents")
def create_deferred_payment_intents() -> dict:
    """
    Crée le payment intent J-6 des réservations confirmées en paiement différé.

    Rattrape les réservations qui auraient échappé à la pose J-7.
    """
    booking_settings = BookingSettings.load()
    target = timezone.localdate() + timedelta(days=booking_settings.deferred_intent_days)

    reservations = (
        Reservation.objects.filter(
            date=target,
            status=Reservation.Status.CONFIRMED,
            capture_method=Reservation.CaptureMethod.DEFERRED,
            stripe_payment_intent_id__isnull=True,
            stripe_setup_intent_id__isnull=False,
        )
        .exclude(stripe_customer_id="")
        .select_related("space", "user")
    )

    logger.info(f"create_deferred_payment_intents: {reservations.count()} reservation(s) on {target}")
    results = _hold_batch(reservations, source="deferred_payment")
    logger.info(
        f"create_deferred_payment_intents finished: {results['success_count']} created, "
        f"{results['failed_count']} failed, {results['skipped_count']} skipped"
    )
    return results


@shared_task(name="bookings.check_attendance")
def check_attendance() -> dict:
    """
    Traite les absences de la veille.

    Une réservation confirmée d'hier dont la présence n'a pas été validée
    est considérée comme un no-show : l'empreinte est encaissée et la
    réservation terminée. Une empreinte non capturable est ignorée.
    """
    yesterday = timezone.localdate() - timedelta(days=1)
    results = _new_results()

    reservations = Reservation.objects.filter(
        date=yesterday,
        status=Reservation.Status.CONFIRMED,
        attendance_status="",
        requires_payment=True,
        stripe_payment_intent_id__isnull=False,
    ).select_related("space", "user")

    for reservation in reservations:
        try:
            intent = stripe_service.retrieve_payment_intent(reservation.stripe_payment_intent_id)
            if intent.status != "requires_capture":
                logger.warning(
                    f"Payment intent {intent.id} not capturable ({intent.status}) "
                    f"for {reservation.confirmation_number}"
                )
                results["skipped"].append(reservation.confirmation_number)
                continue

            capture_hold(reservation, intent=intent)
            reservation.attendance_status = Reservation.AttendanceStatus.ABSENT
            reservation.payment_status = Reservation.PaymentStatus.PAID
            reservation.mark_completed()
            reservation.save(
                update_fields=["attendance_status", "payment_status", "status", "completed_at", "updated_at"]
            )
            results["success"].append(
                {"reservation": reservation.confirmation_number, "amount": intent.amount}
            )
            logger.info(f"No-show captured for {reservation.confirmation_number} ({intent.amount} cents)")

            booking_emails.send_deposit_captured_email(reservation, no_show=True)
        except Exception as e:
            logger.error(
                f"Attendance check failed for {reservation.confirmation_number}: {e}", exc_info=True
            )
            results["failed"].append(_failure(reservation, e))

    results = _summary(results)
    logger.info(
        f"check_attendance finished: {results['success_count']} captured, "
        f"{results['failed_count']} failed, {results['skipped_count']} skipped"
    )
    return results


@shared_task(name="bookings.send_booking_reminders")
def send_booking_reminders() -> dict:
    """Rappel envoyé la veille aux réservations confirmées."""
    tomorrow = timezone.localdate() + timedelta(days=1)
    results = _new_results()

    reservations = Reservation.objects.filter(
        date=tomorrow,
        status=Reservation.Status.CONFIRMED,
    ).select_related("space", "user")

    for reservation in reservations:
        if not reservation.recipient_email:
            results["skipped"].append(reservation.confirmation_number)
            continue
        if booking_emails.send_booking_reminder_email(reservation):
            results["success"].append(reservation.confirmation_number)
        else:
            results["failed"].append(
                {"reservation": reservation.confirmation_number, "error": "email not sent"}
            )

    results = _summary(results)
    logger.info(
        f"send_booking_reminders finished: {results['success_count']} sent, {results['failed_count']} failed"
    )
    return results


def build_daily_report(today=None) -> dict[str, list[Reservation]]:
    today = today or timezone.localdate()
    base = Reservation.objects.select_related("space", "user")
    return {
        "unvalidated_yesterday": list(
            base.filter(
                date=today - timedelta(days=1),
                status=Reservation.Status.CONFIRMED,
                attendance_status="",
            ).order_by("start_time")
        ),
        "pending": list(
            base.filter(status=Reservation.Status.PENDING, date__gte=today).order_by("date", "start_time")[:20]
        ),
        "upcoming": list(
            base.filter(
                status=Reservation.Status.CONFIRMED,
                date__gte=today,
                date__lte=today + timedelta(days=7),
            ).order_by("date", "start_time")[:50]
        ),
        "deposit_pending": list(
            base.filter(
                date=today + timedelta(days=6),
                status=Reservation.Status.CONFIRMED,
                capture_method=Reservation.CaptureMethod.DEFERRED,
                stripe_payment_intent_id__isnull=True,
            ).order_by("start_time")
        ),
    }


@shared_task(name="bookings.send_daily_report")
def send_daily_report() -> dict:
    """Rapport quotidien envoyé à l'adresse de notification de l'équipe."""
    recipient = BookingSettings.load().notification_email
    report = build_daily_report()
    stats = {key: len(items) for key, items in report.items()}

    sent = booking_emails.send_daily_report_email(recipient, report)
    logger.info(f"send_daily_report to {recipient}: sent={sent} {stats}")
    return {"recipient": recipient, "sent": sent, "stats": stats}


CRON_JOBS = {
    "create-holds": create_deposit_holds,
    "deferred-intents": create_deferred_payment_intents,
    "check-attendance": check_attendance,
    "send-reminders": send_booking_reminders,
    "daily-report": send_daily_report,
    "recurring-tasks": generate_recurring_tasks,
}
