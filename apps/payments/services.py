"""Payment flows: intent creation for reservations and webhook handling."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Reservation
from apps.bookings.services import (
    INTENT_KIND_PAYMENT,
    INTENT_KIND_SETUP,
    BookingError,
    build_intent_metadata,
    create_reservation_from_intent,
    quote_reservation,
)
from apps.spaces.models import BookingSettings
from apps.spaces.services import calculate_deposit_cents

from . import stripe_service
from .models import Payment
from .stripe_service import field_of

logger = logging.getLogger(__name__)


@dataclass
class IntentResponse:
    kind: str
    intent_id: str
    client_secret: str | None
    amount: int
    total_price: str = ""
    reused: bool = False

    def as_dict(self) -> dict:
        return {
            "type": self.kind,
            "intent_id": self.intent_id,
            "client_secret": self.client_secret,
            "deposit_amount": self.amount,
            "total_price": self.total_price,
            "reused": self.reused,
        }


def requires_deferred_capture(on_date: date, today: date | None = None) -> bool:
    """Beyond the hold window a card hold would expire: save the card instead."""
    today = today or timezone.localdate()
    return (on_date - today).days > BookingSettings.load().deposit_hold_days


def create_intent_for_new_reservation(data: dict, *, user=None) -> IntentResponse:
    """Hold (or card setup) carrying the reservation to create once authorised."""

    space = data["space"]
    quote = quote_reservation(
        space,
        reservation_type=data["reservation_type"],
        on_date=data["date"],
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
        number_of_people=data.get("number_of_people") or 1,
        services=data.get("additional_services"),
    )
    if quote.deposit_cents <= 0:
        raise BookingError("Aucun paiement n'est requis pour cette réservation.")

    email = data.get("contact_email") or (user.email if user is not None else "")
    if not email:
        raise BookingError("Adresse email requise pour le paiement.")
    data = {**data, "contact_email": email}
    metadata = build_intent_metadata(space, data, quote, user=user)
    customer_id = stripe_service.get_or_create_customer(
        email,
        name=data.get("contact_name") or (user.display_name if user is not None else ""),
        phone=data.get("contact_phone") or "",
    )

    if requires_deferred_capture(data["date"]):
        setup = stripe_service.create_setup_intent(customer_id, metadata=metadata)
        logger.info(f"SetupIntent {setup.id} created for a {space.space_type} booking on {data['date']}")
        return IntentResponse(
            kind=INTENT_KIND_SETUP,
            intent_id=setup.id,
            client_secret=setup.client_secret,
            amount=quote.deposit_cents,
            total_price=str(quote.total_price),
        )

    intent = stripe_service.create_payment_intent(
        quote.deposit_cents,
        customer_id=customer_id,
        capture_method="manual",
        metadata=metadata,
        description=f"Empreinte réservation {space.name} {data['date']:%d/%m/%Y}",
    )
    Payment.objects.create(
        user=user,
        amount=quote.deposit_cents,
        currency=intent.currency,
        status=Payment.Status.PENDING,
        stripe_payment_intent_id=intent.id,
        stripe_customer_id=customer_id,
        description=f"Empreinte réservation {space.name}",
    )
    return IntentResponse(
        kind=INTENT_KIND_PAYMENT,
        intent_id=intent.id,
        client_secret=intent.client_secret,
        amount=quote.deposit_cents,
        total_price=str(quote.total_price),
    )


def create_intent_for_reservation(reservation: Reservation, *, user) -> IntentResponse:
    """Hold for an existing reservation, reusing an open payment when there is one."""

    if not reservation.is_active:
        raise BookingError("Cette réservation n'est plus active.")
    if not reservation.requires_payment:
        raise BookingError("Aucun paiement n'est requis pour cette réservation.")

    open_payment = (
        reservation.payments.filter(status__in=Payment.OPEN_STATUSES, stripe_payment_intent_id__isnull=False)
        .order_by("-created_at")
        .first()
    )
    if open_payment is not None:
        intent = stripe_service.retrieve_payment_intent(open_payment.stripe_payment_intent_id)
        if intent.status in ("requires_payment_method", "requires_confirmation", "requires_action"):
            logger.info(f"Reusing PaymentIntent {intent.id} for {reservation.confirmation_number}")
            return IntentResponse(
                kind=INTENT_KIND_PAYMENT,
                intent_id=intent.id,
                client_secret=intent.client_secret,
                amount=intent.amount,
                total_price=str(reservation.total_price),
                reused=True,
            )

    if reservation.payment_status in (Reservation.PaymentStatus.PAID, Reservation.PaymentStatus.PARTIAL) or (
        reservation.payments.filter(status__in=[Payment.Status.REQUIRES_CAPTURE, Payment.Status.SUCCEEDED]).exists()
    ):
        raise BookingError("Un paiement est déjà en place pour cette réservation.")

    amount = reservation.deposit_amount
    if not amount:
        amount = calculate_deposit_cents(reservation.space, reservation.total_price)
    customer_id = reservation.stripe_customer_id or stripe_service.get_or_create_customer(
        reservation.recipient_email,
        name=reservation.recipient_name,
        phone=reservation.contact_phone,
    )
    intent = stripe_service.create_payment_intent(
        amount,
        customer_id=customer_id,
        capture_method="manual",
        metadata={
            "reservation_id": reservation.pk,
            "confirmation_number": reservation.confirmation_number,
        },
        description=f"Empreinte réservation {reservation.confirmation_number}",
    )

    with transaction.atomic():
        reservation.stripe_payment_intent_id = intent.id
        reservation.stripe_customer_id = customer_id
        reservation.capture_method = Reservation.CaptureMethod.MANUAL
        reservation.payment_status = Reservation.PaymentStatus.PENDING
        reservation.deposit_amount = amount
        reservation.save(
            update_fields=[
                "stripe_payment_intent_id",
                "stripe_customer_id",
                "capture_method",
                "payment_status",
                "deposit_amount",
                "updated_at",
            ]
        )
        Payment.objects.create(
            reservation=reservation,
            user=reservation.user or user,
            amount=amount,
            currency=intent.currency,
            status=Payment.Status.PENDING,
            stripe_payment_intent_id=intent.id,
            stripe_customer_id=customer_id,
            description=f"Empreinte réservation {reservation.confirmation_number}",
        )
    return IntentResponse(
        kind=INTENT_KIND_PAYMENT,
        intent_id=intent.id,
        client_secret=intent.client_secret,
        amount=amount,
        total_price=str(reservation.total_price),
    )


def refund_payment(payment: Payment, *, amount: int | None = None, reason: str = "requested_by_customer") -> Payment:
    """Refund what is left of a captured payment, fully or ``amount`` cents.

    The refundable balance is the captured amount minus earlier refunds, so
    a cancellation fee kept on a hold can still be given back. A reservation
    that is neither completed nor cancelled is cancelled by the refund.
    """

    if payment.status not in (Payment.Status.SUCCEEDED, Payment.Status.REFUNDED):
        raise BookingError("Seul un paiement encaissé peut être remboursé.")
    captured = payment.amount_captured or payment.amount
    refundable = captured - payment.refund_amount
    if amount is None:
        amount = refundable
    if amount <= 0 or amount > refundable:
        raise BookingError(f"Montant remboursable maximum : {stripe_service.format_amount(max(refundable, 0))}.")

    refund = stripe_service.create_refund(
        payment.stripe_payment_intent_id,
        amount=amount,
        reason=reason,
        metadata={"payment_id": payment.pk},
    )
    now = timezone.now()
    with transaction.atomic():
        payment.refund_amount += refund.amount
        payment.stripe_refund_id = refund.id
        payment.refunded_at = now
        payment.status = Payment.Status.REFUNDED
        payment.metadata = {**(payment.metadata or {}), "refund_status": refund.status}
        payment.save(
            update_fields=["refund_amount", "stripe_refund_id", "refunded_at", "status", "metadata", "updated_at"]
        )

        reservation = payment.reservation
        if reservation is not None:
            fully = payment.refund_amount >= captured
            reservation.payment_status = (
                Reservation.PaymentStatus.REFUNDED if fully else Reservation.PaymentStatus.PARTIAL
            )
            fields = ["payment_status", "updated_at"]
            if reservation.status not in (Reservation.Status.COMPLETED, Reservation.Status.CANCELLED):
                reservation.status = Reservation.Status.CANCELLED
                reservation.cancelled_at = now
                fields += ["status", "cancelled_at"]
            reservation.save(update_fields=fields)
    logger.info(f"Payment {payment.pk} refunded {refund.amount} of {captured} cents ({refund.id})")
    return payment


# ============================================================================
# WEBHOOK HANDLERS
# ============================================================================

def _reservations_for(intent_id: str):
    return Reservation.objects.filter(stripe_payment_intent_id=intent_id)


def _on_amount_capturable_updated(obj) -> None:
    intent = stripe_service.payment_intent_from_event(obj)
    if intent.metadata.get("create_booking_on_authorization") == "true":
        create_reservation_from_intent(intent, kind=INTENT_KIND_PAYMENT)
        return
    Payment.objects.filter(stripe_payment_intent_id=intent.id).update(
        status=Payment.Status.REQUIRES_CAPTURE, updated_at=timezone.now()
    )
    _reservations_for(intent.id).filter(payment_status=Reservation.PaymentStatus.UNPAID).update(
        payment_status=Reservation.PaymentStatus.PENDING, updated_at=timezone.now()
    )


def _on_setup_intent_succeeded(obj) -> None:
    setup = stripe_service.setup_intent_from_event(obj)
    if setup.metadata.get("create_booking_on_authorization") != "true":
        logger.info(f"SetupIntent {setup.id} carries no reservation, ignored")
        return
    create_reservation_from_intent(setup, kind=INTENT_KIND_SETUP)


def _on_payment_succeeded(obj) -> None:
    intent = stripe_service.payment_intent_from_event(obj)
    payment = Payment.objects.filter(stripe_payment_intent_id=intent.id).first()
    if payment is not None:
        card: dict = {}
        if intent.latest_charge:
            try:
                card = stripe_service.retrieve_card_details(intent.latest_charge)
            except stripe_service.PaymentGatewayError:
                card = {}
        payment.mark_succeeded(
            charge_id=intent.latest_charge or "", card=card, amount_received=intent.amount_received
        )

    for reservation in _reservations_for(intent.id):
        if reservation.status == Reservation.Status.CANCELLED:
            continue
        if reservation.payment_status not in (Reservation.PaymentStatus.PARTIAL, Reservation.PaymentStatus.REFUNDED):
            reservation.payment_status = Reservation.PaymentStatus.PAID
        if reservation.status == Reservation.Status.PENDING:
            reservation.status = Reservation.Status.CONFIRMED
        reservation.save(update_fields=["payment_status", "status", "updated_at"])


def _on_payment_failed(obj) -> None:
    intent = stripe_service.payment_intent_from_event(obj)
    reason = field_of(field_of(obj, "last_payment_error"), "message", "Paiement refusé")
    payment = Payment.objects.filter(stripe_payment_intent_id=intent.id).first()
    if payment is not None:
        payment.mark_failed(reason)
    _reservations_for(intent.id).update(payment_status=Reservation.PaymentStatus.FAILED, updated_at=timezone.now())
    logger.warning(f"PaymentIntent {intent.id} failed: {reason}")


def _on_payment_processing(obj) -> None:
    intent_id = field_of(obj, "id")
    Payment.objects.filter(stripe_payment_intent_id=intent_id).update(
        status=Payment.Status.PROCESSING, updated_at=timezone.now()
    )


def _on_payment_canceled(obj) -> None:
    intent_id = field_of(obj, "id")
    Payment.objects.filter(stripe_payment_intent_id=intent_id).exclude(status=Payment.Status.CANCELLED).update(
        status=Payment.Status.CANCELLED, updated_at=timezone.now()
    )


def _on_charge_refunded(obj) -> None:
    charge_id = field_of(obj, "id")
    payment = Payment.objects.filter(stripe_charge_id=charge_id).first()
    if payment is None and field_of(obj, "payment_intent"):
        payment = Payment.objects.filter(stripe_payment_intent_id=field_of(obj, "payment_intent")).first()
    if payment is None:
        logger.warning(f"Refund received for unknown charge {charge_id}")
        return

    refunds = field_of(field_of(obj, "refunds"), "data", [])
    amount_refunded = field_of(obj, "amount_refunded", 0)
    payment.status = Payment.Status.REFUNDED
    payment.refund_amount = amount_refunded
    payment.refunded_at = timezone.now()
    if refunds:
        payment.stripe_refund_id = field_of(refunds[0], "id", "")
    payment.metadata = {
        **(payment.metadata or {}),
        "refund_reason": field_of(refunds[0], "reason", "") if refunds else "",
        "amount_refunded": amount_refunded,
    }
    payment.save(
        update_fields=["status", "refund_amount", "refunded_at", "stripe_refund_id", "metadata", "updated_at"]
    )

    if payment.reservation_id:
        fully = bool(field_of(obj, "refunded", False))
        Reservation.objects.filter(pk=payment.reservation_id).update(
            payment_status=Reservation.PaymentStatus.REFUNDED if fully else Reservation.PaymentStatus.PARTIAL,
            updated_at=timezone.now(),
        )


EVENT_HANDLERS = {
    "payment_intent.amount_capturable_updated": _on_amount_capturable_updated,
    "setup_intent.succeeded": _on_setup_intent_succeeded,
    "payment_intent.succeeded": _on_payment_succeeded,
    "payment_intent.payment_failed": _on_payment_failed,
    "payment_intent.processing": _on_payment_processing,
    "payment_intent.canceled": _on_payment_canceled,
    "charge.refunded": _on_charge_refunded,
}


def handle_webhook_event(event) -> bool:
    """Dispatch a verified event. Returns False for event types we ignore."""

    event_type = field_of(event, "type")
    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled Stripe event {event_type}")
        return False

    obj = field_of(field_of(event, "data"), "object")
    logger.info(f"Handling Stripe event {event_type} ({field_of(event, 'id')})")
    handler(obj)
    return True
