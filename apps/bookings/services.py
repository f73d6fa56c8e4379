"""Domain services for booking workflows.

Views and scheduled tasks go through these functions; they own every
status transition of a reservation and every call to the payment gateway
made on its behalf. Stripe is always called before the database write it
conditions, so a gateway failure leaves the reservation untouched.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Iterable

from django.db import transaction  # type: ignore
from django.db.models import Q, Sum  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications import booking_emails
from apps.notifications.services import create_in_app_notification, send_account_activation_email
from apps.payments import stripe_service
from apps.payments.models import Payment
from apps.spaces.models import EVENT_SPACE_TYPE, ExceptionalClosure, SpaceConfiguration
from apps.spaces.services import (
    PriceQuote,
    PricingError,
    ServicesQuote,
    business_days_until,
    calculate_deposit_cents,
    calculate_price,
    calculate_services_price,
    charge_percentage_for,
    find_closure,
    get_cancellation_policy,
    to_cents,
)
from apps.users.models import CustomUser
from apps.users.services import get_or_create_client_account

from .models import Reservation

logger = logging.getLogger(__name__)

INTENT_KIND_PAYMENT = "payment_intent"
INTENT_KIND_SETUP = "setup_intent"

# Stripe rejects metadata values longer than this
METADATA_VALUE_LIMIT = 500


class BookingError(Exception):
    """Business rule violation on a reservation."""

    status_code = 400


class BookingConflictError(BookingError):
    """Raised when the space is closed or busy for the requested slot."""

    status_code = 409


class CancellationError(BookingError):
    pass


class BookingPermissionError(BookingError):
    status_code = 403


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _euros(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


# ============================================================================
# AVAILABILITY & QUOTES
# ============================================================================

def ensure_slot_available(
    space: SpaceConfiguration,
    on_date: date,
    start_time: time | None,
    end_time: time | None,
    number_of_people: int,
    *,
    exclude_reservation_id: int | None = None,
) -> None:
    """Reject closed slots, overlaps on exclusive spaces and over-capacity on shared ones.

    A reservation without times occupies the whole day.
    """

    closure = find_closure(on_date, space.space_type, start_time, end_time)
    if closure is not None:
        raise BookingConflictError(f"L'espace est fermé sur ce créneau : {closure.reason}.")

    overlapping = Reservation.objects.filter(
        space=space,
        date=on_date,
        status__in=Reservation.ACTIVE_STATUSES,
    )
    if start_time is not None and end_time is not None:
        overlapping = overlapping.filter(
            Q(start_time__isnull=True)
            | Q(end_time__isnull=True)
            | (Q(start_time__lt=end_time) & Q(end_time__gt=start_time))
        )
    if exclude_reservation_id is not None:
        overlapping = overlapping.exclude(pk=exclude_reservation_id)

    overlapping = _lock_queryset_if_possible(overlapping)

    if space.is_exclusive:
        if overlapping.exists():
            raise BookingConflictError("Ce créneau est déjà réservé.")
        return

    booked = overlapping.aggregate(total=Sum("number_of_people"))["total"] or 0
    if booked + number_of_people > space.max_capacity:
        remaining = max(space.max_capacity - booked, 0)
        raise BookingConflictError(
            f"Capacité insuffisante sur ce créneau ({remaining} place(s) restante(s))."
        )


@dataclass
class ReservationQuote:
    price: PriceQuote
    services: ServicesQuote
    deposit_cents: int

    @property
    def base_price(self) -> Decimal:
        return self.price.total_price

    @property
    def services_price(self) -> Decimal:
        return self.services.total

    @property
    def total_price(self) -> Decimal:
        return self.price.total_price + self.services.total


def quote_reservation(
    space: SpaceConfiguration,
    *,
    reservation_type: str,
    on_date: date,
    start_time: time | None = None,
    end_time: time | None = None,
    number_of_people: int = 1,
    services: Iterable[dict] | None = None,
    exclude_reservation_id: int | None = None,
) -> ReservationQuote:
    """Validate a requested slot and price it server side."""

    if not space.is_active or space.is_deleted:
        raise BookingError("Cet espace n'est pas réservable.")
    if on_date < timezone.localdate():
        raise BookingError("Impossible de réserver une date passée.")

    ensure_slot_available(
        space,
        on_date,
        start_time,
        end_time,
        number_of_people,
        exclude_reservation_id=exclude_reservation_id,
    )
    try:
        price = calculate_price(
            space,
            reservation_type,
            number_of_people=number_of_people,
            start_time=start_time,
            end_time=end_time,
        )
        services_quote = calculate_services_price(space, services or [], number_of_people)
    except PricingError as exc:
        raise BookingError(str(exc)) from exc

    total = price.total_price + services_quote.total
    return ReservationQuote(
        price=price,
        services=services_quote,
        deposit_cents=calculate_deposit_cents(space, total),
    )


def _notify_team(reservation: Reservation) -> None:
    team = CustomUser.objects.filter(
        role__in=[CustomUser.RoleChoices.STAFF, CustomUser.RoleChoices.ADMIN, CustomUser.RoleChoices.DEV],
        is_active=True,
    )
    for member in team:
        create_in_app_notification(
            member,
            "Nouvelle réservation",
            f"{reservation.recipient_name} - {reservation.space.name} le {reservation.date:%d/%m/%Y} "
            f"({reservation.time_label})",
            category="booking",
            link=f"/admin/reservations/{reservation.pk}",
        )


# ============================================================================
# CREATION
# ============================================================================

CONTACT_FIELDS = (
    "contact_name",
    "contact_email",
    "contact_phone",
    "company_name",
    "message",
)


@transaction.atomic
def create_reservation(
    *,
    space: SpaceConfiguration,
    user: CustomUser | None,
    data: dict,
    requires_payment: bool = True,
) -> Reservation:
    """Create a pending reservation after availability and price checks.

    ``data`` holds validated request fields; prices never come from the
    client.
    """

    quote = quote_reservation(
        space,
        reservation_type=data["reservation_type"],
        on_date=data["date"],
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
        number_of_people=data.get("number_of_people") or 1,
        services=data.get("additional_services"),
    )

    reservation = Reservation(
        user=user,
        space=space,
        date=data["date"],
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
        reservation_type=data["reservation_type"],
        number_of_people=data.get("number_of_people") or 1,
        base_price=quote.base_price,
        services_price=quote.services_price,
        total_price=quote.total_price,
        additional_services=quote.services.lines,
        invoice_option=data.get("invoice_option", False),
        invoice_details=data.get("invoice_details"),
        is_partial_privatization=data.get("is_partial_privatization", False),
        requires_payment=requires_payment and quote.total_price > 0,
        deposit_amount=quote.deposit_cents,
    )
    for field_name in CONTACT_FIELDS:
        setattr(reservation, field_name, data.get(field_name) or "")
    if user is not None:
        reservation.contact_name = reservation.contact_name or user.display_name
        reservation.contact_email = reservation.contact_email or user.email
        reservation.contact_phone = reservation.contact_phone or user.phone
    reservation.save()

    logger.info(
        f"Reservation {reservation.confirmation_number} created for {reservation.recipient_email} "
        f"({space.space_type} {reservation.date} {reservation.time_label}, {reservation.total_price} EUR)"
    )

    transaction.on_commit(lambda: booking_emails.send_booking_confirmation_email(reservation))
    transaction.on_commit(lambda: _notify_team(reservation))
    return reservation


def encode_service_refs(lines: Iterable[dict]) -> str:
    """``[{"service": 12, "quantity": 1}, ...]`` as ``"12:1,14:2"``."""
    return ",".join(f"{line['service']}:{line['quantity']}" for line in lines)


def decode_service_refs(value: str) -> list[dict]:
    refs = []
    for chunk in filter(None, (value or "").split(",")):
        service_id, _, quantity = chunk.partition(":")
        refs.append({"service": int(service_id), "quantity": int(quantity or 1)})
    return refs


def build_intent_metadata(
    space: SpaceConfiguration,
    data: dict,
    quote: ReservationQuote,
    *,
    user: CustomUser | None = None,
) -> dict[str, str]:
    """Reservation snapshot stored on a payment or setup intent.

    The webhook rebuilds the reservation from it once the card is
    authorised, so everything is flattened to strings. Additional
    services only travel as ``id:quantity`` references and are priced
    again on creation.

    Raises:
        BookingError: a value exceeds what the processor accepts
    """

    metadata = {
        "create_booking_on_authorization": "true",
        "space_type": space.space_type,
        "reservation_type": data["reservation_type"],
        "date": data["date"].isoformat(),
        "start_time": data["start_time"].strftime("%H:%M") if data.get("start_time") else "",
        "end_time": data["end_time"].strftime("%H:%M") if data.get("end_time") else "",
        "number_of_people": str(data.get("number_of_people") or 1),
        "base_price": str(quote.base_price),
        "services_price": str(quote.services_price),
        "total_price": str(quote.total_price),
        "deposit_amount": str(quote.deposit_cents),
        "additional_services": encode_service_refs(quote.services.lines),
        "invoice_option": "true" if data.get("invoice_option") else "false",
        "invoice_details": json.dumps(data["invoice_details"]) if data.get("invoice_details") else "",
        "is_partial_privatization": "true" if data.get("is_partial_privatization") else "false",
        "newsletter": "true" if data.get("newsletter") else "false",
        "first_name": (data.get("first_name") or "")[:100],
        "last_name": (data.get("last_name") or "")[:100],
        "user_id": str(user.pk) if user is not None else "",
    }
    for field_name in CONTACT_FIELDS:
        metadata[field_name] = (data.get(field_name) or "")[:500]

    oversized = sorted(key for key, value in metadata.items() if len(value) > METADATA_VALUE_LIMIT)
    if oversized:
        raise BookingError(f"Informations trop longues pour le paiement : {', '.join(oversized)}.")
    return metadata


def _parse_time(value: str) -> time | None:
    return time.fromisoformat(value) if value else None


def _resolve_intent_owner(metadata: dict) -> CustomUser | None:
    if metadata.get("user_id"):
        user = CustomUser.objects.filter(pk=metadata["user_id"]).first()
        if user is not None:
            return user
    email = metadata.get("contact_email")
    if not email:
        return None

    first_name = metadata.get("first_name", "")
    last_name = metadata.get("last_name", "")
    if not first_name and metadata.get("contact_name"):
        first_name, _, last_name = metadata["contact_name"].partition(" ")
    result = get_or_create_client_account(
        email,
        first_name=first_name,
        last_name=last_name,
        phone=metadata.get("contact_phone", ""),
        company_name=metadata.get("company_name", ""),
        newsletter=metadata.get("newsletter") == "true",
    )
    if result.activation_token is not None:
        token = result.activation_token
        transaction.on_commit(lambda: send_account_activation_email(result.user, token))
    return result.user


@transaction.atomic
def create_reservation_from_intent(intent, *, kind: str) -> tuple[Reservation, bool]:
    """Create the reservation carried by an authorised intent.

    Idempotent on the intent id: a replayed webhook returns the existing
    reservation with ``created=False``.
    """

    lookup = (
        {"stripe_payment_intent_id": intent.id}
        if kind == INTENT_KIND_PAYMENT
        else {"stripe_setup_intent_id": intent.id}
    )
    existing = Reservation.objects.filter(**lookup).first()
    if existing is not None:
        logger.info(f"Reservation already exists for {kind} {intent.id}")
        return existing, False

    metadata = intent.metadata
    space = SpaceConfiguration.objects.get(space_type=metadata["space_type"])
    user = _resolve_intent_owner(metadata)
    number_of_people = int(metadata.get("number_of_people") or 1)

    service_refs = decode_service_refs(metadata.get("additional_services", ""))
    try:
        service_lines = calculate_services_price(space, service_refs, number_of_people).lines
    except PricingError as exc:
        # the hold is already authorised at the quoted price, keep the references
        logger.warning(f"Services of {kind} {intent.id} could not be priced again: {exc}")
        service_lines = service_refs

    reservation = Reservation(
        user=user,
        space=space,
        date=date.fromisoformat(metadata["date"]),
        start_time=_parse_time(metadata.get("start_time", "")),
        end_time=_parse_time(metadata.get("end_time", "")),
        reservation_type=metadata["reservation_type"],
        number_of_people=number_of_people,
        base_price=Decimal(metadata.get("base_price") or metadata["total_price"]),
        services_price=Decimal(metadata.get("services_price") or "0"),
        total_price=Decimal(metadata["total_price"]),
        additional_services=service_lines,
        invoice_option=metadata.get("invoice_option") == "true",
        invoice_details=json.loads(metadata["invoice_details"]) if metadata.get("invoice_details") else None,
        is_partial_privatization=metadata.get("is_partial_privatization") == "true",
        requires_payment=True,
        payment_status=Reservation.PaymentStatus.PENDING,
        stripe_customer_id=intent.customer or "",
        **lookup,
    )
    for field_name in CONTACT_FIELDS:
        setattr(reservation, field_name, metadata.get(field_name, ""))

    if kind == INTENT_KIND_PAYMENT:
        reservation.capture_method = Reservation.CaptureMethod.MANUAL
        reservation.deposit_amount = int(metadata.get("deposit_amount") or intent.amount)
    else:
        reservation.capture_method = Reservation.CaptureMethod.DEFERRED
        reservation.deposit_amount = int(
            metadata.get("deposit_amount") or calculate_deposit_cents(space, reservation.total_price)
        )
    reservation.save()

    if kind == INTENT_KIND_PAYMENT:
        Payment.objects.update_or_create(
            stripe_payment_intent_id=intent.id,
            defaults={
                "reservation": reservation,
                "user": user,
                "amount": intent.amount,
                "currency": intent.currency,
                "status": Payment.Status.REQUIRES_CAPTURE,
                "stripe_customer_id": intent.customer or "",
                "description": f"Empreinte réservation {reservation.confirmation_number}",
            },
        )
        transaction.on_commit(lambda: booking_emails.send_booking_confirmation_email(reservation))
    else:
        transaction.on_commit(lambda: booking_emails.send_card_saved_email(reservation))
    transaction.on_commit(lambda: _notify_team(reservation))

    logger.info(
        f"Reservation {reservation.confirmation_number} created from {kind} {intent.id} "
        f"for {reservation.recipient_email}"
    )
    return reservation, True


# ============================================================================
# CARD HOLDS
# ============================================================================

def _update_payments(intent_id: str, **fields) -> int:
    return Payment.objects.filter(stripe_payment_intent_id=intent_id).update(
        updated_at=timezone.now(), **fields
    )


def place_deposit_hold(reservation: Reservation, *, source: str) -> stripe_service.IntentResult:
    """Hold the deposit on the card saved through the reservation's setup intent.

    Raises:
        BookingError: no saved card to charge
        PaymentGatewayError: the processor refused the hold
    """

    if reservation.stripe_payment_intent_id:
        raise BookingError("Une empreinte existe déjà pour cette réservation.")
    if not reservation.stripe_setup_intent_id:
        raise BookingError("Aucune carte enregistrée pour cette réservation.")

    setup = stripe_service.retrieve_setup_intent(reservation.stripe_setup_intent_id)
    if not setup.payment_method:
        raise BookingError("La carte enregistrée n'est pas utilisable.")

    amount = reservation.deposit_amount or calculate_deposit_cents(reservation.space, reservation.total_price)
    customer_id = reservation.stripe_customer_id or setup.customer
    intent = stripe_service.create_payment_intent(
        amount,
        customer_id=customer_id,
        payment_method=setup.payment_method,
        confirm=True,
        off_session=True,
        capture_method="manual",
        metadata={
            "reservation_id": reservation.pk,
            "confirmation_number": reservation.confirmation_number,
            "source": source,
        },
        description=f"Empreinte réservation {reservation.confirmation_number}",
        idempotency_key=f"deposit-hold-{reservation.pk}",
    )

    with transaction.atomic():
        reservation.stripe_payment_intent_id = intent.id
        reservation.stripe_customer_id = customer_id or ""
        reservation.deposit_amount = amount
        reservation.capture_method = Reservation.CaptureMethod.MANUAL
        reservation.payment_status = Reservation.PaymentStatus.PENDING
        reservation.save(
            update_fields=[
                "stripe_payment_intent_id",
                "stripe_customer_id",
                "deposit_amount",
                "capture_method",
                "payment_status",
                "updated_at",
            ]
        )
        Payment.objects.create(
            reservation=reservation,
            user=reservation.user,
            amount=amount,
            status=(
                Payment.Status.REQUIRES_CAPTURE
                if intent.status == "requires_capture"
                else Payment.Status.PENDING
            ),
            stripe_payment_intent_id=intent.id,
            stripe_customer_id=customer_id or "",
            description=f"Empreinte réservation {reservation.confirmation_number}",
            metadata={"source": source},
        )

    logger.info(
        f"Deposit hold {intent.id} placed for {reservation.confirmation_number} "
        f"({amount} cents, {source}, status {intent.status})"
    )
    booking_emails.send_deposit_hold_email(reservation)
    return intent


def release_hold(reservation: Reservation) -> bool:
    """Cancel an authorised hold. Returns False when there was nothing to release."""

    if not reservation.stripe_payment_intent_id:
        return False
    intent = stripe_service.retrieve_payment_intent(reservation.stripe_payment_intent_id)
    if intent.status != "requires_capture":
        logger.info(f"Hold {intent.id} not released, status {intent.status}")
        return False

    stripe_service.cancel_payment_intent(intent.id)
    _update_payments(intent.id, status=Payment.Status.CANCELLED)
    logger.info(f"Hold {intent.id} released for {reservation.confirmation_number}")
    return True


def capture_hold(
    reservation: Reservation,
    *,
    amount: int | None = None,
    intent: stripe_service.IntentResult | None = None,
) -> stripe_service.IntentResult | None:
    """Capture an authorised hold, fully or up to ``amount`` cents."""

    if not reservation.stripe_payment_intent_id:
        return None
    intent = intent or stripe_service.retrieve_payment_intent(reservation.stripe_payment_intent_id)
    if intent.status != "requires_capture":
        logger.info(f"Hold {intent.id} not captured, status {intent.status}")
        return None

    captured = stripe_service.capture_payment_intent(intent.id, amount_to_capture=amount)
    _update_payments(
        intent.id,
        status=Payment.Status.SUCCEEDED,
        completed_at=timezone.now(),
        amount_captured=amount or intent.amount,
    )
    logger.info(
        f"Hold {intent.id} captured for {reservation.confirmation_number} ({amount or intent.amount} cents)"
    )
    return captured


# ============================================================================
# CANCELLATION
# ============================================================================

@dataclass
class CancellationQuote:
    charge_percentage: int
    days_before: int
    held_cents: int
    fee_cents: int
    refund_cents: int

    @property
    def fee(self) -> Decimal:
        return _euros(self.fee_cents)

    @property
    def refund(self) -> Decimal:
        return _euros(self.refund_cents)

    def as_dict(self) -> dict:
        return {
            "charge_percentage": self.charge_percentage,
            "days_before_booking": self.days_before,
            "deposit_amount": str(_euros(self.held_cents)),
            "cancellation_fee": str(self.fee),
            "refund_amount": str(self.refund),
        }


def _cancellation_quote(reservation: Reservation, held_cents: int, today: date | None = None) -> CancellationQuote:
    days_before = business_days_until(reservation.date, today)
    if reservation.status == Reservation.Status.PENDING:
        percentage = 0
    else:
        percentage = charge_percentage_for(get_cancellation_policy(reservation.space.space_type), days_before)
    fee = min(round(to_cents(reservation.total_price) * percentage / 100), held_cents)
    return CancellationQuote(
        charge_percentage=percentage,
        days_before=days_before,
        held_cents=held_cents,
        fee_cents=fee,
        refund_cents=held_cents - fee,
    )


def preview_cancellation_fees(reservation: Reservation, today: date | None = None) -> CancellationQuote:
    """Fees the client would pay by cancelling now. No side effects."""

    held = reservation.deposit_amount if reservation.stripe_payment_intent_id else 0
    return _cancellation_quote(reservation, held, today)


def _ensure_cancellable(reservation: Reservation) -> None:
    if reservation.status in (Reservation.Status.CANCELLED, Reservation.Status.COMPLETED):
        raise CancellationError("Cette réservation ne peut plus être annulée.")


def _cancel_unused_setup_intent(reservation: Reservation) -> None:
    if not reservation.stripe_setup_intent_id or reservation.stripe_payment_intent_id:
        return
    setup = stripe_service.retrieve_setup_intent(reservation.stripe_setup_intent_id)
    if setup.status in ("requires_payment_method", "requires_confirmation", "requires_action"):
        stripe_service.cancel_setup_intent(setup.id)


def cancel_reservation(reservation: Reservation, *, by_user: CustomUser, reason: str = "") -> CancellationQuote:
    """Client cancellation with tiered fees charged on the held deposit."""

    if reservation.user_id != by_user.pk and not by_user.is_staff_member():
        raise BookingPermissionError("Vous ne pouvez pas annuler cette réservation.")
    _ensure_cancellable(reservation)

    payment_status = Reservation.PaymentStatus.UNPAID
    if reservation.stripe_payment_intent_id:
        intent = stripe_service.retrieve_payment_intent(reservation.stripe_payment_intent_id)
        if intent.status == "requires_capture":
            quote = _cancellation_quote(reservation, intent.amount)
            if quote.fee_cents == 0:
                stripe_service.cancel_payment_intent(intent.id)
                _update_payments(intent.id, status=Payment.Status.CANCELLED)
            else:
                capture_hold(reservation, amount=quote.fee_cents, intent=intent)
                _update_payments(intent.id, cancellation_fee=quote.fee_cents)
                payment_status = (
                    Reservation.PaymentStatus.PAID
                    if quote.fee_cents >= intent.amount
                    else Reservation.PaymentStatus.PARTIAL
                )
        elif intent.status == "succeeded":
            quote = _cancellation_quote(reservation, intent.amount_received or intent.amount)
            if quote.refund_cents > 0:
                refund = stripe_service.create_refund(
                    intent.id,
                    amount=quote.refund_cents,
                    metadata={
                        "reservation_id": reservation.pk,
                        "cancellation_fee": quote.fee_cents,
                    },
                )
                _update_payments(
                    intent.id,
                    status=Payment.Status.REFUNDED,
                    amount_captured=quote.held_cents,
                    refund_amount=refund.amount,
                    cancellation_fee=quote.fee_cents,
                    stripe_refund_id=refund.id,
                    refunded_at=timezone.now(),
                )
                payment_status = (
                    Reservation.PaymentStatus.PARTIAL if quote.fee_cents else Reservation.PaymentStatus.REFUNDED
                )
            else:
                _update_payments(intent.id, amount_captured=quote.held_cents, cancellation_fee=quote.fee_cents)
                payment_status = Reservation.PaymentStatus.PAID
        else:
            quote = _cancellation_quote(reservation, 0)
            if intent.status in ("requires_payment_method", "requires_confirmation", "requires_action"):
                stripe_service.cancel_payment_intent(intent.id)
                _update_payments(intent.id, status=Payment.Status.CANCELLED)
    else:
        quote = _cancellation_quote(reservation, 0)
        _cancel_unused_setup_intent(reservation)

    with transaction.atomic():
        reservation.status = Reservation.Status.CANCELLED
        reservation.cancelled_at = timezone.now()
        reservation.cancelled_by = by_user
        reservation.cancellation_reason = reason[:500]
        reservation.cancellation_fee = quote.fee
        reservation.refund_amount = quote.refund
        reservation.payment_status = payment_status
        reservation.save()

    logger.info(
        f"Reservation {reservation.confirmation_number} cancelled by {by_user.email}: "
        f"{quote.charge_percentage}% fee, {quote.fee_cents} cents kept, {quote.refund_cents} cents released"
    )
    booking_emails.send_client_cancellation_email(
        reservation,
        charge_percentage=quote.charge_percentage,
        fee=quote.fee,
        refund=quote.refund,
    )
    return quote


# ============================================================================
# ADMINISTRATION
# ============================================================================

def _ensure_privatisation_closure(reservation: Reservation) -> None:
    if ExceptionalClosure.objects.filter(date=reservation.date, reason__icontains="Privatisation").exists():
        return
    has_range = bool(reservation.start_time and reservation.end_time)
    ExceptionalClosure.objects.create(
        date=reservation.date,
        reason="Privatisation",
        is_full_day=not has_range,
        start_time=reservation.start_time if has_range else None,
        end_time=reservation.end_time if has_range else None,
    )
    logger.info(f"Privatisation closure created on {reservation.date} for {reservation.confirmation_number}")


def _ensure_payment_ready(reservation: Reservation) -> None:
    if not reservation.requires_payment:
        return
    if not reservation.stripe_payment_intent_id and not reservation.stripe_setup_intent_id:
        raise BookingError("Impossible de confirmer : aucun paiement n'a été créé pour cette réservation.")
    if reservation.stripe_payment_intent_id:
        intent = stripe_service.retrieve_payment_intent(reservation.stripe_payment_intent_id)
        if intent.status not in ("requires_capture", "succeeded"):
            raise BookingError(
                f"Impossible de confirmer : le client n'a pas encore validé sa carte (statut {intent.status})."
            )


def admin_update_reservation(
    reservation: Reservation,
    *,
    by_user: CustomUser,
    status: str | None = None,
    payment_status: str | None = None,
    attendance_status: str | None = None,
    reason: str = "",
) -> Reservation:
    """Team-side status changes. Staff may only record attendance."""

    if (status or payment_status) and not by_user.is_admin_member():
        raise BookingPermissionError("Le staff ne peut modifier que la présence/absence.")

    if status == Reservation.Status.CANCELLED:
        return admin_reject_reservation(reservation, by_user=by_user, reason=reason)

    old_status = reservation.status
    old_attendance = reservation.attendance_status
    if status == Reservation.Status.CONFIRMED and old_status != Reservation.Status.CONFIRMED:
        _ensure_payment_ready(reservation)

    has_hold = (
        reservation.requires_payment
        and reservation.capture_method == Reservation.CaptureMethod.MANUAL
        and bool(reservation.stripe_payment_intent_id)
    )
    released = captured = False
    if attendance_status == Reservation.AttendanceStatus.PRESENT and old_attendance != attendance_status and has_hold:
        released = release_hold(reservation)
    elif attendance_status == Reservation.AttendanceStatus.ABSENT and old_attendance != attendance_status and has_hold:
        captured = capture_hold(reservation) is not None

    with transaction.atomic():
        if status:
            reservation.status = status
        if payment_status:
            reservation.payment_status = payment_status
        if attendance_status:
            reservation.attendance_status = attendance_status
        if released:
            reservation.payment_status = Reservation.PaymentStatus.UNPAID
        if captured:
            reservation.payment_status = Reservation.PaymentStatus.PAID
        if status == Reservation.Status.COMPLETED and old_status != Reservation.Status.COMPLETED:
            reservation.completed_at = timezone.now()
        reservation.save()

        if (
            status == Reservation.Status.CONFIRMED
            and reservation.space.space_type == EVENT_SPACE_TYPE
            and not reservation.is_partial_privatization
        ):
            _ensure_privatisation_closure(reservation)

    logger.info(
        f"Reservation {reservation.confirmation_number} updated by {by_user.email}: "
        f"status={reservation.status} payment={reservation.payment_status} "
        f"attendance={reservation.attendance_status or '-'}"
    )

    if old_status == Reservation.Status.PENDING and status == Reservation.Status.CONFIRMED:
        booking_emails.send_reservation_confirmed_email(reservation)
    if released:
        booking_emails.send_deposit_released_email(reservation)
    if captured:
        booking_emails.send_deposit_captured_email(reservation)
    return reservation


def admin_reject_reservation(reservation: Reservation, *, by_user: CustomUser, reason: str = "") -> Reservation:
    """Cancel from the team side, releasing any hold without fees."""

    if reservation.status == Reservation.Status.CANCELLED:
        raise CancellationError("Cette réservation est déjà annulée.")

    was_pending = reservation.status == Reservation.Status.PENDING
    released = release_hold(reservation)
    _cancel_unused_setup_intent(reservation)

    reservation.status = Reservation.Status.CANCELLED
    reservation.cancelled_at = timezone.now()
    reservation.cancelled_by = by_user
    reservation.cancellation_reason = reason[:500]
    if released:
        reservation.payment_status = Reservation.PaymentStatus.UNPAID
    reservation.save()

    logger.info(
        f"Reservation {reservation.confirmation_number} {'rejected' if was_pending else 'cancelled'} "
        f"by {by_user.email}"
    )
    if was_pending:
        booking_emails.send_reservation_rejected_email(reservation, reason)
    else:
        booking_emails.send_admin_cancellation_email(reservation, reason)
    return reservation
