"""Pricing, deposit and cancellation-policy rules for bookable spaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from django.utils import timezone  # type: ignore

from .models import (
    DEFAULT_MEETING_ROOM_POLICY,
    DEFAULT_OPEN_SPACE_POLICY,
    MEETING_ROOM_TYPES,
    AdditionalService,
    BookingSettings,
    ExceptionalClosure,
    PricingTier,
    ReservationType,
    SpaceConfiguration,
)

CENTS = Decimal("0.01")

DURATION_UNITS = {
    ReservationType.HOURLY: "hours",
    ReservationType.DAILY: "days",
    ReservationType.WEEKLY: "weeks",
    ReservationType.MONTHLY: "months",
}


class PricingError(Exception):
    """Raised when a price cannot be computed for the requested slot."""


@dataclass
class PriceQuote:
    base_price: Decimal
    extra_charge: Decimal
    total_price: Decimal
    duration: Decimal
    duration_unit: str
    number_of_people: int
    per_person: bool
    tier: PricingTier | None = None

    def as_dict(self) -> dict:
        return {
            "base_price": str(self.base_price),
            "extra_charge": str(self.extra_charge),
            "total_price": str(self.total_price),
            "duration": str(self.duration),
            "duration_unit": self.duration_unit,
            "number_of_people": self.number_of_people,
            "per_person": self.per_person,
            "tier": (
                {"min_people": self.tier.min_people, "max_people": self.tier.max_people}
                if self.tier
                else None
            ),
        }


@dataclass
class ServicesQuote:
    total: Decimal = Decimal("0.00")
    lines: list[dict] = field(default_factory=list)


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def hours_between(start: time, end: time) -> Decimal:
    start_dt = datetime.combine(date.min, start)
    end_dt = datetime.combine(date.min, end)
    return Decimal((end_dt - start_dt).total_seconds()) / Decimal(3600)


def _resolve_tier(
    tiers: Iterable[PricingTier],
    people: int,
    duration: Decimal,
    rate_attr: str,
    extra_attr: str,
) -> tuple[PricingTier | None, Decimal, Decimal]:
    """Walk tiers by ascending ``min_people``.

    A tier whose range contains ``people`` wins and stops the walk. A tier
    that is exceeded but carries an extra-person rate applies its base plus
    the extras, and the walk continues in case a larger tier fits.
    """

    applied: PricingTier | None = None
    base = Decimal("0")
    extra = Decimal("0")
    for tier in sorted(tiers, key=lambda t: t.min_people):
        if people < tier.min_people:
            continue
        rate = getattr(tier, rate_attr)
        if people <= tier.max_people:
            return tier, rate * duration, Decimal("0")
        extra_rate = getattr(tier, extra_attr)
        if extra_rate:
            applied = tier
            base = rate * duration
            extra = Decimal(people - tier.max_people) * extra_rate * duration
    return applied, base, extra


def calculate_price(
    space: SpaceConfiguration,
    reservation_type: str,
    *,
    number_of_people: int = 1,
    start_time: time | None = None,
    end_time: time | None = None,
) -> PriceQuote:
    """Price of a slot before additional services."""

    people = number_of_people or 1
    if people < space.min_capacity or people > space.max_capacity:
        raise PricingError(
            f"Le nombre de personnes doit être compris entre {space.min_capacity} et {space.max_capacity}."
        )

    tiers = list(space.tiers.all())
    tier: PricingTier | None = None
    extra = Decimal("0")

    if reservation_type == ReservationType.HOURLY:
        if start_time is None or end_time is None:
            raise PricingError("Heures de début et de fin requises pour une réservation à l'heure.")
        duration = hours_between(start_time, end_time)
        if duration <= 0:
            raise PricingError("L'heure de fin doit être après l'heure de début.")
        base = space.hourly_price * duration
        if tiers:
            tier, tier_base, extra = _resolve_tier(
                tiers, people, duration, "hourly_rate", "extra_person_hourly"
            )
            if tier is not None:
                base = tier_base
    elif reservation_type == ReservationType.DAILY:
        duration = Decimal("1")
        base = space.daily_price
        if tiers:
            tier, tier_base, extra = _resolve_tier(
                tiers, people, duration, "daily_rate", "extra_person_daily"
            )
            if tier is not None:
                base = tier_base
    elif reservation_type == ReservationType.WEEKLY:
        duration = Decimal("7")
        base = space.weekly_price
    elif reservation_type == ReservationType.MONTHLY:
        duration = Decimal("30")
        base = space.monthly_price
    else:
        raise PricingError("Type de réservation invalide.")

    if tier is not None:
        total = base + extra
    elif space.per_person:
        total = base * people
    else:
        total = base

    return PriceQuote(
        base_price=quantize(base),
        extra_charge=quantize(extra),
        total_price=quantize(total),
        duration=duration.quantize(CENTS),
        duration_unit=DURATION_UNITS[reservation_type],
        number_of_people=people,
        per_person=space.per_person,
        tier=tier,
    )


def calculate_services_price(
    space: SpaceConfiguration,
    requested: Iterable[dict],
    number_of_people: int,
) -> ServicesQuote:
    """Price the requested ``[{"service": id, "quantity": n}]`` options.

    The returned lines are the snapshot stored on the reservation, so later
    catalogue price changes never alter an existing booking.
    """

    quote = ServicesQuote()
    requested = list(requested or [])
    if not requested:
        return quote

    ids = [item["service"] for item in requested]
    services = {s.pk: s for s in AdditionalService.objects.filter(pk__in=ids, is_active=True)}
    for item in requested:
        service = services.get(item["service"])
        if service is None or not service.applies_to(space.space_type):
            raise PricingError(f"Service indisponible pour cet espace : {item['service']}.")
        quantity = int(item.get("quantity") or 1)
        multiplier = number_of_people if service.price_unit == AdditionalService.PriceUnit.PER_PERSON else 1
        line_total = quantize(service.price * quantity * multiplier)
        quote.total += line_total
        quote.lines.append(
            {
                "service": service.pk,
                "name": service.name,
                "unit_price": str(service.price),
                "price_unit": service.price_unit,
                "quantity": quantity,
                "total": str(line_total),
            }
        )
    return quote


def to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_deposit_cents(space: SpaceConfiguration | None, total_price: Decimal) -> int:
    """Amount held on the card, in cents.

    Without an enabled deposit policy the full price is held. A fixed
    amount beats the percentage; the minimum acts as a floor.
    """

    total_cents = to_cents(total_price)
    if space is None or not space.deposit_enabled:
        return total_cents

    deposit = total_cents
    if space.deposit_fixed_amount:
        deposit = space.deposit_fixed_amount
    elif space.deposit_percentage:
        deposit = int(
            (Decimal(total_cents) * space.deposit_percentage / 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        )

    if space.deposit_minimum_amount and deposit < space.deposit_minimum_amount:
        deposit = space.deposit_minimum_amount
    return deposit


# ============================================================================
# CANCELLATION POLICY
# ============================================================================

def get_cancellation_policy(space_type: str) -> list[dict]:
    """Tiers sorted by ``days_before_booking`` descending."""

    settings_obj = BookingSettings.load()
    if space_type in MEETING_ROOM_TYPES:
        tiers = settings_obj.meeting_room_cancellation_policy or DEFAULT_MEETING_ROOM_POLICY
    else:
        tiers = settings_obj.open_space_cancellation_policy or DEFAULT_OPEN_SPACE_POLICY
    return sorted(tiers, key=lambda tier: tier["days_before_booking"], reverse=True)


def business_days_until(target: date, today: date | None = None) -> int:
    """Weekdays strictly after ``today`` up to and including ``target``."""

    today = today or timezone.localdate()
    if target <= today:
        return 0
    days = 0
    current = today
    while current < target:
        current += timedelta(days=1)
        if current.weekday() < 5:
            days += 1
    return days


def charge_percentage_for(policy: list[dict], days_before: int) -> int:
    for tier in policy:
        if days_before >= tier["days_before_booking"]:
            return int(tier["charge_percentage"])
    return 100


# ============================================================================
# CLOSURES
# ============================================================================

def find_closure(
    on_date: date,
    space_type: str,
    start_time: time | None = None,
    end_time: time | None = None,
) -> ExceptionalClosure | None:
    for closure in ExceptionalClosure.objects.filter(date=on_date):
        if not closure.applies_to(space_type):
            continue
        if closure.is_full_day or start_time is None or end_time is None:
            return closure
        if closure.start_time < end_time and closure.end_time > start_time:
            return closure
    return None
