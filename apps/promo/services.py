"""Promo code lifecycle and QR-code funnel statistics.

The funnel is scan (QR code opened) -> reveal (code shown) -> copy
(code copied to the clipboard). A copy counts as a use of the code.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction  # type: ignore
from django.db.models import Count, F  # type: ignore
from django.db.models.functions import ExtractHour, TruncDate  # type: ignore
from django.utils import timezone  # type: ignore

from apps.users.models import CustomUser

from .models import PromoCode, PromoEvent

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class PromoError(Exception):
    def __init__(self, message: str, code: str = "PROMO_INVALID", status_code: int = 400):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


@dataclass
class DiscountResult:
    original: Decimal
    discount: Decimal
    final: Decimal


def get_current_promo() -> PromoCode | None:
    return PromoCode.objects.filter(is_active=True).first()


def get_promo_by_token(token: str, *, session_id: str = "") -> PromoCode:
    promo = PromoCode.objects.filter(token=token, is_active=True).first()
    if promo is None:
        raise PromoError("Code promo introuvable", code="PROMO_NOT_FOUND", status_code=404)
    record_event(promo, PromoEvent.EventType.SCAN, session_id=session_id)
    return promo


def record_event(promo: PromoCode, event_type: str, *, session_id: str = "") -> PromoEvent:
    counter = f"{event_type}_count"
    updates = {counter: F(counter) + 1}
    if event_type == PromoEvent.EventType.COPY:
        updates["current_uses"] = F("current_uses") + 1
    with transaction.atomic():
        event = PromoEvent.objects.create(promo=promo, event_type=event_type, session_id=session_id)
        PromoCode.objects.filter(pk=promo.pk).update(**updates)
    promo.refresh_from_db()
    return event


@transaction.atomic
def create_promo(data: dict, *, created_by: CustomUser | None = None) -> PromoCode:
    """Archive the running code and publish ``data`` as the new one."""
    previous = PromoCode.objects.select_for_update().filter(is_active=True).first()
    if previous is not None:
        previous.is_active = False
        previous.deactivated_at = timezone.now()
        previous.save(update_fields=["is_active", "deactivated_at", "updated_at"])
        logger.info(f"Promo {previous.code} archived after {previous.current_uses} uses")
    promo = PromoCode.objects.create(created_by=created_by, is_active=True, **data)
    logger.info(f"Promo {promo.code} published")
    return promo


def promo_history():
    return PromoCode.objects.filter(is_active=False).order_by("-deactivated_at", "-created_at")


def _rate(numerator: int, denominator: int) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator * 100, 2)


def _average_time_to_reveal(promo: PromoCode) -> float | None:
    """Seconds between a session's first scan and its first reveal."""
    first_scans: dict[str, object] = {}
    first_reveals: dict[str, object] = {}
    events = promo.events.exclude(session_id="").filter(
        event_type__in=[PromoEvent.EventType.SCAN, PromoEvent.EventType.REVEAL]
    )
    for event in events.order_by("created_at"):
        target = first_scans if event.event_type == PromoEvent.EventType.SCAN else first_reveals
        target.setdefault(event.session_id, event.created_at)
    delays = [
        (first_reveals[session] - scanned_at).total_seconds()
        for session, scanned_at in first_scans.items()
        if session in first_reveals and first_reveals[session] >= scanned_at
    ]
    if not delays:
        return None
    return round(sum(delays) / len(delays), 1)


def promo_stats(promo: PromoCode) -> dict:
    scans = promo.events.filter(event_type=PromoEvent.EventType.SCAN)
    by_day = (
        scans.annotate(day=TruncDate("created_at")).values("day").annotate(count=Count("id")).order_by("day")
    )
    by_hour = (
        scans.annotate(hour=ExtractHour("created_at")).values("hour").annotate(count=Count("id")).order_by("hour")
    )
    return {
        "code": promo.code,
        "status": promo.status,
        "views": promo.view_count,
        "scans": promo.scan_count,
        "reveals": promo.reveal_count,
        "copies": promo.copy_count,
        "current_uses": promo.current_uses,
        "conversion_rate_reveal": _rate(promo.reveal_count, promo.scan_count),
        "conversion_rate_copy": _rate(promo.copy_count, promo.reveal_count),
        "average_time_to_reveal": _average_time_to_reveal(promo),
        "scans_by_day": {row["day"].isoformat(): row["count"] for row in by_day},
        "scans_by_hour": {f"{row['hour']:02d}": row["count"] for row in by_hour},
    }


def apply_discount(promo: PromoCode, amount: Decimal) -> DiscountResult:
    amount = Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    code_status = promo.status
    if code_status == PromoCode.CodeStatus.INACTIVE:
        raise PromoError("Ce code promo n'est plus actif", code="PROMO_INACTIVE")
    if code_status == PromoCode.CodeStatus.EXPIRED:
        raise PromoError("Ce code promo n'est pas valable à cette date", code="PROMO_EXPIRED")
    if code_status == PromoCode.CodeStatus.MAX_USES_REACHED:
        raise PromoError("Ce code promo a atteint sa limite d'utilisation", code="PROMO_MAX_USES")

    if promo.discount_type == PromoCode.DiscountType.PERCENTAGE:
        discount = amount * promo.discount_value / Decimal(100)
    elif promo.discount_type == PromoCode.DiscountType.FIXED:
        discount = promo.discount_value
    else:
        # free item is handed over at the counter, the amount is unchanged
        discount = Decimal("0")
    discount = min(discount, amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    return DiscountResult(original=amount, discount=discount, final=amount - discount)
