"""Accounting services: cash float counts, cash control, consolidated revenue and the dashboard."""

from __future__ import annotations

import calendar
import logging
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Avg, Count, Sum  # type: ignore
from django.utils import timezone  # type: ignore

from apps.bookings.models import Reservation
from apps.contact.models import ContactMessage
from apps.hr.models import Task, Unavailability
from apps.users.models import CustomUser

from .models import ZERO, B2BRevenue, CashEntry, CashRegisterCount, DailyTurnover

logger = logging.getLogger(__name__)

DISCREPANCY_THRESHOLD = Decimal("5.00")
CENT = Decimal("0.01")


class AccountingError(Exception):
    status_code = 400

    def __init__(self, message: str, code: str = "", status_code: int | None = None, extra: dict | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.extra = extra or {}
        if status_code is not None:
            self.status_code = status_code

    def as_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, **self.extra}


def _money(value) -> Decimal:
    return (value or ZERO).quantize(CENT, rounding=ROUND_HALF_UP)


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def _previous_month(day: date) -> tuple[int, int]:
    return (day.year - 1, 12) if day.month == 1 else (day.year, day.month - 1)


# ---------------------------------------------------------------------------
# Cash float
# ---------------------------------------------------------------------------


def count_total(details: dict) -> Decimal:
    total = ZERO
    for kind in ("bills", "coins"):
        for line in details.get(kind) or []:
            total += Decimal(str(line["value"])) * int(line["quantity"])
    return _money(total)


def record_cash_count(
    *,
    day: date,
    user: CustomUser,
    amount: Decimal | None = None,
    count_details: dict | None = None,
    notes: str = "",
    confirm_discrepancy: bool = False,
) -> CashRegisterCount:
    """Record a count of the cash float.

    With a detailed count the amount is its total. A gap of more than
    ``DISCREPANCY_THRESHOLD`` with the previous count is refused unless
    the caller confirms a manager was told.
    """
    details = count_details or {}
    if details.get("bills") or details.get("coins"):
        counted = count_total(details)
        if amount is not None and _money(amount) != counted:
            raise AccountingError(
                f"Le montant ({_money(amount)} €) ne correspond pas au détail du comptage ({counted} €).",
                code="AMOUNT_MISMATCH",
            )
        amount = counted
    if amount is None:
        raise AccountingError("Indiquez le montant ou le détail du comptage.", code="AMOUNT_REQUIRED")
    amount = _money(amount)

    previous = CashRegisterCount.objects.order_by("-date", "-created_at").first()
    difference = amount - previous.amount if previous else None
    if difference is not None and abs(difference) > DISCREPANCY_THRESHOLD:
        if not confirm_discrepancy:
            raise AccountingError(
                f"Écart de {difference:+.2f} € avec le dernier comptage ({previous.amount} €).",
                code="CASH_DISCREPANCY",
                status_code=409,
                extra={"difference": difference, "previous_amount": previous.amount},
            )
        notice = f"Écart de {difference:+.2f} € - Responsable prévenu"
        notes = f"{notice}\n{notes}".strip()
        logger.warning(f"Cash float gap of {difference} confirmed by {user.pk}")

    count = CashRegisterCount.objects.create(
        date=day,
        amount=amount,
        count_details=details,
        counted_by=user,
        counted_by_name=user.display_name,
        difference=difference,
        notes=notes,
    )
    logger.info(f"Cash float counted on {day}: {amount} by {user.pk}")
    return count


def _count_stats(qs) -> dict:
    stats = qs.aggregate(count=Count("id"), total=Sum("amount"), average=Avg("amount"))
    return {"count": stats["count"], "total": _money(stats["total"]), "average": _money(stats["average"])}


def cash_register_stats(today: date | None = None) -> dict:
    today = today or timezone.localdate()
    last_year, last_month = _previous_month(today)
    return {
        "today": _count_stats(CashRegisterCount.objects.filter(date=today)),
        "this_month": _count_stats(CashRegisterCount.objects.filter(date__range=_month_bounds(today.year, today.month))),
        "last_month": _count_stats(CashRegisterCount.objects.filter(date__range=_month_bounds(last_year, last_month))),
    }


# ---------------------------------------------------------------------------
# Cash control
# ---------------------------------------------------------------------------


def cash_control_month(year: int, month: int) -> dict:
    """One row per day with a turnover or a cash entry, and the month's totals."""
    first, last = _month_bounds(year, month)
    turnovers = {row.date: row for row in DailyTurnover.objects.filter(date__range=(first, last))}
    entries = {row.date: row for row in CashEntry.objects.filter(date__range=(first, last))}

    rows = []
    totals = {key: ZERO for key in ("ht", "ttc", "total_b2b", "total_expenses", "net_revenue", "total_collected")}
    for day in sorted(set(turnovers) | set(entries)):
        turnover = turnovers.get(day)
        entry = entries.get(day)
        row = {
            "date": day.isoformat(),
            "ht": turnover.ht if turnover else ZERO,
            "ttc": turnover.ttc if turnover else ZERO,
            "tva": turnover.tva if turnover else ZERO,
            "cash_entry_id": entry.pk if entry else None,
            "b2b_services": entry.b2b_services if entry else [],
            "expenses": entry.expenses if entry else [],
            "bank_transfer": entry.bank_transfer if entry else ZERO,
            "cash": entry.cash if entry else ZERO,
            "card": entry.card if entry else ZERO,
            "contactless": entry.contactless if entry else ZERO,
            "total_b2b": entry.total_b2b if entry else ZERO,
            "total_expenses": entry.total_expenses if entry else ZERO,
            "net_revenue": entry.net_revenue if entry else ZERO,
            "total_collected": entry.total_collected if entry else ZERO,
        }
        for key in totals:
            totals[key] += row[key]
        rows.append(row)

    return {"year": year, "month": month, "days": rows, "totals": totals}


# ---------------------------------------------------------------------------
# Consolidated revenue
# ---------------------------------------------------------------------------


def _figures(row) -> dict:
    return {"ht": row.ht, "ttc": row.ttc, "tva": row.tva}


def _sum_figures(rows) -> dict:
    return {key: sum((row[key] for row in rows), ZERO) for key in ("ht", "ttc", "tva")}


def consolidated_range(start: date, end: date) -> dict:
    """Turnover plus B2B revenue per day over ``start``..``end`` included."""
    if start > end:
        raise AccountingError("La date de début doit précéder la date de fin.", code="INVALID_RANGE")

    turnovers = {row.date: _figures(row) for row in DailyTurnover.objects.filter(date__range=(start, end))}
    b2b = {row.date: _figures(row) for row in B2BRevenue.objects.filter(date__range=(start, end))}

    days = []
    for day in sorted(set(turnovers) | set(b2b)):
        parts = [part for part in (turnovers.get(day), b2b.get(day)) if part]
        days.append(
            {
                "date": day.isoformat(),
                "turnover": turnovers.get(day),
                "b2b": b2b.get(day),
                **_sum_figures(parts),
            }
        )

    total = _sum_figures(days)
    days_count = len(days)
    average = {key: _money(total[key] / days_count) if days_count else ZERO for key in ("ht", "ttc")}
    return {
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "days": days,
        "stats": {
            "turnover": _sum_figures(turnovers.values()),
            "b2b": _sum_figures(b2b.values()),
            "total": total,
            "daily_average": average,
            "days_count": days_count,
        },
    }


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def _turnover_between(start: date, end: date) -> dict:
    sums = DailyTurnover.objects.filter(date__range=(start, end)).aggregate(ht=Sum("ht"), ttc=Sum("ttc"))
    return {"start": start.isoformat(), "end": end.isoformat(), "ht": _money(sums["ht"]), "ttc": _money(sums["ttc"])}


def _same_day_last_year(day: date) -> date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        # 29 February
        return day.replace(year=day.year - 1, day=28)


def turnover_ranges(today: date | None = None) -> dict:
    """Turnover to date and over the matching previous periods."""
    today = today or timezone.localdate()
    yesterday = today - timedelta(days=1)
    week_start = today - timedelta(days=today.weekday())
    previous_week_start = week_start - timedelta(days=7)
    prev_year, prev_month = _previous_month(today)
    previous_month_start, previous_month_end = _month_bounds(prev_year, prev_month)
    year_start = today.replace(month=1, day=1)

    return {
        "yesterday": _turnover_between(yesterday, yesterday),
        "week": _turnover_between(week_start, today),
        "month": _turnover_between(today.replace(day=1), today),
        "year": _turnover_between(year_start, today),
        "previous_day": _turnover_between(yesterday - timedelta(days=7), yesterday - timedelta(days=7)),
        "previous_week": _turnover_between(previous_week_start, week_start - timedelta(days=1)),
        "previous_month": _turnover_between(previous_month_start, previous_month_end),
        "previous_year": _turnover_between(date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)),
        "previous_week_to_date": _turnover_between(previous_week_start, today - timedelta(days=7)),
        "previous_month_to_date": _turnover_between(
            previous_month_start, previous_month_start.replace(day=min(today.day, previous_month_end.day))
        ),
        "previous_year_to_date": _turnover_between(date(today.year - 1, 1, 1), _same_day_last_year(today)),
    }


def dashboard_summary(today: date | None = None) -> dict:
    today = today or timezone.localdate()
    last_count = CashRegisterCount.objects.order_by("-date", "-created_at").first()
    return {
        "date": today.isoformat(),
        "turnover": turnover_ranges(today),
        "reservations_today": Reservation.objects.filter(date=today)
        .exclude(status=Reservation.Status.CANCELLED)
        .count(),
        "pending_reservations": Reservation.objects.filter(status=Reservation.Status.PENDING, date__gte=today).count(),
        "unread_messages": ContactMessage.objects.filter(status=ContactMessage.Status.UNREAD).count(),
        "pending_unavailabilities": Unavailability.objects.filter(status=Unavailability.Status.PENDING).count(),
        "pending_tasks": Task.objects.filter(status=Task.Status.PENDING, due_date__lte=today).count(),
        "last_cash_count": {
            "date": last_count.date.isoformat(),
            "amount": last_count.amount,
            "counted_by": last_count.counted_by_name,
        }
        if last_count
        else None,
    }
