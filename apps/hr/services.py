"""HR services: clocking, planning, absences, tasks and the monthly report."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

from django.conf import settings  # type: ignore
from django.core.cache import cache  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Sum  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications.services import (
    create_in_app_notification,
    send_account_activation_email,
    send_unavailability_decision_email,
)
from apps.users.models import AccountActivationToken, CustomUser

from .models import Availability, Employee, RecurringTask, Shift, Task, TimeEntry, Unavailability, to_minutes

logger = logging.getLogger(__name__)

MAX_SHIFTS_PER_DAY = 2
SCHEDULE_TOLERANCE_MINUTES = 15
DAY_MINUTES = 24 * 60


class HRError(Exception):
    status_code = 400

    def __init__(self, message: str, code: str = "", status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        if status_code is not None:
            self.status_code = status_code


class ClockingError(HRError):
    def __init__(self, message: str, code: str = "", status_code: int | None = None, retry_after: int | None = None):
        super().__init__(message, code, status_code)
        self.retry_after = retry_after

    def as_dict(self) -> dict:
        data = {"success": False, "error": self.message, "code": self.code}
        if self.retry_after is not None:
            data["retryAfter"] = self.retry_after
        return data


@dataclass
class ClockingResult:
    entry: TimeEntry
    message: str


# ---------------------------------------------------------------------------
# Clocking guards
# ---------------------------------------------------------------------------


def check_ip_allowed(ip: str | None) -> None:
    whitelist = getattr(settings, "CLOCKING_IP_WHITELIST", [])
    if not whitelist:
        return
    if ip not in whitelist:
        logger.warning(f"Clocking refused from IP {ip}")
        raise ClockingError("Pointage non autorisé depuis ce réseau", "IP_NOT_ALLOWED", 403)


def _attempts_key(ip: str | None, employee_id) -> str:
    return f"clocking:attempts:{ip or 'unknown'}:{employee_id}"


def check_rate_limit(ip: str | None, employee_id) -> None:
    max_attempts = settings.CLOCKING_MAX_PIN_ATTEMPTS
    attempts = cache.get(_attempts_key(ip, employee_id))
    if attempts and attempts["count"] >= max_attempts:
        retry_after = max(0, int(attempts["expires_at"] - timezone.now().timestamp()))
        raise ClockingError(
            "Trop de tentatives. Réessayez plus tard.", "RATE_LIMITED", 429, retry_after=retry_after
        )


def record_attempt(ip: str | None, employee_id) -> None:
    key = _attempts_key(ip, employee_id)
    timeout = settings.CLOCKING_LOCKOUT_MINUTES * 60
    attempts = cache.get(key)
    if attempts is None:
        attempts = {"count": 0, "expires_at": timezone.now().timestamp() + timeout}
    attempts["count"] += 1
    remaining = max(1, int(attempts["expires_at"] - timezone.now().timestamp()))
    cache.set(key, attempts, remaining)


def reset_attempts(ip: str | None, employee_id) -> None:
    cache.delete(_attempts_key(ip, employee_id))


def _get_clockable_employee(employee_id) -> Employee:
    employee = Employee.objects.filter(pk=employee_id, is_draft=False, deleted_at__isnull=True).first()
    if employee is None:
        raise ClockingError("Employé introuvable", "EMPLOYEE_NOT_FOUND", 404)
    if not employee.is_active:
        raise ClockingError("Ce compte employé est désactivé", "EMPLOYEE_INACTIVE", 403)
    return employee


def _validate_pin_format(pin) -> None:
    if not pin or not str(pin).isdigit() or len(str(pin)) != 4:
        raise ClockingError("Le PIN doit être composé de 4 chiffres", "INVALID_PIN_FORMAT", 400)


def is_within_schedule(moment, shifts: Iterable[Shift]) -> bool:
    """True when ``moment`` falls in a planned shift, widened by the tolerance on both sides."""
    minutes = to_minutes(moment)
    for shift in shifts:
        start, end = shift.minutes_range
        low = start - SCHEDULE_TOLERANCE_MINUTES
        high = end + SCHEDULE_TOLERANCE_MINUTES
        # an overnight shift is also checked against the next day's clock
        if low <= minutes <= high or low <= minutes + DAY_MINUTES <= high:
            return True
    return False


def _shifts_for(employee: Employee, day: date):
    return list(Shift.objects.filter(employee=employee, date=day, is_active=True))


def _now_local(now: datetime | None) -> datetime:
    return timezone.localtime(now or timezone.now())


# ---------------------------------------------------------------------------
# Clock in / out
# ---------------------------------------------------------------------------


def clock_in(
    employee_id,
    pin,
    *,
    ip: str | None = None,
    justification: str = "",
    now: datetime | None = None,
) -> ClockingResult:
    if not employee_id or not pin:
        raise ClockingError("Employé et PIN requis", "MISSING_FIELDS", 400)
    _validate_pin_format(pin)
    check_ip_allowed(ip)
    check_rate_limit(ip, employee_id)

    employee = _get_clockable_employee(employee_id)

    record_attempt(ip, employee_id)
    if not employee.check_pin(str(pin)):
        logger.warning(f"Invalid clocking PIN for employee {employee.pk} from {ip}")
        raise ClockingError("PIN incorrect", "INVALID_PIN", 401)

    current = _now_local(now)
    today = current.date()
    clock_time = current.time().replace(second=0, microsecond=0)

    with transaction.atomic():
        todays = TimeEntry.objects.select_for_update().filter(employee=employee, date=today, is_active=True)
        if todays.filter(status=TimeEntry.Status.ACTIVE).exists():
            raise ClockingError("Vous avez déjà un shift en cours", "ALREADY_CLOCKED_IN", 409)
        count = todays.count()
        if count >= MAX_SHIFTS_PER_DAY:
            raise ClockingError("Nombre maximum de shifts atteint pour aujourd'hui", "MAX_SHIFTS_EXCEEDED", 409)

        out_of_schedule = not is_within_schedule(clock_time, _shifts_for(employee, today))
        note = justification.strip()
        if out_of_schedule and not note:
            raise ClockingError(
                "Pointage hors planning : une justification est requise", "JUSTIFICATION_REQUIRED", 400
            )

        entry = TimeEntry.objects.create(
            employee=employee,
            date=today,
            clock_in=clock_time,
            shift_number=count + 1,
            status=TimeEntry.Status.ACTIVE,
            is_out_of_schedule=out_of_schedule,
            justification_note=note,
        )

    reset_attempts(ip, employee_id)
    logger.info(f"Employee {employee.pk} clocked in at {clock_time:%H:%M} (shift {entry.shift_number})")
    return ClockingResult(entry=entry, message=f"Shift {entry.shift_number} débuté avec succès")


def clock_out(
    employee_id,
    *,
    ip: str | None = None,
    pin=None,
    time_entry_id=None,
    justification: str = "",
    now: datetime | None = None,
) -> ClockingResult:
    if not employee_id:
        raise ClockingError("Employé requis", "MISSING_FIELDS", 400)
    check_ip_allowed(ip)
    check_rate_limit(ip, employee_id)
    employee = _get_clockable_employee(employee_id)

    if pin:
        _validate_pin_format(pin)
        record_attempt(ip, employee_id)
        if not employee.check_pin(str(pin)):
            logger.warning(f"Invalid clocking PIN for employee {employee.pk} from {ip}")
            raise ClockingError("PIN incorrect", "INVALID_PIN", 401)

    current = _now_local(now)
    clock_time = current.time().replace(second=0, microsecond=0)

    with transaction.atomic():
        entries = TimeEntry.objects.select_for_update().filter(
            employee=employee, status=TimeEntry.Status.ACTIVE, is_active=True
        )
        if time_entry_id:
            entry = entries.filter(pk=time_entry_id).first()
        else:
            entry = entries.order_by("-date", "-clock_in").first()
        if entry is None:
            raise ClockingError("Aucun shift en cours", "NOT_CLOCKED_IN", 404)

        if entry.date == current.date() and entry.clock_in == clock_time:
            raise ClockingError(
                "L'heure de départ doit être différente de l'heure d'arrivée", "INVALID_TIME_RANGE", 400
            )

        shifts = _shifts_for(employee, entry.date)
        note = justification.strip()
        departure_out = False
        if shifts and is_within_schedule(entry.clock_in, shifts):
            departure_out = not is_within_schedule(clock_time, shifts)
            if departure_out and not note:
                raise ClockingError(
                    "Départ hors planning : une justification est requise", "JUSTIFICATION_REQUIRED", 400
                )

        if note:
            entry.justification_note = (
                f"[Arrivée] {entry.justification_note}\n---\n[Départ] {note}"
                if entry.justification_note
                else f"[Départ] {note}"
            )
            entry.justification_read = False
        if departure_out:
            entry.is_out_of_schedule = True

        entry.clock_out = clock_time
        entry.total_hours = entry.calculate_total_hours()
        entry.status = TimeEntry.Status.COMPLETED
        entry.save()

    if pin:
        reset_attempts(ip, employee_id)
    logger.info(f"Employee {employee.pk} clocked out at {clock_time:%H:%M} ({entry.total_hours} h)")
    return ClockingResult(entry=entry, message=f"Shift {entry.shift_number} terminé avec succès")


def update_time_entry(entry: TimeEntry, data: dict) -> TimeEntry:
    for field, value in data.items():
        setattr(entry, field, value)
    if entry.clock_out is not None:
        entry.total_hours = entry.calculate_total_hours()
        entry.status = TimeEntry.Status.COMPLETED
    entry.save()
    return entry


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------


@transaction.atomic
def create_employee_with_account(data: dict, *, created_by: CustomUser | None = None) -> Employee:
    """Create the employee and an inactive staff account that they activate by email."""
    email = (data.get("email") or "").strip().lower()
    if not email:
        raise HRError("Un email est requis pour créer un compte.")
    if CustomUser.objects.filter(email__iexact=email).exists():
        raise HRError("Un compte existe déjà avec cet email.", status_code=409)

    pin = data.pop("pin", None)
    user = CustomUser.objects.create_user(
        email=email,
        password=None,
        first_name=data.get("first_name", ""),
        last_name=data.get("last_name", ""),
        role=CustomUser.RoleChoices.STAFF,
        is_active=False,
    )
    employee = Employee(**data, user=user, created_by=created_by)
    employee.email = email
    if pin:
        employee.set_pin(pin)
    employee.save()

    token = AccountActivationToken.issue(user)
    transaction.on_commit(lambda: send_account_activation_email(user, token))
    logger.info(f"Employee {employee.pk} created with account {user.pk}")
    return employee


def end_contract(employee: Employee, *, end_date: date, reason: str) -> Employee:
    if employee.hire_date and end_date < employee.hire_date:
        raise HRError("La date de fin doit être postérieure à la date d'embauche.")
    employee.end_date = end_date
    employee.end_contract_reason = reason
    if end_date <= timezone.localdate():
        employee.is_active = False
    employee.save(update_fields=["end_date", "end_contract_reason", "is_active", "updated_at"])
    if not employee.is_active and employee.user_id:
        CustomUser.objects.filter(pk=employee.user_id).update(is_active=False)
    logger.info(f"Contract of employee {employee.pk} ends on {end_date} ({reason})")
    return employee


def validate_draft_completion(employee: Employee) -> list[str]:
    """Fields still missing before a draft can become a real employee."""
    required = ("first_name", "last_name", "date_of_birth", "email", "phone", "hire_date", "social_security_number")
    return [field for field in required if not getattr(employee, field)]


def publish_draft(employee: Employee) -> Employee:
    missing = validate_draft_completion(employee)
    if missing:
        raise HRError(f"Champs manquants : {', '.join(missing)}", code="INCOMPLETE_DRAFT")
    employee.is_draft = False
    employee.save(update_fields=["is_draft", "updated_at"])
    return employee


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def check_shift_overlap(employee: Employee, day: date, start_time, end_time, *, exclude_id=None) -> None:
    if start_time == end_time:
        raise HRError("L'heure de fin doit être différente de l'heure de début.")
    others = Shift.objects.filter(employee=employee, date=day, is_active=True)
    if exclude_id:
        others = others.exclude(pk=exclude_id)
    for shift in others:
        if shift.overlaps(start_time, end_time):
            raise HRError(
                f"Ce créneau chevauche un créneau existant ({shift.start_time:%H:%M}-{shift.end_time:%H:%M}).",
                code="SHIFT_OVERLAP",
                status_code=409,
            )


# ---------------------------------------------------------------------------
# Unavailability
# ---------------------------------------------------------------------------


def review_unavailability(
    unavailability: Unavailability,
    *,
    approve: bool,
    reviewer: CustomUser,
    rejection_reason: str = "",
) -> Unavailability:
    if unavailability.status != Unavailability.Status.PENDING:
        raise HRError("Cette demande a déjà été traitée.")
    if not approve and not rejection_reason.strip():
        raise HRError("Un motif de refus est requis.")

    unavailability.status = Unavailability.Status.APPROVED if approve else Unavailability.Status.REJECTED
    unavailability.rejection_reason = "" if approve else rejection_reason.strip()
    unavailability.reviewed_by = reviewer
    unavailability.reviewed_at = timezone.now()
    unavailability.save()

    if not unavailability.notification_sent and unavailability.employee.email:
        if send_unavailability_decision_email(unavailability):
            unavailability.notification_sent = True
            unavailability.save(update_fields=["notification_sent", "updated_at"])
    if unavailability.employee.user_id:
        create_in_app_notification(
            unavailability.employee.user,
            "Demande d'absence traitée",
            f"Votre demande du {unavailability.start_date:%d/%m/%Y} au {unavailability.end_date:%d/%m/%Y} "
            f"a été {unavailability.get_status_display().lower()}.",
            category="hr",
        )
    logger.info(f"Unavailability {unavailability.pk} {unavailability.status} by {reviewer.pk}")
    return unavailability


def cancel_unavailability(unavailability: Unavailability) -> Unavailability:
    if unavailability.status not in (Unavailability.Status.PENDING, Unavailability.Status.APPROVED):
        raise HRError("Cette demande ne peut pas être annulée.")
    unavailability.status = Unavailability.Status.CANCELLED
    unavailability.save(update_fields=["status", "updated_at"])
    return unavailability


# ---------------------------------------------------------------------------
# Availabilities
# ---------------------------------------------------------------------------


def check_availability_overlap(employee: Employee, day_of_week: int, start_time, end_time, *, exclude_id=None) -> None:
    others = Availability.objects.filter(employee=employee, day_of_week=day_of_week, is_active=True)
    if exclude_id:
        others = others.exclude(pk=exclude_id)
    clash = others.filter(start_time__lt=end_time, end_time__gt=start_time).first()
    if clash is not None:
        raise HRError(
            f"Cette disponibilité chevauche une disponibilité existante "
            f"({clash.start_time:%H:%M}-{clash.end_time:%H:%M}).",
            code="AVAILABILITY_OVERLAP",
            status_code=409,
        )


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def create_task_occurrence(template: RecurringTask, day: date) -> Task | None:
    """Today's task for ``template``, ``None`` when it already exists."""
    task, created = Task.objects.get_or_create(
        recurring_task=template,
        due_date=day,
        defaults={
            "title": template.title,
            "description": template.description,
            "priority": template.priority,
            "created_by": template.created_by,
        },
    )
    return task if created else None


def generate_recurring_tasks(day: date | None = None, templates=None) -> int:
    day = day or timezone.localdate()
    if templates is None:
        templates = RecurringTask.objects.filter(is_active=True)
    created = 0
    for template in templates:
        if template.is_active and template.occurs_on(day) and create_task_occurrence(template, day):
            created += 1
    logger.info(f"{created} recurring task(s) generated for {day}")
    return created


def set_task_status(task: Task, status: str, user: CustomUser) -> Task:
    if task.status == status:
        raise HRError("La tâche est déjà dans cet état.")
    task.status = status
    if status == Task.Status.COMPLETED:
        task.completed_by = user
        task.completed_at = timezone.now()
    else:
        task.completed_by = None
        task.completed_at = None
    task.save(update_fields=["status", "completed_by", "completed_at", "updated_at"])
    logger.info(f"Task {task.pk} {status} by {user.pk}")
    return task


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def monthly_report(year: int, month: int, *, employees=None) -> dict:
    """Completed hours per employee and per day, compared to contractual hours."""
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])
    employees = employees if employees is not None else Employee.objects.filter(is_draft=False, deleted_at__isnull=True)

    rows = []
    for employee in employees:
        entries = TimeEntry.objects.filter(
            employee=employee,
            date__range=(first, last),
            status=TimeEntry.Status.COMPLETED,
            is_active=True,
        )
        per_day = {
            row["date"].isoformat(): row["hours"]
            for row in entries.values("date").annotate(hours=Sum("total_hours")).order_by("date")
        }
        total = sum(per_day.values(), Decimal("0.00"))
        contractual = employee.monthly_contractual_hours
        rows.append(
            {
                "employee_id": employee.pk,
                "employee_name": employee.full_name,
                "days": per_day,
                "total_hours": total,
                "contractual_hours": contractual,
                "difference": total - contractual,
                "out_of_schedule_count": entries.filter(is_out_of_schedule=True).count(),
            }
        )

    return {"year": year, "month": month, "employees": rows}
