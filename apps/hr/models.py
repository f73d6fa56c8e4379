"""HR domain models.

An ``Employee`` is the HR record (contract, pay, availability, clocking
PIN); it may be linked to a staff ``CustomUser`` for dashboard access.
``Shift`` is the planned schedule, ``TimeEntry`` the actual clocking and
``Unavailability`` an absence request reviewed by an administrator.
``Availability`` holds the weekly slots an employee declares, ``Task``
the team to-do list, fed daily by ``RecurringTask`` templates.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings  # type: ignore
from django.contrib.auth.hashers import check_password, make_password  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .fields import EncryptedTextField, mask_value

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

ONBOARDING_STEPS = (
    "step1_completed",
    "step2_completed",
    "step3_completed",
    "step4_completed",
    "contract_generated",
    "dpae_completed",
    "bank_details_provided",
    "contract_sent",
)

CALENDAR_COLORS = (
    "#3B82F6",
    "#10B981",
    "#A855F7",
    "#F97316",
    "#EF4444",
    "#14B8A6",
    "#6366F1",
    "#EC4899",
    "#EAB308",
    "#06B6D4",
)

SSN_VALIDATOR = RegexValidator(r"^\d{15}$", _("Le numéro de sécurité sociale doit contenir 15 chiffres."))
PIN_VALIDATOR = RegexValidator(r"^\d{4}$", _("Le PIN doit être composé de 4 chiffres."))


def default_availability() -> dict:
    return {day: {"available": False, "slots": []} for day in WEEKDAYS}


def default_onboarding() -> dict:
    return {step: False for step in ONBOARDING_STEPS}


def to_minutes(value) -> int:
    return value.hour * 60 + value.minute


class Priority(models.TextChoices):
    LOW = "low", _("Basse")
    MEDIUM = "medium", _("Moyenne")
    HIGH = "high", _("Haute")


class Employee(models.Model):
    class ContractType(models.TextChoices):
        CDI = "CDI", "CDI"
        CDD = "CDD", "CDD"
        STAGE = "Stage", _("Stage")

    class EmployeeRole(models.TextChoices):
        MANAGER = "manager", _("Manager")
        ASSISTANT_MANAGER = "assistant_manager", _("Assistant manager")
        POLYVALENT = "polyvalent", _("Employé polyvalent")

    class EndContractReason(models.TextChoices):
        RESIGNATION = "demission", _("Démission")
        TRIAL_END = "fin-periode-essai", _("Fin de période d'essai")
        TERMINATION = "rupture", _("Rupture")

    class EmploymentStatus(models.TextChoices):
        DRAFT = "draft", _("Brouillon")
        WAITING = "waiting", _("En attente d'embauche")
        ACTIVE = "active", _("Actif")
        INACTIVE = "inactive", _("Inactif")

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="employee_profile",
    )

    # Identité
    first_name = models.CharField(_("Prénom"), max_length=50)
    last_name = models.CharField(_("Nom"), max_length=50)
    date_of_birth = models.DateField(null=True, blank=True)
    place_of_birth = models.JSONField(default=dict, blank=True, help_text=_("city, department, country"))
    street = models.CharField(max_length=255, blank=True)
    postal_code = models.CharField(max_length=10, blank=True)
    city = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    social_security_number = EncryptedTextField(blank=True)

    # Contrat
    contract_type = models.CharField(max_length=10, choices=ContractType.choices, default=ContractType.CDI)
    contractual_hours = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("35.00"), help_text=_("Heures par semaine.")
    )
    hire_date = models.DateField(null=True, blank=True)
    hire_time = models.TimeField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    end_contract_reason = models.CharField(max_length=30, choices=EndContractReason.choices, blank=True)

    # Rémunération
    level = models.CharField(max_length=20, blank=True)
    step = models.PositiveSmallIntegerField(default=1)
    hourly_rate = models.DecimalField(max_digits=7, decimal_places=2, default=Decimal("0.00"))
    monthly_salary = models.DecimalField(max_digits=9, decimal_places=2, null=True, blank=True)
    employee_role = models.CharField(max_length=30, choices=EmployeeRole.choices, default=EmployeeRole.POLYVALENT)

    availability = models.JSONField(default=default_availability, blank=True)
    onboarding_status = models.JSONField(default=default_onboarding, blank=True)
    work_schedule = models.JSONField(default=dict, blank=True)

    # Coordonnées bancaires
    iban = EncryptedTextField(blank=True)
    bic = models.CharField(max_length=11, blank=True)
    bank_name = models.CharField(max_length=100, blank=True)

    # Pointage
    pin_hash = models.CharField(max_length=128, blank=True)
    color = models.CharField(max_length=7, blank=True)

    is_active = models.BooleanField(default=True)
    is_draft = models.BooleanField(default=False)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Employé")
        verbose_name_plural = _("Employés")
        ordering = ["last_name", "first_name"]
        indexes = [models.Index(fields=["is_active", "is_draft"], name="employee_active_draft_idx")]

    def __str__(self) -> str:
        return self.full_name

    def save(self, *args, **kwargs):  # type: ignore
        if not self.color:
            self.color = CALENDAR_COLORS[Employee.objects.count() % len(CALENDAR_COLORS)]
        super().save(*args, **kwargs)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def employment_status_on(self, today: date | None = None) -> str:
        today = today or timezone.localdate()
        if self.is_draft:
            return self.EmploymentStatus.DRAFT
        if not self.is_active:
            return self.EmploymentStatus.INACTIVE
        if self.hire_date and self.hire_date > today:
            return self.EmploymentStatus.WAITING
        return self.EmploymentStatus.ACTIVE

    @property
    def employment_status(self) -> str:
        return self.employment_status_on()

    @property
    def onboarding_progress(self) -> int:
        done = sum(1 for step in ONBOARDING_STEPS if (self.onboarding_status or {}).get(step))
        return round(done * 100 / len(ONBOARDING_STEPS))

    @property
    def masked_iban(self) -> str:
        return mask_value(self.iban)

    @property
    def masked_social_security_number(self) -> str:
        return mask_value(self.social_security_number, visible=3)

    @property
    def has_pin(self) -> bool:
        return bool(self.pin_hash)

    def set_pin(self, pin: str) -> None:
        PIN_VALIDATOR(pin)
        self.pin_hash = make_password(pin)

    def check_pin(self, pin: str) -> bool:
        if not self.pin_hash or not pin:
            return False
        return check_password(pin, self.pin_hash)

    @property
    def monthly_contractual_hours(self) -> Decimal:
        # 52 weeks / 12 months
        return (self.contractual_hours * Decimal(52) / Decimal(12)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class Shift(models.Model):
    """Créneau planifié. ``end_time`` avant ``start_time`` signifie un créneau de nuit."""

    class ShiftType(models.TextChoices):
        MORNING = "morning", _("Matin")
        AFTERNOON = "afternoon", _("Après-midi")
        EVENING = "evening", _("Soir")
        FULL_DAY = "full_day", _("Journée")
        CUSTOM = "custom", _("Personnalisé")

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name="shifts")
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    shift_type = models.CharField(max_length=20, choices=ShiftType.choices, default=ShiftType.CUSTOM)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Créneau")
        verbose_name_plural = _("Planning")
        ordering = ["date", "start_time"]
        indexes = [models.Index(fields=["employee", "date"], name="shift_employee_date_idx")]

    def __str__(self) -> str:
        return f"{self.employee} {self.date} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    @property
    def minutes_range(self) -> tuple[int, int]:
        start, end = to_minutes(self.start_time), to_minutes(self.end_time)
        if end <= start:
            end += 24 * 60
        return start, end

    def overlaps(self, start_time, end_time) -> bool:
        start, end = to_minutes(start_time), to_minutes(end_time)
        if end <= start:
            end += 24 * 60
        own_start, own_end = self.minutes_range
        return start < own_end and end > own_start


class TimeEntry(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", _("En cours")
        COMPLETED = "completed", _("Terminé")

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name="time_entries")
    date = models.DateField()
    clock_in = models.TimeField()
    clock_out = models.TimeField(null=True, blank=True)
    shift_number = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1), MaxValueValidator(2)])
    total_hours = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    is_out_of_schedule = models.BooleanField(default=False)
    justification_note = models.TextField(blank=True)
    justification_read = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Pointage")
        verbose_name_plural = _("Pointages")
        ordering = ["-date", "-clock_in"]
        indexes = [models.Index(fields=["employee", "date", "status"], name="time_entry_employee_idx")]

    def __str__(self) -> str:
        return f"{self.employee} {self.date} #{self.shift_number}"

    def calculate_total_hours(self) -> Decimal | None:
        """Worked hours, a clock-out before the clock-in means the shift ended after midnight."""
        if self.clock_out is None:
            return None
        start = datetime.combine(self.date, self.clock_in)
        end = datetime.combine(self.date, self.clock_out)
        if end < start:
            end += timedelta(days=1)
        hours = Decimal((end - start).total_seconds()) / Decimal(3600)
        return hours.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class Unavailability(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", _("En attente")
        APPROVED = "approved", _("Acceptée")
        REJECTED = "rejected", _("Refusée")
        CANCELLED = "cancelled", _("Annulée")

    class UnavailabilityType(models.TextChoices):
        VACATION = "vacation", _("Congés")
        SICK = "sick", _("Maladie")
        PERSONAL = "personal", _("Personnel")
        OTHER = "other", _("Autre")

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name="unavailabilities")
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.TextField(blank=True)
    unavailability_type = models.CharField(
        max_length=20, choices=UnavailabilityType.choices, default=UnavailabilityType.VACATION
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)
    notification_sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Indisponibilité")
        verbose_name_plural = _("Indisponibilités")
        ordering = ["-start_date"]
        constraints = [
            models.CheckConstraint(condition=models.Q(end_date__gte=models.F("start_date")), name="unavailability_valid_range"),
        ]

    def __str__(self) -> str:
        return f"{self.employee} {self.start_date} → {self.end_date} ({self.status})"


class Availability(models.Model):
    """Disponibilité déclarée d'un employé sur un jour de la semaine (0 = lundi)."""

    class DayOfWeek(models.IntegerChoices):
        MONDAY = 0, _("Lundi")
        TUESDAY = 1, _("Mardi")
        WEDNESDAY = 2, _("Mercredi")
        THURSDAY = 3, _("Jeudi")
        FRIDAY = 4, _("Vendredi")
        SATURDAY = 5, _("Samedi")
        SUNDAY = 6, _("Dimanche")

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name="availabilities")
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices)
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_recurring = models.BooleanField(default=True)
    effective_from = models.DateField(null=True, blank=True)
    effective_until = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Disponibilité")
        verbose_name_plural = _("Disponibilités")
        ordering = ["employee", "day_of_week", "start_time"]
        indexes = [models.Index(fields=["employee", "day_of_week"], name="availability_employee_day_idx")]
        constraints = [
            models.CheckConstraint(condition=models.Q(end_time__gt=models.F("start_time")), name="availability_valid_range"),
        ]

    def __str__(self) -> str:
        return f"{self.employee} {self.get_day_of_week_display()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


class RecurringTask(models.Model):
    """Modèle de tâche.

    ``recurrence_days`` contient des jours de semaine (0 = lundi) pour une
    récurrence hebdomadaire, des jours du mois (1-31) pour une récurrence
    mensuelle.
    """

    class Recurrence(models.TextChoices):
        WEEKLY = "weekly", _("Hebdomadaire")
        MONTHLY = "monthly", _("Mensuelle")

    title = models.CharField(_("Titre"), max_length=100)
    description = models.TextField(blank=True)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    recurrence_type = models.CharField(max_length=10, choices=Recurrence.choices, default=Recurrence.WEEKLY)
    recurrence_days = models.JSONField(default=list)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Tâche récurrente")
        verbose_name_plural = _("Tâches récurrentes")
        ordering = ["title"]

    def __str__(self) -> str:
        return self.title

    def occurs_on(self, day: date) -> bool:
        days = set(self.recurrence_days or [])
        if self.recurrence_type == self.Recurrence.WEEKLY:
            return day.weekday() in days
        last_day = calendar.monthrange(day.year, day.month)[1]
        if day.day in days:
            return True
        # 29, 30 or 31 fall on the last day of shorter months
        return day.day == last_day and any(value > last_day for value in days)


class Task(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", _("À faire")
        COMPLETED = "completed", _("Terminée")

    title = models.CharField(_("Titre"), max_length=100)
    description = models.TextField(blank=True)
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    due_date = models.DateField(null=True, blank=True)
    recurring_task = models.ForeignKey(
        RecurringTask,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="occurrences",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    completed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Tâche")
        verbose_name_plural = _("Tâches")
        ordering = ["status", "due_date", "-created_at"]
        indexes = [models.Index(fields=["status", "due_date"], name="task_status_due_idx")]
        constraints = [
            models.UniqueConstraint(
                fields=["recurring_task", "due_date"],
                condition=models.Q(recurring_task__isnull=False),
                name="task_unique_occurrence",
            ),
        ]

    def __str__(self) -> str:
        return self.title
