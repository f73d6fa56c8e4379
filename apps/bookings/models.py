"""Reservation model for the coworking café.

A reservation moves through ``pending`` (awaiting validation by the team)
to ``confirmed`` and finally ``completed``, or ``cancelled`` at any point
before completion. Payment is tracked separately: a card hold placed
through a manual-capture PaymentIntent (``capture_method=manual``), or a
card saved through a SetupIntent whose PaymentIntent is created by a
scheduled job a few days before the date (``capture_method=deferred``).
"""

from __future__ import annotations

import secrets
import string
import time
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.spaces.models import ReservationType

_CONFIRMATION_ALPHABET = string.ascii_uppercase + string.digits


def generate_confirmation_number() -> str:
    """``BT-<epoch ms>-<9 random upper-case alphanumerics>``"""
    suffix = "".join(secrets.choice(_CONFIRMATION_ALPHABET) for _ in range(9))
    return f"BT-{int(time.time() * 1000)}-{suffix}"


class Reservation(models.Model):
    """Réservation d'un espace."""

    class Status(models.TextChoices):
        PENDING = "pending", _("En attente de validation")
        CONFIRMED = "confirmed", _("Confirmée")
        CANCELLED = "cancelled", _("Annulée")
        COMPLETED = "completed", _("Terminée")

    class AttendanceStatus(models.TextChoices):
        PRESENT = "present", _("Présent")
        ABSENT = "absent", _("Absent")

    class PaymentStatus(models.TextChoices):
        UNPAID = "unpaid", _("Non payé")
        PENDING = "pending", _("En attente")
        PAID = "paid", _("Payé")
        PARTIAL = "partial", _("Partiellement payé")
        REFUNDED = "refunded", _("Remboursé")
        FAILED = "failed", _("Échec")

    class CaptureMethod(models.TextChoices):
        AUTOMATIC = "automatic", _("Automatique")
        MANUAL = "manual", _("Empreinte bancaire")
        DEFERRED = "deferred", _("Carte enregistrée")

    ACTIVE_STATUSES = (Status.PENDING, Status.CONFIRMED)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservations",
    )
    space = models.ForeignKey(
        "spaces.SpaceConfiguration",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    confirmation_number = models.CharField(
        max_length=40, unique=True, default=generate_confirmation_number, editable=False
    )
    date = models.DateField()
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    reservation_type = models.CharField(
        max_length=20, choices=ReservationType.choices, default=ReservationType.HOURLY
    )
    number_of_people = models.PositiveSmallIntegerField(default=1)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    attendance_status = models.CharField(
        max_length=20, choices=AttendanceStatus.choices, blank=True
    )

    base_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    services_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    additional_services = models.JSONField(default=list, blank=True)

    contact_name = models.CharField(max_length=255, blank=True)
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=30, blank=True)
    company_name = models.CharField(max_length=255, blank=True)
    message = models.TextField(blank=True)
    invoice_option = models.BooleanField(default=False)
    invoice_details = models.JSONField(null=True, blank=True)
    is_partial_privatization = models.BooleanField(default=False)

    requires_payment = models.BooleanField(default=True)
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID
    )
    capture_method = models.CharField(max_length=20, choices=CaptureMethod.choices, blank=True)
    deposit_amount = models.PositiveIntegerField(default=0, help_text=_("Montant de l'empreinte, en centimes."))
    stripe_payment_intent_id = models.CharField(max_length=255, unique=True, null=True, blank=True)
    stripe_setup_intent_id = models.CharField(max_length=255, unique=True, null=True, blank=True)
    stripe_customer_id = models.CharField(max_length=255, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    cancellation_reason = models.CharField(max_length=500, blank=True)
    cancellation_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    refund_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Réservation")
        verbose_name_plural = _("Réservations")
        ordering = ["-date", "-start_time"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(start_time__isnull=True)
                    | models.Q(end_time__isnull=True)
                    | models.Q(end_time__gt=models.F("start_time"))
                ),
                name="reservation_valid_times",
            ),
        ]
        indexes = [
            models.Index(fields=["space", "date"], name="reservation_space_date_idx"),
            models.Index(fields=["status", "date"], name="reservation_status_date_idx"),
        ]

    def __str__(self) -> str:
        return f"Reservation {self.confirmation_number} ({self.date})"

    @property
    def recipient_email(self) -> str:
        if self.contact_email:
            return self.contact_email
        return self.user.email if self.user_id else ""

    @property
    def recipient_name(self) -> str:
        if self.contact_name:
            return self.contact_name
        return self.user.display_name if self.user_id else "Client"

    @property
    def time_label(self) -> str:
        if self.start_time and self.end_time:
            return f"{self.start_time:%H:%M} - {self.end_time:%H:%M}"
        return "Journée complète"

    @property
    def is_active(self) -> bool:
        return self.status in self.ACTIVE_STATUSES

    def mark_completed(self) -> None:
        self.status = self.Status.COMPLETED
        self.completed_at = timezone.now()
