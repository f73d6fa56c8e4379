"""Payment records mirroring the payment processor's intents.

Amounts are stored in cents, exactly as exchanged with the processor.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Payment(models.Model):
    """Paiement (empreinte, capture ou remboursement) lié à une réservation."""

    class Status(models.TextChoices):
        PENDING = "pending", _("En attente")
        PROCESSING = "processing", _("En cours")
        REQUIRES_CAPTURE = "requires_capture", _("Empreinte posée")
        SUCCEEDED = "succeeded", _("Payé")
        FAILED = "failed", _("Échec")
        CANCELLED = "cancelled", _("Annulé")
        REFUNDED = "refunded", _("Remboursé")

    OPEN_STATUSES = (Status.PENDING, Status.PROCESSING)

    reservation = models.ForeignKey(
        "bookings.Reservation",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    amount = models.PositiveIntegerField(help_text=_("En centimes."))
    currency = models.CharField(max_length=3, default="eur")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    stripe_payment_intent_id = models.CharField(max_length=255, unique=True, null=True, blank=True)
    stripe_customer_id = models.CharField(max_length=255, blank=True)
    stripe_charge_id = models.CharField(max_length=255, blank=True, db_index=True)
    stripe_refund_id = models.CharField(max_length=255, blank=True)
    description = models.CharField(max_length=255, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    amount_captured = models.PositiveIntegerField(default=0, help_text=_("Montant encaissé, en centimes."))
    refund_amount = models.PositiveIntegerField(default=0, help_text=_("En centimes."))
    cancellation_fee = models.PositiveIntegerField(default=0, help_text=_("En centimes."))
    failure_reason = models.CharField(max_length=500, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Paiement")
        verbose_name_plural = _("Paiements")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["reservation", "status"], name="payment_reservation_idx"),
        ]

    def __str__(self) -> str:
        return f"Payment {self.stripe_payment_intent_id or self.pk} ({self.status})"

    @property
    def amount_euros(self) -> Decimal:
        return Decimal(self.amount) / 100

    def mark_succeeded(self, *, charge_id: str = "", card: dict | None = None, amount_received: int = 0) -> None:
        self.status = self.Status.SUCCEEDED
        self.completed_at = timezone.now()
        self.amount_captured = amount_received or self.amount_captured or self.amount
        if charge_id:
            self.stripe_charge_id = charge_id
        if card:
            self.metadata = {**(self.metadata or {}), **card}
        self.save(update_fields=["status", "completed_at", "amount_captured", "stripe_charge_id", "metadata", "updated_at"])

    def mark_failed(self, reason: str) -> None:
        self.status = self.Status.FAILED
        self.failed_at = timezone.now()
        self.failure_reason = reason[:500]
        self.save(update_fields=["status", "failed_at", "failure_reason", "updated_at"])
