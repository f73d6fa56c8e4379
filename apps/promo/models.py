from __future__ import annotations

import secrets

from django.conf import settings  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


def generate_token() -> str:
    return secrets.token_urlsafe(12)


class PromoCode(models.Model):
    """Code promotionnel affiché sur le site et derrière le QR code du comptoir.

    Un seul code est actif à la fois ; les précédents restent en base
    comme historique avec leur date de désactivation.
    """

    class DiscountType(models.TextChoices):
        PERCENTAGE = "percentage", _("Pourcentage")
        FIXED = "fixed", _("Montant fixe")
        FREE_ITEM = "free_item", _("Article offert")

    class CodeStatus(models.TextChoices):
        ACTIVE = "active", _("Actif")
        EXPIRED = "expired", _("Expiré")
        INACTIVE = "inactive", _("Inactif")
        MAX_USES_REACHED = "max_uses_reached", _("Limite atteinte")

    code = models.CharField(max_length=50)
    token = models.CharField(max_length=64, unique=True, default=generate_token)
    description = models.CharField(max_length=255, blank=True)
    discount_type = models.CharField(max_length=20, choices=DiscountType.choices, default=DiscountType.PERCENTAGE)
    discount_value = models.DecimalField(
        max_digits=8, decimal_places=2, default=0, validators=[MinValueValidator(0)]
    )
    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField()
    max_uses = models.PositiveIntegerField(default=0, help_text=_("0 = illimité"))
    current_uses = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    deactivated_at = models.DateTimeField(null=True, blank=True)

    marketing_title = models.CharField(max_length=120, blank=True)
    marketing_message = models.TextField(blank=True)
    marketing_image_url = models.URLField(blank=True)
    cta_text = models.CharField(max_length=60, blank=True, default="Révéler le code")

    view_count = models.PositiveIntegerField(default=0)
    copy_count = models.PositiveIntegerField(default=0)
    scan_count = models.PositiveIntegerField(default=0)
    reveal_count = models.PositiveIntegerField(default=0)

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
        verbose_name = _("Code promo")
        verbose_name_plural = _("Codes promo")
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["is_active"], condition=models.Q(is_active=True), name="single_active_promo"
            ),
            models.CheckConstraint(condition=models.Q(valid_until__gt=models.F("valid_from")), name="promo_valid_window"),
        ]

    def __str__(self) -> str:
        return self.code

    @property
    def status(self) -> str:
        if not self.is_active:
            return self.CodeStatus.INACTIVE
        now = timezone.now()
        if now < self.valid_from or now > self.valid_until:
            return self.CodeStatus.EXPIRED
        if self.max_uses and self.current_uses >= self.max_uses:
            return self.CodeStatus.MAX_USES_REACHED
        return self.CodeStatus.ACTIVE

    @property
    def is_valid(self) -> bool:
        return self.status == self.CodeStatus.ACTIVE


class PromoEvent(models.Model):
    class EventType(models.TextChoices):
        VIEW = "view", _("Affichage")
        COPY = "copy", _("Copie")
        SCAN = "scan", _("Scan")
        REVEAL = "reveal", _("Révélation")

    promo = models.ForeignKey(PromoCode, on_delete=models.CASCADE, related_name="events")
    event_type = models.CharField(max_length=10, choices=EventType.choices)
    session_id = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at"]
        indexes = [models.Index(fields=["promo", "event_type", "created_at"], name="promo_event_type_idx")]

    def __str__(self) -> str:
        return f"{self.event_type} {self.promo_id}"
