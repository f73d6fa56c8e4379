"""Space configuration models.

A :class:`SpaceConfiguration` describes one kind of bookable space (open
space, meeting rooms, event privatisation) with its prices, capacity and
deposit policy. Money stored in euros as ``Decimal`` except the deposit
fixed/minimum amounts, which are kept in cents like the payment processor
expects them.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


MEETING_ROOM_TYPES = frozenset(
    {
        "meeting-room",
        "meeting-room-glass",
        "meeting-room-floor",
        "salle-verriere",
        "salle-etage",
    }
)
EVENT_SPACE_TYPE = "evenementiel"

DEFAULT_MEETING_ROOM_POLICY = [
    {"days_before_booking": 22, "charge_percentage": 0},
    {"days_before_booking": 15, "charge_percentage": 30},
    {"days_before_booking": 8, "charge_percentage": 50},
    {"days_before_booking": 0, "charge_percentage": 70},
]
DEFAULT_OPEN_SPACE_POLICY = [
    {"days_before_booking": 7, "charge_percentage": 0},
    {"days_before_booking": 3, "charge_percentage": 50},
    {"days_before_booking": 0, "charge_percentage": 100},
]


class ReservationType(models.TextChoices):
    HOURLY = "hourly", _("À l'heure")
    DAILY = "daily", _("À la journée")
    WEEKLY = "weekly", _("À la semaine")
    MONTHLY = "monthly", _("Au mois")


class SpaceConfiguration(models.Model):
    """Type d'espace réservable avec sa grille tarifaire."""

    space_type = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=120)
    description = models.TextField(blank=True)
    image_url = models.CharField(max_length=500, blank=True)
    min_capacity = models.PositiveSmallIntegerField(default=1)
    max_capacity = models.PositiveSmallIntegerField(default=1)
    is_exclusive = models.BooleanField(
        default=False,
        help_text=_("Une seule réservation par créneau (salles de réunion, privatisation)."),
    )
    requires_quote = models.BooleanField(default=False, help_text=_("Réservation sur devis uniquement."))

    hourly_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    daily_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    weekly_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    monthly_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    per_person = models.BooleanField(default=True, help_text=_("Prix multiplié par le nombre de personnes."))

    deposit_enabled = models.BooleanField(default=False)
    deposit_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    deposit_fixed_amount = models.PositiveIntegerField(null=True, blank=True, help_text=_("En centimes."))
    deposit_minimum_amount = models.PositiveIntegerField(null=True, blank=True, help_text=_("En centimes."))

    display_order = models.PositiveSmallIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    is_deleted = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Configuration d'espace")
        verbose_name_plural = _("Configurations d'espace")
        ordering = ["display_order", "name"]

    def __str__(self) -> str:
        return self.name

    def clean(self) -> None:
        if self.min_capacity > self.max_capacity:
            raise ValidationError(_("La capacité minimale dépasse la capacité maximale."))
        if self.deposit_percentage is not None and not (0 <= self.deposit_percentage <= 100):
            raise ValidationError(_("Le pourcentage d'acompte doit être compris entre 0 et 100."))

    @property
    def is_meeting_room(self) -> bool:
        return self.space_type in MEETING_ROOM_TYPES

    def price_for(self, reservation_type: str) -> Decimal:
        return {
            ReservationType.HOURLY: self.hourly_price,
            ReservationType.DAILY: self.daily_price,
            ReservationType.WEEKLY: self.weekly_price,
            ReservationType.MONTHLY: self.monthly_price,
        }[reservation_type]


class PricingTier(models.Model):
    """Tarif dégressif selon le nombre de personnes."""

    space = models.ForeignKey(SpaceConfiguration, on_delete=models.CASCADE, related_name="tiers")
    min_people = models.PositiveSmallIntegerField()
    max_people = models.PositiveSmallIntegerField()
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    daily_rate = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    extra_person_hourly = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    extra_person_daily = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    class Meta:
        ordering = ["space", "min_people"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_people__gte=models.F("min_people")),
                name="pricing_tier_valid_range",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.space.space_type} {self.min_people}-{self.max_people}"


class AdditionalService(models.Model):
    """Option ajoutée à une réservation (café, vidéoprojecteur...)."""

    class PriceUnit(models.TextChoices):
        PER_PERSON = "per_person", _("Par personne")
        FLAT = "flat", _("Forfait")

    name = models.CharField(max_length=120)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    price_unit = models.CharField(max_length=20, choices=PriceUnit.choices, default=PriceUnit.FLAT)
    space_types = models.JSONField(default=list, blank=True, help_text=_("Vide = tous les espaces."))
    is_active = models.BooleanField(default=True)
    display_order = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Service additionnel")
        verbose_name_plural = _("Services additionnels")
        ordering = ["display_order", "name"]

    def __str__(self) -> str:
        return self.name

    def applies_to(self, space_type: str) -> bool:
        return not self.space_types or space_type in self.space_types


class BookingSettings(models.Model):
    """Réglages globaux des réservations (une seule ligne)."""

    open_space_cancellation_policy = models.JSONField(default=list, blank=True)
    meeting_room_cancellation_policy = models.JSONField(default=list, blank=True)
    notification_email = models.EmailField(default="strasbourg@coworkingcafe.fr")
    deposit_hold_days = models.PositiveSmallIntegerField(
        default=7, help_text=_("Jours avant la réservation où l'empreinte bancaire est posée.")
    )
    deferred_intent_days = models.PositiveSmallIntegerField(
        default=6, help_text=_("Jours avant la réservation où le paiement différé est préparé.")
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Réglages de réservation")
        verbose_name_plural = _("Réglages de réservation")

    def __str__(self) -> str:
        return "Booking settings"

    def save(self, *args, **kwargs) -> None:
        self.pk = 1
        super().save(*args, **kwargs)

    @classmethod
    def load(cls) -> "BookingSettings":
        obj, _created = cls.objects.get_or_create(pk=1)
        return obj


class ExceptionalClosure(models.Model):
    """Fermeture exceptionnelle (jour férié, privatisation...)."""

    date = models.DateField()
    reason = models.CharField(max_length=255)
    is_full_day = models.BooleanField(default=True)
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    space_types = models.JSONField(default=list, blank=True, help_text=_("Vide = tout l'établissement."))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Fermeture exceptionnelle")
        verbose_name_plural = _("Fermetures exceptionnelles")
        ordering = ["date", "start_time"]
        indexes = [models.Index(fields=["date"], name="closure_date_idx")]

    def __str__(self) -> str:
        return f"{self.date} {self.reason}"

    def clean(self) -> None:
        if not self.is_full_day:
            if not (self.start_time and self.end_time):
                raise ValidationError(_("Heures de début et de fin requises pour une fermeture partielle."))
            if self.start_time >= self.end_time:
                raise ValidationError(_("L'heure de fin doit suivre l'heure de début."))

    def applies_to(self, space_type: str) -> bool:
        return not self.space_types or space_type in self.space_types
