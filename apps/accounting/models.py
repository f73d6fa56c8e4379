"""Accounting models.

``DailyTurnover`` and ``B2BRevenue`` hold one line of revenue per day.
``CashEntry`` is the daily cash control sheet and ``CashRegisterCount``
a count of the cash float.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

ZERO = Decimal("0.00")


def line_total(lines) -> Decimal:
    return sum((Decimal(str(line.get("value") or 0)) for line in lines or []), ZERO)


class Revenue(models.Model):
    date = models.DateField(unique=True)
    ht = models.DecimalField(_("Montant HT"), max_digits=10, decimal_places=2, default=ZERO)
    ttc = models.DecimalField(_("Montant TTC"), max_digits=10, decimal_places=2, default=ZERO)
    tva = models.DecimalField(_("TVA"), max_digits=10, decimal_places=2, default=ZERO, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-date"]

    def __str__(self) -> str:
        return f"{self.date} {self.ttc} TTC"

    def save(self, *args, **kwargs):  # type: ignore
        self.tva = self.ttc - self.ht
        super().save(*args, **kwargs)


class DailyTurnover(Revenue):
    class Meta(Revenue.Meta):
        verbose_name = _("Chiffre d'affaires journalier")
        verbose_name_plural = _("Chiffres d'affaires journaliers")


class B2BRevenue(Revenue):
    notes = models.TextField(blank=True)

    class Meta(Revenue.Meta):
        verbose_name = _("Chiffre d'affaires B2B")
        verbose_name_plural = _("Chiffres d'affaires B2B")


class CashEntry(models.Model):
    """Feuille de contrôle de caisse. Les lignes sont des ``{"label", "value"}``."""

    date = models.DateField(unique=True)
    b2b_services = models.JSONField(default=list, blank=True)
    expenses = models.JSONField(default=list, blank=True)
    bank_transfer = models.DecimalField(_("Virement"), max_digits=10, decimal_places=2, default=ZERO)
    cash = models.DecimalField(_("Espèces"), max_digits=10, decimal_places=2, default=ZERO)
    card = models.DecimalField(_("CB"), max_digits=10, decimal_places=2, default=ZERO)
    contactless = models.DecimalField(_("CB sans contact"), max_digits=10, decimal_places=2, default=ZERO)
    notes = models.TextField(blank=True)
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
        verbose_name = _("Contrôle de caisse")
        verbose_name_plural = _("Contrôles de caisse")
        ordering = ["-date"]

    def __str__(self) -> str:
        return f"{self.date}"

    @property
    def total_b2b(self) -> Decimal:
        return line_total(self.b2b_services)

    @property
    def total_expenses(self) -> Decimal:
        return line_total(self.expenses)

    @property
    def net_revenue(self) -> Decimal:
        return self.total_b2b - self.total_expenses

    @property
    def total_collected(self) -> Decimal:
        return self.bank_transfer + self.cash + self.card + self.contactless


class CashRegisterCount(models.Model):
    date = models.DateField()
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    count_details = models.JSONField(default=dict, blank=True, help_text=_("bills, coins : [{value, quantity}]"))
    counted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    counted_by_name = models.CharField(max_length=150, blank=True)
    difference = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, help_text=_("Écart avec le comptage précédent.")
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Comptage du fond de caisse")
        verbose_name_plural = _("Comptages du fond de caisse")
        ordering = ["-date", "-created_at"]
        indexes = [models.Index(fields=["date"], name="cash_count_date_idx")]

    def __str__(self) -> str:
        return f"{self.date} {self.amount} €"
