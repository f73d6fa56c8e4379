"""Admin registration for accounting."""

from __future__ import annotations

from django.contrib import admin

from .models import B2BRevenue, CashEntry, CashRegisterCount, DailyTurnover


@admin.register(DailyTurnover, B2BRevenue)
class RevenueAdmin(admin.ModelAdmin):
    list_display = ("date", "ht", "ttc", "tva")
    readonly_fields = ("tva", "created_at", "updated_at")
    date_hierarchy = "date"


@admin.register(CashEntry)
class CashEntryAdmin(admin.ModelAdmin):
    list_display = ("date", "bank_transfer", "cash", "card", "contactless", "created_by")
    readonly_fields = ("created_by", "created_at", "updated_at")
    date_hierarchy = "date"


@admin.register(CashRegisterCount)
class CashRegisterCountAdmin(admin.ModelAdmin):
    list_display = ("date", "amount", "difference", "counted_by_name", "created_at")
    readonly_fields = ("counted_by", "counted_by_name", "difference", "created_at")
    date_hierarchy = "date"
