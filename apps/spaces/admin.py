"""Admin registration for spaces."""

from __future__ import annotations

from django.contrib import admin

from .models import AdditionalService, BookingSettings, ExceptionalClosure, PricingTier, SpaceConfiguration


class PricingTierInline(admin.TabularInline):
    model = PricingTier
    extra = 0


@admin.register(SpaceConfiguration)
class SpaceConfigurationAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "space_type",
        "min_capacity",
        "max_capacity",
        "hourly_price",
        "daily_price",
        "deposit_enabled",
        "is_active",
    )
    list_filter = ("is_active", "is_deleted", "deposit_enabled", "is_exclusive")
    search_fields = ("name", "space_type")
    inlines = [PricingTierInline]


@admin.register(AdditionalService)
class AdditionalServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "price_unit", "is_active")
    list_filter = ("is_active", "price_unit")


@admin.register(ExceptionalClosure)
class ExceptionalClosureAdmin(admin.ModelAdmin):
    list_display = ("date", "reason", "is_full_day", "start_time", "end_time")
    date_hierarchy = "date"


@admin.register(BookingSettings)
class BookingSettingsAdmin(admin.ModelAdmin):
    list_display = ("notification_email", "deposit_hold_days", "deferred_intent_days", "updated_at")
