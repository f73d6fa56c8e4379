"""Admin registration for payments."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = (
        "stripe_payment_intent_id",
        "reservation",
        "user",
        "amount",
        "status",
        "refund_amount",
        "created_at",
    )
    list_filter = ("status", "currency", "created_at")
    search_fields = ("stripe_payment_intent_id", "stripe_charge_id", "reservation__confirmation_number", "user__email")
    readonly_fields = ("created_at", "updated_at", "completed_at", "failed_at", "refunded_at")
