"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "confirmation_number",
        "space",
        "date",
        "start_time",
        "end_time",
        "number_of_people",
        "status",
        "payment_status",
        "attendance_status",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "payment_status", "attendance_status", "capture_method", "space", "date")
    search_fields = ("confirmation_number", "contact_name", "contact_email", "company_name", "user__email")
    readonly_fields = (
        "confirmation_number",
        "stripe_payment_intent_id",
        "stripe_setup_intent_id",
        "stripe_customer_id",
        "created_at",
        "updated_at",
    )
    date_hierarchy = "date"
