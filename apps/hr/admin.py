"""Admin registration for HR."""

from __future__ import annotations

from django.contrib import admin

from .models import Availability, Employee, RecurringTask, Shift, Task, TimeEntry, Unavailability


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("full_name", "email", "employee_role", "contract_type", "hire_date", "is_active", "is_draft")
    list_filter = ("employee_role", "contract_type", "is_active", "is_draft")
    search_fields = ("first_name", "last_name", "email")
    exclude = ("pin_hash", "social_security_number", "iban")
    readonly_fields = ("created_at", "updated_at")


@admin.register(Shift)
class ShiftAdmin(admin.ModelAdmin):
    list_display = ("employee", "date", "start_time", "end_time", "shift_type", "is_active")
    list_filter = ("shift_type", "is_active", "date")
    date_hierarchy = "date"


@admin.register(TimeEntry)
class TimeEntryAdmin(admin.ModelAdmin):
    list_display = (
        "employee",
        "date",
        "shift_number",
        "clock_in",
        "clock_out",
        "total_hours",
        "status",
        "is_out_of_schedule",
        "justification_read",
    )
    list_filter = ("status", "is_out_of_schedule", "justification_read")
    date_hierarchy = "date"


@admin.register(Unavailability)
class UnavailabilityAdmin(admin.ModelAdmin):
    list_display = ("employee", "start_date", "end_date", "unavailability_type", "status", "reviewed_by")
    list_filter = ("status", "unavailability_type")
    readonly_fields = ("reviewed_by", "reviewed_at", "notification_sent")


@admin.register(Availability)
class AvailabilityAdmin(admin.ModelAdmin):
    list_display = ("employee", "day_of_week", "start_time", "end_time", "is_recurring", "is_active")
    list_filter = ("day_of_week", "is_recurring", "is_active")


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("title", "priority", "status", "due_date", "recurring_task", "completed_by")
    list_filter = ("status", "priority")
    search_fields = ("title",)
    readonly_fields = ("completed_by", "completed_at", "created_at", "updated_at")


@admin.register(RecurringTask)
class RecurringTaskAdmin(admin.ModelAdmin):
    list_display = ("title", "recurrence_type", "recurrence_days", "priority", "is_active")
    list_filter = ("recurrence_type", "is_active")
