from django.contrib import admin  # type: ignore

from .models import PromoCode, PromoEvent


@admin.register(PromoCode)
class PromoCodeAdmin(admin.ModelAdmin):
    list_display = ("code", "discount_type", "discount_value", "is_active", "current_uses", "scan_count", "valid_until")
    list_filter = ("is_active", "discount_type")
    search_fields = ("code", "token", "marketing_title")
    readonly_fields = ("token", "view_count", "copy_count", "scan_count", "reveal_count", "deactivated_at")


@admin.register(PromoEvent)
class PromoEventAdmin(admin.ModelAdmin):
    list_display = ("promo", "event_type", "session_id", "created_at")
    list_filter = ("event_type",)
