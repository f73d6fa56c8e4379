"""Admin registrations for the users domain."""

from __future__ import annotations

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import AccountActivationToken, CustomUser, NewsletterSubscription, PasswordResetToken


@admin.register(CustomUser)
class CustomUserAdmin(BaseUserAdmin):
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            _("Informations"),
            {"fields": ("username", "first_name", "last_name", "phone", "company_name", "newsletter")},
        ),
        (_("Rôle"), {"fields": ("role", "is_active", "is_staff", "is_superuser", "is_temporary")}),
        (
            _("Sécurité"),
            {"fields": ("is_email_verified", "failed_login_attempts", "locked_until", "last_activity_at")},
        ),
        (_("Dates"), {"fields": ("date_joined", "created_at", "updated_at", "deleted_at")}),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "password1", "password2", "first_name", "last_name", "role"),
            },
        ),
    )
    list_display = ("email", "role", "company_name", "is_active", "is_temporary", "newsletter", "is_locked")
    list_filter = ("role", "is_active", "is_temporary", "newsletter")
    search_fields = ("email", "phone", "first_name", "last_name", "company_name")
    ordering = ("email",)
    readonly_fields = ("created_at", "updated_at", "date_joined", "last_activity_at", "deleted_at")


@admin.register(PasswordResetToken)
class PasswordResetTokenAdmin(admin.ModelAdmin):
    list_display = ("user", "expires_at", "attempts_left", "is_used", "created_at")
    list_filter = ("is_used",)
    search_fields = ("user__email",)


@admin.register(AccountActivationToken)
class AccountActivationTokenAdmin(admin.ModelAdmin):
    list_display = ("user", "expires_at", "used_at", "created_at")
    search_fields = ("user__email",)


@admin.register(NewsletterSubscription)
class NewsletterSubscriptionAdmin(admin.ModelAdmin):
    list_display = ("email", "is_subscribed", "source", "subscribed_at")
    list_filter = ("is_subscribed", "source")
    search_fields = ("email",)
