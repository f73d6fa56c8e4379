"""User domain models for the coworking café.

Roles are ordered by level: client (10), staff (50), admin (80), dev (100).
Permission checks compare levels, so a higher role always inherits the
rights of the lower ones. Guests who only subscribed to the newsletter get
a *temporary* account that is upgraded in place when they first book.
"""

from __future__ import annotations

import secrets
from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("Format de téléphone invalide. Utilisez uniquement des chiffres, sans espaces."),
)


class CustomUserManager(BaseUserManager):
    """Manager that uses the email address as the login."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("L'email est obligatoire.")
        email = self.normalize_email(email).lower()

        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.CLIENT)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.DEV)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        return phone.replace(" ", "").replace("-", "").replace(".", "")


class CustomUser(AbstractUser):
    """Compte de la plateforme (client, équipe ou administration)."""

    class RoleChoices(models.TextChoices):
        CLIENT = "client", _("Client")
        STAFF = "staff", _("Équipe")
        ADMIN = "admin", _("Administrateur")
        DEV = "dev", _("Développeur")

    ROLE_LEVELS = {
        RoleChoices.CLIENT: 10,
        RoleChoices.STAFF: 50,
        RoleChoices.ADMIN: 80,
        RoleChoices.DEV: 100,
    }
    STAFF_LEVEL = 50
    ADMIN_LEVEL = 80

    username = models.CharField(
        _("Nom affiché"),
        max_length=150,
        blank=True,
    )
    email = models.EmailField(_("Email"), unique=True)
    phone = models.CharField(
        _("Téléphone"),
        max_length=20,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    company_name = models.CharField(_("Société"), max_length=255, blank=True)
    role = models.CharField(
        _("Rôle"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.CLIENT,
    )
    newsletter = models.BooleanField(_("Inscrit à la newsletter"), default=False)
    is_temporary = models.BooleanField(
        _("Compte temporaire"),
        default=False,
        help_text=_("Compte créé par une inscription newsletter, sans mot de passe."),
    )
    is_email_verified = models.BooleanField(_("Email vérifié"), default=False)
    failed_login_attempts = models.PositiveIntegerField(default=0)
    locked_until = models.DateTimeField(_("Bloqué jusqu'au"), null=True, blank=True)
    last_activity_at = models.DateTimeField(null=True, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: list[str] = []

    class Meta:
        verbose_name = _("Utilisateur")
        verbose_name_plural = _("Utilisateurs")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role"], name="user_role_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    # --- Rôles ---------------------------------------------------------------
    @property
    def role_level(self) -> int:
        if self.is_superuser:
            return self.ROLE_LEVELS[self.RoleChoices.DEV]
        return self.ROLE_LEVELS.get(self.role, 0)

    def is_staff_member(self) -> bool:
        return self.role_level >= self.STAFF_LEVEL

    def is_admin_member(self) -> bool:
        return self.role_level >= self.ADMIN_LEVEL

    @property
    def display_name(self) -> str:
        full_name = self.get_full_name().strip()
        return full_name or self.username or self.email

    # --- Sécurité ------------------------------------------------------------
    @property
    def is_locked(self) -> bool:
        return bool(self.locked_until and self.locked_until > timezone.now())

    def lock(self, minutes: int = 15) -> None:
        self.locked_until = timezone.now() + timezone.timedelta(minutes=minutes)
        self.failed_login_attempts = 0
        self.save(update_fields=["locked_until", "failed_login_attempts"])

    def unlock(self) -> None:
        self.locked_until = None
        self.failed_login_attempts = 0
        self.save(update_fields=["locked_until", "failed_login_attempts"])

    def register_failed_attempt(self, threshold: int = 5) -> None:
        self.failed_login_attempts += 1
        if self.failed_login_attempts >= threshold:
            self.lock()
            return
        self.save(update_fields=["failed_login_attempts"])

    def touch_last_activity(self) -> None:
        self.last_activity_at = timezone.now()
        self.save(update_fields=["last_activity_at"])

    def anonymize(self) -> None:
        """Scrub personal data; reservations stay attached for accounting."""
        self.email = f"deleted-{self.pk}-{secrets.token_hex(4)}@deleted.invalid"
        self.username = ""
        self.first_name = ""
        self.last_name = ""
        self.phone = ""
        self.company_name = ""
        self.newsletter = False
        self.is_active = False
        self.deleted_at = timezone.now()
        self.set_unusable_password()
        self.save()


class PasswordResetToken(models.Model):
    """Code de réinitialisation à 6 chiffres, valable 15 minutes, 3 essais."""

    user = models.ForeignKey(
        CustomUser,
        on_delete=models.CASCADE,
        related_name="password_reset_tokens",
    )
    code = models.CharField(max_length=6)
    expires_at = models.DateTimeField()
    attempts_left = models.PositiveSmallIntegerField(default=3)
    is_used = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Code de réinitialisation")
        verbose_name_plural = _("Codes de réinitialisation")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["code", "expires_at"], name="reset_code_expiry_idx"),
        ]

    def __str__(self) -> str:
        return f"Reset token for {self.user_id}"

    @property
    def is_expired(self) -> bool:
        return timezone.now() >= self.expires_at

    def mark_used(self) -> None:
        self.is_used = True
        self.save(update_fields=["is_used"])

    def decrement_attempt(self) -> None:
        if self.attempts_left > 0:
            self.attempts_left -= 1
            self.save(update_fields=["attempts_left"])


class AccountActivationToken(models.Model):
    """Lien d'activation envoyé aux comptes créés sans mot de passe."""

    LIFETIME_HOURS = 48

    user = models.ForeignKey(
        CustomUser,
        on_delete=models.CASCADE,
        related_name="activation_tokens",
    )
    token = models.CharField(max_length=64, unique=True)
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Activation token for {self.user_id}"

    @classmethod
    def issue(cls, user: CustomUser) -> "AccountActivationToken":
        cls.objects.filter(user=user, used_at__isnull=True).delete()
        return cls.objects.create(
            user=user,
            token=secrets.token_urlsafe(32),
            expires_at=timezone.now() + timezone.timedelta(hours=cls.LIFETIME_HOURS),
        )

    @property
    def is_valid(self) -> bool:
        return self.used_at is None and timezone.now() < self.expires_at

    def mark_used(self) -> None:
        self.used_at = timezone.now()
        self.save(update_fields=["used_at"])


class NewsletterSubscription(models.Model):
    email = models.EmailField(unique=True)
    user = models.ForeignKey(
        CustomUser,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="newsletter_subscriptions",
    )
    is_subscribed = models.BooleanField(default=True)
    source = models.CharField(max_length=50, blank=True, help_text=_("booking, footer, account..."))
    subscribed_at = models.DateTimeField(default=timezone.now)
    unsubscribed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Abonnement newsletter")
        verbose_name_plural = _("Abonnements newsletter")
        ordering = ["-subscribed_at"]

    def __str__(self) -> str:
        return self.email


# Backwards compatibility alias used in modules and tests
User = CustomUser
