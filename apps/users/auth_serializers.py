"""Serializers for authentication flows (register, login, password reset, activation)."""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any

from django.contrib.auth import get_user_model  # type: ignore
from django.contrib.auth.password_validation import validate_password  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.notifications.services import send_password_reset_code_email
from .models import AccountActivationToken, PasswordResetToken
from .services import subscribe_to_newsletter


User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    password_confirm = serializers.CharField(min_length=8, write_only=True)
    first_name = serializers.CharField(required=False, allow_blank=True)
    last_name = serializers.CharField(required=False, allow_blank=True)
    username = serializers.CharField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True)
    company_name = serializers.CharField(required=False, allow_blank=True)
    newsletter = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs.get("password") != attrs.get("password_confirm"):
            raise serializers.ValidationError({"password_confirm": "Les mots de passe ne correspondent pas."})
        existing = User.objects.filter(email__iexact=attrs["email"]).first()
        if existing is not None and not existing.is_temporary:
            raise serializers.ValidationError({"email": "Un compte existe déjà avec cet email."})
        attrs["existing"] = existing
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        password = validated_data.pop("password")
        validated_data.pop("password_confirm", None)
        existing = validated_data.pop("existing", None)

        if existing is not None:
            # Newsletter-only account becomes a full client account
            for field, value in validated_data.items():
                setattr(existing, field, value)
            existing.is_temporary = False
            existing.is_active = True
            existing.set_password(password)
            existing.save()
            user = existing
        else:
            user = User.objects.create_user(password=password, **validated_data)

        if user.newsletter:
            subscribe_to_newsletter(user.email, user=user, source="register")
        return user


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        try:
            user = User.objects.get(email__iexact=attrs.get("email", ""))
        except User.DoesNotExist:
            raise serializers.ValidationError({"email": "Email ou mot de passe incorrect."})

        if user.is_locked:
            raise serializers.ValidationError(
                {"non_field_errors": ["Compte temporairement bloqué. Réessayez plus tard."]}
            )

        if not user.check_password(attrs.get("password", "")):
            user.register_failed_attempt(threshold=5)
            raise serializers.ValidationError({"email": "Email ou mot de passe incorrect."})

        if not user.is_active:
            raise serializers.ValidationError(
                {"non_field_errors": ["Compte non activé. Consultez l'email d'activation."]}
            )

        user.unlock()
        attrs["user"] = user
        return attrs


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        user = User.objects.filter(email__iexact=validated_data["email"], is_active=True).first()
        if user is None:
            # Same answer whether or not the account exists
            return None

        PasswordResetToken.objects.filter(user=user, is_used=False).update(is_used=True)

        code = f"{secrets.randbelow(1_000_000):06d}"
        token = PasswordResetToken.objects.create(
            user=user,
            code=code,
            expires_at=timezone.now() + timedelta(minutes=15),
            attempts_left=3,
            is_used=False,
        )
        send_password_reset_code_email(user, code)
        return token


class PasswordResetConfirmSerializer(serializers.Serializer):
    email = serializers.EmailField()
    code = serializers.CharField()
    new_password = serializers.CharField(min_length=8)
    new_password_confirm = serializers.CharField(min_length=8)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs.get("new_password") != attrs.get("new_password_confirm"):
            raise serializers.ValidationError({"new_password_confirm": "Les mots de passe ne correspondent pas."})
        try:
            attrs["user"] = User.objects.get(email__iexact=attrs["email"])
        except User.DoesNotExist:
            raise serializers.ValidationError({"code": "Code invalide."})
        return attrs

    def create(self, validated_data: dict[str, Any]):  # type: ignore
        # Failed attempts must be persisted, so only the success path is atomic
        user = validated_data["user"]
        code = validated_data["code"]

        try:
            token = PasswordResetToken.objects.filter(
                user=user,
                is_used=False,
            ).latest("created_at")
        except PasswordResetToken.DoesNotExist:
            raise serializers.ValidationError({"code": "Aucun code actif. Demandez-en un nouveau."})

        if token.is_expired:
            token.mark_used()
            raise serializers.ValidationError({"code": "Ce code a expiré."})

        if token.attempts_left == 0:
            token.mark_used()
            raise serializers.ValidationError({"code": "Nombre d'essais dépassé. Demandez un nouveau code."})

        if token.code != code:
            token.decrement_attempt()
            raise serializers.ValidationError({"code": "Code invalide."})

        with transaction.atomic():
            user.set_password(validated_data["new_password"])
            user.save(update_fields=["password"])
            token.mark_used()
        return user


class ActivateAccountSerializer(serializers.Serializer):
    token = serializers.CharField()
    password = serializers.CharField(min_length=8, write_only=True)
    password_confirm = serializers.CharField(min_length=8, write_only=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs["password"] != attrs["password_confirm"]:
            raise serializers.ValidationError({"password_confirm": "Les mots de passe ne correspondent pas."})
        token = AccountActivationToken.objects.select_related("user").filter(token=attrs["token"]).first()
        if token is None or not token.is_valid:
            raise serializers.ValidationError({"token": "Lien d'activation invalide ou expiré."})
        validate_password(attrs["password"], user=token.user)
        attrs["activation"] = token
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        token: AccountActivationToken = validated_data["activation"]
        user = token.user
        user.set_password(validated_data["password"])
        user.is_active = True
        user.is_email_verified = True
        user.is_temporary = False
        user.save(update_fields=["password", "is_active", "is_email_verified", "is_temporary"])
        token.mark_used()
        return user
