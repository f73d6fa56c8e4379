"""Serializers for user-related API endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from django.contrib.auth.password_validation import validate_password  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import PHONE_VALIDATOR, NewsletterSubscription

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Profil utilisateur renvoyé par l'API."""

    role_level = serializers.IntegerField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "username",
            "first_name",
            "last_name",
            "phone",
            "company_name",
            "role",
            "role_level",
            "newsletter",
            "is_active",
            "is_email_verified",
            "last_activity_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "email",
            "role",
            "is_active",
            "is_email_verified",
            "last_activity_at",
            "created_at",
            "updated_at",
        ]


class ProfileUpdateSerializer(serializers.ModelSerializer):
    phone = serializers.CharField(required=False, allow_blank=True, validators=[PHONE_VALIDATOR])

    class Meta:
        model = User
        fields = ["username", "first_name", "last_name", "phone", "company_name", "newsletter"]

    def validate_phone(self, value: str) -> str:
        return User.objects.normalize_phone(value) if value else value


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(min_length=8, write_only=True)
    new_password_confirm = serializers.CharField(min_length=8, write_only=True)

    def validate_current_password(self, value: str) -> str:
        if not self.context["request"].user.check_password(value):
            raise serializers.ValidationError("Mot de passe actuel incorrect.")
        return value

    def validate(self, attrs):  # type: ignore
        if attrs["new_password"] != attrs["new_password_confirm"]:
            raise serializers.ValidationError({"new_password_confirm": "Les mots de passe ne correspondent pas."})
        validate_password(attrs["new_password"], user=self.context["request"].user)
        return attrs


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=User.RoleChoices.choices)

    def validate_role(self, value: str) -> str:
        actor = self.context["request"].user
        if User.ROLE_LEVELS[value] > actor.role_level:
            raise serializers.ValidationError("Impossible d'attribuer un rôle supérieur au vôtre.")
        return value


class NewsletterSubscriptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = NewsletterSubscription
        fields = ["id", "email", "is_subscribed", "source", "subscribed_at", "unsubscribed_at"]
        read_only_fields = ["is_subscribed", "subscribed_at", "unsubscribed_at"]
        extra_kwargs = {"email": {"validators": []}}
