from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import ContactMessage


class ContactSubmitSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContactMessage
        fields = ["name", "email", "phone", "subject", "message"]

    def validate_message(self, value: str) -> str:
        if len(value.strip()) < 10:
            raise serializers.ValidationError("Le message doit contenir au moins 10 caractères.")
        return value.strip()


class ContactMessageSerializer(serializers.ModelSerializer):
    replied_by = serializers.CharField(source="replied_by.display_name", read_only=True, default=None)

    class Meta:
        model = ContactMessage
        fields = [
            "id",
            "name",
            "email",
            "phone",
            "subject",
            "message",
            "status",
            "reply",
            "replied_at",
            "replied_by",
            "user",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ContactReplySerializer(serializers.Serializer):
    reply = serializers.CharField()
