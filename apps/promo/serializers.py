from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import PromoCode, PromoEvent


class PromoCodeSerializer(serializers.ModelSerializer):
    status = serializers.CharField(read_only=True)

    class Meta:
        model = PromoCode
        fields = [
            "id",
            "code",
            "token",
            "description",
            "discount_type",
            "discount_value",
            "valid_from",
            "valid_until",
            "max_uses",
            "current_uses",
            "is_active",
            "deactivated_at",
            "marketing_title",
            "marketing_message",
            "marketing_image_url",
            "cta_text",
            "view_count",
            "copy_count",
            "scan_count",
            "reveal_count",
            "status",
            "created_at",
        ]
        read_only_fields = [
            "id",
            "current_uses",
            "is_active",
            "deactivated_at",
            "view_count",
            "copy_count",
            "scan_count",
            "reveal_count",
            "created_at",
        ]
        extra_kwargs = {"token": {"required": False}}

    def validate_code(self, value: str) -> str:
        return value.strip().upper()

    def validate(self, attrs):  # type: ignore
        valid_from = attrs.get("valid_from", getattr(self.instance, "valid_from", None))
        valid_until = attrs.get("valid_until", getattr(self.instance, "valid_until", None))
        if valid_from and valid_until and valid_until <= valid_from:
            raise serializers.ValidationError({"valid_until": "La fin doit être postérieure au début."})
        if attrs.get("discount_type") == PromoCode.DiscountType.PERCENTAGE and attrs.get("discount_value", 0) > 100:
            raise serializers.ValidationError({"discount_value": "Un pourcentage ne peut dépasser 100."})
        return attrs


class PublicPromoSerializer(serializers.ModelSerializer):
    """What visitors see: no counters, no usage data."""

    class Meta:
        model = PromoCode
        fields = [
            "code",
            "token",
            "description",
            "discount_type",
            "discount_value",
            "valid_from",
            "valid_until",
            "marketing_title",
            "marketing_message",
            "marketing_image_url",
            "cta_text",
        ]
        read_only_fields = fields


class PromoEventSerializer(serializers.Serializer):
    # scans are recorded by the token page itself
    event_type = serializers.ChoiceField(
        choices=[PromoEvent.EventType.VIEW, PromoEvent.EventType.REVEAL, PromoEvent.EventType.COPY]
    )
    session_id = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")


class ApplyDiscountSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=50)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
