"""Serializers for payments."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    confirmation_number = serializers.CharField(source="reservation.confirmation_number", read_only=True, default=None)
    amount_euros = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "reservation",
            "confirmation_number",
            "user",
            "amount",
            "amount_euros",
            "currency",
            "status",
            "stripe_payment_intent_id",
            "stripe_charge_id",
            "stripe_refund_id",
            "description",
            "metadata",
            "amount_captured",
            "refund_amount",
            "cancellation_fee",
            "failure_reason",
            "completed_at",
            "failed_at",
            "refunded_at",
            "created_at",
        ]
        read_only_fields = fields


class CreateIntentSerializer(serializers.Serializer):
    """Either an existing ``booking_id`` or the ``reservation_data`` to create."""

    booking_id = serializers.IntegerField(required=False)
    reservation_data = serializers.DictField(required=False)

    def validate(self, attrs):  # type: ignore
        if bool(attrs.get("booking_id")) == bool(attrs.get("reservation_data")):
            raise serializers.ValidationError("Indiquez booking_id ou reservation_data.")
        return attrs


class RefundSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1, required=False, help_text="En centimes ; vide = total restant.")
    reason = serializers.ChoiceField(
        choices=["requested_by_customer", "duplicate", "fraudulent"],
        default="requested_by_customer",
    )

