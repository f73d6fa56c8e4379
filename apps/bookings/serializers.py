"""Serializers for the booking domain."""

from __future__ import annotations

import json

from rest_framework import serializers  # type: ignore

from apps.spaces.models import ReservationType, SpaceConfiguration
from apps.users.models import CustomUser

from .models import Reservation


class ServiceRequestSerializer(serializers.Serializer):
    service = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class ReservationRequestSerializer(serializers.Serializer):
    """Slot and contact details sent by the client.

    Prices are never accepted from the request; they are computed from the
    space configuration.
    """

    space = serializers.SlugRelatedField(
        slug_field="space_type",
        queryset=SpaceConfiguration.objects.filter(is_active=True, is_deleted=False),
    )
    date = serializers.DateField()
    start_time = serializers.TimeField(required=False, allow_null=True)
    end_time = serializers.TimeField(required=False, allow_null=True)
    reservation_type = serializers.ChoiceField(choices=ReservationType.choices)
    number_of_people = serializers.IntegerField(min_value=1, default=1)
    additional_services = ServiceRequestSerializer(many=True, required=False)

    contact_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    contact_email = serializers.EmailField(required=False, allow_blank=True)
    contact_phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    company_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    message = serializers.CharField(required=False, allow_blank=True)
    invoice_option = serializers.BooleanField(default=False)
    invoice_details = serializers.JSONField(required=False, allow_null=True)
    is_partial_privatization = serializers.BooleanField(default=False)

    # Only used when the reservation is created from a payment.
    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    newsletter = serializers.BooleanField(default=False)

    # Staff creating a reservation on behalf of a client.
    user = serializers.PrimaryKeyRelatedField(queryset=CustomUser.objects.all(), required=False, allow_null=True)
    requires_payment = serializers.BooleanField(default=True)

    def validate_invoice_details(self, value):  # type: ignore
        if value and len(json.dumps(value)) > 500:
            raise serializers.ValidationError("Informations de facturation trop longues (500 caractères maximum).")
        return value

    def validate(self, attrs):  # type: ignore
        start, end = attrs.get("start_time"), attrs.get("end_time")
        if attrs["reservation_type"] == ReservationType.HOURLY and not (start and end):
            raise serializers.ValidationError("Heures de début et de fin requises pour une réservation à l'heure.")
        if bool(start) != bool(end):
            raise serializers.ValidationError("Indiquez à la fois l'heure de début et l'heure de fin.")
        if start and end and end <= start:
            raise serializers.ValidationError("L'heure de fin doit être après l'heure de début.")
        return attrs


class GuestReservationRequestSerializer(ReservationRequestSerializer):
    """Anonymous booking through the payment flow: contact details are mandatory."""

    contact_name = serializers.CharField(max_length=255)
    contact_email = serializers.EmailField()
    contact_phone = serializers.CharField(max_length=30)


class ReservationSerializer(serializers.ModelSerializer):
    space_type = serializers.CharField(source="space.space_type", read_only=True)
    space_name = serializers.CharField(source="space.name", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True, default=None)

    class Meta:
        model = Reservation
        fields = [
            "id",
            "confirmation_number",
            "user",
            "user_email",
            "space_type",
            "space_name",
            "date",
            "start_time",
            "end_time",
            "reservation_type",
            "number_of_people",
            "status",
            "status_display",
            "attendance_status",
            "base_price",
            "services_price",
            "total_price",
            "additional_services",
            "contact_name",
            "contact_email",
            "contact_phone",
            "company_name",
            "message",
            "invoice_option",
            "invoice_details",
            "is_partial_privatization",
            "requires_payment",
            "payment_status",
            "capture_method",
            "deposit_amount",
            "cancelled_at",
            "cancellation_reason",
            "cancellation_fee",
            "refund_amount",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AdminReservationSerializer(ReservationSerializer):
    class Meta(ReservationSerializer.Meta):
        fields = ReservationSerializer.Meta.fields + [
            "stripe_payment_intent_id",
            "stripe_setup_intent_id",
            "stripe_customer_id",
            "cancelled_by",
        ]
        read_only_fields = fields


class AdminReservationUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Reservation.Status.choices, required=False)
    payment_status = serializers.ChoiceField(choices=Reservation.PaymentStatus.choices, required=False)
    attendance_status = serializers.ChoiceField(choices=Reservation.AttendanceStatus.choices, required=False)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate(self, attrs):  # type: ignore
        if not any(attrs.get(key) for key in ("status", "payment_status", "attendance_status")):
            raise serializers.ValidationError("Aucune modification demandée.")
        return attrs


class CancelReservationSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
