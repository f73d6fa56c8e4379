"""Serializers for space configurations and booking settings."""

from __future__ import annotations

from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import (
    AdditionalService,
    BookingSettings,
    ExceptionalClosure,
    PricingTier,
    ReservationType,
    SpaceConfiguration,
)


class PricingTierSerializer(serializers.ModelSerializer):
    class Meta:
        model = PricingTier
        fields = [
            "id",
            "min_people",
            "max_people",
            "hourly_rate",
            "daily_rate",
            "extra_person_hourly",
            "extra_person_daily",
        ]

    def validate(self, attrs):  # type: ignore
        if attrs["min_people"] > attrs["max_people"]:
            raise serializers.ValidationError("min_people doit être inférieur ou égal à max_people.")
        return attrs


class SpaceConfigurationSerializer(serializers.ModelSerializer):
    tiers = PricingTierSerializer(many=True, required=False)

    class Meta:
        model = SpaceConfiguration
        fields = [
            "id",
            "space_type",
            "name",
            "description",
            "image_url",
            "min_capacity",
            "max_capacity",
            "is_exclusive",
            "requires_quote",
            "hourly_price",
            "daily_price",
            "weekly_price",
            "monthly_price",
            "per_person",
            "tiers",
            "deposit_enabled",
            "deposit_percentage",
            "deposit_fixed_amount",
            "deposit_minimum_amount",
            "display_order",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate(self, attrs):  # type: ignore
        min_capacity = attrs.get("min_capacity", getattr(self.instance, "min_capacity", 1))
        max_capacity = attrs.get("max_capacity", getattr(self.instance, "max_capacity", 1))
        if min_capacity > max_capacity:
            raise serializers.ValidationError({"max_capacity": "Doit être supérieure à la capacité minimale."})
        percentage = attrs.get("deposit_percentage")
        if percentage is not None and not (0 <= percentage <= 100):
            raise serializers.ValidationError({"deposit_percentage": "Entre 0 et 100."})
        return attrs

    @transaction.atomic
    def create(self, validated_data):  # type: ignore
        tiers = validated_data.pop("tiers", [])
        space = SpaceConfiguration.objects.create(**validated_data)
        for tier in tiers:
            PricingTier.objects.create(space=space, **tier)
        return space

    @transaction.atomic
    def update(self, instance, validated_data):  # type: ignore
        tiers = validated_data.pop("tiers", None)
        instance = super().update(instance, validated_data)
        if tiers is not None:
            instance.tiers.all().delete()
            for tier in tiers:
                PricingTier.objects.create(space=instance, **tier)
        return instance


class AdditionalServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = AdditionalService
        fields = [
            "id",
            "name",
            "description",
            "price",
            "price_unit",
            "space_types",
            "is_active",
            "display_order",
        ]


class CancellationTierSerializer(serializers.Serializer):
    days_before_booking = serializers.IntegerField(min_value=0)
    charge_percentage = serializers.IntegerField(min_value=0, max_value=100)


class BookingSettingsSerializer(serializers.ModelSerializer):
    open_space_cancellation_policy = CancellationTierSerializer(many=True, required=False)
    meeting_room_cancellation_policy = CancellationTierSerializer(many=True, required=False)

    class Meta:
        model = BookingSettings
        fields = [
            "open_space_cancellation_policy",
            "meeting_room_cancellation_policy",
            "notification_email",
            "deposit_hold_days",
            "deferred_intent_days",
            "updated_at",
        ]
        read_only_fields = ["updated_at"]

    def validate(self, attrs):  # type: ignore
        hold = attrs.get("deposit_hold_days", getattr(self.instance, "deposit_hold_days", 7))
        deferred = attrs.get("deferred_intent_days", getattr(self.instance, "deferred_intent_days", 6))
        if deferred >= hold:
            raise serializers.ValidationError(
                {"deferred_intent_days": "Doit être inférieur au délai de l'empreinte bancaire."}
            )
        return attrs


class ExceptionalClosureSerializer(serializers.ModelSerializer):
    class Meta:
        model = ExceptionalClosure
        fields = ["id", "date", "reason", "is_full_day", "start_time", "end_time", "space_types", "created_at"]
        read_only_fields = ["created_at"]

    def validate(self, attrs):  # type: ignore
        if not attrs.get("is_full_day", True):
            start, end = attrs.get("start_time"), attrs.get("end_time")
            if not (start and end):
                raise serializers.ValidationError("Heures de début et de fin requises.")
            if start >= end:
                raise serializers.ValidationError("L'heure de fin doit suivre l'heure de début.")
        return attrs


class PriceRequestSerializer(serializers.Serializer):
    space_type = serializers.SlugField()
    reservation_type = serializers.ChoiceField(choices=ReservationType.choices)
    start_time = serializers.TimeField(required=False, allow_null=True)
    end_time = serializers.TimeField(required=False, allow_null=True)
    number_of_people = serializers.IntegerField(min_value=1, default=1)
    additional_services = serializers.ListField(child=serializers.DictField(), required=False)
