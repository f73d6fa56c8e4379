from __future__ import annotations

from decimal import Decimal, InvalidOperation

from rest_framework import serializers  # type: ignore

from .models import B2BRevenue, CashEntry, CashRegisterCount, DailyTurnover


def _decimal(value, field: str) -> Decimal:
    try:
        return Decimal(str(value)).quantize(Decimal("0.01"))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise serializers.ValidationError(f"{field} : montant invalide.") from exc


def clean_lines(lines: list) -> list[dict]:
    """``[{"label", "value"}]`` with the value stored as a string of cents precision."""
    cleaned = []
    for line in lines:
        label = str(line.get("label") or "").strip()
        if not label:
            raise serializers.ValidationError("Chaque ligne doit avoir un libellé.")
        cleaned.append({"label": label, "value": str(_decimal(line.get("value"), label))})
    return cleaned


class RevenueSerializer(serializers.ModelSerializer):
    class Meta:
        fields = ["id", "date", "ht", "ttc", "tva", "created_at", "updated_at"]
        read_only_fields = ["tva", "created_at", "updated_at"]

    def validate(self, attrs: dict) -> dict:
        ht = attrs.get("ht", getattr(self.instance, "ht", Decimal("0")))
        ttc = attrs.get("ttc", getattr(self.instance, "ttc", Decimal("0")))
        if ht > ttc:
            raise serializers.ValidationError({"ht": "Le montant HT ne peut pas dépasser le montant TTC."})
        return attrs


class DailyTurnoverSerializer(RevenueSerializer):
    class Meta(RevenueSerializer.Meta):
        model = DailyTurnover


class B2BRevenueSerializer(RevenueSerializer):
    class Meta(RevenueSerializer.Meta):
        model = B2BRevenue
        fields = RevenueSerializer.Meta.fields + ["notes"]


class CashEntrySerializer(serializers.ModelSerializer):
    b2b_services = serializers.ListField(child=serializers.DictField(), required=False)
    expenses = serializers.ListField(child=serializers.DictField(), required=False)
    total_b2b = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    total_expenses = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    net_revenue = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    total_collected = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = CashEntry
        fields = [
            "id",
            "date",
            "b2b_services",
            "expenses",
            "bank_transfer",
            "cash",
            "card",
            "contactless",
            "notes",
            "total_b2b",
            "total_expenses",
            "net_revenue",
            "total_collected",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_by", "created_at", "updated_at"]

    def validate_b2b_services(self, value: list) -> list[dict]:
        return clean_lines(value)

    def validate_expenses(self, value: list) -> list[dict]:
        return clean_lines(value)


class CashRegisterCountSerializer(serializers.ModelSerializer):
    class Meta:
        model = CashRegisterCount
        fields = [
            "id",
            "date",
            "amount",
            "count_details",
            "counted_by",
            "counted_by_name",
            "difference",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class CashCountCreateSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False)
    count_details = serializers.DictField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    confirm_discrepancy = serializers.BooleanField(default=False)

    def validate_count_details(self, value: dict) -> dict:
        details = {}
        for kind in ("bills", "coins"):
            lines = []
            for line in value.get(kind) or []:
                if not isinstance(line, dict):
                    raise serializers.ValidationError("Ligne de comptage invalide.")
                try:
                    quantity = int(line.get("quantity", 0))
                except (TypeError, ValueError) as exc:
                    raise serializers.ValidationError("Quantité invalide.") from exc
                unit = _decimal(line.get("value"), kind)
                if quantity < 0 or unit <= 0:
                    raise serializers.ValidationError("Valeurs et quantités doivent être positives.")
                lines.append({"value": str(unit), "quantity": quantity})
            details[kind] = lines
        return details


class DateRangeQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()


class MonthQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2000, max_value=2100)
    month = serializers.IntegerField(min_value=1, max_value=12)
