from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import WEEKDAYS, Availability, Employee, RecurringTask, Shift, Task, TimeEntry, Unavailability
from .services import HRError, check_shift_overlap


class EmployeeSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    employment_status = serializers.CharField(read_only=True)
    onboarding_progress = serializers.IntegerField(read_only=True)
    has_pin = serializers.BooleanField(read_only=True)
    masked_iban = serializers.CharField(read_only=True)
    masked_social_security_number = serializers.CharField(read_only=True)
    social_security_number = serializers.CharField(write_only=True, required=False, allow_blank=True)
    iban = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = Employee
        fields = [
            "id",
            "user",
            "first_name",
            "last_name",
            "full_name",
            "date_of_birth",
            "place_of_birth",
            "street",
            "postal_code",
            "city",
            "phone",
            "email",
            "social_security_number",
            "masked_social_security_number",
            "contract_type",
            "contractual_hours",
            "hire_date",
            "hire_time",
            "end_date",
            "end_contract_reason",
            "level",
            "step",
            "hourly_rate",
            "monthly_salary",
            "employee_role",
            "availability",
            "onboarding_status",
            "onboarding_progress",
            "work_schedule",
            "iban",
            "masked_iban",
            "bic",
            "bank_name",
            "color",
            "has_pin",
            "is_active",
            "is_draft",
            "employment_status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["user", "created_at", "updated_at"]

    def validate_social_security_number(self, value: str) -> str:
        value = value.replace(" ", "")
        if value and (not value.isdigit() or len(value) != 15):
            raise serializers.ValidationError("Le numéro de sécurité sociale doit contenir 15 chiffres.")
        return value

    def validate_iban(self, value: str) -> str:
        return value.replace(" ", "").upper()

    def validate_availability(self, value: dict) -> dict:
        if not isinstance(value, dict):
            raise serializers.ValidationError("Format de disponibilité invalide.")
        unknown = set(value) - set(WEEKDAYS)
        if unknown:
            raise serializers.ValidationError(f"Jours inconnus : {', '.join(sorted(unknown))}")
        for day, config in value.items():
            for slot in config.get("slots", []):
                if not slot.get("start") or not slot.get("end") or slot["start"] >= slot["end"]:
                    raise serializers.ValidationError(f"Créneau invalide pour {day}.")
        return value

    def validate(self, attrs: dict) -> dict:
        hire_date = attrs.get("hire_date", getattr(self.instance, "hire_date", None))
        end_date = attrs.get("end_date", getattr(self.instance, "end_date", None))
        contract_type = attrs.get("contract_type", getattr(self.instance, "contract_type", None))
        is_draft = attrs.get("is_draft", getattr(self.instance, "is_draft", False))
        if hire_date and end_date and end_date < hire_date:
            raise serializers.ValidationError({"end_date": "La date de fin précède la date d'embauche."})
        fixed_term = contract_type in (Employee.ContractType.CDD, Employee.ContractType.STAGE)
        if fixed_term and not end_date and not is_draft:
            raise serializers.ValidationError({"end_date": "Une date de fin est requise pour ce contrat."})
        return attrs


class EmployeeWithAccountSerializer(EmployeeSerializer):
    email = serializers.EmailField()
    pin = serializers.RegexField(r"^\d{4}$", write_only=True, required=False)

    class Meta(EmployeeSerializer.Meta):
        fields = EmployeeSerializer.Meta.fields + ["pin"]


class KioskEmployeeSerializer(serializers.ModelSerializer):
    """Minimal listing shown on the clocking tablet."""

    class Meta:
        model = Employee
        fields = ["id", "first_name", "last_name", "color"]


class SetPinSerializer(serializers.Serializer):
    pin = serializers.RegexField(r"^\d{4}$", error_messages={"invalid": "Le PIN doit être composé de 4 chiffres."})


class EndContractSerializer(serializers.Serializer):
    end_date = serializers.DateField()
    reason = serializers.ChoiceField(choices=Employee.EndContractReason.choices)


class ClockInSerializer(serializers.Serializer):
    employee_id = serializers.IntegerField(required=False)
    pin = serializers.CharField(required=False, allow_blank=True)
    justification = serializers.CharField(required=False, allow_blank=True, default="")


class ClockOutSerializer(ClockInSerializer):
    time_entry_id = serializers.IntegerField(required=False)


class TimeEntrySerializer(serializers.ModelSerializer):
    employee_name = serializers.CharField(source="employee.full_name", read_only=True)

    class Meta:
        model = TimeEntry
        fields = [
            "id",
            "employee",
            "employee_name",
            "date",
            "clock_in",
            "clock_out",
            "shift_number",
            "total_hours",
            "status",
            "is_out_of_schedule",
            "justification_note",
            "justification_read",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "employee",
            "date",
            "shift_number",
            "total_hours",
            "status",
            "is_out_of_schedule",
            "justification_read",
            "created_at",
            "updated_at",
        ]


class ShiftSerializer(serializers.ModelSerializer):
    employee_name = serializers.CharField(source="employee.full_name", read_only=True)

    class Meta:
        model = Shift
        fields = [
            "id",
            "employee",
            "employee_name",
            "date",
            "start_time",
            "end_time",
            "shift_type",
            "notes",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate(self, attrs: dict) -> dict:
        instance = self.instance
        employee = attrs.get("employee", getattr(instance, "employee", None))
        day = attrs.get("date", getattr(instance, "date", None))
        start = attrs.get("start_time", getattr(instance, "start_time", None))
        end = attrs.get("end_time", getattr(instance, "end_time", None))
        if attrs.get("is_active", getattr(instance, "is_active", True)):
            try:
                check_shift_overlap(employee, day, start, end, exclude_id=getattr(instance, "pk", None))
            except HRError as exc:
                raise serializers.ValidationError({"detail": exc.message, "code": exc.code}) from exc
        return attrs


class UnavailabilitySerializer(serializers.ModelSerializer):
    employee_name = serializers.CharField(source="employee.full_name", read_only=True)

    class Meta:
        model = Unavailability
        fields = [
            "id",
            "employee",
            "employee_name",
            "start_date",
            "end_date",
            "reason",
            "unavailability_type",
            "status",
            "reviewed_by",
            "reviewed_at",
            "rejection_reason",
            "created_at",
        ]
        read_only_fields = ["status", "reviewed_by", "reviewed_at", "rejection_reason", "created_at"]
        extra_kwargs = {"employee": {"required": False}}

    def validate(self, attrs: dict) -> dict:
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "La date de fin précède la date de début."})
        return attrs


class RejectUnavailabilitySerializer(serializers.Serializer):
    reason = serializers.CharField()


class MonthlyReportQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=2000, max_value=2100)
    month = serializers.IntegerField(min_value=1, max_value=12)


class AvailabilitySerializer(serializers.ModelSerializer):
    employee_name = serializers.CharField(source="employee.full_name", read_only=True)
    day_name = serializers.CharField(source="get_day_of_week_display", read_only=True)

    class Meta:
        model = Availability
        fields = [
            "id",
            "employee",
            "employee_name",
            "day_of_week",
            "day_name",
            "start_time",
            "end_time",
            "is_recurring",
            "effective_from",
            "effective_until",
            "notes",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate(self, attrs: dict) -> dict:
        start = attrs.get("start_time", getattr(self.instance, "start_time", None))
        end = attrs.get("end_time", getattr(self.instance, "end_time", None))
        if start and end and end <= start:
            raise serializers.ValidationError({"end_time": "L'heure de fin doit être après l'heure de début."})
        since = attrs.get("effective_from", getattr(self.instance, "effective_from", None))
        until = attrs.get("effective_until", getattr(self.instance, "effective_until", None))
        if since and until and until < since:
            raise serializers.ValidationError({"effective_until": "La date de fin précède la date de début."})
        return attrs


class TaskSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source="created_by.display_name", read_only=True, default=None)
    completed_by_name = serializers.CharField(source="completed_by.display_name", read_only=True, default=None)

    class Meta:
        model = Task
        fields = [
            "id",
            "title",
            "description",
            "priority",
            "status",
            "due_date",
            "recurring_task",
            "created_by",
            "created_by_name",
            "completed_by",
            "completed_by_name",
            "completed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "status",
            "recurring_task",
            "created_by",
            "completed_by",
            "completed_at",
            "created_at",
            "updated_at",
        ]


class RecurringTaskSerializer(serializers.ModelSerializer):
    recurrence_days = serializers.ListField(child=serializers.IntegerField(min_value=0, max_value=31), allow_empty=False)

    class Meta:
        model = RecurringTask
        fields = [
            "id",
            "title",
            "description",
            "priority",
            "recurrence_type",
            "recurrence_days",
            "is_active",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_by", "created_at", "updated_at"]

    def validate(self, attrs: dict) -> dict:
        recurrence = attrs.get("recurrence_type", getattr(self.instance, "recurrence_type", RecurringTask.Recurrence.WEEKLY))
        days = attrs.get("recurrence_days", getattr(self.instance, "recurrence_days", []))
        low, high = (0, 6) if recurrence == RecurringTask.Recurrence.WEEKLY else (1, 31)
        if any(day < low or day > high for day in days):
            raise serializers.ValidationError({"recurrence_days": f"Les jours doivent être compris entre {low} et {high}."})
        if "recurrence_days" in attrs:
            attrs["recurrence_days"] = sorted(set(days))
        return attrs
