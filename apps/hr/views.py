"""HR API: employees, planning, clocking kiosk, absence requests, availabilities and tasks."""

from __future__ import annotations

import logging

from django.utils import timezone  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import ValidationError  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsAdminRole, IsStaffRole

from .models import Availability, Employee, RecurringTask, Shift, Task, TimeEntry, Unavailability
from .serializers import (
    AvailabilitySerializer,
    ClockInSerializer,
    ClockOutSerializer,
    EmployeeSerializer,
    EmployeeWithAccountSerializer,
    EndContractSerializer,
    KioskEmployeeSerializer,
    MonthlyReportQuerySerializer,
    RecurringTaskSerializer,
    RejectUnavailabilitySerializer,
    SetPinSerializer,
    ShiftSerializer,
    TaskSerializer,
    TimeEntrySerializer,
    UnavailabilitySerializer,
)
from .services import (
    ClockingError,
    HRError,
    cancel_unavailability,
    check_availability_overlap,
    check_ip_allowed,
    clock_in,
    clock_out,
    create_employee_with_account,
    end_contract,
    generate_recurring_tasks,
    monthly_report,
    publish_draft,
    review_unavailability,
    set_task_status,
    update_time_entry,
)

logger = logging.getLogger(__name__)


def hr_error_response(exc: HRError) -> Response:
    if isinstance(exc, ClockingError):
        return Response(exc.as_dict(), status=exc.status_code)
    return Response({"detail": exc.message, "code": exc.code}, status=exc.status_code)


def get_client_ip(request) -> str | None:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


class EmployeeViewSet(viewsets.ModelViewSet):
    """Dossiers employés, réservés aux administrateurs.

    La suppression est logique : l'employé est désactivé et masqué.
    """

    serializer_class = EmployeeSerializer
    permission_classes = [IsAdminRole]
    filterset_fields = ["contract_type", "employee_role", "is_active"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        qs = Employee.objects.filter(deleted_at__isnull=True)
        if self.action == "list":
            qs = qs.filter(is_draft=False)
        return qs

    def perform_create(self, serializer):  # type: ignore
        employee = serializer.save(created_by=self.request.user)
        logger.info(f"Employee {employee.pk} created by {self.request.user.pk}")

    def perform_destroy(self, instance: Employee):  # type: ignore
        instance.is_active = False
        instance.deleted_at = timezone.now()
        instance.save(update_fields=["is_active", "deleted_at", "updated_at"])

    @action(detail=False, methods=["get"])
    def drafts(self, request):
        drafts = self.get_queryset().filter(is_draft=True)
        return Response(EmployeeSerializer(drafts, many=True).data)

    @action(detail=True, methods=["post"])
    def publish(self, request, pk=None):  # type: ignore
        try:
            employee = publish_draft(self.get_object())
        except HRError as exc:
            return hr_error_response(exc)
        return Response(EmployeeSerializer(employee).data)

    @action(detail=True, methods=["post"], url_path="end-contract")
    def end_contract(self, request, pk=None):  # type: ignore
        serializer = EndContractSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            employee = end_contract(
                self.get_object(),
                end_date=serializer.validated_data["end_date"],
                reason=serializer.validated_data["reason"],
            )
        except HRError as exc:
            return hr_error_response(exc)
        return Response(EmployeeSerializer(employee).data)

    @action(detail=True, methods=["post"], url_path="set-pin")
    def set_pin(self, request, pk=None):  # type: ignore
        serializer = SetPinSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        employee: Employee = self.get_object()  # type: ignore
        employee.set_pin(serializer.validated_data["pin"])
        employee.save(update_fields=["pin_hash", "updated_at"])
        return Response({"detail": "PIN mis à jour."})

    @action(detail=False, methods=["post"], url_path="with-account")
    def create_with_account(self, request):
        serializer = EmployeeWithAccountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            employee = create_employee_with_account(dict(serializer.validated_data), created_by=request.user)
        except HRError as exc:
            return hr_error_response(exc)
        return Response(EmployeeSerializer(employee).data, status=status.HTTP_201_CREATED)


class KioskEmployeeListView(APIView):
    """Active employees shown on the clocking tablet, filtered by the IP whitelist."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        try:
            check_ip_allowed(get_client_ip(request))
        except ClockingError as exc:
            return hr_error_response(exc)
        employees = Employee.objects.filter(is_active=True, is_draft=False, deleted_at__isnull=True)
        return Response(KioskEmployeeSerializer(employees, many=True).data)


class ClockInView(APIView):
    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = ClockInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            result = clock_in(
                data.get("employee_id"),
                data.get("pin"),
                ip=get_client_ip(request),
                justification=data.get("justification", ""),
            )
        except ClockingError as exc:
            return hr_error_response(exc)
        return Response(
            {"success": True, "message": result.message, "data": TimeEntrySerializer(result.entry).data},
            status=status.HTTP_201_CREATED,
        )


class ClockOutView(APIView):
    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = ClockOutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            result = clock_out(
                data.get("employee_id"),
                ip=get_client_ip(request),
                pin=data.get("pin") or None,
                time_entry_id=data.get("time_entry_id"),
                justification=data.get("justification", ""),
            )
        except ClockingError as exc:
            return hr_error_response(exc)
        return Response({"success": True, "message": result.message, "data": TimeEntrySerializer(result.entry).data})


class TimeEntryViewSet(viewsets.ModelViewSet):
    serializer_class = TimeEntrySerializer
    permission_classes = [IsAdminRole]
    filterset_fields = ["employee", "date", "status", "is_out_of_schedule", "justification_read"]
    http_method_names = ["get", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        qs = TimeEntry.objects.filter(is_active=True).select_related("employee")
        start = self.request.query_params.get("start_date")
        end = self.request.query_params.get("end_date")
        if start:
            qs = qs.filter(date__gte=start)
        if end:
            qs = qs.filter(date__lte=end)
        return qs

    def perform_update(self, serializer):  # type: ignore
        update_time_entry(serializer.instance, dict(serializer.validated_data))

    def perform_destroy(self, instance: TimeEntry):  # type: ignore
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])

    @action(detail=True, methods=["post"], url_path="mark-justification-read")
    def mark_justification_read(self, request, pk=None):  # type: ignore
        entry: TimeEntry = self.get_object()  # type: ignore
        entry.justification_read = True
        entry.save(update_fields=["justification_read", "updated_at"])
        return Response(TimeEntrySerializer(entry).data)

    @action(detail=False, methods=["get"])
    def report(self, request):
        query = MonthlyReportQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(monthly_report(query.validated_data["year"], query.validated_data["month"]))


class ShiftViewSet(viewsets.ModelViewSet):
    """Planning. Lecture pour l'équipe, écriture pour les administrateurs."""

    serializer_class = ShiftSerializer
    filterset_fields = ["employee", "date", "shift_type", "is_active"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):  # type: ignore
        if self.action in ("list", "retrieve"):
            return [IsStaffRole()]
        return [IsAdminRole()]

    def get_queryset(self):  # type: ignore
        qs = Shift.objects.select_related("employee")
        start = self.request.query_params.get("start_date")
        end = self.request.query_params.get("end_date")
        if start:
            qs = qs.filter(date__gte=start)
        if end:
            qs = qs.filter(date__lte=end)
        return qs


class UnavailabilityViewSet(viewsets.ModelViewSet):
    """Demandes d'absence.

    Un membre de l'équipe crée et consulte ses propres demandes ; les
    administrateurs voient tout et tranchent.
    """

    serializer_class = UnavailabilitySerializer
    permission_classes = [IsStaffRole]
    filterset_fields = ["employee", "status", "unavailability_type"]
    http_method_names = ["get", "post", "delete", "head", "options"]

    def get_permissions(self):  # type: ignore
        if self.action in ("approve", "reject", "destroy"):
            return [IsAdminRole()]
        return super().get_permissions()

    def get_queryset(self):  # type: ignore
        qs = Unavailability.objects.select_related("employee")
        user = self.request.user
        if not user.is_admin_member():
            qs = qs.filter(employee__user=user)
        return qs

    def perform_create(self, serializer):  # type: ignore
        user = self.request.user
        if user.is_admin_member() and serializer.validated_data.get("employee"):
            serializer.save()
            return
        employee = Employee.objects.filter(user=user, deleted_at__isnull=True).first()
        if employee is None:
            raise ValidationError({"employee": "Aucun dossier employé n'est lié à ce compte."})
        serializer.save(employee=employee)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        try:
            unavailability = review_unavailability(self.get_object(), approve=True, reviewer=request.user)
        except HRError as exc:
            return hr_error_response(exc)
        return Response(UnavailabilitySerializer(unavailability).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        serializer = RejectUnavailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            unavailability = review_unavailability(
                self.get_object(),
                approve=False,
                reviewer=request.user,
                rejection_reason=serializer.validated_data["reason"],
            )
        except HRError as exc:
            return hr_error_response(exc)
        return Response(UnavailabilitySerializer(unavailability).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        try:
            unavailability = cancel_unavailability(self.get_object())
        except HRError as exc:
            return hr_error_response(exc)
        return Response(UnavailabilitySerializer(unavailability).data)


class AvailabilityViewSet(viewsets.ModelViewSet):
    """Disponibilités hebdomadaires. Lecture pour l'équipe, écriture pour les administrateurs."""

    serializer_class = AvailabilitySerializer
    filterset_fields = ["employee", "day_of_week", "is_active", "is_recurring"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):  # type: ignore
        if self.action in ("list", "retrieve"):
            return [IsStaffRole()]
        return [IsAdminRole()]

    def get_queryset(self):  # type: ignore
        return Availability.objects.select_related("employee")

    def create(self, request, *args, **kwargs):  # type: ignore
        try:
            return super().create(request, *args, **kwargs)
        except HRError as exc:
            return hr_error_response(exc)

    def update(self, request, *args, **kwargs):  # type: ignore
        try:
            return super().update(request, *args, **kwargs)
        except HRError as exc:
            return hr_error_response(exc)

    def _check_overlap(self, serializer) -> None:
        instance = serializer.instance
        data = serializer.validated_data
        if not data.get("is_active", getattr(instance, "is_active", True)):
            return
        check_availability_overlap(
            data.get("employee", getattr(instance, "employee", None)),
            data.get("day_of_week", getattr(instance, "day_of_week", None)),
            data.get("start_time", getattr(instance, "start_time", None)),
            data.get("end_time", getattr(instance, "end_time", None)),
            exclude_id=getattr(instance, "pk", None),
        )

    def perform_create(self, serializer):  # type: ignore
        self._check_overlap(serializer)
        serializer.save()

    def perform_update(self, serializer):  # type: ignore
        self._check_overlap(serializer)
        serializer.save()


class TaskViewSet(viewsets.ModelViewSet):
    """Tâches de l'équipe.

    L'équipe consulte et coche les tâches ; les administrateurs les créent,
    les modifient et les suppriment.
    """

    serializer_class = TaskSerializer
    filterset_fields = ["status", "priority", "due_date", "recurring_task"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):  # type: ignore
        if self.action in ("list", "retrieve", "complete", "reopen"):
            return [IsStaffRole()]
        return [IsAdminRole()]

    def get_queryset(self):  # type: ignore
        qs = Task.objects.select_related("created_by", "completed_by")
        start = self.request.query_params.get("start_date")
        end = self.request.query_params.get("end_date")
        if start:
            qs = qs.filter(due_date__gte=start)
        if end:
            qs = qs.filter(due_date__lte=end)
        return qs

    def perform_create(self, serializer):  # type: ignore
        serializer.save(created_by=self.request.user)

    def _set_status(self, request, status_value: str) -> Response:
        try:
            task = set_task_status(self.get_object(), status_value, request.user)
        except HRError as exc:
            return hr_error_response(exc)
        return Response(TaskSerializer(task).data)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        return self._set_status(request, Task.Status.COMPLETED)

    @action(detail=True, methods=["post"])
    def reopen(self, request, pk=None):  # type: ignore
        return self._set_status(request, Task.Status.PENDING)


class RecurringTaskViewSet(viewsets.ModelViewSet):
    serializer_class = RecurringTaskSerializer
    permission_classes = [IsAdminRole]
    filterset_fields = ["recurrence_type", "is_active"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        return RecurringTask.objects.all()

    def perform_create(self, serializer):  # type: ignore
        template = serializer.save(created_by=self.request.user)
        generate_recurring_tasks(templates=[template])
