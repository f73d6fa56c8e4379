"""Accounting API: revenue, cash control, cash float counts, consolidated revenue and the dashboard."""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.exceptions import ValidationError  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsAdminRole, IsStaffRole

from .models import B2BRevenue, CashEntry, CashRegisterCount, DailyTurnover
from .serializers import (
    B2BRevenueSerializer,
    CashCountCreateSerializer,
    CashEntrySerializer,
    CashRegisterCountSerializer,
    DailyTurnoverSerializer,
    DateRangeQuerySerializer,
    MonthQuerySerializer,
)
from .services import (
    AccountingError,
    cash_control_month,
    cash_register_stats,
    consolidated_range,
    dashboard_summary,
    record_cash_count,
)


def accounting_error_response(exc: AccountingError) -> Response:
    return Response(exc.as_dict(), status=exc.status_code)


class DateRangeFilterMixin:
    def filter_dates(self, qs):
        start = self.request.query_params.get("start_date")  # type: ignore
        end = self.request.query_params.get("end_date")  # type: ignore
        if start:
            qs = qs.filter(date__gte=start)
        if end:
            qs = qs.filter(date__lte=end)
        return qs


class DailyTurnoverViewSet(DateRangeFilterMixin, viewsets.ModelViewSet):
    serializer_class = DailyTurnoverSerializer
    permission_classes = [IsAdminRole]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        return self.filter_dates(DailyTurnover.objects.all())


class B2BRevenueViewSet(DateRangeFilterMixin, viewsets.ModelViewSet):
    serializer_class = B2BRevenueSerializer
    permission_classes = [IsAdminRole]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        return self.filter_dates(B2BRevenue.objects.all())


class CashEntryViewSet(DateRangeFilterMixin, viewsets.ModelViewSet):
    """Feuilles de contrôle de caisse et vue mensuelle croisée avec le chiffre d'affaires."""

    serializer_class = CashEntrySerializer
    permission_classes = [IsAdminRole]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        return self.filter_dates(CashEntry.objects.select_related("created_by"))

    def perform_create(self, serializer):  # type: ignore
        serializer.save(created_by=self.request.user)

    @action(detail=False, methods=["get"])
    def control(self, request):
        query = MonthQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return Response(cash_control_month(query.validated_data["year"], query.validated_data["month"]))


class CashRegisterCountViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Comptages du fond de caisse.

    L'équipe compte et consulte ; seul un administrateur supprime un
    comptage.
    """

    serializer_class = CashRegisterCountSerializer

    def get_permissions(self):  # type: ignore
        if self.action == "destroy":
            return [IsAdminRole()]
        return [IsStaffRole()]

    def get_queryset(self):  # type: ignore
        qs = CashRegisterCount.objects.select_related("counted_by")
        day = self.request.query_params.get("date")
        month = self.request.query_params.get("month")
        if day:
            qs = qs.filter(date=day)
        if month:
            try:
                year, month_number = (int(part) for part in month.split("-"))
            except ValueError as exc:
                raise ValidationError({"month": "Format attendu : AAAA-MM."}) from exc
            qs = qs.filter(date__year=year, date__month=month_number)
        return qs

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = CashCountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            count = record_cash_count(
                day=data.get("date") or timezone.localdate(),
                user=request.user,
                amount=data.get("amount"),
                count_details=data.get("count_details"),
                notes=data["notes"],
                confirm_discrepancy=data["confirm_discrepancy"],
            )
        except AccountingError as exc:
            return accounting_error_response(exc)
        return Response(CashRegisterCountSerializer(count).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def stats(self, request):
        return Response(cash_register_stats())


class ConsolidatedRangeView(APIView):
    """Chiffre d'affaires consolidé (caisse + B2B) sur une période."""

    permission_classes = [IsStaffRole]

    def get(self, request):  # type: ignore
        query = DateRangeQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        try:
            data = consolidated_range(query.validated_data["start_date"], query.validated_data["end_date"])
        except AccountingError as exc:
            return accounting_error_response(exc)
        return Response(data)


class DashboardView(APIView):
    permission_classes = [IsStaffRole]

    def get(self, request):  # type: ignore
        return Response(dashboard_summary())
