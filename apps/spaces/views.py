"""API views for spaces, pricing and booking settings."""

from __future__ import annotations

from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsAdminRole, IsAdminRoleOrReadOnly
from .models import AdditionalService, BookingSettings, ExceptionalClosure, SpaceConfiguration
from .serializers import (
    AdditionalServiceSerializer,
    BookingSettingsSerializer,
    ExceptionalClosureSerializer,
    PriceRequestSerializer,
    SpaceConfigurationSerializer,
)
from .services import (
    PricingError,
    calculate_deposit_cents,
    calculate_price,
    calculate_services_price,
    get_cancellation_policy,
)


def _is_admin(user) -> bool:
    return user.is_authenticated and user.is_admin_member()


class SpaceConfigurationViewSet(viewsets.ModelViewSet):
    """Espaces réservables. Lecture publique, écriture administrateur."""

    serializer_class = SpaceConfigurationSerializer
    permission_classes = [IsAdminRoleOrReadOnly]
    lookup_field = "space_type"
    filterset_fields = ["is_active", "is_exclusive"]

    def get_queryset(self):  # type: ignore
        qs = SpaceConfiguration.objects.filter(is_deleted=False).prefetch_related("tiers")
        if not _is_admin(self.request.user):
            qs = qs.filter(is_active=True)
        return qs

    def perform_destroy(self, instance):  # type: ignore
        instance.is_deleted = True
        instance.is_active = False
        instance.save(update_fields=["is_deleted", "is_active"])

    @action(detail=True, methods=["get"], permission_classes=[permissions.AllowAny], url_path="cancellation-policy")
    def cancellation_policy(self, request, space_type=None):
        space = self.get_object()
        return Response({"space_type": space.space_type, "tiers": get_cancellation_policy(space.space_type)})


class AdditionalServiceViewSet(viewsets.ModelViewSet):
    serializer_class = AdditionalServiceSerializer
    permission_classes = [IsAdminRoleOrReadOnly]

    def get_queryset(self):  # type: ignore
        qs = AdditionalService.objects.all()
        if not _is_admin(self.request.user):
            qs = qs.filter(is_active=True)
        return qs

    def list(self, request, *args, **kwargs):  # type: ignore
        services = self.filter_queryset(self.get_queryset())
        space_type = request.query_params.get("space_type")
        if space_type:
            services = [service for service in services if service.applies_to(space_type)]
        return Response(self.get_serializer(services, many=True).data)


class ExceptionalClosureViewSet(viewsets.ModelViewSet):
    serializer_class = ExceptionalClosureSerializer
    permission_classes = [IsAdminRoleOrReadOnly]
    queryset = ExceptionalClosure.objects.all()

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        date_from = self.request.query_params.get("from")
        date_to = self.request.query_params.get("to")
        if date_from:
            qs = qs.filter(date__gte=date_from)
        if date_to:
            qs = qs.filter(date__lte=date_to)
        return qs


class BookingSettingsView(APIView):
    """GET public (politiques d'annulation affichées), PUT/PATCH administrateur."""

    def get_permissions(self):  # type: ignore
        if self.request.method == "GET":
            return [permissions.AllowAny()]
        return [IsAdminRole()]

    def get(self, request):  # type: ignore
        data = BookingSettingsSerializer(BookingSettings.load()).data
        data["open_space_cancellation_policy"] = get_cancellation_policy("open-space")
        data["meeting_room_cancellation_policy"] = get_cancellation_policy("meeting-room")
        return Response(data)

    def put(self, request):  # type: ignore
        return self._update(request, partial=False)

    def patch(self, request):  # type: ignore
        return self._update(request, partial=True)

    def _update(self, request, *, partial: bool):  # type: ignore
        serializer = BookingSettingsSerializer(BookingSettings.load(), data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class CalculatePriceView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = PriceRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        space = SpaceConfiguration.objects.filter(
            space_type=data["space_type"], is_active=True, is_deleted=False
        ).first()
        if space is None:
            return Response({"detail": "Espace introuvable ou inactif."}, status=status.HTTP_404_NOT_FOUND)

        try:
            quote = calculate_price(
                space,
                data["reservation_type"],
                number_of_people=data["number_of_people"],
                start_time=data.get("start_time"),
                end_time=data.get("end_time"),
            )
            services = calculate_services_price(
                space, data.get("additional_services") or [], data["number_of_people"]
            )
        except (PricingError, KeyError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        total = quote.total_price + services.total
        payload = quote.as_dict()
        payload.update(
            {
                "space_type": space.space_type,
                "reservation_type": data["reservation_type"],
                "services_price": str(services.total),
                "services": services.lines,
                "grand_total": str(total),
                "deposit_amount_cents": calculate_deposit_cents(space, total),
            }
        )
        return Response(payload)
