"""API views for the booking domain."""

from __future__ import annotations

import hmac
import logging

from django.conf import settings  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.payments.stripe_service import PaymentGatewayError
from apps.users.permissions import IsAdminRole, IsOwnerOrStaff, IsStaffRole

from .filters import ReservationFilter
from .models import Reservation
from .serializers import (
    AdminReservationSerializer,
    AdminReservationUpdateSerializer,
    CancelReservationSerializer,
    ReservationRequestSerializer,
    ReservationSerializer,
)
from .services import (
    BookingError,
    admin_reject_reservation,
    admin_update_reservation,
    cancel_reservation,
    create_reservation,
    preview_cancellation_fees,
)
from .tasks import CRON_JOBS

logger = logging.getLogger(__name__)

REQUEST_ONLY_FIELDS = ("space", "user", "requires_payment", "first_name", "last_name", "newsletter")


def booking_error_response(exc: Exception) -> Response:
    if isinstance(exc, PaymentGatewayError):
        return Response(
            {"detail": "Erreur du service de paiement.", "error": str(exc), "code": exc.code},
            status=status.HTTP_502_BAD_GATEWAY,
        )
    return Response({"detail": str(exc)}, status=getattr(exc, "status_code", status.HTTP_400_BAD_REQUEST))


def _create_from_request(request, *, on_behalf: bool) -> Response:
    serializer = ReservationRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = dict(serializer.validated_data)
    space = data["space"]
    user = data.get("user") if on_behalf else request.user
    requires_payment = data.get("requires_payment", True) if on_behalf else True
    for key in REQUEST_ONLY_FIELDS:
        data.pop(key, None)

    try:
        reservation = create_reservation(
            space=space,
            user=user,
            data=data,
            requires_payment=requires_payment,
        )
    except BookingError as exc:
        return booking_error_response(exc)

    output = AdminReservationSerializer if on_behalf else ReservationSerializer
    return Response(output(reservation).data, status=status.HTTP_201_CREATED)


class ReservationViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Réservations du client connecté."""

    serializer_class = ReservationSerializer
    permission_classes = [permissions.IsAuthenticated, IsOwnerOrStaff]
    filterset_fields = ["status"]

    def get_queryset(self):  # type: ignore
        return Reservation.objects.filter(user=self.request.user).select_related("space", "user")

    def create(self, request, *args, **kwargs):  # type: ignore
        return _create_from_request(request, on_behalf=False)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        reservation: Reservation = self.get_object()  # type: ignore
        serializer = CancelReservationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            quote = cancel_reservation(
                reservation, by_user=request.user, reason=serializer.validated_data["reason"]
            )
        except (BookingError, PaymentGatewayError) as exc:
            return booking_error_response(exc)
        return Response(
            {"reservation": ReservationSerializer(reservation).data, "cancellation": quote.as_dict()}
        )

    @action(detail=True, methods=["get"], url_path="cancellation-fees")
    def cancellation_fees(self, request, pk=None):  # type: ignore
        reservation: Reservation = self.get_object()  # type: ignore
        if not reservation.is_active:
            return Response(
                {"detail": "Cette réservation ne peut plus être annulée."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return Response(preview_cancellation_fees(reservation).as_dict())


class AdminReservationViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Gestion des réservations par l'équipe."""

    serializer_class = AdminReservationSerializer
    permission_classes = [IsStaffRole]
    filterset_class = ReservationFilter
    queryset = Reservation.objects.select_related("space", "user").all()
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):  # type: ignore
        if self.action in ("create", "destroy"):
            return [IsAdminRole()]
        return super().get_permissions()

    def create(self, request, *args, **kwargs):  # type: ignore
        return _create_from_request(request, on_behalf=True)

    def partial_update(self, request, *args, **kwargs):  # type: ignore
        reservation: Reservation = self.get_object()  # type: ignore
        serializer = AdminReservationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            reservation = admin_update_reservation(reservation, by_user=request.user, **serializer.validated_data)
        except (BookingError, PaymentGatewayError) as exc:
            return booking_error_response(exc)
        return Response(AdminReservationSerializer(reservation).data)

    def update(self, request, *args, **kwargs):  # type: ignore
        return self.partial_update(request, *args, **kwargs)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        reservation: Reservation = self.get_object()  # type: ignore
        was_pending = reservation.status == Reservation.Status.PENDING
        reason = request.data.get("reason", "") if hasattr(request.data, "get") else ""
        try:
            admin_reject_reservation(reservation, by_user=request.user, reason=reason)
        except (BookingError, PaymentGatewayError) as exc:
            return booking_error_response(exc)
        return Response(
            {
                "detail": "Réservation refusée." if was_pending else "Réservation annulée.",
                "reservation": AdminReservationSerializer(reservation).data,
            }
        )


class CronView(APIView):
    """Runs a scheduled job on demand: ``Authorization: Bearer <CRON_SECRET>``."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def _authorized(self, request) -> bool:
        secret = settings.CRON_SECRET
        header = request.headers.get("Authorization", "")
        return bool(secret) and hmac.compare_digest(header, f"Bearer {secret}")

    def get(self, request, job: str):  # type: ignore
        if not self._authorized(request):
            logger.warning(f"Unauthorized cron attempt on {job} from {request.META.get('REMOTE_ADDR')}")
            return Response({"detail": "Unauthorized"}, status=status.HTTP_401_UNAUTHORIZED)

        task = CRON_JOBS.get(job)
        if task is None:
            return Response({"detail": "Unknown job"}, status=status.HTTP_404_NOT_FOUND)

        logger.info(f"Cron job {job} triggered over HTTP")
        try:
            result = task()
        except Exception as e:
            logger.error(f"Cron job {job} failed: {e}", exc_info=True)
            return Response({"success": False, "error": str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response({"success": True, "job": job, "data": result})

    def post(self, request, job: str):  # type: ignore
        return self.get(request, job)
