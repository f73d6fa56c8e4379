"""Payment API views and the Stripe webhook endpoint."""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse, JsonResponse  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from django.views.decorators.csrf import csrf_exempt  # type: ignore
from django.views.decorators.http import require_POST  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings.models import Reservation
from apps.bookings.serializers import GuestReservationRequestSerializer, ReservationRequestSerializer
from apps.bookings.services import BookingError
from apps.bookings.views import booking_error_response
from apps.users.permissions import IsAdminRole

from . import stripe_service
from .models import Payment
from .serializers import CreateIntentSerializer, PaymentSerializer, RefundSerializer
from .services import (
    create_intent_for_new_reservation,
    create_intent_for_reservation,
    handle_webhook_event,
    refund_payment,
)

logger = logging.getLogger(__name__)


class CreatePaymentIntentView(APIView):
    """Card hold for a new reservation (guests included) or an existing one."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = CreateIntentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user if request.user.is_authenticated else None

        try:
            if serializer.validated_data.get("booking_id"):
                if user is None:
                    return Response({"detail": "Authentification requise."}, status=status.HTTP_401_UNAUTHORIZED)
                reservation = get_object_or_404(Reservation, pk=serializer.validated_data["booking_id"])
                if reservation.user_id != user.pk and not user.is_staff_member():
                    return Response({"detail": "Accès refusé."}, status=status.HTTP_403_FORBIDDEN)
                result = create_intent_for_reservation(reservation, user=user)
            else:
                request_serializer_class = ReservationRequestSerializer if user else GuestReservationRequestSerializer
                reservation_serializer = request_serializer_class(data=serializer.validated_data["reservation_data"])
                reservation_serializer.is_valid(raise_exception=True)
                data = dict(reservation_serializer.validated_data)
                for key in ("user", "requires_payment"):
                    data.pop(key, None)
                result = create_intent_for_new_reservation(data, user=user)
        except (BookingError, stripe_service.PaymentGatewayError) as exc:
            return booking_error_response(exc)

        return Response(result.as_dict(), status=status.HTTP_201_CREATED)


class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    """Payments of the current user; every payment for administrators."""

    serializer_class = PaymentSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "reservation"]

    def get_queryset(self):  # type: ignore
        qs = Payment.objects.select_related("reservation")
        if self.request.user.is_admin_member():
            return qs
        return qs.filter(user=self.request.user)

    @action(detail=True, methods=["post"], permission_classes=[IsAdminRole])
    def refund(self, request, pk=None):  # type: ignore
        payment: Payment = self.get_object()  # type: ignore
        serializer = RefundSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            payment = refund_payment(
                payment,
                amount=serializer.validated_data.get("amount"),
                reason=serializer.validated_data["reason"],
            )
        except (BookingError, stripe_service.PaymentGatewayError) as exc:
            return booking_error_response(exc)
        return Response(PaymentSerializer(payment).data)


@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive Stripe events.

    The signature is verified against ``STRIPE_WEBHOOK_SECRET`` before any
    processing; reservations are created here once a card is authorised.
    """
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        logger.warning("Stripe webhook called without signature")
        return JsonResponse({"error": "Missing signature"}, status=400)

    try:
        event = stripe_service.construct_webhook_event(request.body, signature)
    except stripe_service.PaymentGatewayError as e:
        logger.warning(f"Stripe webhook rejected: {e} ({e.code})")
        return JsonResponse({"error": str(e)}, status=400)

    try:
        handle_webhook_event(event)
    except Exception as e:
        logger.error(f"Error processing Stripe event {stripe_service.field_of(event, 'type')}: {e}", exc_info=True)
        return JsonResponse({"error": "Webhook handler failed"}, status=500)

    return JsonResponse({"received": True}, status=200)
