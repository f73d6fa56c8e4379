"""Promo API: public code display and funnel tracking, admin management."""

from __future__ import annotations

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsAdminRole

from .models import PromoCode
from .serializers import (
    ApplyDiscountSerializer,
    PromoCodeSerializer,
    PromoEventSerializer,
    PublicPromoSerializer,
)
from .services import (
    PromoError,
    apply_discount,
    create_promo,
    get_current_promo,
    get_promo_by_token,
    promo_history,
    promo_stats,
    record_event,
)


def promo_error_response(exc: PromoError) -> Response:
    return Response({"detail": str(exc), "code": exc.code}, status=exc.status_code)


class CurrentPromoView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        promo = get_current_promo()
        if promo is None or not promo.is_valid:
            return Response({"detail": "Aucun code promo en cours"}, status=status.HTTP_404_NOT_FOUND)
        return Response(PublicPromoSerializer(promo).data)


class PromoTokenView(APIView):
    """Page ouverte par le QR code ; chaque ouverture compte comme un scan."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, token: str):  # type: ignore
        try:
            promo = get_promo_by_token(token, session_id=request.query_params.get("session_id", "")[:64])
        except PromoError as exc:
            return promo_error_response(exc)
        return Response(PublicPromoSerializer(promo).data)


class PromoEventView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request, token: str):  # type: ignore
        promo = PromoCode.objects.filter(token=token, is_active=True).first()
        if promo is None:
            return Response({"detail": "Code promo introuvable"}, status=status.HTTP_404_NOT_FOUND)
        serializer = PromoEventSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record_event(promo, serializer.validated_data["event_type"], session_id=serializer.validated_data["session_id"])
        return Response({"recorded": True}, status=status.HTTP_201_CREATED)


class ApplyDiscountView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = ApplyDiscountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        promo = get_current_promo()
        if promo is None or promo.code != serializer.validated_data["code"].strip().upper():
            return Response(
                {"detail": "Code promo inconnu", "code": "PROMO_NOT_FOUND"}, status=status.HTTP_404_NOT_FOUND
            )
        try:
            result = apply_discount(promo, serializer.validated_data["amount"])
        except PromoError as exc:
            return promo_error_response(exc)
        return Response(
            {
                "code": promo.code,
                "discount_type": promo.discount_type,
                "original_amount": str(result.original),
                "discount": str(result.discount),
                "final_amount": str(result.final),
            }
        )


class PromoAdminViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = PromoCodeSerializer
    permission_classes = [IsAdminRole]
    queryset = PromoCode.objects.all()

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        promo = create_promo(dict(serializer.validated_data), created_by=request.user)
        return Response(PromoCodeSerializer(promo).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def history(self, request):  # type: ignore
        return Response(PromoCodeSerializer(promo_history(), many=True).data)

    @action(detail=True, methods=["get"])
    def stats(self, request, pk=None):  # type: ignore
        return Response(promo_stats(self.get_object()))
