"""User API views."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .models import CustomUser, NewsletterSubscription
from .permissions import IsAdminRole
from .serializers import (
    ChangePasswordSerializer,
    NewsletterSubscriptionSerializer,
    ProfileUpdateSerializer,
    RoleUpdateSerializer,
    UserSerializer,
)
from .services import subscribe_to_newsletter, unsubscribe_from_newsletter

User = get_user_model()


class UserViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Gestion des comptes.

    - `me` : profil courant (GET/PATCH/DELETE)
    - `change_password` : changement de mot de passe
    - liste, détail et `set_role` réservés aux administrateurs
    """

    serializer_class = UserSerializer
    queryset = User.objects.filter(deleted_at__isnull=True)
    filterset_fields = ["role", "is_active", "newsletter"]

    def get_permissions(self):  # type: ignore
        if self.action in {"me", "change_password"}:
            return [permissions.IsAuthenticated()]
        return [IsAdminRole()]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        search = self.request.query_params.get("search")
        if search:
            qs = qs.filter(
                Q(email__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(company_name__icontains=search)
            )
        return qs

    @action(detail=False, methods=["get", "patch", "delete"])
    def me(self, request):
        user: CustomUser = request.user
        if request.method == "GET":
            return Response(UserSerializer(user).data)

        if request.method == "DELETE":
            with transaction.atomic():
                if user.newsletter:
                    unsubscribe_from_newsletter(user.email)
                user.anonymize()
            return Response(status=status.HTTP_204_NO_CONTENT)

        serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        with transaction.atomic():
            serializer.save()
            if "newsletter" in serializer.validated_data:
                if user.newsletter:
                    subscribe_to_newsletter(user.email, user=user, source="account")
                else:
                    unsubscribe_from_newsletter(user.email)
        return Response(UserSerializer(user).data)

    @action(detail=False, methods=["post"], url_path="change-password")
    def change_password(self, request):
        serializer = ChangePasswordSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        request.user.set_password(serializer.validated_data["new_password"])
        request.user.save(update_fields=["password"])
        return Response({"detail": "Mot de passe mis à jour."})

    @action(detail=True, methods=["post"], url_path="set-role")
    def set_role(self, request, pk=None):
        target: CustomUser = self.get_object()
        if target.role_level > request.user.role_level:
            return Response(
                {"detail": "Vous ne pouvez pas modifier ce compte."},
                status=status.HTTP_403_FORBIDDEN,
            )
        serializer = RoleUpdateSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        target.role = serializer.validated_data["role"]
        target.save(update_fields=["role"])
        return Response(UserSerializer(target).data)


class NewsletterView(APIView):
    """Inscription publique à la newsletter et désinscription."""

    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = NewsletterSubscriptionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"].lower()
        with transaction.atomic():
            user = User.objects.filter(email__iexact=email).first()
            if user is None:
                # Placeholder account, upgraded when the visitor books or registers
                user = User.objects.create_user(email=email, password=None, is_temporary=True, newsletter=True)
            elif not user.newsletter:
                user.newsletter = True
                user.save(update_fields=["newsletter"])
            subscription = subscribe_to_newsletter(
                email, user=user, source=serializer.validated_data.get("source") or "footer"
            )
        return Response(NewsletterSubscriptionSerializer(subscription).data, status=status.HTTP_201_CREATED)

    def delete(self, request):  # type: ignore
        email = request.data.get("email") or request.query_params.get("email")
        if not email:
            return Response({"email": "Ce champ est obligatoire."}, status=status.HTTP_400_BAD_REQUEST)
        unsubscribe_from_newsletter(email)
        return Response(status=status.HTTP_204_NO_CONTENT)


class NewsletterAdminViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = NewsletterSubscriptionSerializer
    permission_classes = [IsAdminRole]
    queryset = NewsletterSubscription.objects.all()
    filterset_fields = ["is_subscribed", "source"]
