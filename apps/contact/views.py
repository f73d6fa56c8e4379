"""Contact API: public form submission and the admin inbox."""

from __future__ import annotations

from django.db.models import Count, Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsAdminRole

from .models import ContactMessage
from .serializers import ContactMessageSerializer, ContactReplySerializer, ContactSubmitSerializer
from .services import reply_to_message, set_status, submit_message


class ContactMessageViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Messages de contact.

    L'envoi est public ; la lecture, la réponse, l'archivage et la
    suppression sont réservés aux administrateurs.
    """

    serializer_class = ContactMessageSerializer
    queryset = ContactMessage.objects.select_related("replied_by")
    filterset_fields = ["status"]

    def get_permissions(self):  # type: ignore
        if self.action == "create":
            return [permissions.AllowAny()]
        return [IsAdminRole()]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        search = self.request.query_params.get("search")
        if search:
            qs = qs.filter(
                Q(name__icontains=search) | Q(email__icontains=search) | Q(subject__icontains=search)
            )
        return qs

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = ContactSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submit_message(dict(serializer.validated_data), user=request.user)
        return Response(
            {"detail": "Votre message a bien été envoyé. Nous vous répondrons rapidement."},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["get"])
    def stats(self, request):
        counts = ContactMessage.objects.aggregate(
            total=Count("id"),
            **{value: Count("id", filter=Q(status=value)) for value in ContactMessage.Status.values},
        )
        return Response(counts)

    @action(detail=True, methods=["post"], url_path="mark-read")
    def mark_read(self, request, pk=None):  # type: ignore
        message: ContactMessage = self.get_object()  # type: ignore
        if message.status == ContactMessage.Status.UNREAD:
            set_status(message, ContactMessage.Status.READ)
        return Response(ContactMessageSerializer(message).data)

    @action(detail=True, methods=["post"])
    def reply(self, request, pk=None):  # type: ignore
        serializer = ContactReplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message: ContactMessage = self.get_object()  # type: ignore
        sent = reply_to_message(message, reply=serializer.validated_data["reply"], replied_by=request.user)
        return Response({**ContactMessageSerializer(message).data, "email_sent": sent})

    @action(detail=True, methods=["post"])
    def archive(self, request, pk=None):  # type: ignore
        message = set_status(self.get_object(), ContactMessage.Status.ARCHIVED)
        return Response(ContactMessageSerializer(message).data)
