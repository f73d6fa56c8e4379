"""Contact message workflow."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.html import escape  # type: ignore

from apps.notifications.services import send_contact_reply_email, send_email_notification, wrap_html
from apps.users.models import CustomUser

from .models import ContactMessage

logger = logging.getLogger(__name__)


def submit_message(data: dict, *, user: CustomUser | None = None) -> ContactMessage:
    message = ContactMessage.objects.create(**data, user=user if user and user.is_authenticated else None)
    logger.info(f"Contact message {message.pk} received from {message.email}")

    body = escape(message.message).replace("\n", "<br>")
    send_email_notification(
        recipient_email=settings.CONTACT_EMAIL,
        subject=f"Nouveau message : {message.subject}",
        template_name=None,
        context={},
        html_message=wrap_html(
            "Nouveau message de contact",
            f"<p><strong>{escape(message.name)}</strong> ({escape(message.email)} {escape(message.phone)})</p>"
            f"<p>{body}</p>",
        ),
    )
    return message


def reply_to_message(message: ContactMessage, *, reply: str, replied_by: CustomUser) -> bool:
    """Store the reply then email it; the reply is kept even if the email fails."""
    message.reply = reply.strip()
    message.status = ContactMessage.Status.REPLIED
    message.replied_at = timezone.now()
    message.replied_by = replied_by
    message.save(update_fields=["reply", "status", "replied_at", "replied_by", "updated_at"])

    sent = send_contact_reply_email(message)
    if not sent:
        logger.error(f"Reply to contact message {message.pk} saved but not emailed")
    return sent


def set_status(message: ContactMessage, status: str) -> ContactMessage:
    message.status = status
    message.save(update_fields=["status", "updated_at"])
    return message
