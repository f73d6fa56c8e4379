"""Email and in-app notification services.

Every email goes through :func:`send_email_notification`, which never
raises: a delivery failure is logged and reported as ``False`` so the
calling business operation is not rolled back because of SMTP trouble.
Reservation emails live in :mod:`apps.notifications.booking_emails`.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.template.loader import render_to_string  # type: ignore
from django.utils.html import escape, strip_tags  # type: ignore

from .models import Notification

if TYPE_CHECKING:  # pragma: no cover
    from apps.contact.models import ContactMessage
    from apps.hr.models import Unavailability
    from apps.users.models import AccountActivationToken, CustomUser

logger = logging.getLogger(__name__)

MONTHS_FR = [
    "janvier", "février", "mars", "avril", "mai", "juin",
    "juillet", "août", "septembre", "octobre", "novembre", "décembre",
]
DAYS_FR = ["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"]


def format_date_fr(value: date) -> str:
    """``lundi 3 mars 2025``"""
    return f"{DAYS_FR[value.weekday()]} {value.day} {MONTHS_FR[value.month - 1]} {value.year}"


def format_price(amount: Decimal | int | float | None) -> str:
    """``1 234,50 €``"""
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
    integer, _, decimals = f"{value:,.2f}".partition(".")
    return f"{integer.replace(',', ' ')},{decimals} €"


def wrap_html(title: str, body: str) -> str:
    """Common layout shared by every outgoing email."""
    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; color: #142220;">
        <h2 style="color: #417972;">{title}</h2>
        {body}
        <p style="margin-top: 24px; font-size: 13px; color: #666;">
            CoworKing Café by Anticafé<br>
            {settings.CONTACT_EMAIL} · {settings.CONTACT_PHONE}
        </p>
    </body>
    </html>
    """


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(
    recipient_email: str,
    subject: str,
    template_name: str | None,
    context: dict,
    *,
    html_message: str | None = None,
) -> bool:
    """
    Send one email.

    Args:
        recipient_email: recipient address
        subject: subject line
        template_name: optional Django template rendered with ``context``
        context: template context; ``context["message"]`` is the plain text
            fallback when neither a template nor ``html_message`` is given
        html_message: pre-rendered HTML body

    Returns:
        bool: True when the backend accepted the message
    """
    if not recipient_email:
        logger.warning(f"Email skipped, no recipient: {subject}")
        return False

    try:
        if html_message:
            text_message = strip_tags(html_message)
        elif template_name:
            html_message = render_to_string(template_name, context)
            text_message = strip_tags(html_message)
        else:
            text_message = context.get("message", "")
            html_message = None

        send_mail(
            subject=subject,
            message=text_message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def send_password_reset_code_email(user: "CustomUser", code: str) -> bool:
    html_message = wrap_html(
        "Réinitialisation de votre mot de passe",
        f"""
        <p>Bonjour {escape(user.display_name)},</p>
        <p>Voici votre code de réinitialisation, valable 15 minutes :</p>
        <p style="font-size: 28px; letter-spacing: 6px;"><strong>{code}</strong></p>
        <p>Si vous n'êtes pas à l'origine de cette demande, ignorez cet email.</p>
        """,
    )
    return send_email_notification(
        recipient_email=user.email,
        subject="Votre code de réinitialisation",
        template_name=None,
        context={},
        html_message=html_message,
    )


def send_account_activation_email(user: "CustomUser", token: "AccountActivationToken") -> bool:
    link = f"{settings.SITE_URL.rstrip('/')}/activation?token={token.token}"
    html_message = wrap_html(
        "Activez votre compte",
        f"""
        <p>Bonjour {escape(user.display_name)},</p>
        <p>Un compte a été créé pour vous suivre vos réservations.
        Choisissez votre mot de passe pour l'activer :</p>
        <p><a href="{link}">{link}</a></p>
        <p>Ce lien est valable 48 heures.</p>
        """,
    )
    return send_email_notification(
        recipient_email=user.email,
        subject="Activez votre compte CoworKing Café",
        template_name=None,
        context={},
        html_message=html_message,
    )


def send_contact_reply_email(contact_message: "ContactMessage") -> bool:
    reply = escape(contact_message.reply).replace("\n", "<br>")
    original = escape(contact_message.message).replace("\n", "<br>")
    html_message = wrap_html(
        f"Re: {escape(contact_message.subject)}",
        f"""
        <p>Bonjour {escape(contact_message.name)},</p>
        <p>{reply}</p>
        <hr>
        <p style="color: #666;"><em>Votre message :</em><br>{original}</p>
        """,
    )
    return send_email_notification(
        recipient_email=contact_message.email,
        subject=f"Re: {contact_message.subject}",
        template_name=None,
        context={},
        html_message=html_message,
    )


def send_unavailability_decision_email(unavailability: "Unavailability") -> bool:
    employee = unavailability.employee
    if not employee.email:
        return False

    period = (
        f"du {format_date_fr(unavailability.start_date)} au {format_date_fr(unavailability.end_date)}"
    )
    if unavailability.status == unavailability.Status.APPROVED:
        title = "Demande d'indisponibilité acceptée"
        body = f"<p>Votre demande d'indisponibilité {period} a été acceptée.</p>"
    else:
        title = "Demande d'indisponibilité refusée"
        reason = escape(unavailability.rejection_reason or "Non précisé")
        body = (
            f"<p>Votre demande d'indisponibilité {period} a été refusée.</p>"
            f"<p><strong>Motif :</strong> {reason}</p>"
        )

    html_message = wrap_html(title, f"<p>Bonjour {escape(employee.first_name)},</p>{body}")
    return send_email_notification(
        recipient_email=employee.email,
        subject=title,
        template_name=None,
        context={},
        html_message=html_message,
    )


# ============================================================================
# IN-APP NOTIFICATIONS
# ============================================================================

def create_in_app_notification(
    user: "CustomUser",
    title: str,
    message: str,
    *,
    category: str = "system",
    link: str = "",
) -> bool:
    """
    Store an in-app notification.

    Returns:
        bool: True when the notification was created
    """
    if user is None:
        return False
    try:
        Notification.objects.create(
            user=user,
            title=title,
            message=message,
            category=category,
            link=link,
        )

        logger.info(f"In-app notification created for {user.email}: {title}")
        return True

    except Exception as e:
        logger.error(f"Failed to create in-app notification for {user.pk}: {e}", exc_info=True)
        return False
