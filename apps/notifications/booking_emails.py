"""Reservation emails sent to clients and to the team."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from django.utils import timezone  # type: ignore
from django.utils.html import escape  # type: ignore

from .services import format_date_fr, format_price, send_email_notification, wrap_html

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Reservation


def _summary(reservation: "Reservation") -> str:
    return f"""
    <table style="border-collapse: collapse;">
        <tr><td><strong>Espace</strong></td><td>{escape(reservation.space.name)}</td></tr>
        <tr><td><strong>Date</strong></td><td>{format_date_fr(reservation.date)}</td></tr>
        <tr><td><strong>Horaire</strong></td><td>{reservation.time_label}</td></tr>
        <tr><td><strong>Personnes</strong></td><td>{reservation.number_of_people}</td></tr>
        <tr><td><strong>Total</strong></td><td>{format_price(reservation.total_price)}</td></tr>
        <tr><td><strong>N° de réservation</strong></td><td>{reservation.confirmation_number}</td></tr>
    </table>
    """


def _send(reservation: "Reservation", subject: str, title: str, body: str) -> bool:
    html_message = wrap_html(
        title,
        f"<p>Bonjour {escape(reservation.recipient_name)},</p>{body}",
    )
    return send_email_notification(
        recipient_email=reservation.recipient_email,
        subject=subject,
        template_name=None,
        context={},
        html_message=html_message,
    )


def _cents_to_euros(cents: int) -> Decimal:
    return Decimal(cents or 0) / 100


def send_booking_confirmation_email(reservation: "Reservation") -> bool:
    deposit = ""
    if reservation.stripe_payment_intent_id and reservation.deposit_amount:
        deposit = (
            f"<p>Une empreinte bancaire de <strong>{format_price(_cents_to_euros(reservation.deposit_amount))}</strong> "
            "a été posée sur votre carte. Aucun montant n'est débité : l'empreinte sera levée "
            "après votre venue, ou encaissée en cas d'absence non signalée.</p>"
        )
    return _send(
        reservation,
        "Votre demande de réservation a bien été reçue",
        "Demande de réservation reçue",
        f"""
        <p>Nous avons bien reçu votre demande. Elle sera validée par notre équipe très prochainement.</p>
        {_summary(reservation)}
        {deposit}
        """,
    )


def send_card_saved_email(reservation: "Reservation") -> bool:
    return _send(
        reservation,
        "Votre carte a été enregistrée",
        "Réservation enregistrée",
        f"""
        <p>Votre carte bancaire a été enregistrée. Aucun montant n'est prélevé aujourd'hui :
        l'empreinte bancaire sera posée automatiquement quelques jours avant votre venue.</p>
        {_summary(reservation)}
        """,
    )


def send_deposit_hold_email(reservation: "Reservation") -> bool:
    return _send(
        reservation,
        "Empreinte bancaire posée pour votre réservation",
        "Empreinte bancaire posée",
        f"""
        <p>Une empreinte bancaire de <strong>{format_price(_cents_to_euros(reservation.deposit_amount))}</strong>
        vient d'être posée sur votre carte pour votre réservation.</p>
        {_summary(reservation)}
        """,
    )


def send_deposit_released_email(reservation: "Reservation") -> bool:
    return _send(
        reservation,
        "Votre empreinte bancaire a été levée",
        "Merci de votre visite",
        f"""
        <p>Votre présence a été confirmée. L'empreinte bancaire de
        <strong>{format_price(_cents_to_euros(reservation.deposit_amount))}</strong> posée le
        {format_date_fr(reservation.date)} a été levée, aucun montant ne sera débité.</p>
        """,
    )


def send_deposit_captured_email(reservation: "Reservation", *, no_show: bool = True) -> bool:
    reason = (
        "Faute de présentation à votre réservation et sans annulation de votre part"
        if no_show
        else "Conformément à nos conditions de réservation"
    )
    return _send(
        reservation,
        "Empreinte bancaire encaissée",
        "Empreinte bancaire encaissée",
        f"""
        <p>{reason}, l'empreinte bancaire de
        <strong>{format_price(_cents_to_euros(reservation.deposit_amount))}</strong> a été encaissée.</p>
        {_summary(reservation)}
        """,
    )


def send_booking_reminder_email(reservation: "Reservation") -> bool:
    return _send(
        reservation,
        "Rappel : votre réservation demain",
        "À demain !",
        f"""
        <p>Nous vous rappelons votre réservation de demain.</p>
        {_summary(reservation)}
        """,
    )


def send_client_cancellation_email(
    reservation: "Reservation",
    *,
    charge_percentage: int,
    fee: Decimal,
    refund: Decimal,
) -> bool:
    if charge_percentage:
        fees = (
            f"<p>Frais d'annulation ({charge_percentage} %) : <strong>{format_price(fee)}</strong><br>"
            f"Montant libéré ou remboursé : <strong>{format_price(refund)}</strong></p>"
        )
    else:
        fees = "<p>Aucun frais d'annulation ne vous est facturé.</p>"
    return _send(
        reservation,
        "Confirmation d'annulation de votre réservation",
        "Réservation annulée",
        f"""
        <p>Votre réservation a bien été annulée.</p>
        {_summary(reservation)}
        {fees}
        """,
    )


def send_reservation_confirmed_email(reservation: "Reservation") -> bool:
    invoice = "<p>Votre facture vous sera envoyée après votre venue.</p>" if reservation.invoice_option else ""
    return _send(
        reservation,
        "Votre réservation est confirmée",
        "Réservation confirmée",
        f"""
        <p>Bonne nouvelle, votre réservation est confirmée par notre équipe.</p>
        {_summary(reservation)}
        {invoice}
        """,
    )


def send_reservation_rejected_email(reservation: "Reservation", reason: str = "") -> bool:
    motive = f"<p><strong>Motif :</strong> {escape(reason)}</p>" if reason else ""
    return _send(
        reservation,
        "Votre demande de réservation n'a pas pu être acceptée",
        "Réservation refusée",
        f"""
        <p>Nous sommes désolés, nous ne pouvons pas donner suite à votre demande.
        Toute empreinte bancaire éventuelle a été levée.</p>
        {motive}
        {_summary(reservation)}
        """,
    )


def send_admin_cancellation_email(reservation: "Reservation", reason: str = "") -> bool:
    motive = f"<p><strong>Motif :</strong> {escape(reason)}</p>" if reason else ""
    return _send(
        reservation,
        "Votre réservation a été annulée",
        "Réservation annulée",
        f"""
        <p>Votre réservation a été annulée par notre équipe.</p>
        {motive}
        {_summary(reservation)}
        """,
    )


def _report_rows(reservations) -> str:
    if not reservations:
        return "<p><em>Aucune</em></p>"
    rows = "".join(
        f"<li>{r.date:%d/%m} {r.time_label} · {escape(r.space.name)} · "
        f"{escape(r.recipient_name)} · {r.number_of_people} pers. · {format_price(r.total_price)}</li>"
        for r in reservations
    )
    return f"<ul>{rows}</ul>"


def send_daily_report_email(recipient: str, report: dict) -> bool:
    """``report`` maps section keys to reservation lists."""
    sections = [
        ("unvalidated_yesterday", "Présences non validées (hier)"),
        ("pending", "Réservations en attente de validation"),
        ("upcoming", "Réservations confirmées des 7 prochains jours"),
        ("deposit_pending", "Empreintes différées à poser (J-6)"),
    ]
    body = "".join(
        f"<h3>{title} ({len(report.get(key, []))})</h3>{_report_rows(report.get(key, []))}"
        for key, title in sections
    )
    today = timezone.localdate()
    html_message = wrap_html(f"Rapport quotidien du {format_date_fr(today)}", body)
    return send_email_notification(
        recipient_email=recipient,
        subject=f"Rapport quotidien - {today:%d/%m/%Y}",
        template_name=None,
        context={},
        html_message=html_message,
    )
