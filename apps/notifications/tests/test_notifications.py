from datetime import timedelta
from decimal import Decimal

import pytest
from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from apps.bookings.tests.helpers import make_meeting_room, make_reservation
from apps.notifications import booking_emails
from apps.notifications.models import Notification
from apps.notifications.services import create_in_app_notification, format_price
from apps.users.models import User


@pytest.fixture
def user(db):
    return User.objects.create_user(email="client@example.com", password="ClientPass123", first_name="Alice")


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user)
    return client


def test_list_only_own_notifications(api_client, user):
    other = User.objects.create_user(email="other@example.com", password="OtherPass123")
    create_in_app_notification(user, "Réservation confirmée", "Votre réservation est confirmée", category="booking")
    create_in_app_notification(other, "Autre", "Pas pour vous")

    response = api_client.get(reverse("notification-list"))

    assert response.status_code == 200
    assert [item["title"] for item in response.data] == ["Réservation confirmée"]


def test_mark_read_and_unread_count(api_client, user):
    create_in_app_notification(user, "Un", "Premier message")
    create_in_app_notification(user, "Deux", "Second message")

    assert api_client.get(reverse("notification-unread-count")).data == {"count": 2}

    first = Notification.objects.get(title="Un")

    response = api_client.post(reverse("notification-mark-read", args=[first.pk]))
    assert response.status_code == 200
    first.refresh_from_db()
    assert first.is_read
    assert first.read_at is not None
    assert api_client.get(reverse("notification-unread-count")).data == {"count": 1}


def test_mark_all_read(api_client, user):
    create_in_app_notification(user, "Un", "Premier message")
    create_in_app_notification(user, "Deux", "Second message")

    response = api_client.post(reverse("notification-mark-all-read"))

    assert response.data == {"updated": 2}
    assert not Notification.objects.filter(user=user, is_read=False).exists()


def test_cannot_read_someone_elses_notification(api_client):
    other = User.objects.create_user(email="other@example.com", password="OtherPass123")
    create_in_app_notification(other, "Privé", "Message privé")
    notification = Notification.objects.get(user=other)

    response = api_client.post(reverse("notification-mark-read", args=[notification.pk]))

    assert response.status_code == 404


def test_anonymous_rejected(db):
    assert APIClient().get(reverse("notification-list")).status_code == 401


def test_format_price_uses_french_separators():
    assert format_price(Decimal("1234.5")) == "1 234,50 €"


def test_cancellation_email_lists_fees(user):
    reservation = make_reservation(make_meeting_room(), user, days_ahead=2)

    sent = booking_emails.send_client_cancellation_email(
        reservation, charge_percentage=50, fee=Decimal("50.00"), refund=Decimal("50.00")
    )

    assert sent is True
    message = mail.outbox[0]
    assert message.to == ["client@example.com"]
    html = message.alternatives[0][0]
    assert "50 %" in html
    assert reservation.confirmation_number in html


def test_rejection_email_escapes_reason(user):
    reservation = make_reservation(make_meeting_room(), user, date=timezone.localdate() + timedelta(days=5))

    booking_emails.send_reservation_rejected_email(reservation, reason="<b>Salle indisponible</b>")

    html = mail.outbox[0].alternatives[0][0]
    assert "&lt;b&gt;Salle indisponible&lt;/b&gt;" in html
