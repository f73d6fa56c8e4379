"""API tests for spaces, price calculation and booking settings."""

from __future__ import annotations

from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.spaces.models import AdditionalService, BookingSettings, SpaceConfiguration
from apps.users.models import User


class SpaceAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com", password="AdminPass123", role=User.RoleChoices.ADMIN
        )
        self.client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.space = SpaceConfiguration.objects.create(
            space_type="open-space",
            name="Open space",
            min_capacity=1,
            max_capacity=20,
            hourly_price=Decimal("6.00"),
            daily_price=Decimal("29.00"),
            per_person=True,
        )
        SpaceConfiguration.objects.create(
            space_type="salle-etage", name="Salle d'étage", max_capacity=8, is_active=False
        )

    def test_public_list_hides_inactive_spaces(self) -> None:
        response = self.client.get(reverse("space-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["space_type"] for item in response.data], ["open-space"])

    def test_client_cannot_create_space(self) -> None:
        self.client.force_authenticate(self.client_user)
        response = self.client.post(reverse("space-list"), {"space_type": "x", "name": "X"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_space_with_tiers(self) -> None:
        self.client.force_authenticate(self.admin)
        payload = {
            "space_type": "meeting-room",
            "name": "Salle de réunion",
            "min_capacity": 1,
            "max_capacity": 10,
            "hourly_price": "30.00",
            "per_person": False,
            "is_exclusive": True,
            "tiers": [{"min_people": 1, "max_people": 4, "hourly_rate": "25.00", "daily_rate": "150.00"}],
        }
        response = self.client.post(reverse("space-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(SpaceConfiguration.objects.get(space_type="meeting-room").tiers.count(), 1)

    def test_delete_is_soft(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.delete(reverse("space-detail", args=["open-space"]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.space.refresh_from_db()
        self.assertTrue(self.space.is_deleted)

    def test_calculate_price_with_services(self) -> None:
        coffee = AdditionalService.objects.create(
            name="Café", price=Decimal("2.50"), price_unit=AdditionalService.PriceUnit.PER_PERSON
        )
        payload = {
            "space_type": "open-space",
            "reservation_type": "hourly",
            "start_time": "09:00",
            "end_time": "12:00",
            "number_of_people": 2,
            "additional_services": [{"service": coffee.pk, "quantity": 1}],
        }
        response = self.client.post(reverse("calculate-price"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["total_price"], "36.00")
        self.assertEqual(response.data["services_price"], "5.00")
        self.assertEqual(response.data["grand_total"], "41.00")
        self.assertEqual(response.data["deposit_amount_cents"], 4100)

    def test_calculate_price_rejects_over_capacity(self) -> None:
        payload = {"space_type": "open-space", "reservation_type": "daily", "number_of_people": 50}
        response = self.client.post(reverse("calculate-price"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_booking_settings_update_requires_admin(self) -> None:
        url = reverse("booking-settings")
        payload = {"notification_email": "team@example.com"}

        self.client.force_authenticate(self.client_user)
        self.assertEqual(self.client.patch(url, payload, format="json").status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.admin)
        response = self.client.patch(url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(BookingSettings.load().notification_email, "team@example.com")

    def test_booking_settings_get_returns_default_policies(self) -> None:
        response = self.client.get(reverse("booking-settings"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["meeting_room_cancellation_policy"][0]["days_before_booking"], 22)
