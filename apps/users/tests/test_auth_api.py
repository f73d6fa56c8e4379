"""API tests for authentication endpoints."""

from __future__ import annotations

from datetime import timedelta

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import AccountActivationToken, NewsletterSubscription, PasswordResetToken, User


class AuthAPITests(APITestCase):
    def test_register_returns_tokens(self) -> None:
        payload = {
            "email": "guest@example.com",
            "phone": "0601020304",
            "first_name": "Guest",
            "last_name": "User",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
            "newsletter": True,
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertIn("access", response.data["tokens"])
        self.assertEqual(response.data["user"]["email"], payload["email"])
        self.assertEqual(User.objects.get(email=payload["email"]).role, User.RoleChoices.CLIENT)
        self.assertTrue(NewsletterSubscription.objects.filter(email="guest@example.com", source="register").exists())

    def test_register_rejects_taken_email(self) -> None:
        User.objects.create_user(email="taken@example.com", password="StrongPass123")
        payload = {"email": "taken@example.com", "password": "StrongPass123", "password_confirm": "StrongPass123"}

        response = self.client.post(reverse("auth:register"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", response.data)

    def test_register_upgrades_newsletter_account(self) -> None:
        User.objects.create_user(email="reader@example.com", password=None, is_temporary=True, newsletter=True)
        payload = {"email": "reader@example.com", "password": "StrongPass123", "password_confirm": "StrongPass123"}

        response = self.client.post(reverse("auth:register"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        user = User.objects.get(email="reader@example.com")
        self.assertFalse(user.is_temporary)
        self.assertTrue(user.check_password("StrongPass123"))
        self.assertEqual(User.objects.filter(email="reader@example.com").count(), 1)

    def test_login_limited_attempts(self) -> None:
        user = User.objects.create_user(email="lock@example.com", password="CorrectPassword1")

        url = reverse("auth:login")
        wrong_payload = {"email": user.email, "password": "wrong"}
        for _ in range(5):
            response = self.client.post(url, wrong_payload, format="json")

        user.refresh_from_db()
        self.assertTrue(user.is_locked)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        # Even the right password is refused while locked
        response = self.client.post(url, {"email": user.email, "password": "CorrectPassword1"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        user.locked_until = timezone.now() - timedelta(minutes=1)
        user.save(update_fields=["locked_until"])
        response = self.client.post(url, {"email": user.email, "password": "CorrectPassword1"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        user.refresh_from_db()
        self.assertIsNotNone(user.last_activity_at)

    def test_inactive_account_cannot_login(self) -> None:
        User.objects.create_user(email="pending@example.com", password="CorrectPassword1", is_active=False)

        response = self.client.post(
            reverse("auth:login"), {"email": "pending@example.com", "password": "CorrectPassword1"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_password_reset_flow(self) -> None:
        user = User.objects.create_user(email="reset@example.com", password="OldPassword1")

        request_resp = self.client.post(
            reverse("auth:password-reset-request"),
            {"email": user.email},
            format="json",
        )
        self.assertEqual(request_resp.status_code, status.HTTP_202_ACCEPTED, request_resp.data)
        self.assertEqual(len(mail.outbox), 1)

        token = PasswordResetToken.objects.get(user=user)
        self.assertIn(token.code, mail.outbox[0].body)
        confirm_payload = {
            "email": user.email,
            "code": token.code,
            "new_password": "NewPassword1",
            "new_password_confirm": "NewPassword1",
        }
        confirm_resp = self.client.post(
            reverse("auth:password-reset-confirm"),
            confirm_payload,
            format="json",
        )
        self.assertEqual(confirm_resp.status_code, status.HTTP_200_OK, confirm_resp.data)
        user.refresh_from_db()
        self.assertTrue(user.check_password("NewPassword1"))

    def test_password_reset_unknown_email_same_answer(self) -> None:
        response = self.client.post(
            reverse("auth:password-reset-request"), {"email": "nobody@example.com"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_202_ACCEPTED)
        self.assertEqual(len(mail.outbox), 0)

    def test_password_reset_wrong_code_burns_attempts(self) -> None:
        user = User.objects.create_user(email="reset@example.com", password="OldPassword1")
        token = PasswordResetToken.objects.create(
            user=user, code="123456", expires_at=timezone.now() + timedelta(minutes=15), attempts_left=3
        )
        payload = {
            "email": user.email,
            "code": "000000",
            "new_password": "NewPassword1",
            "new_password_confirm": "NewPassword1",
        }

        for _ in range(3):
            response = self.client.post(reverse("auth:password-reset-confirm"), payload, format="json")
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        token.refresh_from_db()
        self.assertEqual(token.attempts_left, 0)
        payload["code"] = "123456"
        response = self.client.post(reverse("auth:password-reset-confirm"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        user.refresh_from_db()
        self.assertTrue(user.check_password("OldPassword1"))

    def test_activation_sets_password_and_logs_in(self) -> None:
        user = User.objects.create_user(email="guest@example.com", password=None, is_active=False)
        token = AccountActivationToken.issue(user)

        response = self.client.post(
            reverse("auth:activate"),
            {"token": token.token, "password": "ChosenPass123", "password_confirm": "ChosenPass123"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("tokens", response.data)
        user.refresh_from_db()
        self.assertTrue(user.is_active)
        self.assertTrue(user.check_password("ChosenPass123"))

        replay = self.client.post(
            reverse("auth:activate"),
            {"token": token.token, "password": "OtherPass123", "password_confirm": "OtherPass123"},
            format="json",
        )
        self.assertEqual(replay.status_code, status.HTTP_400_BAD_REQUEST)
