"""HR endpoints: employees, kiosk clocking, planning and absences."""

from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal

from django.core import mail
from django.core.cache import cache
from django.db import connection
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.hr.models import Employee, Shift, TimeEntry, Unavailability
from apps.hr.services import monthly_report
from apps.users.models import AccountActivationToken, User


class HRTestCase(APITestCase):
    def setUp(self) -> None:
        cache.clear()
        self.admin = User.objects.create_user(
            email="admin@example.com", password="AdminPass123", role=User.RoleChoices.ADMIN
        )
        self.staff = User.objects.create_user(
            email="staff@example.com", password="StaffPass123", role=User.RoleChoices.STAFF
        )
        self.employee = Employee(
            user=self.staff,
            first_name="Chloé",
            last_name="Martin",
            email="staff@example.com",
            hire_date=date(2025, 1, 6),
        )
        self.employee.set_pin("1234")
        self.employee.save()


class EmployeeApiTests(HRTestCase):
    def test_employees_are_admin_only(self) -> None:
        self.client.force_authenticate(self.staff)
        response = self.client.get(reverse("employee-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_employee_masks_sensitive_fields(self) -> None:
        self.client.force_authenticate(self.admin)
        payload = {
            "first_name": "Lucas",
            "last_name": "Bernard",
            "email": "lucas@example.com",
            "contract_type": "CDI",
            "contractual_hours": "24.00",
            "hire_date": (timezone.localdate() + timedelta(days=10)).isoformat(),
            "social_security_number": "1 85 05 78 006 084 36",
            "iban": "fr76 3000 6000 0112 3456 7890 189",
        }

        response = self.client.post(reverse("employee-list"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn("social_security_number", response.data)
        self.assertNotIn("iban", response.data)
        self.assertEqual(response.data["masked_iban"][-4:], "0189")
        self.assertEqual(response.data["employment_status"], Employee.EmploymentStatus.WAITING)
        employee = Employee.objects.get(pk=response.data["id"])
        self.assertEqual(employee.social_security_number, "185057800608436")
        self.assertEqual(employee.iban, "FR7630006000011234567890189")
        self.assertEqual(employee.created_by, self.admin)
        with connection.cursor() as cursor:
            cursor.execute("SELECT iban FROM hr_employee WHERE id = %s", [employee.pk])
            raw = cursor.fetchone()[0]
        self.assertNotIn("FR76", raw)

    def test_invalid_social_security_number(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("employee-list"),
            {"first_name": "Lucas", "last_name": "Bernard", "social_security_number": "12345"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_fixed_term_contract_needs_end_date(self) -> None:
        self.client.force_authenticate(self.admin)
        payload = {"first_name": "Léa", "last_name": "Petit", "contract_type": "CDD"}

        response = self.client.post(reverse("employee-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(reverse("employee-list"), {**payload, "is_draft": True}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["employment_status"], Employee.EmploymentStatus.DRAFT)

    def test_drafts_are_listed_separately(self) -> None:
        Employee.objects.create(first_name="Brouillon", last_name="Test", is_draft=True)
        self.client.force_authenticate(self.admin)

        listed = self.client.get(reverse("employee-list")).data
        drafts = self.client.get(reverse("employee-drafts")).data

        self.assertEqual([item["first_name"] for item in listed], ["Chloé"])
        self.assertEqual([item["first_name"] for item in drafts], ["Brouillon"])

    def test_publish_incomplete_draft_rejected(self) -> None:
        draft = Employee.objects.create(first_name="Brouillon", last_name="Test", is_draft=True)
        self.client.force_authenticate(self.admin)

        response = self.client.post(reverse("employee-publish", args=[draft.pk]))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "INCOMPLETE_DRAFT")

    def test_create_with_account_sends_activation(self) -> None:
        self.client.force_authenticate(self.admin)
        payload = {"first_name": "Hugo", "last_name": "Roux", "email": "Hugo@Example.com", "pin": "4321"}

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(reverse("employee-create-with-account"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email="hugo@example.com")
        self.assertFalse(user.is_active)
        self.assertEqual(user.role, User.RoleChoices.STAFF)
        employee = Employee.objects.get(user=user)
        self.assertTrue(employee.check_pin("4321"))
        self.assertTrue(AccountActivationToken.objects.filter(user=user).exists())
        self.assertEqual(mail.outbox[0].to, ["hugo@example.com"])

    def test_create_with_account_existing_email(self) -> None:
        self.client.force_authenticate(self.admin)
        payload = {"first_name": "Chloé", "last_name": "Martin", "email": "staff@example.com"}

        response = self.client.post(reverse("employee-create-with-account"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_end_contract_deactivates_employee_and_account(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("employee-end-contract", args=[self.employee.pk]),
            {"end_date": timezone.localdate().isoformat(), "reason": "demission"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["employment_status"], Employee.EmploymentStatus.INACTIVE)
        self.staff.refresh_from_db()
        self.assertFalse(self.staff.is_active)

    def test_set_pin(self) -> None:
        self.client.force_authenticate(self.admin)
        url = reverse("employee-set-pin", args=[self.employee.pk])

        self.assertEqual(self.client.post(url, {"pin": "12"}, format="json").status_code, 400)
        response = self.client.post(url, {"pin": "8765"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.employee.refresh_from_db()
        self.assertTrue(self.employee.check_pin("8765"))
        self.assertFalse(self.employee.check_pin("1234"))

    def test_delete_is_soft(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.delete(reverse("employee-detail", args=[self.employee.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.employee.refresh_from_db()
        self.assertIsNotNone(self.employee.deleted_at)
        self.assertFalse(self.employee.is_active)


class ClockingApiTests(HRTestCase):
    def test_kiosk_lists_active_employees_without_authentication(self) -> None:
        Employee.objects.create(first_name="Ancien", last_name="Salarié", is_active=False)
        response = self.client.get(reverse("clocking-employees"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([item["id"] for item in response.data], [self.employee.pk])
        self.assertNotIn("pin_hash", response.data[0])

    def test_clock_in_with_justification(self) -> None:
        response = self.client.post(
            reverse("clock-in"),
            {"employee_id": self.employee.pk, "pin": "1234", "justification": "Ouverture exceptionnelle"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["message"], "Shift 1 débuté avec succès")
        self.assertEqual(TimeEntry.objects.get().status, TimeEntry.Status.ACTIVE)

    def test_clock_in_wrong_pin(self) -> None:
        response = self.client.post(reverse("clock-in"), {"employee_id": self.employee.pk, "pin": "0000"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data, {"success": False, "error": "PIN incorrect", "code": "INVALID_PIN"})

    def test_clock_in_missing_fields(self) -> None:
        response = self.client.post(reverse("clock-in"), {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "MISSING_FIELDS")

    @override_settings(CLOCKING_IP_WHITELIST=["192.168.1.10"])
    def test_whitelist_uses_forwarded_address(self) -> None:
        payload = {"employee_id": self.employee.pk, "pin": "1234", "justification": "Remplacement"}

        refused = self.client.post(reverse("clock-in"), payload, format="json", REMOTE_ADDR="10.0.0.1")
        allowed = self.client.post(
            reverse("clock-in"), payload, format="json", HTTP_X_FORWARDED_FOR="192.168.1.10, 10.0.0.1"
        )

        self.assertEqual(refused.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(allowed.status_code, status.HTTP_201_CREATED)

    def test_clock_out_closes_the_open_entry(self) -> None:
        entry = TimeEntry.objects.create(
            employee=self.employee,
            date=timezone.localdate() - timedelta(days=1),
            clock_in=time(22, 0),
        )

        response = self.client.post(reverse("clock-out"), {"employee_id": self.employee.pk}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry.refresh_from_db()
        self.assertEqual(entry.status, TimeEntry.Status.COMPLETED)
        self.assertIsNotNone(entry.total_hours)

    def test_clock_out_without_open_entry(self) -> None:
        response = self.client.post(reverse("clock-out"), {"employee_id": self.employee.pk}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "NOT_CLOCKED_IN")


class TimeEntryApiTests(HRTestCase):
    def test_mark_justification_read(self) -> None:
        entry = TimeEntry.objects.create(
            employee=self.employee,
            date=date(2026, 3, 10),
            clock_in=time(7, 0),
            is_out_of_schedule=True,
            justification_note="Livraison",
        )
        self.client.force_authenticate(self.admin)

        response = self.client.post(reverse("time-entry-mark-justification-read", args=[entry.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["justification_read"])

    def test_admin_correction_recomputes_hours(self) -> None:
        entry = TimeEntry.objects.create(employee=self.employee, date=date(2026, 3, 10), clock_in=time(9, 0))
        self.client.force_authenticate(self.admin)

        response = self.client.patch(
            reverse("time-entry-detail", args=[entry.pk]), {"clock_out": "12:30"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry.refresh_from_db()
        self.assertEqual(entry.total_hours, Decimal("3.50"))
        self.assertEqual(entry.status, TimeEntry.Status.COMPLETED)

    def test_monthly_report(self) -> None:
        for day, hours in ((3, "7.50"), (3, "2.00"), (4, "8.00")):
            TimeEntry.objects.create(
                employee=self.employee,
                date=date(2026, 3, day),
                clock_in=time(9, 0),
                clock_out=time(17, 0),
                total_hours=Decimal(hours),
                status=TimeEntry.Status.COMPLETED,
            )
        TimeEntry.objects.create(employee=self.employee, date=date(2026, 3, 5), clock_in=time(9, 0))
        TimeEntry.objects.create(
            employee=self.employee,
            date=date(2026, 4, 1),
            clock_in=time(9, 0),
            total_hours=Decimal("8.00"),
            status=TimeEntry.Status.COMPLETED,
        )

        row = monthly_report(2026, 3)["employees"][0]

        self.assertEqual(row["days"], {"2026-03-03": Decimal("9.50"), "2026-03-04": Decimal("8.00")})
        self.assertEqual(row["total_hours"], Decimal("17.50"))
        self.assertEqual(row["contractual_hours"], Decimal("151.67"))

    def test_report_endpoint_validates_month(self) -> None:
        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.get(reverse("time-entry-report"), {"year": 2026, "month": 13}).status_code, 400)
        response = self.client.get(reverse("time-entry-report"), {"year": 2026, "month": 3})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["month"], 3)


class ShiftApiTests(HRTestCase):
    def setUp(self) -> None:
        super().setUp()
        Shift.objects.create(employee=self.employee, date=date(2026, 3, 10), start_time=time(9), end_time=time(13))

    def _payload(self, start: str, end: str) -> dict:
        return {"employee": self.employee.pk, "date": "2026-03-10", "start_time": start, "end_time": end}

    def test_overlapping_shift_rejected(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(reverse("shift-list"), self._payload("12:00", "18:00"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_adjacent_shift_accepted(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(reverse("shift-list"), self._payload("13:00", "18:00"), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_staff_reads_but_cannot_plan(self) -> None:
        self.client.force_authenticate(self.staff)
        self.assertEqual(self.client.get(reverse("shift-list")).status_code, status.HTTP_200_OK)
        response = self.client.post(reverse("shift-list"), self._payload("14:00", "18:00"), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class UnavailabilityApiTests(HRTestCase):
    def _request(self) -> Unavailability:
        return Unavailability.objects.create(
            employee=self.employee, start_date=date(2026, 8, 3), end_date=date(2026, 8, 14), reason="Vacances"
        )

    def test_staff_requests_for_their_own_profile(self) -> None:
        self.client.force_authenticate(self.staff)

        response = self.client.post(
            reverse("unavailability-list"),
            {"start_date": "2026-08-03", "end_date": "2026-08-14", "unavailability_type": "vacation"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["employee"], self.employee.pk)
        self.assertEqual(response.data["status"], Unavailability.Status.PENDING)

    def test_inverted_dates_rejected(self) -> None:
        self.client.force_authenticate(self.staff)
        response = self.client.post(
            reverse("unavailability-list"), {"start_date": "2026-08-14", "end_date": "2026-08-03"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approve_sends_a_single_email(self) -> None:
        request = self._request()
        self.client.force_authenticate(self.admin)

        response = self.client.post(reverse("unavailability-approve", args=[request.pk]))
        again = self.client.post(reverse("unavailability-approve", args=[request.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        request.refresh_from_db()
        self.assertEqual(request.status, Unavailability.Status.APPROVED)
        self.assertEqual(request.reviewed_by, self.admin)
        self.assertTrue(request.notification_sent)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, "Demande d'indisponibilité acceptée")

    def test_reject_requires_a_reason(self) -> None:
        request = self._request()
        self.client.force_authenticate(self.admin)
        url = reverse("unavailability-reject", args=[request.pk])

        self.assertEqual(self.client.post(url, {}, format="json").status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {"reason": "Période de forte affluence"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["rejection_reason"], "Période de forte affluence")
        self.assertIn("Période de forte affluence", mail.outbox[0].alternatives[0][0])

    def test_staff_cannot_approve(self) -> None:
        request = self._request()
        self.client.force_authenticate(self.staff)
        response = self.client.post(reverse("unavailability-approve", args=[request.pk]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_sees_only_their_requests(self) -> None:
        self._request()
        other = Employee.objects.create(first_name="Autre", last_name="Employé")
        Unavailability.objects.create(employee=other, start_date=date(2026, 9, 1), end_date=date(2026, 9, 2))
        self.client.force_authenticate(self.staff)

        response = self.client.get(reverse("unavailability-list"))

        self.assertEqual(len(response.data), 1)
