"""Revenue entry, cash control, cash float counts and the dashboard."""

from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.accounting.models import B2BRevenue, CashEntry, CashRegisterCount, DailyTurnover
from apps.accounting.services import cash_control_month, consolidated_range, turnover_ranges
from apps.bookings.models import Reservation
from apps.bookings.tests.helpers import make_meeting_room, make_reservation
from apps.contact.models import ContactMessage
from apps.hr.models import Task
from apps.users.models import User


class AccountingTestCase(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com", password="AdminPass123", role=User.RoleChoices.ADMIN
        )
        self.staff = User.objects.create_user(
            email="staff@example.com", password="StaffPass123", role=User.RoleChoices.STAFF, first_name="Chloé"
        )


class RevenueTests(AccountingTestCase):
    def test_vat_is_derived_from_ht_and_ttc(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("turnover-list"), {"date": "2026-03-02", "ht": "500.00", "ttc": "550.00"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(DailyTurnover.objects.get().tva, Decimal("50.00"))

    def test_one_turnover_per_day(self) -> None:
        DailyTurnover.objects.create(date=date(2026, 3, 2), ht=Decimal("10"), ttc=Decimal("11"))
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("turnover-list"), {"date": "2026-03-02", "ht": "1.00", "ttc": "1.10"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_ht_above_ttc_rejected(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("b2b-revenue-list"), {"date": "2026-03-02", "ht": "200.00", "ttc": "100.00"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filtered_by_dates(self) -> None:
        for day in (1, 15, 28):
            DailyTurnover.objects.create(date=date(2026, 2, day), ht=Decimal("10"), ttc=Decimal("11"))
        self.client.force_authenticate(self.admin)

        response = self.client.get(reverse("turnover-list"), {"start_date": "2026-02-10", "end_date": "2026-02-20"})

        self.assertEqual([row["date"] for row in response.data], ["2026-02-15"])

    def test_revenue_is_admin_only(self) -> None:
        self.client.force_authenticate(self.staff)
        self.assertEqual(self.client.get(reverse("turnover-list")).status_code, status.HTTP_403_FORBIDDEN)


class ConsolidatedRangeTests(AccountingTestCase):
    def setUp(self) -> None:
        super().setUp()
        DailyTurnover.objects.create(date=date(2026, 3, 2), ht=Decimal("100.00"), ttc=Decimal("110.00"))
        DailyTurnover.objects.create(date=date(2026, 3, 3), ht=Decimal("200.00"), ttc=Decimal("220.00"))
        B2BRevenue.objects.create(date=date(2026, 3, 3), ht=Decimal("500.00"), ttc=Decimal("600.00"))
        DailyTurnover.objects.create(date=date(2026, 4, 1), ht=Decimal("999.00"), ttc=Decimal("999.00"))

    def test_days_are_merged(self) -> None:
        data = consolidated_range(date(2026, 3, 1), date(2026, 3, 31))

        self.assertEqual([day["date"] for day in data["days"]], ["2026-03-02", "2026-03-03"])
        second = data["days"][1]
        self.assertEqual(second["ttc"], Decimal("820.00"))
        self.assertEqual(second["tva"], Decimal("120.00"))
        self.assertIsNone(data["days"][0]["b2b"])
        stats = data["stats"]
        self.assertEqual(stats["total"]["ht"], Decimal("800.00"))
        self.assertEqual(stats["b2b"]["ttc"], Decimal("600.00"))
        self.assertEqual(stats["turnover"]["ttc"], Decimal("330.00"))
        self.assertEqual(stats["daily_average"]["ttc"], Decimal("465.00"))
        self.assertEqual(stats["days_count"], 2)

    def test_staff_reads_the_range(self) -> None:
        self.client.force_authenticate(self.staff)

        response = self.client.get(
            reverse("consolidated-range"), {"start_date": "2026-03-01", "end_date": "2026-03-02"}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["stats"]["days_count"], 1)

    def test_inverted_range_rejected(self) -> None:
        self.client.force_authenticate(self.staff)
        response = self.client.get(
            reverse("consolidated-range"), {"start_date": "2026-03-31", "end_date": "2026-03-01"}
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "INVALID_RANGE")

    def test_empty_range(self) -> None:
        stats = consolidated_range(date(2026, 5, 1), date(2026, 5, 31))["stats"]
        self.assertEqual(stats["days_count"], 0)
        self.assertEqual(stats["daily_average"]["ht"], Decimal("0.00"))


class CashControlTests(AccountingTestCase):
    def test_cash_entry_totals(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("cash-entry-list"),
            {
                "date": "2026-03-02",
                "b2b_services": [{"label": "Séminaire Acme", "value": "450"}],
                "expenses": [{"label": "Boulangerie", "value": "32.50"}, {"label": "Lait", "value": 12}],
                "cash": "120.00",
                "card": "300.00",
                "contactless": "80.50",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["total_expenses"], "44.50")
        self.assertEqual(response.data["net_revenue"], "405.50")
        self.assertEqual(response.data["total_collected"], "500.50")
        entry = CashEntry.objects.get()
        self.assertEqual(entry.expenses[1], {"label": "Lait", "value": "12.00"})
        self.assertEqual(entry.created_by, self.admin)

    def test_line_without_label_rejected(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("cash-entry-list"),
            {"date": "2026-03-02", "expenses": [{"label": "", "value": "3"}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_month_view_merges_turnover_and_cash_entries(self) -> None:
        DailyTurnover.objects.create(date=date(2026, 3, 2), ht=Decimal("100.00"), ttc=Decimal("110.00"))
        CashEntry.objects.create(date=date(2026, 3, 2), cash=Decimal("110.00"))
        CashEntry.objects.create(
            date=date(2026, 3, 5), b2b_services=[{"label": "Atelier", "value": "80.00"}], card=Decimal("80.00")
        )
        CashEntry.objects.create(date=date(2026, 4, 1), cash=Decimal("5.00"))

        data = cash_control_month(2026, 3)

        self.assertEqual([row["date"] for row in data["days"]], ["2026-03-02", "2026-03-05"])
        self.assertEqual(data["days"][1]["ttc"], Decimal("0.00"))
        self.assertEqual(data["totals"]["ttc"], Decimal("110.00"))
        self.assertEqual(data["totals"]["total_collected"], Decimal("190.00"))
        self.assertEqual(data["totals"]["total_b2b"], Decimal("80.00"))

    def test_control_endpoint_validates_month(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.get(reverse("cash-entry-control"), {"year": 2026, "month": 13})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CashRegisterCountTests(AccountingTestCase):
    def _count(self, **payload):
        self.client.force_authenticate(self.staff)
        return self.client.post(reverse("cash-count-list"), payload, format="json")

    def test_detailed_count_sets_the_amount(self) -> None:
        response = self._count(
            date="2026-03-02",
            count_details={"bills": [{"value": 20, "quantity": 5}], "coins": [{"value": "0.50", "quantity": 7}]},
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["amount"], "103.50")
        self.assertEqual(response.data["counted_by_name"], self.staff.display_name)
        self.assertIsNone(response.data["difference"])

    def test_amount_must_match_the_details(self) -> None:
        response = self._count(amount="90.00", count_details={"bills": [{"value": 20, "quantity": 5}]})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "AMOUNT_MISMATCH")

    def test_small_gap_accepted(self) -> None:
        CashRegisterCount.objects.create(date=date(2026, 3, 1), amount=Decimal("150.00"))

        response = self._count(date="2026-03-02", amount="146.00")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["difference"], "-4.00")

    def test_large_gap_needs_confirmation(self) -> None:
        CashRegisterCount.objects.create(date=date(2026, 3, 1), amount=Decimal("150.00"))

        refused = self._count(date="2026-03-02", amount="140.00")
        confirmed = self._count(date="2026-03-02", amount="140.00", confirm_discrepancy=True, notes="Pièce tombée")

        self.assertEqual(refused.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(refused.data["code"], "CASH_DISCREPANCY")
        self.assertEqual(refused.data["difference"], Decimal("-10.00"))
        self.assertEqual(confirmed.status_code, status.HTTP_201_CREATED)
        self.assertEqual(confirmed.data["notes"], "Écart de -10.00 € - Responsable prévenu\nPièce tombée")
        self.assertEqual(CashRegisterCount.objects.count(), 2)

    def test_list_by_month_and_stats(self) -> None:
        today = timezone.localdate()
        CashRegisterCount.objects.create(date=today, amount=Decimal("150.00"))
        CashRegisterCount.objects.create(date=today, amount=Decimal("160.00"))
        CashRegisterCount.objects.create(date=today.replace(day=1) - timedelta(days=1), amount=Decimal("100.00"))
        self.client.force_authenticate(self.staff)

        listing = self.client.get(reverse("cash-count-list"), {"month": today.strftime("%Y-%m")})
        stats = self.client.get(reverse("cash-count-stats")).data

        self.assertEqual(len(listing.data), 2)
        self.assertEqual(stats["today"], {"count": 2, "total": Decimal("310.00"), "average": Decimal("155.00")})
        self.assertEqual(stats["last_month"]["count"], 1)

    def test_bad_month_filter(self) -> None:
        self.client.force_authenticate(self.staff)
        response = self.client.get(reverse("cash-count-list"), {"month": "mars"})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_admins_delete_counts(self) -> None:
        count = CashRegisterCount.objects.create(date=date(2026, 3, 1), amount=Decimal("150.00"))
        url = reverse("cash-count-detail", args=[count.pk])

        self.client.force_authenticate(self.staff)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_403_FORBIDDEN)
        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_204_NO_CONTENT)

    def test_clients_cannot_count(self) -> None:
        client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.client.force_authenticate(client_user)
        response = self.client.post(reverse("cash-count-list"), {"amount": "10.00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class DashboardTests(AccountingTestCase):
    def test_turnover_ranges(self) -> None:
        # Wednesday 11 March 2026
        today = date(2026, 3, 11)
        for day, ttc in ((date(2026, 3, 10), "110.00"), (date(2026, 3, 3), "55.00"), (date(2026, 2, 10), "22.00")):
            DailyTurnover.objects.create(date=day, ht=Decimal(ttc) - Decimal("10.00"), ttc=Decimal(ttc))
        DailyTurnover.objects.create(date=date(2025, 3, 20), ht=Decimal("5.00"), ttc=Decimal("6.00"))

        ranges = turnover_ranges(today)

        self.assertEqual(ranges["yesterday"]["ttc"], Decimal("110.00"))
        self.assertEqual(ranges["week"]["start"], "2026-03-09")
        self.assertEqual(ranges["week"]["ttc"], Decimal("110.00"))
        self.assertEqual(ranges["previous_day"]["ttc"], Decimal("55.00"))
        self.assertEqual(ranges["previous_week"]["ttc"], Decimal("55.00"))
        self.assertEqual(ranges["previous_week_to_date"]["end"], "2026-03-04")
        self.assertEqual(ranges["month"]["ttc"], Decimal("165.00"))
        self.assertEqual(ranges["previous_month"]["ttc"], Decimal("22.00"))
        self.assertEqual(ranges["previous_month_to_date"]["ttc"], Decimal("22.00"))
        self.assertEqual(ranges["year"]["ttc"], Decimal("187.00"))
        self.assertEqual(ranges["previous_year"]["ttc"], Decimal("6.00"))
        self.assertEqual(ranges["previous_year_to_date"]["ttc"], Decimal("0.00"))

    def test_month_to_date_clamped_to_shorter_month(self) -> None:
        ranges = turnover_ranges(date(2026, 3, 31))
        self.assertEqual(ranges["previous_month_to_date"]["end"], "2026-02-28")

    def test_dashboard_counts(self) -> None:
        today = timezone.localdate()
        room = make_meeting_room()
        client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        make_reservation(room, client_user, days_ahead=0)
        make_reservation(room, client_user, days_ahead=2, status=Reservation.Status.PENDING)
        make_reservation(room, client_user, days_ahead=0, status=Reservation.Status.CANCELLED, start_time=time(14))
        ContactMessage.objects.create(name="Paul", email="paul@example.com", subject="Question", message="Bonjour")
        Task.objects.create(title="En retard", due_date=today - timedelta(days=1))
        Task.objects.create(title="Plus tard", due_date=today + timedelta(days=3))
        CashRegisterCount.objects.create(date=today, amount=Decimal("150.00"), counted_by_name="Chloé")
        self.client.force_authenticate(self.staff)

        response = self.client.get(reverse("dashboard"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["reservations_today"], 1)
        self.assertEqual(response.data["pending_reservations"], 1)
        self.assertEqual(response.data["unread_messages"], 1)
        self.assertEqual(response.data["pending_tasks"], 1)
        self.assertEqual(response.data["last_cash_count"]["amount"], Decimal("150.00"))
        self.assertIn("previous_year_to_date", response.data["turnover"])

    def test_dashboard_is_for_the_team(self) -> None:
        self.assertEqual(self.client.get(reverse("dashboard")).status_code, status.HTTP_401_UNAUTHORIZED)
