"""Menu categories, products and the public menu."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Product, ProductCategory
from apps.users.models import User


class CatalogTests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@example.com", password="AdminPass123", role=User.RoleChoices.ADMIN
        )
        self.staff = User.objects.create_user(
            email="staff@example.com", password="StaffPass123", role=User.RoleChoices.STAFF
        )
        self.client_user = User.objects.create_user(email="client@example.com", password="ClientPass123")
        self.drinks = ProductCategory.objects.create(name="Boissons chaudes", category_type="drink", order=1)
        self.hidden = ProductCategory.objects.create(name="Réserve", category_type="grocery", show_on_site=False)
        self.latte = Product.objects.create(
            name="Latte", category=self.drinks, product_type="drink", recipe="2 shots, lait entier", order=2
        )
        self.espresso = Product.objects.create(name="Espresso", category=self.drinks, product_type="drink", order=1)
        self.retired = Product.objects.create(
            name="Chocolat épicé", category=self.drinks, product_type="drink", is_active=False
        )
        Product.objects.create(name="Café en grains", category=self.hidden, product_type="grocery")

    def test_slug_generated_from_name(self) -> None:
        self.client.force_authenticate(self.admin)

        first = self.client.post(
            reverse("product-category-list"), {"name": "Boissons chaudes", "category_type": "drink"}, format="json"
        )

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.drinks.slug, "boissons-chaudes")
        self.assertEqual(first.data["slug"], "boissons-chaudes-1")

    def test_product_type_follows_the_category(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("product-list"), {"name": "Cappuccino", "category": self.drinks.pk}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["product_type"], "drink")

    def test_mismatched_type_rejected(self) -> None:
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("product-list"),
            {"name": "Cookie", "category": self.drinks.pk, "product_type": "food"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("product_type", response.data)

    def test_category_type_change_blocked_by_its_products(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.patch(
            reverse("product-category-detail", args=[self.drinks.pk]), {"category_type": "food"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_category_with_products_cannot_be_deleted(self) -> None:
        empty = ProductCategory.objects.create(name="Goodies", category_type="goodies")
        self.client.force_authenticate(self.admin)

        blocked = self.client.delete(reverse("product-category-detail", args=[self.drinks.pk]))
        deleted = self.client.delete(reverse("product-category-detail", args=[empty.pk]))

        self.assertEqual(blocked.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(blocked.data["detail"], "Cette catégorie contient des produits.")
        self.assertEqual(deleted.status_code, status.HTTP_204_NO_CONTENT)

    def test_public_sees_visible_products_without_recipe(self) -> None:
        response = self.client.get(reverse("product-list"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["name"] for row in response.data], ["Espresso", "Latte"])
        self.assertNotIn("recipe", response.data[0])

    def test_team_sees_everything(self) -> None:
        self.client.force_authenticate(self.staff)

        products = self.client.get(reverse("product-list"))
        categories = self.client.get(reverse("product-category-list"))

        self.assertEqual(len(products.data), 4)
        self.assertEqual(len(categories.data), 2)
        latte = next(row for row in products.data if row["name"] == "Latte")
        self.assertEqual(latte["recipe"], "2 shots, lait entier")

    def test_only_admins_write(self) -> None:
        for user in (self.staff, self.client_user):
            self.client.force_authenticate(user)
            response = self.client.post(
                reverse("product-list"), {"name": "Thé", "category": self.drinks.pk}, format="json"
            )
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_menu_lists_visible_categories_and_active_products(self) -> None:
        response = self.client.get(reverse("menu"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["slug"] for row in response.data], ["boissons-chaudes"])
        self.assertEqual([product["name"] for product in response.data[0]["products"]], ["Espresso", "Latte"])
        self.assertNotIn("recipe", response.data[0]["products"][0])

    def test_menu_filtered_by_type(self) -> None:
        self.assertEqual(self.client.get(reverse("menu"), {"type": "food"}).data, [])
        self.assertEqual(self.client.get(reverse("menu"), {"type": "wine"}).status_code, status.HTTP_400_BAD_REQUEST)
