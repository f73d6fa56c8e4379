from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.blog.models import unique_slug


class ProductType(models.TextChoices):
    FOOD = "food", _("Nourriture")
    DRINK = "drink", _("Boisson")
    GROCERY = "grocery", _("Épicerie")
    GOODIES = "goodies", _("Goodies")


class ProductCategory(models.Model):
    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=120, unique=True, blank=True)
    description = models.TextField(blank=True)
    category_type = models.CharField(max_length=10, choices=ProductType.choices)
    order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    show_on_site = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Catégorie de produits")
        verbose_name_plural = _("Catégories de produits")
        ordering = ["category_type", "order", "name"]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):  # type: ignore
        if not self.slug:
            self.slug = unique_slug(ProductCategory, self.name, instance_pk=self.pk, max_length=100)
        super().save(*args, **kwargs)


class Product(models.Model):
    """Produit de la carte. Son type est toujours celui de sa catégorie."""

    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    recipe = models.TextField(blank=True)
    image = models.URLField(blank=True)
    category = models.ForeignKey(ProductCategory, on_delete=models.PROTECT, related_name="products")
    product_type = models.CharField(max_length=10, choices=ProductType.choices)
    order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Produit")
        verbose_name_plural = _("Produits")
        ordering = ["category__order", "order", "name"]
        indexes = [models.Index(fields=["product_type", "is_active"], name="product_type_active_idx")]

    def __str__(self) -> str:
        return self.name
