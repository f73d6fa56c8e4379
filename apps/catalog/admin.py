"""Admin registration for the catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Product, ProductCategory


@admin.register(ProductCategory)
class ProductCategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "category_type", "order", "is_active", "show_on_site")
    list_filter = ("category_type", "is_active", "show_on_site")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "product_type", "order", "is_active")
    list_filter = ("product_type", "is_active", "category")
    search_fields = ("name", "description")
