"""URL routing for the catalog."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import MenuView, ProductCategoryViewSet, ProductViewSet

router = DefaultRouter()
router.register(r"categories", ProductCategoryViewSet, basename="product-category")
router.register(r"products", ProductViewSet, basename="product")

urlpatterns = [
    path("menu/", MenuView.as_view(), name="menu"),
    path("", include(router.urls)),
]
