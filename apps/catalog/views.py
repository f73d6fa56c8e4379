"""Catalog API: categories and products of the café menu, and the public menu."""

from __future__ import annotations

import logging

from django.db.models import Prefetch  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsAdminRoleOrReadOnly

from .models import Product, ProductCategory, ProductType
from .serializers import MenuCategorySerializer, ProductCategorySerializer, ProductSerializer, is_team_member

logger = logging.getLogger(__name__)


class ProductCategoryViewSet(viewsets.ModelViewSet):
    """Catégories de la carte.

    Le public ne voit que les catégories actives affichées sur le site ;
    l'équipe voit tout, les administrateurs modifient.
    """

    serializer_class = ProductCategorySerializer
    permission_classes = [IsAdminRoleOrReadOnly]
    filterset_fields = ["category_type", "is_active", "show_on_site"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        qs = ProductCategory.objects.all()
        if not is_team_member(self.request):
            qs = qs.filter(is_active=True, show_on_site=True)
        return qs

    def destroy(self, request, *args, **kwargs):  # type: ignore
        category = self.get_object()
        if category.products.exists():
            return Response({"detail": "Cette catégorie contient des produits."}, status=status.HTTP_400_BAD_REQUEST)
        category.delete()
        logger.info(f"Product category {category.slug} deleted by {request.user.pk}")
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [IsAdminRoleOrReadOnly]
    filterset_fields = ["category", "product_type", "is_active"]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):  # type: ignore
        qs = Product.objects.select_related("category")
        if not is_team_member(self.request):
            qs = qs.filter(is_active=True, category__is_active=True, category__show_on_site=True)
        return qs


class MenuView(APIView):
    """Carte publique : catégories visibles d'un type et leurs produits actifs."""

    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        categories = ProductCategory.objects.filter(is_active=True, show_on_site=True).prefetch_related(
            Prefetch("products", queryset=Product.objects.filter(is_active=True), to_attr="active_products")
        )
        product_type = request.query_params.get("type")
        if product_type:
            if product_type not in ProductType.values:
                return Response({"detail": "Type de produit inconnu."}, status=status.HTTP_400_BAD_REQUEST)
            categories = categories.filter(category_type=product_type)
        return Response(MenuCategorySerializer(categories, many=True).data)
