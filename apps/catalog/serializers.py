from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Product, ProductCategory


def is_team_member(request) -> bool:
    user = getattr(request, "user", None)
    return bool(user and user.is_authenticated and user.is_staff_member())


class ProductCategorySerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = ProductCategory
        fields = [
            "id",
            "name",
            "slug",
            "description",
            "category_type",
            "order",
            "is_active",
            "show_on_site",
            "product_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]
        extra_kwargs = {"slug": {"required": False}}

    def get_product_count(self, obj: ProductCategory) -> int:
        return obj.products.count()

    def validate_category_type(self, value: str) -> str:
        instance = self.instance
        if instance is not None and value != instance.category_type:
            if instance.products.exclude(product_type=value).exists():
                raise serializers.ValidationError("Cette catégorie contient des produits d'un autre type.")
        return value


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "recipe",
            "image",
            "category",
            "category_name",
            "product_type",
            "order",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]
        extra_kwargs = {"product_type": {"required": False}}

    def validate(self, attrs: dict) -> dict:
        category = attrs.get("category", getattr(self.instance, "category", None))
        product_type = attrs.get("product_type", getattr(self.instance, "product_type", None))
        if "category" in attrs and "product_type" not in attrs:
            product_type = category.category_type
        if product_type != category.category_type:
            raise serializers.ValidationError({"product_type": "Type incohérent avec celui de la catégorie."})
        attrs["product_type"] = product_type
        return attrs

    def to_representation(self, instance):  # type: ignore
        data = super().to_representation(instance)
        if not is_team_member(self.context.get("request")):
            data.pop("recipe", None)
        return data


class MenuProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "description", "image", "product_type"]


class MenuCategorySerializer(serializers.ModelSerializer):
    products = serializers.SerializerMethodField()

    class Meta:
        model = ProductCategory
        fields = ["id", "name", "slug", "description", "category_type", "products"]

    def get_products(self, obj: ProductCategory) -> list:
        return MenuProductSerializer(obj.active_products, many=True).data
