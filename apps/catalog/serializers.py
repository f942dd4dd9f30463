# apps/catalog/serializers.py
from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=0,
        error_messages={
            "invalid": "Price must be a valid non-negative number.",
            "min_value": "Price must be a valid non-negative number.",
        },
    )
    stock = serializers.IntegerField(
        min_value=0,
        error_messages={
            "invalid": "Stock must be a valid non-negative integer.",
            "min_value": "Stock must be a valid non-negative integer.",
        },
    )
    category = serializers.CharField(
        max_length=100, required=False, allow_blank=True, allow_null=True
    )
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "sku",
            "category",
            "description",
            "price",
            "stock",
            "image_url",
            "is_low_stock",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]
        extra_kwargs = {
            # Uniqueness is enforced by CatalogService so it can answer 409
            "sku": {"validators": []},
            "image_url": {"required": False, "allow_blank": True, "allow_null": True},
        }

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required.")
        return value

    def validate_sku(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("SKU is required.")
        return value

    def validate_category(self, value):
        return (value or "").strip()

    def validate_description(self, value):
        return value or ""
