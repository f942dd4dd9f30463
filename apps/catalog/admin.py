# apps/catalog/admin.py
from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "sku",
        "name",
        "category",
        "price",
        "stock",
        "updated_at",
    )
    search_fields = ("sku", "name", "description")
    list_filter = ("category",)
    list_editable = ("price",)
    readonly_fields = ("created_at", "updated_at")
