# apps/catalog/models.py
from django.conf import settings
from django.db import models

from apps.utils.models import TimestampedModel


class ProductQuerySet(models.QuerySet):
    def low_stock(self, threshold=None):
        if threshold is None:
            threshold = settings.LOW_STOCK_THRESHOLD
        return self.filter(stock__lt=threshold)


class Product(TimestampedModel):
    """
    Sellable item. `stock` is the on-hand quantity and only changes through
    an explicit update or through the order services.
    """
    name = models.CharField(max_length=255)
    sku = models.CharField(
        max_length=100,
        unique=True,
        help_text="Stock-Keeping Unit, unique across all products",
    )
    category = models.CharField(max_length=100, blank=True, default="", db_index=True)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(max_digits=12, decimal_places=2)
    stock = models.IntegerField(default=0)
    image_url = models.CharField(max_length=500, blank=True, null=True)

    objects = ProductQuerySet.as_manager()

    class Meta:
        db_table = "products"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["stock"]),
            models.Index(fields=["created_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name='product_stock_non_negative'
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name='product_price_non_negative'
            ),
        ]

    def __str__(self):
        return f"{self.sku} - {self.name}"

    @property
    def is_low_stock(self):
        return self.stock < settings.LOW_STOCK_THRESHOLD
