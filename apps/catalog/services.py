import logging
from django.db import DEFAULT_DB_ALIAS, IntegrityError, transaction
from django.db.models import ProtectedError

from apps.utils.exceptions import DuplicateSKU, ProductInUse, ProductNotFound
from .models import Product

logger = logging.getLogger(__name__)


class CatalogService:
    """
    Product master data: create / update / delete.
    Stock movements caused by orders go through InventoryService instead.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def _products(self):
        return Product.objects.using(self.using)

    def get_product(self, product_id) -> Product:
        try:
            return self._products().get(pk=product_id)
        except Product.DoesNotExist:
            raise ProductNotFound(product_id)

    def create_product(self, data: dict) -> Product:
        sku = data["sku"]
        if self._products().filter(sku=sku).exists():
            raise DuplicateSKU(sku)

        try:
            with transaction.atomic(using=self.using):
                product = Product(**data)
                product.save(using=self.using)
        except IntegrityError:
            # Lost a race against a concurrent insert of the same SKU
            if self._products().filter(sku=sku).exists():
                raise DuplicateSKU(sku)
            raise

        logger.info("Product %s created (sku=%s)", product.pk, product.sku,
                    extra={"product_id": product.pk})
        return product

    def update_product(self, product_id, data: dict) -> Product:
        sku = data.get("sku")
        try:
            with transaction.atomic(using=self.using):
                try:
                    product = self._products().select_for_update().get(pk=product_id)
                except Product.DoesNotExist:
                    raise ProductNotFound(product_id)

                if sku and self._products().filter(sku=sku).exclude(pk=product.pk).exists():
                    raise DuplicateSKU(sku)

                for field, value in data.items():
                    setattr(product, field, value)
                product.save(using=self.using)
        except IntegrityError:
            if sku and self._products().filter(sku=sku).exclude(pk=product_id).exists():
                raise DuplicateSKU(sku)
            raise

        logger.info("Product %s updated", product.pk, extra={"product_id": product.pk})
        return product

    @staticmethod
    def _is_referenced(product) -> bool:
        return product.order_items.exists()

    def delete_product(self, product_id) -> None:
        with transaction.atomic(using=self.using):
            try:
                product = self._products().select_for_update().get(pk=product_id)
            except Product.DoesNotExist:
                raise ProductNotFound(product_id)

            if self._is_referenced(product):
                raise ProductInUse(product_id)

            try:
                product.delete()
            except ProtectedError:
                raise ProductInUse(product_id)

        logger.info("Product %s deleted", product_id, extra={"product_id": product_id})
