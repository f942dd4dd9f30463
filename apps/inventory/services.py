import logging
from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import F
from django.db.transaction import TransactionManagementError
from django.utils import timezone

from apps.catalog.models import Product
from apps.utils.exceptions import InsufficientStock, ProductNotFound

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Source of truth for product stock levels.
    ALL order-driven stock changes must pass through here, inside the
    caller's atomic block; this class takes no locks of its own beyond the
    row it updates.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS):
        self.using = using

    def _products(self):
        return Product.objects.using(self.using)

    def _require_atomic(self, operation: str):
        if not transaction.get_connection(self.using).in_atomic_block:
            raise TransactionManagementError(
                f"InventoryService.{operation} must run inside transaction.atomic()."
            )

    @staticmethod
    def _check_amount(amount):
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValueError(f"Stock amount must be a positive integer, got {amount!r}.")

    def get_product(self, product_id, lock: bool = False) -> Product:
        qs = self._products()
        if lock:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=product_id)
        except Product.DoesNotExist:
            raise ProductNotFound(product_id)

    def decrement_stock(self, product_id, amount: int) -> int:
        """
        Conditional decrement: succeeds only if `amount <= stock`.
        Returns the stock left after the update.
        """
        self._require_atomic("decrement_stock")
        self._check_amount(amount)

        updated = self._products().filter(pk=product_id, stock__gte=amount).update(
            stock=F("stock") - amount,
            updated_at=timezone.now(),
        )
        if not updated:
            product = self.get_product(product_id)
            raise InsufficientStock(product, requested=amount)

        remaining = self._products().filter(pk=product_id).values_list("stock", flat=True).get()
        logger.debug("Stock of product %s decremented by %s (now %s)", product_id, amount, remaining,
                     extra={"product_id": product_id})
        return remaining

    def increment_stock(self, product_id, amount: int) -> int:
        """
        Unconditional add. Only used to reverse an earlier decrement.
        """
        self._require_atomic("increment_stock")
        self._check_amount(amount)

        updated = self._products().filter(pk=product_id).update(
            stock=F("stock") + amount,
            updated_at=timezone.now(),
        )
        if not updated:
            raise ProductNotFound(product_id)

        restored = self._products().filter(pk=product_id).values_list("stock", flat=True).get()
        logger.debug("Stock of product %s restored by %s (now %s)", product_id, amount, restored,
                     extra={"product_id": product_id})
        return restored

    def low_stock_count(self, threshold=None) -> int:
        return self._products().low_stock(threshold).count()
