import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal

from django.db import DEFAULT_DB_ALIAS, transaction
from django.db.models import Prefetch

from apps.inventory.services import InventoryService
from apps.utils.exceptions import (
    InsufficientStock,
    InvalidTransition,
    OrderNotFound,
    OrderValidationError,
)
from apps.utils.utils import coerce_positive_int
from .models import Order, OrderItem

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Customer name and at least one item are required"
INVALID_ITEM_MESSAGE = (
    "Invalid item data. product_id and positive quantity required for all items."
)


def _amount_limit(field_name):
    field = Order._meta.get_field(field_name)
    return Decimal(10) ** (field.max_digits - field.decimal_places)


MAX_ORDER_TOTAL = _amount_limit("total_amount")


@dataclass
class StatusUpdate:
    order: Order
    previous_status: str
    changed: bool
    stock_restored: bool


class OrderService:
    """
    Order lifecycle against the inventory.

    create_order and the cancelling branch of update_order_status each run as
    one atomic unit on `self.using`: either every row change lands or none do.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS, inventory: InventoryService | None = None):
        self.using = using
        self.inventory = inventory or InventoryService(using=using)

    def _orders(self):
        return Order.objects.using(self.using)

    def _with_items(self, qs):
        items = OrderItem.objects.using(self.using).select_related("product")
        return qs.prefetch_related(Prefetch("items", queryset=items))

    def get_order(self, order_id) -> Order:
        """
        Order with its items (each joined to its product for name/SKU).
        """
        try:
            return self._with_items(self._orders()).get(pk=order_id)
        except (Order.DoesNotExist, ValueError, TypeError):
            raise OrderNotFound(order_id)

    @staticmethod
    def validate_request(customer_name, items):
        """
        Everything that can be checked without touching the database.
        Returns the trimmed name and a list of (product_id, quantity).
        """
        name = customer_name.strip() if isinstance(customer_name, str) else ""
        if not name or not isinstance(items, (list, tuple)) or not items:
            raise OrderValidationError(MISSING_FIELDS_MESSAGE)

        lines = []
        for item in items:
            if not isinstance(item, dict):
                raise OrderValidationError(INVALID_ITEM_MESSAGE)
            product_id = coerce_positive_int(item.get("product_id"))
            quantity = coerce_positive_int(item.get("quantity"))
            if product_id is None or quantity is None:
                raise OrderValidationError(INVALID_ITEM_MESSAGE)
            lines.append((product_id, quantity))
        return name, lines

    def create_order(self, customer_name, items) -> Order:
        """
        Secure Order Creation:
        1. Validate input (no DB access)
        2. Lock products, check stock, snapshot prices (atomic)
        3. Insert order + items, deduct stock (same atomic block)
        """
        name, lines = self.validate_request(customer_name, items)

        with transaction.atomic(using=self.using):
            requested = defaultdict(int)
            total_amount = Decimal("0.00")
            order_items = []

            for product_id, quantity in lines:
                product = self.inventory.get_product(product_id, lock=True)

                # Same product twice in one request counts against one stock figure
                requested[product.pk] += quantity
                if requested[product.pk] > product.stock:
                    raise InsufficientStock(product, requested=requested[product.pk])

                line_total = product.price * quantity
                total_amount += line_total
                if total_amount >= MAX_ORDER_TOTAL:
                    raise OrderValidationError(
                        f"Order total exceeds the maximum supported amount of {MAX_ORDER_TOTAL - Decimal('0.01')}."
                    )
                order_items.append(OrderItem(
                    product=product,
                    quantity=quantity,
                    price_per_unit=product.price,
                    total_price=line_total,
                ))

            order = Order(
                customer_name=name,
                total_amount=total_amount,
                status=Order.Status.PENDING,
            )
            order.save(using=self.using)

            for order_item in order_items:
                order_item.order = order
            OrderItem.objects.using(self.using).bulk_create(order_items)

            for product_id, quantity in lines:
                self.inventory.decrement_stock(product_id, quantity)

        logger.info(
            "Order %s created: %s item(s), total %s",
            order.pk, len(order_items), total_amount,
            extra={"order_id": order.pk},
        )
        return self.get_order(order.pk)

    def update_order_status(self, order_id, new_status) -> StatusUpdate:
        """
        Status transitions. Completed and Cancelled are terminal; moving to
        Cancelled from any other state puts the items' stock back, once.
        """
        if new_status not in Order.Status.values:
            raise OrderValidationError(
                f"Invalid status. Must be one of: {', '.join(Order.Status.values)}"
            )

        with transaction.atomic(using=self.using):
            try:
                order = self._orders().select_for_update().get(pk=order_id)
            except (Order.DoesNotExist, ValueError, TypeError):
                raise OrderNotFound(order_id)

            previous_status = order.status
            if previous_status == new_status:
                return StatusUpdate(self.get_order(order.pk), previous_status, False, False)

            if order.is_terminal:
                raise InvalidTransition(previous_status, new_status)

            stock_restored = False
            if new_status == Order.Status.CANCELLED:
                for item in order.items.all():
                    self.inventory.increment_stock(item.product_id, item.quantity)
                stock_restored = True

            order.status = new_status
            order.save(using=self.using, update_fields=["status", "updated_at"])

        logger.info(
            "Order %s status %s -> %s%s",
            order.pk, previous_status, new_status,
            " (stock restored)" if stock_restored else "",
            extra={"order_id": order.pk},
        )
        return StatusUpdate(self.get_order(order.pk), previous_status, True, stock_restored)
