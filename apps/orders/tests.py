# apps/orders/tests.py
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from apps.catalog.models import Product
from apps.orders.models import Order, OrderItem
from apps.orders.services import (
    INVALID_ITEM_MESSAGE,
    MAX_ORDER_TOTAL,
    MISSING_FIELDS_MESSAGE,
    OrderService,
)
from apps.utils.exceptions import (
    InsufficientStock,
    InvalidTransition,
    OrderNotFound,
    OrderValidationError,
    ProductNotFound,
)


class OrderServiceTestBase(TestCase):
    def setUp(self):
        self.service = OrderService()
        self.product_a = Product.objects.create(
            name="Widget A", sku="A-1", price=Decimal("10.00"), stock=5
        )
        self.product_b = Product.objects.create(
            name="Widget B", sku="B-1", price=Decimal("25.00"), stock=3
        )

    def stock_of(self, product):
        product.refresh_from_db()
        return product.stock

    def place_default_order(self):
        return self.service.create_order("Alice", [
            {"product_id": self.product_a.pk, "quantity": 2},
            {"product_id": self.product_b.pk, "quantity": 1},
        ])


class CreateOrderTests(OrderServiceTestBase):
    def test_create_order_deducts_stock_and_totals(self):
        order = self.place_default_order()

        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.customer_name, "Alice")
        self.assertEqual(order.total_amount, Decimal("45.00"))
        self.assertEqual(order.items.count(), 2)
        self.assertEqual(self.stock_of(self.product_a), 3)
        self.assertEqual(self.stock_of(self.product_b), 2)

    def test_total_equals_sum_of_item_totals(self):
        order = self.place_default_order()

        item_a = order.items.get(product=self.product_a)
        self.assertEqual(item_a.price_per_unit, Decimal("10.00"))
        self.assertEqual(item_a.total_price, Decimal("20.00"))
        self.assertEqual(sum(i.total_price for i in order.items.all()), order.total_amount)

    def test_insufficient_stock_changes_nothing(self):
        with self.assertRaises(InsufficientStock) as ctx:
            self.service.create_order("Bob", [
                {"product_id": self.product_a.pk, "quantity": 2},
                {"product_id": self.product_b.pk, "quantity": 4},
            ])

        self.assertIn("Available: 3, Requested: 4", ctx.exception.message)
        self.assertEqual(ctx.exception.product_id, self.product_b.pk)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)
        self.assertEqual(self.stock_of(self.product_a), 5)
        self.assertEqual(self.stock_of(self.product_b), 3)

    def test_unknown_product_changes_nothing(self):
        with self.assertRaises(ProductNotFound):
            self.service.create_order("Bob", [
                {"product_id": self.product_a.pk, "quantity": 1},
                {"product_id": 999999, "quantity": 1},
            ])

        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(self.stock_of(self.product_a), 5)

    def test_same_product_twice_is_checked_against_summed_quantity(self):
        with self.assertRaises(InsufficientStock) as ctx:
            self.service.create_order("Carol", [
                {"product_id": self.product_a.pk, "quantity": 3},
                {"product_id": self.product_a.pk, "quantity": 3},
            ])
        self.assertEqual(ctx.exception.requested, 6)
        self.assertEqual(self.stock_of(self.product_a), 5)

        order = self.service.create_order("Carol", [
            {"product_id": self.product_a.pk, "quantity": 2},
            {"product_id": self.product_a.pk, "quantity": 3},
        ])
        self.assertEqual(order.items.count(), 2)
        self.assertEqual(order.total_amount, Decimal("50.00"))
        self.assertEqual(self.stock_of(self.product_a), 0)

    def test_exact_stock_can_be_ordered(self):
        self.service.create_order("Dan", [{"product_id": self.product_b.pk, "quantity": 3}])
        self.assertEqual(self.stock_of(self.product_b), 0)

    def test_price_is_snapshotted(self):
        order = self.place_default_order()

        self.product_a.price = Decimal("99.00")
        self.product_a.save()

        item_a = OrderItem.objects.get(order=order, product=self.product_a)
        self.assertEqual(item_a.price_per_unit, Decimal("10.00"))
        order.refresh_from_db()
        self.assertEqual(order.total_amount, Decimal("45.00"))

    def test_customer_name_is_trimmed(self):
        order = self.service.create_order("  Eve  ", [{"product_id": self.product_a.pk, "quantity": 1}])
        self.assertEqual(order.customer_name, "Eve")

    def test_numeric_string_quantity_is_accepted(self):
        order = self.service.create_order("Eve", [{"product_id": str(self.product_a.pk), "quantity": "2"}])
        self.assertEqual(order.items.get().quantity, 2)
        self.assertEqual(self.stock_of(self.product_a), 3)

    def test_missing_fields_rejected(self):
        for name, items in [
            ("", [{"product_id": self.product_a.pk, "quantity": 1}]),
            ("   ", [{"product_id": self.product_a.pk, "quantity": 1}]),
            (None, [{"product_id": self.product_a.pk, "quantity": 1}]),
            ("Frank", []),
            ("Frank", None),
        ]:
            with self.subTest(name=name, items=items):
                with self.assertRaises(OrderValidationError) as ctx:
                    self.service.create_order(name, items)
                self.assertEqual(ctx.exception.message, MISSING_FIELDS_MESSAGE)

        self.assertEqual(Order.objects.count(), 0)

    def test_invalid_items_rejected(self):
        for item in [
            {"product_id": self.product_a.pk, "quantity": 0},
            {"product_id": self.product_a.pk, "quantity": -1},
            {"product_id": self.product_a.pk, "quantity": 1.5},
            {"product_id": self.product_a.pk, "quantity": "2.5"},
            {"product_id": self.product_a.pk, "quantity": True},
            {"product_id": self.product_a.pk, "quantity": "²"},
            {"product_id": "①", "quantity": 1},
            {"product_id": self.product_a.pk},
            {"quantity": 1},
            "not-a-dict",
        ]:
            with self.subTest(item=item):
                with self.assertRaises(OrderValidationError) as ctx:
                    self.service.create_order("Grace", [item])
                self.assertEqual(ctx.exception.message, INVALID_ITEM_MESSAGE)

        self.assertEqual(self.stock_of(self.product_a), 5)

    def test_total_beyond_column_capacity_rejected(self):
        pricey = Product.objects.create(
            name="Turbine", sku="T-1", price=Decimal("9000000000.00"), stock=5
        )

        with self.assertRaises(OrderValidationError) as ctx:
            self.service.create_order("Heidi", [{"product_id": pricey.pk, "quantity": 2}])

        self.assertIn("maximum supported amount", ctx.exception.message)
        self.assertEqual(MAX_ORDER_TOTAL, Decimal("10000000000"))
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(self.stock_of(pricey), 5)

    def test_failure_after_inserts_rolls_back_everything(self):
        real_decrement = self.service.inventory.decrement_stock
        calls = []

        def fail_on_second(product_id, amount):
            calls.append(product_id)
            if len(calls) == 2:
                raise RuntimeError("stock update failed")
            return real_decrement(product_id, amount)

        with mock.patch.object(self.service.inventory, "decrement_stock", side_effect=fail_on_second):
            with self.assertRaises(RuntimeError):
                self.place_default_order()

        self.assertEqual(len(calls), 2)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)
        self.assertEqual(self.stock_of(self.product_a), 5)
        self.assertEqual(self.stock_of(self.product_b), 3)


class UpdateOrderStatusTests(OrderServiceTestBase):
    def setUp(self):
        super().setUp()
        self.order = self.place_default_order()

    def test_cancel_restores_stock(self):
        result = self.service.update_order_status(self.order.pk, "Cancelled")

        self.assertTrue(result.changed)
        self.assertTrue(result.stock_restored)
        self.assertEqual(result.previous_status, "Pending")
        self.assertEqual(result.order.status, "Cancelled")
        self.assertEqual(self.stock_of(self.product_a), 5)
        self.assertEqual(self.stock_of(self.product_b), 3)

    def test_cancel_twice_restores_once(self):
        self.service.update_order_status(self.order.pk, "Cancelled")
        result = self.service.update_order_status(self.order.pk, "Cancelled")

        self.assertFalse(result.changed)
        self.assertFalse(result.stock_restored)
        self.assertEqual(self.stock_of(self.product_a), 5)
        self.assertEqual(self.stock_of(self.product_b), 3)

    def test_cancel_from_shipped_restores_stock(self):
        self.service.update_order_status(self.order.pk, "Processing")
        self.service.update_order_status(self.order.pk, "Shipped")
        result = self.service.update_order_status(self.order.pk, "Cancelled")

        self.assertTrue(result.stock_restored)
        self.assertEqual(self.stock_of(self.product_a), 5)

    def test_non_terminal_transition_keeps_stock(self):
        result = self.service.update_order_status(self.order.pk, "Processing")

        self.assertTrue(result.changed)
        self.assertFalse(result.stock_restored)
        self.assertEqual(result.order.status, "Processing")
        self.assertEqual(self.stock_of(self.product_a), 3)

    def test_backwards_transition_between_open_states(self):
        self.service.update_order_status(self.order.pk, "Shipped")
        result = self.service.update_order_status(self.order.pk, "Pending")
        self.assertEqual(result.order.status, "Pending")

    def test_terminal_states_are_final(self):
        self.service.update_order_status(self.order.pk, "Completed")

        for target in ["Cancelled", "Pending", "Shipped"]:
            with self.subTest(target=target):
                with self.assertRaises(InvalidTransition):
                    self.service.update_order_status(self.order.pk, target)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "Completed")
        self.assertEqual(self.stock_of(self.product_a), 3)

    def test_cancelled_order_cannot_be_reopened(self):
        self.service.update_order_status(self.order.pk, "Cancelled")

        with self.assertRaises(InvalidTransition) as ctx:
            self.service.update_order_status(self.order.pk, "Pending")
        self.assertIn("already Cancelled", ctx.exception.message)
        self.assertEqual(self.stock_of(self.product_a), 5)

    def test_invalid_status_rejected(self):
        for value in ["Lost", "cancelled", "", None]:
            with self.subTest(value=value):
                with self.assertRaises(OrderValidationError):
                    self.service.update_order_status(self.order.pk, value)

    def test_missing_order(self):
        with self.assertRaises(OrderNotFound):
            self.service.update_order_status(999999, "Processing")
        with self.assertRaises(OrderNotFound):
            self.service.get_order(999999)

    def test_failed_restoration_rolls_back_cancel(self):
        real_increment = self.service.inventory.increment_stock
        calls = []

        def fail_on_second(product_id, amount):
            calls.append(product_id)
            if len(calls) == 2:
                raise RuntimeError("stock update failed")
            return real_increment(product_id, amount)

        with mock.patch.object(self.service.inventory, "increment_stock", side_effect=fail_on_second):
            with self.assertRaises(RuntimeError):
                self.service.update_order_status(self.order.pk, "Cancelled")

        self.assertEqual(len(calls), 2)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "Pending")
        self.assertEqual(self.stock_of(self.product_a), 3)
        self.assertEqual(self.stock_of(self.product_b), 2)
