from decimal import Decimal

from django.db import transaction
from django.db.transaction import TransactionManagementError
from django.test import TestCase, TransactionTestCase, override_settings

from apps.catalog.models import Product
from apps.inventory.services import InventoryService
from apps.utils.exceptions import InsufficientStock, ProductNotFound


class InventoryServiceTests(TestCase):
    # TestCase wraps every test in atomic(), which satisfies the service's guard

    def setUp(self):
        self.service = InventoryService()
        self.product = Product.objects.create(
            name="Bolt", sku="BOLT-1", price=Decimal("0.50"), stock=10
        )

    def test_decrement_stock(self):
        remaining = self.service.decrement_stock(self.product.pk, 4)

        self.assertEqual(remaining, 6)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 6)

    def test_decrement_to_zero(self):
        self.assertEqual(self.service.decrement_stock(self.product.pk, 10), 0)

    def test_decrement_more_than_available(self):
        with self.assertRaises(InsufficientStock) as ctx:
            self.service.decrement_stock(self.product.pk, 11)

        err = ctx.exception
        self.assertEqual((err.available, err.requested), (10, 11))
        self.assertIn("Available: 10", err.message)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)

    def test_increment_stock(self):
        self.service.decrement_stock(self.product.pk, 3)
        restored = self.service.increment_stock(self.product.pk, 3)

        self.assertEqual(restored, 10)

    def test_unknown_product(self):
        with self.assertRaises(ProductNotFound):
            self.service.decrement_stock(999999, 1)
        with self.assertRaises(ProductNotFound):
            self.service.increment_stock(999999, 1)
        with self.assertRaises(ProductNotFound):
            self.service.get_product(999999)

    def test_amount_must_be_positive_int(self):
        for amount in [0, -2, 1.5, "3", True]:
            with self.subTest(amount=amount):
                with self.assertRaises(ValueError):
                    self.service.decrement_stock(self.product.pk, amount)

    def test_low_stock_count(self):
        Product.objects.create(name="Nut", sku="NUT-1", price=Decimal("0.10"), stock=9)
        Product.objects.create(name="Washer", sku="WASH-1", price=Decimal("0.05"), stock=0)

        # stock < 10 is low; exactly 10 is not
        self.assertEqual(self.service.low_stock_count(), 2)
        self.assertEqual(self.service.low_stock_count(threshold=11), 3)

    @override_settings(LOW_STOCK_THRESHOLD=1)
    def test_low_stock_threshold_from_settings(self):
        Product.objects.create(name="Washer", sku="WASH-1", price=Decimal("0.05"), stock=0)
        self.assertEqual(self.service.low_stock_count(), 1)


class InventoryTransactionTests(TransactionTestCase):
    def setUp(self):
        self.service = InventoryService()
        self.product = Product.objects.create(
            name="Bolt", sku="BOLT-1", price=Decimal("0.50"), stock=10
        )

    def test_stock_changes_require_atomic_block(self):
        with self.assertRaises(TransactionManagementError):
            self.service.decrement_stock(self.product.pk, 1)
        with self.assertRaises(TransactionManagementError):
            self.service.increment_stock(self.product.pk, 1)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)

    def test_rollback_undoes_decrement(self):
        with self.assertRaises(InsufficientStock):
            with transaction.atomic():
                self.service.decrement_stock(self.product.pk, 4)
                self.service.decrement_stock(self.product.pk, 7)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock, 10)
