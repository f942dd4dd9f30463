# apps/analytics/tests.py
from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Product
from apps.orders.models import Order
from apps.orders.services import OrderService
from .services import ReportPeriod, SalesReportService


class ReportDataMixin:
    def make_products(self):
        self.product_a = Product.objects.create(name="Widget A", sku="A-1", price=Decimal("10.00"), stock=50)
        self.product_b = Product.objects.create(name="Widget B", sku="B-1", price=Decimal("25.00"), stock=30)
        self.product_c = Product.objects.create(name="Widget C", sku="C-1", price=Decimal("5.00"), stock=2)

    def place(self, lines, status=Order.Status.COMPLETED, order_date=None):
        order = OrderService().create_order(
            "Customer",
            [{"product_id": product.pk, "quantity": qty} for product, qty in lines],
        )
        if status != Order.Status.PENDING:
            OrderService().update_order_status(order.pk, status)
        if order_date is not None:
            Order.objects.filter(pk=order.pk).update(order_date=order_date)
        return order


class ResolvePeriodTests(TestCase):
    def setUp(self):
        self.today = date(2024, 2, 14)

    def test_daily(self):
        period = SalesReportService.resolve_period("daily", today=self.today)
        self.assertEqual((period.start, period.end), (self.today, self.today))

    def test_monthly_handles_leap_year(self):
        period = SalesReportService.resolve_period("Monthly", today=self.today)
        self.assertEqual((period.start, period.end), (date(2024, 2, 1), date(2024, 2, 29)))

    def test_yearly(self):
        period = SalesReportService.resolve_period("YEARLY", today=self.today)
        self.assertEqual((period.start, period.end), (date(2024, 1, 1), date(2024, 12, 31)))

    def test_period_overrides_explicit_dates(self):
        period = SalesReportService.resolve_period("daily", "2020-01-01", "2020-12-31", today=self.today)
        self.assertEqual(period.start, self.today)

    def test_unknown_period_keeps_explicit_dates(self):
        period = SalesReportService.resolve_period("weekly", "2024-01-05", "2024-01-20", today=self.today)
        self.assertEqual((period.start, period.end), (date(2024, 1, 5), date(2024, 1, 20)))

    def test_invalid_dates_are_ignored(self):
        period = SalesReportService.resolve_period(None, "not-a-date", "2024-13-45")
        self.assertEqual((period.start, period.end), (None, None))
        self.assertEqual(period.as_payload(), {"period_start": None, "period_end": None})


class SalesReportServiceTests(ReportDataMixin, TestCase):
    def setUp(self):
        self.make_products()
        self.service = SalesReportService()
        self.all_time = ReportPeriod(None, None)

    def test_summary_counts_completed_orders_only(self):
        self.place([(self.product_a, 2), (self.product_b, 1)])       # 45.00
        self.place([(self.product_c, 1), (self.product_a, 1)])       # 15.00
        self.place([(self.product_b, 2)], status=Order.Status.PENDING)
        self.place([(self.product_b, 1)], status=Order.Status.CANCELLED)

        data = self.service.sales_summary(self.all_time)

        self.assertEqual(data["sales_summary"], {
            "total_orders": 2,
            "total_revenue": Decimal("60.00"),
            "average_order_value": Decimal("30.00"),
        })

    def test_summary_without_orders_is_zero(self):
        data = self.service.sales_summary(self.all_time)
        self.assertEqual(data["sales_summary"]["total_orders"], 0)
        self.assertEqual(data["sales_summary"]["total_revenue"], Decimal("0.00"))
        self.assertEqual(data["sales_summary"]["average_order_value"], Decimal("0.00"))

    def test_low_stock_count_is_global(self):
        data = self.service.sales_summary(ReportPeriod(date(2000, 1, 1), date(2000, 1, 1)))
        # Only Widget C (stock 2) is under the threshold
        self.assertEqual(data["low_stock_items_count"], 1)

    def test_date_bounds_are_inclusive(self):
        now = timezone.now()
        self.place([(self.product_a, 1)], order_date=now - timedelta(days=10))
        self.place([(self.product_a, 2)], order_date=now - timedelta(days=3))
        self.place([(self.product_a, 4)], order_date=now)

        start = timezone.localdate(now - timedelta(days=3))
        end = timezone.localdate(now)
        data = self.service.sales_summary(ReportPeriod(start, end))
        self.assertEqual(data["sales_summary"]["total_orders"], 2)
        self.assertEqual(data["sales_summary"]["total_revenue"], Decimal("60.00"))

        data = self.service.sales_summary(ReportPeriod(None, start))
        self.assertEqual(data["sales_summary"]["total_orders"], 2)

    def test_sales_by_product_sorted_by_revenue(self):
        self.place([(self.product_a, 3), (self.product_b, 1)])
        self.place([(self.product_a, 1), (self.product_c, 2)])

        rows = self.service.sales_by_product(self.all_time)

        self.assertEqual([row["product_sku"] for row in rows], ["A-1", "B-1", "C-1"])
        self.assertEqual(rows[0], {
            "product_id": self.product_a.pk,
            "product_name": "Widget A",
            "product_sku": "A-1",
            "total_quantity_sold": 4,
            "total_revenue_from_product": Decimal("40.00"),
        })

    def test_top_selling_by_quantity_and_limit(self):
        self.place([(self.product_a, 1), (self.product_b, 1), (self.product_c, 2)])

        rows, limit, criteria = self.service.top_selling_products(self.all_time, limit="1", criteria="Quantity")
        self.assertEqual((limit, criteria), (1, "quantity"))
        self.assertEqual([row["product_sku"] for row in rows], ["C-1"])

        rows, limit, criteria = self.service.top_selling_products(self.all_time)
        self.assertEqual((limit, criteria), (5, "revenue"))
        self.assertEqual(rows[0]["product_sku"], "B-1")

    @override_settings(TOP_SELLING_DEFAULT_LIMIT=2)
    def test_top_selling_invalid_limit_falls_back(self):
        self.place([(self.product_a, 1), (self.product_b, 1), (self.product_c, 1)])

        for bad in ["0", "-3", "abc", None]:
            with self.subTest(limit=bad):
                rows, limit, _ = self.service.top_selling_products(self.all_time, limit=bad)
                self.assertEqual(limit, 2)
                self.assertEqual(len(rows), 2)


class ReportApiTests(ReportDataMixin, APITestCase):
    def setUp(self):
        self.make_products()

    def test_daily_summary(self):
        self.place([(self.product_a, 2), (self.product_b, 1)])
        self.place([(self.product_a, 1), (self.product_c, 1)])

        response = self.client.get(reverse("reports-sales-summary"), {"period": "daily"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        summary = response.data["sales_summary"]
        self.assertEqual(summary["total_orders"], 2)
        self.assertEqual(summary["total_revenue"], Decimal("60.00"))
        self.assertEqual(summary["average_order_value"], Decimal("30.00"))
        today = timezone.localdate().isoformat()
        self.assertEqual(response.data["period_start"], today)
        self.assertEqual(response.data["period_end"], today)
        self.assertEqual(response.data["filters_applied"]["period"], "daily")
        self.assertIn("low_stock_items_count", response.data)

    def test_by_product_without_dates(self):
        self.place([(self.product_b, 2)])

        response = self.client.get(reverse("reports-sales-by-product"), {"startDate": "garbage"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data["period_start"])
        self.assertEqual(len(response.data["sales_by_product"]), 1)
        self.assertEqual(response.data["sales_by_product"][0]["total_quantity_sold"], 2)

    def test_top_selling_payload(self):
        self.place([(self.product_a, 5), (self.product_b, 1)])

        response = self.client.get(
            reverse("reports-top-selling"),
            {"limit": "x", "criteria": "quantity", "startDate": "2000-01-01"},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["limit"], 5)
        self.assertEqual(response.data["criteria"], "quantity")
        self.assertEqual(response.data["period_start"], "2000-01-01")
        self.assertEqual(response.data["top_selling_products"][0]["product_sku"], "A-1")
