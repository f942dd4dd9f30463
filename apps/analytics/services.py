# apps/analytics/services.py
import calendar
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS
from django.db.models import Avg, Count, F, Sum
from django.utils import timezone

from apps.inventory.services import InventoryService
from apps.orders.models import Order, OrderItem
from apps.utils.utils import parse_date_param, parse_positive_int

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

PERIODS = ("daily", "monthly", "yearly")
CRITERIA_REVENUE = "revenue"
CRITERIA_QUANTITY = "quantity"


@dataclass
class ReportPeriod:
    start: date | None
    end: date | None

    def as_payload(self):
        return {
            "period_start": self.start.isoformat() if self.start else None,
            "period_end": self.end.isoformat() if self.end else None,
        }


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(CENTS)


class SalesReportService:
    """
    Read-only aggregates over Completed orders.
    Date bounds are inclusive and compared against the local calendar date
    of `Order.order_date`.
    """

    def __init__(self, using=DEFAULT_DB_ALIAS, inventory: InventoryService | None = None):
        self.using = using
        self.inventory = inventory or InventoryService(using=using)

    @staticmethod
    def resolve_period(period=None, start=None, end=None, today: date | None = None) -> ReportPeriod:
        """
        `period` (daily/monthly/yearly) wins over explicit dates.
        Unknown periods and unparseable dates are ignored.
        """
        if not isinstance(start, date):
            start = parse_date_param(start)
        if not isinstance(end, date):
            end = parse_date_param(end)

        today = today or timezone.localdate()
        period = (period or "").strip().lower()

        if period == "daily":
            return ReportPeriod(today, today)
        if period == "monthly":
            last_day = calendar.monthrange(today.year, today.month)[1]
            return ReportPeriod(today.replace(day=1), today.replace(day=last_day))
        if period == "yearly":
            return ReportPeriod(date(today.year, 1, 1), date(today.year, 12, 31))
        return ReportPeriod(start, end)

    def _completed_orders(self, period: ReportPeriod):
        qs = Order.objects.using(self.using).filter(status=Order.Status.COMPLETED)
        if period.start:
            qs = qs.filter(order_date__date__gte=period.start)
        if period.end:
            qs = qs.filter(order_date__date__lte=period.end)
        return qs

    def _product_rows(self, period: ReportPeriod, order_by: str):
        orders = self._completed_orders(period)
        return (
            OrderItem.objects.using(self.using)
            .filter(order__in=orders)
            .values("product_id", product_name=F("product__name"), product_sku=F("product__sku"))
            .annotate(
                total_quantity_sold=Sum("quantity"),
                total_revenue_from_product=Sum("total_price"),
            )
            .order_by(f"-{order_by}", "product_id")
        )

    def sales_summary(self, period: ReportPeriod) -> dict:
        totals = self._completed_orders(period).aggregate(
            total_orders=Count("id"),
            total_revenue=Sum("total_amount"),
            average_order_value=Avg("total_amount"),
        )
        summary = {
            "total_orders": totals["total_orders"] or 0,
            "total_revenue": _money(totals["total_revenue"]),
            "average_order_value": _money(totals["average_order_value"]),
        }
        low_stock = self.inventory.low_stock_count()

        logger.debug(
            "Sales summary %s..%s: %s orders", period.start, period.end, summary["total_orders"]
        )
        return {"sales_summary": summary, "low_stock_items_count": low_stock}

    def sales_by_product(self, period: ReportPeriod) -> list[dict]:
        return [
            self._format_row(row)
            for row in self._product_rows(period, "total_revenue_from_product")
        ]

    def top_selling_products(self, period: ReportPeriod, limit=None, criteria=None):
        """
        Returns (rows, limit, criteria) with limit/criteria normalised:
        bad limits fall back to TOP_SELLING_DEFAULT_LIMIT, anything other
        than "quantity" ranks by revenue.
        """
        limit = parse_positive_int(limit, settings.TOP_SELLING_DEFAULT_LIMIT)
        criteria = (criteria or CRITERIA_REVENUE).strip().lower()
        if criteria != CRITERIA_QUANTITY:
            criteria = CRITERIA_REVENUE

        order_by = (
            "total_quantity_sold" if criteria == CRITERIA_QUANTITY
            else "total_revenue_from_product"
        )
        rows = [self._format_row(row) for row in self._product_rows(period, order_by)[:limit]]
        return rows, limit, criteria

    @staticmethod
    def _format_row(row):
        return {
            "product_id": row["product_id"],
            "product_name": row["product_name"],
            "product_sku": row["product_sku"],
            "total_quantity_sold": row["total_quantity_sold"] or 0,
            "total_revenue_from_product": _money(row["total_revenue_from_product"]),
        }
