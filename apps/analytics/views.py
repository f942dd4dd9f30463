# apps/analytics/views.py
from rest_framework.response import Response
from rest_framework.views import APIView

from .services import SalesReportService


class SalesReportView(APIView):
    """
    Base for the report endpoints: resolves startDate/endDate (and, where
    the endpoint supports it, period) from the query string.
    """
    supports_period = False

    def get_period(self, request):
        params = request.query_params
        return SalesReportService.resolve_period(
            period=params.get("period") if self.supports_period else None,
            start=params.get("startDate"),
            end=params.get("endDate"),
        )


class SalesSummaryView(SalesReportView):
    supports_period = True

    def get(self, request):
        params = request.query_params
        period = self.get_period(request)

        data = SalesReportService().sales_summary(period)
        data.update(period.as_payload())
        data["filters_applied"] = {
            "period": params.get("period"),
            "startDate": params.get("startDate"),
            "endDate": params.get("endDate"),
        }
        return Response(data)


class SalesByProductView(SalesReportView):
    def get(self, request):
        period = self.get_period(request)
        rows = SalesReportService().sales_by_product(period)
        return Response({"sales_by_product": rows, **period.as_payload()})


class TopSellingProductsView(SalesReportView):
    def get(self, request):
        params = request.query_params
        period = self.get_period(request)

        rows, limit, criteria = SalesReportService().top_selling_products(
            period,
            limit=params.get("limit"),
            criteria=params.get("criteria"),
        )
        return Response({
            "top_selling_products": rows,
            "limit": limit,
            "criteria": criteria,
            **period.as_payload(),
        })
