from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.utils.utils import build_ordering
from .filters import OrderFilter
from .models import Order
from .serializers import OrderSerializer, OrderListSerializer
from .services import OrderService


class OrderViewSet(viewsets.GenericViewSet):
    """
    Orders: list / retrieve / create, plus PUT <id>/status/.
    Every write is delegated to OrderService.
    """
    queryset = Order.objects.all()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    results_key = "orders"
    lookup_value_regex = r"\d+"

    SORTABLE_FIELDS = ("order_date", "total_amount", "customer_name", "status", "created_at")

    def get_serializer_class(self):
        if self.action == "list":
            return OrderListSerializer
        return OrderSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params
        return qs.order_by(*build_ordering(
            params.get("sortBy"),
            params.get("sortOrder"),
            allowed=self.SORTABLE_FIELDS,
            default="-order_date",
            default_direction="DESC",
        ))

    def list(self, request):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request, pk=None):
        order = OrderService().get_order(pk)
        return Response(OrderSerializer(order).data)

    def create(self, request):
        """
        Expects: { "customer_name": "...", "items": [{"product_id": 1, "quantity": 2}] }
        """
        data = request.data if isinstance(request.data, dict) else {}
        order = OrderService().create_order(
            customer_name=data.get("customer_name"),
            items=data.get("items"),
        )
        return Response(
            {"message": "Order created successfully", "order": OrderSerializer(order).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["put"], url_path="status")
    def update_status(self, request, pk=None):
        data = request.data if isinstance(request.data, dict) else {}
        new_status = data.get("status")
        result = OrderService().update_order_status(pk, new_status)
        order = result.order

        if not result.changed:
            message = f"Order {order.pk} status is already {order.status}."
        elif result.stock_restored:
            message = f"Order {order.pk} status updated to {order.status} and stock restored."
        else:
            message = f"Order {order.pk} status updated to {order.status}"

        return Response({"message": message, "order": OrderSerializer(order).data})
