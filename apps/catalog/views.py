from rest_framework import viewsets, status
from rest_framework.response import Response

from apps.utils.utils import build_ordering
from .filters import ProductFilter
from .models import Product
from .serializers import ProductSerializer
from .services import CatalogService


class ProductViewSet(viewsets.ModelViewSet):
    """
    Product master list + CRUD.
    Writes go through CatalogService so SKU conflicts and order references
    are reported as domain errors.
    """
    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    filterset_class = ProductFilter
    results_key = "products"
    lookup_value_regex = r"\d+"
    http_method_names = ["get", "post", "put", "delete", "head", "options"]

    SORTABLE_FIELDS = ("name", "price", "stock", "created_at")

    def get_queryset(self):
        qs = super().get_queryset()
        params = self.request.query_params
        return qs.order_by(*build_ordering(
            params.get("sortBy"),
            params.get("sortOrder"),
            allowed=self.SORTABLE_FIELDS,
            default="-created_at",
            default_direction="ASC",
        ))

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = CatalogService().create_product(serializer.validated_data)
        return Response(
            {"message": "Product added successfully", "product": self.get_serializer(product).data},
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        product = CatalogService().update_product(kwargs["pk"], serializer.validated_data)
        return Response(
            {"message": "Product updated successfully", "product": self.get_serializer(product).data}
        )

    def destroy(self, request, *args, **kwargs):
        CatalogService().delete_product(kwargs["pk"])
        return Response({"message": "Product deleted successfully"}, status=status.HTTP_200_OK)
