# apps/catalog/filters.py
import django_filters
from django.db.models import Q

from apps.utils.utils import parse_bool_param
from .models import Product


class ProductFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    category = django_filters.CharFilter(field_name="category", lookup_expr="exact")
    lowStock = django_filters.CharFilter(method="filter_low_stock")

    class Meta:
        model = Product
        fields = ["search", "category", "lowStock"]

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(name__icontains=value)
            | Q(sku__icontains=value)
            | Q(description__icontains=value)
        )

    def filter_low_stock(self, queryset, name, value):
        if parse_bool_param(value):
            return queryset.low_stock()
        return queryset
