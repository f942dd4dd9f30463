from django.conf import settings
from rest_framework.pagination import BasePagination
from rest_framework.response import Response

from .utils import parse_positive_int


class StandardResultsSetPagination(BasePagination):
    """
    page/limit pagination rendered as {<results_key>, total, page, limit}.

    Views name the list key through a `results_key` attribute
    ("products", "orders"). Bad page/limit values fall back to defaults
    instead of raising 404.
    """
    page_query_param = "page"
    limit_query_param = "limit"
    max_limit = 1000

    def paginate_queryset(self, queryset, request, view=None):
        self.page = parse_positive_int(request.query_params.get(self.page_query_param), 1)
        self.limit = min(
            parse_positive_int(
                request.query_params.get(self.limit_query_param),
                settings.DEFAULT_PAGE_SIZE,
            ),
            self.max_limit,
        )
        self.results_key = getattr(view, "results_key", "results")
        self.total = queryset.count()

        offset = (self.page - 1) * self.limit
        return list(queryset[offset:offset + self.limit])

    def get_paginated_response(self, data):
        return Response({
            self.results_key: data,
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
        })

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "results": schema,
                "total": {"type": "integer"},
                "page": {"type": "integer"},
                "limit": {"type": "integer"},
            },
        }
