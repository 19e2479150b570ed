import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class EnvelopePagination(PageNumberPagination):
    """
    Page-number pagination with ?page= and ?per_page= (clamped to 1..100).
    Responds with {"data": [...], "meta": {page, per_page, total, ...}}.
    """

    page_size = 10
    page_size_query_param = "per_page"
    max_page_size = 100

    def get_page_size(self, request):
        raw = request.query_params.get(self.page_size_query_param)
        if raw is None:
            return self.page_size
        try:
            size = int(raw)
        except (TypeError, ValueError):
            return self.page_size
        return min(max(1, size), self.max_page_size)

    def get_meta(self):
        total = self.page.paginator.count
        per_page = self.page.paginator.per_page
        return {
            "page": self.page.number,
            "per_page": per_page,
            "total": total,
            "total_pages": math.ceil(total / per_page) if per_page else 0,
            "has_next_page": self.page.has_next(),
            "has_previous_page": self.page.has_previous(),
        }

    def get_paginated_response(self, data):
        response = Response({"data": data, "meta": self.get_meta()})
        response.enveloped = True
        return response

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "properties": {
                "data": schema,
                "meta": {
                    "type": "object",
                    "properties": {
                        "page": {"type": "integer"},
                        "per_page": {"type": "integer"},
                        "total": {"type": "integer"},
                        "total_pages": {"type": "integer"},
                        "has_next_page": {"type": "boolean"},
                        "has_previous_page": {"type": "boolean"},
                    },
                },
            },
        }
