"""Page-number pagination rendered in the shape the web client expects."""
from __future__ import annotations

import math
from typing import Any, List, Optional

from django.conf import settings
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class ResultsPagination(PageNumberPagination):
    """``?page=&limit=`` pagination returning ``{<results_key>: [...], "pagination": {...}}``."""

    page_size_query_param = "limit"
    max_page_size = 100
    results_key = "results"
    default_page_size: Optional[int] = None

    def __init__(self) -> None:
        self.page_size = self.default_page_size or settings.RESOLVENOW_PAGE_SIZE

    def get_paginated_response(self, data: List[Any]) -> Response:
        total = self.page.paginator.count
        size = self.page.paginator.per_page
        return Response(
            {
                self.results_key: data,
                "pagination": {
                    "current": self.page.number,
                    "pages": math.ceil(total / size) if size else 0,
                    "total": total,
                },
            }
        )


class ComplaintPagination(ResultsPagination):
    results_key = "complaints"


class StaffComplaintPagination(ComplaintPagination):
    default_page_size = 20


class UserPagination(ResultsPagination):
    results_key = "users"
    default_page_size = 20
