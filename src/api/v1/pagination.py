"""Pagination for list endpoints."""

from rest_framework.pagination import PageNumberPagination


class DefaultPagination(PageNumberPagination):
    """Page numbers with an optional ``page_size`` query parameter."""

    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100
