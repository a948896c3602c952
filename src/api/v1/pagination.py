"""Pagination for API v1 list endpoints."""

from rest_framework.pagination import PageNumberPagination


class ApiPagination(PageNumberPagination):
    """``PAGE_SIZE`` rows per page; ``?page_size=`` may raise it up to 100."""

    page_size_query_param = "page_size"
    max_page_size = 100
