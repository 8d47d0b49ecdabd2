from django.conf import settings
from rest_framework.exceptions import NotFound
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PageListPagination(PageNumberPagination):
    """``pageNumber``/``pageSize`` paging that returns a bare JSON array.

    The total row count travels in the ``X-Total-Count`` header so clients
    that only understand arrays keep working.
    """

    page_query_param = "pageNumber"
    page_size_query_param = "pageSize"
    page_size = settings.SYNC_DEFAULT_PAGE_SIZE
    max_page_size = settings.SYNC_MAX_PAGE_SIZE

    def paginate_queryset(self, queryset, request, view=None):
        try:
            page = super().paginate_queryset(queryset, request, view)
        except NotFound:
            # Past the last page: empty result, not an error.
            self.total_count = len(queryset) if isinstance(queryset, (list, tuple)) else queryset.count()
            return []
        self.total_count = self.page.paginator.count if page is not None else 0
        return page

    def get_paginated_response(self, data):
        return Response(data, headers={"X-Total-Count": str(self.total_count)})

    def get_paginated_response_schema(self, schema):
        return schema
