# core/pagination.py
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class EnvelopePagination(PageNumberPagination):
    """Page-number pagination wrapped in the {success, data} envelope"""
    page_size = 20
    page_size_query_param = 'limit'
    max_page_size = 200

    def get_paginated_response(self, data, extra=None):
        total = self.page.paginator.count
        payload = {
            'success': True,
            'count': len(data),
            'pagination': {
                'total': total,
                'page': self.page.number,
                'pages': self.page.paginator.num_pages,
                'limit': self.get_page_size(self.request),
            },
            'data': data,
        }
        if extra:
            payload.update(extra)
        return Response(payload)
