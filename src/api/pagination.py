from math import ceil
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from django.db.models import QuerySet


def _positive_int(raw, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return max(1, value)


def _count(data: Any) -> int:
    if isinstance(data, QuerySet):
        return data.count()
    try:
        return len(data)
    except TypeError:
        return 0


def _page_url(request, param: str, page: int | None) -> str | None:
    """Absolute URL of another page, other query params preserved."""
    if page is None:
        return None
    scheme, netloc, path, query, frag = urlsplit(request.build_absolute_uri())
    params = dict(parse_qsl(query, keep_blank_values=True))
    params[param] = str(page)
    return urlunsplit((scheme, netloc, path, urlencode(params), frag))


class Paginator:
    """
    Page-based paginator for list endpoints.

        items, meta = Paginator(default_page_size=20).paginate_queryset(qs, request)
        return self.create_response(data={"items": [to_dto(i) for i in items], "pagination": meta})

    Pages past the end come back empty with has_next false.
    """

    def __init__(self, *, page_param: str = "page", page_size_param: str = "page_size", default_page_size: int = 20,
                 max_page_size: int = 100):
        self.page_param = page_param
        self.page_size_param = page_size_param
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def _page_and_size(self, request) -> tuple[int, int]:
        page = _positive_int(request.GET.get(self.page_param), 1)
        size = _positive_int(request.GET.get(self.page_size_param), self.default_page_size)
        return page, min(self.max_page_size, size)

    def paginate_queryset(self, data: Any, request) -> tuple[list[Any], dict[str, Any]]:
        page, size = self._page_and_size(request)
        total = _count(data)
        start = (page - 1) * size

        window = data[start:start + size] if isinstance(data, QuerySet) else list(data)[start:start + size]
        total_pages = max(1, ceil(total / size))
        next_page = page + 1 if page < total_pages else None
        prev_page = page - 1 if page > 1 else None

        meta = {
            "count": total,
            "page": page,
            "page_size": size,
            "total_pages": total_pages,
            "has_next": next_page is not None,
            "has_prev": prev_page is not None,
            "next_page": next_page,
            "prev_page": prev_page,
            "next_url": _page_url(request, self.page_param, next_page),
            "prev_url": _page_url(request, self.page_param, prev_page),
        }
        return list(window), meta
