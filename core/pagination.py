"""
Page/size normalisation shared by the review queue and the ledger listing.

Unlike DRF's PageNumberPagination this never rejects a request: a page below
1 becomes 1, a size below 1 becomes the default, and a size above the
ceiling is clamped to it. Pages past the end simply come back empty.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from django.conf import settings


def _default_page_size() -> int:
    return getattr(settings, "IMPORT_REVIEW_DEFAULT_PAGE_SIZE", 50)


def _max_page_size() -> int:
    return getattr(settings, "IMPORT_REVIEW_MAX_PAGE_SIZE", 1000)


def _to_int(raw: Any) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def normalize_page(page_number: Any = None, page_size: Any = None) -> tuple[int, int]:
    number = _to_int(page_number)
    size = _to_int(page_size)

    if number is None or number < 1:
        number = 1
    if size is None or size < 1:
        size = _default_page_size()
    size = min(size, _max_page_size())
    return number, size


@dataclass(frozen=True)
class PageMetadata:
    page_number: int
    page_size: int
    total_count: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool
    first_item: int
    last_item: int

    @classmethod
    def calculate(cls, page_number: int, page_size: int, total_count: int) -> "PageMetadata":
        total_pages = math.ceil(total_count / page_size) if total_count > 0 else 0
        return cls(
            page_number=page_number,
            page_size=page_size,
            total_count=total_count,
            total_pages=total_pages,
            has_previous_page=page_number > 1,
            has_next_page=page_number < total_pages,
            first_item=(page_number - 1) * page_size + 1 if total_count > 0 else 0,
            last_item=min(page_number * page_size, total_count) if total_count > 0 else 0,
        )

    def as_dict(self) -> dict:
        return {
            "PageNumber": self.page_number,
            "PageSize": self.page_size,
            "TotalCount": self.total_count,
            "TotalPages": self.total_pages,
            "HasPreviousPage": self.has_previous_page,
            "HasNextPage": self.has_next_page,
            "FirstItem": self.first_item,
            "LastItem": self.last_item,
        }


def paginate(queryset, page_number: int, page_size: int):
    """Return (rows, metadata) for an already-ordered queryset."""
    total_count = queryset.count()
    offset = (page_number - 1) * page_size
    # Pages past the end skip the query; their OFFSET may not fit in the database.
    rows = list(queryset[offset:offset + page_size]) if offset < total_count else []
    return rows, PageMetadata.calculate(page_number, page_size, total_count)
