"""
Blog API — Offset Pagination Helpers
======================================

What:  Shared page/limit arithmetic for blogs, comments and submissions.
Why:   All three listings expose the same metadata block; only the name of
       the total field differs (totalBlogs / totalComments / totalSubmissions).

    offset      = (page - 1) * limit
    total_pages = ceil(total / limit)
    has_next    = page < total_pages
    has_prev    = page > 1
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int
    total: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def slice(self, items: Sequence[T]) -> List[T]:
        """In-memory slice used by the comment ledger."""
        return list(items[self.offset:self.offset + self.limit])

    def as_metadata(self, total_key: str) -> dict:
        """Keyword arguments for the pagination schemas in app.schemas.common."""
        return {
            "current_page": self.page,
            "total_pages": self.total_pages,
            total_key: self.total,
            "limit": self.limit,
            "has_next_page": self.has_next_page,
            "has_prev_page": self.has_prev_page,
        }


def coerce_query_int(raw: Optional[str], default: int, maximum: Optional[int] = None) -> int:
    """
    Lenient page/limit parsing for listing endpoints.

    Missing, non-numeric, zero or negative values fall back to the default
    so older frontends sending `page=NaN` still get a page back. Values
    above `maximum` are clamped.
    """
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    if value < 1:
        return default
    if maximum is not None and value > maximum:
        return maximum
    return value
