from __future__ import annotations

import math
from dataclasses import dataclass

from fastapi import Query

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# Keeps offset inside a signed 64-bit column for any allowed page_size.
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE


def total_pages(total: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    return int(math.ceil(max(0, total) / page_size))


@dataclass(frozen=True, slots=True)
class PageRequest:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_query(cls, page: int | None, page_size: int | None) -> PageRequest:
        """Out-of-range values fall back to the defaults instead of failing the request."""
        safe_page = min(page, MAX_PAGE) if page is not None and page >= 1 else 1
        if page_size is None or page_size < 1 or page_size > MAX_PAGE_SIZE:
            safe_size = DEFAULT_PAGE_SIZE
        else:
            safe_size = page_size
        return cls(page=safe_page, page_size=safe_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def envelope(self, total: int) -> dict[str, int]:
        return {
            "total": total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": total_pages(total, self.page_size),
        }


def _lenient_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def page_query(
    page: str | None = Query(default=None),
    page_size: str | None = Query(default=None),
) -> PageRequest:
    """FastAPI dependency: unparseable values are treated like out-of-range ones."""
    return PageRequest.from_query(_lenient_int(page), _lenient_int(page_size))
