"""Pagination metadata derived from (page, limit, total)."""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PaginationMetadata:
    """Navigation data for one page of a listing. Never persisted."""

    current_page: int
    per_page: int
    total_items: int
    total_pages: int
    has_next: bool
    has_previous: bool
    next_url: str | None = None
    previous_url: str | None = None

    @property
    def offset(self) -> int:
        return (self.current_page - 1) * self.per_page


def parse_int(raw: str | int | None) -> int | None:
    """Return ``raw`` as an integer, or ``None`` when it is missing or not numeric."""

    if raw is None or isinstance(raw, int):
        return raw
    try:
        return int(raw)
    except ValueError:
        return None


def normalize_page(page: int | None) -> int:
    """Clamp ``page`` to a 1-based page number."""

    if page is None or page < 1:
        return 1
    return page


def normalize_limit(limit: int | None) -> int:
    """Return ``limit`` when it lies in ``[1, MAX_PAGE_SIZE]``, else the default size."""

    if limit is None or limit < 1 or limit > MAX_PAGE_SIZE:
        return DEFAULT_PAGE_SIZE
    return limit


def build_pagination(
    page: int, limit: int, total: int, *, base_path: str | None = None
) -> PaginationMetadata:
    """Derive :class:`PaginationMetadata` for an already normalized page/limit."""

    total_pages = math.ceil(total / limit) if total > 0 else 0
    has_next = page < total_pages
    has_previous = page > 1

    next_url = previous_url = None
    if base_path is not None:
        if has_next:
            next_url = f"{base_path}?page={page + 1}&limit={limit}"
        if has_previous:
            previous_url = f"{base_path}?page={page - 1}&limit={limit}"

    return PaginationMetadata(
        current_page=page,
        per_page=limit,
        total_items=total,
        total_pages=total_pages,
        has_next=has_next,
        has_previous=has_previous,
        next_url=next_url,
        previous_url=previous_url,
    )


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "PaginationMetadata",
    "build_pagination",
    "normalize_limit",
    "normalize_page",
    "parse_int",
]
