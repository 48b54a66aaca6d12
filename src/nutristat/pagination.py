"""Offset/limit pagination over aggregated rows."""

from typing import Generic, Iterable, List, Optional, Sequence, TypeVar
import math

from pydantic import BaseModel

from .children import ChildSummary, summarize_all
from .models import Measurement

T = TypeVar("T")


class PageMeta(BaseModel):
    page: int
    per_page: int
    page_size: int
    total_data: int


class Page(BaseModel, Generic[T]):
    """A window of rows; ``meta`` is None when no window was requested."""

    rows: List[T]
    meta: Optional[PageMeta] = None


def build_page_meta(offset: int, limit: int, total: int) -> PageMeta:
    """
    Build pagination metadata.

    Args:
        offset: Index of the first row in the window
        limit: Window size
        total: Number of rows before windowing

    Returns:
        PageMeta with page = offset // limit + 1 and
        page_size = ceil(total / limit). An offset inside a page is floored
        to that page, so offset 5 with limit 10 is page 1.
    """
    _validate_window(offset, limit)
    return PageMeta(
        page=offset // limit + 1,
        per_page=limit,
        page_size=math.ceil(total / limit),
        total_data=total,
    )


def _validate_window(offset: int, limit: int) -> None:
    if offset < 0:
        raise ValueError("offset must be >= 0")
    if limit <= 0:
        raise ValueError("limit must be > 0")


def paginate(
    items: Sequence[T], offset: Optional[int] = None, limit: Optional[int] = None
) -> Page[T]:
    """
    Slice rows to an offset/limit window.

    When either offset or limit is None every row is returned and meta is None.

    Raises:
        ValueError: If offset is negative or limit is not positive
    """
    items = list(items)
    if offset is None or limit is None:
        return Page(rows=items, meta=None)

    meta = build_page_meta(offset, limit, len(items))
    return Page(rows=items[offset : offset + limit], meta=meta)


def summarize_and_paginate(
    records: Iterable[Measurement],
    offset: Optional[int] = None,
    limit: Optional[int] = None,
) -> Page[ChildSummary]:
    """
    Aggregate measurements per child, then paginate the summaries.

    Windowing happens after grouping so page boundaries fall between
    children and ``total_data`` counts distinct children, not raw rows.
    """
    return paginate(summarize_all(records), offset=offset, limit=limit)
