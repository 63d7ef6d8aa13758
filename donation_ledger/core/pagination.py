"""Pagination helpers for ledger and collection listings."""

from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    items: list[T]
    limit: int
    offset: int
    total: int


def clamp(limit: int, offset: int, max_limit: int = 200) -> tuple[int, int]:
    """Clamp limit/offset; return (limit, offset)."""
    return max(1, min(limit, max_limit)), max(0, offset)


def slice_page(items: Sequence[T], limit: int, offset: int) -> Page[T]:
    limit, offset = clamp(limit, offset)
    return Page[T](items=list(items[offset:offset + limit]), limit=limit, offset=offset, total=len(items))
