"""Page windowing shared by every listing."""

from __future__ import annotations

from dataclasses import dataclass
from math import ceil
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int

    @property
    def pages(self) -> int:
        if self.total == 0:
            return 0
        return ceil(self.total / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.pages


def normalize_page(page: int | None) -> int:
    if page is None or page < 1:
        return 1
    return page


async def paginate(
    session: AsyncSession,
    statement: Select[Any],
    *,
    page: int,
    page_size: int,
) -> Page[Any]:
    """Run ``statement`` for one 1-indexed page and count the full result.

    Pages past the end yield no items but keep ``total`` and ``pages`` valid.
    The statement must already carry its ORDER BY.
    """
    if page_size < 1:
        raise ValueError("page_size must be positive")
    page = normalize_page(page)

    count_query = select(func.count()).select_from(statement.order_by(None).subquery())
    total = int((await session.execute(count_query)).scalar_one() or 0)

    items: list[Any] = []
    offset = (page - 1) * page_size
    if offset < total:
        result = await session.execute(statement.offset(offset).limit(page_size))
        items = list(result.scalars().all())

    return cast(Page[Any], Page(items=items, page=page, page_size=page_size, total=total))


__all__ = ["Page", "normalize_page", "paginate"]
