from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Protocol, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from src.app.core.errors import StoreError
from .filters import ProductFilter, filter_to_sql
from .models import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreOrder:
    """Native store ordering: a product field name and a direction."""

    field: str = "createdAt"
    direction: str = "desc"


class ProductStore(Protocol):
    async def count(self, product_filter: ProductFilter) -> int: ...

    async def find(
        self, product_filter: ProductFilter, order: StoreOrder, skip: int, take: int
    ) -> Sequence[Product]: ...

    async def distinct_categories(self) -> List[str]: ...

    async def min_price(self) -> float | None: ...

    async def max_price(self) -> float | None: ...


_ORDER_COLUMNS = {
    "price": Product.price,
    "expiryDate": Product.expiry_date,
    "createdAt": Product.created_at,
}


def _filtered(query: Select, product_filter: ProductFilter) -> Select:
    return query.join(Product.pharmacy_owner).where(filter_to_sql(product_filter))


def count_statement(product_filter: ProductFilter) -> Select:
    return _filtered(select(func.count(Product.id)).select_from(Product), product_filter)


def find_statement(
    product_filter: ProductFilter, order: StoreOrder, skip: int, take: int
) -> Select:
    column = _ORDER_COLUMNS.get(order.field)
    if column is None:
        raise ValueError(f"Unsupported sort field: {order.field}")
    ordering = column.asc() if order.direction == "asc" else column.desc()
    return (
        _filtered(select(Product), product_filter)
        .options(contains_eager(Product.pharmacy_owner))
        # id keeps the window stable when the sort column has ties
        .order_by(ordering, Product.id.asc())
        .offset(skip)
        .limit(take)
    )


class SqlAlchemyProductStore:
    """ProductStore backed by SQLAlchemy.

    Every read opens its own session so independent reads can run concurrently.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    async def _scalar(self, statement, label: str):
        try:
            async with self._session_factory() as db:
                return (await db.execute(statement)).scalar()
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Product store query failed: %s", label)
            raise StoreError(f"Product store query failed: {label}") from exc

    async def count(self, product_filter: ProductFilter) -> int:
        return int(await self._scalar(count_statement(product_filter), "count") or 0)

    async def find(
        self, product_filter: ProductFilter, order: StoreOrder, skip: int, take: int
    ) -> Sequence[Product]:
        statement = find_statement(product_filter, order, skip, take)
        try:
            async with self._session_factory() as db:
                return (await db.execute(statement)).scalars().unique().all()
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Product store query failed: find")
            raise StoreError("Product store query failed: find") from exc

    async def distinct_categories(self) -> List[str]:
        statement = (
            select(Product.category)
            .where(Product.category.is_not(None), Product.category != "")
            .distinct()
            .order_by(Product.category.asc())
        )
        try:
            async with self._session_factory() as db:
                return list((await db.execute(statement)).scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Product store query failed: categories")
            raise StoreError("Product store query failed: categories") from exc

    async def min_price(self) -> float | None:
        return await self._scalar(select(func.min(Product.price)), "min price")

    async def max_price(self) -> float | None:
        return await self._scalar(select(func.max(Product.price)), "max price")


__all__ = [
    "ProductStore",
    "SqlAlchemyProductStore",
    "StoreOrder",
    "count_statement",
    "find_statement",
]
