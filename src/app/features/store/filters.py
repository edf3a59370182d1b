"""Immutable product filter clauses and their SQL translation.

A search request is turned into a ``ProductFilter`` exactly once: a tuple of
clauses that are combined with AND. Criteria that were not supplied
contribute no clause at all, so an empty filter matches every product.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from sqlalchemy import ColumnElement, and_, false, func, or_, true

from src.app.features.pharmacies.models import PharmacyOwnerProfile
from .models import Product


@dataclass(frozen=True)
class TextMatch:
    """Case-insensitive substring match on name or description."""

    query: str


@dataclass(frozen=True)
class CategoryIn:
    categories: Tuple[str, ...]


@dataclass(frozen=True)
class NearExpiryOnly:
    pass


@dataclass(frozen=True)
class PriceRange:
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return (
            self.min_price is not None
            and self.max_price is not None
            and self.max_price < self.min_price
        )


@dataclass(frozen=True)
class InStockOnly:
    pass


@dataclass(frozen=True)
class PharmacyIs:
    pharmacy_id: str


@dataclass(frozen=True)
class LocatedIn:
    """Case-insensitive exact match on the owning pharmacy's city (and area)."""

    city: str
    area: Optional[str] = None


Clause = Union[
    TextMatch, CategoryIn, NearExpiryOnly, PriceRange, InStockOnly, PharmacyIs, LocatedIn
]


@dataclass(frozen=True)
class ProductFilter:
    clauses: Tuple[Clause, ...] = ()

    @property
    def matches_nothing(self) -> bool:
        return any(isinstance(c, PriceRange) and c.is_empty for c in self.clauses)


def build_filter(
    *,
    query: Optional[str] = None,
    category: Union[str, Tuple[str, ...], list, None] = None,
    near_expiry: bool = False,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    in_stock: bool = False,
    pharmacy_id: Optional[str] = None,
    city: Optional[str] = None,
    area: Optional[str] = None,
) -> ProductFilter:
    clauses: list = []

    if query:
        clauses.append(TextMatch(query))
    if category:
        if isinstance(category, str):
            categories: Tuple[str, ...] = (category,)
        else:
            categories = tuple(dict.fromkeys(c for c in category if c))
        if categories:
            clauses.append(CategoryIn(categories))
    if near_expiry:
        clauses.append(NearExpiryOnly())
    if min_price is not None or max_price is not None:
        clauses.append(PriceRange(min_price, max_price))
    if in_stock:
        clauses.append(InStockOnly())
    if pharmacy_id:
        clauses.append(PharmacyIs(pharmacy_id))
    # area narrows a city; on its own it is ignored
    if city:
        clauses.append(LocatedIn(city, area or None))

    return ProductFilter(tuple(clauses))


def clause_to_sql(clause: Clause) -> ColumnElement:
    if isinstance(clause, TextMatch):
        return or_(
            Product.name.icontains(clause.query, autoescape=True),
            Product.description.icontains(clause.query, autoescape=True),
        )
    if isinstance(clause, CategoryIn):
        if len(clause.categories) == 1:
            return Product.category == clause.categories[0]
        return Product.category.in_(clause.categories)
    if isinstance(clause, NearExpiryOnly):
        return Product.is_near_expiry.is_(True)
    if isinstance(clause, PriceRange):
        if clause.is_empty:
            return false()
        parts = []
        if clause.min_price is not None:
            parts.append(Product.price >= clause.min_price)
        if clause.max_price is not None:
            parts.append(Product.price <= clause.max_price)
        return and_(true(), *parts)
    if isinstance(clause, InStockOnly):
        return Product.stock > 0
    if isinstance(clause, PharmacyIs):
        return Product.pharmacy_owner_id == clause.pharmacy_id
    if isinstance(clause, LocatedIn):
        condition = func.lower(PharmacyOwnerProfile.city) == clause.city.lower()
        if clause.area:
            condition = and_(
                condition, func.lower(PharmacyOwnerProfile.area) == clause.area.lower()
            )
        return condition
    raise TypeError(f"Unsupported filter clause: {clause!r}")


def filter_to_sql(product_filter: ProductFilter) -> ColumnElement:
    return and_(true(), *(clause_to_sql(c) for c in product_filter.clauses))
