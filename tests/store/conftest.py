from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from src.app.features.store.filters import (
    CategoryIn,
    InStockOnly,
    LocatedIn,
    NearExpiryOnly,
    PharmacyIs,
    PriceRange,
    TextMatch,
)

_FIELDS = {"price": "price", "expiryDate": "expiry_date", "createdAt": "created_at"}
BASE_TIME = datetime(2025, 1, 1, 12, 0, 0)


def _matches(product, clause) -> bool:
    owner = product.pharmacy_owner
    if isinstance(clause, TextMatch):
        needle = clause.query.lower()
        return needle in product.name.lower() or needle in (product.description or "").lower()
    if isinstance(clause, CategoryIn):
        return product.category in clause.categories
    if isinstance(clause, NearExpiryOnly):
        return product.is_near_expiry
    if isinstance(clause, PriceRange):
        if clause.min_price is not None and product.price < clause.min_price:
            return False
        if clause.max_price is not None and product.price > clause.max_price:
            return False
        return True
    if isinstance(clause, InStockOnly):
        return product.stock > 0
    if isinstance(clause, PharmacyIs):
        return product.pharmacy_owner_id == clause.pharmacy_id
    if isinstance(clause, LocatedIn):
        if (owner.city or "").lower() != clause.city.lower():
            return False
        return clause.area is None or (owner.area or "").lower() == clause.area.lower()
    raise TypeError(clause)


class InMemoryProductStore:
    """ProductStore over a list of product objects, recording every call."""

    def __init__(self, products, fail_on=None):
        self.products = list(products)
        self.fail_on = fail_on
        self.calls = []

    def _record(self, name):
        self.calls.append(name)
        if self.fail_on == name:
            from src.app.core.errors import StoreError

            raise StoreError(f"{name} failed")

    def _filtered(self, product_filter):
        return [
            p
            for p in self.products
            if all(_matches(p, c) for c in product_filter.clauses)
        ]

    async def count(self, product_filter):
        self._record("count")
        return len(self._filtered(product_filter))

    async def find(self, product_filter, order, skip, take):
        self._record("find")
        attr = _FIELDS[order.field]
        rows = sorted(self._filtered(product_filter), key=lambda p: p.id)
        rows = sorted(rows, key=lambda p: getattr(p, attr), reverse=order.direction == "desc")
        return rows[skip : skip + take]

    async def distinct_categories(self):
        self._record("categories")
        return [p.category for p in self.products]

    async def min_price(self):
        self._record("min_price")
        return min((p.price for p in self.products), default=None)

    async def max_price(self):
        self._record("max_price")
        return max((p.price for p in self.products), default=None)


def make_owner(owner_id="ph-1", city="Cairo", area=None, name="Nile Pharmacy"):
    return SimpleNamespace(
        id=owner_id,
        pharmacy_name=name,
        contact_person="Mona",
        phone_number=None,
        address=None,
        city=city,
        area=area,
    )


def make_product(
    product_id,
    *,
    price=10.0,
    category="pain",
    near_expiry=False,
    stock=5,
    minutes=0,
    name=None,
    description=None,
    owner=None,
):
    owner = owner or make_owner()
    return SimpleNamespace(
        id=product_id,
        name=name or f"Product {product_id}",
        description=description,
        price=price,
        category=category,
        stock=stock,
        is_near_expiry=near_expiry,
        expiry_date=BASE_TIME + timedelta(days=30) if near_expiry else None,
        image_url=None,
        pharmacy_owner_id=owner.id,
        pharmacy_owner=owner,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        updated_at=None,
    )


@pytest.fixture
def abc_catalog():
    """A(10, pain), B(25, cold), C(15, pain, near expiry); C is the newest."""
    return [
        make_product("a", price=10, category="pain", minutes=1),
        make_product("b", price=25, category="cold", minutes=2),
        make_product("c", price=15, category="pain", near_expiry=True, minutes=3),
    ]


@pytest.fixture
def store_cls():
    return InMemoryProductStore


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def owner_factory():
    return make_owner
