from __future__ import annotations

import asyncio
import logging
import math
from contextlib import asynccontextmanager
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from src.app.core.errors import ApiError, StoreError
from src.app.features.pharmacies.models import PharmacyOwnerProfile
from src.db.session import get_async_session
from .filters import ProductFilter, build_filter
from .models import Product
from .repository import ProductStore, SqlAlchemyProductStore, StoreOrder
from .schemas import (
    Facets,
    MessageResult,
    OwnProducts,
    Pagination,
    PharmacyOwnerSummary,
    PriceRangeOut,
    ProductCreate,
    ProductListing,
    ProductMutationResult,
    ProductOut,
    ProductUpdate,
    SearchParams,
    SearchResult,
    SortBy,
    SortOrder,
    clamp_limit,
    clamp_page,
)

logger = logging.getLogger(__name__)


def _owner_to_summary(owner: PharmacyOwnerProfile) -> PharmacyOwnerSummary:
    return PharmacyOwnerSummary(
        id=owner.id,
        pharmacy_name=owner.pharmacy_name,
        contact_person=owner.contact_person,
        phone_number=owner.phone_number,
        address=owner.address,
        city=owner.city,
        area=owner.area,
    )


def _product_to_out(
    product: Product, owner: Optional[PharmacyOwnerProfile] = None
) -> ProductOut:
    return ProductOut(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        category=product.category,
        stock=product.stock,
        is_near_expiry=bool(product.is_near_expiry),
        expiry_date=product.expiry_date,
        image_url=product.image_url,
        pharmacy_owner_id=product.pharmacy_owner_id,
        created_at=product.created_at,
        updated_at=product.updated_at,
        pharmacy_owner=_owner_to_summary(owner) if owner is not None else None,
    )


def _locality_key(product: ProductOut) -> tuple:
    owner = product.pharmacy_owner
    city = (owner.city if owner else None) or ""
    area = (owner.area if owner else None) or ""
    return (city.lower(), area.lower())


def sort_by_locality(products: List[ProductOut], order: SortOrder) -> List[ProductOut]:
    """Order a page by owner city, then area, both in the same direction.

    This groups results by administrative locality; it is not a geographic
    distance. Ties keep their incoming (createdAt desc) order.
    """
    return sorted(products, key=_locality_key, reverse=order == SortOrder.desc)


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


def get_product_store() -> ProductStore:
    return SqlAlchemyProductStore(get_async_session)


class SearchEngine:
    """Filtered, paginated product search with global facets."""

    def __init__(self, store: ProductStore):
        self.store = store

    async def _page(
        self, product_filter: ProductFilter, order: StoreOrder, skip: int, take: int
    ) -> tuple[int, Sequence[Product]]:
        if product_filter.matches_nothing:
            return 0, []
        return await asyncio.gather(
            self.store.count(product_filter),
            self.store.find(product_filter, order, skip, take),
        )

    async def _facets(self) -> Facets:
        min_price, max_price, categories = await asyncio.gather(
            self.store.min_price(),
            self.store.max_price(),
            self.store.distinct_categories(),
        )
        return Facets(
            categories=sorted({c for c in categories if c}),
            price_range=PriceRangeOut(min=min_price or 0, max=max_price or 0),
        )

    async def search(self, params: SearchParams) -> SearchResult:
        page = clamp_page(params.page)
        limit = clamp_limit(params.limit)
        product_filter = build_filter(
            query=params.query,
            category=params.category,
            near_expiry=params.near_expiry,
            min_price=params.min_price,
            max_price=params.max_price,
            in_stock=params.in_stock,
            pharmacy_id=params.pharmacy_id,
            city=params.city,
            area=params.area,
        )

        if params.sort_by == SortBy.distance:
            order = StoreOrder("createdAt", "desc")
        else:
            order = StoreOrder(params.sort_by.value, params.sort_order.value)

        (total, rows), facets = await asyncio.gather(
            self._page(product_filter, order, (page - 1) * limit, limit),
            self._facets(),
        )

        products = [_product_to_out(p, p.pharmacy_owner) for p in rows]
        if params.sort_by == SortBy.distance:
            products = sort_by_locality(products, params.sort_order)

        return SearchResult(
            products=products,
            pagination=Pagination(
                total=total, page=page, limit=limit, pages=page_count(total, limit)
            ),
            filters=facets,
        )


async def search_products(
    params: SearchParams, store: Optional[ProductStore] = None
) -> SearchResult:
    engine = SearchEngine(store or get_product_store())
    return await engine.search(params)


async def list_products(
    *,
    category: Optional[str] = None,
    near_expiry: bool = False,
    page: int = 1,
    limit: int = 10,
    store: Optional[ProductStore] = None,
) -> ProductListing:
    store = store or get_product_store()
    page = clamp_page(page)
    limit = clamp_limit(limit)
    product_filter = build_filter(category=category, near_expiry=near_expiry)

    total, rows = await asyncio.gather(
        store.count(product_filter),
        store.find(product_filter, StoreOrder(), (page - 1) * limit, limit),
    )
    return ProductListing(
        products=[_product_to_out(p, p.pharmacy_owner) for p in rows],
        pagination=Pagination(
            total=total, page=page, limit=limit, pages=page_count(total, limit)
        ),
    )


@asynccontextmanager
async def _store_errors(db: AsyncSession, action: str):
    try:
        yield
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error %s", action)
        raise StoreError(f"Server error while {action}") from exc


async def get_product(db: AsyncSession, product_id: str) -> ProductOut:
    query = (
        select(Product)
        .join(Product.pharmacy_owner)
        .options(contains_eager(Product.pharmacy_owner))
        .where(Product.id == product_id)
    )
    async with _store_errors(db, "fetching product"):
        product = (await db.execute(query)).scalar_one_or_none()
    if not product:
        raise ApiError.not_found("Product not found")
    return _product_to_out(product, product.pharmacy_owner)


async def list_own_products(
    db: AsyncSession, owner: PharmacyOwnerProfile
) -> OwnProducts:
    query = (
        select(Product)
        .where(Product.pharmacy_owner_id == owner.id)
        .order_by(Product.created_at.desc(), Product.id.asc())
    )
    async with _store_errors(db, "fetching products"):
        products = (await db.execute(query)).scalars().all()
    return OwnProducts(
        count=len(products), products=[_product_to_out(p, owner) for p in products]
    )


async def _owned_product(
    db: AsyncSession, owner: PharmacyOwnerProfile, product_id: str, verb: str
) -> Product:
    query = select(Product).where(
        Product.id == product_id, Product.pharmacy_owner_id == owner.id
    )
    product = (await db.execute(query)).scalar_one_or_none()
    if not product:
        raise ApiError.not_found(
            f"Product not found or you do not have permission to {verb} it"
        )
    return product


async def create_product(
    db: AsyncSession, owner: PharmacyOwnerProfile, data: ProductCreate
) -> ProductMutationResult:
    product = Product(
        name=data.name,
        description=data.description,
        price=data.price,
        category=data.category,
        stock=data.stock,
        is_near_expiry=data.is_near_expiry,
        expiry_date=data.expiry_date,
        image_url=str(data.image_url) if data.image_url else None,
        pharmacy_owner_id=owner.id,
    )
    async with _store_errors(db, "creating product"):
        db.add(product)
        await db.commit()
        await db.refresh(product)
    logger.info("Pharmacy %s created product %s", owner.id, product.id)
    return ProductMutationResult(
        message="Product created successfully", product=_product_to_out(product, owner)
    )


async def update_product(
    db: AsyncSession, owner: PharmacyOwnerProfile, product_id: str, data: ProductUpdate
) -> ProductMutationResult:
    async with _store_errors(db, "updating product"):
        product = await _owned_product(db, owner, product_id, "update")

        if data.name is not None:
            product.name = data.name
        if data.description is not None:
            product.description = data.description
        if data.price is not None:
            product.price = data.price
        if data.category is not None:
            product.category = data.category
        if data.stock is not None:
            product.stock = data.stock
        if data.is_near_expiry is not None:
            product.is_near_expiry = data.is_near_expiry
        if data.expiry_date is not None:
            product.expiry_date = data.expiry_date
        if data.image_url is not None:
            product.image_url = str(data.image_url)

        db.add(product)
        await db.commit()
        await db.refresh(product)
    return ProductMutationResult(
        message="Product updated successfully", product=_product_to_out(product, owner)
    )


async def delete_product(
    db: AsyncSession, owner: PharmacyOwnerProfile, product_id: str
) -> MessageResult:
    product = await _owned_product(db, owner, product_id, "delete")
    try:
        await db.delete(product)
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning("Product %s is still referenced: %s", product_id, exc.orig)
        raise ApiError.conflict(
            "Product cannot be deleted because other records reference it"
        ) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error deleting product")
        raise StoreError("Server error while deleting product") from exc
    return MessageResult(message="Product deleted successfully")
