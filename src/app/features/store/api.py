from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.security import get_owner_profile, require_active_subscription
from src.app.features.pharmacies.models import PharmacyOwnerProfile
from src.db.session import get_db
from .schemas import (
    MessageResult,
    OwnProducts,
    ProductCreate,
    ProductListing,
    ProductMutationResult,
    ProductOut,
    ProductUpdate,
    SearchParams,
    SearchResult,
    SortBy,
    SortOrder,
)
from .service import (
    search_products as svc_search_products,
    list_products as svc_list_products,
    list_own_products as svc_list_own_products,
    get_product as svc_get_product,
    create_product as svc_create_product,
    update_product as svc_update_product,
    delete_product as svc_delete_product,
)

router = APIRouter(prefix="/api/v1/store")


def search_params(
    q: Optional[str] = Query(
        None, description="Case-insensitive search in name or description"
    ),
    category: Optional[List[str]] = Query(
        None, description="Filter by category; repeat to match any of several"
    ),
    near_expiry: bool = Query(
        False, alias="nearExpiry", description="Only near-expiry products"
    ),
    min_price: Optional[float] = Query(None, alias="minPrice", description="Minimum price"),
    max_price: Optional[float] = Query(None, alias="maxPrice", description="Maximum price"),
    in_stock: bool = Query(False, alias="inStock", description="Only products in stock"),
    pharmacy_id: Optional[str] = Query(
        None, alias="pharmacyId", description="Only products of this pharmacy"
    ),
    city: Optional[str] = Query(None, description="Pharmacy city (case-insensitive)"),
    area: Optional[str] = Query(
        None, description="Pharmacy area within the city (case-insensitive)"
    ),
    sort_by: SortBy = Query(SortBy.created_at, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.desc, alias="sortOrder"),
    page: int = Query(1, description="Page number; values below 1 mean 1"),
    limit: int = Query(10, description="Page size; clamped into [1, 100]"),
) -> SearchParams:
    try:
        # keyed by wire name so error locations match the query parameters
        return SearchParams.model_validate(
            {
                "query": q,
                "category": category or [],
                "nearExpiry": near_expiry,
                "minPrice": min_price,
                "maxPrice": max_price,
                "inStock": in_stock,
                "pharmacyId": pharmacy_id,
                "city": city,
                "area": area,
                "sortBy": sort_by,
                "sortOrder": sort_order,
                "page": page,
                "limit": limit,
            }
        )
    except ValidationError as exc:
        errors = [
            {**err, "loc": ("query", *err["loc"])}
            for err in exc.errors(include_url=False, include_context=False)
        ]
        raise RequestValidationError(errors) from exc


@router.get(
    "/products",
    response_model=ProductListing,
    response_model_exclude_none=True,
    summary="List products",
    tags=["store"],
)
async def get_products(
    category: Optional[str] = Query(None, description="Filter by category"),
    near_expiry: bool = Query(False, alias="nearExpiry"),
    page: int = Query(1, description="Page number"),
    limit: int = Query(10, description="Page size"),
):
    return await svc_list_products(
        category=category, near_expiry=near_expiry, page=page, limit=limit
    )


@router.get(
    "/products/search",
    response_model=SearchResult,
    response_model_exclude_none=True,
    summary="Search products",
    tags=["store"],
)
async def search_products(params: SearchParams = Depends(search_params)):
    """Filter, sort and page the catalog.

    The `filters` block (categories, price range) describes the whole catalog,
    not just the matching products.
    """
    return await svc_search_products(params)


@router.get(
    "/products/me",
    response_model=OwnProducts,
    response_model_exclude_none=True,
    summary="List the current pharmacy owner's products",
    tags=["store"],
)
async def get_my_products(
    owner: PharmacyOwnerProfile = Depends(get_owner_profile),
    db: AsyncSession = Depends(get_db),
):
    return await svc_list_own_products(db, owner)


@router.get(
    "/products/{product_id}",
    response_model=ProductOut,
    response_model_exclude_none=True,
    summary="Get a product by id",
    tags=["store"],
)
async def get_product(
    product_id: str = Path(..., description="Product id"),
    db: AsyncSession = Depends(get_db),
):
    return await svc_get_product(db, product_id)


@router.post(
    "/products",
    response_model=ProductMutationResult,
    status_code=status.HTTP_201_CREATED,
    response_model_exclude_none=True,
    summary="Create a new product",
    tags=["store"],
)
async def create_product(
    payload: ProductCreate,
    owner: PharmacyOwnerProfile = Depends(require_active_subscription),
    db: AsyncSession = Depends(get_db),
):
    return await svc_create_product(db, owner, payload)


@router.put(
    "/products/{product_id}",
    response_model=ProductMutationResult,
    response_model_exclude_none=True,
    summary="Update one of your products (partial)",
    tags=["store"],
)
async def update_product(
    payload: ProductUpdate,
    product_id: str = Path(..., description="Product id"),
    owner: PharmacyOwnerProfile = Depends(require_active_subscription),
    db: AsyncSession = Depends(get_db),
):
    return await svc_update_product(db, owner, product_id, payload)


@router.delete(
    "/products/{product_id}",
    response_model=MessageResult,
    summary="Delete one of your products",
    tags=["store"],
)
async def delete_product(
    product_id: str = Path(..., description="Product id"),
    owner: PharmacyOwnerProfile = Depends(require_active_subscription),
    db: AsyncSession = Depends(get_db),
):
    return await svc_delete_product(db, owner, product_id)
