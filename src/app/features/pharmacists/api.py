from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.security import (
    CurrentUser,
    require_pharmacist,
    require_subscription_to_view_pharmacists,
)
from src.app.features.pharmacies.models import PharmacyOwnerProfile
from src.db.session import get_db
from .schemas import (
    CvInfo,
    PharmacistOut,
    PharmacistSearchResult,
    PharmacistUpdate,
    PharmacistUpdateResult,
)
from .service import (
    get_own_cv as svc_get_own_cv,
    get_own_profile as svc_get_own_profile,
    get_pharmacist as svc_get_pharmacist,
    search_pharmacists as svc_search_pharmacists,
    update_own_profile as svc_update_own_profile,
)

router = APIRouter(prefix="/api/v1/pharmacists")


@router.get(
    "/me",
    response_model=PharmacistOut,
    summary="Get the current pharmacist's profile",
    tags=["pharmacists"],
)
async def get_profile(
    user: CurrentUser = Depends(require_pharmacist),
    db: AsyncSession = Depends(get_db),
):
    return await svc_get_own_profile(db, user)


@router.put(
    "/me",
    response_model=PharmacistUpdateResult,
    summary="Update the current pharmacist's profile (partial)",
    tags=["pharmacists"],
)
async def update_profile(
    payload: PharmacistUpdate,
    user: CurrentUser = Depends(require_pharmacist),
    db: AsyncSession = Depends(get_db),
):
    return await svc_update_own_profile(db, user, payload)


@router.get(
    "/me/cv",
    response_model=CvInfo,
    summary="Get the current pharmacist's CV link",
    tags=["pharmacists"],
)
async def get_cv(
    user: CurrentUser = Depends(require_pharmacist),
    db: AsyncSession = Depends(get_db),
):
    return await svc_get_own_cv(db, user)


@router.get(
    "/search",
    response_model=PharmacistSearchResult,
    summary="Search pharmacists by location",
    tags=["pharmacists"],
)
async def search_pharmacists(
    city: str = Query(..., min_length=2, max_length=100, description="City (required)"),
    area: Optional[str] = Query(None, max_length=100, description="Area within the city"),
    available: bool = Query(False, description="Only pharmacists open to work"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
    db: AsyncSession = Depends(get_db),
):
    """Public search, ordered by last name."""
    return await svc_search_pharmacists(
        db, city=city, area=area, available=available, page=page, limit=limit
    )


@router.get(
    "/{pharmacist_id}",
    response_model=PharmacistOut,
    summary="Get a pharmacist by id",
    tags=["pharmacists"],
)
async def get_pharmacist(
    pharmacist_id: str = Path(..., description="Pharmacist profile id"),
    _: PharmacyOwnerProfile = Depends(require_subscription_to_view_pharmacists),
    db: AsyncSession = Depends(get_db),
):
    """Pharmacy owners with an active subscription only."""
    return await svc_get_pharmacist(db, pharmacist_id)
