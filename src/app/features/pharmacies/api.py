from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.security import get_owner_profile
from src.db.session import get_db
from .models import PharmacyOwnerProfile
from .schemas import (
    ProfileOut,
    ProfileUpdate,
    ProfileUpdateResult,
    SubscriptionUpdate,
    SubscriptionUpdateResult,
)
from .service import (
    get_profile as svc_get_profile,
    update_profile as svc_update_profile,
    update_subscription as svc_update_subscription,
)

router = APIRouter(prefix="/api/v1/pharmacies")


@router.get(
    "/me",
    response_model=ProfileOut,
    summary="Get the current pharmacy owner's profile",
    tags=["pharmacies"],
)
async def get_profile(profile: PharmacyOwnerProfile = Depends(get_owner_profile)):
    return svc_get_profile(profile)


@router.put(
    "/me",
    response_model=ProfileUpdateResult,
    summary="Update the current pharmacy owner's profile",
    tags=["pharmacies"],
)
async def update_profile(
    payload: ProfileUpdate,
    profile: PharmacyOwnerProfile = Depends(get_owner_profile),
    db: AsyncSession = Depends(get_db),
):
    return await svc_update_profile(db, profile, payload)


@router.post(
    "/me/subscription",
    response_model=SubscriptionUpdateResult,
    summary="Update the current pharmacy owner's subscription plan",
    tags=["pharmacies"],
)
async def update_subscription(
    payload: SubscriptionUpdate,
    profile: PharmacyOwnerProfile = Depends(get_owner_profile),
    db: AsyncSession = Depends(get_db),
):
    """Sets the plan and restarts the 30-day subscription period."""
    return await svc_update_subscription(db, profile, payload)
