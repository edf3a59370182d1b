from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import jwt
from fastapi import Depends, Header
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.errors import ApiError
from src.app.features.pharmacies.models import PharmacyOwnerProfile, User
from src.db.session import get_db
from src.settings import settings

logger = logging.getLogger(__name__)

PHARMACIST = "PHARMACIST"
PHARMACY_OWNER = "PHARMACY_OWNER"


def utcnow() -> datetime:
    """Naive UTC now, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CurrentUser(BaseModel):
    id: str
    email: str
    role: str


def decode_token(token: str) -> CurrentUser:
    """Verify a bearer token issued by the auth service and return its claims."""
    try:
        claims = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError as exc:
        raise ApiError.unauthorized("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise ApiError.unauthorized("Invalid or expired token") from exc

    if not all(claims.get(k) for k in ("id", "email", "role")):
        raise ApiError.unauthorized("Invalid or expired token")
    return CurrentUser(id=claims["id"], email=claims["email"], role=claims["role"])


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise ApiError.unauthorized("Authentication required. No token provided.")
    return authorization.split(" ", 1)[1].strip()


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token to a user that still exists."""
    user = decode_token(bearer_token(authorization))
    query = select(User.id).where(User.id == user.id)
    if (await db.execute(query)).scalar_one_or_none() is None:
        raise ApiError.unauthorized("User not found")
    return user


def require_pharmacist(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role != PHARMACIST:
        raise ApiError.forbidden("Access denied. Pharmacist role required.")
    return user


def require_pharmacy_owner(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    if user.role != PHARMACY_OWNER:
        raise ApiError.forbidden("Access denied. Pharmacy owner role required.")
    return user


async def get_owner_profile(
    user: CurrentUser = Depends(require_pharmacy_owner),
    db: AsyncSession = Depends(get_db),
) -> PharmacyOwnerProfile:
    query = select(PharmacyOwnerProfile).where(PharmacyOwnerProfile.user_id == user.id)
    profile = (await db.execute(query)).scalar_one_or_none()
    if profile is None:
        raise ApiError.not_found("Pharmacy owner profile not found")
    return profile


def has_active_subscription(
    profile: PharmacyOwnerProfile, now: Optional[datetime] = None
) -> bool:
    if not profile.subscription_status or profile.subscription_status == "none":
        return False
    if profile.subscription_expires_at is None:
        return False
    return profile.subscription_expires_at > (now or utcnow())


async def require_active_subscription(
    profile: PharmacyOwnerProfile = Depends(get_owner_profile),
) -> PharmacyOwnerProfile:
    if not has_active_subscription(profile):
        logger.info("Rejected product write for pharmacy %s: no active subscription", profile.id)
        raise ApiError.forbidden("An active subscription is required to manage products")
    return profile


async def require_subscription_to_view_pharmacists(
    profile: PharmacyOwnerProfile = Depends(get_owner_profile),
) -> PharmacyOwnerProfile:
    if not has_active_subscription(profile):
        raise ApiError.forbidden("Active subscription is required to view pharmacist details")
    return profile
