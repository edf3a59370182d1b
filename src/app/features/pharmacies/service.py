from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.errors import StoreError
from src.app.core.security import utcnow
from .models import PharmacyOwnerProfile
from .schemas import (
    ProfileOut,
    ProfileUpdate,
    ProfileUpdateResult,
    SubscriptionOut,
    SubscriptionUpdate,
    SubscriptionUpdateResult,
)

logger = logging.getLogger(__name__)

SUBSCRIPTION_PERIOD = timedelta(days=30)


def _profile_to_out(profile: PharmacyOwnerProfile) -> ProfileOut:
    return ProfileOut(
        id=profile.id,
        pharmacy_name=profile.pharmacy_name,
        contact_person=profile.contact_person,
        phone_number=profile.phone_number,
        address=profile.address,
        city=profile.city,
        area=profile.area,
        subscription_status=profile.subscription_status or "none",
        subscription_expires_at=profile.subscription_expires_at,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


def get_profile(profile: PharmacyOwnerProfile) -> ProfileOut:
    return _profile_to_out(profile)


async def _save(db: AsyncSession, profile: PharmacyOwnerProfile, action: str) -> None:
    try:
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error %s", action)
        raise StoreError(f"Server error while {action}") from exc


async def update_profile(
    db: AsyncSession, profile: PharmacyOwnerProfile, data: ProfileUpdate
) -> ProfileUpdateResult:
    if data.pharmacy_name is not None:
        profile.pharmacy_name = data.pharmacy_name
    if data.contact_person is not None:
        profile.contact_person = data.contact_person
    if data.phone_number is not None:
        profile.phone_number = data.phone_number
    if data.address is not None:
        profile.address = data.address
    profile.city = data.city
    # an explicit area replaces the old one; omitting it keeps it
    if "area" in data.model_fields_set:
        profile.area = data.area or None

    await _save(db, profile, "updating profile")
    return ProfileUpdateResult(
        message="Profile updated successfully", profile=_profile_to_out(profile)
    )


async def update_subscription(
    db: AsyncSession, profile: PharmacyOwnerProfile, data: SubscriptionUpdate
) -> SubscriptionUpdateResult:
    profile.subscription_status = data.plan_type.value
    profile.subscription_expires_at = utcnow() + SUBSCRIPTION_PERIOD

    await _save(db, profile, "updating subscription")
    logger.info(
        "Pharmacy %s subscription set to %s", profile.id, profile.subscription_status
    )
    return SubscriptionUpdateResult(
        message="Subscription updated successfully",
        subscription=SubscriptionOut(
            status=profile.subscription_status,
            expires_at=profile.subscription_expires_at,
        ),
    )
