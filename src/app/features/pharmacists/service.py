from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import Select, and_, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from src.app.core.errors import ApiError, StoreError
from src.app.core.security import CurrentUser
from src.app.features.store.schemas import Pagination, clamp_limit, clamp_page
from src.app.features.store.service import page_count
from src.settings import settings
from .models import PharmacistProfile
from .schemas import (
    AppliedFilters,
    CvInfo,
    CvOut,
    PharmacistFilters,
    PharmacistOut,
    PharmacistSearchResult,
    PharmacistUpdate,
    PharmacistUpdateResult,
)

logger = logging.getLogger(__name__)

_REPLACED_WHEN_SENT = (
    "first_name",
    "last_name",
    "phone_number",
    "bio",
    "experience",
    "education",
    "city",
)


def cv_link(cv_url: Optional[str], uploaded_at: Optional[datetime]) -> Optional[CvOut]:
    """Absolute link to a stored CV; relative paths are served by this API."""
    if not cv_url:
        return None
    url = cv_url if cv_url.startswith("http") else f"{settings.API_BASE_URL}{cv_url}"
    return CvOut(url=url, uploaded_at=uploaded_at)


def _to_out(profile: PharmacistProfile, email: Optional[str]) -> PharmacistOut:
    return PharmacistOut(
        id=profile.id,
        first_name=profile.first_name,
        last_name=profile.last_name,
        email=email,
        phone_number=profile.phone_number,
        bio=profile.bio,
        experience=profile.experience,
        education=profile.education,
        city=profile.city,
        area=profile.area,
        available=bool(profile.available),
        cv=cv_link(profile.cv_url, profile.updated_at),
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


def _with_user() -> Select:
    return (
        select(PharmacistProfile)
        .join(PharmacistProfile.user)
        .options(contains_eager(PharmacistProfile.user))
    )


@asynccontextmanager
async def _store_errors(db: AsyncSession, action: str):
    try:
        yield
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Error %s", action)
        raise StoreError(f"Server error while {action}") from exc


async def _own_profile(db: AsyncSession, user: CurrentUser) -> PharmacistProfile:
    query = _with_user().where(PharmacistProfile.user_id == user.id)
    async with _store_errors(db, "fetching pharmacist profile"):
        profile = (await db.execute(query)).scalar_one_or_none()
    if profile is None:
        raise ApiError.not_found("Pharmacist profile not found")
    return profile


async def get_own_profile(db: AsyncSession, user: CurrentUser) -> PharmacistOut:
    profile = await _own_profile(db, user)
    return _to_out(profile, profile.user.email)


async def update_own_profile(
    db: AsyncSession, user: CurrentUser, data: PharmacistUpdate
) -> PharmacistUpdateResult:
    profile = await _own_profile(db, user)
    email = profile.user.email

    for field in _REPLACED_WHEN_SENT:
        value = getattr(data, field)
        if value is not None:
            setattr(profile, field, value)
    # area and availability change only when sent
    if "area" in data.model_fields_set:
        profile.area = data.area or None
    if data.available is not None:
        profile.available = data.available

    async with _store_errors(db, "updating pharmacist profile"):
        db.add(profile)
        await db.commit()
        await db.refresh(profile)
    return PharmacistUpdateResult(
        message="Profile updated successfully", profile=_to_out(profile, email)
    )


async def get_own_cv(db: AsyncSession, user: CurrentUser) -> CvInfo:
    profile = await _own_profile(db, user)
    if not profile.cv_url:
        raise ApiError.not_found("CV not found for this pharmacist")
    return CvInfo(cv_url=profile.cv_url, uploaded_at=profile.updated_at)


async def get_pharmacist(db: AsyncSession, pharmacist_id: str) -> PharmacistOut:
    query = _with_user().where(PharmacistProfile.id == pharmacist_id)
    async with _store_errors(db, "fetching pharmacist"):
        profile = (await db.execute(query)).scalar_one_or_none()
    if profile is None:
        raise ApiError.not_found("Pharmacist not found")
    return _to_out(profile, profile.user.email)


def search_statements(
    city: str, area: Optional[str], available: bool, skip: int, take: int
) -> tuple[Select, Select]:
    """Count and page statements for pharmacists in a city (and area)."""
    conditions = [func.lower(PharmacistProfile.city) == city.strip().lower()]
    if area:
        conditions.append(func.lower(PharmacistProfile.area) == area.strip().lower())
    if available:
        conditions.append(PharmacistProfile.available.is_(True))

    count = select(func.count(PharmacistProfile.id)).where(and_(*conditions))
    page = (
        _with_user()
        .where(and_(*conditions))
        .order_by(PharmacistProfile.last_name.asc(), PharmacistProfile.id.asc())
        .offset(skip)
        .limit(take)
    )
    return count, page


async def search_pharmacists(
    db: AsyncSession,
    *,
    city: str,
    area: Optional[str] = None,
    available: bool = False,
    page: int = 1,
    limit: int = 10,
) -> PharmacistSearchResult:
    page = clamp_page(page)
    limit = clamp_limit(limit)
    count, find = search_statements(city, area, available, (page - 1) * limit, limit)

    async with _store_errors(db, "searching pharmacists"):
        total = (await db.execute(count)).scalar_one()
        rows = (await db.execute(find)).scalars().unique().all()

    return PharmacistSearchResult(
        pharmacists=[_to_out(p, p.user.email) for p in rows],
        pagination=Pagination(
            total=total, page=page, limit=limit, pages=page_count(total, limit)
        ),
        filters=PharmacistFilters(
            applied=AppliedFilters(city=city, area=area or None, available=available)
        ),
    )
