from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from src.app.core.schemas import CamelModel
from src.app.features.store.schemas import Pagination


class CvOut(CamelModel):
    url: str
    uploaded_at: Optional[datetime] = None


class PharmacistOut(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    bio: Optional[str] = None
    experience: Optional[str] = None
    education: Optional[str] = None
    city: str
    area: Optional[str] = None
    available: bool
    cv: Optional[CvOut] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class PharmacistUpdate(CamelModel):
    """Partial update of the caller's pharmacist profile."""

    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = Field(None, pattern=r"^\+?[0-9 ()-]{6,20}$")
    bio: Optional[str] = None
    experience: Optional[str] = None
    education: Optional[str] = None
    city: Optional[str] = Field(None, description="City where the pharmacist works")
    area: Optional[str] = Field(None, description="Area or district within the city")
    available: Optional[bool] = None

    @field_validator("city")
    @classmethod
    def _city_length(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not 2 <= len(value) <= 100:
            raise ValueError("City must be between 2 and 100 characters")
        return value

    @field_validator("area")
    @classmethod
    def _area_length(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if len(value) > 100:
            raise ValueError("Area must be less than 100 characters")
        return value


class PharmacistUpdateResult(CamelModel):
    message: str
    profile: PharmacistOut


class AppliedFilters(CamelModel):
    city: str
    area: Optional[str] = None
    available: bool = False


class PharmacistFilters(CamelModel):
    applied: AppliedFilters


class PharmacistSearchResult(CamelModel):
    pharmacists: List[PharmacistOut]
    pagination: Pagination
    filters: PharmacistFilters


class CvInfo(CamelModel):
    cv_url: str
    uploaded_at: Optional[datetime] = None
