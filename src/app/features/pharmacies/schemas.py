from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from src.app.core.schemas import CamelModel


class PlanType(str, Enum):
    none = "none"
    basic = "basic"
    premium = "premium"


class ProfileOut(CamelModel):
    id: str
    pharmacy_name: str
    contact_person: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
    city: str
    area: Optional[str] = None
    subscription_status: str
    subscription_expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ProfileUpdate(CamelModel):
    """Payload to update the caller's pharmacy profile. City is required."""

    pharmacy_name: Optional[str] = Field(None, min_length=1)
    contact_person: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = Field(None, pattern=r"^\+?[0-9 ()-]{6,20}$")
    address: Optional[str] = None
    city: str = Field(..., description="City of the pharmacy")
    area: Optional[str] = Field(None, description="Area or district within the city")

    @field_validator("city")
    @classmethod
    def _city_length(cls, value: str) -> str:
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


class ProfileUpdateResult(CamelModel):
    message: str
    profile: ProfileOut


class SubscriptionUpdate(CamelModel):
    plan_type: PlanType


class SubscriptionOut(CamelModel):
    status: str
    expires_at: Optional[datetime] = None


class SubscriptionUpdateResult(CamelModel):
    message: str
    subscription: SubscriptionOut
