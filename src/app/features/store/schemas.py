from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import (
    BaseModel,
    Field,
    HttpUrl,
    ValidationInfo,
    field_validator,
    model_validator,
)

from src.app.core.schemas import CamelModel

MAX_LIMIT = 100
DEFAULT_LIMIT = 10


class SortBy(str, Enum):
    price = "price"
    expiry_date = "expiryDate"
    created_at = "createdAt"
    distance = "distance"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


class SearchParams(CamelModel):
    """Validated search criteria. Page and limit are clamped, never rejected."""

    query: Optional[str] = Field(None, description="Free-text search on name/description")
    category: List[str] = Field(
        default_factory=list, description="One or more categories (any match)"
    )
    near_expiry: bool = Field(False, description="Only near-expiry products")
    min_price: Optional[float] = Field(None, ge=0, description="Minimum price (inclusive)")
    max_price: Optional[float] = Field(None, ge=0, description="Maximum price (inclusive)")
    in_stock: bool = Field(False, description="Only products with stock > 0")
    pharmacy_id: Optional[str] = Field(None, description="Owning pharmacy id")
    city: Optional[str] = Field(None, description="Owning pharmacy city")
    area: Optional[str] = Field(None, description="Owning pharmacy area (requires city)")
    sort_by: SortBy = SortBy.created_at
    sort_order: SortOrder = SortOrder.desc
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @field_validator("max_price")
    @classmethod
    def _check_price_range(cls, value: Optional[float], info: ValidationInfo):
        min_price = info.data.get("min_price")
        if value is not None and min_price is not None and value < min_price:
            raise ValueError(
                "Maximum price must be greater than or equal to minimum price"
            )
        return value

    @model_validator(mode="after")
    def _clamp_window(self):
        self.page = clamp_page(self.page)
        self.limit = clamp_limit(self.limit)
        return self


def clamp_page(page: int) -> int:
    return max(1, page)


def clamp_limit(limit: int) -> int:
    return min(MAX_LIMIT, max(1, limit))


class PharmacyOwnerSummary(CamelModel):
    id: str
    pharmacy_name: str
    contact_person: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    area: Optional[str] = None


class ProductOut(CamelModel):
    id: str = Field(..., description="Database identifier")
    name: str
    description: Optional[str] = None
    price: float
    category: str
    stock: int
    is_near_expiry: bool
    expiry_date: Optional[datetime] = None
    image_url: Optional[str] = None
    pharmacy_owner_id: str
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: Optional[datetime] = Field(
        None, description="Last update timestamp (UTC) if updated"
    )
    pharmacy_owner: Optional[PharmacyOwnerSummary] = Field(
        None, description="Display fields of the owning pharmacy"
    )


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    pages: int


class PriceRangeOut(CamelModel):
    min: float
    max: float


class Facets(CamelModel):
    categories: List[str]
    price_range: PriceRangeOut


class SearchResult(CamelModel):
    products: List[ProductOut]
    pagination: Pagination
    filters: Facets


class ProductListing(CamelModel):
    products: List[ProductOut]
    pagination: Pagination


class OwnProducts(CamelModel):
    count: int
    products: List[ProductOut]


def _check_expiry(is_near_expiry: Optional[bool], expiry_date: Optional[datetime]):
    if is_near_expiry is True and expiry_date is None:
        raise ValueError("Expiry date is required for near-expiry products")


class ProductCreate(CamelModel):
    """Payload to create a product."""

    name: str = Field(..., min_length=1, description="Product name")
    description: Optional[str] = None
    price: float = Field(..., ge=0, description="Unit price")
    category: str = Field(..., min_length=1)
    stock: int = Field(..., ge=0)
    is_near_expiry: bool = False
    expiry_date: Optional[datetime] = Field(None, description="ISO-8601 date")
    image_url: Optional[HttpUrl] = None

    @model_validator(mode="after")
    def _near_expiry_needs_date(self):
        _check_expiry(self.is_near_expiry, self.expiry_date)
        return self


class ProductUpdate(CamelModel):
    """Payload to update a product (all fields optional)."""

    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    stock: Optional[int] = Field(None, ge=0)
    is_near_expiry: Optional[bool] = None
    expiry_date: Optional[datetime] = None
    image_url: Optional[HttpUrl] = None

    @model_validator(mode="after")
    def _near_expiry_needs_date(self):
        _check_expiry(self.is_near_expiry, self.expiry_date)
        return self


class ProductMutationResult(CamelModel):
    message: str
    product: ProductOut


class MessageResult(BaseModel):
    message: str
