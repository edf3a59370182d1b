import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from src.db.base import Base, DB_SCHEMA

# Registers PharmacyOwnerProfile for the relationship below
from src.app.features.pharmacies.models import PharmacyOwnerProfile  # noqa: F401


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        {"schema": DB_SCHEMA},
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False, index=True)
    description = Column(Text)
    price = Column(Float, nullable=False)
    category = Column(String, nullable=False, index=True)
    stock = Column(Integer, nullable=False, default=0)
    is_near_expiry = Column(Boolean, nullable=False, default=False, index=True)
    expiry_date = Column(DateTime)
    image_url = Column(String)
    pharmacy_owner_id = Column(
        String(36),
        ForeignKey(f"{DB_SCHEMA}.pharmacy_owner_profiles.id"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now())

    pharmacy_owner = relationship("PharmacyOwnerProfile", lazy="raise")
