import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from src.db.base import Base, DB_SCHEMA


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"schema": DB_SCHEMA}

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String, nullable=False, unique=True, index=True)
    role = Column(String, nullable=False)  # PHARMACIST, PHARMACY_OWNER
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    pharmacy_owner_profile = relationship(
        "PharmacyOwnerProfile", back_populates="user", uselist=False
    )


class PharmacyOwnerProfile(Base):
    __tablename__ = "pharmacy_owner_profiles"
    __table_args__ = {"schema": DB_SCHEMA}

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(
        String(36),
        ForeignKey(f"{DB_SCHEMA}.users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    pharmacy_name = Column(String, nullable=False)
    contact_person = Column(String, nullable=False)
    phone_number = Column(String)
    address = Column(String)
    city = Column(String, nullable=False, index=True)
    area = Column(String, index=True)
    subscription_status = Column(String, nullable=False, default="none")  # none, basic, premium
    subscription_expires_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now())

    user = relationship("User", back_populates="pharmacy_owner_profile")
