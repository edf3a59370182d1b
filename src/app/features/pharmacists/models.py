import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import relationship

from src.db.base import Base, DB_SCHEMA
from src.app.features.pharmacies.models import User


class PharmacistProfile(Base):
    __tablename__ = "pharmacist_profiles"
    __table_args__ = {"schema": DB_SCHEMA}

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36),
        ForeignKey(f"{DB_SCHEMA}.users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, index=True)
    phone_number = Column(String)
    cv_url = Column(String)
    bio = Column(Text)
    experience = Column(Text)
    education = Column(Text)
    city = Column(String, nullable=False, index=True)
    area = Column(String, index=True)
    available = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now())

    # email comes from the user row; always loaded explicitly
    user = relationship(User, lazy="raise")
