# backend/marketplace/models/user.py
"""
Minimal user record shared by customers and vendors.

Profiles, authentication and account management live outside this
service; bookings and availability only need a stable identifier and
enough display data for notifications.
"""

from enum import Enum

from sqlalchemy import CheckConstraint, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class UserRole(str, Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"


class User(Base):
    __tablename__ = "users"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    services = relationship("Service", back_populates="vendor", cascade="all, delete-orphan")
    availability_windows = relationship(
        "AvailabilityWindow", back_populates="vendor", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('customer', 'vendor')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email} ({self.role})>"
