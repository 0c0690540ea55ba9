# manuorder/users/models.py

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Enum

from ..database.core import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every table stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"


class User(Base):
    """
    Local mirror of an identity-provider account.
    Rows are written from session claims; credentials never live here.
    """
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=True, index=True)
    name = Column(String(200), nullable=True)
    role = Column(Enum(UserRole, native_enum=False, length=16), nullable=False, default=UserRole.CUSTOMER)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}', role='{self.role}')>"
