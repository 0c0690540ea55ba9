# manuorder/orders/models.py

import uuid
import enum

from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, Enum, Text, Numeric, Boolean, Uuid,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..database.core import Base
from ..users.models import utcnow


class OrderStatus(str, enum.Enum):
    PENDING_QUOTE = "PENDING_QUOTE"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    IN_DESIGN = "IN_DESIGN"
    IN_MANUFACTURING = "IN_MANUFACTURING"
    IN_TESTING = "IN_TESTING"
    IN_PAINTING = "IN_PAINTING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS = {
    OrderStatus.PENDING_QUOTE: "Pending Quote",
    OrderStatus.PENDING_APPROVAL: "Pending Approval",
    OrderStatus.IN_DESIGN: "In Design",
    OrderStatus.IN_MANUFACTURING: "In Manufacturing",
    OrderStatus.IN_TESTING: "In Testing",
    OrderStatus.IN_PAINTING: "In Painting",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.REJECTED: "Rejected",
}


class Order(Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_number = Column(String(32), unique=True, nullable=False, index=True)
    customer_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    customer_notes = Column(Text, nullable=False)
    status = Column(
        Enum(OrderStatus, native_enum=False, length=32, validate_strings=True),
        nullable=False,
        default=OrderStatus.PENDING_QUOTE,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    customer = relationship("User", lazy="joined")
    quotation = relationship(
        "Quotation",
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="joined",
    )
    design_files = relationship(
        "DesignFile",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="DesignFile.created_at",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order(order_number='{self.order_number}', status='{self.status}')>"


class Quotation(Base):
    __tablename__ = "quotations"
    # The 1:1 invariant lives in the schema so concurrent inserts cannot both win.
    __table_args__ = (UniqueConstraint("order_id", name="uq_quotations_order_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    details = Column(Text, nullable=False)
    # None = awaiting the customer, True = accepted, False = rejected
    is_accepted = Column(Boolean, nullable=True, default=None)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    order = relationship("Order", back_populates="quotation")

    def __repr__(self):
        return f"<Quotation(order_id='{self.order_id}', amount={self.amount} {self.currency}, accepted={self.is_accepted})>"


class DesignFile(Base):
    __tablename__ = "design_files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1024), nullable=False, index=True)
    file_type = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    order = relationship("Order", back_populates="design_files")


class OrderSequence(Base):
    """One counter row per calendar year; order numbers are drawn from it atomically."""
    __tablename__ = "order_sequences"

    year = Column(Integer, primary_key=True, autoincrement=False)
    last_value = Column(Integer, nullable=False, default=0)
