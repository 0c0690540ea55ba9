from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from ..orders.models import OrderStatus
from .quotations import QuotationResponse


class DesignFileInput(BaseModel):
    """A file reference returned by the upload endpoint, attached at order creation."""
    file_name: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1, max_length=1024)
    file_type: Optional[str] = Field(None, max_length=255)
    file_size: Optional[int] = Field(None, ge=0)


class CreateOrderRequest(BaseModel):
    customer_notes: Optional[str] = Field(None, max_length=10000)
    design_files: List[DesignFileInput] = Field(default_factory=list)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    # Lost-update guard: refuse the edit if the order moved on in the meantime.
    expected_status: Optional[OrderStatus] = None


class CustomerSummary(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DesignFileResponse(BaseModel):
    id: UUID
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    id: UUID
    order_number: str
    customer_id: str
    customer: Optional[CustomerSummary] = None
    customer_notes: str
    status: OrderStatus
    status_label: str
    design_files: List[DesignFileResponse] = Field(default_factory=list)
    quotation: Optional[QuotationResponse] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            customer=CustomerSummary.model_validate(order.customer) if order.customer else None,
            customer_notes=order.customer_notes,
            status=order.status,
            status_label=OrderStatus(order.status).label,
            design_files=[DesignFileResponse.model_validate(f) for f in order.design_files],
            quotation=QuotationResponse.model_validate(order.quotation) if order.quotation else None,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    total: int
    skip: int
    limit: int


class OrderStatisticsResponse(BaseModel):
    total_orders: int
    pending_orders: int
    active_orders: int
    completed_orders: int
    rejected_orders: int
    orders_by_status: Dict[str, int]
    total_revenue: Decimal
