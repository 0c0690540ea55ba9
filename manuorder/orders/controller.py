from fastapi import APIRouter, Query, status
from typing import Optional
from uuid import UUID

from ..database.core import DbSession
from ..auth.service import CurrentUser
from ..schemas.orders import (
    CreateOrderRequest, OrderResponse, OrderListResponse,
    OrderStatusUpdate, OrderStatisticsResponse,
)
from .models import OrderStatus
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(order_data: CreateOrderRequest, current_user: CurrentUser, db: DbSession):
    """Create a new order for the authenticated customer"""
    order = OrderService.create_order(
        db, current_user, order_data.customer_notes, order_data.design_files
    )
    return OrderResponse.from_order(order)


@router.get("/", response_model=OrderListResponse)
def list_orders(
    current_user: CurrentUser,
    db: DbSession,
    status: Optional[OrderStatus] = None,
    customer_id: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=200),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    """List orders newest first. Customers only ever get their own."""
    orders, total = OrderService.list_orders(
        db, current_user, status=status, customer_id=customer_id,
        search=search, skip=skip, limit=limit,
    )
    return OrderListResponse(
        orders=[OrderResponse.from_order(o) for o in orders],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/statistics", response_model=OrderStatisticsResponse)
def get_order_statistics(current_user: CurrentUser, db: DbSession):
    return OrderStatisticsResponse(**OrderService.get_order_statistics(db, current_user))


@router.get("/number/{order_number}", response_model=OrderResponse)
def get_order_by_number(order_number: str, current_user: CurrentUser, db: DbSession):
    order = OrderService.get_order_by_number(db, current_user, order_number)
    return OrderResponse.from_order(order)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: UUID, current_user: CurrentUser, db: DbSession):
    """Get a specific order by ID"""
    order = OrderService.get_order(db, current_user, order_id)
    return OrderResponse.from_order(order)


@router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: UUID,
    status_update: OrderStatusUpdate,
    current_user: CurrentUser,
    db: DbSession,
):
    """Update order status (admin only)"""
    order = OrderService.update_status(
        db, current_user, order_id, status_update.status,
        expected_status=status_update.expected_status,
    )
    return OrderResponse.from_order(order)
