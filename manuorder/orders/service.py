# manuorder/orders/service.py

import logging
from decimal import Decimal
from typing import List, Optional, Dict, Any, Tuple, Iterable
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import Order, OrderStatus, DesignFile, Quotation
from .numbering import allocate_order_number
from . import lifecycle
from ..access.policy import AccessPolicy, Action
from ..auth.models import SessionUser
from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationError, ConflictError
from ..database.core import transaction
from ..monitoring import metrics
from ..schemas.orders import DesignFileInput
from ..users.models import User, utcnow
from ..users.service import UserService

logger = logging.getLogger(__name__)


class OrderService:

    @staticmethod
    def _load(db: Session, order_id: UUID) -> Optional[Order]:
        return db.get(Order, order_id, populate_existing=True)

    @staticmethod
    def _load_or_404(db: Session, order_id: UUID, actor: SessionUser) -> Order:
        order = OrderService._load(db, order_id)
        if order is None:
            raise NotFoundError(
                "Order not found",
                context={"order_id": order_id, "actor_id": actor.user_id},
            )
        return order

    @staticmethod
    def _validate_files(db: Session, files: Iterable[DesignFileInput]) -> List[DesignFileInput]:
        files = list(files or [])
        references = [f.file_url for f in files]
        if len(set(references)) != len(references):
            raise ValidationError("The same file was attached more than once")
        if references:
            taken = db.execute(
                select(DesignFile.file_url).where(DesignFile.file_url.in_(references))
            ).scalars().all()
            if taken:
                raise ConflictError(
                    "A design file is already attached to another order",
                    context={"file_url": taken[0]},
                )
        return files

    @staticmethod
    def create_order(
        db: Session,
        actor: SessionUser,
        customer_notes: Optional[str],
        design_files: Iterable[DesignFileInput] = (),
    ) -> Order:
        """
        Create an order in PENDING_QUOTE for the calling customer.

        The order number is drawn from the per-year counter inside the same
        transaction as the insert. A unique-constraint collision rolls everything
        back and tries again, up to ORDER_NUMBER_MAX_RETRIES times.
        """
        AccessPolicy.authorize(actor, Action.CREATE_ORDER)

        notes = (customer_notes or "").strip()
        if not notes:
            raise ValidationError("Customer notes are required")
        files = OrderService._validate_files(db, design_files)

        context = {"operation": "create_order", "actor_id": actor.user_id}
        attempts = max(1, settings.ORDER_NUMBER_MAX_RETRIES)
        for attempt in range(1, attempts + 1):
            try:
                with transaction(db, **context):
                    now = utcnow()
                    order_number = allocate_order_number(db, now)
                    UserService.sync_from_session(db, actor)
                    order = Order(
                        order_number=order_number,
                        customer_id=actor.user_id,
                        customer_notes=notes,
                        status=lifecycle.INITIAL_STATUS,
                        created_at=now,
                        updated_at=now,
                    )
                    for f in files:
                        order.design_files.append(DesignFile(
                            file_name=f.file_name,
                            file_url=f.file_url,
                            file_type=f.file_type,
                            file_size=f.file_size,
                        ))
                    db.add(order)
                break
            except IntegrityError as e:
                metrics.order_number_retries.inc()
                logger.warning(f"Order creation collided on attempt {attempt}/{attempts}: {e.orig}")
                if attempt == attempts:
                    raise ConflictError(
                        "Could not allocate a unique order number, please retry",
                        context=context,
                        technical_details=str(e),
                    )

        metrics.orders_created.inc()
        logger.info(f"Order {order.order_number} created by customer {actor.user_id}")
        return OrderService._load(db, order.id)

    @staticmethod
    def get_order(db: Session, actor: SessionUser, order_id: UUID) -> Order:
        """Get a specific order; customers only ever see their own."""
        order = OrderService._load_or_404(db, order_id, actor)
        AccessPolicy.authorize(actor, Action.READ_ORDER, order)
        return order

    @staticmethod
    def get_order_by_number(db: Session, actor: SessionUser, order_number: str) -> Order:
        order = db.query(Order).filter(Order.order_number == order_number).first()
        if order is None:
            raise NotFoundError(
                "Order not found",
                context={"order_number": order_number, "actor_id": actor.user_id},
            )
        AccessPolicy.authorize(actor, Action.READ_ORDER, order)
        return order

    @staticmethod
    def list_orders(
        db: Session,
        actor: SessionUser,
        status: Optional[OrderStatus] = None,
        customer_id: Optional[str] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Order], int]:
        """List orders newest first, scoped to the caller's visibility."""
        AccessPolicy.authorize(actor, Action.LIST_ORDERS)
        scoped_customer = AccessPolicy.scope_customer_id(actor, customer_id)

        query = db.query(Order)
        if scoped_customer is not None:
            query = query.filter(Order.customer_id == scoped_customer)
        if status is not None:
            query = query.filter(Order.status == OrderStatus(status))
        if search and search.strip():
            term = search.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"%{term}%"
            query = query.outerjoin(User, User.id == Order.customer_id).filter(or_(
                func.lower(Order.order_number).like(pattern, escape="\\"),
                func.lower(Order.customer_notes).like(pattern, escape="\\"),
                func.lower(User.name).like(pattern, escape="\\"),
                func.lower(User.email).like(pattern, escape="\\"),
            ))

        total = query.order_by(None).count()
        orders = query.order_by(Order.created_at.desc(), Order.order_number.desc())\
                      .offset(skip).limit(limit).all()
        return orders, total

    @staticmethod
    def update_status(
        db: Session,
        actor: SessionUser,
        order_id: UUID,
        new_status: OrderStatus,
        expected_status: Optional[OrderStatus] = None,
    ) -> Order:
        """Admin status edit, checked against the transition table."""
        AccessPolicy.authorize(actor, Action.UPDATE_STATUS)
        new_status = OrderStatus(new_status)
        context = {"operation": "update_status", "order_id": order_id, "actor_id": actor.user_id}

        order = OrderService._load_or_404(db, order_id, actor)
        current = OrderStatus(order.status)

        if expected_status is not None and OrderStatus(expected_status) != current:
            raise ConflictError(
                "The order status changed since it was last read",
                context=dict(context, current_status=current.value, expected_status=OrderStatus(expected_status).value),
            )
        lifecycle.validate_admin_transition(current, new_status, context=context)

        with transaction(db, **context):
            order.status = new_status
            order.updated_at = utcnow()

        metrics.record_transition(current, new_status)
        logger.info(f"Order {order.order_number} moved {current.value} -> {new_status.value} by {actor.user_id}")
        return OrderService._load(db, order.id)

    @staticmethod
    def get_order_statistics(db: Session, actor: SessionUser) -> Dict[str, Any]:
        """Dashboard counters, scoped the same way as listing."""
        AccessPolicy.authorize(actor, Action.VIEW_STATISTICS)
        scoped_customer = AccessPolicy.scope_customer_id(actor)

        counts_query = db.query(Order.status, func.count(Order.id)).group_by(Order.status)
        revenue_query = db.query(Quotation.amount).join(Order, Order.id == Quotation.order_id).filter(
            Order.status == OrderStatus.COMPLETED,
            Quotation.is_accepted.is_(True),
        )
        if scoped_customer is not None:
            counts_query = counts_query.filter(Order.customer_id == scoped_customer)
            revenue_query = revenue_query.filter(Order.customer_id == scoped_customer)

        orders_by_status = {s.value: 0 for s in OrderStatus}
        for status, count in counts_query.all():
            orders_by_status[OrderStatus(status).value] = count

        def bucket(statuses):
            return sum(orders_by_status[s.value] for s in statuses)

        total_revenue = sum((Decimal(amount) for (amount,) in revenue_query.all()), Decimal("0"))

        return {
            "total_orders": sum(orders_by_status.values()),
            "pending_orders": bucket(lifecycle.PENDING_STATUSES),
            "active_orders": bucket(lifecycle.ACTIVE_STATUSES),
            "completed_orders": orders_by_status[OrderStatus.COMPLETED.value],
            "rejected_orders": orders_by_status[OrderStatus.REJECTED.value],
            "orders_by_status": orders_by_status,
            "total_revenue": total_revenue,
        }
