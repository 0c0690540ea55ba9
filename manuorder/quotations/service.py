# manuorder/quotations/service.py

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Optional, Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..access.policy import AccessPolicy, Action
from ..auth.models import SessionUser
from ..core.config import settings
from ..core.exceptions import NotFoundError, ValidationError, ConflictError
from ..database.core import transaction
from ..monitoring import metrics
from ..orders import lifecycle
from ..orders.models import OrderStatus, Quotation
from ..orders.service import OrderService
from ..users.models import utcnow

logger = logging.getLogger(__name__)

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")
MAX_AMOUNT = Decimal("9999999999.99")


def _clean_amount(amount: Any) -> Decimal:
    if amount is None or amount == "":
        raise ValidationError("Amount is required")
    if isinstance(amount, bool):
        raise ValidationError("Amount must be a number")
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError("Amount must be a number")
    if not value.is_finite() or value <= 0:
        raise ValidationError("Amount must be greater than zero")
    if value > MAX_AMOUNT:
        raise ValidationError("Amount is too large")
    if value != value.quantize(Decimal("0.01")):
        raise ValidationError("Amount cannot have more than two decimal places")
    return value.quantize(Decimal("0.01"))


def _clean_details(details: Optional[str]) -> str:
    cleaned = (details or "").strip()
    if not cleaned:
        raise ValidationError("Quotation details are required")
    return cleaned


def _clean_currency(currency: Optional[str]) -> str:
    if currency is None or not str(currency).strip():
        return settings.DEFAULT_CURRENCY
    code = str(currency).strip().upper()
    if not CURRENCY_PATTERN.match(code):
        raise ValidationError("Currency must be a three-letter ISO code", context={"currency": currency})
    return code


class QuotationService:

    @staticmethod
    def create_quotation(
        db: Session,
        actor: SessionUser,
        order_id: UUID,
        amount: Any,
        details: Optional[str],
        currency: Optional[str] = None,
    ) -> Quotation:
        """
        Issue the quotation for an order and move it to PENDING_APPROVAL.

        Both writes commit together. A second quotation for the same order is a
        Conflict whether it is caught by the pre-check or by the unique
        constraint when two admins race.
        """
        AccessPolicy.authorize(actor, Action.CREATE_QUOTATION)
        amount = _clean_amount(amount)
        details = _clean_details(details)
        currency = _clean_currency(currency)

        context = {"operation": "create_quotation", "order_id": order_id, "actor_id": actor.user_id}
        order = OrderService._load_or_404(db, order_id, actor)
        if order.quotation is not None:
            raise ConflictError("This order already has a quotation", context=context)
        current = OrderStatus(order.status)
        new_status = lifecycle.status_after_quotation_created(current, context=context)

        quotation = Quotation(order_id=order.id, amount=amount, currency=currency, details=details)
        try:
            with transaction(db, **context):
                db.add(quotation)
                order.status = new_status
                order.updated_at = utcnow()
        except IntegrityError as e:
            raise ConflictError(
                "This order already has a quotation",
                context=context,
                technical_details=str(e.orig),
            )

        metrics.quotations_created.labels(currency=currency).inc()
        metrics.record_transition(current, new_status)
        logger.info(f"Quotation issued for order {order.order_number}: {amount} {currency}")
        db.refresh(quotation)
        return quotation

    @staticmethod
    def respond_to_quotation(
        db: Session,
        actor: SessionUser,
        order_id: UUID,
        is_accepted: Any,
    ) -> Quotation:
        """Record the customer's answer and move the order to IN_DESIGN or REJECTED."""
        AccessPolicy.authorize(actor, Action.RESPOND_QUOTATION)
        if not isinstance(is_accepted, bool):
            raise ValidationError("is_accepted must be a boolean")

        context = {"operation": "respond_to_quotation", "order_id": order_id, "actor_id": actor.user_id}
        order = OrderService._load_or_404(db, order_id, actor)
        AccessPolicy.authorize(actor, Action.RESPOND_QUOTATION, order)

        quotation = order.quotation
        if quotation is None:
            raise NotFoundError("No quotation found for this order", context=context)

        current = OrderStatus(order.status)
        new_status = lifecycle.status_after_response(current, is_accepted, context=context)

        with transaction(db, **context):
            quotation.is_accepted = is_accepted
            quotation.updated_at = utcnow()
            order.status = new_status
            order.updated_at = utcnow()

        metrics.quotation_responses.labels(outcome="accepted" if is_accepted else "rejected").inc()
        if current != new_status:
            metrics.record_transition(current, new_status)
        logger.info(
            f"Quotation for order {order.order_number} {'accepted' if is_accepted else 'rejected'} by {actor.user_id}"
        )
        db.refresh(quotation)
        return quotation

    @staticmethod
    def update_quotation(
        db: Session,
        actor: SessionUser,
        order_id: UUID,
        amount: Any = None,
        details: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> Quotation:
        """Admin edit of a quotation the customer has not answered yet."""
        AccessPolicy.authorize(actor, Action.UPDATE_QUOTATION)
        if amount is None and details is None and currency is None:
            raise ValidationError("Nothing to update")
        new_amount = _clean_amount(amount) if amount is not None else None
        new_details = _clean_details(details) if details is not None else None
        new_currency = _clean_currency(currency) if currency is not None else None

        context = {"operation": "update_quotation", "order_id": order_id, "actor_id": actor.user_id}
        order = OrderService._load_or_404(db, order_id, actor)
        quotation = order.quotation
        if quotation is None:
            raise NotFoundError("No quotation found for this order", context=context)
        if quotation.is_accepted is not None:
            raise ConflictError("The customer has already answered this quotation", context=context)

        with transaction(db, **context):
            if new_amount is not None:
                quotation.amount = new_amount
            if new_details is not None:
                quotation.details = new_details
            if new_currency is not None:
                quotation.currency = new_currency
            quotation.updated_at = utcnow()

        db.refresh(quotation)
        return quotation

