# manuorder/orders/lifecycle.py
"""
Order status state machine.

Three kinds of movement exist:

* order creation always starts at PENDING_QUOTE;
* quotation operations drive PENDING_QUOTE -> PENDING_APPROVAL and the
  accept/reject branch out of PENDING_APPROVAL;
* everything after design is an admin status edit, one step at a time.

Admin edits are checked against ``ADMIN_TRANSITIONS`` unless
``settings.ALLOW_STATUS_OVERRIDE`` is on, in which case any status may be set.
"""

from typing import Dict, FrozenSet, Optional

from .models import OrderStatus
from ..core.config import settings
from ..core.exceptions import InvalidStatusTransitionError, ConflictError

INITIAL_STATUS = OrderStatus.PENDING_QUOTE

# Edges driven only by quotation operations.
QUOTATION_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING_QUOTE: frozenset({OrderStatus.PENDING_APPROVAL}),
    OrderStatus.PENDING_APPROVAL: frozenset({OrderStatus.IN_DESIGN, OrderStatus.REJECTED}),
}

# Edges an admin may take with a direct status edit.
ADMIN_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.IN_DESIGN: frozenset({OrderStatus.IN_MANUFACTURING}),
    OrderStatus.IN_MANUFACTURING: frozenset({OrderStatus.IN_TESTING}),
    OrderStatus.IN_TESTING: frozenset({OrderStatus.IN_PAINTING}),
    OrderStatus.IN_PAINTING: frozenset({OrderStatus.COMPLETED}),
}

# A customer may (re)answer a quotation until manufacturing starts.
RESPONDABLE_STATUSES = frozenset({
    OrderStatus.PENDING_APPROVAL,
    OrderStatus.IN_DESIGN,
    OrderStatus.REJECTED,
})

PENDING_STATUSES = frozenset({OrderStatus.PENDING_QUOTE, OrderStatus.PENDING_APPROVAL})
ACTIVE_STATUSES = frozenset({
    OrderStatus.IN_DESIGN,
    OrderStatus.IN_MANUFACTURING,
    OrderStatus.IN_TESTING,
    OrderStatus.IN_PAINTING,
})
TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.REJECTED})


def allowed_admin_targets(current: OrderStatus) -> FrozenSet[OrderStatus]:
    if settings.ALLOW_STATUS_OVERRIDE:
        return frozenset(s for s in OrderStatus if s != current)
    return ADMIN_TRANSITIONS.get(OrderStatus(current), frozenset())


def validate_admin_transition(current: OrderStatus, target: OrderStatus, context: Optional[dict] = None) -> None:
    """Raise InvalidStatusTransitionError if an admin edit from ``current`` to ``target`` is illegal."""
    current, target = OrderStatus(current), OrderStatus(target)
    if settings.ALLOW_STATUS_OVERRIDE:
        return
    if target not in ADMIN_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransitionError(current.value, target.value, context=context)


def status_after_quotation_created(current: OrderStatus, context: Optional[dict] = None) -> OrderStatus:
    current = OrderStatus(current)
    if OrderStatus.PENDING_APPROVAL not in QUOTATION_TRANSITIONS.get(current, frozenset()):
        raise ConflictError(
            f"A quotation can only be issued while the order is {OrderStatus.PENDING_QUOTE.value}",
            context=dict(context or {}, current_status=current.value),
        )
    return OrderStatus.PENDING_APPROVAL


def status_after_response(current: OrderStatus, is_accepted: bool, context: Optional[dict] = None) -> OrderStatus:
    current = OrderStatus(current)
    if current not in RESPONDABLE_STATUSES:
        raise ConflictError(
            "The quotation can no longer be answered for this order",
            context=dict(context or {}, current_status=current.value),
        )
    return OrderStatus.IN_DESIGN if is_accepted else OrderStatus.REJECTED
