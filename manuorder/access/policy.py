# manuorder/access/policy.py
"""
Role and ownership rules for every order operation.

Every controller and service calls ``AccessPolicy.authorize`` with the caller,
the action, and (for single-order actions) the order. The caller has already
been resolved by ``get_current_user``, so anything failing here is Forbidden.
"""

import enum
import logging
from typing import Optional, Any, Dict

from ..auth.models import SessionUser
from ..core.exceptions import ForbiddenError
from ..users.models import UserRole

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    CREATE_ORDER = "create_order"
    LIST_ORDERS = "list_orders"
    READ_ORDER = "read_order"
    UPDATE_STATUS = "update_status"
    CREATE_QUOTATION = "create_quotation"
    UPDATE_QUOTATION = "update_quotation"
    RESPOND_QUOTATION = "respond_quotation"
    UPLOAD_FILE = "upload_file"
    DOWNLOAD_FILE = "download_file"
    VIEW_STATISTICS = "view_statistics"
    VIEW_REVENUE = "view_revenue"


ADMIN = UserRole.ADMIN
CUSTOMER = UserRole.CUSTOMER

# Roles allowed to attempt each action at all.
ROLE_MATRIX = {
    Action.CREATE_ORDER: {CUSTOMER},
    Action.LIST_ORDERS: {ADMIN, CUSTOMER},
    Action.READ_ORDER: {ADMIN, CUSTOMER},
    Action.UPDATE_STATUS: {ADMIN},
    Action.CREATE_QUOTATION: {ADMIN},
    Action.UPDATE_QUOTATION: {ADMIN},
    Action.RESPOND_QUOTATION: {ADMIN, CUSTOMER},
    Action.UPLOAD_FILE: {ADMIN, CUSTOMER},
    Action.DOWNLOAD_FILE: {ADMIN, CUSTOMER},
    Action.VIEW_STATISTICS: {ADMIN, CUSTOMER},
    Action.VIEW_REVENUE: {ADMIN},
}

# Actions where a customer must also own the order they name.
OWNERSHIP_REQUIRED = {
    Action.READ_ORDER,
    Action.RESPOND_QUOTATION,
    Action.DOWNLOAD_FILE,
}


class AccessPolicy:

    @staticmethod
    def is_allowed(actor: SessionUser, action: Action, owner_id: Optional[str] = None) -> bool:
        if actor.role not in ROLE_MATRIX[action]:
            return False
        if actor.is_admin:
            return True
        if action in OWNERSHIP_REQUIRED and owner_id is not None:
            return str(owner_id) == str(actor.user_id)
        return True

    @staticmethod
    def authorize(actor: SessionUser, action: Action, order: Any = None) -> None:
        """Raise ForbiddenError unless ``actor`` may perform ``action`` on ``order``."""
        owner_id = getattr(order, "customer_id", None) if order is not None else None
        if AccessPolicy.is_allowed(actor, action, owner_id):
            return

        context: Dict[str, Any] = {"action": action.value, "actor_id": actor.user_id}
        if order is not None:
            context["order_id"] = getattr(order, "id", None)
        if actor.role not in ROLE_MATRIX[action]:
            raise ForbiddenError(f"Role {actor.role.value} may not perform {action.value}", context=context)
        raise ForbiddenError("You do not have access to this order", context=context)

    @staticmethod
    def scope_customer_id(actor: SessionUser, requested_customer_id: Optional[str] = None) -> Optional[str]:
        """
        Resolve which customer's orders a listing may return.
        Admins see everything (or the customer they ask for); customers only ever
        see their own, and naming anyone else is refused rather than filtered.
        """
        if actor.is_admin:
            return requested_customer_id
        if requested_customer_id is not None and str(requested_customer_id) != str(actor.user_id):
            raise ForbiddenError(
                "Customers may only list their own orders",
                context={"actor_id": actor.user_id, "requested_customer_id": requested_customer_id},
            )
        return actor.user_id
