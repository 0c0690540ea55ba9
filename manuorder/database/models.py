# Central models file so every table is registered on Base before create_all

from .core import Base

from ..users.models import User
from ..orders.models import Order, Quotation, DesignFile, OrderSequence

__all__ = [
    "Base",
    "User",
    "Order",
    "Quotation",
    "DesignFile",
    "OrderSequence",
]
