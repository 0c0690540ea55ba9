# manuorder/reports/service.py

import calendar
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any

from sqlalchemy.orm import Session

from ..access.policy import AccessPolicy, Action
from ..auth.models import SessionUser
from ..core.exceptions import ValidationError
from ..orders.models import Order, OrderStatus, Quotation
from ..users.models import utcnow

logger = logging.getLogger(__name__)

PERIODS = ("all", "month", "quarter", "year", "last6months")


def _months_back(now: datetime, months: int) -> datetime:
    month_index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def resolve_cutoff(period: str, now: datetime) -> Optional[datetime]:
    """Lower bound on ``created_at`` for a report period, or None for all time."""
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "all":
        return None
    if period == "month":
        return start_of_day.replace(day=1)
    if period == "quarter":
        return start_of_day.replace(month=3 * ((now.month - 1) // 3) + 1, day=1)
    if period == "year":
        return start_of_day.replace(month=1, day=1)
    if period == "last6months":
        return _months_back(now, 6)
    raise ValidationError(
        f"Unknown report period '{period}'",
        context={"period": period, "allowed": ", ".join(PERIODS)},
    )


class ReportService:

    @staticmethod
    def revenue_report(
        db: Session,
        actor: SessionUser,
        period: str = "all",
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Revenue from completed orders whose quotation was accepted.

        Amounts are summed as Decimal. Months are keyed by the order's creation
        date; the last update time stands in for the completion date.
        """
        AccessPolicy.authorize(actor, Action.VIEW_REVENUE)
        period = (period or "all").strip().lower()
        cutoff = resolve_cutoff(period, now or utcnow())

        query = db.query(Order, Quotation).join(Quotation, Quotation.order_id == Order.id).filter(
            Order.status == OrderStatus.COMPLETED,
            Quotation.is_accepted.is_(True),
        )
        if cutoff is not None:
            query = query.filter(Order.created_at >= cutoff)

        total_revenue = Decimal("0")
        monthly_revenue: Dict[str, Decimal] = {}
        orders = []
        for order, quotation in query.order_by(Order.created_at).all():
            amount = Decimal(quotation.amount)
            total_revenue += amount
            month_key = order.created_at.strftime("%Y-%m")
            monthly_revenue[month_key] = monthly_revenue.get(month_key, Decimal("0")) + amount
            orders.append({
                "id": order.id,
                "order_number": order.order_number,
                "customer_name": order.customer.name if order.customer else None,
                "amount": amount,
                "currency": quotation.currency,
                "completed_at": order.updated_at,
            })

        logger.info(f"Revenue report ({period}) for {actor.user_id}: {len(orders)} orders, {total_revenue}")
        return {
            "period": period,
            "cutoff": cutoff,
            "total_revenue": total_revenue,
            "order_count": len(orders),
            "monthly_revenue": monthly_revenue,
            "orders": orders,
        }
