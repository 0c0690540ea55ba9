from pydantic import BaseModel
from typing import List, Optional, Dict
from datetime import datetime
from decimal import Decimal
from uuid import UUID


class RevenueOrderSummary(BaseModel):
    id: UUID
    order_number: str
    customer_name: Optional[str] = None
    amount: Decimal
    currency: str
    # No separate completion timestamp is stored; the last update stands in for it.
    completed_at: datetime


class RevenueReportResponse(BaseModel):
    period: str
    cutoff: Optional[datetime] = None
    total_revenue: Decimal
    order_count: int
    monthly_revenue: Dict[str, Decimal]
    orders: List[RevenueOrderSummary]
