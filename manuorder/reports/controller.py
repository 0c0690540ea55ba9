from fastapi import APIRouter, Query

from ..auth.service import CurrentUser
from ..database.core import DbSession
from ..schemas.reports import RevenueReportResponse
from .service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/revenue", response_model=RevenueReportResponse)
def revenue_report(
    current_user: CurrentUser,
    db: DbSession,
    period: str = Query("all", description="all | month | quarter | year | last6months"),
):
    """Revenue from completed, accepted orders (admin only)"""
    return ReportService.revenue_report(db, current_user, period)
