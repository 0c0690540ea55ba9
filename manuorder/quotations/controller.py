from fastapi import APIRouter, status
from uuid import UUID

from ..database.core import DbSession
from ..auth.service import CurrentUser
from ..schemas.quotations import (
    QuotationCreateRequest, QuotationUpdateRequest,
    QuotationRespondRequest, QuotationResponse,
)
from .service import QuotationService

router = APIRouter(prefix="/orders/{order_id}/quotation", tags=["Quotations"])


@router.post("", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
def create_quotation(
    order_id: UUID,
    quotation_data: QuotationCreateRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Issue a quotation for an order waiting on one (admin only)"""
    return QuotationService.create_quotation(
        db, current_user, order_id,
        amount=quotation_data.amount,
        details=quotation_data.details,
        currency=quotation_data.currency,
    )


@router.put("", response_model=QuotationResponse)
def respond_to_quotation(
    order_id: UUID,
    response_data: QuotationRespondRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Accept or reject the quotation on an order"""
    return QuotationService.respond_to_quotation(db, current_user, order_id, response_data.is_accepted)


@router.patch("", response_model=QuotationResponse)
def update_quotation(
    order_id: UUID,
    quotation_data: QuotationUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
):
    """Edit a quotation the customer has not answered yet (admin only)"""
    return QuotationService.update_quotation(
        db, current_user, order_id,
        amount=quotation_data.amount,
        details=quotation_data.details,
        currency=quotation_data.currency,
    )
