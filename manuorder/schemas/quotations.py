from pydantic import BaseModel, ConfigDict, Field, StrictBool
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID


class QuotationCreateRequest(BaseModel):
    # Presence and sign are checked by the service so direct callers get the same rules.
    amount: Optional[Decimal] = None
    details: Optional[str] = Field(None, max_length=10000)
    currency: Optional[str] = None


class QuotationUpdateRequest(BaseModel):
    amount: Optional[Decimal] = None
    details: Optional[str] = Field(None, max_length=10000)
    currency: Optional[str] = None


class QuotationRespondRequest(BaseModel):
    is_accepted: StrictBool


class QuotationResponse(BaseModel):
    id: UUID
    order_id: UUID
    amount: Decimal
    currency: str
    details: str
    is_accepted: Optional[bool] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
