from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from powdercoat.core.enums import NegotiationStatus, UserRole


class QuoteIn(BaseModel):
    quoted_price: float = Field(gt=0, allow_inf_nan=False)
    notes: Optional[str] = None
    status: NegotiationStatus = NegotiationStatus.PENDING


class OfferIn(BaseModel):
    quoted_price: float = Field(gt=0, allow_inf_nan=False)
    notes: Optional[str] = None


class RejectIn(BaseModel):
    notes: Optional[str] = None


class NegotiationOut(BaseModel):
    id: int
    order_id: int
    quoted_by: int
    author_role: UserRole
    quoted_price: float
    notes: Optional[str] = None
    status: NegotiationStatus
    created_at: datetime
