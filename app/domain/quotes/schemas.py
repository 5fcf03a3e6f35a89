"""Quote domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_egypt_phone, validate_email
from ..pricing.schemas import PriceBreakdown, PriceCalculationRequest


class QuoteCreate(PriceCalculationRequest):
    """Price selection to save, plus optional contact details. The price is computed server-side."""

    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None

    @field_validator("customerEmail")
    @classmethod
    def validate_customer_email(cls, v):
        return validate_email(v)

    @field_validator("customerPhone")
    @classmethod
    def validate_customer_phone(cls, v):
        return validate_egypt_phone(v)


class QuoteUpdate(PriceCalculationRequest):
    """Replacement selection for an existing quote"""


class QuoteResponse(BaseModel):
    id: int
    quoteCode: str
    serviceId: int
    selections: dict
    pricingBreakdown: PriceBreakdown
    totalPrice: int
    totalPriceDisplay: str
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None
    createdAt: Optional[datetime] = None
    expiresAt: datetime
    viewCount: int
    convertedToBooking: bool
    bookingId: Optional[int] = None
    shareUrl: str
