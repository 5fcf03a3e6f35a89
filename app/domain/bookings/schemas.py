"""Booking domain schemas - Pydantic models for validation"""

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_egypt_phone, validate_email
from ..pricing.schemas import PriceBreakdown, PriceCalculationRequest


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class BookingCreate(BaseModel):
    """
    Schema for creating a booking.

    Exactly one of `pricing` (priced now against live tables) or `quoteCode`
    (the saved quote's breakdown is reused as-is) must be given.
    """

    pricing: Optional[PriceCalculationRequest] = None
    quoteCode: Optional[str] = None
    customerName: str
    customerEmail: Optional[str] = None
    phone: Optional[str] = None
    address: str
    dateTime: datetime
    notes: Optional[str] = None

    @field_validator("customerName", "address")
    @classmethod
    def validate_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError("This field is required")
        return v.strip()

    @field_validator("customerEmail")
    @classmethod
    def validate_customer_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_egypt_phone(v)

    @model_validator(mode="after")
    def validate_price_source(self):
        if (self.pricing is None) == (self.quoteCode is None):
            raise ValueError("Provide either pricing or quoteCode")
        return self


class BookingStatusUpdate(BaseModel):
    """Only status fields can change once a booking exists"""

    status: Optional[BookingStatus] = None
    paymentStatus: Optional[PaymentStatus] = None


class BookingResponse(BaseModel):
    id: int
    publicId: str
    serviceId: Optional[int] = None
    quoteCode: Optional[str] = None
    customerName: str
    customerEmail: Optional[str] = None
    phone: Optional[str] = None
    address: str
    dateTime: datetime
    status: str
    paymentStatus: str
    notes: Optional[str] = None
    amount: int
    amountDisplay: str
    pricingBreakdown: PriceBreakdown
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
