"""Quote service - Business logic for saved, shareable quotes"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL, QUOTE_EXPIRY_DAYS
from ...models import Quote
from ...shared.validators import normalize_quote_code
from ..pricing.schemas import PriceCalculationRequest
from ..pricing.service import PricingService
from .repository import QuoteRepository
from .schemas import QuoteCreate, QuoteUpdate

logger = logging.getLogger(__name__)

# No 0/O or 1/I so codes survive being read out over the phone
QUOTE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
QUOTE_CODE_LENGTH = 11
MAX_CODE_ATTEMPTS = 10


def generate_quote_code() -> str:
    """Q followed by 11 random characters, e.g. Q7X9K2M4P3L5"""
    return "Q" + "".join(secrets.choice(QUOTE_CODE_ALPHABET) for _ in range(QUOTE_CODE_LENGTH))


def quote_share_url(quote_code: str) -> str:
    return f"{FRONTEND_URL.rstrip('/')}/quote/{quote_code}"


def pricing_request_of(data: PriceCalculationRequest) -> PriceCalculationRequest:
    """Strip contact fields so only the pricing selection is stored and replayed"""
    return PriceCalculationRequest.model_validate(
        data.model_dump(include=set(PriceCalculationRequest.model_fields))
    )


class QuoteService:
    """Service layer for quote business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = QuoteRepository()
        self.pricing = PricingService(db)

    @staticmethod
    def is_expired(quote: Quote, now: Optional[datetime] = None) -> bool:
        return quote.expires_at <= (now or datetime.utcnow())

    def _new_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_quote_code()
            if not self.repo.code_exists(self.db, code):
                return code
        logger.error(f"❌ Could not generate a unique quote code after {MAX_CODE_ATTEMPTS} attempts")
        raise HTTPException(status_code=500, detail="Could not generate a quote code")

    def create_quote(self, data: QuoteCreate) -> Quote:
        """Price the selection and store it under a fresh shareable code"""
        request = pricing_request_of(data)
        breakdown = self.pricing.calculate(request)

        quote = self.repo.create_quote(
            self.db,
            quote_code=self._new_code(),
            service_id=request.serviceId,
            selections=request.model_dump(mode="json"),
            pricing_breakdown=breakdown.model_dump(mode="json"),
            total_price=breakdown.finalPrice,
            customer_name=data.customerName,
            customer_email=data.customerEmail,
            customer_phone=data.customerPhone,
            expires_at=datetime.utcnow() + timedelta(days=QUOTE_EXPIRY_DAYS),
        )
        logger.info(f"✅ Quote {quote.quote_code} created for service {quote.service_id}: {quote.total_price}")
        return quote

    def get_quote(self, quote_id: int) -> Quote:
        quote = self.repo.get_quote_by_id(self.db, quote_id)
        if not quote:
            raise HTTPException(status_code=404, detail="Quote not found")
        return quote

    def get_valid_quote_by_code(self, quote_code: str) -> Quote:
        """Look up a quote by its code, rejecting expired ones with 410"""
        quote = self.repo.get_quote_by_code(self.db, normalize_quote_code(quote_code))
        if not quote:
            raise HTTPException(status_code=404, detail="Quote not found")
        if self.is_expired(quote):
            raise HTTPException(status_code=410, detail="This quote has expired")
        return quote

    def view_quote(self, quote_code: str) -> Quote:
        """Open a shared quote; every successful open counts as a view"""
        quote = self.get_valid_quote_by_code(quote_code)
        return self.repo.increment_view_count(self.db, quote)

    def update_quote(self, quote_id: int, data: QuoteUpdate) -> Quote:
        """Recompute a quote with a new selection. Expiry is not extended."""
        quote = self.get_quote(quote_id)
        if quote.converted_to_booking:
            raise HTTPException(status_code=409, detail="Quote was already converted to a booking")
        if self.is_expired(quote):
            raise HTTPException(status_code=410, detail="This quote has expired")

        request = pricing_request_of(data)
        breakdown = self.pricing.calculate(request)

        quote = self.repo.update_quote(
            self.db,
            quote,
            service_id=request.serviceId,
            selections=request.model_dump(mode="json"),
            pricing_breakdown=breakdown.model_dump(mode="json"),
            total_price=breakdown.finalPrice,
        )
        logger.info(f"✅ Quote {quote.quote_code} repriced: {quote.total_price}")
        return quote

    def mark_converted(self, quote: Quote, booking_id: Optional[int] = None) -> Quote:
        if quote.converted_to_booking and quote.booking_id and booking_id and quote.booking_id != booking_id:
            raise HTTPException(status_code=409, detail="Quote was already converted to another booking")

        return self.repo.update_quote(
            self.db, quote, converted_to_booking=True, booking_id=booking_id
        )

    def convert_quote(self, quote_id: int) -> Quote:
        """Mark a quote converted. Repeating the call is harmless."""
        quote = self.get_quote(quote_id)
        if quote.converted_to_booking:
            return quote
        quote = self.mark_converted(quote)
        logger.info(f"✅ Quote {quote.quote_code} marked as converted")
        return quote
