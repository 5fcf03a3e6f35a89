"""Quote router - FastAPI endpoints for saved and shared quotes"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import Quote
from ..pricing.engine import format_amount
from ..pricing.schemas import PriceBreakdown
from .schemas import QuoteCreate, QuoteResponse, QuoteUpdate
from .service import QuoteService, quote_share_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def get_quote_service(db: Session = Depends(get_db)) -> QuoteService:
    """Dependency injection for QuoteService"""
    return QuoteService(db)


def quote_response(quote: Quote) -> QuoteResponse:
    breakdown = PriceBreakdown.model_validate(quote.pricing_breakdown)
    return QuoteResponse(
        id=quote.id,
        quoteCode=quote.quote_code,
        serviceId=quote.service_id,
        selections=quote.selections,
        pricingBreakdown=breakdown,
        totalPrice=quote.total_price,
        totalPriceDisplay=format_amount(quote.total_price, breakdown.currency),
        customerName=quote.customer_name,
        customerEmail=quote.customer_email,
        customerPhone=quote.customer_phone,
        createdAt=quote.created_at,
        expiresAt=quote.expires_at,
        viewCount=quote.view_count,
        convertedToBooking=quote.converted_to_booking,
        bookingId=quote.booking_id,
        shareUrl=quote_share_url(quote.quote_code),
    )


@router.post("", response_model=QuoteResponse)
async def create_quote(
    data: QuoteCreate,
    service: QuoteService = Depends(get_quote_service),
):
    """Price a selection and save it as a shareable quote"""
    return quote_response(service.create_quote(data))


@router.get("/{quote_code}", response_model=QuoteResponse)
async def get_quote_by_code(
    quote_code: str,
    service: QuoteService = Depends(get_quote_service),
):
    """Open a shared quote (counts a view)"""
    return quote_response(service.view_quote(quote_code))


@router.put("/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote_id: int,
    data: QuoteUpdate,
    service: QuoteService = Depends(get_quote_service),
):
    """Reprice a quote with a new selection"""
    return quote_response(service.update_quote(quote_id, data))


@router.post("/{quote_id}/convert", response_model=QuoteResponse)
async def convert_quote(
    quote_id: int,
    service: QuoteService = Depends(get_quote_service),
):
    """Mark a quote as converted to a booking"""
    return quote_response(service.convert_quote(quote_id))
