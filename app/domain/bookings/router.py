"""Booking router - FastAPI endpoints for bookings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import Booking
from ..pricing.engine import format_amount
from ..pricing.schemas import PriceBreakdown
from .schemas import BookingCreate, BookingResponse, BookingStatus, BookingStatusUpdate
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def booking_response(booking: Booking) -> BookingResponse:
    breakdown = PriceBreakdown.model_validate(booking.pricing_breakdown)
    return BookingResponse(
        id=booking.id,
        publicId=booking.public_id,
        serviceId=booking.service_id,
        quoteCode=booking.quote_code,
        customerName=booking.customer_name,
        customerEmail=booking.customer_email,
        phone=booking.phone,
        address=booking.address,
        dateTime=booking.date_time,
        status=booking.status,
        paymentStatus=booking.payment_status,
        notes=booking.notes,
        amount=booking.amount,
        amountDisplay=format_amount(booking.amount, breakdown.currency),
        pricingBreakdown=breakdown,
        createdAt=booking.created_at,
        updatedAt=booking.updated_at,
    )


@router.post("", response_model=BookingResponse)
async def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """Create a booking, priced now or from a saved quote"""
    return booking_response(service.create_booking(data))


@router.get("", response_model=list[BookingResponse])
async def get_bookings(
    status: Optional[BookingStatus] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    """Get all bookings, newest appointment first"""
    return [booking_response(b) for b in service.get_bookings(status)]


@router.get("/{public_id}", response_model=BookingResponse)
async def get_booking(
    public_id: str,
    service: BookingService = Depends(get_booking_service),
):
    """Get a booking with the price breakdown it was created with"""
    return booking_response(service.get_booking(public_id))


@router.patch("/{public_id}/status", response_model=BookingResponse)
async def update_booking_status(
    public_id: str,
    data: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
):
    """Change booking or payment status"""
    return booking_response(service.update_status(public_id, data))
