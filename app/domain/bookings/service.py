"""Booking service - Business logic for bookings"""

import copy
import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Booking
from ...shared.validators import validate_uuid
from ..pricing.service import PricingService
from ..quotes.service import QuoteService
from .repository import BookingRepository
from .schemas import BookingCreate, BookingStatus, BookingStatusUpdate

logger = logging.getLogger(__name__)


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.pricing = PricingService(db)
        self.quotes = QuoteService(db)

    def get_booking(self, public_id: str) -> Booking:
        if not validate_uuid(public_id):
            raise HTTPException(status_code=404, detail="Booking not found")
        booking = self.repo.get_booking_by_public_id(self.db, public_id)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def get_bookings(self, status: Optional[BookingStatus] = None) -> list[Booking]:
        return self.repo.get_bookings(self.db, status.value if status else None)

    def create_booking(self, data: BookingCreate) -> Booking:
        """
        Create a booking with its price breakdown frozen.

        From a quote, the quote's stored breakdown is reused as-is so the
        customer pays what they were quoted even if pricing changed since.
        Otherwise the selection is priced against the live tables now.
        """
        quote = None
        if data.quoteCode is not None:
            quote = self.quotes.get_valid_quote_by_code(data.quoteCode)
            if quote.converted_to_booking:
                raise HTTPException(status_code=409, detail="Quote was already converted to a booking")
            service_id = quote.service_id
            breakdown = copy.deepcopy(quote.pricing_breakdown)
        else:
            service_id = data.pricing.serviceId
            breakdown = self.pricing.calculate(data.pricing).model_dump(mode="json")

        booking_data = dict(
            service_id=service_id,
            quote_code=quote.quote_code if quote else None,
            customer_name=data.customerName,
            customer_email=data.customerEmail,
            phone=data.phone,
            address=data.address,
            date_time=data.dateTime,
            notes=data.notes,
            status=BookingStatus.PENDING.value,
            amount=breakdown["finalPrice"],
            pricing_breakdown=breakdown,
        )

        if quote is None:
            booking = self.repo.create_booking(self.db, **booking_data)
        else:
            booking = self.repo.create_booking_from_quote(self.db, quote, **booking_data)
            if booking is None:
                logger.warning(f"⚠️ Quote {quote.quote_code} was converted by a concurrent booking")
                raise HTTPException(status_code=409, detail="Quote was already converted to a booking")
            logger.info(f"✅ Quote {quote.quote_code} converted to booking {booking.public_id}")

        logger.info(f"✅ Booking {booking.public_id} created for service {service_id}: {booking.amount}")
        return booking

    def update_status(self, public_id: str, data: BookingStatusUpdate) -> Booking:
        booking = self.get_booking(public_id)
        if data.status is None and data.paymentStatus is None:
            raise HTTPException(status_code=400, detail="Nothing to update")

        booking = self.repo.update_status(
            self.db,
            booking,
            status=data.status.value if data.status else None,
            payment_status=data.paymentStatus.value if data.paymentStatus else None,
        )
        logger.info(
            f"📊 Booking {public_id} status={booking.status} payment_status={booking.payment_status}"
        )
        return booking
