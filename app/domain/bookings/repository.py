"""Booking repository - Database operations for bookings"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, Quote


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking_by_public_id(db: Session, public_id: str) -> Optional[Booking]:
        """Get a booking by public UUID"""
        return db.query(Booking).filter(Booking.public_id == public_id).first()

    @staticmethod
    def get_bookings(db: Session, status: Optional[str] = None) -> list[Booking]:
        query = db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.date_time.desc(), Booking.id.desc()).all()

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def create_booking_from_quote(db: Session, quote: Quote, **booking_data) -> Optional[Booking]:
        """
        Insert the booking and claim the quote in one transaction.

        The claim is a conditional update on converted_to_booking, so of two
        bookings racing for the same quote only one commits. Returns None for
        the loser, with nothing written.
        """
        booking = Booking(**booking_data)
        db.add(booking)
        db.flush()

        claimed = (
            db.query(Quote)
            .filter(Quote.id == quote.id, Quote.converted_to_booking.is_(False))
            .update(
                {Quote.converted_to_booking: True, Quote.booking_id: booking.id},
                synchronize_session=False,
            )
        )
        if not claimed:
            db.rollback()
            return None

        db.commit()
        db.refresh(booking)
        db.refresh(quote)
        return booking

    @staticmethod
    def update_status(
        db: Session,
        booking: Booking,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
    ) -> Booking:
        """Change status fields only; the stored breakdown is never rewritten"""
        if status is not None:
            booking.status = status
        if payment_status is not None:
            booking.payment_status = payment_status

        db.commit()
        db.refresh(booking)
        return booking
