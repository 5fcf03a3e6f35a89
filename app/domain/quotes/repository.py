"""Quote repository - Database operations for saved quotes"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Quote


class QuoteRepository:
    """Repository for quote database operations"""

    @staticmethod
    def get_quote_by_id(db: Session, quote_id: int) -> Optional[Quote]:
        return db.query(Quote).filter(Quote.id == quote_id).first()

    @staticmethod
    def get_quote_by_code(db: Session, quote_code: str) -> Optional[Quote]:
        return db.query(Quote).filter(Quote.quote_code == quote_code).first()

    @staticmethod
    def code_exists(db: Session, quote_code: str) -> bool:
        return db.query(Quote.id).filter(Quote.quote_code == quote_code).first() is not None

    @staticmethod
    def create_quote(db: Session, **quote_data) -> Quote:
        quote = Quote(**quote_data)
        db.add(quote)
        db.commit()
        db.refresh(quote)
        return quote

    @staticmethod
    def update_quote(db: Session, quote: Quote, **updates) -> Quote:
        """Update a quote with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(quote, key):
                setattr(quote, key, value)

        db.commit()
        db.refresh(quote)
        return quote

    @staticmethod
    def increment_view_count(db: Session, quote: Quote) -> Quote:
        quote.view_count = Quote.view_count + 1
        db.commit()
        db.refresh(quote)
        return quote
