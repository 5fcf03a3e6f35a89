"""Pricing repository - Database operations for services and their pricing rows"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ...models import (
    AddOn,
    AddOnTier,
    PackageDiscount,
    PricingItem,
    PricingTier,
    Service,
    SpecialOffer,
    SqmPricing,
)


class PricingRepository:
    """Repository for pricing catalogue database operations"""

    # Services
    @staticmethod
    def get_services(db: Session, visible_only: bool = True) -> list[Service]:
        query = db.query(Service)
        if visible_only:
            query = query.filter(Service.is_visible.is_(True))
        return query.order_by(Service.id).all()

    @staticmethod
    def get_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_service_by_name_en(db: Session, name_en: str) -> Optional[Service]:
        return db.query(Service).filter(Service.name_en == name_en).first()

    # Rates of one service
    @staticmethod
    def get_tiers(db: Session, service_id: int) -> list[PricingTier]:
        return (
            db.query(PricingTier)
            .filter(PricingTier.service_id == service_id)
            .order_by(PricingTier.bedrooms)
            .all()
        )

    @staticmethod
    def get_sqm_rates(db: Session, service_id: int) -> list[SqmPricing]:
        return (
            db.query(SqmPricing)
            .filter(SqmPricing.service_id == service_id)
            .order_by(SqmPricing.id)
            .all()
        )

    @staticmethod
    def get_items(db: Session, service_id: int) -> list[PricingItem]:
        return (
            db.query(PricingItem)
            .filter(PricingItem.service_id == service_id)
            .order_by(PricingItem.id)
            .all()
        )

    @staticmethod
    def get_add_ons_for_service(
        db: Session, service_id: int, active_only: bool = False
    ) -> list[AddOn]:
        """Add-ons bound to the service plus global ones (service_id NULL)"""
        query = (
            db.query(AddOn)
            .options(selectinload(AddOn.tiers))
            .filter(or_(AddOn.service_id == service_id, AddOn.service_id.is_(None)))
        )
        if active_only:
            query = query.filter(AddOn.active.is_(True))
        return query.order_by(AddOn.id).all()

    @staticmethod
    def get_add_ons_by_ids(db: Session, add_on_ids: list[int]) -> list[AddOn]:
        if not add_on_ids:
            return []
        return (
            db.query(AddOn)
            .options(selectinload(AddOn.tiers))
            .filter(AddOn.id.in_(add_on_ids))
            .all()
        )

    @staticmethod
    def get_package_discounts(
        db: Session, service_id: int, active_only: bool = False
    ) -> list[PackageDiscount]:
        query = db.query(PackageDiscount).filter(PackageDiscount.service_id == service_id)
        if active_only:
            query = query.filter(PackageDiscount.active.is_(True))
        return query.order_by(PackageDiscount.visits).all()

    @staticmethod
    def get_special_offers(db: Session, active_only: bool = True) -> list[SpecialOffer]:
        query = db.query(SpecialOffer)
        if active_only:
            query = query.filter(SpecialOffer.active.is_(True))
        return query.order_by(SpecialOffer.id).all()

    # Single rows by primary key
    @staticmethod
    def get_by_id(db: Session, model, row_id: int):
        return db.query(model).filter(model.id == row_id).first()

    @staticmethod
    def tier_exists(db: Session, service_id: int, bedrooms: int, exclude_id: Optional[int] = None) -> bool:
        query = db.query(PricingTier.id).filter(
            PricingTier.service_id == service_id, PricingTier.bedrooms == bedrooms
        )
        if exclude_id is not None:
            query = query.filter(PricingTier.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def add_on_tier_exists(
        db: Session, add_on_id: int, bedrooms: int, exclude_id: Optional[int] = None
    ) -> bool:
        query = db.query(AddOnTier.id).filter(
            AddOnTier.add_on_id == add_on_id, AddOnTier.bedrooms == bedrooms
        )
        if exclude_id is not None:
            query = query.filter(AddOnTier.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def sqm_variant_exists(
        db: Session, service_id: int, variant: Optional[str], exclude_id: Optional[int] = None
    ) -> bool:
        query = db.query(SqmPricing.id).filter(SqmPricing.service_id == service_id)
        if variant is None:
            query = query.filter(SqmPricing.variant.is_(None))
        else:
            query = query.filter(SqmPricing.variant == variant)
        if exclude_id is not None:
            query = query.filter(SqmPricing.id != exclude_id)
        return query.first() is not None

    # Writes
    @staticmethod
    def create(db: Session, model, **data):
        row = model(**data)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def update(db: Session, row, **updates):
        """Update a row with provided fields. None clears a nullable column and is ignored otherwise."""
        columns = row.__table__.columns
        for key, value in updates.items():
            if not hasattr(row, key):
                continue
            if value is None and (key not in columns or not columns[key].nullable):
                continue
            setattr(row, key, value)

        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def delete(db: Session, row) -> None:
        db.delete(row)
        db.commit()

    @staticmethod
    def set_item_minimum(db: Session, service_id: int, minimum_charge: int) -> int:
        """Rewrite the shared minimum charge on every item of a service"""
        updated = (
            db.query(PricingItem)
            .filter(PricingItem.service_id == service_id)
            .update({PricingItem.minimum_charge: minimum_charge}, synchronize_session=False)
        )
        db.commit()
        return updated
