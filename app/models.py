import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .domain.pricing.enums import (
    AddOnPricingType,
    AdjustmentDirection,
    DiscountType,
    OfferType,
    PricingType,
)


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


def enum_column(enum_cls):
    """Enum column storing member values (e.g. "percentage"), not member names"""
    return Enum(
        enum_cls,
        name=enum_cls.__name__.lower(),
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


# All money columns are integer minor currency units (piastres: 100 = 1 EGP)


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)  # Arabic name
    name_en = Column(String(255), nullable=True)  # English name
    description = Column(Text, nullable=True)
    description_en = Column(Text, nullable=True)
    duration = Column(Integer, nullable=True)  # Minutes
    price = Column(Integer, nullable=False, default=0)  # Base price for FIXED services
    pricing_type = Column(
        enum_column(PricingType), nullable=False, default=PricingType.FIXED
    )
    is_visible = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    pricing_tiers = relationship(
        "PricingTier", back_populates="service", cascade="all, delete-orphan"
    )
    sqm_pricing = relationship("SqmPricing", back_populates="service", cascade="all, delete-orphan")
    pricing_items = relationship(
        "PricingItem", back_populates="service", cascade="all, delete-orphan"
    )
    add_ons = relationship("AddOn", back_populates="service", cascade="all, delete-orphan")
    package_discounts = relationship(
        "PackageDiscount", back_populates="service", cascade="all, delete-orphan"
    )


class PricingTier(Base):
    """Bedroom-based price for a service (Service Apartments, Periodical Cleaning)"""

    __tablename__ = "pricing_tiers"
    __table_args__ = (UniqueConstraint("service_id", "bedrooms", name="uq_pricing_tier_bedrooms"),)

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    bedrooms = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="pricing_tiers")


class SqmPricing(Base):
    """Square meter rate (Deep Cleaning, Move-In/Move-Out)"""

    __tablename__ = "pricing_sqm"
    __table_args__ = (UniqueConstraint("service_id", "variant", name="uq_pricing_sqm_variant"),)

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    variant = Column(String(50), nullable=True)  # "standard", or "normal" / "heavy"
    price_per_sqm = Column(Integer, nullable=False)
    minimum_charge = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="sqm_pricing")


class PricingItem(Base):
    """Per-item price (Upholstery). All items of a service share one minimum_charge."""

    __tablename__ = "pricing_items"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_name = Column(String(100), nullable=False)
    item_name_en = Column(String(100), nullable=False)
    price = Column(Integer, nullable=False)
    minimum_charge = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="pricing_items")


class AddOn(Base):
    """Optional extra (Laundry, Garden/Terrace, Kitchen Deep Clean). service_id NULL = global."""

    __tablename__ = "add_ons"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=True, index=True
    )
    name = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    description_en = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)
    pricing_type = Column(
        enum_column(AddOnPricingType), nullable=False, default=AddOnPricingType.FIXED
    )
    size_tier_threshold = Column(Integer, nullable=True)  # sqm
    size_tier_multiplier = Column(Integer, nullable=True)  # percent, 150 = +50%
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="add_ons")
    tiers = relationship(
        "AddOnTier",
        back_populates="add_on",
        cascade="all, delete-orphan",
        order_by="AddOnTier.bedrooms",
    )


class AddOnTier(Base):
    __tablename__ = "add_on_tiers"
    __table_args__ = (UniqueConstraint("add_on_id", "bedrooms", name="uq_add_on_tier_bedrooms"),)

    id = Column(Integer, primary_key=True, index=True)
    add_on_id = Column(
        Integer, ForeignKey("add_ons.id", ondelete="CASCADE"), nullable=False, index=True
    )
    bedrooms = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    add_on = relationship("AddOn", back_populates="tiers")


class PackageDiscount(Base):
    """Multi-visit package discount (Periodical Cleaning: 4, 6, 8, 12 visits)"""

    __tablename__ = "package_discounts"

    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True
    )
    visits = Column(Integer, nullable=False)
    discount_percentage = Column(Integer, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service", back_populates="package_discounts")


class SpecialOffer(Base):
    """Global offer: Referral, Property Manager, Emergency Same-Day"""

    __tablename__ = "special_offers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    description_en = Column(Text, nullable=True)
    offer_type = Column(enum_column(OfferType), nullable=False)
    discount_type = Column(enum_column(DiscountType), nullable=False)
    # Explicit sign of the adjustment; EMERGENCY_SAME_DAY is seeded as a premium
    adjustment = Column(
        enum_column(AdjustmentDirection), nullable=False, default=AdjustmentDirection.DISCOUNT
    )
    discount_value = Column(Integer, nullable=False)  # Percent, or minor units for "fixed"
    min_properties = Column(Integer, nullable=True)  # Eligibility gate for property managers
    max_discount = Column(Integer, nullable=True)  # Cap in minor units
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Quote(Base):
    """Saved, shareable price quote"""

    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, index=True)
    quote_code = Column(String(12), unique=True, nullable=False, index=True)  # e.g. Q7X9K2M4P3L5
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    selections = Column(JSON, nullable=False)  # Request that produced the price
    pricing_breakdown = Column(JSON, nullable=False)
    total_price = Column(Integer, nullable=False)
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    expires_at = Column(DateTime, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    converted_to_booking = Column(Boolean, default=False, nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)

    service = relationship("Service")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )
    service_id = Column(Integer, ForeignKey("services.id", ondelete="SET NULL"), nullable=True)
    customer_name = Column(String(100), nullable=False)
    customer_email = Column(String(320), nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(String(255), nullable=False)
    date_time = Column(DateTime, nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, confirmed, completed, cancelled
    payment_status = Column(String(20), default="pending", nullable=False)  # pending, success, failed
    quote_code = Column(String(12), nullable=True, index=True)  # Set when booked from a saved quote
    notes = Column(Text, nullable=True)
    amount = Column(Integer, nullable=False)  # finalPrice of the breakdown
    # Frozen at creation; never recomputed from live pricing tables
    pricing_breakdown = Column(JSON, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service")
