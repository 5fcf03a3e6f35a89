"""Pricing domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .enums import (
    AddOnPricingType,
    AdjustmentDirection,
    DiscountType,
    OfferType,
    PricingType,
)

# ============================================================================
# CALCULATION INPUT
# ============================================================================


class ItemSelection(BaseModel):
    """One priced item (e.g. a 3-seat sofa) and how many of it"""

    itemId: int
    quantity: int = 1


class PricingSelections(BaseModel):
    """Type-specific selection. Which fields are allowed depends on the service's pricing type."""

    bedrooms: Optional[int] = None
    squareMeters: Optional[float] = None
    sqmVariant: Optional[str] = None
    items: list[ItemSelection] = Field(default_factory=list)


class PriceCalculationRequest(BaseModel):
    """Schema for a price calculation (also the pricing half of quotes and bookings)"""

    serviceId: int
    pricingType: Optional[PricingType] = None
    selections: PricingSelections = Field(default_factory=PricingSelections)
    addOnIds: list[int] = Field(default_factory=list)
    packageDiscountId: Optional[int] = None
    specialOfferId: Optional[int] = None
    customerPropertyCount: Optional[int] = None
    loyaltyPoints: int = 0  # Points the customer wants to redeem

    @field_validator("loyaltyPoints")
    @classmethod
    def validate_loyalty_points(cls, v):
        if v < 0:
            raise ValueError("Loyalty points cannot be negative")
        return v

    @field_validator("customerPropertyCount")
    @classmethod
    def validate_property_count(cls, v):
        if v is not None and v < 0:
            raise ValueError("Property count cannot be negative")
        return v


# ============================================================================
# BREAKDOWN (persisted verbatim on bookings and quotes)
# ============================================================================


class AddOnLine(BaseModel):
    addOnId: int
    name: str
    pricingType: AddOnPricingType
    price: int


class BreakdownItem(BaseModel):
    itemId: int
    quantity: int
    unitPrice: int


class BreakdownSelections(BaseModel):
    """Every raw input needed to explain the calculation later"""

    bedrooms: Optional[int] = None
    squareMeters: Optional[float] = None
    sqmVariant: Optional[str] = None
    items: list[BreakdownItem] = Field(default_factory=list)
    addOnIds: list[int] = Field(default_factory=list)
    packageDiscountId: Optional[int] = None
    specialOfferId: Optional[int] = None
    customerPropertyCount: Optional[int] = None
    loyaltyPoints: int = 0


class PriceBreakdown(BaseModel):
    """
    Itemized record of how a final price was derived.

    All amounts are minor currency units. Once stored on a booking this is a
    historical record and is never recomputed from live pricing tables.
    """

    serviceId: int
    pricingType: PricingType
    currency: str
    basePrice: int
    addOns: list[AddOnLine] = Field(default_factory=list)
    addOnsTotal: int
    subtotal: int
    packageDiscountPercentage: int = 0
    packageDiscount: int = 0
    subtotalAfterPackage: int
    specialOfferApplied: bool = False
    specialOfferDirection: Optional[AdjustmentDirection] = None
    specialOfferAdjustment: int = 0
    loyaltyPointsRedeemed: int = 0
    loyaltyDiscount: int = 0
    finalPrice: int
    selections: BreakdownSelections


# ============================================================================
# CATALOGUE RESPONSES
# ============================================================================


class ServiceResponse(BaseModel):
    id: int
    name: str
    nameEn: Optional[str]
    description: Optional[str]
    descriptionEn: Optional[str]
    duration: Optional[int]
    price: int
    pricingType: PricingType
    isVisible: bool


class PricingTierResponse(BaseModel):
    id: int
    serviceId: int
    bedrooms: int
    price: int


class SqmPricingResponse(BaseModel):
    id: int
    serviceId: int
    variant: Optional[str]
    pricePerSqm: int
    minimumCharge: int


class PricingItemResponse(BaseModel):
    id: int
    serviceId: int
    itemName: str
    itemNameEn: str
    price: int
    minimumCharge: int


class AddOnTierResponse(BaseModel):
    id: int
    addOnId: int
    bedrooms: int
    price: int


class AddOnResponse(BaseModel):
    id: int
    serviceId: Optional[int]
    name: str
    nameEn: str
    description: Optional[str]
    descriptionEn: Optional[str]
    price: int
    pricingType: AddOnPricingType
    sizeTierThreshold: Optional[int]
    sizeTierMultiplier: Optional[int]
    active: bool
    tiers: list[AddOnTierResponse] = Field(default_factory=list)


class PackageDiscountResponse(BaseModel):
    id: int
    serviceId: int
    visits: int
    discountPercentage: int
    active: bool


class SpecialOfferResponse(BaseModel):
    id: int
    name: str
    nameEn: str
    description: Optional[str]
    descriptionEn: Optional[str]
    offerType: OfferType
    discountType: DiscountType
    adjustment: AdjustmentDirection
    discountValue: int
    minProperties: Optional[int]
    maxDiscount: Optional[int]
    active: bool


class ServicePricingResponse(BaseModel):
    """Everything the booking form needs to price one service"""

    service: ServiceResponse
    tiers: list[PricingTierResponse] = Field(default_factory=list)
    sqmPricing: list[SqmPricingResponse] = Field(default_factory=list)
    items: list[PricingItemResponse] = Field(default_factory=list)
    addOns: list[AddOnResponse] = Field(default_factory=list)
    packageDiscounts: list[PackageDiscountResponse] = Field(default_factory=list)


# ============================================================================
# ADMIN WRITES
# ============================================================================


class ServiceCreate(BaseModel):
    name: str
    nameEn: Optional[str] = None
    description: Optional[str] = None
    descriptionEn: Optional[str] = None
    duration: Optional[int] = None
    price: int = Field(0, ge=0)
    pricingType: PricingType = PricingType.FIXED
    isVisible: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    nameEn: Optional[str] = None
    description: Optional[str] = None
    descriptionEn: Optional[str] = None
    duration: Optional[int] = None
    price: Optional[int] = Field(None, ge=0)
    pricingType: Optional[PricingType] = None
    isVisible: Optional[bool] = None


class BedroomTierCreate(BaseModel):
    serviceId: int
    bedrooms: int = Field(..., ge=1)
    price: int = Field(..., ge=0)


class BedroomTierUpdate(BaseModel):
    bedrooms: Optional[int] = Field(None, ge=1)
    price: Optional[int] = Field(None, ge=0)


class SqmPricingCreate(BaseModel):
    serviceId: int
    variant: Optional[str] = None
    pricePerSqm: int = Field(..., ge=0)
    minimumCharge: int = Field(..., ge=0)


class SqmPricingUpdate(BaseModel):
    variant: Optional[str] = None
    pricePerSqm: Optional[int] = Field(None, ge=0)
    minimumCharge: Optional[int] = Field(None, ge=0)


class PricingItemCreate(BaseModel):
    serviceId: int
    itemName: str
    itemNameEn: str
    price: int = Field(..., ge=0)
    minimumCharge: Optional[int] = Field(None, ge=0)  # Defaults to the service's existing minimum


class PricingItemUpdate(BaseModel):
    itemName: Optional[str] = None
    itemNameEn: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)


class ItemMinimumUpdate(BaseModel):
    """Changes the shared minimum charge of every item of a service at once"""

    minimumCharge: int = Field(..., ge=0)


class AddOnCreate(BaseModel):
    serviceId: Optional[int] = None
    name: str
    nameEn: str
    description: Optional[str] = None
    descriptionEn: Optional[str] = None
    price: int = Field(..., ge=0)
    pricingType: AddOnPricingType = AddOnPricingType.FIXED
    sizeTierThreshold: Optional[int] = Field(None, ge=0)
    sizeTierMultiplier: Optional[int] = Field(None, ge=0)
    active: bool = True


class AddOnUpdate(BaseModel):
    serviceId: Optional[int] = None
    name: Optional[str] = None
    nameEn: Optional[str] = None
    description: Optional[str] = None
    descriptionEn: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    pricingType: Optional[AddOnPricingType] = None
    sizeTierThreshold: Optional[int] = Field(None, ge=0)
    sizeTierMultiplier: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None


class AddOnTierCreate(BaseModel):
    addOnId: int
    bedrooms: int = Field(..., ge=1)
    price: int = Field(..., ge=0)


class AddOnTierUpdate(BaseModel):
    bedrooms: Optional[int] = Field(None, ge=1)
    price: Optional[int] = Field(None, ge=0)


class PackageDiscountCreate(BaseModel):
    serviceId: int
    visits: int = Field(..., ge=1)
    discountPercentage: int = Field(..., ge=0, le=100)
    active: bool = True


class PackageDiscountUpdate(BaseModel):
    visits: Optional[int] = Field(None, ge=1)
    discountPercentage: Optional[int] = Field(None, ge=0, le=100)
    active: Optional[bool] = None


class SpecialOfferCreate(BaseModel):
    name: str
    nameEn: str
    description: Optional[str] = None
    descriptionEn: Optional[str] = None
    offerType: OfferType
    discountType: DiscountType
    adjustment: AdjustmentDirection = AdjustmentDirection.DISCOUNT
    discountValue: int = Field(..., ge=0)
    minProperties: Optional[int] = Field(None, ge=1)
    maxDiscount: Optional[int] = Field(None, ge=0)
    active: bool = True


class SpecialOfferUpdate(BaseModel):
    name: Optional[str] = None
    nameEn: Optional[str] = None
    description: Optional[str] = None
    descriptionEn: Optional[str] = None
    offerType: Optional[OfferType] = None
    discountType: Optional[DiscountType] = None
    adjustment: Optional[AdjustmentDirection] = None
    discountValue: Optional[int] = Field(None, ge=0)
    minProperties: Optional[int] = Field(None, ge=1)
    maxDiscount: Optional[int] = Field(None, ge=0)
    active: Optional[bool] = None


class SeedResponse(BaseModel):
    success: bool
    message: str
    seeded: list[str] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str
