"""Pricing router - Public pricing catalogue and calculation, plus admin pricing management"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import (
    AddOnCreate,
    AddOnResponse,
    AddOnTierCreate,
    AddOnTierResponse,
    AddOnTierUpdate,
    AddOnUpdate,
    BedroomTierCreate,
    BedroomTierUpdate,
    ItemMinimumUpdate,
    MessageResponse,
    PackageDiscountCreate,
    PackageDiscountResponse,
    PackageDiscountUpdate,
    PriceBreakdown,
    PriceCalculationRequest,
    PricingItemCreate,
    PricingItemResponse,
    PricingItemUpdate,
    PricingTierResponse,
    SeedResponse,
    ServiceCreate,
    ServicePricingResponse,
    ServiceResponse,
    ServiceUpdate,
    SpecialOfferCreate,
    SpecialOfferResponse,
    SpecialOfferUpdate,
    SqmPricingCreate,
    SqmPricingResponse,
    SqmPricingUpdate,
)
from .seed import seed_pricing_data
from .service import (
    PricingService,
    add_on_response,
    add_on_tier_response,
    item_response,
    offer_response,
    package_response,
    service_response,
    sqm_response,
    tier_response,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["Pricing"])
admin_router = APIRouter(prefix="/admin/pricing", tags=["Admin Pricing"])


def get_pricing_service(db: Session = Depends(get_db)) -> PricingService:
    """Dependency injection for PricingService"""
    return PricingService(db)


# ============================================================================
# PUBLIC CATALOGUE
# ============================================================================


@router.get("/services", response_model=list[ServiceResponse])
async def get_services(service: PricingService = Depends(get_pricing_service)):
    """Get all services shown in the booking form"""
    return [service_response(s) for s in service.get_services()]


@router.get("/services/{service_id}", response_model=ServicePricingResponse)
async def get_service_pricing(
    service_id: int,
    service: PricingService = Depends(get_pricing_service),
):
    """Get a service with every rate, add-on and package needed to price it"""
    return service.get_service_pricing(service_id)


@router.get("/special-offers", response_model=list[SpecialOfferResponse])
async def get_special_offers(service: PricingService = Depends(get_pricing_service)):
    """Get active special offers"""
    return service.get_special_offers()


@router.post("/calculate", response_model=PriceBreakdown)
async def calculate_price(
    data: PriceCalculationRequest,
    service: PricingService = Depends(get_pricing_service),
):
    """Calculate a price with its full breakdown. Nothing is stored."""
    return service.calculate(data)


# ============================================================================
# ADMIN: SERVICES
# ============================================================================


@admin_router.get("/services", response_model=list[ServiceResponse])
async def admin_get_services(service: PricingService = Depends(get_pricing_service)):
    """Get all services, hidden ones included"""
    return [service_response(s) for s in service.get_all_services()]


@admin_router.post("/services", response_model=ServiceResponse)
async def create_service(
    data: ServiceCreate,
    service: PricingService = Depends(get_pricing_service),
):
    return service_response(service.create_service(data))


@admin_router.put("/services/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    service: PricingService = Depends(get_pricing_service),
):
    return service_response(service.update_service(service_id, data))


# ============================================================================
# ADMIN: BEDROOM TIERS
# ============================================================================


@admin_router.post("/tiers", response_model=PricingTierResponse)
async def create_tier(
    data: BedroomTierCreate,
    service: PricingService = Depends(get_pricing_service),
):
    return tier_response(service.create_tier(data))


@admin_router.put("/tiers/{tier_id}", response_model=PricingTierResponse)
async def update_tier(
    tier_id: int,
    data: BedroomTierUpdate,
    service: PricingService = Depends(get_pricing_service),
):
    return tier_response(service.update_tier(tier_id, data))


@admin_router.delete("/tiers/{tier_id}", response_model=MessageResponse)
async def delete_tier(tier_id: int, service: PricingService = Depends(get_pricing_service)):
    return service.delete_tier(tier_id)


# ============================================================================
# ADMIN: SQUARE METER RATES
# ============================================================================


@admin_router.post("/sqm", response_model=SqmPricingResponse)
async def create_sqm_rate(
    data: SqmPricingCreate,
    service: PricingService = Depends(get_pricing_service),
):
    return sqm_response(service.create_sqm_rate(data))


@admin_router.put("/sqm/{rate_id}", response_model=SqmPricingResponse)
async def update_sqm_rate(
    rate_id: int,
    data: SqmPricingUpdate,
    service: PricingService = Depends(get_pricing_service),
):
    return sqm_response(service.update_sqm_rate(rate_id, data))


@admin_router.delete("/sqm/{rate_id}", response_model=MessageResponse)
async def delete_sqm_rate(rate_id: int, service: PricingService = Depends(get_pricing_service)):
    return service.delete_sqm_rate(rate_id)


# ============================================================================
# ADMIN: ITEMS
# ============================================================================


@admin_router.post("/items", response_model=PricingItemResponse)
async def create_item(
    data: PricingItemCreate,
    service: PricingService = Depends(get_pricing_service),
):
    return item_response(service.create_item(data))


@admin_router.put("/items/{item_id}", response_model=PricingItemResponse)
async def update_item(
    item_id: int,
    data: PricingItemUpdate,
    service: PricingService = Depends(get_pricing_service),
):
    return item_response(service.update_item(item_id, data))


@admin_router.put("/services/{service_id}/item-minimum", response_model=list[PricingItemResponse])
async def set_item_minimum(
    service_id: int,
    data: ItemMinimumUpdate,
    service: PricingService = Depends(get_pricing_service),
):
    """Change the minimum charge shared by every item of a service"""
    return [item_response(i) for i in service.set_item_minimum(service_id, data)]


@admin_router.delete("/items/{item_id}", response_model=MessageResponse)
async def delete_item(item_id: int, service: PricingService = Depends(get_pricing_service)):
    return service.delete_item(item_id)


# ============================================================================
# ADMIN: ADD-ONS
# ============================================================================


@admin_router.post("/add-ons", response_model=AddOnResponse)
async def create_add_on(
    data: AddOnCreate,
    service: PricingService = Depends(get_pricing_service),
):
    return add_on_response(service.create_add_on(data))


@admin_router.put("/add-ons/{add_on_id}", response_model=AddOnResponse)
async def update_add_on(
    add_on_id: int,
    data: AddOnUpdate,
    service: PricingService = Depends(get_pricing_service),
):
    return add_on_response(service.update_add_on(add_on_id, data))


@admin_router.delete("/add-ons/{add_on_id}", response_model=MessageResponse)
async def delete_add_on(add_on_id: int, service: PricingService = Depends(get_pricing_service)):
    return service.delete_add_on(add_on_id)


@admin_router.post("/add-on-tiers", response_model=AddOnTierResponse)
async def create_add_on_tier(
    data: AddOnTierCreate,
    service: PricingService = Depends(get_pricing_service),
):
    return add_on_tier_response(service.create_add_on_tier(data))


@admin_router.put("/add-on-tiers/{tier_id}", response_model=AddOnTierResponse)
async def update_add_on_tier(
    tier_id: int,
    data: AddOnTierUpdate,
    service: PricingService = Depends(get_pricing_service),
):
    return add_on_tier_response(service.update_add_on_tier(tier_id, data))


@admin_router.delete("/add-on-tiers/{tier_id}", response_model=MessageResponse)
async def delete_add_on_tier(tier_id: int, service: PricingService = Depends(get_pricing_service)):
    return service.delete_add_on_tier(tier_id)


# ============================================================================
# ADMIN: PACKAGES AND OFFERS
# ============================================================================


@admin_router.post("/packages", response_model=PackageDiscountResponse)
async def create_package(
    data: PackageDiscountCreate,
    service: PricingService = Depends(get_pricing_service),
):
    return package_response(service.create_package(data))


@admin_router.put("/packages/{package_id}", response_model=PackageDiscountResponse)
async def update_package(
    package_id: int,
    data: PackageDiscountUpdate,
    service: PricingService = Depends(get_pricing_service),
):
    return package_response(service.update_package(package_id, data))


@admin_router.delete("/packages/{package_id}", response_model=MessageResponse)
async def delete_package(package_id: int, service: PricingService = Depends(get_pricing_service)):
    return service.delete_package(package_id)


@admin_router.get("/special-offers", response_model=list[SpecialOfferResponse])
async def admin_get_special_offers(service: PricingService = Depends(get_pricing_service)):
    """Get all special offers, inactive ones included"""
    return [offer_response(o) for o in service.get_all_special_offers()]


@admin_router.post("/special-offers", response_model=SpecialOfferResponse)
async def create_special_offer(
    data: SpecialOfferCreate,
    service: PricingService = Depends(get_pricing_service),
):
    return offer_response(service.create_special_offer(data))


@admin_router.put("/special-offers/{offer_id}", response_model=SpecialOfferResponse)
async def update_special_offer(
    offer_id: int,
    data: SpecialOfferUpdate,
    service: PricingService = Depends(get_pricing_service),
):
    return offer_response(service.update_special_offer(offer_id, data))


@admin_router.delete("/special-offers/{offer_id}", response_model=MessageResponse)
async def delete_special_offer(offer_id: int, service: PricingService = Depends(get_pricing_service)):
    return service.delete_special_offer(offer_id)


# ============================================================================
# ADMIN: SEED
# ============================================================================


@admin_router.post("/seed", response_model=SeedResponse)
async def seed_pricing(db: Session = Depends(get_db)):
    """Load the reference pricing catalogue (idempotent)"""
    seeded = seed_pricing_data(db)
    if not seeded:
        return SeedResponse(success=True, message="Pricing data already loaded", seeded=[])
    return SeedResponse(success=True, message="All pricing data loaded successfully", seeded=seeded)
