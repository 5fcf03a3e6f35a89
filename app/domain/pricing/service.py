"""Pricing service - Snapshot loading, price calculation and pricing catalogue management"""

import logging
from typing import Optional

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...cache import (
    get_pricing_data_cached,
    get_special_offers_cached,
    invalidate_pricing_cache,
    set_pricing_data_cached,
    set_special_offers_cached,
)
from ...config import CURRENCY
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
from .engine import (
    AddOnRate,
    ItemRate,
    OfferRate,
    PackageRate,
    PricingSnapshot,
    SqmRate,
    calculate_price,
)
from .enums import (
    AddOnPricingType,
    AdjustmentDirection,
    DiscountType,
    OfferType,
    PricingType,
    coerce_enum,
)
from .repository import PricingRepository
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
    PackageDiscountCreate,
    PackageDiscountResponse,
    PackageDiscountUpdate,
    PriceBreakdown,
    PriceCalculationRequest,
    PricingItemCreate,
    PricingItemResponse,
    PricingItemUpdate,
    PricingTierResponse,
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

logger = logging.getLogger(__name__)


def sent_fields(data: BaseModel, **columns: str) -> dict:
    """
    Map the fields an update body actually carried to column names.

    Omitted fields are left out, so they keep their stored value; an explicit
    null is kept, so an optional setting such as an offer cap can be cleared.
    """
    sent = data.model_dump(exclude_unset=True)
    return {column: sent[name] for name, column in columns.items() if name in sent}


# ============================================================================
# RESPONSE BUILDERS
# ============================================================================


def service_response(service: Service) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        name=service.name,
        nameEn=service.name_en,
        description=service.description,
        descriptionEn=service.description_en,
        duration=service.duration,
        price=service.price,
        pricingType=service.pricing_type,
        isVisible=service.is_visible,
    )


def tier_response(tier: PricingTier) -> PricingTierResponse:
    return PricingTierResponse(
        id=tier.id, serviceId=tier.service_id, bedrooms=tier.bedrooms, price=tier.price
    )


def sqm_response(rate: SqmPricing) -> SqmPricingResponse:
    return SqmPricingResponse(
        id=rate.id,
        serviceId=rate.service_id,
        variant=rate.variant,
        pricePerSqm=rate.price_per_sqm,
        minimumCharge=rate.minimum_charge,
    )


def item_response(item: PricingItem) -> PricingItemResponse:
    return PricingItemResponse(
        id=item.id,
        serviceId=item.service_id,
        itemName=item.item_name,
        itemNameEn=item.item_name_en,
        price=item.price,
        minimumCharge=item.minimum_charge,
    )


def add_on_tier_response(tier: AddOnTier) -> AddOnTierResponse:
    return AddOnTierResponse(
        id=tier.id, addOnId=tier.add_on_id, bedrooms=tier.bedrooms, price=tier.price
    )


def add_on_response(add_on: AddOn) -> AddOnResponse:
    return AddOnResponse(
        id=add_on.id,
        serviceId=add_on.service_id,
        name=add_on.name,
        nameEn=add_on.name_en,
        description=add_on.description,
        descriptionEn=add_on.description_en,
        price=add_on.price,
        pricingType=add_on.pricing_type,
        sizeTierThreshold=add_on.size_tier_threshold,
        sizeTierMultiplier=add_on.size_tier_multiplier,
        active=add_on.active,
        tiers=[add_on_tier_response(t) for t in add_on.tiers],
    )


def package_response(package: PackageDiscount) -> PackageDiscountResponse:
    return PackageDiscountResponse(
        id=package.id,
        serviceId=package.service_id,
        visits=package.visits,
        discountPercentage=package.discount_percentage,
        active=package.active,
    )


def offer_response(offer: SpecialOffer) -> SpecialOfferResponse:
    return SpecialOfferResponse(
        id=offer.id,
        name=offer.name,
        nameEn=offer.name_en,
        description=offer.description,
        descriptionEn=offer.description_en,
        offerType=offer.offer_type,
        discountType=offer.discount_type,
        adjustment=offer.adjustment,
        discountValue=offer.discount_value,
        minProperties=offer.min_properties,
        maxDiscount=offer.max_discount,
        active=offer.active,
    )


# ============================================================================
# SNAPSHOT CONVERSION
# ============================================================================


def _add_on_rate(add_on: AddOn) -> AddOnRate:
    return AddOnRate(
        id=add_on.id,
        name=add_on.name,
        pricing_type=coerce_enum(AddOnPricingType, add_on.pricing_type, "add-on pricing type"),
        price=add_on.price,
        service_id=add_on.service_id,
        active=add_on.active,
        tiers={tier.bedrooms: tier.price for tier in add_on.tiers},
        size_tier_threshold=add_on.size_tier_threshold,
        size_tier_multiplier=add_on.size_tier_multiplier,
    )


def _package_rate(package: PackageDiscount) -> PackageRate:
    return PackageRate(
        id=package.id,
        service_id=package.service_id,
        discount_percentage=package.discount_percentage,
        active=package.active,
    )


def _offer_rate(offer: SpecialOffer) -> OfferRate:
    return OfferRate(
        id=offer.id,
        offer_type=coerce_enum(OfferType, offer.offer_type, "offer type"),
        discount_type=coerce_enum(DiscountType, offer.discount_type, "discount type"),
        direction=coerce_enum(AdjustmentDirection, offer.adjustment, "offer adjustment"),
        discount_value=offer.discount_value,
        max_discount=offer.max_discount,
        min_properties=offer.min_properties,
        active=offer.active,
    )


class PricingService:
    """Service layer for pricing: calculation, public catalogue and admin edits"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PricingRepository()

    # ========================================================================
    # CALCULATION
    # ========================================================================

    def get_service(self, service_id: int) -> Service:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def build_snapshot(self, request: PriceCalculationRequest) -> PricingSnapshot:
        """Load exactly the pricing rows the request refers to"""
        service = self.get_service(request.serviceId)
        pricing_type = coerce_enum(PricingType, service.pricing_type, "pricing type")

        add_ons = self.repo.get_add_ons_by_ids(self.db, request.addOnIds)

        packages = {}
        if request.packageDiscountId is not None:
            package = self.repo.get_by_id(self.db, PackageDiscount, request.packageDiscountId)
            if package:
                packages[package.id] = _package_rate(package)

        offers = {}
        if request.specialOfferId is not None:
            offer = self.repo.get_by_id(self.db, SpecialOffer, request.specialOfferId)
            if offer:
                offers[offer.id] = _offer_rate(offer)

        return PricingSnapshot(
            service_id=service.id,
            pricing_type=pricing_type,
            currency=CURRENCY,
            fixed_price=service.price,
            bedroom_tiers={t.bedrooms: t.price for t in self.repo.get_tiers(self.db, service.id)},
            sqm_rates=tuple(
                SqmRate(
                    price_per_sqm=r.price_per_sqm,
                    minimum_charge=r.minimum_charge,
                    variant=r.variant,
                )
                for r in self.repo.get_sqm_rates(self.db, service.id)
            ),
            items={
                i.id: ItemRate(id=i.id, price=i.price, minimum_charge=i.minimum_charge)
                for i in self.repo.get_items(self.db, service.id)
            },
            add_ons={a.id: _add_on_rate(a) for a in add_ons},
            packages=packages,
            offers=offers,
        )

    def calculate(self, request: PriceCalculationRequest) -> PriceBreakdown:
        """Price a selection against the live pricing tables"""
        return calculate_price(request, self.build_snapshot(request))

    # ========================================================================
    # PUBLIC CATALOGUE
    # ========================================================================

    def get_services(self) -> list[Service]:
        return self.repo.get_services(self.db, visible_only=True)

    def get_service_pricing(self, service_id: int) -> dict:
        """Service with its rates, add-ons and packages, served from cache when possible"""
        cached = get_pricing_data_cached(service_id)
        if cached is not None:
            return cached

        service = self.get_service(service_id)
        data = ServicePricingResponse(
            service=service_response(service),
            tiers=[tier_response(t) for t in self.repo.get_tiers(self.db, service_id)],
            sqmPricing=[sqm_response(r) for r in self.repo.get_sqm_rates(self.db, service_id)],
            items=[item_response(i) for i in self.repo.get_items(self.db, service_id)],
            addOns=[
                add_on_response(a)
                for a in self.repo.get_add_ons_for_service(self.db, service_id, active_only=True)
            ],
            packageDiscounts=[
                package_response(p)
                for p in self.repo.get_package_discounts(self.db, service_id, active_only=True)
            ],
        ).model_dump(mode="json")

        set_pricing_data_cached(service_id, data)
        return data

    def get_special_offers(self) -> list:
        cached = get_special_offers_cached()
        if cached is not None:
            return cached

        offers = [
            offer_response(o).model_dump(mode="json")
            for o in self.repo.get_special_offers(self.db, active_only=True)
        ]
        set_special_offers_cached(offers)
        return offers

    # ========================================================================
    # ADMIN: SERVICES
    # ========================================================================

    def _get_or_404(self, model, row_id: int, label: str):
        row = self.repo.get_by_id(self.db, model, row_id)
        if not row:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return row

    def get_all_services(self) -> list[Service]:
        return self.repo.get_services(self.db, visible_only=False)

    def create_service(self, data: ServiceCreate) -> Service:
        logger.info(f"📥 Creating service '{data.nameEn or data.name}' ({data.pricingType.value})")
        service = self.repo.create(
            self.db,
            Service,
            name=data.name,
            name_en=data.nameEn,
            description=data.description,
            description_en=data.descriptionEn,
            duration=data.duration,
            price=data.price,
            pricing_type=data.pricingType,
            is_visible=data.isVisible,
        )
        invalidate_pricing_cache(service.id)
        return service

    def update_service(self, service_id: int, data: ServiceUpdate) -> Service:
        service = self.get_service(service_id)
        service = self.repo.update(
            self.db,
            service,
            **sent_fields(
                data,
                name="name",
                nameEn="name_en",
                description="description",
                descriptionEn="description_en",
                duration="duration",
                price="price",
                pricingType="pricing_type",
                isVisible="is_visible",
            ),
        )
        invalidate_pricing_cache(service_id)
        logger.info(f"✅ Updated service {service_id}")
        return service

    # ========================================================================
    # ADMIN: BEDROOM TIERS
    # ========================================================================

    def create_tier(self, data: BedroomTierCreate) -> PricingTier:
        self.get_service(data.serviceId)
        if self.repo.tier_exists(self.db, data.serviceId, data.bedrooms):
            raise HTTPException(
                status_code=409,
                detail=f"A tier for {data.bedrooms} bedroom(s) already exists on this service",
            )

        tier = self.repo.create(
            self.db, PricingTier, service_id=data.serviceId, bedrooms=data.bedrooms, price=data.price
        )
        invalidate_pricing_cache(data.serviceId)
        return tier

    def update_tier(self, tier_id: int, data: BedroomTierUpdate) -> PricingTier:
        tier = self._get_or_404(PricingTier, tier_id, "Pricing tier")
        if data.bedrooms is not None and self.repo.tier_exists(
            self.db, tier.service_id, data.bedrooms, exclude_id=tier.id
        ):
            raise HTTPException(
                status_code=409,
                detail=f"A tier for {data.bedrooms} bedroom(s) already exists on this service",
            )

        tier = self.repo.update(self.db, tier, bedrooms=data.bedrooms, price=data.price)
        invalidate_pricing_cache(tier.service_id)
        return tier

    def delete_tier(self, tier_id: int) -> dict:
        tier = self._get_or_404(PricingTier, tier_id, "Pricing tier")
        service_id = tier.service_id
        self.repo.delete(self.db, tier)
        invalidate_pricing_cache(service_id)
        return {"message": "Pricing tier deleted"}

    # ========================================================================
    # ADMIN: SQUARE METER RATES
    # ========================================================================

    def create_sqm_rate(self, data: SqmPricingCreate) -> SqmPricing:
        self.get_service(data.serviceId)
        if self.repo.sqm_variant_exists(self.db, data.serviceId, data.variant):
            raise HTTPException(
                status_code=409, detail=f"Square meter rate '{data.variant}' already exists"
            )

        rate = self.repo.create(
            self.db,
            SqmPricing,
            service_id=data.serviceId,
            variant=data.variant,
            price_per_sqm=data.pricePerSqm,
            minimum_charge=data.minimumCharge,
        )
        invalidate_pricing_cache(data.serviceId)
        return rate

    def update_sqm_rate(self, rate_id: int, data: SqmPricingUpdate) -> SqmPricing:
        rate = self._get_or_404(SqmPricing, rate_id, "Square meter rate")
        if "variant" in data.model_fields_set and self.repo.sqm_variant_exists(
            self.db, rate.service_id, data.variant, exclude_id=rate.id
        ):
            raise HTTPException(
                status_code=409, detail=f"Square meter rate '{data.variant}' already exists"
            )

        rate = self.repo.update(
            self.db,
            rate,
            **sent_fields(
                data, variant="variant", pricePerSqm="price_per_sqm", minimumCharge="minimum_charge"
            ),
        )
        invalidate_pricing_cache(rate.service_id)
        return rate

    def delete_sqm_rate(self, rate_id: int) -> dict:
        rate = self._get_or_404(SqmPricing, rate_id, "Square meter rate")
        service_id = rate.service_id
        self.repo.delete(self.db, rate)
        invalidate_pricing_cache(service_id)
        return {"message": "Square meter rate deleted"}

    # ========================================================================
    # ADMIN: ITEMS
    # ========================================================================

    def create_item(self, data: PricingItemCreate) -> PricingItem:
        """
        Add a priced item. Items of one service share a single minimum charge:
        a new item inherits it, and a conflicting minimum is rejected.
        """
        self.get_service(data.serviceId)
        existing = self.repo.get_items(self.db, data.serviceId)

        minimum_charge = data.minimumCharge
        if existing:
            shared_minimum = existing[0].minimum_charge
            if minimum_charge is None:
                minimum_charge = shared_minimum
            elif minimum_charge != shared_minimum:
                raise HTTPException(
                    status_code=409,
                    detail=(
                        f"Items of this service share a minimum charge of {shared_minimum}; "
                        "change it for all items instead"
                    ),
                )
        elif minimum_charge is None:
            minimum_charge = 0

        item = self.repo.create(
            self.db,
            PricingItem,
            service_id=data.serviceId,
            item_name=data.itemName,
            item_name_en=data.itemNameEn,
            price=data.price,
            minimum_charge=minimum_charge,
        )
        invalidate_pricing_cache(data.serviceId)
        return item

    def update_item(self, item_id: int, data: PricingItemUpdate) -> PricingItem:
        item = self._get_or_404(PricingItem, item_id, "Pricing item")
        item = self.repo.update(
            self.db,
            item,
            **sent_fields(data, itemName="item_name", itemNameEn="item_name_en", price="price"),
        )
        invalidate_pricing_cache(item.service_id)
        return item

    def set_item_minimum(self, service_id: int, data: ItemMinimumUpdate) -> list[PricingItem]:
        self.get_service(service_id)
        updated = self.repo.set_item_minimum(self.db, service_id, data.minimumCharge)
        invalidate_pricing_cache(service_id)
        logger.info(f"✅ Item minimum for service {service_id} set to {data.minimumCharge} ({updated} items)")
        return self.repo.get_items(self.db, service_id)

    def delete_item(self, item_id: int) -> dict:
        item = self._get_or_404(PricingItem, item_id, "Pricing item")
        service_id = item.service_id
        self.repo.delete(self.db, item)
        invalidate_pricing_cache(service_id)
        return {"message": "Pricing item deleted"}

    # ========================================================================
    # ADMIN: ADD-ONS
    # ========================================================================

    @staticmethod
    def _check_size_tier(threshold: Optional[int], multiplier: Optional[int]) -> None:
        if threshold is not None and multiplier is None:
            raise HTTPException(
                status_code=400, detail="A size tier threshold needs a size tier multiplier"
            )

    def create_add_on(self, data: AddOnCreate) -> AddOn:
        if data.serviceId is not None:
            self.get_service(data.serviceId)
        self._check_size_tier(data.sizeTierThreshold, data.sizeTierMultiplier)

        add_on = self.repo.create(
            self.db,
            AddOn,
            service_id=data.serviceId,
            name=data.name,
            name_en=data.nameEn,
            description=data.description,
            description_en=data.descriptionEn,
            price=data.price,
            pricing_type=data.pricingType,
            size_tier_threshold=data.sizeTierThreshold,
            size_tier_multiplier=data.sizeTierMultiplier,
            active=data.active,
        )
        invalidate_pricing_cache(add_on.service_id)
        return add_on

    def update_add_on(self, add_on_id: int, data: AddOnUpdate) -> AddOn:
        add_on = self._get_or_404(AddOn, add_on_id, "Add-on")
        if data.serviceId is not None:
            self.get_service(data.serviceId)

        changes = sent_fields(
            data,
            serviceId="service_id",
            name="name",
            nameEn="name_en",
            description="description",
            descriptionEn="description_en",
            price="price",
            pricingType="pricing_type",
            sizeTierThreshold="size_tier_threshold",
            sizeTierMultiplier="size_tier_multiplier",
            active="active",
        )
        self._check_size_tier(
            changes.get("size_tier_threshold", add_on.size_tier_threshold),
            changes.get("size_tier_multiplier", add_on.size_tier_multiplier),
        )

        previous_service_id = add_on.service_id
        add_on = self.repo.update(self.db, add_on, **changes)
        if previous_service_id != add_on.service_id:
            invalidate_pricing_cache(previous_service_id)
        invalidate_pricing_cache(add_on.service_id)
        return add_on

    def delete_add_on(self, add_on_id: int) -> dict:
        add_on = self._get_or_404(AddOn, add_on_id, "Add-on")
        service_id = add_on.service_id
        self.repo.delete(self.db, add_on)
        invalidate_pricing_cache(service_id)
        return {"message": "Add-on deleted"}

    def create_add_on_tier(self, data: AddOnTierCreate) -> AddOnTier:
        add_on = self._get_or_404(AddOn, data.addOnId, "Add-on")
        if self.repo.add_on_tier_exists(self.db, add_on.id, data.bedrooms):
            raise HTTPException(
                status_code=409,
                detail=f"A tier for {data.bedrooms} bedroom(s) already exists on this add-on",
            )

        tier = self.repo.create(
            self.db, AddOnTier, add_on_id=add_on.id, bedrooms=data.bedrooms, price=data.price
        )
        invalidate_pricing_cache(add_on.service_id)
        return tier

    def update_add_on_tier(self, tier_id: int, data: AddOnTierUpdate) -> AddOnTier:
        tier = self._get_or_404(AddOnTier, tier_id, "Add-on tier")
        if data.bedrooms is not None and self.repo.add_on_tier_exists(
            self.db, tier.add_on_id, data.bedrooms, exclude_id=tier.id
        ):
            raise HTTPException(
                status_code=409,
                detail=f"A tier for {data.bedrooms} bedroom(s) already exists on this add-on",
            )

        tier = self.repo.update(self.db, tier, bedrooms=data.bedrooms, price=data.price)
        invalidate_pricing_cache(tier.add_on.service_id)
        return tier

    def delete_add_on_tier(self, tier_id: int) -> dict:
        tier = self._get_or_404(AddOnTier, tier_id, "Add-on tier")
        service_id = tier.add_on.service_id
        self.repo.delete(self.db, tier)
        invalidate_pricing_cache(service_id)
        return {"message": "Add-on tier deleted"}

    # ========================================================================
    # ADMIN: PACKAGES AND OFFERS
    # ========================================================================

    def create_package(self, data: PackageDiscountCreate) -> PackageDiscount:
        self.get_service(data.serviceId)
        package = self.repo.create(
            self.db,
            PackageDiscount,
            service_id=data.serviceId,
            visits=data.visits,
            discount_percentage=data.discountPercentage,
            active=data.active,
        )
        invalidate_pricing_cache(data.serviceId)
        return package

    def update_package(self, package_id: int, data: PackageDiscountUpdate) -> PackageDiscount:
        package = self._get_or_404(PackageDiscount, package_id, "Package discount")
        package = self.repo.update(
            self.db,
            package,
            **sent_fields(
                data, visits="visits", discountPercentage="discount_percentage", active="active"
            ),
        )
        invalidate_pricing_cache(package.service_id)
        return package

    def delete_package(self, package_id: int) -> dict:
        package = self._get_or_404(PackageDiscount, package_id, "Package discount")
        service_id = package.service_id
        self.repo.delete(self.db, package)
        invalidate_pricing_cache(service_id)
        return {"message": "Package discount deleted"}

    def get_all_special_offers(self) -> list[SpecialOffer]:
        return self.repo.get_special_offers(self.db, active_only=False)

    @staticmethod
    def _check_offer(
        discount_type: DiscountType, adjustment: AdjustmentDirection, discount_value: int
    ) -> None:
        if discount_type is DiscountType.FREE_SERVICE and adjustment is AdjustmentDirection.PREMIUM:
            raise HTTPException(status_code=400, detail="A free-service offer cannot be a premium")
        if (
            discount_type is DiscountType.PERCENTAGE
            and adjustment is AdjustmentDirection.DISCOUNT
            and discount_value > 100
        ):
            raise HTTPException(status_code=400, detail="A percentage discount cannot exceed 100")

    def create_special_offer(self, data: SpecialOfferCreate) -> SpecialOffer:
        self._check_offer(data.discountType, data.adjustment, data.discountValue)
        offer = self.repo.create(
            self.db,
            SpecialOffer,
            name=data.name,
            name_en=data.nameEn,
            description=data.description,
            description_en=data.descriptionEn,
            offer_type=data.offerType,
            discount_type=data.discountType,
            adjustment=data.adjustment,
            discount_value=data.discountValue,
            min_properties=data.minProperties,
            max_discount=data.maxDiscount,
            active=data.active,
        )
        invalidate_pricing_cache()
        return offer

    def update_special_offer(self, offer_id: int, data: SpecialOfferUpdate) -> SpecialOffer:
        offer = self._get_or_404(SpecialOffer, offer_id, "Special offer")
        self._check_offer(
            data.discountType or coerce_enum(DiscountType, offer.discount_type, "discount type"),
            data.adjustment or coerce_enum(AdjustmentDirection, offer.adjustment, "offer adjustment"),
            data.discountValue if data.discountValue is not None else offer.discount_value,
        )

        offer = self.repo.update(
            self.db,
            offer,
            **sent_fields(
                data,
                name="name",
                nameEn="name_en",
                description="description",
                descriptionEn="description_en",
                offerType="offer_type",
                discountType="discount_type",
                adjustment="adjustment",
                discountValue="discount_value",
                minProperties="min_properties",
                maxDiscount="max_discount",
                active="active",
            ),
        )
        invalidate_pricing_cache()
        return offer

    def delete_special_offer(self, offer_id: int) -> dict:
        offer = self._get_or_404(SpecialOffer, offer_id, "Special offer")
        self.repo.delete(self.db, offer)
        invalidate_pricing_cache()
        return {"message": "Special offer deleted"}
