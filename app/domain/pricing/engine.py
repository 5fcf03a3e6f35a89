"""
Pricing calculation engine

Pure functions over an already-loaded PricingSnapshot. Every amount is an
integer in minor currency units (piastres) and every percentage step is
rounded half-up to the nearest minor unit, at the step itself.

    resolve_base_price -> calculate_add_ons -> compose_discounts -> assemble_breakdown

Nothing in this module reads the database; PricingService builds the snapshot.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional

from ...config import LOYALTY_POINT_VALUE
from .enums import AddOnPricingType, AdjustmentDirection, DiscountType, OfferType, PricingType
from .errors import ArithmeticInvariantViolation, ConfigurationError, InvalidSelectionError
from .schemas import (
    AddOnLine,
    BreakdownItem,
    BreakdownSelections,
    PriceBreakdown,
    PriceCalculationRequest,
    PricingSelections,
)

logger = logging.getLogger(__name__)


# ============================================================================
# SNAPSHOT (plain copies of the pricing rows one calculation needs)
# ============================================================================


@dataclass(frozen=True)
class SqmRate:
    price_per_sqm: int
    minimum_charge: int
    variant: Optional[str] = None


@dataclass(frozen=True)
class ItemRate:
    id: int
    price: int
    minimum_charge: int


@dataclass(frozen=True)
class AddOnRate:
    id: int
    name: str
    pricing_type: AddOnPricingType
    price: int
    service_id: Optional[int] = None
    active: bool = True
    tiers: dict[int, int] = field(default_factory=dict)  # bedrooms -> price
    size_tier_threshold: Optional[int] = None
    size_tier_multiplier: Optional[int] = None


@dataclass(frozen=True)
class PackageRate:
    id: int
    service_id: int
    discount_percentage: int
    active: bool = True


@dataclass(frozen=True)
class OfferRate:
    id: int
    offer_type: OfferType
    discount_type: DiscountType
    direction: AdjustmentDirection
    discount_value: int
    max_discount: Optional[int] = None
    min_properties: Optional[int] = None
    active: bool = True


@dataclass(frozen=True)
class PricingSnapshot:
    service_id: int
    pricing_type: PricingType
    currency: str = "EGP"
    fixed_price: Optional[int] = None
    bedroom_tiers: dict[int, int] = field(default_factory=dict)
    sqm_rates: tuple[SqmRate, ...] = ()
    items: dict[int, ItemRate] = field(default_factory=dict)
    add_ons: dict[int, AddOnRate] = field(default_factory=dict)
    packages: dict[int, PackageRate] = field(default_factory=dict)
    offers: dict[int, OfferRate] = field(default_factory=dict)


@dataclass(frozen=True)
class DiscountResult:
    subtotal: int
    package_percentage: int
    package_discount: int
    subtotal_after_package: int
    offer_applied: bool
    offer_direction: Optional[AdjustmentDirection]
    offer_adjustment: int
    loyalty_points_redeemed: int
    loyalty_discount: int
    final_price: int


# ============================================================================
# ARITHMETIC
# ============================================================================


def round_minor(value: Decimal) -> int:
    """Round to the nearest minor unit, halves away from zero"""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(amount: int, percentage) -> int:
    return round_minor(Decimal(amount) * Decimal(str(percentage)) / Decimal(100))


def to_major_units(amount: int) -> Decimal:
    return (Decimal(amount) / Decimal(100)).quantize(Decimal("0.01"))


def format_amount(amount: int, currency: str) -> str:
    """2970_00 -> '2,970.00 EGP'"""
    return f"{to_major_units(amount):,.2f} {currency}"


def _check_non_negative(label: str, amount: int) -> int:
    if amount < 0:
        raise ArithmeticInvariantViolation(f"{label} went negative ({amount})")
    return amount


def _require_exhaustive(table: dict, enum_cls) -> dict:
    missing = set(enum_cls) - set(table)
    if missing:
        raise RuntimeError(
            f"No handler for {enum_cls.__name__} members: {sorted(m.value for m in missing)}"
        )
    return table


# ============================================================================
# SELECTION VALIDATION
# ============================================================================

# Which selection fields each pricing type accepts on its own.
_ALLOWED_SELECTIONS = _require_exhaustive(
    {
        PricingType.BEDROOM_BASED: {"bedrooms"},
        PricingType.SQM_BASED: {"squareMeters", "sqmVariant"},
        PricingType.ITEM_BASED: {"items"},
        PricingType.FIXED: set(),
    },
    PricingType,
)


def validate_selections(
    pricing_type: PricingType,
    selections: PricingSelections,
    add_on_types: frozenset = frozenset(),
) -> None:
    """
    Reject selection fields that do not fit the pricing type.

    A bedroom-based service also takes squareMeters, but only when a
    size-tiered add-on is selected to read it.

    Raises:
        InvalidSelectionError: On an incompatible or malformed selection
    """
    allowed = set(_ALLOWED_SELECTIONS[pricing_type])
    if "bedrooms" in allowed and AddOnPricingType.SIZE_TIERED in add_on_types:
        allowed.add("squareMeters")

    provided = set()
    if selections.bedrooms is not None:
        provided.add("bedrooms")
    if selections.squareMeters is not None:
        provided.add("squareMeters")
    if selections.sqmVariant is not None:
        provided.add("sqmVariant")
    if selections.items:
        provided.add("items")

    unexpected = provided - allowed
    if unexpected:
        raise InvalidSelectionError(
            f"{', '.join(sorted(unexpected))} cannot be used with a {pricing_type.value} service"
        )

    if selections.bedrooms is not None and selections.bedrooms < 1:
        raise InvalidSelectionError("Bedroom count must be at least 1")

    if selections.squareMeters is not None:
        if not math.isfinite(selections.squareMeters):
            raise InvalidSelectionError("Square meters must be a finite number")
        if selections.squareMeters < 0:
            raise InvalidSelectionError("Square meters cannot be negative")


# ============================================================================
# PRICING RESOLVER
# ============================================================================


def _bedroom_price(selections: PricingSelections, snapshot: PricingSnapshot) -> int:
    if selections.bedrooms is None:
        raise InvalidSelectionError("Bedroom count is required for bedroom-based services")

    price = snapshot.bedroom_tiers.get(selections.bedrooms)
    if price is None:
        raise ConfigurationError(
            f"No pricing tier for {selections.bedrooms} bedroom(s) on service {snapshot.service_id}"
        )
    return price


def select_sqm_rate(variant: Optional[str], snapshot: PricingSnapshot) -> SqmRate:
    rates = snapshot.sqm_rates
    if not rates:
        raise ConfigurationError(f"No square meter rate configured for service {snapshot.service_id}")

    if variant is not None:
        for rate in rates:
            if rate.variant == variant:
                return rate
        raise ConfigurationError(
            f"No square meter rate for variant '{variant}' on service {snapshot.service_id}"
        )

    if len(rates) == 1:
        return rates[0]

    variants = ", ".join(str(rate.variant) for rate in rates)
    raise InvalidSelectionError(
        f"Service {snapshot.service_id} has several square meter rates, choose one of: {variants}"
    )


def _sqm_price(selections: PricingSelections, snapshot: PricingSnapshot) -> int:
    rate = select_sqm_rate(selections.sqmVariant, snapshot)

    # Zero or missing area is charged the minimum
    if not selections.squareMeters:
        return rate.minimum_charge

    area_price = round_minor(Decimal(str(selections.squareMeters)) * rate.price_per_sqm)
    return max(area_price, rate.minimum_charge)


def shared_item_minimum(items) -> int:
    """The one minimum charge all items of a service carry"""
    minimums = {item.minimum_charge for item in items}
    if len(minimums) != 1:
        raise ConfigurationError(
            f"Items of a service must share one minimum charge, found {sorted(minimums)}"
        )
    return minimums.pop()


def _item_price(selections: PricingSelections, snapshot: PricingSnapshot) -> int:
    if not snapshot.items:
        raise ConfigurationError(f"No priced items configured for service {snapshot.service_id}")

    minimum = shared_item_minimum(snapshot.items.values())

    total = 0
    seen = set()
    for selected in selections.items:
        if selected.itemId in seen:
            raise InvalidSelectionError(f"Item {selected.itemId} selected more than once")
        seen.add(selected.itemId)

        if selected.quantity < 1:
            raise InvalidSelectionError(f"Quantity for item {selected.itemId} must be at least 1")

        item = snapshot.items.get(selected.itemId)
        if item is None:
            raise ConfigurationError(
                f"Item {selected.itemId} is not priced for service {snapshot.service_id}"
            )
        total += item.price * selected.quantity

    return max(total, minimum)


def _fixed_price(selections: PricingSelections, snapshot: PricingSnapshot) -> int:
    if not snapshot.fixed_price:
        raise ConfigurationError(f"Service {snapshot.service_id} has no price set")
    return snapshot.fixed_price


_BASE_RESOLVERS: dict[PricingType, Callable[[PricingSelections, PricingSnapshot], int]] = (
    _require_exhaustive(
        {
            PricingType.BEDROOM_BASED: _bedroom_price,
            PricingType.SQM_BASED: _sqm_price,
            PricingType.ITEM_BASED: _item_price,
            PricingType.FIXED: _fixed_price,
        },
        PricingType,
    )
)


def resolve_base_price(
    pricing_type: PricingType, selections: PricingSelections, snapshot: PricingSnapshot
) -> int:
    """Base price of the service for this selection, before add-ons and discounts"""
    return _check_non_negative("base price", _BASE_RESOLVERS[pricing_type](selections, snapshot))


# ============================================================================
# ADD-ON CALCULATOR
# ============================================================================


def _add_on_tier_price(add_on: AddOnRate, selections: PricingSelections) -> int:
    if selections.bedrooms is None:
        raise InvalidSelectionError(
            f"Add-on '{add_on.name}' is priced by bedroom count and needs a bedroom selection"
        )

    price = add_on.tiers.get(selections.bedrooms)
    if price is None:
        raise ConfigurationError(
            f"Add-on '{add_on.name}' has no tier for {selections.bedrooms} bedroom(s)"
        )
    return price


def _fixed_add_on(add_on: AddOnRate, selections: PricingSelections) -> int:
    return add_on.price


def _size_tiered_add_on(add_on: AddOnRate, selections: PricingSelections) -> int:
    price = _add_on_tier_price(add_on, selections)
    if add_on.size_tier_threshold is None:
        return price
    if add_on.size_tier_multiplier is None:
        raise ConfigurationError(f"Add-on '{add_on.name}' has a size threshold but no multiplier")

    area = selections.squareMeters
    if area is not None and area > add_on.size_tier_threshold:
        return percent_of(price, add_on.size_tier_multiplier)
    return price


_ADD_ON_PRICERS: dict[AddOnPricingType, Callable[[AddOnRate, PricingSelections], int]] = (
    _require_exhaustive(
        {
            AddOnPricingType.FIXED: _fixed_add_on,
            AddOnPricingType.PER_BEDROOM: _add_on_tier_price,
            AddOnPricingType.SIZE_TIERED: _size_tiered_add_on,
        },
        AddOnPricingType,
    )
)


def calculate_add_ons(
    add_on_ids: list[int], selections: PricingSelections, snapshot: PricingSnapshot
) -> list[AddOnLine]:
    """Price every selected add-on. The total is the sum of the returned lines."""
    lines = []
    seen = set()
    for add_on_id in add_on_ids:
        if add_on_id in seen:
            raise InvalidSelectionError(f"Add-on {add_on_id} selected more than once")
        seen.add(add_on_id)

        add_on = snapshot.add_ons.get(add_on_id)
        if add_on is None:
            raise ConfigurationError(f"Add-on {add_on_id} does not exist")
        if not add_on.active:
            raise InvalidSelectionError(f"Add-on '{add_on.name}' is not available")
        if add_on.service_id is not None and add_on.service_id != snapshot.service_id:
            raise InvalidSelectionError(
                f"Add-on '{add_on.name}' is not offered with service {snapshot.service_id}"
            )

        price = _ADD_ON_PRICERS[add_on.pricing_type](add_on, selections)
        _check_non_negative(f"add-on {add_on_id} price", price)
        lines.append(
            AddOnLine(
                addOnId=add_on.id,
                name=add_on.name,
                pricingType=add_on.pricing_type,
                price=price,
            )
        )
    return lines


# ============================================================================
# DISCOUNT COMPOSER
# ============================================================================


def resolve_package(package_id: Optional[int], snapshot: PricingSnapshot) -> Optional[PackageRate]:
    if package_id is None:
        return None

    package = snapshot.packages.get(package_id)
    if package is None:
        raise ConfigurationError(f"Package discount {package_id} does not exist")
    if package.service_id != snapshot.service_id:
        raise InvalidSelectionError(
            f"Package discount {package_id} does not belong to service {snapshot.service_id}"
        )
    if not package.active:
        raise InvalidSelectionError(f"Package discount {package_id} is not available")
    if not 0 <= package.discount_percentage <= 100:
        raise ConfigurationError(
            f"Package discount {package_id} has an invalid percentage ({package.discount_percentage})"
        )
    return package


def resolve_offer(offer_id: Optional[int], snapshot: PricingSnapshot) -> Optional[OfferRate]:
    if offer_id is None:
        return None

    offer = snapshot.offers.get(offer_id)
    if offer is None:
        raise ConfigurationError(f"Special offer {offer_id} does not exist")
    if not offer.active:
        raise InvalidSelectionError(f"Special offer {offer_id} is not available")
    return offer


def offer_is_eligible(offer: OfferRate, property_count: Optional[int]) -> bool:
    if not offer.min_properties:
        return True
    return (property_count or 0) >= offer.min_properties


def _percentage_amount(offer: OfferRate, running: int) -> int:
    if offer.direction is AdjustmentDirection.DISCOUNT and offer.discount_value > 100:
        raise ConfigurationError(
            f"Special offer {offer.id} discounts more than 100% ({offer.discount_value})"
        )
    return percent_of(running, offer.discount_value)


def _fixed_amount(offer: OfferRate, running: int) -> int:
    return offer.discount_value


def _free_service_amount(offer: OfferRate, running: int) -> int:
    if offer.direction is AdjustmentDirection.PREMIUM:
        raise ConfigurationError(f"Special offer {offer.id} cannot be a free-service premium")
    return running


_OFFER_AMOUNTS: dict[DiscountType, Callable[[OfferRate, int], int]] = _require_exhaustive(
    {
        DiscountType.PERCENTAGE: _percentage_amount,
        DiscountType.FIXED: _fixed_amount,
        DiscountType.FREE_SERVICE: _free_service_amount,
    },
    DiscountType,
)

_DIRECTION_SIGN: dict[AdjustmentDirection, int] = _require_exhaustive(
    {AdjustmentDirection.DISCOUNT: -1, AdjustmentDirection.PREMIUM: 1},
    AdjustmentDirection,
)


def redeem_loyalty_points(points: int, running: int, point_value: int) -> tuple[int, int]:
    """
    Turn requested loyalty points into a discount.

    Only whole points are redeemed, and never more than the running total can
    absorb; the rest stay unredeemed. Returns (points redeemed, discount).
    """
    if point_value <= 0:
        raise ConfigurationError(f"Loyalty point value must be positive, got {point_value}")
    redeemed = min(points, max(running, 0) // point_value)
    return redeemed, redeemed * point_value


def compose_discounts(
    base_price: int,
    add_ons_total: int,
    package: Optional[PackageRate] = None,
    offer: Optional[OfferRate] = None,
    property_count: Optional[int] = None,
    loyalty_points: int = 0,
    point_value: int = LOYALTY_POINT_VALUE,
) -> DiscountResult:
    """
    Apply package discount, then special offer, then loyalty redemption.

    Each step works on the running total left by the previous one and is
    rounded to the minor unit on its own. The final price is floored at zero.
    """
    _check_non_negative("base price", base_price)
    _check_non_negative("add-ons total", add_ons_total)
    _check_non_negative("loyalty points", loyalty_points)

    subtotal = base_price + add_ons_total

    package_percentage = package.discount_percentage if package else 0
    package_discount = percent_of(subtotal, package_percentage)
    running = _check_non_negative("subtotal after package discount", subtotal - package_discount)
    subtotal_after_package = running

    offer_applied = False
    offer_direction = None
    offer_adjustment = 0
    if offer is not None:
        if offer_is_eligible(offer, property_count):
            offer_adjustment = _OFFER_AMOUNTS[offer.discount_type](offer, running)
            # A cap of 0 means uncapped; premiums are never capped
            if offer.direction is AdjustmentDirection.DISCOUNT and offer.max_discount:
                offer_adjustment = min(offer_adjustment, offer.max_discount)
            _check_non_negative("special offer adjustment", offer_adjustment)

            running += _DIRECTION_SIGN[offer.direction] * offer_adjustment
            offer_applied = True
            offer_direction = offer.direction
        else:
            logger.info(
                f"🏷️ Special offer {offer.id} skipped: needs {offer.min_properties} properties, "
                f"customer has {property_count or 0}"
            )

    points_redeemed, loyalty_discount = redeem_loyalty_points(loyalty_points, running, point_value)
    running -= loyalty_discount

    return DiscountResult(
        subtotal=subtotal,
        package_percentage=package_percentage,
        package_discount=package_discount,
        subtotal_after_package=subtotal_after_package,
        offer_applied=offer_applied,
        offer_direction=offer_direction,
        offer_adjustment=offer_adjustment,
        loyalty_points_redeemed=points_redeemed,
        loyalty_discount=loyalty_discount,
        final_price=max(running, 0),
    )


# ============================================================================
# BREAKDOWN ASSEMBLER
# ============================================================================


def assemble_breakdown(
    request: PriceCalculationRequest,
    snapshot: PricingSnapshot,
    base_price: int,
    add_on_lines: list[AddOnLine],
    discounts: DiscountResult,
) -> PriceBreakdown:
    selections = request.selections
    return PriceBreakdown(
        serviceId=snapshot.service_id,
        pricingType=snapshot.pricing_type,
        currency=snapshot.currency,
        basePrice=base_price,
        addOns=add_on_lines,
        addOnsTotal=sum(line.price for line in add_on_lines),
        subtotal=discounts.subtotal,
        packageDiscountPercentage=discounts.package_percentage,
        packageDiscount=discounts.package_discount,
        subtotalAfterPackage=discounts.subtotal_after_package,
        specialOfferApplied=discounts.offer_applied,
        specialOfferDirection=discounts.offer_direction,
        specialOfferAdjustment=discounts.offer_adjustment,
        loyaltyPointsRedeemed=discounts.loyalty_points_redeemed,
        loyaltyDiscount=discounts.loyalty_discount,
        finalPrice=discounts.final_price,
        selections=BreakdownSelections(
            bedrooms=selections.bedrooms,
            squareMeters=selections.squareMeters,
            sqmVariant=selections.sqmVariant,
            items=[
                BreakdownItem(
                    itemId=selected.itemId,
                    quantity=selected.quantity,
                    unitPrice=snapshot.items[selected.itemId].price,
                )
                for selected in selections.items
            ],
            addOnIds=list(request.addOnIds),
            packageDiscountId=request.packageDiscountId,
            specialOfferId=request.specialOfferId,
            customerPropertyCount=request.customerPropertyCount,
            loyaltyPoints=request.loyaltyPoints,
        ),
    )


def calculate_price(request: PriceCalculationRequest, snapshot: PricingSnapshot) -> PriceBreakdown:
    """
    Run the whole pipeline for one request.

    Raises:
        InvalidSelectionError: Selection does not fit the service
        ConfigurationError: A pricing row the selection needs is missing or invalid
        ArithmeticInvariantViolation: An intermediate amount went negative
    """
    pricing_type = snapshot.pricing_type
    if request.pricingType is not None and request.pricingType != pricing_type:
        raise InvalidSelectionError(
            f"Service {snapshot.service_id} is priced {pricing_type.value}, "
            f"not {request.pricingType.value}"
        )

    add_on_types = frozenset(
        snapshot.add_ons[add_on_id].pricing_type
        for add_on_id in request.addOnIds
        if add_on_id in snapshot.add_ons
    )
    validate_selections(pricing_type, request.selections, add_on_types)

    base_price = resolve_base_price(pricing_type, request.selections, snapshot)
    add_on_lines = calculate_add_ons(request.addOnIds, request.selections, snapshot)
    package = resolve_package(request.packageDiscountId, snapshot)
    offer = resolve_offer(request.specialOfferId, snapshot)

    discounts = compose_discounts(
        base_price,
        sum(line.price for line in add_on_lines),
        package=package,
        offer=offer,
        property_count=request.customerPropertyCount,
        loyalty_points=request.loyaltyPoints,
    )

    breakdown = assemble_breakdown(request, snapshot, base_price, add_on_lines, discounts)
    logger.info(
        f"💰 Priced service {snapshot.service_id} ({pricing_type.value}): "
        f"base={breakdown.basePrice}, add-ons={breakdown.addOnsTotal}, final={breakdown.finalPrice}"
    )
    return breakdown
