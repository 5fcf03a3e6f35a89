import pytest

from app.domain.pricing import engine
from app.domain.pricing.engine import (
    AddOnRate,
    ItemRate,
    OfferRate,
    PackageRate,
    PricingSnapshot,
    SqmRate,
    calculate_price,
    compose_discounts,
    format_amount,
    percent_of,
    resolve_base_price,
)
from app.domain.pricing.enums import (
    AddOnPricingType,
    AdjustmentDirection,
    DiscountType,
    OfferType,
    PricingType,
)
from app.domain.pricing.errors import (
    ArithmeticInvariantViolation,
    ConfigurationError,
    InvalidSelectionError,
)
from app.domain.pricing.schemas import PriceCalculationRequest, PricingSelections

EGP = 100

LAUNDRY = AddOnRate(
    id=10,
    name="Laundry Service",
    pricing_type=AddOnPricingType.PER_BEDROOM,
    price=400 * EGP,
    service_id=1,
    tiers={1: 400 * EGP, 2: 600 * EGP, 3: 800 * EGP},
)
GARDEN = AddOnRate(
    id=11,
    name="Garden/Terrace Cleaning",
    pricing_type=AddOnPricingType.SIZE_TIERED,
    price=200 * EGP,
    service_id=1,
    tiers={1: 200 * EGP, 2: 300 * EGP, 3: 400 * EGP},
    size_tier_threshold=100,
    size_tier_multiplier=150,
)
KITCHEN = AddOnRate(
    id=12, name="Kitchen Deep Clean", pricing_type=AddOnPricingType.FIXED, price=1000 * EGP, service_id=2
)
REFERRAL = OfferRate(
    id=20,
    offer_type=OfferType.REFERRAL,
    discount_type=DiscountType.PERCENTAGE,
    direction=AdjustmentDirection.DISCOUNT,
    discount_value=10,
    max_discount=500 * EGP,
)
PROPERTY_MANAGER = OfferRate(
    id=21,
    offer_type=OfferType.PROPERTY_MANAGER,
    discount_type=DiscountType.PERCENTAGE,
    direction=AdjustmentDirection.DISCOUNT,
    discount_value=5,
    min_properties=5,
)
EMERGENCY = OfferRate(
    id=22,
    offer_type=OfferType.EMERGENCY_SAME_DAY,
    discount_type=DiscountType.PERCENTAGE,
    direction=AdjustmentDirection.PREMIUM,
    discount_value=50,
)

SERVICE_APARTMENTS = PricingSnapshot(
    service_id=1,
    pricing_type=PricingType.BEDROOM_BASED,
    bedroom_tiers={1: 1500 * EGP, 2: 2000 * EGP, 3: 2500 * EGP},
    add_ons={LAUNDRY.id: LAUNDRY, GARDEN.id: GARDEN, KITCHEN.id: KITCHEN},
    packages={
        30: PackageRate(id=30, service_id=1, discount_percentage=10),
        31: PackageRate(id=31, service_id=1, discount_percentage=12, active=False),
        32: PackageRate(id=32, service_id=2, discount_percentage=15),
    },
    offers={o.id: o for o in (REFERRAL, PROPERTY_MANAGER, EMERGENCY)},
)

DEEP_CLEANING = PricingSnapshot(
    service_id=2,
    pricing_type=PricingType.SQM_BASED,
    sqm_rates=(SqmRate(price_per_sqm=30 * EGP, minimum_charge=1500 * EGP, variant="standard"),),
)

MOVE_IN_OUT = PricingSnapshot(
    service_id=3,
    pricing_type=PricingType.SQM_BASED,
    sqm_rates=(
        SqmRate(price_per_sqm=40 * EGP, minimum_charge=2000 * EGP, variant="normal"),
        SqmRate(price_per_sqm=50 * EGP, minimum_charge=2500 * EGP, variant="heavy"),
    ),
)

UPHOLSTERY = PricingSnapshot(
    service_id=4,
    pricing_type=PricingType.ITEM_BASED,
    items={
        40: ItemRate(id=40, price=250 * EGP, minimum_charge=500 * EGP),
        41: ItemRate(id=41, price=1200 * EGP, minimum_charge=500 * EGP),
    },
)


def request_for(snapshot, **kwargs):
    return PriceCalculationRequest(serviceId=snapshot.service_id, **kwargs)


# ---------------------------------------------------------------------------
# Pricing resolver
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("bedrooms, expected", [(1, 1500 * EGP), (2, 2000 * EGP), (3, 2500 * EGP)])
def test_bedroom_tier_returns_stored_price(bedrooms, expected):
    selections = PricingSelections(bedrooms=bedrooms)
    assert resolve_base_price(PricingType.BEDROOM_BASED, selections, SERVICE_APARTMENTS) == expected


def test_missing_bedroom_tier_is_configuration_error():
    with pytest.raises(ConfigurationError):
        resolve_base_price(PricingType.BEDROOM_BASED, PricingSelections(bedrooms=7), SERVICE_APARTMENTS)


def test_bedroom_service_requires_bedrooms():
    with pytest.raises(InvalidSelectionError):
        calculate_price(request_for(SERVICE_APARTMENTS), SERVICE_APARTMENTS)


def test_zero_bedrooms_rejected():
    with pytest.raises(InvalidSelectionError):
        calculate_price(request_for(SERVICE_APARTMENTS, selections={"bedrooms": 0}), SERVICE_APARTMENTS)


@pytest.mark.parametrize(
    "area, expected",
    [
        (40, 1500 * EGP),  # 1,200 EGP by rate, minimum wins
        (100, 3000 * EGP),
        (0, 1500 * EGP),
        (None, 1500 * EGP),
        (50.5, 1515 * EGP),
    ],
)
def test_sqm_price_never_below_minimum(area, expected):
    selections = PricingSelections(squareMeters=area)
    assert resolve_base_price(PricingType.SQM_BASED, selections, DEEP_CLEANING) == expected


def test_sqm_rounds_half_up_to_minor_unit():
    snapshot = PricingSnapshot(
        service_id=9,
        pricing_type=PricingType.SQM_BASED,
        sqm_rates=(SqmRate(price_per_sqm=3001, minimum_charge=0),),
    )
    # 0.5 sqm x 3001 = 1500.5
    assert resolve_base_price(PricingType.SQM_BASED, PricingSelections(squareMeters=0.5), snapshot) == 1501


def test_negative_area_rejected():
    with pytest.raises(InvalidSelectionError):
        calculate_price(request_for(DEEP_CLEANING, selections={"squareMeters": -5}), DEEP_CLEANING)


def test_sqm_variant_selects_rate():
    selections = PricingSelections(squareMeters=100, sqmVariant="heavy")
    assert resolve_base_price(PricingType.SQM_BASED, selections, MOVE_IN_OUT) == 5000 * EGP


def test_sqm_variant_required_when_several_rates():
    with pytest.raises(InvalidSelectionError):
        resolve_base_price(PricingType.SQM_BASED, PricingSelections(squareMeters=100), MOVE_IN_OUT)


def test_unknown_sqm_variant_is_configuration_error():
    with pytest.raises(ConfigurationError):
        resolve_base_price(
            PricingType.SQM_BASED, PricingSelections(squareMeters=100, sqmVariant="extreme"), MOVE_IN_OUT
        )


def test_zero_items_returns_minimum_charge():
    assert resolve_base_price(PricingType.ITEM_BASED, PricingSelections(), UPHOLSTERY) == 500 * EGP


def test_items_below_minimum_charged_minimum():
    selections = PricingSelections(items=[{"itemId": 40, "quantity": 1}])
    assert resolve_base_price(PricingType.ITEM_BASED, selections, UPHOLSTERY) == 500 * EGP


def test_items_summed_by_quantity():
    selections = PricingSelections(items=[{"itemId": 40, "quantity": 2}, {"itemId": 41}])
    assert resolve_base_price(PricingType.ITEM_BASED, selections, UPHOLSTERY) == 1700 * EGP


def test_unknown_item_is_configuration_error():
    selections = PricingSelections(items=[{"itemId": 99}])
    with pytest.raises(ConfigurationError):
        resolve_base_price(PricingType.ITEM_BASED, selections, UPHOLSTERY)


def test_duplicate_item_rejected():
    selections = PricingSelections(items=[{"itemId": 40}, {"itemId": 40}])
    with pytest.raises(InvalidSelectionError):
        resolve_base_price(PricingType.ITEM_BASED, selections, UPHOLSTERY)


def test_disagreeing_item_minimums_is_configuration_error():
    snapshot = PricingSnapshot(
        service_id=4,
        pricing_type=PricingType.ITEM_BASED,
        items={
            1: ItemRate(id=1, price=100, minimum_charge=500),
            2: ItemRate(id=2, price=100, minimum_charge=600),
        },
    )
    with pytest.raises(ConfigurationError):
        resolve_base_price(PricingType.ITEM_BASED, PricingSelections(), snapshot)


def test_fixed_price_used_as_is():
    snapshot = PricingSnapshot(service_id=5, pricing_type=PricingType.FIXED, fixed_price=990 * EGP)
    assert resolve_base_price(PricingType.FIXED, PricingSelections(), snapshot) == 990 * EGP


def test_fixed_price_unset_is_configuration_error():
    snapshot = PricingSnapshot(service_id=5, pricing_type=PricingType.FIXED, fixed_price=0)
    with pytest.raises(ConfigurationError):
        resolve_base_price(PricingType.FIXED, PricingSelections(), snapshot)


def test_every_pricing_type_has_a_resolver():
    assert set(engine._BASE_RESOLVERS) == set(PricingType)
    assert set(engine._ADD_ON_PRICERS) == set(AddOnPricingType)
    assert set(engine._OFFER_AMOUNTS) == set(DiscountType)


def test_missing_handler_detected():
    with pytest.raises(RuntimeError):
        engine._require_exhaustive({PricingType.FIXED: None}, PricingType)


# ---------------------------------------------------------------------------
# Selection compatibility
# ---------------------------------------------------------------------------


def test_items_not_allowed_on_bedroom_service():
    request = request_for(SERVICE_APARTMENTS, selections={"bedrooms": 2, "items": [{"itemId": 40}]})
    with pytest.raises(InvalidSelectionError):
        calculate_price(request, SERVICE_APARTMENTS)


def test_bedrooms_not_allowed_on_sqm_service():
    request = request_for(DEEP_CLEANING, selections={"bedrooms": 2, "squareMeters": 80})
    with pytest.raises(InvalidSelectionError):
        calculate_price(request, DEEP_CLEANING)


def test_area_on_bedroom_service_needs_size_tiered_add_on():
    request = request_for(SERVICE_APARTMENTS, selections={"bedrooms": 2, "squareMeters": 80})
    with pytest.raises(InvalidSelectionError):
        calculate_price(request, SERVICE_APARTMENTS)


def test_fixed_service_takes_no_selections():
    snapshot = PricingSnapshot(service_id=5, pricing_type=PricingType.FIXED, fixed_price=990 * EGP)
    with pytest.raises(InvalidSelectionError):
        calculate_price(request_for(snapshot, selections={"bedrooms": 2}), snapshot)
    assert calculate_price(request_for(snapshot), snapshot).finalPrice == 990 * EGP


def test_requested_pricing_type_must_match_service():
    request = request_for(DEEP_CLEANING, pricingType="BEDROOM_BASED", selections={"squareMeters": 80})
    with pytest.raises(InvalidSelectionError):
        calculate_price(request, DEEP_CLEANING)


# ---------------------------------------------------------------------------
# Add-ons
# ---------------------------------------------------------------------------


def test_per_bedroom_add_on_uses_tier():
    request = request_for(SERVICE_APARTMENTS, selections={"bedrooms": 3}, addOnIds=[LAUNDRY.id])
    breakdown = calculate_price(request, SERVICE_APARTMENTS)
    assert breakdown.addOnsTotal == 800 * EGP
    assert breakdown.addOns[0].name == "Laundry Service"


@pytest.mark.parametrize("area, expected", [(None, 400 * EGP), (100, 400 * EGP), (120, 600 * EGP)])
def test_size_tiered_add_on_multiplied_above_threshold(area, expected):
    request = request_for(
        SERVICE_APARTMENTS, selections={"bedrooms": 3, "squareMeters": area}, addOnIds=[GARDEN.id]
    )
    assert calculate_price(request, SERVICE_APARTMENTS).addOnsTotal == expected


def test_add_on_of_other_service_rejected():
    request = request_for(SERVICE_APARTMENTS, selections={"bedrooms": 1}, addOnIds=[KITCHEN.id])
    with pytest.raises(InvalidSelectionError):
        calculate_price(request, SERVICE_APARTMENTS)


def test_unknown_add_on_is_configuration_error():
    request = request_for(SERVICE_APARTMENTS, selections={"bedrooms": 1}, addOnIds=[999])
    with pytest.raises(ConfigurationError):
        calculate_price(request, SERVICE_APARTMENTS)


def test_repeated_add_on_rejected():
    request = request_for(SERVICE_APARTMENTS, selections={"bedrooms": 1}, addOnIds=[LAUNDRY.id, LAUNDRY.id])
    with pytest.raises(InvalidSelectionError):
        calculate_price(request, SERVICE_APARTMENTS)


# ---------------------------------------------------------------------------
# Discount composer
# ---------------------------------------------------------------------------


def test_package_then_offer_applied_sequentially():
    offer = OfferRate(
        id=1,
        offer_type=OfferType.REFERRAL,
        discount_type=DiscountType.PERCENTAGE,
        direction=AdjustmentDirection.DISCOUNT,
        discount_value=10,
    )
    package = PackageRate(id=1, service_id=1, discount_percentage=10)
    result = compose_discounts(2000 * EGP, 0, package=package, offer=offer)
    assert result.subtotal_after_package == 1800 * EGP
    assert result.final_price == 1620 * EGP


def test_max_discount_caps_offer():
    result = compose_discounts(10000 * EGP, 0, offer=REFERRAL)
    assert result.offer_adjustment == 500 * EGP
    assert result.final_price == 9500 * EGP


def test_premium_offer_adds_to_price():
    result = compose_discounts(2000 * EGP, 0, offer=EMERGENCY)
    assert result.offer_direction is AdjustmentDirection.PREMIUM
    assert result.final_price == 3000 * EGP


def test_offer_skipped_below_min_properties():
    result = compose_discounts(2000 * EGP, 0, offer=PROPERTY_MANAGER, property_count=3)
    assert result.offer_applied is False
    assert result.final_price == 2000 * EGP


def test_offer_applied_at_min_properties():
    result = compose_discounts(2000 * EGP, 0, offer=PROPERTY_MANAGER, property_count=5)
    assert result.offer_applied is True
    assert result.final_price == 1900 * EGP


def test_percentages_round_half_up():
    assert percent_of(12345, 10) == 1235
    assert percent_of(12345, 12) == 1481
    package = PackageRate(id=1, service_id=1, discount_percentage=10)
    assert compose_discounts(12345, 0, package=package).final_price == 11110


def test_free_service_offer_zeroes_price():
    offer = OfferRate(
        id=1,
        offer_type=OfferType.REFERRAL,
        discount_type=DiscountType.FREE_SERVICE,
        direction=AdjustmentDirection.DISCOUNT,
        discount_value=0,
    )
    assert compose_discounts(1800 * EGP, 200 * EGP, offer=offer).final_price == 0


def test_fixed_discount_larger_than_price_floors_at_zero():
    offer = OfferRate(
        id=1,
        offer_type=OfferType.REFERRAL,
        discount_type=DiscountType.FIXED,
        direction=AdjustmentDirection.DISCOUNT,
        discount_value=5000 * EGP,
    )
    assert compose_discounts(2000 * EGP, 0, offer=offer).final_price == 0


def test_loyalty_points_redeemed_after_offer():
    result = compose_discounts(2000 * EGP, 0, offer=REFERRAL, loyalty_points=1000, point_value=10)
    assert result.loyalty_points_redeemed == 1000
    assert result.loyalty_discount == 100 * EGP
    assert result.final_price == 1700 * EGP


@pytest.mark.parametrize(
    "running, redeemed, discount",
    [(150000, 15000, 150000), (150005, 15000, 150000), (5, 0, 0), (0, 0, 0)],
)
def test_loyalty_redemption_capped_by_running_total(running, redeemed, discount):
    assert engine.redeem_loyalty_points(10**9, running, 10) == (redeemed, discount)


def test_oversized_loyalty_redemption_keeps_record_consistent():
    result = compose_discounts(1500 * EGP, 0, loyalty_points=10**9, point_value=10)
    assert result.loyalty_points_redeemed == 15000
    assert result.loyalty_discount == result.subtotal
    assert result.final_price == 0


def test_non_positive_point_value_is_configuration_error():
    with pytest.raises(ConfigurationError):
        compose_discounts(1500 * EGP, 0, loyalty_points=10, point_value=0)


def test_zero_max_discount_means_uncapped():
    offer = OfferRate(
        id=1,
        offer_type=OfferType.REFERRAL,
        discount_type=DiscountType.PERCENTAGE,
        direction=AdjustmentDirection.DISCOUNT,
        discount_value=10,
        max_discount=0,
    )
    result = compose_discounts(2000 * EGP, 0, offer=offer)
    assert result.offer_adjustment == 200 * EGP
    assert result.final_price == 1800 * EGP


def test_premium_is_not_capped():
    capped_premium = OfferRate(
        id=1,
        offer_type=OfferType.EMERGENCY_SAME_DAY,
        discount_type=DiscountType.PERCENTAGE,
        direction=AdjustmentDirection.PREMIUM,
        discount_value=50,
        max_discount=100 * EGP,
    )
    assert compose_discounts(2000 * EGP, 0, offer=capped_premium).final_price == 3000 * EGP


def test_percentage_discount_over_100_is_configuration_error():
    offer = OfferRate(
        id=1,
        offer_type=OfferType.REFERRAL,
        discount_type=DiscountType.PERCENTAGE,
        direction=AdjustmentDirection.DISCOUNT,
        discount_value=150,
    )
    with pytest.raises(ConfigurationError):
        compose_discounts(2000 * EGP, 0, offer=offer)


def test_negative_base_is_invariant_violation():
    with pytest.raises(ArithmeticInvariantViolation):
        compose_discounts(-1, 0)


def test_inactive_package_rejected():
    request = request_for(SERVICE_APARTMENTS, selections={"bedrooms": 1}, packageDiscountId=31)
    with pytest.raises(InvalidSelectionError):
        calculate_price(request, SERVICE_APARTMENTS)


def test_package_of_other_service_rejected():
    request = request_for(SERVICE_APARTMENTS, selections={"bedrooms": 1}, packageDiscountId=32)
    with pytest.raises(InvalidSelectionError):
        calculate_price(request, SERVICE_APARTMENTS)


def test_unknown_offer_is_configuration_error():
    request = request_for(SERVICE_APARTMENTS, selections={"bedrooms": 1}, specialOfferId=999)
    with pytest.raises(ConfigurationError):
        calculate_price(request, SERVICE_APARTMENTS)


# ---------------------------------------------------------------------------
# Whole pipeline
# ---------------------------------------------------------------------------


def test_service_apartment_with_laundry_and_referral():
    request = request_for(
        SERVICE_APARTMENTS,
        selections={"bedrooms": 3},
        addOnIds=[LAUNDRY.id],
        specialOfferId=REFERRAL.id,
    )
    breakdown = calculate_price(request, SERVICE_APARTMENTS)

    assert breakdown.basePrice == 2500 * EGP
    assert breakdown.addOnsTotal == 800 * EGP
    assert breakdown.subtotal == 3300 * EGP
    assert breakdown.packageDiscount == 0
    assert breakdown.specialOfferApplied is True
    assert breakdown.specialOfferAdjustment == 330 * EGP
    assert breakdown.finalPrice == 2970 * EGP
    assert breakdown.selections.bedrooms == 3
    assert breakdown.selections.addOnIds == [LAUNDRY.id]


def test_breakdown_survives_json_round_trip():
    request = request_for(
        SERVICE_APARTMENTS,
        selections={"bedrooms": 2},
        addOnIds=[LAUNDRY.id],
        packageDiscountId=30,
        specialOfferId=EMERGENCY.id,
    )
    breakdown = calculate_price(request, SERVICE_APARTMENTS)
    stored = breakdown.model_dump(mode="json")

    assert type(breakdown).model_validate(stored) == breakdown
    assert stored["specialOfferDirection"] == "premium"


def test_item_breakdown_records_unit_prices():
    request = request_for(UPHOLSTERY, selections={"items": [{"itemId": 41, "quantity": 2}]})
    breakdown = calculate_price(request, UPHOLSTERY)
    assert breakdown.finalPrice == 2400 * EGP
    assert breakdown.selections.items[0].unitPrice == 1200 * EGP


def test_format_amount():
    assert format_amount(297000, "EGP") == "2,970.00 EGP"
    assert format_amount(5, "EGP") == "0.05 EGP"
