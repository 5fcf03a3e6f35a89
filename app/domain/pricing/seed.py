"""
Reference pricing catalogue

Loads the services, rates, add-ons, packages and special offers the business
launched with. Safe to run repeatedly: a service that already has rates, an
add-on or offer that already exists by English name, is left untouched.
"""

import logging

from sqlalchemy.orm import Session

from ...cache import invalidate_pricing_cache
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
from .enums import AddOnPricingType, AdjustmentDirection, DiscountType, OfferType, PricingType

logger = logging.getLogger(__name__)


def to_minor(egp: int) -> int:
    return egp * 100


SERVICE_APARTMENTS = "Service Apartments (Airbnb / Hotel Apartments)"
PERIODICAL_CLEANING = "Periodical Cleaning (Regular Cleaning)"
DEEP_CLEANING = "Deep Cleaning"
MOVE_IN_OUT = "Move-In / Move-Out Cleaning"
UPHOLSTERY = "Upholstery Cleaning"

SERVICES = [
    {
        "name": "تنظيف الشقق الفندقية",
        "name_en": SERVICE_APARTMENTS,
        "description_en": "Turnover cleaning between guests, priced by bedroom count",
        "duration": 180,
        "pricing_type": PricingType.BEDROOM_BASED,
    },
    {
        "name": "التنظيف الدوري",
        "name_en": PERIODICAL_CLEANING,
        "description_en": "Recurring home cleaning, priced by bedroom count",
        "duration": 180,
        "pricing_type": PricingType.BEDROOM_BASED,
    },
    {
        "name": "التنظيف العميق",
        "name_en": DEEP_CLEANING,
        "description_en": "Top-to-bottom deep clean, priced by area",
        "duration": 360,
        "pricing_type": PricingType.SQM_BASED,
    },
    {
        "name": "تنظيف الانتقال",
        "name_en": MOVE_IN_OUT,
        "description_en": "Empty-home cleaning before moving in or after moving out",
        "duration": 360,
        "pricing_type": PricingType.SQM_BASED,
    },
    {
        "name": "تنظيف المفروشات",
        "name_en": UPHOLSTERY,
        "description_en": "Sofa, chair and mattress cleaning, priced per piece",
        "duration": 120,
        "pricing_type": PricingType.ITEM_BASED,
    },
]

BEDROOM_TIERS = {
    SERVICE_APARTMENTS: [1500, 2000, 2500, 3000, 4000, 5000],
    PERIODICAL_CLEANING: [800, 1200, 1500, 2000, 2500, 3000],
}

# (variant, EGP per sqm, minimum charge in EGP)
SQM_RATES = {
    DEEP_CLEANING: [("standard", 30, 1500)],
    MOVE_IN_OUT: [("normal", 40, 2000), ("heavy", 50, 2500)],
}

UPHOLSTERY_MINIMUM = 500
UPHOLSTERY_ITEMS = [
    ("كرسي / كرسي سفرة / كرسي تسريحة", "Arm Chair / Dining Chair / Dressing Chair", 250),
    ("كرسي صالون مقعد واحد", "Sofa Chair One Seat", 350),
    ("كنبة مقعدين", "Sofa 2 Seats", 400),
    ("مرتبة صغيرة", "Small Mattress", 400),
    ("كنبة 3 مقاعد", "Sofa 3 Seats", 600),
    ("مرتبة كبيرة", "Large Mattress", 600),
    ("كنبة 4 مقاعد", "Sofa 4 Seats", 800),
    ("كنبة على شكل L", "L-Shape Sofa", 1000),
    ("كنبة قطعية", "Sectional Sofa", 1200),
]

ADD_ONS = [
    {
        "service": SERVICE_APARTMENTS,
        "name": "خدمة الغسيل",
        "name_en": "Laundry Service",
        "description_en": "Washing and ironing clothes and linens",
        "pricing_type": AddOnPricingType.PER_BEDROOM,
        "tiers": [400, 600, 800, 1000, 1200, 1500],
    },
    {
        "service": SERVICE_APARTMENTS,
        "name": "تنظيف الحديقة/الشرفة",
        "name_en": "Garden/Terrace Cleaning",
        "description_en": "Cleaning outdoor spaces",
        "pricing_type": AddOnPricingType.SIZE_TIERED,
        "tiers": [200, 300, 400, 500, 700, 800],
        "size_tier_threshold": 100,
        "size_tier_multiplier": 150,  # +50% above 100 sqm
    },
    {
        "service": DEEP_CLEANING,
        "name": "تنظيف المطبخ العميق",
        "name_en": "Kitchen Deep Clean",
        "description_en": "Deep cleaning of kitchen and oven",
        "pricing_type": AddOnPricingType.FIXED,
        "price": 1000,
    },
    {
        "service": PERIODICAL_CLEANING,
        "name": "تنظيف أدوات المطبخ والفرن",
        "name_en": "Kitchen Tools & Oven Cleaning",
        "description_en": "Cleaning kitchen tools and oven",
        "pricing_type": AddOnPricingType.FIXED,
        "price": 250,
    },
]

# visits -> percent off
PACKAGES = {PERIODICAL_CLEANING: [(4, 10), (6, 12), (8, 15), (12, 20)]}

SPECIAL_OFFERS = [
    {
        "name": "برنامج الإحالة",
        "name_en": "Referral Program",
        "description_en": "Get 10% off when you refer a friend, and your friend gets 10% off too",
        "offer_type": OfferType.REFERRAL,
        "discount_type": DiscountType.PERCENTAGE,
        "adjustment": AdjustmentDirection.DISCOUNT,
        "discount_value": 10,
        "max_discount": to_minor(500),
    },
    {
        "name": "خصم مدير العقارات (5-10 عقارات)",
        "name_en": "Property Manager Discount (5-10 properties)",
        "description_en": "5% discount for property managers with 5-10 properties per month",
        "offer_type": OfferType.PROPERTY_MANAGER,
        "discount_type": DiscountType.PERCENTAGE,
        "adjustment": AdjustmentDirection.DISCOUNT,
        "discount_value": 5,
        "min_properties": 5,
    },
    {
        "name": "خصم مدير العقارات (11+ عقار)",
        "name_en": "Property Manager Discount (11+ properties)",
        "description_en": "10% discount for property managers with 11+ properties per month",
        "offer_type": OfferType.PROPERTY_MANAGER,
        "discount_type": DiscountType.PERCENTAGE,
        "adjustment": AdjustmentDirection.DISCOUNT,
        "discount_value": 10,
        "min_properties": 11,
    },
    {
        "name": "خدمة الطوارئ في نفس اليوم",
        "name_en": "Emergency Same-Day Service",
        "description_en": "50% premium for same-day bookings (call before 12 PM)",
        "offer_type": OfferType.EMERGENCY_SAME_DAY,
        "discount_type": DiscountType.PERCENTAGE,
        "adjustment": AdjustmentDirection.PREMIUM,
        "discount_value": 50,
    },
]


def _seed_services(db: Session, seeded: list[str]) -> dict[str, Service]:
    services = {}
    for data in SERVICES:
        service = db.query(Service).filter(Service.name_en == data["name_en"]).first()
        if service is None:
            service = Service(**data)
            db.add(service)
            db.flush()
            seeded.append(f"service: {data['name_en']}")
        services[data["name_en"]] = service
    return services


def _seed_rates(db: Session, services: dict[str, Service], seeded: list[str]) -> None:
    for name_en, prices in BEDROOM_TIERS.items():
        service = services[name_en]
        if service.pricing_tiers:
            continue
        for bedrooms, price in enumerate(prices, start=1):
            db.add(PricingTier(service_id=service.id, bedrooms=bedrooms, price=to_minor(price)))
        seeded.append(f"bedroom tiers: {name_en}")

    for name_en, rates in SQM_RATES.items():
        service = services[name_en]
        if service.sqm_pricing:
            continue
        for variant, per_sqm, minimum in rates:
            db.add(
                SqmPricing(
                    service_id=service.id,
                    variant=variant,
                    price_per_sqm=to_minor(per_sqm),
                    minimum_charge=to_minor(minimum),
                )
            )
        seeded.append(f"sqm rates: {name_en}")

    upholstery = services[UPHOLSTERY]
    if not upholstery.pricing_items:
        for name, name_en, price in UPHOLSTERY_ITEMS:
            db.add(
                PricingItem(
                    service_id=upholstery.id,
                    item_name=name,
                    item_name_en=name_en,
                    price=to_minor(price),
                    minimum_charge=to_minor(UPHOLSTERY_MINIMUM),
                )
            )
        seeded.append(f"items: {UPHOLSTERY}")


def _seed_add_ons(db: Session, services: dict[str, Service], seeded: list[str]) -> None:
    for data in ADD_ONS:
        if db.query(AddOn).filter(AddOn.name_en == data["name_en"]).first():
            continue

        tiers = data.get("tiers", [])
        add_on = AddOn(
            service_id=services[data["service"]].id,
            name=data["name"],
            name_en=data["name_en"],
            description_en=data["description_en"],
            # Tiered add-ons carry their 1-bedroom price as the headline price
            price=to_minor(data.get("price", tiers[0] if tiers else 0)),
            pricing_type=data["pricing_type"],
            size_tier_threshold=data.get("size_tier_threshold"),
            size_tier_multiplier=data.get("size_tier_multiplier"),
            active=True,
        )
        add_on.tiers = [
            AddOnTier(bedrooms=bedrooms, price=to_minor(price))
            for bedrooms, price in enumerate(tiers, start=1)
        ]
        db.add(add_on)
        seeded.append(f"add-on: {data['name_en']}")


def _seed_packages(db: Session, services: dict[str, Service], seeded: list[str]) -> None:
    for name_en, packages in PACKAGES.items():
        service = services[name_en]
        if service.package_discounts:
            continue
        for visits, percentage in packages:
            db.add(
                PackageDiscount(
                    service_id=service.id, visits=visits, discount_percentage=percentage, active=True
                )
            )
        seeded.append(f"packages: {name_en}")


def _seed_special_offers(db: Session, seeded: list[str]) -> None:
    for data in SPECIAL_OFFERS:
        if db.query(SpecialOffer).filter(SpecialOffer.name_en == data["name_en"]).first():
            continue
        db.add(SpecialOffer(active=True, **data))
        seeded.append(f"special offer: {data['name_en']}")


def seed_pricing_data(db: Session) -> list[str]:
    """
    Load the reference catalogue into the database.

    Returns:
        What was inserted, one entry per service/rate group/add-on/offer.
        Empty when everything was already there.
    """
    logger.info("🌱 Seeding pricing data...")
    seeded: list[str] = []

    try:
        services = _seed_services(db, seeded)
        _seed_rates(db, services, seeded)
        _seed_add_ons(db, services, seeded)
        _seed_packages(db, services, seeded)
        _seed_special_offers(db, seeded)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Error seeding pricing data: {e}")
        raise

    invalidate_pricing_cache()
    logger.info(f"✅ Pricing seed finished ({len(seeded)} groups inserted)")
    return seeded
