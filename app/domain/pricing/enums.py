"""Closed sets of pricing discriminators"""

import enum
from typing import TypeVar

from .errors import ConfigurationError

E = TypeVar("E", bound=enum.Enum)


class PricingType(str, enum.Enum):
    """How a service's base price is resolved"""

    BEDROOM_BASED = "BEDROOM_BASED"
    SQM_BASED = "SQM_BASED"
    ITEM_BASED = "ITEM_BASED"
    FIXED = "FIXED"


class AddOnPricingType(str, enum.Enum):
    FIXED = "FIXED"
    PER_BEDROOM = "PER_BEDROOM"
    SIZE_TIERED = "SIZE_TIERED"


class OfferType(str, enum.Enum):
    REFERRAL = "REFERRAL"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    EMERGENCY_SAME_DAY = "EMERGENCY_SAME_DAY"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SERVICE = "free_service"


class AdjustmentDirection(str, enum.Enum):
    """Whether a special offer lowers the price or adds a premium on top"""

    DISCOUNT = "discount"
    PREMIUM = "premium"


def coerce_enum(enum_cls: type[E], value, field: str) -> E:
    """
    Convert a stored value into its enum member.

    Raises:
        ConfigurationError: If the value is not a member of the enum
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(f"Unrecognized {field} {value!r} (expected one of: {allowed})")
