"""Pricing errors. None of them are retried; the API layer maps them to responses."""


class PricingError(Exception):
    """Base class for every failure of the pricing pipeline"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(PricingError):
    """A required pricing row is missing or a stored discriminator is unknown"""

    status_code = 422


class InvalidSelectionError(PricingError):
    """The caller's selection does not fit the service's pricing type"""

    status_code = 400


class ArithmeticInvariantViolation(PricingError):
    """An intermediate amount went negative. Programming error, never a client problem."""

    status_code = 500
