"""Domain-specific exceptions for offers services."""


class OfferServiceError(Exception):
    """Base exception for offers services."""
    pass


class OfferNotFoundError(OfferServiceError):
    """Raised when offer does not exist or the code is unknown."""
    pass


class DuplicateOfferCodeError(OfferServiceError):
    """Raised when an offer code is already taken."""
    pass


class OfferNotApplicableError(OfferServiceError):
    """Raised when an offer cannot be applied; the message carries the reason."""
    pass


class OfferInUseError(OfferServiceError):
    """Raised when deleting an offer that has been redeemed."""
    pass


class BookingNotEligibleError(OfferServiceError):
    """Raised when a booking cannot take a promo code."""
    pass
