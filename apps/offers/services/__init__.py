"""Services for offers business logic."""

from .exceptions import (
    OfferServiceError,
    OfferNotFoundError,
    DuplicateOfferCodeError,
    OfferNotApplicableError,
    OfferInUseError,
    BookingNotEligibleError,
)
from .offer_management import (
    list_offers,
    get_active_offers,
    get_offer,
    generate_unique_code,
    create_offer,
    update_offer,
    delete_offer,
)
from .offer_validation import (
    find_offer_by_code,
    check_offer,
    validate_offer_code,
    record_offer_usage,
)
from .offer_application import (
    get_user_offers,
    apply_offer_to_booking,
)
from .offer_analytics import (
    get_offer_usage,
    get_offer_analytics,
)

__all__ = [
    # Exceptions
    'OfferServiceError',
    'OfferNotFoundError',
    'DuplicateOfferCodeError',
    'OfferNotApplicableError',
    'OfferInUseError',
    'BookingNotEligibleError',
    # Offer Management
    'list_offers',
    'get_active_offers',
    'get_offer',
    'generate_unique_code',
    'create_offer',
    'update_offer',
    'delete_offer',
    # Validation
    'find_offer_by_code',
    'check_offer',
    'validate_offer_code',
    'record_offer_usage',
    # Customer offers
    'get_user_offers',
    'apply_offer_to_booking',
    # Analytics
    'get_offer_usage',
    'get_offer_analytics',
]
