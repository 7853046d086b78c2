"""Services for bookings business logic."""

from ..exceptions import (
    BookingServiceError,
    InvalidBookingDatesError,
    CarUnavailableError,
    BookingNotCancellableError,
    InvalidStatusTransitionError,
    ReviewNotAllowedError,
    ExtensionError,
    InsufficientWalletBalanceError,
    PaymentError,
    QRGenerationError,
    BookingNotFoundError,
    ExtensionNotFoundError,
    InsufficientPermissionsError,
)
from .booking_lifecycle import BookingService
from .extensions import ExtensionService
from .payments import PaymentService, UPIPaymentGenerator
from .invoice import InvoiceService

__all__ = [
    # Exceptions
    'BookingServiceError',
    'InvalidBookingDatesError',
    'CarUnavailableError',
    'BookingNotCancellableError',
    'InvalidStatusTransitionError',
    'ReviewNotAllowedError',
    'ExtensionError',
    'InsufficientWalletBalanceError',
    'PaymentError',
    'QRGenerationError',
    'BookingNotFoundError',
    'ExtensionNotFoundError',
    'InsufficientPermissionsError',
    # Lifecycle
    'BookingService',
    'ExtensionService',
    # Payments
    'PaymentService',
    'UPIPaymentGenerator',
    # Documents
    'InvoiceService',
]
