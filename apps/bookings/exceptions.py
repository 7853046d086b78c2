"""
Domain exceptions for bookings app.

Service-level failures derive from BookingServiceError and are mapped to
responses by the views. Failures that are HTTP-shaped by nature are
APIException subclasses and reach the client through DRF directly.
"""
from rest_framework.exceptions import APIException


class BookingServiceError(Exception):
    """Base exception for booking service errors."""
    pass


class InvalidBookingDatesError(BookingServiceError):
    """Raised when the rental period is invalid or starts too soon."""
    pass


class CarUnavailableError(BookingServiceError):
    """Raised when the car is inactive or already booked for the period."""
    pass


class BookingNotCancellableError(BookingServiceError):
    """Raised when a booking is past the cancellation window or in a final state."""
    pass


class InvalidStatusTransitionError(BookingServiceError):
    """Raised when a status change is not allowed from the current status."""
    pass


class ReviewNotAllowedError(BookingServiceError):
    """Raised when reviewing a booking that is not completed or already reviewed."""
    pass


class ExtensionError(BookingServiceError):
    """Raised when an extension cannot be requested or reviewed."""
    pass


class InsufficientWalletBalanceError(BookingServiceError):
    """Raised when a wallet payment exceeds the wallet balance."""
    pass


class PaymentError(BookingServiceError):
    """Raised when a payment cannot be recorded."""
    pass


class QRGenerationError(BookingServiceError):
    """UPI QR code generation failed."""
    pass


class BookingNotFoundError(APIException):
    """Booking not found or not visible to the caller."""
    status_code = 404
    default_detail = 'Booking not found.'
    default_code = 'booking_not_found'


class ExtensionNotFoundError(APIException):
    """Extension request not found."""
    status_code = 404
    default_detail = 'Extension request not found.'
    default_code = 'extension_not_found'


class InsufficientPermissionsError(APIException):
    """User doesn't have permission for operation."""
    status_code = 403
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'insufficient_permissions'
