"""Domain-specific exceptions for cars services."""


class CarsServiceError(Exception):
    """Base exception for cars services."""
    pass


class CarNotFoundError(CarsServiceError):
    """Raised when car does not exist or was deleted."""
    pass


class DuplicateCarError(CarsServiceError):
    """Raised when the licence plate or VIN is already registered."""
    pass


class CarHasActiveBookingsError(CarsServiceError):
    """Raised when deleting a car with confirmed or active bookings."""
    pass


class CarImageNotFoundError(CarsServiceError):
    """Raised when image does not belong to the car."""
    pass


class InvalidDateRangeError(CarsServiceError):
    """Raised when dropoff is not after pickup."""
    pass
