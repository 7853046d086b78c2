"""Domain-specific exceptions for notification services."""


class NotificationServiceError(Exception):
    """Base exception for notification services."""
    pass


class NotificationNotFoundError(NotificationServiceError):
    """Raised when a notification does not exist for the requesting user."""
    pass


class InvalidAudienceError(NotificationServiceError):
    """Raised when a bulk notification audience cannot be resolved."""
    pass
