"""Domain-specific exceptions for accounts services."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""
    pass


class UserRegistrationError(AccountsServiceError):
    """Raised when user registration fails."""
    pass


class InvalidReferralCodeError(UserRegistrationError):
    """Raised when a sign-up references an unknown referral code."""
    pass


class InvalidCredentialsError(AccountsServiceError):
    """Raised when authentication credentials are invalid."""
    pass


class AccountLockedError(AccountsServiceError):
    """Raised when too many failed logins have locked the account."""

    def __init__(self, message, lock_until=None):
        super().__init__(message)
        self.lock_until = lock_until


class EmailNotVerifiedError(AccountsServiceError):
    """Raised when an unverified account tries to log in."""
    pass


class InactiveAccountError(AccountsServiceError):
    """Raised when account is suspended or deactivated."""
    pass


class InvalidTokenError(AccountsServiceError):
    """Raised when verification/reset token or OTP is invalid or expired."""
    pass


class UserNotFoundError(AccountsServiceError):
    """Raised when user does not exist."""
    pass


class PasswordConfirmationError(AccountsServiceError):
    """Raised when the current password does not match."""
    pass


class InsufficientPermissionsError(AccountsServiceError):
    """Raised when an admin may not perform a change on another account."""
    pass


class UserHasActiveBookingsError(AccountsServiceError):
    """Raised when deactivating a user that still has open bookings."""
    pass
