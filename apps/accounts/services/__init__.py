"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserRegistrationError,
    InvalidReferralCodeError,
    InvalidCredentialsError,
    AccountLockedError,
    EmailNotVerifiedError,
    InactiveAccountError,
    InvalidTokenError,
    UserNotFoundError,
    PasswordConfirmationError,
    InsufficientPermissionsError,
    UserHasActiveBookingsError,
)
from .user_registration import register_user
from .user_authentication import authenticate_user
from .password_reset import request_password_reset, confirm_password_reset, change_password
from .email_verification import verify_user_email, resend_verification_email
from .phone_verification import request_phone_otp, verify_phone_otp
from .account_management import update_user_details
from .referral_management import complete_referral, get_referral_stats
from .user_administration import (
    record_audit_event,
    list_users,
    get_user_details,
    update_user_by_admin,
    deactivate_user,
    get_audit_logs,
)

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserRegistrationError',
    'InvalidReferralCodeError',
    'InvalidCredentialsError',
    'AccountLockedError',
    'EmailNotVerifiedError',
    'InactiveAccountError',
    'InvalidTokenError',
    'UserNotFoundError',
    'PasswordConfirmationError',
    'InsufficientPermissionsError',
    'UserHasActiveBookingsError',
    # Services
    'register_user',
    'authenticate_user',
    'request_password_reset',
    'confirm_password_reset',
    'change_password',
    'verify_user_email',
    'resend_verification_email',
    'request_phone_otp',
    'verify_phone_otp',
    'update_user_details',
    'complete_referral',
    'get_referral_stats',
    # Admin
    'record_audit_event',
    'list_users',
    'get_user_details',
    'update_user_by_admin',
    'deactivate_user',
    'get_audit_logs',
]
