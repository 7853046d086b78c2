"""User authentication service."""

import logging

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.accounts.models import AccountStatus

from .exceptions import (
    InvalidCredentialsError,
    AccountLockedError,
    EmailNotVerifiedError,
    InactiveAccountError,
)

User = get_user_model()
logger = logging.getLogger(__name__)


def authenticate_user(*, email: str, password: str) -> User:
    """
    Authenticate user with email and password, enforcing lockout.

    Failed attempts are committed before the error is raised so the counter
    survives the failed request. Checks run in order: lock, password,
    email verification, account status.

    Args:
        email: User's email
        password: User's password

    Returns:
        Authenticated User instance

    Raises:
        InvalidCredentialsError: If credentials are invalid
        AccountLockedError: If the account is temporarily locked
        EmailNotVerifiedError: If the email is not verified yet
        InactiveAccountError: If account is suspended or deactivated
    """
    now = timezone.now()
    password_ok = False

    with transaction.atomic():
        try:
            user = (
                User.objects
                .select_for_update()
                .get(email=email.lower())
            )
        except User.DoesNotExist:
            raise InvalidCredentialsError("Invalid email or password")

        if user.is_locked(now):
            raise AccountLockedError(
                "Account is temporarily locked due to too many failed login attempts. "
                "Please try again later.",
                lock_until=user.lock_until,
            )

        password_ok = user.check_password(password)
        if not password_ok:
            user.register_failed_login(now)
            if user.is_locked(now):
                logger.warning("Locked account %s after %d failed logins", user.id, user.login_attempts)

    if not password_ok:
        raise InvalidCredentialsError("Invalid email or password")

    if not user.email_verified:
        raise EmailNotVerifiedError("Please verify your email before logging in")

    if user.status != AccountStatus.ACTIVE:
        raise InactiveAccountError(f"Account is {user.status}. Please contact support.")

    user.reset_login_attempts()
    user.last_login = now
    user.save(update_fields=['login_attempts', 'lock_until', 'last_login', 'updated_at'])

    return user
