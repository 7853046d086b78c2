"""Password reset and password change services."""

import logging
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.accounts.models import hash_token
from apps.notifications.services import send_templated_email

from .exceptions import UserNotFoundError, InvalidTokenError, PasswordConfirmationError

User = get_user_model()
logger = logging.getLogger(__name__)


def send_password_reset_email(user, raw_token: str) -> bool:
    return send_templated_email(
        to=user.email,
        subject='Reset your password',
        template='password_reset',
        context={
            'user': user,
            'reset_url': f"{settings.FRONTEND_URL}/reset-password/{raw_token}",
            'expires_minutes': settings.PASSWORD_RESET_MINUTES,
        },
    )


@transaction.atomic
def request_password_reset(*, email: str) -> str:
    """
    Generate a password reset token and email it to the user.

    Only the SHA-256 hash is stored; the raw token leaves the system only
    through the email.

    Args:
        email: User's email address

    Returns:
        Raw reset token

    Raises:
        UserNotFoundError: If no active user has this email
    """
    try:
        user = (
            User.objects
            .select_for_update()
            .get(email=email.lower(), is_active=True)
        )
    except User.DoesNotExist:
        raise UserNotFoundError(f"No active user with email: {email}")

    raw_token = user.create_password_reset_token()
    user.save(update_fields=['reset_password_token', 'reset_password_expires', 'updated_at'])

    transaction.on_commit(lambda: send_password_reset_email(user, raw_token))
    return raw_token


@transaction.atomic
def confirm_password_reset(*, token: str, new_password: str) -> User:
    """
    Reset user password with a non-expired token.

    A successful reset also clears any login lockout.

    Args:
        token: Raw reset token
        new_password: New password

    Returns:
        User instance

    Raises:
        InvalidTokenError: If token is invalid or expired
    """
    try:
        user = (
            User.objects
            .select_for_update()
            .get(
                reset_password_token=hash_token(token),
                reset_password_expires__gt=timezone.now(),
                is_active=True,
            )
        )
    except User.DoesNotExist:
        raise InvalidTokenError("Invalid or expired reset token")

    user.set_password(new_password)
    user.reset_password_token = None
    user.reset_password_expires = None
    user.reset_login_attempts()
    user.save(update_fields=[
        'password',
        'reset_password_token',
        'reset_password_expires',
        'login_attempts',
        'lock_until',
        'updated_at',
    ])
    logger.info("Password reset completed for user %s", user.id)

    return user


@transaction.atomic
def change_password(*, user_id: UUID, current_password: str, new_password: str) -> User:
    """
    Change password after confirming the current one.

    Raises:
        PasswordConfirmationError: If the current password is wrong
    """
    user = (
        User.objects
        .select_for_update()
        .get(id=user_id)
    )

    if not user.check_password(current_password):
        raise PasswordConfirmationError("Current password is incorrect")

    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])

    return user
