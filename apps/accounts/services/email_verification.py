"""Email verification service."""

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone
from uuid import UUID

from apps.accounts.models import hash_token
from apps.notifications.models import NotificationType, NotificationCategory
from apps.notifications.services import create_notification

from .exceptions import InvalidTokenError
from .referral_management import complete_referral
from .user_registration import send_verification_email

User = get_user_model()


@transaction.atomic
def verify_user_email(*, token: str) -> User:
    """
    Verify user's email with a non-expired token.

    Completes a pending referral for the user, which credits the referrer.

    Args:
        token: Raw verification token from the email link

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
                verification_token=hash_token(token),
                verification_token_expires__gt=timezone.now(),
            )
        )
    except User.DoesNotExist:
        raise InvalidTokenError("Invalid or expired verification token")

    user.email_verified = True
    user.verification_token = None
    user.verification_token_expires = None
    user.save(update_fields=['email_verified', 'verification_token', 'verification_token_expires', 'updated_at'])

    complete_referral(referred_user=user)

    create_notification(
        user=user,
        title='Welcome aboard!',
        message='Your email has been verified. You can now book cars.',
        type=NotificationType.SYSTEM,
        category=NotificationCategory.SUCCESS,
    )

    return user


@transaction.atomic
def resend_verification_email(*, user_id: UUID) -> str:
    """
    Issue a fresh verification token and email it.

    Raises:
        InvalidTokenError: If the email is already verified
    """
    user = (
        User.objects
        .select_for_update()
        .get(id=user_id)
    )
    if user.email_verified:
        raise InvalidTokenError("Email is already verified")

    raw_token = user.create_email_verification_token()
    user.save(update_fields=['verification_token', 'verification_token_expires', 'updated_at'])

    transaction.on_commit(lambda: send_verification_email(user, raw_token))
    return raw_token
