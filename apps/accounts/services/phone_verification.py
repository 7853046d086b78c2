"""Phone number verification by one-time password."""

import logging
from uuid import UUID

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.accounts.models import hash_token

from .exceptions import AccountsServiceError, InvalidTokenError

User = get_user_model()
logger = logging.getLogger(__name__)


@transaction.atomic
def request_phone_otp(*, user_id: UUID) -> str:
    """
    Generate a 6-digit OTP for the user's phone.

    SMS delivery is outside this service; the raw OTP is returned to the
    caller and only its hash is stored.

    Raises:
        AccountsServiceError: If the user has no phone number on file
    """
    user = User.objects.select_for_update().get(id=user_id)
    if not user.phone:
        raise AccountsServiceError("No phone number on file")

    otp = user.create_phone_otp()
    user.save(update_fields=['phone_otp', 'phone_otp_expires', 'updated_at'])
    logger.info("Issued phone OTP for user %s", user.id)
    return otp


@transaction.atomic
def verify_phone_otp(*, user_id: UUID, otp: str) -> User:
    """
    Raises:
        InvalidTokenError: If the OTP is wrong or expired
    """
    user = User.objects.select_for_update().get(id=user_id)

    if (
        not user.phone_otp
        or user.phone_otp != hash_token(otp)
        or not user.phone_otp_expires
        or user.phone_otp_expires <= timezone.now()
    ):
        raise InvalidTokenError("Invalid or expired OTP")

    user.phone_verified = True
    user.phone_otp = None
    user.phone_otp_expires = None
    user.save(update_fields=['phone_verified', 'phone_otp', 'phone_otp_expires', 'updated_at'])
    return user
