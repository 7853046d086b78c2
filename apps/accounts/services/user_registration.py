"""User registration service."""

import logging
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction

from apps.accounts.models import Referral
from apps.notifications.models import NotificationType, NotificationCategory
from apps.notifications.services import create_notification, send_templated_email

from .exceptions import UserRegistrationError, InvalidReferralCodeError

User = get_user_model()
logger = logging.getLogger(__name__)


def send_verification_email(user, raw_token: str) -> bool:
    return send_templated_email(
        to=user.email,
        subject='Verify your email address',
        template='verify_email',
        context={
            'user': user,
            'verification_url': f"{settings.FRONTEND_URL}/verify-email/{raw_token}",
            'expires_hours': settings.EMAIL_VERIFICATION_HOURS,
        },
    )


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    name: str = "",
    phone: Optional[str] = None,
    driver_license: Optional[str] = None,
    address: Optional[dict] = None,
    referral_code: Optional[str] = None,
) -> User:
    """
    Register a new user with an email verification token.

    When a referral code is supplied the referrer is linked, a pending
    Referral is recorded and the referrer is notified. The reward itself
    is granted when the new user verifies their email.

    Args:
        email: User's email address
        password: User's password (will be hashed)
        name: Full name
        phone: 10-digit phone number
        driver_license: Driving licence number
        address: Address dict (street, city, state, country, pincode)
        referral_code: Optional code of the referring user

    Returns:
        Created User instance

    Raises:
        InvalidReferralCodeError: If the referral code is unknown
        UserRegistrationError: If email, phone or licence is already taken
    """
    email = email.lower()

    if User.objects.filter(email=email).exists():
        raise UserRegistrationError("User with this email already exists")
    if phone and User.objects.filter(phone=phone).exists():
        raise UserRegistrationError("User with this phone number already exists")
    if driver_license and User.objects.filter(driver_license=driver_license).exists():
        raise UserRegistrationError("User with this driving licence already exists")

    referrer = None
    if referral_code:
        try:
            referrer = User.objects.get(referral_code=referral_code.upper())
        except User.DoesNotExist:
            raise InvalidReferralCodeError("Invalid referral code")

    extra = {}
    if address:
        extra['address'] = {**User._meta.get_field('address').get_default(), **address}

    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            name=name,
            phone=phone or None,
            driver_license=driver_license or None,
            referred_by=referrer,
            **extra,
        )
    except IntegrityError as e:
        raise UserRegistrationError(f"Registration failed: {str(e)}")

    raw_token = user.create_email_verification_token()
    user.save(update_fields=['verification_token', 'verification_token_expires'])

    if referrer:
        Referral.objects.create(
            referrer=referrer,
            referred_user=user,
            referral_code=referrer.referral_code,
            reward_amount=settings.REFERRAL_REWARD,
        )
        create_notification(
            user=referrer,
            title='New Referral',
            message=f"{user.get_display_name()} joined using your referral code. "
                    f"You will earn ₹{settings.REFERRAL_REWARD} once they verify their email.",
            type=NotificationType.REFERRAL,
            category=NotificationCategory.SUCCESS,
            metadata={'referred_user_id': str(user.id)},
        )

    transaction.on_commit(lambda: send_verification_email(user, raw_token))
    logger.info("Registered user %s (referred=%s)", user.id, bool(referrer))

    return user
