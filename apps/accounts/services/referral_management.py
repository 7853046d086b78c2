"""Referral programme service."""

import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.accounts.models import Referral, ReferralStatus
from apps.notifications.models import NotificationType, NotificationCategory
from apps.notifications.services import create_notification

User = get_user_model()
logger = logging.getLogger(__name__)


@transaction.atomic
def complete_referral(*, referred_user: User):
    """
    Reward the referrer of a newly verified user.

    Credits ``REFERRAL_REWARD`` to the referrer's wallet and referral points,
    bumps their referral count and marks the referral completed with the
    credited amount. Does nothing when the user was not referred or the
    referral is no longer pending.

    Args:
        referred_user: The user who just verified their email

    Returns:
        The completed Referral, or None
    """
    try:
        referral = (
            Referral.objects
            .select_for_update()
            .select_related('referrer')
            .get(referred_user=referred_user, status=ReferralStatus.PENDING)
        )
    except Referral.DoesNotExist:
        return None

    reward = settings.REFERRAL_REWARD

    User.objects.filter(id=referral.referrer_id).update(
        wallet_balance=F('wallet_balance') + reward,
        referral_points=F('referral_points') + int(reward),
        total_referrals=F('total_referrals') + 1,
    )

    referral.status = ReferralStatus.COMPLETED
    referral.completed_at = timezone.now()
    referral.reward_amount = reward
    referral.save(update_fields=['status', 'completed_at', 'reward_amount'])

    create_notification(
        user=referral.referrer,
        title='Referral Reward Earned',
        message=f"{referred_user.get_display_name()} verified their account. "
                f"₹{reward} has been added to your wallet.",
        type=NotificationType.REFERRAL,
        category=NotificationCategory.SUCCESS,
        metadata={'referral_id': str(referral.id), 'reward': str(reward)},
        send_email=True,
    )
    create_notification(
        user=referred_user,
        title='Referral Applied',
        message='Thanks for joining through a referral. Your friend has been rewarded.',
        type=NotificationType.REFERRAL,
        category=NotificationCategory.INFO,
    )

    logger.info("Referral %s completed, credited %s to %s", referral.id, reward, referral.referrer_id)
    return referral


def get_referral_stats(*, user: User) -> dict:
    """
    Summarise a user's referrals.

    Returns:
        dict with referral_code, referral_link, total, completed, pending,
        total_earned and the referral list
    """
    referrals = list(
        Referral.objects
        .filter(referrer=user)
        .select_related('referred_user')
    )
    completed = [r for r in referrals if r.status == ReferralStatus.COMPLETED]
    pending = [r for r in referrals if r.status == ReferralStatus.PENDING]

    return {
        'referral_code': user.referral_code,
        'referral_link': f"{settings.FRONTEND_URL}/register?ref={user.referral_code}",
        'referral_points': user.referral_points,
        'total_referrals': len(referrals),
        'completed_referrals': len(completed),
        'pending_referrals': len(pending),
        'total_earned': sum((r.reward_amount for r in completed), Decimal('0.00')),
        'referrals': referrals,
    }
