"""Promo code validation and redemption."""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import F
from django.contrib.auth import get_user_model

from apps.cars.models import Car, CarStatus, money

from ..models import Offer, OfferStatus, OfferUsage
from .exceptions import OfferNotFoundError, OfferNotApplicableError

User = get_user_model()
logger = logging.getLogger(__name__)


def find_offer_by_code(code: str) -> Offer:
    """
    Raises:
        OfferNotFoundError: If no active offer has this code
    """
    try:
        return Offer.objects.get(code=(code or '').upper().strip(), status=OfferStatus.ACTIVE)
    except Offer.DoesNotExist:
        raise OfferNotFoundError("Invalid offer code")


def check_offer(
    *,
    offer: Offer,
    amount: Decimal,
    days: Optional[int] = None,
    car: Optional[Car] = None,
    user: Optional[User] = None,
    booking=None,
) -> None:
    """
    Run the booking rules, then user eligibility and the per-user limit.

    When ``booking`` is given it is the existing booking being discounted
    and does not count against new-user offers.

    Raises:
        OfferNotApplicableError: With the first failing reason
    """
    valid, reason = offer.can_apply_to_booking(amount, days=days, car=car)
    if not valid:
        raise OfferNotApplicableError(reason)

    if user is None:
        return

    if not offer.is_user_eligible(user, exclude_booking=booking):
        raise OfferNotApplicableError("You are not eligible for this offer")

    if offer.per_user_limit and offer.usage_count_for(user) >= offer.per_user_limit:
        raise OfferNotApplicableError("You have already used this offer maximum times")


def validate_offer_code(
    *,
    code: str,
    amount: Decimal,
    days: int = 1,
    car_id: Optional[UUID] = None,
    user: Optional[User] = None,
) -> dict:
    """
    Check a promo code against a prospective booking.

    Args:
        code: Promo code (case-insensitive)
        amount: Booking amount the discount is computed on
        days: Rental days
        car_id: Car being booked, for car and category rules
        user: Customer, for eligibility and the per-user limit

    Returns:
        dict with offer, discount_amount, final_amount and terms

    Raises:
        OfferNotFoundError: If the code is unknown or inactive
        OfferNotApplicableError: If any rule fails
    """
    offer = find_offer_by_code(code)

    car = None
    if car_id:
        car = Car.objects.exclude(status=CarStatus.DELETED).filter(id=car_id).first()

    check_offer(offer=offer, amount=amount, days=days, car=car, user=user)

    discount = offer.calculate_discount(
        amount,
        days=days,
        price_per_day=car.price_per_day if car else None,
    )

    return {
        'offer': offer,
        'discount_amount': discount,
        'final_amount': money(Decimal(amount) - discount),
        'terms': offer.terms,
    }


@transaction.atomic
def record_offer_usage(*, offer: Offer, user: User, booking, discount: Decimal) -> OfferUsage:
    """Count one redemption against the offer and keep who used it for which booking."""
    Offer.objects.filter(pk=offer.pk).update(used_count=F('used_count') + 1)
    offer.refresh_from_db(fields=['used_count'])

    usage = OfferUsage.objects.create(offer=offer, user=user, booking=booking, discount=discount)
    logger.info("Offer %s applied to booking %s (discount %s)", offer.code, booking.booking_number, discount)
    return usage
