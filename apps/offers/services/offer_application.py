"""Offers for a customer and applying a promo code to an existing booking."""

from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.bookings.exceptions import BookingNotFoundError
from apps.bookings.models import Booking, BookingStatus, BookingCharge, ChargeType, PaymentStatus
from apps.bookings.pricing import BookingPricingService
from apps.notifications.models import NotificationType, NotificationCategory
from apps.notifications.services import create_notification

from ..models import Offer, OfferType
from .exceptions import BookingNotEligibleError
from .offer_validation import find_offer_by_code, check_offer, record_offer_usage

User = get_user_model()

PERSONALIZED_OFFER_DAYS = 30


def _personalized_offers(*, booking_count: int, total_spent: Decimal) -> list:
    """Offers derived from the customer's history. They are not stored."""
    valid_until = timezone.now() + timedelta(days=PERSONALIZED_OFFER_DAYS)
    offers = []

    if booking_count == 0:
        offers.append({
            'title': 'Welcome Offer - 20% Off',
            'description': 'Get 20% off on your first booking',
            'code': 'FIRST20',
            'offer_type': OfferType.PERCENTAGE,
            'discount_value': Decimal('20'),
            'min_booking_amount': Decimal('1000'),
            'max_discount': None,
            'valid_until': valid_until,
        })

    if booking_count >= 5:
        offers.append({
            'title': 'Loyalty Reward - ₹500 Off',
            'description': 'Thank you for being a loyal customer',
            'code': 'LOYAL500',
            'offer_type': OfferType.FIXED,
            'discount_value': Decimal('500'),
            'min_booking_amount': Decimal('3000'),
            'max_discount': None,
            'valid_until': valid_until,
        })

    if total_spent >= Decimal('10000'):
        offers.append({
            'title': 'VIP Offer - 25% Off',
            'description': 'Special offer for our VIP customers',
            'code': 'VIP25',
            'offer_type': OfferType.PERCENTAGE,
            'discount_value': Decimal('25'),
            'min_booking_amount': Decimal('0'),
            'max_discount': Decimal('1000'),
            'valid_until': valid_until,
        })

    return offers


def get_user_offers(*, user: User) -> dict:
    """
    Offers a customer can use right now.

    Returns:
        dict with general_offers (stored offers the user is eligible for),
        personalized_offers and user_stats
    """
    general = [offer for offer in Offer.objects.valid() if offer.is_user_eligible(user)]
    booking_count = user.bookings.count()

    return {
        'general_offers': general,
        'personalized_offers': _personalized_offers(
            booking_count=booking_count,
            total_spent=user.total_spent,
        ),
        'user_stats': {
            'total_bookings': booking_count,
            'total_spent': user.total_spent,
            'is_first_booking': booking_count == 0,
        },
    }


@transaction.atomic
def apply_offer_to_booking(*, user: User, booking_id: UUID, code: str) -> dict:
    """
    Apply a promo code to one of the user's open bookings.

    The discount is computed on the base amount. GST and the total are then
    recomputed the same way as at booking creation.

    Returns:
        dict with booking, offer and discount_amount

    Raises:
        BookingNotFoundError: If the booking does not belong to the user
        BookingNotEligibleError: If the booking is not pending/confirmed or already has a promo
        OfferNotFoundError: If the code is unknown
        OfferNotApplicableError: If the offer rules reject the booking
    """
    try:
        booking = Booking.objects.select_for_update().select_related('car').get(id=booking_id, user=user)
    except Booking.DoesNotExist:
        raise BookingNotFoundError()

    if booking.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
        raise BookingNotEligibleError("Offers can only be applied to pending or confirmed bookings")
    if booking.promo_code:
        raise BookingNotEligibleError("Booking already has an offer applied")

    offer = find_offer_by_code(code)
    car = booking.car
    check_offer(
        offer=offer,
        amount=booking.base_amount,
        days=booking.total_days,
        car=car,
        user=user,
        booking=booking,
    )

    discount = offer.calculate_discount(
        booking.base_amount,
        days=booking.total_days,
        price_per_day=car.price_per_day,
    )

    BookingCharge.objects.create(
        booking=booking,
        description=f"Promo Code: {offer.code}",
        amount=discount,
        type=ChargeType.DISCOUNT,
    )

    tax = BookingPricingService.calculate_tax(booking.base_amount + booking.services_total() - discount)
    booking.charges.filter(type=ChargeType.TAX).delete()
    BookingCharge.objects.create(
        booking=booking,
        description=BookingPricingService.tax_label(),
        amount=tax,
        type=ChargeType.TAX,
    )

    booking.promo_code = offer.code
    booking.offer = offer
    booking.discount_amount = discount
    booking.tax_amount = tax
    booking.total_amount = booking.calculate_total()
    if booking.paid_amount > 0:
        booking.payment_status = (
            PaymentStatus.PAID if booking.paid_amount >= booking.total_amount else PaymentStatus.PARTIAL
        )
    booking.save()

    record_offer_usage(offer=offer, user=user, booking=booking, discount=discount)

    create_notification(
        user=user,
        title='Offer Applied Successfully!',
        message=f"Offer {offer.code} applied to your booking. You saved ₹{discount}",
        type=NotificationType.OFFER,
        category=NotificationCategory.SUCCESS,
        metadata={
            'booking_id': str(booking.id),
            'offer_id': str(offer.id),
            'discount_amount': str(discount),
        },
    )

    return {'booking': booking, 'offer': offer, 'discount_amount': discount}
