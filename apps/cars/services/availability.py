"""Availability check with a price quote."""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from django.db.models import Avg, Count, Max, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from apps.bookings.models import Booking, BookingStatus, OPEN_BOOKING_STATUSES
from apps.bookings.pricing import BookingPricingService

from .car_management import get_car
from .exceptions import InvalidDateRangeError


def check_availability(*, car_id: UUID, pickup_date: datetime, dropoff_date: datetime) -> dict:
    """
    Tell whether a car is free for a date range and quote the price.

    The quote uses the same rules as booking creation without promo codes
    or additional services.

    Returns:
        dict with is_available, total_days, the price breakdown and the
        conflicting booking ranges

    Raises:
        CarNotFoundError: If car does not exist
        InvalidDateRangeError: If dropoff is not after pickup
    """
    if dropoff_date <= pickup_date:
        raise InvalidDateRangeError("Dropoff date must be after pickup date")

    car = get_car(car_id=car_id, include_inactive=False)

    conflicts = list(
        car.bookings
        .filter(
            status__in=OPEN_BOOKING_STATUSES,
            pickup_date__lte=dropoff_date,
            dropoff_date__gte=pickup_date,
        )
        .order_by('pickup_date')
        .values('pickup_date', 'dropoff_date')
    )

    total_days = BookingPricingService.total_days(pickup_date, dropoff_date)
    base_amount = car.calculate_rental_price(total_days)
    tax_amount = BookingPricingService.calculate_tax(base_amount)
    total_amount = BookingPricingService.calculate_total(
        base_amount=base_amount,
        tax_amount=tax_amount,
        security_deposit=car.security_deposit,
    )

    return {
        'is_available': not conflicts,
        'car_id': car.id,
        'car_name': car.display_name,
        'pickup_date': pickup_date,
        'dropoff_date': dropoff_date,
        'total_days': total_days,
        'price_per_day': car.price_per_day,
        'base_amount': base_amount,
        'tax_amount': tax_amount,
        'security_deposit': car.security_deposit,
        'total_amount': total_amount,
        'conflicts': conflicts,
    }


def get_car_booking_stats(*, car_id: UUID) -> dict:
    """
    Booking performance of a single car.

    Returns:
        dict with lifetime stats, revenue per month for the last six months
        and the share of the last 30 days the car was free
    """
    car = get_car(car_id=car_id)
    now = timezone.now()

    served = Booking.objects.filter(car=car, status__in=[BookingStatus.COMPLETED, BookingStatus.ACTIVE])
    totals = served.aggregate(
        total_bookings=Count('id'),
        total_revenue=Sum('total_amount'),
        avg_duration=Avg('total_days'),
        last_booking=Max('created_at'),
    )

    monthly = (
        Booking.objects
        .filter(car=car, status=BookingStatus.COMPLETED, created_at__gte=now - timedelta(days=182))
        .annotate(month=TruncMonth('created_at'))
        .values('month')
        .annotate(revenue=Sum('total_amount'), bookings=Count('id'))
        .order_by('month')
    )

    window = 30
    busy = Booking.objects.filter(
        car=car,
        status__in=[BookingStatus.CONFIRMED, BookingStatus.ACTIVE],
        pickup_date__lte=now,
        dropoff_date__gte=now - timedelta(days=window),
    ).count()

    return {
        'car': car,
        'total_bookings': totals['total_bookings'],
        'total_revenue': totals['total_revenue'] or Decimal('0.00'),
        'avg_booking_duration': round(totals['avg_duration'] or 0, 2),
        'last_booking': totals['last_booking'],
        'monthly_revenue': [
            {'month': row['month'].strftime('%Y-%m'), 'revenue': row['revenue'], 'bookings': row['bookings']}
            for row in monthly
        ],
        'availability_percentage': round(max(window - busy, 0) / window * 100, 2),
    }
