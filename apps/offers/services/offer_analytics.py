"""Usage reporting for a single offer."""

from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from django.db.models import Count, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.bookings.models import Booking, BookingStatus

from .offer_management import get_offer


def get_offer_usage(*, offer_id: UUID) -> dict:
    """
    Redemptions of an offer with per-user totals.

    Raises:
        OfferNotFoundError: If offer does not exist
    """
    offer = get_offer(offer_id=offer_id)
    usages = offer.usages.select_related('user', 'booking')

    per_user = (
        usages
        .values('user__id', 'user__name', 'user__email')
        .annotate(count=Count('id'), total_discount=Sum('discount'))
        .order_by('-count')
    )

    return {
        'offer': offer,
        'total_usage': offer.used_count,
        'total_discount': usages.aggregate(total=Sum('discount'))['total'] or Decimal('0.00'),
        'usages': list(usages[:50]),
        'user_usage': [
            {
                'user_id': row['user__id'],
                'name': row['user__name'],
                'email': row['user__email'],
                'count': row['count'],
                'total_discount': row['total_discount'],
            }
            for row in per_user
        ],
    }


def get_offer_analytics(*, offer_id: UUID) -> dict:
    """
    Performance of an offer.

    The conversion rate is completed bookings that used the offer divided
    by the number of usages.

    Raises:
        OfferNotFoundError: If offer does not exist
    """
    offer = get_offer(offer_id=offer_id)
    usages = offer.usages.all()
    bookings = Booking.objects.filter(offer=offer)

    totals = usages.aggregate(total_discount=Sum('discount'), unique_users=Count('user', distinct=True))
    usage_count = usages.count()
    completed = bookings.filter(status=BookingStatus.COMPLETED).count()

    by_category = (
        bookings
        .values('car__category')
        .annotate(count=Count('id'), revenue=Sum('total_amount'), discount=Sum('discount_amount'))
        .order_by('-revenue')
    )

    since = timezone.now() - timedelta(days=30)
    trend = (
        usages
        .filter(used_at__gte=since)
        .annotate(day=TruncDate('used_at'))
        .values('day')
        .annotate(count=Count('id'), discount=Sum('discount'))
        .order_by('day')
    )

    return {
        'offer': offer,
        'total_usage': usage_count,
        'unique_users': totals['unique_users'],
        'total_discount': totals['total_discount'] or Decimal('0.00'),
        'total_revenue': bookings.aggregate(total=Sum('total_amount'))['total'] or Decimal('0.00'),
        'completed_bookings': completed,
        'cancelled_bookings': bookings.filter(status=BookingStatus.CANCELLED).count(),
        'conversion_rate': round(completed / usage_count * 100, 2) if usage_count else 0,
        'category_distribution': [
            {
                'category': row['car__category'],
                'count': row['count'],
                'revenue': row['revenue'],
                'discount': row['discount'],
            }
            for row in by_category
        ],
        'daily_trend': [
            {'date': row['day'], 'count': row['count'], 'discount': row['discount']}
            for row in trend
        ],
    }
