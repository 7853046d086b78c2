"""Car search, discovery and category listing."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from django.db.models import Avg, Count, Min, Max, Q, QuerySet
from geopy.distance import geodesic

from apps.bookings.models import Booking, OPEN_BOOKING_STATUSES

from ..models import Car, CarStatus

SORT_ORDERS = {
    'price_asc': ['price_per_day'],
    'price_desc': ['-price_per_day'],
    'rating': ['-rating_average', '-rating_count'],
    'newest': ['-created_at'],
    'popular': ['-total_bookings'],
}


def search_cars(
    *,
    search: Optional[str] = None,
    category: Optional[str] = None,
    transmission: Optional[str] = None,
    fuel_type: Optional[str] = None,
    min_seats: Optional[int] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    city: Optional[str] = None,
    featured: Optional[bool] = None,
    pickup_date: Optional[datetime] = None,
    dropoff_date: Optional[datetime] = None,
    sort: str = 'newest',
) -> QuerySet[Car]:
    """
    Search and filter active cars.

    Args:
        search: Search term for make, model and variant
        category: CarCategory value
        transmission: Transmission value
        fuel_type: FuelType value
        min_seats: Minimum number of seats
        min_price: Minimum daily price
        max_price: Maximum daily price
        city: City name (case-insensitive contains)
        featured: Only featured cars when True
        pickup_date: With dropoff_date, only cars free for the whole range
        dropoff_date: End of the requested range
        sort: One of price_asc, price_desc, rating, newest, popular

    Returns:
        Filtered QuerySet of Car
    """
    queryset = Car.objects.active().prefetch_related('images')

    if search:
        queryset = queryset.filter(
            Q(make__icontains=search) |
            Q(model__icontains=search) |
            Q(variant__icontains=search)
        )

    if category:
        queryset = queryset.filter(category=category)

    if transmission:
        queryset = queryset.filter(transmission=transmission)

    if fuel_type:
        queryset = queryset.filter(fuel_type=fuel_type)

    if min_seats:
        queryset = queryset.filter(seats__gte=min_seats)

    if min_price is not None:
        queryset = queryset.filter(price_per_day__gte=min_price)

    if max_price is not None:
        queryset = queryset.filter(price_per_day__lte=max_price)

    if city:
        queryset = queryset.filter(city__icontains=city)

    if featured:
        queryset = queryset.filter(is_featured=True)

    if pickup_date and dropoff_date:
        conflicting = Booking.objects.filter(
            status__in=OPEN_BOOKING_STATUSES,
            pickup_date__lte=dropoff_date,
            dropoff_date__gte=pickup_date,
        ).values('car_id')
        queryset = queryset.exclude(id__in=conflicting)

    return queryset.order_by(*SORT_ORDERS.get(sort, SORT_ORDERS['newest'])).distinct()


def get_featured_cars(*, limit: int = 10) -> QuerySet[Car]:
    return Car.objects.featured(limit=limit)


def get_recommended_cars(
    *,
    category: Optional[str] = None,
    fuel_type: Optional[str] = None,
    max_price: Optional[Decimal] = None,
    limit: int = 10,
) -> QuerySet[Car]:
    """Available cars matching the preferences, hand-picked cars first."""
    queryset = Car.objects.available().prefetch_related('images')

    if category:
        queryset = queryset.filter(category=category)
    if fuel_type:
        queryset = queryset.filter(fuel_type=fuel_type)
    if max_price is not None:
        queryset = queryset.filter(price_per_day__lte=max_price)

    return queryset.order_by('-is_recommended', '-rating_average', '-total_bookings')[:limit]


def find_nearby_cars(
    *,
    latitude: float,
    longitude: float,
    radius_km: float = 10,
    city: Optional[str] = None,
    limit: int = 50,
) -> list[tuple[Car, float]]:
    """
    Available cars within a radius, nearest first.

    Returns:
        List of (car, distance_km) tuples
    """
    queryset = Car.objects.available().filter(
        latitude__isnull=False,
        longitude__isnull=False,
    ).prefetch_related('images')
    if city:
        queryset = queryset.filter(city__icontains=city)

    origin = (latitude, longitude)
    results = []
    for car in queryset:
        distance = geodesic(origin, (float(car.latitude), float(car.longitude))).km
        if distance <= radius_km:
            results.append((car, round(distance, 2)))

    results.sort(key=lambda item: item[1])
    return results[:limit]


def get_categories() -> list[dict]:
    """Per-category counts and price range of bookable cars, most stocked first."""
    rows = (
        Car.objects
        .available()
        .values('category')
        .annotate(
            count=Count('id'),
            min_price=Min('price_per_day'),
            max_price=Max('price_per_day'),
            avg_price=Avg('price_per_day'),
            avg_rating=Avg('rating_average'),
        )
        .order_by('-count', 'category')
    )
    return list(rows)


def get_fleet_stats() -> dict:
    """Fleet composition for the admin panel."""
    cars = Car.objects.exclude(status=CarStatus.DELETED)

    def counts(field):
        return {
            row[field]: row['count']
            for row in cars.values(field).annotate(count=Count('id')).order_by(field)
        }

    return {
        'total_cars': cars.count(),
        'by_status': counts('status'),
        'by_availability': counts('availability'),
        'by_category': counts('category'),
        'average_price_per_day': cars.aggregate(avg=Avg('price_per_day'))['avg'] or Decimal('0.00'),
        'top_rated': list(cars.filter(rating_count__gt=0).order_by('-rating_average', '-rating_count')[:5]),
    }
