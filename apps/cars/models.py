from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal, ROUND_HALF_UP
import math
import uuid


RATING_CATEGORIES = ('cleanliness', 'comfort', 'performance', 'features', 'value')


def default_rating_breakdown():
    return {category: 0 for category in RATING_CATEGORIES}


def validate_model_year(value):
    max_year = timezone.now().year + 1
    if value < 2000 or value > max_year:
        raise ValidationError(f'Year must be between 2000 and {max_year}.')


def rental_days(pickup, dropoff):
    """Whole rental days between two datetimes, rounding any part day up."""
    return math.ceil((dropoff - pickup).total_seconds() / 86400)


def money(value):
    return Decimal(value).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class CarCategory(models.TextChoices):
    HATCHBACK = 'hatchback', 'Hatchback'
    SEDAN = 'sedan', 'Sedan'
    SUV = 'suv', 'SUV'
    MUV = 'muv', 'MUV'
    LUXURY = 'luxury', 'Luxury'
    ELECTRIC = 'electric', 'Electric'


class Transmission(models.TextChoices):
    AUTOMATIC = 'automatic', 'Automatic'
    MANUAL = 'manual', 'Manual'
    SEMI_AUTOMATIC = 'semi-automatic', 'Semi-automatic'


class FuelType(models.TextChoices):
    PETROL = 'petrol', 'Petrol'
    DIESEL = 'diesel', 'Diesel'
    ELECTRIC = 'electric', 'Electric'
    HYBRID = 'hybrid', 'Hybrid'


class Availability(models.TextChoices):
    AVAILABLE = 'available', 'Available'
    BOOKED = 'booked', 'Booked'
    MAINTENANCE = 'maintenance', 'Maintenance'
    UNAVAILABLE = 'unavailable', 'Unavailable'


class CarStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'
    DELETED = 'deleted', 'Deleted'


class CarQuerySet(models.QuerySet):

    def active(self):
        return self.filter(status=CarStatus.ACTIVE)

    def available(self):
        return self.filter(status=CarStatus.ACTIVE, availability=Availability.AVAILABLE)

    def featured(self, limit=10):
        return self.available().filter(is_featured=True).order_by('-rating_average', '-total_bookings')[:limit]


class Car(models.Model):
    """A rentable vehicle in the fleet."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    make = models.CharField(max_length=50, db_index=True)
    model = models.CharField(max_length=50)
    variant = models.CharField(max_length=50, blank=True)
    year = models.PositiveIntegerField(validators=[validate_model_year])

    license_plate = models.CharField(max_length=20, unique=True)
    vin = models.CharField(max_length=17, unique=True, null=True, blank=True)

    category = models.CharField(max_length=20, choices=CarCategory.choices, db_index=True)
    transmission = models.CharField(max_length=20, choices=Transmission.choices, default=Transmission.AUTOMATIC)
    fuel_type = models.CharField(max_length=20, choices=FuelType.choices)
    seats = models.PositiveSmallIntegerField(validators=[MinValueValidator(2), MaxValueValidator(12)])
    features = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)

    # Pricing
    price_per_day = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    price_per_week = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    price_per_month = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    security_deposit = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    kilometer_limit = models.PositiveIntegerField(default=300, help_text='Free kilometres per day')
    extra_km_charge = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('10.00'))

    # Location
    city = models.CharField(max_length=100, db_index=True)
    address = models.CharField(max_length=255, blank=True)
    state = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=6, blank=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    availability = models.CharField(max_length=20, choices=Availability.choices, default=Availability.AVAILABLE)
    is_featured = models.BooleanField(default=False)
    is_recommended = models.BooleanField(default=False)

    # Insurance
    insurance_provider = models.CharField(max_length=100, blank=True)
    insurance_policy_number = models.CharField(max_length=50, blank=True)
    insurance_valid_from = models.DateField(null=True, blank=True)
    insurance_valid_until = models.DateField(null=True, blank=True)
    insurance_coverage_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    # Ratings
    rating_average = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00')), MaxValueValidator(Decimal('5.00'))]
    )
    rating_count = models.PositiveIntegerField(default=0)
    rating_breakdown = models.JSONField(default=default_rating_breakdown, blank=True)

    # Maintenance
    last_service = models.DateField(null=True, blank=True)
    next_service = models.DateField(null=True, blank=True)
    current_mileage = models.PositiveIntegerField(default=0)
    fuel_level = models.PositiveSmallIntegerField(default=100, validators=[MaxValueValidator(100)])

    status = models.CharField(max_length=20, choices=CarStatus.choices, default=CarStatus.ACTIVE)
    total_bookings = models.PositiveIntegerField(default=0)
    total_revenue = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    last_booked = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_cars'
    )
    updated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_cars'
    )

    description = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CarQuerySet.as_manager()

    class Meta:
        db_table = 'cars'
        indexes = [
            models.Index(fields=['make', 'model'], name='cars_make_model_idx'),
            models.Index(fields=['price_per_day'], name='cars_price_idx'),
            models.Index(fields=['status', 'availability'], name='cars_status_avail_idx'),
            models.Index(fields=['rating_average'], name='cars_rating_idx'),
            models.Index(fields=['is_featured'], name='cars_featured_idx'),
            models.Index(fields=['is_recommended'], name='cars_recommended_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.make} {self.model} ({self.license_plate})"

    def save(self, *args, **kwargs):
        self.license_plate = self.license_plate.upper().strip()
        self.vin = self.vin.upper().strip() if self.vin else None
        super().save(*args, **kwargs)

    @property
    def display_name(self):
        return f"{self.make} {self.model}"

    @property
    def primary_image(self):
        for image in self.images.all():
            if image.is_primary:
                return image
        return None

    def is_available_for_dates(self, start, end, exclude_booking=None):
        """
        True when no pending, confirmed or active booking overlaps [start, end].

        Both ends are inclusive, so a booking ending exactly when another
        starts still conflicts.
        """
        from apps.bookings.models import OPEN_BOOKING_STATUSES

        overlapping = self.bookings.filter(
            status__in=OPEN_BOOKING_STATUSES,
            pickup_date__lte=end,
            dropoff_date__gte=start,
        )
        if exclude_booking is not None:
            overlapping = overlapping.exclude(pk=exclude_booking.pk)
        return not overlapping.exists()

    def calculate_rental_price(self, days, extra_kms=0, additional_services=None):
        """
        Rental price for a number of days.

        Monthly pricing applies from 30 days and weekly pricing from 7 days,
        when those prices are set. Leftover days are charged at the daily rate.
        """
        if days >= 30 and self.price_per_month:
            months, remaining = divmod(days, 30)
            total = months * self.price_per_month + remaining * self.price_per_day
        elif days >= 7 and self.price_per_week:
            weeks, remaining = divmod(days, 7)
            total = weeks * self.price_per_week + remaining * self.price_per_day
        else:
            total = days * self.price_per_day

        if extra_kms:
            total += extra_kms * self.extra_km_charge

        for service in additional_services or []:
            total += Decimal(str(service['price']))

        return money(total)

    def add_rating(self, rating, categories=None):
        """Fold one review into the running averages."""
        count = self.rating_count
        new_count = count + 1
        self.rating_average = money(
            (self.rating_average * count + Decimal(rating)) / new_count
        )

        breakdown = {**default_rating_breakdown(), **(self.rating_breakdown or {})}
        for category, value in (categories or {}).items():
            if category in RATING_CATEGORIES:
                breakdown[category] = round((breakdown[category] * count + value) / new_count, 2)

        self.rating_breakdown = breakdown
        self.rating_count = new_count
        self.save(update_fields=['rating_average', 'rating_count', 'rating_breakdown', 'updated_at'])


class CarImage(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    car = models.ForeignKey(Car, on_delete=models.CASCADE, related_name='images')
    url = models.URLField(max_length=500)
    caption = models.CharField(max_length=200, blank=True)
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'car_images'
        ordering = ['-is_primary', 'created_at']

    def __str__(self):
        return f"{self.car.display_name} image{' (primary)' if self.is_primary else ''}"


class ServiceRecord(models.Model):
    """One entry in a car's service history."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    car = models.ForeignKey(Car, on_delete=models.CASCADE, related_name='service_records')
    date = models.DateField(default=timezone.localdate)
    service_type = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    mileage = models.PositiveIntegerField(null=True, blank=True)
    workshop = models.CharField(max_length=200, blank=True)
    recorded_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='service_records'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'car_service_records'
        ordering = ['-date', '-created_at']

    def __str__(self):
        return f"{self.car.display_name}: {self.service_type} on {self.date}"
