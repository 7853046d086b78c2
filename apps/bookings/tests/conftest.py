import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.cars.models import Car, CarCategory, FuelType
from apps.bookings.models import Booking, BookingCharge, BookingStatus, ChargeType
from apps.offers.models import Offer, OfferType


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email='renter@example.com',
        password='TestPass123!',
        name='Renter',
        email_verified=True,
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='other_renter@example.com',
        password='TestPass123!',
        name='Other Renter',
        email_verified=True,
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='bookings_admin@example.com',
        password='AdminPass123!',
        name='Bookings Admin',
        role=UserRole.ADMIN,
        email_verified=True,
    )


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def authenticated_client(user):
    return _client_for(user)


@pytest.fixture
def other_client(other_user):
    return _client_for(other_user)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def car(db):
    """1000/day, 500 deposit, 100 free km per day at 10/km."""
    return Car.objects.create(
        make='Maruti',
        model='Swift',
        year=2022,
        license_plate='KA01AB1234',
        category=CarCategory.HATCHBACK,
        fuel_type=FuelType.PETROL,
        seats=5,
        price_per_day=Decimal('1000.00'),
        security_deposit=Decimal('500.00'),
        kilometer_limit=100,
        extra_km_charge=Decimal('10.00'),
        city='Bengaluru',
        current_mileage=12000,
        fuel_level=100,
    )


@pytest.fixture
def pickup():
    return (timezone.now() + timedelta(days=3)).replace(microsecond=0)


@pytest.fixture
def booking(user, car, pickup):
    """Pending three day booking: base 3000, tax 540, deposit 500."""
    booking = Booking.objects.create(
        user=user,
        car=car,
        pickup_date=pickup,
        dropoff_date=pickup + timedelta(days=3),
        total_days=3,
        base_amount=Decimal('3000.00'),
        security_deposit=Decimal('500.00'),
        tax_amount=Decimal('540.00'),
        total_amount=Decimal('4040.00'),
    )
    BookingCharge.objects.create(
        booking=booking,
        description='GST (18%)',
        amount=Decimal('540.00'),
        type=ChargeType.TAX,
    )
    return booking


@pytest.fixture
def active_booking(booking):
    booking.status = BookingStatus.ACTIVE
    booking.mileage_at_pickup = 12000
    booking.fuel_at_pickup = 100
    booking.save()
    return booking


@pytest.fixture
def completed_booking(booking):
    booking.status = BookingStatus.COMPLETED
    booking.save()
    return booking


@pytest.fixture
def offer(db):
    now = timezone.now()
    return Offer.objects.create(
        title='Ten percent off',
        description='10% off any rental',
        code='SAVE10',
        offer_type=OfferType.PERCENTAGE,
        discount_value=Decimal('10'),
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=30),
    )
