import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.bookings.models import Booking, BookingCharge, ChargeType
from apps.cars.models import Car, CarCategory, FuelType
from apps.offers.models import Offer, OfferType


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email='shopper@example.com',
        password='TestPass123!',
        name='Shopper',
        email_verified=True,
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='offers_admin@example.com',
        password='AdminPass123!',
        name='Offers Admin',
        role=UserRole.ADMIN,
        email_verified=True,
    )


@pytest.fixture
def authenticated_client(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    refresh = RefreshToken.for_user(admin_user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def car(db):
    return Car.objects.create(
        make='Hyundai',
        model='Creta',
        year=2023,
        license_plate='MH12CD5678',
        category=CarCategory.SUV,
        fuel_type=FuelType.DIESEL,
        seats=5,
        price_per_day=Decimal('2000.00'),
        security_deposit=Decimal('1000.00'),
        city='Pune',
    )


def make_offer(**overrides):
    now = timezone.now()
    fields = {
        'title': 'Ten percent off',
        'description': '10% off any rental',
        'code': 'SAVE10',
        'offer_type': OfferType.PERCENTAGE,
        'discount_value': Decimal('10'),
        'valid_from': now - timedelta(days=1),
        'valid_until': now + timedelta(days=30),
    }
    fields.update(overrides)
    return Offer.objects.create(**fields)


@pytest.fixture
def offer(db):
    return make_offer()


@pytest.fixture
def booking(user, car):
    """Pending two day booking: base 4000, tax 720, deposit 1000."""
    pickup = (timezone.now() + timedelta(days=5)).replace(microsecond=0)
    booking = Booking.objects.create(
        user=user,
        car=car,
        pickup_date=pickup,
        dropoff_date=pickup + timedelta(days=2),
        total_days=2,
        base_amount=Decimal('4000.00'),
        security_deposit=Decimal('1000.00'),
        tax_amount=Decimal('720.00'),
        total_amount=Decimal('5720.00'),
    )
    BookingCharge.objects.create(
        booking=booking,
        description='GST (18%)',
        amount=Decimal('720.00'),
        type=ChargeType.TAX,
    )
    return booking


@pytest.fixture
def offer_factory(db):
    return make_offer
