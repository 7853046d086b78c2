import pytest
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.bookings.models import Booking, BookingStatus, PaymentMethod, PaymentStatus
from apps.cars.models import Car, CarCategory, FuelType


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


# =============================================================================
# Users
# =============================================================================

@pytest.fixture
def customer(db):
    return User.objects.create_user(
        email='renter@example.com',
        password='TestPass123!',
        name='Renter',
        phone='9876543210',
        email_verified=True,
    )


@pytest.fixture
def unverified_customer(db):
    return User.objects.create_user(
        email='newbie@example.com',
        password='TestPass123!',
        name='Newbie',
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='ops@example.com',
        password='AdminPass123!',
        name='Ops Admin',
        role=UserRole.ADMIN,
        email_verified=True,
    )


@pytest.fixture
def super_admin(db):
    return User.objects.create_user(
        email='root@example.com',
        password='RootPass123!',
        name='Root',
        role=UserRole.SUPER_ADMIN,
        email_verified=True,
    )


@pytest.fixture
def customer_client(customer):
    return _client_for(customer)


@pytest.fixture
def admin_client(admin_user):
    return _client_for(admin_user)


@pytest.fixture
def super_admin_client(super_admin):
    return _client_for(super_admin)


# =============================================================================
# Fleet and bookings
# =============================================================================

@pytest.fixture
def sedan(db):
    return Car.objects.create(
        make='Honda',
        model='City',
        year=2022,
        license_plate='KA01AB1234',
        category=CarCategory.SEDAN,
        fuel_type=FuelType.PETROL,
        seats=5,
        price_per_day=Decimal('1500.00'),
        security_deposit=Decimal('500.00'),
        city='Bengaluru',
    )


@pytest.fixture
def suv(db):
    return Car.objects.create(
        make='Toyota',
        model='Fortuner',
        year=2021,
        license_plate='KA02CD5678',
        category=CarCategory.SUV,
        fuel_type=FuelType.DIESEL,
        seats=7,
        price_per_day=Decimal('4000.00'),
        city='Bengaluru',
    )


@pytest.fixture
def booking_factory(customer, sedan):
    """Create bookings starting next week, overridable per field."""
    def make_booking(**overrides):
        start = timezone.now() + timedelta(days=7)
        fields = {
            'user': customer,
            'car': sedan,
            'pickup_date': start,
            'dropoff_date': start + timedelta(days=2),
            'total_days': 2,
            'base_amount': Decimal('3000.00'),
            'tax_amount': Decimal('540.00'),
            'security_deposit': Decimal('500.00'),
            'total_amount': Decimal('4040.00'),
            'payment_method': PaymentMethod.CARD,
        }
        fields.update(overrides)
        return Booking.objects.create(**fields)
    return make_booking


@pytest.fixture
def completed_booking(booking_factory):
    return booking_factory(status=BookingStatus.COMPLETED, payment_status=PaymentStatus.PAID)


@pytest.fixture
def cancelled_booking(booking_factory):
    return booking_factory(
        status=BookingStatus.CANCELLED,
        payment_method=PaymentMethod.UPI,
        cancelled_at=timezone.now(),
        cancellation_fee=Decimal('404.00'),
        refund_amount=Decimal('3636.00'),
    )


@pytest.fixture
def pending_booking(booking_factory, suv):
    return booking_factory(
        car=suv,
        base_amount=Decimal('8000.00'),
        tax_amount=Decimal('1440.00'),
        security_deposit=Decimal('0.00'),
        total_amount=Decimal('9440.00'),
    )
