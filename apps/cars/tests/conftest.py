import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.cars.models import Car, CarImage, CarCategory, FuelType, Transmission


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email='driver@example.com',
        password='TestPass123!',
        name='Driver',
        email_verified=True,
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='fleet_admin@example.com',
        password='AdminPass123!',
        name='Fleet Admin',
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
    """Hatchback in central Bengaluru, 1200/day."""
    return Car.objects.create(
        make='Tata',
        model='Tiago',
        year=2022,
        license_plate='KA05MN4321',
        category=CarCategory.HATCHBACK,
        transmission=Transmission.MANUAL,
        fuel_type=FuelType.PETROL,
        seats=5,
        price_per_day=Decimal('1200.00'),
        price_per_week=Decimal('7000.00'),
        security_deposit=Decimal('2000.00'),
        city='Bengaluru',
        latitude=Decimal('12.971599'),
        longitude=Decimal('77.594566'),
        current_mileage=20000,
    )


@pytest.fixture
def suv(db):
    """SUV in Mysuru, about 130 km from the hatchback."""
    return Car.objects.create(
        make='Mahindra',
        model='XUV700',
        year=2023,
        license_plate='KA09XY0007',
        category=CarCategory.SUV,
        fuel_type=FuelType.DIESEL,
        seats=7,
        price_per_day=Decimal('3500.00'),
        security_deposit=Decimal('5000.00'),
        city='Mysuru',
        latitude=Decimal('12.295810'),
        longitude=Decimal('76.639381'),
        is_featured=True,
    )


@pytest.fixture
def car_with_images(car):
    CarImage.objects.create(car=car, url='https://cdn.example.com/tiago-front.jpg', is_primary=True)
    CarImage.objects.create(car=car, url='https://cdn.example.com/tiago-side.jpg')
    return car
