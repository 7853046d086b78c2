import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, UserRole
from apps.notifications.models import Notification, NotificationType


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email='reader@example.com',
        password='TestPass123!',
        name='Reader',
        email_verified=True,
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='someoneelse@example.com',
        password='TestPass123!',
        name='Someone Else',
        email_verified=False,
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email='notif_admin@example.com',
        password='AdminPass123!',
        name='Notification Admin',
        role=UserRole.ADMIN,
        email_verified=True,
    )


@pytest.fixture
def authenticated_client(api_client, user):
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    refresh = RefreshToken.for_user(admin_user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def notification(user):
    return Notification.objects.create(
        user=user,
        title='Booking Confirmed',
        message='Your booking BOOK123 is confirmed.',
        type=NotificationType.BOOKING,
    )


@pytest.fixture
def inbox(user):
    """Three unread notifications of mixed types."""
    return [
        Notification.objects.create(user=user, title='One', message='First', type=NotificationType.BOOKING),
        Notification.objects.create(user=user, title='Two', message='Second', type=NotificationType.OFFER),
        Notification.objects.create(user=user, title='Three', message='Third', type=NotificationType.SYSTEM),
    ]
