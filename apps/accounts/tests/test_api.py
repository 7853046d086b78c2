import pytest
from datetime import timedelta
from decimal import Decimal
from django.core import mail
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User, Referral, ReferralStatus, AccountStatus


def _auth(api_client, user):
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


# =============================================================================
# Registration Tests
# =============================================================================

@pytest.mark.django_db
class TestRegistration:
    """Tests for POST /api/auth/register/"""

    def _payload(self, **overrides):
        data = {
            'name': 'New User',
            'email': 'newuser@example.com',
            'password': 'SecurePass123!',
            'password_confirm': 'SecurePass123!',
            'phone': '9123456780',
        }
        data.update(overrides)
        return data

    def test_register_success(self, api_client, django_capture_on_commit_callbacks):
        """Register, receive tokens and a verification email."""
        url = reverse('accounts:register')
        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(url, self._payload())

        assert response.status_code == status.HTTP_201_CREATED
        assert 'access' in response.data['tokens']
        assert 'refresh' in response.data['tokens']

        user = User.objects.get(email='newuser@example.com')
        assert user.email_verified is False
        assert user.verification_token
        assert len(user.referral_code) == 8
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ['newuser@example.com']

    def test_register_lowercases_email(self, api_client):
        url = reverse('accounts:register')
        response = api_client.post(url, self._payload(email='MixedCase@Example.com'))

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['user']['email'] == 'mixedcase@example.com'

    def test_register_duplicate_email(self, api_client, user):
        """Cannot register with existing email."""
        url = reverse('accounts:register')
        response = api_client.post(url, self._payload(email=user.email))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data

    def test_register_duplicate_phone(self, api_client, user):
        url = reverse('accounts:register')
        response = api_client.post(url, self._payload(phone=user.phone))

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_register_password_mismatch(self, api_client):
        """Registration fails when passwords don't match."""
        url = reverse('accounts:register')
        response = api_client.post(url, self._payload(password_confirm='Different123!'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password_confirm' in response.data

    def test_register_invalid_phone(self, api_client):
        url = reverse('accounts:register')
        response = api_client.post(url, self._payload(phone='12345'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'phone' in response.data

    def test_register_with_referral_code(self, api_client, other_user):
        """A valid referral code links the referrer with a pending referral."""
        url = reverse('accounts:register')
        response = api_client.post(url, self._payload(referral_code=other_user.referral_code))

        assert response.status_code == status.HTTP_201_CREATED
        user = User.objects.get(email='newuser@example.com')
        assert user.referred_by == other_user
        referral = Referral.objects.get(referred_user=user)
        assert referral.status == ReferralStatus.PENDING
        assert other_user.notifications.filter(type='referral').exists()

    def test_register_with_unknown_referral_code(self, api_client):
        url = reverse('accounts:register')
        response = api_client.post(url, self._payload(referral_code='NOPE0000'))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not User.objects.filter(email='newuser@example.com').exists()


# =============================================================================
# Login Tests
# =============================================================================

@pytest.mark.django_db
class TestLogin:
    """Tests for POST /api/auth/login/"""

    def test_login_success(self, api_client, user):
        """Successfully login with valid credentials."""
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data['tokens']
        assert response.data['user']['email'] == user.email

        user.refresh_from_db()
        assert user.last_login is not None

    def test_login_wrong_password(self, api_client, user):
        """Login fails with wrong password and counts the attempt."""
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user.email, 'password': 'WrongPassword123!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert 'error' in response.data
        user.refresh_from_db()
        assert user.login_attempts == 1

    def test_login_nonexistent_user(self, api_client):
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': 'nobody@example.com', 'password': 'SomePass123!'})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_locks_after_five_failures(self, api_client, user):
        """The fifth failure locks the account; the next attempt gets 423."""
        url = reverse('accounts:login')
        for _ in range(5):
            response = api_client.post(url, {'email': user.email, 'password': 'WrongPassword123!'})
            assert response.status_code == status.HTTP_401_UNAUTHORIZED

        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_423_LOCKED
        user.refresh_from_db()
        assert user.lock_until > timezone.now()

    def test_login_after_lock_expired(self, api_client, user):
        user.login_attempts = 5
        user.lock_until = timezone.now() - timedelta(minutes=1)
        user.save()

        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.login_attempts == 0
        assert user.lock_until is None

    def test_login_unverified_email(self, api_client, user_unverified):
        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user_unverified.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_login_suspended_account(self, api_client, user):
        user.status = AccountStatus.SUSPENDED
        user.save()

        url = reverse('accounts:login')
        response = api_client.post(url, {'email': user.email, 'password': 'TestPass123!'})

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Session & Profile Tests
# =============================================================================

@pytest.mark.django_db
class TestProfile:

    def test_get_current_user(self, authenticated_client, user):
        url = reverse('accounts:current-user')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == user.email
        assert 'password' not in response.data
        assert 'verification_token' not in response.data

    def test_get_current_user_unauthenticated(self, api_client):
        url = reverse('accounts:current-user')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_suspended_token_rejected(self, authenticated_client, user):
        """A token issued before suspension stops working."""
        user.status = AccountStatus.SUSPENDED
        user.save()

        response = authenticated_client.get(reverse('accounts:current-user'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_update_details_merges_address(self, authenticated_client, user):
        url = reverse('accounts:update-details')
        response = authenticated_client.patch(url, {
            'name': 'Renamed',
            'address': {'city': 'Pune'},
        })

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.name == 'Renamed'
        assert user.address['city'] == 'Pune'
        assert user.address['country'] == 'India'

    def test_update_phone_resets_verification(self, authenticated_client, user):
        user.phone_verified = True
        user.save()

        url = reverse('accounts:update-details')
        response = authenticated_client.patch(url, {'phone': '9000000001'})

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.phone == '9000000001'
        assert user.phone_verified is False

    def test_update_password(self, authenticated_client, user):
        url = reverse('accounts:update-password')
        response = authenticated_client.put(url, {
            'current_password': 'TestPass123!',
            'new_password': 'BrandNew456!',
        })

        assert response.status_code == status.HTTP_200_OK
        assert 'tokens' in response.data
        user.refresh_from_db()
        assert user.check_password('BrandNew456!')

    def test_update_password_wrong_current(self, authenticated_client):
        url = reverse('accounts:update-password')
        response = authenticated_client.put(url, {
            'current_password': 'Nope12345!',
            'new_password': 'BrandNew456!',
        })

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout(self, authenticated_client, user):
        refresh = RefreshToken.for_user(user)
        url = reverse('accounts:logout')
        response = authenticated_client.post(url, {'refresh': str(refresh)})

        assert response.status_code == status.HTTP_200_OK

    def test_logout_invalid_token(self, authenticated_client):
        url = reverse('accounts:logout')
        response = authenticated_client.post(url, {'refresh': 'garbage'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Email & Phone Verification Tests
# =============================================================================

@pytest.mark.django_db
class TestVerification:

    def test_verify_email(self, api_client, user_unverified):
        raw_token = user_unverified.create_email_verification_token()
        user_unverified.save()

        url = reverse('accounts:verify-email')
        response = api_client.post(url, {'token': raw_token})

        assert response.status_code == status.HTTP_200_OK
        user_unverified.refresh_from_db()
        assert user_unverified.email_verified is True
        assert user_unverified.verification_token is None

    def test_verify_email_expired_token(self, api_client, user_unverified):
        raw_token = user_unverified.create_email_verification_token()
        user_unverified.verification_token_expires = timezone.now() - timedelta(minutes=1)
        user_unverified.save()

        url = reverse('accounts:verify-email')
        response = api_client.post(url, {'token': raw_token})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_verify_email_completes_referral(self, api_client, other_user, user_unverified):
        user_unverified.referred_by = other_user
        raw_token = user_unverified.create_email_verification_token()
        user_unverified.save()
        Referral.objects.create(
            referrer=other_user,
            referred_user=user_unverified,
            referral_code=other_user.referral_code,
        )

        response = api_client.post(reverse('accounts:verify-email'), {'token': raw_token})

        assert response.status_code == status.HTTP_200_OK
        other_user.refresh_from_db()
        assert other_user.wallet_balance == Decimal('100.00')
        assert other_user.referral_points == 100
        assert other_user.total_referrals == 1
        assert Referral.objects.get(referred_user=user_unverified).status == ReferralStatus.COMPLETED

    @override_settings(REFERRAL_REWARD=Decimal('250'))
    def test_referral_reward_uses_configured_amount(self, api_client, other_user, user_unverified):
        """The referrer gets the configured reward, not the amount stored when the referral was made."""
        user_unverified.referred_by = other_user
        raw_token = user_unverified.create_email_verification_token()
        user_unverified.save()
        Referral.objects.create(
            referrer=other_user,
            referred_user=user_unverified,
            referral_code=other_user.referral_code,
            reward_amount=Decimal('0.00'),
        )

        api_client.post(reverse('accounts:verify-email'), {'token': raw_token})

        other_user.refresh_from_db()
        assert other_user.wallet_balance == Decimal('250.00')
        assert other_user.referral_points == 250
        assert Referral.objects.get(referred_user=user_unverified).reward_amount == Decimal('250.00')

    def test_resend_verification_when_already_verified(self, authenticated_client):
        url = reverse('accounts:resend-verification')
        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_phone_otp_flow(self, authenticated_client, user, monkeypatch):
        monkeypatch.setattr('secrets.randbelow', lambda _: 123456)

        response = authenticated_client.post(reverse('accounts:phone-otp'))
        assert response.status_code == status.HTTP_200_OK
        assert '123456' not in str(response.data)

        response = authenticated_client.post(reverse('accounts:phone-verify'), {'otp': '123456'})
        assert response.status_code == status.HTTP_200_OK
        assert response.data['phone_verified'] is True

    def test_phone_otp_wrong_code(self, authenticated_client, monkeypatch):
        monkeypatch.setattr('secrets.randbelow', lambda _: 123456)
        authenticated_client.post(reverse('accounts:phone-otp'))

        response = authenticated_client.post(reverse('accounts:phone-verify'), {'otp': '654321'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Password Reset Tests
# =============================================================================

@pytest.mark.django_db
class TestPasswordReset:

    def test_request_reset_sends_email(self, api_client, user, django_capture_on_commit_callbacks):
        url = reverse('accounts:password-reset')
        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(url, {'email': user.email})

        assert response.status_code == status.HTTP_200_OK
        assert len(mail.outbox) == 1
        user.refresh_from_db()
        assert user.reset_password_token is not None

    def test_request_reset_unknown_email_does_not_leak(self, api_client):
        url = reverse('accounts:password-reset')
        response = api_client.post(url, {'email': 'ghost@example.com'})

        assert response.status_code == status.HTTP_200_OK
        assert len(mail.outbox) == 0

    def test_confirm_reset(self, api_client, user):
        raw_token = user.create_password_reset_token()
        user.login_attempts = 5
        user.lock_until = timezone.now() + timedelta(minutes=30)
        user.save()

        url = reverse('accounts:password-reset-confirm')
        response = api_client.post(url, {
            'token': raw_token,
            'new_password': 'FreshPass789!',
            'new_password_confirm': 'FreshPass789!',
        })

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.check_password('FreshPass789!')
        assert user.reset_password_token is None
        assert user.lock_until is None

    def test_confirm_reset_invalid_token(self, api_client, user):
        url = reverse('accounts:password-reset-confirm')
        response = api_client.post(url, {
            'token': 'not-a-token',
            'new_password': 'FreshPass789!',
            'new_password_confirm': 'FreshPass789!',
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Referral Tests
# =============================================================================

@pytest.mark.django_db
class TestReferralDetails:

    def test_referral_details(self, api_client, user, other_user):
        Referral.objects.create(
            referrer=user,
            referred_user=other_user,
            referral_code=user.referral_code,
            status=ReferralStatus.COMPLETED,
        )
        _auth(api_client, user)

        response = api_client.get(reverse('accounts:referral'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['referral_code'] == user.referral_code
        assert response.data['referral_link'].endswith(f'?ref={user.referral_code}')
        assert response.data['completed_referrals'] == 1
        assert Decimal(response.data['total_earned']) == Decimal('100.00')
