from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone
from datetime import timedelta
from decimal import Decimal
import hashlib
import secrets
import string
import uuid


REFERRAL_CODE_ALPHABET = string.ascii_uppercase + string.digits
REFERRAL_CODE_LENGTH = 8

phone_validator = RegexValidator(
    regex=r'^\d{10}$',
    message='Phone number must be exactly 10 digits.'
)


def default_address():
    return {
        'street': '',
        'city': '',
        'state': '',
        'country': 'India',
        'pincode': '',
    }


def default_preferences():
    return {
        'notifications': {'email': True, 'sms': True, 'push': True},
        'language': 'en',
        'currency': 'INR',
    }


def hash_token(raw_token):
    """SHA-256 digest used for every one-time token stored on the user."""
    return hashlib.sha256(raw_token.encode('utf-8')).hexdigest()


class UserRole(models.TextChoices):
    USER = 'user', 'User'
    ADMIN = 'admin', 'Admin'
    SUPER_ADMIN = 'super_admin', 'Super Admin'


class AccountStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    SUSPENDED = 'suspended', 'Suspended'
    DEACTIVATED = 'deactivated', 'Deactivated'


class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')

        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('email_verified', True)
        extra_fields.setdefault('role', UserRole.SUPER_ADMIN)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True')

        return self.create_user(email, password, **extra_fields)

    def admins(self):
        return self.filter(
            role__in=[UserRole.ADMIN, UserRole.SUPER_ADMIN],
            status=AccountStatus.ACTIVE,
        )


class User(AbstractBaseUser, PermissionsMixin):
    """Renter or staff account, authenticated by email."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255, db_index=True)
    name = models.CharField(max_length=50, blank=True)
    phone = models.CharField(max_length=10, unique=True, null=True, blank=True, validators=[phone_validator])
    driver_license = models.CharField(max_length=30, unique=True, null=True, blank=True)
    address = models.JSONField(default=default_address, blank=True)

    role = models.CharField(max_length=20, choices=UserRole.choices, default=UserRole.USER)
    status = models.CharField(max_length=20, choices=AccountStatus.choices, default=AccountStatus.ACTIVE)

    # Verification
    email_verified = models.BooleanField(default=False)
    phone_verified = models.BooleanField(default=False)
    verification_token = models.CharField(max_length=64, blank=True, null=True)
    verification_token_expires = models.DateTimeField(null=True, blank=True)
    reset_password_token = models.CharField(max_length=64, blank=True, null=True)
    reset_password_expires = models.DateTimeField(null=True, blank=True)
    phone_otp = models.CharField(max_length=64, blank=True, null=True)
    phone_otp_expires = models.DateTimeField(null=True, blank=True)

    # Lockout
    login_attempts = models.PositiveIntegerField(default=0)
    lock_until = models.DateTimeField(null=True, blank=True)

    # Wallet
    wallet_balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    total_spent = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    # Referral programme
    referral_code = models.CharField(max_length=REFERRAL_CODE_LENGTH, unique=True, editable=False)
    referred_by = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='referred_users'
    )
    referral_points = models.PositiveIntegerField(default=0)
    total_referrals = models.PositiveIntegerField(default=0)

    # Django auth flags
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    preferences = models.JSONField(default=default_preferences, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_login = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['email'], name='users_email_idx'),
            models.Index(fields=['role', 'status'], name='users_role_status_idx'),
            models.Index(fields=['created_at'], name='users_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower()
        if not self.referral_code:
            self.referral_code = self._generate_referral_code()
        # Deactivated accounts cannot authenticate at all
        self.is_active = self.status != AccountStatus.DEACTIVATED
        super().save(*args, **kwargs)

    @staticmethod
    def _generate_referral_code():
        while True:
            code = ''.join(secrets.choice(REFERRAL_CODE_ALPHABET) for _ in range(REFERRAL_CODE_LENGTH))
            if not User.objects.filter(referral_code=code).exists():
                return code

    def get_display_name(self):
        """Return name or email prefix."""
        return self.name or self.email.split('@')[0]

    @property
    def is_admin(self):
        return self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)

    @property
    def is_super_admin(self):
        return self.role == UserRole.SUPER_ADMIN

    def is_locked(self, now=None):
        now = now or timezone.now()
        return bool(self.lock_until and self.lock_until > now)

    def register_failed_login(self, now=None):
        """
        Count a failed password attempt and lock the account on the limit.

        An expired lock restarts the counter at 1.
        """
        now = now or timezone.now()
        if self.lock_until and self.lock_until <= now:
            self.login_attempts = 1
            self.lock_until = None
        else:
            self.login_attempts += 1
            if self.login_attempts >= settings.LOGIN_MAX_ATTEMPTS and not self.is_locked(now):
                self.lock_until = now + timedelta(minutes=settings.LOGIN_LOCK_MINUTES)
        self.save(update_fields=['login_attempts', 'lock_until', 'updated_at'])

    def reset_login_attempts(self):
        self.login_attempts = 0
        self.lock_until = None

    def create_email_verification_token(self):
        """Store a hashed verification token and return the raw value."""
        raw_token = secrets.token_hex(20)
        self.verification_token = hash_token(raw_token)
        self.verification_token_expires = timezone.now() + timedelta(hours=settings.EMAIL_VERIFICATION_HOURS)
        return raw_token

    def create_password_reset_token(self):
        """Store a hashed reset token and return the raw value."""
        raw_token = secrets.token_hex(20)
        self.reset_password_token = hash_token(raw_token)
        self.reset_password_expires = timezone.now() + timedelta(minutes=settings.PASSWORD_RESET_MINUTES)
        return raw_token

    def create_phone_otp(self):
        """Store a hashed 6-digit OTP and return the raw value."""
        otp = f'{secrets.randbelow(1_000_000):06d}'
        self.phone_otp = hash_token(otp)
        self.phone_otp_expires = timezone.now() + timedelta(minutes=settings.PHONE_OTP_MINUTES)
        return otp

    def wants_notification(self, channel):
        channels = (self.preferences or {}).get('notifications', {})
        return channels.get(channel, True)

    @classmethod
    def dashboard_stats(cls):
        """Headline user counters for the admin dashboard."""
        from django.db.models import Sum

        users = cls.objects.all()
        return {
            'total_users': users.count(),
            'active_users': users.filter(status=AccountStatus.ACTIVE).count(),
            'total_admins': users.filter(role__in=[UserRole.ADMIN, UserRole.SUPER_ADMIN]).count(),
            'total_verified': users.filter(email_verified=True).count(),
            'total_wallet_balance': users.aggregate(
                total=Sum('wallet_balance')
            )['total'] or Decimal('0.00'),
        }


class ReferralStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class Referral(models.Model):
    """A referred sign-up, rewarded once the new user verifies their email."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    referrer = models.ForeignKey(User, on_delete=models.CASCADE, related_name='referrals_made')
    referred_user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='referral')
    referral_code = models.CharField(max_length=REFERRAL_CODE_LENGTH)
    reward_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('100.00'))
    status = models.CharField(max_length=20, choices=ReferralStatus.choices, default=ReferralStatus.PENDING)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'referrals'
        indexes = [
            models.Index(fields=['referrer', 'status'], name='referrals_referrer_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.referrer.email} -> {self.referred_user.email} ({self.status})"


class AuditLog(models.Model):
    """Record of an administrative action."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    action = models.CharField(max_length=50, db_index=True)
    performed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='audit_actions'
    )
    target_user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_entries'
    )
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=300, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['performed_by', 'created_at'], name='audit_actor_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.action} by {self.performed_by_id} at {self.created_at:%Y-%m-%d %H:%M}"
