from django.core.validators import MinValueValidator, MaxValueValidator, RegexValidator
from django.db import models
from django.utils import timezone
from decimal import Decimal
import secrets
import string
import uuid

from apps.cars.models import money


OFFER_CODE_ALPHABET = string.ascii_uppercase + string.digits
WEEKDAY_CODES = ('mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun')

time_of_day_validator = RegexValidator(
    regex=r'^([01]\d|2[0-3]):[0-5]\d$',
    message='Time must be in HH:MM format.'
)


def generate_offer_code(length=8):
    return ''.join(secrets.choice(OFFER_CODE_ALPHABET) for _ in range(length))


class OfferType(models.TextChoices):
    PERCENTAGE = 'percentage', 'Percentage'
    FIXED = 'fixed', 'Fixed amount'
    FREE_DAYS = 'free_days', 'Free days'
    COMBO = 'combo', 'Combo'
    FIRST_BOOKING = 'first_booking', 'First booking'
    SEASONAL = 'seasonal', 'Seasonal'
    REFERRAL = 'referral', 'Referral'
    LOYALTY = 'loyalty', 'Loyalty'


class ApplicableFor(models.TextChoices):
    ALL = 'all', 'All users'
    NEW_USERS = 'new_users', 'New users'
    EXISTING_USERS = 'existing_users', 'Existing users'
    SPECIFIC_USERS = 'specific_users', 'Specific users'


class OfferStatus(models.TextChoices):
    ACTIVE = 'active', 'Active'
    INACTIVE = 'inactive', 'Inactive'
    EXPIRED = 'expired', 'Expired'
    SCHEDULED = 'scheduled', 'Scheduled'


class OfferQuerySet(models.QuerySet):

    def valid(self, now=None):
        now = now or timezone.now()
        return self.filter(
            status=OfferStatus.ACTIVE,
            valid_from__lte=now,
            valid_until__gte=now,
        ).order_by('-display_priority', '-created_at')


class Offer(models.Model):
    """A promo code with eligibility rules and a discount formula."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    description = models.TextField()
    short_description = models.CharField(max_length=300, blank=True)
    code = models.CharField(max_length=20, unique=True)

    offer_type = models.CharField(max_length=20, choices=OfferType.choices)
    discount_value = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    min_discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    max_discount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # Eligibility
    min_booking_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    min_rental_days = models.PositiveIntegerField(default=1)
    applicable_for = models.CharField(max_length=20, choices=ApplicableFor.choices, default=ApplicableFor.ALL)
    specific_users = models.ManyToManyField('accounts.User', blank=True, related_name='targeted_offers')
    applicable_categories = models.JSONField(default=list, blank=True)
    applicable_cars = models.ManyToManyField('cars.Car', blank=True, related_name='applicable_offers')
    excluded_cars = models.ManyToManyField('cars.Car', blank=True, related_name='excluded_offers')

    # Validity
    valid_from = models.DateTimeField()
    valid_until = models.DateTimeField()
    active_days = models.JSONField(default=list, blank=True, help_text='Weekday codes (mon..sun); empty means every day')
    active_hours_from = models.CharField(max_length=5, blank=True, validators=[time_of_day_validator])
    active_hours_to = models.CharField(max_length=5, blank=True, validators=[time_of_day_validator])

    # Usage limits
    usage_limit = models.PositiveIntegerField(null=True, blank=True, help_text='Empty means unlimited')
    per_user_limit = models.PositiveIntegerField(default=1)
    used_count = models.PositiveIntegerField(default=0)

    # Display
    display_priority = models.PositiveSmallIntegerField(
        default=1,
        validators=[MinValueValidator(1), MaxValueValidator(10)]
    )
    is_featured = models.BooleanField(default=False)
    show_on_homepage = models.BooleanField(default=False)
    terms = models.JSONField(default=list, blank=True)

    status = models.CharField(max_length=20, choices=OfferStatus.choices, default=OfferStatus.ACTIVE)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_offers'
    )
    updated_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_offers'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = OfferQuerySet.as_manager()

    class Meta:
        db_table = 'offers'
        indexes = [
            models.Index(fields=['status'], name='offers_status_idx'),
            models.Index(fields=['valid_from', 'valid_until'], name='offers_validity_idx'),
            models.Index(fields=['is_featured'], name='offers_featured_idx'),
            models.Index(fields=['display_priority'], name='offers_priority_idx'),
        ]
        ordering = ['-display_priority', '-created_at']

    def __str__(self):
        return f"{self.code} - {self.title}"

    def save(self, *args, **kwargs):
        self.code = (self.code or generate_offer_code()).upper().strip()
        self.refresh_status()
        super().save(*args, **kwargs)

    def refresh_status(self, now=None):
        """Derive the status from the validity window. A manual deactivation sticks."""
        if self.status == OfferStatus.INACTIVE:
            return
        now = now or timezone.now()
        if self.valid_until < now:
            self.status = OfferStatus.EXPIRED
        elif self.valid_from > now:
            self.status = OfferStatus.SCHEDULED
        else:
            self.status = OfferStatus.ACTIVE

    def is_valid(self, now=None):
        now = now or timezone.now()
        return self.status == OfferStatus.ACTIVE and self.valid_from <= now <= self.valid_until

    def is_active_today(self, now=None):
        if not self.active_days:
            return True
        today = WEEKDAY_CODES[timezone.localtime(now or timezone.now()).weekday()]
        return today in self.active_days

    def is_user_eligible(self, user, exclude_booking=None):
        """
        Audience check. ``exclude_booking`` leaves out the booking the offer
        is being applied to, so a user's first booking still counts as new.
        """
        if self.applicable_for == ApplicableFor.SPECIFIC_USERS:
            return self.specific_users.filter(pk=user.pk).exists()

        bookings = user.bookings.all()
        if exclude_booking is not None:
            bookings = bookings.exclude(pk=exclude_booking.pk)
        if self.applicable_for == ApplicableFor.NEW_USERS:
            return not bookings.exists()
        if self.applicable_for == ApplicableFor.EXISTING_USERS:
            return bookings.exists()
        return True

    def usage_count_for(self, user):
        return self.usages.filter(user=user).count()

    def _within_active_hours(self, now):
        if not (self.active_hours_from and self.active_hours_to):
            return True
        current = timezone.localtime(now).strftime('%H:%M')
        return self.active_hours_from <= current <= self.active_hours_to

    def can_apply_to_booking(self, amount, days=None, car=None, now=None):
        """
        Check the booking-level rules of the offer.

        Returns:
            (valid, reason) tuple; reason is None when the offer applies
        """
        now = now or timezone.now()

        if not self.is_valid(now) or not self.is_active_today(now):
            return False, 'Offer is not active'

        if self.usage_limit is not None and self.used_count >= self.usage_limit:
            return False, 'Offer usage limit reached'

        if Decimal(amount) < self.min_booking_amount:
            return False, f'Minimum booking amount of ₹{self.min_booking_amount} required'

        if days is not None and days < self.min_rental_days:
            return False, f'Minimum {self.min_rental_days} days rental required'

        if car is not None:
            applicable_ids = set(self.applicable_cars.values_list('pk', flat=True))
            if applicable_ids and car.pk not in applicable_ids:
                return False, 'Offer not applicable for this car'
            if self.excluded_cars.filter(pk=car.pk).exists():
                return False, 'Offer not applicable for this car'
            if self.applicable_categories and car.category not in self.applicable_categories:
                return False, 'Offer not applicable for this car category'

        if not self._within_active_hours(now):
            return False, 'Offer not active at this time'

        return True, None

    def calculate_discount(self, amount, days=None, price_per_day=None):
        """
        Discount for a booking amount.

        The raw discount is raised to ``min_discount``, capped at
        ``max_discount`` and never exceeds the amount itself.
        """
        amount = Decimal(amount)

        if self.offer_type == OfferType.PERCENTAGE:
            discount = amount * self.discount_value / 100
        elif self.offer_type == OfferType.FIXED:
            discount = self.discount_value
        elif self.offer_type == OfferType.FREE_DAYS and days and price_per_day:
            discount = min(int(self.discount_value), days) * Decimal(price_per_day)
        else:
            discount = Decimal('0.00')

        if self.min_discount and discount < self.min_discount:
            discount = self.min_discount
        if self.max_discount is not None and discount > self.max_discount:
            discount = self.max_discount
        if discount > amount:
            discount = amount

        return money(discount)


class OfferUsage(models.Model):
    """One redemption of an offer."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    offer = models.ForeignKey(Offer, on_delete=models.CASCADE, related_name='usages')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='offer_usages')
    booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='offer_usages'
    )
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    used_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'offer_usages'
        indexes = [
            models.Index(fields=['offer', 'user'], name='offer_usage_user_idx'),
            models.Index(fields=['used_at'], name='offer_usage_used_at_idx'),
        ]
        ordering = ['-used_at']

    def __str__(self):
        return f"{self.offer.code} used by {self.user.email}"
