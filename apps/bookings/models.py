from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Sum
from django.utils import timezone
from decimal import Decimal
import uuid

from apps.cars.models import money, rental_days


class BookingStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    CONFIRMED = 'confirmed', 'Confirmed'
    CANCELLED = 'cancelled', 'Cancelled'
    ACTIVE = 'active', 'Active'
    COMPLETED = 'completed', 'Completed'
    NO_SHOW = 'no_show', 'No show'
    DISPUTED = 'disputed', 'Disputed'


# Bookings that block the car for their date range
OPEN_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.ACTIVE)

STATUS_TRANSITIONS = {
    BookingStatus.PENDING: (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    BookingStatus.CONFIRMED: (BookingStatus.ACTIVE, BookingStatus.CANCELLED, BookingStatus.NO_SHOW),
    BookingStatus.ACTIVE: (BookingStatus.COMPLETED, BookingStatus.DISPUTED),
    BookingStatus.DISPUTED: (BookingStatus.COMPLETED,),
}


class PaymentMethod(models.TextChoices):
    CASH = 'cash', 'Cash'
    CARD = 'card', 'Card'
    WALLET = 'wallet', 'Wallet'
    UPI = 'upi', 'UPI'
    NETBANKING = 'netbanking', 'Net banking'


class PaymentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    PARTIAL = 'partial', 'Partially paid'
    PAID = 'paid', 'Paid'
    FAILED = 'failed', 'Failed'
    REFUNDED = 'refunded', 'Refunded'


class LocationType(models.TextChoices):
    BRANCH = 'branch', 'Branch'
    ADDRESS = 'address', 'Address'


class CancelledBy(models.TextChoices):
    USER = 'user', 'User'
    ADMIN = 'admin', 'Admin'
    SYSTEM = 'system', 'System'


class RefundStatus(models.TextChoices):
    NOT_APPLICABLE = 'not_applicable', 'Not applicable'
    PENDING = 'pending', 'Pending'
    PROCESSED = 'processed', 'Processed'
    FAILED = 'failed', 'Failed'


class InsuranceType(models.TextChoices):
    BASIC = 'basic', 'Basic'
    PREMIUM = 'premium', 'Premium'
    FULL = 'full', 'Full'


class FuelPolicy(models.TextChoices):
    FULL_TO_FULL = 'full_to_full', 'Full to full'
    SAME_TO_SAME = 'same_to_same', 'Same to same'
    PREPAID = 'prepaid', 'Prepaid'


class ServiceType(models.TextChoices):
    GPS = 'gps', 'GPS'
    CHILD_SEAT = 'child_seat', 'Child seat'
    EXTRA_DRIVER = 'extra_driver', 'Extra driver'
    WIFI = 'wifi', 'Wi-Fi'
    ROOF_RACK = 'roof_rack', 'Roof rack'
    INSURANCE = 'insurance', 'Insurance'
    FUEL = 'fuel', 'Fuel'


class ChargeType(models.TextChoices):
    SERVICE = 'service', 'Service'
    TAX = 'tax', 'Tax'
    FEE = 'fee', 'Fee'
    PENALTY = 'penalty', 'Penalty'
    DISCOUNT = 'discount', 'Discount'


class DamageSeverity(models.TextChoices):
    MINOR = 'minor', 'Minor'
    MAJOR = 'major', 'Major'
    CRITICAL = 'critical', 'Critical'


class DamageStatus(models.TextChoices):
    REPORTED = 'reported', 'Reported'
    ASSESSED = 'assessed', 'Assessed'
    REPAIRED = 'repaired', 'Repaired'


class ExtensionStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'


class TransactionType(models.TextChoices):
    PAYMENT = 'payment', 'Payment'
    REFUND = 'refund', 'Refund'
    SECURITY_DEPOSIT_ADJUSTMENT = 'security_deposit_adjustment', 'Security deposit adjustment'


class TransactionStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    SUCCESS = 'success', 'Success'
    FAILED = 'failed', 'Failed'


def default_location():
    return {'type': LocationType.BRANCH.value, 'address': {}}


def generate_booking_number():
    """BOOK + last 8 digits of the epoch in ms + running count padded to 4."""
    epoch_ms = str(int(timezone.now().timestamp() * 1000))[-8:]
    count = Booking.objects.count() + 1
    return f"BOOK{epoch_ms}{count:04d}"


class BookingQuerySet(models.QuerySet):

    def upcoming(self, user=None, now=None):
        queryset = self.filter(
            pickup_date__gte=now or timezone.now(),
            status__in=[BookingStatus.CONFIRMED, BookingStatus.PENDING],
        )
        if user is not None:
            queryset = queryset.filter(user=user)
        return queryset.select_related('car').order_by('pickup_date')

    def overlapping(self, start, end):
        return self.filter(pickup_date__lte=end, dropoff_date__gte=start)


class Booking(models.Model):
    """A rental of one car by one user for a date range."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_number = models.CharField(max_length=20, unique=True, editable=False)

    user = models.ForeignKey('accounts.User', on_delete=models.PROTECT, related_name='bookings')
    car = models.ForeignKey('cars.Car', on_delete=models.PROTECT, related_name='bookings')

    pickup_date = models.DateTimeField()
    dropoff_date = models.DateTimeField()
    total_days = models.PositiveIntegerField()
    pickup_location = models.JSONField(default=default_location, blank=True)
    dropoff_location = models.JSONField(default=default_location, blank=True)
    driver_details = models.JSONField(default=dict, blank=True)

    # Amounts (INR)
    base_amount = models.DecimalField(max_digits=12, decimal_places=2)
    security_deposit = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    # Payment
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CARD)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    invoice_number = models.CharField(max_length=30, blank=True)

    status = models.CharField(max_length=20, choices=BookingStatus.choices, default=BookingStatus.PENDING)

    # Cancellation
    cancellation_reason = models.TextField(blank=True)
    cancelled_by = models.CharField(max_length=10, choices=CancelledBy.choices, blank=True)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    refund_status = models.CharField(max_length=20, choices=RefundStatus.choices, blank=True)
    cancellation_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    cancelled_at = models.DateTimeField(null=True, blank=True)

    insurance_type = models.CharField(max_length=20, choices=InsuranceType.choices, default=InsuranceType.BASIC)
    fuel_policy = models.CharField(max_length=20, choices=FuelPolicy.choices, default=FuelPolicy.FULL_TO_FULL)

    # Handover readings
    fuel_at_pickup = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MaxValueValidator(100)])
    fuel_at_dropoff = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MaxValueValidator(100)])
    mileage_at_pickup = models.PositiveIntegerField(null=True, blank=True)
    mileage_at_dropoff = models.PositiveIntegerField(null=True, blank=True)
    extra_kilometers = models.PositiveIntegerField(default=0)
    extra_km_charges = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    promo_code = models.CharField(max_length=20, blank=True)
    offer = models.ForeignKey(
        'offers.Offer',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='bookings'
    )
    special_requests = models.TextField(blank=True)

    # Review
    review_rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    review_comment = models.TextField(blank=True)
    review_categories = models.JSONField(default=dict, blank=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)

    confirmed_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    dropped_off_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        db_table = 'bookings'
        indexes = [
            models.Index(fields=['user', 'status'], name='bookings_user_status_idx'),
            models.Index(fields=['car', 'pickup_date', 'dropoff_date'], name='bookings_car_range_idx'),
            models.Index(fields=['status'], name='bookings_status_idx'),
            models.Index(fields=['payment_status'], name='bookings_payment_idx'),
            models.Index(fields=['-created_at'], name='bookings_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.booking_number} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.booking_number:
            self.booking_number = generate_booking_number()
        if not self.invoice_number:
            self.invoice_number = f"INV-{self.booking_number}"
        if self.pickup_date and self.dropoff_date and not self.total_days:
            self.total_days = rental_days(self.pickup_date, self.dropoff_date)
        super().save(*args, **kwargs)

    @property
    def has_review(self):
        return self.review_rating is not None

    @property
    def outstanding_amount(self):
        return max(self.total_amount - self.paid_amount, Decimal('0.00'))

    def hours_until_pickup(self, now=None):
        return (self.pickup_date - (now or timezone.now())).total_seconds() / 3600

    def services_total(self):
        return self.additional_services.aggregate(total=Sum('total'))['total'] or Decimal('0.00')

    def calculate_total(self):
        """
        Total payable for the booking.

        base + services + service/tax/fee/penalty charges - discount charges + deposit
        """
        added = Decimal('0.00')
        discounts = Decimal('0.00')
        for charge in self.charges.all():
            if charge.type == ChargeType.DISCOUNT:
                discounts += charge.amount
            else:
                added += charge.amount

        return money(self.base_amount + self.services_total() + added - discounts + self.security_deposit)

    def can_be_cancelled(self, now=None):
        if self.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            return False
        return self.hours_until_pickup(now) >= 24

    def calculate_cancellation_fee(self, now=None):
        hours = self.hours_until_pickup(now)
        if hours > 48:
            rate = Decimal('0.10')
        elif hours > 24:
            rate = Decimal('0.25')
        else:
            rate = Decimal('0.50')
        return money(self.total_amount * rate)

    def can_transition_to(self, new_status):
        return new_status in STATUS_TRANSITIONS.get(self.status, ())


class AdditionalService(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='additional_services')
    service = models.CharField(max_length=20, choices=ServiceType.choices)
    quantity = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = 'booking_services'

    def __str__(self):
        return f"{self.get_service_display()} x{self.quantity}"

    def save(self, *args, **kwargs):
        self.total = money(self.price * self.quantity)
        super().save(*args, **kwargs)


class BookingCharge(models.Model):
    """A line added to the booking total. Discount amounts are stored positive."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='charges')
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    type = models.CharField(max_length=20, choices=ChargeType.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_charges'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.description}: {self.amount} ({self.type})"


class DamageReport(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='damages')
    description = models.TextField()
    severity = models.CharField(max_length=20, choices=DamageSeverity.choices)
    repair_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=DamageStatus.choices, default=DamageStatus.REPORTED)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_damages'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.get_severity_display()} damage on {self.booking.booking_number}"


class ExtensionRequest(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='extension_requests')
    current_dropoff_date = models.DateTimeField()
    requested_dropoff_date = models.DateTimeField()
    extension_days = models.PositiveIntegerField()
    extension_cost = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=ExtensionStatus.choices, default=ExtensionStatus.PENDING)
    reviewed_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_extensions'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_extensions'
        indexes = [
            models.Index(fields=['status'], name='extensions_status_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"Extension of {self.booking.booking_number} by {self.extension_days} day(s)"


class PaymentTransaction(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='transactions')
    transaction_id = models.CharField(max_length=64, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=20, choices=PaymentMethod.choices, blank=True)
    type = models.CharField(max_length=30, choices=TransactionType.choices, default=TransactionType.PAYMENT)
    status = models.CharField(max_length=20, choices=TransactionStatus.choices, default=TransactionStatus.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_transactions'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.transaction_id}: {self.amount} ({self.type}, {self.status})"

    @staticmethod
    def new_transaction_id(prefix='TXN'):
        return f"{prefix}-{uuid.uuid4().hex[:16].upper()}"
