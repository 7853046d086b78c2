import pytest
from datetime import timedelta
from decimal import Decimal
from django.core import mail
from django.test import override_settings
from django.utils import timezone
from apps.accounts.models import User
from apps.bookings.models import (
    Booking,
    BookingStatus,
    ChargeType,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
    TransactionType,
    ExtensionStatus,
)
from apps.bookings.pricing import BookingPricingService
from apps.bookings.services import (
    BookingService,
    ExtensionService,
    PaymentService,
    UPIPaymentGenerator,
    InvoiceService,
    InvalidBookingDatesError,
    CarUnavailableError,
    BookingNotCancellableError,
    InvalidStatusTransitionError,
    ReviewNotAllowedError,
    ExtensionError,
    InsufficientWalletBalanceError,
    InsufficientPermissionsError,
    PaymentError,
    QRGenerationError,
)
from apps.cars.models import Availability, CarStatus
from apps.notifications.models import Notification


# =============================================================================
# Pricing
# =============================================================================

class TestBookingPricingService:

    def test_part_day_counts_as_full_day(self):
        start = timezone.now()
        assert BookingPricingService.total_days(start, start + timedelta(hours=25)) == 2

    def test_tax_on_negative_subtotal_is_zero(self):
        assert BookingPricingService.calculate_tax(Decimal('-10')) == Decimal('0.00')

    def test_total(self):
        total = BookingPricingService.calculate_total(
            base_amount=Decimal('3000'),
            tax_amount=Decimal('518.40'),
            security_deposit=Decimal('500'),
            services_amount=Decimal('200'),
            discount_amount=Decimal('320'),
        )
        assert total == Decimal('3898.40')

    def test_fuel_refill_fee(self):
        fee = BookingPricingService.fuel_refill_fee(fuel_at_pickup=100, fuel_at_dropoff=75)
        assert fee == Decimal('1250.00')


# =============================================================================
# Create booking
# =============================================================================

@pytest.mark.django_db
class TestCreateBooking:

    def test_price_without_promo(self, user, car, pickup):
        booking = BookingService.create_booking(
            user=user,
            car_id=car.id,
            pickup_date=pickup,
            dropoff_date=pickup + timedelta(days=3),
        )

        assert booking.total_days == 3
        assert booking.base_amount == Decimal('3000.00')
        assert booking.tax_amount == Decimal('540.00')
        assert booking.total_amount == Decimal('4040.00')
        assert booking.booking_number.startswith('BOOK')
        assert booking.invoice_number == f'INV-{booking.booking_number}'
        assert booking.charges.get(type=ChargeType.TAX).amount == Decimal('540.00')

    def test_promo_and_services(self, user, car, pickup, offer):
        booking = BookingService.create_booking(
            user=user,
            car_id=car.id,
            pickup_date=pickup,
            dropoff_date=pickup + timedelta(days=3),
            additional_services=[{'service': 'gps', 'price': '200.00', 'quantity': 1}],
            promo_code='save10',
        )

        assert booking.discount_amount == Decimal('320.00')
        assert booking.tax_amount == Decimal('518.40')
        assert booking.total_amount == Decimal('3898.40')
        assert booking.total_amount == booking.calculate_total()
        assert booking.promo_code == 'SAVE10'
        offer.refresh_from_db()
        assert offer.used_count == 1
        assert offer.usages.get().booking == booking

    def test_invalid_promo_is_ignored(self, user, car, pickup):
        booking = BookingService.create_booking(
            user=user,
            car_id=car.id,
            pickup_date=pickup,
            dropoff_date=pickup + timedelta(days=3),
            promo_code='NOPE',
        )

        assert booking.discount_amount == Decimal('0.00')
        assert booking.promo_code == ''
        assert booking.total_amount == Decimal('4040.00')

    def test_dropoff_before_pickup(self, user, car, pickup):
        with pytest.raises(InvalidBookingDatesError):
            BookingService.create_booking(
                user=user, car_id=car.id, pickup_date=pickup, dropoff_date=pickup - timedelta(hours=1),
            )

    def test_pickup_too_soon(self, user, car):
        pickup = timezone.now() + timedelta(hours=1)
        with pytest.raises(InvalidBookingDatesError, match='2 hours'):
            BookingService.create_booking(
                user=user, car_id=car.id, pickup_date=pickup, dropoff_date=pickup + timedelta(days=1),
            )

    def test_inactive_car(self, user, car, pickup):
        car.status = CarStatus.INACTIVE
        car.save()

        with pytest.raises(CarUnavailableError):
            BookingService.create_booking(
                user=user, car_id=car.id, pickup_date=pickup, dropoff_date=pickup + timedelta(days=1),
            )

    def test_overlapping_booking(self, other_user, car, booking):
        with pytest.raises(CarUnavailableError, match='selected dates'):
            BookingService.create_booking(
                user=other_user,
                car_id=car.id,
                pickup_date=booking.pickup_date + timedelta(days=1),
                dropoff_date=booking.dropoff_date + timedelta(days=1),
            )

    def test_notifications_and_email(self, user, admin_user, car, pickup, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            booking = BookingService.create_booking(
                user=user, car_id=car.id, pickup_date=pickup, dropoff_date=pickup + timedelta(days=2),
            )

        assert Notification.objects.filter(user=user, title='Booking Created!').exists()
        assert Notification.objects.filter(user=admin_user, title='New Booking Request').exists()
        assert len(mail.outbox) == 1
        assert booking.booking_number in mail.outbox[0].subject

        car.refresh_from_db()
        assert car.last_booked is not None


# =============================================================================
# Cancellation and status workflow
# =============================================================================

@pytest.mark.django_db
class TestCancelBooking:

    def test_cancel_unpaid(self, user, booking):
        booking = BookingService.cancel_booking(booking.id, user, reason='Plans changed')

        assert booking.status == BookingStatus.CANCELLED
        assert booking.cancellation_fee == Decimal('404.00')
        assert booking.refund_amount == Decimal('0.00')
        assert booking.refund_status == RefundStatus.NOT_APPLICABLE

    def test_cancel_paid_creates_refund(self, user, booking):
        booking.payment_status = PaymentStatus.PAID
        booking.paid_amount = booking.total_amount
        booking.save()

        booking = BookingService.cancel_booking(booking.id, user)

        assert booking.refund_amount == Decimal('3636.00')
        assert booking.refund_status == RefundStatus.PENDING
        assert booking.transactions.get(type=TransactionType.REFUND).amount == Decimal('3636.00')

    def test_cancel_too_late(self, user, booking):
        booking.pickup_date = timezone.now() + timedelta(hours=12)
        booking.save()

        with pytest.raises(BookingNotCancellableError):
            BookingService.cancel_booking(booking.id, user)

    def test_cancel_by_stranger(self, other_user, booking):
        with pytest.raises(InsufficientPermissionsError):
            BookingService.cancel_booking(booking.id, other_user)

    def test_cancel_frees_car(self, user, car, booking):
        car.availability = Availability.BOOKED
        car.save()

        BookingService.cancel_booking(booking.id, user)

        car.refresh_from_db()
        assert car.availability == Availability.AVAILABLE


@pytest.mark.django_db
class TestCancellationPolicy:

    def test_fee_more_than_48_hours(self, booking):
        now = booking.pickup_date - timedelta(hours=49)
        assert booking.calculate_cancellation_fee(now) == Decimal('404.00')

    def test_fee_at_48_hours(self, booking):
        now = booking.pickup_date - timedelta(hours=48)
        assert booking.calculate_cancellation_fee(now) == Decimal('1010.00')

    def test_fee_at_30_hours(self, booking):
        now = booking.pickup_date - timedelta(hours=30)
        assert booking.calculate_cancellation_fee(now) == Decimal('1010.00')

    def test_fee_at_24_hours(self, booking):
        now = booking.pickup_date - timedelta(hours=24)
        assert booking.calculate_cancellation_fee(now) == Decimal('2020.00')

    def test_cancellable_at_exactly_24_hours(self, booking):
        now = booking.pickup_date - timedelta(hours=24)
        assert booking.can_be_cancelled(now) is True

    def test_not_cancellable_just_under_24_hours(self, booking):
        now = booking.pickup_date - timedelta(hours=24) + timedelta(seconds=1)
        assert booking.can_be_cancelled(now) is False

    def test_cancel_at_24_hours_charges_half(self, user, booking):
        now = booking.pickup_date - timedelta(hours=24)

        booking = BookingService.cancel_booking(booking.id, user, now=now)

        assert booking.status == BookingStatus.CANCELLED
        assert booking.cancellation_fee == Decimal('2020.00')


@pytest.mark.django_db
class TestUpdateStatus:

    def test_cancel_paid_booking_refunds(self, admin_user, booking):
        booking.status = BookingStatus.CONFIRMED
        booking.payment_status = PaymentStatus.PAID
        booking.paid_amount = booking.total_amount
        booking.save()

        booking = BookingService.update_status(booking.id, BookingStatus.CANCELLED, performed_by=admin_user)

        assert booking.cancellation_fee == Decimal('404.00')
        assert booking.refund_amount == Decimal('3636.00')
        assert booking.refund_status == RefundStatus.PENDING
        assert booking.transactions.get(type=TransactionType.REFUND).amount == Decimal('3636.00')

    def test_cancel_unpaid_booking_charges_fee(self, admin_user, booking):
        booking = BookingService.update_status(booking.id, BookingStatus.CANCELLED, performed_by=admin_user)

        assert booking.cancellation_fee == Decimal('404.00')
        assert booking.refund_amount == Decimal('0.00')
        assert booking.refund_status == RefundStatus.NOT_APPLICABLE
        assert not booking.transactions.filter(type=TransactionType.REFUND).exists()

    def test_invalid_transition(self, admin_user, booking):
        with pytest.raises(InvalidStatusTransitionError):
            BookingService.update_status(booking.id, BookingStatus.ACTIVE, performed_by=admin_user)

    def test_pickup_records_readings(self, admin_user, car, booking):
        BookingService.update_status(booking.id, BookingStatus.CONFIRMED, performed_by=admin_user)
        booking = BookingService.update_status(booking.id, BookingStatus.ACTIVE, performed_by=admin_user)

        assert booking.confirmed_at is not None
        assert booking.picked_up_at is not None
        assert booking.mileage_at_pickup == 12000
        assert booking.fuel_at_pickup == 100
        car.refresh_from_db()
        assert car.availability == Availability.BOOKED

    def test_complete_updates_totals(self, admin_user, user, car, active_booking):
        BookingService.update_status(active_booking.id, BookingStatus.COMPLETED, performed_by=admin_user)

        car.refresh_from_db()
        user.refresh_from_db()
        assert car.total_bookings == 1
        assert car.total_revenue == Decimal('4040.00')
        assert car.availability == Availability.AVAILABLE
        assert user.total_spent == Decimal('4040.00')

    def test_owner_is_notified(self, admin_user, user, booking):
        BookingService.update_status(booking.id, BookingStatus.CONFIRMED, performed_by=admin_user)

        assert Notification.objects.filter(user=user, title='Booking Status Updated').exists()


# =============================================================================
# Return, review, calendar
# =============================================================================

@pytest.mark.django_db
class TestProcessReturn:

    def test_extra_km_and_fuel_charges(self, admin_user, user, car, active_booking):
        booking = BookingService.process_return(
            active_booking.id,
            performed_by=admin_user,
            mileage_at_dropoff=12500,
            fuel_level=50,
        )

        assert booking.status == BookingStatus.COMPLETED
        assert booking.extra_kilometers == 200
        assert booking.extra_km_charges == Decimal('2000.00')
        assert booking.total_amount == Decimal('8540.00')

        adjustment = booking.transactions.get(type=TransactionType.SECURITY_DEPOSIT_ADJUSTMENT)
        assert adjustment.amount == Decimal('4500.00')

        car.refresh_from_db()
        assert car.current_mileage == 12500
        assert car.fuel_level == 50
        assert car.total_revenue == Decimal('8540.00')

    def test_damages_and_extra_charges(self, admin_user, active_booking):
        booking = BookingService.process_return(
            active_booking.id,
            performed_by=admin_user,
            mileage_at_dropoff=12100,
            fuel_level=100,
            damages=[{'description': 'Scratch on bumper', 'severity': 'minor', 'repair_cost': '1500'}],
            extra_charges=[{'description': 'Cleaning', 'amount': '300'}],
        )

        assert booking.damages.get().status == 'reported'
        assert booking.charges.get(description='Cleaning').type == ChargeType.PENALTY
        assert booking.total_amount == Decimal('4340.00')

    def test_not_active(self, admin_user, booking):
        with pytest.raises(InvalidStatusTransitionError):
            BookingService.process_return(booking.id, performed_by=admin_user, mileage_at_dropoff=1, fuel_level=1)


@pytest.mark.django_db
class TestAddReview:

    def test_review_updates_car_rating(self, user, car, completed_booking):
        BookingService.add_review(completed_booking.id, user, rating=4, categories={'cleanliness': 5})

        car.refresh_from_db()
        assert car.rating_count == 1
        assert car.rating_average == Decimal('4.00')
        assert car.rating_breakdown['cleanliness'] == 5

    def test_only_once(self, user, completed_booking):
        BookingService.add_review(completed_booking.id, user, rating=5)

        with pytest.raises(ReviewNotAllowedError, match='already reviewed'):
            BookingService.add_review(completed_booking.id, user, rating=3)

    def test_not_completed(self, user, booking):
        with pytest.raises(ReviewNotAllowedError):
            BookingService.add_review(booking.id, user, rating=5)


@pytest.mark.django_db
class TestBookingCalendar:

    def test_booked_days(self, car, booking):
        booking.status = BookingStatus.CONFIRMED
        booking.save()
        local_pickup = timezone.localtime(booking.pickup_date)

        data = BookingService.get_booking_calendar(car.id, month=local_pickup.month, year=local_pickup.year)
        day = data['calendar'][local_pickup.day - 1]

        assert day['is_booked'] is True
        assert day['booking_info']['booking_number'] == booking.booking_number
        assert data['bookings'] == 1

    def test_pending_bookings_do_not_block(self, car, booking):
        local_pickup = timezone.localtime(booking.pickup_date)

        data = BookingService.get_booking_calendar(car.id, month=local_pickup.month, year=local_pickup.year)

        assert not any(day['is_booked'] for day in data['calendar'])

    def test_invalid_month(self, car):
        with pytest.raises(InvalidBookingDatesError):
            BookingService.get_booking_calendar(car.id, month=13, year=2030)


# =============================================================================
# Extensions
# =============================================================================

@pytest.mark.django_db
class TestExtensions:

    def test_request_and_approve(self, user, admin_user, active_booking):
        new_dropoff = active_booking.dropoff_date + timedelta(days=2)
        extension = ExtensionService.request_extension(active_booking.id, user, new_dropoff, reason='Trip extended')

        assert extension.status == ExtensionStatus.PENDING
        assert extension.extension_days == 2
        assert extension.extension_cost == Decimal('2000.00')

        ExtensionService.review_extension(extension.id, reviewed_by=admin_user, approve=True)

        booking = Booking.objects.get(id=active_booking.id)
        assert booking.dropoff_date == new_dropoff
        assert booking.total_days == 5
        assert booking.total_amount == Decimal('6040.00')

    def test_approve_after_booking_completed(self, user, admin_user, active_booking):
        original_dropoff = active_booking.dropoff_date
        extension = ExtensionService.request_extension(
            active_booking.id, user, original_dropoff + timedelta(days=2),
        )
        Booking.objects.filter(id=active_booking.id).update(status=BookingStatus.COMPLETED)

        with pytest.raises(ExtensionError, match='no longer active'):
            ExtensionService.review_extension(extension.id, reviewed_by=admin_user, approve=True)

        booking = Booking.objects.get(id=active_booking.id)
        assert booking.dropoff_date == original_dropoff
        assert booking.total_amount == Decimal('4040.00')
        extension.refresh_from_db()
        assert extension.status == ExtensionStatus.PENDING

    def test_reject_keeps_dates(self, user, admin_user, active_booking):
        original_dropoff = active_booking.dropoff_date
        extension = ExtensionService.request_extension(
            active_booking.id, user, original_dropoff + timedelta(days=1),
        )

        extension = ExtensionService.review_extension(extension.id, reviewed_by=admin_user, approve=False)

        assert extension.status == ExtensionStatus.REJECTED
        assert Booking.objects.get(id=active_booking.id).dropoff_date == original_dropoff

    def test_new_date_must_be_later(self, user, active_booking):
        with pytest.raises(ExtensionError):
            ExtensionService.request_extension(active_booking.id, user, active_booking.dropoff_date)

    def test_car_taken_after_dropoff(self, user, other_user, car, active_booking):
        Booking.objects.create(
            user=other_user,
            car=car,
            pickup_date=active_booking.dropoff_date + timedelta(days=1),
            dropoff_date=active_booking.dropoff_date + timedelta(days=2),
            total_days=1,
            base_amount=Decimal('1000.00'),
            total_amount=Decimal('1180.00'),
        )

        with pytest.raises(ExtensionError, match='not available'):
            ExtensionService.request_extension(
                active_booking.id, user, active_booking.dropoff_date + timedelta(days=3),
            )


# =============================================================================
# Payments
# =============================================================================

@pytest.mark.django_db
class TestRecordPayment:

    def test_full_payment_confirms(self, admin_user, booking):
        PaymentService.record_payment(booking.id, performed_by=admin_user, amount='4040.00', method=PaymentMethod.CARD)

        booking.refresh_from_db()
        assert booking.payment_status == PaymentStatus.PAID
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.confirmed_at is not None

    def test_partial_payment(self, admin_user, booking):
        PaymentService.record_payment(booking.id, performed_by=admin_user, amount='1000.00', method=PaymentMethod.CASH)

        booking.refresh_from_db()
        assert booking.payment_status == PaymentStatus.PARTIAL
        assert booking.status == BookingStatus.PENDING

    def test_wallet_payment_debits_wallet(self, user, booking):
        User.objects.filter(pk=user.pk).update(wallet_balance=Decimal('5000.00'))

        PaymentService.record_payment(booking.id, performed_by=user, amount='4040.00', method=PaymentMethod.WALLET)

        user.refresh_from_db()
        assert user.wallet_balance == Decimal('960.00')

    def test_insufficient_wallet(self, user, booking):
        with pytest.raises(InsufficientWalletBalanceError):
            PaymentService.record_payment(booking.id, performed_by=user, amount='100.00', method=PaymentMethod.WALLET)

    def test_owner_cannot_record_card_payment(self, user, booking):
        with pytest.raises(InsufficientPermissionsError):
            PaymentService.record_payment(booking.id, performed_by=user, amount='100.00', method=PaymentMethod.CARD)

    def test_overpayment(self, admin_user, booking):
        with pytest.raises(PaymentError):
            PaymentService.record_payment(booking.id, performed_by=admin_user, amount='5000.00', method=PaymentMethod.CARD)


@pytest.mark.django_db
class TestUPIPaymentGenerator:

    def test_upi_string(self):
        upi = UPIPaymentGenerator.generate_upi_string(
            'rentals@okbank', Decimal('1180'), payee_name='Car Rental', note='Booking BOOK1',
        )
        assert upi == 'upi://pay?pa=rentals%40okbank&pn=Car%20Rental&am=1180.00&cu=INR&tn=Booking%20BOOK1'

    @override_settings(UPI_VPA='rentals@okbank')
    def test_generate_for_booking(self, booking):
        payload = UPIPaymentGenerator.generate_for_booking(booking)

        assert payload['amount'] == Decimal('4040.00')
        assert 'am=4040.00' in payload['upi_string']
        assert payload['qr_code'].startswith('data:image/png;base64,')

    @override_settings(UPI_VPA='')
    def test_not_configured(self, booking):
        with pytest.raises(QRGenerationError):
            UPIPaymentGenerator.generate_for_booking(booking)


@pytest.mark.django_db
class TestInvoice:

    def test_invoice_lines(self, booking):
        invoice = InvoiceService.get_invoice(booking)

        assert invoice['invoice_number'] == booking.invoice_number
        assert invoice['line_items'][0]['amount'] == Decimal('3000.00')
        assert invoice['total_amount'] == Decimal('4040.00')
        assert booking.invoice_number in invoice['text']
