"""
Booking Lifecycle Module
========================

This module provides the business logic for a booking from creation to
completion: pricing a new booking, cancelling it, moving it through the
status workflow, processing the car return and collecting the review.

Classes:
    BookingService: Creates, lists, cancels, completes and reviews bookings.

Example:
    Booking a car for three days with a promo code::

        from apps.bookings.services import BookingService

        booking = BookingService.create_booking(
            user=request.user,
            car_id=car.id,
            pickup_date=pickup,
            dropoff_date=pickup + timedelta(days=3),
            additional_services=[{'service': 'gps', 'price': '200.00', 'quantity': 1}],
            promo_code='SUMMER10',
        )

        print(booking.booking_number, booking.total_amount)
"""

import calendar
import logging
from datetime import datetime, timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.accounts.models import User
from apps.cars.models import Availability, Car, CarStatus
from apps.notifications.models import NotificationCategory, NotificationType
from apps.notifications.services import create_notification, notify_admins, send_templated_email
from apps.offers.services import (
    OfferServiceError,
    check_offer,
    find_offer_by_code,
    record_offer_usage,
)

from ..exceptions import (
    BookingNotCancellableError,
    BookingNotFoundError,
    CarUnavailableError,
    InsufficientPermissionsError,
    InvalidBookingDatesError,
    InvalidStatusTransitionError,
    ReviewNotAllowedError,
)
from ..models import (
    AdditionalService,
    Booking,
    BookingCharge,
    BookingStatus,
    CancelledBy,
    ChargeType,
    DamageReport,
    DamageStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentTransaction,
    RefundStatus,
    TransactionStatus,
    TransactionType,
)
from ..pricing import BookingPricingService

logger = logging.getLogger(__name__)


def send_booking_email(booking_id, template, subject):
    """Email the booking owner, honouring their email preference."""
    booking = Booking.objects.select_related('user', 'car').get(id=booking_id)
    if not booking.user.wants_notification('email'):
        return False
    return send_templated_email(
        to=booking.user.email,
        subject=subject,
        template=template,
        context={'booking': booking},
    )


def sync_payment_status(booking):
    """Derive partial/paid from the amounts once something has been paid."""
    if booking.paid_amount > 0:
        booking.payment_status = (
            PaymentStatus.PAID if booking.paid_amount >= booking.total_amount else PaymentStatus.PARTIAL
        )


class BookingService:
    """
    Service for the booking lifecycle.

    Every mutating method runs in a database transaction and locks the
    booking row (and the car or user rows it touches) with SELECT FOR
    UPDATE, so concurrent requests on the same booking are serialised.

    Notifications are created inside the transaction. Emails are sent
    only after it commits.

    Methods:
        create_booking: Validate, price and store a new booking.
        list_user_bookings: A customer's bookings.
        list_all_bookings: Admin listing with filters.
        get_booking: One booking, for its owner or an admin.
        get_upcoming_bookings: Pending or confirmed bookings not yet started.
        cancel_booking: Cancel with fee and refund computation.
        update_status: Admin status change following the transition table.
        process_return: Inspect the returned car and complete the booking.
        add_review: Rate a completed booking.
        get_booking_calendar: Day-by-day occupancy of a car for a month.

    Example:
        Admin completing a rental::

            BookingService.update_status(
                booking_id=booking.id,
                status=BookingStatus.COMPLETED,
                performed_by=admin,
            )
    """

    @staticmethod
    def create_booking(
        user,
        car_id,
        pickup_date,
        dropoff_date,
        pickup_location=None,
        dropoff_location=None,
        driver_details=None,
        additional_services=None,
        promo_code='',
        payment_method=PaymentMethod.CARD,
        insurance_type=None,
        fuel_policy=None,
        special_requests='',
        now=None,
    ):
        """
        Create a booking and compute its price.

        The checks run in a fixed order and the first failure wins:
            1. Dropoff must be after pickup.
            2. Pickup must be at least ``MIN_PICKUP_LEAD_HOURS`` away.
            3. The car must exist and be active.
            4. No open booking may overlap the range.

        Pricing:
            - ``base = car.calculate_rental_price(total_days)``
            - services: ``price x quantity`` each
            - discount from the promo code, computed on ``base + services``
            - ``tax = GST_RATE x (base + services - discount)``
            - ``total = base + services + tax - discount + deposit``

        A promo code that is unknown or does not qualify is ignored and the
        booking is created at full price.

        Args:
            user (User): The customer making the booking.
            car_id (UUID): The car being booked.
            pickup_date (datetime): Start of the rental.
            dropoff_date (datetime): End of the rental.
            pickup_location (dict, optional): Location type and address.
            dropoff_location (dict, optional): Location type and address.
            driver_details (dict, optional): Name, email, phone, age and
                licence number of the driver.
            additional_services (list[dict], optional): Items with
                ``service``, ``price`` and ``quantity``.
            promo_code (str, optional): Offer code, case-insensitive.
            payment_method (str, optional): PaymentMethod value.
                Defaults to card.
            insurance_type (str, optional): InsuranceType value.
            fuel_policy (str, optional): FuelPolicy value.
            special_requests (str, optional): Free text for the branch.
            now (datetime, optional): Reference time, defaults to now.

        Returns:
            Booking: The created booking, status pending.

        Raises:
            InvalidBookingDatesError: If the range is invalid or starts too soon.
            CarUnavailableError: If the car is missing, inactive or taken.

        Side Effects:
            - Stores one AdditionalService row per service.
            - Stores a discount charge and an OfferUsage when a promo applies.
            - Stores the GST tax charge.
            - Sets ``car.last_booked``.
            - Notifies the customer and the admins, then emails the customer.
        """
        now = now or timezone.now()

        if dropoff_date <= pickup_date:
            raise InvalidBookingDatesError("Dropoff date must be after pickup date")

        lead_hours = settings.MIN_PICKUP_LEAD_HOURS
        if pickup_date < now + timedelta(hours=lead_hours):
            raise InvalidBookingDatesError(
                f"Pickup must be at least {lead_hours} hours from now"
            )

        with transaction.atomic():
            try:
                car = Car.objects.select_for_update().get(id=car_id)
            except Car.DoesNotExist:
                raise CarUnavailableError("Car not found")

            if car.status != CarStatus.ACTIVE:
                raise CarUnavailableError("Car is not available for booking")

            if not car.is_available_for_dates(pickup_date, dropoff_date):
                raise CarUnavailableError("Car is not available for the selected dates")

            services = additional_services or []
            total_days = BookingPricingService.total_days(pickup_date, dropoff_date)
            base_amount = car.calculate_rental_price(total_days)
            services_amount = BookingPricingService.services_total(services)
            subtotal = base_amount + services_amount

            offer = None
            discount_amount = Decimal('0.00')
            if promo_code:
                try:
                    offer = find_offer_by_code(promo_code)
                    check_offer(offer=offer, amount=subtotal, days=total_days, car=car, user=user)
                    discount_amount = offer.calculate_discount(
                        subtotal,
                        days=total_days,
                        price_per_day=car.price_per_day,
                    )
                except OfferServiceError as e:
                    logger.info("Ignoring promo code %s for %s: %s", promo_code, user.email, e)
                    offer = None

            tax_amount = BookingPricingService.calculate_tax(subtotal - discount_amount)
            total_amount = BookingPricingService.calculate_total(
                base_amount=base_amount,
                tax_amount=tax_amount,
                security_deposit=car.security_deposit,
                services_amount=services_amount,
                discount_amount=discount_amount,
            )

            fields = {}
            if pickup_location:
                fields['pickup_location'] = pickup_location
            if dropoff_location:
                fields['dropoff_location'] = dropoff_location
            if insurance_type:
                fields['insurance_type'] = insurance_type
            if fuel_policy:
                fields['fuel_policy'] = fuel_policy

            booking = Booking.objects.create(
                user=user,
                car=car,
                pickup_date=pickup_date,
                dropoff_date=dropoff_date,
                total_days=total_days,
                driver_details=driver_details or {},
                base_amount=base_amount,
                security_deposit=car.security_deposit,
                discount_amount=discount_amount,
                tax_amount=tax_amount,
                total_amount=total_amount,
                payment_method=payment_method,
                promo_code=offer.code if offer else '',
                offer=offer,
                special_requests=special_requests,
                **fields,
            )

            for service in services:
                AdditionalService.objects.create(
                    booking=booking,
                    service=service['service'],
                    quantity=int(service.get('quantity', 1)),
                    price=Decimal(str(service['price'])),
                )

            if offer:
                BookingCharge.objects.create(
                    booking=booking,
                    description=f"Promo Code: {offer.code}",
                    amount=discount_amount,
                    type=ChargeType.DISCOUNT,
                )
                record_offer_usage(offer=offer, user=user, booking=booking, discount=discount_amount)

            BookingCharge.objects.create(
                booking=booking,
                description=BookingPricingService.tax_label(),
                amount=tax_amount,
                type=ChargeType.TAX,
            )

            car.last_booked = now
            car.save(update_fields=['last_booked', 'updated_at'])

            metadata = {'booking_id': str(booking.id), 'booking_number': booking.booking_number}
            create_notification(
                user=user,
                title='Booking Created!',
                message=(
                    f"Your booking #{booking.booking_number} has been created. "
                    "Please complete payment to confirm."
                ),
                type=NotificationType.BOOKING,
                category=NotificationCategory.SUCCESS,
                metadata=metadata,
            )
            notify_admins(
                title='New Booking Request',
                message=f"New booking #{booking.booking_number} from {user.get_display_name()}",
                metadata={**metadata, 'user_id': str(user.id)},
            )

            booking_id = booking.id
            transaction.on_commit(lambda: send_booking_email(
                booking_id, 'booking_confirmation', f"Booking Confirmation #{booking.booking_number}"
            ))

        logger.info(
            "Booking %s created by %s for car %s (total %s)",
            booking.booking_number, user.email, car.id, total_amount,
        )
        return booking

    @staticmethod
    def list_user_bookings(user, status=None):
        """
        A customer's bookings, newest first.

        Args:
            user (User): Booking owner.
            status (str, optional): Only bookings with this status.

        Returns:
            QuerySet[Booking]
        """
        bookings = Booking.objects.filter(user=user).select_related('car')
        if status:
            bookings = bookings.filter(status=status)
        return bookings.order_by('-created_at')

    @staticmethod
    def list_all_bookings(status=None, payment_status=None, search=None, date_from=None, date_to=None):
        """
        All bookings for the admin console.

        Args:
            status (str, optional): Booking status filter.
            payment_status (str, optional): Payment status filter.
            search (str, optional): Matches booking number, customer name
                or email, car make, model or licence plate.
            date_from (date, optional): Pickup on or after this date.
            date_to (date, optional): Pickup on or before this date.

        Returns:
            QuerySet[Booking]
        """
        bookings = Booking.objects.select_related('car', 'user')

        if status:
            bookings = bookings.filter(status=status)
        if payment_status:
            bookings = bookings.filter(payment_status=payment_status)
        if search:
            bookings = bookings.filter(
                Q(booking_number__icontains=search)
                | Q(user__name__icontains=search)
                | Q(user__email__icontains=search)
                | Q(car__make__icontains=search)
                | Q(car__model__icontains=search)
                | Q(car__license_plate__icontains=search)
            )
        if date_from:
            bookings = bookings.filter(pickup_date__date__gte=date_from)
        if date_to:
            bookings = bookings.filter(pickup_date__date__lte=date_to)

        return bookings.order_by('-created_at')

    @staticmethod
    def get_booking(booking_id, user):
        """
        Fetch a booking for its owner or an admin.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            InsufficientPermissionsError: If the user is neither owner nor admin.
        """
        try:
            booking = (
                Booking.objects
                .select_related('car', 'user', 'offer')
                .prefetch_related('additional_services', 'charges', 'damages', 'extension_requests', 'transactions')
                .get(id=booking_id)
            )
        except Booking.DoesNotExist:
            raise BookingNotFoundError()

        if booking.user_id != user.id and not user.is_admin:
            raise InsufficientPermissionsError()
        return booking

    @staticmethod
    def get_upcoming_bookings(user, now=None):
        """Pending or confirmed bookings of the user that have not started, soonest first."""
        return Booking.objects.upcoming(user=user, now=now)

    @staticmethod
    def _lock_booking(booking_id):
        try:
            return Booking.objects.select_for_update().select_related('car', 'user').get(id=booking_id)
        except Booking.DoesNotExist:
            raise BookingNotFoundError()

    @staticmethod
    def _apply_cancellation(booking, now, cancelled_by):
        """
        Mark ``booking`` cancelled with its fee and refund. Returns the fee.

        A paid booking gets ``total - fee`` back through a pending refund
        transaction; anything else has no refund.
        """
        fee = booking.calculate_cancellation_fee(now)
        booking.status = BookingStatus.CANCELLED
        booking.cancelled_by = cancelled_by
        booking.cancellation_fee = fee
        booking.cancelled_at = now

        if booking.payment_status == PaymentStatus.PAID:
            booking.refund_amount = max(booking.total_amount - fee, Decimal('0.00'))
            booking.refund_status = RefundStatus.PENDING
            PaymentTransaction.objects.create(
                booking=booking,
                transaction_id=PaymentTransaction.new_transaction_id('RFD'),
                amount=booking.refund_amount,
                method=booking.payment_method,
                type=TransactionType.REFUND,
                status=TransactionStatus.PENDING,
            )
        else:
            booking.refund_amount = Decimal('0.00')
            booking.refund_status = RefundStatus.NOT_APPLICABLE
        return fee

    @staticmethod
    def cancel_booking(booking_id, user, reason='', now=None):
        """
        Cancel a booking at least 24 hours before pickup.

        Fee schedule (share of the total):
            - more than 48 hours before pickup: 10%
            - more than 24 hours before pickup: 25%
            - otherwise: 50%

        A paid booking is refunded ``total - fee``. The refund is recorded
        as a pending refund transaction for the payments team to execute.

        Args:
            booking_id (UUID): Booking to cancel.
            user (User): Owner or admin requesting the cancellation.
            reason (str, optional): Why the booking is cancelled.
            now (datetime, optional): Reference time.

        Returns:
            Booking: The cancelled booking.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            InsufficientPermissionsError: If the user is neither owner nor admin.
            BookingNotCancellableError: If the booking is past the window
                or no longer pending/confirmed.
        """
        now = now or timezone.now()

        with transaction.atomic():
            booking = BookingService._lock_booking(booking_id)
            is_owner = booking.user_id == user.id
            if not is_owner and not user.is_admin:
                raise InsufficientPermissionsError()

            if not booking.can_be_cancelled(now):
                raise BookingNotCancellableError("Booking cannot be cancelled at this time")

            fee = BookingService._apply_cancellation(
                booking, now, CancelledBy.USER if is_owner else CancelledBy.ADMIN
            )
            booking.cancellation_reason = reason or ''
            booking.save()
            Car.objects.filter(pk=booking.car_id).update(availability=Availability.AVAILABLE)

            create_notification(
                user=booking.user,
                title='Booking Cancelled',
                message=f"Your booking #{booking.booking_number} has been cancelled.",
                type=NotificationType.BOOKING,
                category=NotificationCategory.WARNING,
                metadata={
                    'booking_id': str(booking.id),
                    'cancellation_fee': str(fee),
                    'refund_amount': str(booking.refund_amount),
                },
            )

            transaction.on_commit(lambda: send_booking_email(
                booking.id, 'booking_cancellation', f"Booking Cancelled #{booking.booking_number}"
            ))

        logger.info(
            "Booking %s cancelled by %s (fee %s, refund %s)",
            booking.booking_number, user.email, fee, booking.refund_amount,
        )
        return booking

    @staticmethod
    def _complete(booking, now, mileage=None, fuel_level=None):
        """Completion side effects on the booking, its car and its customer."""
        booking.status = BookingStatus.COMPLETED
        booking.dropped_off_at = now
        booking.completed_at = now

        car_updates = {
            'availability': Availability.AVAILABLE,
            'total_bookings': F('total_bookings') + 1,
            'total_revenue': F('total_revenue') + booking.total_amount,
            'updated_at': now,
        }
        if mileage is not None:
            car_updates['current_mileage'] = mileage
        if fuel_level is not None:
            car_updates['fuel_level'] = fuel_level
        Car.objects.filter(pk=booking.car_id).update(**car_updates)

        User.objects.filter(pk=booking.user_id).update(total_spent=F('total_spent') + booking.total_amount)

    @staticmethod
    def update_status(booking_id, status, performed_by, mileage=None, fuel_level=None, now=None):
        """
        Move a booking to a new status.

        Allowed transitions:
            - pending -> confirmed, cancelled
            - confirmed -> active, cancelled, no_show
            - active -> completed, disputed
            - disputed -> completed

        Side effects by target status:
            - confirmed: stamps ``confirmed_at``.
            - active: stamps ``picked_up_at``, stores the pickup mileage and
              fuel (from the arguments or the car's current readings) and
              marks the car booked.
            - completed: stamps the dropoff and completion times, frees the
              car, adds the booking to the car's and customer's totals.
            - cancelled: charges the cancellation fee and queues the refund
              the same way ``cancel_booking`` does, then frees the car.
            - no_show: frees the car.

        Args:
            booking_id (UUID): Booking to update.
            status (str): Target BookingStatus value.
            performed_by (User): Admin making the change.
            mileage (int, optional): Odometer reading at pickup.
            fuel_level (int, optional): Fuel percentage at pickup.
            now (datetime, optional): Reference time.

        Returns:
            Booking: The updated booking.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            InvalidStatusTransitionError: If the transition is not allowed.
        """
        now = now or timezone.now()

        with transaction.atomic():
            booking = BookingService._lock_booking(booking_id)
            previous = booking.status

            if not booking.can_transition_to(status):
                raise InvalidStatusTransitionError(
                    f"Cannot change booking status from {previous} to {status}"
                )

            booking.status = status
            car = booking.car

            if status == BookingStatus.CONFIRMED:
                booking.confirmed_at = now
            elif status == BookingStatus.ACTIVE:
                booking.picked_up_at = now
                booking.mileage_at_pickup = mileage if mileage is not None else car.current_mileage
                booking.fuel_at_pickup = fuel_level if fuel_level is not None else car.fuel_level
                Car.objects.filter(pk=car.pk).update(availability=Availability.BOOKED, updated_at=now)
            elif status == BookingStatus.COMPLETED:
                BookingService._complete(booking, now)
            elif status in (BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
                if status == BookingStatus.CANCELLED:
                    BookingService._apply_cancellation(booking, now, CancelledBy.ADMIN)
                Car.objects.filter(pk=car.pk).update(availability=Availability.AVAILABLE, updated_at=now)

            booking.save()

            create_notification(
                user=booking.user,
                title='Booking Status Updated',
                message=f"Your booking #{booking.booking_number} status has been updated to {booking.get_status_display()}",
                type=NotificationType.BOOKING,
                metadata={'booking_id': str(booking.id), 'new_status': status},
                send_email=True,
            )

        logger.info(
            "Booking %s moved from %s to %s by %s",
            booking.booking_number, previous, status, performed_by.email,
        )
        return booking

    @staticmethod
    def process_return(
        booking_id,
        performed_by,
        mileage_at_dropoff,
        fuel_level,
        damages=None,
        extra_charges=None,
        now=None,
    ):
        """
        Inspect a returned car and complete the booking.

        Charges added on return:
            1. Extra kilometres over ``total_days x kilometer_limit`` at
               the car's ``extra_km_charge``.
            2. Fuel refill, pro rata of ``FUEL_REFILL_COST`` for the
               percentage missing compared with pickup.
            3. Extra charges entered by the inspector (type defaults to
               penalty).

        The total is recomputed afterwards. When it grew, the difference is
        recorded as a pending security deposit adjustment.

        Args:
            booking_id (UUID): Active booking being returned.
            performed_by (User): Admin doing the inspection.
            mileage_at_dropoff (int): Odometer reading.
            fuel_level (int): Fuel percentage at return.
            damages (list[dict], optional): Items with ``description``,
                ``severity`` and ``repair_cost``.
            extra_charges (list[dict], optional): Items with
                ``description``, ``amount`` and optional ``type``.
            now (datetime, optional): Reference time.

        Returns:
            Booking: The completed booking.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            InvalidStatusTransitionError: If the booking is not active.
        """
        now = now or timezone.now()

        with transaction.atomic():
            booking = BookingService._lock_booking(booking_id)
            if booking.status != BookingStatus.ACTIVE:
                raise InvalidStatusTransitionError("Booking is not active")

            car = booking.car
            previous_total = booking.total_amount

            booking.mileage_at_dropoff = mileage_at_dropoff
            booking.fuel_at_dropoff = fuel_level

            extra_km, km_fee = BookingPricingService.extra_km_fee(
                car=car,
                total_days=booking.total_days,
                mileage_at_pickup=booking.mileage_at_pickup,
                mileage_at_dropoff=mileage_at_dropoff,
            )
            if km_fee > 0:
                booking.extra_kilometers = extra_km
                booking.extra_km_charges = km_fee
                BookingCharge.objects.create(
                    booking=booking,
                    description=f"Extra kilometers ({extra_km} km)",
                    amount=km_fee,
                    type=ChargeType.FEE,
                )

            fuel_fee = BookingPricingService.fuel_refill_fee(
                fuel_at_pickup=booking.fuel_at_pickup,
                fuel_at_dropoff=fuel_level,
            )
            if fuel_fee > 0:
                BookingCharge.objects.create(
                    booking=booking,
                    description='Fuel refill charges',
                    amount=fuel_fee,
                    type=ChargeType.FEE,
                )

            for damage in damages or []:
                DamageReport.objects.create(
                    booking=booking,
                    description=damage['description'],
                    severity=damage['severity'],
                    repair_cost=Decimal(str(damage.get('repair_cost') or '0.00')),
                    status=DamageStatus.REPORTED,
                )

            for charge in extra_charges or []:
                BookingCharge.objects.create(
                    booking=booking,
                    description=charge['description'],
                    amount=Decimal(str(charge['amount'])),
                    type=charge.get('type') or ChargeType.PENALTY,
                )

            booking.total_amount = booking.calculate_total()
            if booking.total_amount > previous_total:
                PaymentTransaction.objects.create(
                    booking=booking,
                    transaction_id=PaymentTransaction.new_transaction_id('ADJ'),
                    amount=booking.total_amount - previous_total,
                    method=booking.payment_method,
                    type=TransactionType.SECURITY_DEPOSIT_ADJUSTMENT,
                    status=TransactionStatus.PENDING,
                )
            sync_payment_status(booking)

            BookingService._complete(booking, now, mileage=mileage_at_dropoff, fuel_level=fuel_level)
            booking.save()

            create_notification(
                user=booking.user,
                title='Booking Completed',
                message=(
                    f"Your booking #{booking.booking_number} has been completed. "
                    "Final invoice has been generated."
                ),
                type=NotificationType.BOOKING,
                category=NotificationCategory.SUCCESS,
                metadata={
                    'booking_id': str(booking.id),
                    'total_amount': str(booking.total_amount),
                },
                send_email=True,
            )

        logger.info(
            "Booking %s returned, inspected by %s (total %s -> %s)",
            booking.booking_number, performed_by.email, previous_total, booking.total_amount,
        )
        return booking

    @staticmethod
    def add_review(booking_id, user, rating, comment='', categories=None, now=None):
        """
        Review a completed booking and fold the rating into the car's averages.

        Args:
            booking_id (UUID): Booking being reviewed.
            user (User): Booking owner.
            rating (int): 1 to 5.
            comment (str, optional): Review text.
            categories (dict, optional): Per-category ratings such as
                ``{'cleanliness': 5, 'comfort': 4}``.
            now (datetime, optional): Reference time.

        Returns:
            Booking: The reviewed booking.

        Raises:
            BookingNotFoundError: If the user has no such booking.
            ReviewNotAllowedError: If the booking is not completed or was
                already reviewed.
        """
        with transaction.atomic():
            try:
                booking = Booking.objects.select_for_update().get(id=booking_id, user=user)
            except Booking.DoesNotExist:
                raise BookingNotFoundError()

            if booking.status != BookingStatus.COMPLETED:
                raise ReviewNotAllowedError("Only completed bookings can be reviewed")
            if booking.has_review:
                raise ReviewNotAllowedError("Booking already reviewed")

            booking.review_rating = rating
            booking.review_comment = comment or ''
            booking.review_categories = categories or {}
            booking.reviewed_at = now or timezone.now()
            booking.save(update_fields=[
                'review_rating', 'review_comment', 'review_categories', 'reviewed_at', 'updated_at',
            ])

            car = Car.objects.select_for_update().get(pk=booking.car_id)
            car.add_rating(rating, categories)

            notify_admins(
                title='New Review',
                message=(
                    f"{user.get_display_name()} left a {rating}-star review "
                    f"for booking #{booking.booking_number}"
                ),
                metadata={'booking_id': str(booking.id), 'car_id': str(car.id), 'rating': rating},
            )

        return booking

    @staticmethod
    def get_booking_calendar(car_id, month=None, year=None, now=None):
        """
        Occupancy of a car for every day of a month.

        Only confirmed and active bookings mark a day as booked. A day is
        booked when any such booking overlaps it.

        Args:
            car_id (UUID): The car.
            month (int, optional): 1-12, defaults to the current month.
            year (int, optional): Defaults to the current year.
            now (datetime, optional): Reference time for is_past/is_today.

        Returns:
            dict: month, year, calendar (one entry per day with date,
            day, weekday, is_booked, booking_info, is_past, is_today) and
            the number of bookings in the month.

        Raises:
            CarUnavailableError: If the car does not exist.
            InvalidBookingDatesError: If the month is out of range.
        """
        now = timezone.localtime(now or timezone.now())
        month = month or now.month
        year = year or now.year
        if not 1 <= month <= 12:
            raise InvalidBookingDatesError("Month must be between 1 and 12")

        if not Car.objects.exclude(status=CarStatus.DELETED).filter(id=car_id).exists():
            raise CarUnavailableError("Car not found")

        tz = timezone.get_current_timezone()
        days_in_month = calendar.monthrange(year, month)[1]
        month_start = timezone.make_aware(datetime(year, month, 1), tz)
        month_end = month_start + timedelta(days=days_in_month)

        bookings = list(
            Booking.objects
            .filter(
                car_id=car_id,
                status__in=[BookingStatus.CONFIRMED, BookingStatus.ACTIVE],
                pickup_date__lt=month_end,
                dropoff_date__gte=month_start,
            )
            .order_by('pickup_date')
        )

        today = now.date()
        days = []
        for day in range(1, days_in_month + 1):
            day_start = month_start + timedelta(days=day - 1)
            day_end = day_start + timedelta(days=1)
            current = day_start.date()

            booked = next(
                (b for b in bookings if b.pickup_date < day_end and b.dropoff_date >= day_start),
                None,
            )

            days.append({
                'date': current.isoformat(),
                'day': day,
                'weekday': current.strftime('%A'),
                'is_booked': booked is not None,
                'booking_info': (
                    {'booking_number': booked.booking_number, 'status': booked.status}
                    if booked else None
                ),
                'is_past': current < today,
                'is_today': current == today,
            })

        return {
            'month': month,
            'year': year,
            'calendar': days,
            'bookings': len(bookings),
        }
