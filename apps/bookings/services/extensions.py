"""
Booking Extension Module
========================

Customers ask to keep a car longer while the rental is active. An admin
approves or rejects each request; approval moves the dropoff date and
charges the extra days at the car's daily rate.

Classes:
    ExtensionService: Request and review extensions.
"""

import logging

from django.db import transaction
from django.utils import timezone

from apps.notifications.models import NotificationCategory, NotificationType
from apps.notifications.services import create_notification, notify_admins

from ..exceptions import BookingNotFoundError, ExtensionError, ExtensionNotFoundError
from ..models import (
    Booking,
    BookingCharge,
    BookingStatus,
    ChargeType,
    ExtensionRequest,
    ExtensionStatus,
)
from ..pricing import BookingPricingService
from .booking_lifecycle import sync_payment_status

logger = logging.getLogger(__name__)


class ExtensionService:
    """
    Service for booking extensions.

    Methods:
        request_extension: Customer asks for a later dropoff.
        review_extension: Admin approves or rejects a pending request.
        list_extensions: Requests for one booking or all pending ones.
    """

    @staticmethod
    def request_extension(booking_id, user, new_dropoff_date, reason=''):
        """
        Ask to extend an active booking.

        The car must be free from the current dropoff to the requested one.
        The booking itself does not count as a conflict.

        Args:
            booking_id (UUID): The user's active booking.
            user (User): Booking owner.
            new_dropoff_date (datetime): Requested dropoff.
            reason (str, optional): Why the extension is needed.

        Returns:
            ExtensionRequest: The pending request with its days and cost.

        Raises:
            BookingNotFoundError: If the user has no such active booking.
            ExtensionError: If the date is not later, the car is taken or a
                request is already pending.
        """
        with transaction.atomic():
            try:
                booking = (
                    Booking.objects
                    .select_for_update()
                    .select_related('car')
                    .get(id=booking_id, user=user, status=BookingStatus.ACTIVE)
                )
            except Booking.DoesNotExist:
                raise BookingNotFoundError('Active booking not found.')

            if new_dropoff_date <= booking.dropoff_date:
                raise ExtensionError("New dropoff date must be after current dropoff date")

            if booking.extension_requests.filter(status=ExtensionStatus.PENDING).exists():
                raise ExtensionError("An extension request is already pending for this booking")

            car = booking.car
            if not car.is_available_for_dates(booking.dropoff_date, new_dropoff_date, exclude_booking=booking):
                raise ExtensionError("Car not available for extended period")

            days, cost = BookingPricingService.extension_cost(car, booking.dropoff_date, new_dropoff_date)

            extension = ExtensionRequest.objects.create(
                booking=booking,
                current_dropoff_date=booking.dropoff_date,
                requested_dropoff_date=new_dropoff_date,
                extension_days=days,
                extension_cost=cost,
                reason=reason or '',
            )

            notify_admins(
                title='Booking Extension Request',
                message=(
                    f"{user.get_display_name()} requested to extend booking "
                    f"#{booking.booking_number} by {days} days"
                ),
                metadata={
                    'booking_id': str(booking.id),
                    'user_id': str(user.id),
                    'extension_request_id': str(extension.id),
                },
            )
            create_notification(
                user=user,
                title='Extension Request Submitted',
                message=(
                    f"Your request to extend booking #{booking.booking_number} "
                    "has been submitted for approval."
                ),
                type=NotificationType.BOOKING,
                metadata={
                    'booking_id': str(booking.id),
                    'extension_days': days,
                    'extension_cost': str(cost),
                },
            )

        logger.info("Extension of %s by %s day(s) requested", booking.booking_number, days)
        return extension

    @staticmethod
    def review_extension(extension_id, reviewed_by, approve):
        """
        Approve or reject a pending extension.

        On approval the dropoff date moves, ``total_days`` is recomputed,
        the extension cost is added as a fee charge and the booking total
        is recomputed.

        Args:
            extension_id (UUID): Pending request.
            reviewed_by (User): Admin deciding.
            approve (bool): True to approve, False to reject.

        Returns:
            ExtensionRequest: The reviewed request.

        Raises:
            ExtensionNotFoundError: If the request does not exist.
            ExtensionError: If it was already reviewed, the booking is no
                longer active, or the car has been booked for the period in
                the meantime.
        """
        now = timezone.now()

        with transaction.atomic():
            try:
                extension = ExtensionRequest.objects.select_for_update().get(id=extension_id)
            except ExtensionRequest.DoesNotExist:
                raise ExtensionNotFoundError()

            if extension.status != ExtensionStatus.PENDING:
                raise ExtensionError("Extension request already reviewed")

            booking = Booking.objects.select_for_update().select_related('car', 'user').get(pk=extension.booking_id)

            if approve:
                if booking.status != BookingStatus.ACTIVE:
                    raise ExtensionError("Booking is no longer active")
                if not booking.car.is_available_for_dates(
                    booking.dropoff_date, extension.requested_dropoff_date, exclude_booking=booking
                ):
                    raise ExtensionError("Car not available for extended period")

                booking.dropoff_date = extension.requested_dropoff_date
                booking.total_days = BookingPricingService.total_days(booking.pickup_date, booking.dropoff_date)
                BookingCharge.objects.create(
                    booking=booking,
                    description=f"Extension ({extension.extension_days} day(s))",
                    amount=extension.extension_cost,
                    type=ChargeType.FEE,
                )
                booking.total_amount = booking.calculate_total()
                sync_payment_status(booking)
                booking.save()

            extension.status = ExtensionStatus.APPROVED if approve else ExtensionStatus.REJECTED
            extension.reviewed_by = reviewed_by
            extension.reviewed_at = now
            extension.save(update_fields=['status', 'reviewed_by', 'reviewed_at'])

            if approve:
                title = 'Extension Approved'
                message = (
                    f"Your booking #{booking.booking_number} has been extended to "
                    f"{timezone.localtime(booking.dropoff_date):%d %b %Y %H:%M}."
                )
                category = NotificationCategory.SUCCESS
            else:
                title = 'Extension Rejected'
                message = f"Your request to extend booking #{booking.booking_number} was not approved."
                category = NotificationCategory.WARNING

            create_notification(
                user=booking.user,
                title=title,
                message=message,
                type=NotificationType.BOOKING,
                category=category,
                metadata={
                    'booking_id': str(booking.id),
                    'extension_request_id': str(extension.id),
                    'extension_cost': str(extension.extension_cost),
                },
                send_email=True,
            )

        logger.info(
            "Extension %s of %s %s by %s",
            extension.id, booking.booking_number, extension.status, reviewed_by.email,
        )
        return extension

    @staticmethod
    def list_extensions(booking=None, status=None):
        """Extension requests, newest first, optionally for one booking or status."""
        extensions = ExtensionRequest.objects.select_related('booking', 'booking__user', 'reviewed_by')
        if booking is not None:
            extensions = extensions.filter(booking=booking)
        if status:
            extensions = extensions.filter(status=status)
        return extensions
