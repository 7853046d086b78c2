"""
Booking Payments Module
=======================

This module records payments against bookings and renders UPI payment QR
codes for the outstanding balance.

Classes:
    PaymentService: Records payments, debits wallets and confirms bookings.
    UPIPaymentGenerator: Generates UPI deep links and their QR codes.

Example:
    QR code for what is still owed on a booking::

        from apps.bookings.services import UPIPaymentGenerator

        payload = UPIPaymentGenerator.generate_for_booking(booking)
        payload['upi_string']  # "upi://pay?pa=rentals@okbank&pn=Car%20Rental&am=1180.00&cu=INR&tn=..."
        payload['qr_code']     # "data:image/png;base64,iVBORw0..."
"""

import base64
import logging
from decimal import Decimal
from io import BytesIO
from urllib.parse import quote

import qrcode
from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.accounts.models import User
from apps.notifications.models import NotificationCategory, NotificationType
from apps.notifications.services import create_notification

from ..exceptions import (
    BookingNotFoundError,
    InsufficientPermissionsError,
    InsufficientWalletBalanceError,
    PaymentError,
    QRGenerationError,
)
from ..models import (
    Booking,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    PaymentTransaction,
    TransactionStatus,
    TransactionType,
)

logger = logging.getLogger(__name__)


class PaymentService:
    """
    Service for booking payments.

    Payments arrive from several places: cash or card at the branch
    (recorded by an admin), online gateways (recorded by an admin once
    settled) and the customer's wallet (recorded by the customer).

    Methods:
        record_payment: Add a successful payment to a booking.
    """

    @staticmethod
    def record_payment(booking_id, performed_by, amount, method, transaction_id=None):
        """
        Record a payment and update the booking's payment state.

        ``payment_status`` becomes partial or paid from ``paid_amount``.
        A pending booking that becomes fully paid is confirmed.

        Args:
            booking_id (UUID): Booking being paid.
            performed_by (User): Admin, or the owner for a wallet payment.
            amount (Decimal): Amount paid in INR.
            method (str): PaymentMethod value.
            transaction_id (str, optional): Gateway or receipt reference.
                Generated when omitted.

        Returns:
            PaymentTransaction: The successful transaction.

        Raises:
            BookingNotFoundError: If the booking does not exist.
            InsufficientPermissionsError: If a non-admin pays someone else's
                booking or uses a method other than wallet.
            PaymentError: If the amount is not positive, exceeds the
                outstanding balance or the booking is closed.
            InsufficientWalletBalanceError: If the wallet cannot cover it.

        Note:
            The booking and, for wallet payments, the user row are locked
            for the duration of the transaction.
        """
        amount = Decimal(str(amount))
        now = timezone.now()

        with transaction.atomic():
            try:
                booking = Booking.objects.select_for_update().select_related('user').get(id=booking_id)
            except Booking.DoesNotExist:
                raise BookingNotFoundError()

            if not performed_by.is_admin:
                if booking.user_id != performed_by.id or method != PaymentMethod.WALLET:
                    raise InsufficientPermissionsError()

            if booking.status in (BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
                raise PaymentError(f"Cannot record a payment for a {booking.get_status_display().lower()} booking")
            if amount <= 0:
                raise PaymentError("Payment amount must be positive")
            if amount > booking.outstanding_amount:
                raise PaymentError(
                    f"Payment amount exceeds the outstanding balance of {booking.outstanding_amount}"
                )

            if method == PaymentMethod.WALLET:
                payer = User.objects.select_for_update().get(pk=booking.user_id)
                if payer.wallet_balance < amount:
                    raise InsufficientWalletBalanceError("Insufficient wallet balance")
                User.objects.filter(pk=payer.pk).update(wallet_balance=F('wallet_balance') - amount)

            payment = PaymentTransaction.objects.create(
                booking=booking,
                transaction_id=transaction_id or PaymentTransaction.new_transaction_id(),
                amount=amount,
                method=method,
                type=TransactionType.PAYMENT,
                status=TransactionStatus.SUCCESS,
            )

            booking.paid_amount += amount
            booking.payment_method = method
            booking.payment_status = (
                PaymentStatus.PAID if booking.paid_amount >= booking.total_amount else PaymentStatus.PARTIAL
            )

            confirmed = False
            if booking.payment_status == PaymentStatus.PAID and booking.status == BookingStatus.PENDING:
                booking.status = BookingStatus.CONFIRMED
                booking.confirmed_at = now
                confirmed = True

            booking.save()

            create_notification(
                user=booking.user,
                title='Payment Received',
                message=f"We received ₹{amount} for booking #{booking.booking_number}.",
                type=NotificationType.PAYMENT,
                category=NotificationCategory.SUCCESS,
                metadata={
                    'booking_id': str(booking.id),
                    'transaction_id': payment.transaction_id,
                    'amount': str(amount),
                },
            )
            if confirmed:
                create_notification(
                    user=booking.user,
                    title='Booking Confirmed',
                    message=f"Your booking #{booking.booking_number} is confirmed.",
                    type=NotificationType.BOOKING,
                    category=NotificationCategory.SUCCESS,
                    metadata={'booking_id': str(booking.id)},
                    send_email=True,
                )

        logger.info(
            "Payment %s of %s recorded for booking %s via %s",
            payment.transaction_id, amount, booking.booking_number, method,
        )
        return payment


class UPIPaymentGenerator:
    """
    Generate UPI payment QR codes.

    A UPI deep link opens any UPI app with the payee, amount and note
    filled in. Encoded in a QR code it can be scanned at the counter.

    Format::

        upi://pay?pa=<vpa>&pn=<payee name>&am=<amount>&cu=INR&tn=<note>

    Fields:
        - pa: Payee virtual payment address
        - pn: Payee name
        - am: Amount with two decimals
        - cu: Currency, always INR
        - tn: Transaction note

    Methods:
        generate_upi_string: Build the deep link.
        generate_qr_image: Render a link as a QR code image.
        generate_qr_png: Render a link as PNG bytes.
        generate_for_booking: Link and base64 QR for a booking's balance.

    Note:
        Requires the ``qrcode`` library with PIL support.
    """

    @staticmethod
    def generate_upi_string(vpa, amount, payee_name='', note=''):
        """
        Build a UPI deep link.

        Args:
            vpa (str): Payee VPA, e.g. ``rentals@okbank``.
            amount (Decimal): Amount in INR.
            payee_name (str, optional): Shown to the payer.
            note (str, optional): Transaction note.

        Returns:
            str: The ``upi://pay`` link with percent-encoded values.

        Example:
            >>> UPIPaymentGenerator.generate_upi_string(
            ...     'rentals@okbank', Decimal('1180'), 'Car Rental', 'Booking BOOK1234')
            'upi://pay?pa=rentals%40okbank&pn=Car%20Rental&am=1180.00&cu=INR&tn=Booking%20BOOK1234'
        """
        params = [
            ('pa', vpa),
            ('pn', payee_name),
            ('am', f'{Decimal(amount):.2f}'),
            ('cu', 'INR'),
            ('tn', note),
        ]
        query = '&'.join(f'{key}={quote(str(value), safe="")}' for key, value in params)
        return f'upi://pay?{query}'

    @staticmethod
    def generate_qr_image(upi_string):
        """
        Render a UPI link as a QR code.

        Returns:
            PIL.Image.Image: Black on white QR code, error correction M.
        """
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(upi_string)
        qr.make(fit=True)
        return qr.make_image(fill_color="black", back_color="white")

    @staticmethod
    def generate_qr_png(upi_string):
        """
        Render a UPI link as PNG bytes.

        Raises:
            QRGenerationError: If the image cannot be rendered.
        """
        try:
            buffer = BytesIO()
            UPIPaymentGenerator.generate_qr_image(upi_string).save(buffer, format='PNG')
        except Exception as e:
            logger.exception("Failed to render UPI QR code")
            raise QRGenerationError(f"Failed to generate QR code: {e}")
        return buffer.getvalue()

    @staticmethod
    def generate_for_booking(booking):
        """
        UPI link and QR code for the outstanding balance of a booking.

        Args:
            booking (Booking): Booking with something left to pay.

        Returns:
            dict: booking_number, amount, upi_string and qr_code (PNG as a
            ``data:`` URI).

        Raises:
            PaymentError: If nothing is outstanding or the booking is closed.
            QRGenerationError: If ``UPI_VPA`` is not configured or rendering fails.
        """
        if booking.status in (BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
            raise PaymentError("Booking is not payable")

        amount = booking.outstanding_amount
        if amount <= 0:
            raise PaymentError("Booking is already fully paid")

        if not settings.UPI_VPA:
            raise QRGenerationError("UPI payments are not configured")

        upi_string = UPIPaymentGenerator.generate_upi_string(
            vpa=settings.UPI_VPA,
            amount=amount,
            payee_name=settings.UPI_PAYEE_NAME,
            note=f"Booking {booking.booking_number}",
        )
        png = UPIPaymentGenerator.generate_qr_png(upi_string)

        return {
            'booking_number': booking.booking_number,
            'amount': amount,
            'upi_string': upi_string,
            'qr_code': 'data:image/png;base64,' + base64.b64encode(png).decode('ascii'),
        }
