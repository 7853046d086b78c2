"""
Booking Invoice Module
======================

Builds the invoice of a booking as structured data and as plain text
rendered from ``bookings/invoice.txt``.

Classes:
    InvoiceService: Invoice data and text for a booking.
"""

from decimal import Decimal

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from ..models import ChargeType


class InvoiceService:
    """
    Service for booking invoices.

    Methods:
        get_invoice_data: Structured invoice with line items.
        render_invoice_text: Plain-text invoice.
        get_invoice: Both, for the API.
    """

    @staticmethod
    def get_invoice_data(booking):
        """
        Build the invoice for a booking.

        Line items are the rental itself, each additional service and each
        charge. Discount charges are listed with a negative amount.

        Args:
            booking (Booking): Booking with ``car`` and ``user`` loaded.

        Returns:
            dict: invoice_number, booking_number, issued_at, customer, car,
            period, line_items and the amount summary.
        """
        car = booking.car
        user = booking.user

        line_items = [{
            'description': f"Car rental ({booking.total_days} day(s))",
            'quantity': booking.total_days,
            'amount': booking.base_amount,
        }]
        for service in booking.additional_services.all():
            line_items.append({
                'description': service.get_service_display(),
                'quantity': service.quantity,
                'amount': service.total,
            })
        for charge in booking.charges.all():
            amount = -charge.amount if charge.type == ChargeType.DISCOUNT else charge.amount
            line_items.append({
                'description': charge.description,
                'quantity': 1,
                'amount': amount,
            })

        services_amount = booking.services_total()

        return {
            'invoice_number': booking.invoice_number,
            'booking_number': booking.booking_number,
            'issued_at': timezone.now(),
            'status': booking.status,
            'customer': {
                'name': user.get_display_name(),
                'email': user.email,
                'phone': user.phone or '',
            },
            'car': {
                'name': car.display_name,
                'license_plate': car.license_plate,
                'category': car.category,
            },
            'period': {
                'pickup_date': booking.pickup_date,
                'dropoff_date': booking.dropoff_date,
                'total_days': booking.total_days,
            },
            'line_items': line_items,
            'base_amount': booking.base_amount,
            'services_amount': services_amount,
            'discount_amount': booking.discount_amount,
            'tax_amount': booking.tax_amount,
            'gst_rate': Decimal(str(settings.GST_RATE)),
            'security_deposit': booking.security_deposit,
            'total_amount': booking.total_amount,
            'paid_amount': booking.paid_amount,
            'outstanding_amount': booking.outstanding_amount,
            'payment_status': booking.payment_status,
        }

    @staticmethod
    def render_invoice_text(invoice):
        """Render invoice data from get_invoice_data() as plain text."""
        return render_to_string('bookings/invoice.txt', {'invoice': invoice})

    @staticmethod
    def get_invoice(booking):
        """
        Invoice data plus its text rendering.

        Returns:
            dict: The invoice data with an extra ``text`` key.
        """
        invoice = InvoiceService.get_invoice_data(booking)
        return {**invoice, 'text': InvoiceService.render_invoice_text(invoice)}
