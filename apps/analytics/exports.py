"""
Tabular exports of users, bookings and cars.

Each data type maps to an ordered list of (header, accessor) columns, so
the JSON and CSV renderings always agree on fields and order.
"""

import csv
import io

from django.utils import timezone

from apps.accounts.models import User
from apps.bookings.models import Booking
from apps.cars.models import Car, CarStatus

from .exceptions import InvalidExportTypeError

EXPORT_TYPES = ('users', 'bookings', 'cars')
EXPORT_FORMATS = ('json', 'csv')

COLUMNS = {
    'users': [
        ('id', lambda u: str(u.id)),
        ('name', lambda u: u.name),
        ('email', lambda u: u.email),
        ('phone', lambda u: u.phone or ''),
        ('role', lambda u: u.role),
        ('status', lambda u: u.status),
        ('email_verified', lambda u: u.email_verified),
        ('wallet_balance', lambda u: str(u.wallet_balance)),
        ('total_spent', lambda u: str(u.total_spent)),
        ('joined', lambda u: u.created_at.date().isoformat()),
    ],
    'bookings': [
        ('booking_number', lambda b: b.booking_number),
        ('user', lambda b: b.user.name or b.user.email),
        ('car', lambda b: b.car.display_name),
        ('pickup_date', lambda b: b.pickup_date.date().isoformat()),
        ('dropoff_date', lambda b: b.dropoff_date.date().isoformat()),
        ('total_days', lambda b: b.total_days),
        ('total_amount', lambda b: str(b.total_amount)),
        ('status', lambda b: b.status),
        ('payment_status', lambda b: b.payment_status),
        ('created_at', lambda b: b.created_at.date().isoformat()),
    ],
    'cars': [
        ('make', lambda c: c.make),
        ('model', lambda c: c.model),
        ('license_plate', lambda c: c.license_plate),
        ('category', lambda c: c.category),
        ('price_per_day', lambda c: str(c.price_per_day)),
        ('status', lambda c: c.status),
        ('availability', lambda c: c.availability),
        ('total_bookings', lambda c: c.total_bookings),
        ('total_revenue', lambda c: str(c.total_revenue)),
        ('rating', lambda c: f"{c.rating_average:.1f}"),
    ],
}


def _queryset(data_type):
    if data_type == 'users':
        return User.objects.order_by('created_at')
    if data_type == 'bookings':
        return Booking.objects.select_related('user', 'car').order_by('created_at')
    return Car.objects.exclude(status=CarStatus.DELETED).order_by('created_at')


def export_records(*, data_type, start_date=None, end_date=None):
    """
    Rows of one data type created within the date range.

    Returns:
        list of dicts keyed by column name

    Raises:
        InvalidExportTypeError: If data_type is unknown
    """
    if data_type not in COLUMNS:
        raise InvalidExportTypeError(f"Invalid data type: {data_type}")

    queryset = _queryset(data_type)
    if start_date:
        queryset = queryset.filter(created_at__date__gte=start_date)
    if end_date:
        queryset = queryset.filter(created_at__date__lte=end_date)

    columns = COLUMNS[data_type]
    return [{name: accessor(obj) for name, accessor in columns} for obj in queryset]


def render_csv(data_type, records):
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=[name for name, _ in COLUMNS[data_type]])
    writer.writeheader()
    writer.writerows(records)
    return output.getvalue()


def export_filename(data_type, export_format, now=None):
    now = now or timezone.now()
    stamp = timezone.localtime(now).strftime('%Y%m%d%H%M%S')
    return f"{data_type}_export_{stamp}.{export_format}"
