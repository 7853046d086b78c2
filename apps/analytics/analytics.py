"""
Analytics Module
=================

Read-only reporting queries for the admin panel. Everything here aggregates
bookings, cars, users and offers into plain dictionaries that the views
serialize without further processing.

Classes:
    AnalyticsQueries: Static methods for the dashboard, booking statistics,
        date-range reports and the fleet maintenance queue.

Revenue:
    Revenue always means the ``total_amount`` of completed bookings, dated
    by when the booking was created.

Example:
    Building the admin dashboard::

        from apps.analytics.analytics import AnalyticsQueries

        data = AnalyticsQueries.dashboard()
        print(f"Revenue today: {data['today_revenue']['revenue']}")
"""

from datetime import datetime, time, timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import Avg, Count, Q, Sum, DecimalField
from django.db.models.functions import Coalesce, TruncDate, TruncMonth
from django.utils import timezone

from apps.accounts.models import User, AccountStatus
from apps.bookings.models import Booking, BookingStatus, ExtensionRequest, ExtensionStatus
from apps.cars.models import Car, CarStatus, Availability
from apps.offers.models import Offer

from .exceptions import InvalidDateRangeError, InvalidReportTypeError

REPORT_TYPES = ('revenue', 'bookings', 'users', 'cars')

ZERO = Decimal('0.00')


def _money_sum(field='total_amount', **filter_kwargs):
    aggregate = Sum(field, filter=Q(**filter_kwargs)) if filter_kwargs else Sum(field)
    return Coalesce(aggregate, ZERO, output_field=DecimalField(max_digits=14, decimal_places=2))


def _day_bounds(day):
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    return start, start + timedelta(days=1)


def _revenue_between(start, end):
    row = Booking.objects.filter(
        status=BookingStatus.COMPLETED,
        created_at__gte=start,
        created_at__lt=end,
    ).aggregate(revenue=_money_sum(), bookings=Count('id'))
    return {'revenue': row['revenue'], 'bookings': row['bookings']}


def _daily_series(queryset):
    return [
        {'date': row['day'], 'revenue': row['revenue'], 'bookings': row['bookings']}
        for row in (
            queryset
            .annotate(day=TruncDate('created_at'))
            .values('day')
            .annotate(revenue=_money_sum(), bookings=Count('id'))
            .order_by('day')
        )
    ]


def _grouped(queryset, field, key):
    return [
        {
            key: row[field],
            'bookings': row['bookings'],
            'revenue': row['revenue'],
            'avg_booking_value': row['avg_value'] or ZERO,
        }
        for row in (
            queryset
            .values(field)
            .annotate(bookings=Count('id'), revenue=_money_sum(), avg_value=Avg('total_amount'))
            .order_by('-revenue')
        )
    ]


class AnalyticsQueries:
    """
    Aggregations behind the admin reporting endpoints.

    Methods:
        dashboard: Headline counters, recent activity and revenue snapshots.
        booking_stats: Monthly, category, payment and user breakdowns.
        report: Date-range report of one type (revenue, bookings, users, cars).
        maintenance_tasks: Cars due for service, high mileage, expiring insurance.

    Note:
        All methods return plain dictionaries and lists. Model instances only
        appear where a nested serializer renders them.
    """

    @staticmethod
    def dashboard(now=None):
        """
        Collect everything the admin dashboard shows on one screen.

        Args:
            now (datetime, optional): Reference time. Defaults to now.

        Returns:
            dict: A dictionary containing:
                - user_stats (dict): Totals from ``User.dashboard_stats``.
                - car_stats (dict): Fleet size and availability counters.
                - booking_stats (dict): Booking counts per lifecycle status.
                - recent_users (list): Ten newest accounts.
                - recent_bookings (list): Ten newest bookings.
                - revenue_last_30_days (list): Daily revenue and bookings.
                - popular_cars (list): Five most booked cars.
                - active_offers (int): Offers currently redeemable.
                - today_revenue (dict): Revenue and bookings since midnight.
                - month_revenue (dict): Revenue and bookings this month.
                - pending_actions (dict): Work waiting for an admin.
        """
        now = now or timezone.now()
        today = timezone.localdate(now)

        cars = Car.objects.exclude(status=CarStatus.DELETED)
        car_stats = cars.aggregate(
            total_cars=Count('id'),
            available_cars=Count('id', filter=Q(availability=Availability.AVAILABLE)),
            booked_cars=Count('id', filter=Q(availability=Availability.BOOKED)),
            maintenance_cars=Count('id', filter=Q(availability=Availability.MAINTENANCE)),
            featured_cars=Count('id', filter=Q(is_featured=True)),
        )

        booking_stats = Booking.objects.aggregate(
            total_bookings=Count('id'),
            pending_bookings=Count('id', filter=Q(status=BookingStatus.PENDING)),
            confirmed_bookings=Count('id', filter=Q(status=BookingStatus.CONFIRMED)),
            active_bookings=Count('id', filter=Q(status=BookingStatus.ACTIVE)),
            completed_bookings=Count('id', filter=Q(status=BookingStatus.COMPLETED)),
            cancelled_bookings=Count('id', filter=Q(status=BookingStatus.CANCELLED)),
        )

        recent_users = [
            {
                'id': user.id,
                'name': user.name,
                'email': user.email,
                'status': user.status,
                'created_at': user.created_at,
            }
            for user in User.objects.order_by('-created_at')[:10]
        ]

        popular_cars = [
            {
                'car_id': row['car_id'],
                'car_name': f"{row['car__make']} {row['car__model']}",
                'bookings': row['bookings'],
                'revenue': row['revenue'],
            }
            for row in (
                Booking.objects
                .filter(status__in=[BookingStatus.COMPLETED, BookingStatus.ACTIVE])
                .values('car_id', 'car__make', 'car__model')
                .annotate(bookings=Count('id'), revenue=_money_sum())
                .order_by('-bookings', '-revenue')[:5]
            )
        ]

        today_start, tomorrow_start = _day_bounds(today)
        month_start, _ = _day_bounds(today.replace(day=1))

        return {
            'user_stats': User.dashboard_stats(),
            'car_stats': car_stats,
            'booking_stats': booking_stats,
            'recent_users': recent_users,
            'recent_bookings': AnalyticsQueries._recent_bookings(Booking.objects.all()),
            'revenue_last_30_days': _daily_series(
                Booking.objects.filter(status=BookingStatus.COMPLETED, created_at__gte=now - timedelta(days=30))
            ),
            'popular_cars': popular_cars,
            'active_offers': Offer.objects.valid(now).count(),
            'today_revenue': _revenue_between(today_start, tomorrow_start),
            'month_revenue': _revenue_between(month_start, tomorrow_start),
            'pending_actions': {
                'pending_bookings': booking_stats['pending_bookings'],
                'pending_extensions': ExtensionRequest.objects.filter(status=ExtensionStatus.PENDING).count(),
                'unverified_users': User.objects.filter(email_verified=False).count(),
                'cars_in_maintenance': car_stats['maintenance_cars'],
            },
        }

    @staticmethod
    def _recent_bookings(queryset, limit=10):
        return [
            {
                'id': booking.id,
                'booking_number': booking.booking_number,
                'user_email': booking.user.email,
                'car_name': booking.car.display_name,
                'pickup_date': booking.pickup_date,
                'total_amount': booking.total_amount,
                'status': booking.status,
                'created_at': booking.created_at,
            }
            for booking in queryset.select_related('user', 'car').order_by('-created_at')[:limit]
        ]

    @staticmethod
    def booking_stats(start_date=None, end_date=None, now=None):
        """
        Break bookings down by month, car category, payment method and user.

        Args:
            start_date (date, optional): Only bookings created on or after.
            end_date (date, optional): Only bookings created on or before.
            now (datetime, optional): Reference time for the rolling windows.

        Returns:
            dict: monthly_stats (last 12 months), category_stats,
            payment_method_stats, daily_trend (last 30 days), top_users,
            recent_bookings and a summary.

        Raises:
            InvalidDateRangeError: If start_date is after end_date.
        """
        now = now or timezone.now()
        bookings = AnalyticsQueries._date_filtered(Booking.objects.all(), start_date, end_date)

        monthly_stats = [
            {
                'month': row['month'].strftime('%Y-%m'),
                'bookings': row['bookings'],
                'revenue': row['revenue'],
                'completed': row['completed'],
                'cancelled': row['cancelled'],
            }
            for row in (
                bookings
                .filter(created_at__gte=now - timedelta(days=365))
                .annotate(month=TruncMonth('created_at'))
                .values('month')
                .annotate(
                    bookings=Count('id'),
                    revenue=_money_sum(status=BookingStatus.COMPLETED),
                    completed=Count('id', filter=Q(status=BookingStatus.COMPLETED)),
                    cancelled=Count('id', filter=Q(status=BookingStatus.CANCELLED)),
                )
                .order_by('month')
            )
        ]

        top_users = [
            {
                'user_id': row['user_id'],
                'name': row['user__name'],
                'email': row['user__email'],
                'bookings': row['bookings'],
                'total_spent': row['total_spent'],
            }
            for row in (
                bookings
                .values('user_id', 'user__name', 'user__email')
                .annotate(bookings=Count('id'), total_spent=_money_sum())
                .order_by('-total_spent')[:10]
            )
        ]

        summary = bookings.aggregate(
            total_bookings=Count('id'),
            completed_bookings=Count('id', filter=Q(status=BookingStatus.COMPLETED)),
            cancelled_bookings=Count('id', filter=Q(status=BookingStatus.CANCELLED)),
            total_revenue=_money_sum(status=BookingStatus.COMPLETED),
            avg_booking_value=Avg('total_amount'),
        )
        summary['avg_booking_value'] = summary['avg_booking_value'] or ZERO

        return {
            'monthly_stats': monthly_stats,
            'category_stats': _grouped(bookings, 'car__category', 'category'),
            'payment_method_stats': _grouped(bookings, 'payment_method', 'payment_method'),
            'daily_trend': _daily_series(bookings.filter(created_at__gte=now - timedelta(days=30))),
            'top_users': top_users,
            'recent_bookings': AnalyticsQueries._recent_bookings(bookings),
            'summary': summary,
        }

    @staticmethod
    def _date_filtered(queryset, start_date, end_date):
        if start_date and end_date and start_date > end_date:
            raise InvalidDateRangeError("start_date must be before end_date")
        if start_date:
            queryset = queryset.filter(created_at__date__gte=start_date)
        if end_date:
            queryset = queryset.filter(created_at__date__lte=end_date)
        return queryset

    @staticmethod
    def report(report_type, start_date=None, end_date=None):
        """
        Build a date-range report.

        Args:
            report_type (str): One of ``revenue``, ``bookings``, ``users``, ``cars``.
            start_date (date, optional): Defaults to 30 days ago.
            end_date (date, optional): Defaults to today.

        Returns:
            dict: ``report_type``, ``period`` and the report body.

        Raises:
            InvalidReportTypeError: If report_type is unknown.
            InvalidDateRangeError: If start_date is after end_date.

        Example:
            Revenue for January::

                report = AnalyticsQueries.report(
                    'revenue',
                    start_date=date(2025, 1, 1),
                    end_date=date(2025, 1, 31),
                )
        """
        builders = {
            'revenue': AnalyticsQueries._revenue_report,
            'bookings': AnalyticsQueries._booking_report,
            'users': AnalyticsQueries._user_report,
            'cars': AnalyticsQueries._car_report,
        }
        if report_type not in builders:
            raise InvalidReportTypeError(
                f"Invalid report type: {report_type}. Must be one of {', '.join(REPORT_TYPES)}"
            )

        end_date = end_date or timezone.localdate()
        start_date = start_date or end_date - timedelta(days=30)
        if start_date > end_date:
            raise InvalidDateRangeError("start_date must be before end_date")

        body = builders[report_type](start_date, end_date)
        return {
            'report_type': report_type,
            'period': {'start_date': start_date, 'end_date': end_date},
            **body,
        }

    @staticmethod
    def _revenue_report(start_date, end_date):
        completed = AnalyticsQueries._date_filtered(
            Booking.objects.filter(status=BookingStatus.COMPLETED), start_date, end_date
        )
        daily = _daily_series(completed)
        total_revenue = sum((day['revenue'] for day in daily), ZERO)

        return {
            'summary': {
                'total_revenue': total_revenue,
                'total_bookings': sum(day['bookings'] for day in daily),
                'avg_daily_revenue': (total_revenue / len(daily)).quantize(Decimal('0.01')) if daily else ZERO,
            },
            'daily_revenue': daily,
            'category_revenue': _grouped(completed, 'car__category', 'category'),
            'payment_method_revenue': _grouped(completed, 'payment_method', 'payment_method'),
        }

    @staticmethod
    def _booking_report(start_date, end_date):
        bookings = AnalyticsQueries._date_filtered(Booking.objects.all(), start_date, end_date)

        distribution = [
            {'status': row['status'], 'count': row['count'], 'total_amount': row['total_amount']}
            for row in (
                bookings
                .values('status')
                .annotate(count=Count('id'), total_amount=_money_sum())
                .order_by('status')
            )
        ]
        by_status = {row['status']: row['count'] for row in distribution}
        total = sum(by_status.values())
        completed = by_status.get(BookingStatus.COMPLETED, 0)

        cancellations = [
            {'date': row['day'], 'count': row['count'], 'total_refund': row['total_refund']}
            for row in (
                bookings
                .filter(status=BookingStatus.CANCELLED, cancelled_at__isnull=False)
                .annotate(day=TruncDate('cancelled_at'))
                .values('day')
                .annotate(count=Count('id'), total_refund=_money_sum('refund_amount'))
                .order_by('day')
            )
        ]

        return {
            'summary': {
                'total_bookings': total,
                'completed_bookings': completed,
                'cancelled_bookings': by_status.get(BookingStatus.CANCELLED, 0),
                'conversion_rate': round(completed / total * 100, 2) if total else 0.0,
            },
            'status_distribution': distribution,
            'cancellation_analysis': cancellations,
        }

    @staticmethod
    def _user_report(start_date, end_date):
        users = AnalyticsQueries._date_filtered(User.objects.all(), start_date, end_date)

        registrations = [
            {'date': row['day'], 'count': row['count']}
            for row in (
                users
                .annotate(day=TruncDate('created_at'))
                .values('day')
                .annotate(count=Count('id'))
                .order_by('day')
            )
        ]

        def distribution(field):
            return {
                row[field]: row['count']
                for row in users.values(field).annotate(count=Count('id')).order_by(field)
            }

        top_spenders = [
            {'user_id': user.id, 'name': user.name, 'email': user.email, 'total_spent': user.total_spent}
            for user in User.objects.filter(total_spent__gt=0).order_by('-total_spent')[:10]
        ]

        return {
            'summary': {
                'new_users': users.count(),
                'verified_users': users.filter(email_verified=True).count(),
                'active_users': users.filter(status=AccountStatus.ACTIVE).count(),
            },
            'registrations': registrations,
            'role_distribution': distribution('role'),
            'status_distribution': distribution('status'),
            'top_spenders': top_spenders,
        }

    @staticmethod
    def _car_report(start_date, end_date):
        in_period = Q(
            bookings__created_at__date__gte=start_date,
            bookings__created_at__date__lte=end_date,
        )
        utilisation = [
            {
                'car_id': car.id,
                'car_name': car.display_name,
                'license_plate': car.license_plate,
                'category': car.category,
                'bookings': car.period_bookings,
                'revenue': car.period_revenue,
                'rating': car.rating_average,
            }
            for car in (
                Car.objects
                .exclude(status=CarStatus.DELETED)
                .annotate(
                    period_bookings=Count('bookings', filter=in_period),
                    period_revenue=_money_sum(
                        'bookings__total_amount',
                        bookings__status=BookingStatus.COMPLETED,
                        bookings__created_at__date__gte=start_date,
                        bookings__created_at__date__lte=end_date,
                    ),
                )
                .order_by('-period_revenue', '-period_bookings')
            )
        ]

        categories = {}
        for row in utilisation:
            entry = categories.setdefault(
                row['category'],
                {'category': row['category'], 'cars': 0, 'bookings': 0, 'revenue': ZERO},
            )
            entry['cars'] += 1
            entry['bookings'] += row['bookings']
            entry['revenue'] += row['revenue']

        return {
            'summary': {
                'total_cars': len(utilisation),
                'booked_cars': sum(1 for row in utilisation if row['bookings']),
                'total_revenue': sum((row['revenue'] for row in utilisation), ZERO),
            },
            'utilisation': utilisation,
            'category_distribution': sorted(categories.values(), key=lambda entry: -entry['revenue']),
        }

    @staticmethod
    def maintenance_tasks(today=None):
        """
        Cars that need attention from the fleet team.

        Returns:
            dict: Three lists (service_due, high_mileage, insurance_expiring)
            of car rows plus a summary with their lengths.
        """
        today = today or timezone.localdate()
        cars = Car.objects.exclude(status=CarStatus.DELETED)

        def rows(queryset, *extra):
            return [
                {
                    'car_id': car.id,
                    'car_name': car.display_name,
                    'license_plate': car.license_plate,
                    **{field: getattr(car, field) for field in extra},
                }
                for car in queryset
            ]

        service_due = rows(
            cars.filter(next_service__lte=today).order_by('next_service'),
            'last_service', 'next_service',
        )
        high_mileage = rows(
            cars.filter(current_mileage__gte=settings.HIGH_MILEAGE_THRESHOLD).order_by('-current_mileage'),
            'current_mileage',
        )
        insurance_expiring = rows(
            cars.filter(
                insurance_valid_until__gte=today,
                insurance_valid_until__lte=today + timedelta(days=settings.INSURANCE_EXPIRY_WARNING_DAYS),
            ).order_by('insurance_valid_until'),
            'insurance_provider', 'insurance_valid_until',
        )

        return {
            'service_due': service_due,
            'high_mileage': high_mileage,
            'insurance_expiring': insurance_expiring,
            'summary': {
                'service_due': len(service_due),
                'high_mileage': len(high_mileage),
                'insurance_expiring': len(insurance_expiring),
            },
        }
