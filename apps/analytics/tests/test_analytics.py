import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from apps.analytics.analytics import AnalyticsQueries
from apps.analytics.exceptions import InvalidDateRangeError, InvalidReportTypeError, InvalidExportTypeError
from apps.analytics.exports import export_records, render_csv, export_filename
from apps.bookings.models import ExtensionRequest
from apps.cars.models import Availability


# =============================================================================
# Dashboard
# =============================================================================

@pytest.mark.django_db
class TestDashboard:

    def test_empty_database(self):
        data = AnalyticsQueries.dashboard()

        assert data['booking_stats']['total_bookings'] == 0
        assert data['today_revenue'] == {'revenue': Decimal('0.00'), 'bookings': 0}
        assert data['revenue_last_30_days'] == []
        assert data['popular_cars'] == []

    def test_counters(self, admin_user, unverified_customer, completed_booking, cancelled_booking, pending_booking):
        data = AnalyticsQueries.dashboard()

        assert data['user_stats']['total_users'] == 3
        assert data['booking_stats']['total_bookings'] == 3
        assert data['booking_stats']['pending_bookings'] == 1
        assert data['booking_stats']['cancelled_bookings'] == 1
        assert data['car_stats']['total_cars'] == 2
        assert len(data['recent_bookings']) == 3
        assert data['recent_bookings'][0]['booking_number'] == pending_booking.booking_number

    def test_revenue_counts_completed_only(self, completed_booking, cancelled_booking, pending_booking):
        data = AnalyticsQueries.dashboard()

        assert data['today_revenue'] == {'revenue': Decimal('4040.00'), 'bookings': 1}
        assert data['month_revenue']['revenue'] == Decimal('4040.00')
        assert len(data['revenue_last_30_days']) == 1
        assert data['revenue_last_30_days'][0]['date'] == timezone.localdate()

    def test_popular_cars(self, completed_booking, pending_booking):
        data = AnalyticsQueries.dashboard()

        assert data['popular_cars'] == [{
            'car_id': completed_booking.car_id,
            'car_name': 'Honda City',
            'bookings': 1,
            'revenue': Decimal('4040.00'),
        }]

    def test_pending_actions(self, unverified_customer, pending_booking, sedan):
        ExtensionRequest.objects.create(
            booking=pending_booking,
            current_dropoff_date=pending_booking.dropoff_date,
            requested_dropoff_date=pending_booking.dropoff_date + timedelta(days=1),
            extension_days=1,
            extension_cost=Decimal('4720.00'),
        )
        sedan.availability = Availability.MAINTENANCE
        sedan.save()

        actions = AnalyticsQueries.dashboard()['pending_actions']

        assert actions == {
            'pending_bookings': 1,
            'pending_extensions': 1,
            'unverified_users': 1,
            'cars_in_maintenance': 1,
        }


# =============================================================================
# Booking stats
# =============================================================================

@pytest.mark.django_db
class TestBookingStats:

    def test_breakdowns(self, completed_booking, cancelled_booking, pending_booking):
        data = AnalyticsQueries.booking_stats()

        assert len(data['monthly_stats']) == 1
        month = data['monthly_stats'][0]
        assert (month['bookings'], month['completed'], month['cancelled']) == (3, 1, 1)
        assert month['revenue'] == Decimal('4040.00')

        categories = {row['category']: row['bookings'] for row in data['category_stats']}
        assert categories == {'sedan': 2, 'suv': 1}

        methods = [row['payment_method'] for row in data['payment_method_stats']]
        assert methods == ['card', 'upi']

    def test_summary(self, completed_booking, cancelled_booking):
        summary = AnalyticsQueries.booking_stats()['summary']

        assert summary['total_bookings'] == 2
        assert summary['completed_bookings'] == 1
        assert summary['total_revenue'] == Decimal('4040.00')

    def test_top_users(self, customer, completed_booking, pending_booking):
        top = AnalyticsQueries.booking_stats()['top_users']

        assert top[0]['email'] == customer.email
        assert top[0]['bookings'] == 2
        assert top[0]['total_spent'] == Decimal('13480.00')

    def test_date_filter_excludes_everything_in_the_past(self, completed_booking):
        yesterday = timezone.localdate() - timedelta(days=1)

        data = AnalyticsQueries.booking_stats(end_date=yesterday)

        assert data['summary']['total_bookings'] == 0

    def test_reversed_range(self):
        today = timezone.localdate()
        with pytest.raises(InvalidDateRangeError):
            AnalyticsQueries.booking_stats(start_date=today, end_date=today - timedelta(days=1))


# =============================================================================
# Reports
# =============================================================================

@pytest.mark.django_db
class TestReports:

    def test_unknown_type(self):
        with pytest.raises(InvalidReportTypeError):
            AnalyticsQueries.report('weather')

    def test_default_period(self):
        report = AnalyticsQueries.report('revenue')

        assert report['period']['end_date'] == timezone.localdate()
        assert report['period']['start_date'] == timezone.localdate() - timedelta(days=30)

    def test_revenue(self, completed_booking, cancelled_booking):
        report = AnalyticsQueries.report('revenue')

        assert report['summary'] == {
            'total_revenue': Decimal('4040.00'),
            'total_bookings': 1,
            'avg_daily_revenue': Decimal('4040.00'),
        }
        assert report['category_revenue'][0]['category'] == 'sedan'
        assert report['payment_method_revenue'][0]['payment_method'] == 'card'

    def test_bookings(self, completed_booking, cancelled_booking, pending_booking):
        report = AnalyticsQueries.report('bookings')

        assert report['summary']['total_bookings'] == 3
        assert report['summary']['conversion_rate'] == 33.33
        assert report['cancellation_analysis'] == [{
            'date': timezone.localdate(),
            'count': 1,
            'total_refund': Decimal('3636.00'),
        }]

    def test_users(self, customer, admin_user, unverified_customer):
        customer.total_spent = Decimal('2500.00')
        customer.save()

        report = AnalyticsQueries.report('users')

        assert report['summary'] == {'new_users': 3, 'verified_users': 2, 'active_users': 3}
        assert report['role_distribution'] == {'admin': 1, 'user': 2}
        assert [row['email'] for row in report['top_spenders']] == [customer.email]

    def test_cars(self, completed_booking, cancelled_booking, pending_booking):
        report = AnalyticsQueries.report('cars')

        first, second = report['utilisation']
        assert (first['car_name'], first['bookings'], first['revenue']) == ('Honda City', 2, Decimal('4040.00'))
        assert (second['car_name'], second['bookings'], second['revenue']) == ('Toyota Fortuner', 1, Decimal('0.00'))
        assert report['summary']['booked_cars'] == 2
        assert report['category_distribution'][0]['category'] == 'sedan'


# =============================================================================
# Maintenance
# =============================================================================

@pytest.mark.django_db
class TestMaintenanceTasks:

    def test_queues(self, sedan, suv):
        today = timezone.localdate()
        sedan.next_service = today - timedelta(days=1)
        sedan.insurance_provider = 'Acko'
        sedan.insurance_valid_until = today + timedelta(days=10)
        sedan.save()
        suv.current_mileage = 60000
        suv.insurance_valid_until = today + timedelta(days=90)
        suv.save()

        tasks = AnalyticsQueries.maintenance_tasks()

        assert [row['license_plate'] for row in tasks['service_due']] == ['KA01AB1234']
        assert tasks['high_mileage'][0]['current_mileage'] == 60000
        assert [row['insurance_provider'] for row in tasks['insurance_expiring']] == ['Acko']
        assert tasks['summary'] == {'service_due': 1, 'high_mileage': 1, 'insurance_expiring': 1}

    def test_expired_insurance_not_listed(self, sedan):
        sedan.insurance_valid_until = timezone.localdate() - timedelta(days=1)
        sedan.save()

        assert AnalyticsQueries.maintenance_tasks()['insurance_expiring'] == []


# =============================================================================
# Exports
# =============================================================================

@pytest.mark.django_db
class TestExports:

    def test_bookings(self, completed_booking):
        records = export_records(data_type='bookings')

        assert records[0]['booking_number'] == completed_booking.booking_number
        assert records[0]['car'] == 'Honda City'
        assert records[0]['total_amount'] == '4040.00'

    def test_unknown_type(self):
        with pytest.raises(InvalidExportTypeError):
            export_records(data_type='offers')

    def test_csv(self, sedan):
        content = render_csv('cars', export_records(data_type='cars'))
        header, row = content.strip().splitlines()

        assert header == (
            'make,model,license_plate,category,price_per_day,status,availability,'
            'total_bookings,total_revenue,rating'
        )
        assert row == 'Honda,City,KA01AB1234,sedan,1500.00,active,available,0,0.00,0.0'

    def test_filename(self):
        assert export_filename('users', 'csv').startswith('users_export_')
