"""
Serializers for analytics app.

This module contains:
1. Input serializers - Query parameter and body validation
2. Response serializers - API documentation and output formatting

Input Serializers:
    DateRangeQuerySerializer - Optional start/end date pair
    ReportQuerySerializer - Report type plus date range
    ExportRequestSerializer - Data type, format and date range

Response Serializers:
    DashboardResponseSerializer - Admin dashboard
    BookingStatsResponseSerializer - Booking breakdowns
    RevenueReportSerializer, BookingReportSerializer,
    UserReportSerializer, CarReportSerializer - One per report type
    MaintenanceTasksSerializer - Fleet maintenance queue
"""

from rest_framework import serializers

from apps.accounts.serializers import UserSerializer
from apps.bookings.serializers import BookingListSerializer
from .analytics import REPORT_TYPES
from .exports import EXPORT_TYPES, EXPORT_FORMATS


def money(**kwargs):
    return serializers.DecimalField(max_digits=14, decimal_places=2, **kwargs)


# =============================================================================
# Input Serializers
# =============================================================================

class DateRangeQuerySerializer(serializers.Serializer):
    """
    Optional date range on the booking creation date.

    Query Parameters:
        start_date (date): First day included
        end_date (date): Last day included
    """

    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start_date = attrs.get('start_date')
        end_date = attrs.get('end_date')
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError({
                'start_date': 'start_date must be before end_date'
            })
        return attrs


class ReportQuerySerializer(DateRangeQuerySerializer):
    report_type = serializers.ChoiceField(choices=REPORT_TYPES)


class ExportRequestSerializer(DateRangeQuerySerializer):
    data_type = serializers.ChoiceField(choices=EXPORT_TYPES)
    format = serializers.ChoiceField(choices=EXPORT_FORMATS, default='json')


# =============================================================================
# Shared rows
# =============================================================================

class DailyRevenueSerializer(serializers.Serializer):
    date = serializers.DateField()
    revenue = money()
    bookings = serializers.IntegerField()


class RevenueSnapshotSerializer(serializers.Serializer):
    revenue = money()
    bookings = serializers.IntegerField()


class RecentBookingSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    booking_number = serializers.CharField()
    user_email = serializers.EmailField()
    car_name = serializers.CharField()
    pickup_date = serializers.DateTimeField()
    total_amount = money()
    status = serializers.CharField()
    created_at = serializers.DateTimeField()


class GroupedBookingsSerializer(serializers.Serializer):
    bookings = serializers.IntegerField()
    revenue = money()
    avg_booking_value = money()


class CategoryBookingsSerializer(GroupedBookingsSerializer):
    category = serializers.CharField()


class PaymentMethodBookingsSerializer(GroupedBookingsSerializer):
    payment_method = serializers.CharField()


# =============================================================================
# Dashboard
# =============================================================================

class UserStatsSerializer(serializers.Serializer):
    total_users = serializers.IntegerField()
    active_users = serializers.IntegerField()
    total_admins = serializers.IntegerField()
    total_verified = serializers.IntegerField()
    total_wallet_balance = money()


class CarStatsSerializer(serializers.Serializer):
    total_cars = serializers.IntegerField()
    available_cars = serializers.IntegerField()
    booked_cars = serializers.IntegerField()
    maintenance_cars = serializers.IntegerField()
    featured_cars = serializers.IntegerField()


class BookingCountsSerializer(serializers.Serializer):
    total_bookings = serializers.IntegerField()
    pending_bookings = serializers.IntegerField()
    confirmed_bookings = serializers.IntegerField()
    active_bookings = serializers.IntegerField()
    completed_bookings = serializers.IntegerField()
    cancelled_bookings = serializers.IntegerField()


class RecentUserSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    email = serializers.EmailField()
    status = serializers.CharField()
    created_at = serializers.DateTimeField()


class PopularCarSerializer(serializers.Serializer):
    car_id = serializers.UUIDField()
    car_name = serializers.CharField()
    bookings = serializers.IntegerField()
    revenue = money()


class PendingActionsSerializer(serializers.Serializer):
    pending_bookings = serializers.IntegerField()
    pending_extensions = serializers.IntegerField()
    unverified_users = serializers.IntegerField()
    cars_in_maintenance = serializers.IntegerField()


class DashboardResponseSerializer(serializers.Serializer):
    user_stats = UserStatsSerializer()
    car_stats = CarStatsSerializer()
    booking_stats = BookingCountsSerializer()
    recent_users = RecentUserSerializer(many=True)
    recent_bookings = RecentBookingSerializer(many=True)
    revenue_last_30_days = DailyRevenueSerializer(many=True)
    popular_cars = PopularCarSerializer(many=True)
    active_offers = serializers.IntegerField()
    today_revenue = RevenueSnapshotSerializer()
    month_revenue = RevenueSnapshotSerializer()
    pending_actions = PendingActionsSerializer()


# =============================================================================
# Booking stats
# =============================================================================

class MonthlyBookingStatsSerializer(serializers.Serializer):
    month = serializers.CharField()
    bookings = serializers.IntegerField()
    revenue = money()
    completed = serializers.IntegerField()
    cancelled = serializers.IntegerField()


class TopUserSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    name = serializers.CharField()
    email = serializers.EmailField()
    bookings = serializers.IntegerField()
    total_spent = money()


class BookingSummarySerializer(serializers.Serializer):
    total_bookings = serializers.IntegerField()
    completed_bookings = serializers.IntegerField()
    cancelled_bookings = serializers.IntegerField()
    total_revenue = money()
    avg_booking_value = money()


class BookingStatsResponseSerializer(serializers.Serializer):
    monthly_stats = MonthlyBookingStatsSerializer(many=True)
    category_stats = CategoryBookingsSerializer(many=True)
    payment_method_stats = PaymentMethodBookingsSerializer(many=True)
    daily_trend = DailyRevenueSerializer(many=True)
    top_users = TopUserSerializer(many=True)
    recent_bookings = RecentBookingSerializer(many=True)
    summary = BookingSummarySerializer()


# =============================================================================
# Reports
# =============================================================================

class PeriodSerializer(serializers.Serializer):
    start_date = serializers.DateField()
    end_date = serializers.DateField()


class ReportSerializer(serializers.Serializer):
    report_type = serializers.CharField()
    period = PeriodSerializer()


class RevenueSummarySerializer(serializers.Serializer):
    total_revenue = money()
    total_bookings = serializers.IntegerField()
    avg_daily_revenue = money()


class RevenueReportSerializer(ReportSerializer):
    summary = RevenueSummarySerializer()
    daily_revenue = DailyRevenueSerializer(many=True)
    category_revenue = CategoryBookingsSerializer(many=True)
    payment_method_revenue = PaymentMethodBookingsSerializer(many=True)


class StatusCountSerializer(serializers.Serializer):
    status = serializers.CharField()
    count = serializers.IntegerField()
    total_amount = money()


class CancellationDaySerializer(serializers.Serializer):
    date = serializers.DateField()
    count = serializers.IntegerField()
    total_refund = money()


class BookingReportSummarySerializer(serializers.Serializer):
    total_bookings = serializers.IntegerField()
    completed_bookings = serializers.IntegerField()
    cancelled_bookings = serializers.IntegerField()
    conversion_rate = serializers.FloatField()


class BookingReportSerializer(ReportSerializer):
    summary = BookingReportSummarySerializer()
    status_distribution = StatusCountSerializer(many=True)
    cancellation_analysis = CancellationDaySerializer(many=True)


class RegistrationDaySerializer(serializers.Serializer):
    date = serializers.DateField()
    count = serializers.IntegerField()


class SpenderSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    name = serializers.CharField()
    email = serializers.EmailField()
    total_spent = money()


class UserReportSummarySerializer(serializers.Serializer):
    new_users = serializers.IntegerField()
    verified_users = serializers.IntegerField()
    active_users = serializers.IntegerField()


class UserReportSerializer(ReportSerializer):
    summary = UserReportSummarySerializer()
    registrations = RegistrationDaySerializer(many=True)
    role_distribution = serializers.DictField(child=serializers.IntegerField())
    status_distribution = serializers.DictField(child=serializers.IntegerField())
    top_spenders = SpenderSerializer(many=True)


class CarUtilisationSerializer(serializers.Serializer):
    car_id = serializers.UUIDField()
    car_name = serializers.CharField()
    license_plate = serializers.CharField()
    category = serializers.CharField()
    bookings = serializers.IntegerField()
    revenue = money()
    rating = serializers.DecimalField(max_digits=3, decimal_places=2)


class CategoryUtilisationSerializer(serializers.Serializer):
    category = serializers.CharField()
    cars = serializers.IntegerField()
    bookings = serializers.IntegerField()
    revenue = money()


class CarReportSummarySerializer(serializers.Serializer):
    total_cars = serializers.IntegerField()
    booked_cars = serializers.IntegerField()
    total_revenue = money()


class CarReportSerializer(ReportSerializer):
    summary = CarReportSummarySerializer()
    utilisation = CarUtilisationSerializer(many=True)
    category_distribution = CategoryUtilisationSerializer(many=True)


REPORT_SERIALIZERS = {
    'revenue': RevenueReportSerializer,
    'bookings': BookingReportSerializer,
    'users': UserReportSerializer,
    'cars': CarReportSerializer,
}


# =============================================================================
# Maintenance
# =============================================================================

class MaintenanceCarSerializer(serializers.Serializer):
    car_id = serializers.UUIDField()
    car_name = serializers.CharField()
    license_plate = serializers.CharField()


class ServiceDueSerializer(MaintenanceCarSerializer):
    last_service = serializers.DateField(allow_null=True)
    next_service = serializers.DateField()


class HighMileageSerializer(MaintenanceCarSerializer):
    current_mileage = serializers.IntegerField()


class InsuranceExpiringSerializer(MaintenanceCarSerializer):
    insurance_provider = serializers.CharField()
    insurance_valid_until = serializers.DateField()


class MaintenanceSummarySerializer(serializers.Serializer):
    service_due = serializers.IntegerField()
    high_mileage = serializers.IntegerField()
    insurance_expiring = serializers.IntegerField()


class MaintenanceTasksSerializer(serializers.Serializer):
    service_due = ServiceDueSerializer(many=True)
    high_mileage = HighMileageSerializer(many=True)
    insurance_expiring = InsuranceExpiringSerializer(many=True)
    summary = MaintenanceSummarySerializer()


# =============================================================================
# User management
# =============================================================================

class UserSummarySerializer(serializers.Serializer):
    total_users = serializers.IntegerField()
    active_users = serializers.IntegerField()
    total_admins = serializers.IntegerField()
    total_verified = serializers.IntegerField()
    total_wallet_balance = money()


class UserBookingStatsSerializer(serializers.Serializer):
    total_bookings = serializers.IntegerField()
    completed_bookings = serializers.IntegerField()
    cancelled_bookings = serializers.IntegerField()
    total_spent = money()


class AdminUserDetailSerializer(serializers.Serializer):
    user = UserSerializer()
    booking_stats = UserBookingStatsSerializer()
    recent_bookings = BookingListSerializer(many=True)


class ExportResponseSerializer(serializers.Serializer):
    type = serializers.CharField()
    count = serializers.IntegerField()
    records = serializers.ListField(child=serializers.DictField())


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
