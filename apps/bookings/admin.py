from django.contrib import admin
from django.utils.html import format_html
from apps.bookings.models import (
    Booking,
    AdditionalService,
    BookingCharge,
    DamageReport,
    ExtensionRequest,
    PaymentTransaction,
    BookingStatus,
    PaymentStatus,
)

STATUS_COLORS = {
    BookingStatus.PENDING: 'orange',
    BookingStatus.CONFIRMED: 'blue',
    BookingStatus.ACTIVE: 'green',
    BookingStatus.COMPLETED: 'gray',
    BookingStatus.CANCELLED: 'red',
    BookingStatus.NO_SHOW: 'red',
    BookingStatus.DISPUTED: 'purple',
}


class AdditionalServiceInline(admin.TabularInline):
    model = AdditionalService
    extra = 0
    fields = ['service', 'quantity', 'price', 'total']
    readonly_fields = ['total']


class BookingChargeInline(admin.TabularInline):
    model = BookingCharge
    extra = 0
    fields = ['description', 'type', 'amount', 'created_at']
    readonly_fields = ['created_at']


class DamageReportInline(admin.TabularInline):
    model = DamageReport
    extra = 0
    fields = ['description', 'severity', 'repair_cost', 'status']


class PaymentTransactionInline(admin.TabularInline):
    """Read-only payment history."""
    model = PaymentTransaction
    extra = 0
    fields = ['transaction_id', 'type', 'method', 'amount', 'status', 'created_at']
    readonly_fields = fields
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Admin interface for bookings."""

    list_display = [
        'booking_number',
        'user',
        'car',
        'pickup_date',
        'dropoff_date',
        'total_amount',
        'status_badge',
        'payment_badge',
        'created_at',
    ]
    list_filter = ['status', 'payment_status', 'payment_method', 'insurance_type', 'created_at']
    search_fields = ['booking_number', 'user__email', 'user__name', 'car__license_plate', 'promo_code']
    readonly_fields = [
        'booking_number',
        'invoice_number',
        'total_days',
        'base_amount',
        'discount_amount',
        'tax_amount',
        'total_amount',
        'paid_amount',
        'offer',
        'reviewed_at',
        'created_at',
        'updated_at',
    ]
    raw_id_fields = ['user', 'car']
    date_hierarchy = 'pickup_date'
    inlines = [AdditionalServiceInline, BookingChargeInline, DamageReportInline, PaymentTransactionInline]

    fieldsets = (
        ('Booking', {
            'fields': ('booking_number', 'invoice_number', 'user', 'car', 'status')
        }),
        ('Period', {
            'fields': ('pickup_date', 'dropoff_date', 'total_days', 'pickup_location', 'dropoff_location')
        }),
        ('Amounts', {
            'fields': (
                'base_amount', 'security_deposit', 'discount_amount', 'tax_amount',
                'total_amount', 'paid_amount', 'promo_code', 'offer',
            )
        }),
        ('Payment', {
            'fields': ('payment_method', 'payment_status')
        }),
        ('Cancellation', {
            'fields': (
                'cancellation_reason', 'cancelled_by', 'cancellation_fee',
                'refund_amount', 'refund_status', 'cancelled_at',
            ),
            'classes': ('collapse',)
        }),
        ('Handover', {
            'fields': (
                'insurance_type', 'fuel_policy', 'fuel_at_pickup', 'fuel_at_dropoff',
                'mileage_at_pickup', 'mileage_at_dropoff', 'extra_kilometers', 'extra_km_charges',
            ),
            'classes': ('collapse',)
        }),
        ('Review', {
            'fields': ('review_rating', 'review_comment', 'review_categories', 'reviewed_at'),
            'classes': ('collapse',)
        }),
        ('Notes', {
            'fields': ('driver_details', 'special_requests')
        }),
        ('Timestamps', {
            'fields': ('confirmed_at', 'picked_up_at', 'dropped_off_at', 'completed_at', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def status_badge(self, obj):
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            STATUS_COLORS.get(obj.status, 'black'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'

    def payment_badge(self, obj):
        color = 'green' if obj.payment_status == PaymentStatus.PAID else 'orange'
        return format_html(
            '<span style="color: {};">{}</span>',
            color,
            obj.get_payment_status_display()
        )
    payment_badge.short_description = 'Payment'


@admin.register(ExtensionRequest)
class ExtensionRequestAdmin(admin.ModelAdmin):
    list_display = [
        'booking',
        'current_dropoff_date',
        'requested_dropoff_date',
        'extension_days',
        'extension_cost',
        'status',
        'reviewed_by',
        'created_at',
    ]
    list_filter = ['status', 'created_at']
    search_fields = ['booking__booking_number', 'booking__user__email']
    readonly_fields = ['extension_days', 'extension_cost', 'reviewed_by', 'reviewed_at', 'created_at']
