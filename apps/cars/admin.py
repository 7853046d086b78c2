from django.contrib import admin
from django.utils.html import format_html
from apps.cars.models import Car, CarImage, ServiceRecord, Availability, CarStatus


class CarImageInline(admin.TabularInline):
    model = CarImage
    extra = 1
    fields = ['url', 'caption', 'is_primary']


class ServiceRecordInline(admin.TabularInline):
    """Read-only service history."""
    model = ServiceRecord
    extra = 0
    fields = ['date', 'service_type', 'cost', 'mileage', 'workshop', 'recorded_by']
    readonly_fields = fields
    can_delete = False
    show_change_link = True


@admin.register(Car)
class CarAdmin(admin.ModelAdmin):
    """Admin interface for the fleet."""

    list_display = [
        'license_plate',
        'make',
        'model',
        'year',
        'category',
        'city',
        'price_per_day',
        'availability_badge',
        'status_badge',
        'rating_average',
        'total_bookings',
    ]
    list_filter = [
        'status',
        'availability',
        'category',
        'fuel_type',
        'transmission',
        'is_featured',
        'city',
    ]
    search_fields = ['make', 'model', 'variant', 'license_plate', 'vin', 'city']
    readonly_fields = [
        'rating_average',
        'rating_count',
        'rating_breakdown',
        'total_bookings',
        'total_revenue',
        'last_booked',
        'created_by',
        'updated_by',
        'created_at',
        'updated_at',
    ]
    inlines = [CarImageInline, ServiceRecordInline]
    date_hierarchy = 'created_at'
    ordering = ['-created_at']
    actions = ['mark_available', 'mark_maintenance', 'feature']

    fieldsets = (
        ('Vehicle', {
            'fields': (
                'make',
                'model',
                'variant',
                'year',
                'license_plate',
                'vin',
                'category',
                'transmission',
                'fuel_type',
                'seats',
                'features',
                'tags',
            )
        }),
        ('Pricing', {
            'fields': (
                'price_per_day',
                'price_per_week',
                'price_per_month',
                'security_deposit',
                'kilometer_limit',
                'extra_km_charge',
            )
        }),
        ('Location', {
            'fields': ('city', 'address', 'state', 'pincode', 'latitude', 'longitude')
        }),
        ('Status', {
            'fields': ('status', 'availability', 'is_featured', 'is_recommended')
        }),
        ('Insurance', {
            'fields': (
                'insurance_provider',
                'insurance_policy_number',
                'insurance_valid_from',
                'insurance_valid_until',
                'insurance_coverage_amount',
            ),
            'classes': ('collapse',)
        }),
        ('Maintenance', {
            'fields': ('last_service', 'next_service', 'current_mileage', 'fuel_level')
        }),
        ('Statistics', {
            'fields': (
                'rating_average',
                'rating_count',
                'rating_breakdown',
                'total_bookings',
                'total_revenue',
                'last_booked',
            ),
            'classes': ('collapse',)
        }),
        ('Notes', {
            'fields': ('description', 'notes', 'created_by', 'updated_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def availability_badge(self, obj):
        colors = {
            Availability.AVAILABLE: 'green',
            Availability.BOOKED: 'blue',
            Availability.MAINTENANCE: 'orange',
            Availability.UNAVAILABLE: 'gray',
        }
        return format_html(
            '<span style="color: {};">● {}</span>',
            colors.get(obj.availability, 'gray'),
            obj.get_availability_display()
        )
    availability_badge.short_description = 'Availability'

    def status_badge(self, obj):
        if obj.status == CarStatus.ACTIVE:
            return format_html('<span style="color: green;">✓ Active</span>')
        return format_html('<span style="color: red;">✗ {}</span>', obj.get_status_display())
    status_badge.short_description = 'Status'

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        obj.updated_by = request.user
        super().save_model(request, obj, form, change)

    def mark_available(self, request, queryset):
        updated = queryset.update(availability=Availability.AVAILABLE)
        self.message_user(request, f'{updated} car(s) marked available.')
    mark_available.short_description = 'Mark as available'

    def mark_maintenance(self, request, queryset):
        updated = queryset.update(availability=Availability.MAINTENANCE)
        self.message_user(request, f'{updated} car(s) sent to maintenance.')
    mark_maintenance.short_description = 'Send to maintenance'

    def feature(self, request, queryset):
        updated = queryset.update(is_featured=True)
        self.message_user(request, f'{updated} car(s) featured.')
    feature.short_description = 'Feature selected cars'


@admin.register(ServiceRecord)
class ServiceRecordAdmin(admin.ModelAdmin):
    list_display = ['car', 'date', 'service_type', 'cost', 'mileage', 'workshop']
    list_filter = ['date', 'service_type']
    search_fields = ['car__license_plate', 'car__make', 'car__model', 'workshop']
    readonly_fields = ['created_at']
    date_hierarchy = 'date'
