from django.contrib import admin
from django.utils.html import format_html
from apps.offers.models import Offer, OfferUsage, OfferStatus


class OfferUsageInline(admin.TabularInline):
    """Read-only redemptions."""
    model = OfferUsage
    extra = 0
    fields = ['user', 'booking', 'discount', 'used_at']
    readonly_fields = fields
    can_delete = False


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    """Admin interface for promotional offers."""

    list_display = [
        'code',
        'title',
        'offer_type',
        'discount_value',
        'valid_from',
        'valid_until',
        'used_count',
        'usage_limit',
        'is_featured',
        'status_badge',
    ]
    list_filter = ['status', 'offer_type', 'applicable_for', 'is_featured']
    search_fields = ['code', 'title', 'description']
    readonly_fields = ['used_count', 'created_by', 'updated_by', 'created_at', 'updated_at']
    filter_horizontal = ['specific_users', 'applicable_cars', 'excluded_cars']
    inlines = [OfferUsageInline]

    fieldsets = (
        ('Offer', {
            'fields': ('title', 'description', 'short_description', 'code', 'terms')
        }),
        ('Discount', {
            'fields': ('offer_type', 'discount_value', 'min_discount', 'max_discount')
        }),
        ('Eligibility', {
            'fields': (
                'min_booking_amount',
                'min_rental_days',
                'applicable_for',
                'specific_users',
                'applicable_categories',
                'applicable_cars',
                'excluded_cars',
            )
        }),
        ('Validity', {
            'fields': ('valid_from', 'valid_until', 'active_days', 'active_hours_from', 'active_hours_to', 'status')
        }),
        ('Limits', {
            'fields': ('usage_limit', 'per_user_limit', 'used_count')
        }),
        ('Display', {
            'fields': ('display_priority', 'is_featured', 'show_on_homepage')
        }),
        ('Metadata', {
            'fields': ('created_by', 'updated_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    @admin.display(description='Status')
    def status_badge(self, obj):
        colors = {
            OfferStatus.ACTIVE: 'green',
            OfferStatus.SCHEDULED: 'blue',
            OfferStatus.EXPIRED: 'gray',
            OfferStatus.INACTIVE: 'red',
        }
        return format_html(
            '<span style="color: {};">{}</span>',
            colors.get(obj.status, 'black'),
            obj.get_status_display()
        )

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        obj.updated_by = request.user
        super().save_model(request, obj, form, change)
