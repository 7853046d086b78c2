from decimal import Decimal

from rest_framework import serializers

from apps.cars.serializers import CarListSerializer
from .models import (
    Booking,
    AdditionalService,
    BookingCharge,
    DamageReport,
    ExtensionRequest,
    PaymentTransaction,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    LocationType,
    InsuranceType,
    FuelPolicy,
    ServiceType,
    ChargeType,
    DamageSeverity,
)


class AdditionalServiceSerializer(serializers.ModelSerializer):

    class Meta:
        model = AdditionalService
        fields = ['id', 'service', 'quantity', 'price', 'total']
        read_only_fields = fields


class BookingChargeSerializer(serializers.ModelSerializer):

    class Meta:
        model = BookingCharge
        fields = ['id', 'description', 'amount', 'type', 'created_at']
        read_only_fields = fields


class DamageReportSerializer(serializers.ModelSerializer):

    class Meta:
        model = DamageReport
        fields = ['id', 'description', 'severity', 'repair_cost', 'status', 'created_at']
        read_only_fields = fields


class PaymentTransactionSerializer(serializers.ModelSerializer):

    class Meta:
        model = PaymentTransaction
        fields = ['id', 'transaction_id', 'amount', 'method', 'type', 'status', 'created_at']
        read_only_fields = fields


class ExtensionRequestSerializer(serializers.ModelSerializer):
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True)
    reviewed_by_email = serializers.EmailField(source='reviewed_by.email', read_only=True, default=None)

    class Meta:
        model = ExtensionRequest
        fields = [
            'id',
            'booking',
            'booking_number',
            'current_dropoff_date',
            'requested_dropoff_date',
            'extension_days',
            'extension_cost',
            'reason',
            'status',
            'reviewed_by_email',
            'reviewed_at',
            'created_at',
        ]
        read_only_fields = fields


class BookingListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    car = CarListSerializer(read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'booking_number',
            'user_email',
            'car',
            'pickup_date',
            'dropoff_date',
            'total_days',
            'total_amount',
            'paid_amount',
            'status',
            'payment_status',
            'created_at',
        ]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Full booking details with its related rows."""

    car = CarListSerializer(read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)
    additional_services = AdditionalServiceSerializer(many=True, read_only=True)
    charges = BookingChargeSerializer(many=True, read_only=True)
    damages = DamageReportSerializer(many=True, read_only=True)
    extension_requests = ExtensionRequestSerializer(many=True, read_only=True)
    transactions = PaymentTransactionSerializer(many=True, read_only=True)
    outstanding_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'booking_number',
            'invoice_number',
            'user_email',
            'car',
            'pickup_date',
            'dropoff_date',
            'total_days',
            'pickup_location',
            'dropoff_location',
            'driver_details',
            'base_amount',
            'security_deposit',
            'discount_amount',
            'tax_amount',
            'total_amount',
            'paid_amount',
            'outstanding_amount',
            'payment_method',
            'payment_status',
            'status',
            'cancellation_reason',
            'cancelled_by',
            'cancellation_fee',
            'refund_amount',
            'refund_status',
            'cancelled_at',
            'insurance_type',
            'fuel_policy',
            'fuel_at_pickup',
            'fuel_at_dropoff',
            'mileage_at_pickup',
            'mileage_at_dropoff',
            'extra_kilometers',
            'extra_km_charges',
            'promo_code',
            'special_requests',
            'review_rating',
            'review_comment',
            'review_categories',
            'reviewed_at',
            'additional_services',
            'charges',
            'damages',
            'extension_requests',
            'transactions',
            'confirmed_at',
            'picked_up_at',
            'dropped_off_at',
            'completed_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


# ============================================================================
# Input serializers
# ============================================================================

class LocationSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=LocationType.choices, default=LocationType.BRANCH)
    address = serializers.DictField(required=False, default=dict)


class DriverDetailsSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    email = serializers.EmailField(required=False)
    phone = serializers.RegexField(r'^\d{10}$', required=False)
    age = serializers.IntegerField(min_value=18, required=False)
    license_number = serializers.CharField(max_length=30, required=False)


class ServiceLineSerializer(serializers.Serializer):
    service = serializers.ChoiceField(choices=ServiceType.choices)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=1, default=1)


class BookingCreateSerializer(serializers.Serializer):
    car_id = serializers.UUIDField()
    pickup_date = serializers.DateTimeField()
    dropoff_date = serializers.DateTimeField()
    pickup_location = LocationSerializer(required=False)
    dropoff_location = LocationSerializer(required=False)
    driver_details = DriverDetailsSerializer(required=False)
    additional_services = ServiceLineSerializer(many=True, required=False)
    promo_code = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, default=PaymentMethod.CARD)
    insurance_type = serializers.ChoiceField(choices=InsuranceType.choices, required=False)
    fuel_policy = serializers.ChoiceField(choices=FuelPolicy.choices, required=False)
    special_requests = serializers.CharField(required=False, allow_blank=True, default='')


class BookingFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BookingStatus.choices, required=False)
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)
    search = serializers.CharField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BookingStatus.choices)
    mileage = serializers.IntegerField(min_value=0, required=False)
    fuel_level = serializers.IntegerField(min_value=0, max_value=100, required=False)


class DamageInputSerializer(serializers.Serializer):
    description = serializers.CharField()
    severity = serializers.ChoiceField(choices=DamageSeverity.choices)
    repair_cost = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False, default=0)


class ExtraChargeInputSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    type = serializers.ChoiceField(
        choices=[ChargeType.FEE, ChargeType.PENALTY, ChargeType.SERVICE],
        default=ChargeType.PENALTY,
    )


class ProcessReturnSerializer(serializers.Serializer):
    mileage_at_dropoff = serializers.IntegerField(min_value=0)
    fuel_level = serializers.IntegerField(min_value=0, max_value=100)
    damages = DamageInputSerializer(many=True, required=False)
    extra_charges = ExtraChargeInputSerializer(many=True, required=False)


class ReviewSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')
    categories = serializers.DictField(
        child=serializers.IntegerField(min_value=1, max_value=5),
        required=False,
    )


class BookingReviewSerializer(serializers.ModelSerializer):
    rating = serializers.IntegerField(source='review_rating')
    comment = serializers.CharField(source='review_comment')
    categories = serializers.JSONField(source='review_categories')
    created_at = serializers.DateTimeField(source='reviewed_at')

    class Meta:
        model = Booking
        fields = ['booking_number', 'rating', 'comment', 'categories', 'created_at']
        read_only_fields = fields


class CalendarQuerySerializer(serializers.Serializer):
    month = serializers.IntegerField(min_value=1, max_value=12, required=False)
    year = serializers.IntegerField(min_value=2000, max_value=2100, required=False)


class ExtensionCreateSerializer(serializers.Serializer):
    new_dropoff_date = serializers.DateTimeField()
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class ExtensionReviewSerializer(serializers.Serializer):
    approve = serializers.BooleanField()


class PaymentCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    transaction_id = serializers.CharField(max_length=64, required=False)


class UPIPaymentSerializer(serializers.Serializer):
    booking_number = serializers.CharField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    upi_string = serializers.CharField()
    qr_code = serializers.CharField()
