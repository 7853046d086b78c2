from rest_framework import serializers
from .models import (
    Offer,
    OfferUsage,
    OfferType,
    OfferStatus,
    ApplicableFor,
    WEEKDAY_CODES,
)


class OfferListSerializer(serializers.ModelSerializer):

    class Meta:
        model = Offer
        fields = [
            'id',
            'title',
            'short_description',
            'code',
            'offer_type',
            'discount_value',
            'max_discount',
            'min_booking_amount',
            'min_rental_days',
            'valid_until',
            'is_featured',
            'display_priority',
            'status',
        ]
        read_only_fields = fields


class OfferSerializer(serializers.ModelSerializer):
    """Full offer details."""

    applicable_cars = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    excluded_cars = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    remaining_uses = serializers.SerializerMethodField()

    class Meta:
        model = Offer
        fields = [
            'id',
            'title',
            'description',
            'short_description',
            'code',
            'offer_type',
            'discount_value',
            'min_discount',
            'max_discount',
            'min_booking_amount',
            'min_rental_days',
            'applicable_for',
            'applicable_categories',
            'applicable_cars',
            'excluded_cars',
            'valid_from',
            'valid_until',
            'active_days',
            'active_hours_from',
            'active_hours_to',
            'usage_limit',
            'per_user_limit',
            'used_count',
            'remaining_uses',
            'display_priority',
            'is_featured',
            'show_on_homepage',
            'terms',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_remaining_uses(self, obj):
        if obj.usage_limit is None:
            return None
        return max(obj.usage_limit - obj.used_count, 0)


class OfferWriteSerializer(serializers.ModelSerializer):
    """Admin create/update payload. Relations are given as id lists."""

    code = serializers.CharField(max_length=20, required=False, allow_blank=True)
    specific_users = serializers.ListField(child=serializers.UUIDField(), required=False)
    applicable_cars = serializers.ListField(child=serializers.UUIDField(), required=False)
    excluded_cars = serializers.ListField(child=serializers.UUIDField(), required=False)
    active_days = serializers.ListField(
        child=serializers.ChoiceField(choices=WEEKDAY_CODES),
        required=False,
    )
    terms = serializers.ListField(child=serializers.CharField(max_length=500), required=False)

    class Meta:
        model = Offer
        fields = [
            'title',
            'description',
            'short_description',
            'code',
            'offer_type',
            'discount_value',
            'min_discount',
            'max_discount',
            'min_booking_amount',
            'min_rental_days',
            'applicable_for',
            'specific_users',
            'applicable_categories',
            'applicable_cars',
            'excluded_cars',
            'valid_from',
            'valid_until',
            'active_days',
            'active_hours_from',
            'active_hours_to',
            'usage_limit',
            'per_user_limit',
            'display_priority',
            'is_featured',
            'show_on_homepage',
            'terms',
            'status',
        ]
        extra_kwargs = {
            'status': {'required': False},
        }

    def validate(self, data):
        valid_from = data.get('valid_from', getattr(self.instance, 'valid_from', None))
        valid_until = data.get('valid_until', getattr(self.instance, 'valid_until', None))
        if valid_from and valid_until and valid_until <= valid_from:
            raise serializers.ValidationError({'valid_until': 'Must be after valid_from.'})

        if bool(data.get('active_hours_from')) != bool(data.get('active_hours_to')):
            raise serializers.ValidationError(
                'active_hours_from and active_hours_to must be set together.'
            )

        if data.get('offer_type') == OfferType.PERCENTAGE and data.get('discount_value', 0) > 100:
            raise serializers.ValidationError({'discount_value': 'A percentage cannot exceed 100.'})

        max_discount = data.get('max_discount')
        if max_discount is not None and max_discount < data.get('min_discount', 0):
            raise serializers.ValidationError({'max_discount': 'Must not be below min_discount.'})

        if data.get('applicable_for') == ApplicableFor.SPECIFIC_USERS and not data.get('specific_users'):
            raise serializers.ValidationError(
                {'specific_users': 'Required when the offer targets specific users.'}
            )
        return data


class OfferFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OfferStatus.choices, required=False)
    offer_type = serializers.ChoiceField(choices=OfferType.choices, required=False)
    featured = serializers.BooleanField(required=False, default=False)
    active = serializers.BooleanField(required=False, default=False)
    category = serializers.CharField(required=False)


class ValidateOfferSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=20)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    days = serializers.IntegerField(min_value=1, default=1)
    car_id = serializers.UUIDField(required=False)


class OfferValidationResultSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    offer = OfferListSerializer()
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    final_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    terms = serializers.ListField(child=serializers.CharField())


class PersonalizedOfferSerializer(serializers.Serializer):
    title = serializers.CharField()
    description = serializers.CharField()
    code = serializers.CharField()
    offer_type = serializers.CharField()
    discount_value = serializers.DecimalField(max_digits=10, decimal_places=2)
    min_booking_amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    max_discount = serializers.DecimalField(max_digits=10, decimal_places=2, allow_null=True)
    valid_until = serializers.DateTimeField()


class UserOfferStatsSerializer(serializers.Serializer):
    total_bookings = serializers.IntegerField()
    total_spent = serializers.DecimalField(max_digits=12, decimal_places=2)
    is_first_booking = serializers.BooleanField()


class UserOffersSerializer(serializers.Serializer):
    general_offers = OfferListSerializer(many=True)
    personalized_offers = PersonalizedOfferSerializer(many=True)
    user_stats = UserOfferStatsSerializer()


class ApplyOfferSerializer(serializers.Serializer):
    booking_id = serializers.UUIDField()
    code = serializers.CharField(max_length=20)


class ApplyOfferResultSerializer(serializers.Serializer):
    booking_id = serializers.UUIDField(source='booking.id')
    booking_number = serializers.CharField(source='booking.booking_number')
    code = serializers.CharField(source='offer.code')
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = serializers.DecimalField(source='booking.tax_amount', max_digits=12, decimal_places=2)
    total_amount = serializers.DecimalField(source='booking.total_amount', max_digits=12, decimal_places=2)


class OfferUsageSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True)
    booking_number = serializers.CharField(source='booking.booking_number', read_only=True, default=None)

    class Meta:
        model = OfferUsage
        fields = ['id', 'user_email', 'booking_number', 'discount', 'used_at']
        read_only_fields = fields


class UserUsageSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    name = serializers.CharField()
    email = serializers.EmailField()
    count = serializers.IntegerField()
    total_discount = serializers.DecimalField(max_digits=12, decimal_places=2)


class OfferUsageReportSerializer(serializers.Serializer):
    offer = OfferListSerializer()
    total_usage = serializers.IntegerField()
    total_discount = serializers.DecimalField(max_digits=12, decimal_places=2)
    usages = OfferUsageSerializer(many=True)
    user_usage = UserUsageSerializer(many=True)


class CategoryDistributionSerializer(serializers.Serializer):
    category = serializers.CharField()
    count = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    discount = serializers.DecimalField(max_digits=14, decimal_places=2)


class DailyTrendSerializer(serializers.Serializer):
    date = serializers.DateField()
    count = serializers.IntegerField()
    discount = serializers.DecimalField(max_digits=14, decimal_places=2)


class OfferAnalyticsSerializer(serializers.Serializer):
    offer = OfferListSerializer()
    total_usage = serializers.IntegerField()
    unique_users = serializers.IntegerField()
    total_discount = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    completed_bookings = serializers.IntegerField()
    cancelled_bookings = serializers.IntegerField()
    conversion_rate = serializers.FloatField()
    category_distribution = CategoryDistributionSerializer(many=True)
    daily_trend = DailyTrendSerializer(many=True)


class GeneratedCodeSerializer(serializers.Serializer):
    code = serializers.CharField()
