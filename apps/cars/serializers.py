from rest_framework import serializers
from .models import (
    Car,
    CarImage,
    ServiceRecord,
    CarCategory,
    FuelType,
    Transmission,
    Availability,
)


class CarImageSerializer(serializers.ModelSerializer):

    class Meta:
        model = CarImage
        fields = ['id', 'url', 'caption', 'is_primary', 'created_at']
        read_only_fields = ['id', 'is_primary', 'created_at']


class ServiceRecordSerializer(serializers.ModelSerializer):
    recorded_by_email = serializers.EmailField(source='recorded_by.email', read_only=True, default=None)

    class Meta:
        model = ServiceRecord
        fields = [
            'id',
            'date',
            'service_type',
            'description',
            'cost',
            'mileage',
            'workshop',
            'recorded_by_email',
            'created_at',
        ]
        read_only_fields = fields


class CarSerializer(serializers.ModelSerializer):
    """Full car details."""

    images = CarImageSerializer(many=True, read_only=True)
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = Car
        fields = [
            'id',
            'display_name',
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
            'price_per_day',
            'price_per_week',
            'price_per_month',
            'security_deposit',
            'kilometer_limit',
            'extra_km_charge',
            'city',
            'address',
            'state',
            'pincode',
            'latitude',
            'longitude',
            'availability',
            'is_featured',
            'is_recommended',
            'insurance_provider',
            'insurance_policy_number',
            'insurance_valid_from',
            'insurance_valid_until',
            'insurance_coverage_amount',
            'rating_average',
            'rating_count',
            'rating_breakdown',
            'last_service',
            'next_service',
            'current_mileage',
            'fuel_level',
            'status',
            'total_bookings',
            'last_booked',
            'description',
            'images',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'id',
            'rating_average',
            'rating_count',
            'rating_breakdown',
            'status',
            'total_bookings',
            'last_booked',
            'created_at',
            'updated_at',
        ]


class CarListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for list views."""

    primary_image = serializers.SerializerMethodField()

    class Meta:
        model = Car
        fields = [
            'id',
            'make',
            'model',
            'variant',
            'year',
            'category',
            'transmission',
            'fuel_type',
            'seats',
            'price_per_day',
            'city',
            'availability',
            'is_featured',
            'rating_average',
            'rating_count',
            'primary_image',
        ]
        read_only_fields = fields

    def get_primary_image(self, obj):
        image = obj.primary_image
        return image.url if image else None


class NearbyCarSerializer(CarListSerializer):
    distance_km = serializers.SerializerMethodField()

    class Meta(CarListSerializer.Meta):
        fields = CarListSerializer.Meta.fields + ['latitude', 'longitude', 'distance_km']
        read_only_fields = fields

    def get_distance_km(self, obj):
        return getattr(obj, 'distance_km', None)


class CarWriteSerializer(serializers.ModelSerializer):
    """Serializer for creating and updating cars."""

    class Meta:
        model = Car
        fields = [
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
            'price_per_day',
            'price_per_week',
            'price_per_month',
            'security_deposit',
            'kilometer_limit',
            'extra_km_charge',
            'city',
            'address',
            'state',
            'pincode',
            'latitude',
            'longitude',
            'availability',
            'is_featured',
            'is_recommended',
            'insurance_provider',
            'insurance_policy_number',
            'insurance_valid_from',
            'insurance_valid_until',
            'insurance_coverage_amount',
            'current_mileage',
            'fuel_level',
            'description',
            'notes',
        ]
        extra_kwargs = {
            # Uniqueness is checked by the service layer
            'license_plate': {'validators': []},
            'vin': {'validators': []},
        }

    def validate(self, attrs):
        valid_from = attrs.get('insurance_valid_from')
        valid_until = attrs.get('insurance_valid_until')
        if valid_from and valid_until and valid_until < valid_from:
            raise serializers.ValidationError({
                'insurance_valid_until': 'Must be after insurance_valid_from'
            })
        return attrs


class CarSearchSerializer(serializers.Serializer):
    """Query parameters for the car list."""

    search = serializers.CharField(required=False)
    category = serializers.ChoiceField(choices=CarCategory.choices, required=False)
    transmission = serializers.ChoiceField(choices=Transmission.choices, required=False)
    fuel_type = serializers.ChoiceField(choices=FuelType.choices, required=False)
    min_seats = serializers.IntegerField(required=False, min_value=1)
    min_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    max_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    city = serializers.CharField(required=False)
    featured = serializers.BooleanField(required=False, default=None, allow_null=True)
    pickup_date = serializers.DateTimeField(required=False)
    dropoff_date = serializers.DateTimeField(required=False)
    sort = serializers.ChoiceField(
        choices=['price_asc', 'price_desc', 'rating', 'newest', 'popular'],
        required=False,
        default='newest'
    )


class RecommendedCarsSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=CarCategory.choices, required=False)
    fuel_type = serializers.ChoiceField(choices=FuelType.choices, required=False)
    budget = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    limit = serializers.IntegerField(required=False, default=10, min_value=1, max_value=50)


class NearbyCarsSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
    radius = serializers.FloatField(required=False, default=10, min_value=0.1, max_value=500)
    city = serializers.CharField(required=False)


class AvailabilityCheckSerializer(serializers.Serializer):
    pickup_date = serializers.DateTimeField()
    dropoff_date = serializers.DateTimeField()

    def validate(self, attrs):
        if attrs['dropoff_date'] <= attrs['pickup_date']:
            raise serializers.ValidationError({
                'dropoff_date': 'Dropoff date must be after pickup date'
            })
        return attrs


class DateRangeSerializer(serializers.Serializer):
    pickup_date = serializers.DateTimeField()
    dropoff_date = serializers.DateTimeField()


class AvailabilityQuoteSerializer(serializers.Serializer):
    is_available = serializers.BooleanField()
    car_id = serializers.UUIDField()
    car_name = serializers.CharField()
    pickup_date = serializers.DateTimeField()
    dropoff_date = serializers.DateTimeField()
    total_days = serializers.IntegerField()
    price_per_day = serializers.DecimalField(max_digits=10, decimal_places=2)
    base_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    security_deposit = serializers.DecimalField(max_digits=10, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    conflicts = DateRangeSerializer(many=True)


class CarImageCreateSerializer(serializers.Serializer):
    url = serializers.URLField(max_length=500)
    caption = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    is_primary = serializers.BooleanField(required=False, default=False)


class SetPrimaryImageSerializer(serializers.Serializer):
    image_id = serializers.UUIDField()


class ServiceRecordCreateSerializer(serializers.Serializer):
    service_type = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, default=0)
    mileage = serializers.IntegerField(required=False, min_value=0)
    workshop = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    service_date = serializers.DateField(required=False)
    next_service = serializers.DateField(required=False)


class SetAvailabilitySerializer(serializers.Serializer):
    availability = serializers.ChoiceField(choices=Availability.choices)


class CategorySummarySerializer(serializers.Serializer):
    category = serializers.CharField()
    count = serializers.IntegerField()
    min_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    max_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    avg_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    avg_rating = serializers.DecimalField(max_digits=3, decimal_places=2)


class FleetStatsSerializer(serializers.Serializer):
    total_cars = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
    by_availability = serializers.DictField(child=serializers.IntegerField())
    by_category = serializers.DictField(child=serializers.IntegerField())
    average_price_per_day = serializers.DecimalField(max_digits=10, decimal_places=2)
    top_rated = CarListSerializer(many=True)


class MonthlyRevenueSerializer(serializers.Serializer):
    month = serializers.CharField()
    revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    bookings = serializers.IntegerField()


class CarBookingStatsSerializer(serializers.Serializer):
    car = CarListSerializer()
    total_bookings = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    avg_booking_duration = serializers.FloatField()
    last_booking = serializers.DateTimeField(allow_null=True)
    monthly_revenue = MonthlyRevenueSerializer(many=True)
    availability_percentage = serializers.FloatField()
