from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.permissions import IsAdminRole
from .models import Car, CarStatus
from .serializers import (
    CarSerializer,
    CarListSerializer,
    CarWriteSerializer,
    NearbyCarSerializer,
    CarSearchSerializer,
    RecommendedCarsSerializer,
    NearbyCarsSerializer,
    AvailabilityCheckSerializer,
    AvailabilityQuoteSerializer,
    CarImageSerializer,
    CarImageCreateSerializer,
    SetPrimaryImageSerializer,
    ServiceRecordSerializer,
    ServiceRecordCreateSerializer,
    SetAvailabilitySerializer,
    CategorySummarySerializer,
    FleetStatsSerializer,
    CarBookingStatsSerializer,
)
from .services import (
    create_car,
    update_car,
    soft_delete_car,
    search_cars,
    get_featured_cars,
    get_recommended_cars,
    find_nearby_cars,
    get_categories,
    get_fleet_stats,
    check_availability,
    get_car_booking_stats,
    add_car_image,
    set_primary_image,
    delete_car_image,
    record_service,
    set_availability,
    # Exceptions
    CarsServiceError,
    CarNotFoundError,
    DuplicateCarError,
    CarHasActiveBookingsError,
    CarImageNotFoundError,
)

ADMIN_ACTIONS = {
    'create',
    'update',
    'partial_update',
    'destroy',
    'stats',
    'images',
    'primary_image',
    'delete_image',
    'maintenance',
    'availability',
    'booking_stats',
}


class CarPagination(PageNumberPagination):
    """Custom pagination for cars."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class CarViewSet(viewsets.ModelViewSet):
    """
    ViewSet for the car inventory.

    list: Search active cars (with filters and sorting)
    create: Add a car (admin)
    retrieve: Get a specific car
    update: Update a car (admin)
    partial_update: Partially update a car (admin)
    destroy: Soft delete a car (admin)
    """

    queryset = Car.objects.exclude(status=CarStatus.DELETED).prefetch_related('images')
    serializer_class = CarSerializer
    permission_classes = [AllowAny]
    pagination_class = CarPagination
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_permissions(self):
        """Writes and fleet management are admin only."""
        if self.action in ADMIN_ACTIONS:
            return [IsAuthenticated(), IsAdminRole()]
        if self.action == 'recommended':
            return [IsAuthenticated()]
        return [AllowAny()]

    def get_queryset(self):
        if self.action == 'list':
            params = CarSearchSerializer(data=self.request.query_params)
            params.is_valid(raise_exception=True)
            return search_cars(**params.validated_data)
        return super().get_queryset()

    def get_serializer_class(self):
        """Use different serializers for different actions."""
        if self.action == 'list':
            return CarListSerializer
        elif self.action in ('create', 'update', 'partial_update'):
            return CarWriteSerializer
        return CarSerializer

    @extend_schema(
        parameters=[CarSearchSerializer],
        responses={200: CarListSerializer(many=True)},
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=CarWriteSerializer, responses={201: CarSerializer})
    def create(self, request, *args, **kwargs):
        """Add a car to the fleet."""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            car = create_car(
                created_by=request.user,
                **serializer.validated_data
            )
        except DuplicateCarError as e:
            return Response(
                {'error': str(e)},
                status=status.HTTP_400_BAD_REQUEST
            )

        return Response(
            CarSerializer(car).data,
            status=status.HTTP_201_CREATED
        )

    @extend_schema(request=CarWriteSerializer, responses={200: CarSerializer})
    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        try:
            car = update_car(
                car_id=kwargs.get('pk'),
                updated_by=request.user,
                **serializer.validated_data
            )
        except CarNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except DuplicateCarError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(CarSerializer(car).data)

    def destroy(self, request, *args, **kwargs):
        """Soft delete a car."""
        try:
            soft_delete_car(car_id=kwargs.get('pk'), deleted_by=request.user)
        except CarNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except CarHasActiveBookingsError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)

    # =========================================================================
    # Discovery
    # =========================================================================

    @extend_schema(
        parameters=[OpenApiParameter('limit', OpenApiTypes.INT, description='Max cars (default 10)')],
        responses={200: CarListSerializer(many=True)},
    )
    @action(detail=False, methods=['get'])
    def featured(self, request):
        """Featured cars, best rated first."""
        try:
            limit = min(int(request.query_params.get('limit', 10)), 50)
        except ValueError:
            limit = 10
        cars = get_featured_cars(limit=limit)
        return Response(CarListSerializer(cars, many=True).data)

    @extend_schema(parameters=[RecommendedCarsSerializer], responses={200: CarListSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def recommended(self, request):
        """Cars matching the caller's preferences."""
        params = RecommendedCarsSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data

        cars = get_recommended_cars(
            category=data.get('category'),
            fuel_type=data.get('fuel_type'),
            max_price=data.get('budget'),
            limit=data['limit'],
        )
        return Response(CarListSerializer(cars, many=True).data)

    @extend_schema(parameters=[NearbyCarsSerializer], responses={200: NearbyCarSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def nearby(self, request):
        """Available cars within a radius (km), nearest first."""
        params = NearbyCarsSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data

        results = find_nearby_cars(
            latitude=data['lat'],
            longitude=data['lng'],
            radius_km=data['radius'],
            city=data.get('city'),
        )
        cars = []
        for car, distance in results:
            car.distance_km = distance
            cars.append(car)
        return Response(NearbyCarSerializer(cars, many=True).data)

    @extend_schema(responses={200: CategorySummarySerializer(many=True)})
    @action(detail=False, methods=['get'])
    def categories(self, request):
        """Category counts with price ranges."""
        return Response(CategorySummarySerializer(get_categories(), many=True).data)

    @extend_schema(responses={200: FleetStatsSerializer})
    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Fleet composition (admin)."""
        return Response(FleetStatsSerializer(get_fleet_stats()).data)

    @extend_schema(request=AvailabilityCheckSerializer, responses={200: AvailabilityQuoteSerializer})
    @action(detail=True, methods=['post'], url_path='check-availability')
    def check_availability(self, request, pk=None):
        """Availability and price quote for a date range."""
        serializer = AvailabilityCheckSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            quote = check_availability(car_id=pk, **serializer.validated_data)
        except CarNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except CarsServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(AvailabilityQuoteSerializer(quote).data)

    # =========================================================================
    # Fleet management (admin)
    # =========================================================================

    @extend_schema(request=CarImageCreateSerializer, responses={201: CarImageSerializer})
    @action(detail=True, methods=['post'])
    def images(self, request, pk=None):
        """Attach an image URL to the car."""
        serializer = CarImageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            image = add_car_image(car_id=pk, **serializer.validated_data)
        except CarNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(CarImageSerializer(image).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=SetPrimaryImageSerializer, responses={200: CarImageSerializer})
    @action(detail=True, methods=['put'], url_path='images/primary')
    def primary_image(self, request, pk=None):
        serializer = SetPrimaryImageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            image = set_primary_image(car_id=pk, image_id=serializer.validated_data['image_id'])
        except (CarNotFoundError, CarImageNotFoundError) as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(CarImageSerializer(image).data)

    @action(
        detail=True,
        methods=['delete'],
        url_path=r'images/(?P<image_id>[0-9a-fA-F-]{36})',
    )
    def delete_image(self, request, pk=None, image_id=None):
        try:
            delete_car_image(car_id=pk, image_id=image_id)
        except (CarNotFoundError, CarImageNotFoundError) as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except CarsServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=ServiceRecordCreateSerializer, responses={201: ServiceRecordSerializer})
    @action(detail=True, methods=['get', 'post'])
    def maintenance(self, request, pk=None):
        """Service history (GET) or record a service (POST)."""
        if request.method == 'GET':
            car = self.get_object()
            return Response(ServiceRecordSerializer(car.service_records.all(), many=True).data)

        serializer = ServiceRecordCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            record = record_service(car_id=pk, recorded_by=request.user, **serializer.validated_data)
        except CarNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(ServiceRecordSerializer(record).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=SetAvailabilitySerializer, responses={200: CarSerializer})
    @action(detail=True, methods=['put'])
    def availability(self, request, pk=None):
        serializer = SetAvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            car = set_availability(
                car_id=pk,
                availability=serializer.validated_data['availability'],
                updated_by=request.user,
            )
        except CarNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(CarSerializer(car).data)

    @extend_schema(responses={200: CarBookingStatsSerializer})
    @action(detail=True, methods=['get'], url_path='booking-stats')
    def booking_stats(self, request, pk=None):
        """Revenue and utilisation of one car."""
        try:
            stats = get_car_booking_stats(car_id=pk)
        except CarNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(CarBookingStatsSerializer(stats).data)
