from django.http import HttpResponse
from rest_framework import viewsets, mixins, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.permissions import IsAdminRole
from .models import Booking
from .permissions import IsBookingOwnerOrAdmin
from .serializers import (
    BookingSerializer,
    BookingListSerializer,
    BookingCreateSerializer,
    BookingFilterSerializer,
    CancelBookingSerializer,
    UpdateStatusSerializer,
    ProcessReturnSerializer,
    ReviewSerializer,
    BookingReviewSerializer,
    CalendarQuerySerializer,
    ExtensionCreateSerializer,
    ExtensionReviewSerializer,
    ExtensionRequestSerializer,
    PaymentCreateSerializer,
    PaymentTransactionSerializer,
    UPIPaymentSerializer,
)
from .services import (
    BookingService,
    ExtensionService,
    PaymentService,
    UPIPaymentGenerator,
    InvoiceService,
    # Exceptions
    BookingServiceError,
    CarUnavailableError,
    QRGenerationError,
)

ADMIN_ACTIONS = {
    'all_bookings',
    'update_status',
    'process_return',
    'pending_extensions',
    'review_extension',
}


class BookingPagination(PageNumberPagination):
    """Custom pagination for bookings."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet for bookings.

    list: The caller's bookings
    create: Book a car
    retrieve: Booking details (owner or admin)
    """

    queryset = Booking.objects.select_related('car', 'user')
    serializer_class = BookingSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = BookingPagination
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_permissions(self):
        if self.action in ADMIN_ACTIONS:
            return [IsAuthenticated(), IsAdminRole()]
        if self.action == 'calendar':
            return [AllowAny()]
        if self.action == 'retrieve':
            return [IsAuthenticated(), IsBookingOwnerOrAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        if self.action == 'list':
            return BookingService.list_user_bookings(
                self.request.user,
                status=self.request.query_params.get('status'),
            )
        return super().get_queryset()

    def get_serializer_class(self):
        if self.action in ('list', 'all_bookings', 'upcoming'):
            return BookingListSerializer
        return BookingSerializer

    @extend_schema(
        parameters=[OpenApiParameter('status', OpenApiTypes.STR, description='Filter by booking status')],
        responses={200: BookingListSerializer(many=True)},
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=BookingCreateSerializer, responses={201: BookingSerializer})
    def create(self, request):
        """Book a car. The promo code is optional and ignored when it does not apply."""
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = BookingService.create_booking(
                user=request.user,
                car_id=data['car_id'],
                pickup_date=data['pickup_date'],
                dropoff_date=data['dropoff_date'],
                pickup_location=data.get('pickup_location'),
                dropoff_location=data.get('dropoff_location'),
                driver_details=data.get('driver_details'),
                additional_services=data.get('additional_services'),
                promo_code=data['promo_code'],
                payment_method=data['payment_method'],
                insurance_type=data.get('insurance_type'),
                fuel_policy=data.get('fuel_policy'),
                special_requests=data['special_requests'],
            )
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        booking = BookingService.get_booking(booking.id, request.user)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: BookingSerializer})
    def retrieve(self, request, pk=None):
        booking = BookingService.get_booking(pk, request.user)
        self.check_object_permissions(request, booking)
        return Response(BookingSerializer(booking).data)

    # =========================================================================
    # Customer actions
    # =========================================================================

    @extend_schema(responses={200: BookingListSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def upcoming(self, request):
        """Pending and confirmed bookings that have not started yet."""
        bookings = BookingService.get_upcoming_bookings(request.user)
        return Response(BookingListSerializer(bookings, many=True).data)

    @extend_schema(request=CancelBookingSerializer, responses={200: BookingSerializer})
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel a booking at least 24 hours before pickup (owner or admin)."""
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booking = BookingService.cancel_booking(
                pk,
                request.user,
                reason=serializer.validated_data['reason'],
            )
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BookingSerializer(booking).data)

    @extend_schema(request=ReviewSerializer, responses={201: BookingReviewSerializer})
    @action(detail=True, methods=['post'])
    def review(self, request, pk=None):
        """Rate a completed booking."""
        serializer = ReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = BookingService.add_review(
                pk,
                request.user,
                rating=data['rating'],
                comment=data['comment'],
                categories=data.get('categories'),
            )
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BookingReviewSerializer(booking).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=['get'])
    def invoice(self, request, pk=None):
        """Invoice data with a plain-text rendering."""
        booking = BookingService.get_booking(pk, request.user)
        return Response(InvoiceService.get_invoice(booking))

    @extend_schema(
        parameters=[
            OpenApiParameter('month', OpenApiTypes.INT, description='1-12, defaults to this month'),
            OpenApiParameter('year', OpenApiTypes.INT, description='Defaults to this year'),
        ],
        responses={200: OpenApiTypes.OBJECT},
    )
    @action(detail=False, methods=['get'], url_path=r'calendar/(?P<car_id>[0-9a-fA-F-]{36})')
    def calendar(self, request, car_id=None):
        """Day-by-day occupancy of a car for a month."""
        params = CalendarQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        try:
            data = BookingService.get_booking_calendar(
                car_id,
                month=params.validated_data.get('month'),
                year=params.validated_data.get('year'),
            )
        except CarUnavailableError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(data)

    # =========================================================================
    # Extensions
    # =========================================================================

    @extend_schema(
        methods=['GET'],
        responses={200: ExtensionRequestSerializer(many=True)},
    )
    @extend_schema(
        methods=['POST'],
        request=ExtensionCreateSerializer,
        responses={201: ExtensionRequestSerializer},
    )
    @action(detail=True, methods=['get', 'post'], url_path='extensions')
    def extensions(self, request, pk=None):
        """
        GET: Extension requests of the booking
        POST: Ask to keep the car longer (owner, active booking)
        """
        if request.method == 'GET':
            booking = BookingService.get_booking(pk, request.user)
            extensions = ExtensionService.list_extensions(booking=booking)
            return Response(ExtensionRequestSerializer(extensions, many=True).data)

        serializer = ExtensionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            extension = ExtensionService.request_extension(
                pk,
                request.user,
                new_dropoff_date=serializer.validated_data['new_dropoff_date'],
                reason=serializer.validated_data['reason'],
            )
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ExtensionRequestSerializer(extension).data, status=status.HTTP_201_CREATED)

    @extend_schema(responses={200: ExtensionRequestSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path='extensions/pending')
    def pending_extensions(self, request):
        """Extension requests awaiting a decision (admin)."""
        extensions = ExtensionService.list_extensions(status='pending')
        return Response(ExtensionRequestSerializer(extensions, many=True).data)

    @extend_schema(request=ExtensionReviewSerializer, responses={200: ExtensionRequestSerializer})
    @action(
        detail=False,
        methods=['post'],
        url_path=r'extensions/(?P<extension_id>[0-9a-fA-F-]{36})/review',
    )
    def review_extension(self, request, extension_id=None):
        """Approve or reject an extension request (admin)."""
        serializer = ExtensionReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            extension = ExtensionService.review_extension(
                extension_id,
                reviewed_by=request.user,
                approve=serializer.validated_data['approve'],
            )
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ExtensionRequestSerializer(extension).data)

    # =========================================================================
    # Payments
    # =========================================================================

    @extend_schema(request=PaymentCreateSerializer, responses={201: PaymentTransactionSerializer})
    @action(detail=True, methods=['post'])
    def payments(self, request, pk=None):
        """Record a payment (admin, or the owner paying from the wallet)."""
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            payment = PaymentService.record_payment(
                pk,
                performed_by=request.user,
                amount=data['amount'],
                method=data['method'],
                transaction_id=data.get('transaction_id'),
            )
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(PaymentTransactionSerializer(payment).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        parameters=[OpenApiParameter('output', OpenApiTypes.STR, description="'png' for the raw image")],
        responses={200: UPIPaymentSerializer},
    )
    @action(detail=True, methods=['get'], url_path='upi-qr')
    def upi_qr(self, request, pk=None):
        """UPI payment link and QR code for the outstanding amount."""
        booking = BookingService.get_booking(pk, request.user)

        try:
            payload = UPIPaymentGenerator.generate_for_booking(booking)
        except QRGenerationError as e:
            return Response({'error': str(e)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        if request.query_params.get('output') == 'png':
            png = UPIPaymentGenerator.generate_qr_png(payload['upi_string'])
            return HttpResponse(png, content_type='image/png')

        return Response(UPIPaymentSerializer(payload).data)

    # =========================================================================
    # Admin
    # =========================================================================

    @extend_schema(parameters=[BookingFilterSerializer], responses={200: BookingListSerializer(many=True)})
    @action(detail=False, methods=['get'], url_path='all')
    def all_bookings(self, request):
        """All bookings with filters (admin)."""
        params = BookingFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        bookings = BookingService.list_all_bookings(**params.validated_data)
        page = self.paginate_queryset(bookings)
        if page is not None:
            return self.get_paginated_response(BookingListSerializer(page, many=True).data)
        return Response(BookingListSerializer(bookings, many=True).data)

    @extend_schema(request=UpdateStatusSerializer, responses={200: BookingSerializer})
    @action(detail=True, methods=['put'], url_path='status')
    def update_status(self, request, pk=None):
        """Move a booking through the status workflow (admin)."""
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = BookingService.update_status(
                pk,
                data['status'],
                performed_by=request.user,
                mileage=data.get('mileage'),
                fuel_level=data.get('fuel_level'),
            )
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(BookingSerializer(booking).data)

    @extend_schema(request=ProcessReturnSerializer, responses={200: BookingSerializer})
    @action(detail=True, methods=['post'], url_path='return')
    def process_return(self, request, pk=None):
        """Inspect the returned car and complete the booking (admin)."""
        serializer = ProcessReturnSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = BookingService.process_return(
                pk,
                performed_by=request.user,
                mileage_at_dropoff=data['mileage_at_dropoff'],
                fuel_level=data['fuel_level'],
                damages=data.get('damages'),
                extra_charges=data.get('extra_charges'),
            )
        except BookingServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        booking = BookingService.get_booking(booking.id, request.user)
        return Response(BookingSerializer(booking).data)
