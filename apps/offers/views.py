from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.permissions import IsAdminRole
from .models import Offer
from .serializers import (
    OfferSerializer,
    OfferListSerializer,
    OfferWriteSerializer,
    OfferFilterSerializer,
    ValidateOfferSerializer,
    OfferValidationResultSerializer,
    UserOffersSerializer,
    ApplyOfferSerializer,
    ApplyOfferResultSerializer,
    OfferUsageReportSerializer,
    OfferAnalyticsSerializer,
    GeneratedCodeSerializer,
)
from .services import (
    list_offers,
    get_active_offers,
    generate_unique_code,
    create_offer,
    update_offer,
    delete_offer,
    validate_offer_code,
    get_user_offers,
    apply_offer_to_booking,
    get_offer_usage,
    get_offer_analytics,
    # Exceptions
    OfferServiceError,
    OfferNotFoundError,
    DuplicateOfferCodeError,
    OfferInUseError,
)

ADMIN_ACTIONS = {
    'create',
    'update',
    'partial_update',
    'destroy',
    'usage',
    'analytics',
    'generate_code',
}


class OfferPagination(PageNumberPagination):
    """Custom pagination for offers."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class OfferViewSet(viewsets.ModelViewSet):
    """
    ViewSet for promotional offers.

    list: Offers with filters
    create: Create an offer (admin)
    retrieve: Offer details
    update: Update an offer (admin)
    partial_update: Partially update an offer (admin)
    destroy: Delete an unused offer (admin)
    """

    queryset = Offer.objects.all()
    serializer_class = OfferSerializer
    permission_classes = [AllowAny]
    pagination_class = OfferPagination
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_permissions(self):
        if self.action in ADMIN_ACTIONS:
            return [IsAuthenticated(), IsAdminRole()]
        if self.action in ('my_offers', 'apply'):
            return [IsAuthenticated()]
        return [AllowAny()]

    def get_queryset(self):
        if self.action == 'list':
            params = OfferFilterSerializer(data=self.request.query_params)
            params.is_valid(raise_exception=True)
            return list_offers(**params.validated_data)
        return super().get_queryset()

    def get_serializer_class(self):
        if self.action in ('list', 'active'):
            return OfferListSerializer
        elif self.action in ('create', 'update', 'partial_update'):
            return OfferWriteSerializer
        return OfferSerializer

    @extend_schema(
        parameters=[OfferFilterSerializer],
        responses={200: OfferListSerializer(many=True)},
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(request=OfferWriteSerializer, responses={201: OfferSerializer})
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            offer = create_offer(created_by=request.user, **serializer.validated_data)
        except DuplicateOfferCodeError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OfferSerializer(offer).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=OfferWriteSerializer, responses={200: OfferSerializer})
    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = self.get_serializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        try:
            offer = update_offer(
                offer_id=kwargs.get('pk'),
                updated_by=request.user,
                **serializer.validated_data
            )
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except DuplicateOfferCodeError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OfferSerializer(offer).data)

    def destroy(self, request, *args, **kwargs):
        """Delete an offer nobody has redeemed."""
        try:
            delete_offer(offer_id=kwargs.get('pk'), deleted_by=request.user)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except OfferInUseError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(status=status.HTTP_204_NO_CONTENT)

    # =========================================================================
    # Customer actions
    # =========================================================================

    @extend_schema(
        parameters=[
            OpenApiParameter('featured', OpenApiTypes.BOOL, description='Only featured offers'),
            OpenApiParameter('category', OpenApiTypes.STR, description='Car category'),
        ],
        responses={200: OfferListSerializer(many=True)},
    )
    @action(detail=False, methods=['get'])
    def active(self, request):
        """Offers valid right now, highest priority first."""
        featured = request.query_params.get('featured', '').lower() in ('1', 'true')
        offers = get_active_offers(featured=featured, category=request.query_params.get('category'))
        return Response(OfferListSerializer(offers, many=True).data)

    @extend_schema(request=ValidateOfferSerializer, responses={200: OfferValidationResultSerializer})
    @action(detail=False, methods=['post'])
    def validate(self, request):
        """Check a promo code against a prospective booking."""
        serializer = ValidateOfferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = request.user if request.user.is_authenticated else None

        try:
            result = validate_offer_code(user=user, **serializer.validated_data)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except OfferServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OfferValidationResultSerializer({'valid': True, **result}).data)

    @extend_schema(responses={200: UserOffersSerializer})
    @action(detail=False, methods=['get'], url_path='user')
    def my_offers(self, request):
        """Offers the caller is eligible for, including personalized ones."""
        return Response(UserOffersSerializer(get_user_offers(user=request.user)).data)

    @extend_schema(request=ApplyOfferSerializer, responses={200: ApplyOfferResultSerializer})
    @action(detail=False, methods=['post'])
    def apply(self, request):
        """Apply a promo code to one of the caller's open bookings."""
        serializer = ApplyOfferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = apply_offer_to_booking(
                user=request.user,
                booking_id=serializer.validated_data['booking_id'],
                code=serializer.validated_data['code'],
            )
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except OfferServiceError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ApplyOfferResultSerializer(result).data)

    # =========================================================================
    # Admin reporting
    # =========================================================================

    @extend_schema(responses={200: OfferUsageReportSerializer})
    @action(detail=True, methods=['get'])
    def usage(self, request, pk=None):
        try:
            report = get_offer_usage(offer_id=pk)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(OfferUsageReportSerializer(report).data)

    @extend_schema(responses={200: OfferAnalyticsSerializer})
    @action(detail=True, methods=['get'])
    def analytics(self, request, pk=None):
        try:
            report = get_offer_analytics(offer_id=pk)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(OfferAnalyticsSerializer(report).data)

    @extend_schema(responses={200: GeneratedCodeSerializer})
    @action(detail=False, methods=['get'], url_path='generate-code')
    def generate_code(self, request):
        """A fresh unused offer code."""
        return Response({'code': generate_unique_code()})
