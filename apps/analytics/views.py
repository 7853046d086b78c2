from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.accounts.models import User
from apps.accounts.permissions import IsAdminRole
from apps.accounts.serializers import (
    AdminUserListSerializer,
    AdminUserUpdateSerializer,
    AuditLogSerializer,
    AuditLogFilterSerializer,
    UserFilterSerializer,
    UserSerializer,
)
from apps.accounts.services import (
    list_users,
    get_user_details,
    update_user_by_admin,
    deactivate_user,
    get_audit_logs,
    # Exceptions
    UserNotFoundError,
    InsufficientPermissionsError,
    UserHasActiveBookingsError,
)
from .analytics import AnalyticsQueries
from .exports import export_records, render_csv, export_filename
from .serializers import (
    # Input serializers
    DateRangeQuerySerializer,
    ReportQuerySerializer,
    ExportRequestSerializer,
    # Response serializers
    DashboardResponseSerializer,
    BookingStatsResponseSerializer,
    REPORT_SERIALIZERS,
    MaintenanceTasksSerializer,
    AdminUserDetailSerializer,
    UserSummarySerializer,
    ExportResponseSerializer,
    ErrorSerializer,
)
from .exceptions import AnalyticsServiceError

ADMIN_PERMISSIONS = [IsAuthenticated, IsAdminRole]


class AdminPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


def _request_meta(request):
    return {
        'ip_address': request.META.get('REMOTE_ADDR'),
        'user_agent': request.META.get('HTTP_USER_AGENT', ''),
    }


# =============================================================================
# Reporting
# =============================================================================

@extend_schema(
    responses={200: DashboardResponseSerializer},
    description="Admin dashboard: counters, recent activity, revenue and pending work.",
    tags=['admin'],
)
@api_view(['GET'])
@permission_classes(ADMIN_PERMISSIONS)
def dashboard(request):
    data = AnalyticsQueries.dashboard()
    return Response(DashboardResponseSerializer(data).data)


@extend_schema(
    parameters=[DateRangeQuerySerializer],
    responses={200: BookingStatsResponseSerializer, 400: ErrorSerializer},
    description="Bookings by month, car category, payment method and customer.",
    tags=['admin'],
)
@api_view(['GET'])
@permission_classes(ADMIN_PERMISSIONS)
def booking_stats(request):
    query_serializer = DateRangeQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    try:
        data = AnalyticsQueries.booking_stats(
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )
    except AnalyticsServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(BookingStatsResponseSerializer(data).data)


@extend_schema(
    parameters=[ReportQuerySerializer],
    responses={200: OpenApiTypes.OBJECT, 400: ErrorSerializer},
    description="Revenue, bookings, users or cars report for a date range (default: last 30 days).",
    tags=['admin'],
)
@api_view(['GET'])
@permission_classes(ADMIN_PERMISSIONS)
def reports(request):
    query_serializer = ReportQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    try:
        report = AnalyticsQueries.report(
            params['report_type'],
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )
    except AnalyticsServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    serializer_class = REPORT_SERIALIZERS[params['report_type']]
    return Response(serializer_class(report).data)


@extend_schema(
    request=ExportRequestSerializer,
    responses={200: ExportResponseSerializer, 400: ErrorSerializer},
    description="Export users, bookings or cars as JSON or as a CSV attachment.",
    tags=['admin'],
)
@api_view(['POST'])
@permission_classes(ADMIN_PERMISSIONS)
def export_data(request):
    serializer = ExportRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    params = serializer.validated_data

    try:
        records = export_records(
            data_type=params['data_type'],
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )
    except AnalyticsServiceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    if params['format'] == 'csv':
        response = HttpResponse(render_csv(params['data_type'], records), content_type='text/csv')
        filename = export_filename(params['data_type'], 'csv')
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response

    return Response({
        'type': params['data_type'],
        'count': len(records),
        'records': records,
    })


@extend_schema(
    responses={200: MaintenanceTasksSerializer},
    description="Cars due for service, with high mileage or with insurance expiring soon.",
    tags=['admin'],
)
@api_view(['GET'])
@permission_classes(ADMIN_PERMISSIONS)
def maintenance_tasks(request):
    return Response(MaintenanceTasksSerializer(AnalyticsQueries.maintenance_tasks()).data)


# =============================================================================
# User management
# =============================================================================

@extend_schema(
    parameters=[UserFilterSerializer],
    responses={200: AdminUserListSerializer(many=True)},
    description="Paginated user list with filters and summary stats.",
    tags=['admin'],
)
@api_view(['GET'])
@permission_classes(ADMIN_PERMISSIONS)
def user_list(request):
    filter_serializer = UserFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)

    users = list_users(**filter_serializer.validated_data)

    paginator = AdminPagination()
    page = paginator.paginate_queryset(users, request)
    response = paginator.get_paginated_response(AdminUserListSerializer(page, many=True).data)
    response.data['stats'] = UserSummarySerializer(User.dashboard_stats()).data
    return response


@extend_schema(
    methods=['GET'],
    responses={200: AdminUserDetailSerializer, 404: ErrorSerializer},
    description="User profile with booking stats and recent bookings.",
    tags=['admin'],
)
@extend_schema(
    methods=['PUT', 'PATCH'],
    request=AdminUserUpdateSerializer,
    responses={200: UserSerializer, 403: ErrorSerializer, 404: ErrorSerializer},
    description="Update a user. Granting admin roles or editing a super admin needs a super admin.",
    tags=['admin'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None, 400: ErrorSerializer, 403: ErrorSerializer, 404: ErrorSerializer},
    description="Deactivate a user (soft delete).",
    tags=['admin'],
)
@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes(ADMIN_PERMISSIONS)
def user_detail(request, user_id):
    if request.method == 'GET':
        try:
            details = get_user_details(user_id=user_id)
        except UserNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(AdminUserDetailSerializer(details).data)

    if request.method == 'DELETE':
        try:
            deactivate_user(user_id=user_id, performed_by=request.user, **_request_meta(request))
        except UserNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InsufficientPermissionsError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except UserHasActiveBookingsError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = AdminUserUpdateSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)

    try:
        user = update_user_by_admin(
            user_id=user_id,
            performed_by=request.user,
            changes=serializer.validated_data,
            **_request_meta(request),
        )
    except UserNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except InsufficientPermissionsError as e:
        return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(UserSerializer(user).data)


@extend_schema(
    parameters=[
        AuditLogFilterSerializer,
        OpenApiParameter('page', OpenApiTypes.INT, description='Page number'),
    ],
    responses={200: AuditLogSerializer(many=True)},
    description="Audit trail of admin actions.",
    tags=['admin'],
)
@api_view(['GET'])
@permission_classes(ADMIN_PERMISSIONS)
def audit_logs(request):
    filter_serializer = AuditLogFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)

    logs = get_audit_logs(**filter_serializer.validated_data)

    paginator = AdminPagination()
    page = paginator.paginate_queryset(logs, request)
    return paginator.get_paginated_response(AuditLogSerializer(page, many=True).data)
