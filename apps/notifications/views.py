from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes
from apps.accounts.permissions import IsAdminRole
from .serializers import (
    NotificationSerializer,
    NotificationListSerializer,
    NotificationFilterSerializer,
    NotificationPreferencesSerializer,
    BulkNotificationSerializer,
    NotificationStatsSerializer,
)
from .services import (
    get_user_notifications,
    get_unread_count,
    mark_notification_read,
    mark_notification_unread,
    mark_all_as_read,
    archive_notification,
    unarchive_notification,
    delete_notification,
    clear_all_notifications,
    get_notification_preferences,
    update_notification_preferences,
    send_test_notification,
    send_bulk_notification,
    get_notification_stats,
    NotificationNotFoundError,
    InvalidAudienceError,
)


class CountResponseSerializer(serializers.Serializer):
    count = serializers.IntegerField()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


@extend_schema(
    parameters=[
        OpenApiParameter(name='limit', type=OpenApiTypes.INT, description='Page size (default 50)'),
        OpenApiParameter(name='skip', type=OpenApiTypes.INT, description='Number of notifications to skip'),
        OpenApiParameter(name='unread_only', type=OpenApiTypes.BOOL),
        OpenApiParameter(name='archived', type=OpenApiTypes.BOOL),
        OpenApiParameter(name='types', type=OpenApiTypes.STR, description='Comma-separated types'),
    ],
    responses={200: NotificationListSerializer},
    description="List the current user's notifications. Expired notifications are hidden.",
    tags=['notifications'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    filter_serializer = NotificationFilterSerializer(data=request.query_params)
    filter_serializer.is_valid(raise_exception=True)

    result = get_user_notifications(user=request.user, **filter_serializer.validated_data)
    return Response(NotificationListSerializer(result).data)


@extend_schema(
    responses={200: CountResponseSerializer},
    description="Number of unread, non-archived notifications.",
    tags=['notifications'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_count(request):
    return Response({'count': get_unread_count(user=request.user)})


def _single_notification_action(service, request, notification_id):
    try:
        notification = service(user=request.user, notification_id=notification_id)
    except NotificationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    return Response(NotificationSerializer(notification).data)


@extend_schema(
    request=None,
    responses={200: NotificationSerializer, 404: ErrorResponseSerializer},
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_read(request, notification_id):
    return _single_notification_action(mark_notification_read, request, notification_id)


@extend_schema(
    request=None,
    responses={200: NotificationSerializer, 404: ErrorResponseSerializer},
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_unread(request, notification_id):
    return _single_notification_action(mark_notification_unread, request, notification_id)


@extend_schema(
    request=None,
    responses={200: CountResponseSerializer},
    description="Mark all notifications as read. Returns the number updated.",
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_all_read(request):
    return Response({'count': mark_all_as_read(user=request.user)})


@extend_schema(
    request=None,
    responses={200: NotificationSerializer, 404: ErrorResponseSerializer},
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def archive(request, notification_id):
    return _single_notification_action(archive_notification, request, notification_id)


@extend_schema(
    request=None,
    responses={200: NotificationSerializer, 404: ErrorResponseSerializer},
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def unarchive(request, notification_id):
    return _single_notification_action(unarchive_notification, request, notification_id)


@extend_schema(
    responses={204: None, 404: ErrorResponseSerializer},
    tags=['notifications'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def notification_delete(request, notification_id):
    try:
        delete_notification(user=request.user, notification_id=notification_id)
    except NotificationNotFoundError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(
    responses={200: CountResponseSerializer},
    description="Delete every non-archived notification. Returns the number deleted.",
    tags=['notifications'],
)
@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def clear_all(request):
    return Response({'count': clear_all_notifications(user=request.user)})


@extend_schema(
    methods=['GET'],
    responses={200: NotificationPreferencesSerializer},
    tags=['notifications'],
)
@extend_schema(
    methods=['PUT'],
    request=NotificationPreferencesSerializer,
    responses={200: NotificationPreferencesSerializer},
    description="Switch notification channels on or off. Omitted channels keep their value.",
    tags=['notifications'],
)
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def preferences(request):
    if request.method == 'GET':
        return Response(get_notification_preferences(user=request.user))

    serializer = NotificationPreferencesSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    updated = update_notification_preferences(user=request.user, preferences=serializer.validated_data)
    return Response(updated)


@extend_schema(
    request=None,
    responses={201: NotificationSerializer},
    description="Create a sample notification for the current user.",
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def send_test(request):
    notification = send_test_notification(user=request.user)
    return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Admin
# =============================================================================

@extend_schema(
    request=BulkNotificationSerializer,
    responses={201: CountResponseSerializer, 400: ErrorResponseSerializer},
    description="Send one notification to every user in an audience.",
    tags=['notifications'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def bulk_send(request):
    serializer = BulkNotificationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        count = send_bulk_notification(**serializer.validated_data)
    except InvalidAudienceError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({'count': count}, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={200: NotificationStatsSerializer(many=True)},
    description="Per-type delivery and read statistics.",
    tags=['notifications'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def notification_stats(request):
    return Response(NotificationStatsSerializer(get_notification_stats(), many=True).data)
