"""
Notification management service.

Creates in-app notifications, fans them out to admins or bulk audiences,
and implements the inbox operations (read state, archive, delete).
"""

import logging
from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.accounts.models import User
from apps.notifications.models import (
    Notification,
    NotificationCategory,
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)

from .emails import send_templated_email
from .exceptions import InvalidAudienceError, NotificationNotFoundError

logger = logging.getLogger(__name__)

BULK_AUDIENCES = ('all', 'verified', 'with_bookings', 'specific')


def _channels_for(user: User, send_email: bool) -> list:
    channels = [NotificationChannel.IN_APP.value]
    if send_email and user.wants_notification('email'):
        channels.append(NotificationChannel.EMAIL.value)
    return channels


def deliver_notification_email(notification_id: UUID) -> bool:
    """Send the email copy of a notification and stamp the delivery flags."""
    try:
        notification = Notification.objects.select_related('user').get(id=notification_id)
    except Notification.DoesNotExist:
        logger.warning("Notification %s vanished before email delivery", notification_id)
        return False

    sent = send_templated_email(
        to=notification.user.email,
        subject=notification.title,
        template='notification',
        context={
            'user': notification.user,
            'notification': notification,
            'action_url': notification.metadata.get('action_url'),
        },
    )
    if sent:
        notification.email_sent = True
        notification.sent_at = timezone.now()
        notification.save(update_fields=['email_sent', 'sent_at', 'updated_at'])
    return sent


def _schedule_email(notification: Notification) -> None:
    if NotificationChannel.EMAIL.value in notification.channels:
        notification_id = notification.id
        transaction.on_commit(lambda: deliver_notification_email(notification_id))


def create_notification(
    *,
    user: User,
    title: str,
    message: str,
    type: str = NotificationType.SYSTEM,
    category: str = NotificationCategory.INFO,
    priority: str = NotificationPriority.MEDIUM,
    metadata: Optional[dict] = None,
    send_email: bool = False,
    expires_at=None,
) -> Notification:
    """
    Create an in-app notification for a user.

    When ``send_email`` is set and the user has not switched email
    notifications off, the email copy is sent once the surrounding
    transaction commits.

    Args:
        user: Recipient
        title: Short headline
        message: Full message body
        type: NotificationType value
        category: NotificationCategory value
        priority: NotificationPriority value
        metadata: Free-form JSON payload (ids, links)
        send_email: Whether to mirror the notification by email
        expires_at: Optional expiry override (default 30 days)

    Returns:
        Created Notification instance
    """
    fields = {}
    if expires_at is not None:
        fields['expires_at'] = expires_at

    notification = Notification.objects.create(
        user=user,
        title=title,
        message=message,
        type=type,
        category=category,
        priority=priority,
        metadata=metadata or {},
        send_email=send_email,
        channels=_channels_for(user, send_email),
        **fields,
    )
    _schedule_email(notification)
    return notification


def notify_admins(
    *,
    title: str,
    message: str,
    type: str = NotificationType.SYSTEM,
    category: str = NotificationCategory.INFO,
    priority: str = NotificationPriority.MEDIUM,
    metadata: Optional[dict] = None,
) -> list:
    """Create the same notification for every active admin."""
    return [
        create_notification(
            user=admin,
            title=title,
            message=message,
            type=type,
            category=category,
            priority=priority,
            metadata=metadata,
        )
        for admin in User.objects.admins()
    ]


def resolve_audience(*, user_type: str, user_ids: Optional[Iterable[UUID]] = None):
    """
    Resolve a bulk notification audience to a user queryset.

    Args:
        user_type: One of 'all', 'verified', 'with_bookings', 'specific'
        user_ids: Required when user_type is 'specific'

    Raises:
        InvalidAudienceError: If the audience is unknown or empty
    """
    users = User.objects.filter(is_active=True)

    if user_type == 'all':
        return users
    if user_type == 'verified':
        return users.filter(email_verified=True)
    if user_type == 'with_bookings':
        return users.filter(bookings__isnull=False).distinct()
    if user_type == 'specific':
        if not user_ids:
            raise InvalidAudienceError("user_ids are required for a specific audience")
        return users.filter(id__in=list(user_ids))

    raise InvalidAudienceError(
        f"Invalid audience: '{user_type}'. Valid options: {', '.join(BULK_AUDIENCES)}"
    )


@transaction.atomic
def send_bulk_notification(
    *,
    user_type: str,
    title: str,
    message: str,
    user_ids: Optional[Iterable[UUID]] = None,
    type: str = NotificationType.SYSTEM,
    category: str = NotificationCategory.INFO,
    priority: str = NotificationPriority.MEDIUM,
    send_email: bool = False,
    metadata: Optional[dict] = None,
) -> int:
    """
    Send one notification to every user in an audience.

    Returns:
        Number of notifications created
    """
    recipients = list(resolve_audience(user_type=user_type, user_ids=user_ids))
    notifications = [
        Notification(
            user=user,
            title=title,
            message=message,
            short_message=Notification.shorten(message),
            type=type,
            category=category,
            priority=priority,
            metadata=metadata or {},
            send_email=send_email,
            channels=_channels_for(user, send_email),
        )
        for user in recipients
    ]
    created = Notification.objects.bulk_create(notifications)

    for notification in created:
        _schedule_email(notification)

    logger.info("Bulk notification '%s' sent to %d users (%s)", title, len(created), user_type)
    return len(created)


def get_user_notifications(
    *,
    user: User,
    limit: int = 50,
    skip: int = 0,
    unread_only: bool = False,
    archived: bool = False,
    types: Optional[Iterable[str]] = None,
) -> dict:
    """
    Page through a user's inbox.

    Returns:
        dict with notifications, total, unread_count and has_more
    """
    queryset = Notification.objects.for_user(user).live().filter(is_archived=archived)
    if unread_only:
        queryset = queryset.filter(is_read=False)
    if types:
        queryset = queryset.filter(type__in=list(types))

    total = queryset.count()
    notifications = list(queryset[skip:skip + limit])

    return {
        'notifications': notifications,
        'total': total,
        'unread_count': get_unread_count(user=user),
        'has_more': skip + len(notifications) < total,
    }


def get_unread_count(*, user: User) -> int:
    return Notification.objects.for_user(user).live().unread().count()


def get_notification(*, user: User, notification_id: UUID) -> Notification:
    """
    Raises:
        NotificationNotFoundError: If the notification is not the user's
    """
    try:
        return Notification.objects.for_user(user).get(id=notification_id)
    except Notification.DoesNotExist:
        raise NotificationNotFoundError("Notification not found")


def mark_notification_read(*, user: User, notification_id: UUID) -> Notification:
    notification = get_notification(user=user, notification_id=notification_id)
    notification.mark_as_read()
    return notification


def mark_notification_unread(*, user: User, notification_id: UUID) -> Notification:
    notification = get_notification(user=user, notification_id=notification_id)
    notification.mark_as_unread()
    return notification


def mark_all_as_read(*, user: User) -> int:
    """Mark every unread notification read. Returns the number updated."""
    return Notification.objects.for_user(user).filter(is_read=False).update(
        is_read=True,
        read_at=timezone.now(),
        updated_at=timezone.now(),
    )


def archive_notification(*, user: User, notification_id: UUID) -> Notification:
    notification = get_notification(user=user, notification_id=notification_id)
    notification.archive()
    return notification


def unarchive_notification(*, user: User, notification_id: UUID) -> Notification:
    notification = get_notification(user=user, notification_id=notification_id)
    notification.unarchive()
    return notification


def delete_notification(*, user: User, notification_id: UUID) -> None:
    get_notification(user=user, notification_id=notification_id).delete()


def clear_all_notifications(*, user: User) -> int:
    """Delete every non-archived notification. Returns the number deleted."""
    deleted, _ = Notification.objects.for_user(user).filter(is_archived=False).delete()
    return deleted


def get_notification_preferences(*, user: User) -> dict:
    return (user.preferences or {}).get('notifications', {})


@transaction.atomic
def update_notification_preferences(*, user: User, preferences: dict) -> dict:
    """Merge channel switches into the user's notification preferences."""
    user = User.objects.select_for_update().get(id=user.id)
    current = dict(user.preferences or {})
    channels = dict(current.get('notifications', {}))
    channels.update(preferences)
    current['notifications'] = channels
    user.preferences = current
    user.save(update_fields=['preferences', 'updated_at'])
    return channels


def send_test_notification(*, user: User) -> Notification:
    return create_notification(
        user=user,
        title='Test Notification',
        message='This is a test notification to confirm your notification settings.',
        type=NotificationType.SYSTEM,
        category=NotificationCategory.INFO,
        send_email=True,
    )


def get_notification_stats() -> list:
    """Per-type delivery statistics for the admin panel."""
    rows = (
        Notification.objects
        .values('type')
        .annotate(
            total=Count('id'),
            read=Count('id', filter=Q(is_read=True)),
            email_sent=Count('id', filter=Q(email_sent=True)),
            sms_sent=Count('id', filter=Q(sms_sent=True)),
        )
        .order_by('-total')
    )
    return [
        {
            'type': row['type'],
            'total': row['total'],
            'read': row['read'],
            'read_rate': round(row['read'] / row['total'] * 100, 2) if row['total'] else 0,
            'email_sent': row['email_sent'],
            'sms_sent': row['sms_sent'],
        }
        for row in rows
    ]
