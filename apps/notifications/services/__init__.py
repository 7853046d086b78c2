"""Services for notifications business logic."""

from .exceptions import (
    NotificationServiceError,
    NotificationNotFoundError,
    InvalidAudienceError,
)
from .emails import send_templated_email
from .notification_management import (
    create_notification,
    notify_admins,
    send_bulk_notification,
    deliver_notification_email,
    get_user_notifications,
    get_unread_count,
    get_notification,
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
    get_notification_stats,
)

__all__ = [
    # Exceptions
    'NotificationServiceError',
    'NotificationNotFoundError',
    'InvalidAudienceError',
    # Delivery
    'send_templated_email',
    'deliver_notification_email',
    # Services
    'create_notification',
    'notify_admins',
    'send_bulk_notification',
    'get_user_notifications',
    'get_unread_count',
    'get_notification',
    'mark_notification_read',
    'mark_notification_unread',
    'mark_all_as_read',
    'archive_notification',
    'unarchive_notification',
    'delete_notification',
    'clear_all_notifications',
    'get_notification_preferences',
    'update_notification_preferences',
    'send_test_notification',
    'get_notification_stats',
]
