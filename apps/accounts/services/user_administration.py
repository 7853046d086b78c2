"""
Admin-side user management.

Every mutation performed here is written to the audit log.
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.contrib.auth import get_user_model

from apps.accounts.models import AccountStatus, AuditLog, UserRole
from apps.bookings.models import Booking, BookingStatus, OPEN_BOOKING_STATUSES
from apps.notifications.models import NotificationType, NotificationCategory
from apps.notifications.services import create_notification

from .exceptions import (
    InsufficientPermissionsError,
    UserHasActiveBookingsError,
    UserNotFoundError,
)

User = get_user_model()
logger = logging.getLogger(__name__)

ADMIN_EDITABLE_FIELDS = ('name', 'phone', 'role', 'status', 'email_verified', 'wallet_balance')
PRIVILEGED_ROLES = (UserRole.ADMIN, UserRole.SUPER_ADMIN)


def record_audit_event(
    *,
    action: str,
    performed_by: User,
    target_user: Optional[User] = None,
    changes: Optional[dict] = None,
    ip_address: Optional[str] = None,
    user_agent: str = '',
) -> AuditLog:
    return AuditLog.objects.create(
        action=action,
        performed_by=performed_by,
        target_user=target_user,
        changes=changes or {},
        ip_address=ip_address,
        user_agent=user_agent[:300],
    )


def list_users(
    *,
    role: Optional[str] = None,
    status: Optional[str] = None,
    email_verified: Optional[bool] = None,
    search: Optional[str] = None,
):
    """Filtered user queryset for the admin user list."""
    queryset = User.objects.annotate(booking_count=Count('bookings'))

    if role:
        queryset = queryset.filter(role=role)
    if status:
        queryset = queryset.filter(status=status)
    if email_verified is not None:
        queryset = queryset.filter(email_verified=email_verified)
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) |
            Q(email__icontains=search) |
            Q(phone__icontains=search)
        )

    return queryset.order_by('-created_at')


def get_user_details(*, user_id: UUID) -> dict:
    """
    Load a user with booking statistics and recent bookings.

    Raises:
        UserNotFoundError: If user does not exist
    """
    try:
        user = User.objects.get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError("User not found")

    bookings = Booking.objects.filter(user=user)
    totals = bookings.aggregate(
        total=Count('id'),
        completed=Count('id', filter=Q(status=BookingStatus.COMPLETED)),
        cancelled=Count('id', filter=Q(status=BookingStatus.CANCELLED)),
        spent=Sum('total_amount', filter=Q(status=BookingStatus.COMPLETED)),
    )

    return {
        'user': user,
        'booking_stats': {
            'total_bookings': totals['total'],
            'completed_bookings': totals['completed'],
            'cancelled_bookings': totals['cancelled'],
            'total_spent': totals['spent'] or Decimal('0.00'),
        },
        'recent_bookings': list(bookings.select_related('car').order_by('-created_at')[:5]),
    }


@transaction.atomic
def update_user_by_admin(
    *,
    user_id: UUID,
    performed_by: User,
    changes: dict,
    ip_address: Optional[str] = None,
    user_agent: str = '',
) -> User:
    """
    Apply admin edits to a user account.

    Only a super admin may edit another super admin or hand out the admin
    or super_admin role. A status change notifies the user by email.

    Args:
        user_id: Target user
        performed_by: Acting admin
        changes: Subset of name, phone, role, status, email_verified, wallet_balance

    Raises:
        UserNotFoundError: If user does not exist
        InsufficientPermissionsError: If the role rules are violated
    """
    try:
        user = User.objects.select_for_update().get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError("User not found")

    if not performed_by.is_super_admin:
        if user.is_super_admin:
            raise InsufficientPermissionsError("Only a super admin can modify a super admin")
        if changes.get('role') in PRIVILEGED_ROLES:
            raise InsufficientPermissionsError("Only a super admin can assign admin roles")

    previous_status = user.status
    applied = {}
    for field in ADMIN_EDITABLE_FIELDS:
        if field in changes:
            setattr(user, field, changes[field])
            applied[field] = str(changes[field])

    user.save()

    record_audit_event(
        action='UPDATE_USER',
        performed_by=performed_by,
        target_user=user,
        changes=applied,
        ip_address=ip_address,
        user_agent=user_agent,
    )

    if 'status' in changes and changes['status'] != previous_status:
        create_notification(
            user=user,
            title='Account Status Updated',
            message=f"Your account status has been updated to {user.status}",
            type=NotificationType.SYSTEM,
            category=NotificationCategory.WARNING,
            send_email=True,
        )

    logger.info("Admin %s updated user %s: %s", performed_by.id, user.id, sorted(applied))
    return user


@transaction.atomic
def deactivate_user(
    *,
    user_id: UUID,
    performed_by: User,
    ip_address: Optional[str] = None,
    user_agent: str = '',
) -> User:
    """
    Soft-delete a user by moving them to the deactivated status.

    Raises:
        UserNotFoundError: If user does not exist
        InsufficientPermissionsError: If the target is a super admin
        UserHasActiveBookingsError: If the user has open bookings
    """
    try:
        user = User.objects.select_for_update().get(id=user_id)
    except User.DoesNotExist:
        raise UserNotFoundError("User not found")

    if user.is_super_admin:
        raise InsufficientPermissionsError("Cannot delete super admin user")

    if Booking.objects.filter(user=user, status__in=OPEN_BOOKING_STATUSES).exists():
        raise UserHasActiveBookingsError("Cannot delete user with active bookings")

    user.status = AccountStatus.DEACTIVATED
    user.save()

    record_audit_event(
        action='DELETE_USER',
        performed_by=performed_by,
        target_user=user,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    logger.info("Admin %s deactivated user %s", performed_by.id, user.id)
    return user


def get_audit_logs(
    *,
    action: Optional[str] = None,
    user_id: Optional[UUID] = None,
    start_date=None,
    end_date=None,
):
    queryset = AuditLog.objects.select_related('performed_by', 'target_user')
    if action:
        queryset = queryset.filter(action=action)
    if user_id:
        queryset = queryset.filter(Q(performed_by_id=user_id) | Q(target_user_id=user_id))
    if start_date:
        queryset = queryset.filter(created_at__date__gte=start_date)
    if end_date:
        queryset = queryset.filter(created_at__date__lte=end_date)
    return queryset
