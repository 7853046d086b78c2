"""
Custom permission classes for bookings app.
"""
from rest_framework.permissions import BasePermission


class IsBookingOwnerOrAdmin(BasePermission):
    """
    Permission to view or act on a booking.

    Allows access if:
    - User made the booking
    - User has the admin or super admin role
    """

    message = 'You do not have permission to access this booking.'

    def has_object_permission(self, request, view, obj):
        return obj.user_id == request.user.id or request.user.is_admin
