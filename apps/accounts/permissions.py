"""
Role-based permission classes shared by all apps.

Usage:
    @permission_classes([IsAuthenticated, IsAdminRole])
    def dashboard(request):
        ...
"""

from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    """Allow users whose role is admin or super_admin."""

    message = 'Admin access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)


class IsSuperAdmin(BasePermission):
    """Allow super admins only."""

    message = 'Super admin access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_super_admin)
