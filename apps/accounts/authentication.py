"""JWT authentication aware of account status."""

from rest_framework.exceptions import PermissionDenied
from rest_framework_simplejwt.authentication import JWTAuthentication

from .models import AccountStatus


class AccountStatusJWTAuthentication(JWTAuthentication):
    """
    Reject tokens belonging to suspended accounts with 403.

    Deactivated accounts are inactive users and are already rejected by
    ``JWTAuthentication.get_user`` with 401.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        if user.status == AccountStatus.SUSPENDED:
            raise PermissionDenied('Your account has been suspended. Please contact support.')
        return user
