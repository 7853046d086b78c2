"""Self-service profile management."""

from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from .exceptions import AccountsServiceError

User = get_user_model()


@transaction.atomic
def update_user_details(
    *,
    user_id: UUID,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    address: Optional[dict] = None,
    preferences: Optional[dict] = None,
) -> User:
    """
    Update profile details.

    Address and preferences are merged into the stored dicts rather than
    replaced, so clients may send partial updates. Changing the phone number
    resets phone verification.

    Raises:
        AccountsServiceError: If the phone number belongs to another account
    """
    user = User.objects.select_for_update().get(id=user_id)
    update_fields = ['updated_at']

    if name is not None:
        user.name = name
        update_fields.append('name')

    if phone is not None and phone != user.phone:
        if User.objects.filter(phone=phone).exclude(id=user.id).exists():
            raise AccountsServiceError("Phone number is already in use")
        user.phone = phone
        user.phone_verified = False
        update_fields += ['phone', 'phone_verified']

    if address is not None:
        user.address = {**(user.address or {}), **address}
        update_fields.append('address')

    if preferences is not None:
        merged = dict(user.preferences or {})
        for key, value in preferences.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        user.preferences = merged
        update_fields.append('preferences')

    try:
        user.save(update_fields=update_fields)
    except IntegrityError as e:
        raise AccountsServiceError(f"Profile update failed: {str(e)}")

    return user
