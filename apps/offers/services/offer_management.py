"""Offer CRUD operations service."""

import logging
from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction
from django.contrib.auth import get_user_model

from apps.accounts.services import record_audit_event
from apps.cars.models import Car
from apps.notifications.models import NotificationType, NotificationCategory
from apps.notifications.services import send_bulk_notification

from ..models import Offer, OfferStatus, ApplicableFor, generate_offer_code
from .exceptions import OfferNotFoundError, DuplicateOfferCodeError, OfferInUseError

User = get_user_model()
logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    field.name for field in Offer._meta.get_fields()
    if getattr(field, 'editable', False) and not field.is_relation
} - {'id', 'used_count', 'created_at', 'updated_at'}


def list_offers(
    *,
    status: Optional[str] = None,
    offer_type: Optional[str] = None,
    featured: Optional[bool] = None,
    active: Optional[bool] = None,
    category: Optional[str] = None,
):
    """
    Filter offers for the public listing.

    Args:
        status: OfferStatus value
        offer_type: OfferType value
        featured: Only featured offers when True
        active: Only offers valid right now when True
        category: Offers usable for a car category (or for every category)
    """
    queryset = Offer.objects.valid() if active else Offer.objects.all()

    if status and not active:
        queryset = queryset.filter(status=status)
    if offer_type:
        queryset = queryset.filter(offer_type=offer_type)
    if featured:
        queryset = queryset.filter(is_featured=True)

    offers = queryset.order_by('-display_priority', '-created_at')
    if category:
        # JSON containment lookups are not portable to SQLite
        return [
            offer for offer in offers
            if not offer.applicable_categories or category in offer.applicable_categories
        ]
    return offers


def get_active_offers(*, featured: bool = False, category: Optional[str] = None):
    return list_offers(active=True, featured=featured, category=category)


def get_offer(*, offer_id: UUID) -> Offer:
    try:
        return Offer.objects.get(id=offer_id)
    except Offer.DoesNotExist:
        raise OfferNotFoundError(f"Offer with ID {offer_id} not found")


def generate_unique_code() -> str:
    """Random 8 character A-Z0-9 code not used by any offer."""
    code = generate_offer_code()
    while Offer.objects.filter(code=code).exists():
        code = generate_offer_code()
    return code


def _set_relations(offer, specific_users, applicable_cars, excluded_cars):
    if specific_users is not None:
        offer.specific_users.set(User.objects.filter(id__in=list(specific_users)))
    if applicable_cars is not None:
        offer.applicable_cars.set(Car.objects.filter(id__in=list(applicable_cars)))
    if excluded_cars is not None:
        offer.excluded_cars.set(Car.objects.filter(id__in=list(excluded_cars)))


@transaction.atomic
def create_offer(
    *,
    created_by: User,
    specific_users: Optional[Iterable[UUID]] = None,
    applicable_cars: Optional[Iterable[UUID]] = None,
    excluded_cars: Optional[Iterable[UUID]] = None,
    **fields,
) -> Offer:
    """
    Create a promotional offer.

    A code is generated when none is given. Offers open to all or to
    existing users are announced to every verified user.

    Args:
        created_by: Admin creating the offer
        specific_users: User ids for a specific_users offer
        applicable_cars: Car ids the offer is limited to
        excluded_cars: Car ids the offer never applies to
        **fields: Offer model fields

    Returns:
        Created Offer instance

    Raises:
        DuplicateOfferCodeError: If the code is already taken
    """
    code = (fields.pop('code', '') or '').upper().strip() or generate_unique_code()
    if Offer.objects.filter(code=code).exists():
        raise DuplicateOfferCodeError(f"Offer code '{code}' already exists")

    offer = Offer.objects.create(code=code, created_by=created_by, updated_by=created_by, **fields)
    _set_relations(offer, specific_users, applicable_cars, excluded_cars)

    if offer.status == OfferStatus.ACTIVE and offer.applicable_for in (
        ApplicableFor.ALL,
        ApplicableFor.EXISTING_USERS,
    ):
        send_bulk_notification(
            user_type='verified',
            title='New Offer Available!',
            message=offer.title,
            type=NotificationType.OFFER,
            category=NotificationCategory.PROMOTION,
            metadata={'offer_id': str(offer.id), 'code': offer.code},
        )

    record_audit_event(
        action='CREATE_OFFER',
        performed_by=created_by,
        changes={'offer_id': str(offer.id), 'code': offer.code, 'title': offer.title},
    )
    logger.info("Offer %s created by %s", offer.code, created_by.id)

    return offer


@transaction.atomic
def update_offer(
    *,
    offer_id: UUID,
    updated_by: User,
    specific_users: Optional[Iterable[UUID]] = None,
    applicable_cars: Optional[Iterable[UUID]] = None,
    excluded_cars: Optional[Iterable[UUID]] = None,
    **changes,
) -> Offer:
    """
    Update offer fields. The status is re-derived from the validity window.

    Raises:
        OfferNotFoundError: If offer does not exist
        DuplicateOfferCodeError: If the new code is taken
    """
    try:
        offer = Offer.objects.select_for_update().get(id=offer_id)
    except Offer.DoesNotExist:
        raise OfferNotFoundError(f"Offer with ID {offer_id} not found")

    if changes.get('code'):
        changes['code'] = changes['code'].upper().strip()
        if Offer.objects.filter(code=changes['code']).exclude(id=offer.id).exists():
            raise DuplicateOfferCodeError(f"Offer code '{changes['code']}' already exists")

    for field, value in changes.items():
        if field in UPDATABLE_FIELDS:
            setattr(offer, field, value)
    offer.updated_by = updated_by
    offer.save()
    _set_relations(offer, specific_users, applicable_cars, excluded_cars)

    record_audit_event(
        action='UPDATE_OFFER',
        performed_by=updated_by,
        changes={'offer_id': str(offer.id), 'fields': sorted(changes)},
    )

    return offer


@transaction.atomic
def delete_offer(*, offer_id: UUID, deleted_by: User) -> None:
    """
    Delete an offer that has never been redeemed.

    Raises:
        OfferNotFoundError: If offer does not exist
        OfferInUseError: If the offer has been used
    """
    offer = get_offer(offer_id=offer_id)

    if offer.used_count > 0:
        raise OfferInUseError("Cannot delete offer that has been used")

    record_audit_event(
        action='DELETE_OFFER',
        performed_by=deleted_by,
        changes={'offer_id': str(offer.id), 'code': offer.code, 'title': offer.title},
    )
    offer.delete()
