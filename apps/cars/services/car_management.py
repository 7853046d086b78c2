"""Car CRUD operations service."""

import logging
from uuid import UUID

from django.db import transaction
from django.contrib.auth import get_user_model

from apps.bookings.models import BookingStatus
from apps.notifications.models import NotificationType
from apps.notifications.services import create_notification

from ..models import Car, CarStatus
from .exceptions import CarNotFoundError, DuplicateCarError, CarHasActiveBookingsError

User = get_user_model()
logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    field.name for field in Car._meta.get_fields()
    if getattr(field, 'editable', False) and not field.is_relation
} - {'id', 'created_at', 'updated_at'}


def get_car(*, car_id: UUID, include_inactive: bool = True) -> Car:
    """
    Load a car that has not been deleted.

    Raises:
        CarNotFoundError: If car does not exist or is deleted
    """
    queryset = Car.objects.exclude(status=CarStatus.DELETED)
    if not include_inactive:
        queryset = queryset.filter(status=CarStatus.ACTIVE)
    try:
        return queryset.prefetch_related('images').get(id=car_id)
    except Car.DoesNotExist:
        raise CarNotFoundError(f"Car with ID {car_id} not found")


def _check_identifiers(*, license_plate=None, vin=None, exclude_id=None):
    queryset = Car.objects.all()
    if exclude_id:
        queryset = queryset.exclude(id=exclude_id)

    if license_plate and queryset.filter(license_plate=license_plate.upper().strip()).exists():
        raise DuplicateCarError(f"Car with licence plate '{license_plate}' already exists")
    if vin and queryset.filter(vin=vin.upper().strip()).exists():
        raise DuplicateCarError(f"Car with VIN '{vin}' already exists")


@transaction.atomic
def create_car(*, created_by: User, **fields) -> Car:
    """
    Add a car to the fleet.

    Args:
        created_by: Admin adding the car
        **fields: Car model fields

    Returns:
        Created Car instance

    Raises:
        DuplicateCarError: If licence plate or VIN is already registered
    """
    _check_identifiers(license_plate=fields.get('license_plate'), vin=fields.get('vin'))

    car = Car.objects.create(created_by=created_by, updated_by=created_by, **fields)

    create_notification(
        user=created_by,
        title='New Car Added',
        message=f"Car {car.display_name} has been added to inventory",
        type=NotificationType.SYSTEM,
        metadata={'car_id': str(car.id)},
    )
    logger.info("Car %s (%s) added by %s", car.id, car.license_plate, created_by.id)

    return car


@transaction.atomic
def update_car(*, car_id: UUID, updated_by: User, **changes) -> Car:
    """
    Update car fields.

    A change of the daily price notifies the acting admin.

    Raises:
        CarNotFoundError: If car does not exist
        DuplicateCarError: If the new licence plate or VIN is taken
    """
    try:
        car = Car.objects.select_for_update().exclude(status=CarStatus.DELETED).get(id=car_id)
    except Car.DoesNotExist:
        raise CarNotFoundError(f"Car with ID {car_id} not found")

    _check_identifiers(
        license_plate=changes.get('license_plate'),
        vin=changes.get('vin'),
        exclude_id=car.id,
    )

    old_price = car.price_per_day
    for field, value in changes.items():
        if field in UPDATABLE_FIELDS:
            setattr(car, field, value)
    car.updated_by = updated_by
    car.save()

    if 'price_per_day' in changes and changes['price_per_day'] != old_price:
        create_notification(
            user=updated_by,
            title='Car Price Updated',
            message=f"Price for {car.display_name} changed from ₹{old_price} to ₹{car.price_per_day}",
            type=NotificationType.SYSTEM,
            metadata={
                'car_id': str(car.id),
                'old_price': str(old_price),
                'new_price': str(car.price_per_day),
            },
        )

    return car


@transaction.atomic
def soft_delete_car(*, car_id: UUID, deleted_by: User) -> Car:
    """
    Mark a car as deleted.

    Raises:
        CarNotFoundError: If car does not exist
        CarHasActiveBookingsError: If the car has confirmed or active bookings
    """
    try:
        car = Car.objects.select_for_update().exclude(status=CarStatus.DELETED).get(id=car_id)
    except Car.DoesNotExist:
        raise CarNotFoundError(f"Car with ID {car_id} not found")

    if car.bookings.filter(status__in=[BookingStatus.CONFIRMED, BookingStatus.ACTIVE]).exists():
        raise CarHasActiveBookingsError("Cannot delete car with active bookings")

    car.status = CarStatus.DELETED
    car.updated_by = deleted_by
    car.save(update_fields=['status', 'updated_by', 'updated_at'])

    create_notification(
        user=deleted_by,
        title='Car Deleted',
        message=f"Car {car.display_name} has been removed from inventory",
        type=NotificationType.SYSTEM,
        metadata={'car_id': str(car.id)},
    )
    logger.info("Car %s deleted by %s", car.id, deleted_by.id)

    return car
