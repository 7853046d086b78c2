"""Service history and availability switches."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.notifications.models import NotificationType
from apps.notifications.services import create_notification

from ..models import Car, CarStatus, ServiceRecord
from .exceptions import CarNotFoundError

User = get_user_model()
logger = logging.getLogger(__name__)


def _locked_car(car_id: UUID) -> Car:
    try:
        return Car.objects.select_for_update().exclude(status=CarStatus.DELETED).get(id=car_id)
    except Car.DoesNotExist:
        raise CarNotFoundError(f"Car with ID {car_id} not found")


@transaction.atomic
def record_service(
    *,
    car_id: UUID,
    recorded_by: User,
    service_type: str,
    description: str = '',
    cost: Decimal = Decimal('0.00'),
    mileage: Optional[int] = None,
    workshop: str = '',
    service_date: Optional[date] = None,
    next_service: Optional[date] = None,
) -> ServiceRecord:
    """
    Append a service record and roll the car's maintenance fields forward.

    ``last_service`` becomes the service date, ``next_service`` is replaced
    when given, and the odometer only moves forward.

    Raises:
        CarNotFoundError: If car does not exist
    """
    car = _locked_car(car_id)
    service_date = service_date or timezone.localdate()

    record = ServiceRecord.objects.create(
        car=car,
        date=service_date,
        service_type=service_type,
        description=description,
        cost=cost,
        mileage=mileage,
        workshop=workshop,
        recorded_by=recorded_by,
    )

    car.last_service = service_date
    if next_service:
        car.next_service = next_service
    if mileage and mileage > car.current_mileage:
        car.current_mileage = mileage
    car.updated_by = recorded_by
    car.save(update_fields=['last_service', 'next_service', 'current_mileage', 'updated_by', 'updated_at'])

    create_notification(
        user=recorded_by,
        title='Maintenance Updated',
        message=f"Maintenance updated for {car.display_name}",
        type=NotificationType.SYSTEM,
        metadata={'car_id': str(car.id), 'service_type': service_type},
    )
    logger.info("Service '%s' recorded for car %s", service_type, car.id)

    return record


@transaction.atomic
def set_availability(*, car_id: UUID, availability: str, updated_by: User) -> Car:
    car = _locked_car(car_id)
    car.availability = availability
    car.updated_by = updated_by
    car.save(update_fields=['availability', 'updated_by', 'updated_at'])
    return car
