"""Car image management. Images are stored as URLs."""

from uuid import UUID

from django.db import transaction

from ..models import Car, CarImage, CarStatus
from .exceptions import CarNotFoundError, CarImageNotFoundError, CarsServiceError


def _locked_car(car_id: UUID) -> Car:
    try:
        return Car.objects.select_for_update().exclude(status=CarStatus.DELETED).get(id=car_id)
    except Car.DoesNotExist:
        raise CarNotFoundError(f"Car with ID {car_id} not found")


@transaction.atomic
def add_car_image(*, car_id: UUID, url: str, caption: str = '', is_primary: bool = False) -> CarImage:
    """Attach an image. The first image of a car becomes primary."""
    car = _locked_car(car_id)

    if not car.images.exists():
        is_primary = True
    elif is_primary:
        car.images.update(is_primary=False)

    return CarImage.objects.create(car=car, url=url, caption=caption, is_primary=is_primary)


@transaction.atomic
def set_primary_image(*, car_id: UUID, image_id: UUID) -> CarImage:
    """
    Raises:
        CarImageNotFoundError: If image does not belong to the car
    """
    car = _locked_car(car_id)
    try:
        image = car.images.get(id=image_id)
    except CarImage.DoesNotExist:
        raise CarImageNotFoundError("Image not found")

    car.images.exclude(id=image.id).update(is_primary=False)
    image.is_primary = True
    image.save(update_fields=['is_primary'])
    return image


@transaction.atomic
def delete_car_image(*, car_id: UUID, image_id: UUID) -> None:
    """
    Remove an image. Deleting the primary image promotes the oldest remaining one.

    Raises:
        CarImageNotFoundError: If image does not belong to the car
        CarsServiceError: If it is the car's only image
    """
    car = _locked_car(car_id)
    try:
        image = car.images.get(id=image_id)
    except CarImage.DoesNotExist:
        raise CarImageNotFoundError("Image not found")

    if car.images.count() == 1:
        raise CarsServiceError("Cannot delete the only image")

    was_primary = image.is_primary
    image.delete()

    if was_primary:
        replacement = car.images.order_by('created_at').first()
        replacement.is_primary = True
        replacement.save(update_fields=['is_primary'])
