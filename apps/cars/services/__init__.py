"""Services for cars business logic."""

from .exceptions import (
    CarsServiceError,
    CarNotFoundError,
    DuplicateCarError,
    CarHasActiveBookingsError,
    CarImageNotFoundError,
    InvalidDateRangeError,
)
from .car_management import (
    get_car,
    create_car,
    update_car,
    soft_delete_car,
)
from .car_images import (
    add_car_image,
    set_primary_image,
    delete_car_image,
)
from .maintenance import (
    record_service,
    set_availability,
)
from .car_search import (
    search_cars,
    get_featured_cars,
    get_recommended_cars,
    find_nearby_cars,
    get_categories,
    get_fleet_stats,
)
from .availability import (
    check_availability,
    get_car_booking_stats,
)

__all__ = [
    # Exceptions
    'CarsServiceError',
    'CarNotFoundError',
    'DuplicateCarError',
    'CarHasActiveBookingsError',
    'CarImageNotFoundError',
    'InvalidDateRangeError',
    # Car Management
    'get_car',
    'create_car',
    'update_car',
    'soft_delete_car',
    # Images
    'add_car_image',
    'set_primary_image',
    'delete_car_image',
    # Maintenance
    'record_service',
    'set_availability',
    # Search
    'search_cars',
    'get_featured_cars',
    'get_recommended_cars',
    'find_nearby_cars',
    'get_categories',
    'get_fleet_stats',
    # Availability
    'check_availability',
    'get_car_booking_stats',
]
