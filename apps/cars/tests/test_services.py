import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from apps.bookings.models import Booking, BookingStatus
from apps.cars.models import Availability, Car, CarStatus
from apps.cars.services import (
    create_car,
    update_car,
    soft_delete_car,
    search_cars,
    get_featured_cars,
    find_nearby_cars,
    get_categories,
    get_fleet_stats,
    check_availability,
    get_car_booking_stats,
    add_car_image,
    set_primary_image,
    delete_car_image,
    record_service,
    DuplicateCarError,
    CarHasActiveBookingsError,
    CarsServiceError,
    InvalidDateRangeError,
)
from apps.notifications.models import Notification


def _book(car, user, start, days=2, booking_status=BookingStatus.CONFIRMED, total=Decimal('2832.00')):
    return Booking.objects.create(
        user=user,
        car=car,
        pickup_date=start,
        dropoff_date=start + timedelta(days=days),
        total_days=days,
        base_amount=car.price_per_day * days,
        total_amount=total,
        status=booking_status,
    )


# =============================================================================
# Car model
# =============================================================================

@pytest.mark.django_db
class TestCarModel:

    def test_plate_uppercased(self, car):
        car.license_plate = ' ka05mn9999 '
        car.save()

        assert car.license_plate == 'KA05MN9999'

    def test_weekly_pricing(self, car):
        # one week plus two days at the daily rate
        assert car.calculate_rental_price(9) == Decimal('9400.00')

    def test_daily_pricing_below_a_week(self, car):
        assert car.calculate_rental_price(3) == Decimal('3600.00')

    def test_monthly_pricing(self, car):
        car.price_per_month = Decimal('25000.00')

        # one month plus two days at the daily rate
        assert car.calculate_rental_price(32) == Decimal('27400.00')
        assert car.calculate_rental_price(30) == Decimal('25000.00')

    def test_weekly_pricing_without_monthly_rate(self, car):
        assert car.calculate_rental_price(32) == Decimal('32800.00')

    def test_booking_ending_at_pickup_conflicts(self, user, car):
        start = timezone.now() + timedelta(days=5)
        existing = _book(car, user, start)

        assert car.is_available_for_dates(existing.dropoff_date, existing.dropoff_date + timedelta(days=1)) is False
        assert car.is_available_for_dates(start - timedelta(days=1), start) is False

    def test_back_to_back_after_dropoff_is_free(self, user, car):
        start = timezone.now() + timedelta(days=5)
        existing = _book(car, user, start)
        pickup = existing.dropoff_date + timedelta(seconds=1)

        assert car.is_available_for_dates(pickup, pickup + timedelta(days=1)) is True
        assert car.is_available_for_dates(
            existing.dropoff_date, existing.dropoff_date + timedelta(days=1), exclude_booking=existing,
        ) is True

    def test_running_rating(self, car):
        car.add_rating(5, {'comfort': 5})
        car.add_rating(3, {'comfort': 3})

        assert car.rating_count == 2
        assert car.rating_average == Decimal('4.00')
        assert car.rating_breakdown['comfort'] == 4


# =============================================================================
# Car management
# =============================================================================

@pytest.mark.django_db
class TestCarManagement:

    def _fields(self, **overrides):
        fields = {
            'make': 'Honda',
            'model': 'City',
            'year': 2021,
            'license_plate': 'dl01ab0001',
            'category': 'sedan',
            'fuel_type': 'petrol',
            'seats': 5,
            'price_per_day': Decimal('1800.00'),
            'city': 'Delhi',
        }
        fields.update(overrides)
        return fields

    def test_create(self, admin_user):
        car = create_car(created_by=admin_user, **self._fields())

        assert car.license_plate == 'DL01AB0001'
        assert car.created_by == admin_user
        assert Notification.objects.filter(user=admin_user, title='New Car Added').exists()

    def test_duplicate_plate(self, admin_user, car):
        with pytest.raises(DuplicateCarError):
            create_car(created_by=admin_user, **self._fields(license_plate='ka05mn4321'))

    def test_price_change_notifies(self, admin_user, car):
        update_car(car_id=car.id, updated_by=admin_user, price_per_day=Decimal('1500.00'))

        assert Notification.objects.filter(user=admin_user, title='Car Price Updated').exists()

    def test_soft_delete(self, admin_user, car):
        soft_delete_car(car_id=car.id, deleted_by=admin_user)

        car.refresh_from_db()
        assert car.status == CarStatus.DELETED

    def test_cannot_delete_with_active_booking(self, admin_user, user, car):
        _book(car, user, timezone.now() + timedelta(days=1))

        with pytest.raises(CarHasActiveBookingsError):
            soft_delete_car(car_id=car.id, deleted_by=admin_user)


# =============================================================================
# Search and discovery
# =============================================================================

@pytest.mark.django_db
class TestSearch:

    def test_filters(self, car, suv):
        assert list(search_cars(category='suv')) == [suv]
        assert list(search_cars(max_price=Decimal('2000'))) == [car]
        assert list(search_cars(search='xuv')) == [suv]
        assert list(search_cars(min_seats=6)) == [suv]

    def test_sort_by_price(self, car, suv):
        assert list(search_cars(sort='price_desc')) == [suv, car]

    def test_excludes_booked_for_dates(self, user, car, suv):
        start = timezone.now() + timedelta(days=3)
        _book(car, user, start)

        results = search_cars(pickup_date=start + timedelta(days=1), dropoff_date=start + timedelta(days=4))

        assert list(results) == [suv]

    def test_excludes_deleted(self, car, suv):
        suv.status = CarStatus.DELETED
        suv.save()

        assert list(search_cars()) == [car]

    def test_featured(self, car, suv):
        assert list(get_featured_cars()) == [suv]

    def test_nearby(self, car, suv):
        results = find_nearby_cars(latitude=12.9716, longitude=77.5946, radius_km=20)

        assert [found for found, _ in results] == [car]
        assert results[0][1] < 1

    def test_nearby_wider_radius_sorted(self, car, suv):
        results = find_nearby_cars(latitude=12.9716, longitude=77.5946, radius_km=200)

        assert [found for found, _ in results] == [car, suv]

    def test_categories(self, car, suv):
        rows = {row['category']: row for row in get_categories()}

        assert rows['suv']['count'] == 1
        assert rows['hatchback']['min_price'] == Decimal('1200.00')

    def test_fleet_stats(self, car, suv):
        suv.availability = Availability.MAINTENANCE
        suv.save()

        stats = get_fleet_stats()

        assert stats['total_cars'] == 2
        assert stats['by_availability'] == {'available': 1, 'maintenance': 1}


# =============================================================================
# Availability
# =============================================================================

@pytest.mark.django_db
class TestAvailability:

    def test_quote(self, car):
        start = timezone.now() + timedelta(days=2)

        quote = check_availability(car_id=car.id, pickup_date=start, dropoff_date=start + timedelta(days=2))

        assert quote['is_available'] is True
        assert quote['base_amount'] == Decimal('2400.00')
        assert quote['tax_amount'] == Decimal('432.00')
        assert quote['total_amount'] == Decimal('4832.00')

    def test_conflict(self, user, car):
        start = timezone.now() + timedelta(days=2)
        _book(car, user, start, booking_status=BookingStatus.PENDING)

        quote = check_availability(car_id=car.id, pickup_date=start, dropoff_date=start + timedelta(days=1))

        assert quote['is_available'] is False
        assert len(quote['conflicts']) == 1

    def test_cancelled_booking_does_not_block(self, user, car):
        start = timezone.now() + timedelta(days=2)
        _book(car, user, start, booking_status=BookingStatus.CANCELLED)

        quote = check_availability(car_id=car.id, pickup_date=start, dropoff_date=start + timedelta(days=1))

        assert quote['is_available'] is True

    def test_invalid_range(self, car):
        start = timezone.now()
        with pytest.raises(InvalidDateRangeError):
            check_availability(car_id=car.id, pickup_date=start, dropoff_date=start)

    def test_booking_stats(self, user, car):
        _book(car, user, timezone.now() - timedelta(days=10), booking_status=BookingStatus.COMPLETED)

        stats = get_car_booking_stats(car_id=car.id)

        assert stats['total_bookings'] == 1
        assert stats['total_revenue'] == Decimal('2832.00')
        assert stats['avg_booking_duration'] == 2
        assert len(stats['monthly_revenue']) == 1


# =============================================================================
# Images and maintenance
# =============================================================================

@pytest.mark.django_db
class TestImages:

    def test_first_image_is_primary(self, car):
        image = add_car_image(car_id=car.id, url='https://cdn.example.com/a.jpg')

        assert image.is_primary is True

    def test_set_primary(self, car_with_images):
        side = car_with_images.images.get(url__endswith='side.jpg')

        set_primary_image(car_id=car_with_images.id, image_id=side.id)

        assert list(car_with_images.images.filter(is_primary=True)) == [side]

    def test_deleting_primary_promotes_oldest(self, car_with_images):
        front = car_with_images.images.get(is_primary=True)

        delete_car_image(car_id=car_with_images.id, image_id=front.id)

        remaining = car_with_images.images.get()
        assert remaining.is_primary is True

    def test_cannot_delete_only_image(self, car):
        image = add_car_image(car_id=car.id, url='https://cdn.example.com/a.jpg')

        with pytest.raises(CarsServiceError):
            delete_car_image(car_id=car.id, image_id=image.id)


@pytest.mark.django_db
class TestMaintenance:

    def test_record_service(self, admin_user, car):
        next_service = timezone.localdate() + timedelta(days=180)

        record = record_service(
            car_id=car.id,
            recorded_by=admin_user,
            service_type='Oil change',
            cost=Decimal('2500.00'),
            mileage=21000,
            next_service=next_service,
        )

        car = Car.objects.get(id=car.id)
        assert record.date == timezone.localdate()
        assert car.last_service == timezone.localdate()
        assert car.next_service == next_service
        assert car.current_mileage == 21000

    def test_odometer_never_goes_back(self, admin_user, car):
        record_service(car_id=car.id, recorded_by=admin_user, service_type='Inspection', mileage=100)

        assert Car.objects.get(id=car.id).current_mileage == 20000
