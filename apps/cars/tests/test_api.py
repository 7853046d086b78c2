import pytest
from datetime import timedelta
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from apps.bookings.models import Booking, BookingStatus
from apps.cars.models import Car, CarImage, CarStatus


# =============================================================================
# Public endpoints
# =============================================================================

@pytest.mark.django_db
class TestCarListAPI:
    """Tests for GET /api/cars/"""

    def test_list(self, api_client, car, suv):
        url = reverse('cars:car-list')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2

    def test_filter_and_sort(self, api_client, car, suv):
        url = reverse('cars:car-list')
        response = api_client.get(url, {'city': 'bengaluru', 'sort': 'price_asc'})

        assert [c['id'] for c in response.data['results']] == [str(car.id)]

    def test_invalid_category(self, api_client):
        url = reverse('cars:car-list')
        response = api_client.get(url, {'category': 'spaceship'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_primary_image_in_list(self, api_client, car_with_images):
        url = reverse('cars:car-list')
        response = api_client.get(url)

        assert response.data['results'][0]['primary_image'] == 'https://cdn.example.com/tiago-front.jpg'

    def test_detail(self, api_client, car_with_images):
        url = reverse('cars:car-detail', kwargs={'pk': car_with_images.id})
        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['display_name'] == 'Tata Tiago'
        assert len(response.data['images']) == 2

    def test_deleted_car_hidden(self, api_client, car):
        car.status = CarStatus.DELETED
        car.save()

        url = reverse('cars:car-detail', kwargs={'pk': car.id})
        response = api_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestDiscoveryAPI:

    def test_featured(self, api_client, car, suv):
        url = reverse('cars:car-featured')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert [c['model'] for c in response.data] == ['XUV700']

    def test_recommended_requires_auth(self, api_client):
        url = reverse('cars:car-recommended')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_recommended_budget(self, authenticated_client, car, suv):
        url = reverse('cars:car-recommended')
        response = authenticated_client.get(url, {'budget': '2000'})

        assert response.status_code == status.HTTP_200_OK
        assert [c['model'] for c in response.data] == ['Tiago']

    def test_nearby(self, api_client, car, suv):
        url = reverse('cars:car-nearby')
        response = api_client.get(url, {'lat': '12.9716', 'lng': '77.5946', 'radius': '10'})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]['model'] == 'Tiago'
        assert response.data[0]['distance_km'] < 1

    def test_nearby_requires_coordinates(self, api_client):
        url = reverse('cars:car-nearby')
        response = api_client.get(url, {'lat': '12.9716'})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_categories(self, api_client, car, suv):
        url = reverse('cars:car-categories')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert {row['category'] for row in response.data} == {'hatchback', 'suv'}


@pytest.mark.django_db
class TestCheckAvailabilityAPI:

    def test_quote(self, api_client, car):
        start = timezone.now() + timedelta(days=5)
        url = reverse('cars:car-check-availability', kwargs={'pk': car.id})
        response = api_client.post(url, {
            'pickup_date': start.isoformat(),
            'dropoff_date': (start + timedelta(days=2)).isoformat(),
        }, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_available'] is True
        assert response.data['total_days'] == 2
        assert response.data['total_amount'] == '4832.00'

    def test_booked_range(self, api_client, user, car):
        start = timezone.now() + timedelta(days=5)
        Booking.objects.create(
            user=user,
            car=car,
            pickup_date=start,
            dropoff_date=start + timedelta(days=2),
            total_days=2,
            base_amount=car.price_per_day * 2,
            total_amount=car.price_per_day * 2,
            status=BookingStatus.CONFIRMED,
        )

        url = reverse('cars:car-check-availability', kwargs={'pk': car.id})
        response = api_client.post(url, {
            'pickup_date': (start + timedelta(days=1)).isoformat(),
            'dropoff_date': (start + timedelta(days=3)).isoformat(),
        }, format='json')

        assert response.data['is_available'] is False
        assert len(response.data['conflicts']) == 1

    def test_reversed_dates(self, api_client, car):
        start = timezone.now() + timedelta(days=5)
        url = reverse('cars:car-check-availability', kwargs={'pk': car.id})
        response = api_client.post(url, {
            'pickup_date': start.isoformat(),
            'dropoff_date': (start - timedelta(days=1)).isoformat(),
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Fleet management
# =============================================================================

@pytest.mark.django_db
class TestCarAdminAPI:

    def _payload(self, **overrides):
        data = {
            'make': 'Maruti',
            'model': 'Swift',
            'year': 2022,
            'license_plate': 'mh12ab1234',
            'category': 'hatchback',
            'transmission': 'manual',
            'fuel_type': 'petrol',
            'seats': 5,
            'price_per_day': '1100.00',
            'city': 'Pune',
        }
        data.update(overrides)
        return data

    def test_create(self, admin_client):
        url = reverse('cars:car-list')
        response = admin_client.post(url, self._payload(), format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['license_plate'] == 'MH12AB1234'

    def test_create_forbidden_for_customers(self, authenticated_client):
        url = reverse('cars:car-list')
        response = authenticated_client.post(url, self._payload(), format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_duplicate_plate(self, admin_client, car):
        url = reverse('cars:car-list')
        response = admin_client.post(url, self._payload(license_plate='KA05MN4321'), format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'already exists' in response.data['error']

    def test_year_out_of_range(self, admin_client):
        url = reverse('cars:car-list')
        response = admin_client.post(url, self._payload(year=1990), format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_partial_update(self, admin_client, car):
        url = reverse('cars:car-detail', kwargs={'pk': car.id})
        response = admin_client.patch(url, {'price_per_day': '1300.00'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['price_per_day'] == '1300.00'

    def test_delete(self, admin_client, car):
        url = reverse('cars:car-detail', kwargs={'pk': car.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert Car.objects.get(id=car.id).status == CarStatus.DELETED

    def test_delete_with_booking(self, admin_client, user, car):
        start = timezone.now() + timedelta(days=1)
        Booking.objects.create(
            user=user,
            car=car,
            pickup_date=start,
            dropoff_date=start + timedelta(days=1),
            total_days=1,
            base_amount=car.price_per_day,
            total_amount=car.price_per_day,
            status=BookingStatus.ACTIVE,
        )

        url = reverse('cars:car-detail', kwargs={'pk': car.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_stats(self, admin_client, car, suv):
        url = reverse('cars:car-stats')
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_cars'] == 2
        assert response.data['by_category'] == {'hatchback': 1, 'suv': 1}

    def test_stats_forbidden_for_customers(self, authenticated_client):
        url = reverse('cars:car-stats')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_set_availability(self, admin_client, car):
        url = reverse('cars:car-availability', kwargs={'pk': car.id})
        response = admin_client.put(url, {'availability': 'maintenance'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['availability'] == 'maintenance'

    def test_booking_stats(self, admin_client, car):
        url = reverse('cars:car-booking-stats', kwargs={'pk': car.id})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['total_bookings'] == 0
        assert response.data['availability_percentage'] == 100.0


@pytest.mark.django_db
class TestCarImagesAPI:

    def test_add_image(self, admin_client, car):
        url = reverse('cars:car-images', kwargs={'pk': car.id})
        response = admin_client.post(url, {'url': 'https://cdn.example.com/new.jpg'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['is_primary'] is True

    def test_set_primary(self, admin_client, car_with_images):
        side = car_with_images.images.get(is_primary=False)

        url = reverse('cars:car-primary-image', kwargs={'pk': car_with_images.id})
        response = admin_client.put(url, {'image_id': str(side.id)}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['is_primary'] is True

    def test_delete_image(self, admin_client, car_with_images):
        side = car_with_images.images.get(is_primary=False)

        url = reverse('cars:car-delete-image', kwargs={'pk': car_with_images.id, 'image_id': side.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not CarImage.objects.filter(id=side.id).exists()

    def test_delete_only_image(self, admin_client, car):
        image = CarImage.objects.create(car=car, url='https://cdn.example.com/only.jpg', is_primary=True)

        url = reverse('cars:car-delete-image', kwargs={'pk': car.id, 'image_id': image.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestMaintenanceAPI:

    def test_record_and_list(self, admin_client, car):
        url = reverse('cars:car-maintenance', kwargs={'pk': car.id})
        response = admin_client.post(url, {
            'service_type': 'Brake pads',
            'cost': '3200.00',
            'mileage': 20500,
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['recorded_by_email'] == 'fleet_admin@example.com'

        response = admin_client.get(url)
        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert Car.objects.get(id=car.id).current_mileage == 20500
