import pytest
from datetime import timedelta
from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from apps.bookings.models import Booking, BookingStatus, ExtensionRequest, PaymentStatus


# =============================================================================
# Create / list / retrieve
# =============================================================================

@pytest.mark.django_db
class TestBookingCreateAPI:
    """Tests for POST /api/bookings/"""

    def _payload(self, car, pickup, **overrides):
        data = {
            'car_id': str(car.id),
            'pickup_date': pickup.isoformat(),
            'dropoff_date': (pickup + timedelta(days=3)).isoformat(),
            'driver_details': {'name': 'Renter', 'phone': '9876543210', 'license_number': 'KA0120200001234'},
        }
        data.update(overrides)
        return data

    def test_create_booking(self, authenticated_client, car, pickup):
        url = reverse('bookings:booking-list')
        response = authenticated_client.post(url, self._payload(car, pickup), format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == BookingStatus.PENDING
        assert response.data['total_amount'] == '4040.00'
        assert len(response.data['charges']) == 1

    def test_create_with_promo_code(self, authenticated_client, car, pickup, offer):
        url = reverse('bookings:booking-list')
        response = authenticated_client.post(
            url, self._payload(car, pickup, promo_code='SAVE10'), format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['discount_amount'] == '300.00'
        assert response.data['total_amount'] == '3686.00'

    def test_create_unavailable_dates(self, authenticated_client, car, booking):
        url = reverse('bookings:booking-list')
        response = authenticated_client.post(
            url, self._payload(car, booking.pickup_date), format='json'
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.data

    def test_create_requires_auth(self, api_client, car, pickup):
        url = reverse('bookings:booking-list')
        response = api_client.post(url, self._payload(car, pickup), format='json')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestBookingListAPI:
    """Tests for GET /api/bookings/"""

    def test_list_own_bookings(self, authenticated_client, other_client, booking):
        url = reverse('bookings:booking-list')

        response = authenticated_client.get(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['booking_number'] == booking.booking_number

        response = other_client.get(url)
        assert response.data['count'] == 0

    def test_filter_by_status(self, authenticated_client, booking):
        url = reverse('bookings:booking-list')
        response = authenticated_client.get(url, {'status': 'completed'})

        assert response.data['count'] == 0

    def test_upcoming(self, authenticated_client, booking):
        url = reverse('bookings:booking-upcoming')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert [b['id'] for b in response.data] == [str(booking.id)]


@pytest.mark.django_db
class TestBookingRetrieveAPI:

    def test_owner_can_view(self, authenticated_client, booking):
        url = reverse('bookings:booking-detail', kwargs={'pk': booking.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['invoice_number'] == booking.invoice_number

    def test_admin_can_view(self, admin_client, booking):
        url = reverse('bookings:booking-detail', kwargs={'pk': booking.id})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK

    def test_stranger_cannot_view(self, other_client, booking):
        url = reverse('bookings:booking-detail', kwargs={'pk': booking.id})
        response = other_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Customer actions
# =============================================================================

@pytest.mark.django_db
class TestCancelAPI:

    def test_cancel(self, authenticated_client, booking):
        url = reverse('bookings:booking-cancel', kwargs={'pk': booking.id})
        response = authenticated_client.post(url, {'reason': 'Plans changed'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == BookingStatus.CANCELLED
        assert response.data['cancellation_fee'] == '404.00'

    def test_cancel_twice(self, authenticated_client, booking):
        url = reverse('bookings:booking-cancel', kwargs={'pk': booking.id})
        authenticated_client.post(url)
        response = authenticated_client.post(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_stranger_cannot_cancel(self, other_client, booking):
        url = reverse('bookings:booking-cancel', kwargs={'pk': booking.id})
        response = other_client.post(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestReviewAPI:

    def test_review_completed_booking(self, authenticated_client, completed_booking):
        url = reverse('bookings:booking-review', kwargs={'pk': completed_booking.id})
        response = authenticated_client.post(
            url, {'rating': 5, 'comment': 'Spotless car', 'categories': {'cleanliness': 5}}, format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['rating'] == 5

    def test_rating_out_of_range(self, authenticated_client, completed_booking):
        url = reverse('bookings:booking-review', kwargs={'pk': completed_booking.id})
        response = authenticated_client.post(url, {'rating': 6}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_review_pending_booking(self, authenticated_client, booking):
        url = reverse('bookings:booking-review', kwargs={'pk': booking.id})
        response = authenticated_client.post(url, {'rating': 4}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestInvoiceAPI:

    def test_invoice(self, authenticated_client, booking):
        url = reverse('bookings:booking-invoice', kwargs={'pk': booking.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['invoice_number'] == booking.invoice_number
        assert 'INVOICE' in response.data['text']


@pytest.mark.django_db
class TestCalendarAPI:

    def test_public_calendar(self, api_client, car):
        url = reverse('bookings:booking-calendar', kwargs={'car_id': car.id})
        response = api_client.get(url, {'month': 2, 'year': 2030})

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data['calendar']) == 28
        assert response.data['calendar'][0]['weekday'] == 'Friday'

    def test_unknown_car(self, api_client):
        url = reverse('bookings:booking-calendar', kwargs={'car_id': '00000000-0000-0000-0000-000000000000'})
        response = api_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Extensions
# =============================================================================

@pytest.mark.django_db
class TestExtensionAPI:

    def test_request_and_list(self, authenticated_client, active_booking):
        url = reverse('bookings:booking-extensions', kwargs={'pk': active_booking.id})
        new_dropoff = active_booking.dropoff_date + timedelta(days=1)

        response = authenticated_client.post(
            url, {'new_dropoff_date': new_dropoff.isoformat(), 'reason': 'Need one more day'}, format='json'
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['extension_cost'] == '1000.00'

        response = authenticated_client.get(url)
        assert len(response.data) == 1

    def test_pending_booking_cannot_extend(self, authenticated_client, booking):
        url = reverse('bookings:booking-extensions', kwargs={'pk': booking.id})
        response = authenticated_client.post(
            url, {'new_dropoff_date': (booking.dropoff_date + timedelta(days=1)).isoformat()}, format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_admin_review(self, authenticated_client, admin_client, active_booking):
        url = reverse('bookings:booking-extensions', kwargs={'pk': active_booking.id})
        authenticated_client.post(
            url, {'new_dropoff_date': (active_booking.dropoff_date + timedelta(days=2)).isoformat()}, format='json'
        )
        extension = ExtensionRequest.objects.get(booking=active_booking)

        pending = admin_client.get(reverse('bookings:booking-pending-extensions'))
        assert [e['id'] for e in pending.data] == [str(extension.id)]

        url = reverse('bookings:booking-review-extension', kwargs={'extension_id': extension.id})
        response = admin_client.post(url, {'approve': True}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'approved'
        assert Booking.objects.get(id=active_booking.id).total_days == 5

    def test_customer_cannot_review(self, authenticated_client, active_booking):
        url = reverse(
            'bookings:booking-review-extension',
            kwargs={'extension_id': '00000000-0000-0000-0000-000000000000'},
        )
        response = authenticated_client.post(url, {'approve': True}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Payments
# =============================================================================

@pytest.mark.django_db
class TestPaymentAPI:

    def test_admin_records_payment(self, admin_client, booking):
        url = reverse('bookings:booking-payments', kwargs={'pk': booking.id})
        response = admin_client.post(url, {'amount': '4040.00', 'method': 'upi'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        booking.refresh_from_db()
        assert booking.payment_status == PaymentStatus.PAID
        assert booking.status == BookingStatus.CONFIRMED

    def test_customer_card_payment_forbidden(self, authenticated_client, booking):
        url = reverse('bookings:booking-payments', kwargs={'pk': booking.id})
        response = authenticated_client.post(url, {'amount': '100.00', 'method': 'card'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_zero_amount(self, admin_client, booking):
        url = reverse('bookings:booking-payments', kwargs={'pk': booking.id})
        response = admin_client.post(url, {'amount': '0', 'method': 'cash'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestUPIQRAPI:

    @override_settings(UPI_VPA='rentals@okbank')
    def test_json_payload(self, authenticated_client, booking):
        url = reverse('bookings:booking-upi-qr', kwargs={'pk': booking.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['upi_string'].startswith('upi://pay?pa=rentals%40okbank')

    @override_settings(UPI_VPA='rentals@okbank')
    def test_png_output(self, authenticated_client, booking):
        url = reverse('bookings:booking-upi-qr', kwargs={'pk': booking.id})
        response = authenticated_client.get(url, {'output': 'png'})

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'] == 'image/png'
        assert response.content.startswith(b'\x89PNG')

    @override_settings(UPI_VPA='')
    def test_not_configured(self, authenticated_client, booking):
        url = reverse('bookings:booking-upi-qr', kwargs={'pk': booking.id})
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


# =============================================================================
# Admin actions
# =============================================================================

@pytest.mark.django_db
class TestAdminBookingAPI:

    def test_all_bookings(self, admin_client, booking):
        url = reverse('bookings:booking-all-bookings')
        response = admin_client.get(url, {'search': 'Swift'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 1
        assert response.data['results'][0]['user_email'] == 'renter@example.com'

    def test_all_bookings_forbidden_for_customers(self, authenticated_client):
        url = reverse('bookings:booking-all-bookings')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_update_status(self, admin_client, booking):
        url = reverse('bookings:booking-update-status', kwargs={'pk': booking.id})
        response = admin_client.put(url, {'status': 'confirmed'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == BookingStatus.CONFIRMED

    def test_invalid_transition(self, admin_client, booking):
        url = reverse('bookings:booking-update-status', kwargs={'pk': booking.id})
        response = admin_client.put(url, {'status': 'completed'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_process_return(self, admin_client, active_booking):
        url = reverse('bookings:booking-process-return', kwargs={'pk': active_booking.id})
        response = admin_client.post(
            url,
            {
                'mileage_at_dropoff': 12400,
                'fuel_level': 100,
                'extra_charges': [{'description': 'Late return', 'amount': '250.00'}],
            },
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == BookingStatus.COMPLETED
        assert response.data['extra_km_charges'] == '1000.00'
        assert response.data['total_amount'] == '5290.00'
