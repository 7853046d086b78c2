import pytest
from datetime import timedelta
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from apps.accounts.models import AccountStatus, AuditLog, UserRole
from apps.notifications.models import Notification


# =============================================================================
# Access
# =============================================================================

@pytest.mark.django_db
class TestAccess:

    @pytest.mark.parametrize('name', ['analytics:dashboard', 'analytics:reports', 'analytics:user-list'])
    def test_anonymous_rejected(self, api_client, name):
        response = api_client.get(reverse(name))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.parametrize('name', ['analytics:dashboard', 'analytics:maintenance', 'analytics:audit-logs'])
    def test_customer_forbidden(self, customer_client, name):
        response = customer_client.get(reverse(name))
        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Dashboard and booking stats
# =============================================================================

@pytest.mark.django_db
class TestDashboardEndpoint:

    def test_dashboard(self, admin_client, unverified_customer, completed_booking, cancelled_booking):
        response = admin_client.get(reverse('analytics:dashboard'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['today_revenue'] == {'revenue': '4040.00', 'bookings': 1}
        assert response.data['booking_stats']['completed_bookings'] == 1
        assert response.data['booking_stats']['cancelled_bookings'] == 1
        assert response.data['pending_actions']['unverified_users'] == 1
        assert response.data['popular_cars'][0]['car_name'] == 'Honda City'
        assert response.data['active_offers'] == 0

    def test_booking_stats(self, admin_client, completed_booking, pending_booking):
        response = admin_client.get(reverse('analytics:booking-stats'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['summary']['total_bookings'] == 2
        assert response.data['summary']['total_revenue'] == '4040.00'
        assert response.data['top_users'][0]['total_spent'] == '13480.00'

    def test_booking_stats_rejects_reversed_range(self, admin_client):
        today = timezone.localdate()
        response = admin_client.get(reverse('analytics:booking-stats'), {
            'start_date': today.isoformat(),
            'end_date': (today - timedelta(days=3)).isoformat(),
        })

        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Reports
# =============================================================================

@pytest.mark.django_db
class TestReportsEndpoint:

    def test_revenue_report(self, admin_client, completed_booking, cancelled_booking):
        response = admin_client.get(reverse('analytics:reports'), {'report_type': 'revenue'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['report_type'] == 'revenue'
        assert response.data['summary']['total_revenue'] == '4040.00'
        assert response.data['period']['end_date'] == timezone.localdate().isoformat()

    def test_booking_report(self, admin_client, completed_booking, cancelled_booking):
        response = admin_client.get(reverse('analytics:reports'), {'report_type': 'bookings'})

        assert response.data['summary']['conversion_rate'] == 50.0
        assert response.data['cancellation_analysis'][0]['total_refund'] == '3636.00'

    def test_car_report(self, admin_client, completed_booking, suv):
        response = admin_client.get(reverse('analytics:reports'), {'report_type': 'cars'})

        assert response.data['summary']['total_cars'] == 2
        assert response.data['utilisation'][0]['license_plate'] == 'KA01AB1234'

    def test_invalid_type(self, admin_client):
        response = admin_client.get(reverse('analytics:reports'), {'report_type': 'weather'})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_type(self, admin_client):
        response = admin_client.get(reverse('analytics:reports'))
        assert response.status_code == status.HTTP_400_BAD_REQUEST


# =============================================================================
# Export
# =============================================================================

@pytest.mark.django_db
class TestExportEndpoint:

    def test_json(self, admin_client, completed_booking, cancelled_booking):
        response = admin_client.post(reverse('analytics:export'), {'data_type': 'bookings'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['type'] == 'bookings'
        assert response.data['count'] == 2

    def test_csv(self, admin_client, completed_booking):
        response = admin_client.post(
            reverse('analytics:export'),
            {'data_type': 'bookings', 'format': 'csv'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'].startswith('text/csv')
        assert 'attachment; filename="bookings_export_' in response['Content-Disposition']
        lines = response.content.decode().strip().splitlines()
        assert lines[0].startswith('booking_number,user,car,')
        assert lines[1].startswith(completed_booking.booking_number)

    def test_invalid_type(self, admin_client):
        response = admin_client.post(reverse('analytics:export'), {'data_type': 'offers'}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_customer_forbidden(self, customer_client):
        response = customer_client.post(reverse('analytics:export'), {'data_type': 'users'}, format='json')
        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# Maintenance
# =============================================================================

@pytest.mark.django_db
class TestMaintenanceEndpoint:

    def test_lists_cars_needing_attention(self, admin_client, sedan, suv):
        sedan.next_service = timezone.localdate() - timedelta(days=2)
        sedan.save()
        suv.current_mileage = 75000
        suv.save()

        response = admin_client.get(reverse('analytics:maintenance'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['service_due'][0]['car_name'] == 'Honda City'
        assert response.data['high_mileage'][0]['license_plate'] == 'KA02CD5678'
        assert response.data['summary'] == {'service_due': 1, 'high_mileage': 1, 'insurance_expiring': 0}


# =============================================================================
# User management
# =============================================================================

@pytest.mark.django_db
class TestUserList:

    def test_list_with_stats(self, admin_client, customer, unverified_customer):
        response = admin_client.get(reverse('analytics:user-list'))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 3
        assert response.data['stats']['total_users'] == 3
        assert response.data['stats']['total_admins'] == 1

    def test_filter_by_role(self, admin_client, customer):
        response = admin_client.get(reverse('analytics:user-list'), {'role': 'admin'})

        assert [user['email'] for user in response.data['results']] == ['ops@example.com']

    def test_search(self, admin_client, customer, unverified_customer):
        response = admin_client.get(reverse('analytics:user-list'), {'search': 'newbie'})

        assert response.data['count'] == 1
        assert response.data['results'][0]['email'] == 'newbie@example.com'

    def test_booking_count(self, admin_client, customer, completed_booking, pending_booking):
        response = admin_client.get(reverse('analytics:user-list'), {'search': 'renter'})

        assert response.data['results'][0]['booking_count'] == 2


@pytest.mark.django_db
class TestUserDetail:

    def test_get(self, admin_client, customer, completed_booking, cancelled_booking):
        url = reverse('analytics:user-detail', kwargs={'user_id': customer.id})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['user']['email'] == customer.email
        assert response.data['booking_stats']['total_bookings'] == 2
        assert response.data['booking_stats']['total_spent'] == '4040.00'
        assert len(response.data['recent_bookings']) == 2

    def test_get_unknown(self, admin_client):
        url = reverse('analytics:user-detail', kwargs={'user_id': '00000000-0000-0000-0000-000000000000'})
        response = admin_client.get(url)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_update_records_audit_log(self, admin_client, admin_user, customer):
        url = reverse('analytics:user-detail', kwargs={'user_id': customer.id})
        response = admin_client.patch(url, {'name': 'Renter Two', 'wallet_balance': '250.00'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['name'] == 'Renter Two'
        log = AuditLog.objects.get(action='UPDATE_USER')
        assert log.performed_by == admin_user
        assert log.target_user == customer
        assert set(log.changes) == {'name', 'wallet_balance'}

    def test_status_change_notifies_user(self, admin_client, customer):
        url = reverse('analytics:user-detail', kwargs={'user_id': customer.id})
        response = admin_client.patch(url, {'status': AccountStatus.SUSPENDED}, format='json')

        assert response.status_code == status.HTTP_200_OK
        customer.refresh_from_db()
        assert customer.status == AccountStatus.SUSPENDED
        assert Notification.objects.filter(user=customer, title='Account Status Updated').exists()

    def test_admin_cannot_grant_admin_role(self, admin_client, customer):
        url = reverse('analytics:user-detail', kwargs={'user_id': customer.id})
        response = admin_client.patch(url, {'role': UserRole.ADMIN}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        customer.refresh_from_db()
        assert customer.role == UserRole.USER

    def test_super_admin_can_grant_admin_role(self, super_admin_client, customer):
        url = reverse('analytics:user-detail', kwargs={'user_id': customer.id})
        response = super_admin_client.patch(url, {'role': UserRole.ADMIN}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['role'] == UserRole.ADMIN

    def test_admin_cannot_edit_super_admin(self, admin_client, super_admin):
        url = reverse('analytics:user-detail', kwargs={'user_id': super_admin.id})
        response = admin_client.patch(url, {'name': 'Nobody'}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_invalid_status(self, admin_client, customer):
        url = reverse('analytics:user-detail', kwargs={'user_id': customer.id})
        response = admin_client.patch(url, {'status': 'banished'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_delete(self, admin_client, unverified_customer):
        url = reverse('analytics:user-detail', kwargs={'user_id': unverified_customer.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT
        unverified_customer.refresh_from_db()
        assert unverified_customer.status == AccountStatus.DEACTIVATED
        assert AuditLog.objects.filter(action='DELETE_USER', target_user=unverified_customer).exists()

    def test_delete_with_open_booking(self, admin_client, customer, pending_booking):
        url = reverse('analytics:user-detail', kwargs={'user_id': customer.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'active bookings' in response.data['error']

    def test_delete_super_admin(self, admin_client, super_admin):
        url = reverse('analytics:user-detail', kwargs={'user_id': super_admin.id})
        response = admin_client.delete(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestAuditLogs:

    def test_list_and_filter(self, admin_client, customer, unverified_customer):
        admin_client.patch(
            reverse('analytics:user-detail', kwargs={'user_id': customer.id}),
            {'name': 'Renamed'},
            format='json',
        )
        admin_client.delete(reverse('analytics:user-detail', kwargs={'user_id': unverified_customer.id}))

        response = admin_client.get(reverse('analytics:audit-logs'))
        assert response.status_code == status.HTTP_200_OK
        assert response.data['count'] == 2

        response = admin_client.get(reverse('analytics:audit-logs'), {'action': 'DELETE_USER'})
        assert response.data['count'] == 1
        assert response.data['results'][0]['target_user']['email'] == 'newbie@example.com'
