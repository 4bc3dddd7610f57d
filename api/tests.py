import pytest

from donors.models import Donation
from hospitals.models import BloodRequest

pytestmark = pytest.mark.django_db


def test_public_counters(api_client, make_donor, make_request):
    make_donor()
    make_donor(is_active=False)
    make_request()
    make_request(blood_type='A_NEGATIVE', status=BloodRequest.APPROVED)
    make_request(status=BloodRequest.COMPLETED)

    # requester fixture plus the active donor
    assert api_client.get('/api/users/count/').data == {'count': 2}

    stats = api_client.get('/api/blood-requests/stats/').data
    assert stats['total'] == 3
    assert stats['pending'] == 1
    assert stats['approved'] == 1
    assert stats['completed'] == 1
    assert stats['by_blood_type'] == {'O+': 2, 'A-': 1}


def test_pending_list_is_capped_at_ten(api_client, make_request):
    for _ in range(12):
        make_request()
    make_request(status=BloodRequest.REJECTED)

    response = api_client.get('/api/blood-requests/pending/')
    assert response.status_code == 200
    assert len(response.data['requests']) == 10
    assert {r['status'] for r in response.data['requests']} == {'PENDING'}


def test_admin_dashboard(auth_client, admin_user, approved_request, make_donor):
    donor = make_donor()
    Donation.objects.create(blood_request=approved_request, donor=donor, status=Donation.COMPLETED)

    response = auth_client(admin_user).get('/api/admin/dashboard/')
    assert response.status_code == 200
    assert response.data['active_users'] == 2
    assert response.data['total_requests'] == 1
    assert response.data['pending_requests'] == 0
    assert response.data['completed_donations'] == 1


def test_dashboard_is_admin_only(auth_client, donor):
    assert auth_client(donor).get('/api/admin/dashboard/').status_code == 403
