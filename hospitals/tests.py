from datetime import timedelta

import pytest
from django.utils import timezone

from badbaado.exceptions import ConflictError, InvalidStateTransition, NotFoundError, ValidationError
from donors.models import Donation
from donors.utils import record_response
from hospitals import lifecycle
from hospitals.models import BloodRequest
from notifications.backends import locmem

pytestmark = pytest.mark.django_db


def _refresh(obj):
    obj.refresh_from_db()
    return obj


# ============================================
# CREATE
# ============================================
def test_create_request_starts_pending_and_alerts_admins(requester, admin_user, outbox):
    blood_request, report = lifecycle.create_request(
        requester,
        full_name='Patient', phone='0612223344', gender='MALE', age=50,
        location='Mogadishu', blood_type='B_NEGATIVE',
    )

    assert blood_request.status == BloodRequest.PENDING
    assert blood_request.max_donors == 5
    assert report['success'] and report['admins_notified'] == 1
    assert outbox[0]['to'] == admin_user.phone
    assert 'APPROVAL NEEDED' in outbox[0]['body']


# ============================================
# APPROVE
# ============================================
def test_approve_sets_timestamps_and_notifies(blood_request, requester, admin_user, make_donor, outbox):
    donor = make_donor()
    make_donor(blood_type='A_NEGATIVE')

    approved, report = lifecycle.approve_request(blood_request.id, admin_user)

    assert approved.status == BloodRequest.APPROVED
    assert approved.approved_at is not None
    assert approved.approved_by == admin_user
    assert report['eligible_donors_count'] == 1
    assert report['donors_notified'] == 1
    assert report['patient_notified'] is True
    recipients = [m['to'] for m in outbox]
    assert donor.phone in recipients
    assert requester.phone in recipients


def test_reapproval_is_a_conflict_and_keeps_approved_at(blood_request, admin_user):
    approved, _ = lifecycle.approve_request(blood_request.id, admin_user)
    first_approved_at = approved.approved_at

    with pytest.raises(ConflictError):
        lifecycle.approve_request(blood_request.id, admin_user)

    assert _refresh(blood_request).approved_at == first_approved_at


@pytest.mark.parametrize('status', [BloodRequest.REJECTED, BloodRequest.COMPLETED, BloodRequest.CANCELLED])
def test_approve_from_terminal_state_is_invalid(make_request, admin_user, status):
    blood_request = make_request(status=status)

    with pytest.raises(InvalidStateTransition) as excinfo:
        lifecycle.approve_request(blood_request.id, admin_user)

    assert excinfo.value.current_status == status
    assert excinfo.value.requested_status == BloodRequest.APPROVED
    assert _refresh(blood_request).status == status


def test_approve_unknown_request(admin_user):
    with pytest.raises(NotFoundError):
        lifecycle.approve_request(999999, admin_user)


def test_notification_failure_does_not_undo_approval(blood_request, admin_user, make_donor, monkeypatch):
    make_donor()

    def broken_send(self, phone, body):
        raise ConnectionError('gateway down')

    monkeypatch.setattr(locmem.MessagingBackend, 'send_message', broken_send)

    approved, report = lifecycle.approve_request(blood_request.id, admin_user)

    assert report['success'] is False
    assert report['donors_notified'] == 0
    assert report['notification_summary'] == {'total_donors': 1, 'successful': 0, 'failed': 1}
    assert _refresh(blood_request).status == BloodRequest.APPROVED


def test_notification_task_crash_is_reported(blood_request, admin_user, monkeypatch):
    def crash(self, donors, blood_request):
        raise RuntimeError('boom')

    monkeypatch.setattr('notifications.tasks.NotificationDispatcher.notify_donors', crash)

    approved, report = lifecycle.approve_request(blood_request.id, admin_user)

    assert report['success'] is False
    assert 'boom' in report['error']
    assert approved.status == BloodRequest.APPROVED


# ============================================
# REJECT
# ============================================
@pytest.mark.parametrize('reason', ['', '   ', None])
def test_reject_without_reason_keeps_pending(blood_request, admin_user, reason):
    with pytest.raises(ValidationError):
        lifecycle.reject_request(blood_request.id, admin_user, reason)

    assert _refresh(blood_request).status == BloodRequest.PENDING
    assert blood_request.reject_reason == ''


def test_reject_with_reason(blood_request, admin_user, outbox):
    rejected, report = lifecycle.reject_request(blood_request.id, admin_user, '  Duplicate request ')

    assert rejected.status == BloodRequest.REJECTED
    assert rejected.reject_reason == 'Duplicate request'
    assert rejected.rejected_at is not None
    assert report['patient_notified'] is True
    assert 'Duplicate request' in outbox[-1]['body']


def test_reject_approved_request_is_invalid(approved_request, admin_user):
    with pytest.raises(InvalidStateTransition):
        lifecycle.reject_request(approved_request.id, admin_user, 'too late')
    assert _refresh(approved_request).reject_reason == ''


# ============================================
# COMPLETE
# ============================================
def test_complete_bulk_advances_open_donations(approved_request, admin_user, make_donor):
    accepted_donor = make_donor()
    pending_donor = make_donor()
    Donation.objects.create(
        blood_request=approved_request, donor=accepted_donor,
        status=Donation.ACCEPTED, accepted_at=timezone.now(),
    )
    Donation.objects.create(blood_request=approved_request, donor=pending_donor)

    completed, report = lifecycle.complete_request(approved_request.id, admin_user)

    assert completed.status == BloodRequest.COMPLETED
    assert completed.completed_at is not None
    assert report['donations_completed'] == 2
    assert set(approved_request.donations.values_list('status', flat=True)) == {Donation.COMPLETED}
    for donor in (accepted_donor, pending_donor):
        donor.refresh_from_db()
        assert donor.total_donations == 1
        assert donor.is_eligible is False
        assert donor.last_donation is not None


def test_complete_pending_request_is_invalid(blood_request, admin_user):
    with pytest.raises(InvalidStateTransition):
        lifecycle.complete_request(blood_request.id, admin_user)
    assert _refresh(blood_request).completed_at is None


# ============================================
# CANCEL / DELETE
# ============================================
def test_owner_can_cancel_pending_or_approved(make_request, requester):
    for status in (BloodRequest.PENDING, BloodRequest.APPROVED):
        blood_request = make_request(status=status)
        cancelled = lifecycle.cancel_request(blood_request.id, requester)
        assert cancelled.status == BloodRequest.CANCELLED
        assert cancelled.cancelled_at is not None


def test_only_owner_can_cancel(blood_request, donor):
    from rest_framework.exceptions import PermissionDenied

    with pytest.raises(PermissionDenied):
        lifecycle.cancel_request(blood_request.id, donor)
    assert _refresh(blood_request).status == BloodRequest.PENDING


def test_cannot_cancel_after_a_donor_responded(approved_request, requester, donor):
    record_response(approved_request.id, donor)

    with pytest.raises(ConflictError):
        lifecycle.cancel_request(approved_request.id, requester)
    assert _refresh(approved_request).status == BloodRequest.APPROVED


def test_delete_pending_request(blood_request, requester):
    lifecycle.delete_request(blood_request.id, requester)
    assert not BloodRequest.objects.filter(id=blood_request.id).exists()


def test_delete_approved_request_is_refused(approved_request, requester):
    with pytest.raises(InvalidStateTransition):
        lifecycle.delete_request(approved_request.id, requester)
    assert BloodRequest.objects.filter(id=approved_request.id).exists()


def test_transition_table():
    assert lifecycle.can_transition(BloodRequest.PENDING, BloodRequest.APPROVED)
    assert lifecycle.can_transition(BloodRequest.APPROVED, BloodRequest.CANCELLED)
    assert not lifecycle.can_transition(BloodRequest.PENDING, BloodRequest.COMPLETED)
    assert not lifecycle.can_transition(BloodRequest.COMPLETED, BloodRequest.CANCELLED)


# ============================================
# END TO END (HTTP)
# ============================================
def test_end_to_end_single_donor_completes_request(auth_client, requester, admin_user, make_donor, outbox):
    donor = make_donor(full_name='Faadumo Donor', blood_type='O_POSITIVE', location='Mogadishu')
    assert donor.last_donation is None

    response = auth_client(requester).post('/api/requests/', {
        'full_name': 'Patient One',
        'phone': '0617001122',
        'gender': 'FEMALE',
        'age': 33,
        'location': 'Mogadishu',
        'hospital': 'Madina Hospital',
        'blood_type': 'O+',
        'urgency': 'CRITICAL',
        'max_donors': 1,
    }, format='json')
    assert response.status_code == 201
    request_id = response.data['request']['id']
    assert response.data['request']['blood_type'] == 'O_POSITIVE'

    response = auth_client(admin_user).put(f'/api/requests/{request_id}/approve/')
    assert response.status_code == 200
    assert response.data['request']['status'] == 'APPROVED'
    assert response.data['notifications']['eligible_donors_count'] == 1

    response = auth_client(donor).post('/api/donations/', {'blood_request_id': request_id}, format='json')
    assert response.status_code == 201
    assert response.data['request_completed'] is True
    assert response.data['donation']['notes'] == 'Available to donate blood'

    blood_request = BloodRequest.objects.get(id=request_id)
    assert blood_request.status == BloodRequest.COMPLETED
    donor.refresh_from_db()
    assert donor.total_donations == 1
    assert donor.is_eligible is False


def test_end_to_end_reject_without_reason(auth_client, admin_user, blood_request):
    response = auth_client(admin_user).put(f'/api/requests/{blood_request.id}/reject/', {}, format='json')

    assert response.status_code == 400
    assert response.data['error'] == 'Rejection reason is required'
    assert _refresh(blood_request).status == BloodRequest.PENDING


# ============================================
# HTTP SURFACE
# ============================================
def test_create_request_rejects_unknown_fields(auth_client, requester):
    response = auth_client(requester).post('/api/requests/', {
        'full_name': 'Patient', 'phone': '0611', 'gender': 'MALE', 'age': 20,
        'location': 'Baidoa', 'blood_type': 'A+', 'units': 3,
    }, format='json')

    assert response.status_code == 400
    assert 'units' in response.data['fields']
    assert not BloodRequest.objects.exists()


def test_requests_need_authentication(api_client):
    response = api_client.get('/api/requests/')
    assert response.status_code == 401
    assert 'error' in response.data


def test_only_admins_approve(auth_client, requester, blood_request):
    response = auth_client(requester).put(f'/api/requests/{blood_request.id}/approve/')
    assert response.status_code == 403
    assert _refresh(blood_request).status == BloodRequest.PENDING


def test_reapprove_over_http_returns_409(auth_client, admin_user, approved_request):
    response = auth_client(admin_user).put(f'/api/requests/{approved_request.id}/approve/')
    assert response.status_code == 409
    assert response.data['code'] == 'conflict'


def test_invalid_transition_body(auth_client, admin_user, make_request):
    blood_request = make_request(status=BloodRequest.REJECTED, reject_reason='no')
    response = auth_client(admin_user).put(f'/api/requests/{blood_request.id}/complete/')

    assert response.status_code == 400
    assert response.data['current_status'] == 'REJECTED'
    assert response.data['requested_status'] == 'COMPLETED'


def test_my_requests_and_active(auth_client, requester, make_request, donor):
    mine = make_request()
    make_request(status=BloodRequest.COMPLETED)
    make_request(requester=donor)

    client = auth_client(requester)
    response = client.get('/api/requests/my-requests/')
    assert len(response.data['requests']) == 2

    response = client.get(f'/api/requests/user/{requester.id}/active/')
    assert [r['id'] for r in response.data['requests']] == [mine.id]

    response = client.get(f'/api/requests/user/{donor.id}/active/')
    assert response.status_code == 403


def test_list_requests_filters(auth_client, donor, make_request):
    make_request(blood_type='A_NEGATIVE')
    make_request(status=BloodRequest.APPROVED)

    client = auth_client(donor)
    assert len(client.get('/api/requests/').data['requests']) == 2
    assert len(client.get('/api/requests/?blood_type=A-').data['requests']) == 1
    assert len(client.get('/api/requests/approved/').data['requests']) == 1


def test_eligible_donors_endpoint_is_uncapped(auth_client, admin_user, blood_request, make_donor, settings):
    settings.DONOR_MATCH_LIMIT = 1
    make_donor()
    make_donor()
    make_donor(last_donation=timezone.now() - timedelta(days=5))

    response = auth_client(admin_user).get(f'/api/requests/{blood_request.id}/eligible-donors/')
    assert response.status_code == 200
    assert response.data['count'] == 2


def test_cancel_and_delete_over_http(auth_client, requester, make_request):
    cancelable = make_request()
    deletable = make_request()
    client = auth_client(requester)

    response = client.put(f'/api/requests/{cancelable.id}/cancel/')
    assert response.status_code == 200
    assert response.data['request']['status'] == 'CANCELLED'

    response = client.delete(f'/api/requests/{deletable.id}/')
    assert response.status_code == 200
    assert client.get(f'/api/requests/{deletable.id}/').status_code == 404


# ============================================
# HOSPITAL REGISTRY
# ============================================
def test_hospital_registry_permissions(api_client, auth_client, admin_user, donor):
    payload = {'hospital_name': 'Banadir Hospital', 'phone': '0615000000', 'location': 'Mogadishu'}

    assert auth_client(donor).post('/api/hospitals/', payload, format='json').status_code == 403

    response = auth_client(admin_user).post('/api/hospitals/', payload, format='json')
    assert response.status_code == 201
    hospital_id = response.data['hospital']['id']

    response = api_client.get('/api/hospitals/')
    assert response.status_code == 200
    assert response.data['hospitals'][0]['hospital_name'] == 'Banadir Hospital'

    response = auth_client(admin_user).put(f'/api/hospitals/{hospital_id}/', {'is_active': False}, format='json')
    assert response.data['hospital']['is_active'] is False

    assert auth_client(admin_user).delete(f'/api/hospitals/{hospital_id}/').status_code == 200
    assert api_client.get(f'/api/hospitals/{hospital_id}/').status_code == 404


def test_list_requests_by_location(auth_client, donor, make_request):
    make_request(location='Hodan, Mogadishu')
    make_request(location='Baidoa')

    response = auth_client(donor).get('/api/requests/?location=mogadishu')
    assert [r['location'] for r in response.data['requests']] == ['Hodan, Mogadishu']


def test_search_eligible_donors_endpoint(auth_client, admin_user, donor, make_donor):
    make_donor(location='Kismayo')
    client = auth_client(admin_user)

    response = client.get('/api/eligible-donors/?blood_type=O%2B&location=Mogadishu')
    assert response.status_code == 200
    assert response.data['count'] == 1
    assert response.data['donors'][0]['id'] == donor.id

    response = client.get('/api/eligible-donors/?blood_type=O%2B')
    assert response.status_code == 400
    assert 'location' in response.data['fields']

    assert auth_client(donor).get('/api/eligible-donors/?blood_type=O%2B&location=Mogadishu').status_code == 403
