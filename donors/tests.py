from datetime import timedelta

import pytest
from django.core.management import call_command
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from badbaado.exceptions import ConflictError, InvalidStateTransition, NotFoundError, ValidationError
from donors.models import Donation
from donors.tasks import restore_donor_eligibility
from donors.utils import advance_status, confirm_donation, last_completed_donation, record_response
from hospitals.models import BloodRequest
from notifications.backends import locmem

pytestmark = pytest.mark.django_db


# ============================================
# RECORD RESPONSE
# ============================================
def test_record_response_creates_pending_donation(approved_request, requester, donor, outbox):
    result = record_response(approved_request.id, donor)

    donation = result['donation']
    assert donation.status == Donation.PENDING
    assert donation.notes == Donation.DEFAULT_NOTES
    assert result['donors_count'] == 1
    assert result['request_completed'] is False
    assert result['notifications']['requester_notified'] is True

    message = outbox[-1]
    assert message['to'] == requester.phone
    assert donor.phone in message['body']
    assert 'O+' in message['body']


def test_unknown_request_is_not_found(donor):
    with pytest.raises(NotFoundError):
        record_response(424242, donor)


@pytest.mark.parametrize('status', [BloodRequest.PENDING, BloodRequest.REJECTED, BloodRequest.COMPLETED])
def test_request_must_be_approved(make_request, donor, status):
    blood_request = make_request(status=status)

    with pytest.raises(ValidationError) as excinfo:
        record_response(blood_request.id, donor)

    assert str(excinfo.value.detail) == 'request not open for donation'
    assert not Donation.objects.exists()


def test_ineligible_donor_is_refused(approved_request, make_donor):
    donor = make_donor(is_eligible=False)

    with pytest.raises(ValidationError) as excinfo:
        record_response(approved_request.id, donor)

    assert str(excinfo.value.detail) == 'donor not eligible'


def test_status_check_wins_over_eligibility_check(make_request, make_donor):
    blood_request = make_request(status=BloodRequest.PENDING)

    with pytest.raises(ValidationError) as excinfo:
        record_response(blood_request.id, make_donor(is_eligible=False))

    assert str(excinfo.value.detail) == 'request not open for donation'


def test_second_response_is_a_conflict(approved_request, donor):
    record_response(approved_request.id, donor)

    with pytest.raises(ConflictError) as excinfo:
        record_response(approved_request.id, donor)

    assert str(excinfo.value.detail) == 'already responded'
    assert Donation.objects.filter(donor=donor, blood_request=approved_request).count() == 1


def test_unique_constraint_backs_the_duplicate_check(approved_request, donor):
    Donation.objects.create(blood_request=approved_request, donor=donor)

    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Donation.objects.create(blood_request=approved_request, donor=donor)


def test_reaching_max_donors_completes_request(approved_request, make_donor):
    first, second = make_donor(), make_donor()

    record_response(approved_request.id, first)
    result = record_response(approved_request.id, second)

    assert result['request_completed'] is True
    assert result['donation'].status == Donation.COMPLETED
    approved_request.refresh_from_db()
    assert approved_request.status == BloodRequest.COMPLETED
    assert set(approved_request.donations.values_list('status', flat=True)) == {Donation.COMPLETED}
    for donor in (first, second):
        donor.refresh_from_db()
        assert donor.total_donations == 1
        assert donor.is_eligible is False

    with pytest.raises(ValidationError):
        record_response(approved_request.id, make_donor())


# ============================================
# ADVANCE STATUS
# ============================================
@pytest.fixture
def donation(approved_request, donor):
    return record_response(approved_request.id, donor)['donation']


def test_accept_sets_accepted_at(donation, donor):
    updated, report = advance_status(donation.id, donor, Donation.ACCEPTED)

    assert updated.status == Donation.ACCEPTED
    assert updated.accepted_at is not None
    assert updated.completed_at is None
    donor.refresh_from_db()
    assert donor.total_donations == 0
    assert donor.is_eligible is True


def test_complete_credits_donor_once(donation, donor, outbox):
    advance_status(donation.id, donor, Donation.ACCEPTED)
    updated, report = advance_status(donation.id, donor, Donation.COMPLETED)

    assert updated.status == Donation.COMPLETED
    assert updated.completed_at is not None
    assert report['donor_notified'] is True
    assert 'THANK YOU' in outbox[-1]['body']

    donor.refresh_from_db()
    assert donor.total_donations == 1
    assert donor.is_eligible is False
    assert donor.last_donation == updated.completed_at


def test_complete_holds_when_notification_fails(donation, donor, monkeypatch):
    def broken_send(self, phone, body):
        raise ConnectionError('gateway down')

    monkeypatch.setattr(locmem.MessagingBackend, 'send_message', broken_send)

    updated, report = advance_status(donation.id, donor, Donation.COMPLETED)

    assert report['success'] is False
    donor.refresh_from_db()
    assert donor.total_donations == 1
    assert donor.is_eligible is False


def test_only_own_donor_can_advance(donation, make_donor):
    with pytest.raises(PermissionDenied):
        advance_status(donation.id, make_donor(), Donation.ACCEPTED)


@pytest.mark.parametrize('moves', [
    [Donation.PENDING],
    [Donation.ACCEPTED, Donation.ACCEPTED],
    [Donation.COMPLETED, Donation.ACCEPTED],
    [Donation.COMPLETED, Donation.COMPLETED],
])
def test_invalid_moves(donation, donor, moves):
    *valid, invalid = moves
    for status in valid:
        advance_status(donation.id, donor, status)
    before = Donation.objects.get(id=donation.id).status

    with pytest.raises(InvalidStateTransition):
        advance_status(donation.id, donor, invalid)

    assert Donation.objects.get(id=donation.id).status == before
    donor.refresh_from_db()
    assert donor.total_donations == (1 if Donation.COMPLETED in valid else 0)


def test_unknown_status_and_donation(donation, donor):
    with pytest.raises(ValidationError):
        advance_status(donation.id, donor, 'DONATED')
    with pytest.raises(NotFoundError):
        advance_status(987654, donor, Donation.ACCEPTED)


def test_last_completed_donation(donation, donor):
    assert last_completed_donation(donor) is None
    advance_status(donation.id, donor, Donation.COMPLETED)
    assert last_completed_donation(donor).id == donation.id


# ============================================
# ELIGIBILITY SWEEP
# ============================================
def test_restore_donor_eligibility(make_donor):
    now = timezone.now()
    expired = make_donor(is_eligible=False, last_donation=now - timedelta(days=100))
    cooling = make_donor(is_eligible=False, last_donation=now - timedelta(days=10))
    held = make_donor(is_eligible=False, eligibility_locked=True, last_donation=now - timedelta(days=100))
    gone = make_donor(is_eligible=False, is_active=False, last_donation=now - timedelta(days=100))

    assert restore_donor_eligibility() == 1

    for donor, expected in ((expired, True), (cooling, False), (held, False), (gone, False)):
        donor.refresh_from_db()
        assert donor.is_eligible is expected


# ============================================
# HTTP SURFACE
# ============================================
def test_respond_over_http(auth_client, approved_request, donor):
    client = auth_client(donor)

    response = client.post('/api/donations/', {
        'blood_request_id': approved_request.id,
        'notes': 'Can come this afternoon',
    }, format='json')
    assert response.status_code == 201
    assert response.data['donation']['notes'] == 'Can come this afternoon'

    response = client.post('/api/donations/', {'blood_request_id': approved_request.id}, format='json')
    assert response.status_code == 409
    assert response.data == {'error': 'already responded', 'code': 'conflict'}


def test_admin_cannot_respond(auth_client, approved_request, admin_user):
    response = auth_client(admin_user).post('/api/donations/', {'blood_request_id': approved_request.id}, format='json')
    assert response.status_code == 403


def test_status_update_over_http(auth_client, donation, donor):
    client = auth_client(donor)

    response = client.put(f'/api/donations/{donation.id}/status/', {'status': 'ACCEPTED'}, format='json')
    assert response.status_code == 200
    assert response.data['donation']['status'] == 'ACCEPTED'

    response = client.put(f'/api/donations/{donation.id}/status/', {'status': 'PENDING'}, format='json')
    assert response.status_code == 400
    assert response.data['code'] == 'invalid_state_transition'
    assert response.data['current_status'] == 'ACCEPTED'


def test_donation_lists(auth_client, donation, donor, requester, make_donor):
    assert len(auth_client(donor).get('/api/donations/').data['donations']) == 1
    assert len(auth_client(donor).get('/api/donations/?status=completed').data['donations']) == 0
    assert len(auth_client(requester).get('/api/donations/accepted/').data['donations']) == 1
    assert len(auth_client(make_donor()).get('/api/donations/accepted/').data['donations']) == 0

    response = auth_client(requester).get(f'/api/requests/{donation.blood_request_id}/donations/')
    assert response.data['donations'][0]['donor_phone'] == donor.phone

    response = auth_client(make_donor()).get(f'/api/requests/{donation.blood_request_id}/donations/')
    assert response.status_code == 403


def test_user_donation_history_is_self_only(auth_client, donation, donor, make_donor):
    client = auth_client(donor)
    advance_status(donation.id, donor, Donation.COMPLETED)

    response = client.get(f'/api/users/{donor.id}/donations/')
    assert len(response.data['donations']) == 1

    response = client.get(f'/api/users/{donor.id}/last-donation/')
    assert response.data['donation']['id'] == donation.id
    assert response.data['last_donation'] is not None

    other = make_donor()
    assert client.get(f'/api/users/{other.id}/donations/').status_code == 403


# ============================================
# IMPORT COMMAND
# ============================================
def test_import_donors_from_csv(tmp_path, make_donor):
    existing = make_donor(phone='0611111111', full_name='Old Name')
    recent = (timezone.now() - timedelta(days=20)).strftime('%Y-%m-%d')
    csv_file = tmp_path / 'donors.csv'
    csv_file.write_text(
        'full_name,phone,blood_type,location,gender,age,last_donation\n'
        'New Donor,0612222222,A+,Baidoa,female,28,\n'
        'Renamed,0611111111,O_NEGATIVE,Mogadishu,MALE,35,\n'
        f'Recent Donor,0613333333,B-,Kismayo,MALE,40,{recent}\n'
        'Bad Type,0614444444,Z+,Mogadishu,MALE,22,\n'
    )

    call_command('import_donors', str(csv_file))

    from django.contrib.auth import get_user_model
    User = get_user_model()

    new = User.objects.get(phone='0612222222')
    assert new.blood_type == 'A_POSITIVE'
    assert new.gender == 'FEMALE'
    assert new.check_password('ChangeMe123!')

    existing.refresh_from_db()
    assert existing.full_name == 'Renamed'
    assert existing.blood_type == 'O_NEGATIVE'

    assert User.objects.get(phone='0613333333').is_eligible is False
    assert not User.objects.filter(phone='0614444444').exists()


def test_restore_covers_donors_who_never_donated(make_donor):
    never_donated = make_donor(is_eligible=False)

    assert restore_donor_eligibility() == 1
    never_donated.refresh_from_db()
    assert never_donated.is_eligible is True


# ============================================
# CONFIRM DONATION
# ============================================
def test_requester_confirms_donation(donation, requester, donor, outbox):
    updated, report = confirm_donation(donation.id, requester)

    assert updated.status == Donation.COMPLETED
    assert updated.completed_at is not None
    assert report['donor_notified'] is True
    assert outbox[-1]['to'] == donor.phone

    donor.refresh_from_db()
    assert donor.total_donations == 1
    assert donor.is_eligible is False
    assert donor.last_donation == updated.completed_at


def test_admin_confirms_accepted_donation(donation, admin_user, donor):
    advance_status(donation.id, donor, Donation.ACCEPTED)
    updated, _ = confirm_donation(donation.id, admin_user)
    assert updated.status == Donation.COMPLETED


def test_confirm_is_limited_to_requester_and_admin(donation, donor, make_donor):
    for user in (donor, make_donor()):
        with pytest.raises(PermissionDenied):
            confirm_donation(donation.id, user)
    assert Donation.objects.get(id=donation.id).status == Donation.PENDING


def test_confirm_twice_does_not_credit_twice(donation, requester, donor):
    confirm_donation(donation.id, requester)

    with pytest.raises(InvalidStateTransition):
        confirm_donation(donation.id, requester)

    donor.refresh_from_db()
    assert donor.total_donations == 1


def test_confirm_over_http(auth_client, donation, requester, donor):
    response = auth_client(requester).put(f'/api/donations/{donation.id}/confirm/')
    assert response.status_code == 200
    assert response.data['donation']['status'] == 'COMPLETED'

    response = auth_client(requester).put(f'/api/donations/{donation.id}/confirm/')
    assert response.status_code == 400
    assert response.data['code'] == 'invalid_state_transition'

    assert auth_client(requester).put('/api/donations/999999/confirm/').status_code == 404


# ============================================
# HISTORY
# ============================================
def test_activity_history_merges_requests_and_donations(auth_client, make_request, requester, approved_request):
    second = make_request(blood_type='A_NEGATIVE')
    other_request = make_request(status=BloodRequest.APPROVED, requester=approved_request.approved_by)
    donation = record_response(other_request.id, requester)['donation']

    response = auth_client(requester).get('/api/users/history/')
    assert response.status_code == 200

    entries = [(entry['type'], entry['id']) for entry in response.data['history']]
    assert entries == [
        ('DONATION', donation.id),
        ('BLOOD_REQUEST', second.id),
        ('BLOOD_REQUEST', approved_request.id),
    ]
    assert response.data['history'][1]['blood_type'] == 'A-'


def test_activity_history_is_empty_for_new_users(auth_client, make_donor):
    assert auth_client(make_donor()).get('/api/users/history/').data == {'history': []}


# ============================================
# DJANGO ADMIN
# ============================================
def test_donation_admin_confirms_through_credit_path(rf, donation, admin_user, donor):
    from django.contrib import admin as django_admin
    from django.contrib.messages.storage.fallback import FallbackStorage

    from donors.admin import DonationAdmin

    model_admin = DonationAdmin(Donation, django_admin.site)
    assert 'status' in model_admin.readonly_fields

    request = rf.post('/admin/donors/donation/')
    request.user = admin_user
    request.session = {}
    request._messages = FallbackStorage(request)

    model_admin.confirm_selected(request, Donation.objects.filter(id=donation.id))
    model_admin.confirm_selected(request, Donation.objects.filter(id=donation.id))

    donor.refresh_from_db()
    assert Donation.objects.get(id=donation.id).status == Donation.COMPLETED
    assert donor.total_donations == 1
    assert [str(m) for m in request._messages] == [
        '1 donation(s) confirmed.',
        f'Donation #{donation.id}: Cannot move from COMPLETED to COMPLETED',
    ]
