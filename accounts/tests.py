from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from accounts.models import AdminProfile

pytestmark = pytest.mark.django_db

User = get_user_model()

REGISTRATION = {
    'full_name': 'Ayaan Warsame',
    'phone': '0617778899',
    'password': 'strongpass1',
    'gender': 'FEMALE',
    'age': 26,
    'location': 'Mogadishu',
    'blood_type': 'A-',
}


# ============================================
# REGISTRATION
# ============================================
def test_register_user_returns_tokens(api_client):
    response = api_client.post('/api/auth/register/user/', REGISTRATION, format='json')

    assert response.status_code == 201
    assert response.data['user']['blood_type'] == 'A_NEGATIVE'
    assert response.data['user']['blood_type_display'] == 'A-'
    assert 'password' not in response.data['user']
    assert set(response.data['tokens']) == {'access', 'refresh'}

    user = User.objects.get(phone='0617778899')
    assert user.user_type == 'donor'
    assert user.email is None
    assert user.check_password('strongpass1')


def test_duplicate_phone_is_a_conflict(api_client, make_donor):
    make_donor(phone='0617778899')

    response = api_client.post('/api/auth/register/user/', REGISTRATION, format='json')

    assert response.status_code == 409
    assert response.data['code'] == 'conflict'


def test_registration_validates_input(api_client):
    payload = dict(REGISTRATION, blood_type='Q+', nickname='ayo')
    response = api_client.post('/api/auth/register/user/', payload, format='json')

    assert response.status_code == 400
    assert 'nickname' in response.data['fields']
    assert not User.objects.exists()


def test_register_admin_creates_profile(api_client):
    response = api_client.post('/api/auth/register/admin/', {
        'email': 'ops@badbaado.so',
        'password': 'adminpass123',
        'full_name': 'Ops Admin',
        'phone': '0613334455',
        'organization': 'Banadir Blood Bank',
        'position': 'Manager',
        'role': 'ADMIN',
    }, format='json')

    assert response.status_code == 201
    assert response.data['admin']['admin_profile']['organization'] == 'Banadir Blood Bank'
    user = User.objects.get(email='ops@badbaado.so')
    assert user.is_admin_account
    assert AdminProfile.objects.filter(user=user).exists()


# ============================================
# LOGIN
# ============================================
def test_login_user_with_phone(api_client, make_donor):
    make_donor(phone='0619990000', password='secret123')

    response = api_client.post('/api/auth/login/user/', {'phone': '0619990000', 'password': 'secret123'}, format='json')

    assert response.status_code == 200
    assert 'access' in response.data['tokens']


def test_login_admin_with_email(api_client, admin_user, donor):
    response = api_client.post('/api/auth/login/admin/', {
        'email': 'ADMIN@badbaado.so', 'password': 'adminpass123',
    }, format='json')
    assert response.status_code == 200
    assert response.data['admin']['user_type'] == 'admin'


def test_donor_cannot_use_admin_login(api_client, make_donor):
    make_donor(email='donor@example.com', password='secret123')
    response = api_client.post('/api/auth/login/admin/', {
        'email': 'donor@example.com', 'password': 'secret123',
    }, format='json')
    assert response.status_code == 401


def test_account_locks_after_failed_attempts(api_client, make_donor, settings):
    settings.MAX_FAILED_LOGINS = 3
    user = make_donor(phone='0612121212', password='secret123')

    for _ in range(3):
        response = api_client.post('/api/auth/login/user/', {'phone': '0612121212', 'password': 'wrong'}, format='json')
        assert response.status_code == 401

    user.refresh_from_db()
    assert user.is_locked is True

    response = api_client.post('/api/auth/login/user/', {'phone': '0612121212', 'password': 'secret123'}, format='json')
    assert response.status_code == 401
    assert 'locked' in response.data['error']


def test_successful_login_resets_failed_attempts(api_client, make_donor):
    user = make_donor(phone='0615151515', password='secret123')
    api_client.post('/api/auth/login/user/', {'phone': '0615151515', 'password': 'nope'}, format='json')
    api_client.post('/api/auth/login/user/', {'phone': '0615151515', 'password': 'secret123'}, format='json')

    user.refresh_from_db()
    assert user.failed_attempts == 0


def test_invalid_token_fails_closed(api_client):
    api_client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
    response = api_client.get('/api/users/profile/')
    assert response.status_code == 401


def test_token_refresh(api_client, donor):
    from accounts.decorators import get_tokens_for_user

    tokens = get_tokens_for_user(donor)
    response = api_client.post('/api/auth/token/refresh/', {'refresh': tokens['refresh']}, format='json')
    assert response.status_code == 200
    assert 'access' in response.data


# ============================================
# SELF SERVICE
# ============================================
def test_profile_get_and_update(auth_client, donor):
    client = auth_client(donor)
    assert client.get('/api/users/profile/').data['user']['id'] == donor.id

    response = client.put('/api/users/profile/', {'location': 'Hodan, Mogadishu', 'blood_type': 'B+'}, format='json')
    assert response.status_code == 200
    donor.refresh_from_db()
    assert donor.location == 'Hodan, Mogadishu'
    assert donor.blood_type == 'B_POSITIVE'


def test_profile_update_cannot_touch_eligibility(auth_client, donor):
    response = auth_client(donor).put('/api/users/profile/', {'total_donations': 9}, format='json')
    assert response.status_code == 400
    donor.refresh_from_db()
    assert donor.total_donations == 0


def test_eligibility_reports_cooldown(auth_client, make_donor):
    donor = make_donor(is_eligible=False, last_donation=timezone.now() - timedelta(days=30))
    response = auth_client(donor).get('/api/users/eligibility/')

    assert response.data['is_eligible'] is False
    assert response.data['days_to_eligibility'] in (59, 60)


def test_find_by_phone(api_client, donor):
    response = api_client.post('/api/users/find-by-phone/', {'phone': donor.phone}, format='json')
    assert response.status_code == 200
    assert response.data['user']['id'] == donor.id

    response = api_client.post('/api/users/find-by-phone/', {'phone': '0000'}, format='json')
    assert response.status_code == 404


def test_deactivate_account_frees_phone(auth_client, api_client, donor):
    phone = donor.phone
    response = auth_client(donor).put('/api/users/deactivate-account/')
    assert response.status_code == 200

    donor.refresh_from_db()
    assert donor.is_active is False
    assert donor.is_eligible is False
    assert donor.deactivated_at is not None
    assert donor.phone != phone

    payload = dict(REGISTRATION, phone=phone)
    assert api_client.post('/api/auth/register/user/', payload, format='json').status_code == 201


def test_deactivated_user_token_is_rejected(auth_client, donor):
    client = auth_client(donor)
    donor.deactivate()
    assert client.get('/api/users/profile/').status_code == 401


# ============================================
# ADMIN USER MANAGEMENT
# ============================================
def test_admin_user_filters(auth_client, admin_user, make_donor):
    make_donor(full_name='Hamza', blood_type='AB_POSITIVE', location='Garowe')
    make_donor(full_name='Idil', location='Mogadishu', is_active=False)
    client = auth_client(admin_user)

    assert len(client.get('/api/admin/users/').data['users']) == 2
    assert len(client.get('/api/admin/users/?blood_type=AB_POSITIVE').data['users']) == 1
    assert len(client.get('/api/admin/users/?status=inactive').data['users']) == 1
    assert len(client.get('/api/admin/users/?search=garowe').data['users']) == 1
    assert len(client.get('/api/admin/users/?location=mogadishu').data['users']) == 1


def test_admin_routes_require_admin(auth_client, donor):
    assert auth_client(donor).get('/api/admin/users/').status_code == 403


def test_admin_toggles_status_and_eligibility(auth_client, admin_user, donor):
    client = auth_client(admin_user)

    response = client.put(f'/api/admin/users/{donor.id}/eligibility/', {'is_eligible': False}, format='json')
    assert response.status_code == 200
    donor.refresh_from_db()
    assert donor.is_eligible is False
    assert donor.eligibility_locked is True

    client.put(f'/api/admin/users/{donor.id}/eligibility/', {'is_eligible': True}, format='json')
    donor.refresh_from_db()
    assert donor.is_eligible is True
    assert donor.eligibility_locked is False

    response = client.put(f'/api/admin/users/{donor.id}/status/', {'is_active': False}, format='json')
    assert response.data['user']['is_active'] is False

    assert client.put('/api/admin/users/999999/status/', {'is_active': True}, format='json').status_code == 404


def test_reactivated_donor_is_matched_again(auth_client, admin_user, make_donor, blood_request):
    from algorithms.matching import find_eligible_donors

    donor = make_donor()
    client = auth_client(admin_user)

    client.put(f'/api/admin/users/{donor.id}/status/', {'is_active': False}, format='json')
    assert find_eligible_donors(blood_request) == []

    response = client.put(f'/api/admin/users/{donor.id}/status/', {'is_active': True}, format='json')
    assert response.data['user']['is_eligible'] is True
    assert find_eligible_donors(blood_request) == [donor]


def test_reactivation_respects_cooldown_and_admin_hold(auth_client, admin_user, make_donor):
    cooling = make_donor(is_active=False, is_eligible=False, last_donation=timezone.now() - timedelta(days=10))
    held = make_donor(is_active=False, is_eligible=False, eligibility_locked=True)
    client = auth_client(admin_user)

    for user in (cooling, held):
        client.put(f'/api/admin/users/{user.id}/status/', {'is_active': True}, format='json')
        user.refresh_from_db()
        assert user.is_active is True
        assert user.is_eligible is False
