import itertools

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.decorators import get_tokens_for_user
from accounts.models import AdminProfile
from hospitals.models import BloodRequest
from notifications.backends import locmem

_phones = itertools.count(610000001)


@pytest.fixture(autouse=True)
def test_settings(settings):
    settings.MESSAGING_BACKEND = 'notifications.backends.locmem.MessagingBackend'
    settings.NOTIFICATIONS_ASYNC = False
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    settings.DONATION_COOLDOWN_DAYS = 90
    settings.DONOR_MATCH_LIMIT = 50
    settings.DEFAULT_MAX_DONORS = 5
    settings.MAX_FAILED_LOGINS = 5
    return settings


@pytest.fixture(autouse=True)
def outbox():
    locmem.outbox.clear()
    yield locmem.outbox
    locmem.outbox.clear()


@pytest.fixture
def make_donor(db):
    """Factory for donor accounts; defaults to an eligible O+ donor in Mogadishu."""
    def _make_donor(**overrides):
        phone = overrides.pop('phone', f"0{next(_phones)}")
        fields = {
            'full_name': 'Test Donor',
            'gender': 'MALE',
            'age': 30,
            'location': 'Mogadishu',
            'blood_type': 'O_POSITIVE',
            'user_type': 'donor',
        }
        fields.update(overrides)
        password = fields.pop('password', 'secret123')
        return get_user_model().objects.create_user(
            username=phone, phone=phone, password=password, **fields
        )
    return _make_donor


@pytest.fixture
def donor(make_donor):
    return make_donor(full_name='Amina Hassan')


@pytest.fixture
def requester(make_donor):
    return make_donor(full_name='Ali Requester', blood_type='A_POSITIVE', location='Hargeisa')


@pytest.fixture
def admin_user(db):
    user = get_user_model().objects.create_user(
        username='admin@badbaado.so',
        email='admin@badbaado.so',
        password='adminpass123',
        user_type='admin',
        full_name='Hodan Admin',
        phone='0615550000',
        is_eligible=False,
    )
    AdminProfile.objects.create(user=user, organization='Badbaado', position='Coordinator', role='ADMIN')
    return user


@pytest.fixture
def make_request(requester):
    def _make_request(**overrides):
        fields = {
            'requester': requester,
            'full_name': 'Patient Zero',
            'phone': '0619998877',
            'gender': 'FEMALE',
            'age': 40,
            'location': 'Mogadishu',
            'hospital': 'Banadir Hospital',
            'blood_type': 'O_POSITIVE',
            'urgency': 'HIGH',
            'max_donors': 2,
        }
        fields.update(overrides)
        return BloodRequest.objects.create(**fields)
    return _make_request


@pytest.fixture
def blood_request(make_request):
    return make_request()


@pytest.fixture
def approved_request(make_request, admin_user):
    return make_request(status=BloodRequest.APPROVED, approved_by=admin_user, approved_at=timezone.now())


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client():
    """APIClient carrying a Bearer token for the given user."""
    def _auth_client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {get_tokens_for_user(user)['access']}")
        return client
    return _auth_client
