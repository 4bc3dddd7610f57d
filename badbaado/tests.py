import pytest

from badbaado.models import SystemSetting

pytestmark = pytest.mark.django_db


def test_settings_upsert(auth_client, admin_user):
    client = auth_client(admin_user)

    response = client.put('/api/admin/settings/max_donors_default/', {
        'value': '4', 'description': 'Default donors per request',
    }, format='json')
    assert response.status_code == 201
    assert response.data['setting']['updated_by_name'] == admin_user.full_name

    response = client.put('/api/admin/settings/max_donors_default/', {'value': '6'}, format='json')
    assert response.status_code == 200

    setting = SystemSetting.objects.get(key='max_donors_default')
    assert setting.value == '6'
    assert setting.description == 'Default donors per request'

    response = client.get('/api/admin/settings/')
    assert [s['key'] for s in response.data['settings']] == ['max_donors_default']


def test_settings_are_admin_only(auth_client, donor):
    assert auth_client(donor).get('/api/admin/settings/').status_code == 403


def test_unknown_route_still_uses_error_shape(auth_client, donor):
    response = auth_client(donor).get('/api/requests/424242/')
    assert response.status_code == 404
    assert response.data == {'error': 'Blood request not found', 'code': 'not_found'}
