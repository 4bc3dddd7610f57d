import pytest
import requests

from notifications import tasks
from notifications.backends import get_backend, locmem
from notifications.backends.base import MessagingError
from notifications.backends.whatsapp import MessagingBackend as WhatsAppBackend, normalize_phone
from notifications.dispatcher import NotificationDispatcher
from notifications.models import AdminNotification, UserNotification

pytestmark = pytest.mark.django_db


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload or {'status': 'queued'}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response or FakeResponse()
        self.exc = exc
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc:
            raise self.exc
        return self.response


# ============================================
# BACKENDS
# ============================================
@pytest.mark.parametrize('raw, expected', [
    ('0612345678', '252612345678'),
    ('61 234 5678', '252612345678'),
    ('+252612345678', '252612345678'),
    ('00252612345678', '252612345678'),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw, '252') == expected


def test_normalize_phone_rejects_empty():
    with pytest.raises(MessagingError):
        normalize_phone('n/a', '252')


def test_whatsapp_backend_posts_json():
    session = FakeSession()
    backend = WhatsAppBackend(api_url='https://gateway.test/send', token='t0k', country_code='252', session=session)

    assert backend.send_message('0612345678', 'hello') == {'status': 'queued'}

    url, kwargs = session.calls[0]
    assert url == 'https://gateway.test/send'
    assert kwargs['json'] == {'to': '252612345678', 'body': 'hello'}
    assert kwargs['headers']['Authorization'] == 'Bearer t0k'


def test_whatsapp_backend_wraps_transport_errors():
    backend = WhatsAppBackend(
        api_url='https://gateway.test/send', session=FakeSession(exc=requests.ConnectionError('down')),
    )
    with pytest.raises(MessagingError):
        backend.send_message('0612345678', 'hello')

    quiet = WhatsAppBackend(
        api_url='https://gateway.test/send', session=FakeSession(response=FakeResponse(502)), fail_silently=True,
    )
    assert quiet.send_message('0612345678', 'hello') is None


def test_whatsapp_backend_requires_url(settings):
    settings.WHATSAPP = {'API_URL': '', 'TOKEN': ''}
    with pytest.raises(MessagingError):
        WhatsAppBackend(session=FakeSession()).send_message('0612345678', 'hello')


def test_get_backend_uses_setting(settings):
    assert isinstance(get_backend(), locmem.MessagingBackend)
    settings.MESSAGING_BACKEND = 'notifications.backends.console.MessagingBackend'
    assert get_backend().send_message('0612345678', 'hi')['status'] == 'logged'


# ============================================
# DISPATCHER
# ============================================
def test_notify_donors_reports_each_donor(make_donor, blood_request, monkeypatch, outbox):
    reachable = make_donor()
    unreachable = make_donor()
    real_send = locmem.MessagingBackend.send_message

    def flaky_send(self, phone, body):
        if phone == unreachable.phone:
            raise MessagingError('number not on WhatsApp')
        return real_send(self, phone, body)

    monkeypatch.setattr(locmem.MessagingBackend, 'send_message', flaky_send)

    results = NotificationDispatcher().notify_donors([reachable, unreachable], blood_request)

    assert results == [
        {'donor': reachable.id, 'success': True, 'error': None},
        {'donor': unreachable.id, 'success': False, 'error': 'number not on WhatsApp'},
    ]
    assert [m['to'] for m in outbox] == [reachable.phone]


def test_notify_requester_and_user(blood_request, requester, donor, outbox):
    dispatcher = NotificationDispatcher()

    assert dispatcher.notify_requester(blood_request, 'update')['success'] is True
    assert dispatcher.notify_user(donor, 'thanks') == {'user': donor.id, 'success': True, 'error': None}
    assert outbox == [
        {'to': requester.phone, 'body': 'update'},
        {'to': donor.phone, 'body': 'thanks'},
    ]


def test_requester_falls_back_to_patient_contact(blood_request, outbox):
    blood_request.requester.phone = ''
    NotificationDispatcher().notify_requester(blood_request, 'update')
    assert outbox == [{'to': blood_request.phone, 'body': 'update'}]


def test_deactivated_requester_falls_back_to_patient_contact(blood_request, requester, outbox):
    requester.deactivate()
    blood_request.refresh_from_db()
    NotificationDispatcher().notify_requester(blood_request, 'update')
    assert outbox[0]['to'] == blood_request.phone


def test_missing_phone_is_a_failed_result(blood_request):
    blood_request.requester.phone = ''
    blood_request.phone = ''
    result = NotificationDispatcher().notify_requester(blood_request, 'update')
    assert result['success'] is False


def test_notify_admins(admin_user, blood_request, outbox):
    results = NotificationDispatcher().notify_admins([admin_user], blood_request)
    assert results[0]['success'] is True
    assert f"#{blood_request.id}" in outbox[0]['body']


# ============================================
# QUEUE BOUNDARY
# ============================================
class FakeTask:
    name = 'fake'

    def __init__(self):
        self.delayed = []

    def delay(self, *args):
        self.delayed.append(args)


def test_async_dispatch_waits_for_commit(settings, django_capture_on_commit_callbacks):
    settings.NOTIFICATIONS_ASYNC = True
    task = FakeTask()

    with django_capture_on_commit_callbacks(execute=True):
        report = tasks.dispatch(task, 7)
        assert task.delayed == []

    assert report == {'queued': True, 'success': True}
    assert task.delayed == [(7,)]


def test_inline_dispatch_returns_task_report():
    class InlineTask:
        name = 'inline'

        def __call__(self, value):
            return {'value': value}

    assert tasks.dispatch(InlineTask(), 3) == {'value': 3, 'success': True, 'queued': False}


# ============================================
# BROADCASTS & INBOX
# ============================================
def test_broadcast_to_blood_type(auth_client, admin_user, make_donor):
    target = make_donor(blood_type='O_NEGATIVE')
    make_donor(blood_type='A_POSITIVE')
    make_donor(blood_type='O_NEGATIVE', is_active=False)

    response = auth_client(admin_user).post('/api/admin/notifications/', {
        'title': 'O- donors needed',
        'message': 'Stocks are low this week.',
        'target_type': 'BLOOD_TYPE',
        'target_value': 'O-',
        'priority': 'HIGH',
    }, format='json')

    assert response.status_code == 201
    assert response.data['notification']['recipients_count'] == 1
    assert list(UserNotification.objects.values_list('user_id', flat=True)) == [target.id]
    assert AdminNotification.objects.get().admin == admin_user


def test_broadcast_target_value_is_required(auth_client, admin_user):
    response = auth_client(admin_user).post('/api/admin/notifications/', {
        'title': 'Hi', 'message': 'Hello', 'target_type': 'LOCATION',
    }, format='json')
    assert response.status_code == 400
    assert 'target_value' in response.data['fields']


def test_broadcast_needs_admin(auth_client, donor):
    response = auth_client(donor).post('/api/admin/notifications/', {
        'title': 'Hi', 'message': 'Hello', 'target_type': 'ALL',
    }, format='json')
    assert response.status_code == 403


def test_inbox_and_mark_read(auth_client, admin_user, donor, make_donor):
    auth_client(admin_user).post('/api/admin/notifications/', {
        'title': 'Drive on Friday', 'message': 'Blood drive at Hodan.', 'target_type': 'ALL',
    }, format='json')
    client = auth_client(donor)

    response = client.get('/api/notifications/')
    assert response.data['unread_count'] == 1
    notification_id = response.data['notifications'][0]['id']

    response = client.put(f'/api/notifications/{notification_id}/read/')
    assert response.status_code == 200
    assert response.data['notification']['is_read'] is True
    assert client.get('/api/notifications/?is_read=false').data['notifications'] == []

    # Another user's notification is not visible
    assert auth_client(make_donor()).put(f'/api/notifications/{notification_id}/read/').status_code == 404
