# notifications/tasks.py
"""
Celery tasks for outbound notifications.

The workflow code never calls the dispatcher directly: it hands a task to
dispatch(), which either queues it after the surrounding transaction
commits (NOTIFICATIONS_ASYNC) or runs it inline and returns its report.
"""
import logging

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

from donors.models import Donation
from hospitals.models import BloodRequest
from notifications import messages
from notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


def dispatch(task, *args):
    """
    Run a notification task without letting it affect the caller.

    Returns a report dict that always has 'queued' and 'success' keys.
    """
    if getattr(settings, 'NOTIFICATIONS_ASYNC', False):
        def enqueue():
            try:
                task.delay(*args)
            except Exception:
                logger.exception(f"Could not queue {task.name}{args}")

        transaction.on_commit(enqueue)
        return {'queued': True, 'success': True}

    try:
        report = task(*args)
    except Exception as exc:
        logger.exception(f"Notification task {task.name}{args} failed")
        return {'queued': False, 'success': False, 'error': str(exc)}

    report = dict(report or {})
    report.setdefault('success', True)
    report['queued'] = False
    return report


@shared_task
def alert_admins_new_request(blood_request_id):
    """Tell every active admin that a request is waiting for approval."""
    User = get_user_model()
    blood_request = BloodRequest.objects.get(id=blood_request_id)
    admins = User.objects.filter(user_type='admin', is_active=True)

    results = NotificationDispatcher().notify_admins(admins, blood_request)
    return {
        'success': all(r['success'] for r in results),
        'admins_notified': sum(1 for r in results if r['success']),
        'results': results,
    }


@shared_task
def alert_request_approved(blood_request_id, donor_ids):
    """Send the request to matched donors, then confirm approval to the requester."""
    User = get_user_model()
    blood_request = BloodRequest.objects.get(id=blood_request_id)
    donors = list(User.objects.filter(id__in=donor_ids).order_by('-date_joined', '-id'))

    dispatcher = NotificationDispatcher()
    donor_results = dispatcher.notify_donors(donors, blood_request)
    patient_result = dispatcher.notify_requester(
        blood_request, messages.request_approved(blood_request, len(donors))
    )

    successful = sum(1 for r in donor_results if r['success'])
    return {
        'success': successful == len(donor_results) and patient_result['success'],
        'donors_notified': successful,
        'eligible_donors_count': len(donors),
        'patient_notified': patient_result['success'],
        'notification_summary': {
            'total_donors': len(donors),
            'successful': successful,
            'failed': len(donors) - successful,
        },
        'notification_results': donor_results,
    }


@shared_task
def alert_request_rejected(blood_request_id):
    blood_request = BloodRequest.objects.get(id=blood_request_id)
    result = NotificationDispatcher().notify_requester(blood_request, messages.request_rejected(blood_request))
    return {'success': result['success'], 'patient_notified': result['success']}


@shared_task
def alert_request_completed(blood_request_id):
    blood_request = BloodRequest.objects.get(id=blood_request_id)
    result = NotificationDispatcher().notify_requester(blood_request, messages.request_completed(blood_request))
    return {'success': result['success'], 'patient_notified': result['success']}


@shared_task
def alert_donor_responded(donation_id):
    """Give the requester the responding donor's contact details."""
    donation = Donation.objects.select_related('donor', 'blood_request').get(id=donation_id)
    result = NotificationDispatcher().notify_requester(
        donation.blood_request, messages.donor_responded(donation.blood_request, donation.donor)
    )
    return {'success': result['success'], 'requester_notified': result['success']}


@shared_task
def alert_donation_completed(donation_id):
    donation = Donation.objects.select_related('donor').get(id=donation_id)
    result = NotificationDispatcher().notify_user(donation.donor, messages.donation_thank_you(donation))
    return {'success': result['success'], 'donor_notified': result['success']}
