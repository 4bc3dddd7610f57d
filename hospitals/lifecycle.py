# hospitals/lifecycle.py
"""
Blood request lifecycle.

    PENDING ──approve──> APPROVED ──complete──> COMPLETED
       │                    │
       ├──reject──> REJECTED└──cancel──> CANCELLED
       └──cancel──> CANCELLED

Every transition locks the request row, checks the current status and
writes in one transaction. Notifications are dispatched only after the
write and their outcome is returned as a report next to the request.
"""
import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from algorithms.matching import find_eligible_donors
from badbaado.exceptions import ConflictError, InvalidStateTransition, NotFoundError, ValidationError
from donors.models import Donation, credit_donors
from hospitals.models import BloodRequest
from notifications import tasks

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    BloodRequest.PENDING: (BloodRequest.APPROVED, BloodRequest.REJECTED, BloodRequest.CANCELLED),
    BloodRequest.APPROVED: (BloodRequest.COMPLETED, BloodRequest.CANCELLED),
    BloodRequest.REJECTED: (),
    BloodRequest.COMPLETED: (),
    BloodRequest.CANCELLED: (),
}


def can_transition(current, requested):
    return requested in ALLOWED_TRANSITIONS.get(current, ())


def _check_transition(blood_request, requested):
    if not can_transition(blood_request.status, requested):
        logger.info(f"Rejected transition {blood_request.status} -> {requested} for request {blood_request.id}")
        raise InvalidStateTransition(blood_request.status, requested)


def get_locked_request(request_id):
    """Fetch a request with a row lock. Must be called inside transaction.atomic()."""
    try:
        return BloodRequest.objects.select_for_update().get(id=request_id)
    except BloodRequest.DoesNotExist:
        raise NotFoundError('Blood request not found')


# ============================================
# CREATE
# ============================================
def create_request(requester, **fields):
    """
    Create a PENDING request and alert admins.

    Returns:
        (BloodRequest, dict): the request and the admin notification report
    """
    blood_request = BloodRequest.objects.create(
        requester=requester,
        status=BloodRequest.PENDING,
        **fields
    )
    logger.info(f"Blood request {blood_request.id} created by user {requester.id}")

    report = tasks.dispatch(tasks.alert_admins_new_request, blood_request.id)
    return blood_request, report


# ============================================
# APPROVE
# ============================================
def approve_request(request_id, admin):
    """
    PENDING -> APPROVED, then match donors and notify them and the requester.

    Raises:
        NotFoundError, ConflictError (already approved), InvalidStateTransition
    """
    with transaction.atomic():
        blood_request = get_locked_request(request_id)

        if blood_request.status == BloodRequest.APPROVED:
            raise ConflictError('Request is already approved')
        _check_transition(blood_request, BloodRequest.APPROVED)

        blood_request.status = BloodRequest.APPROVED
        blood_request.approved_at = timezone.now()
        blood_request.approved_by = admin
        blood_request.save(update_fields=['status', 'approved_at', 'approved_by', 'updated_at'])

    logger.info(f"Blood request {blood_request.id} approved by admin {admin.id if admin else None}")

    donors = find_eligible_donors(blood_request)
    report = tasks.dispatch(tasks.alert_request_approved, blood_request.id, [d.id for d in donors])
    report.setdefault('eligible_donors_count', len(donors))
    return blood_request, report


# ============================================
# REJECT
# ============================================
def reject_request(request_id, admin, reason):
    """PENDING -> REJECTED. A non-blank reason is mandatory."""
    reason = (reason or '').strip()

    with transaction.atomic():
        blood_request = get_locked_request(request_id)

        if not reason:
            raise ValidationError('Rejection reason is required')
        _check_transition(blood_request, BloodRequest.REJECTED)

        blood_request.status = BloodRequest.REJECTED
        blood_request.rejected_at = timezone.now()
        blood_request.reject_reason = reason
        blood_request.save(update_fields=['status', 'rejected_at', 'reject_reason', 'updated_at'])

    logger.info(f"Blood request {blood_request.id} rejected by admin {admin.id if admin else None}")

    report = tasks.dispatch(tasks.alert_request_rejected, blood_request.id)
    return blood_request, report


# ============================================
# COMPLETE
# ============================================
def complete_locked_request(blood_request):
    """
    APPROVED -> COMPLETED on an already locked request, inside the caller's
    transaction. Every open donation (PENDING or ACCEPTED) is completed with
    it and its donor credited.

    Returns:
        int: number of donations completed along with the request
    """
    _check_transition(blood_request, BloodRequest.COMPLETED)

    now = timezone.now()
    blood_request.status = BloodRequest.COMPLETED
    blood_request.completed_at = now
    blood_request.save(update_fields=['status', 'completed_at', 'updated_at'])

    open_donations = Donation.objects.filter(blood_request=blood_request, status__in=Donation.OPEN_STATUSES)
    donor_ids = list(open_donations.values_list('donor_id', flat=True))
    open_donations.update(status=Donation.COMPLETED, completed_at=now, updated_at=now)
    credit_donors(donor_ids, now)

    logger.info(f"Blood request {blood_request.id} completed; {len(donor_ids)} open donation(s) completed with it")
    return len(donor_ids)


def complete_request(request_id, admin=None):
    """Explicit "mark completed" admin action."""
    with transaction.atomic():
        blood_request = get_locked_request(request_id)
        donations_completed = complete_locked_request(blood_request)

    report = tasks.dispatch(tasks.alert_request_completed, blood_request.id)
    report['donations_completed'] = donations_completed
    return blood_request, report


# ============================================
# CANCEL / DELETE (requester only)
# ============================================
def _check_owner(blood_request, user, action):
    if blood_request.requester_id != user.id:
        raise PermissionDenied(f"Not authorized to {action} this request")


def cancel_request(request_id, user):
    """PENDING/APPROVED -> CANCELLED, by the requester, while nobody has responded."""
    with transaction.atomic():
        blood_request = get_locked_request(request_id)
        _check_owner(blood_request, user, 'cancel')
        _check_transition(blood_request, BloodRequest.CANCELLED)

        if blood_request.donations.exists():
            raise ConflictError('Cannot cancel a request that donors have already responded to')

        blood_request.status = BloodRequest.CANCELLED
        blood_request.cancelled_at = timezone.now()
        blood_request.save(update_fields=['status', 'cancelled_at', 'updated_at'])

    logger.info(f"Blood request {blood_request.id} cancelled by requester {user.id}")
    return blood_request


def delete_request(request_id, user):
    """Hard delete, allowed only for the requester's own PENDING request with no responses."""
    with transaction.atomic():
        blood_request = get_locked_request(request_id)
        _check_owner(blood_request, user, 'delete')

        if blood_request.status != BloodRequest.PENDING:
            raise InvalidStateTransition(
                blood_request.status, 'DELETED', detail='Can only delete pending requests'
            )
        if blood_request.donations.exists():
            raise ConflictError('Cannot delete a request that donors have already responded to')

        blood_request.delete()

    logger.info(f"Blood request {request_id} deleted by requester {user.id}")
