# donors/utils.py
"""
Donation record manager: donor responses to approved blood requests.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from badbaado.exceptions import ConflictError, InvalidStateTransition, NotFoundError, ValidationError
from donors.models import Donation, credit_donors
from hospitals.lifecycle import complete_locked_request, get_locked_request
from hospitals.models import BloodRequest
from notifications import tasks

# Logger setup
logger = logging.getLogger(__name__)


def record_response(request_id, donor, notes=''):
    """
    Record a donor's offer to donate for an approved request.

    Checks run in order and the first failure wins:
    1. request exists                 -> NotFoundError
    2. request is APPROVED            -> ValidationError
    3. donor is eligible              -> ValidationError
    4. donor hasn't responded before  -> ConflictError

    When the response brings the request to max_donors, the request is
    completed in the same transaction.

    Returns:
        dict: donation, donors_count, request_completed, notifications
    """
    with transaction.atomic():
        blood_request = get_locked_request(request_id)

        if blood_request.status != BloodRequest.APPROVED:
            raise ValidationError('request not open for donation')

        # Re-read the donor so a stale instance can't slip past the check
        donor = get_user_model().objects.get(pk=donor.pk)
        if not donor.is_eligible:
            raise ValidationError('donor not eligible')

        if Donation.objects.filter(blood_request=blood_request, donor=donor).exists():
            raise ConflictError('already responded')

        try:
            with transaction.atomic():
                donation = Donation.objects.create(
                    blood_request=blood_request,
                    donor=donor,
                    notes=notes or Donation.DEFAULT_NOTES,
                    status=Donation.PENDING,
                )
        except IntegrityError:
            # Concurrent submission from the same donor won the unique constraint
            raise ConflictError('already responded')

        donors_count = Donation.objects.filter(blood_request=blood_request).count()
        request_completed = donors_count >= blood_request.max_donors
        if request_completed:
            complete_locked_request(blood_request)

    logger.info(
        f"Donor {donor.id} responded to blood request {blood_request.id} "
        f"({donors_count}/{blood_request.max_donors})"
    )

    notifications = tasks.dispatch(tasks.alert_donor_responded, donation.id)
    if request_completed:
        tasks.dispatch(tasks.alert_request_completed, blood_request.id)
        donation.refresh_from_db()

    return {
        'donation': donation,
        'donors_count': donors_count,
        'request_completed': request_completed,
        'notifications': notifications,
    }


def advance_status(donation_id, donor, new_status):
    """
    Move the donor's own donation forward.

    ACCEPTED stamps accepted_at. COMPLETED stamps completed_at and, in the
    same transaction, starts the donor's cool-down and bumps total_donations.

    Returns:
        (Donation, dict): updated donation and the notification report
    """
    if new_status not in dict(Donation.STATUS_CHOICES):
        raise ValidationError(f"Invalid donation status: {new_status}")

    with transaction.atomic():
        try:
            donation = Donation.objects.select_for_update().get(id=donation_id)
        except Donation.DoesNotExist:
            raise NotFoundError('Donation not found')

        if donation.donor_id != donor.id:
            raise PermissionDenied('Not authorized to update this donation')

        if new_status not in Donation.TRANSITIONS[donation.status]:
            raise InvalidStateTransition(donation.status, new_status)

        now = timezone.now()
        donation.status = new_status
        if new_status == Donation.ACCEPTED:
            donation.accepted_at = now
        else:
            donation.completed_at = now
            credit_donors([donation.donor_id], now)
        donation.save(update_fields=['status', 'accepted_at', 'completed_at', 'updated_at'])

    logger.info(f"Donation {donation.id} moved to {new_status} by donor {donor.id}")

    report = {'queued': False, 'success': True}
    if new_status == Donation.COMPLETED:
        report = tasks.dispatch(tasks.alert_donation_completed, donation.id)
    return donation, report


def confirm_donation(donation_id, user):
    """
    Requester (or admin) confirms that the donor gave blood: an open donation
    moves to COMPLETED and the donor is credited in the same transaction.

    Returns:
        (Donation, dict): updated donation and the notification report
    """
    with transaction.atomic():
        try:
            donation = (
                Donation.objects
                .select_for_update()
                .select_related('blood_request')
                .get(id=donation_id)
            )
        except Donation.DoesNotExist:
            raise NotFoundError('Donation not found')

        if donation.blood_request.requester_id != user.id and not user.is_admin_account:
            raise PermissionDenied('Only the requester or an admin can confirm this donation')

        if Donation.COMPLETED not in Donation.TRANSITIONS[donation.status]:
            raise InvalidStateTransition(donation.status, Donation.COMPLETED)

        now = timezone.now()
        donation.status = Donation.COMPLETED
        donation.completed_at = now
        donation.save(update_fields=['status', 'completed_at', 'updated_at'])
        credit_donors([donation.donor_id], now)

    logger.info(f"Donation {donation.id} confirmed by user {user.id}")

    report = tasks.dispatch(tasks.alert_donation_completed, donation.id)
    return donation, report


def activity_history(user, limit=50):
    """
    The user's requests and donations merged into one newest-first feed.

    Returns:
        list of dicts with type, id, status, blood_type, location, created_at
    """
    requests = (
        BloodRequest.objects
        .filter(requester=user)
        .order_by('-created_at')[:limit]
    )
    donations = (
        Donation.objects
        .filter(donor=user)
        .select_related('blood_request')
        .order_by('-created_at')[:limit]
    )

    history = [
        {
            'type': 'BLOOD_REQUEST',
            'id': blood_request.id,
            'status': blood_request.status,
            'blood_type': blood_request.get_blood_type_display(),
            'location': blood_request.location,
            'created_at': blood_request.created_at,
        }
        for blood_request in requests
    ]
    history += [
        {
            'type': 'DONATION',
            'id': donation.id,
            'status': donation.status,
            'blood_type': donation.blood_request.get_blood_type_display(),
            'location': donation.blood_request.location,
            'created_at': donation.created_at,
        }
        for donation in donations
    ]
    history.sort(key=lambda entry: entry['created_at'], reverse=True)
    return history[:limit]


def last_completed_donation(donor):
    return (
        Donation.objects
        .filter(donor=donor, status=Donation.COMPLETED)
        .order_by('-completed_at')
        .first()
    )
