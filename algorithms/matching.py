import logging

from django.conf import settings
from django.contrib.auth import get_user_model

from algorithms.eligibility import donor_filter

logger = logging.getLogger(__name__)


def donors_queryset(blood_type, location, now=None):
    """Eligible donors of a blood type near a location, newest registration first."""
    User = get_user_model()
    return (
        User.objects
        .filter(user_type='donor')
        .filter(donor_filter(blood_type, location, now))
        .order_by('-date_joined', '-id')
    )


def eligible_donors_queryset(blood_request, now=None):
    """Eligible donors for a request, newest registration first."""
    return donors_queryset(blood_request.blood_type, blood_request.location, now)


def find_eligible_donors(blood_request, limit=None, unlimited=False, now=None):
    """
    Match donors for a blood request.

    Args:
        blood_request (BloodRequest): Request to match
        limit (int): Maximum donors to return, defaults to DONOR_MATCH_LIMIT
        unlimited (bool): Ignore the cap (read path for listing donors)
        now (datetime): Reference time for the cool-down window

    Returns:
        list: Matching donors (empty list when nobody qualifies)
    """
    queryset = eligible_donors_queryset(blood_request, now)
    if not unlimited:
        if limit is None:
            limit = getattr(settings, 'DONOR_MATCH_LIMIT', 50)
        queryset = queryset[:limit]

    donors = list(queryset)
    logger.info(f"{len(donors)} eligible donors matched for blood request {blood_request.id}")
    return donors


def search_donors(blood_type, location, now=None):
    """Ad-hoc search by blood type and location, without a blood request."""
    donors = list(donors_queryset(blood_type, location, now))
    logger.info(f"Donor search {blood_type}/{location}: {len(donors)} eligible")
    return donors
