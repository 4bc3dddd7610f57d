import logging
import math
from datetime import timedelta

from django.conf import settings
from django.db.models import Q
from django.utils import timezone

# Logger
logger = logging.getLogger(__name__)


def cooldown_days():
    return getattr(settings, 'DONATION_COOLDOWN_DAYS', 90)


def cooldown_cutoff(now=None, days=None):
    """Donations strictly before this moment no longer block a donor."""
    now = now or timezone.now()
    return now - timedelta(days=cooldown_days() if days is None else days)


def in_cooldown(donor, now=None, days=None) -> bool:
    if donor.last_donation is None:
        return False
    return donor.last_donation >= cooldown_cutoff(now, days)


def is_donor_eligible(donor, blood_request, now=None) -> bool:
    """
    Check if a donor is eligible for a given blood request.

    Criteria:
    - Donor blood type equals the requested blood type (no cross-type matching)
    - Requested location is contained in the donor's location
    - Donor is active and flagged eligible
    - Donor hasn't donated in the last 90 days

    Args:
        donor (CustomUser): Donor object
        blood_request (BloodRequest): Request to match against
        now (datetime): Reference time, defaults to timezone.now()

    Returns:
        bool: True if eligible, False otherwise
    """
    if donor.blood_type != blood_request.blood_type:
        return False

    if (blood_request.location or '').lower() not in (donor.location or '').lower():
        return False

    if not donor.is_active or not donor.is_eligible:
        return False

    # Donation cooldown
    if in_cooldown(donor, now):
        return False

    return True


def out_of_cooldown_filter(now=None) -> Q:
    return Q(last_donation__isnull=True) | Q(last_donation__lt=cooldown_cutoff(now))


def donor_filter(blood_type, location, now=None) -> Q:
    """The same rules as is_donor_eligible, expressed for the ORM."""
    return (
        Q(blood_type=blood_type)
        & Q(location__icontains=location or '')
        & Q(is_active=True, is_eligible=True)
        & out_of_cooldown_filter(now)
    )


def days_until_eligible(donor, now=None) -> int:
    """Whole days left in the donor's cool-down (0 when they can donate)."""
    if not in_cooldown(donor, now):
        return 0
    now = now or timezone.now()
    remaining = donor.last_donation + timedelta(days=cooldown_days()) - now
    return max(0, math.ceil(remaining.total_seconds() / 86400))
