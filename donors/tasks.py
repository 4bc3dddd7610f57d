# donors/tasks.py
"""
Celery tasks for donor maintenance
"""
import logging

from celery import shared_task
from django.contrib.auth import get_user_model

from algorithms.eligibility import out_of_cooldown_filter

logger = logging.getLogger(__name__)


@shared_task
def restore_donor_eligibility():
    """
    Re-enable donors whose cool-down has run out (or who never donated).
    Runs periodically from celery beat (see CELERY_BEAT_SCHEDULE).

    Donors on an admin hold (eligibility_locked) and deactivated
    accounts are left alone.
    """
    User = get_user_model()
    restored = User.objects.filter(
        out_of_cooldown_filter(),
        user_type='donor',
        is_active=True,
        is_eligible=False,
        eligibility_locked=False,
    ).update(is_eligible=True)

    logger.info(f"Restored eligibility for {restored} donor(s)")
    return restored
