"""
Admin broadcasts: resolve the target audience and write one inbox row per
recipient.
"""
import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from algorithms.blood_types import parse_blood_type
from badbaado.exceptions import ValidationError
from .models import AdminNotification, UserNotification

logger = logging.getLogger(__name__)


def broadcast_recipients(target_type, target_value=''):
    """Active, non-admin accounts matched by the broadcast target."""
    User = get_user_model()
    recipients = User.objects.filter(is_active=True, user_type='donor')
    target_value = (target_value or '').strip()

    if target_type == 'BLOOD_TYPE':
        blood_type = parse_blood_type(target_value)
        if blood_type is None:
            raise ValidationError(f"Unknown blood type: {target_value}")
        recipients = recipients.filter(blood_type=blood_type)
    elif target_type == 'LOCATION':
        recipients = recipients.filter(location__icontains=target_value)
    elif target_type == 'USER':
        recipients = recipients.filter(id=int(target_value))
    elif target_type != 'ALL':
        raise ValidationError(f"Unknown target type: {target_type}")

    return recipients


def send_broadcast(admin, title, message, target_type, target_value='', priority='NORMAL'):
    """
    Store the broadcast and fan it out to the inbox of every recipient.

    Returns:
        AdminNotification with recipients_count filled in
    """
    recipients = list(broadcast_recipients(target_type, target_value).values_list('id', flat=True))

    with transaction.atomic():
        broadcast = AdminNotification.objects.create(
            admin=admin,
            title=title,
            message=message,
            target_type=target_type,
            target_value=target_value,
            priority=priority,
            status='SENT',
            recipients_count=len(recipients),
            sent_at=timezone.now(),
        )
        UserNotification.objects.bulk_create([
            UserNotification(
                user_id=user_id,
                broadcast=broadcast,
                title=title,
                message=message,
                priority=priority,
            )
            for user_id in recipients
        ])

    logger.info(f"Broadcast {broadcast.id} ({target_type}) delivered to {len(recipients)} user(s)")
    return broadcast
