# notifications/dispatcher.py
"""
Best-effort delivery of WhatsApp notifications.

Every method catches transport failures and reports them in its result;
nothing here ever raises into the code that changed a request or donation.
"""
import logging

from notifications import messages
from notifications.backends import get_backend

logger = logging.getLogger(__name__)


def _result(recipient_key, recipient, success, error=None):
    return {
        recipient_key: recipient.id if recipient is not None else None,
        'success': success,
        'error': error,
    }


class NotificationDispatcher:
    def __init__(self, backend=None):
        self.backend = backend or get_backend()

    def _send(self, phone, body):
        """Send one message. Returns (success, error)."""
        if not phone:
            return False, 'No phone number on record'
        try:
            self.backend.send_message(phone, body)
        except Exception as exc:
            logger.warning(f"Message to {phone} failed: {exc}")
            return False, str(exc)
        return True, None

    def notify_admins(self, admins, blood_request):
        """Alert admins that a new request is waiting for approval."""
        results = []
        for admin in admins:
            success, error = self._send(admin.phone, messages.new_request_for_admin(admin, blood_request))
            results.append(_result('admin', admin, success, error))

        sent = sum(1 for r in results if r['success'])
        logger.info(f"Notified {sent}/{len(results)} admins about blood request {blood_request.id}")
        return results

    def notify_donors(self, donors, blood_request):
        """
        Fan-out alert to matched donors.

        Returns:
            list of {'donor': id, 'success': bool, 'error': str|None}
        """
        results = []
        for donor in donors:
            success, error = self._send(donor.phone, messages.donor_request_alert(donor, blood_request))
            results.append(_result('donor', donor, success, error))

        sent = sum(1 for r in results if r['success'])
        logger.info(f"Donor notification for request {blood_request.id}: {sent}/{len(results)} successful")
        return results

    def notify_requester(self, blood_request, message):
        """Message the account that filed the request; the patient contact is the fallback."""
        requester = blood_request.requester
        phone = (requester.phone if requester.is_active else '') or blood_request.phone
        success, error = self._send(phone, message)
        if success:
            logger.info(f"Requester of blood request {blood_request.id} notified")
        return {'request': blood_request.id, 'success': success, 'error': error}

    def notify_user(self, user, message):
        success, error = self._send(user.phone, message)
        return _result('user', user, success, error)
