"""
Messaging backend that writes messages to the log instead of sending them.
"""
import logging

from .base import BaseMessagingBackend

logger = logging.getLogger(__name__)


class MessagingBackend(BaseMessagingBackend):
    def send_message(self, phone, body):
        logger.info(f"[console message] to={phone}\n{body}")
        return {'to': phone, 'status': 'logged'}
