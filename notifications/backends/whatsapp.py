"""
WhatsApp gateway backend.

Posts each message as JSON to ``WHATSAPP['API_URL']`` with a bearer token.
"""
import logging
import re

import requests
from django.conf import settings

from .base import BaseMessagingBackend, MessagingError

logger = logging.getLogger(__name__)


def normalize_phone(phone, country_code):
    """
    Convert a local number (061..., 61...) to international digits (25261...).
    """
    digits = re.sub(r'\D', '', phone or '')
    if not digits:
        raise MessagingError(f"Invalid phone number: {phone!r}")
    if digits.startswith('00'):
        return digits[2:]
    if country_code and digits.startswith(country_code):
        return digits
    if digits.startswith('0'):
        digits = digits[1:]
    return f"{country_code}{digits}"


class MessagingBackend(BaseMessagingBackend):
    def __init__(self, api_url=None, token=None, timeout=None, country_code=None, session=None, **kwargs):
        super().__init__(**kwargs)
        config = getattr(settings, 'WHATSAPP', {})
        self.api_url = api_url or config.get('API_URL')
        self.token = token or config.get('TOKEN')
        self.timeout = timeout or config.get('TIMEOUT', 10)
        self.country_code = country_code if country_code is not None else config.get('DEFAULT_COUNTRY_CODE', '')
        self.session = session or requests.Session()

    def send_message(self, phone, body):
        if not self.api_url:
            raise MessagingError('WHATSAPP API_URL is not configured')

        to = normalize_phone(phone, self.country_code)
        try:
            response = self.session.post(
                self.api_url,
                json={'to': to, 'body': body},
                headers={'Authorization': f'Bearer {self.token}'},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            if self.fail_silently:
                logger.warning(f"WhatsApp send to {to} failed silently: {exc}")
                return None
            raise MessagingError(f"WhatsApp send to {to} failed: {exc}") from exc

        logger.debug(f"WhatsApp message delivered to {to}")
        try:
            return response.json()
        except ValueError:
            return {'to': to, 'status': response.status_code}
