"""
Backend for test environments: messages are appended to ``outbox``.
"""
from .base import BaseMessagingBackend

outbox = []


class MessagingBackend(BaseMessagingBackend):
    def send_message(self, phone, body):
        outbox.append({'to': phone, 'body': body})
        return {'to': phone, 'status': 'stored'}
