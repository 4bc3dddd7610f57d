"""
Pluggable outbound messaging, configured the way Django configures email:

    MESSAGING_BACKEND = 'notifications.backends.whatsapp.MessagingBackend'
"""
from django.conf import settings
from django.utils.module_loading import import_string


def get_backend(backend=None, **kwargs):
    klass = import_string(backend or settings.MESSAGING_BACKEND)
    return klass(**kwargs)
