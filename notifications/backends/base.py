class MessagingError(Exception):
    """The transport could not deliver a message."""


class BaseMessagingBackend:
    """
    Base class for messaging backends.

    Subclasses must implement send_message(phone, body) and raise
    MessagingError (or let the transport's exception escape) on failure.
    """

    def __init__(self, fail_silently=False, **kwargs):
        self.fail_silently = fail_silently

    def send_message(self, phone, body):
        raise NotImplementedError('subclasses of BaseMessagingBackend must override send_message()')
