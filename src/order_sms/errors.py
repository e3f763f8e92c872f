class OrderSmsError(Exception):
    """Base class for all errors raised by the order SMS service."""


class ConfigError(OrderSmsError, RuntimeError):
    """Required configuration is missing or invalid."""


class StoreError(OrderSmsError):
    """The order store could not be read or written."""


class NotificationError(OrderSmsError):
    """A notification could not be handed off for delivery."""


class GatewayError(NotificationError):
    """The SMS gateway rejected the request or could not be reached."""

    def __init__(self, message: str, code=None):
        super().__init__(message)
        self.code = code


class QueueError(NotificationError):
    """The notification queue rejected the message."""
