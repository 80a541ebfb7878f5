"""
Custom exceptions for the notification system.
"""

from typing import Optional


class NotificationError(Exception):
    """Base exception for notification system errors."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class ConfigMissingError(NotificationError):
    """Raised when a required credential or recipient is not configured."""

    def __init__(self, message: str, provider: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message, provider)
        self.field = field


class ProviderRejectedError(NotificationError):
    """Raised when a provider was reachable but answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None
    ):
        super().__init__(message, provider)
        self.status_code = status_code
        self.response_body = response_body


class TransportError(NotificationError):
    """Raised when the request never got a response (connection, DNS, timeout)."""
    pass


class ProvidersExhaustedError(NotificationError):
    """Raised when no WhatsApp provider was configured or every one of them failed."""
    pass
