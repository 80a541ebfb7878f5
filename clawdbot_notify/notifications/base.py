"""
Shared behaviour for provider senders.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from clawdbot_notify.notifications.credentials import ProviderSpec, missing_field_message
from clawdbot_notify.notifications.models import (
    NotificationChannel, NotificationRequest, ProviderCredentials,
    DeliveryResult, DeliveryFailure, FailureKind, Outcome
)


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30


def is_success_status(status_code: int) -> bool:
    return 200 <= status_code < 300


class ProviderSender(ABC):
    """
    Base class for a single-provider sender.

    A send is one request/response round-trip. Implementations must not raise
    for delivery problems: they return a DeliveryFailure instead.
    """

    spec: ProviderSpec
    channel: NotificationChannel

    def __init__(self, timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS):
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.spec.name

    @abstractmethod
    def send(self, request: NotificationRequest, credentials: ProviderCredentials) -> Outcome:
        """Deliver ``request`` using ``credentials``."""

    def _config_missing(self, field_name: str) -> DeliveryFailure:
        return DeliveryFailure.config_missing(
            self.spec.name, field_name, missing_field_message(self.spec, field_name)
        )

    def _classify(self, status_code: int, body: str, raw: Any = None) -> Outcome:
        """Turn an HTTP status and body into a result or a PROVIDER_REJECTED failure."""
        if is_success_status(status_code):
            logger.info(f"{self.spec.display_name} accepted message: status {status_code}")
            return DeliveryResult(provider_name=self.spec.name, status_code=status_code, raw=raw)

        message = f"{self.spec.display_name} error: {status_code} - {body}"
        logger.error(f"{self.spec.display_name} rejected message: status {status_code}")
        return DeliveryFailure(
            kind=FailureKind.PROVIDER_REJECTED,
            message=message,
            provider_name=self.spec.name,
            status_code=status_code,
            response_body=body
        )

    def _transport_failure(self, error: Exception) -> DeliveryFailure:
        logger.error(f"{self.spec.display_name} request failed: {error}")
        return DeliveryFailure(
            kind=FailureKind.TRANSPORT_ERROR,
            message=str(error),
            provider_name=self.spec.name
        )
