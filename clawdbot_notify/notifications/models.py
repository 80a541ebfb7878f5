"""
Data models for the notification system.
"""

from enum import Enum
from types import MappingProxyType
from typing import Optional, Dict, Any, Iterable, Mapping, Union
from dataclasses import dataclass, field

from clawdbot_notify.notifications.exceptions import (
    NotificationError, ConfigMissingError, ProviderRejectedError,
    TransportError, ProvidersExhaustedError
)


class NotificationChannel(Enum):
    """Supported notification channels."""
    EMAIL = "email"
    WHATSAPP = "whatsapp"


class FailureKind(Enum):
    """Why a delivery attempt did not succeed."""
    CONFIG_MISSING = "config_missing"
    PROVIDER_REJECTED = "provider_rejected"
    TRANSPORT_ERROR = "transport_error"
    PROVIDERS_EXHAUSTED = "providers_exhausted"


class DispatchState(Enum):
    """States of a single WhatsApp dispatch run."""
    NOT_ATTEMPTED = "not_attempted"
    TRYING_TWILIO = "trying_twilio"
    TRYING_CALLMEBOT = "trying_callmebot"
    SUCCEEDED = "succeeded"
    EXHAUSTED_FAILURE = "exhausted_failure"


@dataclass(frozen=True)
class NotificationRequest:
    """
    A single notification to deliver.

    ``subject`` is only meaningful for email. WhatsApp providers send ``body``
    as the message text and ignore everything else.
    """
    body: str
    subject: Optional[str] = None
    html: Optional[str] = None
    recipient_override: Optional[str] = None
    sender_override: Optional[str] = None

    def __post_init__(self):
        if self.body is None:
            raise ValueError("body is required (use an empty string for HTML-only email)")

    @classmethod
    def email(cls, subject: str, body: str, to: Optional[str] = None,
              from_email: Optional[str] = None) -> 'NotificationRequest':
        """Build a plain-text email request."""
        return cls(body=body, subject=subject, recipient_override=to, sender_override=from_email)

    @classmethod
    def html_email(cls, subject: str, html: str, plain_text: Optional[str] = None,
                   to: Optional[str] = None, from_email: Optional[str] = None) -> 'NotificationRequest':
        """Build an HTML email request; an empty ``plain_text`` is derived from the HTML."""
        return cls(
            body=plain_text or "",
            subject=subject,
            html=html,
            recipient_override=to,
            sender_override=from_email
        )

    @classmethod
    def whatsapp(cls, message: str) -> 'NotificationRequest':
        """Build a WhatsApp message request."""
        return cls(body=message)


@dataclass(frozen=True)
class ProviderCredentials:
    """Named credential values for one provider, as read from configuration."""
    provider: str
    values: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'values', MappingProxyType(dict(self.values)))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        value = self.values.get(name)
        if value is None or not str(value).strip():
            return default
        return value

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def first_missing(self, names: Iterable[str]) -> Optional[str]:
        """Return the first of ``names`` that is absent or blank, in the given order."""
        for name in names:
            if self.get(name) is None:
                return name
        return None


@dataclass(frozen=True)
class DeliveryResult:
    """Successful delivery through one provider."""
    provider_name: str
    status_code: Optional[int] = None
    raw: Any = None
    success: bool = field(default=True, init=False)

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class DeliveryFailure:
    """Failed delivery attempt, tagged with the kind of failure."""
    kind: FailureKind
    message: str
    provider_name: Optional[str] = None
    status_code: Optional[int] = None
    response_body: Optional[str] = None
    field_name: Optional[str] = None
    success: bool = field(default=False, init=False)

    @property
    def is_success(self) -> bool:
        return False

    @classmethod
    def config_missing(cls, provider: str, field_name: str, message: str) -> 'DeliveryFailure':
        return cls(
            kind=FailureKind.CONFIG_MISSING,
            message=message,
            provider_name=provider,
            field_name=field_name
        )

    def to_exception(self) -> NotificationError:
        """Convert this failure into the matching exception type."""
        if self.kind == FailureKind.CONFIG_MISSING:
            return ConfigMissingError(self.message, self.provider_name, self.field_name)
        if self.kind == FailureKind.PROVIDER_REJECTED:
            return ProviderRejectedError(
                self.message, self.provider_name, self.status_code, self.response_body
            )
        if self.kind == FailureKind.TRANSPORT_ERROR:
            return TransportError(self.message, self.provider_name)
        return ProvidersExhaustedError(self.message, self.provider_name)


Outcome = Union[DeliveryResult, DeliveryFailure]


def unwrap(outcome: Outcome) -> DeliveryResult:
    """
    Return the result of a successful outcome or raise the failure as an exception.

    Raises:
        NotificationError: the typed exception matching ``outcome.kind``
    """
    if isinstance(outcome, DeliveryFailure):
        raise outcome.to_exception()
    return outcome


def describe(outcome: Outcome) -> Dict[str, Any]:
    """Flatten an outcome into a dict suitable for logging."""
    if isinstance(outcome, DeliveryResult):
        return {
            'success': True,
            'provider': outcome.provider_name,
            'status_code': outcome.status_code,
        }
    return {
        'success': False,
        'provider': outcome.provider_name,
        'kind': outcome.kind.value,
        'status_code': outcome.status_code,
        'message': outcome.message,
    }
