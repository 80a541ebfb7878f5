"""
Credential lookup for the messaging providers.

Each provider declares the configuration keys it reads, in a fixed order:
API keys and account identifiers first, then recipient and sender fields.
The resolver walks that order and reports the first required key that is
missing.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Mapping, Tuple, Union

from clawdbot_notify.notifications.models import ProviderCredentials, DeliveryFailure


logger = logging.getLogger(__name__)

ConfigSource = Mapping[str, Optional[str]]


@dataclass(frozen=True)
class CredentialField:
    """One named credential and the configuration key it is read from."""
    name: str
    config_key: str
    required: bool = True


@dataclass(frozen=True)
class ProviderSpec:
    """Static description of a provider's credential requirements."""
    name: str
    display_name: str
    fields: Tuple[CredentialField, ...]

    def config_key(self, field_name: str) -> str:
        for f in self.fields:
            if f.name == field_name:
                return f.config_key
        raise KeyError(field_name)


SENDGRID = ProviderSpec(
    name="sendgrid",
    display_name="SendGrid",
    fields=(
        CredentialField("api_key", "SENDGRID_API_KEY"),
        CredentialField("to_email", "NOTIFY_EMAIL_TO"),
        CredentialField("from_email", "NOTIFY_EMAIL_FROM", required=False),
    )
)

TWILIO = ProviderSpec(
    name="twilio",
    display_name="Twilio",
    fields=(
        CredentialField("account_sid", "TWILIO_ACCOUNT_SID"),
        CredentialField("auth_token", "TWILIO_AUTH_TOKEN"),
        CredentialField("to_number", "NOTIFY_WHATSAPP_TO"),
        CredentialField("from_number", "TWILIO_WHATSAPP_FROM", required=False),
    )
)

CALLMEBOT = ProviderSpec(
    name="callmebot",
    display_name="CallMeBot",
    fields=(
        CredentialField("api_key", "CALLMEBOT_APIKEY"),
        CredentialField("phone", "CALLMEBOT_PHONE"),
    )
)

PROVIDERS: Dict[str, ProviderSpec] = {spec.name: spec for spec in (SENDGRID, TWILIO, CALLMEBOT)}


def missing_field_message(spec: ProviderSpec, field_name: str) -> str:
    """Human-readable message for a missing credential."""
    return f"{spec.display_name} {field_name} not configured (set {spec.config_key(field_name)})"


class CredentialResolver:
    """
    Reads provider credentials from a configuration mapping.

    The mapping defaults to ``os.environ``.
    """

    def __init__(self, config: Optional[ConfigSource] = None):
        self.config = config if config is not None else os.environ

    def resolve(
        self,
        spec: ProviderSpec,
        overrides: Optional[Mapping[str, Optional[str]]] = None
    ) -> Union[ProviderCredentials, DeliveryFailure]:
        """
        Collect every field of ``spec``.

        Args:
            spec: Provider whose credentials to read
            overrides: Field values that take precedence over configuration
                (e.g. an explicit recipient). ``None`` values are ignored.

        Returns:
            ProviderCredentials when every required field is present, otherwise a
            CONFIG_MISSING DeliveryFailure naming the first missing field
        """
        overrides = overrides or {}
        values: Dict[str, str] = {}

        for cred_field in spec.fields:
            value = clean_value(overrides.get(cred_field.name))
            if value is None:
                value = clean_value(self.config.get(cred_field.config_key))

            if value is None:
                if cred_field.required:
                    message = missing_field_message(spec, cred_field.name)
                    logger.debug(f"{spec.display_name} credentials incomplete: {cred_field.config_key}")
                    return DeliveryFailure.config_missing(spec.name, cred_field.name, message)
                continue

            values[cred_field.name] = value

        return ProviderCredentials(provider=spec.name, values=values)

    def is_complete(self, spec: ProviderSpec) -> bool:
        """Check whether ``spec`` can be attempted with the current configuration."""
        return isinstance(self.resolve(spec), ProviderCredentials)

    def status(self) -> Dict[str, bool]:
        """Completeness of every known provider."""
        return {name: self.is_complete(spec) for name, spec in PROVIDERS.items()}


def clean_value(value: Optional[str]) -> Optional[str]:
    """Strip ``value``; blank strings become ``None``."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """Mask a secret for logging, keeping only the last few characters."""
    if not value:
        return "<unset>"
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
