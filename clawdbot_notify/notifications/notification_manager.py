"""
Notification manager: one entry point for email and WhatsApp delivery.
"""

import logging
from typing import Optional, Dict, Mapping

from clawdbot_notify.config.settings import NotificationSettings, load_settings
from clawdbot_notify.notifications.credentials import CredentialResolver, SENDGRID, ConfigSource
from clawdbot_notify.notifications.dispatcher import WhatsAppDispatcher
from clawdbot_notify.notifications.email_sender import EmailSender
from clawdbot_notify.notifications.models import (
    NotificationChannel, NotificationRequest, DeliveryResult, DeliveryFailure, Outcome, describe, unwrap
)
from clawdbot_notify.notifications.whatsapp_sender import TwilioWhatsAppSender, CallMeBotWhatsAppSender


logger = logging.getLogger(__name__)


class NotificationManager:
    """
    Wires configuration, senders and the WhatsApp dispatcher together.

    Methods return a DeliveryResult or raise the NotificationError subclass
    matching the failure. Nothing is kept between calls.
    """

    def __init__(
        self,
        config: Optional[ConfigSource] = None,
        email_sender: Optional[EmailSender] = None,
        twilio_sender: Optional[TwilioWhatsAppSender] = None,
        callmebot_sender: Optional[CallMeBotWhatsAppSender] = None,
        timeout: Optional[float] = None,
        from_name: Optional[str] = None
    ):
        """
        Initialize notification manager.

        Args:
            config: ``{ENV_NAME: value}`` mapping (defaults to the process environment)
            email_sender: SendGrid sender override
            twilio_sender: Twilio sender override
            callmebot_sender: CallMeBot sender override
            timeout: HTTP timeout in seconds for the default senders
            from_name: Email sender display name for the default email sender
        """
        self.resolver = CredentialResolver(config)

        sender_kwargs = {} if timeout is None else {'timeout': timeout}
        email_kwargs = dict(sender_kwargs)
        if from_name:
            email_kwargs['from_name'] = from_name

        self.email_sender = email_sender or EmailSender(**email_kwargs)
        self.dispatcher = WhatsAppDispatcher(
            resolver=self.resolver,
            twilio_sender=twilio_sender or TwilioWhatsAppSender(**sender_kwargs),
            callmebot_sender=callmebot_sender or CallMeBotWhatsAppSender(**sender_kwargs)
        )

    @classmethod
    def from_settings(cls, settings: NotificationSettings) -> 'NotificationManager':
        """Build a manager from loaded settings."""
        return cls(
            config=settings.as_config(),
            timeout=settings.http_timeout_seconds,
            from_name=settings.email_from_name
        )

    @staticmethod
    def create_from_env(env_file: Optional[str] = None) -> 'NotificationManager':
        """Load settings from the environment (and ``.env``) and build a manager."""
        return NotificationManager.from_settings(load_settings(env_file).notifications)

    def send_email(
        self,
        subject: str,
        body: str,
        to: Optional[str] = None,
        from_email: Optional[str] = None
    ) -> DeliveryResult:
        """
        Send a plain-text email.

        Args:
            subject: Email subject
            body: Plain-text body
            to: Recipient override (defaults to NOTIFY_EMAIL_TO)
            from_email: Sender override (defaults to NOTIFY_EMAIL_FROM)

        Returns:
            DeliveryResult with the SendGrid status code

        Raises:
            ConfigMissingError: SendGrid key or recipient not configured
            ProviderRejectedError: SendGrid returned a non-2xx status
            TransportError: The request could not be completed
        """
        request = NotificationRequest.email(subject, body, to=to, from_email=from_email)
        outcome = self._send_email(request, html=False)
        return self._finish(NotificationChannel.EMAIL, outcome)

    def send_html_email(
        self,
        subject: str,
        html: str,
        plain_text: Optional[str] = None,
        to: Optional[str] = None,
        from_email: Optional[str] = None
    ) -> DeliveryResult:
        """
        Send an HTML email with a plain-text alternative.

        When ``plain_text`` is empty the plain part is the HTML with tags removed.
        Raises the same errors as ``send_email``.
        """
        request = NotificationRequest.html_email(
            subject, html, plain_text=plain_text, to=to, from_email=from_email
        )
        outcome = self._send_email(request, html=True)
        return self._finish(NotificationChannel.EMAIL, outcome)

    def send_whatsapp(self, message: str, provider: Optional[str] = None) -> DeliveryResult:
        """
        Send a WhatsApp message.

        Args:
            message: Message text
            provider: Force ``twilio`` or ``callmebot``; by default Twilio is
                tried first and CallMeBot is the fallback

        Raises:
            ProvidersExhaustedError: No provider configured or all of them failed
            ConfigMissingError, ProviderRejectedError, TransportError: only when
                ``provider`` is given
            ValueError: Unknown provider name
        """
        outcome = self.dispatcher.dispatch(NotificationRequest.whatsapp(message), provider=provider)
        return self._finish(NotificationChannel.WHATSAPP, outcome)

    def check_configuration(self) -> Dict[str, bool]:
        """Report which providers have complete credentials."""
        return self.resolver.status()

    def _send_email(self, request: NotificationRequest, html: bool) -> Outcome:
        overrides: Mapping[str, Optional[str]] = {'to_email': request.recipient_override}
        credentials = self.resolver.resolve(SENDGRID, overrides=overrides)
        if isinstance(credentials, DeliveryFailure):
            return credentials
        if html:
            return self.email_sender.send_html(request, credentials)
        return self.email_sender.send_plain(request, credentials)

    def _finish(self, channel: NotificationChannel, outcome: Outcome) -> DeliveryResult:
        summary = describe(outcome)
        if summary['success']:
            logger.info(f"{channel.value} notification sent via {summary['provider']}")
        else:
            logger.warning(f"{channel.value} notification failed: {summary['message']}")
        return unwrap(outcome)


def send_email(subject: str, body: str, to: Optional[str] = None,
               from_email: Optional[str] = None) -> DeliveryResult:
    """Convenience function to send a plain-text email using environment configuration."""
    return NotificationManager.create_from_env().send_email(subject, body, to=to, from_email=from_email)


def send_html_email(subject: str, html: str, plain_text: Optional[str] = None,
                    to: Optional[str] = None, from_email: Optional[str] = None) -> DeliveryResult:
    """Convenience function to send an HTML email using environment configuration."""
    return NotificationManager.create_from_env().send_html_email(
        subject, html, plain_text=plain_text, to=to, from_email=from_email
    )


def send_whatsapp(message: str, provider: Optional[str] = None) -> DeliveryResult:
    """Convenience function to send a WhatsApp message using environment configuration."""
    return NotificationManager.create_from_env().send_whatsapp(message, provider=provider)
