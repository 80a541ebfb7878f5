"""
Email notification sender using the SendGrid v3 Mail Send API.
"""

import re
import logging
from typing import List, Optional, Dict, Any

import requests

from clawdbot_notify.notifications.base import ProviderSender, DEFAULT_TIMEOUT_SECONDS
from clawdbot_notify.notifications.credentials import SENDGRID, clean_value
from clawdbot_notify.notifications.models import (
    NotificationChannel, NotificationRequest, ProviderCredentials, Outcome
)


logger = logging.getLogger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"
DEFAULT_FROM_EMAIL = "clawdbot@noreply.local"
DEFAULT_FROM_NAME = "Clawdbot"

_TAG_PATTERN = re.compile(r"<[^>]*>")


def strip_tags(html: str) -> str:
    """Derive a plain-text body by removing every ``<...>`` tag from ``html``."""
    return _TAG_PATTERN.sub("", html or "")


class EmailSender(ProviderSender):
    """
    Email sender using SendGrid.

    Builds a single-recipient Mail Send payload and performs one
    Bearer-authenticated POST. Any 2xx status counts as accepted; SendGrid
    answers 202 with an empty body, so nothing is parsed on success.
    """

    spec = SENDGRID
    channel = NotificationChannel.EMAIL

    def __init__(
        self,
        http: Any = None,
        api_url: str = SENDGRID_API_URL,
        from_name: str = DEFAULT_FROM_NAME,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS
    ):
        """
        Initialize email sender.

        Args:
            http: Object exposing ``post`` like ``requests`` (defaults to the requests module)
            api_url: Mail Send endpoint
            from_name: Sender display name
            timeout: Request timeout in seconds
        """
        super().__init__(timeout)
        self.http = http or requests
        self.api_url = api_url
        self.from_name = from_name

    def send(self, request: NotificationRequest, credentials: ProviderCredentials) -> Outcome:
        """Send ``request`` as HTML when it carries HTML, otherwise as plain text."""
        if request.html:
            return self.send_html(request, credentials)
        return self.send_plain(request, credentials)

    def send_plain(self, request: NotificationRequest, credentials: ProviderCredentials) -> Outcome:
        """
        Send a plain-text email.

        Args:
            request: Request with subject and body
            credentials: SendGrid credentials

        Returns:
            DeliveryResult on 2xx, DeliveryFailure otherwise
        """
        content = [{'type': 'text/plain', 'value': request.body}]
        return self._deliver(request, credentials, content)

    def send_html(self, request: NotificationRequest, credentials: ProviderCredentials) -> Outcome:
        """
        Send an email with a plain-text part and, when present, an HTML part.

        The plain-text part is ``request.body`` or, when that is empty, the HTML
        with its tags stripped.
        """
        html = request.html or ""
        content = [{'type': 'text/plain', 'value': request.body or strip_tags(html)}]
        if html:
            content.append({'type': 'text/html', 'value': html})
        return self._deliver(request, credentials, content)

    def build_payload(
        self,
        subject: str,
        to_email: str,
        from_email: str,
        content: List[Dict[str, str]]
    ) -> Dict[str, Any]:
        return {
            'personalizations': [
                {
                    'to': [{'email': to_email}],
                    'subject': subject
                }
            ],
            'from': {'email': from_email, 'name': self.from_name},
            'content': content
        }

    def _deliver(
        self,
        request: NotificationRequest,
        credentials: ProviderCredentials,
        content: List[Dict[str, str]]
    ) -> Outcome:
        if not request.subject:
            raise ValueError("subject is required for email")

        api_key = credentials.get('api_key')
        if api_key is None:
            return self._config_missing('api_key')

        to_email = clean_value(request.recipient_override) or credentials.get('to_email')
        if not to_email:
            return self._config_missing('to_email')

        from_email = clean_value(request.sender_override) or credentials.get('from_email') or DEFAULT_FROM_EMAIL
        payload = self.build_payload(request.subject, to_email, from_email, content)

        try:
            logger.info(f"Sending email to {to_email}")
            response = self.http.post(
                self.api_url,
                json=payload,
                headers={
                    'Authorization': f"Bearer {api_key}",
                    'Content-Type': 'application/json'
                },
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            return self._transport_failure(e)

        return self._classify(response.status_code, response.text)
