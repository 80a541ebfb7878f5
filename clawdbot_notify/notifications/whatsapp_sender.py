"""
WhatsApp notification senders.

Two providers are supported:

- Twilio WhatsApp Business API: form-encoded POST with HTTP Basic auth,
  issued through Twilio's own HTTP client.
- CallMeBot: free personal gateway, plain GET with the API key in the query
  string. Messages can only go to the phone number the key was issued for.
"""

import json
import logging
from typing import Any, Optional

import requests
from twilio.http.http_client import TwilioHttpClient

from clawdbot_notify.notifications.base import ProviderSender, DEFAULT_TIMEOUT_SECONDS, is_success_status
from clawdbot_notify.notifications.credentials import TWILIO, CALLMEBOT, clean_value, mask_secret
from clawdbot_notify.notifications.models import (
    NotificationChannel, NotificationRequest, ProviderCredentials, Outcome
)


logger = logging.getLogger(__name__)

TWILIO_API_BASE_URL = "https://api.twilio.com"
TWILIO_SANDBOX_FROM = "whatsapp:+14155238886"
CALLMEBOT_API_URL = "https://api.callmebot.com/whatsapp.php"

WHATSAPP_PREFIX = "whatsapp:"


def format_whatsapp_address(number: str) -> str:
    """Ensure ``number`` carries the ``whatsapp:`` channel prefix Twilio expects."""
    number = number.strip()
    if number.startswith(WHATSAPP_PREFIX):
        return number
    return f"{WHATSAPP_PREFIX}{number}"


class TwilioWhatsAppSender(ProviderSender):
    """
    WhatsApp message sender using the Twilio Messages resource.

    The Messages endpoint is per account:
    ``/2010-04-01/Accounts/{AccountSid}/Messages.json``.
    """

    spec = TWILIO
    channel = NotificationChannel.WHATSAPP

    def __init__(
        self,
        http_client: Any = None,
        base_url: str = TWILIO_API_BASE_URL,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS
    ):
        """
        Initialize Twilio WhatsApp sender.

        Args:
            http_client: Twilio ``HttpClient`` (defaults to ``TwilioHttpClient``)
            base_url: Twilio REST API root
            timeout: Request timeout in seconds
        """
        super().__init__(timeout)
        self.http_client = http_client or TwilioHttpClient(timeout=timeout)
        self.base_url = base_url.rstrip('/')

    def messages_url(self, account_sid: str) -> str:
        return f"{self.base_url}/2010-04-01/Accounts/{account_sid}/Messages.json"

    def send(self, request: NotificationRequest, credentials: ProviderCredentials) -> Outcome:
        """
        Send a WhatsApp message to the configured (or overridden) recipient.

        Returns:
            DeliveryResult with the parsed Messages resource as ``raw`` on 2xx,
            DeliveryFailure otherwise
        """
        missing = credentials.first_missing(('account_sid', 'auth_token'))
        if missing:
            return self._config_missing(missing)

        to_number = clean_value(request.recipient_override) or credentials.get('to_number')
        if not to_number:
            return self._config_missing('to_number')

        account_sid = credentials['account_sid']
        from_number = clean_value(request.sender_override) or credentials.get('from_number') or TWILIO_SANDBOX_FROM
        data = {
            'Body': request.body,
            'From': format_whatsapp_address(from_number),
            'To': format_whatsapp_address(to_number),
        }

        try:
            logger.info(f"Sending WhatsApp message via Twilio account {mask_secret(account_sid)} to {data['To']}")
            response = self.http_client.request(
                'POST',
                self.messages_url(account_sid),
                data=data,
                auth=(account_sid, credentials['auth_token']),
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            return self._transport_failure(e)

        raw = self._parse_body(response.text) if is_success_status(response.status_code) else None
        return self._classify(response.status_code, response.text, raw=raw)

    def _parse_body(self, text: str) -> Any:
        try:
            return json.loads(text)
        except (TypeError, ValueError):
            logger.warning("Twilio response body is not JSON, keeping raw text")
            return text


class CallMeBotWhatsAppSender(ProviderSender):
    """WhatsApp message sender using the CallMeBot HTTP gateway."""

    spec = CALLMEBOT
    channel = NotificationChannel.WHATSAPP

    def __init__(
        self,
        http: Any = None,
        api_url: str = CALLMEBOT_API_URL,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS
    ):
        super().__init__(timeout)
        self.http = http or requests
        self.api_url = api_url

    def send(self, request: NotificationRequest, credentials: ProviderCredentials) -> Outcome:
        missing = credentials.first_missing(('api_key', 'phone'))
        if missing:
            return self._config_missing(missing)

        params = {
            'phone': credentials['phone'],
            'text': request.body,
            'apikey': credentials['api_key'],
        }

        try:
            logger.info("Sending WhatsApp message via CallMeBot")
            response = self.http.get(self.api_url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            return self._transport_failure(e)

        return self._classify(response.status_code, response.text, raw=response.text)
