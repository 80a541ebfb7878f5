"""
Notification delivery for clawdbot-notify.

Email goes out through SendGrid. WhatsApp goes out through Twilio, with
CallMeBot as the fallback when Twilio is not configured or fails.
"""

from clawdbot_notify.notifications.notification_manager import (
    NotificationManager, send_email, send_html_email, send_whatsapp
)
from clawdbot_notify.notifications.dispatcher import WhatsAppDispatcher, DispatchRun
from clawdbot_notify.notifications.email_sender import EmailSender, strip_tags
from clawdbot_notify.notifications.whatsapp_sender import TwilioWhatsAppSender, CallMeBotWhatsAppSender
from clawdbot_notify.notifications.credentials import (
    CredentialResolver, ProviderSpec, SENDGRID, TWILIO, CALLMEBOT
)
from clawdbot_notify.notifications.models import (
    NotificationRequest, ProviderCredentials, DeliveryResult, DeliveryFailure,
    FailureKind, DispatchState, NotificationChannel, unwrap
)
from clawdbot_notify.notifications.exceptions import (
    NotificationError, ConfigMissingError, ProviderRejectedError,
    TransportError, ProvidersExhaustedError
)

__all__ = [
    'NotificationManager',
    'send_email',
    'send_html_email',
    'send_whatsapp',
    'WhatsAppDispatcher',
    'DispatchRun',
    'EmailSender',
    'strip_tags',
    'TwilioWhatsAppSender',
    'CallMeBotWhatsAppSender',
    'CredentialResolver',
    'ProviderSpec',
    'SENDGRID',
    'TWILIO',
    'CALLMEBOT',
    'NotificationRequest',
    'ProviderCredentials',
    'DeliveryResult',
    'DeliveryFailure',
    'FailureKind',
    'DispatchState',
    'NotificationChannel',
    'unwrap',
    'NotificationError',
    'ConfigMissingError',
    'ProviderRejectedError',
    'TransportError',
    'ProvidersExhaustedError'
]
