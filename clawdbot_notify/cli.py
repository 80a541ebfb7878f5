"""
Command-line entry points.

    notify-email --subject "Task Complete" --body "Your task is done!"
    notify-whatsapp --provider twilio "Task complete"

Both exit 0 on success and 1 on any failure, printing the failure to stderr.
"""

import sys
import argparse
import logging
from typing import List, Optional

from pydantic import ValidationError

from clawdbot_notify.config.settings import Settings, load_settings
from clawdbot_notify.notifications.credentials import TWILIO, CALLMEBOT
from clawdbot_notify.notifications.exceptions import NotificationError
from clawdbot_notify.notifications.notification_manager import NotificationManager
from clawdbot_notify.utils.logger import setup_logging


logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

EMAIL_EPILOG = """
Environment:
  SENDGRID_API_KEY    SendGrid API key (required)
  NOTIFY_EMAIL_TO     Default recipient
  NOTIFY_EMAIL_FROM   Default sender

Examples:
  notify-email --subject "Task Complete" --body "Your task is done!"
  notify-email --to user@example.com --subject "Alert" --body "Check PR"
"""

WHATSAPP_EPILOG = """
Environment:
  TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN, TWILIO_WHATSAPP_FROM, NOTIFY_WHATSAPP_TO
  CALLMEBOT_PHONE, CALLMEBOT_APIKEY

Examples:
  notify-whatsapp "Hello from Clawdbot!"
  notify-whatsapp --provider twilio "Task complete"
"""


def _add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--env-file", help="Load configuration from this .env file")
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="Log level override")


def build_email_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notify-email",
        description="Email notification for Clawdbot",
        epilog=EMAIL_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("--to", help="Recipient email")
    parser.add_argument("--from", dest="from_email", help="Sender email")
    parser.add_argument("--subject", help="Email subject")
    parser.add_argument("--body", help="Email body (plain text)")
    parser.add_argument("--html", help="HTML body; --body becomes the plain-text part")
    _add_common_arguments(parser)
    return parser


def build_whatsapp_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notify-whatsapp",
        description="WhatsApp notification for Clawdbot",
        epilog=WHATSAPP_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("message", nargs="*", help="Message text")
    parser.add_argument("--provider", choices=[TWILIO.name, CALLMEBOT.name],
                        help="Force a specific provider")
    _add_common_arguments(parser)
    return parser


def _load(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.env_file)
    log_config = settings.logging.to_dict()
    if args.log_level:
        log_config['level'] = args.log_level
        log_config['console_level'] = args.log_level
    setup_logging(log_config, force=True)
    return settings


def email_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``notify-email``."""
    args = build_email_parser().parse_args(argv)

    if not args.subject or (not args.body and not args.html):
        print("Error: --subject and --body are required", file=sys.stderr)
        return 1

    try:
        manager = NotificationManager.from_settings(_load(args).notifications)
        if args.html:
            manager.send_html_email(args.subject, args.html, plain_text=args.body,
                                    to=args.to, from_email=args.from_email)
        else:
            manager.send_email(args.subject, args.body, to=args.to, from_email=args.from_email)
    except (NotificationError, FileNotFoundError, ValidationError) as e:
        print(f"Failed to send email: {e}", file=sys.stderr)
        return 1

    print("Email sent successfully")
    return 0


def whatsapp_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``notify-whatsapp``."""
    args = build_whatsapp_parser().parse_args(argv)

    message = " ".join(args.message).strip()
    if not message:
        print("Error: Message is required", file=sys.stderr)
        return 1

    try:
        manager = NotificationManager.from_settings(_load(args).notifications)
        result = manager.send_whatsapp(message, provider=args.provider)
    except (NotificationError, FileNotFoundError, ValidationError) as e:
        print(f"Failed to send WhatsApp: {e}", file=sys.stderr)
        return 1

    logger.debug(f"WhatsApp delivered via {result.provider_name}")
    print("WhatsApp message sent successfully")
    return 0


COMMANDS = {
    'email': email_main,
    'whatsapp': whatsapp_main,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``python -m clawdbot_notify <email|whatsapp> ...``."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in COMMANDS:
        print(f"Usage: python -m clawdbot_notify {{{'|'.join(COMMANDS)}}} [options]", file=sys.stderr)
        return 1
    return COMMANDS[argv[0]](argv[1:])


def run_email():
    sys.exit(email_main())


def run_whatsapp():
    sys.exit(whatsapp_main())
