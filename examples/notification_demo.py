#!/usr/bin/env python3
"""
Demo script showing how to use the clawdbot-notify library.

This script demonstrates:
1. Building a notification manager from the environment
2. Checking which providers are configured
3. Sending an email and a WhatsApp message

Usage:
    python examples/notification_demo.py [--send]

Without ``--send`` only the configuration check runs.
"""

import sys

from clawdbot_notify.notifications import NotificationManager, NotificationError
from clawdbot_notify.utils.logger import setup_logging


def demo_configuration(manager):
    """Show which providers have complete credentials."""
    print("1. Provider configuration:")
    for provider, configured in manager.check_configuration().items():
        status_icon = "✓" if configured else "✗"
        print(f"   {status_icon} {provider}")


def demo_email(manager):
    print("\n2. Sending email:")
    try:
        result = manager.send_html_email(
            "Task Complete",
            "<h1>Done</h1><p>Your task finished <b>successfully</b>.</p>"
        )
        print(f"   ✓ Accepted by {result.provider_name} (status {result.status_code})")
    except NotificationError as e:
        print(f"   ✗ {e}")


def demo_whatsapp(manager):
    print("\n3. Sending WhatsApp message:")
    try:
        result = manager.send_whatsapp("Task complete")
        print(f"   ✓ Delivered via {result.provider_name}")
    except NotificationError as e:
        print(f"   ✗ {e}")


def main():
    setup_logging({'level': 'INFO', 'console_level': 'INFO'})
    manager = NotificationManager.create_from_env()

    demo_configuration(manager)
    if "--send" in sys.argv[1:]:
        demo_email(manager)
        demo_whatsapp(manager)


if __name__ == "__main__":
    main()
