"""
clawdbot-notify: email and WhatsApp notifications for automation agents.
"""

__version__ = "1.0.0"
