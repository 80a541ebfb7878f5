"""
Configuration module for clawdbot-notify.
"""

from .settings import (
    Settings,
    LogLevel,
    NotificationSettings,
    LoggingConfig,
    load_settings,
    get_settings,
    reload_settings
)

__all__ = [
    'Settings',
    'LogLevel',
    'NotificationSettings',
    'LoggingConfig',
    'load_settings',
    'get_settings',
    'reload_settings'
]
