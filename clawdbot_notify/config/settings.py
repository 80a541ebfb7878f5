"""
Configuration management for clawdbot-notify.

Settings come from environment variables, optionally seeded from a ``.env``
file. Provider credentials keep their conventional variable names
(``SENDGRID_API_KEY``, ``TWILIO_ACCOUNT_SID``...) so existing environments
work unchanged.
"""

import os
from typing import Optional, Dict
from enum import Enum

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class NotificationSettings(BaseSettings):
    """Provider credentials, default recipients and transport settings."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    # SendGrid (email)
    sendgrid_api_key: Optional[str] = Field(None, description="SendGrid API key", alias="SENDGRID_API_KEY")
    email_to: Optional[str] = Field(None, description="Default email recipient", alias="NOTIFY_EMAIL_TO")
    email_from: Optional[str] = Field(None, description="Default email sender", alias="NOTIFY_EMAIL_FROM")
    email_from_name: str = Field("Clawdbot", description="Sender display name", alias="NOTIFY_EMAIL_FROM_NAME")

    # Twilio (WhatsApp, primary)
    twilio_account_sid: Optional[str] = Field(None, description="Twilio account SID", alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: Optional[str] = Field(None, description="Twilio auth token", alias="TWILIO_AUTH_TOKEN")
    twilio_whatsapp_from: Optional[str] = Field(None, description="Twilio WhatsApp sender number", alias="TWILIO_WHATSAPP_FROM")
    whatsapp_to: Optional[str] = Field(None, description="WhatsApp recipient number", alias="NOTIFY_WHATSAPP_TO")

    # CallMeBot (WhatsApp, fallback)
    callmebot_phone: Optional[str] = Field(None, description="CallMeBot registered phone", alias="CALLMEBOT_PHONE")
    callmebot_apikey: Optional[str] = Field(None, description="CallMeBot API key", alias="CALLMEBOT_APIKEY")

    http_timeout_seconds: float = Field(30, description="Provider request timeout", alias="NOTIFY_HTTP_TIMEOUT")

    @field_validator('http_timeout_seconds')
    def validate_timeout(cls, v):
        """Timeouts must be positive."""
        if v <= 0:
            raise ValueError(f'NOTIFY_HTTP_TIMEOUT must be positive, got {v}')
        return v

    def as_config(self) -> Dict[str, Optional[str]]:
        """Return the ``{ENV_NAME: value}`` mapping read by the credential resolver."""
        return {
            key: value
            for key, value in self.model_dump(by_alias=True).items()
            if value is None or isinstance(value, str)
        }


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Default log level")
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string"
    )

    # File logging
    enable_file_logging: bool = Field(False, description="Enable file logging")
    log_file: str = Field("logs/clawdbot_notify.log", description="Log file path")
    max_bytes: int = Field(5 * 1024 * 1024, description="Maximum log file size in bytes")
    backup_count: int = Field(3, description="Number of backup log files")

    # Console logging
    enable_console_logging: bool = Field(True, description="Enable console logging")
    console_level: LogLevel = Field(LogLevel.WARNING, description="Console log level")

    # Structured logging
    enable_json_logging: bool = Field(False, description="Enable JSON structured logging")

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    @field_validator('level', 'console_level', mode='before')
    def validate_level(cls, v):
        """Accept log levels in any case."""
        if isinstance(v, str):
            try:
                return LogLevel(v.upper())
            except ValueError:
                raise ValueError(f'Invalid log level: {v}. Must be one of: {[l.value for l in LogLevel]}')
        return v

    def to_dict(self) -> Dict[str, object]:
        """Plain dict consumed by ``setup_logging``."""
        data = self.model_dump()
        data['level'] = self.level.value
        data['console_level'] = self.console_level.value
        return data


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(extra="ignore")

    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load application settings from environment variables and .env file.

    Args:
        env_file: Optional path to .env file; its values override the environment

    Returns:
        Configured Settings instance

    Raises:
        FileNotFoundError: If ``env_file`` is given but does not exist
        pydantic.ValidationError: If configuration is invalid
    """
    if env_file:
        if not os.path.exists(env_file):
            raise FileNotFoundError(f"Environment file not found: {env_file}")
        load_dotenv(env_file, override=True)
    else:
        for possible_env_file in [".env", ".env.local"]:
            if os.path.exists(possible_env_file):
                load_dotenv(possible_env_file, override=False)

    return Settings()


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings(env_file: Optional[str] = None) -> Settings:
    """Discard the cached settings and load them again."""
    global _settings
    _settings = load_settings(env_file)
    return _settings
