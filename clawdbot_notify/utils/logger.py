"""
Logging setup for clawdbot-notify.

Console output goes to stderr so command-line callers can keep stdout for
their own messages. File logging and JSON formatting are opt-in.
"""

import os
import sys
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Dict, Any

import structlog
from pythonjsonlogger.json import JsonFormatter


ROOT_LOGGER_NAME = "clawdbot_notify"

DEFAULT_CONFIG: Dict[str, Any] = {
    'level': 'INFO',
    'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'enable_file_logging': False,
    'log_file': 'logs/clawdbot_notify.log',
    'max_bytes': 5 * 1024 * 1024,
    'backup_count': 3,
    'enable_console_logging': True,
    'console_level': 'WARNING',
    'enable_json_logging': False,
}


class LoggerSetup:
    """Configures handlers on the package logger."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize logger setup.

        Args:
            config: Configuration dictionary (optional, will use environment if None)
        """
        merged = dict(DEFAULT_CONFIG)
        merged.update(config or self._load_config_from_env())
        self.config = merged
        self._setup_complete = False

    def setup_logging(self) -> logging.Logger:
        """
        Setup the logging system once.

        Returns:
            Package logger
        """
        main_logger = logging.getLogger(ROOT_LOGGER_NAME)
        if self._setup_complete:
            return main_logger

        for handler in list(main_logger.handlers):
            handler.close()
        main_logger.handlers.clear()
        main_logger.setLevel(getattr(logging, self.config['level']))
        main_logger.propagate = False

        if self.config.get('enable_file_logging'):
            self._setup_file_logging(main_logger)

        if self.config.get('enable_console_logging'):
            self._setup_console_logging(main_logger)

        if self.config.get('enable_json_logging'):
            self._setup_structured_logging()

        self._setup_complete = True
        main_logger.debug("Logging system initialized")
        return main_logger

    def _formatter(self, datefmt: str) -> logging.Formatter:
        if self.config.get('enable_json_logging'):
            return JsonFormatter(
                '%(asctime)s %(name)s %(levelname)s %(message)s',
                rename_fields={'asctime': 'timestamp', 'levelname': 'level'}
            )
        return logging.Formatter(fmt=self.config['format'], datefmt=datefmt)

    def _setup_file_logging(self, logger: logging.Logger):
        """Setup rotating file logging."""
        log_file = self.config['log_file']

        log_dir = os.path.dirname(log_file)
        if log_dir:
            Path(log_dir).mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=self.config['max_bytes'],
            backupCount=self.config['backup_count'],
            encoding='utf-8'
        )
        file_handler.setFormatter(self._formatter('%Y-%m-%d %H:%M:%S'))
        file_handler.setLevel(getattr(logging, self.config['level']))
        logger.addHandler(file_handler)

    def _setup_console_logging(self, logger: logging.Logger):
        """Setup console logging."""
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, self.config.get('console_level', self.config['level'])))
        console_handler.setFormatter(self._formatter('%H:%M:%S'))
        logger.addHandler(console_handler)

    def _setup_structured_logging(self):
        """Route structlog loggers through the stdlib handlers configured above."""
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _load_config_from_env(self) -> Dict[str, Any]:
        """Load logging configuration from environment variables."""
        return {
            'level': os.getenv('LOG_LEVEL', 'INFO').upper(),
            'enable_file_logging': os.getenv('LOG_ENABLE_FILE_LOGGING', 'false').lower() == 'true',
            'log_file': os.getenv('LOG_FILE', DEFAULT_CONFIG['log_file']),
            'enable_console_logging': os.getenv('LOG_ENABLE_CONSOLE_LOGGING', 'true').lower() == 'true',
            'console_level': os.getenv('LOG_CONSOLE_LEVEL', 'WARNING').upper(),
            'enable_json_logging': os.getenv('LOG_ENABLE_JSON_LOGGING', 'false').lower() == 'true',
        }


_logger_setup: Optional[LoggerSetup] = None


def setup_logging(config: Optional[Dict[str, Any]] = None, force: bool = False) -> logging.Logger:
    """
    Setup application logging.

    Args:
        config: Optional logging configuration
        force: Rebuild handlers even if logging was already configured

    Returns:
        Package logger
    """
    global _logger_setup

    if _logger_setup is None or force:
        _logger_setup = LoggerSetup(config)

    return _logger_setup.setup_logging()
