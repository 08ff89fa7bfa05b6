"""
Structured JSON Logging Configuration

Provides logging setup for applications embedding apnspush:
- JSON formatted output for machine parsing
- Plain console format for local development
- Log injection protection for values that come from callers or Apple
"""
import logging
import re
from datetime import datetime, timezone
from typing import Optional
from pythonjsonlogger.json import JsonFormatter

from apnspush.core.config import get_settings


class SanitizingFilter(logging.Filter):
    """
    Filter that sanitizes log messages to prevent log injection attacks.

    Removes line breaks that could be used to forge log entries.
    """

    DANGEROUS_PATTERNS = [
        (r'\r\n', ' '),  # CRLF injection
        (r'\n', ' '),    # Newline injection
        (r'\r', ' '),    # Carriage return injection
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            for pattern, replacement in self.DANGEROUS_PATTERNS:
                record.msg = re.sub(pattern, replacement, record.msg)

        if record.args and isinstance(record.args, tuple):
            sanitized_args = []
            for arg in record.args:
                if isinstance(arg, str):
                    sanitized = arg
                    for pattern, replacement in self.DANGEROUS_PATTERNS:
                        sanitized = re.sub(pattern, replacement, sanitized)
                    sanitized_args.append(sanitized)
                else:
                    sanitized_args.append(arg)
            record.args = tuple(sanitized_args)

        return True


class CustomJsonFormatter(JsonFormatter):
    """
    JSON formatter that adds standard fields to all log entries.

    Output format:
    {
        "timestamp": "2025-11-23T10:30:00.000000+00:00",
        "level": "INFO",
        "message": "APNS notification sent",
        "module": "apns_provider",
        "logger": "apnspush.push.apns_provider",
        ...extra fields...
    }
    """

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if not log_record.get('timestamp'):
            log_record['timestamp'] = datetime.now(timezone.utc).isoformat()

        log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['logger'] = record.name

        if record.funcName:
            log_record['function'] = record.funcName

        if 'message' not in log_record:
            log_record['message'] = record.getMessage()


def setup_logging(
    log_level: Optional[str] = None,
    json_format: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure root logging for an application using apnspush.

    Args:
        log_level: Override log level (default from settings.LOG_LEVEL)
        json_format: Override output format (default from settings.LOG_JSON)

    Returns:
        Root logger
    """
    if log_level is None or json_format is None:
        config = get_settings()
        log_level = log_level or config.LOG_LEVEL
        json_format = config.LOG_JSON if json_format is None else json_format

    level = getattr(logging, log_level.upper(), logging.INFO)

    if json_format:
        formatter: logging.Formatter = CustomJsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s'
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SanitizingFilter())
    root_logger.addHandler(console_handler)

    # Suppress noisy third-party loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('hpack').setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the application's configuration.

    Args:
        name: Logger name (typically __name__ from the calling module)
    """
    return logging.getLogger(name)


def mask_device_token(device_token: str) -> str:
    """Shorten a device token for logs: first 8 and last 4 characters."""
    if len(device_token) <= 12:
        return device_token
    return f"{device_token[:8]}...{device_token[-4:]}"
