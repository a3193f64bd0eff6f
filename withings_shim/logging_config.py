"""
Structured Logging Configuration
=================================
JSON-formatted logging for the Withings shim.

All logs include:
- Timestamp (ISO 8601)
- Log level
- Logger name
- Message
- Extra context (data type, time range, status when provided)

Security: signed Withings URLs carry OAuth tokens and signatures in the
query string. Those values are masked before a record is emitted.
"""

import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from withings_shim.config import get_settings

SERVICE_NAME = "withings-shim"

_OAUTH_PARAM = re.compile(r"(oauth_(?:token|signature|nonce|consumer_key)=)([^&\s]+)")
_LONG_TOKEN = re.compile(r"\b([a-zA-Z0-9]{40,})\b")


def mask_sensitive(text: str) -> str:
    """Mask OAuth query parameters and token-like strings in ``text``."""
    text = _OAUTH_PARAM.sub(lambda m: f"{m.group(1)}*****", text)
    return _LONG_TOKEN.sub(lambda m: f"token_*****{m.group(1)[-3:]}", text)


class WithingsTokenFilter(logging.Filter):
    """
    Filter that masks OAuth credentials in log messages and their arguments.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_sensitive(record.msg)

        if isinstance(record.args, dict):
            record.args = {
                k: mask_sensitive(v) if isinstance(v, str) else v
                for k, v in record.args.items()
            }
        elif isinstance(record.args, tuple):
            record.args = tuple(
                mask_sensitive(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding service and environment fields.
    """

    def __init__(self, *args: Any, environment: str = "production", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any]
    ):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['service'] = SERVICE_NAME
        log_record['environment'] = self.environment

        log_record.pop('levelname', None)
        log_record.pop('name', None)


def setup_logging(
    level: Optional[str] = None,
    json_format: bool = True
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to the LOG_LEVEL setting.
        json_format: Whether to use JSON format. Ignored in development, which always logs text.
    """
    settings = get_settings()
    log_level = (level or settings.LOG_LEVEL).upper()
    use_json = json_format and settings.ENVIRONMENT != 'development'

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))
    root_logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, log_level, logging.INFO))

    if use_json:
        formatter = CustomJsonFormatter(
            '%(timestamp)s %(level)s %(logger)s %(message)s',
            environment=settings.ENVIRONMENT,
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    handler.setFormatter(formatter)
    handler.addFilter(WithingsTokenFilter())
    root_logger.addHandler(handler)

    # httpx logs full request URLs, signatures included
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)

    logging.info(
        f"Logging configured: level={log_level}, format={'json' if use_json else 'text'}"
    )


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context
) -> None:
    """
    Log a message with additional context fields.

    Example:
        log_with_context(
            logger,
            'info',
            'Fetching Withings data',
            data_type='STEP_COUNT',
            intraday=True
        )
    """
    log_method = getattr(logger, level.lower(), logger.info)

    if context:
        context_str = ' '.join(f'{k}={v}' for k, v in context.items())
        full_message = f"{message} | {context_str}"
    else:
        full_message = message

    log_method(full_message, extra=context)
