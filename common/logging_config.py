"""Logging setup shared by the vault service and the CLI."""

import contextvars
import logging
import os
import re
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
MASK = '***MASKED***'

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar('request_id', default='-')

_SECRET_PATTERNS = [
    # header or field name followed by its value, quoted or not
    re.compile(
        r'((?:x-channel-token|channel_token|token|authorization)["\']?\s*[:=]\s*["\']?)'
        r'((?:bot\s+|bearer\s+)?[^"\'}\s,]+)',
        re.IGNORECASE,
    ),
    # bare bot credentials
    re.compile(r'\b(bot\s+)([A-Za-z0-9_\-\.]{20,})', re.IGNORECASE),
]


def mask_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + MASK, text)
    return text


class SensitiveDataFilter(logging.Filter):
    """
    Mask channel tokens and authorization values.

    The message is rendered with its arguments before masking, so a secret
    passed as a %-style argument is caught as well.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        rendered = record.getMessage()
        masked = mask_secrets(rendered)
        if masked != rendered:
            record.msg = masked
            record.args = ()
        return True


class RequestIdFilter(logging.Filter):
    """Stamp each record with the request id of the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging(component_name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Configure the top-level logger of a component.

    Module loggers obtained through get_logger(__name__) live under the
    component's package name and inherit this handler.

    Args:
        component_name: Top-level logger name ('vault', 'cli', 'common')
        log_level: DEBUG, INFO, WARNING or ERROR. Defaults to LOG_LEVEL env var or INFO

    Returns:
        Configured logger instance
    """
    level_name = (log_level or os.getenv('LOG_LEVEL') or 'INFO').upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler.addFilter(RequestIdFilter())
        handler.addFilter(SensitiveDataFilter())
        logger.addHandler(handler)
        logger.propagate = False

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
