"""
Structured logging configuration for DealerDesk.

JSON lines in production, colourised single-line records in development.
Records logged while serving a request carry the request path and the
signed-in user id in `record.extra`.
"""

import os
import sys
import json
import logging
from datetime import datetime, timezone

from flask import has_request_context, request
from flask_login import current_user


def _extra(record: logging.LogRecord) -> dict:
    return getattr(record, 'extra', None) or {}


class RequestContextFilter(logging.Filter):
    """Stamp path and user_id onto records emitted inside a Flask request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            extra = dict(_extra(record))
            extra.setdefault('path', request.path)
            user_id = getattr(current_user, 'id', None)
            if user_id is not None:
                extra.setdefault('user_id', user_id)
            record.extra = extra
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shipping in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'line': record.lineno,
        }
        entry.update(_extra(record))
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, '')
        level = f'{color}{record.levelname:8}{self.RESET if color else ""}'
        where = f'{record.name.rsplit(".", 1)[-1]}:{record.lineno}'
        line = f'[{datetime.now():%H:%M:%S}] {level} {where:24} {record.getMessage()}'

        extra = _extra(record)
        if extra:
            line += ' | ' + ' '.join(f'{k}={v}' for k, v in extra.items())
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def _production_env() -> bool:
    return os.environ.get('PRODUCTION', '').lower() == 'true' or \
        'gunicorn' in os.environ.get('SERVER_SOFTWARE', '')


def setup_logging(
    level: str = 'INFO',
    json_format: bool = None,
    logger_name: str = 'dealerdesk'
) -> logging.Logger:
    """Configure the `dealerdesk` logger tree and return its root.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Force JSON output. None auto-detects from PRODUCTION /
            SERVER_SOFTWARE.
        logger_name: Root of the application's logger tree.
    """
    if json_format is None:
        json_format = _production_env()

    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-running setup (tests, reloader) must not stack handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JSONFormatter() if json_format else DevelopmentFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = 'dealerdesk') -> logging.Logger:
    """Get a logger; dotted names ('dealerdesk.tracker') become children."""
    return logging.getLogger(name)
