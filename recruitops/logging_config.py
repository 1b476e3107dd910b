"""
Structured logging configuration.

Called once from create_app() (and from the maintenance CLI). Supports text
and JSON formats via LOG_FORMAT; LOG_LEVEL defaults to INFO.

Inside a request, every record is stamped with the caller's org_id/user_id
so admission decisions can be traced per organization.
"""
import json
import logging
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

from recruitops import config

_CONTEXT_FIELDS = ('org_id', 'user_id')


class RequestContextFilter(logging.Filter):
    """Copy org_id/user_id from the request identity onto the record (explicit extra= wins)."""

    def filter(self, record):
        identity = g.get('identity') if has_request_context() else None
        for field in _CONTEXT_FIELDS:
            if getattr(record, field, None) is None:
                setattr(record, field, getattr(identity, field, None))
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for the log aggregator."""

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value:
                entry[field] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry)


class TextFormatter(logging.Formatter):
    """`[ts] LEVEL name — msg`, with an `[org]` tag when the record carries one."""

    def __init__(self):
        super().__init__('[%(asctime)s] %(levelname)s %(name)s — %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

    def format(self, record):
        line = super().format(record)
        org_id = getattr(record, 'org_id', None)
        return f'{line} [org={org_id}]' if org_id else line


# rq.worker logs every job at INFO; werkzeug logs every request
_NOISY_LOGGERS = [
    'urllib3',
    'rq.worker',
    'werkzeug',
]


def configure_logging(app=None, level_name=None, log_format=None):
    """
    Set up the root logger.

    Explicit arguments win over the LOG_LEVEL / LOG_FORMAT settings, which is
    how scripts/maintenance.py applies --log-level.
    """
    level_name = (level_name or config.LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)
    log_format = (log_format or config.LOG_FORMAT).lower()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JSONFormatter() if log_format == 'json' else TextFormatter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.setLevel(level)
