"""Structured JSON logging for the Lambda handlers

Each handler module calls `initialize_logging()` once at import time and then
logs through `logging.getLogger(__name__)`. Decisions are tagged with an event
code in `extra`, which CloudWatch Logs Insights can filter on:

    logger.info('Link is disabled. Responding with 403.', extra={'event': LINK_DISABLED, 'slug': slug})

renders as one line:

    {"timestamp": "2025-12-26T12:00:00.000Z", "level": "INFO",
     "logger": "clickshortener.lambdas.redirect_url.app",
     "message": "Link is disabled. Responding with 403.",
     "event": "LINK_DISABLED", "slug": "my-link"}
"""

import os
import json
import logging
import logging.config
from datetime import datetime, UTC

from clickshortener.utils.constants import LOG_LEVEL_ENV


# AWS SDK internals log every request at DEBUG
QUIET_LOGGERS = ('botocore', 'boto3', 'urllib3')


class JsonFormatter(logging.Formatter):
    """Render a LogRecord and its `extra` fields as a single JSON object"""

    # Anything else on a record came in through `extra`
    RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {'message', 'asctime'}

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        log = {
            'timestamp': created.strftime('%Y-%m-%dT%H:%M:%S.') + f'{created.microsecond // 1000:03d}Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        log.update((key, value) for key, value in vars(record).items() if key not in self.RESERVED_ATTRS)

        if record.exc_info:
            log['exception'] = self.formatException(record.exc_info)

        # Extras may carry datetimes or models
        return json.dumps(log, default=str)


def initialize_logging() -> None:
    """Send JSON logs to stdout at LOG_LEVEL (default INFO)"""
    level = os.getenv(LOG_LEVEL_ENV, 'INFO').upper()
    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {'json': {'()': JsonFormatter}},
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json',
                    'stream': 'ext://sys.stdout',
                }
            },
            'loggers': {name: {'level': 'WARNING'} for name in QUIET_LOGGERS},
            'root': {'level': level, 'handlers': ['stdout']},
        }
    )
