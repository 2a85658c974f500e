import json
import logging
import sys
from datetime import datetime


class StructuredFormatter(logging.Formatter):
    """Formatter for structured logging with JSON output."""

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat() + 'Z',
            'level': record.levelname,
            'module': record.name,
            'message': record.getMessage(),
        }

        extension_id = getattr(record, 'extension_id', None)
        if extension_id:
            log_entry['extension_id'] = extension_id
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def setup_logging(log_level: str = 'INFO', log_format: str = 'plain'):
    """Setup logging configuration.

    :param log_level: Name of the root log level, unknown names fall back to INFO.
    :param log_format: ``structured`` for JSON lines, anything else for plain text.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if log_format == 'structured':
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s')
        )
    root_logger.addHandler(handler)

    # uvicorn access lines are noisy next to extension lifecycle logs
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
