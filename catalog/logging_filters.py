"""Logging setup and filters for enriching records with request context.

``RequestIdFilter`` injects the current request id into log records using
the ContextVar set by the request-id middleware, so formatters can
reference ``%(request_id)s`` and every line of one request correlates.
``configure_logging`` installs a JSON handler on the ``catalog`` logger.
"""

import logging
from logging import Filter, LogRecord

from pythonjsonlogger import jsonlogger

from .middleware import REQUEST_ID_CTX

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    Records emitted outside a request get a hyphen ("-") placeholder.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Install the JSON handler on the ``catalog`` logger once.

    Args:
        level: Log level name, e.g. ``INFO`` or ``DEBUG``.

    Returns:
        logging.Logger: The configured ``catalog`` logger.
    """
    logger = logging.getLogger("catalog")
    if not logger.handlers:
        h = logging.StreamHandler()
        h.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
        h.addFilter(RequestIdFilter())
        logger.addHandler(h)
    logger.setLevel(level.upper())
    return logger
