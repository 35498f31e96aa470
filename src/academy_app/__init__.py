from __future__ import annotations

import logging
from typing import Optional

__version__ = "0.1.0"

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"

logging.getLogger(__name__).addHandler(logging.NullHandler())

_stream_handler: Optional[logging.Handler] = None


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Send the package's log records to stderr. Libraries should not call this."""

    global _stream_handler  # noqa: PLW0603 - one handler per process

    logger = logging.getLogger(__name__)
    if _stream_handler is None:
        _stream_handler = logging.StreamHandler()
        _stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_stream_handler)
    logger.setLevel(level)
    return logger
