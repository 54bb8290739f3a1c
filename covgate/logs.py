"""Logging for the covgate command line.

Messages go to stderr so command output on stdout stays machine-readable.
Only the ``covgate`` logger is configured; the host application's root
logger is left alone.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Optional

from covgate.config import get_log_format, get_log_level, is_debug_enabled

TEXT_FORMAT = "covgate: %(levelname)s: %(message)s"
DEBUG_TEXT_FORMAT = "covgate: %(levelname)s: %(name)s: %(message)s"


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line, timestamped when the record was created."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class _CliHandler(logging.StreamHandler):
    pass


def configure_logging(level: Optional[str] = None,
                      log_format: Optional[str] = None,
                      stream: Optional[IO[str]] = None) -> logging.Handler:
    """
    Attach a stderr handler to the ``covgate`` logger.

    Calling it again replaces the handler installed by the previous call.
    ``COVGATE_DEBUG`` forces debug output and logger names in text mode.
    """
    debug = is_debug_enabled()
    level_name = "DEBUG" if debug else (level or get_log_level()).upper()
    log_format = (log_format or get_log_format()).lower()

    logger = logging.getLogger("covgate")
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    for old in [h for h in logger.handlers if isinstance(h, _CliHandler)]:
        logger.removeHandler(old)

    handler = _CliHandler(stream or sys.stderr)
    if log_format == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEBUG_TEXT_FORMAT if debug else TEXT_FORMAT))
    logger.addHandler(handler)
    return handler
