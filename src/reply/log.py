"""
Logging setup for applications using the reply engine.

Every module logs under the ``reply`` namespace, so one call controls all
of it:

    logging.getLogger("reply").setLevel(logging.DEBUG)

What gets logged:

    WARNING  a render failed and a 500 fallback was sent (with the real error)
    WARNING  a reply could not be delivered (client disconnected)
    ERROR    Engine.internal_server_error (error, traceback and call stack)
    ERROR    the error body itself could not be rendered
    DEBUG    duplicate status lines, template loading

Two output formats, matching ReplyConfig.log_format:

    text  2026-10-19 10:00:00 [WARNING] reply.engine: reply 200 failed, ...
    json  {"time": "2026-10-19 10:00:00", "level": "WARNING", ...}
"""

import json
import logging
from typing import IO, Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(entry)


def setup_logging(
    level: str = "INFO",
    fmt: str = "text",
    stream: Optional[IO[str]] = None,
    logger_name: str = "reply",
) -> None:
    """
    Configure the root handler and set ``level`` on the ``reply`` logger.

    ``logger_name`` gets the same level, so an engine built with a custom
    logger honours it too. The root handler is only installed if the root
    logger has none yet.
    """
    level_no = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(stream)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logging.basicConfig(level=level_no, handlers=[handler])
    for name in {"reply", logger_name}:
        logging.getLogger(name).setLevel(level_no)
