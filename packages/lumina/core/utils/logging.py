"""Process-wide logging setup.

Plain text by default; JSON lines when ``structured`` is set, so generation
runs can be grepped by topic or scene id afterwards.
"""

from __future__ import annotations

from datetime import UTC, datetime
import json
import logging
import sys
from typing import Any

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that chatter at INFO/DEBUG on every request
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "PIL", "asyncio")

_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """Render each record as a single JSON object.

    Keys: ``time``, ``level``, ``logger``, ``message``, ``where``
    (``module:function:line``), any ``extra=`` fields under ``extra``, and
    ``exception`` when the record carries one.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        extra = {k: v for k, v in vars(record).items() if k not in _RECORD_FIELDS}
        if extra:
            entry["extra"] = extra

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "INFO",
    format_string: str | None = None,
    filename: str | None = None,
    structured: bool = False,
) -> None:
    """(Re)configure the root logger.

    Replaces any handlers installed earlier, so it is safe to call again.

    Args:
        level: Level name, case-insensitive.
        format_string: ``logging`` format for text output (ignored when structured).
        filename: Log file; stdout when None.
        structured: Emit JSON lines instead of text.

    Example:
        >>> configure_logging("DEBUG", structured=True, filename="lumina.jsonl")
    """
    handler: logging.Handler = (
        logging.FileHandler(filename) if filename else logging.StreamHandler(sys.stdout)
    )
    handler.setFormatter(
        JsonLineFormatter() if structured else logging.Formatter(format_string or DEFAULT_FORMAT)
    )
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)
