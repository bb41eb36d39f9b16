"""
Logging configuration.

JSON output is meant for deployed environments, the plain format for local
development.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class StructuredFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def setup_logging(use_json: bool = False, log_level: str = "INFO") -> None:
    """
    Install a single stdout handler on the root logger.

    :param use_json: Emit JSON lines instead of plain text.
    :param log_level: Name of the minimum level, e.g. ``"DEBUG"``.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        StructuredFormatter() if use_json else logging.Formatter(PLAIN_FORMAT)
    )
    root_logger.addHandler(handler)

    # Werkzeug's request log duplicates the audit log.
    logging.getLogger("werkzeug").setLevel(max(level, logging.WARNING))
