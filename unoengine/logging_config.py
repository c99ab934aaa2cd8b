"""
Logging configuration for the engine.

Provides:
- JSONFormatter for machine-readable output
- DevelopmentFormatter for the terminal
- setup_logging() to install either on the root logger
"""

import json
import logging
import sys
from datetime import datetime, timezone

CONTEXT_FIELDS = ("game_id", "player_id")


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_data[name] = value

        # Add source location for errors
        if record.levelno >= logging.ERROR:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter with level colors and game context."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        reset = self.RESET if color else ""
        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]

        context_parts = []
        game_id = getattr(record, "game_id", None)
        if game_id is not None:
            context_parts.append(f"game={game_id}")
        player_id = getattr(record, "player_id", None)
        if player_id:
            context_parts.append(f"player={player_id}")
        context = f" [{', '.join(context_parts)}]" if context_parts else ""

        output = (
            f"{timestamp} {color}{record.levelname:8}{reset} "
            f"{record.name}{context} - {record.getMessage()}"
        )
        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)
        return output


def setup_logging(level: str = "INFO", fmt: str = "development") -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: "json" for JSON lines, anything else for human-readable output.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={level}, format={fmt}"
    )
