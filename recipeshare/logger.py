"""
Logging setup. All loggers hang off the "recipeshare" logger, which gets one
console handler: plain text by default, JSON lines when LOG_JSON_FORMAT is set.
"""
import json
import logging

from recipeshare import config

ROOT_LOGGER = "recipeshare"
TEXT_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, including any `log_with_context` fields."""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "context", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if root.handlers:
        return root
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if config.LOG_JSON_FORMAT else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    root.propagate = False
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger for one area of the app, e.g. get_logger("rating") -> "recipeshare.rating"."""
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def log_with_context(logger: logging.Logger, level: str, message: str, **context):
    getattr(logger, level.lower(), logger.info)(message, extra={"context": context})
