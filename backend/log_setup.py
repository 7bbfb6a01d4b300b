import json
import logging
import sys

from config import AppSettings

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record; message and traceback are escaped by json.dumps."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(settings: AppSettings) -> None:
    """Configure root logging from settings (level, format and handlers).

    Console output always goes to stdout; a file handler is added when
    ``LOG_FILE`` is set.
    """
    level = _LEVELS.get(settings.LOG_LEVEL.upper(), logging.INFO)
    formatter = JsonFormatter() if settings.JSON_LOGS else logging.Formatter(_PLAIN_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for module in ("main", "session", "scoring", "smoother", "aggregator"):
        logging.getLogger(module).setLevel(level)

    logging.getLogger(__name__).info(
        "Logging configured with level: %s, JSON: %s",
        settings.LOG_LEVEL, settings.JSON_LOGS,
    )
