from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger

APP_LOGGER_NAME = "ticket_wiki_ai_bridge"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# third-party loggers that are only interesting while debugging
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}

# used when a record carries no explicit color
_LEVEL_COLORS: dict[int, str] = {
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}


def get_log_level() -> int:
    """Resolve LOG_LEVEL ("debug", "info", "warning", "error"; default "info")."""
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "info").strip().upper())
    return level if isinstance(level, int) else logging.INFO


class TimezoneFormatter(logging.Formatter):
    """Formats timestamps in the configured TIMEZONE and marks warnings and errors."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # malformed %-args from a third-party logger
            message = str(record.msg)

        if record.levelno >= logging.ERROR:
            message = "⛔ " + message
        elif record.levelno == logging.WARNING:
            message = "⚠️ " + message

        record.msg = message
        record.args = ()
        return super().format(record)


class ConsoleFormatter(TimezoneFormatter):
    """Colors a console line by the record's ``color`` attribute, else by its level."""

    def format(self, record) -> str:
        line = super().format(record)
        color_name = getattr(record, "color", None) or _LEVEL_COLORS.get(record.levelno)
        ansi = _COLOR_MAP.get(color_name, "") if color_name else ""
        return f"{ansi}{line}{_ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Wraps a :class:`logging.Logger` and accepts ``color=<name>`` on every log call.

    Usage::

        logger.info("Stored %d pages", count, color="green")

    Only the console handler renders colors; the log file stays plain.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        # stacklevel keeps %(funcName)s pointing at the caller, not this wrapper
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.ERROR, msg, args, color, kwargs)

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.CRITICAL, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, color, kwargs)

    def log(self, level: int, msg, *args, color: str | None = None, **kwargs):
        self._log(level, msg, args, color, kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def setup_logging(log_file: str = "app.log") -> ColorLogger:
    """Configure console and file logging and return the application logger.

    The file handler writes to $ROOT_DIR/logs/<log_file> (ROOT_DIR defaults to
    the working directory). Timestamps use TIMEZONE (default UTC).

    Args:
        log_file (str): File name inside the log directory.

    Returns:
        ColorLogger: The "ticket_wiki_ai_bridge" logger.
    """
    level = get_log_level()
    root_dir = os.environ.get("ROOT_DIR") or os.getcwd()
    log_dir = os.path.join(root_dir, "logs")
    tz_name = os.getenv("TIMEZONE", "UTC")
    os.makedirs(log_dir, exist_ok=True)

    def formatter(formatter_class: type) -> dict:
        return {"()": formatter_class, "format": LOG_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": formatter(TimezoneFormatter),
            "console": formatter(ConsoleFormatter),
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "plain",
                "level": level,
                "filename": os.path.join(log_dir, log_file),
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    })

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    return ColorLogger(logging.getLogger(APP_LOGGER_NAME))
