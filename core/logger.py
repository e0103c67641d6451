"""BotLogger — Singleton JSON logger with console and rotating file output.

Provides a single, project-wide logger instance that writes structured JSON to
both stdout and ``logs/pollbot.log`` (with automatic rotation).

Secrets registered through :func:`register_secret` (the bot token, most
notably) are masked by :class:`RedactingFilter` before any handler sees the
record, so neither the console nor the log file ever contains them.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

REDACTED = "<redacted>"

_SECRETS: set[str] = set()


def register_secret(secret: str | None) -> None:
    """Mark *secret* for redaction in every record passing a RedactingFilter."""
    if secret:
        _SECRETS.add(secret)


def redact(text: str) -> str:
    """Return *text* with every registered secret replaced by ``<redacted>``."""
    for secret in _SECRETS:
        if secret in text:
            text = text.replace(secret, REDACTED)
    return text


class RedactingFilter(logging.Filter):
    """Mask registered secrets in the message and in string extra fields.

    The formatted message is rendered once, redacted, and stored back on the
    record with empty ``args`` so later handlers cannot re-expand it.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if _SECRETS:
            record.msg = redact(record.getMessage())
            record.args = ()
            for key, value in list(record.__dict__.items()):
                if key not in _JsonFormatter._BUILTIN_ATTRS and isinstance(value, str):
                    setattr(record, key, redact(value))
        return True


class _JsonFormatter(logging.Formatter):
    """Format every log record as a single-line JSON object.

    Standard fields (timestamp, level, logger, message, module, func_name)
    are always present.  Any *extra* key-value pairs passed via the ``extra``
    parameter of a logging call are merged into the JSON object automatically,
    giving callers an easy way to attach operation-specific context such as
    ``api_endpoint``, ``update_id``, ``retry_count``, etc.

    Example::

        logger.info(
            "Fetched updates",
            extra={"api_endpoint": "getUpdates", "count": 3, "offset": 1042},
        )

    Produces::

        {"timestamp": "…", "level": "INFO", …, "api_endpoint": "getUpdates", "count": 3, …}
    """

    # Keys that belong to the standard LogRecord — everything else is extra.
    _BUILTIN_ATTRS: frozenset[str] = frozenset(vars(logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None,
    ))) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        """Serialize *record* to a JSON string."""
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func_name": record.funcName,
        }

        # Merge caller-supplied extra fields into the JSON payload.
        for key, value in record.__dict__.items():
            if key not in self._BUILTIN_ATTRS and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exc_info"] = redact(self.formatException(record.exc_info))

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class BotLogger:
    """Singleton logger with dual handlers (console + rotating file).

    Usage::

        from core.logger import BotLogger

        logger = BotLogger.get_logger()
        logger.info("Bot started")
    """

    _instance: Optional["BotLogger"] = None
    _logger: Optional[logging.Logger] = None

    # Rotation settings
    _LOG_DIR: str = os.environ.get("LOG_DIR", "logs")
    _LOG_FILE: str = "pollbot.log"
    _MAX_BYTES: int = 5 * 1024 * 1024  # 5 MB
    _BACKUP_COUNT: int = 5

    def __new__(cls, level: int = logging.INFO) -> "BotLogger":
        """Ensure only one instance is ever created (Singleton)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_logger(level)
        return cls._instance

    # ------------------------------------------------------------------
    # Initialisation helpers
    # ------------------------------------------------------------------

    def _init_logger(self, level: int) -> None:
        """Create the underlying :class:`logging.Logger` and attach handlers."""
        self._logger = logging.getLogger("pollbot")
        self._logger.setLevel(level)
        install_redaction(self._logger)

        # Avoid duplicate handlers if the module is reloaded.
        if self._logger.handlers:
            return

        formatter = _JsonFormatter()

        # --- Console handler (StreamHandler) ---
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        # --- Rotating file handler ---
        os.makedirs(self._LOG_DIR, exist_ok=True)
        log_path = os.path.join(self._LOG_DIR, self._LOG_FILE)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=self._MAX_BYTES,
            backupCount=self._BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        self._logger.addHandler(file_handler)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def get_logger(level: int = logging.INFO) -> logging.Logger:
        """Return the shared :class:`logging.Logger` instance.

        Creates the singleton on first call; subsequent calls return the
        same logger regardless of the *level* argument.
        """
        instance = BotLogger(level)
        assert instance._logger is not None  # guaranteed by __new__
        return instance._logger

    def cleanup(self) -> None:
        """Flush and close all handlers attached to the logger."""
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)

    def __del__(self) -> None:
        """Best-effort cleanup on garbage collection."""
        self.cleanup()


def install_redaction(logger: logging.Logger) -> logging.Logger:
    """Attach a :class:`RedactingFilter` to *logger* unless one is present."""
    if not any(isinstance(f, RedactingFilter) for f in logger.filters):
        logger.addFilter(RedactingFilter())
    return logger
