import atexit
import json
import logging
import logging.handlers
import queue
from pathlib import Path

from config.config_loader import ConfigLoader

_queue_listener: logging.handlers.QueueListener | None = None
_atexit_registered = False

# Attributes passed through `extra={...}` that end up in the JSON line
_EXTRA_FIELDS = ("badge_name", "background", "glyph_count", "output_path")

_DEFAULT_RETENTION_DAYS = 30
_ROTATION_SUFFIX = "%Y-%m-%d"


class ErrorLevelFilter(logging.Filter):
    """Pass only ERROR and CRITICAL records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        return record.levelno >= logging.ERROR


class CustomJsonFormatter(logging.Formatter):
    """One JSON object per record, with render context fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.name,
            "funcName": record.funcName,
            "lineno": record.lineno,
            "message": record.getMessage(),
        }
        payload.update(
            (name, getattr(record, name)) for name in _EXTRA_FIELDS if hasattr(record, name)
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False)


def setup_logging(log_file: str = "logs/renderer.log") -> None:
    """
    Route all logging through a queue to JSON file, console and error handlers.

    Safe to call repeatedly: existing root handlers and any previous listener
    are replaced.

    Args:
        log_file: Main log file; rotated errors go to `<dir>/errors/`.
    """
    global _queue_listener

    logging_config = ConfigLoader.load_config().get("logging") or {}
    level = getattr(logging, str(logging_config.get("level", "INFO")).upper(), logging.INFO)
    retention = int(logging_config.get("retention_days", _DEFAULT_RETENTION_DAYS))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    if _queue_listener:
        _queue_listener.stop()
        _queue_listener = None

    log_path = Path(log_file)
    (log_path.parent / "errors").mkdir(parents=True, exist_ok=True)

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=1000)
    queue_handler = logging.handlers.QueueHandler(log_queue)
    queue_handler.setLevel(level)
    root_logger.addHandler(queue_handler)

    _queue_listener = _build_queue_listener(log_queue, level, log_path, retention)
    _queue_listener.start()
    _register_logging_shutdown()

    # Pillow logs plugin discovery at DEBUG
    logging.getLogger("PIL").setLevel(logging.WARNING)


def _daily_file_handler(
    path: Path, level: int, retention: int
) -> logging.handlers.TimedRotatingFileHandler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(path),
        when="midnight",
        backupCount=retention,
        utc=True,
        encoding="utf-8",
    )
    handler.suffix = _ROTATION_SUFFIX
    handler.setLevel(level)
    return handler


def _build_queue_listener(
    log_queue: queue.Queue, level: int, log_path: Path, retention: int
) -> logging.handlers.QueueListener:
    """
    Build the listener that drains `log_queue` into the real handlers.

    Handlers: the main rotating file, the console, and an error-only JSONL
    file whose rotated copies are named errors_YYYY-MM-DD.jsonl.
    """
    file_handler = _daily_file_handler(log_path, level, retention)

    error_handler = _daily_file_handler(
        log_path.parent / "errors" / "errors.jsonl", logging.ERROR, retention
    )
    error_handler.namer = _error_log_namer  # type: ignore[assignment]
    error_handler.addFilter(ErrorLevelFilter())

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = CustomJsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    handlers = (file_handler, console_handler, error_handler)
    for handler in handlers:
        handler.setFormatter(formatter)

    return logging.handlers.QueueListener(log_queue, *handlers, respect_handler_level=True)


def _error_log_namer(default_name: str) -> str:
    # errors.jsonl.2024-05-01 -> errors_2024-05-01.jsonl
    stem, date_part = default_name.rsplit(".", 1)
    return str(Path(stem).with_name(f"errors_{date_part}.jsonl"))


def _register_logging_shutdown() -> None:
    global _atexit_registered
    if not _atexit_registered:
        atexit.register(shutdown_logging)
        _atexit_registered = True


def shutdown_logging() -> None:
    """Stop the queue listener, flushing any pending records."""
    global _queue_listener
    if _queue_listener:
        try:
            _queue_listener.stop()
        except Exception:
            # Interpreter may already be tearing down the handlers
            pass
        _queue_listener = None


def get_logger(name: str) -> logging.Logger:
    """Module-level logger; handlers are configured by setup_logging()."""
    return logging.getLogger(name)
