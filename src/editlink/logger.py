from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import structlog

if TYPE_CHECKING:
    from editlink.settings import LoggingSettings


@dataclass
class LogRecordEntry:
    logger_name: str
    level: int
    level_name: str
    message: str
    created: float


class LogManager:
    """Bounded in-memory log buffer, the equivalent of an editor output channel."""

    def __init__(self, max_entries: Optional[int] = None) -> None:
        self._max_entries = max_entries
        self._records: list[LogRecordEntry] = []

    @property
    def max_entries(self) -> Optional[int]:
        return self._max_entries

    @max_entries.setter
    def max_entries(self, value: Optional[int]) -> None:
        self._max_entries = value
        self._trim()

    def _trim(self) -> None:
        if self._max_entries is None:
            return
        overflow = len(self._records) - self._max_entries
        if overflow > 0:
            del self._records[0:overflow]

    def add_record(self, record: logging.LogRecord) -> None:
        entry = LogRecordEntry(
            logger_name=record.name,
            level=record.levelno,
            level_name=record.levelname,
            message=record.getMessage(),
            created=record.created,
        )
        self._records.append(entry)
        self._trim()

    def get_logs(self) -> list[LogRecordEntry]:
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()


class _InMemoryLogHandler(logging.Handler):
    def __init__(self, manager: LogManager) -> None:
        super().__init__()
        self._manager = manager

    def emit(self, record: logging.LogRecord) -> None:
        self._manager.add_record(record)


_log_manager: Optional[LogManager] = None
_log_handler: Optional[_InMemoryLogHandler] = None
_file_handler: Optional[logging.FileHandler] = None


def init_log_manager(max_entries: Optional[int] = None) -> LogManager:
    global _log_manager, _log_handler
    if _log_manager is None:
        _log_manager = LogManager(max_entries=max_entries)
        _log_handler = _InMemoryLogHandler(_log_manager)
    elif max_entries is not None:
        _log_manager.max_entries = max_entries

    root_logger = logging.getLogger()
    if _log_handler is not None and _log_handler not in root_logger.handlers:
        root_logger.addHandler(_log_handler)
    return _log_manager


def get_log_manager() -> Optional[LogManager]:
    return _log_manager


_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "disabled": logging.CRITICAL + 1,
}


def level_from_name(name: str, default: int = logging.INFO) -> int:
    return _LEVELS.get(str(name).lower(), default)


def apply_logging_settings(settings: "LoggingSettings") -> LogManager:
    global _file_handler

    manager = init_log_manager(max_entries=settings.max_entries)
    default_level = level_from_name(settings.default_level.value)

    root_logger = logging.getLogger()
    root_logger.setLevel(default_level)
    logging.getLogger("editlink").setLevel(default_level)

    for logger_name, level in settings.enabled_loggers.items():
        logging.getLogger(logger_name).setLevel(
            level_from_name(level.value, default_level)
        )

    if _file_handler is not None:
        root_logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None
    if settings.file:
        _file_handler = logging.FileHandler(settings.file, mode="a", encoding="utf-8")
        _file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(_file_handler)

    return manager


structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(colors=False),
    ],
)

logger: structlog.BoundLogger = structlog.get_logger("editlink")
