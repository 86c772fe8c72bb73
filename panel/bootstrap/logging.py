from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Mapping

from panel.core.observability import get_correlation_id, get_drain_id

DEFAULT_LOG_MAX_BYTES = 1_048_576
DEFAULT_LOG_BACKUP_COUNT = 10
MAIN_LOG_NAME = "seguimiento.log"
ERROR_OPERATIVO_LOG_NAME = "error_operativo.log"
CRASH_LOG_NAME = "crash.log"

# (fichero, nivel mínimo, nivel máximo)
LOG_FILES: tuple[tuple[str, int, int], ...] = (
    (MAIN_LOG_NAME, logging.DEBUG, logging.CRITICAL),
    (ERROR_OPERATIVO_LOG_NAME, logging.ERROR, logging.ERROR),
    (CRASH_LOG_NAME, logging.CRITICAL, logging.CRITICAL),
)

SYNC_CONTEXT_FIELDS = ("trigger", "item_id", "module", "action", "key")

CrashContextProvider = Callable[[], Mapping[str, Any]]
_crash_context_provider: CrashContextProvider | None = None


def register_crash_context(provider: CrashContextProvider | None) -> None:
    """Fija la función que describe el estado de la app en los informes de crash."""

    global _crash_context_provider
    _crash_context_provider = provider


def collect_crash_context() -> dict[str, Any]:
    if _crash_context_provider is None:
        return {}
    try:
        return dict(_crash_context_provider())
    except Exception as exc:  # noqa: BLE001
        return {"context_error": f"{type(exc).__name__}: {exc}"}


class JsonLinesFormatter(logging.Formatter):
    """Una línea JSON por evento.

    Los campos de la cola (`drain_id`, `trigger`, `item_id`, `module`, `action`,
    `key`) se agrupan en `sync` para poder filtrar un drenaje completo.
    """

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "modulo": record.module,
            "funcion": record.funcName,
            "mensaje": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None) or get_correlation_id(),
        }

        payload_extra = getattr(record, "extra", None)
        sync_context = _sync_context(record, payload_extra)
        if sync_context:
            event["sync"] = sync_context
        if isinstance(payload_extra, dict) and payload_extra:
            event["extra"] = payload_extra

        if record.exc_info:
            event["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(event, ensure_ascii=False, default=str)


def _sync_context(record: logging.LogRecord, payload_extra: object) -> dict[str, Any]:
    context: dict[str, Any] = {}
    drain_id = getattr(record, "drain_id", None) or get_drain_id()
    if drain_id:
        context["drain_id"] = drain_id
    if not isinstance(payload_extra, dict):
        return context
    # log_event anida sus datos en `payload`.
    source = payload_extra.get("payload")
    if not isinstance(source, dict):
        source = payload_extra
    for name in SYNC_CONTEXT_FIELDS:
        if name in source:
            context[name] = source[name]
    return context


class _LevelBandFilter(logging.Filter):
    def __init__(self, minimum: int, maximum: int) -> None:
        super().__init__()
        self._minimum = minimum
        self._maximum = maximum

    def filter(self, record: logging.LogRecord) -> bool:
        return self._minimum <= record.levelno <= self._maximum


def configure_logging(
    log_dir: Path,
    *,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
    level: int = logging.INFO,
) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level)

    formatter = JsonLinesFormatter()
    for file_name, minimum, maximum in LOG_FILES:
        handler = RotatingFileHandler(
            log_dir / file_name,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handler.setLevel(max(level, minimum))
        handler.addFilter(_LevelBandFilter(minimum, maximum))
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)


def log_operational_error(
    logger: logging.Logger,
    message: str,
    *,
    exc: BaseException | None = None,
    extra: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Registra un fallo controlado; no relanza nunca."""

    exc_info: Any = False
    if exc is not None:
        exc_info = (type(exc), exc, exc.__traceback__)

    payload = {"extra": extra} if extra else None
    logger.log(level, message, exc_info=exc_info, extra=payload)


def write_crash_log(exc_type: type[BaseException], exc: BaseException, tb: Any, log_dir: Path) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.getLogger("panel.crash").critical(
        "Excepción no controlada",
        exc_info=(exc_type, exc, tb),
        extra={
            "extra": {
                "python": sys.version,
                "executable": sys.executable,
                "estado": collect_crash_context(),
            }
        },
    )
    return log_dir / CRASH_LOG_NAME


def install_exception_hook(log_dir: Path) -> None:
    def _handler(exc_type, exc, tb) -> None:
        try:
            write_crash_log(exc_type, exc, tb, log_dir)
        except OSError:
            sys.__excepthook__(exc_type, exc, tb)

    sys.excepthook = _handler
