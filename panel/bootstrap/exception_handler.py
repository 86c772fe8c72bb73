from __future__ import annotations

import json
import logging
import traceback
import uuid
from types import TracebackType
from typing import Any

from panel.bootstrap.logging import CRASH_LOG_NAME, collect_crash_context
from panel.bootstrap.settings import resolve_log_dir
from panel.core.observability import generate_correlation_id, get_correlation_id, get_drain_id, set_correlation_id


def generar_id_incidente() -> str:
    return f"INC-{uuid.uuid4().hex[:12].upper()}"


def _asegurar_correlation_id() -> str:
    correlation_id = get_correlation_id()
    if correlation_id:
        return correlation_id
    correlation_id = generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


def construir_incidente(
    incident_id: str,
    correlation_id: str,
    exc_type: type[BaseException],
    exc_value: BaseException,
) -> dict[str, Any]:
    """Datos del incidente: el error, el drenaje en curso si lo hay y el estado de la cola."""

    incidente: dict[str, Any] = {
        "incident_id": incident_id,
        "correlation_id": correlation_id,
        "error_type": exc_type.__name__,
        "error_message": str(exc_value),
        "estado": collect_crash_context(),
    }
    drain_id = get_drain_id()
    if drain_id:
        incidente["drain_id"] = drain_id
    return incidente


def _escribir_incidente_en_crash_log(
    incidente: dict[str, Any],
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_traceback: TracebackType | None,
) -> None:
    log_dir = resolve_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    payload = {
        **incidente,
        "stacktrace": "".join(traceback.format_exception(exc_type, exc_value, exc_traceback)),
    }
    with (log_dir / CRASH_LOG_NAME).open("a", encoding="utf-8") as handler:
        handler.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")


def manejar_excepcion_global(
    exc_type: type[BaseException], exc_value: BaseException, exc_traceback: TracebackType | None
) -> str:
    """Registra una excepción no controlada y devuelve el ID de incidente mostrado al usuario.

    Si el logging falla, el incidente se escribe directamente en `crash.log`.
    """

    incident_id = generar_id_incidente()
    incidente = construir_incidente(incident_id, _asegurar_correlation_id(), exc_type, exc_value)
    logger = logging.getLogger("panel.global_exception")

    try:
        logger.critical(
            "Excepción no controlada. incident_id=%s",
            incident_id,
            exc_info=(exc_type, exc_value, exc_traceback),
            extra={"correlation_id": incidente["correlation_id"], "extra": incidente},
        )
    except Exception:  # noqa: BLE001
        _escribir_incidente_en_crash_log(incidente, exc_type, exc_value, exc_traceback)

    return incident_id
