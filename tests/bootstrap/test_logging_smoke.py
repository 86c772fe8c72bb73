from __future__ import annotations

import json
import logging
import sys

from panel.bootstrap.logging import (
    CRASH_LOG_NAME,
    ERROR_OPERATIVO_LOG_NAME,
    MAIN_LOG_NAME,
    collect_crash_context,
    configure_logging,
    install_exception_hook,
    log_operational_error,
    register_crash_context,
)
from panel.core.observability import OperationContext, log_event


def _last_event(path) -> dict:
    return json.loads(path.read_text(encoding="utf-8").strip().splitlines()[-1])


def test_configure_logging_escribe_jsonl(tmp_path) -> None:
    configure_logging(tmp_path)

    logging.getLogger("tests.logging_smoke").info("mensaje de humo")

    event = _last_event(tmp_path / MAIN_LOG_NAME)
    assert event["mensaje"] == "mensaje de humo"
    assert event["level"] == "INFO"
    assert event["logger"] == "tests.logging_smoke"


def test_configure_logging_incluye_correlation_id_del_contexto(tmp_path) -> None:
    configure_logging(tmp_path)

    with OperationContext("drenaje", correlation_id="cid-logging"):
        logging.getLogger("tests.logging_smoke").info("dentro de operación")

    assert _last_event(tmp_path / MAIN_LOG_NAME)["correlation_id"] == "cid-logging"


def test_log_operational_error_va_al_log_de_errores(tmp_path) -> None:
    configure_logging(tmp_path)
    logger = logging.getLogger("tests.logging_smoke")

    try:
        raise ValueError("handler roto")
    except ValueError as exc:
        log_operational_error(logger, "Error sincronizando elemento", exc=exc, extra={"item_id": "tickets-1"})
    logger.warning("solo aviso")

    lines = (tmp_path / ERROR_OPERATIVO_LOG_NAME).read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 1
    event = json.loads(lines[0])
    assert event["mensaje"] == "Error sincronizando elemento"
    assert event["extra"] == {"item_id": "tickets-1"}
    assert event["sync"] == {"item_id": "tickets-1"}
    assert "ValueError: handler roto" in event["exc_info"]


def test_install_exception_hook_escribe_crash_log(tmp_path) -> None:
    original_hook = sys.excepthook
    configure_logging(tmp_path)
    install_exception_hook(tmp_path)
    register_crash_context(lambda: {"pending_items": 4, "degraded_keys": ["pending-sync-queue"]})

    try:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            exc_type, exc, tb = sys.exc_info()
            assert exc_type is not None and exc is not None and tb is not None
            sys.excepthook(exc_type, exc, tb)

        crash_event = _last_event(tmp_path / CRASH_LOG_NAME)
        assert crash_event["level"] == "CRITICAL"
        assert "RuntimeError: boom" in crash_event["exc_info"]
        assert crash_event["extra"]["estado"] == {"pending_items": 4, "degraded_keys": ["pending-sync-queue"]}
    finally:
        sys.excepthook = original_hook


def test_eventos_de_drenaje_agrupan_contexto_sync(tmp_path) -> None:
    configure_logging(tmp_path)
    logger = logging.getLogger("tests.logging_smoke")

    with OperationContext("drenaje", correlation_id="cid-drain"):
        log_event(logger, "sync_drain_started", {"drain_id": "sync-1700000000000", "trigger": "manual", "items": 2})
        logger.info("Elemento sincronizado", extra={"extra": {"item_id": "tickets-1", "module": "tickets"}})

    lineas = (tmp_path / MAIN_LOG_NAME).read_text(encoding="utf-8").strip().splitlines()
    inicio, elemento = (json.loads(linea) for linea in lineas[-2:])
    assert inicio["sync"] == {"drain_id": "sync-1700000000000", "trigger": "manual"}
    assert elemento["sync"] == {"drain_id": "sync-1700000000000", "item_id": "tickets-1", "module": "tickets"}
    assert elemento["correlation_id"] == "cid-drain"


def test_fuera_de_drenaje_no_hay_bloque_sync(tmp_path) -> None:
    configure_logging(tmp_path)

    logging.getLogger("tests.logging_smoke").info("arranque")

    assert "sync" not in _last_event(tmp_path / MAIN_LOG_NAME)


def test_contexto_de_crash_que_falla_no_rompe_el_informe() -> None:
    def _roto() -> dict:
        raise RuntimeError("sqlite cerrado")

    register_crash_context(_roto)

    assert collect_crash_context() == {"context_error": "RuntimeError: sqlite cerrado"}
