from __future__ import annotations

import argparse
import faulthandler
import logging
import sys
from dataclasses import replace
from pathlib import Path

from panel.bootstrap.container import build_container
from panel.bootstrap.logging import CRASH_LOG_NAME, configure_logging, install_exception_hook
from panel.bootstrap.settings import Settings, load_settings, resolve_log_dir
from panel.domain.models import ALL_ROLES
from panel.domain.module_registry import DASHBOARD_MODULES, visible_modules
from panel.entrypoints.ui_main import run_ui
from panel.infrastructure.connectivity import StaticConnectivityProbe
from panel.infrastructure.db import check_database

_SELFCHECK_KEY = "selfcheck_probe"


def _run_selfcheck(settings: Settings, log_dir: Path) -> int:
    """Valida base de datos, almacén y catálogo sin abrir la UI."""

    logger = logging.getLogger(__name__)
    errors = 0
    try:
        container = build_container(settings, connectivity_probe=StaticConnectivityProbe(False))
    except Exception as exc:  # noqa: BLE001
        logger.exception("No se pudo construir el contenedor: %s", exc)
        return 1

    if container.connection is not None:
        for problem in check_database(container.connection):
            logger.error("Base local: %s", problem)
            errors += 1

    container.store.set(_SELFCHECK_KEY, {"ok": True})
    if container.store.get(_SELFCHECK_KEY) != {"ok": True}:
        logger.error("El almacén clave-valor no devuelve lo escrito")
        errors += 1
    container.store.delete(_SELFCHECK_KEY)
    if container.store.degraded_keys:
        logger.error("Almacén degradado a memoria para: %s", sorted(container.store.degraded_keys))
        errors += 1

    visibles = visible_modules(DASHBOARD_MODULES, settings.role)
    if not visibles:
        logger.error("El rol %s no tiene módulos visibles", settings.role)
        errors += 1
    else:
        logger.info("Rol %s con %s módulos visibles", settings.role, len(visibles))

    if not container.sync_configured:
        logger.warning("Backend sin configurar; la sincronización offline queda inactiva")
    logger.info("Elementos pendientes en cola: %s", container.sync_queue.pending_count)

    if errors:
        logger.error("Selfcheck fallo con %s error(es). crash.log=%s", errors, log_dir / CRASH_LOG_NAME)
        return 1
    logger.info("Selfcheck OK.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Panel de Operaciones")
    parser.add_argument("--selfcheck", action="store_true", help="Valida recursos sin abrir UI")
    parser.add_argument("--role", choices=sorted(ALL_ROLES), help="Rol activo al arrancar")
    args = parser.parse_args(argv)

    settings = load_settings()
    if args.role:
        settings = replace(settings, role=args.role)

    log_dir = resolve_log_dir()
    configure_logging(log_dir, max_bytes=settings.log_max_bytes)
    install_exception_hook(log_dir)
    faulthandler.enable()

    logger = logging.getLogger(__name__)
    logger.info("Log dir: %s", log_dir)
    logger.info("Python: %s", sys.version)
    logger.info("CWD: %s", Path.cwd())

    if args.selfcheck:
        return _run_selfcheck(settings, log_dir)
    return run_ui(build_container(settings))
