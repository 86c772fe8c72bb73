from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from panel.infrastructure.local_config import resolve_appdata_dir

logger = logging.getLogger(__name__)

DB_FILENAME = "panel_operaciones.db"
DEFAULT_BUSY_TIMEOUT_MS = 30000
REQUIRED_TABLES = ("kv_store", "schema_migrations")


def default_db_path() -> Path:
    """La base vive junto a `config.json`, en el directorio de datos del usuario."""

    return resolve_appdata_dir() / DB_FILENAME


def configure_sqlite_connection(connection: sqlite3.Connection, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> None:
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA journal_mode=WAL")
    connection.execute("PRAGMA synchronous=NORMAL")
    connection.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")


def get_connection(
    db_path: Path | None = None,
    *,
    busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
) -> sqlite3.Connection:
    """Abre la base local compartida entre la UI y el hilo de drenaje.

    El almacén serializa los accesos con su propio lock, por eso la conexión
    se abre con `check_same_thread=False`.
    """

    path = db_path or default_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(path, check_same_thread=False, timeout=max(1.0, busy_timeout_ms / 1000))
    configure_sqlite_connection(connection, busy_timeout_ms=busy_timeout_ms)
    logger.info("Base local abierta", extra={"extra": {"db_path": str(path)}})
    return connection


def check_database(connection: sqlite3.Connection) -> list[str]:
    """Problemas detectados en la base local; lista vacía si está sana."""

    problems: list[str] = []
    try:
        integrity = connection.execute("PRAGMA quick_check").fetchone()
        tables = {
            row[0]
            for row in connection.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        }
    except sqlite3.Error as exc:
        return [f"Base local inaccesible: {exc}"]
    if integrity is None or str(integrity[0]).lower() != "ok":
        problems.append(f"quick_check devolvió {integrity[0] if integrity else 'nada'}")
    problems.extend(f"Falta la tabla {table}" for table in REQUIRED_TABLES if table not in tables)
    return problems
