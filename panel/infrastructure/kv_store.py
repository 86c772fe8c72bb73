from __future__ import annotations

import copy
import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Any

from panel.bootstrap.logging import log_operational_error
from panel.core.errors import PersistenceError
from panel.domain.ports import KeyValueStorePort

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """Almacén de sesión: se pierde al cerrar la aplicación."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            if key not in self._values:
                return default
            return copy.deepcopy(self._values[key])

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._values[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._values


class SQLiteKeyValueStore:
    """Valores JSON en la tabla `kv_store`.

    Las lecturas corruptas o fallidas devuelven el valor por defecto; las
    escrituras fallidas se elevan como `PersistenceError`.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        try:
            with self._lock:
                row = self._connection.execute(
                    "SELECT value_json FROM kv_store WHERE key = ?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            log_operational_error(logger, "No se pudo leer del almacén local", exc=exc, extra={"key": key})
            return default
        if row is None:
            return default
        try:
            return json.loads(row[0])
        except (TypeError, json.JSONDecodeError):
            logger.warning("Valor corrupto en almacén local para %s; se usa el valor por defecto", key)
            return default

    def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Valor no serializable para {key}: {exc}") from exc
        try:
            with self._lock, self._connection:
                self._connection.execute(
                    """
                    INSERT INTO kv_store (key, value_json, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value_json = excluded.value_json,
                        updated_at = excluded.updated_at
                    """,
                    (key, payload, datetime.now(timezone.utc).isoformat()),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"No se pudo guardar {key}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._lock, self._connection:
                self._connection.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise PersistenceError(f"No se pudo borrar {key}: {exc}") from exc


class ResilientKeyValueStore:
    """Envuelve un almacén persistente y degrada a memoria si deja de escribir.

    Una clave cuya escritura falla se sirve desde memoria el resto de la
    sesión, o hasta que una escritura posterior vuelva a funcionar.
    """

    def __init__(self, primary: KeyValueStorePort, fallback: InMemoryKeyValueStore | None = None) -> None:
        self._primary = primary
        self._fallback = fallback or InMemoryKeyValueStore()
        self._degraded: set[str] = set()

    @property
    def degraded_keys(self) -> frozenset[str]:
        return frozenset(self._degraded)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._degraded:
            return self._fallback.get(key, default)
        try:
            return self._primary.get(key, default)
        except PersistenceError as exc:
            log_operational_error(logger, "Lectura degradada a memoria", exc=exc, extra={"key": key}, level=logging.WARNING)
            return self._fallback.get(key, default)

    def set(self, key: str, value: Any) -> None:
        try:
            self._primary.set(key, value)
        except PersistenceError as exc:
            log_operational_error(logger, "Escritura degradada a memoria", exc=exc, extra={"key": key}, level=logging.WARNING)
            self._degraded.add(key)
            self._fallback.set(key, value)
            return
        if key in self._degraded:
            self._degraded.discard(key)
            self._fallback.delete(key)

    def delete(self, key: str) -> None:
        self._fallback.delete(key)
        self._degraded.discard(key)
        try:
            self._primary.delete(key)
        except PersistenceError as exc:
            log_operational_error(logger, "No se pudo borrar del almacén local", exc=exc, extra={"key": key}, level=logging.WARNING)
