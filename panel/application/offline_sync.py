"""Cola de sincronización offline.

Registra las mutaciones intentadas sin conexión y las reproduce en orden FIFO
cuando vuelve la red. Cada drenaje deja una entrada en un historial acotado.

Semántica de entrega: como mucho una vez. Un elemento cuyo handler falla se
anota en el historial y sale de la cola, salvo que `retain_failed` esté
activo; en ese caso permanece con `retry_count` incrementado.
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from panel.bootstrap.logging import log_operational_error
from panel.core.errors import UnsupportedSyncActionError, ValidationError
from panel.core.metrics import medir_tiempo, registrar_resultado_drenaje
from panel.core.observability import OperationContext, log_event
from panel.domain.ports import KeyValueStorePort, SyncHandler
from panel.domain.sync_models import (
    ACTION_LABELS,
    DrainProgress,
    DrainResult,
    OfflineSyncItem,
    SyncAction,
    SyncHistoryEntry,
    SyncTrigger,
)

logger = logging.getLogger(__name__)

QUEUE_KEY = "pending-sync-queue"
HISTORY_KEY = "sync-history"
DEFAULT_HISTORY_LIMIT = 10

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.isoformat().replace("+00:00", "Z")


def format_timestamp(value: str) -> str:
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%d/%m/%Y %H:%M:%S")


class OfflineSyncQueue:
    def __init__(
        self,
        store: KeyValueStorePort,
        is_online: Callable[[], bool],
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        retain_failed: bool = False,
        clock: Clock | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        if history_limit < 1:
            raise ValidationError("history_limit debe ser >= 1")
        self._store = store
        self._is_online = is_online
        self._history_limit = history_limit
        self._retain_failed = retain_failed
        self._clock = clock or _utc_now
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:9])
        self._drain_lock = threading.Lock()
        self._state_lock = threading.RLock()
        self._progress: DrainProgress | None = None

    @property
    def history_limit(self) -> int:
        return self._history_limit

    @property
    def is_syncing(self) -> bool:
        return self._drain_lock.locked()

    @property
    def progress(self) -> DrainProgress | None:
        return self._progress

    @property
    def pending_count(self) -> int:
        return len(self.pending_items())

    @property
    def has_pending_sync(self) -> bool:
        return self.pending_count > 0

    @property
    def history_count(self) -> int:
        return len(self.history())

    def is_online(self) -> bool:
        return bool(self._is_online())

    def enqueue(self, module: str, action: SyncAction | str, data: Any) -> OfflineSyncItem:
        parsed_action = SyncAction.parse(action)
        try:
            json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Datos de {module} no serializables: {exc}") from exc
        now = self._clock()
        item = OfflineSyncItem(
            id=f"{module}-{int(now.timestamp() * 1000)}-{self._id_factory()}",
            module=str(module),
            action=parsed_action,
            data=data,
            timestamp=_iso(now),
        )
        with self._state_lock:
            items = self.pending_items()
            items.append(item)
            self._write_queue(items)
        logger.info(
            "Agregado a cola de sincronización",
            extra={"extra": {"item_id": item.id, "module": item.module, "action": item.action.value}},
        )
        return item

    def pending_items(self) -> list[OfflineSyncItem]:
        raw = self._store.get(QUEUE_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Cola persistida corrupta; se trata como vacía")
            return []
        items: list[OfflineSyncItem] = []
        for payload in raw:
            if not isinstance(payload, Mapping):
                logger.warning("Elemento de cola descartado por formato inválido: %r", payload)
                continue
            try:
                items.append(OfflineSyncItem.from_dict(payload))
            except ValidationError as exc:
                logger.warning("Elemento de cola descartado: %s", exc)
        return items

    def remove(self, item_id: str) -> bool:
        with self._state_lock:
            items = self.pending_items()
            remaining = [item for item in items if item.id != item_id]
            if len(remaining) == len(items):
                return False
            self._write_queue(remaining)
            return True

    def clear_queue(self) -> None:
        with self._state_lock:
            self._write_queue([])
        logger.info("Cola de sincronización vaciada")

    def history(self) -> list[SyncHistoryEntry]:
        raw = self._store.get(HISTORY_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Historial persistido corrupto; se trata como vacío")
            return []
        entries: list[SyncHistoryEntry] = []
        for payload in raw:
            if not isinstance(payload, Mapping):
                continue
            try:
                entries.append(SyncHistoryEntry.from_dict(payload))
            except ValidationError as exc:
                logger.warning("Entrada de historial descartada: %s", exc)
        return entries

    def clear_sync_history(self) -> None:
        with self._state_lock:
            self._store.set(HISTORY_KEY, [])
        logger.info("Historial de sincronización limpiado")

    def force_sync_now(self, handlers: Mapping[str, SyncHandler]) -> DrainResult | None:
        return self.process_sync_queue(handlers, trigger=SyncTrigger.MANUAL)

    def process_sync_queue(
        self,
        handlers: Mapping[str, SyncHandler],
        trigger: SyncTrigger = SyncTrigger.AUTO,
    ) -> DrainResult | None:
        if not self.is_online():
            logger.debug("Sin conexión; no se drena la cola")
            return None
        if not self.has_pending_sync:
            return None
        if not self._drain_lock.acquire(blocking=False):
            logger.info("Drenaje ya en curso; se ignora la petición %s", trigger.value)
            return None
        try:
            return self._drain(handlers, trigger)
        finally:
            self._progress = None
            self._drain_lock.release()

    @medir_tiempo("latency.sync_drain_ms")
    def _drain(self, handlers: Mapping[str, SyncHandler], trigger: SyncTrigger) -> DrainResult:
        started_at = self._clock()
        drain_id = f"sync-{int(started_at.timestamp() * 1000)}"
        snapshot = self.pending_items()
        self._progress = DrainProgress(total=len(snapshot))

        with OperationContext("offline_sync_drain") as context:
            log_event(
                logger,
                "sync_drain_started",
                {"drain_id": drain_id, "trigger": trigger.value, "items": len(snapshot)},
                context.correlation_id,
            )
            processed: list[str] = []
            failed: list[str] = []
            details: list[str] = []

            for index, item in enumerate(snapshot):
                self._progress.current_index = index
                error = self._run_handler(handlers, item)
                if error is None:
                    self.remove(item.id)
                    processed.append(item.id)
                    details.append(
                        f"{ACTION_LABELS[item.action]}: {item.module} ({format_timestamp(item.timestamp)})"
                    )
                else:
                    self._settle_failed(item)
                    failed.append(item.id)
                    details.append(error)
                self._progress.details.append(details[-1])
            self._progress.current_index = len(snapshot)

            entry = SyncHistoryEntry(
                id=drain_id,
                timestamp=_iso(started_at),
                total_items=len(processed) + len(failed),
                success_count=len(processed),
                error_count=len(failed),
                details=tuple(details),
                trigger=trigger,
            )
            self._append_history(entry)
            registrar_resultado_drenaje(entry.success_count, entry.error_count)
            log_event(
                logger,
                "sync_drain_finished",
                {
                    "drain_id": drain_id,
                    "trigger": trigger.value,
                    "success": entry.success_count,
                    "errors": entry.error_count,
                },
                context.correlation_id,
            )

        return DrainResult(
            entry=entry,
            processed_ids=tuple(processed),
            failed_ids=tuple(failed),
            remaining=self.pending_count,
        )

    def _run_handler(self, handlers: Mapping[str, SyncHandler], item: OfflineSyncItem) -> str | None:
        handler = handlers.get(item.module)
        if handler is None:
            error = UnsupportedSyncActionError(item.module)
            log_operational_error(
                logger,
                "Sin handler para el módulo de la cola",
                exc=error,
                extra={"item_id": item.id, "module": item.module},
                level=logging.WARNING,
            )
            return f"Error: {error}"
        try:
            handler(item)
        except Exception as exc:  # noqa: BLE001
            log_operational_error(
                logger,
                "Error sincronizando elemento",
                exc=exc,
                extra={"item_id": item.id, "module": item.module, "action": item.action.value},
            )
            return f"Error: {item.module} - {str(exc) or 'Error desconocido'}"
        return None

    def _settle_failed(self, item: OfflineSyncItem) -> None:
        with self._state_lock:
            items = self.pending_items()
            if self._retain_failed:
                updated = [
                    replace(current, retry_count=current.retry_count + 1)
                    if current.id == item.id
                    else current
                    for current in items
                ]
            else:
                updated = [current for current in items if current.id != item.id]
            self._write_queue(updated)

    def _append_history(self, entry: SyncHistoryEntry) -> None:
        with self._state_lock:
            entries = [entry, *self.history()][: self._history_limit]
            self._store.set(HISTORY_KEY, [current.to_dict() for current in entries])

    def _write_queue(self, items: list[OfflineSyncItem]) -> None:
        self._store.set(QUEUE_KEY, [item.to_dict() for item in items])
