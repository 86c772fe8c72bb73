from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from panel.application.drain_notices import SyncNotice, offline_saved_notice
from panel.application.offline_sync import OfflineSyncQueue
from panel.domain.ports import EntityGateway
from panel.domain.sync_models import SyncAction, SyncModule

logger = logging.getLogger(__name__)


class OfflineAwareGateway:
    """Gateway que delega en el backend con conexión y encola sin ella.

    Sin conexión devuelve una entidad optimista para que la UI pueda mostrarla
    hasta que el drenaje la cree de verdad.
    """

    def __init__(
        self,
        gateway: EntityGateway,
        queue: OfflineSyncQueue,
        module: SyncModule | str,
        *,
        is_online: Callable[[], bool] | None = None,
        clock: Callable[[], datetime] | None = None,
        notify: Callable[[SyncNotice], None] | None = None,
    ) -> None:
        self._gateway = gateway
        self._queue = queue
        self._module = module.value if isinstance(module, SyncModule) else str(module)
        self._is_online = is_online or queue.is_online
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._notify = notify

    @property
    def module(self) -> str:
        return self._module

    def set_notify(self, notify: Callable[[SyncNotice], None] | None) -> None:
        self._notify = notify

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        if self._is_online():
            return self._gateway.create(data)
        self._enqueue(SyncAction.CREATE, data)
        now = self._clock()
        stamp = now.isoformat()
        logger.info("Creación de %s guardada localmente", self._module)
        return {
            **data,
            "id": f"temp-{int(now.timestamp() * 1000)}",
            "created_at": stamp,
            "updated_at": stamp,
        }

    def update(self, entity_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        if self._is_online():
            return self._gateway.update(entity_id, updates)
        self._enqueue(SyncAction.UPDATE, {"id": entity_id, "updates": updates})
        logger.info("Actualización de %s guardada localmente", self._module)
        return {"id": entity_id, **updates, "updated_at": self._clock().isoformat()}

    def delete(self, entity_id: str) -> None:
        if self._is_online():
            self._gateway.delete(entity_id)
            return
        self._enqueue(SyncAction.DELETE, {"id": entity_id})
        logger.info("Eliminación de %s guardada localmente", self._module)

    def _enqueue(self, action: SyncAction, data: dict[str, Any]) -> None:
        self._queue.enqueue(self._module, action, data)
        if self._notify is not None:
            self._notify(offline_saved_notice(action))
