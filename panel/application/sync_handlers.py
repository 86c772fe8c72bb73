from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from panel.core.errors import UnsupportedSyncActionError, ValidationError
from panel.domain.ports import EntityGateway, SyncHandler
from panel.domain.sync_models import OfflineSyncItem, SyncAction, SyncModule

logger = logging.getLogger(__name__)

ALL_ACTIONS: frozenset[SyncAction] = frozenset(SyncAction)

SUPPORTED_ACTIONS: dict[SyncModule, frozenset[SyncAction]] = {
    SyncModule.TICKETS: frozenset({SyncAction.CREATE, SyncAction.UPDATE}),
    SyncModule.TECHNICAL_RESOURCES: ALL_ACTIONS,
    SyncModule.TECHNICIANS: ALL_ACTIONS,
    SyncModule.VILLAS: ALL_ACTIONS,
}


def _require_entity_id(item: OfflineSyncItem) -> str:
    data = item.data
    if not isinstance(data, Mapping) or not data.get("id"):
        raise ValidationError(f"{item.module}/{item.action.value} requiere 'id' en los datos")
    return str(data["id"])


def _require_mapping(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        raise ValidationError(f"Se esperaba un objeto para {what}")
    return dict(value)


class EntitySyncHandler:
    """Reproduce un elemento de la cola contra el gateway de su entidad."""

    def __init__(self, module: str, gateway: EntityGateway, supported_actions: Iterable[SyncAction] = ALL_ACTIONS) -> None:
        self._module = module
        self._gateway = gateway
        self._supported = frozenset(supported_actions)

    @property
    def supported_actions(self) -> frozenset[SyncAction]:
        return self._supported

    def __call__(self, item: OfflineSyncItem) -> None:
        if item.action not in self._supported:
            raise UnsupportedSyncActionError(self._module, item.action.value)
        logger.info("Sincronizando %s: %s", self._module, item.id)
        if item.action is SyncAction.CREATE:
            self._gateway.create(_require_mapping(item.data, "create"))
        elif item.action is SyncAction.UPDATE:
            entity_id = _require_entity_id(item)
            self._gateway.update(entity_id, _require_mapping(item.data.get("updates", {}), "updates"))
        else:
            self._gateway.delete(_require_entity_id(item))


def build_sync_handlers(gateways: Mapping[SyncModule | str, EntityGateway]) -> dict[str, SyncHandler]:
    handlers: dict[str, SyncHandler] = {}
    for module, gateway in gateways.items():
        key = module.value if isinstance(module, SyncModule) else str(module)
        try:
            supported = SUPPORTED_ACTIONS[SyncModule(key)]
        except ValueError:
            supported = ALL_ACTIONS
        handlers[key] = EntitySyncHandler(key, gateway, supported)
    return handlers
