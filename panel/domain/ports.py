from __future__ import annotations

from typing import Any, Protocol

from panel.domain.models import BackendConfig, Module
from panel.domain.sync_models import OfflineSyncItem


class KeyValueStorePort(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class EntityGateway(Protocol):
    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        ...

    def update(self, entity_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        ...

    def delete(self, entity_id: str) -> None:
        ...


class SyncHandler(Protocol):
    def __call__(self, item: OfflineSyncItem) -> None:
        ...


class ConnectivityProbePort(Protocol):
    def is_online(self) -> bool:
        ...


class BackendConfigStorePort(Protocol):
    def load(self) -> BackendConfig | None:
        ...

    def save(self, config: BackendConfig) -> BackendConfig:
        ...


ModuleCatalog = tuple[Module, ...]
