from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Callable

from panel.application.connectivity_state import ConnectivityState
from panel.application.module_order import ModuleOrderService
from panel.application.offline_gateways import OfflineAwareGateway
from panel.application.offline_sync import OfflineSyncQueue
from panel.application.sync_handlers import build_sync_handlers
from panel.bootstrap.logging import register_crash_context
from panel.bootstrap.settings import Settings, load_settings
from panel.domain.models import BackendConfig
from panel.domain.module_registry import catalog_for
from panel.domain.ports import ConnectivityProbePort, EntityGateway, SyncHandler
from panel.infrastructure.connectivity import SocketConnectivityProbe
from panel.infrastructure.db import get_connection
from panel.infrastructure.kv_store import ResilientKeyValueStore, SQLiteKeyValueStore
from panel.infrastructure.local_config import BackendConfigStore
from panel.infrastructure.migrations import run_migrations
from panel.infrastructure.rest_gateway import build_rest_gateways

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], sqlite3.Connection]
GatewayFactory = Callable[[BackendConfig], dict[str, EntityGateway]]


@dataclass
class AppContainer:
    settings: Settings
    store: ResilientKeyValueStore
    connectivity: ConnectivityState
    connectivity_probe: ConnectivityProbePort
    sync_queue: OfflineSyncQueue
    backend_config: BackendConfig | None = None
    sync_handlers: dict[str, SyncHandler] = field(default_factory=dict)
    gateways: dict[str, OfflineAwareGateway] = field(default_factory=dict)
    connection: sqlite3.Connection | None = None

    @property
    def sync_configured(self) -> bool:
        return bool(self.sync_handlers)

    def crash_context(self) -> dict[str, object]:
        """Estado de la cola y del almacén que acompaña a cada informe de crash."""

        return {
            "role": self.settings.role,
            "online": self.connectivity.is_online(),
            "sync_configured": self.sync_configured,
            "sync_in_progress": self.sync_queue.is_syncing,
            "pending_items": self.sync_queue.pending_count,
            "degraded_keys": sorted(self.store.degraded_keys),
        }

    def module_order_service(self, catalog: str = "dashboard", role: str | None = None) -> ModuleOrderService:
        return ModuleOrderService(self.store, catalog_for(catalog), role or self.settings.role)


def build_container(
    settings: Settings | None = None,
    *,
    connection_factory: ConnectionFactory | None = None,
    config_store: BackendConfigStore | None = None,
    connectivity_probe: ConnectivityProbePort | None = None,
    gateway_factory: GatewayFactory | None = None,
) -> AppContainer:
    resolved = settings or load_settings()
    connection = (connection_factory or (lambda: get_connection(resolved.db_path)))()
    run_migrations(connection)

    store = ResilientKeyValueStore(SQLiteKeyValueStore(connection))
    probe = connectivity_probe or SocketConnectivityProbe(
        resolved.connectivity_host,
        resolved.connectivity_port,
        timeout_seconds=resolved.connectivity_timeout_s,
    )
    connectivity = ConnectivityState(online=False)
    sync_queue = OfflineSyncQueue(
        store,
        connectivity.is_online,
        history_limit=resolved.history_limit,
        retain_failed=resolved.retain_failed,
    )
    container = AppContainer(
        settings=resolved,
        store=store,
        connectivity=connectivity,
        connectivity_probe=probe,
        sync_queue=sync_queue,
        connection=connection,
    )
    register_crash_context(container.crash_context)

    backend_config = (config_store or BackendConfigStore()).load()
    if backend_config is None or not backend_config.configured:
        logger.warning("Backend sin configurar: la cola offline no se drenará")
        return container

    remote_gateways = (gateway_factory or build_rest_gateways)(backend_config)
    container.backend_config = backend_config
    container.sync_handlers = build_sync_handlers(remote_gateways)
    container.gateways = {
        module: OfflineAwareGateway(gateway, sync_queue, module, is_online=connectivity.is_online)
        for module, gateway in remote_gateways.items()
    }
    return container
