from __future__ import annotations

from unittest.mock import Mock

import pytest

from panel.application.sync_handlers import ALL_ACTIONS, SUPPORTED_ACTIONS, EntitySyncHandler, build_sync_handlers
from panel.core.errors import UnsupportedSyncActionError, ValidationError
from panel.domain.sync_models import OfflineSyncItem, SyncAction, SyncModule


def _item(module: str, action: SyncAction, data) -> OfflineSyncItem:  # noqa: ANN001
    return OfflineSyncItem(f"{module}-1-x", module, action, data, "2024-03-01T10:00:00Z")


def test_create_update_delete_delegan_en_el_gateway() -> None:
    gateway = Mock()
    handler = EntitySyncHandler("technicians", gateway)

    handler(_item("technicians", SyncAction.CREATE, {"name": "Ana"}))
    handler(_item("technicians", SyncAction.UPDATE, {"id": "t1", "updates": {"name": "Eva"}}))
    handler(_item("technicians", SyncAction.DELETE, {"id": "t1"}))

    gateway.create.assert_called_once_with({"name": "Ana"})
    gateway.update.assert_called_once_with("t1", {"name": "Eva"})
    gateway.delete.assert_called_once_with("t1")


def test_tickets_no_admite_delete() -> None:
    handlers = build_sync_handlers({SyncModule.TICKETS: Mock()})

    with pytest.raises(UnsupportedSyncActionError, match="Acción no soportada para tickets: delete"):
        handlers["tickets"](_item("tickets", SyncAction.DELETE, {"id": "k1"}))


@pytest.mark.parametrize(
    ("action", "data"),
    [
        (SyncAction.UPDATE, {"updates": {}}),
        (SyncAction.DELETE, {}),
        (SyncAction.CREATE, ["no", "es", "objeto"]),
        (SyncAction.UPDATE, {"id": "x", "updates": "texto"}),
    ],
)
def test_datos_invalidos_fallan_con_validation_error(action: SyncAction, data) -> None:  # noqa: ANN001
    gateway = Mock()

    with pytest.raises(ValidationError):
        EntitySyncHandler("villas", gateway)(_item("villas", action, data))


def test_build_sync_handlers_claves_y_acciones() -> None:
    handlers = build_sync_handlers({"villas": Mock(), SyncModule.TICKETS: Mock(), "extra": Mock()})

    assert set(handlers) == {"villas", "tickets", "extra"}
    assert handlers["tickets"].supported_actions == SUPPORTED_ACTIONS[SyncModule.TICKETS]
    assert handlers["extra"].supported_actions == ALL_ACTIONS


def test_errores_del_gateway_se_propagan() -> None:
    gateway = Mock()
    gateway.create.side_effect = RuntimeError("timeout")

    with pytest.raises(RuntimeError, match="timeout"):
        EntitySyncHandler("villas", gateway)(_item("villas", SyncAction.CREATE, {"name": "Casa"}))
