from __future__ import annotations

import pytest

from panel.application.module_order import (
    MoveDown,
    MoveTo,
    MoveUp,
    ModuleOrderService,
    Reorder,
    ToggleInProgress,
    TogglePin,
    in_progress_key,
    merge_order,
    order_key,
    pinned_key,
)
from panel.core.errors import ValidationError
from panel.domain.module_registry import DASHBOARD_MODULES

TECNICO = ["tasks", "tickets", "evidences", "settings", "support"]


@pytest.fixture
def tecnico(memory_store) -> ModuleOrderService:
    return ModuleOrderService(memory_store, DASHBOARD_MODULES, "technician")


def test_claves_por_rol() -> None:
    assert order_key("admin") == "moduleOrder_admin"
    assert pinned_key("manager") == "pinnedModules_manager"
    assert in_progress_key("technician") == "inProgressModules_technician"


def test_primer_acceso_persiste_orden_de_catalogo(tecnico, memory_store) -> None:
    assert tecnico.ordered_ids() == TECNICO
    assert memory_store.get("moduleOrder_technician") == TECNICO
    assert tecnico.state().initialized is True


def test_orden_estable_entre_lecturas(tecnico) -> None:
    tecnico.move_module(0, 3)

    assert tecnico.ordered_ids() == tecnico.ordered_ids()


def test_merge_order_conserva_guardados_y_anade_nuevos() -> None:
    merged = merge_order(["support", "fantasma", "tasks", "support"], ["tasks", "tickets", "support"])

    assert merged == ["support", "tasks", "tickets"]


def test_modulo_nuevo_en_catalogo_se_anade_al_final(memory_store) -> None:
    memory_store.set("moduleOrder_technician", ["support", "tasks"])
    service = ModuleOrderService(memory_store, DASHBOARD_MODULES, "technician")

    assert service.ordered_ids() == ["support", "tasks", "tickets", "evidences", "settings"]


def test_orden_persistido_no_visible_se_descarta(memory_store) -> None:
    memory_store.set("moduleOrder_technician", ["finances", "tickets"])
    service = ModuleOrderService(memory_store, DASHBOARD_MODULES, "technician")

    ids = service.ordered_ids()

    assert "finances" not in ids
    assert ids[0] == "tickets"


def test_roles_tienen_ordenes_independientes(memory_store) -> None:
    admin = ModuleOrderService(memory_store, DASHBOARD_MODULES, "admin")
    tecnico = ModuleOrderService(memory_store, DASHBOARD_MODULES, "technician")

    admin.move_module_down("crm")

    assert tecnico.ordered_ids() == TECNICO
    assert admin.ordered_ids()[:2] == ["sales", "crm"]


def test_move_module(tecnico) -> None:
    assert tecnico.move_module(4, 0) == ["support", "tasks", "tickets", "evidences", "settings"]


@pytest.mark.parametrize(("origen", "destino"), [(-1, 0), (0, 5), (7, 1)])
def test_move_module_fuera_de_rango(tecnico, origen: int, destino: int) -> None:
    with pytest.raises(ValidationError):
        tecnico.move_module(origen, destino)
    assert tecnico.ordered_ids() == TECNICO


def test_subir_primero_y_bajar_ultimo_no_cambian_nada(tecnico) -> None:
    assert tecnico.move_module_up("tasks") == TECNICO
    assert tecnico.move_module_down("support") == TECNICO
    assert tecnico.move_module_up("inexistente") == TECNICO


def test_subir_y_bajar(tecnico) -> None:
    assert tecnico.move_module_up("tickets")[:2] == ["tickets", "tasks"]
    assert tecnico.move_module_down("tickets")[:2] == ["tasks", "tickets"]


def test_reorder_filtra_no_visibles_y_duplicados(tecnico, memory_store) -> None:
    result = tecnico.reorder_modules(["support", "finances", "support", "tasks"])

    assert result == ["support", "tasks"]
    assert memory_store.get("moduleOrder_technician") == ["support", "tasks"]
    assert tecnico.ordered_ids() == ["support", "tasks", "tickets", "evidences", "settings"]


def test_toggle_pin_dos_veces_vuelve_al_estado_inicial(tecnico) -> None:
    assert tecnico.toggle_pin("tickets") is True
    assert tecnico.toggle_pin("tickets") is False

    assert tecnico.state().pinned == frozenset()


def test_escenario_tickets_fijados(tecnico, memory_store) -> None:
    tecnico.toggle_pin("tickets")
    tecnico.toggle_in_progress("evidences")

    modules = {module.id: module for module in tecnico.get_ordered_modules()}

    assert memory_store.get("pinnedModules_technician") == ["tickets"]
    assert modules["tickets"].is_pinned is True
    assert modules["tasks"].is_pinned is False
    assert modules["evidences"].is_in_progress is True
    assert tecnico.ordered_ids() == TECNICO


def test_apply_despacha_comandos(tecnico) -> None:
    tecnico.apply(MoveDown("tasks"))
    tecnico.apply(MoveUp("support"))
    tecnico.apply(MoveTo(0, 1))
    assert tecnico.apply(TogglePin("tasks")) is True
    assert tecnico.apply(ToggleInProgress("tasks")) is True

    assert tecnico.ordered_ids() == ["tasks", "tickets", "evidences", "support", "settings"]
    assert tecnico.apply(Reorder(("settings",))) == ["settings"]


def test_apply_rechaza_comando_desconocido(tecnico) -> None:
    with pytest.raises(ValidationError):
        tecnico.apply("subir")  # type: ignore[arg-type]


def test_valor_persistido_corrupto_se_ignora(memory_store) -> None:
    memory_store.set("moduleOrder_technician", "no-es-una-lista")
    memory_store.set("pinnedModules_technician", ["tickets", 42])
    service = ModuleOrderService(memory_store, DASHBOARD_MODULES, "technician")

    assert service.ordered_ids() == TECNICO
    assert service.state().pinned == frozenset({"tickets"})


def test_funciona_sobre_sqlite(sqlite_store) -> None:
    service = ModuleOrderService(sqlite_store, DASHBOARD_MODULES, "technician")
    service.move_module(1, 0)

    reabierto = ModuleOrderService(sqlite_store, DASHBOARD_MODULES, "technician")

    assert reabierto.ordered_ids()[:2] == ["tickets", "tasks"]
