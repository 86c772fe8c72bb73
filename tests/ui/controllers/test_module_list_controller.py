from __future__ import annotations

import pytest

from panel.application.module_order import ModuleOrderService
from panel.domain.models import Module
from panel.domain.module_registry import DASHBOARD_MODULES
from panel.infrastructure.kv_store import InMemoryKeyValueStore
from panel.ui.controllers.module_list_controller import ModuleListController, module_label

pytestmark = pytest.mark.headless_safe


class _SidebarFake:
    def __init__(self, signal_cls) -> None:  # noqa: ANN001
        self.currentRowChanged = signal_cls()
        self.rowsMoved = signal_cls()
        self.items: list[str] = []
        self.row = -1
        self.drag_mode = None
        self.blocked = False

    def model(self):
        return self

    def blockSignals(self, value: bool) -> bool:  # noqa: N802
        previous, self.blocked = self.blocked, value
        return previous

    def clear(self) -> None:
        self.items.clear()
        self.row = -1

    def addItem(self, text: str) -> None:  # noqa: N802
        self.items.append(text)

    def setCurrentRow(self, row: int) -> None:  # noqa: N802
        self.row = row
        if not self.blocked:
            self.currentRowChanged.emit(row)

    def currentRow(self) -> int:  # noqa: N802
        return self.row

    def setDragDropMode(self, mode) -> None:  # noqa: N802, ANN001
        self.drag_mode = mode


@pytest.fixture
def service() -> ModuleOrderService:
    return ModuleOrderService(InMemoryKeyValueStore(), DASHBOARD_MODULES, "technician")


@pytest.fixture
def sidebar(qt_fakes) -> _SidebarFake:
    return _SidebarFake(qt_fakes.Signal)


def test_module_label_marca_fijado_y_en_progreso() -> None:
    module = Module("tickets", "Tickets", "d", frozenset({"admin"}), badge="5", is_pinned=True, is_in_progress=True)

    assert module_label(module) == "Tickets 📌 ⏳ [5]"


def test_refresh_pinta_el_orden_del_rol(sidebar, service) -> None:
    controller = ModuleListController(sidebar, service)

    assert [module.id for module in controller.modules] == ["tasks", "tickets", "evidences", "settings", "support"]
    assert sidebar.items[1].startswith("Sistema de Tickets")
    assert controller.reorder_mode is False


def test_seleccion_notifica_modulo(sidebar, service) -> None:
    seleccionados: list = []
    ModuleListController(sidebar, service, on_select=seleccionados.append)

    sidebar.setCurrentRow(1)
    sidebar.currentRowChanged.emit(9)

    assert seleccionados[0].id == "tickets"
    assert seleccionados[1] is None


def test_mover_actual_conserva_la_seleccion(sidebar, service) -> None:
    controller = ModuleListController(sidebar, service)
    sidebar.row = 1

    controller.move_current_up()

    assert service.ordered_ids()[:2] == ["tickets", "tasks"]
    assert controller.current_module().id == "tickets"
    assert sidebar.row == 0


def test_sin_seleccion_no_hace_nada(sidebar, service) -> None:
    controller = ModuleListController(sidebar, service)

    controller.toggle_pin_current()

    assert service.state().pinned == frozenset()


def test_fijar_y_en_progreso_actualizan_etiqueta(sidebar, service) -> None:
    controller = ModuleListController(sidebar, service)
    sidebar.row = 1

    controller.toggle_pin_current()
    controller.toggle_in_progress_current()

    assert service.state().pinned == frozenset({"tickets"})
    assert "📌" in sidebar.items[1] and "⏳" in sidebar.items[1]


@pytest.mark.parametrize(("start", "destination", "esperado"), [(4, 0, "support"), (0, 3, "tickets")])
def test_arrastrar_reordena(sidebar, service, start: int, destination: int, esperado: str) -> None:
    controller = ModuleListController(sidebar, service)
    controller.set_reorder_mode(True)

    sidebar.rowsMoved.emit(None, start, start, None, destination)

    assert service.ordered_ids()[0] == esperado
    assert controller.reorder_mode is True


def test_arrastre_multiple_se_ignora(sidebar, service) -> None:
    controller = ModuleListController(sidebar, service)

    sidebar.rowsMoved.emit(None, 0, 1, None, 4)

    assert [module.id for module in controller.modules] == ["tasks", "tickets", "evidences", "settings", "support"]
