from __future__ import annotations

import logging
from typing import Callable

from PySide6.QtWidgets import QAbstractItemView, QListWidget

from panel.application.module_order import (
    ModuleOrderCommand,
    ModuleOrderService,
    MoveDown,
    MoveTo,
    MoveUp,
    ToggleInProgress,
    TogglePin,
)
from panel.domain.models import Module

logger = logging.getLogger(__name__)


def module_label(module: Module) -> str:
    marcas = []
    if module.is_pinned:
        marcas.append("📌")
    if module.is_in_progress:
        marcas.append("⏳")
    if module.badge:
        marcas.append(f"[{module.badge}]")
    return " ".join([module.title, *marcas])


class ModuleListController:
    """Enlaza la lista lateral con el orden persistido del rol activo."""

    def __init__(
        self,
        sidebar: QListWidget,
        service: ModuleOrderService,
        on_select: Callable[[Module | None], None] | None = None,
    ) -> None:
        self._sidebar = sidebar
        self._service = service
        self._on_select = on_select
        self._modules: list[Module] = []
        self._reorder_mode = False
        self._sidebar.currentRowChanged.connect(self._on_row_changed)
        self._sidebar.model().rowsMoved.connect(self._on_rows_moved)
        self.set_reorder_mode(False)
        self.refresh()

    @property
    def modules(self) -> list[Module]:
        return list(self._modules)

    @property
    def reorder_mode(self) -> bool:
        return self._reorder_mode

    def set_service(self, service: ModuleOrderService) -> None:
        self._service = service
        self.refresh()

    def current_module(self) -> Module | None:
        row = self._sidebar.currentRow()
        if 0 <= row < len(self._modules):
            return self._modules[row]
        return None

    def refresh(self, selected_id: str | None = None) -> None:
        selected_id = selected_id or getattr(self.current_module(), "id", None)
        self._modules = self._service.get_ordered_modules()
        blocked = self._sidebar.blockSignals(True)
        try:
            self._sidebar.clear()
            for module in self._modules:
                self._sidebar.addItem(module_label(module))
            ids = [module.id for module in self._modules]
            if selected_id in ids:
                self._sidebar.setCurrentRow(ids.index(selected_id))
        finally:
            self._sidebar.blockSignals(blocked)

    def set_reorder_mode(self, enabled: bool) -> None:
        self._reorder_mode = enabled
        mode = QAbstractItemView.DragDropMode.InternalMove if enabled else QAbstractItemView.DragDropMode.NoDragDrop
        self._sidebar.setDragDropMode(mode)

    def move_current_up(self) -> None:
        self._apply_to_current(MoveUp)

    def move_current_down(self) -> None:
        self._apply_to_current(MoveDown)

    def toggle_pin_current(self) -> None:
        self._apply_to_current(TogglePin)

    def toggle_in_progress_current(self) -> None:
        self._apply_to_current(ToggleInProgress)

    def _apply_to_current(self, command_type: Callable[[str], ModuleOrderCommand]) -> None:
        module = self.current_module()
        if module is None:
            return
        self._service.apply(command_type(module.id))
        self.refresh(selected_id=module.id)

    def _on_row_changed(self, row: int) -> None:
        if self._on_select is None:
            return
        self._on_select(self._modules[row] if 0 <= row < len(self._modules) else None)

    def _on_rows_moved(self, _parent, start: int, end: int, _destination, row: int) -> None:
        if start != end:
            logger.warning("Movimiento múltiple no soportado en la lista de módulos: %s-%s", start, end)
            self.refresh()
            return
        target = row - 1 if row > start else row
        moved_id = self._modules[start].id if 0 <= start < len(self._modules) else None
        self._service.apply(MoveTo(start, target))
        self.refresh(selected_id=moved_id)
