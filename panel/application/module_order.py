from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Sequence, Union

from panel.core.errors import ValidationError
from panel.domain.models import Module, ModuleOrderState
from panel.domain.module_registry import visible_modules
from panel.domain.ports import KeyValueStorePort

logger = logging.getLogger(__name__)


def order_key(role: str) -> str:
    return f"moduleOrder_{role}"


def pinned_key(role: str) -> str:
    return f"pinnedModules_{role}"


def in_progress_key(role: str) -> str:
    return f"inProgressModules_{role}"


@dataclass(frozen=True)
class MoveUp:
    module_id: str


@dataclass(frozen=True)
class MoveDown:
    module_id: str


@dataclass(frozen=True)
class MoveTo:
    from_index: int
    to_index: int


@dataclass(frozen=True)
class Reorder:
    module_ids: tuple[str, ...]


@dataclass(frozen=True)
class TogglePin:
    module_id: str


@dataclass(frozen=True)
class ToggleInProgress:
    module_id: str


ModuleOrderCommand = Union[MoveUp, MoveDown, MoveTo, Reorder, TogglePin, ToggleInProgress]


def merge_order(persisted: Sequence[str], visible_ids: Sequence[str]) -> list[str]:
    """Combina el orden guardado con los módulos visibles.

    Conserva los ids guardados que siguen visibles, añade al final los nuevos en
    orden de catálogo y descarta en silencio los que ya no existen.
    """

    visible_set = set(visible_ids)
    seen: set[str] = set()
    merged: list[str] = []
    for module_id in persisted:
        if module_id in visible_set and module_id not in seen:
            merged.append(module_id)
            seen.add(module_id)
    merged.extend(module_id for module_id in visible_ids if module_id not in seen)
    return merged


class ModuleOrderService:
    """Orden, fijados y "en progreso" de los módulos visibles para un rol."""

    def __init__(self, store: KeyValueStorePort, registry: Iterable[Module], role: str) -> None:
        self._store = store
        self._registry = tuple(registry)
        self._role = role

    @property
    def role(self) -> str:
        return self._role

    def state(self) -> ModuleOrderState:
        return ModuleOrderState(
            role=self._role,
            order=tuple(self._read_ids(order_key(self._role))),
            pinned=frozenset(self._read_ids(pinned_key(self._role))),
            in_progress=frozenset(self._read_ids(in_progress_key(self._role))),
        )

    def get_ordered_modules(self) -> list[Module]:
        visible = visible_modules(self._registry, self._role)
        visible_ids = [module.id for module in visible]
        persisted = self._read_ids(order_key(self._role))
        if not persisted and visible_ids:
            logger.info("Inicializando orden de módulos para rol %s", self._role)
            self._write_ids(order_key(self._role), visible_ids)
            persisted = visible_ids

        by_id = {module.id: module for module in visible}
        pinned = set(self._read_ids(pinned_key(self._role)))
        in_progress = set(self._read_ids(in_progress_key(self._role)))
        return [
            replace(
                by_id[module_id],
                is_pinned=module_id in pinned,
                is_in_progress=module_id in in_progress,
            )
            for module_id in merge_order(persisted, visible_ids)
        ]

    def ordered_ids(self) -> list[str]:
        return [module.id for module in self.get_ordered_modules()]

    def move_module(self, from_index: int, to_index: int) -> list[str]:
        current = self.ordered_ids()
        size = len(current)
        if not (0 <= from_index < size and 0 <= to_index < size):
            raise ValidationError(
                f"Índices fuera de rango para mover módulo: {from_index} -> {to_index} (total {size})"
            )
        moved = current.pop(from_index)
        current.insert(to_index, moved)
        self._write_ids(order_key(self._role), current)
        return current

    def move_module_up(self, module_id: str) -> list[str]:
        current = self.ordered_ids()
        if module_id not in current:
            return current
        index = current.index(module_id)
        if index == 0:
            return current
        return self.move_module(index, index - 1)

    def move_module_down(self, module_id: str) -> list[str]:
        current = self.ordered_ids()
        if module_id not in current:
            return current
        index = current.index(module_id)
        if index == len(current) - 1:
            return current
        return self.move_module(index, index + 1)

    def reorder_modules(self, new_order: Iterable[str]) -> list[str]:
        visible_ids = {module.id for module in visible_modules(self._registry, self._role)}
        filtered: list[str] = []
        dropped: list[str] = []
        for module_id in new_order:
            if module_id in visible_ids and module_id not in filtered:
                filtered.append(module_id)
            elif module_id not in visible_ids:
                dropped.append(module_id)
        if dropped:
            logger.warning("Reordenación con módulos no visibles para %s: %s", self._role, dropped)
        self._write_ids(order_key(self._role), filtered)
        return filtered

    def toggle_pin(self, module_id: str) -> bool:
        return self._toggle(pinned_key(self._role), module_id)

    def toggle_in_progress(self, module_id: str) -> bool:
        return self._toggle(in_progress_key(self._role), module_id)

    def apply(self, command: ModuleOrderCommand) -> object:
        if isinstance(command, MoveUp):
            return self.move_module_up(command.module_id)
        if isinstance(command, MoveDown):
            return self.move_module_down(command.module_id)
        if isinstance(command, MoveTo):
            return self.move_module(command.from_index, command.to_index)
        if isinstance(command, Reorder):
            return self.reorder_modules(command.module_ids)
        if isinstance(command, TogglePin):
            return self.toggle_pin(command.module_id)
        if isinstance(command, ToggleInProgress):
            return self.toggle_in_progress(command.module_id)
        raise ValidationError(f"Comando de orden no soportado: {type(command).__name__}")

    def _toggle(self, key: str, module_id: str) -> bool:
        current = self._read_ids(key)
        if module_id in current:
            updated = [item for item in current if item != module_id]
            enabled = False
        else:
            updated = [*current, module_id]
            enabled = True
        self._write_ids(key, updated)
        return enabled

    def _read_ids(self, key: str) -> list[str]:
        raw = self._store.get(key, [])
        if not isinstance(raw, list):
            logger.warning("Valor persistido inválido en %s; se ignora", key)
            return []
        return [str(item) for item in raw if isinstance(item, str)]

    def _write_ids(self, key: str, ids: Sequence[str]) -> None:
        self._store.set(key, list(ids))
