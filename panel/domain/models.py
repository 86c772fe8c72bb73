from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    TECHNICIAN = "technician"


ALL_ROLES: frozenset[str] = frozenset(role.value for role in Role)


@dataclass(frozen=True)
class Module:
    """Entrada del catálogo. `is_pinned`/`is_in_progress` los rellena el motor de orden."""

    id: str
    title: str
    description: str
    allowed_roles: frozenset[str]
    stats: str | None = None
    badge: str | None = None
    is_pinned: bool = False
    is_in_progress: bool = False

    def visible_for(self, role: str) -> bool:
        return role in self.allowed_roles


@dataclass(frozen=True)
class ModuleOrderState:
    role: str
    order: tuple[str, ...] = ()
    pinned: frozenset[str] = field(default_factory=frozenset)
    in_progress: frozenset[str] = field(default_factory=frozenset)

    @property
    def initialized(self) -> bool:
        return bool(self.order)


@dataclass(frozen=True)
class BackendConfig:
    backend_url: str
    api_key: str
    device_id: str = ""

    @property
    def configured(self) -> bool:
        return bool(self.backend_url and self.api_key)
