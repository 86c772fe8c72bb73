from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Mapping

from panel.core.errors import ValidationError


class SyncAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: "SyncAction | str") -> "SyncAction":
        if isinstance(value, SyncAction):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Acción de sincronización desconocida: {value!r}") from exc


class SyncModule(str, Enum):
    TICKETS = "tickets"
    TECHNICAL_RESOURCES = "technical_resources"
    TECHNICIANS = "technicians"
    VILLAS = "villas"


class SyncTrigger(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


ACTION_LABELS: dict[SyncAction, str] = {
    SyncAction.CREATE: "Creado",
    SyncAction.UPDATE: "Actualizado",
    SyncAction.DELETE: "Eliminado",
}


@dataclass(frozen=True)
class OfflineSyncItem:
    id: str
    module: str
    action: SyncAction
    data: Any
    timestamp: str
    retry_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["action"] = self.action.value
        payload["retryCount"] = payload.pop("retry_count")
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "OfflineSyncItem":
        try:
            item_id = str(payload["id"])
            module = str(payload["module"])
            timestamp = str(payload["timestamp"])
            retry_count = int(payload.get("retryCount", payload.get("retry_count", 0)) or 0)
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Elemento de cola inválido: {exc}") from exc
        return cls(
            id=item_id,
            module=module,
            action=SyncAction.parse(payload.get("action", "")),
            data=payload.get("data"),
            timestamp=timestamp,
            retry_count=retry_count,
        )


@dataclass(frozen=True)
class SyncHistoryEntry:
    id: str
    timestamp: str
    total_items: int
    success_count: int
    error_count: int
    details: tuple[str, ...] = ()
    trigger: SyncTrigger = SyncTrigger.AUTO

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "totalItems": self.total_items,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "details": list(self.details),
            "trigger": self.trigger.value,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SyncHistoryEntry":
        try:
            return cls(
                id=str(payload["id"]),
                timestamp=str(payload["timestamp"]),
                total_items=int(payload["totalItems"]),
                success_count=int(payload["successCount"]),
                error_count=int(payload["errorCount"]),
                details=tuple(str(detail) for detail in payload.get("details", ())),
                trigger=SyncTrigger(payload.get("trigger", SyncTrigger.AUTO.value)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Entrada de historial inválida: {exc}") from exc


@dataclass(frozen=True)
class DrainResult:
    entry: SyncHistoryEntry
    processed_ids: tuple[str, ...] = ()
    failed_ids: tuple[str, ...] = ()
    remaining: int = 0

    @property
    def success_count(self) -> int:
        return self.entry.success_count

    @property
    def error_count(self) -> int:
        return self.entry.error_count


@dataclass
class DrainProgress:
    """Estado observable mientras el drenaje está en curso."""

    total: int = 0
    current_index: int = 0
    details: list[str] = field(default_factory=list)

    @property
    def items_remaining(self) -> int:
        return max(self.total - self.current_index, 0)
