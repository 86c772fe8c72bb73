from __future__ import annotations

from contextlib import AbstractContextManager
from contextvars import ContextVar, Token
from datetime import datetime, timezone
import uuid
from typing import Any

_CORRELATION_ID: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_DRAIN_ID: ContextVar[str | None] = ContextVar("drain_id", default=None)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> str | None:
    return _CORRELATION_ID.get()


def get_drain_id() -> str | None:
    return _DRAIN_ID.get()


def set_correlation_id(correlation_id: str | None) -> Token[str | None]:
    return _CORRELATION_ID.set(correlation_id)


def set_drain_id(drain_id: str | None) -> Token[str | None]:
    return _DRAIN_ID.set(drain_id)


def reset_correlation_id(token: Token[str | None]) -> None:
    _CORRELATION_ID.reset(token)


def reset_drain_id(token: Token[str | None]) -> None:
    _DRAIN_ID.reset(token)


class OperationContext(AbstractContextManager["OperationContext"]):
    """Ámbito de una operación (p. ej. un drenaje de la cola) con su correlation_id."""

    def __init__(self, operation_name: str, correlation_id: str | None = None) -> None:
        self.operation_name = operation_name
        self.correlation_id = correlation_id or generate_correlation_id()
        self._correlation_token: Token[str | None] | None = None
        self._drain_token: Token[str | None] | None = None

    def __enter__(self) -> "OperationContext":
        self._correlation_token = set_correlation_id(self.correlation_id)
        self._drain_token = set_drain_id(None)
        return self

    def __exit__(self, exc_type: object, exc: object, exc_tb: object) -> None:
        if self._drain_token is not None:
            reset_drain_id(self._drain_token)
        if self._correlation_token is not None:
            reset_correlation_id(self._correlation_token)
        return None


def log_event(logger: Any, event_name: str, payload: dict[str, Any], correlation_id: str | None = None) -> dict[str, Any]:
    resolved_correlation_id = correlation_id or get_correlation_id()
    drain_id = payload.get("drain_id")
    if isinstance(drain_id, str):
        set_drain_id(drain_id)

    event = {
        "event": event_name,
        "correlation_id": resolved_correlation_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "payload": payload,
    }
    logger.info(
        event_name,
        extra={
            "correlation_id": resolved_correlation_id,
            "drain_id": drain_id,
            "extra": event,
        },
    )
    return event
