from __future__ import annotations

import logging
import socket
import time

logger = logging.getLogger(__name__)


class SocketConnectivityProbe:
    """Considera que hay red si se puede abrir un socket TCP contra `host:port`."""

    def __init__(self, host: str = "8.8.8.8", port: int = 53, *, timeout_seconds: float = 3.0) -> None:
        self._host = host
        self._port = port
        self._timeout_seconds = timeout_seconds
        self.last_latency_ms: float | None = None

    def is_online(self) -> bool:
        started = time.perf_counter()
        try:
            socket.create_connection((self._host, self._port), timeout=self._timeout_seconds).close()
        except OSError as exc:
            logger.debug("Sin conexión con %s:%s: %s", self._host, self._port, exc)
            self.last_latency_ms = None
            return False
        self.last_latency_ms = (time.perf_counter() - started) * 1000
        return True


class StaticConnectivityProbe:
    """Sonda fija, útil para modo sin red o para forzar un estado en pruebas manuales."""

    def __init__(self, online: bool) -> None:
        self.online = online

    def is_online(self) -> bool:
        return self.online

