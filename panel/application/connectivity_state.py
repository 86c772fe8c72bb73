from __future__ import annotations

import threading


class ConnectivityState:
    """Último estado de red conocido; lo actualiza el monitor de conectividad."""

    def __init__(self, online: bool = False) -> None:
        self._online = online
        self._lock = threading.Lock()

    def is_online(self) -> bool:
        return self._online

    def update(self, online: bool) -> bool:
        with self._lock:
            changed = self._online != online
            self._online = online
        return changed
