from __future__ import annotations

import logging

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from panel.core.observability import log_event
from panel.domain.ports import ConnectivityProbePort

logger = logging.getLogger(__name__)


class ConnectivityMonitor(QObject):
    """Sondea la red periódicamente y solo emite en las transiciones."""

    online_changed = Signal(bool)

    def __init__(self, probe: ConnectivityProbePort, *, interval_ms: int = 5000, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._probe = probe
        self._online: bool | None = None
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.check_now)

    @property
    def online(self) -> bool:
        return bool(self._online)

    def start(self) -> None:
        self.check_now()
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    @Slot()
    def check_now(self) -> bool:
        try:
            online = bool(self._probe.is_online())
        except Exception as exc:  # noqa: BLE001
            logger.warning("Fallo en la sonda de conectividad: %s", exc)
            online = False
        if online != self._online:
            previous = self._online
            self._online = online
            log_event(logger, "connectivity_changed", {"online": online, "previous": previous})
            self.online_changed.emit(online)
        return online
