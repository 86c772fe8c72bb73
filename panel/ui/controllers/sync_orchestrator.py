from __future__ import annotations

import logging
import traceback
from typing import Mapping

from PySide6.QtCore import QObject, QThread, QTimer, Signal, Slot

from panel.application.connectivity_state import ConnectivityState
from panel.application.drain_notices import build_drain_notices
from panel.application.offline_sync import OfflineSyncQueue
from panel.bootstrap.logging import log_operational_error
from panel.core.observability import OperationContext, log_event
from panel.domain.ports import SyncHandler
from panel.domain.sync_models import DrainResult, SyncTrigger
from panel.ui.sync_indicator_rules import (
    REASON_SYNC_INICIADA,
    EstadoIndicadorSyncEntrada,
    razon_sync_manual,
)

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY_MS = 2000


class _DrainWorker(QObject):
    finished = Signal(object)
    failed = Signal(object)

    def __init__(
        self,
        queue: OfflineSyncQueue,
        handlers: Mapping[str, SyncHandler],
        trigger: SyncTrigger,
        correlation_id: str,
    ) -> None:
        super().__init__()
        self._queue = queue
        self._handlers = handlers
        self._trigger = trigger
        self._correlation_id = correlation_id

    @Slot()
    def run(self) -> None:
        try:
            result = self._queue.process_sync_queue(self._handlers, trigger=self._trigger)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, "sync_worker_failed", {"trigger": self._trigger.value, "error": str(exc)}, self._correlation_id)
            log_operational_error(
                logger,
                "Drenaje de la cola abortado",
                exc=exc,
                extra={"trigger": self._trigger.value, "correlation_id": self._correlation_id},
            )
            self.failed.emit({"error": exc, "details": traceback.format_exc()})
            return
        self.finished.emit(result)


class _ThreadReleaser(QObject):
    """Suelta el hilo de un drenaje cuando Qt confirma que ha terminado."""

    def __init__(self, thread: QThread, on_released, parent: QObject | None = None) -> None:  # noqa: ANN001
        super().__init__(parent)
        self._thread = thread
        self._on_released = on_released

    @Slot()
    def release(self) -> None:
        # `finished` se emite justo antes de que el hilo acabe.
        self._thread.wait()
        self._on_released(self._thread)
        self.deleteLater()


class SyncOrchestrator(QObject):
    """Dispara el drenaje de la cola al recuperar la red y bajo petición manual.

    Tras una transición a online espera `settle_delay_ms` antes de drenar; si la
    conectividad vuelve a cambiar dentro de esa ventana el temporizador se
    reinicia o se cancela. El drenaje corre en un QThread para no bloquear la UI.
    """

    sync_started = Signal(object)
    sync_finished = Signal(object)
    sync_failed = Signal(object)
    notice = Signal(object)
    state_changed = Signal()

    def __init__(
        self,
        queue: OfflineSyncQueue,
        handlers: Mapping[str, SyncHandler],
        *,
        connectivity: ConnectivityState | None = None,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._queue = queue
        self._handlers = dict(handlers)
        self._connectivity = connectivity or ConnectivityState(False)
        self._running = False
        self._thread = None
        self._worker = None
        self._settle_timer = QTimer(self)
        self._settle_timer.setSingleShot(True)
        self._settle_timer.setInterval(settle_delay_ms)
        self._settle_timer.timeout.connect(self._on_settle_elapsed)

    @property
    def is_online(self) -> bool:
        return self._connectivity.is_online()

    @property
    def is_syncing(self) -> bool:
        return self._running or self._queue.is_syncing

    @property
    def sync_configured(self) -> bool:
        return bool(self._handlers)

    @property
    def settle_pending(self) -> bool:
        return self._settle_timer.isActive()

    def pending_count(self) -> int:
        return self._queue.pending_count

    def history_count(self) -> int:
        return self._queue.history_count

    def history(self):
        return self._queue.history()

    def indicator_input(self) -> EstadoIndicadorSyncEntrada:
        return EstadoIndicadorSyncEntrada(
            online=self.is_online,
            sincronizando=self.is_syncing,
            pendientes=self.pending_count(),
            historial=self.history_count(),
            configurado=self.sync_configured,
        )

    @Slot(bool)
    def set_online(self, online: bool) -> None:
        if not self._connectivity.update(bool(online)):
            return
        self._settle_timer.stop()
        if online:
            self._schedule_auto_sync()
        self.state_changed.emit()

    @Slot()
    def notify_queue_changed(self) -> None:
        if not self._settle_timer.isActive():
            self._schedule_auto_sync()
        self.state_changed.emit()

    def request_manual_sync(self) -> str:
        reason_code = razon_sync_manual(self.indicator_input())
        if reason_code != REASON_SYNC_INICIADA:
            logger.info("Sincronización manual descartada: %s", reason_code)
            return reason_code
        self._settle_timer.stop()
        self._start_drain(SyncTrigger.MANUAL)
        return reason_code

    def clear_history(self) -> None:
        self._queue.clear_sync_history()
        self.state_changed.emit()

    def shutdown(self) -> None:
        self._settle_timer.stop()
        self._join_thread()

    def _schedule_auto_sync(self) -> None:
        if not self.is_online or not self.sync_configured or self.is_syncing:
            return
        if not self._queue.has_pending_sync:
            return
        self._settle_timer.start()

    @Slot()
    def _on_settle_elapsed(self) -> None:
        if not self.is_online or self.is_syncing:
            return
        self._start_drain(SyncTrigger.AUTO)

    def _start_drain(self, trigger: SyncTrigger) -> bool:
        if self._running:
            return False
        self._join_thread()
        self._running = True
        operation_context = OperationContext("sync_drain_ui")
        self._thread = QThread()
        self._worker = _DrainWorker(self._queue, self._handlers, trigger, operation_context.correlation_id)
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.finished.connect(self._on_drain_finished)
        self._worker.failed.connect(self._on_drain_failed)
        self._worker.finished.connect(self._thread.quit)
        self._worker.failed.connect(self._thread.quit)
        releaser = _ThreadReleaser(self._thread, self._on_thread_released, self)
        self._thread.finished.connect(releaser.release)
        self._thread.start()
        self.sync_started.emit(trigger)
        self.state_changed.emit()
        return True

    def _join_thread(self) -> None:
        # Las referencias solo se sueltan con el hilo ya detenido.
        if self._thread is None:
            return
        self._thread.quit()
        self._thread.wait()
        self._thread = None
        self._worker = None

    def _on_thread_released(self, thread: QThread) -> None:
        if self._thread is thread:
            self._thread = None
            self._worker = None

    @Slot(object)
    def _on_drain_finished(self, result: DrainResult | None) -> None:
        self._running = False
        if result is not None:
            for notice in build_drain_notices(result):
                self.notice.emit(notice)
        self.sync_finished.emit(result)
        self.state_changed.emit()

    @Slot(object)
    def _on_drain_failed(self, payload: object) -> None:
        self._running = False
        self.sync_failed.emit(payload)
        self.state_changed.emit()
