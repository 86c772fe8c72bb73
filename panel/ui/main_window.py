from __future__ import annotations

import logging

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from panel.application.drain_notices import SyncNotice
from panel.bootstrap.container import AppContainer
from panel.domain.models import Module, Role
from panel.ui.controllers.connectivity_monitor import ConnectivityMonitor
from panel.ui.controllers.module_list_controller import ModuleListController
from panel.ui.controllers.sync_orchestrator import SyncOrchestrator
from panel.ui.sync_history_dialog import SyncHistoryDialog
from panel.ui.sync_indicator_rules import (
    EstadoIndicadorSyncEntrada,
    aviso_sync_manual,
    decidir_estado_indicador_sync,
)

logger = logging.getLogger(__name__)

_BADGE_STYLES = {
    "default": "background: #1F4E79; color: white;",
    "outline": "border: 1px solid #1F4E79; color: #1F4E79;",
    "destructive": "background: #B00020; color: white;",
}
_NOTICE_TIMEOUT_MS = 5000


class MainWindow(QMainWindow):
    def __init__(self, container: AppContainer) -> None:
        super().__init__()
        self._container = container
        self.setWindowTitle("Panel de Operaciones")
        self.resize(1100, 720)

        self.orchestrator = SyncOrchestrator(
            container.sync_queue,
            container.sync_handlers,
            connectivity=container.connectivity,
            settle_delay_ms=container.settings.settle_delay_ms,
            parent=self,
        )
        self.connectivity_monitor = ConnectivityMonitor(
            container.connectivity_probe,
            interval_ms=container.settings.connectivity_interval_ms,
            parent=self,
        )

        self._build_ui()

        self.modules = ModuleListController(
            self.sidebar,
            container.module_order_service("dashboard", self.role_combo.currentText()),
            on_select=self._on_module_selected,
        )

        self.orchestrator.state_changed.connect(self.update_sync_indicator)
        self.orchestrator.notice.connect(self.show_notice)
        self.orchestrator.sync_failed.connect(self._on_sync_failed)
        self.connectivity_monitor.online_changed.connect(self.orchestrator.set_online)
        for gateway in container.gateways.values():
            gateway.set_notify(self._on_offline_saved)

        self.update_sync_indicator()
        self.connectivity_monitor.start()

    def _build_ui(self) -> None:
        central = QWidget()
        root = QHBoxLayout(central)
        root.setContentsMargins(12, 12, 12, 12)

        lateral = QVBoxLayout()
        self.role_combo = QComboBox()
        self.role_combo.addItems([role.value for role in Role])
        self.role_combo.setCurrentText(self._container.settings.role)
        self.role_combo.currentTextChanged.connect(self._on_role_changed)
        lateral.addWidget(self.role_combo)

        self.sidebar = QListWidget()
        self.sidebar.setMinimumWidth(260)
        lateral.addWidget(self.sidebar, 1)

        orden = QHBoxLayout()
        self.up_button = QPushButton("Subir")
        self.down_button = QPushButton("Bajar")
        self.pin_button = QPushButton("Fijar")
        self.progress_button = QPushButton("En progreso")
        for button in (self.up_button, self.down_button, self.pin_button, self.progress_button):
            orden.addWidget(button)
        lateral.addLayout(orden)
        self.reorder_button = QPushButton("Reordenar")
        self.reorder_button.setCheckable(True)
        lateral.addWidget(self.reorder_button)
        root.addLayout(lateral)

        contenido = QVBoxLayout()
        self.module_title = QLabel("Selecciona un módulo")
        self.module_title.setProperty("role", "sectionTitle")
        self.module_description = QLabel("")
        self.module_description.setWordWrap(True)
        contenido.addWidget(self.module_title)
        contenido.addWidget(self.module_description)
        contenido.addStretch(1)

        indicador = QHBoxLayout()
        indicador.addStretch(1)
        self.sync_badge = QLabel("")
        self.sync_badge.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.sync_detail = QLabel("")
        self.sync_button = QPushButton("Forzar Sync")
        self.history_button = QPushButton("Historial")
        for widget in (self.sync_badge, self.sync_detail, self.sync_button, self.history_button):
            indicador.addWidget(widget)
        contenido.addLayout(indicador)
        root.addLayout(contenido, 1)

        self.setCentralWidget(central)

        self.up_button.clicked.connect(lambda: self.modules.move_current_up())
        self.down_button.clicked.connect(lambda: self.modules.move_current_down())
        self.pin_button.clicked.connect(lambda: self.modules.toggle_pin_current())
        self.progress_button.clicked.connect(lambda: self.modules.toggle_in_progress_current())
        self.reorder_button.toggled.connect(lambda enabled: self.modules.set_reorder_mode(enabled))
        self.sync_button.clicked.connect(self.on_force_sync)
        self.history_button.clicked.connect(self.on_show_history)

    def update_sync_indicator(self) -> None:
        entrada: EstadoIndicadorSyncEntrada = self.orchestrator.indicator_input()
        decision = decidir_estado_indicador_sync(entrada)
        for widget in (self.sync_badge, self.sync_detail, self.sync_button, self.history_button):
            widget.setVisible(decision.visible)
        self.sync_badge.setText(decision.badge_text)
        self.sync_badge.setStyleSheet(_BADGE_STYLES[decision.badge_variant] + " padding: 2px 8px;")
        self.sync_detail.setText(" · ".join(decision.detalle))
        self.sync_button.setEnabled(decision.force_sync_enabled)
        self.sync_button.setText(decision.force_sync_text)
        self.sync_button.setToolTip(decision.reason_code)

    def on_force_sync(self) -> None:
        reason_code = self.orchestrator.request_manual_sync()
        notice = aviso_sync_manual(reason_code)
        if notice is not None:
            self.show_notice(notice)
        self.update_sync_indicator()

    def on_show_history(self) -> None:
        SyncHistoryDialog(self.orchestrator, self).exec()
        self.update_sync_indicator()

    def show_notice(self, notice: SyncNotice) -> None:
        logger.info("Aviso UI [%s]: %s", notice.severity, notice.message)
        self.statusBar().showMessage(notice.message, _NOTICE_TIMEOUT_MS)

    def _on_offline_saved(self, notice: SyncNotice) -> None:
        self.show_notice(notice)
        self.orchestrator.notify_queue_changed()

    def _on_sync_failed(self, payload: object) -> None:
        error = payload.get("error") if isinstance(payload, dict) else payload
        self.show_notice(SyncNotice("error", f"Error en la sincronización: {error}"))

    def _on_role_changed(self, role: str) -> None:
        logger.info("Cambio de rol activo: %s", role)
        self.modules.set_service(self._container.module_order_service("dashboard", role))

    def _on_module_selected(self, module: Module | None) -> None:
        if module is None:
            self.module_title.setText("Selecciona un módulo")
            self.module_description.setText("")
            return
        self.module_title.setText(module.title)
        self.module_description.setText(module.description)

    def closeEvent(self, event) -> None:  # noqa: N802
        self.connectivity_monitor.stop()
        self.orchestrator.shutdown()
        super().closeEvent(event)
