from __future__ import annotations

from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QLabel,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
)

from panel.ui.controllers.sync_orchestrator import SyncOrchestrator
from panel.ui.sync_history_presenter import construir_filas_historial


class SyncHistoryDialog(QDialog):
    def __init__(self, orchestrator: SyncOrchestrator, parent=None) -> None:
        super().__init__(parent)
        self._orchestrator = orchestrator
        self.setWindowTitle("Historial de sincronización")
        self.resize(560, 420)

        layout = QVBoxLayout(self)
        self.empty_label = QLabel("No hay sincronizaciones registradas")
        self.empty_label.setProperty("role", "secondary")
        layout.addWidget(self.empty_label)

        self.tree = QTreeWidget()
        self.tree.setHeaderLabels(["Fecha", "Resumen"])
        layout.addWidget(self.tree, 1)

        botones = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        self.clear_button = QPushButton("Limpiar historial")
        botones.addButton(self.clear_button, QDialogButtonBox.ButtonRole.ActionRole)
        botones.rejected.connect(self.reject)
        self.clear_button.clicked.connect(self._on_clear)
        layout.addWidget(botones)

        self.refresh()

    def refresh(self) -> None:
        self.tree.clear()
        filas = construir_filas_historial(self._orchestrator.history())
        for fila in filas:
            item = QTreeWidgetItem([fila.fecha, fila.resumen])
            for detalle in fila.detalles:
                item.addChild(QTreeWidgetItem(["", detalle]))
            self.tree.addTopLevelItem(item)
        self.empty_label.setVisible(not filas)
        self.clear_button.setEnabled(bool(filas))

    def _on_clear(self) -> None:
        self._orchestrator.clear_history()
        self.refresh()
