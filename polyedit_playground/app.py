"""Main window for the polyline playground."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QApplication,
    QDockWidget,
    QFileDialog,
    QHBoxLayout,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from polyedit_core.config import load_config
from polyedit_core.details import describe
from polyedit_core.dxf_reader import DrawingLoadError, read_dxf
from polyedit_playground.widgets import Canvas

logger = logging.getLogger(__name__)

_FILE_FILTERS = {
    ".json": "JSON Files (*.json)",
    ".dxf": "DXF Files (*.dxf)",
    ".svg": "SVG Files (*.svg)",
}


class Main(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("polyedit playground")
        self.canvas = Canvas(load_config(), clipboard=self._copy_to_clipboard, saver=self._save_file)
        self.session = self.canvas.session
        self.setCentralWidget(self.canvas)

        self._build_toolbar()
        self._build_layer_dock()
        self._build_json_dock()
        self._build_detail_dock()

        self.canvas.status_changed.connect(self._show_status)
        self.canvas.document_changed.connect(self._on_document_changed)
        self.canvas.selection_changed.connect(self._refresh_details)
        self.statusBar().showMessage("Open a DXF or JSON drawing to begin", 4000)

    # ------------------------------------------------------------------
    # Layout
    def _build_toolbar(self) -> None:
        toolbar = QToolBar("Main", self)
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        open_action = QAction("Open…", self)
        open_action.setShortcut(QKeySequence.Open)
        open_action.triggered.connect(self._open_file)
        toolbar.addAction(open_action)
        toolbar.addSeparator()

        for label, command in (
            ("Export JSON", "export json"),
            ("Export DXF", "export dxf"),
            ("Export SVG", "export svg"),
            ("Copy JSON", "copy"),
            ("Fit", "fit"),
            ("Clear", "clear"),
        ):
            action = QAction(label, self)
            action.triggered.connect(lambda _checked=False, cmd=command: self.canvas.run_command(cmd))
            toolbar.addAction(action)
        toolbar.addSeparator()

        self._command_line = QLineEdit(self)
        self._command_line.setPlaceholderText("move dx dy | scale sx [sy] | rotate deg | delete | fit …")
        self._command_line.returnPressed.connect(self._submit_command)
        toolbar.addWidget(self._command_line)

    def _build_layer_dock(self) -> None:
        self._layer_list = QListWidget(self)
        self._layer_list.itemChanged.connect(self._on_layer_toggled)
        dock = QDockWidget("Layers", self)
        dock.setWidget(self._layer_list)
        self.addDockWidget(Qt.LeftDockWidgetArea, dock)

    def _build_json_dock(self) -> None:
        panel = QWidget(self)
        layout = QVBoxLayout(panel)
        self._json_edit = QPlainTextEdit(panel)
        layout.addWidget(self._json_edit)
        buttons = QHBoxLayout()
        refresh = QPushButton("Refresh", panel)
        refresh.clicked.connect(self._refresh_json)
        apply = QPushButton("Apply", panel)
        apply.clicked.connect(self._apply_json)
        buttons.addWidget(refresh)
        buttons.addWidget(apply)
        layout.addLayout(buttons)
        dock = QDockWidget("JSON", self)
        dock.setWidget(panel)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    def _build_detail_dock(self) -> None:
        self._detail_table = QTableWidget(0, 2, self)
        self._detail_table.setHorizontalHeaderLabels(["Property", "Value"])
        self._detail_table.horizontalHeader().setStretchLastSection(True)
        self._detail_table.verticalHeader().setVisible(False)
        dock = QDockWidget("Details", self)
        dock.setWidget(self._detail_table)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    # ------------------------------------------------------------------
    # Clipboard & files
    def _copy_to_clipboard(self, text: str) -> None:  # pragma: no cover - GUI entry point
        QApplication.clipboard().setText(text)

    def _save_file(self, default_name: str, payload: str) -> None:  # pragma: no cover - GUI entry point
        suffix = Path(default_name).suffix
        path, _ = QFileDialog.getSaveFileName(self, "Export", default_name, _FILE_FILTERS.get(suffix, "All Files (*)"))
        if not path:
            raise RuntimeError("Export cancelled")
        Path(path).write_text(payload, encoding="utf-8")

    def _open_file(self) -> None:  # pragma: no cover - GUI entry point
        path, _ = QFileDialog.getOpenFileName(self, "Open drawing", "", "Drawings (*.dxf *.json);;All Files (*)")
        if not path:
            return
        try:
            if path.lower().endswith(".dxf"):
                count = self.session.load_parsed(read_dxf(path, self.session.config.flatten_distance))
            else:
                count = self.session.apply_json_text(Path(path).read_text(encoding="utf-8"))
                if count:
                    self.session.fit_to_content()
        except (DrawingLoadError, OSError, ValueError) as exc:
            logger.warning("Could not open %s: %s", path, exc)
            QMessageBox.warning(self, "Open failed", str(exc))
            return
        self.canvas.editor.reset()
        self._show_status(f"Loaded {count} polyline(s) from {Path(path).name}")
        self.canvas.notify_changed()

    # ------------------------------------------------------------------
    # Event handlers
    def _submit_command(self) -> None:  # pragma: no cover - GUI entry point
        text = self._command_line.text()
        if self.canvas.run_command(text):
            self._command_line.clear()

    def _show_status(self, message: str) -> None:
        if message:
            self.statusBar().showMessage(message, 4000)
        else:
            self.statusBar().clearMessage()

    def _refresh_json(self) -> None:  # pragma: no cover - GUI entry point
        self.canvas.run_command("refresh-json")
        self._json_edit.setPlainText(self.session.json_text)

    def _apply_json(self) -> None:  # pragma: no cover - GUI entry point
        self.session.json_text = self._json_edit.toPlainText()
        self.canvas.run_command("apply-json")

    def _on_document_changed(self) -> None:  # pragma: no cover - GUI entry point
        self._rebuild_layers()
        self._refresh_details()

    def _rebuild_layers(self) -> None:  # pragma: no cover - GUI entry point
        states = self.canvas.layer_states()
        shown = [self._layer_list.item(row).text() for row in range(self._layer_list.count())]
        blocked = self._layer_list.blockSignals(True)
        if shown == list(states):
            for row, visible in enumerate(states.values()):
                self._layer_list.item(row).setCheckState(Qt.Checked if visible else Qt.Unchecked)
            self._layer_list.blockSignals(blocked)
            return
        self._layer_list.clear()
        for name, visible in states.items():
            entry = QListWidgetItem(name)
            entry.setFlags(entry.flags() | Qt.ItemIsUserCheckable)
            entry.setCheckState(Qt.Checked if visible else Qt.Unchecked)
            self._layer_list.addItem(entry)
        self._layer_list.blockSignals(blocked)

    def _on_layer_toggled(self, entry: QListWidgetItem) -> None:  # pragma: no cover - GUI entry point
        self.session.set_layer_visible(entry.text(), entry.checkState() == Qt.Checked)
        self.session.validate_selection()
        self.canvas.notify_changed()

    def _refresh_details(self) -> None:  # pragma: no cover - GUI entry point
        item = self.session.selected_item()
        rows = describe(item) if item is not None else []
        self._detail_table.setRowCount(len(rows))
        for row, (label, value) in enumerate(rows):
            self._detail_table.setItem(row, 0, QTableWidgetItem(label))
            self._detail_table.setItem(row, 1, QTableWidgetItem(value))


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    window = Main()
    window.resize(1280, 800)
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
