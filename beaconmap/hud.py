from __future__ import annotations
from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QWidget, QHBoxLayout, QToolButton


class RecordHUD(QWidget):
    """Плашка в правом верхнем углу холста с переключателем записи."""
    recordToggled = Signal(bool)

    MARGIN = 20

    def __init__(self, view):
        super().__init__(view.viewport())
        self.view = view
        self.setObjectName("RecordHUD")
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setStyleSheet("""
            QWidget#RecordHUD { background: rgba(255,255,255,0.95); border:1px solid #e7e8ee; border-radius:12px; }
            QToolButton#RecordBtn { border:none; padding:6px 12px; border-radius:10px; font-weight:600; }
            QToolButton#RecordBtn:hover { background:#f2f4f7; }
            QToolButton#RecordBtn:checked { background:#c62828; color:white; }
        """)

        lay = QHBoxLayout(self)
        lay.setContentsMargins(6, 6, 6, 6)

        self.btn_record = QToolButton(self)
        self.btn_record.setObjectName("RecordBtn")
        self.btn_record.setText("● Record")
        self.btn_record.setToolTip("Запись положений меток")
        self.btn_record.setCheckable(True)
        self.btn_record.toggled.connect(self.recordToggled)
        lay.addWidget(self.btn_record)

        self.resize(self.sizeHint())
        self.show()
        self.raise_()

    def set_recording(self, on: bool):
        self.btn_record.blockSignals(True)
        self.btn_record.setChecked(on)
        self.btn_record.blockSignals(False)

    def reposition(self):
        vw = self.view.viewport().width()
        self.move(vw - self.width() - self.MARGIN, self.MARGIN)
