#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations
import argparse
import logging
import os
import sys
from dataclasses import replace
from typing import Optional

from PySide6.QtCore import Qt, QSizeF
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QToolBar, QStatusBar, QFileDialog, QMessageBox,
    QStyle, QLabel, QToolButton, QMenu, QWidgetAction
)

from beaconmap import (MapScene, MapView, MapSession, DevicePoller, SimulatedBackend,
                       PositioningBackend, ViewerConfig, load_config, setup_logging)
from beaconmap.config import settings, recent_maps, push_recent
from beaconmap.utils import MAP_FILE_FILTER

logger = logging.getLogger("beacon_viewer")

THEME_PATH = "beaconmap_theme.qss"


class MainWindow(QMainWindow):
    def __init__(self, config: Optional[ViewerConfig] = None,
                 backend: Optional[PositioningBackend] = None):
        super().__init__()
        self.config = config or load_config()
        self.setWindowTitle("Beacon Map")
        self.resize(1280, 860)

        # 1) Источник данных и сеанс
        self.backend = backend or SimulatedBackend(self)
        self.session = MapSession(self.backend, parent=self)
        self.poller = DevicePoller(self.backend, self.config.poll_interval_ms, self)
        self.poller.batchReady.connect(self.session.apply_batch)

        # 2) Сцена/вью
        self.scene = MapScene(self)
        self.view = MapView(self.scene, wheel_window_ms=self.config.wheel_window_ms)
        self.setCentralWidget(self.view)

        self.session.devicesChanged.connect(self.scene.set_devices)
        self.session.mapReplaced.connect(self.scene.set_map)
        self.session.devicesChanged.connect(lambda _: self._update_info())
        self.session.mapReplaced.connect(lambda *_: self._update_info())
        self.session.statusMessage.connect(self._status)
        self.view.scaleChanged.connect(lambda _: self._update_info())
        self.view.fileDropped.connect(self.open_map)
        self.view.hud.recordToggled.connect(self._set_recording)

        # 3) Тулбар/статус
        self._build_toolbar()
        self.setStatusBar(QStatusBar(self))
        self.lbl_info = QLabel(self)
        self.statusBar().addPermanentWidget(self.lbl_info)
        self._update_info()

        geo = settings().value("geometry")
        if geo is not None:
            self.restoreGeometry(geo)

        self.poller.start()
        self._status("Перетащите файл карты (.ini) в окно или откройте его через «Карта».")

    def _build_toolbar(self):
        tb = QToolBar("Панель", self)
        tb.setMovable(False)
        tb.setIconSize(QSizeF(18, 18).toSize())
        tb.setToolButtonStyle(Qt.ToolButtonTextBesideIcon)
        self.addToolBar(Qt.TopToolBarArea, tb)
        style = self.style()

        # ----- действия -----
        self.act_open = QAction(style.standardIcon(QStyle.SP_DirOpenIcon), "Открыть карту…", self)
        self.act_open.setShortcut(QKeySequence("Ctrl+O"))
        self.act_open.triggered.connect(self._open_map_dialog)

        self.act_open_last = QAction(style.standardIcon(QStyle.SP_BrowserReload), "Открыть последнюю", self)
        self.act_open_last.setShortcut(QKeySequence("Ctrl+Shift+O"))
        self.act_open_last.triggered.connect(self._open_last_map)

        self.act_reset_view = QAction(style.standardIcon(QStyle.SP_DesktopIcon), "Сбросить вид", self)
        self.act_reset_view.triggered.connect(self.view.reset_view)

        self.act_record = QAction(style.standardIcon(QStyle.SP_MediaPlay), "Запись", self, checkable=True)
        self.act_record.toggled.connect(self._set_recording)

        # ----- меню-кнопка «Карта» -----
        btn = QToolButton(self)
        btn.setText("Карта")
        btn.setIcon(style.standardIcon(QStyle.SP_DirOpenIcon))
        btn.setPopupMode(QToolButton.MenuButtonPopup)
        btn.setToolButtonStyle(Qt.ToolButtonTextBesideIcon)
        btn.setDefaultAction(self.act_open)
        self.map_menu = QMenu(btn)
        btn.setMenu(self.map_menu)
        wa = QWidgetAction(self); wa.setDefaultWidget(btn)
        tb.addAction(wa)
        self._rebuild_map_menu()

        tb.addSeparator()
        tb.addAction(self.act_reset_view)
        tb.addAction(self.act_record)

    def _rebuild_map_menu(self):
        m = self.map_menu
        m.clear()
        m.addAction(self.act_open)
        m.addAction(self.act_open_last)
        recent = recent_maps()
        self.act_open_last.setEnabled(bool(recent))
        if recent:
            m.addSeparator()
            for path in recent:
                act = m.addAction(os.path.basename(path))
                act.setToolTip(path)
                act.triggered.connect(lambda _=False, p=path: self.open_map(p))

    # ---- карта ----
    def open_map(self, path: str):
        if not path:
            return
        if not os.path.exists(path):
            QMessageBox.critical(self, "Ошибка открытия", f"Файл не найден:\n{path}")
            return
        if self.session.load_map(path):
            push_recent(path)
            self._rebuild_map_menu()
        else:
            QMessageBox.critical(self, "Ошибка открытия", f"Не удалось прочитать карту:\n{path}")

    def _open_map_dialog(self):
        path, _ = QFileDialog.getOpenFileName(self, "Открыть карту", "", MAP_FILE_FILTER)
        if path:
            self.open_map(path)

    def _open_last_map(self):
        recent = recent_maps()
        if recent:
            self.open_map(recent[0])

    # ---- запись ----
    def _set_recording(self, on: bool):
        self.session.set_recording(on)
        # HUD и тулбар показывают одно и то же
        self.view.hud.set_recording(on)
        if self.act_record.isChecked() != on:
            self.act_record.blockSignals(True)
            self.act_record.setChecked(on)
            self.act_record.blockSignals(False)

    # ---- статус ----
    def _status(self, text: str):
        self.statusBar().showMessage(text, 3000)

    def _update_info(self):
        s = self.view.controller.viewport.scale
        n = len(self.session.devices)
        plan = "план есть" if self.session.plan is not None else "нет плана"
        self.lbl_info.setText(f"Масштаб: {s:.1f} px/м | Устройств: {n} | {plan}")

    def closeEvent(self, event):
        self.poller.stop()
        if self.session.recording:
            self.session.set_recording(False)
        self.session.close()
        settings().setValue("geometry", self.saveGeometry())
        super().closeEvent(event)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Live beacon map over a floor plan.")
    parser.add_argument("map", nargs="?", help="map file (.ini) to open on start")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="overrides BEACONMAP_LOG_LEVEL")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config = load_config()
    if args.log_level:
        config = replace(config, log_level=args.log_level)
    setup_logging(config.log_level)

    app = QApplication(sys.argv[:1])
    try:
        with open(THEME_PATH, "r", encoding="utf-8") as f:
            app.setStyleSheet(f.read())
    except OSError:
        pass
    win = MainWindow(config)
    win.show()
    if args.map:
        win.open_map(args.map)
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
