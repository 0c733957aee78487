from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from typing import List

import pytest
from PySide6.QtCore import QBuffer, QIODevice
from PySide6.QtGui import QColor, QImage

from beaconmap.backend import PositioningBackend
from beaconmap.models import DeviceReading


class FakeBackend(PositioningBackend):
    def __init__(self) -> None:
        super().__init__()
        self.calls: List[str] = []
        self.batches: list = []
        self.seeded: List[DeviceReading] = []

    def start(self) -> None:
        self.calls.append("start")

    def read_devices(self) -> List[DeviceReading]:
        item = self.batches.pop(0) if self.batches else []
        if isinstance(item, Exception):
            raise item
        return item

    def start_recording(self) -> None:
        self.calls.append("start_recording")

    def stop_recording(self) -> None:
        self.calls.append("stop_recording")

    def seed(self, anchors) -> None:
        self.seeded = list(anchors)


@pytest.fixture
def fake_backend(qapp) -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def png_bytes(qapp):
    def _make(width: int = 4, height: int = 3, color: str = "red") -> bytes:
        img = QImage(width, height, QImage.Format_RGB32)
        img.fill(QColor(color))
        buf = QBuffer()
        buf.open(QIODevice.OpenModeFlag.WriteOnly)
        assert img.save(buf, "PNG")
        buf.close()
        return bytes(buf.data().data())

    return _make
