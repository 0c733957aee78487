from __future__ import annotations
import logging
import math
import time
from dataclasses import replace
from typing import Callable, Iterable, List, Optional

from PySide6.QtCore import QObject, Signal

from .models import DeviceReading, Role

logger = logging.getLogger(__name__)


class PositioningBackend(QObject):
    """Интерфейс к системе позиционирования.

    start/start_recording/stop_recording: сигналы «выстрелил и забыл»,
    logMessage: именованный канал текстовых сообщений.
    """
    logMessage = Signal(str)

    def start(self):
        raise NotImplementedError

    def read_devices(self) -> List[DeviceReading]:
        raise NotImplementedError

    def start_recording(self):
        raise NotImplementedError

    def stop_recording(self):
        raise NotImplementedError

    def seed(self, anchors: Iterable[DeviceReading]):
        """Якоря из только что загруженной карты (по умолчанию не нужны)."""

    def send_log(self, msg: str):
        logger.info("%s", msg)
        self.logMessage.emit(msg)


class SimulatedBackend(PositioningBackend):
    """Демо-источник без железа: якоря стоят, метки ходят по кругу,
    изредка отдавая показание с низким q."""

    def __init__(self, parent: Optional[QObject] = None, tags: int = 2,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(parent)
        self.tags = tags
        self._clock = clock
        self._anchors: List[DeviceReading] = []
        self._running = False
        self._recording = False
        self._t0 = 0.0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def recording(self) -> bool:
        return self._recording

    def seed(self, anchors: Iterable[DeviceReading]):
        self._anchors = [a for a in anchors if a.role == Role.ANCHOR]

    def start(self):
        if self._running:
            return
        self._running = True
        self._t0 = self._clock()
        self.send_log(f"simulation started: {len(self._anchors)} anchors, {self.tags} tags")

    def _orbit(self):
        if not self._anchors:
            return 0.0, 0.0, 2.0
        cx = sum(a.x for a in self._anchors) / len(self._anchors)
        cy = sum(a.y for a in self._anchors) / len(self._anchors)
        r = max(math.hypot(a.x - cx, a.y - cy) for a in self._anchors) * 0.6
        return cx, cy, max(r, 0.5)

    def read_devices(self) -> List[DeviceReading]:
        if not self._running:
            return []
        t = self._clock() - self._t0
        out = [replace(a, q=100) for a in self._anchors]
        cx, cy, r = self._orbit()
        first = max((a.address for a in self._anchors), default=0) + 1
        for i in range(self.tags):
            phase = t * 0.4 + i * 2 * math.pi / max(self.tags, 1)
            # примерно раз в 17 тиков метка «теряется» (q ниже порога)
            q = 30 if int(t * 10 + i) % 17 == 0 else 95
            out.append(DeviceReading(address=first + i, role=Role.TAG,
                                     x=cx + r * math.cos(phase),
                                     y=cy + r * math.sin(phase), q=q))
        return out

    def start_recording(self):
        self._recording = True
        self.send_log("recording started")

    def stop_recording(self):
        self._recording = False
        self.send_log("recording stopped")
