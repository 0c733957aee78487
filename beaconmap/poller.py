from __future__ import annotations
import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from .backend import PositioningBackend
from .utils import POLL_INTERVAL_MS

logger = logging.getLogger(__name__)


class DevicePoller(QObject):
    """Опрашивает backend по таймеру и отдаёт пакеты с порядковым номером."""
    batchReady = Signal(int, object)    # seq, list[DeviceReading]

    def __init__(self, backend: PositioningBackend, interval_ms: int = POLL_INTERVAL_MS,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.backend = backend
        self._seq = 0
        self._failing = False
        self._timer = QTimer(self)
        self._timer.setInterval(max(1, int(interval_ms)))
        self._timer.timeout.connect(self.poll_once)

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    @property
    def interval_ms(self) -> int:
        return self._timer.interval()

    def start(self):
        if not self._timer.isActive():
            self._timer.start()

    def stop(self):
        self._timer.stop()

    def poll_once(self) -> Optional[int]:
        self._seq += 1
        seq = self._seq
        try:
            batch = list(self.backend.read_devices())
        except Exception:
            # опрос идёт каждые ~10 мс: полный traceback пишем один раз на серию сбоев
            if not self._failing:
                logger.exception("read_devices failed, keeping previous devices")
            else:
                logger.debug("read_devices still failing (poll #%d)", seq)
            self._failing = True
            return None
        if self._failing:
            logger.info("read_devices recovered at poll #%d", seq)
            self._failing = False
        self.batchReady.emit(seq, batch)
        return seq
