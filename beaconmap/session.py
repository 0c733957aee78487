from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Union

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from .backend import PositioningBackend
from .decoder import ImageDecoder, resolve_media_type
from .errors import DecodeError, UnknownFormat
from .mapfile import parse_map
from .models import DeviceReading, DeviceSet, FloorPlanAsset, PlanSource
from .reconciler import reconcile

logger = logging.getLogger(__name__)


@dataclass
class _PendingMap:
    generation: int
    devices: List[DeviceReading]
    source: PlanSource = field(repr=False)
    label: str = ""


class MapSession(QObject):
    """Единственный владелец DeviceSet и FloorPlanAsset.

    Опросы вливаются через reconcile(); новая карта (якоря + план) ставится
    целиком, только когда план декодирован.
    """
    devicesChanged = Signal(object)          # DeviceSet
    mapReplaced = Signal(object, object)     # DeviceSet, FloorPlanAsset | None
    statusMessage = Signal(str)

    def __init__(self, backend: PositioningBackend, decoder: Optional[ImageDecoder] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.backend = backend
        self.decoder = decoder or ImageDecoder(self)
        self.devices = DeviceSet()
        self.plan: Optional[FloorPlanAsset] = None
        self.recording = False
        self._last_seq = 0
        self._pending: Optional[_PendingMap] = None

        self.decoder.decoded.connect(self._on_decoded)
        self.decoder.failed.connect(self._on_decode_failed)
        self.backend.logMessage.connect(self.statusMessage)

    @property
    def loading(self) -> bool:
        return self._pending is not None

    @property
    def ready(self) -> bool:
        """Есть что рисовать: и план, и хотя бы одно устройство."""
        return self.plan is not None and len(self.devices) > 0

    # ---- опрос ----
    def apply_batch(self, seq: int, batch: Iterable[DeviceReading]) -> bool:
        if seq <= self._last_seq:
            logger.debug("dropping superseded poll #%d (last applied #%d)", seq, self._last_seq)
            return False
        self._last_seq = seq
        nxt, changed = reconcile(self.devices, batch)
        if changed:
            self.devices = nxt
            self.devicesChanged.emit(nxt)
        return changed

    # ---- карта ----
    def load_map(self, path: Union[str, Path]) -> bool:
        devices, source = parse_map(path)
        if source is None:
            self.statusMessage.emit(f"Не удалось прочитать карту: {Path(path).name}")
            return False
        self.begin_map(devices, source, Path(path).name)
        return True

    def begin_map(self, devices: Iterable[DeviceReading], source: PlanSource, label: str = ""):
        devices = list(devices)
        try:
            resolve_media_type(source.ext)
        except UnknownFormat as e:
            # план показать нельзя, но якоря пригодны
            logger.warning("map %s: %s", label or "?", e)
            self.decoder.cancel()
            self._pending = None
            self.statusMessage.emit(f"Неизвестный формат плана: .{source.ext}")
            self._commit(devices, None)
            return
        gen = self.decoder.decode(source.data, source.ext)
        self._pending = _PendingMap(gen, devices, source, label)
        self.statusMessage.emit(f"Загрузка плана: {label}" if label else "Загрузка плана…")

    def _on_decoded(self, generation: int, image: QImage):
        p = self._pending
        if p is None or p.generation != generation:
            return
        self._pending = None
        s = p.source
        self._commit(p.devices, FloorPlanAsset(s.x, s.y, s.pixels_per_m, image))
        self.statusMessage.emit(f"Карта загружена: {p.label}" if p.label else "Карта загружена")

    def _on_decode_failed(self, generation: int, error: DecodeError):
        p = self._pending
        if p is None or p.generation != generation:
            return
        self._pending = None
        # прежние якоря и план остаются на экране
        logger.error("map %s not applied: %s", p.label or "?", error)
        self.statusMessage.emit(f"Не удалось декодировать план: {error}")

    def _commit(self, devices: List[DeviceReading], plan: Optional[FloorPlanAsset]):
        self.devices = DeviceSet.seed(devices)
        self.plan = plan
        self.mapReplaced.emit(self.devices, self.plan)
        self.backend.seed(devices)
        self.backend.start()

    # ---- управление сеансом ----
    def set_recording(self, on: bool):
        if on == self.recording:
            return
        self.recording = on
        if on:
            self.backend.start_recording()
        else:
            self.backend.stop_recording()

    def close(self):
        self.decoder.cancel()
        self._pending = None
        self.plan = None
