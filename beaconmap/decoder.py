from __future__ import annotations
import logging
from typing import Optional

from PySide6.QtCore import (QObject, QRunnable, QThreadPool, QTimer, QBuffer, QByteArray,
                            QIODevice, QMimeDatabase, Signal, Slot)
from PySide6.QtGui import QImage, QImageReader

from .errors import DecodeError, DecodeFailed, StaleDecode, UnknownFormat

logger = logging.getLogger(__name__)


def resolve_media_type(ext: str) -> str:
    ext = (ext or "").strip().lstrip(".").lower()
    if not ext:
        raise UnknownFormat(ext)
    mt = QMimeDatabase().mimeTypeForFile(f"plan.{ext}", QMimeDatabase.MatchMode.MatchExtension)
    if not mt.isValid() or mt.isDefault():
        raise UnknownFormat(ext)
    return mt.name()


def decode_image(data: bytes, ext: str) -> QImage:
    """Синхронно декодирует байты плана в QImage.

    Байты живут во временном QBuffer, который закрывается при любом исходе;
    возвращённый QImage владеет своими пикселями сам.
    """
    media_type = resolve_media_type(ext)
    if not data:
        raise DecodeFailed(f"empty {media_type} payload")

    buf = QBuffer()
    buf.setData(QByteArray(bytes(data)))
    if not buf.open(QIODevice.OpenModeFlag.ReadOnly):
        raise DecodeFailed(f"cannot open in-memory buffer for {media_type}")
    try:
        reader = QImageReader(buf)
        reader.setDecideFormatFromContent(True)
        image = reader.read()
        if image.isNull():
            raise DecodeFailed(f"cannot decode {media_type}: {reader.errorString()}")
        return image
    except DecodeError:
        raise
    except Exception as e:
        raise DecodeFailed(f"cannot decode {media_type}: {e}", e) from e
    finally:
        buf.close()
        buf.setData(QByteArray())


class _DecodeSignals(QObject):
    done = Signal(int, object)    # generation, QImage | DecodeError


class _DecodeTask(QRunnable):
    def __init__(self, generation: int, data: bytes, ext: str, signals: _DecodeSignals):
        super().__init__()
        self.generation = generation
        self.data = data
        self.ext = ext
        self.signals = signals

    def run(self):
        try:
            result = decode_image(self.data, self.ext)
        except DecodeError as e:
            result = e
        except Exception as e:
            # done уходит при любом исходе
            logger.exception("floor plan decode #%d crashed", self.generation)
            result = DecodeFailed(str(e), e)
        self.signals.done.emit(self.generation, result)


class ImageDecoder(QObject):
    """Асинхронный декодер плана с поколениями.

    Каждый decode() получает номер; результат применяется только если номер
    всё ещё последний, иначе он отбрасывается (StaleDecode).
    """
    decoded = Signal(int, QImage)
    failed = Signal(int, object)

    def __init__(self, parent: Optional[QObject] = None, pool: Optional[QThreadPool] = None):
        super().__init__(parent)
        self._pool = pool or QThreadPool.globalInstance()
        self._generation = 0
        self._signals = _DecodeSignals(self)
        self._signals.done.connect(self._on_done)

    @property
    def latest(self) -> int:
        return self._generation

    def decode(self, data: bytes, ext: str) -> int:
        self._generation += 1
        gen = self._generation
        try:
            resolve_media_type(ext)
        except UnknownFormat as e:
            err = e
            # результат всё равно отдаём асинхронно, тем же путём
            QTimer.singleShot(0, lambda: self._on_done(gen, err))
            return gen
        self._pool.start(_DecodeTask(gen, bytes(data), ext, self._signals))
        return gen

    def cancel(self):
        self._generation += 1

    @Slot(int, object)
    def _on_done(self, generation: int, result: object):
        if generation != self._generation:
            logger.debug("dropping result: %s", StaleDecode(generation, self._generation))
            return
        if isinstance(result, DecodeError):
            logger.warning("floor plan decode #%d failed: %s", generation, result)
            self.failed.emit(generation, result)
            return
        self.decoded.emit(generation, result)
