from __future__ import annotations
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QBrush, QFont, QPixmap
from PySide6.QtWidgets import QGraphicsEllipseItem, QGraphicsPixmapItem, QGraphicsSimpleTextItem

from .models import DeviceReading, FloorPlanAsset
from .utils import (ANCHOR_COLOR, TAG_COLOR, LABEL_COLOR, MARKER_RADIUS,
                    LABEL_OFFSET_X, LABEL_OFFSET_Y, LABEL_FONT_SIZE, label_text)

# шрифт меньше 1 px Qt не рисует: берём в 100 раз крупнее и уменьшаем сам item
_LABEL_UPSCALE = 100.0


class DeviceMarker(QGraphicsEllipseItem):
    """Кружок устройства в координатах сцены (x, -y), в метрах."""

    def __init__(self, reading: DeviceReading):
        r = MARKER_RADIUS
        super().__init__(-r, -r, 2 * r, 2 * r)
        self.setPen(Qt.NoPen)
        self.setZValue(10)
        self.reading: Optional[DeviceReading] = None

        self.label = QGraphicsSimpleTextItem(self)
        font = QFont("Roboto")
        font.setPixelSize(int(LABEL_FONT_SIZE * _LABEL_UPSCALE))
        self.label.setFont(font)
        self.label.setBrush(QBrush(LABEL_COLOR))
        self.label.setScale(1.0 / _LABEL_UPSCALE)
        self.label.setPos(LABEL_OFFSET_X, LABEL_OFFSET_Y)

        self.set_reading(reading)

    def set_reading(self, reading: DeviceReading) -> bool:
        # тот же объект: reconcile его не трогал, перерисовывать нечего
        if reading is self.reading:
            return False
        self.reading = reading
        self.setPos(reading.x, -reading.y)
        self.setBrush(QBrush(TAG_COLOR if reading.is_hedge else ANCHOR_COLOR))
        self.label.setVisible(reading.is_hedge)
        if reading.is_hedge:
            self.label.setText(label_text(reading.x, reading.y, reading.q))
        kind = "Метка" if reading.is_hedge else "Якорь"
        self.setToolTip(f"{kind} #{reading.address}\n{label_text(reading.x, reading.y, reading.q)}")
        return True


class FloorPlanItem(QGraphicsPixmapItem):
    def __init__(self):
        super().__init__()
        self.setTransformationMode(Qt.SmoothTransformation)
        self.setZValue(-1)
        self.asset: Optional[FloorPlanAsset] = None

    def set_asset(self, asset: Optional[FloorPlanAsset]):
        if asset is self.asset:
            return
        self.asset = asset
        if asset is None:
            # прежний pixmap отпускаем сразу
            self.setPixmap(QPixmap())
            return
        self.setPixmap(QPixmap.fromImage(asset.image))
        self.setScale(1.0 / asset.pixels_per_m)
        self.setPos(asset.x, -asset.y)
