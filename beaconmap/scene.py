from __future__ import annotations
import logging
import math
from typing import Dict, Optional

from PySide6.QtCore import Qt, QLineF, QRectF, QTimer, Signal
from PySide6.QtGui import QPainter, QPen, QColor, QTransform, QWheelEvent
from PySide6.QtWidgets import QGraphicsScene, QGraphicsView, QFrame

from .hud import RecordHUD
from .items import DeviceMarker, FloorPlanItem
from .models import DeviceSet, FloorPlanAsset, Viewport
from .utils import BG_COLOR, WHEEL_WINDOW_MS
from .viewport import ViewportController

logger = logging.getLogger(__name__)

# ===== Grid (в метрах) =====
GRID_STEP = 1.0
MAJOR_EVERY = 5
GRID_MINOR = QColor("#D0D6E0")
GRID_MAJOR = QColor("#A8B3C2")


class MapScene(QGraphicsScene):
    """Шаг отрисовки: только читает DeviceSet и план, сам их не меняет."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.setItemIndexMethod(QGraphicsScene.NoIndex)
        self._markers: Dict[int, DeviceMarker] = {}
        self._devices = DeviceSet()
        self._plan: Optional[FloorPlanAsset] = None
        self.plan_item = FloorPlanItem()
        self.addItem(self.plan_item)
        self._sync_visibility()

    @property
    def ready(self) -> bool:
        return self._plan is not None and len(self._devices) > 0

    def marker(self, address: int) -> Optional[DeviceMarker]:
        return self._markers.get(address)

    def set_devices(self, devices: DeviceSet) -> int:
        """Возвращает число маркеров, которые пришлось обновить или создать."""
        if devices is self._devices:
            return 0
        touched = 0
        for reading in devices:
            m = self._markers.get(reading.address)
            if m is None:
                m = DeviceMarker(reading)
                self.addItem(m)
                self._markers[reading.address] = m
                touched += 1
            elif m.set_reading(reading):
                touched += 1
        # при смене карты часть адресов исчезает
        for address in [a for a in self._markers if a not in devices]:
            self.removeItem(self._markers.pop(address))
        self._devices = devices
        self._sync_visibility()
        return touched

    def set_map(self, devices: DeviceSet, plan: Optional[FloorPlanAsset]):
        self._plan = plan
        self.plan_item.set_asset(plan)
        self.set_devices(devices)
        self._sync_visibility()

    def _sync_visibility(self):
        # пока нет и плана, и устройств, рисовать нечего
        on = self.ready
        self.plan_item.setVisible(on)
        for m in self._markers.values():
            m.setVisible(on)

    def drawBackground(self, painter: QPainter, rect: QRectF):
        painter.fillRect(rect, BG_COLOR)
        step = GRID_STEP
        # на сильном отдалении линии сливаются, оставляем только крупные
        px = painter.transform().m11() * step
        if px < 4:
            step *= MAJOR_EVERY
        left = math.floor(rect.left() / step) * step
        top = math.floor(rect.top() / step) * step
        x = left; i = int(round(x / step))
        while x < rect.right():
            is_major = (i % MAJOR_EVERY == 0)
            painter.setPen(QPen(GRID_MAJOR if is_major else GRID_MINOR, 0))
            painter.drawLine(QLineF(x, rect.top(), x, rect.bottom()))
            x += step; i += 1
        y = top; j = int(round(y / step))
        while y < rect.bottom():
            is_major = (j % MAJOR_EVERY == 0)
            painter.setPen(QPen(GRID_MAJOR if is_major else GRID_MINOR, 0))
            painter.drawLine(QLineF(rect.left(), y, rect.right(), y))
            y += step; j += 1


class MapView(QGraphicsView):
    """Холст: события мыши/колеса/ресайза -> ViewportController -> transform."""
    scaleChanged = Signal(float)
    fileDropped = Signal(str)

    def __init__(self, scene: MapScene, controller: Optional[ViewportController] = None,
                 wheel_window_ms: int = WHEEL_WINDOW_MS):
        super().__init__(scene)
        self.setRenderHint(QPainter.Antialiasing, True)
        self.setViewportUpdateMode(QGraphicsView.BoundingRectViewportUpdate)
        self.setDragMode(QGraphicsView.NoDrag)
        self.setTransformationAnchor(QGraphicsView.NoAnchor)
        self.setResizeAnchor(QGraphicsView.NoAnchor)
        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setFrameShape(QFrame.NoFrame)
        self.setAcceptDrops(True)

        self.controller = controller or ViewportController(wheel_window_ms=wheel_window_ms)
        self.controller.add_listener(self._on_viewport)
        self._mounted = False

        # отложенное (последнее) событие колеса применяем по окончании окна
        self._wheel_timer = QTimer(self)
        self._wheel_timer.setSingleShot(True)
        self._wheel_timer.timeout.connect(self._flush_wheel)

        self.hud = RecordHUD(self)
        self.hud.reposition()

    # ---- transform ----
    def _on_viewport(self, vp: Viewport):
        s = vp.scale
        self.setTransform(QTransform.fromScale(s, s))
        w = max(vp.width, 1); h = max(vp.height, 1)
        # сцена ровно в размер окна: scene -> viewport = origin + p * scale
        self.setSceneRect(QRectF(-vp.origin_x / s, -vp.origin_y / s, w / s, h / s))
        for bar in (self.horizontalScrollBar(), self.verticalScrollBar()):
            bar.setValue(bar.minimum())
        self.scaleChanged.emit(s)

    def reset_view(self):
        size = self.viewport().size()
        self.controller.reset(size.width(), size.height())

    def resizeEvent(self, event):
        super().resizeEvent(event)
        size = self.viewport().size()
        if not self._mounted:
            self._mounted = True
            self.controller.reset(size.width(), size.height())
        else:
            self.controller.on_resize(size.width(), size.height())
        if self.hud:
            self.hud.reposition()

    # ---- колесо ----
    def wheelEvent(self, event: QWheelEvent):
        dy = event.angleDelta().y()
        if dy == 0:
            event.ignore()
            return
        pos = event.position()
        # у Qt «от себя» > 0, у контроллера приближение это delta_y < 0
        self.controller.on_wheel((pos.x(), pos.y()), -dy)
        self._arm_wheel_timer()
        event.accept()

    def _arm_wheel_timer(self):
        delay = self.controller.wheel_pending_delay()
        if delay is not None and not self._wheel_timer.isActive():
            self._wheel_timer.start(int(math.ceil(delay * 1000)))

    def _flush_wheel(self):
        self.controller.flush_wheel()
        self._arm_wheel_timer()

    # ---- перетаскивание ----
    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            p = event.position()
            self.controller.on_drag_start((p.x(), p.y()))
            self.viewport().setCursor(Qt.ClosedHandCursor)
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self.controller.dragging and event.buttons() & Qt.LeftButton:
            p = event.position()
            self.controller.on_drag_move((p.x(), p.y()))
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton and self.controller.dragging:
            self.controller.on_drag_end()
            self.viewport().unsetCursor()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key_Home:
            self.reset_view()
            event.accept()
            return
        super().keyPressEvent(event)

    # ---- DnD файла карты ----
    def dragEnterEvent(self, event):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            event.ignore()

    def dragMoveEvent(self, event):
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event):
        paths = [u.toLocalFile() for u in event.mimeData().urls() if u.isLocalFile()]
        if not paths:
            event.ignore()
            return
        logger.info("map dropped: %s", paths[0])
        self.fileDropped.emit(paths[0])
        event.acceptProposedAction()
