from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from .models import Viewport
from .utils import MIN_SCALE, MAX_SCALE, ZOOM_FACTOR, WHEEL_WINDOW_MS, clamp

Point = Tuple[float, float]


# ===== Команды =====
@dataclass(frozen=True)
class Zoom:
    pointer: Point
    delta_y: float        # < 0 приблизить, > 0 отдалить


@dataclass(frozen=True)
class PanBy:
    dx: float
    dy: float


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


Command = Union[Zoom, PanBy, Resize]


class ViewportController:
    """Владелец Viewport: зум под курсором, перетаскивание, ресайз.

    Мир -> экран: screen = origin + (x, -y) * scale (ось Y мира смотрит вверх).
    Колесо ограничено по частоте: в окне `wheel_window_ms` применяется не
    больше одного события, лишние схлопываются в одно отложенное (последнее),
    которое применяет flush_wheel().
    """

    def __init__(self, viewport: Optional[Viewport] = None, *,
                 zoom_factor: float = ZOOM_FACTOR,
                 min_scale: float = MIN_SCALE, max_scale: float = MAX_SCALE,
                 wheel_window_ms: float = WHEEL_WINDOW_MS,
                 clock: Callable[[], float] = time.monotonic):
        self.viewport = viewport if viewport is not None else Viewport()
        self.zoom_factor = float(zoom_factor)
        self.min_scale = float(min_scale)
        self.max_scale = float(max_scale)
        self.viewport.scale = clamp(self.viewport.scale, self.min_scale, self.max_scale)
        self._wheel_window = wheel_window_ms / 1000.0
        self._clock = clock
        self._listeners: List[Callable[[Viewport], None]] = []
        self._drag_last: Optional[Point] = None
        self._wheel_last_ts: Optional[float] = None
        self._wheel_pending: Optional[Zoom] = None

    def add_listener(self, cb: Callable[[Viewport], None]):
        self._listeners.append(cb)

    def _notify(self):
        for cb in list(self._listeners):
            cb(self.viewport)

    # ---- state transition ----
    def dispatch(self, cmd: Command) -> bool:
        if isinstance(cmd, Zoom):
            changed = self._zoom(cmd)
        elif isinstance(cmd, PanBy):
            changed = self._pan(cmd)
        elif isinstance(cmd, Resize):
            changed = self._resize(cmd)
        else:
            raise TypeError(f"unknown viewport command: {cmd!r}")
        if changed:
            self._notify()
        return changed

    def _zoom(self, cmd: Zoom) -> bool:
        if cmd.delta_y == 0:
            return False
        vp = self.viewport
        old = vp.scale
        new = old * self.zoom_factor if cmd.delta_y < 0 else old / self.zoom_factor
        new = clamp(new, self.min_scale, self.max_scale)
        if new == old:
            return False
        px, py = cmd.pointer
        ratio = new / old
        # точка мира под курсором остаётся на месте
        vp.origin_x = px - (px - vp.origin_x) * ratio
        vp.origin_y = py - (py - vp.origin_y) * ratio
        vp.scale = new
        return True

    def _pan(self, cmd: PanBy) -> bool:
        if cmd.dx == 0 and cmd.dy == 0:
            return False
        self.viewport.origin_x += cmd.dx
        self.viewport.origin_y += cmd.dy
        return True

    def _resize(self, cmd: Resize) -> bool:
        vp = self.viewport
        w, h = int(cmd.width), int(cmd.height)
        if (vp.width, vp.height) == (w, h):
            return False
        vp.width, vp.height = w, h
        return True

    def reset(self, width: int, height: int, scale: Optional[float] = None):
        """Исходный вид: масштаб по умолчанию, начало координат в центре холста."""
        fresh = Viewport.centered(width, height) if scale is None else Viewport.centered(width, height, scale)
        vp = self.viewport
        vp.scale = clamp(fresh.scale, self.min_scale, self.max_scale)
        vp.origin_x, vp.origin_y = fresh.origin_x, fresh.origin_y
        vp.width, vp.height = fresh.width, fresh.height
        self._drag_last = None
        self._wheel_pending = None
        self._notify()

    # ---- события ----
    def on_resize(self, width: int, height: int) -> bool:
        return self.dispatch(Resize(width, height))

    def on_wheel(self, pointer: Optional[Point], delta_y: float, now: Optional[float] = None) -> bool:
        if pointer is None:
            return False
        now = self._clock() if now is None else now
        cmd = Zoom((float(pointer[0]), float(pointer[1])), float(delta_y))
        if self._wheel_last_ts is None or now - self._wheel_last_ts >= self._wheel_window:
            self._wheel_last_ts = now
            self._wheel_pending = None
            return self.dispatch(cmd)
        self._wheel_pending = cmd
        return False

    def wheel_pending_delay(self, now: Optional[float] = None) -> Optional[float]:
        """Сколько секунд ждать до flush_wheel(); None, если ждать нечего."""
        if self._wheel_pending is None or self._wheel_last_ts is None:
            return None
        now = self._clock() if now is None else now
        return max(0.0, self._wheel_last_ts + self._wheel_window - now)

    def flush_wheel(self, now: Optional[float] = None) -> bool:
        if self._wheel_pending is None:
            return False
        now = self._clock() if now is None else now
        if self._wheel_last_ts is not None and now - self._wheel_last_ts < self._wheel_window:
            return False
        cmd, self._wheel_pending = self._wheel_pending, None
        self._wheel_last_ts = now
        return self.dispatch(cmd)

    @property
    def dragging(self) -> bool:
        return self._drag_last is not None

    def on_drag_start(self, pointer: Optional[Point]):
        if pointer is None:
            return
        self._drag_last = (float(pointer[0]), float(pointer[1]))

    def on_drag_move(self, pointer: Optional[Point]) -> bool:
        if self._drag_last is None or pointer is None:
            return False
        x, y = float(pointer[0]), float(pointer[1])
        lx, ly = self._drag_last
        self._drag_last = (x, y)
        return self.dispatch(PanBy(x - lx, y - ly))

    def on_drag_end(self):
        self._drag_last = None

    # ---- преобразования ----
    def world_to_screen(self, x: float, y: float) -> Point:
        vp = self.viewport
        return vp.origin_x + x * vp.scale, vp.origin_y - y * vp.scale

    def screen_to_world(self, sx: float, sy: float) -> Point:
        vp = self.viewport
        return (sx - vp.origin_x) / vp.scale, -(sy - vp.origin_y) / vp.scale
