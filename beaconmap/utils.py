from __future__ import annotations
from PySide6.QtGui import QColor

# ===== Devices =====
ACCEPT_THRESHOLD = 50          # минимальное q, с которым показание принимается
POSITION_EPS = 0.01            # м, «мёртвая зона» по каждой оси

# ===== Viewport =====
DEFAULT_SCALE = 70.0           # px на метр
MIN_SCALE = 10.0
MAX_SCALE = 150.0
ZOOM_FACTOR = 1.1
WHEEL_WINDOW_MS = 50
POLL_INTERVAL_MS = 10

# ===== Markers (в метрах) =====
MARKER_RADIUS = 0.1
LABEL_OFFSET_X = -1.0
LABEL_OFFSET_Y = -0.75
LABEL_FONT_SIZE = 0.28

# ===== Colors =====
ANCHOR_COLOR = QColor("blue")
TAG_COLOR = QColor("red")
LABEL_COLOR = QColor("#111827")
BG_COLOR = QColor("#F2F4F7")

# ===== Recent maps =====
RECENT_LIMIT = 12
MAP_FILE_FILTER = "Beacon map (*.ini);;Все файлы (*)"


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(v, hi))


def label_text(x: float, y: float, q: int) -> str:
    return f"x: {x:.2f}\ny: {y:.2f}\nq: {q}"
