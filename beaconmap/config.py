"""Настройки просмотрщика.

Переменные окружения разбираются здесь в неизменяемый ViewerConfig;
список недавних карт и геометрия окна живут в QSettings.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from PySide6.QtCore import QSettings

from .utils import POLL_INTERVAL_MS, WHEEL_WINDOW_MS, RECENT_LIMIT

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
SETTINGS_ORG = "BeaconMap"
SETTINGS_APP = "Viewer"
_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_int(env: Mapping[str, str], name: str, default: int = 0, minimum: int = 1) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        val = int(raw, 10)
    except ValueError:
        return default
    return val if val >= minimum else default


def _env_level(env: Mapping[str, str], name: str, default: str = "INFO") -> str:
    raw = (env.get(name) or "").strip().upper()
    return raw if raw in _LEVELS else default


@dataclass(frozen=True)
class ViewerConfig:
    poll_interval_ms: int = POLL_INTERVAL_MS
    wheel_window_ms: int = WHEEL_WINDOW_MS
    log_level: str = "INFO"


def load_config(env: Optional[Mapping[str, str]] = None) -> ViewerConfig:
    env = os.environ if env is None else env
    return ViewerConfig(
        poll_interval_ms=_env_int(env, "BEACONMAP_POLL_MS", POLL_INTERVAL_MS),
        wheel_window_ms=_env_int(env, "BEACONMAP_WHEEL_MS", WHEEL_WINDOW_MS),
        log_level=_env_level(env, "BEACONMAP_LOG_LEVEL"),
    )


def setup_logging(level: str = "INFO"):
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level)


# ===== QSettings =====
def settings() -> QSettings:
    return QSettings(SETTINGS_ORG, SETTINGS_APP)


def recent_maps(st: Optional[QSettings] = None) -> List[str]:
    st = settings() if st is None else st
    files = st.value("recent", [], list) or []
    return [str(p) for p in files]


def push_recent(path: str, st: Optional[QSettings] = None) -> List[str]:
    st = settings() if st is None else st
    files = recent_maps(st)
    if path in files:
        files.remove(path)
    files.insert(0, path)
    files = files[:RECENT_LIMIT]
    st.setValue("recent", files)
    return files
