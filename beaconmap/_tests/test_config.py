from __future__ import annotations

from PySide6.QtCore import QSettings

from beaconmap.config import ViewerConfig, load_config, push_recent, recent_maps
from beaconmap.utils import RECENT_LIMIT


def test_config_defaults() -> None:
    cfg = load_config({})
    assert cfg == ViewerConfig()
    assert cfg.poll_interval_ms == 10
    assert cfg.wheel_window_ms == 50
    assert cfg.log_level == "INFO"


def test_config_env_overrides() -> None:
    cfg = load_config({
        "BEACONMAP_POLL_MS": "25",
        "BEACONMAP_WHEEL_MS": "80",
        "BEACONMAP_LOG_LEVEL": "debug",
    })
    assert cfg.poll_interval_ms == 25
    assert cfg.wheel_window_ms == 80
    assert cfg.log_level == "DEBUG"


def test_config_bad_values_fall_back() -> None:
    cfg = load_config({
        "BEACONMAP_POLL_MS": "fast",
        "BEACONMAP_WHEEL_MS": "0",
        "BEACONMAP_LOG_LEVEL": "loud",
    })
    assert cfg == ViewerConfig()


def test_recent_maps_order_and_limit(qapp, tmp_path) -> None:
    st = QSettings(str(tmp_path / "viewer.ini"), QSettings.IniFormat)
    assert recent_maps(st) == []

    push_recent("/maps/a.ini", st)
    push_recent("/maps/b.ini", st)
    push_recent("/maps/a.ini", st)
    assert recent_maps(st) == ["/maps/a.ini", "/maps/b.ini"]

    for i in range(RECENT_LIMIT + 3):
        push_recent(f"/maps/{i}.ini", st)
    files = recent_maps(st)
    assert len(files) == RECENT_LIMIT
    assert files[0] == f"/maps/{RECENT_LIMIT + 2}.ini"
