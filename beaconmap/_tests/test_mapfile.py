from __future__ import annotations

import logging
from pathlib import Path

import pytest

from beaconmap.errors import MapFileError
from beaconmap.mapfile import load_map, parse_map
from beaconmap.models import Role

MAP_INI = """\
[floorplan]
shift_x_m=-7.136
shift_y_m=8.429
scale_pixels_per_m=54.112
Floor1_file=plans/level1.png

[devices]
beacon1=1
beacon2=1
beacon3=0
beacon7=1

[beacon 1]
Hedgehog_mode=0
Position_X=0.5
Position_Y=1.25

[beacon 2]
Hedgehog_mode=1
Position_X=3
Position_Y=3

[beacon 7]
Hedgehog_mode=0
Position_X=-2
Position_Y=4
"""

PLAN_BYTES = b"\x89PNG\r\n\x1a\nfake plan"


def _write_map(tmp_path: Path, text: str = MAP_INI, plan: bool = True) -> Path:
    if plan:
        (tmp_path / "plans").mkdir(exist_ok=True)
        (tmp_path / "plans" / "level1.png").write_bytes(PLAN_BYTES)
    path = tmp_path / "site.ini"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_map_reads_plan_and_enabled_anchors(tmp_path) -> None:
    devices, plan = load_map(_write_map(tmp_path))

    assert [d.address for d in devices] == [1, 7]
    assert all(d.role == Role.ANCHOR and d.q == 0 for d in devices)
    assert (devices[0].x, devices[0].y) == (0.5, 1.25)
    assert (devices[1].x, devices[1].y) == (-2.0, 4.0)

    assert plan.x == pytest.approx(-7.136)
    assert plan.y == pytest.approx(8.429)
    assert plan.pixels_per_m == pytest.approx(54.112)
    assert plan.ext == "png"
    assert plan.data == PLAN_BYTES


def test_plan_path_may_be_absolute(tmp_path) -> None:
    other = tmp_path / "elsewhere"
    other.mkdir()
    img = tmp_path / "plan.jpeg"
    img.write_bytes(PLAN_BYTES)
    text = MAP_INI.replace("Floor1_file=plans/level1.png", f"Floor1_file={img}")
    path = other / "site.ini"
    path.write_text(text, encoding="utf-8")

    _, plan = load_map(path)
    assert plan.ext == "jpeg"


@pytest.mark.parametrize("missing, message", [
    ("[devices]", "no section: [devices]"),
    ("scale_pixels_per_m=54.112", "no value: scale_pixels_per_m"),
    ("Floor1_file=plans/level1.png", "no value: FloorX_FILE"),
    ("[beacon 7]", "no section: [beacon 7]"),
])
def test_missing_entries_raise(tmp_path, missing, message) -> None:
    text = MAP_INI.replace(missing, "")
    if missing == "[beacon 7]":
        # ключи секции без заголовка уедут в [beacon 2]
        text = text.replace("Position_X=-2\nPosition_Y=4\n", "")
    with pytest.raises(MapFileError, match=message.replace("[", r"\[").replace("]", r"\]")):
        load_map(_write_map(tmp_path, text))


def test_missing_plan_file_raises(tmp_path) -> None:
    with pytest.raises(MapFileError, match="cannot read floor plan"):
        load_map(_write_map(tmp_path, plan=False))


def test_plan_without_extension_raises(tmp_path) -> None:
    (tmp_path / "plan").write_bytes(PLAN_BYTES)
    text = MAP_INI.replace("plans/level1.png", "plan")
    with pytest.raises(MapFileError, match="extension"):
        load_map(_write_map(tmp_path, text))


def test_bad_number_raises(tmp_path) -> None:
    text = MAP_INI.replace("Position_X=0.5", "Position_X=half")
    with pytest.raises(MapFileError, match="Position_X"):
        load_map(_write_map(tmp_path, text))


def test_parse_map_is_tolerant(tmp_path, caplog) -> None:
    path = _write_map(tmp_path, MAP_INI.replace("[floorplan]", "[nothing]"))
    with caplog.at_level(logging.ERROR, logger="beaconmap.mapfile"):
        devices, plan = parse_map(path)
    assert devices == []
    assert plan is None
    assert "failed to parse ini map file" in caplog.text


def test_parse_map_missing_file(tmp_path) -> None:
    assert parse_map(tmp_path / "nope.ini") == ([], None)
