from __future__ import annotations
import configparser
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .errors import MapFileError
from .models import DeviceReading, PlanSource, Role

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _read_ini(path: Path) -> configparser.ConfigParser:
    ini = configparser.ConfigParser(interpolation=None, strict=False,
                                    comment_prefixes=(";", "#"), inline_comment_prefixes=None)
    ini.optionxform = str       # ключи в экспорте регистрозависимые
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            ini.read_file(f)
    except (OSError, configparser.Error) as e:
        raise MapFileError(f"cannot read map file {path}: {e}") from e
    return ini


def _section(ini: configparser.ConfigParser, name: str) -> configparser.SectionProxy:
    if not ini.has_section(name):
        raise MapFileError(f"no section: [{name}]")
    return ini[name]


def _value(section: configparser.SectionProxy, key: str) -> str:
    raw = section.get(key)
    if raw is None:
        raise MapFileError(f"no value: {key}")
    return raw.strip()


def _float(section: configparser.SectionProxy, key: str) -> float:
    raw = _value(section, key)
    try:
        return float(raw)
    except ValueError as e:
        raise MapFileError(f"bad number for {key}: {raw!r}") from e


def _int(raw: str, what: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as e:
        raise MapFileError(f"bad integer for {what}: {raw!r}") from e


def _read_plan(floorplan: configparser.SectionProxy, base_dir: Path) -> PlanSource:
    x = _float(floorplan, "shift_x_m")
    y = _float(floorplan, "shift_y_m")
    ppm = _float(floorplan, "scale_pixels_per_m")
    if ppm <= 0:
        raise MapFileError(f"scale_pixels_per_m must be positive, got {ppm}")

    # первый ключ FloorN_... хранит путь к картинке плана
    image_path: Optional[Path] = None
    for key, value in floorplan.items():
        if key.startswith("Floor") and value.strip():
            image_path = Path(value.strip().strip('"'))
            break
    if image_path is None:
        raise MapFileError("no value: FloorX_FILE")
    if not image_path.is_absolute():
        image_path = base_dir / image_path

    ext = image_path.suffix.lstrip(".")
    if not ext:
        raise MapFileError(f"failed to read extension of {image_path.name}")
    try:
        data = image_path.read_bytes()
    except OSError as e:
        raise MapFileError(f"cannot read floor plan {image_path}: {e}") from e
    if not data:
        raise MapFileError(f"floor plan {image_path} is empty")
    return PlanSource(x, y, ppm, data, ext)


def _read_anchors(ini: configparser.ConfigParser) -> List[DeviceReading]:
    devices: List[DeviceReading] = []
    for key, value in _section(ini, "devices").items():
        if not key.startswith("beacon"):
            continue
        if _int(value, key) != 1:
            continue
        index = key[len("beacon"):].strip()
        beacon = _section(ini, f"beacon {index}")
        # Hedgehog_mode != 0 означает подвижную метку, в карте её не показываем
        if _value(beacon, "Hedgehog_mode") != "0":
            continue
        address = _int(index, key)
        if not 0 <= address <= 255:
            raise MapFileError(f"beacon address out of range: {address}")
        devices.append(DeviceReading(address=address, role=Role.ANCHOR,
                                     x=_float(beacon, "Position_X"),
                                     y=_float(beacon, "Position_Y"),
                                     q=0))
    return devices


def load_map(path: PathLike) -> Tuple[List[DeviceReading], PlanSource]:
    """Читает INI-экспорт карты: [floorplan], [devices], [beacon N]."""
    path = Path(path)
    ini = _read_ini(path)
    plan = _read_plan(_section(ini, "floorplan"), path.parent)
    devices = _read_anchors(ini)
    logger.info("map %s: %d anchors, plan %s (%d bytes)", path.name, len(devices), plan.ext, len(plan.data))
    return devices, plan


def parse_map(path: PathLike) -> Tuple[List[DeviceReading], Optional[PlanSource]]:
    try:
        return load_map(path)
    except MapFileError as e:
        logger.error("failed to parse ini map file: %s", e)
        return [], None
