from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from PySide6.QtGui import QImage

from .utils import DEFAULT_SCALE


class Role:
    ANCHOR = "anchor"
    TAG = "tag"       # «hedgehog» в терминах системы позиционирования


@dataclass(frozen=True)
class DeviceReading:
    address: int
    role: str = Role.ANCHOR
    x: float = 0.0
    y: float = 0.0
    q: int = 0

    @property
    def is_hedge(self) -> bool:
        return self.role == Role.TAG


class DeviceSet:
    """Упорядоченный набор последних принятых показаний (address -> DeviceReading).

    Порядок соответствует порядку вставки. Снаружи набор только читается; новые наборы
    создаёт reconcile() (и seed() при загрузке карты).
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Dict[int, DeviceReading]] = None):
        self._items: Dict[int, DeviceReading] = dict(items or {})

    @classmethod
    def seed(cls, readings: Iterable[DeviceReading]) -> "DeviceSet":
        # статичные якоря из файла карты: q там всегда 0, порог не применяется
        return cls({r.address: r for r in readings})

    def get(self, address: int) -> Optional[DeviceReading]:
        return self._items.get(address)

    def addresses(self) -> List[int]:
        return list(self._items)

    def readings(self) -> List[DeviceReading]:
        return list(self._items.values())

    def copy_items(self) -> Dict[int, DeviceReading]:
        return dict(self._items)

    def __contains__(self, address: object) -> bool:
        return address in self._items

    def __iter__(self) -> Iterator[DeviceReading]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"DeviceSet({self.addresses()!r})"


@dataclass
class Viewport:
    scale: float = DEFAULT_SCALE
    origin_x: float = 0.0
    origin_y: float = 0.0
    width: int = 0
    height: int = 0

    @classmethod
    def centered(cls, width: int, height: int, scale: float = DEFAULT_SCALE) -> "Viewport":
        return cls(scale, width / 2.0, height / 2.0, int(width), int(height))


@dataclass(frozen=True)
class PlanSource:
    """Описание плана из файла карты: ещё не декодированные байты + расширение."""
    x: float
    y: float
    pixels_per_m: float
    data: bytes = field(repr=False)
    ext: str = ""


@dataclass(frozen=True)
class FloorPlanAsset:
    x: float
    y: float
    pixels_per_m: float
    image: QImage = field(repr=False, compare=False)

    @property
    def width_m(self) -> float:
        return self.image.width() / self.pixels_per_m

    @property
    def height_m(self) -> float:
        return self.image.height() / self.pixels_per_m
