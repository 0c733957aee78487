from __future__ import annotations
from typing import Dict, Iterable, Optional, Tuple

from .models import DeviceReading, DeviceSet
from .utils import ACCEPT_THRESHOLD, POSITION_EPS

# погрешность вычитания: 1.01 - 1.0 даёт 0.010000000000000009
_FLOAT_TOL = 1e-9


def _moved(a: float, b: float, eps: float) -> bool:
    return abs(a - b) - eps > _FLOAT_TOL


def differs(old: DeviceReading, new: DeviceReading, eps: float = POSITION_EPS) -> bool:
    return (
        _moved(old.x, new.x, eps) or
        _moved(old.y, new.y, eps) or
        old.q != new.q or
        old.role != new.role
    )


def reconcile(previous: DeviceSet, incoming: Iterable[DeviceReading]) -> Tuple[DeviceSet, bool]:
    """Вливает свежий опрос в предыдущий набор.

    Показания с q ниже порога пропускаются целиком. Остальные идут по порядку
    пакета и сравниваются с рабочей копией, поэтому при повторе адреса
    побеждает последнее. Новые адреса добавляются в конец, изменившиеся
    (с учётом мёртвой зоны) заменяются на своём месте, неизменные остаются
    тем же объектом. Если ничего не изменилось, возвращается тот же самый
    `previous`.
    """
    # копия делается только при первом изменении
    working: Optional[Dict[int, DeviceReading]] = None
    for reading in incoming:
        if reading.q < ACCEPT_THRESHOLD:
            continue
        address = reading.address
        current = previous.get(address) if working is None else working.get(address)
        if current is not None and not differs(current, reading):
            continue
        if working is None:
            working = previous.copy_items()
        working[address] = reading   # существующий ключ сохраняет своё место

    if working is None:
        return previous, False
    return DeviceSet(working), True
