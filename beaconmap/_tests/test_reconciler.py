from __future__ import annotations

import pytest

from beaconmap.models import DeviceReading, DeviceSet, Role
from beaconmap.reconciler import reconcile


def _r(address: int, x: float = 0.0, y: float = 0.0, q: int = 100, role: str = Role.TAG) -> DeviceReading:
    return DeviceReading(address=address, role=role, x=x, y=y, q=q)


def _set(*readings: DeviceReading) -> DeviceSet:
    nxt, _ = reconcile(DeviceSet(), readings)
    return nxt


def test_noop_batch_returns_same_set() -> None:
    prev = _set(_r(1, 1.0, 2.0), _r(2, 3.0, 4.0))
    nxt, changed = reconcile(prev, [_r(1, 1.005, 2.0), _r(2, 3.0, 3.995)])
    assert changed is False
    assert nxt is prev


def test_unchanged_entry_keeps_identity() -> None:
    a, b = _r(1, 1.0, 1.0), _r(2, 2.0, 2.0)
    prev = _set(a, b)
    nxt, changed = reconcile(prev, [_r(1, 1.0, 1.0), _r(2, 5.0, 2.0)])
    assert changed is True
    assert nxt is not prev
    assert nxt.get(1) is a
    assert nxt.get(2).x == 5.0
    # прежний набор не тронут
    assert prev.get(2) is b


def test_quality_floor_hides_until_qualifying_reading() -> None:
    nxt, changed = reconcile(DeviceSet(), [_r(9, q=49)])
    assert changed is False
    assert 9 not in nxt

    nxt, changed = reconcile(nxt, [_r(9, 1.0, 1.0, q=50)])
    assert changed is True
    assert nxt.addresses() == [9]
    assert nxt.get(9).q == 50


def test_low_quality_reading_does_not_update_existing() -> None:
    prev = _set(_r(1, 1.0, 1.0, q=90))
    nxt, changed = reconcile(prev, [_r(1, 7.0, 7.0, q=10)])
    assert changed is False
    assert nxt.get(1).x == 1.0


def test_dead_band_boundary() -> None:
    prev = _set(_r(1, 0.0, 0.0))
    _, changed = reconcile(prev, [_r(1, 0.01, -0.01)])
    assert changed is False
    _, changed = reconcile(prev, [_r(1, 0.0, 0.011)])
    assert changed is True


@pytest.mark.parametrize("base", [1.0, -3.7, 12.34])
def test_dead_band_boundary_away_from_zero(base) -> None:
    prev = _set(_r(1, base, base))
    _, changed = reconcile(prev, [_r(1, base + 0.01, base - 0.01)])
    assert changed is False
    _, changed = reconcile(prev, [_r(1, base + 0.011, base)])
    assert changed is True
    _, changed = reconcile(prev, [_r(1, base, base - 0.011)])
    assert changed is True


def test_role_and_quality_use_exact_comparison() -> None:
    prev = _set(_r(1, q=80))
    _, changed = reconcile(prev, [_r(1, q=81)])
    assert changed is True
    _, changed = reconcile(prev, [_r(1, q=80, role=Role.ANCHOR)])
    assert changed is True


def test_order_preserved_on_insert_and_update() -> None:
    prev = _set(_r(1), _r(2), _r(3))
    nxt, changed = reconcile(prev, [_r(4, 1.0), _r(2, 9.0)])
    assert changed is True
    assert nxt.addresses() == [1, 2, 3, 4]
    assert nxt.get(2).x == 9.0


def test_duplicate_address_last_wins() -> None:
    prev = _set(_r(1, 0.0, 0.0))
    # второе показание сравнивается уже с первым, а не с прежним набором
    nxt, changed = reconcile(prev, [_r(1, 5.0), _r(1, 0.005)])
    assert changed is True
    assert nxt.get(1).x == 0.005
    assert prev.get(1).x == 0.0

    # повтор в пределах мёртвой зоны от рабочей копии не заменяет запись
    first = _r(1, 5.0)
    nxt, changed = reconcile(prev, [first, _r(1, 5.004)])
    assert changed is True
    assert nxt.get(1) is first

    nxt, changed = reconcile(prev, [_r(1, 0.005), _r(1, 5.0)])
    assert changed is True
    assert nxt.get(1).x == 5.0


def test_empty_batch_and_missing_devices_stay() -> None:
    prev = _set(_r(1), _r(2))
    nxt, changed = reconcile(prev, [])
    assert changed is False
    assert nxt is prev

    nxt, changed = reconcile(prev, [_r(2, 3.0)])
    assert nxt.addresses() == [1, 2]


def test_initial_empty_set_inserts_in_batch_order() -> None:
    nxt, changed = reconcile(DeviceSet(), [_r(5), _r(3), _r(8, q=20), _r(1)])
    assert changed is True
    assert nxt.addresses() == [5, 3, 1]


def test_seeded_anchors_are_replaced_by_live_readings() -> None:
    seeded = DeviceSet.seed([_r(1, 0.5, 1.25, q=0, role=Role.ANCHOR)])
    assert seeded.addresses() == [1]
    nxt, changed = reconcile(seeded, [_r(1, 0.5, 1.25, q=100, role=Role.ANCHOR)])
    assert changed is True
    assert nxt.get(1).q == 100
