from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from roomstats.monitoring.atomic import AtomicInt32


def test_inc_dec_return_new_value() -> None:
    value = AtomicInt32()

    assert value.inc() == 1
    assert value.inc() == 2
    assert value.dec() == 1
    assert value.add(-5) == -4
    assert value.load() == -4
    assert int(value) == -4


def test_wraps_like_int32() -> None:
    top = AtomicInt32(2**31 - 1)
    bottom = AtomicInt32(-(2**31))

    assert top.inc() == -(2**31)
    assert bottom.dec() == 2**31 - 1


def test_concurrent_increments_are_not_lost() -> None:
    value = AtomicInt32()

    def bump() -> None:
        for _ in range(500):
            value.inc()

    with ThreadPoolExecutor(max_workers=8) as executor:
        futures = [executor.submit(bump) for _ in range(20)]
        for future in futures:
            future.result()

    assert value.load() == 20 * 500
