"""Lock-guarded integers mirroring exported gauges and counters."""

from __future__ import annotations

from threading import Lock

_INT32_SPAN = 1 << 32
_INT32_MIN = -(1 << 31)


def _wrap_int32(value: int) -> int:
    return (value - _INT32_MIN) % _INT32_SPAN + _INT32_MIN


class AtomicInt32:
    """Signed 32-bit integer updated with a single read-modify-write per call.

    Values wrap around on overflow the same way a native ``int32`` would.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self, value: int = 0) -> None:
        self._value = _wrap_int32(value)
        self._lock = Lock()

    def load(self) -> int:
        with self._lock:
            return self._value

    def add(self, delta: int) -> int:
        with self._lock:
            self._value = _wrap_int32(self._value + delta)
            return self._value

    def inc(self) -> int:
        return self.add(1)

    def dec(self) -> int:
        return self.add(-1)

    def __int__(self) -> int:
        return self.load()
