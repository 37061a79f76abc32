"""
Client-side identifier generation.

Identifiers combine a millisecond timestamp with a per-generator counter,
so two ids from the same generator never collide even when issued within
the same millisecond.
"""

import itertools
import time
from typing import Callable

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(value: int) -> str:
    """Render a non-negative integer in base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_DIGITS[remainder])
    return "".join(reversed(digits))


class IdGenerator:
    """Generates ids of the form ``f<base36 ms>_<counter>``."""

    def __init__(self, prefix: str = "f", clock: Callable[[], float] = time.time):
        self._prefix = prefix
        self._clock = clock
        self._counter = itertools.count(1)

    def next_id(self) -> str:
        millis = int(self._clock() * 1000)
        return f"{self._prefix}{to_base36(millis)}_{next(self._counter)}"
