"""Snowflake-style IDs for transactions.

IDs are decimal strings of a 63-bit integer, so they fit a Postgres BIGINT and
sort in issue order within one process.
"""

import threading
import time
from collections.abc import Callable


class SnowflakeIdGenerator:
    """Layout (63 bits): 41 bits ms since epoch | 10 bits machine | 12 bits sequence."""

    EPOCH_MS = 1_704_067_200_000  # 2024-01-01T00:00:00Z
    MACHINE_BITS = 10
    SEQUENCE_BITS = 12
    MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1

    def __init__(
        self,
        machine_id: int = 0,
        clock_ms: Callable[[], int] | None = None,
    ) -> None:
        if not 0 <= machine_id < (1 << self.MACHINE_BITS):
            raise ValueError(f"machine_id must be 0-{(1 << self.MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_int(self) -> int:
        with self._lock:
            now = self._clock_ms()
            # A clock stepping backwards must not reorder ids.
            if now < self._last_ms:
                now = self._last_ms
            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & self.MAX_SEQUENCE
                if self._sequence == 0:
                    now = self._last_ms + 1
            else:
                self._sequence = 0
            self._last_ms = now
            return (
                ((now - self.EPOCH_MS) << (self.MACHINE_BITS + self.SEQUENCE_BITS))
                | (self._machine_id << self.SEQUENCE_BITS)
                | self._sequence
            )

    def next_id(self) -> str:
        return str(self.next_int())


_default_generator = SnowflakeIdGenerator()


def generate_id() -> str:
    """Next id from the process-wide generator."""
    return _default_generator.next_id()
