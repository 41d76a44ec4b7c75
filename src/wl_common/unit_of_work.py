"""Session contract plus an in-memory unit of work.

``MemoryDatabase`` keeps committed rows per table and append-only logs.
``MemorySession`` stages writes and appends, takes per-row ``asyncio.Lock``s
on request (``lock``), and publishes everything atomically on ``commit``.
Locks are released on commit/rollback, like row locks in Postgres.
"""

import asyncio
import copy
from collections import defaultdict
from collections.abc import Iterable
from typing import Any, Protocol


class SessionProtocol(Protocol):
    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class MemoryDatabase:
    def __init__(self) -> None:
        self.tables: dict[str, dict[str, Any]] = defaultdict(dict)
        self.logs: dict[str, list[Any]] = defaultdict(list)
        self._row_locks: dict[tuple[str, str], asyncio.Lock] = {}

    def session(self) -> "MemorySession":
        return MemorySession(self)

    def row_lock(self, table: str, key: str) -> asyncio.Lock:
        lock = self._row_locks.get((table, key))
        if lock is None:
            lock = self._row_locks[(table, key)] = asyncio.Lock()
        return lock


class MemorySession:
    def __init__(self, database: MemoryDatabase) -> None:
        self.database = database
        self._writes: dict[tuple[str, str], Any] = {}
        self._appends: list[tuple[str, Any]] = []
        self._held: dict[tuple[str, str], asyncio.Lock] = {}

    # --- reads -------------------------------------------------------------

    def get(self, table: str, key: str) -> Any | None:
        """Copy of the row as this session sees it (own writes first)."""
        if (table, key) in self._writes:
            return copy.deepcopy(self._writes[(table, key)])
        row = self.database.tables[table].get(key)
        return copy.deepcopy(row)

    def rows(self, table: str) -> list[Any]:
        merged = dict(self.database.tables[table])
        for (t, key), value in self._writes.items():
            if t == table:
                merged[key] = value
        return [copy.deepcopy(v) for v in merged.values()]

    def log(self, name: str) -> list[Any]:
        """Committed entries followed by this session's pending appends."""
        pending = [entry for log_name, entry in self._appends if log_name == name]
        return list(self.database.logs[name]) + pending

    # --- writes ------------------------------------------------------------

    def put(self, table: str, key: str, value: Any) -> None:
        self._writes[(table, key)] = copy.deepcopy(value)

    def append(self, name: str, entry: Any) -> None:
        self._appends.append((name, entry))

    async def lock(self, table: str, keys: Iterable[str]) -> None:
        """Acquire row locks in ascending key order; re-entrant per session."""
        for key in sorted(set(keys)):
            if (table, key) in self._held:
                continue
            lock = self.database.row_lock(table, key)
            await lock.acquire()
            self._held[(table, key)] = lock

    # --- transaction control ----------------------------------------------

    async def commit(self) -> None:
        for (table, key), value in self._writes.items():
            self.database.tables[table][key] = value
        for name, entry in self._appends:
            self.database.logs[name].append(entry)
        self._reset()

    async def rollback(self) -> None:
        self._reset()

    async def close(self) -> None:
        await self.rollback()

    def _reset(self) -> None:
        self._writes.clear()
        self._appends.clear()
        held = list(self._held.values())
        self._held.clear()
        for lock in held:
            lock.release()

    async def __aenter__(self) -> "MemorySession":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
