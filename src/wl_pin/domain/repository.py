"""Repository Protocol for PIN records."""

from typing import Any, Protocol

from src.wl_pin.domain.models import PinRecord


class PinRepositoryProtocol(Protocol):
    async def get(self, db: Any, user_id: str) -> PinRecord | None: ...

    async def insert_if_absent(self, db: Any, record: PinRecord) -> PinRecord: ...

    async def save(self, db: Any, record: PinRecord) -> None: ...
