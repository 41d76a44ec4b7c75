"""In-memory PinRepository over a MemorySession."""

from src.wl_common.unit_of_work import MemorySession
from src.wl_pin.domain.models import PinRecord

TABLE = "pin_records"


class MemoryPinRepository:
    async def get(self, db: MemorySession, user_id: str) -> PinRecord | None:
        return db.get(TABLE, user_id)

    async def insert_if_absent(self, db: MemorySession, record: PinRecord) -> PinRecord:
        existing = db.get(TABLE, record.user_id)
        if existing is not None:
            return existing
        db.put(TABLE, record.user_id, record)
        return db.get(TABLE, record.user_id)

    async def save(self, db: MemorySession, record: PinRecord) -> None:
        db.put(TABLE, record.user_id, record)
