"""PinRepository: Postgres implementation of PinRepositoryProtocol."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_common.errors import InternalError
from src.wl_pin.domain.models import PinRecord

_COLUMNS = "user_id, pin_hash, must_set_pin, created_at, last_updated, reset_by"

_GET_PIN_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM pin_records
    WHERE user_id = :user_id
""")

_INSERT_PIN_SQL = text(f"""
    INSERT INTO pin_records ({_COLUMNS})
    VALUES (:user_id, :pin_hash, :must_set_pin, :created_at, :last_updated, :reset_by)
    ON CONFLICT (user_id) DO NOTHING
""")

_UPDATE_PIN_SQL = text("""
    UPDATE pin_records
    SET pin_hash = :pin_hash,
        must_set_pin = :must_set_pin,
        last_updated = :last_updated,
        reset_by = :reset_by
    WHERE user_id = :user_id
    RETURNING user_id
""")


def _row_to_record(row: object) -> PinRecord:
    return PinRecord(
        user_id=row.user_id,  # type: ignore[attr-defined]
        pin_hash=row.pin_hash,  # type: ignore[attr-defined]
        must_set_pin=row.must_set_pin,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        last_updated=row.last_updated,  # type: ignore[attr-defined]
        reset_by=row.reset_by,  # type: ignore[attr-defined]
    )


def _params(record: PinRecord) -> dict[str, object]:
    return {
        "user_id": record.user_id,
        "pin_hash": record.pin_hash,
        "must_set_pin": record.must_set_pin,
        "created_at": record.created_at,
        "last_updated": record.last_updated,
        "reset_by": record.reset_by,
    }


class PinRepository:
    async def get(self, db: AsyncSession, user_id: str) -> PinRecord | None:
        result = await db.execute(_GET_PIN_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_record(row) if row else None

    async def insert_if_absent(self, db: AsyncSession, record: PinRecord) -> PinRecord:
        await db.execute(_INSERT_PIN_SQL, _params(record))
        stored = await self.get(db, record.user_id)
        if stored is None:
            raise InternalError(f"PIN record insert for {record.user_id} returned no row")
        return stored

    async def save(self, db: AsyncSession, record: PinRecord) -> None:
        result = await db.execute(_UPDATE_PIN_SQL, _params(record))
        if result.fetchone() is None:
            raise InternalError(f"PIN record update for {record.user_id} matched no row")
