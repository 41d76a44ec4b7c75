"""In-memory TransactionRepository over a MemorySession."""

from src.wl_common.unit_of_work import MemorySession
from src.wl_ledger.domain.models import Transaction

LOG = "transactions"


class MemoryTransactionRepository:
    async def append(self, db: MemorySession, tx: Transaction) -> Transaction:
        db.append(LOG, tx)
        return tx

    async def list(
        self,
        db: MemorySession,
        user_id: str | None,
        cursor_id: int | None,
        limit: int | None,
        tx_type: str | None,
    ) -> list[Transaction]:
        entries = [
            tx
            for tx in sorted(db.log(LOG), key=lambda t: int(t.id), reverse=True)
            if (user_id is None or tx.user_id == user_id)
            and (cursor_id is None or int(tx.id) < cursor_id)
            and (tx_type is None or tx.type.value == tx_type)
        ]
        return entries if limit is None else entries[:limit]
