"""TransactionLog: append-only history.

``append`` only stages the entry in the caller's session; it becomes
visible when that session commits the balance change it describes.
"""

from typing import Any

from src.wl_common.enums import TransactionType
from src.wl_ledger.domain.models import Transaction
from src.wl_ledger.domain.repository import TransactionRepositoryProtocol
from src.wl_ledger.infrastructure.persistence import TransactionRepository


class TransactionLog:
    def __init__(self, repo: TransactionRepositoryProtocol | None = None) -> None:
        self._repo: TransactionRepositoryProtocol = repo or TransactionRepository()

    async def append(self, db: Any, tx: Transaction) -> Transaction:
        return await self._repo.append(db, tx)

    async def history(
        self,
        db: Any,
        user_id: str | None = None,
        cursor_id: int | None = None,
        limit: int | None = None,
        tx_type: TransactionType | str | None = None,
    ) -> list[Transaction]:
        type_value = tx_type.value if isinstance(tx_type, TransactionType) else tx_type
        return await self._repo.list(db, user_id, cursor_id, limit, type_value)
