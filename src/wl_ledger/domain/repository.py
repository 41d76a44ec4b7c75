"""Repository Protocol for the append-only transaction log."""

from typing import Any, Protocol

from src.wl_ledger.domain.models import Transaction


class TransactionRepositoryProtocol(Protocol):
    async def append(self, db: Any, tx: Transaction) -> Transaction: ...

    async def list(
        self,
        db: Any,
        user_id: str | None,
        cursor_id: int | None,
        limit: int | None,
        tx_type: str | None,
    ) -> list[Transaction]:
        """Newest first; ``cursor_id`` excludes ids >= cursor."""
        ...


class UserDirectoryProtocol(Protocol):
    """Username <-> user id lookups, owned by the gateway's user table."""

    async def find_user_id(self, db: Any, username: str) -> str | None: ...

    async def find_username(self, db: Any, user_id: str) -> str | None: ...
