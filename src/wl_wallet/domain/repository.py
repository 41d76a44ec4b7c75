"""Repository Protocol: dependency inversion for testability.

The Postgres repository and the in-memory repository both conform to this.
"""

from typing import Any, Protocol

from src.wl_wallet.domain.models import Wallet


class WalletRepositoryProtocol(Protocol):
    async def get(self, db: Any, user_id: str) -> Wallet | None: ...

    async def create(self, db: Any, user_id: str) -> Wallet: ...

    async def lock_for_update(self, db: Any, user_ids: list[str]) -> dict[str, Wallet]:
        """Lock the listed wallets in ascending user_id order and return them.

        Missing wallets are absent from the result.
        """
        ...

    async def save(self, db: Any, wallet: Wallet) -> None: ...
