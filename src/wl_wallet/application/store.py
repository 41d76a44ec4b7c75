"""WalletStore: owns Wallet records and serializes balance changes.

``mutate`` is the only write path for balances: it locks the wallets,
lets a callback change them and saves the result. The session's commit or
rollback (owned by the caller) decides durability and releases the locks.
"""

from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import Any, TypeVar

from src.wl_common.errors import WalletNotFoundError
from src.wl_wallet.domain.balances import balance_of
from src.wl_wallet.domain.models import Wallet
from src.wl_wallet.domain.repository import WalletRepositoryProtocol
from src.wl_wallet.infrastructure.persistence import WalletRepository

T = TypeVar("T")


class WalletStore:
    def __init__(self, repo: WalletRepositoryProtocol | None = None) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()

    async def find(self, db: Any, user_id: str) -> Wallet | None:
        return await self._repo.get(db, user_id)

    async def get(self, db: Any, user_id: str) -> Wallet:
        wallet = await self._repo.get(db, user_id)
        if wallet is None:
            raise WalletNotFoundError(user_id)
        return wallet

    async def create_for_user(self, db: Any, user_id: str) -> Wallet:
        """Idempotent; runs inside the caller's transaction."""
        return await self._repo.create(db, user_id)

    async def get_asset_balance(
        self, db: Any, user_id: str, asset: str, fiat_asset: str
    ) -> Decimal:
        """Current balance; 0 when the asset has no position."""
        return balance_of(await self.get(db, user_id), asset, fiat_asset)

    async def mutate(
        self,
        db: Any,
        user_ids: Sequence[str],
        fn: Callable[[dict[str, Wallet]], T],
    ) -> T:
        """Apply ``fn`` to the locked wallets and persist them.

        If ``fn`` raises, nothing is saved and the exception propagates; the
        caller is expected to roll back, which also releases the locks.
        """
        wallets = await self._repo.lock_for_update(db, list(user_ids))
        for user_id in user_ids:
            if user_id not in wallets:
                raise WalletNotFoundError(user_id)
        result = fn(wallets)
        for user_id in sorted(wallets):
            await self._repo.save(db, wallets[user_id])
        return result
