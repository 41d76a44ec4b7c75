"""In-memory WalletRepository over a MemorySession."""

from src.wl_common.datetime_utils import utc_now
from src.wl_common.unit_of_work import MemorySession
from src.wl_wallet.domain.models import Wallet

TABLE = "wallets"


class MemoryWalletRepository:
    async def get(self, db: MemorySession, user_id: str) -> Wallet | None:
        return db.get(TABLE, user_id)

    async def create(self, db: MemorySession, user_id: str) -> Wallet:
        existing = db.get(TABLE, user_id)
        if existing is not None:
            return existing
        now = utc_now()
        wallet = Wallet(user_id=user_id, created_at=now, updated_at=now)
        db.put(TABLE, user_id, wallet)
        return db.get(TABLE, user_id)

    async def lock_for_update(
        self, db: MemorySession, user_ids: list[str]
    ) -> dict[str, Wallet]:
        await db.lock(TABLE, user_ids)
        wallets = {}
        for user_id in sorted(set(user_ids)):
            wallet = db.get(TABLE, user_id)
            if wallet is not None:
                wallets[user_id] = wallet
        return wallets

    async def save(self, db: MemorySession, wallet: Wallet) -> None:
        wallet.updated_at = utc_now()
        db.put(TABLE, wallet.user_id, wallet)
