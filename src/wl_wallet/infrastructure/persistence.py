"""WalletRepository: Postgres implementation of WalletRepositoryProtocol.

Wallet rows are locked with SELECT ... FOR UPDATE ordered by user_id, so two
transfers running in opposite directions take their locks in the same order.
Positions live in wallet_positions; ``save`` rewrites them for one user.

Transaction ownership: the CALLER commits or rolls back the session. Row locks
are held until then.
"""

from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_common.errors import InternalError
from src.wl_wallet.domain.models import AssetPosition, Wallet

# ---------------------------------------------------------------------------
# SQL: wallets
# ---------------------------------------------------------------------------

_GET_WALLET_SQL = text("""
    SELECT user_id, fiat_balance, created_at, updated_at
    FROM wallets
    WHERE user_id = :user_id
""")

_CREATE_WALLET_SQL = text("""
    INSERT INTO wallets (user_id, fiat_balance)
    VALUES (:user_id, 0)
    ON CONFLICT (user_id) DO NOTHING
""")

_LOCK_WALLETS_SQL = text("""
    SELECT user_id, fiat_balance, created_at, updated_at
    FROM wallets
    WHERE user_id = ANY(:user_ids)
    ORDER BY user_id
    FOR UPDATE
""")

_UPDATE_WALLET_SQL = text("""
    UPDATE wallets
    SET fiat_balance = :fiat_balance,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING user_id
""")

# ---------------------------------------------------------------------------
# SQL: wallet_positions
# ---------------------------------------------------------------------------

_GET_POSITIONS_SQL = text("""
    SELECT user_id, asset_id, balance, average_cost
    FROM wallet_positions
    WHERE user_id = ANY(:user_ids)
    ORDER BY user_id, asset_id
""")

_DELETE_POSITIONS_SQL = text("""
    DELETE FROM wallet_positions
    WHERE user_id = :user_id
      AND NOT (asset_id = ANY(:keep))
""")

_UPSERT_POSITION_SQL = text("""
    INSERT INTO wallet_positions (user_id, asset_id, balance, average_cost)
    VALUES (:user_id, :asset_id, :balance, :average_cost)
    ON CONFLICT (user_id, asset_id) DO UPDATE
        SET balance = EXCLUDED.balance,
            average_cost = EXCLUDED.average_cost,
            updated_at = NOW()
""")


def _row_to_wallet(row: object) -> Wallet:
    return Wallet(
        user_id=row.user_id,  # type: ignore[attr-defined]
        fiat_balance=Decimal(row.fiat_balance),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class WalletRepository:
    """Concrete repository: balance writes happen under row locks."""

    async def get(self, db: AsyncSession, user_id: str) -> Wallet | None:
        result = await db.execute(_GET_WALLET_SQL, {"user_id": user_id})
        row = result.fetchone()
        if row is None:
            return None
        wallets = {user_id: _row_to_wallet(row)}
        await self._attach_positions(db, wallets)
        return wallets[user_id]

    async def create(self, db: AsyncSession, user_id: str) -> Wallet:
        await db.execute(_CREATE_WALLET_SQL, {"user_id": user_id})
        wallet = await self.get(db, user_id)
        if wallet is None:
            raise InternalError(f"Wallet insert for {user_id} returned no row")
        return wallet

    async def lock_for_update(
        self, db: AsyncSession, user_ids: list[str]
    ) -> dict[str, Wallet]:
        ordered = sorted(set(user_ids))
        result = await db.execute(_LOCK_WALLETS_SQL, {"user_ids": ordered})
        wallets = {row.user_id: _row_to_wallet(row) for row in result.fetchall()}
        if wallets:
            await self._attach_positions(db, wallets)
        return wallets

    async def save(self, db: AsyncSession, wallet: Wallet) -> None:
        result = await db.execute(
            _UPDATE_WALLET_SQL,
            {"user_id": wallet.user_id, "fiat_balance": wallet.fiat_balance},
        )
        if result.fetchone() is None:
            raise InternalError(f"Wallet update for {wallet.user_id} matched no row")
        await db.execute(
            _DELETE_POSITIONS_SQL,
            {"user_id": wallet.user_id, "keep": sorted(wallet.positions)},
        )
        for asset_id, pos in sorted(wallet.positions.items()):
            await db.execute(
                _UPSERT_POSITION_SQL,
                {
                    "user_id": wallet.user_id,
                    "asset_id": asset_id,
                    "balance": pos.balance,
                    "average_cost": pos.average_cost,
                },
            )

    async def _attach_positions(
        self, db: AsyncSession, wallets: dict[str, Wallet]
    ) -> None:
        result = await db.execute(_GET_POSITIONS_SQL, {"user_ids": sorted(wallets)})
        for row in result.fetchall():
            wallets[row.user_id].positions[row.asset_id] = AssetPosition(
                balance=Decimal(row.balance),
                average_cost=Decimal(row.average_cost),
            )
