"""Domain models for wl_wallet: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.wl_common.decimals import ZERO


@dataclass
class AssetPosition:
    balance: Decimal
    average_cost: Decimal = ZERO   # fiat per unit, volume-weighted

    @property
    def cost_basis(self) -> Decimal:
        return self.balance * self.average_cost


@dataclass
class Wallet:
    user_id: str
    fiat_balance: Decimal = ZERO
    # asset_id -> position; a key exists only while its balance > 0
    positions: dict[str, AssetPosition] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def position(self, asset: str) -> AssetPosition | None:
        return self.positions.get(asset)

    def asset_balance(self, asset: str) -> Decimal:
        pos = self.positions.get(asset)
        return pos.balance if pos is not None else ZERO
