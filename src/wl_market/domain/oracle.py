"""Price feed contract and quote model.

The ledger only ever asks for one number: the current unit price of an
asset in fiat. An unknown asset quotes 0, which callers treat as a valid
(degenerate) quote rather than an error.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol


@dataclass(frozen=True)
class AssetQuote:
    symbol: str
    name: str
    price: Decimal
    change_pct: Decimal


class PriceOracleProtocol(Protocol):
    async def quote(self, asset_id: str) -> Decimal: ...

    def list_quotes(self) -> list[AssetQuote]: ...
