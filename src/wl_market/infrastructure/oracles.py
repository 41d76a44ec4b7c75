"""Price oracle implementations.

SimulatedPriceOracle seeds a fixed catalogue of crypto and equity symbols
with jittered prices and drifts them by a small random walk on every tick.
StaticPriceOracle serves fixed quotes (tests, embedding).
"""

import asyncio
import logging
import random
from decimal import Decimal

from src.wl_common.decimals import ZERO, quantize
from src.wl_market.domain.oracle import AssetQuote

logger = logging.getLogger(__name__)

# symbol -> (name, base price, price jitter, change jitter in %)
CATALOGUE: dict[str, tuple[str, str, str, str]] = {
    "BTC": ("Bitcoin", "45000", "5000", "10"),
    "ETH": ("Ethereum", "3000", "500", "15"),
    "ADA": ("Cardano", "0.45", "0.1", "20"),
    "SOL": ("Solana", "100", "20", "25"),
    "MATIC": ("Polygon", "0.85", "0.15", "18"),
    "LINK": ("Chainlink", "15", "3", "12"),
    "VET": ("VeChain", "0.025", "0.005", "30"),
    "FIL": ("Filecoin", "5", "1", "22"),
    "UNI": ("Uniswap", "8", "2", "16"),
    "AAVE": ("Aave", "120", "20", "14"),
    "AAPL": ("Apple Inc.", "180", "20", "5"),
    "MSFT": ("Microsoft Corporation", "380", "30", "6"),
    "GOOGL": ("Alphabet Inc.", "140", "15", "7"),
    "AMZN": ("Amazon.com Inc.", "160", "20", "8"),
    "TSLA": ("Tesla Inc.", "250", "50", "15"),
    "NVDA": ("NVIDIA Corporation", "500", "100", "20"),
}

_STEP = Decimal("0.001")       # max relative price move per tick
_CHANGE_STEP = Decimal("0.5")  # max change_pct drift per tick


def _uniform(rng: random.Random, spread: Decimal) -> Decimal:
    """Uniform in [-spread/2, spread/2), as a Decimal."""
    return (Decimal(str(rng.random())) - Decimal("0.5")) * spread


class SimulatedPriceOracle:
    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._quotes: dict[str, AssetQuote] = {}
        for symbol, (name, base, jitter, change) in CATALOGUE.items():
            price = Decimal(base) + Decimal(str(self._rng.random())) * Decimal(jitter)
            self._quotes[symbol] = AssetQuote(
                symbol=symbol,
                name=name,
                price=quantize(price),
                change_pct=quantize(_uniform(self._rng, Decimal(change))),
            )

    async def quote(self, asset_id: str) -> Decimal:
        q = self._quotes.get(asset_id)
        return q.price if q is not None else ZERO

    def list_quotes(self) -> list[AssetQuote]:
        return [self._quotes[s] for s in sorted(self._quotes)]

    def tick(self) -> None:
        for symbol, q in self._quotes.items():
            price = q.price + _uniform(self._rng, q.price * _STEP)
            self._quotes[symbol] = AssetQuote(
                symbol=symbol,
                name=q.name,
                price=quantize(max(price, ZERO)),
                change_pct=quantize(q.change_pct + _uniform(self._rng, _CHANGE_STEP)),
            )

    async def run(self, interval_seconds: float) -> None:
        """Tick forever; cancelled on application shutdown."""
        logger.info("Simulated market feed ticking every %.1fs", interval_seconds)
        while True:
            await asyncio.sleep(interval_seconds)
            self.tick()


class StaticPriceOracle:
    def __init__(self, prices: dict[str, Decimal | int | str] | None = None) -> None:
        self._prices = {k: Decimal(str(v)) for k, v in (prices or {}).items()}

    def set_price(self, asset_id: str, price: Decimal | int | str) -> None:
        self._prices[asset_id] = Decimal(str(price))

    async def quote(self, asset_id: str) -> Decimal:
        return self._prices.get(asset_id, ZERO)

    def list_quotes(self) -> list[AssetQuote]:
        return [
            AssetQuote(symbol=s, name=s, price=p, change_pct=ZERO)
            for s, p in sorted(self._prices.items())
        ]
