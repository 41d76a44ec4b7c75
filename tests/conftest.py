"""Shared test fixtures.

Settings require JWT_SECRET, so it is set before anything under ``src``
is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use-in-production")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402

from src.container import Services, build_memory_services  # noqa: E402
from src.wl_common.unit_of_work import MemoryDatabase, MemorySession  # noqa: E402
from src.wl_gateway.user.directory import MemoryUserDirectory  # noqa: E402
from src.wl_market.infrastructure.oracles import StaticPriceOracle  # noqa: E402

ALICE = "u-alice"
BOB = "u-bob"


@pytest.fixture
def memory_db() -> MemoryDatabase:
    return MemoryDatabase()


@pytest.fixture
async def db(memory_db: MemoryDatabase) -> MemorySession:
    async with memory_db.session() as session:
        yield session


@pytest.fixture
def oracle() -> StaticPriceOracle:
    return StaticPriceOracle({"BTC": Decimal("45000"), "ETH": Decimal("3000")})


@pytest.fixture
def directory() -> MemoryUserDirectory:
    return MemoryUserDirectory({"alice": ALICE, "bob": BOB})


@pytest.fixture
def services(oracle: StaticPriceOracle, directory: MemoryUserDirectory) -> Services:
    return build_memory_services(oracle=oracle, users=directory)


@pytest.fixture
async def funded(services: Services, db: MemorySession) -> Services:
    """alice and bob provisioned the way registration does; alice holds $1000."""
    for user_id in (ALICE, BOB):
        await services.wallets.create_for_user(db, user_id)
        await services.pins.create_entry(db, user_id)
    await db.commit()
    await services.engine.add_money(db, ALICE, Decimal("1000"))
    return services
