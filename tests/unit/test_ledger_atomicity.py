"""Atomicity, isolation and side-channel behaviour of LedgerEngine."""

import asyncio
from decimal import Decimal

import pytest

from src.wl_common.errors import InsufficientBalanceError
from src.wl_common.unit_of_work import MemoryDatabase, MemorySession
from src.wl_gateway.user.directory import MemoryUserDirectory
from src.wl_ledger.application.engine import LedgerEngine
from src.wl_ledger.application.transaction_log import TransactionLog
from src.wl_ledger.domain.models import Transaction
from src.wl_ledger.infrastructure.memory import MemoryTransactionRepository
from src.wl_market.infrastructure.oracles import StaticPriceOracle
from src.wl_notify.infrastructure.sinks import MemoryAuditSink, MemoryNotificationSink
from src.wl_pin.application.vault import PinVault
from src.wl_pin.infrastructure.memory import MemoryPinRepository
from src.wl_wallet.application.store import WalletStore
from src.wl_wallet.infrastructure.memory import MemoryWalletRepository

D = Decimal


class FailingTransactionRepository(MemoryTransactionRepository):
    async def append(self, db: MemorySession, tx: Transaction) -> Transaction:
        raise RuntimeError("history store unavailable")


class BrokenNotifier:
    async def notify(self, user_id: str, event_type: str, payload: dict) -> None:
        raise ConnectionError("smtp down")


def _engine(
    transactions: MemoryTransactionRepository | None = None,
    notifier: object | None = None,
) -> LedgerEngine:
    sink = notifier or MemoryNotificationSink()
    audit = MemoryAuditSink()
    return LedgerEngine(
        wallets=WalletStore(MemoryWalletRepository()),
        transactions=TransactionLog(transactions or MemoryTransactionRepository()),
        pins=PinVault(sink, audit, repo=MemoryPinRepository(), hash_rounds=4),  # type: ignore[arg-type]
        oracle=StaticPriceOracle({"BTC": 100}),
        users=MemoryUserDirectory({"a": "a", "b": "b"}),
        notifier=sink,  # type: ignore[arg-type]
        audit=audit,
    )


async def _seed(engine: LedgerEngine, database: MemoryDatabase, cash: str = "100") -> None:
    async with database.session() as session:
        for user_id in ("a", "b"):
            await WalletStore(MemoryWalletRepository()).create_for_user(session, user_id)
        await session.commit()
        await engine.add_money(session, "a", D(cash))


class TestAtomicity:
    async def test_history_failure_rolls_back_balance(self) -> None:
        database = MemoryDatabase()
        await _seed(_engine(), database)

        failing = _engine(FailingTransactionRepository())
        async with database.session() as session:
            with pytest.raises(RuntimeError):
                await failing.add_money(session, "a", D("50"))
            with pytest.raises(RuntimeError):
                await failing.send_money(session, "a", "b", D("10"))

        async with database.session() as session:
            assert (await failing.get_wallet(session, "a")).fiat_balance == D("100")
            assert (await failing.get_wallet(session, "b")).fiat_balance == D("0")
        assert len(database.logs["transactions"]) == 1

    async def test_failed_operation_releases_locks(self) -> None:
        database = MemoryDatabase()
        engine = _engine()
        await _seed(engine, database)
        async with database.session() as session:
            with pytest.raises(InsufficientBalanceError):
                await engine.send_money(session, "a", "b", D("500"))
            # would deadlock if the failed transfer still held a or b
            await asyncio.wait_for(engine.send_money(session, "a", "b", D("1")), 1)

    async def test_notifier_failure_does_not_unwind(self) -> None:
        database = MemoryDatabase()
        engine = _engine(notifier=BrokenNotifier())
        await _seed(engine, database)
        async with database.session() as session:
            await engine.send_money(session, "a", "b", D("40"))
            assert (await engine.get_wallet(session, "b")).fiat_balance == D("40")
        assert len(database.logs["transactions"]) == 3


class TestConcurrency:
    async def test_opposing_transfers_do_not_deadlock_and_conserve(self) -> None:
        database = MemoryDatabase()
        engine = _engine()
        await _seed(engine, database, cash="1000")
        async with database.session() as session:
            await engine.add_money(session, "b", D("1000"))

        async def transfer(sender: str, recipient: str) -> None:
            async with database.session() as session:
                await engine.send_money(session, sender, recipient, D("1"))

        jobs = [transfer("a", "b") for _ in range(25)] + [transfer("b", "a") for _ in range(25)]
        await asyncio.wait_for(asyncio.gather(*jobs), timeout=10)

        async with database.session() as session:
            a = (await engine.get_wallet(session, "a")).fiat_balance
            b = (await engine.get_wallet(session, "b")).fiat_balance
        assert a == D("1000") and b == D("1000")
        assert len(database.logs["transactions"]) == 2 + 100

    async def test_concurrent_spend_never_overdraws(self) -> None:
        database = MemoryDatabase()
        engine = _engine()
        await _seed(engine, database, cash="10")

        async def spend() -> bool:
            async with database.session() as session:
                try:
                    await engine.buy_asset(session, "a", "BTC", D("0.03"))
                except InsufficientBalanceError:
                    return False
                return True

        results = await asyncio.gather(*(spend() for _ in range(10)))
        assert sum(results) == 3
        async with database.session() as session:
            wallet = await engine.get_wallet(session, "a")
        assert wallet.fiat_balance == D("1")
        assert wallet.positions["BTC"].balance == D("0.09")
