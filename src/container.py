"""Service wiring.

``build_services`` assembles the PostgreSQL-backed graph used by the app;
``build_memory_services`` assembles the same graph over in-process stores
(tests, demos). Routers resolve the active graph through ``get_services``.
"""

from dataclasses import dataclass

from config.settings import settings
from src.wl_common.database import async_session_factory
from src.wl_gateway.user.directory import MemoryUserDirectory, UserDirectory
from src.wl_gateway.user.service import UserService
from src.wl_ledger.application.engine import LedgerEngine
from src.wl_ledger.application.transaction_log import TransactionLog
from src.wl_ledger.domain.repository import UserDirectoryProtocol
from src.wl_ledger.infrastructure.memory import MemoryTransactionRepository
from src.wl_market.domain.oracle import PriceOracleProtocol
from src.wl_market.infrastructure.oracles import SimulatedPriceOracle, StaticPriceOracle
from src.wl_notify.domain.sinks import AdminAuditSinkProtocol, NotificationSinkProtocol
from src.wl_notify.infrastructure.sinks import (
    FanoutNotificationSink,
    LoggingNotificationSink,
    MemoryAuditSink,
    MemoryNotificationSink,
    SqlAdminAuditSink,
    SqlNotificationSink,
)
from src.wl_pin.application.vault import PinVault
from src.wl_pin.infrastructure.memory import MemoryPinRepository
from src.wl_wallet.application.store import WalletStore
from src.wl_wallet.infrastructure.memory import MemoryWalletRepository


@dataclass
class Services:
    wallets: WalletStore
    transactions: TransactionLog
    pins: PinVault
    oracle: PriceOracleProtocol
    users: UserDirectoryProtocol
    notifier: NotificationSinkProtocol
    audit: AdminAuditSinkProtocol
    engine: LedgerEngine
    accounts: UserService


def _assemble(
    wallets: WalletStore,
    transactions: TransactionLog,
    pins: PinVault,
    oracle: PriceOracleProtocol,
    users: UserDirectoryProtocol,
    notifier: NotificationSinkProtocol,
    audit: AdminAuditSinkProtocol,
    fiat_asset: str,
    swap_recomputes_cost_basis: bool,
    require_pin_setup: bool,
) -> Services:
    engine = LedgerEngine(
        wallets=wallets,
        transactions=transactions,
        pins=pins,
        oracle=oracle,
        users=users,
        notifier=notifier,
        audit=audit,
        fiat_asset=fiat_asset,
        swap_recomputes_cost_basis=swap_recomputes_cost_basis,
        require_pin_setup=require_pin_setup,
    )
    return Services(
        wallets=wallets,
        transactions=transactions,
        pins=pins,
        oracle=oracle,
        users=users,
        notifier=notifier,
        audit=audit,
        engine=engine,
        accounts=UserService(wallets, pins),
    )


def build_services() -> Services:
    notifier = FanoutNotificationSink(
        [LoggingNotificationSink(), SqlNotificationSink(async_session_factory)]
    )
    audit = SqlAdminAuditSink(async_session_factory)
    return _assemble(
        wallets=WalletStore(),
        transactions=TransactionLog(),
        pins=PinVault(notifier, audit, hash_rounds=settings.PIN_HASH_ROUNDS),
        oracle=SimulatedPriceOracle(),
        users=UserDirectory(),
        notifier=notifier,
        audit=audit,
        fiat_asset=settings.FIAT_ASSET,
        swap_recomputes_cost_basis=settings.SWAP_RECOMPUTES_COST_BASIS,
        require_pin_setup=settings.REQUIRE_PIN_SETUP_FOR_TRANSFERS,
    )


def build_memory_services(
    oracle: PriceOracleProtocol | None = None,
    users: UserDirectoryProtocol | None = None,
    hash_rounds: int = 4,
    fiat_asset: str = "USD",
    swap_recomputes_cost_basis: bool = False,
    require_pin_setup: bool = False,
) -> Services:
    """In-process graph over MemorySession; sessions come from a MemoryDatabase."""
    notifier = MemoryNotificationSink()
    audit = MemoryAuditSink()
    return _assemble(
        wallets=WalletStore(MemoryWalletRepository()),
        transactions=TransactionLog(MemoryTransactionRepository()),
        pins=PinVault(notifier, audit, repo=MemoryPinRepository(), hash_rounds=hash_rounds),
        oracle=oracle or StaticPriceOracle(),
        users=users or MemoryUserDirectory(),
        notifier=notifier,
        audit=audit,
        fiat_asset=fiat_asset,
        swap_recomputes_cost_basis=swap_recomputes_cost_basis,
        require_pin_setup=require_pin_setup,
    )


_services: Services | None = None


def get_services() -> Services:
    """FastAPI dependency; builds the SQL graph on first use."""
    global _services
    if _services is None:
        _services = build_services()
    return _services
