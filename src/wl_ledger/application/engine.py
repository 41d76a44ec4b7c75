"""LedgerEngine: orchestrates every value-moving operation.

Each command follows the same path:
  validate -> authorize (PIN gate) -> WalletStore.mutate under row locks
  -> TransactionLog.append in the same session -> commit -> notify.

Any exception before commit rolls the session back, which discards both the
balance change and its history entry and releases the wallet locks.
Notifications and audit entries are dispatched after commit and never raise.

The engine holds no state of its own; every collaborator is injected.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

from src.wl_common.decimals import (
    ZERO,
    AmountLike,
    quantize,
    quantize_down,
    quantize_up,
    to_decimal,
)
from src.wl_common.enums import AuditAction, NotificationEvent, TransactionType
from src.wl_common.errors import (
    PinSetupRequiredError,
    RecipientNotFoundError,
    ValidationError,
)
from src.wl_common.id_generator import generate_id
from src.wl_ledger.application.transaction_log import TransactionLog
from src.wl_ledger.domain.models import Transaction
from src.wl_ledger.domain.repository import UserDirectoryProtocol
from src.wl_market.domain.oracle import PriceOracleProtocol
from src.wl_notify.domain.sinks import (
    AdminAuditSinkProtocol,
    NotificationSinkProtocol,
    dispatch_audit,
    dispatch_notification,
)
from src.wl_pin.application.vault import PinVault
from src.wl_wallet.application.store import WalletStore
from src.wl_wallet.domain.balances import apply_purchase, balance_of, credit, debit, set_balance
from src.wl_wallet.domain.models import Wallet

logger = logging.getLogger(__name__)

SYSTEM_COUNTERPARTY = "Wallet Support"
INTERNAL_TRANSFER_COUNTERPARTY = "Internal Transfer"


@asynccontextmanager
async def _atomic(db: Any) -> AsyncIterator[None]:
    try:
        yield
        await db.commit()
    except Exception:
        await db.rollback()
        raise


def _positive(value: AmountLike, field: str = "amount") -> Decimal:
    try:
        amount = to_decimal(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field}: {value!r}") from exc
    if amount <= ZERO:
        raise ValidationError(f"{field.capitalize()} must be positive, got {amount}")
    return amount


def _asset_id(asset: str) -> str:
    if not isinstance(asset, str) or not asset.strip():
        raise ValidationError("Asset identifier is required")
    return asset.strip()


class LedgerEngine:
    def __init__(
        self,
        wallets: WalletStore,
        transactions: TransactionLog,
        pins: PinVault,
        oracle: PriceOracleProtocol,
        users: UserDirectoryProtocol,
        notifier: NotificationSinkProtocol,
        audit: AdminAuditSinkProtocol,
        fiat_asset: str = "USD",
        swap_recomputes_cost_basis: bool = False,
        require_pin_setup: bool = False,
    ) -> None:
        self._wallets = wallets
        self._transactions = transactions
        self._pins = pins
        self._oracle = oracle
        self._users = users
        self._notifier = notifier
        self._audit = audit
        self.fiat_asset = fiat_asset
        self._swap_recomputes_cost_basis = swap_recomputes_cost_basis
        self._require_pin_setup = require_pin_setup

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_wallet(self, db: Any, user_id: str) -> Wallet:
        return await self._wallets.get(db, user_id)

    async def get_asset_balance(self, db: Any, user_id: str, asset: str) -> Decimal:
        return await self._wallets.get_asset_balance(db, user_id, asset, self.fiat_asset)

    async def get_total_value(self, db: Any, user_id: str) -> Decimal:
        """Fiat balance plus every position valued at the current quote."""
        wallet = await self._wallets.get(db, user_id)
        total = wallet.fiat_balance
        for asset, pos in wallet.positions.items():
            total += pos.balance * await self._oracle.quote(asset)
        return total

    async def get_transaction_history(
        self,
        db: Any,
        user_id: str | None = None,
        cursor_id: int | None = None,
        limit: int | None = None,
        tx_type: TransactionType | str | None = None,
    ) -> list[Transaction]:
        """Newest first; ``user_id=None`` returns every ledger (admin view)."""
        return await self._transactions.history(db, user_id, cursor_id, limit, tx_type)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def add_money(self, db: Any, user_id: str, amount: AmountLike) -> Transaction:
        amount = _positive(amount)
        fiat = self.fiat_asset

        def apply(wallets: dict[str, Wallet]) -> Transaction:
            credit(wallets[user_id], fiat, amount, fiat)
            return Transaction.record(
                user_id, TransactionType.ADD_MONEY, fiat, amount, SYSTEM_COUNTERPARTY
            )

        async with _atomic(db):
            tx = await self._wallets.mutate(db, [user_id], apply)
            await self._transactions.append(db, tx)

        logger.info("add_money user=%s amount=%s tx=%s", user_id, amount, tx.id)
        await self._notify_transaction(tx)
        return tx

    async def receive_money(
        self, db: Any, user_id: str, amount: AmountLike, asset: str | None = None
    ) -> Transaction:
        amount = _positive(amount)
        asset = _asset_id(asset or self.fiat_asset)
        fiat = self.fiat_asset

        def apply(wallets: dict[str, Wallet]) -> Transaction:
            credit(wallets[user_id], asset, amount, fiat)
            return Transaction.record(
                user_id, TransactionType.RECEIVE, asset, amount, INTERNAL_TRANSFER_COUNTERPARTY
            )

        async with _atomic(db):
            tx = await self._wallets.mutate(db, [user_id], apply)
            await self._transactions.append(db, tx)

        logger.info("receive user=%s asset=%s amount=%s tx=%s", user_id, asset, amount, tx.id)
        await self._notify_transaction(tx)
        return tx

    async def send_money(
        self,
        db: Any,
        sender_id: str,
        recipient_username: str,
        amount: AmountLike,
        asset: str | None = None,
        pin: str | None = None,
    ) -> tuple[Transaction, Transaction]:
        """Peer transfer; returns the (send, receive) pair."""
        amount = _positive(amount)
        asset = _asset_id(asset or self.fiat_asset)
        fiat = self.fiat_asset

        async with _atomic(db):
            await self._authorize(db, sender_id, pin)
            recipient_id = await self._users.find_user_id(db, recipient_username)
            if recipient_id is None:
                raise RecipientNotFoundError(recipient_username)
            sender_name = await self._users.find_username(db, sender_id) or sender_id
            transfer_id = generate_id()

            def apply(wallets: dict[str, Wallet]) -> tuple[Transaction, Transaction]:
                debit(wallets[sender_id], asset, amount, fiat)
                credit(wallets[recipient_id], asset, amount, fiat)
                link = {"transfer_id": transfer_id}
                return (
                    Transaction.record(
                        sender_id, TransactionType.SEND, asset, amount,
                        recipient_username, link,
                    ),
                    Transaction.record(
                        recipient_id, TransactionType.RECEIVE, asset, amount,
                        sender_name, link,
                    ),
                )

            send_tx, receive_tx = await self._wallets.mutate(
                db, [sender_id, recipient_id], apply
            )
            await self._transactions.append(db, send_tx)
            await self._transactions.append(db, receive_tx)

        logger.info(
            "send %s -> %s asset=%s amount=%s transfer=%s",
            sender_id, recipient_id, asset, amount, transfer_id,
        )
        await dispatch_notification(
            self._notifier,
            sender_id,
            NotificationEvent.TRANSFER_SENT.value,
            {
                "amount": amount,
                "asset": asset,
                "recipient": recipient_username,
                "transaction_id": send_tx.id,
            },
        )
        await dispatch_notification(
            self._notifier,
            recipient_id,
            NotificationEvent.TRANSFER_RECEIVED.value,
            {
                "amount": amount,
                "asset": asset,
                "sender": sender_name,
                "transaction_id": receive_tx.id,
            },
        )
        return send_tx, receive_tx

    async def buy_asset(
        self,
        db: Any,
        user_id: str,
        asset: str,
        amount: AmountLike,
        price: AmountLike | None = None,
    ) -> Transaction:
        amount = _positive(amount)
        asset = self._tradable(asset)
        unit_price = await self._resolve_price(asset, price)
        cost = quantize_up(unit_price * amount)
        fiat = self.fiat_asset

        def apply(wallets: dict[str, Wallet]) -> Transaction:
            wallet = wallets[user_id]
            debit(wallet, fiat, cost, fiat)
            apply_purchase(wallet, asset, amount, cost)
            return Transaction.record(
                user_id, TransactionType.BUY, asset, amount,
                metadata={"cost": cost, "price": quantize(cost / amount)},
            )

        async with _atomic(db):
            tx = await self._wallets.mutate(db, [user_id], apply)
            await self._transactions.append(db, tx)

        logger.info(
            "buy user=%s asset=%s amount=%s cost=%s tx=%s", user_id, asset, amount, cost, tx.id
        )
        await self._notify_transaction(tx)
        return tx

    async def sell_asset(
        self,
        db: Any,
        user_id: str,
        asset: str,
        amount: AmountLike,
        price: AmountLike | None = None,
    ) -> Transaction:
        amount = _positive(amount)
        asset = self._tradable(asset)
        unit_price = await self._resolve_price(asset, price)
        proceeds = quantize_down(unit_price * amount)
        fiat = self.fiat_asset

        def apply(wallets: dict[str, Wallet]) -> Transaction:
            wallet = wallets[user_id]
            # An exhausted position is dropped; its average cost goes with it.
            debit(wallet, asset, amount, fiat)
            credit(wallet, fiat, proceeds, fiat)
            return Transaction.record(
                user_id, TransactionType.SELL, asset, amount,
                metadata={"proceeds": proceeds, "price": unit_price},
            )

        async with _atomic(db):
            tx = await self._wallets.mutate(db, [user_id], apply)
            await self._transactions.append(db, tx)

        logger.info(
            "sell user=%s asset=%s amount=%s proceeds=%s tx=%s",
            user_id, asset, amount, proceeds, tx.id,
        )
        await self._notify_transaction(tx)
        return tx

    async def swap_assets(
        self,
        db: Any,
        user_id: str,
        from_asset: str,
        to_asset: str,
        amount: AmountLike,
        pin: str | None = None,
    ) -> Transaction:
        amount = _positive(amount)
        from_asset = self._tradable(from_asset)
        to_asset = self._tradable(to_asset)
        if from_asset == to_asset:
            raise ValidationError("Cannot swap an asset into itself")
        fiat = self.fiat_asset

        async with _atomic(db):
            await self._authorize(db, user_id, pin)
            from_price = await self._oracle.quote(from_asset)
            to_price = await self._oracle.quote(to_asset)
            if to_price <= ZERO:
                raise ValidationError(f"No quote available for {to_asset}")
            rate = quantize(from_price / to_price)
            to_amount = quantize_down(amount * from_price / to_price)
            if to_amount <= ZERO:
                raise ValidationError(f"Swap of {amount} {from_asset} is worth nothing")
            swapped_value = quantize(amount * from_price)

            def apply(wallets: dict[str, Wallet]) -> Transaction:
                wallet = wallets[user_id]
                debit(wallet, from_asset, amount, fiat)
                if self._swap_recomputes_cost_basis:
                    apply_purchase(wallet, to_asset, to_amount, swapped_value)
                else:
                    # Units arrive at the stored average cost (zero for a new
                    # position); see SWAP_RECOMPUTES_COST_BASIS.
                    credit(wallet, to_asset, to_amount, fiat)
                return Transaction.record(
                    user_id, TransactionType.SWAP, from_asset, amount,
                    metadata={"to_asset": to_asset, "to_amount": to_amount, "rate": rate},
                )

            tx = await self._wallets.mutate(db, [user_id], apply)
            await self._transactions.append(db, tx)

        logger.info(
            "swap user=%s %s %s -> %s %s tx=%s",
            user_id, amount, from_asset, to_amount, to_asset, tx.id,
        )
        await self._notify_transaction(tx)
        return tx

    async def admin_set_balance(
        self,
        db: Any,
        admin_id: str,
        user_id: str,
        asset: str,
        new_balance: AmountLike,
    ) -> Wallet:
        """Override a balance directly. Writes the admin audit log, not the ledger."""
        try:
            balance = to_decimal(new_balance)
        except ValueError as exc:
            raise ValidationError(f"Invalid balance: {new_balance!r}") from exc
        asset = _asset_id(asset)
        fiat = self.fiat_asset

        def apply(wallets: dict[str, Wallet]) -> tuple[Decimal, Wallet]:
            wallet = wallets[user_id]
            previous = balance_of(wallet, asset, fiat)
            set_balance(wallet, asset, balance, fiat)
            return previous, wallet

        async with _atomic(db):
            previous, wallet = await self._wallets.mutate(db, [user_id], apply)

        logger.info(
            "admin %s set %s balance of user %s: %s -> %s",
            admin_id, asset, user_id, previous, balance,
        )
        await dispatch_audit(
            self._audit,
            AuditAction.BALANCE_OVERRIDE.value,
            {
                "admin_id": admin_id,
                "user_id": user_id,
                "asset": asset,
                "previous_balance": previous,
                "new_balance": balance,
            },
        )
        return wallet

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _authorize(self, db: Any, user_id: str, pin: str | None) -> None:
        """Transfer-PIN gate for value leaving the wallet."""
        if await self._pins.is_configured(db, user_id):
            if not pin:
                raise ValidationError("Transfer PIN required for this transaction")
            await self._pins.verify(db, user_id, pin)
        elif self._require_pin_setup and await self._pins.must_set_pin(db, user_id):
            raise PinSetupRequiredError()

    async def _resolve_price(self, asset: str, price: AmountLike | None) -> Decimal:
        if price is not None:
            return _positive(price, "price")
        return await self._oracle.quote(asset)

    def _tradable(self, asset: str) -> str:
        asset = _asset_id(asset)
        if asset == self.fiat_asset:
            raise ValidationError(f"{asset} is the fiat currency, not a tradable asset")
        return asset

    async def _notify_transaction(self, tx: Transaction) -> None:
        await dispatch_notification(
            self._notifier,
            tx.user_id,
            NotificationEvent.TRANSACTION.value,
            {
                "transaction_id": tx.id,
                "type": tx.type.value,
                "asset": tx.asset,
                "amount": tx.amount,
                "counterparty": tx.counterparty,
            },
        )
