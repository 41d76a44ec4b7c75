"""Unit tests for the Postgres repositories using a mocked AsyncSession."""

import json
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.wl_common.enums import TransactionType
from src.wl_common.errors import InternalError
from src.wl_ledger.domain.models import Transaction
from src.wl_ledger.infrastructure.persistence import (
    TransactionRepository,
    metadata_from_json,
    metadata_to_json,
)
from src.wl_pin.domain.models import PinRecord
from src.wl_pin.infrastructure.persistence import PinRepository
from src.wl_wallet.domain.models import AssetPosition, Wallet
from src.wl_wallet.infrastructure.persistence import WalletRepository

NOW = datetime(2026, 10, 1, tzinfo=UTC)


def _result(one: object = None, many: list | None = None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = many or []
    return result


def _row(**fields: object) -> MagicMock:
    row = MagicMock()
    for key, value in fields.items():
        setattr(row, key, value)
    return row


def _wallet_row(user_id: str, fiat: str) -> MagicMock:
    return _row(user_id=user_id, fiat_balance=Decimal(fiat), created_at=NOW, updated_at=NOW)


def _position_row(user_id: str, asset: str, balance: str, avg: str) -> MagicMock:
    return _row(
        user_id=user_id, asset_id=asset, balance=Decimal(balance), average_cost=Decimal(avg)
    )


@pytest.fixture
def session() -> MagicMock:
    return MagicMock()


class TestWalletRepository:
    async def test_get_assembles_positions(self, session: MagicMock) -> None:
        session.execute = AsyncMock(
            side_effect=[
                _result(one=_wallet_row("u-1", "550")),
                _result(many=[_position_row("u-1", "BTC", "0.01", "45000")]),
            ]
        )
        wallet = await WalletRepository().get(session, "u-1")
        assert wallet is not None
        assert wallet.fiat_balance == Decimal("550")
        assert wallet.positions == {"BTC": AssetPosition(Decimal("0.01"), Decimal("45000"))}

    async def test_get_missing(self, session: MagicMock) -> None:
        session.execute = AsyncMock(return_value=_result(one=None))
        assert await WalletRepository().get(session, "u-1") is None
        assert session.execute.await_count == 1

    async def test_lock_orders_user_ids(self, session: MagicMock) -> None:
        session.execute = AsyncMock(
            side_effect=[
                _result(many=[_wallet_row("a", "1"), _wallet_row("b", "2")]),
                _result(many=[]),
            ]
        )
        wallets = await WalletRepository().lock_for_update(session, ["b", "a", "b"])
        sql, params = session.execute.call_args_list[0].args
        assert "FOR UPDATE" in str(sql)
        assert params == {"user_ids": ["a", "b"]}
        assert sorted(wallets) == ["a", "b"]

    async def test_save_rewrites_positions(self, session: MagicMock) -> None:
        session.execute = AsyncMock(return_value=_result(one=_row(user_id="u-1")))
        wallet = Wallet(
            user_id="u-1",
            fiat_balance=Decimal("10"),
            positions={"ETH": AssetPosition(Decimal("2"), Decimal("3000"))},
        )
        await WalletRepository().save(session, wallet)
        calls = [c.args[1] for c in session.execute.call_args_list]
        assert calls[0] == {"user_id": "u-1", "fiat_balance": Decimal("10")}
        assert calls[1] == {"user_id": "u-1", "keep": ["ETH"]}
        assert calls[2]["asset_id"] == "ETH" and calls[2]["balance"] == Decimal("2")

    async def test_save_missing_row_raises(self, session: MagicMock) -> None:
        session.execute = AsyncMock(return_value=_result(one=None))
        with pytest.raises(InternalError):
            await WalletRepository().save(session, Wallet(user_id="ghost"))


class TestTransactionRepository:
    def _tx(self) -> Transaction:
        return Transaction(
            id="123456789",
            user_id="u-1",
            type=TransactionType.BUY,
            asset="BTC",
            amount=Decimal("0.01"),
            counterparty=None,
            timestamp=NOW,
            metadata={"cost": Decimal("450"), "price": Decimal("45000")},
        )

    async def test_append_binds_bigint_id_and_json(self, session: MagicMock) -> None:
        session.execute = AsyncMock(return_value=_result(one=_row(id=123456789)))
        await TransactionRepository().append(session, self._tx())
        params = session.execute.call_args.args[1]
        assert params["id"] == 123456789
        assert params["type"] == "buy"
        assert params["status"] == "completed"
        assert json.loads(params["metadata"]) == {"cost": "450", "price": "45000"}

    async def test_list_maps_rows(self, session: MagicMock) -> None:
        row = _row(
            id=123456789,
            user_id="u-1",
            type="sell",
            asset="BTC",
            amount=Decimal("0.01"),
            counterparty=None,
            status="completed",
            metadata={"proceeds": "460", "price": "46000"},
            created_at=NOW,
        )
        session.execute = AsyncMock(return_value=_result(many=[row]))
        (tx,) = await TransactionRepository().list(session, "u-1", None, 20, "sell")
        assert tx.id == "123456789"
        assert tx.type is TransactionType.SELL
        assert tx.metadata == {"proceeds": Decimal("460"), "price": Decimal("46000")}
        params = session.execute.call_args.args[1]
        assert params == {"user_id": "u-1", "cursor_id": None, "type": "sell", "limit": 20}

    def test_metadata_round_trip_keeps_non_decimal_keys(self) -> None:
        raw = metadata_to_json({"transfer_id": "42", "to_asset": "ETH", "rate": Decimal("15")})
        assert metadata_from_json(raw) == {
            "transfer_id": "42",
            "to_asset": "ETH",
            "rate": Decimal("15"),
        }


class TestPinRepository:
    def _record(self) -> PinRecord:
        return PinRecord(
            user_id="u-1",
            pin_hash=None,
            must_set_pin=True,
            created_at=NOW,
            last_updated=NOW,
        )

    async def test_insert_if_absent_returns_stored_row(self, session: MagicMock) -> None:
        stored = _row(
            user_id="u-1",
            pin_hash="$2b$04$x",
            must_set_pin=False,
            created_at=NOW,
            last_updated=NOW,
            reset_by=None,
        )
        session.execute = AsyncMock(side_effect=[_result(), _result(one=stored)])
        record = await PinRepository().insert_if_absent(session, self._record())
        assert record.pin_hash == "$2b$04$x"
        assert record.must_set_pin is False

    async def test_save_missing_row_raises(self, session: MagicMock) -> None:
        session.execute = AsyncMock(return_value=_result(one=None))
        with pytest.raises(InternalError):
            await PinRepository().save(session, self._record())
