"""Tests for wl_wallet.domain balance arithmetic."""

from decimal import Decimal

import pytest

from src.wl_common.errors import InsufficientBalanceError, ValidationError
from src.wl_wallet.domain.balances import (
    apply_purchase,
    balance_of,
    credit,
    debit,
    set_balance,
)
from src.wl_wallet.domain.models import AssetPosition, Wallet

USD = "USD"


def _wallet(fiat: str = "0", **positions: tuple[str, str]) -> Wallet:
    return Wallet(
        user_id="u-1",
        fiat_balance=Decimal(fiat),
        positions={
            asset: AssetPosition(Decimal(bal), Decimal(avg))
            for asset, (bal, avg) in positions.items()
        },
    )


class TestCredit:
    def test_fiat(self) -> None:
        wallet = _wallet("10")
        credit(wallet, USD, Decimal("5.5"), USD)
        assert wallet.fiat_balance == Decimal("15.5")

    def test_new_position_starts_at_zero_cost(self) -> None:
        wallet = _wallet()
        credit(wallet, "ETH", Decimal("2"), USD)
        assert wallet.positions["ETH"] == AssetPosition(Decimal("2"), Decimal("0"))

    def test_existing_position_keeps_average_cost(self) -> None:
        wallet = _wallet(BTC=("1", "40000"))
        credit(wallet, "BTC", Decimal("1"), USD)
        assert wallet.positions["BTC"].balance == Decimal("2")
        assert wallet.positions["BTC"].average_cost == Decimal("40000")


class TestDebit:
    def test_fiat_insufficient_leaves_wallet_untouched(self) -> None:
        wallet = _wallet("10")
        with pytest.raises(InsufficientBalanceError) as exc_info:
            debit(wallet, USD, Decimal("10.01"), USD)
        assert exc_info.value.available == Decimal("10")
        assert wallet.fiat_balance == Decimal("10")

    def test_missing_position(self) -> None:
        with pytest.raises(InsufficientBalanceError) as exc_info:
            debit(_wallet(), "BTC", Decimal("0.1"), USD)
        assert exc_info.value.available == Decimal("0")

    def test_exact_debit_drops_position(self) -> None:
        wallet = _wallet(BTC=("0.5", "45000"))
        debit(wallet, "BTC", Decimal("0.5"), USD)
        assert "BTC" not in wallet.positions
        assert wallet.position("BTC") is None

    def test_partial_debit_keeps_cost(self) -> None:
        wallet = _wallet(BTC=("0.5", "45000"))
        debit(wallet, "BTC", Decimal("0.2"), USD)
        assert wallet.positions["BTC"] == AssetPosition(Decimal("0.3"), Decimal("45000"))


class TestApplyPurchase:
    def test_weighted_average(self) -> None:
        wallet = _wallet()
        apply_purchase(wallet, "BTC", Decimal("10"), Decimal("1000"))
        apply_purchase(wallet, "BTC", Decimal("5"), Decimal("550"))
        pos = wallet.positions["BTC"]
        assert pos.balance == Decimal("15")
        assert pos.average_cost == Decimal("103.333333333333333333")

    def test_first_purchase_sets_cost(self) -> None:
        wallet = _wallet()
        apply_purchase(wallet, "ETH", Decimal("2"), Decimal("6000"))
        assert wallet.positions["ETH"].average_cost == Decimal("3000")


class TestSetBalance:
    def test_negative_rejected(self) -> None:
        with pytest.raises(ValidationError):
            set_balance(_wallet("5"), USD, Decimal("-1"), USD)

    def test_zero_removes_position(self) -> None:
        wallet = _wallet(BTC=("1", "100"))
        set_balance(wallet, "BTC", Decimal("0"), USD)
        assert wallet.positions == {}

    def test_override_keeps_average_cost(self) -> None:
        wallet = _wallet(BTC=("1", "100"))
        set_balance(wallet, "BTC", Decimal("3"), USD)
        assert wallet.positions["BTC"] == AssetPosition(Decimal("3"), Decimal("100"))

    def test_fiat(self) -> None:
        wallet = _wallet("5")
        set_balance(wallet, USD, Decimal("123.45"), USD)
        assert balance_of(wallet, USD, USD) == Decimal("123.45")


def test_balance_of_unknown_asset_is_zero() -> None:
    assert balance_of(_wallet(), "DOGE", USD) == Decimal("0")


def test_cost_basis() -> None:
    assert AssetPosition(Decimal("2"), Decimal("150")).cost_basis == Decimal("300")
