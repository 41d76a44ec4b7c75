"""Balance arithmetic on a locked Wallet.

Every function mutates the wallet in place or raises before touching it, so
a caller running several of them inside ``WalletStore.mutate`` either saves
all effects or none.

Invariants kept here:
  - fiat_balance >= 0 and every position.balance >= 0
  - a position exists only while its balance > 0
"""

from decimal import Decimal

from src.wl_common.decimals import ZERO, quantize
from src.wl_common.errors import InsufficientBalanceError, ValidationError
from src.wl_wallet.domain.models import AssetPosition, Wallet


def credit(wallet: Wallet, asset: str, amount: Decimal, fiat_asset: str) -> None:
    """Add ``amount``; a new position starts at zero average cost."""
    if asset == fiat_asset:
        wallet.fiat_balance += amount
        return
    pos = wallet.positions.get(asset)
    if pos is None:
        pos = wallet.positions[asset] = AssetPosition(balance=ZERO)
    pos.balance += amount
    _drop_if_empty(wallet, asset)


def debit(wallet: Wallet, asset: str, amount: Decimal, fiat_asset: str) -> None:
    """Remove ``amount``; an exhausted position is deleted with its cost basis."""
    if asset == fiat_asset:
        if wallet.fiat_balance < amount:
            raise InsufficientBalanceError(asset, amount, wallet.fiat_balance)
        wallet.fiat_balance -= amount
        return
    pos = wallet.positions.get(asset)
    available = pos.balance if pos is not None else ZERO
    if pos is None or available < amount:
        raise InsufficientBalanceError(asset, amount, available)
    pos.balance -= amount
    _drop_if_empty(wallet, asset)


def apply_purchase(wallet: Wallet, asset: str, amount: Decimal, cost: Decimal) -> None:
    """Credit ``amount`` units bought for ``cost`` fiat, re-weighting the average cost.

    new_avg = (old_balance * old_avg + cost) / (old_balance + amount)
    """
    pos = wallet.positions.get(asset)
    if pos is None:
        pos = wallet.positions[asset] = AssetPosition(balance=ZERO)
    new_balance = pos.balance + amount
    if new_balance > ZERO:
        pos.average_cost = quantize((pos.balance * pos.average_cost + cost) / new_balance)
    pos.balance = new_balance
    _drop_if_empty(wallet, asset)


def set_balance(wallet: Wallet, asset: str, new_balance: Decimal, fiat_asset: str) -> None:
    """Administrative override. Keeps the average cost of a surviving position."""
    if new_balance < ZERO:
        raise ValidationError(f"Balance cannot be negative: {new_balance}")
    if asset == fiat_asset:
        wallet.fiat_balance = new_balance
        return
    pos = wallet.positions.get(asset)
    if pos is None:
        pos = wallet.positions[asset] = AssetPosition(balance=ZERO)
    pos.balance = new_balance
    _drop_if_empty(wallet, asset)


def balance_of(wallet: Wallet, asset: str, fiat_asset: str) -> Decimal:
    if asset == fiat_asset:
        return wallet.fiat_balance
    return wallet.asset_balance(asset)


def _drop_if_empty(wallet: Wallet, asset: str) -> None:
    pos = wallet.positions.get(asset)
    if pos is not None and pos.balance <= ZERO:
        del wallet.positions[asset]
