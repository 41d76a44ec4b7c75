"""Pydantic schemas and cursor utilities for the wallet API.

Decimal amounts are accepted as JSON strings or numbers and returned as
strings, so no precision is lost to float on either side.
"""

import base64
import json
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from src.wl_common.datetime_utils import isoformat_or_none
from src.wl_common.decimals import fiat_to_display, normalize
from src.wl_ledger.domain.models import Transaction
from src.wl_wallet.domain.models import Wallet

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int | str) -> str:
    """Encode a transaction id into an opaque Base64 cursor string."""
    payload = json.dumps({"id": int(last_id)})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. None when malformed."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


def _dec(value: Decimal) -> str:
    return str(normalize(value))


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class AddMoneyRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, description="Fiat amount to top up")


class ReceiveRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)
    asset: str | None = Field(None, description="Defaults to the fiat asset")


class SendRequest(BaseModel):
    recipient: str = Field(..., min_length=1, description="Recipient username")
    amount: Decimal = Field(..., gt=0)
    asset: str | None = None
    pin: str | None = None


class BuyRequest(BaseModel):
    asset: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    price: Decimal | None = Field(None, gt=0, description="Omit to use the market quote")


class SellRequest(BuyRequest):
    pass


class SwapRequest(BaseModel):
    from_asset: str = Field(..., min_length=1)
    to_asset: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    pin: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PositionResponse(BaseModel):
    asset: str
    balance: str
    average_cost: str


class WalletResponse(BaseModel):
    user_id: str
    fiat_asset: str
    fiat_balance: str
    fiat_balance_display: str
    positions: list[PositionResponse]
    updated_at: str | None

    @classmethod
    def from_domain(cls, wallet: Wallet, fiat_asset: str) -> "WalletResponse":
        return cls(
            user_id=wallet.user_id,
            fiat_asset=fiat_asset,
            fiat_balance=_dec(wallet.fiat_balance),
            fiat_balance_display=fiat_to_display(wallet.fiat_balance),
            positions=[
                PositionResponse(
                    asset=asset,
                    balance=_dec(pos.balance),
                    average_cost=_dec(pos.average_cost),
                )
                for asset, pos in sorted(wallet.positions.items())
            ],
            updated_at=isoformat_or_none(wallet.updated_at),
        )


class TotalValueResponse(BaseModel):
    user_id: str
    total_value: str
    total_value_display: str


class TransactionResponse(BaseModel):
    id: str
    type: str
    asset: str
    amount: str
    counterparty: str | None
    status: str
    timestamp: str
    metadata: dict[str, Any]

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionResponse":
        return cls(
            id=tx.id,
            type=tx.type.value,
            asset=tx.asset,
            amount=_dec(tx.amount),
            counterparty=tx.counterparty,
            status=tx.status.value,
            timestamp=tx.timestamp.isoformat(),
            metadata={
                k: _dec(v) if isinstance(v, Decimal) else v for k, v in tx.metadata.items()
            },
        )


class TransferResponse(BaseModel):
    sent: TransactionResponse
    received: TransactionResponse


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    next_cursor: str | None
    has_more: bool

    @classmethod
    def from_page(cls, page: list[Transaction], limit: int) -> "TransactionListResponse":
        """``page`` holds up to limit+1 rows; the extra row only signals has_more."""
        has_more = len(page) > limit
        items = page[:limit]
        return cls(
            items=[TransactionResponse.from_domain(tx) for tx in items],
            next_cursor=cursor_encode(items[-1].id) if has_more else None,
            has_more=has_more,
        )
