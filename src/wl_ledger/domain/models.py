"""Domain model for wl_ledger: immutable history entries."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.wl_common.datetime_utils import utc_now
from src.wl_common.enums import TransactionStatus, TransactionType
from src.wl_common.id_generator import generate_id

# metadata keys whose values are Decimal (serialized as strings)
DECIMAL_METADATA_KEYS = frozenset({"cost", "price", "proceeds", "to_amount", "rate"})


@dataclass(frozen=True)
class Transaction:
    id: str                          # snowflake, issue-ordered
    user_id: str                     # ledger owner of this entry
    type: TransactionType
    asset: str
    amount: Decimal
    counterparty: str | None
    timestamp: datetime
    status: TransactionStatus = TransactionStatus.COMPLETED
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def record(
        cls,
        user_id: str,
        tx_type: TransactionType,
        asset: str,
        amount: Decimal,
        counterparty: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> "Transaction":
        return cls(
            id=generate_id(),
            user_id=user_id,
            type=tx_type,
            asset=asset,
            amount=amount,
            counterparty=counterparty,
            timestamp=utc_now(),
            metadata=dict(metadata or {}),
        )
