"""TransactionRepository: Postgres implementation, INSERT and SELECT only.

Rows are never updated or deleted. The caller's session commits the insert
together with the balance change it records.
"""

import json
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wl_common.enums import TransactionStatus, TransactionType
from src.wl_common.errors import InternalError
from src.wl_ledger.domain.models import DECIMAL_METADATA_KEYS, Transaction

_INSERT_TX_SQL = text("""
    INSERT INTO transactions
        (id, user_id, type, asset, amount, counterparty, status, metadata, created_at)
    VALUES
        (:id, :user_id, :type, :asset, :amount, :counterparty, :status,
         CAST(:metadata AS JSONB), :created_at)
    RETURNING id
""")

_LIST_TX_SQL = text("""
    SELECT id, user_id, type, asset, amount, counterparty, status, metadata, created_at
    FROM transactions
    WHERE (CAST(:user_id AS VARCHAR) IS NULL OR user_id = :user_id)
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:type AS VARCHAR) IS NULL OR type = :type)
    ORDER BY id DESC
    LIMIT :limit
""")


def metadata_to_json(metadata: dict[str, Any]) -> str:
    return json.dumps(
        {k: str(v) if isinstance(v, Decimal) else v for k, v in metadata.items()}
    )


def metadata_from_json(raw: str | dict[str, Any] | None) -> dict[str, Any]:
    data = json.loads(raw) if isinstance(raw, str) else dict(raw or {})
    return {k: Decimal(v) if k in DECIMAL_METADATA_KEYS else v for k, v in data.items()}


def _row_to_tx(row: object) -> Transaction:
    return Transaction(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        type=TransactionType(row.type),  # type: ignore[attr-defined]
        asset=row.asset,  # type: ignore[attr-defined]
        amount=Decimal(row.amount),  # type: ignore[attr-defined]
        counterparty=row.counterparty,  # type: ignore[attr-defined]
        timestamp=row.created_at,  # type: ignore[attr-defined]
        status=TransactionStatus(row.status),  # type: ignore[attr-defined]
        metadata=metadata_from_json(row.metadata),  # type: ignore[attr-defined]
    )


class TransactionRepository:
    async def append(self, db: AsyncSession, tx: Transaction) -> Transaction:
        result = await db.execute(
            _INSERT_TX_SQL,
            {
                "id": int(tx.id),
                "user_id": tx.user_id,
                "type": tx.type.value,
                "asset": tx.asset,
                "amount": tx.amount,
                "counterparty": tx.counterparty,
                "status": tx.status.value,
                "metadata": metadata_to_json(tx.metadata),
                "created_at": tx.timestamp,
            },
        )
        if result.fetchone() is None:
            raise InternalError("Transaction insert returned no rows: this should never happen")
        return tx

    async def list(
        self,
        db: AsyncSession,
        user_id: str | None,
        cursor_id: int | None,
        limit: int | None,
        tx_type: str | None,
    ) -> list[Transaction]:
        result = await db.execute(
            _LIST_TX_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "type": tx_type,
                # LIMIT NULL means no limit in Postgres
                "limit": limit,
            },
        )
        return [_row_to_tx(row) for row in result.fetchall()]
