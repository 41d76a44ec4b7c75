"""004: create transactions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # id is a snowflake issued by the application; ORDER BY id = issue order.
    op.execute("""
        CREATE TABLE transactions (
            id              BIGINT          PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            type            VARCHAR(16)     NOT NULL,
            asset           VARCHAR(32)     NOT NULL,
            amount          NUMERIC(38, 18) NOT NULL,
            counterparty    VARCHAR(128),
            status          VARCHAR(16)     NOT NULL DEFAULT 'completed',
            metadata        JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transactions_type CHECK (
                type IN ('receive', 'send', 'buy', 'sell', 'swap', 'add_money')
            ),
            CONSTRAINT ck_transactions_amount_gt_0 CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_transactions_user_id ON transactions (user_id, id DESC);")
    op.execute("COMMENT ON TABLE transactions IS 'Append-only ledger history';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
