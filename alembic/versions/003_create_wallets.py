"""003: create wallets and wallet_positions tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallets (
            user_id         VARCHAR(64)     PRIMARY KEY,
            fiat_balance    NUMERIC(38, 18) NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallets_fiat_gte_0 CHECK (fiat_balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_wallets_updated_at
            BEFORE UPDATE ON wallets
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("""
        CREATE TABLE wallet_positions (
            user_id         VARCHAR(64)     NOT NULL REFERENCES wallets (user_id),
            asset_id        VARCHAR(32)     NOT NULL,
            balance         NUMERIC(38, 18) NOT NULL,
            average_cost    NUMERIC(38, 18) NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            PRIMARY KEY (user_id, asset_id),
            CONSTRAINT ck_positions_balance_gt_0 CHECK (balance > 0),
            CONSTRAINT ck_positions_cost_gte_0   CHECK (average_cost >= 0)
        );
    """)
    op.execute(
        "COMMENT ON TABLE wallet_positions IS "
        "'Non-fiat holdings; a row exists only while balance > 0';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_positions CASCADE;")
    op.execute("DROP TABLE IF EXISTS wallets CASCADE;")
