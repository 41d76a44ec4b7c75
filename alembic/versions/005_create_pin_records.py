"""005: create pin_records table

Revision ID: 005
Revises: 004
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE pin_records (
            user_id         VARCHAR(64)     PRIMARY KEY,
            pin_hash        VARCHAR(255),
            must_set_pin    BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            last_updated    TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            reset_by        VARCHAR(64)
        );
    """)
    op.execute("COMMENT ON TABLE pin_records IS 'bcrypt-hashed transfer PINs';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS pin_records CASCADE;")
