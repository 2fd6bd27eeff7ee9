"""007: create bet_settlements and bet_settlement_winning_options

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # The UNIQUE constraints make settlement exactly-once per target.
    op.execute("""
        CREATE TABLE bet_settlements (
            id                  VARCHAR(64)     PRIMARY KEY,
            bet_market_id       VARCHAR(64)     REFERENCES bet_markets (id) ON DELETE CASCADE,
            bet_sub_market_id   VARCHAR(64)     REFERENCES bet_sub_markets (id) ON DELETE CASCADE,
            settled_by_user_id  VARCHAR(64)     NOT NULL,
            settled_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_bet_settlements_market     UNIQUE (bet_market_id),
            CONSTRAINT uq_bet_settlements_sub_market UNIQUE (bet_sub_market_id),
            CONSTRAINT ck_bet_settlements_one_target CHECK (
                (bet_market_id IS NULL) <> (bet_sub_market_id IS NULL)
            )
        );
    """)
    op.execute("""
        CREATE TABLE bet_settlement_winning_options (
            settlement_id   VARCHAR(64)     NOT NULL REFERENCES bet_settlements (id) ON DELETE CASCADE,
            bet_option_id   VARCHAR(64)     NOT NULL REFERENCES bet_options (id) ON DELETE CASCADE,
            PRIMARY KEY (settlement_id, bet_option_id)
        );
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bet_settlement_winning_options CASCADE;")
    op.execute("DROP TABLE IF EXISTS bet_settlements CASCADE;")
