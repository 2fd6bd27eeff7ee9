"""006: create bet_selections (stakes)

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # bet_option_id has no ON DELETE CASCADE: the option diff deletes the
    # dependent selections explicitly before deleting an option.
    op.execute("""
        CREATE TABLE bet_selections (
            id                      VARCHAR(64)         PRIMARY KEY,
            bet_market_id           VARCHAR(64)         REFERENCES bet_markets (id) ON DELETE CASCADE,
            bet_sub_market_id       VARCHAR(64)         REFERENCES bet_sub_markets (id) ON DELETE CASCADE,
            bet_option_id           VARCHAR(64)         NOT NULL REFERENCES bet_options (id),
            user_id                 VARCHAR(64)         NOT NULL,
            stake_points            INT                 NOT NULL,
            potential_payout_points DOUBLE PRECISION    NOT NULL,
            created_at              TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bet_selections_one_parent CHECK (
                (bet_market_id IS NULL) <> (bet_sub_market_id IS NULL)
            ),
            CONSTRAINT ck_bet_selections_stake_gt_0 CHECK (stake_points > 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_bet_selections_sub_market_option
        ON bet_selections (bet_sub_market_id, bet_option_id);
    """)
    op.execute("""
        CREATE INDEX idx_bet_selections_market_option
        ON bet_selections (bet_market_id, bet_option_id);
    """)
    op.execute("""
        CREATE INDEX idx_bet_selections_user_time
        ON bet_selections (user_id, created_at DESC);
    """)
    op.execute("COMMENT ON TABLE bet_selections IS 'Stakes: immutable; payout frozen at placement';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bet_selections CASCADE;")
