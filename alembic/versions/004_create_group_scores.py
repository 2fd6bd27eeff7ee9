"""004: create group_scores (points ledger) and point_ledger_entries

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # total_points is DOUBLE PRECISION: payouts are stake * odds, unrounded.
    op.execute("""
        CREATE TABLE group_scores (
            id              VARCHAR(64)         PRIMARY KEY,
            group_id        VARCHAR(64)         NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
            user_id         VARCHAR(64)         NOT NULL,
            total_points    DOUBLE PRECISION    NOT NULL,
            initial_points  INT                 NOT NULL DEFAULT 1000,
            created_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_group_scores_group_user UNIQUE (group_id, user_id),
            CONSTRAINT ck_group_scores_total_gte_0 CHECK (total_points >= 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_group_scores_leaderboard
        ON group_scores (group_id, total_points DESC);
    """)
    op.execute("""
        CREATE TRIGGER trg_group_scores_updated_at
            BEFORE UPDATE ON group_scores
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("""
        CREATE TABLE point_ledger_entries (
            id              BIGSERIAL           PRIMARY KEY,
            group_id        VARCHAR(64)         NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
            user_id         VARCHAR(64)         NOT NULL,
            entry_type      VARCHAR(30)         NOT NULL,
            amount          DOUBLE PRECISION    NOT NULL,
            balance_after   DOUBLE PRECISION    NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            created_at      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_point_ledger_entry_type CHECK (
                entry_type IN ('INITIAL_GRANT', 'STAKE_DEBIT', 'SETTLEMENT_PAYOUT')
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_point_ledger_group_user
        ON point_ledger_entries (group_id, user_id, id DESC);
    """)
    op.execute("COMMENT ON TABLE point_ledger_entries IS 'Points journal: append-only';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS point_ledger_entries CASCADE;")
    op.execute("DROP TABLE IF EXISTS group_scores CASCADE;")
