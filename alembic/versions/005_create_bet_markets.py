"""005: create bet_markets, bet_sub_markets and bet_options

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bet_markets (
            id                  VARCHAR(64)     PRIMARY KEY,
            group_id            VARCHAR(64)     NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
            title               VARCHAR(500)    NOT NULL,
            description         TEXT,
            status              VARCHAR(10)     NOT NULL DEFAULT 'OPEN',
            closes_at           TIMESTAMPTZ     NOT NULL,
            created_by_user_id  VARCHAR(64)     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bet_markets_status CHECK (status IN ('OPEN', 'CLOSED', 'SETTLED'))
        );
    """)
    op.execute("CREATE INDEX idx_bet_markets_group ON bet_markets (group_id, created_at DESC);")
    op.execute("""
        CREATE TABLE bet_sub_markets (
            id                  VARCHAR(64)     PRIMARY KEY,
            bet_market_id       VARCHAR(64)     NOT NULL REFERENCES bet_markets (id) ON DELETE CASCADE,
            title               VARCHAR(500)    NOT NULL,
            description         TEXT,
            status              VARCHAR(10)     NOT NULL DEFAULT 'OPEN',
            closes_at           TIMESTAMPTZ     NOT NULL,
            allow_multiple_bets BOOLEAN         NOT NULL DEFAULT FALSE,
            created_by_user_id  VARCHAR(64)     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bet_sub_markets_status CHECK (status IN ('OPEN', 'CLOSED', 'SETTLED'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_bet_sub_markets_market
        ON bet_sub_markets (bet_market_id, created_at DESC);
    """)
    # An option belongs to exactly one container: a sub-market, or a legacy market.
    op.execute("""
        CREATE TABLE bet_options (
            id                  VARCHAR(64)         PRIMARY KEY,
            bet_market_id       VARCHAR(64)         REFERENCES bet_markets (id) ON DELETE CASCADE,
            bet_sub_market_id   VARCHAR(64)         REFERENCES bet_sub_markets (id) ON DELETE CASCADE,
            label               VARCHAR(200)        NOT NULL,
            odds                DOUBLE PRECISION    NOT NULL,
            created_at          TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bet_options_one_parent CHECK (
                (bet_market_id IS NULL) <> (bet_sub_market_id IS NULL)
            ),
            CONSTRAINT ck_bet_options_odds_gte_1 CHECK (odds >= 1)
        );
    """)
    op.execute("CREATE INDEX idx_bet_options_market ON bet_options (bet_market_id);")
    op.execute("CREATE INDEX idx_bet_options_sub_market ON bet_options (bet_sub_market_id);")
    for table in ("bet_markets", "bet_sub_markets"):
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
        """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bet_options CASCADE;")
    op.execute("DROP TABLE IF EXISTS bet_sub_markets CASCADE;")
    op.execute("DROP TABLE IF EXISTS bet_markets CASCADE;")
