"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            name            VARCHAR(100)    NOT NULL,
            email           VARCHAR(255)    NOT NULL,
            password_hash   VARCHAR(255)    NOT NULL,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email           UNIQUE (email),
            CONSTRAINT ck_users_email_lower     CHECK (email = LOWER(email)),
            CONSTRAINT ck_users_name_not_blank  CHECK (LENGTH(TRIM(name)) > 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE users IS 'Accounts: email is stored trimmed and lower-cased';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
