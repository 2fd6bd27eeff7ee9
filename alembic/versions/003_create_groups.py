"""003: create groups and group_memberships tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE groups (
            id                  VARCHAR(64)     PRIMARY KEY,
            name                VARCHAR(200)    NOT NULL,
            description         TEXT,
            invite_code         VARCHAR(16)     NOT NULL,
            created_by_user_id  VARCHAR(64)     NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_groups_invite_code        UNIQUE (invite_code),
            CONSTRAINT ck_groups_invite_code_upper  CHECK (invite_code = UPPER(invite_code))
        );
    """)
    op.execute("""
        CREATE TABLE group_memberships (
            id          VARCHAR(64)     PRIMARY KEY,
            group_id    VARCHAR(64)     NOT NULL REFERENCES groups (id) ON DELETE CASCADE,
            user_id     VARCHAR(64)     NOT NULL,
            role        VARCHAR(10)     NOT NULL DEFAULT 'MEMBER',
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_memberships_group_user UNIQUE (group_id, user_id),
            CONSTRAINT ck_memberships_role CHECK (role IN ('ADMIN', 'MEMBER'))
        );
    """)
    op.execute("CREATE INDEX idx_memberships_user ON group_memberships (user_id);")
    for table in ("groups", "group_memberships"):
        op.execute(f"""
            CREATE TRIGGER trg_{table}_updated_at
                BEFORE UPDATE ON {table}
                FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
        """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS group_memberships CASCADE;")
    op.execute("DROP TABLE IF EXISTS groups CASCADE;")
