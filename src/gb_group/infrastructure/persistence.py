"""GroupRepository: raw SQL over groups / group_memberships."""

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.errors import AlreadyMemberError, InternalError, MembershipNotFoundError
from src.gb_common.id_generator import generate_id
from src.gb_group.domain.models import Group, Membership

_INVITE_CODE_CONSTRAINT = "uq_groups_invite_code"
_MEMBERSHIP_CONSTRAINT = "uq_memberships_group_user"

_GROUP_COLUMNS = "g.id, g.name, g.description, g.invite_code, g.created_by_user_id, g.created_at, g.updated_at"

_INSERT_GROUP_SQL = text("""
    INSERT INTO groups (id, name, description, invite_code, created_by_user_id)
    VALUES (:id, :name, :description, :invite_code, :created_by_user_id)
    RETURNING id, name, description, invite_code, created_by_user_id, created_at, updated_at
""")

_GET_GROUP_SQL = text(f"SELECT {_GROUP_COLUMNS} FROM groups g WHERE g.id = :group_id")

_GET_GROUP_BY_CODE_SQL = text(
    f"SELECT {_GROUP_COLUMNS} FROM groups g WHERE g.invite_code = :invite_code"
)

_LIST_USER_GROUPS_SQL = text(f"""
    SELECT {_GROUP_COLUMNS},
           (SELECT COUNT(*) FROM group_memberships m2 WHERE m2.group_id = g.id) AS member_count,
           (SELECT COUNT(*) FROM bet_markets bm WHERE bm.group_id = g.id) AS market_count
    FROM groups g
    JOIN group_memberships m ON m.group_id = g.id
    WHERE m.user_id = :user_id
    ORDER BY g.created_at DESC
""")

_UPDATE_GROUP_SQL = text("""
    UPDATE groups
    SET name = COALESCE(:name, name),
        description = COALESCE(:description, description),
        updated_at = NOW()
    WHERE id = :group_id
    RETURNING id, name, description, invite_code, created_by_user_id, created_at, updated_at
""")

_DELETE_GROUP_SQL = text("DELETE FROM groups WHERE id = :group_id")

_MEMBERSHIP_SELECT = """
    SELECT m.id, m.group_id, m.user_id, m.role, m.created_at,
           u.name AS user_name, u.email AS user_email
    FROM group_memberships m
    LEFT JOIN users u ON u.id::text = m.user_id
"""

_INSERT_MEMBERSHIP_SQL = text("""
    INSERT INTO group_memberships (id, group_id, user_id, role)
    VALUES (:id, :group_id, :user_id, :role)
    RETURNING id, group_id, user_id, role, created_at
""")

_GET_MEMBERSHIP_SQL = text(
    _MEMBERSHIP_SELECT + " WHERE m.group_id = :group_id AND m.user_id = :user_id"
)

_GET_MEMBERSHIP_BY_ID_SQL = text(_MEMBERSHIP_SELECT + " WHERE m.id = :membership_id")

_LIST_MEMBERSHIPS_SQL = text(
    _MEMBERSHIP_SELECT + " WHERE m.group_id = :group_id ORDER BY m.created_at, m.id"
)

# Locks the admin rows so two concurrent downgrades cannot both see "2 admins".
_LOCK_ADMINS_SQL = text("""
    SELECT id FROM group_memberships
    WHERE group_id = :group_id AND role = 'ADMIN'
    FOR UPDATE
""")

_UPDATE_ROLE_SQL = text("""
    UPDATE group_memberships
    SET role = :role, updated_at = NOW()
    WHERE id = :membership_id
    RETURNING id, group_id, user_id, role, created_at
""")

_DELETE_MEMBERSHIP_SQL = text("DELETE FROM group_memberships WHERE id = :membership_id")


def _row_to_group(row: object) -> Group:
    mapping = row._mapping  # type: ignore[attr-defined]
    return Group(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        invite_code=row.invite_code,  # type: ignore[attr-defined]
        created_by_user_id=row.created_by_user_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
        member_count=mapping.get("member_count"),
        market_count=mapping.get("market_count"),
    )


def _row_to_membership(row: object) -> Membership:
    mapping = row._mapping  # type: ignore[attr-defined]
    return Membership(
        id=row.id,  # type: ignore[attr-defined]
        group_id=row.group_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        role=row.role,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        user_name=mapping.get("user_name"),
        user_email=mapping.get("user_email"),
    )


class GroupRepository:
    async def create_group(
        self,
        db: AsyncSession,
        group_id: str,
        name: str,
        description: str | None,
        invite_code: str,
        created_by_user_id: str,
    ) -> Group | None:
        """Insert a group; None when another group took ``invite_code`` first."""
        try:
            async with db.begin_nested():
                result = await db.execute(
                    _INSERT_GROUP_SQL,
                    {
                        "id": group_id,
                        "name": name,
                        "description": description,
                        "invite_code": invite_code,
                        "created_by_user_id": created_by_user_id,
                    },
                )
        except IntegrityError as exc:
            if _INVITE_CODE_CONSTRAINT in str(exc.orig):
                return None
            raise
        row = result.fetchone()
        if row is None:
            raise InternalError("Group insert returned no rows: this should never happen")
        return _row_to_group(row)

    async def get_group(self, db: AsyncSession, group_id: str) -> Group | None:
        result = await db.execute(_GET_GROUP_SQL, {"group_id": group_id})
        row = result.fetchone()
        return _row_to_group(row) if row is not None else None

    async def get_group_by_invite_code(
        self, db: AsyncSession, invite_code: str
    ) -> Group | None:
        result = await db.execute(_GET_GROUP_BY_CODE_SQL, {"invite_code": invite_code})
        row = result.fetchone()
        return _row_to_group(row) if row is not None else None

    async def list_user_groups(self, db: AsyncSession, user_id: str) -> list[Group]:
        result = await db.execute(_LIST_USER_GROUPS_SQL, {"user_id": user_id})
        return [_row_to_group(row) for row in result.fetchall()]

    async def update_group(
        self,
        db: AsyncSession,
        group_id: str,
        name: str | None,
        description: str | None,
    ) -> Group:
        result = await db.execute(
            _UPDATE_GROUP_SQL,
            {"group_id": group_id, "name": name, "description": description},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError(f"Group {group_id} vanished during update")
        return _row_to_group(row)

    async def delete_group(self, db: AsyncSession, group_id: str) -> None:
        await db.execute(_DELETE_GROUP_SQL, {"group_id": group_id})

    async def add_membership(
        self, db: AsyncSession, group_id: str, user_id: str, role: str
    ) -> Membership:
        try:
            result = await db.execute(
                _INSERT_MEMBERSHIP_SQL,
                {"id": generate_id(), "group_id": group_id, "user_id": user_id, "role": role},
            )
        except IntegrityError as exc:
            if _MEMBERSHIP_CONSTRAINT in str(exc.orig):
                raise AlreadyMemberError() from None
            raise
        row = result.fetchone()
        if row is None:
            raise InternalError("Membership insert returned no rows: this should never happen")
        return _row_to_membership(row)

    async def get_membership(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> Membership | None:
        result = await db.execute(
            _GET_MEMBERSHIP_SQL, {"group_id": group_id, "user_id": user_id}
        )
        row = result.fetchone()
        return _row_to_membership(row) if row is not None else None

    async def get_membership_by_id(
        self, db: AsyncSession, membership_id: str
    ) -> Membership | None:
        result = await db.execute(_GET_MEMBERSHIP_BY_ID_SQL, {"membership_id": membership_id})
        row = result.fetchone()
        return _row_to_membership(row) if row is not None else None

    async def list_memberships(self, db: AsyncSession, group_id: str) -> list[Membership]:
        result = await db.execute(_LIST_MEMBERSHIPS_SQL, {"group_id": group_id})
        return [_row_to_membership(row) for row in result.fetchall()]

    async def count_admins_for_update(self, db: AsyncSession, group_id: str) -> int:
        result = await db.execute(_LOCK_ADMINS_SQL, {"group_id": group_id})
        return len(result.fetchall())

    async def update_membership_role(
        self, db: AsyncSession, membership_id: str, role: str
    ) -> Membership:
        result = await db.execute(
            _UPDATE_ROLE_SQL, {"membership_id": membership_id, "role": role}
        )
        row = result.fetchone()
        if row is None:
            raise MembershipNotFoundError(membership_id)
        return _row_to_membership(row)

    async def delete_membership(self, db: AsyncSession, membership_id: str) -> None:
        await db.execute(_DELETE_MEMBERSHIP_SQL, {"membership_id": membership_id})
