"""Repository Protocol for groups and memberships."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_group.domain.models import Group, Membership


class GroupRepositoryProtocol(Protocol):
    async def create_group(
        self,
        db: AsyncSession,
        group_id: str,
        name: str,
        description: str | None,
        invite_code: str,
        created_by_user_id: str,
    ) -> Group | None: ...

    async def get_group(self, db: AsyncSession, group_id: str) -> Group | None: ...

    async def get_group_by_invite_code(
        self, db: AsyncSession, invite_code: str
    ) -> Group | None: ...

    async def list_user_groups(self, db: AsyncSession, user_id: str) -> list[Group]: ...

    async def update_group(
        self,
        db: AsyncSession,
        group_id: str,
        name: str | None,
        description: str | None,
    ) -> Group: ...

    async def delete_group(self, db: AsyncSession, group_id: str) -> None: ...

    async def add_membership(
        self, db: AsyncSession, group_id: str, user_id: str, role: str
    ) -> Membership: ...

    async def get_membership(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> Membership | None: ...

    async def get_membership_by_id(
        self, db: AsyncSession, membership_id: str
    ) -> Membership | None: ...

    async def list_memberships(self, db: AsyncSession, group_id: str) -> list[Membership]: ...

    async def count_admins_for_update(self, db: AsyncSession, group_id: str) -> int: ...

    async def update_membership_role(
        self, db: AsyncSession, membership_id: str, role: str
    ) -> Membership: ...

    async def delete_membership(self, db: AsyncSession, membership_id: str) -> None: ...
