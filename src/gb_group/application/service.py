"""GroupApplicationService: groups, invites and membership administration.

Every new member gets a ledger row with INITIAL_POINTS in the same
transaction as the membership insert. A group always keeps at least one
ADMIN: the last admin can be neither downgraded nor removed.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.gb_common.database import atomic
from src.gb_common.enums import MembershipRole
from src.gb_common.errors import (
    AlreadyMemberError,
    GroupNotFoundError,
    InternalError,
    InvalidInviteCodeError,
    LastAdminError,
    MembershipNotFoundError,
    SelfRemovalError,
)
from src.gb_common.id_generator import generate_id, generate_invite_code
from src.gb_group.application.access import require_admin, require_member
from src.gb_group.application.schemas import (
    GroupDetailResponse,
    GroupListResponse,
    GroupResponse,
    MembershipResponse,
)
from src.gb_group.domain.models import Group, Membership
from src.gb_group.domain.repository import GroupRepositoryProtocol
from src.gb_group.infrastructure.persistence import GroupRepository
from src.gb_ledger.domain.repository import LedgerRepositoryProtocol
from src.gb_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger("gb.group")

_INVITE_CODE_ATTEMPTS = 5


class GroupApplicationService:
    def __init__(
        self,
        repo: GroupRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._repo: GroupRepositoryProtocol = repo or GroupRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()

    async def _load_group(self, db: AsyncSession, group_id: str) -> Group:
        group = await self._repo.get_group(db, group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        return group

    async def _insert_group(
        self, db: AsyncSession, user_id: str, name: str, description: str | None
    ) -> Group:
        # A concurrent create can take a free code before our insert; the
        # repository reports that as None and the next code is tried.
        for _ in range(_INVITE_CODE_ATTEMPTS):
            code = generate_invite_code(settings.INVITE_CODE_LENGTH)
            if await self._repo.get_group_by_invite_code(db, code) is not None:
                continue
            group = await self._repo.create_group(
                db, generate_id(), name, description, code, user_id
            )
            if group is not None:
                return group
        raise InternalError("Could not generate a unique invite code")

    async def _detail(
        self, db: AsyncSession, group: Group, my_role: str
    ) -> GroupDetailResponse:
        memberships = await self._repo.list_memberships(db, group.id)
        base = GroupResponse.from_domain(group)
        return GroupDetailResponse(
            **base.model_dump(exclude={"member_count"}),
            member_count=len(memberships),
            my_role=my_role,
            memberships=[MembershipResponse.from_domain(m) for m in memberships],
        )

    async def create_group(
        self, db: AsyncSession, user_id: str, name: str, description: str | None
    ) -> GroupDetailResponse:
        """Create a group; the creator becomes ADMIN with a fresh ledger row."""
        async with atomic(db):
            group = await self._insert_group(db, user_id, name, description)
            await self._repo.add_membership(db, group.id, user_id, MembershipRole.ADMIN.value)
            await self._ledger.create_balance(db, group.id, user_id, settings.INITIAL_POINTS)
        logger.info("Group created: %s by %s", group.id, user_id)
        return await self._detail(db, group, MembershipRole.ADMIN.value)

    async def join_group(
        self, db: AsyncSession, user_id: str, invite_code: str
    ) -> GroupDetailResponse:
        """Join by invite code (case-insensitive) as MEMBER with a fresh ledger row.

        A concurrent second join loses on the unique membership constraint and
        gets AlreadyMemberError like the pre-check.
        """
        group = await self._repo.get_group_by_invite_code(db, invite_code.strip().upper())
        if group is None:
            raise InvalidInviteCodeError()
        if await self._repo.get_membership(db, group.id, user_id) is not None:
            raise AlreadyMemberError()

        async with atomic(db):
            await self._repo.add_membership(db, group.id, user_id, MembershipRole.MEMBER.value)
            await self._ledger.ensure_balance(db, group.id, user_id, settings.INITIAL_POINTS)
        logger.info("User %s joined group %s", user_id, group.id)
        return await self._detail(db, group, MembershipRole.MEMBER.value)

    async def list_groups(self, db: AsyncSession, user_id: str) -> GroupListResponse:
        groups = await self._repo.list_user_groups(db, user_id)
        return GroupListResponse(groups=[GroupResponse.from_domain(g) for g in groups])

    async def get_group(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> GroupDetailResponse:
        group = await self._load_group(db, group_id)
        membership = await require_member(db, self._repo, group_id, user_id)
        return await self._detail(db, group, membership.role)

    async def update_group(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        name: str | None,
        description: str | None,
    ) -> GroupResponse:
        await self._load_group(db, group_id)
        await require_admin(db, self._repo, group_id, user_id, "edit the group")
        async with atomic(db):
            group = await self._repo.update_group(
                db, group_id, name.strip() if name else None, description
            )
        return GroupResponse.from_domain(group)

    async def delete_group(self, db: AsyncSession, group_id: str, user_id: str) -> None:
        """Delete a group. Memberships, ledger rows and markets cascade."""
        await self._load_group(db, group_id)
        await require_admin(db, self._repo, group_id, user_id, "delete the group")
        async with atomic(db):
            await self._repo.delete_group(db, group_id)
        logger.info("Group deleted: %s by %s", group_id, user_id)

    async def _load_target(
        self, db: AsyncSession, group_id: str, membership_id: str
    ) -> Membership:
        target = await self._repo.get_membership_by_id(db, membership_id)
        if target is None or target.group_id != group_id:
            raise MembershipNotFoundError(membership_id)
        return target

    async def update_membership_role(
        self,
        db: AsyncSession,
        group_id: str,
        membership_id: str,
        actor_id: str,
        role: MembershipRole,
    ) -> MembershipResponse:
        await self._load_group(db, group_id)
        await require_admin(db, self._repo, group_id, actor_id, "update members")
        target = await self._load_target(db, group_id, membership_id)

        async with atomic(db):
            if target.is_admin and role == MembershipRole.MEMBER:
                if await self._repo.count_admins_for_update(db, group_id) <= 1:
                    raise LastAdminError()
            updated = await self._repo.update_membership_role(db, membership_id, role.value)

        updated.user_name = target.user_name
        updated.user_email = target.user_email
        return MembershipResponse.from_domain(updated)

    async def remove_member(
        self,
        db: AsyncSession,
        group_id: str,
        membership_id: str,
        actor_id: str,
    ) -> None:
        """Remove a member and their ledger row. Their past stakes stay."""
        await self._load_group(db, group_id)
        await require_admin(db, self._repo, group_id, actor_id, "remove members")
        target = await self._load_target(db, group_id, membership_id)
        if target.user_id == actor_id:
            raise SelfRemovalError()

        async with atomic(db):
            if target.is_admin:
                if await self._repo.count_admins_for_update(db, group_id) <= 1:
                    raise LastAdminError()
            await self._ledger.delete_balance(db, group_id, target.user_id)
            await self._repo.delete_membership(db, membership_id)
        logger.info("Member %s removed from group %s by %s", target.user_id, group_id, actor_id)
