"""Membership gates shared by every service that acts inside a group."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.errors import NotAdminError, NotAMemberError
from src.gb_group.domain.models import Membership
from src.gb_group.domain.repository import GroupRepositoryProtocol


async def require_member(
    db: AsyncSession,
    repo: GroupRepositoryProtocol,
    group_id: str,
    user_id: str,
) -> Membership:
    membership = await repo.get_membership(db, group_id, user_id)
    if membership is None:
        raise NotAMemberError()
    return membership


async def require_admin(
    db: AsyncSession,
    repo: GroupRepositoryProtocol,
    group_id: str,
    user_id: str,
    action: str = "perform this action",
) -> Membership:
    """Non-members get the same NotAdminError as plain members."""
    membership = await repo.get_membership(db, group_id, user_id)
    if membership is None or not membership.is_admin:
        raise NotAdminError(action)
    return membership
