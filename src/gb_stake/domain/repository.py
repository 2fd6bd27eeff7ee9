"""Repository Protocol for stakes."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.enums import BetScope
from src.gb_stake.domain.models import BetSelection


class SelectionRepositoryProtocol(Protocol):
    async def insert_selection(
        self, db: AsyncSession, selection: BetSelection
    ) -> BetSelection: ...

    async def count_user_selections(
        self, db: AsyncSession, scope: BetScope, target_id: str, user_id: str
    ) -> int: ...
