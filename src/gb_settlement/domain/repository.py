"""Repository Protocol for the settlement write path."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.enums import BetScope
from src.gb_market.domain.models import SettlementInfo
from src.gb_stake.domain.models import BetSelection


class SettlementRepositoryProtocol(Protocol):
    async def list_winning_selections(
        self,
        db: AsyncSession,
        scope: BetScope,
        target_id: str,
        winning_option_ids: list[str],
    ) -> list[BetSelection]: ...

    async def insert_settlement(
        self,
        db: AsyncSession,
        scope: BetScope,
        target_id: str,
        settlement_id: str,
        settled_by_user_id: str,
    ) -> SettlementInfo: ...

    async def insert_winning_options(
        self, db: AsyncSession, settlement_id: str, option_ids: list[str]
    ) -> None: ...

    async def mark_settled(self, db: AsyncSession, scope: BetScope, target_id: str) -> None: ...
