"""Repository Protocol for read-only projections."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_query.domain.models import BetDetailRow, LeaderboardRow, MyBetRow


class QueryRepositoryProtocol(Protocol):
    async def leaderboard(self, db: AsyncSession, group_id: str) -> list[LeaderboardRow]: ...

    async def my_bets_in_group(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> list[MyBetRow]: ...

    async def my_bets_in_sub_market(
        self, db: AsyncSession, sub_market_id: str, user_id: str
    ) -> list[MyBetRow]: ...

    async def sub_market_bets(
        self, db: AsyncSession, sub_market_id: str
    ) -> list[BetDetailRow]: ...
