"""QueryService: read-only projections. No commit/rollback needed."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.errors import GroupNotFoundError, SubMarketNotFoundError
from src.gb_group.application.access import require_admin, require_member
from src.gb_group.domain.repository import GroupRepositoryProtocol
from src.gb_group.infrastructure.persistence import GroupRepository
from src.gb_ledger.domain.repository import LedgerRepositoryProtocol
from src.gb_ledger.infrastructure.persistence import LedgerRepository
from src.gb_market.domain.models import BetSubMarket
from src.gb_market.domain.repository import MarketRepositoryProtocol
from src.gb_market.infrastructure.persistence import MarketRepository
from src.gb_query.application.schemas import (
    BetDetailItem,
    LeaderboardEntry,
    LeaderboardResponse,
    LedgerEntryItem,
    LedgerResponse,
    MyBetsResponse,
    SubMarketBetsResponse,
    cursor_decode,
    cursor_encode,
)
from src.gb_query.domain.projections import rank_leaderboard
from src.gb_query.domain.repository import QueryRepositoryProtocol
from src.gb_query.infrastructure.persistence import QueryRepository


class QueryService:
    def __init__(
        self,
        repo: QueryRepositoryProtocol | None = None,
        group_repo: GroupRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._repo: QueryRepositoryProtocol = repo or QueryRepository()
        self._groups: GroupRepositoryProtocol = group_repo or GroupRepository()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()

    async def _require_group_member(self, db: AsyncSession, group_id: str, user_id: str) -> None:
        if await self._groups.get_group(db, group_id) is None:
            raise GroupNotFoundError(group_id)
        await require_member(db, self._groups, group_id, user_id)

    async def _load_sub_market(self, db: AsyncSession, sub_market_id: str) -> BetSubMarket:
        sub_market = await self._markets.get_sub_market(db, sub_market_id)
        if sub_market is None:
            raise SubMarketNotFoundError(sub_market_id)
        return sub_market

    async def _user_points(self, db: AsyncSession, group_id: str, user_id: str) -> float:
        score = await self._ledger.get_balance(db, group_id, user_id)
        return score.total_points if score is not None else 0.0

    async def leaderboard(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> LeaderboardResponse:
        await self._require_group_member(db, group_id, user_id)
        rows = await self._repo.leaderboard(db, group_id)
        return LeaderboardResponse(
            group_id=group_id,
            leaderboard=[LeaderboardEntry.from_ranked(r) for r in rank_leaderboard(rows, user_id)],
        )

    async def my_bets_in_group(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> MyBetsResponse:
        await self._require_group_member(db, group_id, user_id)
        rows = await self._repo.my_bets_in_group(db, group_id, user_id)
        return MyBetsResponse.build(rows, await self._user_points(db, group_id, user_id))

    async def my_bets_in_sub_market(
        self, db: AsyncSession, sub_market_id: str, user_id: str
    ) -> MyBetsResponse:
        sub_market = await self._load_sub_market(db, sub_market_id)
        await require_member(db, self._groups, sub_market.group_id, user_id)
        rows = await self._repo.my_bets_in_sub_market(db, sub_market_id, user_id)
        return MyBetsResponse.build(
            rows, await self._user_points(db, sub_market.group_id, user_id)
        )

    async def sub_market_bets(
        self, db: AsyncSession, sub_market_id: str, user_id: str
    ) -> SubMarketBetsResponse:
        """Every stake on a sub-market with the bettor's identity. Admins only."""
        sub_market = await self._load_sub_market(db, sub_market_id)
        await require_admin(db, self._groups, sub_market.group_id, user_id, "view all bets")
        rows = await self._repo.sub_market_bets(db, sub_market_id)
        return SubMarketBetsResponse(
            bet_sub_market_id=sub_market_id,
            bets=[BetDetailItem.from_row(r) for r in rows],
            total_stake=sum(r.stake_points for r in rows),
        )

    async def ledger_history(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        await self._require_group_member(db, group_id, user_id)
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._ledger.list_entries(
            db, group_id, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(
            items=[LedgerEntryItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
