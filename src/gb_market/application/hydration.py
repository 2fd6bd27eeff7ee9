"""Attach options and settlements to market rows, and load bet targets.

Options and settlements are fetched in one query per scope for a whole
page of markets, never per row.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.enums import BetScope
from src.gb_common.errors import MarketNotFoundError, SubMarketNotFoundError
from src.gb_market.domain.models import BetMarket, BetSubMarket, BetTarget
from src.gb_market.domain.repository import MarketRepositoryProtocol, RowLock


async def hydrate_sub_markets(
    db: AsyncSession,
    repo: MarketRepositoryProtocol,
    sub_markets: list[BetSubMarket],
) -> list[BetSubMarket]:
    ids = [sm.id for sm in sub_markets]
    options = await repo.list_options(db, BetScope.SUB_MARKET, ids)
    settlements = await repo.list_settlements(db, BetScope.SUB_MARKET, ids)
    for sm in sub_markets:
        sm.options = [o for o in options if o.bet_sub_market_id == sm.id]
        sm.settlement = settlements.get(sm.id)
    return sub_markets


async def hydrate_markets(
    db: AsyncSession,
    repo: MarketRepositoryProtocol,
    markets: list[BetMarket],
) -> list[BetMarket]:
    ids = [m.id for m in markets]
    options = await repo.list_options(db, BetScope.MARKET, ids)
    settlements = await repo.list_settlements(db, BetScope.MARKET, ids)
    sub_markets = await hydrate_sub_markets(db, repo, await repo.list_sub_markets(db, ids))
    for m in markets:
        m.options = [o for o in options if o.bet_market_id == m.id]
        m.settlement = settlements.get(m.id)
        m.sub_markets = [sm for sm in sub_markets if sm.bet_market_id == m.id]
    return markets


async def _attach_own(
    db: AsyncSession,
    repo: MarketRepositoryProtocol,
    scope: BetScope,
    target: BetTarget,
) -> None:
    target.options = await repo.list_options(db, scope, [target.id])
    target.settlement = (await repo.list_settlements(db, scope, [target.id])).get(target.id)


async def load_market(
    db: AsyncSession,
    repo: MarketRepositoryProtocol,
    market_id: str,
    lock: RowLock = None,
) -> BetMarket:
    market = await repo.get_market(db, market_id, lock)
    if market is None:
        raise MarketNotFoundError(market_id)
    await _attach_own(db, repo, BetScope.MARKET, market)
    return market


async def load_sub_market(
    db: AsyncSession,
    repo: MarketRepositoryProtocol,
    sub_market_id: str,
    lock: RowLock = None,
) -> BetSubMarket:
    sub_market = await repo.get_sub_market(db, sub_market_id, lock)
    if sub_market is None:
        raise SubMarketNotFoundError(sub_market_id)
    await _attach_own(db, repo, BetScope.SUB_MARKET, sub_market)
    return sub_market


async def load_target(
    db: AsyncSession,
    repo: MarketRepositoryProtocol,
    scope: BetScope,
    target_id: str,
    lock: RowLock = None,
) -> BetTarget:
    """Load a sub-market or legacy market with its own options and settlement."""
    if scope == BetScope.SUB_MARKET:
        return await load_sub_market(db, repo, target_id, lock)
    return await load_market(db, repo, target_id, lock)
