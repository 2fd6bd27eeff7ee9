"""MarketApplicationService: markets, sub-markets and their options.

Any group member may create markets and sub-markets; only admins edit or
delete them, and only until they are settled. Time-based closure does not
block edits.

Edits and deletes read their target FOR UPDATE inside the transaction and
check the settled state after the lock, so they serialize with the
settlement engine and never touch a target settled in the meantime.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import atomic
from src.gb_common.datetime_utils import ensure_utc
from src.gb_common.enums import BetScope
from src.gb_common.errors import GroupNotFoundError, MarketSettledError
from src.gb_common.id_generator import generate_id
from src.gb_group.application.access import require_admin, require_member
from src.gb_group.domain.repository import GroupRepositoryProtocol
from src.gb_group.infrastructure.persistence import GroupRepository
from src.gb_market.application.hydration import hydrate_markets, load_market, load_sub_market
from src.gb_market.application.schemas import (
    CreateMarketRequest,
    CreateSubMarketRequest,
    MarketListResponse,
    MarketOut,
    OptionIn,
    SubMarketOut,
    UpdateMarketRequest,
    UpdateSubMarketRequest,
)
from src.gb_market.domain.models import BetMarket, BetOption, BetSubMarket
from src.gb_market.domain.option_diff import diff_options
from src.gb_market.domain.repository import MarketRepositoryProtocol, RowLock
from src.gb_market.domain.rules import ensure_editable
from src.gb_market.infrastructure.persistence import MarketRepository

logger = logging.getLogger("gb.market")


def _utc_or_none(value: datetime | None) -> datetime | None:
    return ensure_utc(value) if value is not None else None


class MarketApplicationService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        group_repo: GroupRepositoryProtocol | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or MarketRepository()
        self._groups: GroupRepositoryProtocol = group_repo or GroupRepository()

    # ------------------------------------------------------------------
    # Option edits
    # ------------------------------------------------------------------

    async def _create_options(
        self, db: AsyncSession, scope: BetScope, target_id: str, options: list[OptionIn]
    ) -> list[BetOption]:
        return [
            await self._repo.insert_option(db, scope, target_id, o.label, o.odds)
            for o in options
        ]

    async def _apply_option_diff(
        self,
        db: AsyncSession,
        scope: BetScope,
        target_id: str,
        existing: list[BetOption],
        submitted: list[OptionIn],
    ) -> None:
        diff = diff_options([o.id for o in existing], [o.to_input() for o in submitted])
        for option_id in diff.to_delete:
            await self._repo.delete_option(db, option_id)
        for option in diff.to_update:
            await self._repo.update_option(db, option.id, option.label, option.odds)  # type: ignore[arg-type]
        for option in diff.to_create:
            await self._repo.insert_option(db, scope, target_id, option.label, option.odds)
        if diff.to_delete:
            logger.info(
                "Options removed from %s %s: %s", scope.value, target_id, diff.to_delete
            )

    # ------------------------------------------------------------------
    # Bet markets
    # ------------------------------------------------------------------

    async def _load_market(
        self, db: AsyncSession, market_id: str, lock: RowLock = None
    ) -> BetMarket:
        return await load_market(db, self._repo, market_id, lock)

    async def _market_out(
        self, db: AsyncSession, market: BetMarket, show_counts: bool
    ) -> MarketOut:
        (hydrated,) = await hydrate_markets(db, self._repo, [market])
        return MarketOut.from_domain(hydrated, show_counts)

    async def create_market(
        self, db: AsyncSession, user_id: str, req: CreateMarketRequest
    ) -> MarketOut:
        if await self._groups.get_group(db, req.group_id) is None:
            raise GroupNotFoundError(req.group_id)
        membership = await require_member(db, self._groups, req.group_id, user_id)

        async with atomic(db):
            market = await self._repo.create_market(
                db,
                generate_id(),
                req.group_id,
                req.title,
                req.description,
                ensure_utc(req.closes_at),
                user_id,
            )
            if req.options:
                await self._create_options(db, BetScope.MARKET, market.id, req.options)
        logger.info("Bet market created: %s in group %s", market.id, req.group_id)
        return await self._market_out(db, market, membership.is_admin)

    async def get_market(self, db: AsyncSession, market_id: str, user_id: str) -> MarketOut:
        market = await self._load_market(db, market_id)
        membership = await require_member(db, self._groups, market.group_id, user_id)
        return await self._market_out(db, market, membership.is_admin)

    async def list_group_markets(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> MarketListResponse:
        if await self._groups.get_group(db, group_id) is None:
            raise GroupNotFoundError(group_id)
        membership = await require_member(db, self._groups, group_id, user_id)
        markets = await hydrate_markets(
            db, self._repo, await self._repo.list_group_markets(db, group_id)
        )
        return MarketListResponse(
            markets=[MarketOut.from_domain(m, membership.is_admin) for m in markets]
        )

    async def update_market(
        self, db: AsyncSession, market_id: str, user_id: str, req: UpdateMarketRequest
    ) -> MarketOut:
        async with atomic(db):
            market = await self._load_market(db, market_id, lock="UPDATE")
            await require_admin(db, self._groups, market.group_id, user_id, "edit bet markets")
            ensure_editable(market)

            updated = await self._repo.update_market(
                db, market_id, req.title, req.description, _utc_or_none(req.closes_at)
            )
            if req.options is not None:
                await self._apply_option_diff(
                    db, BetScope.MARKET, market_id, market.options, req.options
                )
        return await self._market_out(db, updated, True)

    async def delete_market(self, db: AsyncSession, market_id: str, user_id: str) -> None:
        """Delete a market with its sub-markets, options and stakes. Stakes are not refunded."""
        async with atomic(db):
            market = await self._load_market(db, market_id, lock="UPDATE")
            await require_admin(
                db, self._groups, market.group_id, user_id, "delete bet markets"
            )
            ensure_editable(market)
            await self._repo.delete_market(db, market_id)
        logger.info("Bet market deleted: %s by %s", market_id, user_id)

    # ------------------------------------------------------------------
    # Bet sub-markets
    # ------------------------------------------------------------------

    async def _load_sub_market(
        self, db: AsyncSession, sub_market_id: str, lock: RowLock = None
    ) -> BetSubMarket:
        return await load_sub_market(db, self._repo, sub_market_id, lock)

    async def create_sub_market(
        self, db: AsyncSession, user_id: str, req: CreateSubMarketRequest
    ) -> SubMarketOut:
        async with atomic(db):
            market = await self._load_market(db, req.bet_market_id, lock="SHARE")
            membership = await require_member(db, self._groups, market.group_id, user_id)
            if market.is_settled:
                raise MarketSettledError(market.id)

            sub_market = await self._repo.create_sub_market(
                db,
                generate_id(),
                market,
                req.title,
                req.description,
                ensure_utc(req.closes_at),
                req.allow_multiple_bets,
                user_id,
            )
            sub_market.options = await self._create_options(
                db, BetScope.SUB_MARKET, sub_market.id, req.options
            )
        logger.info("Bet sub-market created: %s in market %s", sub_market.id, market.id)
        return SubMarketOut.from_domain(sub_market, membership.is_admin)

    async def get_sub_market(
        self, db: AsyncSession, sub_market_id: str, user_id: str
    ) -> SubMarketOut:
        sub_market = await self._load_sub_market(db, sub_market_id)
        membership = await require_member(db, self._groups, sub_market.group_id, user_id)
        return SubMarketOut.from_domain(sub_market, membership.is_admin)

    async def update_sub_market(
        self,
        db: AsyncSession,
        sub_market_id: str,
        user_id: str,
        req: UpdateSubMarketRequest,
    ) -> SubMarketOut:
        async with atomic(db):
            sub_market = await self._load_sub_market(db, sub_market_id, lock="UPDATE")
            await require_admin(
                db, self._groups, sub_market.group_id, user_id, "edit bet sub-markets"
            )
            ensure_editable(sub_market)

            updated = await self._repo.update_sub_market(
                db,
                sub_market_id,
                req.title,
                req.description,
                _utc_or_none(req.closes_at),
                req.allow_multiple_bets,
            )
            if req.options is not None:
                await self._apply_option_diff(
                    db, BetScope.SUB_MARKET, sub_market_id, sub_market.options, req.options
                )
        refreshed = await self._load_sub_market(db, updated.id)
        return SubMarketOut.from_domain(refreshed, True)

    async def delete_sub_market(
        self, db: AsyncSession, sub_market_id: str, user_id: str
    ) -> None:
        async with atomic(db):
            sub_market = await self._load_sub_market(db, sub_market_id, lock="UPDATE")
            await require_admin(
                db, self._groups, sub_market.group_id, user_id, "delete bet sub-markets"
            )
            ensure_editable(sub_market)
            await self._repo.delete_sub_market(db, sub_market_id)
        logger.info("Bet sub-market deleted: %s by %s", sub_market_id, user_id)
