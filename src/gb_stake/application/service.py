"""StakeService: place a stake on an option of a sub-market or legacy market.

Check order (the first failure wins):
    target exists -> accepts stakes -> option belongs to target ->
    caller is a member -> [single selection] -> balance covers the stake

The target row is read FOR SHARE, and the balance check is the conditional
debit itself, so neither a concurrent settlement nor a concurrent stake can
slip between check and write. Debit, selection insert and journal entry
commit together or not at all.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.gb_common.database import atomic
from src.gb_common.datetime_utils import utc_now
from src.gb_common.enums import BetScope
from src.gb_common.errors import (
    InsufficientPointsError,
    OptionNotFoundError,
    SingleSelectionError,
)
from src.gb_common.id_generator import generate_id
from src.gb_common.points import calculate_payout
from src.gb_group.application.access import require_member
from src.gb_group.domain.repository import GroupRepositoryProtocol
from src.gb_group.infrastructure.persistence import GroupRepository
from src.gb_ledger.domain.repository import LedgerRepositoryProtocol
from src.gb_ledger.infrastructure.persistence import LedgerRepository
from src.gb_market.application.hydration import load_target
from src.gb_market.domain.models import BetSubMarket, BetTarget
from src.gb_market.domain.repository import MarketRepositoryProtocol
from src.gb_market.domain.rules import ensure_accepts_stakes
from src.gb_market.infrastructure.persistence import MarketRepository
from src.gb_stake.application.schemas import PlaceStakeResponse
from src.gb_stake.domain.models import BetSelection
from src.gb_stake.domain.repository import SelectionRepositoryProtocol
from src.gb_stake.infrastructure.persistence import SelectionRepository

logger = logging.getLogger("gb.stake")

REFERENCE_TYPE = "BET_SELECTION"


class StakeService:
    def __init__(
        self,
        repo: SelectionRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
        group_repo: GroupRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._repo: SelectionRepositoryProtocol = repo or SelectionRepository()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._groups: GroupRepositoryProtocol = group_repo or GroupRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()

    async def _check_single_selection(
        self, db: AsyncSession, target: BetTarget, user_id: str
    ) -> None:
        if not settings.ENFORCE_SINGLE_SELECTION:
            return
        if not isinstance(target, BetSubMarket) or target.allow_multiple_bets:
            return
        if await self._repo.count_user_selections(db, target.scope, target.id, user_id) > 0:
            raise SingleSelectionError(target.id)

    async def place_stake(
        self,
        db: AsyncSession,
        user_id: str,
        scope: BetScope,
        target_id: str,
        option_id: str,
        stake_points: int,
    ) -> PlaceStakeResponse:
        async with atomic(db):
            target = await load_target(db, self._markets, scope, target_id, lock="SHARE")
            ensure_accepts_stakes(target.id, target.status, target.closes_at, utc_now())

            option = target.find_option(option_id)
            if option is None:
                raise OptionNotFoundError(option_id)

            await require_member(db, self._groups, target.group_id, user_id)
            await self._check_single_selection(db, target, user_id)
            await self._ledger.ensure_balance(
                db, target.group_id, user_id, settings.INITIAL_POINTS
            )

            selection_id = generate_id()
            score = await self._ledger.debit(
                db, target.group_id, user_id, stake_points, REFERENCE_TYPE, selection_id
            )
            if score is None:
                current = await self._ledger.get_balance(db, target.group_id, user_id)
                raise InsufficientPointsError(
                    stake_points, current.total_points if current else 0.0
                )

            selection = await self._repo.insert_selection(
                db,
                BetSelection(
                    id=selection_id,
                    bet_option_id=option.id,
                    user_id=user_id,
                    stake_points=stake_points,
                    potential_payout_points=calculate_payout(stake_points, option.odds),
                    bet_market_id=target.id if scope == BetScope.MARKET else None,
                    bet_sub_market_id=target.id if scope == BetScope.SUB_MARKET else None,
                ),
            )

        logger.info(
            "Stake placed: %s user=%s %s=%s option=%s stake=%d payout=%s balance=%s",
            selection.id,
            user_id,
            scope.value,
            target.id,
            option.id,
            stake_points,
            selection.potential_payout_points,
            score.total_points,
        )
        return PlaceStakeResponse.from_result(selection, option.odds, score)
