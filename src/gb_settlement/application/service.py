"""SettlementService: resolve winners and pay them out, exactly once.

One routine serves both scopes: a sub-market settles with one or more
winning options, a legacy market with exactly one. Check order:

    target exists (404) -> not yet settled -> caller is group ADMIN ->
    winners non-empty and all among the target's current options

The target row is locked FOR UPDATE for the whole transaction, and the
unique settlement-per-target constraint backs it up, so a second settle
call fails with AlreadySettledError and changes no balance.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import atomic
from src.gb_common.datetime_utils import isoformat_or_none
from src.gb_common.enums import BetScope
from src.gb_common.errors import AlreadySettledError, InvalidWinningOptionsError
from src.gb_common.id_generator import generate_id
from src.gb_common.points import points_to_display
from src.gb_group.application.access import require_admin
from src.gb_group.domain.repository import GroupRepositoryProtocol
from src.gb_group.infrastructure.persistence import GroupRepository
from src.gb_ledger.domain.repository import LedgerRepositoryProtocol
from src.gb_ledger.infrastructure.persistence import LedgerRepository
from src.gb_market.application.hydration import load_target
from src.gb_market.domain.models import BetTarget
from src.gb_market.domain.repository import MarketRepositoryProtocol
from src.gb_market.infrastructure.persistence import MarketRepository
from src.gb_settlement.application.schemas import SettlementResponse
from src.gb_settlement.domain.payout import winning_payouts
from src.gb_settlement.domain.repository import SettlementRepositoryProtocol
from src.gb_settlement.infrastructure.persistence import SettlementRepository
from src.gb_stake.application.service import REFERENCE_TYPE

logger = logging.getLogger("gb.settlement")


def _validate_winners(target: BetTarget, winning_option_ids: list[str]) -> list[str]:
    """Return the distinct winners in submission order, or raise."""
    if not winning_option_ids:
        raise InvalidWinningOptionsError("at least one winning option is required")
    current = {o.id for o in target.options}
    unknown = [oid for oid in winning_option_ids if oid not in current]
    if unknown:
        raise InvalidWinningOptionsError(
            f"not options of {target.id}: {', '.join(unknown)}"
        )
    return list(dict.fromkeys(winning_option_ids))


class SettlementService:
    def __init__(
        self,
        repo: SettlementRepositoryProtocol | None = None,
        market_repo: MarketRepositoryProtocol | None = None,
        group_repo: GroupRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._repo: SettlementRepositoryProtocol = repo or SettlementRepository()
        self._markets: MarketRepositoryProtocol = market_repo or MarketRepository()
        self._groups: GroupRepositoryProtocol = group_repo or GroupRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()

    async def settle_sub_market(
        self,
        db: AsyncSession,
        sub_market_id: str,
        settled_by_user_id: str,
        winning_option_ids: list[str],
    ) -> SettlementResponse:
        return await self._settle(
            db, BetScope.SUB_MARKET, sub_market_id, settled_by_user_id, winning_option_ids
        )

    async def settle_market(
        self,
        db: AsyncSession,
        market_id: str,
        settled_by_user_id: str,
        winning_option_id: str,
    ) -> SettlementResponse:
        return await self._settle(
            db, BetScope.MARKET, market_id, settled_by_user_id, [winning_option_id]
        )

    async def _settle(
        self,
        db: AsyncSession,
        scope: BetScope,
        target_id: str,
        settled_by_user_id: str,
        winning_option_ids: list[str],
    ) -> SettlementResponse:
        async with atomic(db):
            target = await load_target(db, self._markets, scope, target_id, lock="UPDATE")
            if target.is_settled:
                raise AlreadySettledError(target.id)
            await require_admin(
                db, self._groups, target.group_id, settled_by_user_id, "settle bet markets"
            )
            winners = _validate_winners(target, winning_option_ids)

            selections = await self._repo.list_winning_selections(db, scope, target.id, winners)
            payouts = winning_payouts(selections, set(winners))

            settlement = await self._repo.insert_settlement(
                db, scope, target.id, generate_id(), settled_by_user_id
            )
            await self._repo.insert_winning_options(db, settlement.id, winners)
            await self._repo.mark_settled(db, scope, target.id)

            total_paid = 0.0
            skipped = 0
            for payout in payouts:
                score = await self._ledger.credit(
                    db,
                    target.group_id,
                    payout.user_id,
                    payout.amount,
                    REFERENCE_TYPE,
                    payout.selection_id,
                )
                if score is None:
                    # Bettor left the group after staking; their ledger row is gone.
                    logger.warning(
                        "Payout skipped for selection %s: user %s has no ledger row in %s",
                        payout.selection_id,
                        payout.user_id,
                        target.group_id,
                    )
                    skipped += 1
                    continue
                total_paid += payout.amount

        logger.info(
            "Settled %s %s by %s: winners=%s bets=%d paid=%s skipped=%d",
            scope.value,
            target.id,
            settled_by_user_id,
            winners,
            len(payouts),
            total_paid,
            skipped,
        )
        return SettlementResponse(
            settlement_id=settlement.id,
            bet_market_id=target.id if scope == BetScope.MARKET else None,
            bet_sub_market_id=target.id if scope == BetScope.SUB_MARKET else None,
            winning_option_ids=winners,
            winners_count=len(payouts),
            total_payout_points=total_paid,
            total_payout_display=points_to_display(total_paid),
            skipped_count=skipped,
            settled_at=isoformat_or_none(settlement.settled_at),
        )
