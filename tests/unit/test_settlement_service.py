"""Unit tests for SettlementService (mocked repositories)."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.gb_common.enums import BetScope
from src.gb_common.errors import (
    AlreadySettledError,
    InvalidWinningOptionsError,
    MarketNotFoundError,
    NotAdminError,
)
from src.gb_group.domain.models import Membership
from src.gb_ledger.domain.models import GroupScore
from src.gb_market.domain.models import BetMarket, BetOption, BetSubMarket, SettlementInfo
from src.gb_settlement.application.service import SettlementService
from src.gb_settlement.domain.payout import winning_payouts
from src.gb_stake.application.service import REFERENCE_TYPE
from src.gb_stake.domain.models import BetSelection

NOW = datetime.now(UTC)


def _sub_market(status: str = "OPEN") -> BetSubMarket:
    return BetSubMarket(
        id="sm-1",
        bet_market_id="m-1",
        group_id="g-1",
        title="Who wins?",
        description=None,
        status=status,
        # Settlement does not care whether the betting window has passed
        closes_at=NOW + timedelta(hours=1),
        allow_multiple_bets=True,
        created_by_user_id="admin-1",
    )


def _options() -> list[BetOption]:
    return [
        BetOption(id="o-1", label="Home", odds=1.8, bet_sub_market_id="sm-1"),
        BetOption(id="o-2", label="Draw", odds=3.0, bet_sub_market_id="sm-1"),
        BetOption(id="o-3", label="Away", odds=4.0, bet_sub_market_id="sm-1"),
    ]


def _selection(sel_id: str, user_id: str, option_id: str, stake: int, odds: float) -> BetSelection:
    return BetSelection(
        id=sel_id,
        bet_option_id=option_id,
        user_id=user_id,
        stake_points=stake,
        potential_payout_points=stake * odds,
        bet_sub_market_id="sm-1",
    )


def _score(user_id: str, total: float = 1000.0) -> GroupScore:
    return GroupScore(
        id=f"score-{user_id}", group_id="g-1", user_id=user_id,
        total_points=total, initial_points=1000,
    )


def _make_service(
    target: BetSubMarket | BetMarket | None = None,
    role: str | None = "ADMIN",
    selections: list[BetSelection] | None = None,
    settled: SettlementInfo | None = None,
) -> tuple[SettlementService, AsyncMock, AsyncMock, AsyncMock]:
    market_repo = AsyncMock()
    market_repo.get_sub_market.return_value = target
    market_repo.get_market.return_value = target
    market_repo.list_options.return_value = _options()
    market_repo.list_settlements.return_value = {"sm-1": settled} if settled else {}

    group_repo = AsyncMock()
    group_repo.get_membership.return_value = (
        Membership(id="ms-a", group_id="g-1", user_id="admin-1", role=role) if role else None
    )

    repo = AsyncMock()
    repo.list_winning_selections.return_value = selections or []
    repo.insert_settlement.side_effect = lambda db, scope, tid, sid, uid: SettlementInfo(
        id=sid, settled_by_user_id=uid, settled_at=NOW
    )

    ledger = AsyncMock()
    ledger.credit.side_effect = lambda db, gid, uid, amount, ref_type, ref_id: _score(uid)

    svc = SettlementService(
        repo=repo, market_repo=market_repo, group_repo=group_repo, ledger_repo=ledger
    )
    return svc, repo, market_repo, ledger


class TestWinningPayouts:
    def test_only_winning_options_pay(self) -> None:
        selections = [
            _selection("s-1", "u-1", "o-1", 100, 1.8),
            _selection("s-2", "u-2", "o-3", 50, 4.0),
        ]
        payouts = winning_payouts(selections, {"o-1"})
        assert [(p.selection_id, p.amount) for p in payouts] == [("s-1", 180.0)]


class TestSettleSubMarket:
    async def test_credits_frozen_payouts_of_winners_only(self) -> None:
        selections = [
            _selection("s-1", "u-1", "o-1", 100, 1.8),
            _selection("s-2", "u-2", "o-1", 25, 1.8),
        ]
        svc, repo, market_repo, ledger = _make_service(_sub_market(), selections=selections)
        db = AsyncMock()

        out = await svc.settle_sub_market(db, "sm-1", "admin-1", ["o-1"])

        market_repo.get_sub_market.assert_awaited_once_with(db, "sm-1", "UPDATE")
        credited = [(c.args[2], c.args[3], c.args[5]) for c in ledger.credit.await_args_list]
        assert credited == [("u-1", 180.0, "s-1"), ("u-2", 45.0, "s-2")]
        assert all(c.args[4] == REFERENCE_TYPE for c in ledger.credit.await_args_list)
        assert out.winners_count == 2
        assert out.total_payout_points == pytest.approx(225.0)
        assert out.total_payout_display == "225"
        assert out.skipped_count == 0
        assert out.bet_sub_market_id == "sm-1"
        repo.insert_winning_options.assert_awaited_once_with(db, out.settlement_id, ["o-1"])
        repo.mark_settled.assert_awaited_once_with(db, BetScope.SUB_MARKET, "sm-1")
        db.commit.assert_awaited_once()

    async def test_multiple_winning_options(self) -> None:
        selections = [
            _selection("s-1", "u-1", "o-1", 10, 1.8),
            _selection("s-2", "u-2", "o-2", 10, 3.0),
        ]
        svc, repo, _, ledger = _make_service(_sub_market(), selections=selections)

        out = await svc.settle_sub_market(AsyncMock(), "sm-1", "admin-1", ["o-1", "o-2", "o-1"])

        assert out.winning_option_ids == ["o-1", "o-2"]
        assert out.total_payout_points == pytest.approx(48.0)
        assert ledger.credit.await_count == 2
        assert repo.list_winning_selections.await_args.args[3] == ["o-1", "o-2"]

    async def test_no_winning_stakes_still_settles(self) -> None:
        svc, repo, _, ledger = _make_service(_sub_market(), selections=[])
        out = await svc.settle_sub_market(AsyncMock(), "sm-1", "admin-1", ["o-3"])
        assert out.winners_count == 0
        assert out.total_payout_points == 0.0
        ledger.credit.assert_not_awaited()
        repo.mark_settled.assert_awaited_once()

    async def test_removed_member_payout_is_skipped(self) -> None:
        selections = [
            _selection("s-1", "u-1", "o-1", 100, 1.8),
            _selection("s-2", "gone", "o-1", 10, 1.8),
        ]
        svc, _, _, ledger = _make_service(_sub_market(), selections=selections)
        ledger.credit.side_effect = lambda db, gid, uid, amount, rt, rid: (
            None if uid == "gone" else _score(uid)
        )

        out = await svc.settle_sub_market(AsyncMock(), "sm-1", "admin-1", ["o-1"])

        assert out.skipped_count == 1
        assert out.total_payout_points == pytest.approx(180.0)


class TestSettlementRejections:
    async def test_second_settle_is_rejected_without_credits(self) -> None:
        previous = SettlementInfo(id="st-1", settled_by_user_id="admin-1", settled_at=NOW)
        svc, repo, _, ledger = _make_service(
            _sub_market(status="SETTLED"),
            selections=[_selection("s-1", "u-1", "o-1", 100, 1.8)],
            settled=previous,
        )
        db = AsyncMock()

        with pytest.raises(AlreadySettledError):
            await svc.settle_sub_market(db, "sm-1", "admin-1", ["o-1"])

        ledger.credit.assert_not_awaited()
        repo.insert_settlement.assert_not_awaited()
        db.rollback.assert_awaited_once()

    async def test_concurrent_duplicate_caught_by_constraint(self) -> None:
        svc, repo, _, ledger = _make_service(_sub_market())
        repo.insert_settlement.side_effect = AlreadySettledError("sm-1")
        with pytest.raises(AlreadySettledError):
            await svc.settle_sub_market(AsyncMock(), "sm-1", "admin-1", ["o-1"])
        ledger.credit.assert_not_awaited()

    async def test_member_cannot_settle(self) -> None:
        svc, repo, _, _ = _make_service(_sub_market(), role="MEMBER")
        with pytest.raises(NotAdminError):
            await svc.settle_sub_market(AsyncMock(), "sm-1", "u-1", ["o-1"])
        repo.insert_settlement.assert_not_awaited()

    async def test_already_settled_reported_before_admin_check(self) -> None:
        previous = SettlementInfo(id="st-1", settled_by_user_id="admin-1", settled_at=NOW)
        svc, _, _, _ = _make_service(_sub_market(), role=None, settled=previous)
        with pytest.raises(AlreadySettledError):
            await svc.settle_sub_market(AsyncMock(), "sm-1", "u-1", ["o-1"])

    async def test_empty_winners(self) -> None:
        svc, _, _, _ = _make_service(_sub_market())
        with pytest.raises(InvalidWinningOptionsError):
            await svc.settle_sub_market(AsyncMock(), "sm-1", "admin-1", [])

    async def test_foreign_winner(self) -> None:
        svc, _, _, _ = _make_service(_sub_market())
        with pytest.raises(InvalidWinningOptionsError, match="o-9"):
            await svc.settle_sub_market(AsyncMock(), "sm-1", "admin-1", ["o-1", "o-9"])


class TestLegacyMarketSettlement:
    async def test_single_winner_path(self) -> None:
        market = BetMarket(
            id="m-1",
            group_id="g-1",
            title="Legacy",
            description=None,
            status="OPEN",
            closes_at=NOW,
            created_by_user_id="admin-1",
        )
        selection = BetSelection(
            id="s-1", bet_option_id="o-1", user_id="u-1", stake_points=100,
            potential_payout_points=180.0, bet_market_id="m-1",
        )
        svc, repo, market_repo, ledger = _make_service(market, selections=[selection])
        db = AsyncMock()

        out = await svc.settle_market(db, "m-1", "admin-1", "o-1")

        market_repo.get_market.assert_awaited_once_with(db, "m-1", "UPDATE")
        market_repo.get_sub_market.assert_not_awaited()
        assert out.bet_market_id == "m-1"
        assert out.bet_sub_market_id is None
        assert out.winning_option_ids == ["o-1"]
        assert out.total_payout_points == 180.0
        repo.mark_settled.assert_awaited_once_with(db, BetScope.MARKET, "m-1")

    async def test_missing_market(self) -> None:
        svc, _, _, _ = _make_service(None)
        with pytest.raises(MarketNotFoundError):
            await svc.settle_market(AsyncMock(), "m-x", "admin-1", "o-1")
