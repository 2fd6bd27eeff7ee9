"""Unit tests for StakeService (mocked repositories)."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from config.settings import settings
from src.gb_common.enums import BetScope
from src.gb_common.errors import (
    InsufficientPointsError,
    MarketClosedError,
    NotAMemberError,
    OptionNotFoundError,
    SingleSelectionError,
    SubMarketNotFoundError,
)
from src.gb_group.domain.models import Membership
from src.gb_ledger.domain.models import GroupScore
from src.gb_market.domain.models import BetMarket, BetOption, BetSubMarket
from src.gb_stake.application.service import REFERENCE_TYPE, StakeService


def _sub_market(
    status: str = "OPEN",
    closes_in: timedelta = timedelta(hours=1),
    allow_multiple_bets: bool = False,
) -> BetSubMarket:
    return BetSubMarket(
        id="sm-1",
        bet_market_id="m-1",
        group_id="g-1",
        title="Who wins?",
        description=None,
        status=status,
        closes_at=datetime.now(UTC) + closes_in,
        allow_multiple_bets=allow_multiple_bets,
        created_by_user_id="admin-1",
    )


def _options() -> list[BetOption]:
    return [
        BetOption(id="o-1", label="Home", odds=1.8, bet_sub_market_id="sm-1"),
        BetOption(id="o-2", label="Away", odds=2.25, bet_sub_market_id="sm-1"),
    ]


def _score(total: float) -> GroupScore:
    return GroupScore(
        id="score-1", group_id="g-1", user_id="u-1", total_points=total, initial_points=1000
    )


def _make_service(
    target: BetSubMarket | BetMarket | None = None,
    is_member: bool = True,
    balance_after: float | None = 900.0,
    current_balance: float = 50.0,
) -> tuple[StakeService, AsyncMock, AsyncMock, AsyncMock]:
    market_repo = AsyncMock()
    market_repo.get_sub_market.return_value = target
    market_repo.get_market.return_value = target
    market_repo.list_options.return_value = _options()
    market_repo.list_settlements.return_value = {}

    group_repo = AsyncMock()
    group_repo.get_membership.return_value = (
        Membership(id="ms-1", group_id="g-1", user_id="u-1", role="MEMBER") if is_member else None
    )

    ledger = AsyncMock()
    ledger.ensure_balance.return_value = _score(1000.0)
    ledger.debit.return_value = _score(balance_after) if balance_after is not None else None
    ledger.get_balance.return_value = _score(current_balance)

    repo = AsyncMock()
    repo.insert_selection.side_effect = lambda db, selection: selection
    repo.count_user_selections.return_value = 0

    svc = StakeService(
        repo=repo, market_repo=market_repo, group_repo=group_repo, ledger_repo=ledger
    )
    return svc, repo, market_repo, ledger


class TestPlaceStake:
    async def test_stake_debits_and_freezes_payout(self) -> None:
        svc, repo, market_repo, ledger = _make_service(_sub_market(), balance_after=900.0)
        db = AsyncMock()

        out = await svc.place_stake(db, "u-1", BetScope.SUB_MARKET, "sm-1", "o-1", 100)

        assert out.potential_payout_points == pytest.approx(180.0)
        assert out.potential_payout_display == "180"
        assert out.remaining_points == 900.0
        assert out.odds == 1.8
        assert out.bet_sub_market_id == "sm-1"
        assert out.bet_market_id is None
        market_repo.get_sub_market.assert_awaited_once_with(db, "sm-1", "SHARE")
        debit_args = ledger.debit.await_args.args
        assert debit_args[1:5] == ("g-1", "u-1", 100, REFERENCE_TYPE)
        # Journal reference is the selection that was inserted
        assert debit_args[5] == out.selection_id
        db.commit.assert_awaited_once()

    async def test_fractional_payout_not_rounded(self) -> None:
        svc, _, _, _ = _make_service(_sub_market())
        out = await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-2", 25)
        assert out.potential_payout_points == 56.25

    async def test_creates_missing_balance_before_debit(self) -> None:
        svc, _, _, ledger = _make_service(_sub_market())
        db = AsyncMock()
        await svc.place_stake(db, "u-1", BetScope.SUB_MARKET, "sm-1", "o-1", 10)
        ledger.ensure_balance.assert_awaited_once_with(db, "g-1", "u-1", settings.INITIAL_POINTS)

    async def test_stake_equal_to_balance_leaves_zero(self) -> None:
        svc, _, _, _ = _make_service(_sub_market(), balance_after=0.0)
        out = await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-1", 1000)
        assert out.remaining_points == 0.0

    async def test_insufficient_points_rolls_back(self) -> None:
        svc, repo, _, _ = _make_service(_sub_market(), balance_after=None, current_balance=50.0)
        db = AsyncMock()

        with pytest.raises(InsufficientPointsError) as exc_info:
            await svc.place_stake(db, "u-1", BetScope.SUB_MARKET, "sm-1", "o-1", 51)

        assert "51" in exc_info.value.message
        assert "50" in exc_info.value.message
        repo.insert_selection.assert_not_awaited()
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_legacy_market_stake(self) -> None:
        market = BetMarket(
            id="m-1",
            group_id="g-1",
            title="Legacy",
            description=None,
            status="OPEN",
            closes_at=datetime.now(UTC) + timedelta(hours=1),
            created_by_user_id="admin-1",
        )
        svc, _, market_repo, _ = _make_service(market)

        out = await svc.place_stake(AsyncMock(), "u-1", BetScope.MARKET, "m-1", "o-1", 10)

        assert out.bet_market_id == "m-1"
        assert out.bet_sub_market_id is None
        market_repo.get_sub_market.assert_not_awaited()


class TestRejections:
    async def test_unknown_sub_market(self) -> None:
        svc, _, _, _ = _make_service(None)
        with pytest.raises(SubMarketNotFoundError):
            await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-x", "o-1", 10)

    async def test_after_closes_at(self) -> None:
        svc, _, _, ledger = _make_service(_sub_market(closes_in=timedelta(seconds=-1)))
        with pytest.raises(MarketClosedError):
            await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-1", 10)
        ledger.debit.assert_not_awaited()

    async def test_settled_status(self) -> None:
        svc, _, _, ledger = _make_service(_sub_market(status="SETTLED"))
        with pytest.raises(MarketClosedError):
            await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-1", 10)
        ledger.debit.assert_not_awaited()

    async def test_option_of_another_target(self) -> None:
        svc, _, _, _ = _make_service(_sub_market())
        with pytest.raises(OptionNotFoundError):
            await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-99", 10)

    async def test_non_member(self) -> None:
        svc, _, _, ledger = _make_service(_sub_market(), is_member=False)
        with pytest.raises(NotAMemberError):
            await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-1", 10)
        ledger.ensure_balance.assert_not_awaited()


class TestCheckOrder:
    async def test_closed_reported_before_unknown_option(self) -> None:
        svc, _, _, _ = _make_service(_sub_market(closes_in=timedelta(seconds=-1)))
        with pytest.raises(MarketClosedError):
            await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-99", 10)

    async def test_unknown_option_reported_before_membership(self) -> None:
        svc, _, _, _ = _make_service(_sub_market(), is_member=False)
        with pytest.raises(OptionNotFoundError):
            await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-99", 10)

    async def test_membership_reported_before_balance(self) -> None:
        svc, _, _, _ = _make_service(_sub_market(), is_member=False, balance_after=None)
        with pytest.raises(NotAMemberError):
            await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-1", 10_000)


class TestSingleSelection:
    async def test_not_enforced_by_default(self) -> None:
        svc, repo, _, _ = _make_service(_sub_market(allow_multiple_bets=False))
        repo.count_user_selections.return_value = 1
        await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-1", 10)
        repo.count_user_selections.assert_not_awaited()

    async def test_enforced_when_enabled(self) -> None:
        svc, repo, _, ledger = _make_service(_sub_market(allow_multiple_bets=False))
        repo.count_user_selections.return_value = 1
        with patch.object(settings, "ENFORCE_SINGLE_SELECTION", True):
            with pytest.raises(SingleSelectionError):
                await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-2", 10)
        ledger.debit.assert_not_awaited()

    async def test_multiple_bets_flag_bypasses_enforcement(self) -> None:
        svc, repo, _, _ = _make_service(_sub_market(allow_multiple_bets=True))
        repo.count_user_selections.return_value = 3
        with patch.object(settings, "ENFORCE_SINGLE_SELECTION", True):
            await svc.place_stake(AsyncMock(), "u-1", BetScope.SUB_MARKET, "sm-1", "o-2", 10)
        repo.count_user_selections.assert_not_awaited()
