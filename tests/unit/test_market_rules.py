"""Unit tests for market lifecycle rules and the option diff."""

from datetime import UTC, datetime, timedelta

import pytest

from src.gb_common.errors import MarketClosedError, MarketSettledError, ValidationError
from src.gb_market.domain.models import BetMarket, SettlementInfo
from src.gb_market.domain.option_diff import OptionInput, diff_options
from src.gb_market.domain.rules import (
    accepts_stakes,
    ensure_accepts_stakes,
    ensure_editable,
    is_closed,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


class TestIsClosed:
    def test_open_before_deadline(self) -> None:
        assert is_closed("OPEN", NOW + timedelta(hours=1), NOW) is False

    def test_open_after_deadline(self) -> None:
        assert is_closed("OPEN", NOW - timedelta(seconds=1), NOW) is True

    def test_settled_is_closed_regardless_of_time(self) -> None:
        assert is_closed("SETTLED", NOW + timedelta(days=1), NOW) is True

    def test_stored_closed_value(self) -> None:
        assert is_closed("CLOSED", NOW + timedelta(days=1), NOW) is True

    def test_naive_closes_at_treated_as_utc(self) -> None:
        assert is_closed("OPEN", datetime(2026, 5, 1, 13, 0), NOW) is False


class TestAcceptsStakes:
    def test_exactly_at_deadline_is_late(self) -> None:
        assert accepts_stakes("OPEN", NOW, NOW) is False
        with pytest.raises(MarketClosedError):
            ensure_accepts_stakes("sm-1", "OPEN", NOW, NOW)

    def test_before_deadline(self) -> None:
        ensure_accepts_stakes("sm-1", "OPEN", NOW + timedelta(minutes=1), NOW)

    def test_settled_rejected(self) -> None:
        with pytest.raises(MarketClosedError):
            ensure_accepts_stakes("sm-1", "SETTLED", NOW + timedelta(days=1), NOW)


class TestEnsureEditable:
    def _market(self, status: str) -> BetMarket:
        return BetMarket(
            id="m-1", group_id="g-1", title="T", description=None, status=status,
            closes_at=NOW - timedelta(days=1), created_by_user_id="u-1",
        )

    def test_closed_but_unsettled_is_editable(self) -> None:
        ensure_editable(self._market("OPEN"))
        ensure_editable(self._market("CLOSED"))

    def test_settled_status_not_editable(self) -> None:
        with pytest.raises(MarketSettledError):
            ensure_editable(self._market("SETTLED"))

    def test_settlement_record_not_editable(self) -> None:
        market = self._market("OPEN")
        market.settlement = SettlementInfo(id="st-1", settled_by_user_id="u-1", settled_at=NOW)
        with pytest.raises(MarketSettledError):
            ensure_editable(market)


class TestDiffOptions:
    def test_partitions_update_create_delete(self) -> None:
        diff = diff_options(
            ["o-1", "o-2", "o-3"],
            [
                OptionInput(label="Yes", odds=1.5, id="o-1"),
                OptionInput(label="Maybe", odds=4.0),
                OptionInput(label="No", odds=2.5, id="o-3"),
            ],
        )
        assert [o.id for o in diff.to_update] == ["o-1", "o-3"]
        assert [o.label for o in diff.to_create] == ["Maybe"]
        assert diff.to_delete == ["o-2"]

    def test_full_replacement(self) -> None:
        diff = diff_options(
            ["o-1", "o-2"],
            [OptionInput(label="A", odds=2.0), OptionInput(label="B", odds=2.0)],
        )
        assert diff.to_update == []
        assert len(diff.to_create) == 2
        assert diff.to_delete == ["o-1", "o-2"]

    def test_fewer_than_two_options_rejected(self) -> None:
        with pytest.raises(ValidationError):
            diff_options(["o-1", "o-2"], [OptionInput(label="A", odds=2.0, id="o-1")])

    def test_foreign_id_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Unknown option id"):
            diff_options(
                ["o-1"],
                [OptionInput(label="A", odds=2.0, id="o-9"), OptionInput(label="B", odds=2.0)],
            )

    def test_duplicate_id_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate option id"):
            diff_options(
                ["o-1"],
                [
                    OptionInput(label="A", odds=2.0, id="o-1"),
                    OptionInput(label="B", odds=2.0, id="o-1"),
                ],
            )
