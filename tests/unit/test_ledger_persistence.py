"""Unit tests for LedgerRepository using MagicMock AsyncSession."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.gb_common.errors import InternalError, NotAMemberError
from src.gb_ledger.infrastructure.persistence import LedgerRepository


def _score_row(total: float = 1000.0, initial: int = 1000) -> MagicMock:
    row = MagicMock()
    row.id = "score-1"
    row.group_id = "g-1"
    row.user_id = "u-1"
    row.total_points = total
    row.initial_points = initial
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _entry_row(entry_type: str, amount: float, balance_after: float) -> MagicMock:
    row = MagicMock()
    row.id = 7
    row.group_id = "g-1"
    row.user_id = "u-1"
    row.entry_type = entry_type
    row.amount = amount
    row.balance_after = balance_after
    row.reference_type = None
    row.reference_id = None
    row.created_at = datetime.now(UTC)
    return row


def _result(one: object = None, many: list | None = None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = many or []
    return result


@pytest.fixture
def db() -> MagicMock:
    return MagicMock()


class TestDebit:
    async def test_returns_none_when_balance_insufficient(self, db: MagicMock) -> None:
        db.execute = AsyncMock(return_value=_result(None))

        score = await LedgerRepository().debit(db, "g-1", "u-1", 500, "BET_SELECTION", "s-1")

        assert score is None
        # No journal entry for a refused debit
        assert db.execute.await_count == 1

    async def test_debit_writes_negative_journal_entry(self, db: MagicMock) -> None:
        db.execute = AsyncMock(
            side_effect=[
                _result(_score_row(total=900.0)),
                _result(_entry_row("STAKE_DEBIT", -100, 900.0)),
            ]
        )

        score = await LedgerRepository().debit(db, "g-1", "u-1", 100, "BET_SELECTION", "s-1")

        assert score is not None
        assert score.total_points == 900.0
        params = db.execute.await_args_list[1].args[1]
        assert params["entry_type"] == "STAKE_DEBIT"
        assert params["amount"] == -100
        assert params["balance_after"] == 900.0
        assert params["reference_type"] == "BET_SELECTION"
        assert params["reference_id"] == "s-1"

    async def test_debit_sql_is_conditional(self, db: MagicMock) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        await LedgerRepository().debit(db, "g-1", "u-1", 5, "BET_SELECTION", "s-1")
        sql = str(db.execute.await_args_list[0].args[0])
        assert "total_points >= :amount" in sql


class TestCredit:
    async def test_credit_journals_payout(self, db: MagicMock) -> None:
        db.execute = AsyncMock(
            side_effect=[
                _result(_score_row(total=1250.0)),
                _result(_entry_row("SETTLEMENT_PAYOUT", 250.0, 1250.0)),
            ]
        )

        score = await LedgerRepository().credit(db, "g-1", "u-1", 250.0, "BET_SELECTION", "s-1")

        assert score is not None
        assert score.total_points == 1250.0
        params = db.execute.await_args_list[1].args[1]
        assert params["entry_type"] == "SETTLEMENT_PAYOUT"
        assert params["amount"] == 250.0

    async def test_credit_without_row_returns_none(self, db: MagicMock) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        assert await LedgerRepository().credit(db, "g-1", "u-1", 10.0, "X", "s") is None
        assert db.execute.await_count == 1


class TestEnsureBalance:
    async def test_existing_row_is_returned_untouched(self, db: MagicMock) -> None:
        db.execute = AsyncMock(return_value=_result(_score_row(total=420.0)))

        score = await LedgerRepository().ensure_balance(db, "g-1", "u-1", 1000)

        assert score.total_points == 420.0
        assert db.execute.await_count == 1

    async def test_creates_row_and_grants_initial_points(self, db: MagicMock) -> None:
        db.execute = AsyncMock(
            side_effect=[
                _result(None),
                _result(_score_row()),
                _result(_entry_row("INITIAL_GRANT", 1000, 1000.0)),
            ]
        )

        score = await LedgerRepository().ensure_balance(db, "g-1", "u-1", 1000)

        assert score.total_points == 1000.0
        params = db.execute.await_args_list[2].args[1]
        assert params["entry_type"] == "INITIAL_GRANT"
        assert params["amount"] == 1000

    async def test_lost_race_rereads_without_grant(self, db: MagicMock) -> None:
        db.execute = AsyncMock(
            side_effect=[
                _result(None),
                _result(None),  # ON CONFLICT DO NOTHING
                _result(_score_row(total=1000.0)),
            ]
        )

        score = await LedgerRepository().ensure_balance(db, "g-1", "u-1", 1000)

        assert score.total_points == 1000.0
        assert db.execute.await_count == 3

    async def test_vanished_row_is_internal_error(self, db: MagicMock) -> None:
        db.execute = AsyncMock(side_effect=[_result(None), _result(None), _result(None)])
        with pytest.raises(InternalError):
            await LedgerRepository().ensure_balance(db, "g-1", "u-1", 1000)


class TestListEntries:
    async def test_maps_rows(self, db: MagicMock) -> None:
        rows = [_entry_row("STAKE_DEBIT", -10, 990.0), _entry_row("INITIAL_GRANT", 1000, 1000.0)]
        db.execute = AsyncMock(return_value=_result(many=rows))

        entries = await LedgerRepository().list_entries(db, "g-1", "u-1", None, 21, None)

        assert [e.entry_type for e in entries] == ["STAKE_DEBIT", "INITIAL_GRANT"]
        params = db.execute.await_args.args[1]
        assert params["cursor_id"] is None
        assert params["limit"] == 21


class TestAdjust:
    async def test_negative_delta_allowed(self, db: MagicMock) -> None:
        db.execute = AsyncMock(return_value=_result(_score_row(total=950.5)))

        score = await LedgerRepository().adjust(db, "g-1", "u-1", -49.5)

        assert score.total_points == 950.5
        assert db.execute.await_args.args[1]["delta"] == -49.5

    async def test_missing_row_is_not_a_member(self, db: MagicMock) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(NotAMemberError):
            await LedgerRepository().adjust(db, "g-1", "u-1", 10)
