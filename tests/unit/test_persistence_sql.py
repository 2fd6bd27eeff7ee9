"""Unit tests for market / settlement / group repositories using MagicMock AsyncSession."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from src.gb_common.enums import BetScope
from src.gb_common.errors import AlreadyMemberError, AlreadySettledError
from src.gb_group.infrastructure.persistence import GroupRepository
from src.gb_market.infrastructure.persistence import MarketRepository
from src.gb_settlement.infrastructure.persistence import SettlementRepository


@pytest.fixture
def db() -> MagicMock:
    db = MagicMock()
    db.execute = AsyncMock()
    return db


class TestDeleteOption:
    async def test_selections_deleted_before_option(self, db: MagicMock) -> None:
        await MarketRepository().delete_option(db, "o-1")

        statements = [str(c.args[0]) for c in db.execute.await_args_list]
        assert "bet_selections" in statements[0]
        assert "bet_options" in statements[1]
        assert all(c.args[1] == {"option_id": "o-1"} for c in db.execute.await_args_list)


class TestListSettlements:
    async def test_empty_ids_skip_query(self, db: MagicMock) -> None:
        assert await MarketRepository().list_settlements(db, BetScope.SUB_MARKET, []) == {}
        db.execute.assert_not_awaited()

    async def test_keyed_by_target(self, db: MagicMock) -> None:
        row = MagicMock()
        row.id = "st-1"
        row.target_id = "sm-1"
        row.settled_by_user_id = "admin-1"
        row.settled_at = datetime.now(UTC)
        row.winning_option_ids = ["o-1", "o-2"]
        result = MagicMock()
        result.fetchall.return_value = [row]
        db.execute.return_value = result

        got = await MarketRepository().list_settlements(db, BetScope.SUB_MARKET, ["sm-1"])

        assert got["sm-1"].winning_option_ids == ["o-1", "o-2"]


class TestInsertSettlement:
    async def test_unique_violation_is_already_settled(self, db: MagicMock) -> None:
        db.execute.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))
        with pytest.raises(AlreadySettledError):
            await SettlementRepository().insert_settlement(
                db, BetScope.SUB_MARKET, "sm-1", "st-1", "admin-1"
            )

    async def test_scope_selects_target_column(self, db: MagicMock) -> None:
        row = MagicMock()
        row.id = "st-1"
        row.settled_by_user_id = "admin-1"
        row.settled_at = datetime.now(UTC)
        result = MagicMock()
        result.fetchone.return_value = row
        db.execute.return_value = result

        info = await SettlementRepository().insert_settlement(
            db, BetScope.MARKET, "m-1", "st-1", "admin-1"
        )

        assert info.id == "st-1"
        assert "bet_market_id" in str(db.execute.await_args.args[0])
        assert db.execute.await_args.args[1]["target_id"] == "m-1"


def _unique_violation(constraint: str) -> IntegrityError:
    return IntegrityError(
        "INSERT",
        {},
        Exception(f'duplicate key value violates unique constraint "{constraint}"'),
    )


class TestGroupInserts:
    @pytest.fixture
    def savepoint_db(self, db: MagicMock) -> MagicMock:
        db.begin_nested.return_value.__aenter__ = AsyncMock()
        db.begin_nested.return_value.__aexit__ = AsyncMock(return_value=False)
        return db

    async def test_taken_invite_code_returns_none(self, savepoint_db: MagicMock) -> None:
        savepoint_db.execute.side_effect = _unique_violation("uq_groups_invite_code")

        got = await GroupRepository().create_group(
            savepoint_db, "g-1", "Friends", None, "ABCD1234", "u-1"
        )

        assert got is None
        savepoint_db.begin_nested.assert_called_once()

    async def test_other_integrity_errors_propagate(self, savepoint_db: MagicMock) -> None:
        savepoint_db.execute.side_effect = _unique_violation("groups_pkey")
        with pytest.raises(IntegrityError):
            await GroupRepository().create_group(
                savepoint_db, "g-1", "Friends", None, "ABCD1234", "u-1"
            )

    async def test_duplicate_membership_is_already_member(self, db: MagicMock) -> None:
        db.execute.side_effect = _unique_violation("uq_memberships_group_user")
        with pytest.raises(AlreadyMemberError):
            await GroupRepository().add_membership(db, "g-1", "u-2", "MEMBER")
