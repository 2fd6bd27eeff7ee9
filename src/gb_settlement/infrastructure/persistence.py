"""SettlementRepository: bet_settlements, winning links and status flip.

The UNIQUE constraint on the settlement target is the last line against a
double payout: a duplicate insert surfaces as AlreadySettledError and the
caller's transaction rolls back with no balance touched.
"""

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.enums import BetScope, MarketStatus
from src.gb_common.errors import AlreadySettledError, InternalError
from src.gb_market.domain.models import SettlementInfo
from src.gb_market.infrastructure.persistence import SCOPE_COLUMN
from src.gb_stake.domain.models import BetSelection
from src.gb_stake.infrastructure.persistence import SELECTION_COLUMNS, row_to_selection

_SCOPE_TABLE = {
    BetScope.MARKET: "bet_markets",
    BetScope.SUB_MARKET: "bet_sub_markets",
}

_LIST_WINNING_SELECTIONS_SQL = {
    scope: text(f"""
        SELECT {SELECTION_COLUMNS}
        FROM bet_selections
        WHERE {column} = :target_id
          AND bet_option_id = ANY(:option_ids)
        ORDER BY created_at, id
    """)
    for scope, column in SCOPE_COLUMN.items()
}

_INSERT_SETTLEMENT_SQL = {
    scope: text(f"""
        INSERT INTO bet_settlements (id, {column}, settled_by_user_id)
        VALUES (:id, :target_id, :settled_by_user_id)
        RETURNING id, settled_by_user_id, settled_at
    """)
    for scope, column in SCOPE_COLUMN.items()
}

_INSERT_WINNING_OPTION_SQL = text("""
    INSERT INTO bet_settlement_winning_options (settlement_id, bet_option_id)
    VALUES (:settlement_id, :bet_option_id)
""")

_MARK_SETTLED_SQL = {
    scope: text(f"""
        UPDATE {table}
        SET status = '{MarketStatus.SETTLED.value}', updated_at = NOW()
        WHERE id = :target_id
    """)
    for scope, table in _SCOPE_TABLE.items()
}


class SettlementRepository:
    async def list_winning_selections(
        self,
        db: AsyncSession,
        scope: BetScope,
        target_id: str,
        winning_option_ids: list[str],
    ) -> list[BetSelection]:
        result = await db.execute(
            _LIST_WINNING_SELECTIONS_SQL[scope],
            {"target_id": target_id, "option_ids": winning_option_ids},
        )
        return [row_to_selection(row) for row in result.fetchall()]

    async def insert_settlement(
        self,
        db: AsyncSession,
        scope: BetScope,
        target_id: str,
        settlement_id: str,
        settled_by_user_id: str,
    ) -> SettlementInfo:
        try:
            result = await db.execute(
                _INSERT_SETTLEMENT_SQL[scope],
                {
                    "id": settlement_id,
                    "target_id": target_id,
                    "settled_by_user_id": settled_by_user_id,
                },
            )
        except IntegrityError:
            raise AlreadySettledError(target_id) from None
        row = result.fetchone()
        if row is None:
            raise InternalError("Settlement insert returned no rows: this should never happen")
        return SettlementInfo(
            id=row.id,
            settled_by_user_id=row.settled_by_user_id,
            settled_at=row.settled_at,
        )

    async def insert_winning_options(
        self, db: AsyncSession, settlement_id: str, option_ids: list[str]
    ) -> None:
        for option_id in option_ids:
            await db.execute(
                _INSERT_WINNING_OPTION_SQL,
                {"settlement_id": settlement_id, "bet_option_id": option_id},
            )

    async def mark_settled(self, db: AsyncSession, scope: BetScope, target_id: str) -> None:
        await db.execute(_MARK_SETTLED_SQL[scope], {"target_id": target_id})
