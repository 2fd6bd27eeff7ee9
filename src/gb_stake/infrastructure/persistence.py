"""SelectionRepository: inserts into bet_selections."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.enums import BetScope
from src.gb_common.errors import InternalError
from src.gb_market.infrastructure.persistence import SCOPE_COLUMN
from src.gb_stake.domain.models import BetSelection

SELECTION_COLUMNS = (
    "id, bet_market_id, bet_sub_market_id, bet_option_id, user_id, "
    "stake_points, potential_payout_points, created_at"
)

_INSERT_SELECTION_SQL = text(f"""
    INSERT INTO bet_selections
        (id, bet_market_id, bet_sub_market_id, bet_option_id, user_id,
         stake_points, potential_payout_points)
    VALUES
        (:id, :bet_market_id, :bet_sub_market_id, :bet_option_id, :user_id,
         :stake_points, :potential_payout_points)
    RETURNING {SELECTION_COLUMNS}
""")

_COUNT_USER_SELECTIONS_SQL = {
    scope: text(f"""
        SELECT COUNT(*) FROM bet_selections
        WHERE {column} = :target_id AND user_id = :user_id
    """)
    for scope, column in SCOPE_COLUMN.items()
}


def row_to_selection(row: object) -> BetSelection:
    return BetSelection(
        id=row.id,  # type: ignore[attr-defined]
        bet_option_id=row.bet_option_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        stake_points=row.stake_points,  # type: ignore[attr-defined]
        potential_payout_points=float(row.potential_payout_points),  # type: ignore[attr-defined]
        bet_market_id=row.bet_market_id,  # type: ignore[attr-defined]
        bet_sub_market_id=row.bet_sub_market_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class SelectionRepository:
    async def insert_selection(
        self, db: AsyncSession, selection: BetSelection
    ) -> BetSelection:
        result = await db.execute(
            _INSERT_SELECTION_SQL,
            {
                "id": selection.id,
                "bet_market_id": selection.bet_market_id,
                "bet_sub_market_id": selection.bet_sub_market_id,
                "bet_option_id": selection.bet_option_id,
                "user_id": selection.user_id,
                "stake_points": selection.stake_points,
                "potential_payout_points": selection.potential_payout_points,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Selection insert returned no rows: this should never happen")
        return row_to_selection(row)

    async def count_user_selections(
        self, db: AsyncSession, scope: BetScope, target_id: str, user_id: str
    ) -> int:
        result = await db.execute(
            _COUNT_USER_SELECTIONS_SQL[scope], {"target_id": target_id, "user_id": user_id}
        )
        return int(result.scalar_one())
