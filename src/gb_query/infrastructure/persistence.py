"""QueryRepository: read-only joins for leaderboard and bet listings.

users.id is a UUID while every foreign user_id column is VARCHAR, hence
the ``u.id::text`` joins.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_query.domain.models import BetDetailRow, LeaderboardRow, MyBetRow

# Ties on points resolve by who joined first, then by user id.
_LEADERBOARD_SQL = text("""
    SELECT gs.user_id, u.name AS user_name, u.email AS user_email,
           gs.total_points, gs.initial_points, gs.created_at
    FROM group_scores gs
    LEFT JOIN users u ON u.id::text = gs.user_id
    WHERE gs.group_id = :group_id
    ORDER BY gs.total_points DESC, gs.created_at ASC, gs.user_id ASC
""")

_MY_BETS_SELECT = """
    SELECT s.id AS selection_id, s.bet_option_id, s.stake_points,
           s.potential_payout_points, s.created_at,
           o.label AS option_label, o.odds,
           bm.id AS bet_market_id, bm.title AS market_title,
           sm.id AS bet_sub_market_id, sm.title AS sub_market_title,
           COALESCE(sm.status, bm.status) AS target_status,
           COALESCE(sm.closes_at, bm.closes_at) AS closes_at,
           st.id AS settlement_id,
           COALESCE(
               (SELECT ARRAY_AGG(w.bet_option_id)
                FROM bet_settlement_winning_options w
                WHERE w.settlement_id = st.id),
               ARRAY[]::VARCHAR[]
           ) AS winning_option_ids
    FROM bet_selections s
    JOIN bet_options o ON o.id = s.bet_option_id
    LEFT JOIN bet_sub_markets sm ON sm.id = s.bet_sub_market_id
    JOIN bet_markets bm ON bm.id = COALESCE(sm.bet_market_id, s.bet_market_id)
    LEFT JOIN bet_settlements st
           ON st.bet_sub_market_id = s.bet_sub_market_id
           OR st.bet_market_id = s.bet_market_id
"""

_MY_BETS_IN_GROUP_SQL = text(
    _MY_BETS_SELECT
    + " WHERE s.user_id = :user_id AND bm.group_id = :group_id"
    + " ORDER BY s.created_at DESC, s.id DESC"
)

_MY_BETS_IN_SUB_MARKET_SQL = text(
    _MY_BETS_SELECT
    + " WHERE s.user_id = :user_id AND s.bet_sub_market_id = :sub_market_id"
    + " ORDER BY s.created_at DESC, s.id DESC"
)

_SUB_MARKET_BETS_SQL = text("""
    SELECT s.id AS selection_id, s.user_id, u.name AS user_name, u.email AS user_email,
           s.bet_option_id, o.label AS option_label, o.odds,
           s.stake_points, s.potential_payout_points, s.created_at
    FROM bet_selections s
    JOIN bet_options o ON o.id = s.bet_option_id
    LEFT JOIN users u ON u.id::text = s.user_id
    WHERE s.bet_sub_market_id = :sub_market_id
    ORDER BY s.created_at DESC, s.id DESC
""")


def _row_to_leaderboard(row: object) -> LeaderboardRow:
    return LeaderboardRow(
        user_id=row.user_id,  # type: ignore[attr-defined]
        user_name=row.user_name,  # type: ignore[attr-defined]
        user_email=row.user_email,  # type: ignore[attr-defined]
        total_points=float(row.total_points),  # type: ignore[attr-defined]
        initial_points=row.initial_points,  # type: ignore[attr-defined]
        joined_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_my_bet(row: object) -> MyBetRow:
    return MyBetRow(
        selection_id=row.selection_id,  # type: ignore[attr-defined]
        bet_option_id=row.bet_option_id,  # type: ignore[attr-defined]
        option_label=row.option_label,  # type: ignore[attr-defined]
        odds=float(row.odds),  # type: ignore[attr-defined]
        stake_points=row.stake_points,  # type: ignore[attr-defined]
        potential_payout_points=float(row.potential_payout_points),  # type: ignore[attr-defined]
        bet_market_id=row.bet_market_id,  # type: ignore[attr-defined]
        market_title=row.market_title,  # type: ignore[attr-defined]
        bet_sub_market_id=row.bet_sub_market_id,  # type: ignore[attr-defined]
        sub_market_title=row.sub_market_title,  # type: ignore[attr-defined]
        target_status=row.target_status,  # type: ignore[attr-defined]
        closes_at=row.closes_at,  # type: ignore[attr-defined]
        settlement_id=row.settlement_id,  # type: ignore[attr-defined]
        winning_option_ids=list(row.winning_option_ids or []),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_bet_detail(row: object) -> BetDetailRow:
    return BetDetailRow(
        selection_id=row.selection_id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        user_name=row.user_name,  # type: ignore[attr-defined]
        user_email=row.user_email,  # type: ignore[attr-defined]
        bet_option_id=row.bet_option_id,  # type: ignore[attr-defined]
        option_label=row.option_label,  # type: ignore[attr-defined]
        odds=float(row.odds),  # type: ignore[attr-defined]
        stake_points=row.stake_points,  # type: ignore[attr-defined]
        potential_payout_points=float(row.potential_payout_points),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class QueryRepository:
    async def leaderboard(self, db: AsyncSession, group_id: str) -> list[LeaderboardRow]:
        result = await db.execute(_LEADERBOARD_SQL, {"group_id": group_id})
        return [_row_to_leaderboard(row) for row in result.fetchall()]

    async def my_bets_in_group(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> list[MyBetRow]:
        result = await db.execute(
            _MY_BETS_IN_GROUP_SQL, {"group_id": group_id, "user_id": user_id}
        )
        return [_row_to_my_bet(row) for row in result.fetchall()]

    async def my_bets_in_sub_market(
        self, db: AsyncSession, sub_market_id: str, user_id: str
    ) -> list[MyBetRow]:
        result = await db.execute(
            _MY_BETS_IN_SUB_MARKET_SQL, {"sub_market_id": sub_market_id, "user_id": user_id}
        )
        return [_row_to_my_bet(row) for row in result.fetchall()]

    async def sub_market_bets(
        self, db: AsyncSession, sub_market_id: str
    ) -> list[BetDetailRow]:
        result = await db.execute(_SUB_MARKET_BETS_SQL, {"sub_market_id": sub_market_id})
        return [_row_to_bet_detail(row) for row in result.fetchall()]
