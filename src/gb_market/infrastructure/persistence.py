"""MarketRepository: raw SQL over bet_markets / bet_sub_markets / bet_options.

Options, stakes and settlements hang off either a sub-market or a legacy
market; the per-scope statements below differ only in the owning column.
Row locks: the stake engine reads its target FOR SHARE; the settlement
engine and admin edits or deletes read it FOR UPDATE. Stakes, edits and a
settlement on the same target therefore serialize.
"""

from datetime import datetime

from sqlalchemy import TextClause, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.enums import BetScope
from src.gb_common.errors import InternalError, MarketNotFoundError, SubMarketNotFoundError
from src.gb_common.id_generator import generate_id
from src.gb_market.domain.models import BetMarket, BetOption, BetSubMarket, SettlementInfo
from src.gb_market.domain.repository import RowLock

SCOPE_COLUMN = {
    BetScope.MARKET: "bet_market_id",
    BetScope.SUB_MARKET: "bet_sub_market_id",
}

# ---------------------------------------------------------------------------
# SQL: bet_markets
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = (
    "id, group_id, title, description, status, closes_at, "
    "created_by_user_id, created_at, updated_at"
)

_INSERT_MARKET_SQL = text(f"""
    INSERT INTO bet_markets (id, group_id, title, description, closes_at, created_by_user_id)
    VALUES (:id, :group_id, :title, :description, :closes_at, :created_by_user_id)
    RETURNING {_MARKET_COLUMNS}
""")

_GET_MARKET_SQL: dict[RowLock, TextClause] = {
    None: text(f"SELECT {_MARKET_COLUMNS} FROM bet_markets WHERE id = :market_id"),
    "SHARE": text(f"SELECT {_MARKET_COLUMNS} FROM bet_markets WHERE id = :market_id FOR SHARE"),
    "UPDATE": text(f"SELECT {_MARKET_COLUMNS} FROM bet_markets WHERE id = :market_id FOR UPDATE"),
}

_LIST_GROUP_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM bet_markets
    WHERE group_id = :group_id
    ORDER BY created_at DESC, id DESC
""")

_UPDATE_MARKET_SQL = text(f"""
    UPDATE bet_markets
    SET title = COALESCE(:title, title),
        description = COALESCE(:description, description),
        closes_at = COALESCE(:closes_at, closes_at),
        updated_at = NOW()
    WHERE id = :market_id
    RETURNING {_MARKET_COLUMNS}
""")

_DELETE_MARKET_SQL = text("DELETE FROM bet_markets WHERE id = :market_id")

# ---------------------------------------------------------------------------
# SQL: bet_sub_markets (joined with the parent for group_id)
# ---------------------------------------------------------------------------

_SUB_MARKET_SELECT = """
    SELECT sm.id, sm.bet_market_id, bm.group_id, sm.title, sm.description,
           sm.status, sm.closes_at, sm.allow_multiple_bets, sm.created_by_user_id,
           sm.created_at, sm.updated_at, bm.status AS market_status
    FROM bet_sub_markets sm
    JOIN bet_markets bm ON bm.id = sm.bet_market_id
"""

_GET_SUB_MARKET_SQL: dict[RowLock, TextClause] = {
    None: text(_SUB_MARKET_SELECT + " WHERE sm.id = :sub_market_id"),
    "SHARE": text(_SUB_MARKET_SELECT + " WHERE sm.id = :sub_market_id FOR SHARE OF sm"),
    "UPDATE": text(_SUB_MARKET_SELECT + " WHERE sm.id = :sub_market_id FOR UPDATE OF sm"),
}

_LIST_SUB_MARKETS_SQL = text(
    _SUB_MARKET_SELECT
    + " WHERE sm.bet_market_id = ANY(:market_ids) ORDER BY sm.created_at DESC, sm.id DESC"
)

_INSERT_SUB_MARKET_SQL = text("""
    INSERT INTO bet_sub_markets
        (id, bet_market_id, title, description, closes_at,
         allow_multiple_bets, created_by_user_id)
    VALUES
        (:id, :bet_market_id, :title, :description, :closes_at,
         :allow_multiple_bets, :created_by_user_id)
    RETURNING id, bet_market_id, title, description, status, closes_at,
              allow_multiple_bets, created_by_user_id, created_at, updated_at
""")

_UPDATE_SUB_MARKET_SQL = text("""
    UPDATE bet_sub_markets
    SET title = COALESCE(:title, title),
        description = COALESCE(:description, description),
        closes_at = COALESCE(:closes_at, closes_at),
        allow_multiple_bets = COALESCE(:allow_multiple_bets, allow_multiple_bets),
        updated_at = NOW()
    WHERE id = :sub_market_id
    RETURNING id
""")

_DELETE_SUB_MARKET_SQL = text("DELETE FROM bet_sub_markets WHERE id = :sub_market_id")

# ---------------------------------------------------------------------------
# SQL: bet_options and settlements, one statement per scope
# ---------------------------------------------------------------------------

_LIST_OPTIONS_SQL = {
    scope: text(f"""
        SELECT o.id, o.bet_market_id, o.bet_sub_market_id, o.label, o.odds, o.created_at,
               COUNT(s.id) AS bet_count
        FROM bet_options o
        LEFT JOIN bet_selections s ON s.bet_option_id = o.id
        WHERE o.{column} = ANY(:target_ids)
        GROUP BY o.id
        ORDER BY o.created_at, o.id
    """)
    for scope, column in SCOPE_COLUMN.items()
}

_INSERT_OPTION_SQL = {
    scope: text(f"""
        INSERT INTO bet_options (id, {column}, label, odds)
        VALUES (:id, :target_id, :label, :odds)
        RETURNING id, bet_market_id, bet_sub_market_id, label, odds, created_at
    """)
    for scope, column in SCOPE_COLUMN.items()
}

_UPDATE_OPTION_SQL = text("""
    UPDATE bet_options SET label = :label, odds = :odds WHERE id = :option_id
""")

_DELETE_OPTION_SELECTIONS_SQL = text("DELETE FROM bet_selections WHERE bet_option_id = :option_id")
_DELETE_OPTION_SQL = text("DELETE FROM bet_options WHERE id = :option_id")

_LIST_SETTLEMENTS_SQL = {
    scope: text(f"""
        SELECT st.id, st.{column} AS target_id, st.settled_by_user_id, st.settled_at,
               COALESCE(
                   ARRAY_AGG(w.bet_option_id) FILTER (WHERE w.bet_option_id IS NOT NULL),
                   ARRAY[]::VARCHAR[]
               ) AS winning_option_ids
        FROM bet_settlements st
        LEFT JOIN bet_settlement_winning_options w ON w.settlement_id = st.id
        WHERE st.{column} = ANY(:target_ids)
        GROUP BY st.id
    """)
    for scope, column in SCOPE_COLUMN.items()
}


def _row_to_market(row: object) -> BetMarket:
    return BetMarket(
        id=row.id,  # type: ignore[attr-defined]
        group_id=row.group_id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        closes_at=row.closes_at,  # type: ignore[attr-defined]
        created_by_user_id=row.created_by_user_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_sub_market(row: object) -> BetSubMarket:
    return BetSubMarket(
        id=row.id,  # type: ignore[attr-defined]
        bet_market_id=row.bet_market_id,  # type: ignore[attr-defined]
        group_id=row.group_id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        closes_at=row.closes_at,  # type: ignore[attr-defined]
        allow_multiple_bets=row.allow_multiple_bets,  # type: ignore[attr-defined]
        created_by_user_id=row.created_by_user_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
        market_status=row.market_status,  # type: ignore[attr-defined]
    )


def _row_to_option(row: object) -> BetOption:
    mapping = row._mapping  # type: ignore[attr-defined]
    return BetOption(
        id=row.id,  # type: ignore[attr-defined]
        label=row.label,  # type: ignore[attr-defined]
        odds=float(row.odds),  # type: ignore[attr-defined]
        bet_market_id=row.bet_market_id,  # type: ignore[attr-defined]
        bet_sub_market_id=row.bet_sub_market_id,  # type: ignore[attr-defined]
        bet_count=int(mapping.get("bet_count") or 0),
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class MarketRepository:
    # --- bet markets ---

    async def create_market(
        self,
        db: AsyncSession,
        market_id: str,
        group_id: str,
        title: str,
        description: str | None,
        closes_at: datetime,
        created_by_user_id: str,
    ) -> BetMarket:
        result = await db.execute(
            _INSERT_MARKET_SQL,
            {
                "id": market_id,
                "group_id": group_id,
                "title": title,
                "description": description,
                "closes_at": closes_at,
                "created_by_user_id": created_by_user_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Market insert returned no rows: this should never happen")
        return _row_to_market(row)

    async def get_market(
        self, db: AsyncSession, market_id: str, lock: RowLock = None
    ) -> BetMarket | None:
        result = await db.execute(_GET_MARKET_SQL[lock], {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row is not None else None

    async def list_group_markets(self, db: AsyncSession, group_id: str) -> list[BetMarket]:
        result = await db.execute(_LIST_GROUP_MARKETS_SQL, {"group_id": group_id})
        return [_row_to_market(row) for row in result.fetchall()]

    async def update_market(
        self,
        db: AsyncSession,
        market_id: str,
        title: str | None,
        description: str | None,
        closes_at: datetime | None,
    ) -> BetMarket:
        result = await db.execute(
            _UPDATE_MARKET_SQL,
            {
                "market_id": market_id,
                "title": title,
                "description": description,
                "closes_at": closes_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise MarketNotFoundError(market_id)
        return _row_to_market(row)

    async def delete_market(self, db: AsyncSession, market_id: str) -> None:
        await db.execute(_DELETE_MARKET_SQL, {"market_id": market_id})

    # --- bet sub-markets ---

    async def create_sub_market(
        self,
        db: AsyncSession,
        sub_market_id: str,
        market: BetMarket,
        title: str,
        description: str | None,
        closes_at: datetime,
        allow_multiple_bets: bool,
        created_by_user_id: str,
    ) -> BetSubMarket:
        result = await db.execute(
            _INSERT_SUB_MARKET_SQL,
            {
                "id": sub_market_id,
                "bet_market_id": market.id,
                "title": title,
                "description": description,
                "closes_at": closes_at,
                "allow_multiple_bets": allow_multiple_bets,
                "created_by_user_id": created_by_user_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Sub-market insert returned no rows: this should never happen")
        return BetSubMarket(
            id=row.id,
            bet_market_id=row.bet_market_id,
            group_id=market.group_id,
            title=row.title,
            description=row.description,
            status=row.status,
            closes_at=row.closes_at,
            allow_multiple_bets=row.allow_multiple_bets,
            created_by_user_id=row.created_by_user_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
            market_status=market.status,
        )

    async def get_sub_market(
        self, db: AsyncSession, sub_market_id: str, lock: RowLock = None
    ) -> BetSubMarket | None:
        result = await db.execute(_GET_SUB_MARKET_SQL[lock], {"sub_market_id": sub_market_id})
        row = result.fetchone()
        return _row_to_sub_market(row) if row is not None else None

    async def list_sub_markets(
        self, db: AsyncSession, market_ids: list[str]
    ) -> list[BetSubMarket]:
        if not market_ids:
            return []
        result = await db.execute(_LIST_SUB_MARKETS_SQL, {"market_ids": market_ids})
        return [_row_to_sub_market(row) for row in result.fetchall()]

    async def update_sub_market(
        self,
        db: AsyncSession,
        sub_market_id: str,
        title: str | None,
        description: str | None,
        closes_at: datetime | None,
        allow_multiple_bets: bool | None,
    ) -> BetSubMarket:
        result = await db.execute(
            _UPDATE_SUB_MARKET_SQL,
            {
                "sub_market_id": sub_market_id,
                "title": title,
                "description": description,
                "closes_at": closes_at,
                "allow_multiple_bets": allow_multiple_bets,
            },
        )
        if result.fetchone() is None:
            raise SubMarketNotFoundError(sub_market_id)
        updated = await self.get_sub_market(db, sub_market_id)
        if updated is None:
            raise SubMarketNotFoundError(sub_market_id)
        return updated

    async def delete_sub_market(self, db: AsyncSession, sub_market_id: str) -> None:
        await db.execute(_DELETE_SUB_MARKET_SQL, {"sub_market_id": sub_market_id})

    # --- options ---

    async def list_options(
        self, db: AsyncSession, scope: BetScope, target_ids: list[str]
    ) -> list[BetOption]:
        if not target_ids:
            return []
        result = await db.execute(_LIST_OPTIONS_SQL[scope], {"target_ids": target_ids})
        return [_row_to_option(row) for row in result.fetchall()]

    async def insert_option(
        self, db: AsyncSession, scope: BetScope, target_id: str, label: str, odds: float
    ) -> BetOption:
        result = await db.execute(
            _INSERT_OPTION_SQL[scope],
            {"id": generate_id(), "target_id": target_id, "label": label, "odds": odds},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Option insert returned no rows: this should never happen")
        return _row_to_option(row)

    async def update_option(
        self, db: AsyncSession, option_id: str, label: str, odds: float
    ) -> None:
        await db.execute(
            _UPDATE_OPTION_SQL, {"option_id": option_id, "label": label, "odds": odds}
        )

    async def delete_option(self, db: AsyncSession, option_id: str) -> None:
        """Delete an option together with the stakes placed on it, stakes first."""
        await db.execute(_DELETE_OPTION_SELECTIONS_SQL, {"option_id": option_id})
        await db.execute(_DELETE_OPTION_SQL, {"option_id": option_id})

    # --- settlements (read side) ---

    async def list_settlements(
        self, db: AsyncSession, scope: BetScope, target_ids: list[str]
    ) -> dict[str, SettlementInfo]:
        if not target_ids:
            return {}
        result = await db.execute(_LIST_SETTLEMENTS_SQL[scope], {"target_ids": target_ids})
        return {
            row.target_id: SettlementInfo(
                id=row.id,
                settled_by_user_id=row.settled_by_user_id,
                settled_at=row.settled_at,
                winning_option_ids=list(row.winning_option_ids),
            )
            for row in result.fetchall()
        }
