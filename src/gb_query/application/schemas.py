"""Pydantic schemas and cursor utilities for gb_query API."""

import base64
import json
from datetime import datetime

from pydantic import BaseModel

from src.gb_common.datetime_utils import isoformat_or_none, utc_now
from src.gb_common.points import points_to_display
from src.gb_ledger.domain.models import LedgerEntry
from src.gb_market.domain.rules import is_closed
from src.gb_query.domain.models import BetDetailRow, MyBetRow
from src.gb_query.domain.projections import RankedRow, bet_outcome

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities (ledger history)
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGSERIAL journal id into an opaque Base64 cursor string."""
    return base64.b64encode(json.dumps({"id": last_id}).encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    user_name: str | None
    user_email: str | None
    total_points: float
    total_points_display: str
    initial_points: int
    is_current_user: bool

    @classmethod
    def from_ranked(cls, ranked: RankedRow) -> "LeaderboardEntry":
        row = ranked.row
        return cls(
            rank=ranked.rank,
            user_id=row.user_id,
            user_name=row.user_name,
            user_email=row.user_email,
            total_points=row.total_points,
            total_points_display=points_to_display(row.total_points),
            initial_points=row.initial_points,
            is_current_user=ranked.is_current_user,
        )


class LeaderboardResponse(BaseModel):
    group_id: str
    leaderboard: list[LeaderboardEntry]


# ---------------------------------------------------------------------------
# My bets
# ---------------------------------------------------------------------------


class MyBetItem(BaseModel):
    selection_id: str
    bet_market_id: str
    market_title: str
    bet_sub_market_id: str | None
    sub_market_title: str | None
    bet_option_id: str
    option_label: str
    odds: float
    stake_points: int
    potential_payout_points: float
    potential_payout_display: str
    is_closed: bool
    outcome: str
    created_at: str | None

    @classmethod
    def from_row(cls, bet: MyBetRow, now: datetime | None = None) -> "MyBetItem":
        return cls(
            selection_id=bet.selection_id,
            bet_market_id=bet.bet_market_id,
            market_title=bet.market_title,
            bet_sub_market_id=bet.bet_sub_market_id,
            sub_market_title=bet.sub_market_title,
            bet_option_id=bet.bet_option_id,
            option_label=bet.option_label,
            odds=bet.odds,
            stake_points=bet.stake_points,
            potential_payout_points=bet.potential_payout_points,
            potential_payout_display=points_to_display(bet.potential_payout_points),
            is_closed=is_closed(bet.target_status, bet.closes_at, now or utc_now()),
            outcome=bet_outcome(bet).value,
            created_at=isoformat_or_none(bet.created_at),
        )


class MyBetsResponse(BaseModel):
    bets: list[MyBetItem]
    total_stake: int
    total_potential_payout: float
    user_points: float

    @classmethod
    def build(cls, rows: list[MyBetRow], user_points: float) -> "MyBetsResponse":
        now = utc_now()
        return cls(
            bets=[MyBetItem.from_row(r, now) for r in rows],
            total_stake=sum(r.stake_points for r in rows),
            total_potential_payout=sum(r.potential_payout_points for r in rows),
            user_points=user_points,
        )


# ---------------------------------------------------------------------------
# Admin bet detail
# ---------------------------------------------------------------------------


class BetDetailItem(BaseModel):
    selection_id: str
    user_id: str
    user_name: str | None
    user_email: str | None
    bet_option_id: str
    option_label: str
    odds: float
    stake_points: int
    potential_payout_points: float
    created_at: str | None

    @classmethod
    def from_row(cls, row: BetDetailRow) -> "BetDetailItem":
        return cls(
            selection_id=row.selection_id,
            user_id=row.user_id,
            user_name=row.user_name,
            user_email=row.user_email,
            bet_option_id=row.bet_option_id,
            option_label=row.option_label,
            odds=row.odds,
            stake_points=row.stake_points,
            potential_payout_points=row.potential_payout_points,
            created_at=isoformat_or_none(row.created_at),
        )


class SubMarketBetsResponse(BaseModel):
    bet_sub_market_id: str
    bets: list[BetDetailItem]
    total_stake: int


# ---------------------------------------------------------------------------
# Ledger history
# ---------------------------------------------------------------------------


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: float
    amount_display: str
    balance_after: float
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    created_at: str

    @classmethod
    def from_domain(cls, e: LedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=e.id,
            entry_type=e.entry_type,
            amount=e.amount,
            amount_display=points_to_display(e.amount),
            balance_after=e.balance_after,
            balance_after_display=points_to_display(e.balance_after),
            reference_type=e.reference_type,
            reference_id=e.reference_id,
            created_at=e.created_at.isoformat() if e.created_at else "",
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
