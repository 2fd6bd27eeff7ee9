"""Pure derivations over read models: ranking and bet outcome."""

from collections.abc import Sequence
from dataclasses import dataclass

from src.gb_common.enums import BetOutcome
from src.gb_query.domain.models import LeaderboardRow, MyBetRow


@dataclass
class RankedRow:
    rank: int
    row: LeaderboardRow
    is_current_user: bool


def rank_leaderboard(rows: Sequence[LeaderboardRow], current_user_id: str) -> list[RankedRow]:
    """1-based ranks in the order given; the query already sorts and breaks ties."""
    return [
        RankedRow(rank=i, row=row, is_current_user=row.user_id == current_user_id)
        for i, row in enumerate(rows, start=1)
    ]


def bet_outcome(bet: MyBetRow) -> BetOutcome:
    if bet.settlement_id is None:
        return BetOutcome.PENDING
    if bet.bet_option_id in bet.winning_option_ids:
        return BetOutcome.WON
    return BetOutcome.LOST
