"""Read models for the projection layer."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class LeaderboardRow:
    user_id: str
    user_name: str | None
    user_email: str | None
    total_points: float
    initial_points: int
    joined_at: datetime | None = None


@dataclass
class MyBetRow:
    selection_id: str
    bet_option_id: str
    option_label: str
    odds: float
    stake_points: int
    potential_payout_points: float
    bet_market_id: str
    market_title: str
    bet_sub_market_id: str | None
    sub_market_title: str | None
    target_status: str
    closes_at: datetime
    settlement_id: str | None = None
    winning_option_ids: list[str] = field(default_factory=list)
    created_at: datetime | None = None


@dataclass
class BetDetailRow:
    selection_id: str
    user_id: str
    user_name: str | None
    user_email: str | None
    bet_option_id: str
    option_label: str
    odds: float
    stake_points: int
    potential_payout_points: float
    created_at: datetime | None = None
