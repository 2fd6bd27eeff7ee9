"""Domain models for gb_stake: pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.gb_common.enums import BetScope


@dataclass
class BetSelection:
    """An immutable stake. The payout is frozen at placement time."""

    id: str
    bet_option_id: str
    user_id: str
    stake_points: int
    potential_payout_points: float   # stake_points * odds, unrounded
    bet_market_id: str | None = None
    bet_sub_market_id: str | None = None
    created_at: datetime | None = None

    @property
    def scope(self) -> BetScope:
        return BetScope.SUB_MARKET if self.bet_sub_market_id else BetScope.MARKET

    @property
    def target_id(self) -> str:
        return self.bet_sub_market_id or self.bet_market_id or ""
