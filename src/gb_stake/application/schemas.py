"""Pydantic schemas for gb_stake API."""

from pydantic import BaseModel, Field, model_validator

from src.gb_common.datetime_utils import isoformat_or_none
from src.gb_common.enums import BetScope
from src.gb_common.points import points_to_display
from src.gb_ledger.domain.models import GroupScore
from src.gb_stake.domain.models import BetSelection


class PlaceStakeRequest(BaseModel):
    """Exactly one of bet_sub_market_id / bet_market_id (legacy) is required."""

    bet_sub_market_id: str | None = Field(None, min_length=1)
    bet_market_id: str | None = Field(None, min_length=1)
    bet_option_id: str = Field(..., min_length=1)
    stake_points: int = Field(..., gt=0, strict=True, description="Whole points, > 0")

    @model_validator(mode="after")
    def exactly_one_target(self) -> "PlaceStakeRequest":
        if (self.bet_sub_market_id is None) == (self.bet_market_id is None):
            raise ValueError("Provide exactly one of bet_sub_market_id or bet_market_id")
        return self

    @property
    def scope(self) -> BetScope:
        return BetScope.SUB_MARKET if self.bet_sub_market_id else BetScope.MARKET

    @property
    def target_id(self) -> str:
        return self.bet_sub_market_id or self.bet_market_id  # type: ignore[return-value]


class PlaceStakeResponse(BaseModel):
    selection_id: str
    bet_market_id: str | None
    bet_sub_market_id: str | None
    bet_option_id: str
    odds: float
    stake_points: int
    potential_payout_points: float
    potential_payout_display: str
    remaining_points: float
    created_at: str | None

    @classmethod
    def from_result(
        cls, selection: BetSelection, odds: float, score: GroupScore
    ) -> "PlaceStakeResponse":
        return cls(
            selection_id=selection.id,
            bet_market_id=selection.bet_market_id,
            bet_sub_market_id=selection.bet_sub_market_id,
            bet_option_id=selection.bet_option_id,
            odds=odds,
            stake_points=selection.stake_points,
            potential_payout_points=selection.potential_payout_points,
            potential_payout_display=points_to_display(selection.potential_payout_points),
            remaining_points=score.total_points,
            created_at=isoformat_or_none(selection.created_at),
        )
