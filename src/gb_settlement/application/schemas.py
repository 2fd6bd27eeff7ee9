"""Pydantic schemas for gb_settlement API."""

from pydantic import BaseModel, Field


class SettleSubMarketRequest(BaseModel):
    # Several winners settle a tie; an empty list is rejected by the engine.
    winning_option_ids: list[str]


class SettleMarketRequest(BaseModel):
    """Legacy top-level market: exactly one winner."""

    winning_option_id: str = Field(..., min_length=1)


class SettlementResponse(BaseModel):
    settlement_id: str
    bet_market_id: str | None
    bet_sub_market_id: str | None
    winning_option_ids: list[str]
    winners_count: int
    total_payout_points: float
    total_payout_display: str
    skipped_count: int
    settled_at: str | None
