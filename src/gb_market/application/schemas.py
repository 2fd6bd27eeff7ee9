"""Pydantic schemas for gb_market API.

``bet_count`` on an option is visible to group admins only; members get
``null`` so they cannot see how the group is betting before settlement.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.gb_common.datetime_utils import ensure_utc, isoformat_or_none, utc_now
from src.gb_market.domain.models import BetMarket, BetOption, BetSubMarket, SettlementInfo
from src.gb_market.domain.option_diff import MIN_OPTIONS, OptionInput
from src.gb_market.domain.rules import is_closed

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class OptionIn(BaseModel):
    id: str | None = None
    label: str = Field(..., min_length=1, max_length=200)
    odds: float = Field(..., ge=1, description="Decimal odds, at least 1")

    @field_validator("label")
    @classmethod
    def label_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Option label is required")
        return v

    def to_input(self) -> OptionInput:
        return OptionInput(label=self.label, odds=self.odds, id=self.id)


def _strip_title(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("Title is required")
    return v


def _at_least_two(v: list[OptionIn] | None) -> list[OptionIn] | None:
    if v is not None and len(v) < MIN_OPTIONS:
        raise ValueError(f"At least {MIN_OPTIONS} options are required")
    return v


class CreateMarketRequest(BaseModel):
    group_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    closes_at: datetime
    # Legacy form: the market owns its options directly
    options: list[OptionIn] | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _strip_title(v)  # type: ignore[return-value]

    @field_validator("options")
    @classmethod
    def enough_options(cls, v: list[OptionIn] | None) -> list[OptionIn] | None:
        return _at_least_two(v)


class UpdateMarketRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    closes_at: datetime | None = None
    options: list[OptionIn] | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str | None) -> str | None:
        return _strip_title(v)


class CreateSubMarketRequest(BaseModel):
    bet_market_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    closes_at: datetime
    allow_multiple_bets: bool = False
    options: list[OptionIn]

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _strip_title(v)  # type: ignore[return-value]

    @field_validator("options")
    @classmethod
    def enough_options(cls, v: list[OptionIn] | None) -> list[OptionIn] | None:
        return _at_least_two(v)


class UpdateSubMarketRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    closes_at: datetime | None = None
    allow_multiple_bets: bool | None = None
    options: list[OptionIn] | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str | None) -> str | None:
        return _strip_title(v)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OptionOut(BaseModel):
    id: str
    label: str
    odds: float
    bet_count: int | None

    @classmethod
    def from_domain(cls, o: BetOption, show_counts: bool) -> "OptionOut":
        return cls(
            id=o.id,
            label=o.label,
            odds=o.odds,
            bet_count=o.bet_count if show_counts else None,
        )


class SettlementOut(BaseModel):
    id: str
    settled_by_user_id: str
    settled_at: str | None
    winning_option_ids: list[str]

    @classmethod
    def from_domain(cls, s: SettlementInfo | None) -> "SettlementOut | None":
        if s is None:
            return None
        return cls(
            id=s.id,
            settled_by_user_id=s.settled_by_user_id,
            settled_at=isoformat_or_none(s.settled_at),
            winning_option_ids=s.winning_option_ids,
        )


class SubMarketOut(BaseModel):
    id: str
    bet_market_id: str
    title: str
    description: str | None
    status: str
    closes_at: str
    is_closed: bool
    allow_multiple_bets: bool
    created_by_user_id: str
    created_at: str | None
    options: list[OptionOut]
    settlement: SettlementOut | None

    @classmethod
    def from_domain(
        cls, sm: BetSubMarket, show_counts: bool, now: datetime | None = None
    ) -> "SubMarketOut":
        now = now or utc_now()
        return cls(
            id=sm.id,
            bet_market_id=sm.bet_market_id,
            title=sm.title,
            description=sm.description,
            status=sm.status,
            closes_at=ensure_utc(sm.closes_at).isoformat(),
            is_closed=is_closed(sm.status, sm.closes_at, now),
            allow_multiple_bets=sm.allow_multiple_bets,
            created_by_user_id=sm.created_by_user_id,
            created_at=isoformat_or_none(sm.created_at),
            options=[OptionOut.from_domain(o, show_counts) for o in sm.options],
            settlement=SettlementOut.from_domain(sm.settlement),
        )


class MarketOut(BaseModel):
    id: str
    group_id: str
    title: str
    description: str | None
    status: str
    closes_at: str
    is_closed: bool
    created_by_user_id: str
    created_at: str | None
    options: list[OptionOut]
    settlement: SettlementOut | None
    sub_markets: list[SubMarketOut]

    @classmethod
    def from_domain(
        cls, m: BetMarket, show_counts: bool, now: datetime | None = None
    ) -> "MarketOut":
        now = now or utc_now()
        return cls(
            id=m.id,
            group_id=m.group_id,
            title=m.title,
            description=m.description,
            status=m.status,
            closes_at=ensure_utc(m.closes_at).isoformat(),
            is_closed=is_closed(m.status, m.closes_at, now),
            created_by_user_id=m.created_by_user_id,
            created_at=isoformat_or_none(m.created_at),
            options=[OptionOut.from_domain(o, show_counts) for o in m.options],
            settlement=SettlementOut.from_domain(m.settlement),
            sub_markets=[SubMarketOut.from_domain(sm, show_counts, now) for sm in m.sub_markets],
        )


class MarketListResponse(BaseModel):
    markets: list[MarketOut]
