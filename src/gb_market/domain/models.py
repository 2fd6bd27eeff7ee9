"""Domain models for gb_market: pure dataclasses, no SQLAlchemy dependency.

A bet target is either a sub-market (current form) or a legacy bet market
that owns its options directly. Both expose the same surface
(``scope``, ``group_id``, ``status``, ``closes_at``, ``options``,
``settlement``) so the stake and settlement engines treat them uniformly.
"""

from dataclasses import dataclass, field
from datetime import datetime

from src.gb_common.enums import BetScope, MarketStatus


@dataclass
class BetOption:
    id: str
    label: str
    odds: float
    bet_market_id: str | None = None
    bet_sub_market_id: str | None = None
    bet_count: int = 0
    created_at: datetime | None = None


@dataclass
class SettlementInfo:
    id: str
    settled_by_user_id: str
    settled_at: datetime | None
    winning_option_ids: list[str] = field(default_factory=list)


@dataclass
class BetSubMarket:
    id: str
    bet_market_id: str
    group_id: str
    title: str
    description: str | None
    status: str                      # MarketStatus value
    closes_at: datetime
    allow_multiple_bets: bool
    created_by_user_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    market_status: str | None = None
    options: list[BetOption] = field(default_factory=list)
    settlement: SettlementInfo | None = None

    scope = BetScope.SUB_MARKET

    @property
    def is_settled(self) -> bool:
        return self.settlement is not None or self.status == MarketStatus.SETTLED.value

    def find_option(self, option_id: str) -> BetOption | None:
        return next((o for o in self.options if o.id == option_id), None)


@dataclass
class BetMarket:
    id: str
    group_id: str
    title: str
    description: str | None
    status: str                      # MarketStatus value
    closes_at: datetime
    created_by_user_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    # Legacy form only: options and settlement owned by the market itself
    options: list[BetOption] = field(default_factory=list)
    settlement: SettlementInfo | None = None
    sub_markets: list[BetSubMarket] = field(default_factory=list)

    scope = BetScope.MARKET

    @property
    def is_settled(self) -> bool:
        return self.settlement is not None or self.status == MarketStatus.SETTLED.value

    def find_option(self, option_id: str) -> BetOption | None:
        return next((o for o in self.options if o.id == option_id), None)


BetTarget = BetMarket | BetSubMarket
