"""Repository Protocol for markets, sub-markets and options."""

from datetime import datetime
from typing import Literal, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.enums import BetScope
from src.gb_market.domain.models import BetMarket, BetOption, BetSubMarket, SettlementInfo

RowLock = Literal["SHARE", "UPDATE"] | None


class MarketRepositoryProtocol(Protocol):
    async def create_market(
        self,
        db: AsyncSession,
        market_id: str,
        group_id: str,
        title: str,
        description: str | None,
        closes_at: datetime,
        created_by_user_id: str,
    ) -> BetMarket: ...

    async def get_market(
        self, db: AsyncSession, market_id: str, lock: RowLock = None
    ) -> BetMarket | None: ...

    async def list_group_markets(self, db: AsyncSession, group_id: str) -> list[BetMarket]: ...

    async def update_market(
        self,
        db: AsyncSession,
        market_id: str,
        title: str | None,
        description: str | None,
        closes_at: datetime | None,
    ) -> BetMarket: ...

    async def delete_market(self, db: AsyncSession, market_id: str) -> None: ...

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
    ) -> BetSubMarket: ...

    async def get_sub_market(
        self, db: AsyncSession, sub_market_id: str, lock: RowLock = None
    ) -> BetSubMarket | None: ...

    async def list_sub_markets(
        self, db: AsyncSession, market_ids: list[str]
    ) -> list[BetSubMarket]: ...

    async def update_sub_market(
        self,
        db: AsyncSession,
        sub_market_id: str,
        title: str | None,
        description: str | None,
        closes_at: datetime | None,
        allow_multiple_bets: bool | None,
    ) -> BetSubMarket: ...

    async def delete_sub_market(self, db: AsyncSession, sub_market_id: str) -> None: ...

    async def list_options(
        self, db: AsyncSession, scope: BetScope, target_ids: list[str]
    ) -> list[BetOption]: ...

    async def insert_option(
        self, db: AsyncSession, scope: BetScope, target_id: str, label: str, odds: float
    ) -> BetOption: ...

    async def update_option(
        self, db: AsyncSession, option_id: str, label: str, odds: float
    ) -> None: ...

    async def delete_option(self, db: AsyncSession, option_id: str) -> None: ...

    async def list_settlements(
        self, db: AsyncSession, scope: BetScope, target_ids: list[str]
    ) -> dict[str, SettlementInfo]: ...
