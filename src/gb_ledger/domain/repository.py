"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_ledger.domain.models import GroupScore, LedgerEntry


class LedgerRepositoryProtocol(Protocol):
    async def get_balance(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> GroupScore | None: ...

    async def create_balance(
        self, db: AsyncSession, group_id: str, user_id: str, initial_points: int
    ) -> GroupScore: ...

    async def ensure_balance(
        self, db: AsyncSession, group_id: str, user_id: str, initial_points: int
    ) -> GroupScore: ...

    async def adjust(
        self, db: AsyncSession, group_id: str, user_id: str, delta: float
    ) -> GroupScore: ...

    async def debit(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        amount: float,
        ref_type: str,
        ref_id: str,
    ) -> GroupScore | None: ...

    async def credit(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        amount: float,
        ref_type: str,
        ref_id: str,
    ) -> GroupScore | None: ...

    async def delete_balance(
        self, db: AsyncSession, group_id: str, user_id: str
    ) -> None: ...

    async def write_entry(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        entry_type: str,
        amount: float,
        balance_after: float,
        ref_type: str | None = None,
        ref_id: str | None = None,
    ) -> LedgerEntry: ...

    async def list_entries(
        self,
        db: AsyncSession,
        group_id: str,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
