"""Domain models for gb_ledger: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class GroupScore:
    """A user's point balance inside one group."""

    id: str
    group_id: str
    user_id: str
    total_points: float
    initial_points: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def net_points(self) -> float:
        return self.total_points - self.initial_points


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    group_id: str
    user_id: str
    entry_type: str                  # LedgerEntryType value
    amount: float                    # positive=credit negative=debit
    balance_after: float             # total_points snapshot after the mutation
    reference_type: str | None = None
    reference_id: str | None = None
    created_at: datetime | None = None
