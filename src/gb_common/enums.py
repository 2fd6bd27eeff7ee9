"""Global enums: must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class MarketStatus(str, Enum):
    """Persisted status of a bet market or sub-market.

    CLOSED is a valid stored value but no operation writes it; closure is
    normally computed from ``closes_at`` (see gb_market.domain.rules).
    """

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    SETTLED = "SETTLED"


class MembershipRole(str, Enum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class BetScope(str, Enum):
    """Which container a bet option / selection / settlement hangs off.

    SUB_MARKET is the current design; MARKET is the legacy top-level form
    where a bet market owns its options directly.
    """

    MARKET = "MARKET"
    SUB_MARKET = "SUB_MARKET"


class LedgerEntryType(str, Enum):
    INITIAL_GRANT = "INITIAL_GRANT"
    STAKE_DEBIT = "STAKE_DEBIT"
    SETTLEMENT_PAYOUT = "SETTLEMENT_PAYOUT"


class BetOutcome(str, Enum):
    """Derived per-selection result shown in my-bets."""

    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
