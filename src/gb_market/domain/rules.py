"""Lifecycle rules for markets and sub-markets.

Persisted status moves OPEN -> SETTLED only. "Closed" is derived from the
clock: every engine and projection asks ``is_closed`` / ``accepts_stakes``
instead of comparing timestamps itself.
"""

from datetime import datetime

from src.gb_common.datetime_utils import ensure_utc
from src.gb_common.enums import MarketStatus
from src.gb_common.errors import MarketClosedError, MarketSettledError
from src.gb_market.domain.models import BetTarget


def is_closed(status: str, closes_at: datetime, now: datetime) -> bool:
    """True once a target stops taking stakes: not OPEN, or past closes_at."""
    return status != MarketStatus.OPEN.value or ensure_utc(now) > ensure_utc(closes_at)


def accepts_stakes(status: str, closes_at: datetime, now: datetime) -> bool:
    """Strict form used by the stake engine: a stake at exactly closes_at is late."""
    return status == MarketStatus.OPEN.value and ensure_utc(now) < ensure_utc(closes_at)


def ensure_accepts_stakes(
    target_id: str, status: str, closes_at: datetime, now: datetime
) -> None:
    if not accepts_stakes(status, closes_at, now):
        raise MarketClosedError(target_id)


def ensure_editable(target: BetTarget) -> None:
    """Edits and deletes are allowed until settlement, even after closes_at."""
    if target.is_settled:
        raise MarketSettledError(target.id)
