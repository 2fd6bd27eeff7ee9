"""Pure payout computation for a settlement.

A winning selection pays exactly its frozen ``potential_payout_points``;
current odds are never consulted. Losing selections pay nothing: their
stake was already debited at placement.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from src.gb_stake.domain.models import BetSelection


@dataclass
class Payout:
    selection_id: str
    user_id: str
    amount: float


def winning_payouts(
    selections: Iterable[BetSelection], winning_option_ids: set[str]
) -> list[Payout]:
    return [
        Payout(selection_id=s.id, user_id=s.user_id, amount=s.potential_payout_points)
        for s in selections
        if s.bet_option_id in winning_option_ids
    ]
