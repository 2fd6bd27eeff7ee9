"""Point arithmetic and display helpers.

Stakes are positive integers. Payouts and balances are floats: a payout is
``stake * odds`` exactly as computed at placement and is never rounded when
stored or credited. Rounding happens only when producing display strings.
"""


def calculate_payout(stake_points: int, odds: float) -> float:
    """Frozen potential payout for a stake: ``stake_points * odds`` (no rounding)."""
    if stake_points <= 0:
        raise ValueError(f"Stake must be positive, got {stake_points}")
    if odds < 1:
        raise ValueError(f"Odds must be at least 1, got {odds}")
    return stake_points * odds


def points_to_display(points: float) -> str:
    """Format points for display: 1080.0 -> '1,080', 56.25 -> '56.25', -3.5 -> '-3.50'."""
    rounded = round(points, 2)
    if rounded == int(rounded):
        return f"{int(rounded):,}"
    return f"{rounded:,.2f}"
