"""Fee tier schedule.

Fee tiers are stored on every leaf and event. The schedule maps a tier to the
taker fee rate and the (negative) maker rebate rate, as fractions of the
quote amount traded.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FeeRates:
    taker: float
    maker: float


DEFAULT_FEE_TIER: int = 0

# Tier -> (taker, maker). Unknown tiers are charged as the default tier.
FEE_SCHEDULE: dict[int, FeeRates] = {
    0: FeeRates(taker=0.0022, maker=-0.0003),
    1: FeeRates(taker=0.0020, maker=-0.0003),
    2: FeeRates(taker=0.0018, maker=-0.0003),
    3: FeeRates(taker=0.0016, maker=-0.0003),
    4: FeeRates(taker=0.0014, maker=-0.0003),
    5: FeeRates(taker=0.0012, maker=-0.0003),
    6: FeeRates(taker=0.0010, maker=-0.0005),
}

# Discount-token balance thresholds, highest tier first.
_SRM_THRESHOLDS: tuple[tuple[float, int], ...] = (
    (1_000_000.0, 5),
    (100_000.0, 4),
    (10_000.0, 3),
    (1_000.0, 2),
    (100.0, 1),
)


def fee_rates(fee_tier: int) -> FeeRates:
    """Return the fee rates for a fee tier."""
    return FEE_SCHEDULE.get(fee_tier, FEE_SCHEDULE[DEFAULT_FEE_TIER])


def fee_tier_for_balances(msrm_balance: float, srm_balance: float) -> int:
    """Return the fee tier earned by the given discount-token balances."""
    if msrm_balance >= 1.0:
        return 6
    for threshold, tier in _SRM_THRESHOLDS:
        if srm_balance >= threshold:
            return tier
    return DEFAULT_FEE_TIER
