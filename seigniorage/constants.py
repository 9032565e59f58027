from __future__ import annotations

"""
Protocol constants: epoch period, governance ranges and the redemption floor.

Ranges are inclusive and expressed in the unit of the parameter they bound
(basis points, or percent-of-peg for the price ceilings).
"""

from enum import Enum
from typing import Final, Tuple

from .fixedpoint import WAD

# Epoch length: 6 hours.
PERIOD: Final[int] = 6 * 60 * 60

# ------------------------------ Governance ranges ------------------------------

# Price ceilings as percent of peg: ceiling ∈ [peg, 1.2·peg]
CASH_PRICE_CEILING_RANGE_PCT: Final[Tuple[int, int]] = (100, 120)
# Redemption premium ceiling ∈ [peg, 2·peg]
BOND_REDEEM_CEILING_RANGE_PCT: Final[Tuple[int, int]] = (100, 200)

# Basis-point ranges
MAX_SUPPLY_EXPANSION_RANGE_BPS: Final[Tuple[int, int]] = (10, 3_000)  # 0.1% .. 30%
BOND_DEPLETION_FLOOR_RANGE_BPS: Final[Tuple[int, int]] = (500, 10_000)  # 5% .. 100%
SEIGNIORAGE_SPLIT_RANGE_BPS: Final[Tuple[int, int]] = (3_000, 10_000)  # 30% .. 100%
MAX_SUPPLY_CONTRACTION_RANGE_BPS: Final[Tuple[int, int]] = (100, 1_500)  # 1% .. 15%
MAX_DEBT_RATIO_RANGE_BPS: Final[Tuple[int, int]] = (1_000, 10_000)  # 10% .. 100%


# ------------------------------ Redemption floor ------------------------------


class RedemptionFloor(str, Enum):
    """
    Bond exchange rate used while the price sits at or below the ceiling.

    SCALED      0.9 WAD: redemption stays open at a 10% discount.
    AS_WRITTEN  (9 * 10) ** 18: the exponent binds to the whole mantissa, giving
                ~1.5e35. Any non-dust redemption needs more cash than exists, so
                the regime is effectively closed.
    """

    SCALED = "scaled"
    AS_WRITTEN = "as_written"

    @property
    def rate(self) -> int:
        return REDEMPTION_FLOOR_RATES[self]


REDEMPTION_FLOOR_SCALED: Final[int] = 9 * 10**17
REDEMPTION_FLOOR_AS_WRITTEN: Final[int] = (9 * 10) ** 18

REDEMPTION_FLOOR_RATES = {
    RedemptionFloor.SCALED: REDEMPTION_FLOOR_SCALED,
    RedemptionFloor.AS_WRITTEN: REDEMPTION_FLOOR_AS_WRITTEN,
}

# Cash amount the oracle is consulted for.
ONE_CASH: Final[int] = WAD


__all__ = [
    "PERIOD",
    "CASH_PRICE_CEILING_RANGE_PCT",
    "BOND_REDEEM_CEILING_RANGE_PCT",
    "MAX_SUPPLY_EXPANSION_RANGE_BPS",
    "BOND_DEPLETION_FLOOR_RANGE_BPS",
    "SEIGNIORAGE_SPLIT_RANGE_BPS",
    "MAX_SUPPLY_CONTRACTION_RANGE_BPS",
    "MAX_DEBT_RATIO_RANGE_BPS",
    "RedemptionFloor",
    "REDEMPTION_FLOOR_SCALED",
    "REDEMPTION_FLOOR_AS_WRITTEN",
    "REDEMPTION_FLOOR_RATES",
    "ONE_CASH",
]
