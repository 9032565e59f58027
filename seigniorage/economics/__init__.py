"""
Pure economics for the treasury: epoch boundaries, bond pricing and
seigniorage planning. Nothing here touches a ledger; `seigniorage.treasury`
feeds live readings in and applies the results.
"""

from .bonds import (bond_exchange_rate, burnable_cash_left, check_bond_purchase,
                    redeemable_bonds, redemption_payout,
                    reserve_after_redemption)
from .epochs import EpochSchedule, contraction_budget
from .expansion import ExpansionPlan, Phase, is_funded, plan_expansion

__all__ = [
    "EpochSchedule",
    "contraction_budget",
    "bond_exchange_rate",
    "redeemable_bonds",
    "redemption_payout",
    "reserve_after_redemption",
    "check_bond_purchase",
    "burnable_cash_left",
    "ExpansionPlan",
    "Phase",
    "is_funded",
    "plan_expansion",
]
