from __future__ import annotations

"""
Seigniorage planning for one epoch.

Given the live price and supply figures, decide how much cash to mint and where
it goes. Nothing is minted here; the treasury applies the plan.

    supply     = cash_total_supply - seigniorage_saved
    over_peg   = price - peg, capped at the phase's expansion bps * 1e14
    new        = supply * over_peg // 1e18

Funded phase (seigniorage_saved >= bond_supply * depletion_floor // 10_000,
boundary inclusive): the pool gets `new * split // 10_000`, the marketing fund
the rest. Debt phase: higher cap, debt-phase split, and the remainder is kept
as reserve instead of going to the marketing fund.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict

from ..fixedpoint import WAD, apply_bps, bps_to_wad, mul_div
from ..policy import PolicyParameters


class Phase(str, Enum):
    IDLE = "idle"          # price at or below the ceiling: nothing minted
    FUNDED = "funded"
    DEBT = "debt"


@dataclass(frozen=True)
class ExpansionPlan:
    phase: Phase
    price: int
    supply: int
    over_peg: int
    capped_over_peg: int
    new_seigniorage: int
    to_pool: int
    to_marketing: int
    to_reserve: int

    @property
    def minted(self) -> int:
        return self.to_pool + self.to_marketing + self.to_reserve

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["phase"] = self.phase.value
        return d


def is_funded(seigniorage_saved: int, bond_supply: int, depletion_floor_bps: int) -> bool:
    return seigniorage_saved >= apply_bps(bond_supply, depletion_floor_bps)


def plan_expansion(
    *,
    price: int,
    cash_supply: int,
    seigniorage_saved: int,
    bond_supply: int,
    params: PolicyParameters,
) -> ExpansionPlan:
    supply = cash_supply - seigniorage_saved
    if price <= params.cash_price_ceiling:
        return ExpansionPlan(Phase.IDLE, price, supply, 0, 0, 0, 0, 0, 0)

    over_peg = price - params.cash_price_one
    if is_funded(seigniorage_saved, bond_supply, params.bond_depletion_floor_percent):
        phase = Phase.FUNDED
        cap = bps_to_wad(params.max_supply_expansion_percent)
        split_bps = params.seigniorage_expansion_floor_percent
    else:
        phase = Phase.DEBT
        cap = bps_to_wad(params.max_supply_expansion_percent_in_debt_phase)
        split_bps = params.seigniorage_expansion_floor_percent_in_debt_phase

    capped = min(over_peg, cap)
    new_seigniorage = mul_div(supply, capped, WAD)
    to_pool = apply_bps(new_seigniorage, split_bps)
    rest = new_seigniorage - to_pool
    if phase is Phase.FUNDED:
        to_marketing, to_reserve = rest, 0
    else:
        to_marketing, to_reserve = 0, rest

    return ExpansionPlan(
        phase=phase,
        price=price,
        supply=supply,
        over_peg=over_peg,
        capped_over_peg=capped,
        new_seigniorage=new_seigniorage,
        to_pool=to_pool,
        to_marketing=to_marketing,
        to_reserve=to_reserve,
    )


__all__ = ["Phase", "ExpansionPlan", "is_funded", "plan_expansion"]
