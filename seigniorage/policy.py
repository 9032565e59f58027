from __future__ import annotations

"""
Governance-bounded policy parameters.

Every field has a hard inclusive range. Basis-point fields have absolute
ranges; the two price ceilings are ranged as a percentage of the peg, which is
fixed when the treasury is created. One cross-field rule applies: the normal
expansion cap never exceeds the debt-phase cap.

`check_field()` validates a single candidate value against the current
parameters without writing anything, so governance setters can fail before
any mutation.
"""

from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, Mapping, Tuple

from .constants import (BOND_DEPLETION_FLOOR_RANGE_BPS,
                        BOND_REDEEM_CEILING_RANGE_PCT,
                        CASH_PRICE_CEILING_RANGE_PCT,
                        MAX_DEBT_RATIO_RANGE_BPS,
                        MAX_SUPPLY_CONTRACTION_RANGE_BPS,
                        MAX_SUPPLY_EXPANSION_RANGE_BPS,
                        SEIGNIORAGE_SPLIT_RANGE_BPS)
from .errors import EconomicBoundError
from .fixedpoint import WAD, mul_div


@dataclass(frozen=True)
class PolicyParameters:
    """
    Prices are WAD-scaled; everything else is basis points (10_000 = 100%).

    Attributes:
        cash_price_one: peg price of one cash unit.
        cash_price_ceiling: expansion happens only strictly above this price.
        bond_redeem_price_ceiling: cap on the price used for the bond premium rate.
        max_supply_expansion_percent: normal-phase cap on per-epoch expansion.
        max_supply_expansion_percent_in_debt_phase: debt-phase cap (>= normal).
        bond_depletion_floor_percent: reserve/bond-supply ratio that separates
            the funded phase from the debt phase.
        seigniorage_expansion_floor_percent: pool share of new seigniorage.
        seigniorage_expansion_floor_percent_in_debt_phase: pool share in debt phase.
        max_supply_contraction_percent: per-epoch bond issuance budget vs cash supply.
        max_debt_ratio_percent: ceiling on bond supply vs cash supply.
    """

    cash_price_one: int = WAD
    cash_price_ceiling: int = WAD * 101 // 100
    bond_redeem_price_ceiling: int = WAD * 110 // 100
    max_supply_expansion_percent: int = 400
    max_supply_expansion_percent_in_debt_phase: int = 450
    bond_depletion_floor_percent: int = 10_000
    seigniorage_expansion_floor_percent: int = 7_000
    seigniorage_expansion_floor_percent_in_debt_phase: int = 3_500
    max_supply_contraction_percent: int = 300
    max_debt_ratio_percent: int = 3_500

    @classmethod
    def for_peg(cls, peg: int, **overrides: int) -> "PolicyParameters":
        """Defaults with both ceilings scaled to `peg`, then `overrides` applied."""
        base = cls(
            cash_price_one=peg,
            cash_price_ceiling=mul_div(peg, 101, 100),
            bond_redeem_price_ceiling=mul_div(peg, 110, 100),
        )
        return replace(base, **overrides)

    def validate(self) -> None:
        if self.cash_price_one <= 0:
            raise EconomicBoundError("peg must be positive", details={"cash_price_one": self.cash_price_one})
        for name in FIELD_RANGES:
            check_field(self, name, getattr(self, name))
        check_expansion_order(
            self.max_supply_expansion_percent, self.max_supply_expansion_percent_in_debt_phase
        )

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "PolicyParameters":
        defaults = cls.for_peg(int(d.get("cash_price_one", WAD)))
        kwargs = {k: int(d.get(k, getattr(defaults, k))) for k in defaults.to_dict()}
        return cls(**kwargs)


# ------------------------------ Ranges ------------------------------

RangeFn = Callable[[PolicyParameters], Tuple[int, int]]


def _fixed(r: Tuple[int, int]) -> RangeFn:
    return lambda _p: r


def _peg_pct(r: Tuple[int, int]) -> RangeFn:
    return lambda p: (mul_div(p.cash_price_one, r[0], 100), mul_div(p.cash_price_one, r[1], 100))


FIELD_RANGES: Dict[str, RangeFn] = {
    "cash_price_ceiling": _peg_pct(CASH_PRICE_CEILING_RANGE_PCT),
    "bond_redeem_price_ceiling": _peg_pct(BOND_REDEEM_CEILING_RANGE_PCT),
    "max_supply_expansion_percent": _fixed(MAX_SUPPLY_EXPANSION_RANGE_BPS),
    "max_supply_expansion_percent_in_debt_phase": _fixed(MAX_SUPPLY_EXPANSION_RANGE_BPS),
    "bond_depletion_floor_percent": _fixed(BOND_DEPLETION_FLOOR_RANGE_BPS),
    "seigniorage_expansion_floor_percent": _fixed(SEIGNIORAGE_SPLIT_RANGE_BPS),
    "seigniorage_expansion_floor_percent_in_debt_phase": _fixed(SEIGNIORAGE_SPLIT_RANGE_BPS),
    "max_supply_contraction_percent": _fixed(MAX_SUPPLY_CONTRACTION_RANGE_BPS),
    "max_debt_ratio_percent": _fixed(MAX_DEBT_RATIO_RANGE_BPS),
}


def field_range(params: PolicyParameters, name: str) -> Tuple[int, int]:
    try:
        return FIELD_RANGES[name](params)
    except KeyError:
        raise KeyError(f"{name!r} is not a governable parameter") from None


def check_field(params: PolicyParameters, name: str, value: int) -> int:
    """Raise EconomicBoundError unless lo <= value <= hi for `name`."""
    lo, hi = field_range(params, name)
    if not isinstance(value, int) or isinstance(value, bool) or not (lo <= value <= hi):
        raise EconomicBoundError(
            f"{name} out of range",
            details={"parameter": name, "value": value, "min": lo, "max": hi},
        )
    return value


def check_expansion_order(normal_bps: int, debt_phase_bps: int) -> None:
    if normal_bps > debt_phase_bps:
        raise EconomicBoundError(
            "normal expansion cap exceeds the debt-phase cap",
            details={"normal": normal_bps, "debt_phase": debt_phase_bps},
        )


__all__ = [
    "PolicyParameters",
    "FIELD_RANGES",
    "field_range",
    "check_field",
    "check_expansion_order",
]
