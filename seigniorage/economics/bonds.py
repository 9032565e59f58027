from __future__ import annotations

"""
Bond economics.

Bonds are bought 1:1 with cash below peg and redeemed for cash at the bond
exchange rate:

    rate = 2 * min(price, bond_redeem_price_ceiling)   if price > cash_price_ceiling
    rate = floor rate (see RedemptionFloor)             otherwise

    payout            = amount * rate // 1e18
    redeemable bonds  = cash_balance * 1e18 // rate     (0 when rate == 0)

The debt ceiling is checked against the cash supply *after* the purchase burn,
so `bond_supply <= cash_supply * max_debt_ratio // 10_000` holds immediately
after every mint.
"""

from ..constants import RedemptionFloor
from ..errors import EconomicBoundError
from ..fixedpoint import BPS, WAD, apply_bps, mul_div, sub_floor
from ..policy import PolicyParameters


def bond_exchange_rate(price: int, params: PolicyParameters, floor: RedemptionFloor) -> int:
    if price > params.cash_price_ceiling:
        return 2 * min(price, params.bond_redeem_price_ceiling)
    return floor.rate


def redeemable_bonds(cash_balance: int, rate: int) -> int:
    if rate == 0:
        return 0
    return mul_div(cash_balance, WAD, rate)


def redemption_payout(bond_amount: int, rate: int) -> int:
    return mul_div(bond_amount, rate, WAD)


def reserve_after_redemption(seigniorage_saved: int, payout: int) -> int:
    """Reserve shrinks by the payout, never below zero."""
    return seigniorage_saved - min(seigniorage_saved, payout)


def check_bond_purchase(
    amount: int,
    *,
    contraction_left: int,
    cash_supply: int,
    bond_supply: int,
    max_debt_ratio_bps: int,
) -> None:
    """Raise EconomicBoundError if buying `amount` bonds breaks the epoch budget or debt cap."""
    if amount > contraction_left:
        raise EconomicBoundError(
            "not enough bonds left to purchase this epoch",
            details={"amount": amount, "contraction_left": contraction_left},
        )
    new_bond_supply = bond_supply + amount
    debt_cap = apply_bps(cash_supply - amount, max_debt_ratio_bps)
    if new_bond_supply > debt_cap:
        raise EconomicBoundError(
            "over max debt ratio",
            details={
                "bond_supply_after": new_bond_supply,
                "cash_supply_after": cash_supply - amount,
                "max_debt_ratio_bps": max_debt_ratio_bps,
            },
        )


def burnable_cash_left(
    *,
    contraction_left: int,
    cash_supply: int,
    bond_supply: int,
    max_debt_ratio_bps: int,
) -> int:
    """
    Largest x accepted by `check_bond_purchase`:
        x <= contraction_left
        (bond_supply + x) * 10_000 <= (cash_supply - x) * ratio
    """
    headroom = sub_floor(cash_supply * max_debt_ratio_bps, bond_supply * BPS)
    by_debt = headroom // (BPS + max_debt_ratio_bps)
    return min(contraction_left, by_debt)


__all__ = [
    "bond_exchange_rate",
    "redeemable_bonds",
    "redemption_payout",
    "reserve_after_redemption",
    "check_bond_purchase",
    "burnable_cash_left",
]
