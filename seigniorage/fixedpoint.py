from __future__ import annotations

"""
Integer fixed-point helpers.

Prices are WAD-scaled (1e18 == one unit of value). Percentages are basis points
(10_000 == 100%); a basis-point figure becomes a WAD fraction by multiplying
with BPS_TO_WAD (1e14). Every helper multiplies before it divides and truncates
toward zero, so results match the ledger's uint256 arithmetic bit for bit.
No floats anywhere.
"""

from typing import Final

WAD: Final[int] = 10**18
BPS: Final[int] = 10_000
BPS_TO_WAD: Final[int] = 10**14
U256_MAX: Final[int] = (1 << 256) - 1


def require_uint(x: int, name: str = "value") -> int:
    if not isinstance(x, int) or isinstance(x, bool):
        raise TypeError(f"{name} must be int, got {type(x).__name__}")
    if x < 0 or x > U256_MAX:
        raise ValueError(f"{name} out of uint256 range: {x}")
    return x


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)."""
    if denominator == 0:
        raise ZeroDivisionError("mul_div by zero")
    return (a * b) // denominator


def apply_bps(amount: int, bps: int) -> int:
    """floor(amount * bps / 10_000)."""
    return mul_div(amount, bps, BPS)


def bps_to_wad(bps: int) -> int:
    """Basis points → WAD fraction (e.g. 400 bps → 4e16)."""
    return bps * BPS_TO_WAD


def wmul(a: int, b: int) -> int:
    """floor(a * b / 1e18)."""
    return mul_div(a, b, WAD)


def wdiv(a: int, b: int) -> int:
    """floor(a * 1e18 / b); zero divisor raises."""
    return mul_div(a, WAD, b)


def sub_floor(a: int, b: int) -> int:
    """a - b clamped at zero."""
    return a - b if a > b else 0


__all__ = [
    "WAD",
    "BPS",
    "BPS_TO_WAD",
    "U256_MAX",
    "require_uint",
    "mul_div",
    "apply_bps",
    "bps_to_wad",
    "wmul",
    "wdiv",
    "sub_floor",
]
