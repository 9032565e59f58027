from __future__ import annotations

"""
Epoch timing for the treasury.

Epochs are fixed-length windows of `period` seconds starting at `start_time`.
The epoch counter is not derived from the clock: it only moves when an
epoch-dependent call is made after the boundary,

    next_epoch_point(e) = start_time + e * period

and then by exactly one, however many boundaries have passed in between.
Catching up on missed epochs therefore takes one call per epoch.
"""

from dataclasses import dataclass

from ..fixedpoint import apply_bps


@dataclass(frozen=True)
class EpochSchedule:
    """
    Attributes:
        start_time: timestamp at which the treasury opens (inclusive).
        period: epoch length in seconds (must be > 0).
    """

    start_time: int
    period: int

    def __post_init__(self) -> None:
        if self.period <= 0:
            raise ValueError("EpochSchedule.period must be > 0")
        if self.start_time < 0:
            raise ValueError("EpochSchedule.start_time must be >= 0")

    def next_epoch_point(self, epoch: int) -> int:
        return self.start_time + epoch * self.period

    def has_started(self, now: int) -> bool:
        return now >= self.start_time

    def is_open(self, now: int, epoch: int) -> bool:
        """True once `now` has reached the boundary that ends `epoch`."""
        return now >= self.next_epoch_point(epoch)

    def epochs_behind(self, now: int, epoch: int) -> int:
        """Boundaries reached but not yet consumed by an advancing call."""
        if now < self.start_time:
            return 0
        elapsed = (now - self.start_time) // self.period + 1
        return max(elapsed - epoch, 0)


def contraction_budget(cash_supply: int, max_contraction_bps: int) -> int:
    """Bond-issuable amount for a fresh epoch: floor(supply * bps / 10_000)."""
    return apply_bps(cash_supply, max_contraction_bps)


__all__ = ["EpochSchedule", "contraction_budget"]
