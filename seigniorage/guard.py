from __future__ import annotations

"""
One-call-per-block guard.

Buy-bonds, redeem-bonds and allocate-seigniorage share one guard: an initiator
that already acted in block `h` is refused for the rest of `h`, whichever of
the three it calls. Both the transaction origin and the immediate sender are
tracked, so a relay contract cannot fit two calls into one block either.

The guard is plain state owned by the treasury. It is snapshotted with the rest
of the treasury, so a call that aborts after entering does not burn the
caller's slot.
"""

from typing import FrozenSet, Set, Tuple

from .context import CallEnv
from .errors import TimingError


class SameBlockGuard:
    # only the current block's initiators are kept; the set is dropped when the height moves
    def __init__(self) -> None:
        self._height = -1
        self._acted: Set[str] = set()

    def entered(self, who: str, height: int) -> bool:
        return height == self._height and who in self._acted

    def enter(self, env: CallEnv) -> None:
        """Check then record `env.origin` and `env.sender` for `env.height`."""
        h = env.height
        if self.entered(env.origin, h):
            raise TimingError(
                "one block, one function: origin already acted in this block",
                details={"origin": env.origin, "height": h},
            )
        if self.entered(env.sender, h):
            raise TimingError(
                "one block, one function: sender already acted in this block",
                details={"sender": env.sender, "height": h},
            )
        if h != self._height:
            self._height = h
            self._acted = set()
        self._acted.add(env.origin)
        self._acted.add(env.sender)

    def __len__(self) -> int:
        return len(self._acted)

    def snapshot(self) -> Tuple[int, FrozenSet[str]]:
        return self._height, frozenset(self._acted)

    def restore(self, snap: Tuple[int, FrozenSet[str]]) -> None:
        self._height, acted = snap
        self._acted = set(acted)


__all__ = ["SameBlockGuard"]
