"""
seigniorage.context — BlockEnv/CallEnv passed to every treasury entry point

These lightweight environments carry the ledger-provided facts a call may
depend on: which block ("scheduling unit") it executes in, the block timestamp,
the external initiator of the transaction (`origin`) and the immediate caller
(`sender`). They hold only validated pure data.

The treasury never reads a wall clock; `timestamp` is whatever the host chain
says it is for the block being executed.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Optional

Address = str


class ContextError(ValueError):
    """Validation failure for BlockEnv/CallEnv."""


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


def _require_address(name: str, v: Any) -> Address:
    if not isinstance(v, str) or not v:
        raise ContextError(f"{name} must be a non-empty address string")
    return v


@dataclass(frozen=True)
class BlockEnv:
    """
    Deterministic per-block environment.

    Fields
    ------
    height:     Block height (0-based); one height is one scheduling unit.
    timestamp:  Consensus timestamp in seconds.
    """
    height: int
    timestamp: int

    def __post_init__(self) -> None:
        _require_non_negative_int("height", self.height)
        _require_non_negative_int("timestamp", self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CallEnv:
    """
    Per-call environment.

    Fields
    ------
    origin:  External initiator of the transaction.
    sender:  Immediate caller (equals origin for direct calls).
    block:   Block the call is included in.
    """
    origin: Address
    sender: Address
    block: BlockEnv

    def __post_init__(self) -> None:
        _require_address("origin", self.origin)
        _require_address("sender", self.sender)

    @classmethod
    def direct(cls, caller: Address, block: BlockEnv) -> "CallEnv":
        return cls(origin=caller, sender=caller, block=block)

    def relayed_by(self, relay: Address) -> "CallEnv":
        """Same transaction, reaching the treasury through an intermediate contract."""
        return replace(self, sender=_require_address("relay", relay))

    @property
    def now(self) -> int:
        return self.block.timestamp

    @property
    def height(self) -> int:
        return self.block.height

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["block"] = self.block.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CallEnv":
        blk = d.get("block") or {}
        sender: Optional[str] = d.get("sender")
        return cls(
            origin=d["origin"],
            sender=sender if sender is not None else d["origin"],
            block=BlockEnv(
                height=_require_non_negative_int("height", blk.get("height")),
                timestamp=_require_non_negative_int("timestamp", blk.get("timestamp")),
            ),
        )


__all__ = ["Address", "ContextError", "BlockEnv", "CallEnv"]
