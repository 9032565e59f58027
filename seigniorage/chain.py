from __future__ import annotations

"""
seigniorage.chain
=================

In-process host that gives treasury calls the guarantees a ledger provides:

  • a deterministic block clock (height + timestamp) that only moves forward,
  • an append-only event log,
  • call atomicity: `atomic()` snapshots every registered component and the
    event log on entry and restores them if the body raises.

Scopes nest. An inner scope that fails restores only what changed since it was
entered and leaves the outer scope running, which is how a swallowed
sub-call (the oracle refresh) is isolated from the call around it.

Usage
-----
    chain = Chain(timestamp=1_700_000_000)
    cash = chain.register(FungibleLedger("cash", operator="deployer"))
    with chain.atomic():
        cash.mint("deployer", "alice", 10)
        raise SomethingWrong      # alice's mint is undone

Components register once; anything with `snapshot()` / `restore(snap)` works.
"""

import logging
from contextlib import contextmanager
from threading import RLock
from typing import Iterator, List, Optional, Sequence, Tuple, TypeVar

from .context import Address, BlockEnv, CallEnv
from .events import TreasuryEvent
from .interfaces import Snapshottable

log = logging.getLogger(__name__)

T = TypeVar("T", bound=Snapshottable)


class Chain:
    """Block clock, event log and call-level rollback for a set of components."""

    def __init__(self, *, height: int = 0, timestamp: int = 0, block_time: int = 12) -> None:
        if block_time <= 0:
            raise ValueError("block_time must be positive")
        self._block = BlockEnv(height=height, timestamp=timestamp)
        self.block_time = block_time
        self._components: List[Snapshottable] = []
        self._events: List[TreasuryEvent] = []
        self._depth = 0
        self._lock = RLock()

    # --- clock ---

    @property
    def block(self) -> BlockEnv:
        return self._block

    def mine(self, blocks: int = 1) -> BlockEnv:
        """Advance `blocks` blocks, `block_time` seconds each."""
        if blocks < 0:
            raise ValueError("blocks must be >= 0")
        return self._set_block(
            self._block.height + blocks, self._block.timestamp + blocks * self.block_time
        )

    def warp(self, timestamp: int) -> BlockEnv:
        """Jump to `timestamp` in a new block. Time never moves backwards."""
        if timestamp < self._block.timestamp:
            raise ValueError(
                f"cannot move time backwards ({timestamp} < {self._block.timestamp})"
            )
        return self._set_block(self._block.height + 1, timestamp)

    def _set_block(self, height: int, timestamp: int) -> BlockEnv:
        with self._lock:
            if self._depth:
                raise RuntimeError("cannot advance the block inside an atomic scope")
            self._block = BlockEnv(height=height, timestamp=timestamp)
            return self._block

    def call(self, caller: Address, *, via: Optional[Address] = None) -> CallEnv:
        """Environment for a call from `caller` in the current block."""
        env = CallEnv.direct(caller, self._block)
        return env.relayed_by(via) if via else env

    # --- components ---

    def register(self, component: T) -> T:
        if not isinstance(component, Snapshottable):
            raise TypeError(f"{type(component).__name__} cannot snapshot/restore")
        with self._lock:
            if any(c is component for c in self._components):
                return component
            self._components.append(component)
        return component

    @property
    def components(self) -> Sequence[Snapshottable]:
        return tuple(self._components)

    # --- events ---

    def emit(self, event: TreasuryEvent) -> None:
        self._events.append(event)
        log.debug("chain: event %s at height=%d", event.etype.value, event.height)

    def events(self, etype: Optional[str] = None) -> Tuple[TreasuryEvent, ...]:
        if etype is None:
            return tuple(self._events)
        return tuple(e for e in self._events if e.etype.value == etype)

    # --- atomicity ---

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            snaps = [(c, c.snapshot()) for c in self._components]
            mark = len(self._events)
            self._depth += 1
            try:
                yield
            except BaseException:
                for comp, snap in snaps:
                    comp.restore(snap)
                del self._events[mark:]
                log.debug("chain: rolled back %d component(s) at depth=%d", len(snaps), self._depth)
                raise
            finally:
                self._depth -= 1


__all__ = ["Chain"]
