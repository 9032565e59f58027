from __future__ import annotations

"""
In-memory price feed
--------------------

A deterministic oracle for one asset. Reporters `submit()` observations, which
stay pending until `update()` publishes the latest one as the current round.
`consult()` answers from the published round only.

Failure modes are explicit so hosts and tests can exercise both treasury
policies (propagate on consult, swallow on refresh):

  • `consult()` raises OracleError when nothing is published, the feed is
    halted, or a different token is asked for.
  • `update()` raises OracleError while `reject_updates` is set.

Averaging windows are out of scope: the published price is the last report.
"""

from dataclasses import dataclass
from threading import RLock
from typing import Optional

from ..errors import OracleError
from ..fixedpoint import WAD, mul_div

Address = str


@dataclass(frozen=True)
class _OracleSnapshot:
    price: Optional[int]
    pending: Optional[int]
    round_id: int
    halted: bool
    reject_updates: bool


class FeedOracle:
    def __init__(self, token: Address, *, price: Optional[int] = None, address: Address = "oracle") -> None:
        self.address = address
        self.token = token
        self._price = price
        self._pending: Optional[int] = None
        self._round_id = 1 if price is not None else 0
        self.halted = False
        self.reject_updates = False
        self._lock = RLock()

    @property
    def round_id(self) -> int:
        return self._round_id

    @property
    def price(self) -> Optional[int]:
        return self._price

    # --- reporter side ---

    def submit(self, price: int) -> None:
        """Stage an observation; it becomes visible after the next `update()`."""
        if not isinstance(price, int) or price < 0:
            raise OracleError("price must be a non-negative int", details={"price": price})
        with self._lock:
            self._pending = price

    def set_price(self, price: int) -> None:
        """Submit and publish in one step."""
        with self._lock:
            self.submit(price)
            self._publish()

    def _publish(self) -> None:
        if self._pending is not None:
            self._price = self._pending
            self._pending = None
            self._round_id += 1

    # --- consumer side ---

    def update(self) -> None:
        with self._lock:
            if self.reject_updates:
                raise OracleError("observation window not elapsed", details={"round_id": self._round_id})
            self._publish()

    def consult(self, token: Address, amount_in: int) -> int:
        if token != self.token:
            raise OracleError("unknown token", details={"token": token, "feed": self.token})
        if self.halted:
            raise OracleError("feed halted", details={"round_id": self._round_id})
        if self._price is None:
            raise OracleError("no published observation")
        return mul_div(self._price, amount_in, WAD)

    # --- snapshot/restore ---

    def snapshot(self) -> _OracleSnapshot:
        return _OracleSnapshot(
            price=self._price,
            pending=self._pending,
            round_id=self._round_id,
            halted=self.halted,
            reject_updates=self.reject_updates,
        )

    def restore(self, snap: _OracleSnapshot) -> None:
        with self._lock:
            self._price = snap.price
            self._pending = snap.pending
            self._round_id = snap.round_id
            self.halted = snap.halted
            self.reject_updates = snap.reject_updates


__all__ = ["FeedOracle"]
