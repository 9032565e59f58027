from __future__ import annotations

"""
In-memory staking pool ("boardroom")
------------------------------------

Receives seigniorage pushed by the treasury. Only the pool's operator may push,
and the pool pulls the cash through a prior allowance, so the treasury must
`approve()` the amount first. Each allocation is recorded as a snapshot with a
running reward-per-share figure; share staking and reward claims belong to the
staking side and only the pieces the treasury drives are kept here.
"""

from dataclasses import dataclass, field
from threading import RLock
from typing import Dict, List, Tuple

from ..errors import LedgerError
from ..fixedpoint import WAD, mul_div
from ..interfaces import AssetLedger

Address = str


@dataclass(frozen=True)
class PoolSnapshot:
    """One allocation: amount received and cumulative reward per staked share."""
    amount: int
    reward_per_share: int
    staked: int


@dataclass
class _PoolState:
    operator: Address
    withdraw_lockup_epochs: int
    reward_lockup_epochs: int
    staked: int
    history: List[PoolSnapshot] = field(default_factory=list)
    stakes: Dict[Address, int] = field(default_factory=dict)


class SharePool:
    def __init__(
        self,
        address: Address,
        *,
        cash: AssetLedger,
        share: AssetLedger,
        operator: Address,
        withdraw_lockup_epochs: int = 6,
        reward_lockup_epochs: int = 3,
    ) -> None:
        self.address = address
        self.cash = cash
        self.share = share
        self._st = _PoolState(
            operator=operator,
            withdraw_lockup_epochs=withdraw_lockup_epochs,
            reward_lockup_epochs=reward_lockup_epochs,
            staked=0,
        )
        self._lock = RLock()

    # --- views ---

    def operator(self) -> Address:
        return self._st.operator

    @property
    def lockup(self) -> Tuple[int, int]:
        return self._st.withdraw_lockup_epochs, self._st.reward_lockup_epochs

    @property
    def history(self) -> Tuple[PoolSnapshot, ...]:
        return tuple(self._st.history)

    @property
    def total_staked(self) -> int:
        return self._st.staked

    def reward_per_share(self) -> int:
        return self._st.history[-1].reward_per_share if self._st.history else 0

    def total_allocated(self) -> int:
        return sum(s.amount for s in self._st.history)

    # --- staking (minimal, used to make allocation meaningful) ---

    def stake(self, who: Address, amount: int) -> None:
        if amount <= 0:
            raise LedgerError("cannot stake 0", ledger=self.address)
        with self._lock:
            self.share.transfer_from(self.address, who, self.address, amount)
            self._st.stakes[who] = self._st.stakes.get(who, 0) + amount
            self._st.staked += amount

    # --- operator surface ---

    def _require_operator(self, caller: Address) -> None:
        if caller != self._st.operator:
            raise LedgerError(
                "caller is not the operator",
                ledger=self.address,
                details={"caller": caller, "operator": self._st.operator},
            )

    def allocate_seigniorage(self, caller: Address, amount: int) -> None:
        with self._lock:
            self._require_operator(caller)
            if amount <= 0:
                raise LedgerError("cannot allocate 0", ledger=self.address)
            if self._st.staked == 0:
                raise LedgerError("cannot allocate when total staked is 0", ledger=self.address)
            prev_rps = self.reward_per_share()
            next_rps = prev_rps + mul_div(amount, WAD, self._st.staked)
            self.cash.transfer_from(self.address, caller, self.address, amount)
            self._st.history.append(
                PoolSnapshot(amount=amount, reward_per_share=next_rps, staked=self._st.staked)
            )

    def set_operator(self, caller: Address, new_operator: Address) -> None:
        with self._lock:
            self._require_operator(caller)
            self._st.operator = new_operator

    def set_lockup(self, caller: Address, withdraw_lockup_epochs: int, reward_lockup_epochs: int) -> None:
        with self._lock:
            self._require_operator(caller)
            if not (0 < reward_lockup_epochs <= withdraw_lockup_epochs <= 56):
                raise LedgerError(
                    "lockup out of range",
                    ledger=self.address,
                    details={"withdraw": withdraw_lockup_epochs, "reward": reward_lockup_epochs},
                )
            self._st.withdraw_lockup_epochs = withdraw_lockup_epochs
            self._st.reward_lockup_epochs = reward_lockup_epochs

    def recover_unsupported_token(self, caller: Address, token: AssetLedger, amount: int, to: Address) -> None:
        with self._lock:
            self._require_operator(caller)
            if token.address in (self.cash.address, self.share.address):
                raise LedgerError("token is core to the pool", ledger=self.address, details={"token": token.address})
            token.transfer(self.address, to, amount)

    # --- snapshot/restore ---

    def snapshot(self) -> _PoolState:
        with self._lock:
            return _PoolState(
                operator=self._st.operator,
                withdraw_lockup_epochs=self._st.withdraw_lockup_epochs,
                reward_lockup_epochs=self._st.reward_lockup_epochs,
                staked=self._st.staked,
                history=list(self._st.history),
                stakes=dict(self._st.stakes),
            )

    def restore(self, snap: _PoolState) -> None:
        with self._lock:
            self._st = _PoolState(
                operator=snap.operator,
                withdraw_lockup_epochs=snap.withdraw_lockup_epochs,
                reward_lockup_epochs=snap.reward_lockup_epochs,
                staked=snap.staked,
                history=list(snap.history),
                stakes=dict(snap.stakes),
            )


__all__ = ["SharePool", "PoolSnapshot"]
