from __future__ import annotations

"""
Treasury state
--------------

The single record every treasury operation reads and writes: identities of
the collaborators, the policy parameters, epoch counters, the redemption
reserve and the call-ordering guard. There is one `TreasuryState` per
treasury and no module-level state anywhere.

Amounts are integer base units (no floats). Invariants, checked by
`assert_consistent()` against live ledger readings:
  • 0 <= seigniorage_saved <= cash.balance_of(treasury)
  • 0 <= epoch_supply_contraction_left
  • migrated ⇒ treasury no longer operates cash, bond or share

`dump()` produces a JSON-friendly dict (collaborators by address);
`load()` rebuilds the record given a resolver from address to collaborator.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, Tuple

from ..constants import RedemptionFloor
from ..economics.epochs import EpochSchedule
from ..errors import TreasuryError
from ..guard import SameBlockGuard
from ..interfaces import AssetLedger, PriceOracle, StakingPool
from ..policy import PolicyParameters

Address = str


@dataclass
class TreasuryState:
    address: Address
    operator: Address
    schedule: EpochSchedule
    cash: AssetLedger
    bond: AssetLedger
    share: AssetLedger
    oracle: PriceOracle
    pool: StakingPool
    marketing_fund: Address
    policy: PolicyParameters
    redemption_floor: RedemptionFloor = RedemptionFloor.SCALED
    migrated: bool = False
    epoch: int = 0
    epoch_supply_contraction_left: int = 0
    seigniorage_saved: int = 0
    guard: SameBlockGuard = field(default_factory=SameBlockGuard)

    @property
    def start_time(self) -> int:
        return self.schedule.start_time

    def core_assets(self) -> Tuple[AssetLedger, AssetLedger, AssetLedger]:
        return self.cash, self.bond, self.share

    # --- snapshot/restore (rollback support) ---

    def snapshot(self) -> Tuple["TreasuryState", Any]:
        return replace(self), self.guard.snapshot()

    def restore(self, snap: Tuple["TreasuryState", Any]) -> None:
        copy, guard_snap = snap
        for f in fields(self):
            if f.name != "guard":
                setattr(self, f.name, getattr(copy, f.name))
        self.guard.restore(guard_snap)

    # --- persistence ---

    def dump(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "operator": self.operator,
            "start_time": self.schedule.start_time,
            "period": self.schedule.period,
            "cash": self.cash.address,
            "bond": self.bond.address,
            "share": self.share.address,
            "pool": self.pool.address,
            "marketing_fund": self.marketing_fund,
            "policy": self.policy.to_dict(),
            "redemption_floor": self.redemption_floor.value,
            "migrated": self.migrated,
            "epoch": self.epoch,
            "epoch_supply_contraction_left": self.epoch_supply_contraction_left,
            "seigniorage_saved": self.seigniorage_saved,
        }

    @classmethod
    def load(
        cls,
        data: Dict[str, Any],
        *,
        resolve: Callable[[str], Any],
        oracle: PriceOracle,
    ) -> "TreasuryState":
        """`resolve(address)` returns the ledger/pool registered under that address."""
        st = cls(
            address=data["address"],
            operator=data["operator"],
            schedule=EpochSchedule(start_time=int(data["start_time"]), period=int(data["period"])),
            cash=resolve(data["cash"]),
            bond=resolve(data["bond"]),
            share=resolve(data["share"]),
            oracle=oracle,
            pool=resolve(data["pool"]),
            marketing_fund=data["marketing_fund"],
            policy=PolicyParameters.from_dict(data["policy"]),
            redemption_floor=RedemptionFloor(data.get("redemption_floor", RedemptionFloor.SCALED.value)),
            migrated=bool(data.get("migrated", False)),
            epoch=int(data.get("epoch", 0)),
            epoch_supply_contraction_left=int(data.get("epoch_supply_contraction_left", 0)),
            seigniorage_saved=int(data.get("seigniorage_saved", 0)),
        )
        st.policy.validate()
        return st

    # --- utilities ---

    def assert_consistent(self) -> None:
        """Verify the reserve/budget invariants against live ledger balances."""
        balance = self.cash.balance_of(self.address)
        if not (0 <= self.seigniorage_saved <= balance):
            raise TreasuryError(
                "reserve invariant violated",
                details={"seigniorage_saved": self.seigniorage_saved, "cash_balance": balance},
            )
        if self.epoch_supply_contraction_left < 0:
            raise TreasuryError(
                "contraction budget negative",
                details={"epoch_supply_contraction_left": self.epoch_supply_contraction_left},
            )
        if self.migrated and any(a.operator() == self.address for a in self.core_assets()):
            raise TreasuryError("migrated treasury still operates a core asset")


__all__ = ["TreasuryState"]
