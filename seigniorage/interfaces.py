from __future__ import annotations

"""
Collaborator surfaces consumed by the treasury.

The treasury never reaches into a collaborator beyond these methods. Mutating
ledger/pool calls take an explicit `caller` (the treasury passes its own
address), mirroring how a contract call carries msg.sender. Any concrete
implementation works as long as it honours these signatures and raises on
refusal; the in-memory versions in `seigniorage.adapters` are the reference.

Stateful collaborators that want to take part in call-level rollback also
implement `Snapshottable` and are registered with the `Chain`.
"""

from typing import Any, Protocol, runtime_checkable

Address = str


@runtime_checkable
class Snapshottable(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, snap: Any) -> None: ...


@runtime_checkable
class AssetLedger(Protocol):
    """Fungible asset ledger with a single operator (administrative capability)."""

    address: Address

    def total_supply(self) -> int: ...

    def balance_of(self, who: Address) -> int: ...

    def allowance(self, holder: Address, spender: Address) -> int: ...

    def operator(self) -> Address: ...

    def mint(self, caller: Address, to: Address, amount: int) -> None: ...

    def burn_from(self, caller: Address, holder: Address, amount: int) -> None: ...

    def transfer(self, caller: Address, to: Address, amount: int) -> None: ...

    def approve(self, caller: Address, spender: Address, amount: int) -> None: ...

    def transfer_from(self, caller: Address, holder: Address, to: Address, amount: int) -> None: ...

    def transfer_operator(self, caller: Address, new_operator: Address) -> None: ...


@runtime_checkable
class PriceOracle(Protocol):
    """
    consult(): price of `amount_in` units of `token`, WAD-scaled; raises on
    stale/insufficient data. update(): refresh the observation window; may raise.
    """

    address: Address

    def consult(self, token: Address, amount_in: int) -> int: ...

    def update(self) -> None: ...


@runtime_checkable
class StakingPool(Protocol):
    """Share-staking pool ("boardroom") receiving pushed seigniorage."""

    address: Address

    def operator(self) -> Address: ...

    def allocate_seigniorage(self, caller: Address, amount: int) -> None: ...

    def set_operator(self, caller: Address, new_operator: Address) -> None: ...

    def set_lockup(self, caller: Address, withdraw_lockup_epochs: int, reward_lockup_epochs: int) -> None: ...

    def recover_unsupported_token(self, caller: Address, token: AssetLedger, amount: int, to: Address) -> None: ...


__all__ = ["Address", "Snapshottable", "AssetLedger", "PriceOracle", "StakingPool"]
