from __future__ import annotations

"""
In-memory fungible asset ledger
-------------------------------

Deterministic, float-free token ledger with an explicit-caller API: every
mutating call names its caller, the way a contract call carries msg.sender.
Supply control (`mint`, `burn_from`) is gated on the single *operator*, which
is the administrative capability the treasury must hold over cash, bond and
share.

All operations check:
  • non-negative integer amounts
  • sufficient balance before debits
  • sufficient allowance before `transfer_from` / `burn_from`

A coarse `threading.RLock` protects mutating methods. `snapshot()` /
`restore()` let a `Chain` roll the ledger back when a call aborts.
"""

from dataclasses import dataclass
from threading import RLock
from typing import Dict, Tuple

from ..errors import LedgerError

Address = str
Amount = int


def _ensure_amount(x: int, name: str = "amount") -> int:
    if not isinstance(x, int) or isinstance(x, bool) or x < 0:
        raise LedgerError(f"{name} must be a non-negative int, got {x!r}")
    return x


@dataclass
class _LedgerSnapshot:
    balances: Dict[Address, Amount]
    allowances: Dict[Tuple[Address, Address], Amount]
    total: Amount
    operator: Address


class FungibleLedger:
    """
    One fungible asset. `address` is the asset's identity on the chain.

    >>> cash = FungibleLedger("cash", operator="treasury")
    >>> cash.mint("treasury", "alice", 100)
    >>> cash.balance_of("alice")
    100
    """

    def __init__(self, address: Address, *, operator: Address, symbol: str = "") -> None:
        self.address = address
        self.operator_address = operator
        self.symbol = symbol or address.upper()
        self._balances: Dict[Address, Amount] = {}
        self._allowances: Dict[Tuple[Address, Address], Amount] = {}
        self._total = 0
        self._lock = RLock()

    # --- views ---

    def total_supply(self) -> int:
        return self._total

    def balance_of(self, who: Address) -> int:
        return self._balances.get(who, 0)

    def allowance(self, holder: Address, spender: Address) -> int:
        return self._allowances.get((holder, spender), 0)

    def operator(self) -> Address:
        return self.operator_address

    # --- snapshot/restore ---

    def snapshot(self) -> _LedgerSnapshot:
        with self._lock:
            return _LedgerSnapshot(
                balances=dict(self._balances),
                allowances=dict(self._allowances),
                total=self._total,
                operator=self.operator_address,
            )

    def restore(self, snap: _LedgerSnapshot) -> None:
        with self._lock:
            self._balances = dict(snap.balances)
            self._allowances = dict(snap.allowances)
            self._total = snap.total
            self.operator_address = snap.operator

    # --- internal helpers ---

    def _require_operator(self, caller: Address) -> None:
        if caller != self.operator_address:
            raise LedgerError(
                "caller is not the operator",
                ledger=self.address,
                details={"caller": caller, "operator": self.operator_address},
            )

    def _debit(self, who: Address, amount: Amount) -> None:
        have = self._balances.get(who, 0)
        if have < amount:
            raise LedgerError(
                "insufficient balance",
                ledger=self.address,
                details={"account": who, "have": have, "need": amount},
            )
        self._balances[who] = have - amount

    def _credit(self, who: Address, amount: Amount) -> None:
        self._balances[who] = self._balances.get(who, 0) + amount

    def _spend_allowance(self, holder: Address, spender: Address, amount: Amount) -> None:
        have = self._allowances.get((holder, spender), 0)
        if have < amount:
            raise LedgerError(
                "insufficient allowance",
                ledger=self.address,
                details={"holder": holder, "spender": spender, "have": have, "need": amount},
            )
        self._allowances[(holder, spender)] = have - amount

    # --- mutations (all locked) ---

    def mint(self, caller: Address, to: Address, amount: int) -> None:
        _ensure_amount(amount)
        with self._lock:
            self._require_operator(caller)
            self._credit(to, amount)
            self._total += amount

    def burn(self, caller: Address, amount: int) -> None:
        _ensure_amount(amount)
        with self._lock:
            self._debit(caller, amount)
            self._total -= amount

    def burn_from(self, caller: Address, holder: Address, amount: int) -> None:
        """Operator-only burn that also consumes holder → caller allowance."""
        _ensure_amount(amount)
        with self._lock:
            self._require_operator(caller)
            if self._balances.get(holder, 0) < amount:
                raise LedgerError(
                    "burn amount exceeds balance",
                    ledger=self.address,
                    details={"account": holder, "have": self.balance_of(holder), "need": amount},
                )
            self._spend_allowance(holder, caller, amount)
            self._debit(holder, amount)
            self._total -= amount

    def transfer(self, caller: Address, to: Address, amount: int) -> None:
        _ensure_amount(amount)
        with self._lock:
            self._debit(caller, amount)
            self._credit(to, amount)

    def approve(self, caller: Address, spender: Address, amount: int) -> None:
        _ensure_amount(amount)
        with self._lock:
            self._allowances[(caller, spender)] = amount

    def transfer_from(self, caller: Address, holder: Address, to: Address, amount: int) -> None:
        _ensure_amount(amount)
        with self._lock:
            if self._balances.get(holder, 0) < amount:
                raise LedgerError(
                    "transfer amount exceeds balance",
                    ledger=self.address,
                    details={"account": holder, "have": self.balance_of(holder), "need": amount},
                )
            self._spend_allowance(holder, caller, amount)
            self._debit(holder, amount)
            self._credit(to, amount)

    def transfer_operator(self, caller: Address, new_operator: Address) -> None:
        if not new_operator:
            raise LedgerError("new operator must be non-empty", ledger=self.address)
        with self._lock:
            self._require_operator(caller)
            self.operator_address = new_operator


__all__ = ["FungibleLedger"]
