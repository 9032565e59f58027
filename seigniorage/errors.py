from __future__ import annotations
# seigniorage/errors.py
"""
Error types for the seigniorage treasury. Every failure is a hard abort: the
call that raised is rolled back in full by `seigniorage.chain.Chain.atomic`.
Errors are lightweight, serializable, and safe to surface over RPC/logs.

Exports:
- TreasuryError (base)
- AuthorizationError     wrong capability holder, or capability revoked
- TimingError            not started, epoch not open, migrated, same-block replay
- PriceMismatchError     caller's expected price differs from the live read
- EconomicBoundError     debt ratio, contraction budget, reserve, governance range
- ExternalDependencyError oracle consultation failed
- LedgerError            in-memory collaborator refused an operation
- OracleError            price source has no usable observation
"""


from typing import Any, Dict, Mapping, Optional
import json


class TreasuryError(Exception):
    """Base class for treasury domain errors."""

    code: str = "TREASURY_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            # Keep this compact and stable for logs
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"))
            except (TypeError, ValueError):
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class AuthorizationError(TreasuryError):
    """
    Caller is not the capability holder, or the treasury no longer holds the
    operator capability over one of its ledgers or the pool.
    """
    code = "TREASURY_UNAUTHORIZED"

    def __init__(
        self,
        message: str = "caller is not the operator",
        *,
        caller: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if caller is not None:
            d.setdefault("caller", caller)
        super().__init__(message, details=d)


class TimingError(TreasuryError):
    """Too early, epoch not open yet, already migrated, or a same-block replay."""
    code = "TREASURY_TIMING"


class PriceMismatchError(TreasuryError):
    """The caller's observed price diverges from the live oracle price."""
    code = "TREASURY_PRICE_MOVED"

    def __init__(
        self,
        *,
        expected: int,
        live: int,
        message: str = "cash price moved",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"expected": int(expected), "live": int(live)})
        super().__init__(message, details=d)


class EconomicBoundError(TreasuryError):
    """
    An economic limit would be breached: debt ratio, contraction budget,
    treasury budget for redemption, price eligibility or governance range.
    """
    code = "TREASURY_ECONOMIC_BOUND"


class ExternalDependencyError(TreasuryError):
    """A collaborator required for correctness (the price oracle) failed."""
    code = "TREASURY_EXTERNAL_DEPENDENCY"

    def __init__(
        self,
        message: str = "failed to consult cash price from the oracle",
        *,
        dependency: str = "oracle",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.setdefault("dependency", dependency)
        super().__init__(message, details=d)


class LedgerError(TreasuryError):
    """An asset ledger or pool refused an operation (balance, allowance, operator)."""
    code = "LEDGER_ERROR"

    def __init__(
        self,
        message: str = "ledger operation failed",
        *,
        ledger: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if ledger is not None:
            d.setdefault("ledger", ledger)
        super().__init__(message, details=d)


class OracleError(TreasuryError):
    """The price source has no usable observation (stale or insufficient data)."""
    code = "ORACLE_ERROR"


__all__ = [
    "TreasuryError",
    "AuthorizationError",
    "TimingError",
    "PriceMismatchError",
    "EconomicBoundError",
    "ExternalDependencyError",
    "LedgerError",
    "OracleError",
]
