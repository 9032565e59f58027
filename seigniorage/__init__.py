from __future__ import annotations
"""
seigniorage — epoch/seigniorage treasury for an algorithmic stable asset.

The package manages three fungible assets (cash, bond, share): it expands cash
supply when the oracle price is above the ceiling, sells bonds below peg to
contract supply, redeems bonds above the ceiling, and routes new seigniorage to
a staking pool, a redemption reserve and a marketing fund.

Public surface (lazily loaded):
- config, errors, metrics, policy, events
- chain, context, guard, fixedpoint, constants, interfaces
- economics, treasury, adapters, deploy, cli
"""


from typing import List

from .version import __version__

__all__: List[str] = [
    "__version__",
    # lazily importable subpackages/modules
    "adapters",
    "chain",
    "cli",
    "config",
    "constants",
    "context",
    "deploy",
    "economics",
    "errors",
    "events",
    "fixedpoint",
    "guard",
    "interfaces",
    "metrics",
    "policy",
    "treasury",
]

# --- Lazy module loader (PEP 562) -------------------------------------------------
import importlib


_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)


def get_version() -> str:
    """Return the package version string."""
    return __version__
