"""
In-memory collaborators for the treasury: asset ledgers, a price feed and the
staking pool. They back the test-suite, the devnet simulator and any host that
runs the treasury without a real chain underneath.
"""

from .ledger import FungibleLedger
from .oracle import FeedOracle
from .pool import PoolSnapshot, SharePool

__all__ = ["FungibleLedger", "FeedOracle", "SharePool", "PoolSnapshot"]
