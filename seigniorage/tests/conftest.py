from __future__ import annotations

from typing import Callable, Optional

import pytest

from seigniorage import metrics
from seigniorage.config import TreasuryConfig
from seigniorage.deploy import Protocol, deploy_protocol
from seigniorage.fixedpoint import WAD

from . import ALICE, BOB, CAROL, open_epoch


@pytest.fixture
def make_protocol() -> Callable[..., Protocol]:
    """Factory for protocols with custom config; two funded traders, one staker."""

    def _make(cfg: Optional[TreasuryConfig] = None, **kwargs) -> Protocol:  # type: ignore[no-untyped-def]
        kwargs.setdefault("genesis_supply", {ALICE: 1_000_000 * WAD, BOB: 1_000_000 * WAD})
        kwargs.setdefault("stake", {CAROL: 1_000 * WAD})
        return deploy_protocol(cfg, **kwargs)

    return _make


@pytest.fixture
def proto(make_protocol) -> Protocol:
    return make_protocol()


@pytest.fixture
def opened(proto: Protocol) -> Protocol:
    """Protocol whose first epoch has been allocated at peg (budget set, nothing minted)."""
    open_epoch(proto)
    return proto


@pytest.fixture
def sample():
    """Read a sample from the treasury metrics registry (0.0 when absent)."""

    def _get(name: str, **labels: str) -> float:
        v = metrics.REGISTRY.get_sample_value(name, labels or None)
        return v or 0.0

    return _get
