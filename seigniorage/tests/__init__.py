from __future__ import annotations
"""
Seigniorage treasury test suite.

This module exposes the account names and tiny drivers shared across the
tests; fixtures live in `conftest.py`.
"""

from typing import Optional

from seigniorage.deploy import Protocol
from seigniorage.economics.expansion import ExpansionPlan

ALICE = "alice"
BOB = "bob"
CAROL = "carol"
KEEPER = "keeper"
MALLORY = "mallory"


def open_epoch(proto: Protocol, price: Optional[int] = None, *, keeper: str = KEEPER) -> ExpansionPlan:
    """Move to the next epoch boundary, publish `price` and let the keeper allocate."""
    proto.advance_to_next_epoch()
    if price is not None:
        proto.oracle.set_price(price)
    return proto.treasury.allocate_seigniorage(proto.chain.call(keeper))


def buy(proto: Protocol, who: str, amount: int, price: int) -> None:
    """Publish `price` and buy bonds at it in a fresh block."""
    proto.oracle.set_price(price)
    proto.chain.mine()
    proto.treasury.buy_bonds(proto.chain.call(who), amount, price)


def redeem(proto: Protocol, who: str, amount: int, price: int) -> int:
    """Publish `price`, approve the bonds and redeem them in a fresh block."""
    proto.oracle.set_price(price)
    proto.chain.mine()
    proto.approve_bonds(who, amount)
    return proto.treasury.redeem_bonds(proto.chain.call(who), amount, price)


__all__ = ["ALICE", "BOB", "CAROL", "KEEPER", "MALLORY", "open_epoch", "buy", "redeem"]
