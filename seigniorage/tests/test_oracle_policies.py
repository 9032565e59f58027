from __future__ import annotations

import logging

import pytest

from seigniorage.adapters import FeedOracle
from seigniorage.deploy import DEPLOYER
from seigniorage.errors import ExternalDependencyError, OracleError
from seigniorage.fixedpoint import WAD

from . import ALICE, KEEPER, buy, open_epoch

BELOW_PEG = 9 * WAD // 10


class HalfUpdatingOracle(FeedOracle):
    """Bumps its round and then fails, like a feed that dies mid-write."""

    def update(self) -> None:
        self._round_id += 100
        raise OracleError("observation write failed")


def test_consult_failure_aborts_the_call(opened) -> None:
    opened.oracle.set_price(BELOW_PEG)
    opened.oracle.halted = True
    budget = opened.treasury.epoch_supply_contraction_left
    with pytest.raises(ExternalDependencyError) as ei:
        opened.treasury.buy_bonds(opened.chain.call(ALICE), WAD, BELOW_PEG)
    assert ei.value.details["dependency"] == "oracle"
    assert "halted" in ei.value.details["reason"]
    assert isinstance(ei.value.__cause__, OracleError)
    assert opened.treasury.epoch_supply_contraction_left == budget


def test_views_propagate_consult_failures(proto) -> None:
    proto.oracle.halted = True
    for view in ("get_cash_price", "get_bond_exchange_rate", "get_redeemable_bonds", "get_burnable_cash_left"):
        with pytest.raises(ExternalDependencyError):
            getattr(proto.treasury, view)()


def test_allocation_with_dead_oracle_does_not_advance(opened) -> None:
    opened.chain.warp(opened.treasury.next_epoch_point())
    opened.oracle.halted = True
    with pytest.raises(ExternalDependencyError):
        opened.treasury.allocate_seigniorage(opened.chain.call(KEEPER))
    assert opened.treasury.epoch == 1


def test_refresh_failure_is_swallowed(opened, caplog, sample) -> None:
    before = sample("seigniorage_oracle_refresh_failures_total")
    opened.oracle.reject_updates = True
    with caplog.at_level(logging.WARNING, logger="seigniorage.treasury.treasury"):
        buy(opened, ALICE, WAD, BELOW_PEG)
    assert opened.bond.balance_of(ALICE) == WAD
    assert sample("seigniorage_oracle_refresh_failures_total") - before == 1
    assert any("oracle refresh failed" in r.getMessage() for r in caplog.records)


def test_refresh_failure_rolls_back_only_the_oracle(opened) -> None:
    flaky = opened.chain.register(HalfUpdatingOracle(opened.cash.address, price=BELOW_PEG))
    opened.treasury.set_oracle(opened.chain.call(DEPLOYER), flaky)
    round_before = flaky.round_id

    opened.chain.mine()
    opened.treasury.buy_bonds(opened.chain.call(ALICE), WAD, BELOW_PEG)

    assert flaky.round_id == round_before
    assert opened.bond.balance_of(ALICE) == WAD


def test_allocation_refreshes_before_reading(opened) -> None:
    # a staged observation becomes the price the epoch is planned on
    opened.chain.warp(opened.treasury.next_epoch_point())
    opened.oracle.submit(102 * WAD // 100)
    plan = opened.treasury.allocate_seigniorage(opened.chain.call(KEEPER))
    assert plan.price == 102 * WAD // 100
    assert opened.oracle.price == 102 * WAD // 100


def test_stale_refresh_keeps_previous_observation(opened) -> None:
    opened.oracle.submit(102 * WAD // 100)
    opened.oracle.reject_updates = True
    plan = open_epoch(opened)
    assert plan.price == WAD


def test_swapped_in_oracle_rolls_back_with_the_call(opened) -> None:
    fresh = FeedOracle(opened.cash.address, price=WAD, address="oracle-v2")
    assert fresh not in opened.chain.components
    opened.treasury.set_oracle(opened.chain.call(DEPLOYER), fresh)
    assert fresh in opened.chain.components

    fresh.submit(2 * WAD)
    fresh.halted = True
    round_id = fresh.round_id
    opened.chain.warp(opened.treasury.next_epoch_point())
    with pytest.raises(ExternalDependencyError):
        opened.treasury.allocate_seigniorage(opened.chain.call(KEEPER))

    # the refresh published 2.0 before the consult failed; both are undone
    assert fresh.price == WAD
    assert fresh.round_id == round_id
    assert opened.treasury.epoch == 1
