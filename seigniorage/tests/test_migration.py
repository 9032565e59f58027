from __future__ import annotations

import pytest

from seigniorage.deploy import DEPLOYER, TREASURY
from seigniorage.errors import AuthorizationError, TimingError
from seigniorage.events import EventType
from seigniorage.fixedpoint import WAD

from . import ALICE, KEEPER, MALLORY, buy, open_epoch

TARGET = "treasury-v2"


@pytest.fixture
def migrated(opened):
    buy(opened, ALICE, 1_000 * WAD, 9 * WAD // 10)
    open_epoch(opened, 105 * WAD // 100)
    opened.share.mint(TREASURY, TREASURY, 7 * WAD)
    opened.treasury.migrate(opened.chain.call(DEPLOYER), TARGET)
    return opened


def test_migration_hands_over_ledgers_and_balances(opened) -> None:
    buy(opened, ALICE, 1_000 * WAD, 9 * WAD // 10)
    open_epoch(opened, 105 * WAD // 100)
    opened.share.mint(TREASURY, TREASURY, 7 * WAD)
    cash_held = opened.cash.balance_of(TREASURY)
    assert cash_held > 0

    opened.treasury.migrate(opened.chain.call(DEPLOYER), TARGET)

    t = opened.treasury
    assert t.is_migrated()
    for ledger in (opened.cash, opened.bond, opened.share):
        assert ledger.operator() == TARGET
        assert ledger.balance_of(TREASURY) == 0
    assert opened.cash.balance_of(TARGET) == cash_held
    assert opened.share.balance_of(TARGET) == 7 * WAD
    assert t.get_reserve() == 0
    (ev,) = opened.chain.events(EventType.MIGRATION.value)
    assert ev.target == TARGET
    assert (ev.cash_amount, ev.share_amount) == (cash_held, 7 * WAD)
    assert ev.bond_amount == 0
    t.state.assert_consistent()


def test_migration_happens_once(migrated) -> None:
    with pytest.raises(TimingError, match="migrated"):
        migrated.treasury.migrate(migrated.chain.call(DEPLOYER), "treasury-v3")
    assert len(migrated.chain.events(EventType.MIGRATION.value)) == 1


def test_economic_entry_points_are_closed(migrated) -> None:
    t = migrated.treasury
    migrated.chain.warp(t.next_epoch_point())
    with pytest.raises(TimingError, match="migrated"):
        t.buy_bonds(migrated.chain.call(ALICE), WAD, WAD)
    migrated.chain.mine()
    with pytest.raises(TimingError, match="migrated"):
        t.redeem_bonds(migrated.chain.call(ALICE), WAD, WAD)
    with pytest.raises(TimingError, match="migrated"):
        t.allocate_seigniorage(migrated.chain.call(KEEPER))


def test_only_the_operator_migrates(opened) -> None:
    with pytest.raises(AuthorizationError):
        opened.treasury.migrate(opened.chain.call(MALLORY), MALLORY)
    with pytest.raises(AuthorizationError, match="invalid migration target"):
        opened.treasury.migrate(opened.chain.call(DEPLOYER), TREASURY)
    assert not opened.treasury.is_migrated()
    assert opened.cash.operator() == TREASURY


def test_migration_needs_the_capability(opened) -> None:
    opened.share.transfer_operator(TREASURY, MALLORY)
    with pytest.raises(AuthorizationError, match="needs more permission"):
        opened.treasury.migrate(opened.chain.call(DEPLOYER), TARGET)
    # nothing moved, cash and bond still belong to the treasury
    assert opened.cash.operator() == TREASURY
    assert opened.bond.operator() == TREASURY
    assert not opened.treasury.is_migrated()
