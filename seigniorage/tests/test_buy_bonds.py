from __future__ import annotations

import pytest

from seigniorage.config import TreasuryConfig
from seigniorage.errors import (AuthorizationError, EconomicBoundError,
                                LedgerError, PriceMismatchError, TimingError)
from seigniorage.events import EventType
from seigniorage.fixedpoint import WAD
from seigniorage.policy import PolicyParameters

from . import ALICE, BOB, KEEPER, MALLORY, buy, open_epoch

BELOW_PEG = 9 * WAD // 10


def test_scenario_half_peg_purchase(make_protocol) -> None:
    peg = 5 * 10**17
    cfg = TreasuryConfig(
        policy=PolicyParameters.for_peg(peg, cash_price_ceiling=51 * 10**16, max_supply_contraction_percent=100)
    )
    proto = make_protocol(cfg, genesis_supply={ALICE: 100_000}, stake={})
    open_epoch(proto)
    t = proto.treasury
    assert t.epoch_supply_contraction_left == 1_000

    live = 4 * 10**17
    buy(proto, ALICE, 100, live)

    assert proto.cash.balance_of(ALICE) == 99_900
    assert proto.bond.balance_of(ALICE) == 100
    assert proto.cash.total_supply() == 99_900
    assert t.epoch_supply_contraction_left == 900
    (ev,) = proto.chain.events(EventType.BONDS_BOUGHT.value)
    assert (ev.account, ev.cash_amount, ev.bond_amount, ev.contraction_left) == (ALICE, 100, 100, 900)


def test_budget_decreases_by_the_sum_of_purchases(opened) -> None:
    t = opened.treasury
    initial = t.epoch_supply_contraction_left
    amounts = [10 * WAD, 250 * WAD, 1 * WAD]
    for who, amount in zip([ALICE, BOB, ALICE], amounts):
        buy(opened, who, amount, BELOW_PEG)
    assert t.epoch_supply_contraction_left == initial - sum(amounts)
    assert opened.bond.total_supply() == sum(amounts)


def test_price_mismatch_changes_nothing(opened) -> None:
    t = opened.treasury
    opened.oracle.set_price(BELOW_PEG)
    before = (opened.cash.balance_of(ALICE), t.epoch_supply_contraction_left, len(opened.chain.events()))
    with pytest.raises(PriceMismatchError) as ei:
        t.buy_bonds(opened.chain.call(ALICE), WAD, BELOW_PEG + 1)
    assert ei.value.details == {"expected": BELOW_PEG + 1, "live": BELOW_PEG}
    assert (opened.cash.balance_of(ALICE), t.epoch_supply_contraction_left, len(opened.chain.events())) == before


def test_at_or_above_peg_is_rejected(opened) -> None:
    with pytest.raises(EconomicBoundError, match="not eligible"):
        buy(opened, ALICE, WAD, WAD)


def test_zero_amount_is_rejected(opened) -> None:
    with pytest.raises(EconomicBoundError):
        buy(opened, ALICE, 0, BELOW_PEG)


def test_over_budget_is_rejected(opened) -> None:
    left = opened.treasury.epoch_supply_contraction_left
    with pytest.raises(EconomicBoundError, match="not enough bonds left"):
        buy(opened, ALICE, left + 1, BELOW_PEG)
    buy(opened, ALICE, left, BELOW_PEG)
    assert opened.treasury.epoch_supply_contraction_left == 0


def test_no_budget_before_the_first_epoch(proto) -> None:
    assert proto.treasury.epoch_supply_contraction_left == 0
    with pytest.raises(EconomicBoundError):
        buy(proto, ALICE, 1, BELOW_PEG)


def test_debt_ratio_cap_matches_burnable_cash_left(make_protocol) -> None:
    cfg = TreasuryConfig(policy=PolicyParameters(max_debt_ratio_percent=1_000, max_supply_contraction_percent=1_500))
    proto = make_protocol(cfg, genesis_supply={ALICE: 100_000, BOB: 0})
    open_epoch(proto)
    proto.oracle.set_price(BELOW_PEG)
    t = proto.treasury
    assert t.epoch_supply_contraction_left == 15_000
    assert t.get_burnable_cash_left() == 9_090

    with pytest.raises(EconomicBoundError, match="over max debt ratio"):
        buy(proto, ALICE, 9_091, BELOW_PEG)
    buy(proto, ALICE, 9_090, BELOW_PEG)
    # bond supply within the cap of the post-burn cash supply
    assert proto.bond.total_supply() * 10_000 <= proto.cash.total_supply() * 1_000
    assert t.get_burnable_cash_left() == 0


def test_burnable_cash_left_is_zero_at_peg(opened) -> None:
    opened.oracle.set_price(WAD)
    assert opened.treasury.get_burnable_cash_left() == 0


def test_before_start_is_rejected(make_protocol) -> None:
    proto = make_protocol(start_delay=3_600)
    proto.oracle.set_price(BELOW_PEG)
    with pytest.raises(TimingError, match="not started"):
        proto.treasury.buy_bonds(proto.chain.call(ALICE), WAD, BELOW_PEG)


def test_requires_allowance_from_buyer(opened) -> None:
    opened.cash.approve(ALICE, opened.treasury.address, 0)
    with pytest.raises(LedgerError, match="allowance"):
        buy(opened, ALICE, WAD, BELOW_PEG)
    assert opened.bond.balance_of(ALICE) == 0


def test_revoked_capability_is_rejected(opened) -> None:
    # bond operator moved away behind the treasury's back
    opened.bond.transfer_operator(opened.treasury.address, MALLORY)
    with pytest.raises(AuthorizationError, match="needs more permission") as ei:
        buy(opened, ALICE, WAD, BELOW_PEG)
    assert ei.value.details["operators"] == {"bond": MALLORY}


# ---------------------------------------------------------------- one call per block


def test_second_call_in_same_block_is_rejected(opened) -> None:
    t = opened.treasury
    buy(opened, ALICE, WAD, BELOW_PEG)
    with pytest.raises(TimingError, match="one block, one function"):
        t.buy_bonds(opened.chain.call(ALICE), WAD, BELOW_PEG)
    with pytest.raises(TimingError):
        t.redeem_bonds(opened.chain.call(ALICE), WAD, BELOW_PEG)
    # other callers are unaffected, and the next block is fine
    t.buy_bonds(opened.chain.call(BOB), WAD, BELOW_PEG)
    buy(opened, ALICE, WAD, BELOW_PEG)


def test_relayed_call_counts_against_origin(opened) -> None:
    buy(opened, ALICE, WAD, BELOW_PEG)
    with pytest.raises(TimingError, match="origin"):
        opened.treasury.buy_bonds(opened.chain.call(ALICE, via="router"), WAD, BELOW_PEG)


OPS = ("buy", "redeem", "allocate")


def _call(proto, op: str, who: str):  # type: ignore[no-untyped-def]
    t = proto.treasury
    env = proto.chain.call(who)
    if op == "buy":
        return t.buy_bonds(env, WAD, BELOW_PEG)
    if op == "redeem":
        return t.redeem_bonds(env, WAD, BELOW_PEG)
    return t.allocate_seigniorage(env)


@pytest.fixture
def primed(opened):  # type: ignore[no-untyped-def]
    """Alice holds approved bonds, the treasury holds a reserve, price sits below peg."""
    buy(opened, ALICE, 1_000 * WAD, BELOW_PEG)
    open_epoch(opened, 105 * WAD // 100)
    opened.approve_bonds(ALICE, 10 * WAD)
    opened.oracle.set_price(BELOW_PEG)
    return opened


@pytest.mark.parametrize("second", OPS)
@pytest.mark.parametrize("first", OPS)
def test_one_call_per_block_whatever_the_pair(primed, first: str, second: str) -> None:
    if "allocate" in (first, second):
        primed.advance_to_next_epoch()
    else:
        primed.chain.mine()
    _call(primed, first, ALICE)
    with pytest.raises(TimingError, match="one block, one function"):
        _call(primed, second, ALICE)

    if second == "allocate":
        primed.advance_to_next_epoch()
    else:
        primed.chain.mine()
    _call(primed, second, ALICE)


def test_keeper_cannot_allocate_and_buy_in_one_block(proto) -> None:
    proto.fund(KEEPER, 10 * WAD)
    open_epoch(proto)
    proto.oracle.set_price(BELOW_PEG)
    with pytest.raises(TimingError):
        proto.treasury.buy_bonds(proto.chain.call(KEEPER), WAD, BELOW_PEG)


def test_aborted_call_does_not_use_the_slot(opened) -> None:
    t = opened.treasury
    opened.oracle.set_price(BELOW_PEG)
    opened.chain.mine()
    with pytest.raises(PriceMismatchError):
        t.buy_bonds(opened.chain.call(ALICE), WAD, WAD)
    t.buy_bonds(opened.chain.call(ALICE), WAD, BELOW_PEG)
    assert opened.bond.balance_of(ALICE) == WAD
