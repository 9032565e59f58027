from __future__ import annotations

"""
Treasury — epoch/seigniorage state machine
------------------------------------------

Entry points
~~~~~~~~~~~~
Economic (anyone, one per initiator per block across all three):
    buy_bonds(env, amount, target_price)
    redeem_bonds(env, amount, target_price)
    allocate_seigniorage(env)

Governance (operator only): parameter setters, collaborator swaps,
token recovery, pool passthroughs and the one-shot `migrate()`.

Views: is_migrated, next_epoch_point, get_cash_price, get_reserve,
get_bond_exchange_rate, get_redeemable_bonds, get_burnable_cash_left, status.

Execution model
~~~~~~~~~~~~~~~
Every entry point runs inside `Chain.atomic()`: any exception restores the
ledgers, pool, oracle, this treasury's state and the event log to what they
were before the call. On top of that, all validation runs before the first
mutation. Gates are evaluated fresh on each call and nothing about the
collaborators is cached: the operator capability over cash, bond, share and
the pool is re-read before every economic mutation.

Oracle calls use one of two named failure policies:
    PROPAGATE  price consultation; failure aborts the whole call
    SWALLOW    observation refresh after balance changes; failure is logged,
               counted and its partial effects rolled back, the call goes on
"""

import functools
import logging
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Optional, TypeVar

from .. import metrics
from ..chain import Chain
from ..config import TreasuryConfig
from ..constants import ONE_CASH, PERIOD, RedemptionFloor
from ..context import Address, CallEnv
from ..economics.bonds import (bond_exchange_rate, burnable_cash_left,
                               check_bond_purchase, redeemable_bonds,
                               redemption_payout, reserve_after_redemption)
from ..economics.epochs import EpochSchedule, contraction_budget
from ..economics.expansion import ExpansionPlan, Phase, plan_expansion
from ..errors import (AuthorizationError, EconomicBoundError,
                      ExternalDependencyError, PriceMismatchError,
                      TimingError, TreasuryError)
from ..events import (BondsBought, BondsRedeemed, ExpansionRateChanged,
                      MarketingFundFunded, Migration, NewEpoch,
                      OperatorChanged, ParameterChanged, PoolFunded,
                      TokenRecovered, TreasuryFunded)
from ..interfaces import AssetLedger, PriceOracle, Snapshottable, StakingPool
from ..policy import PolicyParameters, check_expansion_order, check_field
from .state import TreasuryState

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class FailurePolicy(str, Enum):
    PROPAGATE = "propagate_on_failure"
    SWALLOW = "swallow_on_failure"


def entrypoint(op: str) -> Callable[[F], F]:
    """Run the wrapped method atomically and account for rejections."""

    def deco(fn: F) -> F:
        @functools.wraps(fn)
        def wrapper(self: "Treasury", env: CallEnv, *args: Any, **kwargs: Any) -> Any:
            try:
                with self.chain.atomic():
                    return fn(self, env, *args, **kwargs)
            except TreasuryError as e:
                metrics.record_rejection(op, e.code)
                log.info("treasury: %s rejected (origin=%s sender=%s): %s", op, env.origin, env.sender, e)
                raise

        return wrapper  # type: ignore[return-value]

    return deco


class Treasury:
    """
    The treasury bound to a `Chain`. Construction registers it with the chain
    so its state takes part in call rollback.
    """

    def __init__(
        self,
        chain: Chain,
        *,
        address: Address,
        operator: Address,
        cash: AssetLedger,
        bond: AssetLedger,
        share: AssetLedger,
        oracle: PriceOracle,
        pool: StakingPool,
        marketing_fund: Address,
        start_time: int,
        policy: Optional[PolicyParameters] = None,
        period: int = PERIOD,
        redemption_floor: RedemptionFloor = RedemptionFloor.SCALED,
    ) -> None:
        policy = policy or PolicyParameters()
        policy.validate()
        if start_time < chain.block.timestamp:
            raise TimingError(
                "start time must not be in the past",
                details={"start_time": start_time, "now": chain.block.timestamp},
            )
        self.chain = chain
        self.state = TreasuryState(
            address=address,
            operator=operator,
            schedule=EpochSchedule(start_time=start_time, period=period),
            cash=cash,
            bond=bond,
            share=share,
            oracle=oracle,
            pool=pool,
            marketing_fund=marketing_fund,
            policy=policy,
            redemption_floor=redemption_floor,
        )
        chain.register(self)
        for component in (cash, bond, share, oracle, pool):
            self._adopt(component)
        log.info(
            "treasury: deployed at %s (operator=%s start_time=%d period=%ds floor=%s)",
            address, operator, start_time, period, redemption_floor.value,
        )

    @classmethod
    def from_config(
        cls,
        chain: Chain,
        cfg: TreasuryConfig,
        *,
        start_time: Optional[int] = None,
        **collaborators: Any,
    ) -> "Treasury":
        """Deploy with policy, period and floor from `cfg`; start defaults to now + delay."""
        if start_time is None:
            start_time = chain.block.timestamp + cfg.start_delay_seconds
        return cls(
            chain,
            start_time=start_time,
            policy=cfg.policy,
            period=cfg.period_seconds,
            redemption_floor=cfg.redemption_floor,
            **collaborators,
        )

    # --- snapshot/restore (delegated to the state record) ---

    def snapshot(self) -> Any:
        return self.state.snapshot()

    def restore(self, snap: Any) -> None:
        self.state.restore(snap)

    # --- convenience accessors ---

    @property
    def address(self) -> Address:
        return self.state.address

    @property
    def policy(self) -> PolicyParameters:
        return self.state.policy

    @property
    def epoch(self) -> int:
        return self.state.epoch

    @property
    def epoch_supply_contraction_left(self) -> int:
        return self.state.epoch_supply_contraction_left

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _check_condition(self, env: CallEnv) -> None:
        st = self.state
        if st.migrated:
            raise TimingError("migrated")
        if not st.schedule.has_started(env.now):
            raise TimingError("not started yet", details={"now": env.now, "start_time": st.start_time})

    def _check_epoch(self, env: CallEnv) -> None:
        nxt = self.next_epoch_point()
        if env.now < nxt:
            raise TimingError("not opened yet", details={"now": env.now, "next_epoch_point": nxt})

    def _check_operator(self) -> None:
        """Treasury must currently operate cash, bond, share and the pool."""
        st = self.state
        holders = {
            st.cash.address: st.cash.operator(),
            st.bond.address: st.bond.operator(),
            st.share.address: st.share.operator(),
            st.pool.address: st.pool.operator(),
        }
        lost = {k: v for k, v in holders.items() if v != st.address}
        if lost:
            raise AuthorizationError(
                "treasury needs more permission",
                details={"treasury": st.address, "operators": lost},
            )

    def _adopt(self, component: Any) -> None:
        # collaborators that can snapshot roll back with every treasury call
        if isinstance(component, Snapshottable):
            self.chain.register(component)

    def _only_operator(self, env: CallEnv) -> None:
        if env.sender != self.state.operator:
            raise AuthorizationError(caller=env.sender)

    def _advance_epoch(self) -> None:
        st = self.state
        st.epoch += 1
        st.epoch_supply_contraction_left = contraction_budget(
            st.cash.total_supply(), st.policy.max_supply_contraction_percent
        )
        log.info(
            "treasury: epoch -> %d (contraction_left=%d)", st.epoch, st.epoch_supply_contraction_left
        )

    # ------------------------------------------------------------------
    # Oracle
    # ------------------------------------------------------------------

    def _oracle_call(self, policy: FailurePolicy, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            with self.chain.atomic():
                return fn(*args)
        except Exception as e:
            if policy is FailurePolicy.PROPAGATE:
                raise ExternalDependencyError(details={"reason": str(e)}) from e
            metrics.record_oracle_refresh_failure()
            log.warning("treasury: oracle refresh failed, keeping previous observation: %s", e)
            return None

    def _consult_price(self) -> int:
        st = self.state
        return int(self._oracle_call(FailurePolicy.PROPAGATE, st.oracle.consult, st.cash.address, ONE_CASH))

    def _refresh_price(self) -> None:
        self._oracle_call(FailurePolicy.SWALLOW, self.state.oracle.update)

    def _live_price(self, target_price: int) -> int:
        price = self._consult_price()
        if price != target_price:
            raise PriceMismatchError(expected=target_price, live=price)
        return price

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def is_migrated(self) -> bool:
        return self.state.migrated

    def next_epoch_point(self) -> int:
        return self.state.schedule.next_epoch_point(self.state.epoch)

    def get_cash_price(self) -> int:
        return self._consult_price()

    def get_reserve(self) -> int:
        return self.state.seigniorage_saved

    def get_bond_exchange_rate(self) -> int:
        st = self.state
        return bond_exchange_rate(self._consult_price(), st.policy, st.redemption_floor)

    def get_redeemable_bonds(self) -> int:
        st = self.state
        return redeemable_bonds(st.cash.balance_of(st.address), self.get_bond_exchange_rate())

    def get_burnable_cash_left(self) -> int:
        """Bonds purchasable right now: 0 at or above peg, else budget and debt cap bound."""
        st = self.state
        if self._consult_price() >= st.policy.cash_price_one:
            return 0
        return burnable_cash_left(
            contraction_left=st.epoch_supply_contraction_left,
            cash_supply=st.cash.total_supply(),
            bond_supply=st.bond.total_supply(),
            max_debt_ratio_bps=st.policy.max_debt_ratio_percent,
        )

    def status(self) -> Dict[str, Any]:
        st = self.state
        d = st.dump()
        d.update(
            {
                "next_epoch_point": self.next_epoch_point(),
                "cash_balance": st.cash.balance_of(st.address),
                "cash_supply": st.cash.total_supply(),
                "bond_supply": st.bond.total_supply(),
            }
        )
        return d

    # ------------------------------------------------------------------
    # Bonds
    # ------------------------------------------------------------------

    @entrypoint("buy_bonds")
    def buy_bonds(self, env: CallEnv, amount: int, target_price: int) -> None:
        st = self.state
        if amount <= 0:
            raise EconomicBoundError("cannot purchase bonds with zero amount", details={"amount": amount})
        st.guard.enter(env)
        self._check_condition(env)
        self._check_operator()

        price = self._live_price(target_price)
        if price >= st.policy.cash_price_one:
            raise EconomicBoundError(
                "cash price not eligible for bond purchase",
                details={"price": price, "peg": st.policy.cash_price_one},
            )
        check_bond_purchase(
            amount,
            contraction_left=st.epoch_supply_contraction_left,
            cash_supply=st.cash.total_supply(),
            bond_supply=st.bond.total_supply(),
            max_debt_ratio_bps=st.policy.max_debt_ratio_percent,
        )

        st.cash.burn_from(st.address, env.sender, amount)
        st.bond.mint(st.address, env.sender, amount)
        st.epoch_supply_contraction_left -= amount
        self._refresh_price()

        self.chain.emit(
            BondsBought(
                height=env.height,
                timestamp=env.now,
                account=env.sender,
                cash_amount=amount,
                bond_amount=amount,
                contraction_left=st.epoch_supply_contraction_left,
            )
        )
        metrics.record_bonds_bought(amount, st.epoch_supply_contraction_left)
        log.debug("treasury: %s bought %d bonds at price=%d", env.sender, amount, price)

    @entrypoint("redeem_bonds")
    def redeem_bonds(self, env: CallEnv, amount: int, target_price: int) -> int:
        """Returns the cash paid out."""
        st = self.state
        if amount <= 0:
            raise EconomicBoundError("cannot redeem bonds with zero amount", details={"amount": amount})
        st.guard.enter(env)
        self._check_condition(env)
        self._check_operator()

        price = self._live_price(target_price)
        rate = bond_exchange_rate(price, st.policy, st.redemption_floor)
        if rate == 0:
            raise EconomicBoundError("invalid bond rate", details={"price": price})
        payout = redemption_payout(amount, rate)
        balance = st.cash.balance_of(st.address)
        if balance < payout:
            raise EconomicBoundError(
                "treasury has no more budget",
                details={"payout": payout, "cash_balance": balance, "rate": rate},
            )

        st.seigniorage_saved = reserve_after_redemption(st.seigniorage_saved, payout)
        st.bond.burn_from(st.address, env.sender, amount)
        st.cash.transfer(st.address, env.sender, payout)
        self._refresh_price()

        self.chain.emit(
            BondsRedeemed(
                height=env.height,
                timestamp=env.now,
                account=env.sender,
                cash_amount=payout,
                bond_amount=amount,
                reserve_after=st.seigniorage_saved,
            )
        )
        metrics.record_bonds_redeemed(amount, payout, st.seigniorage_saved)
        log.debug("treasury: %s redeemed %d bonds for %d cash (rate=%d)", env.sender, amount, payout, rate)
        return payout

    # ------------------------------------------------------------------
    # Seigniorage
    # ------------------------------------------------------------------

    @entrypoint("allocate_seigniorage")
    def allocate_seigniorage(self, env: CallEnv) -> ExpansionPlan:
        st = self.state
        st.guard.enter(env)
        self._check_condition(env)
        self._check_epoch(env)
        self._check_operator()

        self._advance_epoch()
        self._refresh_price()
        price = self._consult_price()
        plan = plan_expansion(
            price=price,
            cash_supply=st.cash.total_supply(),
            seigniorage_saved=st.seigniorage_saved,
            bond_supply=st.bond.total_supply(),
            params=st.policy,
        )
        self.chain.emit(
            NewEpoch(
                height=env.height,
                timestamp=env.now,
                epoch=st.epoch,
                cash_price=price,
                cash_supply=st.cash.total_supply(),
                effective_supply=plan.supply,
                contraction_left=st.epoch_supply_contraction_left,
            )
        )
        if plan.phase is not Phase.IDLE:
            self._apply_expansion(env, plan)

        metrics.record_epoch(st.epoch, plan.phase.value, st.epoch_supply_contraction_left, st.seigniorage_saved)
        log.info(
            "treasury: allocated epoch=%d phase=%s price=%d minted=%d (pool=%d marketing=%d reserve=%d)",
            st.epoch, plan.phase.value, price, plan.minted, plan.to_pool, plan.to_marketing, plan.to_reserve,
        )
        return plan

    def _apply_expansion(self, env: CallEnv, plan: ExpansionPlan) -> None:
        st = self.state
        if plan.to_reserve > 0:
            st.cash.mint(st.address, st.address, plan.to_reserve)
            st.seigniorage_saved += plan.to_reserve
            self.chain.emit(
                TreasuryFunded(
                    height=env.height,
                    timestamp=env.now,
                    amount=plan.to_reserve,
                    reserve_after=st.seigniorage_saved,
                )
            )
            metrics.record_minted("reserve", plan.to_reserve)

        if plan.to_pool > 0:
            st.cash.mint(st.address, st.address, plan.to_pool)
            st.cash.approve(st.address, st.pool.address, plan.to_pool)
            st.pool.allocate_seigniorage(st.address, plan.to_pool)
            self.chain.emit(
                PoolFunded(height=env.height, timestamp=env.now, pool=st.pool.address, amount=plan.to_pool)
            )
            metrics.record_minted("pool", plan.to_pool)

        if plan.to_marketing > 0:
            st.cash.mint(st.address, st.marketing_fund, plan.to_marketing)
            self.chain.emit(
                MarketingFundFunded(
                    height=env.height, timestamp=env.now, fund=st.marketing_fund, amount=plan.to_marketing
                )
            )
            metrics.record_minted("marketing", plan.to_marketing)

    # ------------------------------------------------------------------
    # Governance
    # ------------------------------------------------------------------

    def _set_params(self, env: CallEnv, **values: int) -> None:
        """Range-check every value, then write them all and log the change."""
        st = self.state
        for name, value in values.items():
            check_field(st.policy, name, value)
        old = st.policy
        st.policy = replace(old, **values)
        for name, value in values.items():
            self.chain.emit(
                ParameterChanged(
                    height=env.height, timestamp=env.now, name=name, old=getattr(old, name), new=value
                )
            )
            log.info("treasury: %s %d -> %d", name, getattr(old, name), value)

    @entrypoint("set_operator")
    def set_operator(self, env: CallEnv, new_operator: Address) -> None:
        self._only_operator(env)
        if not new_operator:
            raise AuthorizationError("new operator must be non-empty", caller=env.sender)
        previous = self.state.operator
        self.state.operator = new_operator
        self.chain.emit(OperatorChanged(height=env.height, timestamp=env.now, previous=previous, new=new_operator))
        log.info("treasury: operator %s -> %s", previous, new_operator)

    @entrypoint("set_pool")
    def set_pool(self, env: CallEnv, pool: StakingPool) -> None:
        self._only_operator(env)
        old = self.state.pool.address
        self._adopt(pool)
        self.state.pool = pool
        self.chain.emit(ParameterChanged(height=env.height, timestamp=env.now, name="pool", old=old, new=pool.address))

    @entrypoint("set_oracle")
    def set_oracle(self, env: CallEnv, oracle: PriceOracle) -> None:
        self._only_operator(env)
        old = self.state.oracle.address
        self._adopt(oracle)
        self.state.oracle = oracle
        self.chain.emit(ParameterChanged(height=env.height, timestamp=env.now, name="oracle", old=old, new=oracle.address))

    @entrypoint("set_marketing_fund")
    def set_marketing_fund(self, env: CallEnv, fund: Address) -> None:
        self._only_operator(env)
        if not fund:
            raise EconomicBoundError("marketing fund must be non-empty")
        old = self.state.marketing_fund
        self.state.marketing_fund = fund
        self.chain.emit(ParameterChanged(height=env.height, timestamp=env.now, name="marketing_fund", old=old, new=fund))

    @entrypoint("set_cash_price_ceiling")
    def set_cash_price_ceiling(self, env: CallEnv, value: int) -> None:
        self._only_operator(env)
        self._set_params(env, cash_price_ceiling=value)

    @entrypoint("set_bond_redeem_price_ceiling")
    def set_bond_redeem_price_ceiling(self, env: CallEnv, value: int) -> None:
        self._only_operator(env)
        self._set_params(env, bond_redeem_price_ceiling=value)

    @entrypoint("set_max_supply_expansion_percents")
    def set_max_supply_expansion_percents(self, env: CallEnv, normal_bps: int, debt_phase_bps: int) -> None:
        self._only_operator(env)
        check_expansion_order(normal_bps, debt_phase_bps)
        self._set_params(
            env,
            max_supply_expansion_percent=normal_bps,
            max_supply_expansion_percent_in_debt_phase=debt_phase_bps,
        )
        self.chain.emit(
            ExpansionRateChanged(
                height=env.height,
                timestamp=env.now,
                max_expansion_bps=normal_bps,
                max_expansion_debt_phase_bps=debt_phase_bps,
            )
        )

    @entrypoint("set_bond_depletion_floor_percent")
    def set_bond_depletion_floor_percent(self, env: CallEnv, value: int) -> None:
        self._only_operator(env)
        self._set_params(env, bond_depletion_floor_percent=value)

    @entrypoint("set_seigniorage_expansion_floor_percents")
    def set_seigniorage_expansion_floor_percents(self, env: CallEnv, normal_bps: int, debt_phase_bps: int) -> None:
        self._only_operator(env)
        self._set_params(
            env,
            seigniorage_expansion_floor_percent=normal_bps,
            seigniorage_expansion_floor_percent_in_debt_phase=debt_phase_bps,
        )

    @entrypoint("set_max_supply_contraction_percent")
    def set_max_supply_contraction_percent(self, env: CallEnv, value: int) -> None:
        self._only_operator(env)
        self._set_params(env, max_supply_contraction_percent=value)

    @entrypoint("set_max_debt_ratio_percent")
    def set_max_debt_ratio_percent(self, env: CallEnv, value: int) -> None:
        self._only_operator(env)
        self._set_params(env, max_debt_ratio_percent=value)

    @entrypoint("recover_unsupported_token")
    def recover_unsupported_token(self, env: CallEnv, token: AssetLedger, amount: int, to: Address) -> None:
        """Sweep a stray token out of the treasury; cash, bond and share are refused."""
        self._only_operator(env)
        if token.address in {a.address for a in self.state.core_assets()}:
            raise AuthorizationError(
                "core asset cannot be recovered", caller=env.sender, details={"token": token.address}
            )
        token.transfer(self.state.address, to, amount)
        self.chain.emit(TokenRecovered(height=env.height, timestamp=env.now, token=token.address, amount=amount, to=to))

    # --- pool passthroughs ---

    @entrypoint("pool_set_operator")
    def pool_set_operator(self, env: CallEnv, new_operator: Address) -> None:
        self._only_operator(env)
        self.state.pool.set_operator(self.state.address, new_operator)

    @entrypoint("pool_set_lockup")
    def pool_set_lockup(self, env: CallEnv, withdraw_lockup_epochs: int, reward_lockup_epochs: int) -> None:
        self._only_operator(env)
        self.state.pool.set_lockup(self.state.address, withdraw_lockup_epochs, reward_lockup_epochs)

    @entrypoint("pool_recover_unsupported_token")
    def pool_recover_unsupported_token(self, env: CallEnv, token: AssetLedger, amount: int, to: Address) -> None:
        self._only_operator(env)
        self.state.pool.recover_unsupported_token(self.state.address, token, amount, to)

    # ------------------------------------------------------------------
    # Migration
    # ------------------------------------------------------------------

    @entrypoint("migrate")
    def migrate(self, env: CallEnv, target: Address) -> None:
        """
        Hand cash, bond and share (operator capability and the treasury's whole
        balance of each) to `target`, then go permanently inert. The reserve
        leaves with the cash, so `seigniorage_saved` drops to zero.
        """
        st = self.state
        self._only_operator(env)
        if st.migrated:
            raise TimingError("migrated")
        if not target or target == st.address:
            raise AuthorizationError("invalid migration target", caller=env.sender, details={"target": target})
        self._check_operator()

        swept: Dict[str, int] = {}
        for asset in st.core_assets():
            asset.transfer_operator(st.address, target)
            balance = asset.balance_of(st.address)
            if balance > 0:
                asset.transfer(st.address, target, balance)
            swept[asset.address] = balance

        st.seigniorage_saved = 0
        st.migrated = True
        self.chain.emit(
            Migration(
                height=env.height,
                timestamp=env.now,
                target=target,
                cash_amount=swept[st.cash.address],
                bond_amount=swept[st.bond.address],
                share_amount=swept[st.share.address],
            )
        )
        log.info("treasury: migrated to %s at height=%d (swept %s)", target, env.height, swept)


__all__ = ["Treasury", "FailurePolicy", "entrypoint"]
