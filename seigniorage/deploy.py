from __future__ import annotations

"""
Wire a complete in-memory protocol: chain, three ledgers, price feed, staking
pool and treasury, with operator capabilities handed from the deployer to the
treasury the way a production rollout does it.

Used by the simulator CLI and by the test suite.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .adapters import FeedOracle, FungibleLedger, SharePool
from .chain import Chain
from .config import TreasuryConfig
from .context import Address
from .treasury import Treasury

log = logging.getLogger(__name__)

DEPLOYER: Address = "deployer"
TREASURY: Address = "treasury"
POOL: Address = "pool"
ORACLE: Address = "oracle"
MARKETING_FUND: Address = "marketing"


@dataclass
class Protocol:
    chain: Chain
    cash: FungibleLedger
    bond: FungibleLedger
    share: FungibleLedger
    oracle: FeedOracle
    pool: SharePool
    treasury: Treasury
    operator: Address = DEPLOYER
    accounts: Dict[str, int] = field(default_factory=dict)

    def fund(self, who: Address, amount: int) -> None:
        """Mint `amount` cash to `who` (as the current cash operator) and approve the treasury to burn it."""
        self.cash.mint(self.cash.operator(), who, amount)
        self.cash.approve(who, self.treasury.address, self.cash.allowance(who, self.treasury.address) + amount)
        self.accounts[who] = self.accounts.get(who, 0) + amount

    def approve_bonds(self, who: Address, amount: int) -> None:
        self.bond.approve(who, self.treasury.address, amount)

    def advance_to_next_epoch(self) -> None:
        """Warp the clock to the treasury's next epoch boundary (or one block on, if already past)."""
        target = self.treasury.next_epoch_point()
        if target > self.chain.block.timestamp:
            self.chain.warp(target)
        else:
            self.chain.mine()


def deploy_protocol(
    cfg: Optional[TreasuryConfig] = None,
    *,
    timestamp: int = 1_700_000_000,
    start_delay: Optional[int] = None,
    genesis_supply: Optional[Dict[Address, int]] = None,
    stake: Optional[Dict[Address, int]] = None,
    price: Optional[int] = None,
    hand_over: bool = True,
) -> Protocol:
    """
    Deploy the full protocol on a fresh `Chain`.

    genesis_supply: cash minted by the deployer before hand-over.
    stake: share minted and staked in the pool per account (the pool refuses
        allocations while nothing is staked).
    price: initial published oracle price; defaults to the peg.
    hand_over: transfer cash/bond/share/pool operator to the treasury.
    """
    cfg = cfg or TreasuryConfig()
    cfg.validate()
    chain = Chain(timestamp=timestamp)

    cash = chain.register(FungibleLedger("cash", operator=DEPLOYER, symbol="CASH"))
    bond = chain.register(FungibleLedger("bond", operator=DEPLOYER, symbol="BOND"))
    share = chain.register(FungibleLedger("share", operator=DEPLOYER, symbol="SHARE"))
    oracle = chain.register(
        FeedOracle(cash.address, price=cfg.policy.cash_price_one if price is None else price, address=ORACLE)
    )
    pool = chain.register(SharePool(POOL, cash=cash, share=share, operator=DEPLOYER))

    delay = cfg.start_delay_seconds if start_delay is None else start_delay
    treasury = Treasury.from_config(
        chain,
        cfg,
        start_time=timestamp + delay,
        address=TREASURY,
        operator=DEPLOYER,
        cash=cash,
        bond=bond,
        share=share,
        oracle=oracle,
        pool=pool,
        marketing_fund=MARKETING_FUND,
    )

    for who, amount in (genesis_supply or {}).items():
        cash.mint(DEPLOYER, who, amount)
        cash.approve(who, TREASURY, amount)
    for who, amount in (stake or {}).items():
        share.mint(DEPLOYER, who, amount)
        share.approve(who, POOL, amount)
        pool.stake(who, amount)

    if hand_over:
        for ledger in (cash, bond, share):
            ledger.transfer_operator(DEPLOYER, TREASURY)
        pool.set_operator(DEPLOYER, TREASURY)

    log.info(
        "deploy: protocol ready (cash_supply=%d staked=%d hand_over=%s)",
        cash.total_supply(), pool.total_staked, hand_over,
    )
    return Protocol(
        chain=chain,
        cash=cash,
        bond=bond,
        share=share,
        oracle=oracle,
        pool=pool,
        treasury=treasury,
        accounts=dict(genesis_supply or {}),
    )


__all__ = ["Protocol", "deploy_protocol", "DEPLOYER", "TREASURY", "POOL", "ORACLE", "MARKETING_FUND"]
