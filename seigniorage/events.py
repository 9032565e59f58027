from __future__ import annotations
"""
Treasury notifications.

Events are appended to the chain's event log by treasury entry points and are
rolled back together with every other mutation when a call aborts. Each event
carries the amounts and identities needed to rebuild reserve and supply history
from the log alone (`reserve_after` on every reserve-touching event).

Events:
  - Migration:            treasury handed its ledgers (and balances swept) to a new controller.
  - BondsRedeemed:        bonds burned, cash paid out.
  - BondsBought:          cash burned, bonds minted.
  - TreasuryFunded:       debt-phase seigniorage retained as reserve.
  - PoolFunded:           seigniorage pushed to the staking pool.
  - MarketingFundFunded:  seigniorage minted to the marketing fund.
  - ExpansionRateChanged: governance moved the expansion caps.
  - NewEpoch:             epoch advanced; total cash supply and the reserve-excluded
                          supply the expansion was computed on.
  - OperatorChanged / ParameterChanged / TokenRecovered: governance audit trail.
"""


from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping, Type


class EventType(str, Enum):
    MIGRATION = "Migration"
    BONDS_REDEEMED = "BondsRedeemed"
    BONDS_BOUGHT = "BondsBought"
    TREASURY_FUNDED = "TreasuryFunded"
    POOL_FUNDED = "PoolFunded"
    MARKETING_FUND_FUNDED = "MarketingFundFunded"
    EXPANSION_RATE_CHANGED = "ExpansionRateChanged"
    NEW_EPOCH = "NewEpoch"
    OPERATOR_CHANGED = "OperatorChanged"
    PARAMETER_CHANGED = "ParameterChanged"
    TOKEN_RECOVERED = "TokenRecovered"


@dataclass(frozen=True)
class TreasuryEvent:
    height: int
    timestamp: int

    etype = None  # type: EventType  # set by subclasses

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["etype"] = self.etype.value
        return d


@dataclass(frozen=True)
class Migration(TreasuryEvent):
    target: str
    cash_amount: int
    bond_amount: int
    share_amount: int
    etype = EventType.MIGRATION


@dataclass(frozen=True)
class BondsRedeemed(TreasuryEvent):
    account: str
    cash_amount: int
    bond_amount: int
    reserve_after: int
    etype = EventType.BONDS_REDEEMED


@dataclass(frozen=True)
class BondsBought(TreasuryEvent):
    account: str
    cash_amount: int
    bond_amount: int
    contraction_left: int
    etype = EventType.BONDS_BOUGHT


@dataclass(frozen=True)
class TreasuryFunded(TreasuryEvent):
    amount: int
    reserve_after: int
    etype = EventType.TREASURY_FUNDED


@dataclass(frozen=True)
class PoolFunded(TreasuryEvent):
    pool: str
    amount: int
    etype = EventType.POOL_FUNDED


@dataclass(frozen=True)
class MarketingFundFunded(TreasuryEvent):
    fund: str
    amount: int
    etype = EventType.MARKETING_FUND_FUNDED


@dataclass(frozen=True)
class ExpansionRateChanged(TreasuryEvent):
    max_expansion_bps: int
    max_expansion_debt_phase_bps: int
    etype = EventType.EXPANSION_RATE_CHANGED


@dataclass(frozen=True)
class NewEpoch(TreasuryEvent):
    epoch: int
    cash_price: int
    cash_supply: int
    effective_supply: int
    contraction_left: int
    etype = EventType.NEW_EPOCH


@dataclass(frozen=True)
class OperatorChanged(TreasuryEvent):
    previous: str
    new: str
    etype = EventType.OPERATOR_CHANGED


@dataclass(frozen=True)
class ParameterChanged(TreasuryEvent):
    name: str
    old: Any
    new: Any
    etype = EventType.PARAMETER_CHANGED


@dataclass(frozen=True)
class TokenRecovered(TreasuryEvent):
    token: str
    amount: int
    to: str
    etype = EventType.TOKEN_RECOVERED


_BY_TYPE: Dict[EventType, Type[TreasuryEvent]] = {
    cls.etype: cls
    for cls in (
        Migration,
        BondsRedeemed,
        BondsBought,
        TreasuryFunded,
        PoolFunded,
        MarketingFundFunded,
        ExpansionRateChanged,
        NewEpoch,
        OperatorChanged,
        ParameterChanged,
        TokenRecovered,
    )
}


def event_from_dict(d: Mapping[str, Any]) -> TreasuryEvent:
    """Inverse of `TreasuryEvent.to_dict`."""
    cls = _BY_TYPE[EventType(d["etype"])]
    kwargs = {f.name: d[f.name] for f in fields(cls)}
    return cls(**kwargs)


__all__ = [
    "EventType",
    "TreasuryEvent",
    "Migration",
    "BondsRedeemed",
    "BondsBought",
    "TreasuryFunded",
    "PoolFunded",
    "MarketingFundFunded",
    "ExpansionRateChanged",
    "NewEpoch",
    "OperatorChanged",
    "ParameterChanged",
    "TokenRecovered",
    "event_from_dict",
]
