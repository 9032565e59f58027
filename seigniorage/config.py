from __future__ import annotations
"""
seigniorage.config — configuration for the treasury

Covers:
- Policy parameters (peg, price ceilings, expansion/contraction/debt caps,
  seigniorage split), all governance-range checked on load
- Epoch period (seconds)
- Redemption floor variant used while price sits at or below the ceiling
- Start delay applied by hosts when deploying a fresh treasury

Environment overrides (all optional; defaults below):

  # Prices (WAD, 1e18 = 1.0)
  SEIGNIORAGE_CASH_PRICE_ONE=1000000000000000000
  SEIGNIORAGE_CASH_PRICE_CEILING=1010000000000000000
  SEIGNIORAGE_BOND_REDEEM_PRICE_CEILING=1100000000000000000

  # Basis points (10000 = 100%)
  SEIGNIORAGE_MAX_SUPPLY_EXPANSION_PERCENT=400
  SEIGNIORAGE_MAX_SUPPLY_EXPANSION_PERCENT_IN_DEBT_PHASE=450
  SEIGNIORAGE_BOND_DEPLETION_FLOOR_PERCENT=10000
  SEIGNIORAGE_SEIGNIORAGE_EXPANSION_FLOOR_PERCENT=7000
  SEIGNIORAGE_SEIGNIORAGE_EXPANSION_FLOOR_PERCENT_IN_DEBT_PHASE=3500
  SEIGNIORAGE_MAX_SUPPLY_CONTRACTION_PERCENT=300
  SEIGNIORAGE_MAX_DEBT_RATIO_PERCENT=3500

  # Timing & regime
  SEIGNIORAGE_PERIOD_SECONDS=21600
  SEIGNIORAGE_START_DELAY_SECONDS=0
  SEIGNIORAGE_REDEMPTION_FLOOR=scaled        # or as_written

You can also load from a JSON or YAML file via
`SEIGNIORAGE_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional
import json
import os
from pathlib import Path

import yaml

from .constants import PERIOD, RedemptionFloor
from .policy import PolicyParameters

ENV_PREFIX = "SEIGNIORAGE_"

# rescaled together whenever the peg is overridden
_PRICE_FIELDS = ("cash_price_one", "cash_price_ceiling", "bond_redeem_price_ceiling")


# -------------------------- Data classes --------------------------


@dataclass
class TreasuryConfig:
    """Top-level configuration container."""
    policy: PolicyParameters = field(default_factory=PolicyParameters)
    period_seconds: int = PERIOD
    start_delay_seconds: int = 0
    redemption_floor: RedemptionFloor = RedemptionFloor.SCALED

    def validate(self) -> None:
        self.policy.validate()
        if self.period_seconds <= 0:
            raise ValueError("period_seconds must be positive.")
        if self.start_delay_seconds < 0:
            raise ValueError("start_delay_seconds must be non-negative.")
        if not isinstance(self.redemption_floor, RedemptionFloor):
            raise ValueError(f"Unknown redemption_floor {self.redemption_floor!r}.")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "policy": self.policy.to_dict(),
            "period_seconds": self.period_seconds,
            "start_delay_seconds": self.start_delay_seconds,
            "redemption_floor": self.redemption_floor.value,
        }


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def _parse_floor(v: Any) -> RedemptionFloor:
    try:
        return RedemptionFloor(str(v).strip().lower())
    except ValueError as e:
        choices = ", ".join(f.value for f in RedemptionFloor)
        raise ValueError(f"redemption_floor must be one of {choices} (got {v!r})") from e


def from_env(base: Optional[TreasuryConfig] = None, prefix: str = ENV_PREFIX) -> TreasuryConfig:
    """
    Build a TreasuryConfig from environment variables, layered on top of `base`.

    A peg override rescales both price ceilings to the new peg before any
    explicit ceiling override is applied.
    """
    cfg = base or TreasuryConfig()

    policy = cfg.policy
    peg_env = f"{prefix}CASH_PRICE_ONE"
    if os.getenv(peg_env):
        keep = {k: v for k, v in policy.to_dict().items() if k not in _PRICE_FIELDS}
        policy = PolicyParameters.for_peg(_getenv_int(peg_env, policy.cash_price_one), **keep)

    policy_overrides = {
        name: _getenv_int(f"{prefix}{name.upper()}", value)
        for name, value in policy.to_dict().items()
    }
    floor_env = os.getenv(f"{prefix}REDEMPTION_FLOOR")

    new_cfg = TreasuryConfig(
        policy=replace(policy, **policy_overrides),
        period_seconds=_getenv_int(f"{prefix}PERIOD_SECONDS", cfg.period_seconds),
        start_delay_seconds=_getenv_int(f"{prefix}START_DELAY_SECONDS", cfg.start_delay_seconds),
        redemption_floor=_parse_floor(floor_env) if floor_env else cfg.redemption_floor,
    )
    new_cfg.validate()
    return new_cfg


def from_mapping(data: Dict[str, Any]) -> TreasuryConfig:
    """Build a TreasuryConfig from a parsed JSON/YAML document."""
    defaults = TreasuryConfig()
    cfg = TreasuryConfig(
        policy=PolicyParameters.from_dict(data.get("policy") or {}),
        period_seconds=int(data.get("period_seconds", defaults.period_seconds)),
        start_delay_seconds=int(data.get("start_delay_seconds", defaults.start_delay_seconds)),
        redemption_floor=_parse_floor(data.get("redemption_floor", defaults.redemption_floor.value)),
    )
    cfg.validate()
    return cfg


def from_file(path: str | os.PathLike[str]) -> TreasuryConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    return from_mapping(data)


def load() -> TreasuryConfig:
    """
    Load configuration using the following precedence:
      1) File at $SEIGNIORAGE_CONFIG_FILE (JSON/YAML)
      2) Environment variables (SEIGNIORAGE_*), applied on top of defaults or file values
    """
    file_path = os.getenv(f"{ENV_PREFIX}CONFIG_FILE")
    base = from_file(file_path) if file_path else TreasuryConfig()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[TreasuryConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "TreasuryConfig",
    "from_env",
    "from_mapping",
    "from_file",
    "load",
    "pretty",
]
