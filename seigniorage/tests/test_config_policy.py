from __future__ import annotations

import json
import os

import pytest

from seigniorage import config
from seigniorage.config import TreasuryConfig
from seigniorage.constants import PERIOD, RedemptionFloor
from seigniorage.errors import EconomicBoundError
from seigniorage.fixedpoint import WAD
from seigniorage.policy import (FIELD_RANGES, PolicyParameters, check_field,
                                field_range)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for k in list(os.environ):
        if k.startswith("SEIGNIORAGE_"):
            monkeypatch.delenv(k, raising=False)


# ---------------------------------------------------------------- policy


def test_defaults_are_valid() -> None:
    p = PolicyParameters()
    p.validate()
    assert p.cash_price_ceiling == 101 * WAD // 100
    assert p.bond_redeem_price_ceiling == 110 * WAD // 100
    assert (p.max_supply_expansion_percent, p.max_supply_expansion_percent_in_debt_phase) == (400, 450)
    assert (p.seigniorage_expansion_floor_percent, p.seigniorage_expansion_floor_percent_in_debt_phase) == (7_000, 3_500)
    assert (p.max_supply_contraction_percent, p.max_debt_ratio_percent, p.bond_depletion_floor_percent) == (300, 3_500, 10_000)


def test_price_ranges_follow_the_peg() -> None:
    p = PolicyParameters.for_peg(5 * 10**17)
    assert field_range(p, "cash_price_ceiling") == (5 * 10**17, 6 * 10**17)
    assert field_range(p, "bond_redeem_price_ceiling") == (5 * 10**17, 10**18)
    assert p.cash_price_ceiling == 505 * 10**15


@pytest.mark.parametrize("name", sorted(FIELD_RANGES))
def test_every_range_is_inclusive(name: str) -> None:
    p = PolicyParameters()
    lo, hi = field_range(p, name)
    assert check_field(p, name, lo) == lo
    assert check_field(p, name, hi) == hi
    for bad in (lo - 1, hi + 1):
        with pytest.raises(EconomicBoundError) as ei:
            check_field(p, name, bad)
        assert ei.value.details == {"parameter": name, "value": bad, "min": lo, "max": hi}


def test_unknown_parameter() -> None:
    with pytest.raises(KeyError):
        field_range(PolicyParameters(), "cash_price_one")


def test_validate_rejects_inverted_expansion_caps() -> None:
    with pytest.raises(EconomicBoundError):
        PolicyParameters(max_supply_expansion_percent=500, max_supply_expansion_percent_in_debt_phase=450).validate()


def test_policy_from_dict_fills_defaults_for_peg() -> None:
    p = PolicyParameters.from_dict({"cash_price_one": 2 * WAD, "max_debt_ratio_percent": 5_000})
    assert p.cash_price_ceiling == 202 * WAD // 100
    assert p.max_debt_ratio_percent == 5_000
    assert PolicyParameters.from_dict(p.to_dict()) == p


# ---------------------------------------------------------------- config


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("SEIGNIORAGE_MAX_DEBT_RATIO_PERCENT", "5_000")
    monkeypatch.setenv("SEIGNIORAGE_PERIOD_SECONDS", "3600")
    monkeypatch.setenv("SEIGNIORAGE_REDEMPTION_FLOOR", "AS_WRITTEN")
    cfg = config.from_env()
    assert cfg.policy.max_debt_ratio_percent == 5_000
    assert cfg.period_seconds == 3_600
    assert cfg.redemption_floor is RedemptionFloor.AS_WRITTEN


def test_peg_override_alone_rescales_the_ceilings(monkeypatch) -> None:
    monkeypatch.setenv("SEIGNIORAGE_CASH_PRICE_ONE", "500_000_000_000_000_000")
    monkeypatch.setenv("SEIGNIORAGE_MAX_DEBT_RATIO_PERCENT", "4000")
    cfg = config.from_env()
    assert cfg.policy.cash_price_one == 5 * 10**17
    assert cfg.policy.cash_price_ceiling == 505 * 10**15
    assert cfg.policy.bond_redeem_price_ceiling == 55 * 10**16
    assert cfg.policy.max_debt_ratio_percent == 4_000

    monkeypatch.setenv("SEIGNIORAGE_CASH_PRICE_CEILING", str(52 * 10**16))
    assert config.from_env().policy.cash_price_ceiling == 52 * 10**16


def test_env_values_are_range_checked(monkeypatch) -> None:
    monkeypatch.setenv("SEIGNIORAGE_MAX_SUPPLY_CONTRACTION_PERCENT", "2000")
    with pytest.raises(EconomicBoundError):
        config.from_env()
    monkeypatch.setenv("SEIGNIORAGE_MAX_SUPPLY_CONTRACTION_PERCENT", "lots")
    with pytest.raises(ValueError, match="Invalid int"):
        config.from_env()


def test_bad_floor_name(monkeypatch) -> None:
    monkeypatch.setenv("SEIGNIORAGE_REDEMPTION_FLOOR", "sideways")
    with pytest.raises(ValueError, match="redemption_floor must be one of"):
        config.from_env()


def test_yaml_file_then_env(tmp_path, monkeypatch) -> None:
    path = tmp_path / "treasury.yaml"
    path.write_text(
        "period_seconds: 7200\n"
        "redemption_floor: as_written\n"
        "policy:\n"
        "  max_supply_expansion_percent: 200\n"
        "  seigniorage_expansion_floor_percent: 8000\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("SEIGNIORAGE_CONFIG_FILE", str(path))
    monkeypatch.setenv("SEIGNIORAGE_PERIOD_SECONDS", "1800")

    cfg = config.load()

    assert cfg.period_seconds == 1_800
    assert cfg.redemption_floor is RedemptionFloor.AS_WRITTEN
    assert cfg.policy.max_supply_expansion_percent == 200
    assert cfg.policy.seigniorage_expansion_floor_percent == 8_000
    assert cfg.policy.max_debt_ratio_percent == 3_500


def test_json_file(tmp_path) -> None:
    path = tmp_path / "treasury.json"
    path.write_text(json.dumps({"start_delay_seconds": 60}), encoding="utf-8")
    cfg = config.from_file(path)
    assert cfg.start_delay_seconds == 60
    assert cfg.period_seconds == PERIOD
    with pytest.raises(FileNotFoundError):
        config.from_file(tmp_path / "missing.json")


def test_invalid_period() -> None:
    with pytest.raises(ValueError):
        TreasuryConfig(period_seconds=0).validate()


def test_pretty_is_json() -> None:
    out = json.loads(config.pretty(TreasuryConfig()))
    assert out["redemption_floor"] == "scaled"
    assert out["policy"]["cash_price_one"] == WAD
