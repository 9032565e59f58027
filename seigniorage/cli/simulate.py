from __future__ import annotations

"""
seigniorage.cli.simulate
------------------------

Drive the treasury from the command line against in-memory collaborators.

Examples
--------
# Effective configuration (defaults <- $SEIGNIORAGE_CONFIG_FILE <- SEIGNIORAGE_* env)
python -m seigniorage.cli.simulate params

# Bond exchange rate at a price of 1.05 under the as-written redemption floor
python -m seigniorage.cli.simulate rate 1.05 --floor as_written

# Replay a price path, one epoch per price, and print the event log as JSON
python -m seigniorage.cli.simulate run --prices 0.95,0.97,1.04,1.08
python -m seigniorage.cli.simulate run --path prices.yaml --supply 5000000

Prices are decimal cash prices (1.0 = peg of 1e18); amounts are whole cash units.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml

from .. import config as config_mod
from ..config import TreasuryConfig
from ..constants import RedemptionFloor
from ..deploy import DEPLOYER, Protocol, deploy_protocol
from ..economics.bonds import bond_exchange_rate
from ..errors import TreasuryError
from ..fixedpoint import WAD

log = logging.getLogger(__name__)

app = typer.Typer(
    name="seigniorage-simulate",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect treasury parameters and replay price paths through an in-memory protocol.",
)

KEEPER = "keeper"
TRADER = "trader"
STAKER = "staker"


# -------------------- utils --------------------

def _to_wad(v: Any) -> int:
    try:
        d = Decimal(str(v).strip())
    except InvalidOperation as e:
        raise typer.BadParameter(f"not a decimal price: {v!r}") from e
    if d < 0:
        raise typer.BadParameter(f"price must be non-negative: {v!r}")
    return int(d * WAD)


def _fmt_wad(x: int) -> str:
    s = f"{Decimal(x) / Decimal(WAD):.6f}".rstrip("0").rstrip(".")
    return s if s else "0"


def _load_config(path: Optional[Path]) -> TreasuryConfig:
    """An explicit --config file takes the place of $SEIGNIORAGE_CONFIG_FILE; env still wins."""
    if path is None:
        return config_mod.load()
    return config_mod.from_env(config_mod.from_file(path))


def _read_path(path: Path) -> List[Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if isinstance(data, dict):
        data = data.get("prices")
    if not isinstance(data, list):
        raise typer.BadParameter(f"{path} must hold a list of prices (or a mapping with 'prices')")
    return data


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# -------------------- simulation --------------------

def _attempt(rejections: List[Dict[str, Any]], epoch: int, op: str, fn, *args: Any) -> Any:  # type: ignore[no-untyped-def]
    try:
        return fn(*args)
    except TreasuryError as e:
        rejections.append({"epoch": epoch, "op": op, **e.to_dict()})
        return None


def simulate(proto: Protocol, prices: List[int]) -> Dict[str, Any]:
    """
    One epoch per price: publish the price, open the epoch, let the keeper
    allocate, then let the trader buy bonds below peg or redeem them above
    the ceiling with whatever the treasury will accept.
    """
    t = proto.treasury
    peg = t.policy.cash_price_one
    ceiling = t.policy.cash_price_ceiling
    rejections: List[Dict[str, Any]] = []

    for price in prices:
        proto.advance_to_next_epoch()
        proto.oracle.set_price(price)
        epoch = t.epoch
        _attempt(rejections, epoch, "allocate_seigniorage", t.allocate_seigniorage, proto.chain.call(KEEPER))

        if price < peg:
            amount = min(t.get_burnable_cash_left(), proto.cash.balance_of(TRADER))
            if amount > 0:
                _attempt(rejections, epoch, "buy_bonds", t.buy_bonds, proto.chain.call(TRADER), amount, price)
        elif price > ceiling:
            amount = min(t.get_redeemable_bonds(), proto.bond.balance_of(TRADER))
            if amount > 0:
                proto.approve_bonds(TRADER, amount)
                _attempt(rejections, epoch, "redeem_bonds", t.redeem_bonds, proto.chain.call(TRADER), amount, price)

    return {
        "events": [e.to_dict() for e in proto.chain.events()],
        "rejections": rejections,
        "status": t.status(),
    }


# -------------------- commands --------------------

@app.command("params")
def cmd_params(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="JSON/YAML config file."),
) -> None:
    """Print the effective treasury configuration as JSON."""
    typer.echo(config_mod.pretty(_load_config(config_file)))


@app.command("rate")
def cmd_rate(
    price: str = typer.Argument(..., help="Cash price as a decimal (1.0 = peg)."),
    floor: Optional[RedemptionFloor] = typer.Option(None, "--floor", case_sensitive=False, help="Redemption floor variant."),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="JSON/YAML config file."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Bond exchange rate (cash paid per bond) at a given price."""
    cfg = _load_config(config_file)
    wad_price = _to_wad(price)
    regime = floor or cfg.redemption_floor
    rate = bond_exchange_rate(wad_price, cfg.policy, regime)
    if json_out:
        typer.echo(json.dumps({"price": wad_price, "rate": rate, "floor": regime.value}, sort_keys=True))
        return
    typer.echo(f"price={_fmt_wad(wad_price)} rate={_fmt_wad(rate)} floor={regime.value}")


@app.command("run")
def cmd_run(
    prices: Optional[str] = typer.Option(None, "--prices", help="Comma-separated decimal prices, one per epoch."),
    path: Optional[Path] = typer.Option(None, "--path", exists=True, dir_okay=False, help="JSON/YAML list of prices."),
    supply: int = typer.Option(1_000_000, min=1, help="Initial cash held by the trader (whole units)."),
    staked: int = typer.Option(1_000, min=1, help="Share staked in the pool (whole units)."),
    floor: Optional[RedemptionFloor] = typer.Option(None, "--floor", case_sensitive=False, help="Redemption floor variant."),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", exists=True, dir_okay=False, help="JSON/YAML config file."),
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level."),
) -> None:
    """Replay a price path and print the event log, rejections and final status."""
    _setup_logging(log_level)
    if (prices is None) == (path is None):
        raise typer.BadParameter("give exactly one of --prices or --path")
    raw = prices.split(",") if prices is not None else _read_path(path)  # type: ignore[arg-type]
    path_wad = [_to_wad(p) for p in raw if str(p).strip()]

    cfg = _load_config(config_file)
    if floor is not None:
        cfg.redemption_floor = floor
    proto = deploy_protocol(
        cfg,
        genesis_supply={TRADER: supply * WAD},
        stake={STAKER: staked * WAD},
    )
    log.info("simulate: %d epoch(s), operator=%s", len(path_wad), DEPLOYER)
    typer.echo(json.dumps(simulate(proto, path_wad), indent=2, sort_keys=True))


def get_app() -> typer.Typer:
    return app


if __name__ == "__main__":
    app()
