from __future__ import annotations

"""
Prometheus metrics for the seigniorage treasury.

We expose counters and gauges covering:
- bonds: purchases and redemptions (count + cumulative amounts)
- seigniorage: cash minted per epoch by destination (pool / marketing / reserve)
- epochs: advances, current epoch, contraction budget left
- rejections: aborted calls by error code
- oracle: swallowed refresh failures
- reserve: current seigniorage_saved

Amounts are recorded in WAD base units; dashboards divide by 1e18.
"""


from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

# Use a dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   destination: "pool" | "marketing" | "reserve"
#   op: "buy_bonds" | "redeem_bonds" | "allocate_seigniorage" | governance op names
#   code: TreasuryError.code
# ────────────────────────────────────────────────────────────────────────────────

BONDS_BOUGHT = Counter(
    "seigniorage_bonds_bought_total",
    "Bond purchases accepted.",
    registry=REGISTRY,
)

BONDS_BOUGHT_AMOUNT = Counter(
    "seigniorage_bonds_bought_amount_total",
    "Cumulative bond amount minted by purchases (base units).",
    registry=REGISTRY,
)

BONDS_REDEEMED = Counter(
    "seigniorage_bonds_redeemed_total",
    "Bond redemptions accepted.",
    registry=REGISTRY,
)

CASH_PAID_OUT = Counter(
    "seigniorage_redemption_cash_paid_total",
    "Cumulative cash paid for redeemed bonds (base units).",
    registry=REGISTRY,
)

SEIGNIORAGE_MINTED = Counter(
    "seigniorage_minted_total",
    "Cumulative seigniorage minted by destination (base units).",
    labelnames=("destination",),
    registry=REGISTRY,
)

EPOCHS_ADVANCED = Counter(
    "seigniorage_epochs_advanced_total",
    "Epoch advances by phase taken at allocation time.",
    labelnames=("phase",),
    registry=REGISTRY,
)

CALLS_REJECTED = Counter(
    "seigniorage_calls_rejected_total",
    "Treasury calls aborted, by operation and error code.",
    labelnames=("op", "code"),
    registry=REGISTRY,
)

ORACLE_REFRESH_FAILURES = Counter(
    "seigniorage_oracle_refresh_failures_total",
    "Oracle refresh pushes that failed and were ignored.",
    registry=REGISTRY,
)

RESERVE = Gauge(
    "seigniorage_reserve",
    "Current seigniorage_saved (base units).",
    registry=REGISTRY,
)

EPOCH = Gauge(
    "seigniorage_epoch",
    "Current epoch counter.",
    registry=REGISTRY,
)

CONTRACTION_LEFT = Gauge(
    "seigniorage_epoch_contraction_left",
    "Bond-issuable amount left in the current epoch (base units).",
    registry=REGISTRY,
)


# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_bonds_bought(amount: int, contraction_left: int) -> None:
    BONDS_BOUGHT.inc()
    BONDS_BOUGHT_AMOUNT.inc(amount)
    CONTRACTION_LEFT.set(contraction_left)


def record_bonds_redeemed(bond_amount: int, cash_paid: int, reserve: int) -> None:
    BONDS_REDEEMED.inc()
    CASH_PAID_OUT.inc(cash_paid)
    RESERVE.set(reserve)


def record_epoch(epoch: int, phase: str, contraction_left: int, reserve: int) -> None:
    EPOCHS_ADVANCED.labels(phase=phase).inc()
    EPOCH.set(epoch)
    CONTRACTION_LEFT.set(contraction_left)
    RESERVE.set(reserve)


def record_minted(destination: str, amount: int) -> None:
    if amount > 0:
        SEIGNIORAGE_MINTED.labels(destination=destination).inc(amount)


def record_rejection(op: str, code: str) -> None:
    CALLS_REJECTED.labels(op=op, code=code).inc()


def record_oracle_refresh_failure() -> None:
    ORACLE_REFRESH_FAILURES.inc()


# ────────────────────────────────────────────────────────────────────────────────
# Exposition
# ────────────────────────────────────────────────────────────────────────────────


def render(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Prometheus text exposition of the treasury registry."""
    return generate_latest(registry or REGISTRY)


__all__ = [
    "REGISTRY",
    "record_bonds_bought",
    "record_bonds_redeemed",
    "record_epoch",
    "record_minted",
    "record_rejection",
    "record_oracle_refresh_failure",
    "render",
]
