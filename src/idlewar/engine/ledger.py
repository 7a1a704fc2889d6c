"""Ledger operations — pure accrual functions over ResourceLedger.

Responsibilities:
- Kill rewards
- Merging computed earnings (passive income, offline catch-up)
- Hourly-rate accrual shared by passive income and catch-up
- Explicit spending

Every function returns a new ledger; inputs are never modified.
"""

from __future__ import annotations

import math
from typing import Mapping

from idlewar.models.resources import ResourceLedger
from idlewar.util.constants import MS_PER_HOUR, RESOURCE_KINDS
from idlewar.util.errors import InsufficientResourcesError


def _check_kinds(amounts: Mapping[str, float]) -> None:
    for kind, amount in amounts.items():
        if kind not in RESOURCE_KINDS:
            raise ValueError(f"Unknown resource kind: {kind}")
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {kind}={amount}")


def merge_earnings(ledger: ResourceLedger, earnings: Mapping[str, float]) -> ResourceLedger:
    """Add an earnings bundle component-wise. Never subtracts."""
    _check_kinds(earnings)
    amounts = ledger.as_dict()
    for kind, amount in earnings.items():
        amounts[kind] = amounts.get(kind, 0.0) + amount
    return ResourceLedger(amounts=amounts)


def credit_kill(
    ledger: ResourceLedger,
    reward_table: Mapping[str, float],
    kills: int = 1,
) -> ResourceLedger:
    """Add the per-kill rewards once for every kill."""
    if kills < 0:
        raise ValueError(f"kills must not be negative (got {kills})")
    if kills == 0:
        return ledger
    return merge_earnings(ledger, {kind: amount * kills for kind, amount in reward_table.items()})


def accrue_earnings(
    base_rates: Mapping[str, float],
    multiplier: float,
    elapsed_ms: float,
) -> dict[str, float]:
    """Earnings for ``elapsed_ms`` at hourly ``base_rates`` scaled by ``multiplier``.

    ``floor(rate * multiplier * hours)`` per kind; partial units are dropped.
    """
    if elapsed_ms <= 0:
        return {kind: 0.0 for kind in base_rates}
    hours = elapsed_ms / MS_PER_HOUR
    return {
        kind: float(math.floor(rate * multiplier * hours))
        for kind, rate in base_rates.items()
    }


def spend(ledger: ResourceLedger, costs: Mapping[str, float]) -> ResourceLedger:
    """Deduct costs, or raise InsufficientResourcesError leaving nothing spent.

    Never called by the tick; this is the hook a host uses to buy things
    with what the simulation has earned.
    """
    _check_kinds(costs)
    for kind, cost in costs.items():
        available = ledger.get(kind)
        if available < cost:
            raise InsufficientResourcesError(kind, cost, available)
    amounts = ledger.as_dict()
    for kind, cost in costs.items():
        amounts[kind] -= cost
    return ResourceLedger(amounts=amounts)
