"""Offline catch-up — estimates what accrued while no ticks ran.

Earnings:
    floor(base_rate[kind] * multiplier * elapsed_ms / MS_PER_HOUR)

Reinforcements:
    min(floor(elapsed_ms / spawn_interval_ms), max_spawns)

Combat is NOT re-simulated for the absence; doing so would be unbounded
work for long absences. Only passive accrual is estimated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Mapping

from idlewar.engine.ledger import accrue_earnings, merge_earnings
from idlewar.models.unit import Faction
from idlewar.util.constants import MAX_OFFLINE_SPAWNS, MIN_OFFLINE_THRESHOLD_MS
from idlewar.util.types import format_resources, format_time

if TYPE_CHECKING:
    from idlewar.engine.spawner import SpawnService
    from idlewar.models.state import SimulationState

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatchUpResult:
    """Outcome of a catch-up calculation.

    Attributes:
        earnings: Resources owed {kind: amount}.
        units_to_spawn: Reinforcements owed (before capacity limits).
        elapsed_ms: Absence that was credited (0 if under the threshold).
    """

    earnings: dict[str, float] = field(default_factory=dict)
    units_to_spawn: int = 0
    elapsed_ms: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.units_to_spawn == 0 and not any(self.earnings.values())


def compute_catch_up(
    last_seen: float,
    now: float,
    multiplier: float,
    base_rates: Mapping[str, float],
    spawn_interval_ms: float = 60_000.0,
    threshold_ms: float = MIN_OFFLINE_THRESHOLD_MS,
    max_spawns: int = MAX_OFFLINE_SPAWNS,
) -> CatchUpResult:
    """Compute earnings and reinforcements owed for ``now - last_seen``.

    Absences shorter than ``threshold_ms`` (and clock skew making ``now``
    earlier than ``last_seen``) earn nothing.
    """
    elapsed = now - last_seen
    if elapsed < threshold_ms or elapsed <= 0:
        return CatchUpResult(earnings={kind: 0.0 for kind in base_rates})

    earnings = accrue_earnings(base_rates, multiplier, elapsed)
    units = min(math.floor(elapsed / spawn_interval_ms), max_spawns)
    return CatchUpResult(earnings=earnings, units_to_spawn=units, elapsed_ms=elapsed)


def apply_catch_up(
    state: SimulationState,
    result: CatchUpResult,
    spawner: SpawnService,
    now: float,
) -> tuple[SimulationState, int]:
    """Merge catch-up earnings and spawn owed reinforcements up to capacity.

    Args:
        state: State restored from persistence.
        result: Output of :func:`compute_catch_up`.
        spawner: Creates the reinforcement units.
        now: Simulation time stamped on the new units.

    Returns:
        (new state, number of units actually spawned).
    """
    if result.is_empty:
        return state, 0

    state = replace(state, ledger=merge_earnings(state.ledger, result.earnings))
    before = state.alive_count(Faction.FRIENDLY)
    state = spawner.spawn_units(state, Faction.FRIENDLY, result.units_to_spawn, now)
    spawned = state.alive_count(Faction.FRIENDLY) - before

    log.info("Offline for %s: earned %s, %d/%d reinforcements arrived",
             format_time(result.elapsed_ms / 1000.0), format_resources(result.earnings),
             spawned, result.units_to_spawn)
    return state, spawned
