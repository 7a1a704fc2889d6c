"""Simulation state model — data container for one running simulation.

SimulationState holds everything a tick reads and writes. Business logic
lives in engine/simulation.py and the services it calls; persistence in
persistence/state_save.py and persistence/state_load.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from idlewar.models.resources import ResourceLedger
from idlewar.models.unit import Faction, Unit


@dataclass(frozen=True)
class SimulationClock:
    """Simulation time and spawn/income countdowns.

    Attributes:
        game_time_ms: Cumulative simulated milliseconds.
        next_spawn_ms: Countdown to the next friendly reinforcement.
        next_wave_ms: Countdown to the next hostile wave.
        next_income_ms: Countdown to the next passive income payout.
        last_tick_timestamp: Wall-clock ms of the last tick or save, used
            as the last-seen time for offline catch-up. None before the
            first tick.
    """

    game_time_ms: float = 0.0
    next_spawn_ms: float = 0.0
    next_wave_ms: float = 0.0
    next_income_ms: float = 0.0
    last_tick_timestamp: Optional[float] = None


@dataclass(frozen=True)
class SimulationState:
    """Complete state of a simulation.

    Attributes:
        units: Active units; friendly and hostile interleaved in spawn order.
        ledger: Accumulated resources.
        clock: Simulation time and countdowns.
        rank: Player rank (1-based).
        rank_points: Points accumulated toward the next rank.
        next_unit_id: ID handed to the next spawned unit.
    """

    units: tuple[Unit, ...] = ()
    ledger: ResourceLedger = field(default_factory=ResourceLedger)
    clock: SimulationClock = field(default_factory=SimulationClock)
    rank: int = 1
    rank_points: float = 0.0
    next_unit_id: int = 1

    # -- Helpers ---------------------------------------------------------

    def alive_count(self, faction: Faction) -> int:
        return sum(1 for u in self.units if u.faction is faction and u.is_alive)

    def get_unit(self, unit_id: int) -> Optional[Unit]:
        for unit in self.units:
            if unit.unit_id == unit_id:
                return unit
        return None
