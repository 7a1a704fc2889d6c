"""Simulation — the per-tick step function and its context.

Tick order (must be preserved):
1. advance clock: game time up, all countdowns down by dt
2. reinforcement: friendly spawn if the countdown is due
3. wave: hostile spawn if the countdown is due
4. combat: only while both factions have living units
5. kill rewards: ledger and rank points for hostiles killed in step 4
6. passive income: hourly rates for one interval if the countdown is due
7. cleanup: dead units leave the active set

The simulation never ends on its own: with one faction wiped out, combat
idles until the next spawn.

A Simulation is an explicitly constructed context (config, catalog, RNG,
optional event bus). Several can coexist; nothing is global.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from idlewar.engine.combat_service import CombatService
from idlewar.engine.ledger import accrue_earnings, credit_kill, merge_earnings
from idlewar.engine.offline import CatchUpResult, apply_catch_up, compute_catch_up
from idlewar.engine.progression import award_rank_points, rank_multiplier
from idlewar.engine.spawner import SpawnService
from idlewar.models.resources import ResourceLedger
from idlewar.models.state import SimulationClock, SimulationState
from idlewar.models.unit import Faction, Unit
from idlewar.util.errors import ConfigurationError
from idlewar.util.events import (
    PassiveIncomeEarned,
    RankPromoted,
    UnitKilled,
    UnitSpawned,
)
from idlewar.util.rng import DRNG

if TYPE_CHECKING:
    from idlewar.loaders.game_config_loader import GameConfig
    from idlewar.models.catalog import UnitCatalog
    from idlewar.util.events import EventBus

log = logging.getLogger(__name__)


class Simulation:
    """Deterministic tick function over SimulationState.

    Args:
        config: Validated game configuration.
        catalog: Unit archetypes.
        rng: Random source; a fresh ``DRNG(config.seed)`` if omitted.
        event_bus: Optional bus notified after each tick.

    Raises:
        ConfigurationError: if ``config`` is out of range or a faction
            has nothing to spawn.
    """

    def __init__(
        self,
        config: GameConfig,
        catalog: UnitCatalog,
        rng: Optional[DRNG] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        config.validate()
        for faction in Faction:
            if not catalog.spawnable(faction):
                raise ConfigurationError(f"No spawnable {faction.value} archetypes in catalog")
        self.config = config
        self.catalog = catalog
        self.rng = rng if rng is not None else DRNG(config.seed)
        self._events = event_bus
        self.spawner = SpawnService(config, catalog, self.rng)
        self.combat = CombatService(config, self.rng)

    # -- State creation --------------------------------------------------

    def new_state(self, timestamp: Optional[float] = None) -> SimulationState:
        """Fresh state: starting resources, full countdowns, no units."""
        return SimulationState(
            ledger=ResourceLedger.from_amounts(self.config.starting_resources),
            clock=SimulationClock(
                next_spawn_ms=self.config.reinforcement_interval_ms,
                next_wave_ms=self.config.wave_interval_ms,
                next_income_ms=self.config.passive_income_interval_ms,
                last_tick_timestamp=timestamp,
            ),
        )

    # -- Tick ------------------------------------------------------------

    def tick(
        self,
        state: SimulationState,
        delta_ms: float,
        timestamp: Optional[float] = None,
    ) -> SimulationState:
        """Advance the simulation by ``delta_ms`` and return the new state.

        Args:
            state: Current state (not modified).
            delta_ms: Simulated milliseconds to advance; must be >= 0.
            timestamp: Wall-clock ms recorded as ``last_tick_timestamp``.
                Keeps the previous value when omitted.
        """
        if delta_ms < 0:
            raise ValueError(f"delta_ms must not be negative (got {delta_ms})")

        # 1. Advance clock
        clock = state.clock
        now = clock.game_time_ms + delta_ms
        state = replace(state, clock=replace(
            clock,
            game_time_ms=now,
            next_spawn_ms=clock.next_spawn_ms - delta_ms,
            next_wave_ms=clock.next_wave_ms - delta_ms,
            next_income_ms=clock.next_income_ms - delta_ms,
            last_tick_timestamp=timestamp if timestamp is not None else clock.last_tick_timestamp,
        ))
        first_new_id = state.next_unit_id

        # 2. + 3. Spawns
        if state.clock.next_spawn_ms <= 0:
            state = self.spawner.try_spawn_reinforcement(state, now)
        if state.clock.next_wave_ms <= 0:
            state = self.spawner.try_spawn_wave(state, now)

        # 4. Combat
        killed: list[Unit] = []
        if state.alive_count(Faction.FRIENDLY) and state.alive_count(Faction.HOSTILE):
            units = self.combat.resolve_tick(state.units, now)
            killed = [after for before, after in zip(state.units, units)
                      if before.is_alive and not after.is_alive]
            state = replace(state, units=tuple(units))

        # 5. Kill rewards
        old_rank = state.rank
        hostile_kills = sum(1 for u in killed if u.faction is Faction.HOSTILE)
        if hostile_kills:
            rank, points = award_rank_points(
                state.rank, state.rank_points,
                hostile_kills * self.config.rank_points_per_kill,
                max_rank=self.config.max_rank,
                base=self.config.rank_base_requirement,
                scaling=self.config.rank_scaling,
            )
            state = replace(
                state,
                ledger=credit_kill(state.ledger, self.config.kill_rewards, hostile_kills),
                rank=rank,
                rank_points=points,
            )
            if rank != old_rank:
                log.info("Promoted to rank %d", rank)

        # 6. Passive income
        income: Optional[dict[str, float]] = None
        if state.clock.next_income_ms <= 0:
            income = accrue_earnings(
                self.config.base_rates_per_hour,
                rank_multiplier(state.rank, self.config.rank_multipliers),
                self.config.passive_income_interval_ms,
            )
            state = replace(
                state,
                ledger=merge_earnings(state.ledger, income),
                clock=replace(state.clock, next_income_ms=self.config.passive_income_interval_ms),
            )

        # 7. Cleanup
        if any(not u.is_alive for u in state.units):
            state = replace(state, units=tuple(u for u in state.units if u.is_alive))

        self._emit_tick_events(state, first_new_id, killed, old_rank, income)
        return state

    def _emit_tick_events(
        self,
        state: SimulationState,
        first_new_id: int,
        killed: list[Unit],
        old_rank: int,
        income: Optional[dict[str, float]],
    ) -> None:
        if self._events is None:
            return
        # Units spawned this tick, including any already removed by cleanup
        spawned = sorted(
            (u for u in (*state.units, *killed) if u.unit_id >= first_new_id),
            key=lambda u: u.unit_id,
        )
        for unit in spawned:
            self._events.emit(UnitSpawned(unit.unit_id, unit.faction.value, unit.archetype))
        for unit in killed:
            self._events.emit(UnitKilled(unit.unit_id, unit.faction.value, unit.archetype))
        if state.rank != old_rank:
            self._events.emit(RankPromoted(old_rank=old_rank, new_rank=state.rank))
        if income is not None:
            self._events.emit(PassiveIncomeEarned(earnings=income))

    # -- Offline catch-up ------------------------------------------------

    def compute_catch_up(self, state: SimulationState, now: float) -> CatchUpResult:
        """Catch-up owed between the state's last-seen timestamp and ``now``."""
        last_seen = state.clock.last_tick_timestamp
        if last_seen is None:
            return CatchUpResult()
        return compute_catch_up(
            last_seen,
            now,
            rank_multiplier(state.rank, self.config.rank_multipliers),
            self.config.base_rates_per_hour,
            spawn_interval_ms=self.config.reinforcement_interval_ms,
            threshold_ms=self.config.offline_threshold_ms,
            max_spawns=self.config.max_offline_spawns,
        )

    def catch_up(self, state: SimulationState, now: float) -> tuple[SimulationState, CatchUpResult, int]:
        """Compute and apply catch-up; stamps ``now`` as the last-seen time.

        Returns:
            (new state, the computed result, units actually spawned).
        """
        result = self.compute_catch_up(state, now)
        state, spawned = apply_catch_up(state, result, self.spawner, state.clock.game_time_ms)
        state = replace(state, clock=replace(state.clock, last_tick_timestamp=now))
        return state, result, spawned
