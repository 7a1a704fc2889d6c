"""Spawn service — reinforcements for the player, waves for the opposition.

Both paths share the same timer rule: once a countdown is due the spawn is
attempted and the countdown resets to its full interval, whether or not
capacity allowed a unit to be created. Capacity-blocked checks still use
up the timer slot, so a burst of spawns cannot pile up once space frees.

Every public method returns a new SimulationState; the input is untouched.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from idlewar.models.unit import Faction, Unit

if TYPE_CHECKING:
    from idlewar.loaders.game_config_loader import GameConfig
    from idlewar.models.catalog import UnitCatalog
    from idlewar.models.state import SimulationState
    from idlewar.util.rng import DRNG

log = logging.getLogger(__name__)


class SpawnService:
    """Creates units on fixed intervals, bounded by per-faction capacity.

    Args:
        config: Capacities, intervals, field bounds, spawn margin.
        catalog: Archetypes to draw from.
        rng: Seedable random source for archetype, count and position.
    """

    def __init__(self, config: GameConfig, catalog: UnitCatalog, rng: DRNG) -> None:
        self._config = config
        self._catalog = catalog
        self._rng = rng

    # -- Timed paths -----------------------------------------------------

    def try_spawn_reinforcement(self, state: SimulationState, now: float) -> SimulationState:
        """Spawn one friendly unit if the reinforcement countdown is due.

        Args:
            state: Current simulation state.
            now: Simulation time stamped on the new unit.
        """
        if state.clock.next_spawn_ms > 0:
            return state

        if state.alive_count(Faction.FRIENDLY) < self._config.max_friendly_units:
            state = self.spawn_units(state, Faction.FRIENDLY, 1, now)
        else:
            log.debug("Reinforcement skipped: friendly capacity %d reached",
                      self._config.max_friendly_units)

        return replace(state, clock=replace(
            state.clock, next_spawn_ms=self._config.reinforcement_interval_ms))

    def try_spawn_wave(self, state: SimulationState, now: float) -> SimulationState:
        """Spawn 1..min(max_wave_size, free capacity) hostile units if the wave countdown is due."""
        if state.clock.next_wave_ms > 0:
            return state

        remaining = self._config.max_hostile_units - state.alive_count(Faction.HOSTILE)
        if remaining > 0:
            count = self._rng.integer(1, min(self._config.max_wave_size, remaining))
            state = self.spawn_units(state, Faction.HOSTILE, count, now)
            log.info("[WAVE] %d hostile units arrived (alive=%d/%d)",
                     count, state.alive_count(Faction.HOSTILE), self._config.max_hostile_units)
        else:
            log.debug("Wave skipped: hostile capacity %d reached", self._config.max_hostile_units)

        return replace(state, clock=replace(
            state.clock, next_wave_ms=self._config.wave_interval_ms))

    # -- Unit creation ---------------------------------------------------

    def spawn_units(
        self,
        state: SimulationState,
        faction: Faction,
        count: int,
        now: float,
    ) -> SimulationState:
        """Append up to ``count`` new units of a faction, never exceeding capacity.

        Does not touch any countdown. Returns the state unchanged when there
        is no room.
        """
        free = self._config.capacity(faction) - state.alive_count(faction)
        count = min(count, free)
        if count <= 0:
            return state

        next_id = state.next_unit_id
        new_units: list[Unit] = []
        for _ in range(count):
            unit = self._create_unit(next_id, faction, now)
            new_units.append(unit)
            next_id += 1
            log.info("[SPAWN] Unit id=%d (%s, %s) at (%.1f, %.1f)",
                     unit.unit_id, unit.archetype, faction.value, unit.x, unit.y)

        return replace(state, units=state.units + tuple(new_units), next_unit_id=next_id)

    def _create_unit(self, unit_id: int, faction: Faction, now: float) -> Unit:
        """Draw an archetype uniformly from the faction's spawnable subset."""
        pool = self._catalog.spawnable(faction)
        archetype = pool[self._rng.index(len(pool))]
        margin = self._config.spawn_margin
        return Unit(
            unit_id=unit_id,
            archetype=archetype.name,
            faction=faction,
            x=self._rng.uniform(margin, self._config.field_width - margin),
            y=self._rng.uniform(margin, self._config.field_height - margin),
            stats=archetype.make_stats(),
            spawned_at=now,
        )
