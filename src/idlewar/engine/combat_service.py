"""Combat service — nearest-enemy targeting, movement and damage.

Per-tick order (must be preserved):
1. Friendly units, in list order
2. Hostile units, in list order

Each unit picks the nearest living enemy, then either attacks (in range,
attack cooldown elapsed) or closes the distance (out of range, move
cooldown elapsed). Damage lands immediately, so a unit killed earlier in
the tick does not act and later units target around it.

Damage:
    floor(max(MIN_DAMAGE, attack - defense * DEFENSE_FACTOR) * crit)

where crit is CRIT_MULTIPLIER with probability CRIT_CHANCE, else 1.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import TYPE_CHECKING, Optional, Sequence

from idlewar.models.unit import Faction, Unit

if TYPE_CHECKING:
    from idlewar.loaders.game_config_loader import GameConfig
    from idlewar.util.rng import DRNG

log = logging.getLogger(__name__)


def find_nearest_enemy(unit: Unit, units: Sequence[Unit]) -> Optional[tuple[Unit, float]]:
    """Nearest living unit of another faction and its distance.

    Ties go to the first unit encountered in ``units``.
    """
    best: Optional[Unit] = None
    best_dist = math.inf
    for other in units:
        if other.faction is not unit.faction.opponent or not other.is_alive:
            continue
        dist = unit.distance_to(other)
        if dist < best_dist:
            best = other
            best_dist = dist
    if best is None:
        return None
    return best, best_dist


def _clamp(value: float, upper: float) -> float:
    """Clamp into the half-open interval [0, upper)."""
    return min(max(value, 0.0), math.nextafter(upper, 0.0))


class CombatService:
    """Resolves one combat step over a list of units.

    Args:
        config: Cooldowns, damage constants, field bounds.
        rng: Seedable random source for critical-hit rolls.
    """

    def __init__(self, config: GameConfig, rng: DRNG) -> None:
        self._config = config
        self._rng = rng

    # -- Tick ------------------------------------------------------------

    def resolve_tick(self, units: Sequence[Unit], now: float) -> list[Unit]:
        """Run one combat step and return updated copies of ``units``.

        The input units are never modified. Dead units stay in the result
        (``is_alive`` false); removing them is the caller's job.
        """
        working = [replace(u, stats=replace(u.stats)) for u in units]

        for faction in (Faction.FRIENDLY, Faction.HOSTILE):
            for unit in working:
                if unit.faction is faction and unit.is_alive:
                    self._act(unit, working, now)

        return working

    def _act(self, unit: Unit, units: list[Unit], now: float) -> None:
        found = find_nearest_enemy(unit, units)
        if found is None:
            return
        target, distance = found

        if distance <= unit.stats.range:
            if unit.can_attack(now, self._config.attack_cooldown_ms):
                self._attack(unit, target, now)
        elif unit.can_move(now, self._config.move_cooldown_ms):
            self._move_toward(unit, target, distance, now)

    # -- Attack ----------------------------------------------------------

    def calculate_damage(self, attacker: Unit, defender: Unit) -> tuple[int, bool]:
        """Roll one attack. Returns (damage, is_critical)."""
        is_critical = self._rng.bernoulli(self._config.crit_chance)
        base = max(self._config.min_damage,
                   attacker.stats.attack - defender.stats.defense * self._config.defense_factor)
        damage = base * self._config.crit_multiplier if is_critical else base
        return math.floor(damage), is_critical

    def _attack(self, attacker: Unit, defender: Unit, now: float) -> None:
        damage, is_critical = self.calculate_damage(attacker, defender)
        defender.stats.health = max(0.0, defender.stats.health - damage)
        attacker.last_attack_time = now
        log.debug("[HIT] Unit %d -> %d for %d%s (remaining health: %.1f)",
                  attacker.unit_id, defender.unit_id, damage,
                  " CRIT" if is_critical else "", defender.stats.health)
        if not defender.is_alive:
            log.info("[KILLED] Unit id=%d (%s) killed by id=%d",
                     defender.unit_id, defender.archetype, attacker.unit_id)

    # -- Movement --------------------------------------------------------

    def _move_toward(self, unit: Unit, target: Unit, distance: float, now: float) -> None:
        step = min(unit.stats.speed, distance - unit.stats.range)
        if step <= 0:
            return
        dx = (target.x - unit.x) / distance
        dy = (target.y - unit.y) / distance
        unit.x = _clamp(unit.x + dx * step, self._config.field_width)
        unit.y = _clamp(unit.y + dy * step, self._config.field_height)
        unit.last_move_time = now
