"""Unit model — a single archetype instance placed on the battlefield.

Units are spawned by the SpawnService, moved and damaged by the
CombatService, and removed by the Simulation once their health is gone.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Faction(Enum):
    """Side affiliation of a unit."""

    FRIENDLY = "friendly"
    HOSTILE = "hostile"

    @property
    def opponent(self) -> Faction:
        return Faction.HOSTILE if self is Faction.FRIENDLY else Faction.FRIENDLY


class UnitType(Enum):
    """Broad archetype class, carried for presentation and catalog filtering."""

    INFANTRY = "infantry"
    VEHICLE = "vehicle"
    FLYER = "flyer"


@dataclass
class UnitStats:
    """Combat statistics of a unit.

    Attributes:
        health: Current hit points, clamped to [0, max_health].
        max_health: Maximum hit points.
        attack: Raw damage before defense reduction.
        defense: Reduces incoming damage by ``defense * DEFENSE_FACTOR``.
        speed: Field units moved per move step.
        range: Distance at which the unit can attack.
    """

    health: float
    max_health: float
    attack: float
    defense: float
    speed: float
    range: float


@dataclass
class Unit:
    """A unit on the field.

    Attributes:
        unit_id: Unique instance ID, allocated from the state counter.
        archetype: Catalog archetype name.
        faction: Side the unit fights for.
        x: Horizontal position in [0, field_width).
        y: Vertical position in [0, field_height).
        stats: Combat statistics (health is mutated by combat).
        last_attack_time: Simulation ms of the last attack, None if never.
        last_move_time: Simulation ms of the last move, None if never.
        spawned_at: Simulation ms at which the unit was created.
    """

    unit_id: int
    archetype: str
    faction: Faction
    x: float
    y: float
    stats: UnitStats
    last_attack_time: Optional[float] = None
    last_move_time: Optional[float] = None
    spawned_at: float = 0.0

    # -- Derived properties ----------------------------------------------

    @property
    def is_alive(self) -> bool:
        return self.stats.health > 0

    def distance_to(self, other: Unit) -> float:
        """Euclidean distance between two units."""
        dx = other.x - self.x
        dy = other.y - self.y
        return (dx * dx + dy * dy) ** 0.5

    def can_attack(self, now: float, cooldown_ms: float) -> bool:
        return self.last_attack_time is None or now - self.last_attack_time >= cooldown_ms

    def can_move(self, now: float, cooldown_ms: float) -> bool:
        return self.last_move_time is None or now - self.last_move_time >= cooldown_ms
