"""Unit catalog models.

Archetypes are static templates loaded from config/units.yaml via the
catalog_loader. The SpawnService draws from each faction's spawnable subset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from idlewar.models.unit import Faction, UnitStats, UnitType


@dataclass(frozen=True)
class Archetype:
    """A named, statically defined unit template.

    Attributes:
        name: Unique archetype name (also the unit's display name).
        faction: Faction this archetype belongs to.
        unit_type: Infantry, vehicle or flyer.
        max_health: Starting and maximum hit points.
        attack: Attack stat.
        defense: Defense stat.
        speed: Movement per step.
        range: Attack range.
        spawnable: Whether reinforcements / waves may draw this archetype.
    """

    name: str
    faction: Faction
    unit_type: UnitType = UnitType.INFANTRY
    max_health: float = 100.0
    attack: float = 10.0
    defense: float = 5.0
    speed: float = 5.0
    range: float = 30.0
    spawnable: bool = True

    def make_stats(self) -> UnitStats:
        """Fresh stats block at full health."""
        return UnitStats(
            health=self.max_health,
            max_health=self.max_health,
            attack=self.attack,
            defense=self.defense,
            speed=self.speed,
            range=self.range,
        )


@dataclass
class UnitCatalog:
    """All archetypes, keyed by name, in declaration order."""

    archetypes: dict[str, Archetype] = field(default_factory=dict)

    def add(self, archetype: Archetype) -> None:
        self.archetypes[archetype.name] = archetype

    def get(self, name: str) -> Optional[Archetype]:
        return self.archetypes.get(name)

    def for_faction(self, faction: Faction) -> list[Archetype]:
        return [a for a in self.archetypes.values() if a.faction is faction]

    def spawnable(self, faction: Faction) -> list[Archetype]:
        """The subset the spawner draws from, in declaration order."""
        return [a for a in self.for_faction(faction) if a.spawnable]

    def __len__(self) -> int:
        return len(self.archetypes)
