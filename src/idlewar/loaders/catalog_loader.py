"""Catalog loader — parses config/units.yaml into a UnitCatalog.

File layout: one top-level section per faction, each mapping archetype
names to their stats::

    friendly:
      Tactical Marine:
        type: infantry
        health: 100
        attack: 15
        defense: 10
        speed: 5
        range: 50
    hostile:
      ...
"""

from __future__ import annotations

from pathlib import Path

import yaml

from idlewar.models.catalog import Archetype, UnitCatalog
from idlewar.models.unit import Faction, UnitType
from idlewar.util.errors import ConfigurationError

_STAT_KEYS = ("health", "attack", "defense", "speed", "range")


def _parse_archetype(faction: Faction, name: str, attrs: dict) -> Archetype:
    """Parse one archetype entry; missing stats are a configuration error."""
    missing = [k for k in _STAT_KEYS if k not in attrs]
    if missing:
        raise ConfigurationError(f"Archetype {name!r} is missing stats: {', '.join(missing)}")
    try:
        unit_type = UnitType(attrs.get("type", UnitType.INFANTRY.value))
    except ValueError:
        raise ConfigurationError(f"Archetype {name!r} has unknown type {attrs.get('type')!r}") from None

    spawnable = attrs.get("spawnable", True)
    if not isinstance(spawnable, bool):
        raise ConfigurationError(f"Archetype {name!r}: spawnable must be true or false")
    try:
        archetype = Archetype(
            name=name,
            faction=faction,
            unit_type=unit_type,
            max_health=float(attrs["health"]),
            attack=float(attrs["attack"]),
            defense=float(attrs["defense"]),
            speed=float(attrs["speed"]),
            range=float(attrs["range"]),
            spawnable=spawnable,
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Archetype {name!r} has a non-numeric stat: {exc}") from exc
    if archetype.max_health <= 0:
        raise ConfigurationError(f"Archetype {name!r} must have positive health")
    if min(archetype.attack, archetype.defense, archetype.speed, archetype.range) < 0:
        raise ConfigurationError(f"Archetype {name!r} has a negative stat")
    return archetype


def parse_catalog(data: dict) -> UnitCatalog:
    """Build a catalog from an already-parsed YAML mapping.

    Every faction needs at least one spawnable archetype, otherwise the
    spawner would have nothing to draw from.
    """
    catalog = UnitCatalog()
    for faction in Faction:
        section = data.get(faction.value) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"Catalog section {faction.value!r} must be a mapping")
        for name, attrs in section.items():
            if not isinstance(attrs, dict):
                raise ConfigurationError(f"Archetype {name!r} in {faction.value!r} must be a mapping of stats")
            if name in catalog.archetypes:
                raise ConfigurationError(f"Duplicate archetype name {name!r}")
            catalog.add(_parse_archetype(faction, name, attrs))

    for faction in Faction:
        if not catalog.spawnable(faction):
            raise ConfigurationError(f"No spawnable archetypes for faction {faction.value!r}")
    return catalog


def load_catalog(path: str | Path = "config/units.yaml") -> UnitCatalog:
    """Load the unit catalog from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Unit catalog not found at {path}")
    with path.open() as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Cannot parse unit catalog {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Unit catalog {path} must be a mapping")
    return parse_catalog(data)
