"""State load — restores the simulation state from a YAML dump.

Unlike a partially trusted cache, a state file that exists but cannot be
read back faithfully is rejected as a whole with InvalidStateError; the
caller decides whether to start fresh.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from idlewar.models.resources import ResourceLedger
from idlewar.models.state import SimulationClock, SimulationState
from idlewar.models.unit import Faction, Unit, UnitStats
from idlewar.persistence.state_save import DEFAULT_STATE_PATH
from idlewar.util.constants import RESOURCE_KINDS
from idlewar.util.errors import InvalidStateError

log = logging.getLogger(__name__)

_NUMBER = (int, float)


# ===================================================================
# Public API
# ===================================================================


async def load_state(
    path: str = DEFAULT_STATE_PATH,
    field_size: Optional[tuple[float, float]] = None,
) -> Optional[SimulationState]:
    """Load simulation state from a YAML file.

    Returns None if the file does not exist.

    Args:
        path: Path to the YAML state file.
        field_size: (width, height) every unit must lie within, if given.

    Raises:
        InvalidStateError: if the file cannot be parsed or its content is
            malformed.
    """
    state_file = Path(path)
    if not state_file.exists():
        log.info("No state file found at %s", path)
        return None

    try:
        raw = yaml.safe_load(state_file.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise InvalidStateError(f"Failed to parse state file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise InvalidStateError(f"State file {path} has unexpected format (not a mapping)")

    meta = raw.get("meta") or {}
    log.info("Restoring state from %s (saved at %s, version %s)",
             path, meta.get("saved_at", "?"), meta.get("version", "?"))

    state = restore_state(raw.get("state"), field_size)
    log.info("Restored %d units, rank %d, game time %.0f ms",
             len(state.units), state.rank, state.clock.game_time_ms)
    return state


def restore_state(
    raw: Any,
    field_size: Optional[tuple[float, float]] = None,
) -> SimulationState:
    """Build a SimulationState from the ``state`` section of a dump.

    Raises:
        InvalidStateError: on missing or mistyped fields, unknown factions
            or resource kinds, health outside [0, max_health], and units
            outside ``field_size`` when it is given.
    """
    d = _mapping(raw, "state")
    units = tuple(
        _deserialize_unit(_mapping(item, f"units[{i}]"))
        for i, item in enumerate(_list(d, "units"))
    )
    if field_size is not None:
        width, height = field_size
        for u in units:
            if not (0 <= u.x < width and 0 <= u.y < height):
                raise InvalidStateError(
                    f"Unit {u.unit_id} at ({u.x}, {u.y}) is outside the {width}x{height} field")
    ids = [u.unit_id for u in units]
    if len(set(ids)) != len(ids):
        raise InvalidStateError("Duplicate unit ids in state")

    next_unit_id = _int(d, "next_unit_id")
    if ids and next_unit_id <= max(ids):
        raise InvalidStateError(
            f"next_unit_id {next_unit_id} would reuse an existing unit id")

    rank = _int(d, "rank")
    if rank < 1:
        raise InvalidStateError(f"rank must be >= 1 (got {rank})")

    return SimulationState(
        units=units,
        ledger=_deserialize_ledger(_mapping(d.get("resources"), "resources")),
        clock=_deserialize_clock(_mapping(d.get("clock"), "clock")),
        rank=rank,
        rank_points=_float(d, "rank_points"),
        next_unit_id=next_unit_id,
    )


# ===================================================================
# Sections
# ===================================================================

def _deserialize_ledger(d: dict[str, Any]) -> ResourceLedger:
    missing = [kind for kind in RESOURCE_KINDS if kind not in d]
    if missing:
        raise InvalidStateError(f"resources is missing: {', '.join(missing)}")
    for kind, amount in d.items():
        if not isinstance(amount, _NUMBER) or isinstance(amount, bool):
            raise InvalidStateError(f"resources.{kind} must be a number")
    try:
        return ResourceLedger.from_amounts(d)
    except ValueError as exc:
        raise InvalidStateError(str(exc)) from exc


def _deserialize_clock(d: dict[str, Any]) -> SimulationClock:
    return SimulationClock(
        game_time_ms=_float(d, "game_time_ms"),
        next_spawn_ms=_float(d, "next_spawn_ms"),
        next_wave_ms=_float(d, "next_wave_ms"),
        next_income_ms=_float(d, "next_income_ms"),
        last_tick_timestamp=_optional_float(d, "last_tick_timestamp"),
    )


def _deserialize_unit(d: dict[str, Any]) -> Unit:
    try:
        faction = Faction(d.get("faction"))
    except ValueError:
        raise InvalidStateError(f"Unknown faction: {d.get('faction')!r}") from None

    archetype = d.get("archetype")
    if not isinstance(archetype, str) or not archetype:
        raise InvalidStateError("unit archetype must be a non-empty string")

    stats = UnitStats(
        health=_float(d, "health"),
        max_health=_float(d, "max_health"),
        attack=_float(d, "attack"),
        defense=_float(d, "defense"),
        speed=_float(d, "speed"),
        range=_float(d, "range"),
    )
    if not 0 <= stats.health <= stats.max_health:
        raise InvalidStateError(
            f"Unit {d.get('unit_id')}: health {stats.health} outside [0, {stats.max_health}]")

    return Unit(
        unit_id=_int(d, "unit_id"),
        archetype=archetype,
        faction=faction,
        x=_float(d, "x"),
        y=_float(d, "y"),
        stats=stats,
        last_attack_time=_optional_float(d, "last_attack_time"),
        last_move_time=_optional_float(d, "last_move_time"),
        spawned_at=_float(d, "spawned_at"),
    )


# ===================================================================
# Field helpers
# ===================================================================

def _mapping(value: Any, name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise InvalidStateError(f"{name} must be a mapping")
    return value


def _list(d: dict[str, Any], key: str) -> list[Any]:
    value = d.get(key)
    if not isinstance(value, list):
        raise InvalidStateError(f"{key} must be a list")
    return value


def _float(d: dict[str, Any], key: str) -> float:
    value = d.get(key)
    if not isinstance(value, _NUMBER) or isinstance(value, bool):
        raise InvalidStateError(f"{key} must be a number (got {value!r})")
    return float(value)


def _optional_float(d: dict[str, Any], key: str) -> Optional[float]:
    if key not in d:
        raise InvalidStateError(f"{key} is missing")
    if d[key] is None:
        return None
    return _float(d, key)


def _int(d: dict[str, Any], key: str) -> int:
    value = d.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidStateError(f"{key} must be an integer (got {value!r})")
    return value
