"""State save — serializes the simulation state to YAML.

The host writes the state on shutdown and on every autosave so it can be
restored on the next startup and credited with offline progress.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

import yaml

from idlewar.models.state import SimulationClock, SimulationState
from idlewar.models.unit import Unit

log = logging.getLogger(__name__)

# Default path for the state file (relative to working directory)
DEFAULT_STATE_PATH = "state.yaml"

STATE_FORMAT_VERSION = 1


# ===================================================================
# Public API
# ===================================================================


async def save_state(state: SimulationState, path: str = DEFAULT_STATE_PATH) -> None:
    """Serialize the simulation state to a YAML file.

    The document is written to a temporary sibling first and moved into
    place, so a crash mid-write never leaves a truncated state file.

    Args:
        state: State to persist.
        path: Output file path.
    """
    document = dump_state(state)

    out = Path(path)
    tmp = out.with_suffix(".yaml.tmp")
    try:
        tmp.write_text(
            yaml.dump(document, default_flow_style=False, allow_unicode=True, sort_keys=False),
            encoding="utf-8",
        )
        tmp.replace(out)
        log.info("Simulation state saved to %s (%d units, game time %.0f ms)",
                 path, len(state.units), state.clock.game_time_ms)
    except Exception:
        log.exception("Failed to save simulation state to %s", path)
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise


def dump_state(state: SimulationState) -> dict[str, Any]:
    """Plain-dict form of a state, ready for ``yaml.dump``."""
    return {
        "meta": _serialize_meta(),
        "state": {
            "rank": state.rank,
            "rank_points": state.rank_points,
            "next_unit_id": state.next_unit_id,
            "resources": state.ledger.as_dict(),
            "clock": _serialize_clock(state.clock),
            "units": [_serialize_unit(u) for u in state.units],
        },
    }


# ===================================================================
# Meta
# ===================================================================

def _serialize_meta() -> dict[str, Any]:
    return {
        "version": STATE_FORMAT_VERSION,
        "saved_at": time.strftime("%Y-%m-%dT%H:%M:%S"),
        "saved_at_unix": time.time(),
    }


# ===================================================================
# Clock & units
# ===================================================================

def _serialize_clock(clock: SimulationClock) -> dict[str, Any]:
    return {
        "game_time_ms": clock.game_time_ms,
        "next_spawn_ms": clock.next_spawn_ms,
        "next_wave_ms": clock.next_wave_ms,
        "next_income_ms": clock.next_income_ms,
        "last_tick_timestamp": clock.last_tick_timestamp,
    }


def _serialize_unit(u: Unit) -> dict[str, Any]:
    return {
        "unit_id": u.unit_id,
        "archetype": u.archetype,
        "faction": u.faction.value,
        "x": u.x,
        "y": u.y,
        "health": u.stats.health,
        "max_health": u.stats.max_health,
        "attack": u.stats.attack,
        "defense": u.stats.defense,
        "speed": u.stats.speed,
        "range": u.stats.range,
        "last_attack_time": u.last_attack_time,
        "last_move_time": u.last_move_time,
        "spawned_at": u.spawned_at,
    }
