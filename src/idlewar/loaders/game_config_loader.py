"""Game configuration — loads tunable constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then passed (or injected) wherever constants are needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional, Tuple

import yaml

from idlewar.models.unit import Faction
from idlewar.util import constants as C
from idlewar.util.errors import ConfigurationError

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class GameConfig:
    """All tunable gameplay constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so the simulation can start even without the file.
    """

    # -- Field -------------------------------------------------------
    field_width: float = C.FIELD_WIDTH
    field_height: float = C.FIELD_HEIGHT
    spawn_margin: float = C.SPAWN_MARGIN

    # -- Capacity & spawning -----------------------------------------
    max_friendly_units: int = C.MAX_FRIENDLY_UNITS
    max_hostile_units: int = C.MAX_HOSTILE_UNITS
    max_wave_size: int = C.MAX_WAVE_SIZE
    reinforcement_interval_ms: float = C.REINFORCEMENT_INTERVAL_MS
    wave_interval_ms: float = C.WAVE_INTERVAL_MS

    # -- Combat ------------------------------------------------------
    attack_cooldown_ms: float = C.ATTACK_COOLDOWN_MS
    move_cooldown_ms: float = C.MOVE_COOLDOWN_MS
    min_damage: float = C.MIN_DAMAGE
    defense_factor: float = C.DEFENSE_FACTOR
    crit_chance: float = C.CRIT_CHANCE
    crit_multiplier: float = C.CRIT_MULTIPLIER

    # -- Economy -----------------------------------------------------
    kill_rewards: Dict[str, float] = field(default_factory=lambda: dict(C.KILL_REWARDS))
    starting_resources: Dict[str, float] = field(default_factory=lambda: {
        kind: 0.0 for kind in C.RESOURCE_KINDS
    })
    base_rates_per_hour: Dict[str, float] = field(default_factory=lambda: dict(C.BASE_RATES_PER_HOUR))
    passive_income_interval_ms: float = C.PASSIVE_INCOME_INTERVAL_MS

    # -- Offline catch-up --------------------------------------------
    offline_threshold_ms: float = C.MIN_OFFLINE_THRESHOLD_MS
    max_offline_spawns: int = C.MAX_OFFLINE_SPAWNS

    # -- Progression -------------------------------------------------
    rank_points_per_kill: float = C.RANK_POINTS_PER_KILL
    rank_base_requirement: float = C.RANK_BASE_REQUIREMENT
    rank_scaling: float = C.RANK_SCALING
    max_rank: int = C.MAX_RANK
    rank_multipliers: Tuple[float, ...] = C.RANK_MULTIPLIERS

    # -- Host --------------------------------------------------------
    step_length_ms: float = C.STEP_LENGTH_MS
    max_delta_ms: float = C.MAX_DELTA_MS
    autosave_interval_ms: float = C.AUTOSAVE_INTERVAL_MS
    seed: Optional[int] = None
    catalog_path: str = "config/units.yaml"
    state_path: str = "state.yaml"

    # -- Lookups -----------------------------------------------------

    def capacity(self, faction: Faction) -> int:
        """Maximum number of living units for a faction."""
        if faction is Faction.FRIENDLY:
            return self.max_friendly_units
        return self.max_hostile_units

    # -- Validation --------------------------------------------------

    _INT_FIELDS = ("max_friendly_units", "max_hostile_units", "max_wave_size",
                   "max_rank", "max_offline_spawns")
    _TABLE_FIELDS = ("kill_rewards", "starting_resources", "base_rates_per_hour")

    def _check_types(self) -> None:
        """Raise ConfigurationError for values of the wrong YAML type."""
        for f in fields(self):
            name, value = f.name, getattr(self, f.name)
            if name in self._INT_FIELDS:
                if not isinstance(value, int) or isinstance(value, bool):
                    raise ConfigurationError(f"{name} must be an integer (got {value!r})")
            elif name in self._TABLE_FIELDS:
                if not isinstance(value, dict):
                    raise ConfigurationError(f"{name} must be a mapping (got {value!r})")
                for kind, amount in value.items():
                    if not _is_number(amount):
                        raise ConfigurationError(f"{name}: {kind} must be a number (got {amount!r})")
            elif name == "rank_multipliers":
                if not isinstance(value, (tuple, list)) or not all(_is_number(m) for m in value):
                    raise ConfigurationError(f"rank_multipliers must be a list of numbers (got {value!r})")
            elif name == "seed":
                if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
                    raise ConfigurationError(f"seed must be an integer (got {value!r})")
            elif name in ("catalog_path", "state_path"):
                if not isinstance(value, str):
                    raise ConfigurationError(f"{name} must be a string (got {value!r})")
            elif not _is_number(value):
                raise ConfigurationError(f"{name} must be a number (got {value!r})")

    def validate(self) -> None:
        """Raise ConfigurationError if any value is mistyped or out of range."""
        self._check_types()
        if self.field_width <= 0 or self.field_height <= 0:
            raise ConfigurationError(
                f"Field size must be positive (got {self.field_width}x{self.field_height})")
        if self.spawn_margin < 0 or 2 * self.spawn_margin >= min(self.field_width, self.field_height):
            raise ConfigurationError(
                f"Spawn margin {self.spawn_margin} leaves no room in a "
                f"{self.field_width}x{self.field_height} field")

        for name in ("reinforcement_interval_ms", "wave_interval_ms",
                     "passive_income_interval_ms", "step_length_ms",
                     "max_delta_ms", "autosave_interval_ms"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive (got {getattr(self, name)})")

        for name in ("attack_cooldown_ms", "move_cooldown_ms", "offline_threshold_ms",
                     "min_damage", "defense_factor", "rank_points_per_kill"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative (got {getattr(self, name)})")

        for name in ("max_friendly_units", "max_hostile_units", "max_wave_size", "max_rank"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1 (got {getattr(self, name)})")
        if self.max_offline_spawns < 0:
            raise ConfigurationError(f"max_offline_spawns must not be negative (got {self.max_offline_spawns})")

        if not 0.0 <= self.crit_chance <= 1.0:
            raise ConfigurationError(f"crit_chance must be in [0, 1] (got {self.crit_chance})")
        if self.crit_multiplier < 1.0:
            raise ConfigurationError(f"crit_multiplier must be >= 1 (got {self.crit_multiplier})")

        if self.rank_base_requirement <= 0 or self.rank_scaling < 1.0:
            raise ConfigurationError("rank_base_requirement must be positive and rank_scaling >= 1")
        if not self.rank_multipliers or any(m <= 0 for m in self.rank_multipliers):
            raise ConfigurationError("rank_multipliers must be a non-empty list of positive values")

        for table_name in ("kill_rewards", "starting_resources", "base_rates_per_hour"):
            table = getattr(self, table_name)
            for kind, amount in table.items():
                if kind not in C.RESOURCE_KINDS:
                    raise ConfigurationError(f"{table_name}: unknown resource kind {kind!r}")
                if amount < 0:
                    raise ConfigurationError(f"{table_name}: {kind} must not be negative (got {amount})")


def load_game_config(path: str = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.  The result
    is validated either way.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s, using defaults", p)
        cfg = GameConfig()
        cfg.validate()
        return cfg

    with p.open() as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Cannot parse game config {p}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Game config {p} must be a mapping")

    log.info("Loaded game config from %s (%d keys)", p, len(raw))

    unknown = sorted(k for k in raw if k not in GameConfig.__dataclass_fields__)
    if unknown:
        log.warning("Ignoring unknown game config keys: %s", ", ".join(unknown))

    # Lists in YAML become tuples in the frozen multiplier table
    multipliers = raw.pop("rank_multipliers", None)

    cfg = GameConfig(**{
        k: v for k, v in raw.items()
        if k in GameConfig.__dataclass_fields__
    })
    if multipliers is not None:
        if not isinstance(multipliers, list):
            raise ConfigurationError(f"rank_multipliers must be a list (got {multipliers!r})")
        cfg.rank_multipliers = tuple(multipliers)
    cfg.validate()
    cfg.rank_multipliers = tuple(float(m) for m in cfg.rank_multipliers)
    return cfg
