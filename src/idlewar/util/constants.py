"""Game constants — timing, combat tuning, rewards, thresholds.

Defaults for every tunable value live here; GameConfig copies them so
config/game.yaml only needs to list what it overrides.
"""

# -- Resource kinds ------------------------------------------------------

CREDITS = "credits"
MATERIALS = "materials"
EXPERIENCE = "experience"

RESOURCE_KINDS: tuple[str, ...] = (CREDITS, MATERIALS, EXPERIENCE)
"""The fixed set of ledger resource kinds, in display order."""

# -- Timing --------------------------------------------------------------

MS_PER_HOUR: float = 3_600_000.0

STEP_LENGTH_MS: float = 100.0
"""Host loop tick interval in milliseconds."""

MAX_DELTA_MS: float = 1000.0
"""Largest wall-clock delta fed into a single live tick."""

AUTOSAVE_INTERVAL_MS: float = 30_000.0

REINFORCEMENT_INTERVAL_MS: float = 60_000.0
"""One friendly reinforcement per minute."""

WAVE_INTERVAL_MS: float = 10_000.0
"""Hostile wave every ten seconds."""

PASSIVE_INCOME_INTERVAL_MS: float = 60_000.0

# -- Field ---------------------------------------------------------------

FIELD_WIDTH: float = 800.0
FIELD_HEIGHT: float = 600.0
SPAWN_MARGIN: float = 100.0

# -- Capacity ------------------------------------------------------------

MAX_FRIENDLY_UNITS: int = 10
MAX_HOSTILE_UNITS: int = 10
MAX_WAVE_SIZE: int = 3

# -- Combat --------------------------------------------------------------

ATTACK_COOLDOWN_MS: float = 1000.0
MOVE_COOLDOWN_MS: float = 500.0
MIN_DAMAGE: float = 8.0
DEFENSE_FACTOR: float = 0.2
CRIT_CHANCE: float = 0.1
CRIT_MULTIPLIER: float = 2.0

# -- Rewards & offline ---------------------------------------------------

KILL_REWARDS: dict[str, float] = {CREDITS: 5.0, MATERIALS: 2.0, EXPERIENCE: 10.0}

BASE_RATES_PER_HOUR: dict[str, float] = {CREDITS: 100.0, MATERIALS: 50.0, EXPERIENCE: 25.0}

MIN_OFFLINE_THRESHOLD_MS: float = 60_000.0
"""Absences shorter than a minute earn nothing (tab switches, reloads)."""

MAX_OFFLINE_SPAWNS: int = 100

# -- Progression ---------------------------------------------------------

RANK_POINTS_PER_KILL: float = 10.0
RANK_BASE_REQUIREMENT: float = 100.0
RANK_SCALING: float = 1.8
MAX_RANK: int = 20

RANK_MULTIPLIERS: tuple[float, ...] = (1.0, 1.2, 1.5, 2.0, 2.5, 3.0, 4.0, 5.0, 7.0, 10.0)
"""Earnings multiplier per rank (index 0 = rank 1); higher ranks use the last entry."""
