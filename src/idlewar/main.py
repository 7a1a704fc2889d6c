"""Simulation host entry point.

Initializes all components and starts the asyncio event loop:
1. Load configuration (game settings, unit catalog)
2. Create the simulation context (RNG, event bus, services)
3. Restore state and apply offline catch-up
4. Run the game loop until SIGINT / SIGTERM

Usage:
    python -m idlewar.main
    # or via entry point:
    idlewar --state_file saves/state.yaml
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from dataclasses import dataclass, field
from typing import Optional

from idlewar.engine.game_loop import GameLoop
from idlewar.engine.simulation import Simulation
from idlewar.loaders.catalog_loader import load_catalog
from idlewar.loaders.game_config_loader import DEFAULT_GAME_CONFIG_PATH, GameConfig, load_game_config
from idlewar.models.catalog import UnitCatalog
from idlewar.util.clock import SystemClock
from idlewar.util.errors import IdleWarError
from idlewar.util.events import EventBus, RankPromoted
from idlewar.util.rng import DRNG

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Container for all loaded configuration
# ---------------------------------------------------------------------------


@dataclass
class Configuration:
    """Holds all data loaded from config files."""

    game: GameConfig = field(default_factory=GameConfig)
    catalog: UnitCatalog = field(default_factory=UnitCatalog)


# ===================================================================
# 1. Load configuration
# ===================================================================


def load_configuration(config_path: str = DEFAULT_GAME_CONFIG_PATH) -> Configuration:
    """Load game settings and the unit catalog.

    Raises:
        ConfigurationError: if either file is malformed or out of range.
    """
    log.info("Loading configuration …")
    game_cfg = load_game_config(config_path)
    log.info("  game_config:  loaded (seed=%s)", game_cfg.seed)

    catalog = load_catalog(game_cfg.catalog_path)
    log.info("  catalog:      %d archetypes from %s", len(catalog), game_cfg.catalog_path)
    return Configuration(game=game_cfg, catalog=catalog)


# ===================================================================
# 2. Create the simulation and host
# ===================================================================


def create_game_loop(config: Configuration, state_file: Optional[str] = None) -> GameLoop:
    """Wire RNG, event bus, simulation and host loop together."""
    gc = config.game
    event_bus = EventBus()
    simulation = Simulation(gc, config.catalog, rng=DRNG(gc.seed), event_bus=event_bus)

    event_bus.on(RankPromoted, lambda evt: log.info(
        "Rank %d -> %d", evt.old_rank, evt.new_rank))

    return GameLoop(simulation, SystemClock(), event_bus,
                    state_path=state_file or gc.state_path)


# ===================================================================
# 3. Run
# ===================================================================


async def run_game_loop(game_loop: GameLoop) -> None:
    """Restore state, then tick until a shutdown signal arrives."""
    await game_loop.startup()

    loop = asyncio.get_running_loop()

    # Graceful shutdown on SIGINT / SIGTERM
    def _request_shutdown() -> None:
        log.info("Shutdown signal received — stopping …")
        game_loop.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_shutdown)

    log.info("Game loop running")
    await game_loop.run()
    log.info("  goodbye")


# ===================================================================
# Entry points
# ===================================================================


async def _start(config_path: str = DEFAULT_GAME_CONFIG_PATH, state_file: Optional[str] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("=== idlewar starting ===")

    config = load_configuration(config_path)
    game_loop = create_game_loop(config, state_file)
    await run_game_loop(game_loop)


def main() -> None:
    """Entry point for the simulation host.

    Supports command-line arguments:
        --config <path>      Game config file (default: config/game.yaml)
        --state_file <path>  State file to restore from and save to
    """
    config_path = DEFAULT_GAME_CONFIG_PATH
    state_file: Optional[str] = None

    for flag in ("--config", "--state_file"):
        if flag in sys.argv:
            idx = sys.argv.index(flag)
            if idx + 1 >= len(sys.argv):
                print(f"Error: {flag} requires an argument", file=sys.stderr)
                sys.exit(1)
            if flag == "--config":
                config_path = sys.argv[idx + 1]
            else:
                state_file = sys.argv[idx + 1]

    try:
        asyncio.run(_start(config_path=config_path, state_file=state_file))
    except IdleWarError as exc:
        log.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
