"""Host game loop — asyncio-driven fixed-cadence ticking.

Responsibilities:
- Restore state on startup and credit offline progress
- Feed the simulation wall-clock deltas (capped per step)
- Periodic state save, plus a final save when stopped
- Monitoring counters

The simulation core stays synchronous; this loop is the only place that
awaits, and it never starts a tick before the previous one returned.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Optional

from idlewar.persistence.state_load import load_state
from idlewar.persistence.state_save import DEFAULT_STATE_PATH, save_state
from idlewar.util.events import OfflineProgressApplied, StateSaved
from idlewar.util.types import format_resources, format_time

if TYPE_CHECKING:
    from idlewar.engine.simulation import Simulation
    from idlewar.models.state import SimulationState
    from idlewar.util.clock import Clock
    from idlewar.util.events import EventBus

log = logging.getLogger(__name__)


class GameLoop:
    """Runs a Simulation against a clock until stop() is called.

    Args:
        simulation: The simulation context to tick.
        clock: Wall-clock source (``SystemClock`` in production).
        event_bus: Bus for host events (catch-up, saves).
        state_path: Where state is loaded from and saved to.
    """

    def __init__(
        self,
        simulation: Simulation,
        clock: Clock,
        event_bus: Optional[EventBus] = None,
        state_path: str = DEFAULT_STATE_PATH,
    ) -> None:
        config = simulation.config
        self._sim = simulation
        self._clock = clock
        self._events = event_bus
        self._state_path = state_path
        self._step_interval = config.step_length_ms / 1000.0
        self._max_delta_ms = config.max_delta_ms
        self._autosave_interval_ms = config.autosave_interval_ms
        self._running = False

        self.state: Optional[SimulationState] = None
        self._last_tick_at: float = 0.0
        self._last_save_at: float = 0.0

        # --- Debug / monitoring counters ---
        self.tick_count: int = 0
        self.started_at: float = 0.0
        self.last_tick_dt: float = 0.0
        self.last_tick_duration_ms: float = 0.0
        self.avg_tick_duration_ms: float = 0.0
        self._tick_duration_sum: float = 0.0

    # -- Lifecycle -------------------------------------------------------

    async def startup(self) -> SimulationState:
        """Restore (or create) the state and apply offline catch-up.

        Raises:
            InvalidStateError: if a state file exists but is malformed.
        """
        now = self._clock.now()
        config = self._sim.config
        state = await load_state(self._state_path, (config.field_width, config.field_height))
        if state is None:
            log.info("Starting a fresh simulation")
            state = self._sim.new_state(timestamp=now)
        else:
            state, result, spawned = self._sim.catch_up(state, now)
            if not result.is_empty:
                log.info("Catch-up applied: %s offline, earned %s",
                         format_time(result.elapsed_ms / 1000.0),
                         format_resources(result.earnings))
                if self._events is not None:
                    self._events.emit(OfflineProgressApplied(
                        elapsed_ms=result.elapsed_ms,
                        earnings=dict(result.earnings),
                        units_spawned=spawned,
                    ))

        self.state = state
        self._last_tick_at = now
        self._last_save_at = now
        return state

    async def run(self) -> None:
        """Start the loop. Runs until stop() is called, then saves once more."""
        if self.state is None:
            await self.startup()

        self._running = True
        self.started_at = time.monotonic()
        while self._running:
            await self.step()
            await asyncio.sleep(self._step_interval)

        await self.save()

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the loop started."""
        if self.started_at == 0.0:
            return 0.0
        return time.monotonic() - self.started_at

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Signal the loop to stop after the current step."""
        self._running = False

    # -- Step ------------------------------------------------------------

    async def step(self) -> SimulationState:
        """One host step: tick with the capped wall-clock delta, autosave if due."""
        if self.state is None:
            raise RuntimeError("GameLoop.startup() must run before step()")

        now = self._clock.now()
        dt = min(max(now - self._last_tick_at, 0.0), self._max_delta_ms)
        self._last_tick_at = now

        t0 = time.monotonic()
        self.state = self._sim.tick(self.state, dt, timestamp=now)
        elapsed_ms = (time.monotonic() - t0) * 1000

        self.tick_count += 1
        self.last_tick_dt = dt
        self.last_tick_duration_ms = elapsed_ms
        self._tick_duration_sum += elapsed_ms
        self.avg_tick_duration_ms = self._tick_duration_sum / self.tick_count

        if now - self._last_save_at >= self._autosave_interval_ms:
            await self.save()
        return self.state

    async def save(self) -> None:
        """Persist the current state and notify subscribers."""
        if self.state is None:
            return
        await save_state(self.state, self._state_path)
        self._last_save_at = self._clock.now()
        if self._events is not None:
            self._events.emit(StateSaved(path=self._state_path,
                                         game_time_ms=self.state.clock.game_time_ms))
