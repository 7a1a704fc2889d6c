"""Tests for the asyncio host loop: startup, catch-up, stepping and saving."""

from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from idlewar.engine.game_loop import GameLoop
from idlewar.engine.simulation import Simulation
from idlewar.loaders.game_config_loader import GameConfig
from idlewar.models.catalog import Archetype, UnitCatalog
from idlewar.models.unit import Faction
from idlewar.persistence.state_load import load_state
from idlewar.persistence.state_save import save_state
from idlewar.util.clock import ManualClock
from idlewar.util.errors import InvalidStateError
from idlewar.util.events import EventBus, OfflineProgressApplied, StateSaved

HOUR_MS = 3_600_000.0


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

def _make_loop(tmp_path, clock: ManualClock, bus: EventBus | None = None, **overrides) -> GameLoop:
    catalog = UnitCatalog()
    catalog.add(Archetype("Tactical Marine", Faction.FRIENDLY))
    catalog.add(Archetype("Ork Boy", Faction.HOSTILE))
    sim = Simulation(GameConfig(seed=1, **overrides), catalog, event_bus=bus)
    return GameLoop(sim, clock, bus, state_path=str(tmp_path / "state.yaml"))


def _collect(bus: EventBus, event_type) -> list:
    received = []
    bus.on(event_type, received.append)
    return received


# -------------------------------------------------------------------
# Startup
# -------------------------------------------------------------------

class TestStartup:
    @pytest.mark.asyncio
    async def test_fresh_start_without_state_file(self, tmp_path):
        bus = EventBus()
        applied = _collect(bus, OfflineProgressApplied)
        loop = _make_loop(tmp_path, ManualClock(10_000.0), bus)

        state = await loop.startup()

        assert state.units == ()
        assert state.clock.last_tick_timestamp == 10_000.0
        assert applied == []

    @pytest.mark.asyncio
    async def test_restored_state_gets_catch_up(self, tmp_path):
        bus = EventBus()
        applied = _collect(bus, OfflineProgressApplied)
        clock = ManualClock(0.0)
        loop = _make_loop(tmp_path, clock, bus)
        saved = replace(loop._sim.new_state(timestamp=0.0), rank=5)
        await save_state(saved, str(tmp_path / "state.yaml"))

        clock.set(2 * HOUR_MS)
        state = await loop.startup()

        assert state.ledger["credits"] == 500.0
        assert state.alive_count(Faction.FRIENDLY) == 10
        assert len(applied) == 1
        assert applied[0].units_spawned == 10
        assert applied[0].elapsed_ms == 2 * HOUR_MS

    @pytest.mark.asyncio
    async def test_corrupt_state_file_raises(self, tmp_path):
        (tmp_path / "state.yaml").write_text("state: {rank: soon}\n", encoding="utf-8")
        loop = _make_loop(tmp_path, ManualClock())
        with pytest.raises(InvalidStateError):
            await loop.startup()


# -------------------------------------------------------------------
# Stepping
# -------------------------------------------------------------------

class TestStep:
    @pytest.mark.asyncio
    async def test_step_before_startup_fails(self, tmp_path):
        loop = _make_loop(tmp_path, ManualClock())
        with pytest.raises(RuntimeError):
            await loop.step()

    @pytest.mark.asyncio
    async def test_delta_capped(self, tmp_path):
        clock = ManualClock(0.0)
        loop = _make_loop(tmp_path, clock, max_delta_ms=1000.0)
        await loop.startup()

        clock.advance(5000.0)
        state = await loop.step()

        assert loop.last_tick_dt == 1000.0
        assert state.clock.game_time_ms == 1000.0
        assert state.clock.last_tick_timestamp == 5000.0
        assert loop.tick_count == 1

    @pytest.mark.asyncio
    async def test_autosave_when_due(self, tmp_path):
        bus = EventBus()
        saved = _collect(bus, StateSaved)
        clock = ManualClock(0.0)
        loop = _make_loop(tmp_path, clock, bus, autosave_interval_ms=1000.0)
        await loop.startup()

        clock.advance(500.0)
        await loop.step()
        assert saved == []

        clock.advance(600.0)
        await loop.step()
        assert len(saved) == 1
        restored = await load_state(str(tmp_path / "state.yaml"))
        assert restored == loop.state


# -------------------------------------------------------------------
# Run / stop
# -------------------------------------------------------------------

class TestRun:
    @pytest.mark.asyncio
    async def test_run_until_stopped_then_saves(self, tmp_path):
        bus = EventBus()
        saved = _collect(bus, StateSaved)
        loop = _make_loop(tmp_path, ManualClock(0.0), bus, step_length_ms=1.0)

        task = asyncio.create_task(loop.run())
        await asyncio.sleep(0.05)
        assert loop.is_running
        loop.stop()
        await task

        assert not loop.is_running
        assert loop.tick_count > 0
        assert loop.uptime_seconds > 0
        assert len(saved) == 1
        assert (tmp_path / "state.yaml").exists()
