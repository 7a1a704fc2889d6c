"""Tests for offline catch-up computation and application."""

import pytest

from idlewar.engine.offline import CatchUpResult, apply_catch_up, compute_catch_up
from idlewar.engine.spawner import SpawnService
from idlewar.loaders.game_config_loader import GameConfig
from idlewar.models.catalog import Archetype, UnitCatalog
from idlewar.models.state import SimulationState
from idlewar.models.unit import Faction
from idlewar.util.constants import BASE_RATES_PER_HOUR
from idlewar.util.rng import DRNG

HOUR_MS = 3_600_000.0


def _make_spawner(**overrides) -> SpawnService:
    catalog = UnitCatalog()
    catalog.add(Archetype("Tactical Marine", Faction.FRIENDLY))
    catalog.add(Archetype("Ork Boy", Faction.HOSTILE))
    return SpawnService(GameConfig(**overrides), catalog, DRNG(3))


class TestComputeCatchUp:
    def test_zero_elapsed_earns_nothing(self):
        result = compute_catch_up(1_000_000.0, 1_000_000.0, 1.0, BASE_RATES_PER_HOUR)
        assert result.units_to_spawn == 0
        assert all(v == 0 for v in result.earnings.values())
        assert result.is_empty

    def test_below_threshold_earns_nothing(self):
        result = compute_catch_up(0.0, 59_999.0, 1.0, BASE_RATES_PER_HOUR)
        assert result.is_empty
        assert result.elapsed_ms == 0.0

    def test_clock_skew_earns_nothing(self):
        result = compute_catch_up(10 * HOUR_MS, HOUR_MS, 1.0, BASE_RATES_PER_HOUR, threshold_ms=0.0)
        assert result.is_empty

    def test_two_hours_at_multiplier(self):
        result = compute_catch_up(0.0, 2 * HOUR_MS, 2.5, BASE_RATES_PER_HOUR)
        assert result.earnings["credits"] == 500.0
        assert result.earnings["materials"] == 250.0
        assert result.earnings["experience"] == 125.0
        assert result.units_to_spawn == 100
        assert result.elapsed_ms == 2 * HOUR_MS

    def test_spawns_one_per_interval(self):
        result = compute_catch_up(0.0, 5.5 * 60_000, 1.0, BASE_RATES_PER_HOUR)
        assert result.units_to_spawn == 5

    def test_spawn_count_capped(self):
        result = compute_catch_up(0.0, 48 * HOUR_MS, 1.0, BASE_RATES_PER_HOUR, max_spawns=7)
        assert result.units_to_spawn == 7


class TestApplyCatchUp:
    def test_merges_earnings_and_spawns_up_to_capacity(self):
        spawner = _make_spawner()
        result = CatchUpResult(earnings={"credits": 500.0}, units_to_spawn=25, elapsed_ms=HOUR_MS)

        state, spawned = apply_catch_up(SimulationState(), result, spawner, now=0.0)

        assert spawned == 10
        assert state.alive_count(Faction.FRIENDLY) == 10
        assert state.alive_count(Faction.HOSTILE) == 0
        assert state.ledger["credits"] == 500.0

    def test_empty_result_returns_same_state(self):
        before = SimulationState()
        state, spawned = apply_catch_up(before, CatchUpResult(), _make_spawner(), now=0.0)
        assert state is before
        assert spawned == 0

    def test_timers_untouched(self):
        spawner = _make_spawner()
        before = SimulationState()
        result = CatchUpResult(earnings={"credits": 1.0}, units_to_spawn=1, elapsed_ms=HOUR_MS)
        state, _ = apply_catch_up(before, result, spawner, now=0.0)
        assert state.clock == before.clock


@pytest.mark.parametrize("hours", [1, 3, 10])
def test_earnings_scale_linearly_with_whole_hours(hours):
    result = compute_catch_up(0.0, hours * HOUR_MS, 1.0, BASE_RATES_PER_HOUR)
    assert result.earnings["credits"] == 100.0 * hours
