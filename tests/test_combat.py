"""Tests for CombatService: targeting, movement, damage and cooldowns."""

import pytest

from idlewar.engine.combat_service import CombatService, find_nearest_enemy
from idlewar.loaders.game_config_loader import GameConfig
from idlewar.models.unit import Faction, Unit, UnitStats
from idlewar.util.rng import DRNG


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

def _make_unit(
    unit_id: int,
    faction: Faction,
    x: float,
    y: float,
    health: float = 100.0,
    attack: float = 15.0,
    defense: float = 10.0,
    speed: float = 5.0,
    range: float = 50.0,
) -> Unit:
    return Unit(
        unit_id=unit_id,
        archetype="Tactical Marine" if faction is Faction.FRIENDLY else "Ork Boy",
        faction=faction,
        x=x,
        y=y,
        stats=UnitStats(health=health, max_health=max(health, 1.0), attack=attack,
                        defense=defense, speed=speed, range=range),
    )


def _make_ork(unit_id: int, x: float, y: float, **kwargs) -> Unit:
    stats = dict(health=60.0, attack=12.0, defense=6.0, speed=4.0, range=25.0)
    stats.update(kwargs)
    return _make_unit(unit_id, Faction.HOSTILE, x, y, **stats)


def _make_service(**overrides) -> CombatService:
    overrides.setdefault("crit_chance", 0.0)
    return CombatService(GameConfig(**overrides), DRNG(seed=7))


# -------------------------------------------------------------------
# Targeting
# -------------------------------------------------------------------

class TestFindNearestEnemy:
    def test_picks_closest_opponent(self):
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100)
        far = _make_ork(2, 400, 100)
        near = _make_ork(3, 200, 100)
        target, dist = find_nearest_enemy(marine, [marine, far, near])
        assert target.unit_id == 3
        assert dist == pytest.approx(100.0)

    def test_tie_goes_to_first_in_list(self):
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100)
        right = _make_ork(2, 150, 100)
        left = _make_ork(3, 50, 100)
        target, _ = find_nearest_enemy(marine, [marine, right, left])
        assert target.unit_id == 2

    def test_ignores_allies_and_dead(self):
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100)
        ally = _make_unit(2, Faction.FRIENDLY, 101, 100)
        corpse = _make_ork(3, 102, 100, health=0.0)
        assert find_nearest_enemy(marine, [marine, ally, corpse]) is None


# -------------------------------------------------------------------
# Damage
# -------------------------------------------------------------------

class TestCalculateDamage:
    def test_defense_reduces_attack(self):
        service = _make_service()
        marine = _make_unit(1, Faction.FRIENDLY, 0, 0)
        ork = _make_ork(2, 0, 0)
        # 15 - 6 * 0.2 = 13.8 -> floored
        assert service.calculate_damage(marine, ork) == (13, False)

    def test_minimum_damage_floor(self):
        service = _make_service()
        weak = _make_unit(1, Faction.FRIENDLY, 0, 0, attack=5.0)
        armoured = _make_ork(2, 0, 0, defense=100.0)
        assert service.calculate_damage(weak, armoured) == (8, False)

    def test_critical_hit_doubles_before_flooring(self):
        service = _make_service(crit_chance=1.0)
        marine = _make_unit(1, Faction.FRIENDLY, 0, 0)
        ork = _make_ork(2, 0, 0)
        assert service.calculate_damage(marine, ork) == (27, True)


# -------------------------------------------------------------------
# Tick resolution
# -------------------------------------------------------------------

class TestResolveTick:
    def test_out_of_range_units_move_toward_each_other(self):
        service = _make_service()
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100)
        ork = _make_ork(2, 300, 100)

        marine2, ork2 = service.resolve_tick([marine, ork], now=0.0)

        assert marine2.x == pytest.approx(105.0)
        assert ork2.x == pytest.approx(296.0)
        assert marine2.y == pytest.approx(100.0)
        assert marine2.stats.health == 100.0
        assert ork2.stats.health == 60.0
        assert marine2.last_move_time == 0.0
        assert marine2.last_attack_time is None

    def test_in_range_unit_attacks_instead_of_moving(self):
        service = _make_service()
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100)
        ork = _make_ork(2, 140, 100)

        marine2, ork2 = service.resolve_tick([marine, ork], now=1000.0)

        assert ork2.stats.health == pytest.approx(47.0)
        assert marine2.x == pytest.approx(100.0)
        assert marine2.last_attack_time == 1000.0
        # Ork range 25 < distance 40: it closes in
        assert ork2.x == pytest.approx(136.0)

    def test_move_stops_at_attack_range(self):
        service = _make_service()
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100, speed=100.0)
        ork = _make_ork(2, 180, 100)

        marine2, _ = service.resolve_tick([marine, ork], now=0.0)

        assert marine2.x == pytest.approx(130.0)

    def test_attack_cooldown_respected(self):
        service = _make_service()
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100)
        ork = _make_ork(2, 140, 100, range=50.0)

        units = service.resolve_tick([marine, ork], now=0.0)
        assert units[1].stats.health == pytest.approx(47.0)
        assert units[0].stats.health == pytest.approx(90.0)

        units = service.resolve_tick(units, now=500.0)
        assert units[1].stats.health == pytest.approx(47.0)
        assert units[0].stats.health == pytest.approx(90.0)

        units = service.resolve_tick(units, now=1000.0)
        assert units[1].stats.health == pytest.approx(34.0)
        assert units[0].stats.health == pytest.approx(80.0)

    def test_health_never_negative(self):
        service = _make_service()
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100)
        ork = _make_ork(2, 120, 100, health=5.0)

        _, ork2 = service.resolve_tick([marine, ork], now=0.0)

        assert ork2.stats.health == 0.0
        assert not ork2.is_alive

    def test_killed_unit_does_not_act(self):
        service = _make_service()
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100)
        ork = _make_ork(2, 110, 100, health=5.0, range=50.0)

        marine2, ork2 = service.resolve_tick([marine, ork], now=0.0)

        assert not ork2.is_alive
        assert marine2.stats.health == 100.0
        assert ork2.last_attack_time is None

    def test_friendly_units_act_before_hostile(self):
        service = _make_service()
        # Hostile listed first but friendly still strikes first
        ork = _make_ork(1, 110, 100, health=5.0, range=50.0)
        marine = _make_unit(2, Faction.FRIENDLY, 100, 100)

        ork2, marine2 = service.resolve_tick([ork, marine], now=0.0)

        assert not ork2.is_alive
        assert marine2.stats.health == 100.0

    def test_input_units_not_modified(self):
        service = _make_service()
        marine = _make_unit(1, Faction.FRIENDLY, 100, 100)
        ork = _make_ork(2, 140, 100)

        service.resolve_tick([marine, ork], now=0.0)

        assert ork.stats.health == 60.0
        assert ork.x == 140.0
        assert marine.last_attack_time is None

    def test_no_enemies_is_noop(self):
        service = _make_service()
        a = _make_unit(1, Faction.FRIENDLY, 100, 100)
        b = _make_unit(2, Faction.FRIENDLY, 300, 100)

        a2, b2 = service.resolve_tick([a, b], now=0.0)

        assert (a2.x, a2.y) == (100, 100)
        assert (b2.x, b2.y) == (300, 100)
        assert a2.last_move_time is None

    def test_positions_stay_inside_field(self):
        service = _make_service(field_width=200.0, field_height=200.0, spawn_margin=10.0)
        marine = _make_unit(1, Faction.FRIENDLY, 0.0, 0.0, speed=500.0, range=1.0)
        ork = _make_ork(2, 199.0, 199.0, speed=500.0, range=1.0)

        units = [marine, ork]
        for step in range(5):
            units = service.resolve_tick(units, now=step * 1000.0)
            for u in units:
                assert 0.0 <= u.x < 200.0
                assert 0.0 <= u.y < 200.0
