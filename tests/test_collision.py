"""Projectile hits and tank-vs-tank separation."""
import math

import pytest

from engine.collision import find_struck_tank, resolve_projectile_hits, resolve_tank_collisions
from engine.model import Projectile
from engine.rng import DRNG
from engine.world import World


@pytest.fixture
def world(config) -> World:
    return World(config, DRNG(1))


def shot(config, x, y, owner="a", created_at_ms=0.0) -> Projectile:
    return Projectile(x=x, y=y, vx=35.0, vy=0.0, owner=owner, created_at_ms=created_at_ms, config=config)


def test_hit_damages_and_removes_projectile(world, config):
    world.add_tank("a", pos=(100, 100))
    b = world.add_tank("b", pos=(115, 100))
    world.add_projectile(shot(config, 120, 100))

    evts = resolve_projectile_hits(world, now_ms=0)

    assert b.hp == config.max_health - config.bullet_damage
    assert world.projectiles == []
    assert [(e.kind, e.to) for e in evts] == [("hit", "b")]
    assert evts[0].data == {"damage": config.bullet_damage, "attacker": "a"}


def test_owner_is_never_hit(world, config):
    a = world.add_tank("a", pos=(100, 100))
    world.add_projectile(shot(config, 100, 100))
    assert resolve_projectile_hits(world, now_ms=0) == []
    assert a.hp == config.max_health
    assert len(world.projectiles) == 1


def test_dead_tanks_are_not_hit(world, config):
    b = world.add_tank("b", pos=(300, 300))
    b.take_damage(config.max_health, "x", now_ms=0)
    world.add_projectile(shot(config, 300, 300))
    assert resolve_projectile_hits(world, now_ms=0) == []
    assert len(world.projectiles) == 1


def test_miss_just_outside_hit_distance(world, config):
    world.add_tank("b", pos=(300, 300))
    world.add_projectile(shot(config, 300 + config.hit_distance, 300))
    assert resolve_projectile_hits(world, now_ms=0) == []


def test_one_hit_per_projectile_nearest_then_lowest_id(world, config):
    c = world.add_tank("c", pos=(200, 90))
    b = world.add_tank("b", pos=(200, 110))
    p = shot(config, 200, 100)
    assert find_struck_tank(world, p) is b

    world.add_projectile(p)
    resolve_projectile_hits(world, now_ms=0)
    assert b.hp == config.max_health - config.bullet_damage
    assert c.hp == config.max_health

    near = world.add_tank("d", pos=(400, 104))
    world.add_tank("e", pos=(400, 90))
    assert find_struck_tank(world, shot(config, 400, 100)) is near


def test_lethal_hit_emits_death_and_credits_attacker(world, config):
    a = world.add_tank("a", pos=(100, 100))
    b = world.add_tank("b", pos=(400, 400))
    b.hp = config.bullet_damage
    world.add_projectile(shot(config, 400, 400, owner="a"))

    evts = resolve_projectile_hits(world, now_ms=500)
    kinds = {e.kind: e for e in evts}

    assert not b.alive
    assert b.respawn_at_ms == 500 + config.respawn_time
    assert a.score == config.kill_score
    assert kinds["died"].to == "b"
    assert kinds["playerDied"].to is None
    assert kinds["playerDied"].data == {"playerId": "b", "killerId": "a"}
    assert kinds["kill"].to == "a"
    assert kinds["kill"].data == {"victim": b.name}


def test_kill_by_departed_attacker_has_no_credit(world, config):
    b = world.add_tank("b", pos=(400, 400))
    b.hp = 1
    world.add_projectile(shot(config, 400, 400, owner="gone"))

    evts = resolve_projectile_hits(world, now_ms=0)

    assert not b.alive
    assert "kill" not in [e.kind for e in evts]
    assert "playerDied" in [e.kind for e in evts]


def test_collision_corrections_are_symmetric(world, config):
    a = world.add_tank("a", pos=(100, 100))
    b = world.add_tank("b", pos=(110, 100))

    assert resolve_tank_collisions(world) == 1

    da = (a.x - 100, a.y - 100)
    db = (b.x - 110, b.y - 100)
    assert da == pytest.approx((-10.0, 0.0), abs=1e-9)
    assert da == pytest.approx((-db[0], -db[1]), abs=1e-12)
    assert (a.vx, a.vy) == pytest.approx((-b.vx, -b.vy), abs=1e-12)
    assert a.vx < 0 < b.vx


def test_collision_result_ignores_insertion_order(config):
    positions = {"a": (300, 300), "b": (310, 305), "c": (305, 290)}

    results = []
    for order in (["a", "b", "c"], ["c", "b", "a"], ["b", "a", "c"]):
        w = World(config, DRNG(0))
        for tid in order:
            w.add_tank(tid, pos=positions[tid])
        resolve_tank_collisions(w)
        results.append({tid: (t.x, t.y, t.vx, t.vy) for tid, t in w.tanks.items()})

    assert results[0] == results[1] == results[2]


def test_collision_separates_and_settles(world, config):
    a = world.add_tank("a", pos=(300, 300))
    b = world.add_tank("b", pos=(310, 300))

    resolve_tank_collisions(world)
    gap = math.hypot(a.x - b.x, a.y - b.y)
    assert gap >= 2 * config.tank_radius - 1e-9

    for _ in range(200):
        a.tick(1 / 120, 0, world.spawn_point)
        b.tick(1 / 120, 0, world.spawn_point)
        resolve_tank_collisions(world)
        new_gap = math.hypot(a.x - b.x, a.y - b.y)
        assert new_gap >= gap - 1e-9
        gap = new_gap
    assert math.hypot(a.vx, a.vy) < 1e-3


def test_coincident_tanks_split_along_x(world, config):
    a = world.add_tank("a", pos=(300, 300))
    b = world.add_tank("b", pos=(300, 300))
    resolve_tank_collisions(world)
    assert a.x == pytest.approx(300 + config.tank_radius)
    assert b.x == pytest.approx(300 - config.tank_radius)


def test_dead_tanks_do_not_collide(world, config):
    a = world.add_tank("a", pos=(300, 300))
    world.add_tank("b", pos=(305, 300)).take_damage(config.max_health, "x", now_ms=0)
    assert resolve_tank_collisions(world) == 0
    assert (a.x, a.y) == (300, 300)


def test_collision_keeps_tanks_in_arena(world, config):
    a = world.add_tank("a", pos=(config.tank_radius, 300))
    world.add_tank("b", pos=(config.tank_radius + 5, 300))
    resolve_tank_collisions(world)
    assert a.x >= config.tank_radius
