import math
from typing import Dict, List, Optional, Tuple

from .model import Event, Projectile, Tank
from .world import World

Position = Tuple[float, float]


def distance_2d(pos1: Position, pos2: Position) -> float:
    """Calculate Euclidean distance between two 2D positions."""
    dx = pos2[0] - pos1[0]
    dy = pos2[1] - pos1[1]
    return math.sqrt(dx * dx + dy * dy)


def find_struck_tank(world: World, projectile: Projectile) -> Optional[Tank]:
    """Nearest alive non-owner tank in range; ties go to the lowest id."""
    best: Optional[Tank] = None
    best_key = (float("inf"), "")
    for t in world.alive_tanks():
        if t.id == projectile.owner:
            continue
        d = distance_2d((projectile.x, projectile.y), (t.x, t.y))
        if d >= world.config.hit_distance:
            continue
        key = (d, t.id)
        if key < best_key:
            best, best_key = t, key
    return best


def resolve_projectile_hits(world: World, now_ms: float) -> List[Event]:
    """Apply at most one hit per projectile and return the resulting events."""
    evts: List[Event] = []
    damage = world.config.bullet_damage
    for p in list(world.projectiles):
        target = find_struck_tank(world, p)
        if target is None:
            continue

        world.remove_projectile(p)
        result = target.take_damage(damage, p.owner, now_ms)
        evts.append(Event("hit", now_ms, {"damage": damage, "attacker": p.owner}, to=target.id))
        if not result.died:
            continue

        evts.append(Event("died", now_ms, {}, to=target.id))
        evts.append(Event("playerDied", now_ms, {"playerId": target.id, "killerId": p.owner}))
        attacker = world.credit_kill(result.killed_by)
        if attacker is not None:
            evts.append(Event("kill", now_ms, {"victim": target.name}, to=attacker.id))
    return evts


def resolve_tank_collisions(world: World) -> int:
    """Soft separation of overlapping tanks.

    Corrections are computed from the positions at the start of the call and
    applied together, so pair order does not matter. Returns the number of
    overlapping pairs.
    """
    min_d = 2 * world.config.tank_radius
    tanks = sorted(world.alive_tanks(), key=lambda t: t.id)
    dpos: Dict[str, List[float]] = {t.id: [0.0, 0.0] for t in tanks}
    dvel: Dict[str, List[float]] = {t.id: [0.0, 0.0] for t in tanks}
    contacts = 0

    for i, a in enumerate(tanks):
        for b in tanks[i + 1:]:
            dx = a.x - b.x
            dy = a.y - b.y
            dist = math.sqrt(dx * dx + dy * dy)
            if dist >= min_d:
                continue
            contacts += 1

            # Direction from b to a; coincident centres push a along +x.
            angle = math.atan2(dy, dx)
            ux, uy = math.cos(angle), math.sin(angle)
            overlap = min_d - dist
            push = overlap / 2
            kick = overlap * 0.1

            dpos[a.id][0] += ux * push
            dpos[a.id][1] += uy * push
            dpos[b.id][0] -= ux * push
            dpos[b.id][1] -= uy * push
            dvel[a.id][0] += ux * kick
            dvel[a.id][1] += uy * kick
            dvel[b.id][0] -= ux * kick
            dvel[b.id][1] -= uy * kick

    if contacts:
        for t in tanks:
            t.x += dpos[t.id][0]
            t.y += dpos[t.id][1]
            t.vx += dvel[t.id][0]
            t.vy += dvel[t.id][1]
            t.clamp_to_arena()
    return contacts
