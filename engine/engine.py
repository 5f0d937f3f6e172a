import time
from typing import Callable, Dict, List, Optional

from loguru import logger

from .collision import resolve_projectile_hits, resolve_tank_collisions
from .config import GameConfig
from .model import Event, Intent, Tank
from .rng import DRNG
from .world import World


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def epoch_ms() -> float:
    return time.time() * 1000.0


class Engine:
    """Authoritative arena simulation. Not thread-safe; the runner serializes access.

    `clock` drives cooldowns, lifetimes and respawns. `wall_clock` only stamps
    the timestamps clients see.
    """

    def __init__(self, seed: Optional[int] = None, config: Optional[GameConfig] = None,
                 clock: Callable[[], float] = monotonic_ms,
                 wall_clock: Callable[[], float] = epoch_ms):
        self.config = config or GameConfig()
        self.config.validate()
        self.clock = clock
        self.wall_clock = wall_clock
        self._rng = DRNG(seed)
        self.world = World(self.config, self._rng)
        self._pending_intents: List[Intent] = []

    def connect(self, session_id: str, name: Optional[str] = None) -> Dict:
        """Create the session's tank and return its init payload."""
        tank = self.world.add_tank(session_id, name)
        logger.info("{} joined at ({:.0f}, {:.0f})", tank.name, tank.x, tank.y)
        return {"myPlayerId": session_id, "config": self.config.to_client_dict()}

    def disconnect(self, session_id: str) -> bool:
        tank = self.world.remove_tank(session_id)
        if tank is None:
            return False
        self._pending_intents = [i for i in self._pending_intents if i.tank_id != session_id]
        logger.info("{} left", tank.name)
        return True

    def apply_intents(self, intents: List[Intent]) -> None:
        """Queue intents to be applied on next step."""
        self._pending_intents.extend(intents)

    def handle_intent(self, intent: Intent, now_ms: float) -> List[Event]:
        """Apply one intent immediately. Unknown tanks and refused actions yield no events."""
        tank = self.world.get_tank(intent.tank_id)
        if tank is None:
            logger.debug("intent {} for unknown tank {}", intent.kind, intent.tank_id)
            return []
        if intent.kind == "move":
            tank.apply_intent(intent.dx, intent.dy, intent.boost)
        elif intent.kind == "shoot":
            return self._shoot(tank, now_ms)
        elif intent.kind == "repair":
            if tank.repair(now_ms):
                return [Event("repaired", now_ms, {"hp": tank.hp}, to=tank.id)]
        return []

    def _shoot(self, tank: Tank, now_ms: float) -> List[Event]:
        projectile = tank.fire(now_ms)
        if projectile is None:
            return []
        self.world.add_projectile(projectile)
        return [Event("shootSound", now_ms, {"x": projectile.x, "y": projectile.y}, exclude=tank.id)]

    def _apply_intents_now(self, now_ms: float) -> List[Event]:
        evts: List[Event] = []
        for intent in self._pending_intents:
            evts += self.handle_intent(intent, now_ms)
        self._pending_intents.clear()
        return evts

    def _move_tanks(self, dt: float, now_ms: float) -> List[Event]:
        evts: List[Event] = []
        for t in self.world.tanks.values():
            if t.tick(dt, now_ms, self.world.spawn_point):
                evts.append(Event("respawned", now_ms, {}, to=t.id))
        return evts

    def _move_projectiles(self, dt: float, now_ms: float) -> None:
        self.world.projectiles[:] = [p for p in self.world.projectiles if p.tick(dt, now_ms)]

    def step(self, dt: float) -> List[Event]:
        """Advance the simulation by dt seconds and return the tick's events.

        The last event is always the `state` snapshot broadcast.
        """
        now_ms = self.clock()
        evts: List[Event] = []
        evts += self._apply_intents_now(now_ms)
        evts += self._move_tanks(dt, now_ms)
        self._move_projectiles(dt, now_ms)
        hits = resolve_projectile_hits(self.world, now_ms)
        for e in hits:
            if e.kind == "playerDied":
                logger.info("{} destroyed by {}", e.data["playerId"], e.data["killerId"])
        evts += hits
        resolve_tank_collisions(self.world)
        evts.append(Event("state", now_ms, self.snapshot()))
        swept = self.world.remove_expired(self.clock())
        if swept:
            logger.debug("swept {} expired projectiles", swept)
        return evts

    def snapshot(self) -> Dict:
        """Return the serialized world, stamped with wall-clock milliseconds."""
        return self.world.snapshot(self.wall_clock())
