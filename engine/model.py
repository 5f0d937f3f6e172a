import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Literal, Optional, Tuple

from .config import GameConfig


class TankStatus(Enum):
    """Lifecycle state of a tank"""
    ALIVE = "alive"
    DEAD = "dead"  # waiting for respawn_at_ms


@dataclass
class DamageResult:
    applied: bool
    died: bool = False
    killed_by: Optional[str] = None


@dataclass
class Intent:
    kind: Literal["move", "shoot", "repair"]
    tank_id: str
    dx: float = 0.0
    dy: float = 0.0
    boost: bool = False


@dataclass
class Event:
    """Gameplay event routed to sessions.

    `to` addresses a single session; otherwise the event goes to every
    session except `exclude`.
    """
    kind: str
    ts_ms: float
    data: Dict = field(default_factory=dict)
    to: Optional[str] = None
    exclude: Optional[str] = None

    def to_message(self) -> Dict:
        return {"type": self.kind, "data": self.data}


def shortest_angle(diff: float) -> float:
    """Normalize an angular difference to (-pi, pi]."""
    while diff > math.pi:
        diff -= 2 * math.pi
    while diff <= -math.pi:
        diff += 2 * math.pi
    return diff


@dataclass(eq=False)
class Projectile:
    x: float
    y: float
    vx: float
    vy: float
    owner: str
    created_at_ms: float
    config: GameConfig = field(repr=False, compare=False)

    @property
    def angle(self) -> float:
        return math.atan2(self.vy, self.vx)

    def is_expired(self, now_ms: float) -> bool:
        return now_ms - self.created_at_ms > self.config.bullet_lifetime

    def out_of_bounds(self) -> bool:
        c = self.config
        m = c.bullet_bounds_margin
        return (self.x < -m or self.x > c.arena_width + m or
                self.y < -m or self.y > c.arena_height + m)

    def tick(self, dt: float, now_ms: float) -> bool:
        """Advance by dt seconds. Returns False once the projectile has expired."""
        self.x += self.vx * dt
        self.y += self.vy * dt
        return not (self.out_of_bounds() or self.is_expired(now_ms))

    def to_dict(self) -> Dict:
        return {
            "x": self.x,
            "y": self.y,
            "vx": self.vx,
            "vy": self.vy,
            "angle": self.angle,
            "owner": self.owner,
        }


@dataclass
class Tank:
    id: str
    x: float
    y: float
    config: GameConfig = field(repr=False, compare=False)
    name: str = ""
    vx: float = 0.0
    vy: float = 0.0
    angle: float = 0.0
    target_angle: float = 0.0
    hp: Optional[int] = None  # None means max_health, or 0 when dead
    status: TankStatus = TankStatus.ALIVE
    score: int = 0
    respawn_at_ms: float = 0.0
    last_shot_ms: Optional[float] = None
    shoot_cooldown_ms: Optional[float] = None
    last_repair_ms: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"Player_{self.id[:4]}"
        if self.hp is None:
            self.hp = self.config.max_health if self.alive else 0
        if not 0 <= self.hp <= self.config.max_health:
            raise ValueError(f"tank {self.id}: hp {self.hp} outside 0..{self.config.max_health}")
        if (self.hp == 0) == self.alive:
            raise ValueError(f"tank {self.id}: hp {self.hp} contradicts status {self.status.value}")
        if self.shoot_cooldown_ms is None:
            self.shoot_cooldown_ms = self.config.shoot_cooldown
        self.clamp_to_arena()

    @property
    def alive(self) -> bool:
        return self.status is TankStatus.ALIVE

    def clamp_to_arena(self) -> None:
        r = self.config.tank_radius
        self.x = max(r, min(self.config.arena_width - r, self.x))
        self.y = max(r, min(self.config.arena_height - r, self.y))

    def apply_intent(self, dx: float, dy: float, boost: bool = False) -> bool:
        """Steer the tank. A zero vector keeps the current velocity."""
        if not self.alive:
            return False
        if dx == 0 and dy == 0:
            return True
        speed = self.config.tank_speed * (self.config.tank_boost_multiplier if boost else 1.0)
        self.vx = dx * speed
        self.vy = dy * speed
        self.target_angle = math.atan2(dy, dx)
        return True

    def tick(self, dt: float, now_ms: float, spawn_point: Callable[[], Tuple[float, float]]) -> bool:
        """Advance one tick. Returns True if the tank respawned during this call."""
        if not self.alive:
            if now_ms > self.respawn_at_ms:
                self.respawn(*spawn_point())
                return True
            return False

        self.vx *= self.config.friction
        self.vy *= self.config.friction

        self.x += self.vx * dt
        self.y += self.vy * dt

        diff = shortest_angle(self.target_angle - self.angle)
        self.angle += diff * self.config.rotation_smoothing

        self.clamp_to_arena()
        return False

    def fire(self, now_ms: float) -> Optional[Projectile]:
        if not self.alive:
            return None
        if self.last_shot_ms is not None and now_ms - self.last_shot_ms < self.shoot_cooldown_ms:
            return None
        self.last_shot_ms = now_ms

        ux, uy = math.cos(self.angle), math.sin(self.angle)
        c = self.config
        return Projectile(
            x=self.x + ux * c.cannon_length,
            y=self.y + uy * c.cannon_length,
            vx=ux * c.bullet_speed,
            vy=uy * c.bullet_speed,
            owner=self.id,
            created_at_ms=now_ms,
            config=c,
        )

    def take_damage(self, amount: int, attacker_id: Optional[str], now_ms: float) -> DamageResult:
        if not self.alive or amount <= 0:
            return DamageResult(applied=False)
        self.hp -= amount
        if self.hp <= 0:
            self._die(now_ms)
            return DamageResult(applied=True, died=True, killed_by=attacker_id)
        return DamageResult(applied=True)

    def _die(self, now_ms: float) -> None:
        self.status = TankStatus.DEAD
        self.hp = 0
        self.vx = 0.0
        self.vy = 0.0
        self.respawn_at_ms = now_ms + self.config.respawn_time

    def repair(self, now_ms: float) -> bool:
        if not self.alive:
            return False
        if self.last_repair_ms is not None and now_ms - self.last_repair_ms < self.config.repair_cooldown:
            return False
        self.last_repair_ms = now_ms
        self.hp = min(self.config.max_health, self.hp + self.config.repair_amount)
        return True

    def respawn(self, x: float, y: float) -> None:
        self.status = TankStatus.ALIVE
        self.hp = self.config.max_health
        self.x = x
        self.y = y
        self.vx = 0.0
        self.vy = 0.0
        self.angle = 0.0
        self.target_angle = 0.0
        self.clamp_to_arena()

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "angle": self.angle,
            "hp": self.hp,
            "score": self.score,
            "name": self.name,
            "isAlive": self.alive,
            "vx": self.vx,
            "vy": self.vy,
        }
