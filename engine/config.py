from dataclasses import asdict, dataclass
from typing import Dict


@dataclass(frozen=True)
class GameConfig:
    """Authoritative game constants. Times are in milliseconds, speeds in units/s."""

    arena_width: float = 1200
    arena_height: float = 700
    tank_width: float = 30  # client rendering only
    tank_height: float = 20
    tank_radius: float = 15
    bullet_radius: float = 10
    bullet_speed: float = 35
    bullet_damage: int = 25
    max_health: int = 100
    tank_speed: float = 30
    tank_boost_multiplier: float = 1.8
    friction: float = 0.92  # applied once per tick
    rotation_speed: float = 0.1
    respawn_time: int = 3000
    bullet_lifetime: int = 2000
    repair_amount: int = 10
    repair_cooldown: int = 5000
    shoot_cooldown: int = 300
    cannon_length: float = 25
    kill_score: int = 100
    rotation_smoothing: float = 0.2
    bullet_bounds_margin: float = 50
    spawn_margin: float = 100
    tick_rate: int = 120

    def validate(self) -> None:
        if self.arena_width <= 0 or self.arena_height <= 0:
            raise ValueError("arena dimensions must be positive")
        if self.tank_radius <= 0 or self.bullet_radius <= 0:
            raise ValueError("radii must be positive")
        if 2 * self.tank_radius >= min(self.arena_width, self.arena_height):
            raise ValueError("arena is too small for a tank")
        if 2 * self.spawn_margin >= min(self.arena_width, self.arena_height):
            raise ValueError("spawn_margin leaves no room to spawn")
        if self.spawn_margin < self.tank_radius:
            raise ValueError("spawn_margin must keep tanks inside the arena")
        if self.bullet_speed <= 0 or self.tank_speed <= 0:
            raise ValueError("speeds must be positive")
        if not 0 < self.friction <= 1:
            raise ValueError("friction must be in (0, 1]")
        if not 0 < self.rotation_smoothing <= 1:
            raise ValueError("rotation_smoothing must be in (0, 1]")
        if self.max_health <= 0:
            raise ValueError("max_health must be positive")
        if self.tick_rate <= 0:
            raise ValueError("tick_rate must be positive")
        for name in ("respawn_time", "bullet_lifetime", "repair_cooldown", "shoot_cooldown"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    @property
    def hit_distance(self) -> float:
        return self.tank_radius + self.bullet_radius

    def to_client_dict(self) -> Dict[str, float]:
        """Constants exactly as clients receive them at init time."""
        return {k.upper(): v for k, v in asdict(self).items()}
