from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .config import GameConfig
from .model import Projectile, Tank
from .rng import DRNG


@dataclass
class World:
    """Registry of live tanks and projectiles. Mutated only by the engine."""
    config: GameConfig
    rng: DRNG
    tanks: Dict[str, Tank] = field(default_factory=dict)
    projectiles: List[Projectile] = field(default_factory=list)

    def spawn_point(self) -> Tuple[float, float]:
        c = self.config
        return self.rng.point_in(c.arena_width, c.arena_height, c.spawn_margin)

    def add_tank(self, tank_id: str, name: Optional[str] = None,
                 pos: Optional[Tuple[float, float]] = None) -> Tank:
        x, y = pos if pos is not None else self.spawn_point()
        tank = Tank(id=tank_id, x=x, y=y, config=self.config, name=name or "")
        self.tanks[tank_id] = tank
        return tank

    def remove_tank(self, tank_id: str) -> Optional[Tank]:
        # Shot and repair cooldowns live on the tank and go with it.
        return self.tanks.pop(tank_id, None)

    def get_tank(self, tank_id: str) -> Optional[Tank]:
        return self.tanks.get(tank_id)

    def alive_tanks(self) -> Iterator[Tank]:
        return (t for t in self.tanks.values() if t.alive)

    def credit_kill(self, attacker_id: Optional[str]) -> Optional[Tank]:
        """Award the kill bonus if the attacker is still connected."""
        attacker = self.tanks.get(attacker_id) if attacker_id else None
        if attacker is not None:
            attacker.score += self.config.kill_score
        return attacker

    def add_projectile(self, projectile: Projectile) -> None:
        self.projectiles.append(projectile)

    def remove_projectile(self, projectile: Projectile) -> None:
        try:
            self.projectiles.remove(projectile)
        except ValueError:
            pass

    def remove_expired(self, now_ms: float) -> int:
        """Drop projectiles older than the bullet lifetime; returns how many went."""
        before = len(self.projectiles)
        self.projectiles[:] = [p for p in self.projectiles if not p.is_expired(now_ms)]
        return before - len(self.projectiles)

    def snapshot(self, ts_ms: float) -> Dict:
        return {
            "players": {tid: t.to_dict() for tid, t in self.tanks.items()},
            "bullets": [p.to_dict() for p in self.projectiles],
            "timestamp": ts_ms,
        }
