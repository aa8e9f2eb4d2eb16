import math
import random
import time
from typing import Dict, List, Mapping, Optional, Tuple


def now_ms() -> int:
    """Wall-clock time in milliseconds, the unit every timestamp here uses."""
    return int(time.time() * 1000)


class ArenaFullError(Exception):
    """Raised when a join is attempted while the arena is at capacity."""

    def __init__(self, capacity: int):
        super().__init__(f"arena is full ({capacity} players)")
        self.capacity = capacity


class ArenaConfig:
    """
    Game constants shared between the simulation and the remote renderer.

    Times are in milliseconds and distances in arena pixels. Any value can be
    overridden with an ARENA_<KEY> environment variable through from_mapping().
    """

    MAX_HP = 100
    ARENA_RADIUS = 290
    ARENA_CENTER_X = 400
    ARENA_CENTER_Y = 300
    SPRINT_CD = 3000
    SPRINT_DUR = 1000
    PLAYER_SIZE = 50
    MOUTH_DISTANCE = 35
    BITE_COOLDOWN = 1500
    BITE_DISTANCE = 50
    BITE_DAMAGE = 25
    RESPAWN_TIME = 3000
    MAX_PLAYERS = 2

    KEYS = (
        'MAX_HP', 'ARENA_RADIUS', 'ARENA_CENTER_X', 'ARENA_CENTER_Y',
        'SPRINT_CD', 'SPRINT_DUR', 'PLAYER_SIZE', 'MOUTH_DISTANCE',
        'BITE_COOLDOWN', 'BITE_DISTANCE', 'BITE_DAMAGE', 'RESPAWN_TIME',
        'MAX_PLAYERS',
    )

    # Two-player game, capacity can shrink but never grow
    PLAYER_CAP = 2

    def __init__(self, **overrides):
        for key, value in overrides.items():
            if key not in self.KEYS:
                raise ValueError(f"unknown arena setting: {key}")
            default = getattr(ArenaConfig, key)
            setattr(self, key, type(default)(value))
        self.MAX_PLAYERS = max(1, min(self.PLAYER_CAP, self.MAX_PLAYERS))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str], prefix: str = 'ARENA_') -> 'ArenaConfig':
        overrides = {}
        for key in cls.KEYS:
            raw = mapping.get(prefix + key)
            if raw is None or raw == '':
                continue
            try:
                overrides[key] = int(float(raw))
            except (TypeError, ValueError, OverflowError):
                raise ValueError(f"invalid value for {prefix}{key}: {raw!r}")
        return cls(**overrides)

    def to_dict(self) -> Dict:
        return {key: getattr(self, key) for key in self.KEYS}


class ArenaPlayer:
    """
    One participant's avatar.

    `alive` is tracked explicitly so death is edge-triggered: the respawn
    deadline is set once, on the hit that takes hp to zero.
    """

    def __init__(self, player_id: str, name: str, x: float, y: float, config: ArenaConfig):
        self.id = player_id
        self.name = name
        self.config = config
        self.x = float(x)
        self.y = float(y)
        self.angle = 0.0
        self.hp = config.MAX_HP
        self.alive = True
        self.respawn_deadline: Optional[int] = None
        self.last_bite_time: Optional[int] = None
        self.last_sprint_time = 0

    def apply_movement(self, x: float, y: float, angle: float, sprint_timestamp: Optional[int] = None) -> None:
        """Overwrite position and facing; the client-reported position is trusted."""
        self.x = float(x)
        self.y = float(y)
        self.angle = float(angle)
        if sprint_timestamp:
            self.last_sprint_time = int(sprint_timestamp)

    def apply_damage(self, amount: int, now: int) -> bool:
        """Apply damage and return True only on the hit that kills the player."""
        if not self.alive:
            return False
        self.hp = max(0, min(self.config.MAX_HP, self.hp - int(amount)))
        if self.hp > 0:
            return False
        self.alive = False
        self.respawn_deadline = now + self.config.RESPAWN_TIME
        return True

    def respawn(self, x: float, y: float) -> None:
        if self.alive:
            return
        self.restore(x, y)
        self.angle = 0.0

    def restore(self, x: float, y: float) -> None:
        """Full heal and revive at (x, y), whatever the current state."""
        self.hp = self.config.MAX_HP
        self.alive = True
        self.respawn_deadline = None
        self.x = float(x)
        self.y = float(y)

    def bite_ready(self, now: int) -> bool:
        if self.last_bite_time is None:
            return True
        return now - self.last_bite_time >= self.config.BITE_COOLDOWN

    def consume_bite(self, now: int) -> None:
        self.last_bite_time = now

    def mouth_point(self) -> Tuple[float, float]:
        return (
            self.x + math.cos(self.angle) * self.config.MOUTH_DISTANCE,
            self.y + math.sin(self.angle) * self.config.MOUTH_DISTANCE,
        )

    def respawn_due(self, now: int) -> bool:
        return not self.alive and self.respawn_deadline is not None and now >= self.respawn_deadline

    def to_dict(self, now: int) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'x': self.x,
            'y': self.y,
            'angle': self.angle,
            'hp': self.hp,
            'alive': self.alive,
            'dead': not self.alive,
            'canBite': self.alive and self.bite_ready(now),
            'lastBite': self.last_bite_time or 0,
            'lastSprint': self.last_sprint_time,
            'respawnTime': self.respawn_deadline or 0,
        }


class ArenaWorld:
    """All players in the arena plus the round flag."""

    def __init__(self, config: Optional[ArenaConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or ArenaConfig()
        self.rng = rng or random.Random()
        self.players: Dict[str, ArenaPlayer] = {}
        self.round_active = True

    def random_spawn(self) -> Tuple[float, float]:
        radius = max(0.0, self.config.ARENA_RADIUS - self.config.PLAYER_SIZE)
        # sqrt keeps the distribution uniform over the disc area
        r = radius * math.sqrt(self.rng.random())
        theta = self.rng.uniform(0.0, 2.0 * math.pi)
        return (
            self.config.ARENA_CENTER_X + r * math.cos(theta),
            self.config.ARENA_CENTER_Y + r * math.sin(theta),
        )

    def is_full(self) -> bool:
        return len(self.players) >= self.config.MAX_PLAYERS

    def add_player(self, player_id: str, name: Optional[str] = None) -> ArenaPlayer:
        if self.is_full():
            raise ArenaFullError(self.config.MAX_PLAYERS)
        name = name or f"Player_{len(self.players) + 1}"
        x, y = self.random_spawn()
        player = ArenaPlayer(player_id, name, x, y, self.config)
        self.players[player_id] = player
        return player

    def remove_player(self, player_id: str) -> Optional[ArenaPlayer]:
        return self.players.pop(player_id, None)

    def get_player(self, player_id: str) -> Optional[ArenaPlayer]:
        return self.players.get(player_id)

    def alive_players(self) -> List[ArenaPlayer]:
        return [p for p in self.players.values() if p.alive]

    def respawn(self, player: ArenaPlayer) -> None:
        x, y = self.random_spawn()
        player.respawn(x, y)

    def reset(self) -> None:
        for player in self.players.values():
            x, y = self.random_spawn()
            player.restore(x, y)
        self.round_active = True

    def snapshot(self, now: int) -> Dict:
        # dicts keep join order, which keeps the snapshot order stable
        return {
            'players': [p.to_dict(now) for p in self.players.values()],
            'roundActive': self.round_active,
        }
