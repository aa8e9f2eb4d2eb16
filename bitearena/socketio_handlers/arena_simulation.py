import logging
import math
from typing import Dict, List, Optional, Tuple

from bitearena.model.arena import ArenaPlayer

from .arena_manager import ArenaManager

logger = logging.getLogger(__name__)


class ArenaSimulation:
    def __init__(self, manager: ArenaManager):
        self.m = manager

    def resolve_bite(self, attacker: ArenaPlayer, now: int) -> bool:
        """
        Spend the attacker's bite and damage every living player near its mouth.

        A bite that is not ready is dropped without touching the cooldown.
        Returns True when at least one target was hit.
        """
        if not attacker.alive or not attacker.bite_ready(now):
            return False

        attacker.consume_bite(now)
        config = self.m.config
        mouth_x, mouth_y = attacker.mouth_point()

        hit = False
        for target in list(self.m.world.players.values()):
            if target.id == attacker.id or not target.alive:
                continue
            if math.hypot(mouth_x - target.x, mouth_y - target.y) >= config.BITE_DISTANCE:
                continue

            died = target.apply_damage(config.BITE_DAMAGE, now)
            hit = True
            if died:
                logger.info(f"[ARENA] {attacker.name} killed {target.name}")
        return hit

    def handle_bite(self, sid: str, now: int) -> Tuple[bool, Optional[Dict]]:
        """Returns (hit, gameOver payload or None)."""
        world = self.m.world
        if not world.round_active:
            return False, None

        attacker = world.get_player(sid)
        if not attacker or not attacker.alive:
            logger.debug(f"[ARENA] Dropping bite from {sid}")
            return False, None

        if not self.resolve_bite(attacker, now):
            return False, None
        return True, self.m.evaluate_round(now)

    def step(self, now: int) -> List[ArenaPlayer]:
        respawned = []
        for player in list(self.m.world.players.values()):
            if not player.respawn_due(now):
                continue
            self.m.world.respawn(player)
            respawned.append(player)
            logger.debug(f"[ARENA] {player.name} respawned at ({player.x:.1f}, {player.y:.1f})")
        return respawned
