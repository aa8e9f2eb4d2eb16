import logging
import math
import threading
from typing import Dict, Optional, Tuple

from bitearena.model.arena import ArenaConfig, ArenaPlayer, ArenaWorld

logger = logging.getLogger(__name__)


def _coerce_finite(value) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


class ArenaManager:
    ROOM_NAME = 'arena'

    TICK_RATE = 60
    TICK_INTERVAL = 1.0 / TICK_RATE

    MAX_NAME_LENGTH = 24

    def __init__(self, socketio, config: Optional[ArenaConfig] = None, rng=None):
        self.socketio = socketio
        self.lock = threading.RLock()
        # Orders state broadcasts: a snapshot is emitted before a newer one is built
        self.broadcast_lock = threading.Lock()

        self.config = config or ArenaConfig()
        self.world = ArenaWorld(self.config, rng=rng)

        self.loop_started = False

    # ----------------------------- Player helpers ----------------------------

    def _normalize_name(self, payload: Optional[Dict]) -> Optional[str]:
        if not isinstance(payload, dict):
            return None
        requested = str(payload.get('name') or payload.get('username') or '').strip()
        return requested[:self.MAX_NAME_LENGTH] or None

    def _parse_move(self, payload) -> Optional[Tuple[float, float, float, Optional[int]]]:
        if not isinstance(payload, dict):
            return None
        x = _coerce_finite(payload.get('x'))
        y = _coerce_finite(payload.get('y'))
        angle = _coerce_finite(payload.get('angle'))
        if x is None or y is None or angle is None:
            return None

        raw_sprint = payload.get('sprintTimestamp', payload.get('lastSprint'))
        sprint = _coerce_finite(raw_sprint) if raw_sprint is not None else None
        return x, y, angle, (int(sprint) if sprint else None)

    def find_player(self, sid: str) -> Optional[ArenaPlayer]:
        return self.world.get_player(sid)

    # --------------------------- Public operations ---------------------------

    def join_player(self, sid: str, payload: Optional[Dict] = None) -> ArenaPlayer:
        """Create the player for sid; raises ArenaFullError when at capacity."""
        existing = self.world.get_player(sid)
        if existing:
            return existing

        player = self.world.add_player(sid, self._normalize_name(payload))
        logger.info(f"[ARENA] {player.name} ({sid}) joined. Players: {len(self.world.players)}")
        return player

    def leave_player(self, sid: str) -> Optional[ArenaPlayer]:
        # Leaving never ends the round, the remaining player keeps playing.
        player = self.world.remove_player(sid)
        if player:
            logger.info(f"[ARENA] {player.name} ({sid}) left. Players: {len(self.world.players)}")
        return player

    def update_player_move(self, sid: str, payload) -> bool:
        if not self.world.round_active:
            return False
        player = self.world.get_player(sid)
        if not player or not player.alive:
            return False

        parsed = self._parse_move(payload)
        if parsed is None:
            logger.warning(f"[ARENA] Dropping malformed move from {sid}: {payload!r}")
            return False

        x, y, angle, sprint = parsed
        player.apply_movement(x, y, angle, sprint)
        return True

    def evaluate_round(self, now: int) -> Optional[Dict]:
        """End the round once one player or fewer is alive; returns the gameOver payload."""
        if not self.world.round_active:
            return None

        alive = self.world.alive_players()
        if len(alive) > 1:
            return None

        self.world.round_active = False
        winner = alive[0] if alive else None
        logger.info(f"[ARENA] Round over. Winner: {winner.name if winner else 'none'}")
        return {'winner': winner.to_dict(now) if winner else None}

    def reset_round(self, now: int) -> Dict:
        self.world.reset()
        logger.info(f"[ARENA] Round reset with {len(self.world.players)} players")
        return self.serialize_state(now)

    # ---------------------------- Serialization -----------------------------

    def serialize_state(self, now: int) -> Dict:
        return self.world.snapshot(now)

    def serialize_init(self, player: ArenaPlayer, now: int) -> Dict:
        return {
            'id': player.id,
            'config': self.config.to_dict(),
            'state': self.serialize_state(now),
        }

    def serialize_status(self, now: int) -> Dict:
        state = self.serialize_state(now)
        return {
            'config': self.config.to_dict(),
            'players': state['players'],
            'roundActive': state['roundActive'],
            'capacity': {
                'max': self.config.MAX_PLAYERS,
                'used': len(self.world.players),
            },
        }

    # ---------------------------- Emit operations ----------------------------

    def emit_state(self, payload: Dict) -> None:
        self.socketio.emit('state', payload, room=self.ROOM_NAME)

    def emit_game_over(self, payload: Dict) -> None:
        self.socketio.emit('gameOver', payload, room=self.ROOM_NAME)

    def emit_joined(self, payload: Dict, skip_sid: Optional[str] = None) -> None:
        self.socketio.emit('joined', payload, room=self.ROOM_NAME, skip_sid=skip_sid)

    def emit_left(self, sid: str) -> None:
        self.socketio.emit('left', {'id': sid}, room=self.ROOM_NAME)
