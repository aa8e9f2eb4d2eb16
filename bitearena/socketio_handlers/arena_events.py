import logging
import math
import time
from typing import Dict, Optional, Tuple

from flask import request
from flask_socketio import disconnect, join_room, leave_room

from bitearena.model.arena import ArenaConfig, ArenaFullError, now_ms
from .arena_manager import ArenaManager
from .arena_simulation import ArenaSimulation

logger = logging.getLogger(__name__)


def tick_once(manager: ArenaManager, simulation: ArenaSimulation, now: Optional[int] = None) -> Dict:
    """Run one lifecycle sweep and broadcast the resulting snapshot."""
    now = now if now is not None else now_ms()
    with manager.broadcast_lock:
        with manager.lock:
            simulation.step(now)
            payload = manager.serialize_state(now)
        manager.emit_state(payload)
    return payload


def reset_and_broadcast(manager: ArenaManager, now: Optional[int] = None) -> Dict:
    """Reset the round and send its snapshot ahead of any later tick."""
    now = now if now is not None else now_ms()
    with manager.broadcast_lock:
        with manager.lock:
            payload = manager.reset_round(now)
        manager.emit_state(payload)
    return payload


def _tick_loop(manager: ArenaManager, simulation: ArenaSimulation) -> None:
    interval = manager.TICK_INTERVAL
    next_tick = time.monotonic()

    while manager.loop_started:
        try:
            tick_once(manager, simulation)
        except Exception:
            logger.exception("[ARENA] Tick failed")

        next_tick += interval
        delay = next_tick - time.monotonic()
        if delay < 0:
            # Overran: skip to the next boundary instead of queueing ticks.
            missed = math.ceil(-delay / interval)
            next_tick += missed * interval
            delay = next_tick - time.monotonic()
        manager.socketio.sleep(max(0.0, delay))


def _ensure_loop_started(manager: ArenaManager, simulation: ArenaSimulation) -> None:
    if manager.loop_started:
        return

    manager.loop_started = True
    manager.socketio.start_background_task(_tick_loop, manager, simulation)


def stop_loop(manager: ArenaManager) -> None:
    manager.loop_started = False


def cleanup_disconnected_player(manager: ArenaManager, sid: str) -> None:
    with manager.lock:
        removed = manager.leave_player(sid)
    if not removed:
        return

    try:
        leave_room(manager.ROOM_NAME, sid=sid)
    except (KeyError, ValueError):
        pass
    manager.emit_left(sid)


def init_arena_socket(socketio, config: Optional[ArenaConfig] = None, rng=None,
                      start_loop: bool = True) -> Tuple[ArenaManager, ArenaSimulation]:
    manager = ArenaManager(socketio, config=config, rng=rng)
    simulation = ArenaSimulation(manager)

    @socketio.on('join')
    def handle_arena_join(data=None):
        sid = request.sid
        now = now_ms()

        with manager.lock:
            is_new = manager.find_player(sid) is None
            try:
                player = manager.join_player(sid, data)
            except ArenaFullError as e:
                player = None
                logger.warning(f"[ARENA] Rejected {sid}: {e}")
            else:
                init_payload = manager.serialize_init(player, now)
                joined_payload = player.to_dict(now)

        if player is None:
            socketio.emit('full', to=sid)
            disconnect(sid=sid)
            return

        join_room(manager.ROOM_NAME)
        socketio.emit('init', init_payload, to=sid)
        if is_new:
            manager.emit_joined(joined_payload, skip_sid=sid)

        if start_loop:
            _ensure_loop_started(manager, simulation)

    @socketio.on('move')
    def handle_arena_move(data=None):
        with manager.lock:
            manager.update_player_move(request.sid, data)

    @socketio.on('bite')
    def handle_arena_bite(_data=None):
        with manager.lock:
            _hit, game_over = simulation.handle_bite(request.sid, now_ms())
        if game_over is not None:
            manager.emit_game_over(game_over)

    @socketio.on('reset')
    def handle_arena_reset(_data=None):
        reset_and_broadcast(manager)

    @socketio.on('leave')
    def handle_arena_leave(_data=None):
        cleanup_disconnected_player(manager, request.sid)

    @socketio.on('disconnect')
    def handle_arena_disconnect(reason=None):
        cleanup_disconnected_player(manager, request.sid)

    return manager, simulation
