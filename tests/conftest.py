"""Pytest configuration and fixtures for arena tests."""

import os
import random

# Tests drive ticks by hand
os.environ['ARENA_TICK_LOOP'] = '0'

import pytest

from bitearena.model.arena import ArenaConfig, ArenaWorld
from bitearena.socketio_handlers.arena_manager import ArenaManager
from bitearena.socketio_handlers.arena_simulation import ArenaSimulation


class RecordingSocketIO:
    """Stands in for the SocketIO object and records every emit."""

    def __init__(self):
        self.emitted = []

    def emit(self, event, *args, **kwargs):
        self.emitted.append((event, args[0] if args else None, kwargs))

    def events(self, name):
        return [payload for event, payload, _ in self.emitted if event == name]


@pytest.fixture
def seeded_rng():
    """Provide a deterministic RNG for tests."""
    return random.Random(42)


@pytest.fixture
def config():
    return ArenaConfig()


@pytest.fixture
def world(config, seeded_rng):
    return ArenaWorld(config, rng=seeded_rng)


@pytest.fixture
def recorder():
    return RecordingSocketIO()


@pytest.fixture
def manager(recorder, config, seeded_rng):
    return ArenaManager(recorder, config=config, rng=seeded_rng)


@pytest.fixture
def simulation(manager):
    return ArenaSimulation(manager)


@pytest.fixture
def duel(manager):
    """Two players, P1 facing P2 with P2 exactly at P1's mouth point."""
    p1 = manager.join_player('p1', {'name': 'Alice'})
    p2 = manager.join_player('p2', {'name': 'Bob'})
    p1.apply_movement(400.0, 300.0, 0.0)
    p2.apply_movement(400.0 + manager.config.MOUTH_DISTANCE, 300.0, 3.14159)
    return p1, p2
