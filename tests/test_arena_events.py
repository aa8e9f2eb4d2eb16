import pytest

from bitearena.main import app, socketio
from bitearena.socketio_handlers.arena_events import init_arena_socket, tick_once


@pytest.fixture
def arena(seeded_rng):
    """Fresh manager with handlers re-registered on the shared SocketIO."""
    manager, simulation = init_arena_socket(socketio, rng=seeded_rng, start_loop=False)
    app.extensions['arena'] = manager
    clients = []

    def connect(name=None):
        client = socketio.test_client(app)
        clients.append(client)
        if name is not None:
            client.emit('join', {'name': name})
        return client

    yield manager, simulation, connect

    for client in clients:
        if client.is_connected():
            client.disconnect()


def _events(client, name):
    return [msg['args'][0] if msg['args'] else None
            for msg in client.get_received() if msg['name'] == name]


def test_join_sends_init_with_config(arena):
    manager, _, connect = arena
    alice = connect('Alice')

    init = _events(alice, 'init')
    assert len(init) == 1
    assert init[0]['config'] == manager.config.to_dict()
    assert init[0]['state']['roundActive'] is True
    assert init[0]['state']['players'][0]['name'] == 'Alice'
    assert init[0]['id'] in manager.world.players


def test_second_join_is_announced_to_first(arena):
    _, _, connect = arena
    alice = connect('Alice')
    alice.get_received()

    bob = connect('Bob')
    joined = _events(alice, 'joined')
    assert [p['name'] for p in joined] == ['Bob']
    assert _events(bob, 'joined') == []


def test_third_join_is_rejected(arena):
    manager, _, connect = arena
    connect('Alice')
    connect('Bob')
    connect('Carol')

    assert len(manager.world.players) == 2
    assert sorted(p.name for p in manager.world.players.values()) == ['Alice', 'Bob']


def test_tick_broadcasts_state_to_joined_players(arena):
    manager, simulation, connect = arena
    alice = connect('Alice')
    bob = connect('Bob')
    alice.get_received()
    bob.get_received()

    tick_once(manager, simulation)

    for client in (alice, bob):
        states = _events(client, 'state')
        assert len(states) == 1
        assert len(states[0]['players']) == 2


def test_move_then_lethal_bite_broadcasts_game_over(arena):
    manager, _, connect = arena
    alice = connect('Alice')
    bob = connect('Bob')
    bite_distance = manager.config.MOUTH_DISTANCE

    alice.emit('move', {'x': 400, 'y': 300, 'angle': 0})
    bob.emit('move', {'x': 400 + bite_distance, 'y': 300, 'angle': 0})
    alice_id = _events(alice, 'init')[0]['id']
    bob_id = _events(bob, 'init')[0]['id']
    manager.world.players[bob_id].hp = 25

    alice.emit('bite')

    assert manager.world.players[bob_id].alive is False
    assert manager.world.round_active is False
    game_over = _events(bob, 'gameOver')
    assert len(game_over) == 1
    assert game_over[0]['winner']['id'] == alice_id


def test_reset_emits_state_immediately(arena):
    manager, _, connect = arena
    alice = connect('Alice')
    manager.world.round_active = False
    alice.get_received()

    alice.emit('reset')

    states = _events(alice, 'state')
    assert states and states[-1]['roundActive'] is True
    assert manager.world.round_active is True


def test_disconnect_removes_player_and_notifies(arena):
    manager, _, connect = arena
    alice = connect('Alice')
    bob = connect('Bob')
    bob_id = _events(bob, 'init')[0]['id']
    alice.get_received()

    bob.disconnect()

    assert bob_id not in manager.world.players
    assert manager.world.round_active is True
    assert _events(alice, 'left') == [{'id': bob_id}]


def test_leave_command_removes_player(arena):
    manager, _, connect = arena
    alice = connect('Alice')
    alice.emit('leave')
    assert manager.world.players == {}


def test_commands_before_join_are_ignored(arena):
    manager, _, connect = arena
    stranger = connect()
    stranger.emit('move', {'x': 1, 'y': 1, 'angle': 0})
    stranger.emit('bite')
    assert manager.world.players == {}


def test_status_endpoint_reports_arena(arena):
    manager, _, connect = arena
    connect('Alice')

    response = app.test_client().get('/api/arena')
    assert response.status_code == 200
    data = response.get_json()
    assert data['roundActive'] is True
    assert data['capacity'] == {'max': 2, 'used': 1}
    assert data['players'][0]['name'] == 'Alice'


def test_health_endpoint():
    response = app.test_client().get('/api/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'
