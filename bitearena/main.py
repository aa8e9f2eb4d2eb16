import os

from flask import jsonify, request
from flask_cors import CORS

# import "objects" from "this" project
from bitearena import app, socketio
from bitearena.api.arena import arena_api
from bitearena.model.arena import ArenaConfig
from bitearena.socketio_handlers.arena_events import init_arena_socket

# ============================================================================
# CORS CONFIGURATION
# ============================================================================
CORS(app, origins=app.config['ARENA_CORS_ORIGINS'], supports_credentials=True)

# ============================================================================
# REGISTER API BLUEPRINTS
# ============================================================================
app.register_blueprint(arena_api)

# ============================================================================
# ARENA SOCKET HANDLERS
# ============================================================================
arena_manager, arena_simulation = init_arena_socket(
    socketio,
    config=ArenaConfig.from_mapping(os.environ),
    start_loop=app.config['ARENA_TICK_LOOP'],
)
app.extensions['arena'] = arena_manager

# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.errorhandler(404)
def page_not_found(e):
    if request.path.startswith('/api/'):
        return jsonify({'error': 'API endpoint not found'}), 404
    return jsonify({'error': 'Not found'}), 404


# ============================================================================
# RUN APPLICATION
# ============================================================================

def run():
    host = app.config['ARENA_HOST']
    port = app.config['ARENA_PORT']
    print(f"\n{'='*60}")
    print(f"Arena server running: http://localhost:{port}")
    print(f"Status endpoint: http://localhost:{port}/api/arena")
    print(f"{'='*60}\n")
    if socketio.server.eio.async_mode == 'threading':
        socketio.run(app, host=host, port=port, allow_unsafe_werkzeug=True)
    else:
        socketio.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
