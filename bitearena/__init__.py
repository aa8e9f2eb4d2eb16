import logging
import os

from dotenv import load_dotenv
from flask import Flask
from flask_socketio import SocketIO

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(level=logging.INFO)

# Setup of key Flask object (app)
app = Flask(__name__)

# async_mode defaults to 'threading'; set SOCKETIO_ASYNC_MODE=eventlet for
# production (eventlet must be installed, see the 'eventlet' extra)
async_mode = os.environ.get('SOCKETIO_ASYNC_MODE') or 'threading'
if async_mode == 'eventlet':
    import eventlet
    eventlet.monkey_patch()

socketio_debug = (os.environ.get('SOCKETIO_DEBUG') or '0').lower() in ('1', 'true', 'yes')

socketio = SocketIO(
    app,
    cors_allowed_origins=os.environ.get('ARENA_CORS_ORIGINS') or '*',
    async_mode=async_mode,
    logger=socketio_debug,
    engineio_logger=socketio_debug,
    ping_timeout=60,
    ping_interval=25
)

# Server settings, default port 3000 matches the browser client
app.config['ARENA_HOST'] = os.environ.get('ARENA_HOST') or '0.0.0.0'
app.config['ARENA_PORT'] = int(os.environ.get('ARENA_PORT') or 3000)
app.config['ARENA_CORS_ORIGINS'] = os.environ.get('ARENA_CORS_ORIGINS') or '*'

# The tick loop is disabled in tests, they drive ticks by hand
app.config['ARENA_TICK_LOOP'] = (os.environ.get('ARENA_TICK_LOOP') or '1').lower() not in ('0', 'false', 'no')

# Browser settings
SECRET_KEY = os.environ.get('SECRET_KEY') or 'SECRET_KEY'
app.config['SECRET_KEY'] = SECRET_KEY

# Allow non-ASCII player names in JSON responses
app.config['JSON_AS_ASCII'] = False
