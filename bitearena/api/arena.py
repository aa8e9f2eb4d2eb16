from flask import Blueprint, current_app
from flask_restful import Api, Resource

from bitearena.model.arena import now_ms

arena_api = Blueprint('arena_api', __name__, url_prefix='/api')
api = Api(arena_api)


class HealthAPI(Resource):
    def get(self):
        return {'status': 'ok', 'service': 'bitearena'}, 200


class ArenaStatusAPI(Resource):
    def get(self):
        """Current config, players and round flag, read under the arena lock."""
        manager = current_app.extensions.get('arena')
        if manager is None:
            return {'message': 'Arena not initialised'}, 503

        with manager.lock:
            status = manager.serialize_status(now_ms())
        return status, 200


api.add_resource(HealthAPI, '/health')
api.add_resource(ArenaStatusAPI, '/arena')
