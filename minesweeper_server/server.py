"""Flask server for Minesweeper game."""
import logging
from dataclasses import asdict
from datetime import datetime
from flask import Flask, request, jsonify
from flask_cors import CORS

from minesweeper_server.errors import InvalidConfig, NotFound
from minesweeper_server.registry import GameRegistry
from minesweeper_server.settings import ServerConfig, get_server_config
from minesweeper_server.types import ActionResult, BoardSnapshot, GameConfig

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

# Global state, replaced by main() once the configuration is loaded
config: ServerConfig = ServerConfig()
registry: GameRegistry = GameRegistry()


def serialize_board(snapshot: BoardSnapshot):
    """Convert the visible tiles to JSON-serializable rows."""
    return [[asdict(tile) for tile in row] for row in snapshot.tiles]


def serialize_game(game_id: str, snapshot: BoardSnapshot):
    return {
        'game_id': game_id,
        'size': snapshot.size,
        'mine_count': snapshot.mine_count,
        'game_state': snapshot.status.value,
        'board': serialize_board(snapshot),
    }


def serialize_action(result: ActionResult):
    response = {
        'success': result.success,
        'message': result.message,
        'game_state': result.snapshot.status.value,
        'board': serialize_board(result.snapshot),
    }
    if result.error:
        response['error'] = result.error
    return response


def parse_game_config(data) -> GameConfig:
    """Validate the new-game payload."""
    if not isinstance(data, dict):
        raise InvalidConfig('Invalid game configuration')

    size = data.get('size')
    mine_count = data.get('mine_count')
    if not isinstance(size, int) or isinstance(size, bool) or \
       not isinstance(mine_count, int) or isinstance(mine_count, bool):
        raise InvalidConfig('Invalid game configuration')

    first_click_safe = data.get('first_click_safe', config.first_click_safe)
    if not isinstance(first_click_safe, bool):
        raise InvalidConfig('first_click_safe must be a boolean')

    return GameConfig(size=size, mine_count=mine_count, first_click_safe=first_click_safe)


@app.route('/api/new-game', methods=['POST'])
def new_game():
    """Create a new game."""
    try:
        game_config = parse_game_config(request.get_json(silent=True))

        # Drop games idle longer than the configured TTL
        registry.evict_idle(config.session_ttl)

        if game_config.first_click_safe:
            game_id = registry.create_deferred(game_config.size, game_config.mine_count)
            snapshot = BoardSnapshot.empty(game_config.size, game_config.mine_count)
        else:
            game_id, board = registry.create_immediate(game_config.size, game_config.mine_count)
            snapshot = board.snapshot()

        return jsonify(serialize_game(game_id, snapshot))

    except InvalidConfig as error:
        return jsonify({'error': error.message}), 400
    except Exception as error:
        logger.error(f"Error creating game: {error}")
        return jsonify({'error': 'Failed to create game'}), 500


@app.route('/api/game/<game_id>', methods=['GET'])
def get_game_state(game_id):
    """Get game state."""
    try:
        return jsonify(serialize_game(game_id, registry.snapshot(game_id)))
    except NotFound as error:
        return jsonify({'error': error.message}), 404
    except Exception as error:
        logger.error(f"Error getting game state: {error}")
        return jsonify({'error': 'Failed to get game state'}), 500


@app.route('/api/game/<game_id>', methods=['DELETE'])
def delete_game(game_id):
    """Delete a game."""
    try:
        registry.remove(game_id)
        return '', 204
    except NotFound as error:
        return jsonify({'error': error.message}), 404


@app.route('/api/game/<game_id>/click/<int(signed=True):x>/<int(signed=True):y>', methods=['POST'])
def click_tile(game_id, x, y):
    """Reveal a tile."""
    try:
        return jsonify(serialize_action(registry.reveal(game_id, x, y)))
    except NotFound as error:
        return jsonify({'error': error.message}), 404
    except Exception as error:
        logger.error(f"Error revealing tile: {error}")
        return jsonify({'error': 'Failed to reveal tile'}), 500


@app.route('/api/game/<game_id>/flag/<int(signed=True):x>/<int(signed=True):y>', methods=['POST'])
def toggle_flag(game_id, x, y):
    """Flag or unflag a tile."""
    try:
        return jsonify(serialize_action(registry.toggle_flag(game_id, x, y)))
    except NotFound as error:
        return jsonify({'error': error.message}), 404
    except Exception as error:
        logger.error(f"Error toggling flag: {error}")
        return jsonify({'error': 'Failed to toggle flag'}), 500


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'OK',
        'timestamp': datetime.now().isoformat(),
        'sessions': len(registry),
    })


def main():
    """Start the Flask server."""
    global config, registry
    try:
        config = get_server_config()
        registry = GameRegistry(protect_neighbors=config.protect_neighbors)

        ssl_context = None
        scheme = 'http'
        if config.use_https:
            ssl_context = (config.cert_path, config.key_path)
            scheme = 'https'

        logger.info(f"Minesweeper server running on {scheme}://{config.host}:{config.port}")
        app.run(host=config.host, port=config.port, ssl_context=ssl_context, debug=False, threaded=True)

    except Exception as error:
        logger.error(f"Failed to start server: {error}")
        exit(1)


if __name__ == "__main__":
    main()
