"""
HTTP tests for the Flask routes.
"""
from minesweeper_server.board import Board
from minesweeper_server.registry import GameRegistry
from minesweeper_server.types import ActiveGame


def new_game(client, **payload):
    body = {"size": 3, "mine_count": 1}
    body.update(payload)
    return client.post("/api/new-game", json=body)


def install_board(registry: GameRegistry, board: Board) -> str:
    """Register an active game with a known layout."""
    game_id = registry.create_deferred(board.size, board.mine_count)
    registry.get(game_id).game = ActiveGame(board=board)
    return game_id


# ============================================================================
# Game Creation Tests
# ============================================================================

class TestNewGame:
    """Test POST /api/new-game."""

    def test_returns_hidden_board(self, client) -> None:
        r = new_game(client, size=4, mine_count=3)
        assert r.status_code == 200
        data = r.get_json()
        assert len(data["game_id"]) == 8
        assert data["size"] == 4
        assert data["mine_count"] == 3
        assert data["game_state"] == "InProgress"
        assert len(data["board"]) == 4
        for row in data["board"]:
            assert row == [{"exposed": False, "flagged": False, "value": None}] * 4

    def test_deferred_by_default(self, client, registry: GameRegistry) -> None:
        data = new_game(client).get_json()
        assert registry.get(data["game_id"]).is_pending is True

    def test_immediate_when_first_click_not_safe(self, client, registry: GameRegistry) -> None:
        data = new_game(client, size=5, mine_count=4, first_click_safe=False).get_json()
        session = registry.get(data["game_id"])
        assert isinstance(session.game, ActiveGame)
        assert all(tile["value"] is None for row in data["board"] for tile in row)

    def test_too_many_mines_is_bad_request(self, client) -> None:
        r = new_game(client, size=3, mine_count=9)
        assert r.status_code == 400
        assert "Too many mines" in r.get_json()["error"]

    def test_missing_fields_is_bad_request(self, client) -> None:
        r = client.post("/api/new-game", json={"size": 3})
        assert r.status_code == 400

    def test_non_json_body_is_bad_request(self, client) -> None:
        r = client.post("/api/new-game", data="not json", content_type="text/plain")
        assert r.status_code == 400

    def test_boolean_size_is_rejected(self, client) -> None:
        r = new_game(client, size=True)
        assert r.status_code == 400

    def test_cors_header_present(self, client) -> None:
        r = client.post("/api/new-game", json={"size": 3, "mine_count": 1},
                        headers={"Origin": "http://example.com"})
        assert r.headers.get("Access-Control-Allow-Origin") == "*"


# ============================================================================
# State Tests
# ============================================================================

class TestGetGame:
    """Test GET and DELETE on /api/game/<id>."""

    def test_unknown_game_is_not_found(self, client) -> None:
        r = client.get("/api/game/nope1234")
        assert r.status_code == 404

    def test_state_hides_unexposed_values(self, client, registry: GameRegistry) -> None:
        game_id = install_board(registry, Board.with_mines(5, [(x, 2) for x in range(5)]))
        client.post(f"/api/game/{game_id}/click/0/0")

        data = client.get(f"/api/game/{game_id}").get_json()
        assert data["game_id"] == game_id
        assert data["game_state"] == "InProgress"
        for x, row in enumerate(data["board"]):
            for y, tile in enumerate(row):
                if y < 2:
                    assert tile["exposed"] is True
                    assert tile["value"] in ("0", "2", "3")
                else:
                    assert tile == {"exposed": False, "flagged": False, "value": None}

    def test_delete_game(self, client, registry: GameRegistry) -> None:
        game_id = new_game(client).get_json()["game_id"]
        assert client.delete(f"/api/game/{game_id}").status_code == 204
        assert client.get(f"/api/game/{game_id}").status_code == 404
        assert client.delete(f"/api/game/{game_id}").status_code == 404


# ============================================================================
# Action Tests
# ============================================================================

class TestActions:
    """Test click and flag routes."""

    def test_first_click_generates_board(self, client) -> None:
        game_id = new_game(client, size=9, mine_count=10).get_json()["game_id"]
        data = client.post(f"/api/game/{game_id}/click/4/4").get_json()

        assert data["success"] is True
        assert data["message"] == "First click processed! Game board generated."
        assert data["game_state"] != "Lost"
        assert data["board"][4][4]["exposed"] is True
        assert data["board"][4][4]["value"] != "bomb"

    def test_flag_before_first_click(self, client) -> None:
        game_id = new_game(client).get_json()["game_id"]
        data = client.post(f"/api/game/{game_id}/flag/0/0").get_json()

        assert data["success"] is False
        assert data["error"] == "GameNotStarted"
        assert data["message"] == "Make your first click before flagging!"
        assert data["game_state"] == "InProgress"

    def test_click_unknown_game_is_not_found(self, client) -> None:
        assert client.post("/api/game/nope1234/click/0/0").status_code == 404
        assert client.post("/api/game/nope1234/flag/0/0").status_code == 404

    def test_loss_exposes_all_mines(self, client, registry: GameRegistry) -> None:
        game_id = install_board(registry, Board.with_mines(3, [(0, 0), (2, 2)]))
        data = client.post(f"/api/game/{game_id}/click/0/0").get_json()

        assert data["success"] is True
        assert data["game_state"] == "Lost"
        assert data["board"][0][0]["value"] == "bomb"
        assert data["board"][2][2]["value"] == "bomb"
        assert data["board"][1][1]["value"] is None

    def test_win_scenario(self, client, registry: GameRegistry) -> None:
        game_id = install_board(registry, Board.with_mines(2, [(0, 0), (0, 1)]))
        client.post(f"/api/game/{game_id}/click/1/0")
        data = client.post(f"/api/game/{game_id}/click/1/1").get_json()

        assert data["game_state"] == "Won"
        assert [tile["value"] for tile in data["board"][1]] == ["2", "2"]

    def test_click_after_game_over_fails(self, client, registry: GameRegistry) -> None:
        game_id = install_board(registry, Board.with_mines(3, [(0, 0)]))
        client.post(f"/api/game/{game_id}/click/0/0")
        data = client.post(f"/api/game/{game_id}/click/2/2").get_json()

        assert data["success"] is False
        assert data["error"] == "GameOver"
        assert data["board"][2][2]["exposed"] is False

    def test_flag_toggle_round_trip(self, client, registry: GameRegistry) -> None:
        game_id = install_board(registry, Board.with_mines(3, [(0, 0)]))
        placed = client.post(f"/api/game/{game_id}/flag/0/0").get_json()
        assert placed["success"] is True
        assert placed["board"][0][0]["flagged"] is True

        blocked = client.post(f"/api/game/{game_id}/click/0/0").get_json()
        assert blocked["success"] is False
        assert blocked["error"] == "TileFlagged"

        removed = client.post(f"/api/game/{game_id}/flag/0/0").get_json()
        assert removed["board"][0][0]["flagged"] is False

    def test_negative_coordinates_are_out_of_bounds(self, client, registry: GameRegistry) -> None:
        game_id = install_board(registry, Board.with_mines(3, [(0, 0)]))
        data = client.post(f"/api/game/{game_id}/click/-1/0").get_json()
        assert data["success"] is False
        assert data["error"] == "OutOfBounds"


class TestHealth:
    def test_health_reports_sessions(self, client) -> None:
        new_game(client)
        data = client.get("/api/health").get_json()
        assert data["status"] == "OK"
        assert data["sessions"] == 1
