"""Tests for the FastAPI Tic-Tac-Toe interface."""

from __future__ import annotations

import pytest
from fastapi import BackgroundTasks
from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.stats import StatsStore
from tictactoe.ui import app


client = TestClient(app)


@pytest.fixture(autouse=True)
def isolated_stats(tmp_path, monkeypatch):
    monkeypatch.setattr(ui, "STATS", StatsStore(tmp_path / "stats.json"))
    monkeypatch.setattr(ui, "AI_MOVE_DELAY", 0.0)


def _new_game(**payload) -> dict:
    response = client.post("/api/game", json=payload)
    assert response.status_code == 200
    return response.json()


def _move(game_id: str, index: int):
    return client.post(f"/api/game/{game_id}/move", json={"index": index})


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "Tic-Tac-Toe" in response.text


def test_create_game_and_first_move():
    payload = _new_game(mode="singlePlayer", difficulty="minimax")
    assert payload["currentPlayer"] == "X"
    assert payload["status"] == "active"
    assert payload["cells"] == [""] * 9
    assert payload["availableMoves"] == list(range(9))

    game_id = payload["id"]
    move_response = _move(game_id, 0)
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["moveLog"][0] == {"player": "X", "index": 0}
    assert state["cells"][0] == "X"
    assert state["currentPlayer"] == "O"
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["currentPlayer"] == "X"
    assert final_state["aiPending"] is False
    assert final_state["lastMove"] == {"player": "O", "index": 4}


def test_occupied_cell_rejected():
    game_id = _new_game(mode="twoPlayer")["id"]
    assert _move(game_id, 4).status_code == 200

    duplicate_move = _move(game_id, 4)
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]

    state = client.get(f"/api/game/{game_id}").json()
    assert state["cells"][4] == "X"
    assert state["currentPlayer"] == "O"


def test_two_player_game_records_win():
    game_id = _new_game(mode="twoPlayer")["id"]
    for index in (0, 3, 1, 4):
        assert _move(game_id, index).status_code == 200
    state = _move(game_id, 2).json()

    assert state["status"] == "won"
    assert state["winner"] == "X"
    assert state["winningLine"] == [0, 1, 2]
    assert state["availableMoves"] == []
    assert _move(game_id, 5).status_code == 400

    stats = client.get("/api/stats").json()
    assert stats["scoreX"] == 1
    assert stats["totalGames"] == 1
    assert stats["bestStreak"] == 1

    # Re-reading a finished game must not count it twice.
    client.get(f"/api/game/{game_id}")
    assert client.get("/api/stats").json()["totalGames"] == 1


def test_single_player_game_runs_to_completion():
    game_id = _new_game(mode="singlePlayer", difficulty="minimax")["id"]
    state = client.get(f"/api/game/{game_id}").json()
    while state["status"] == "active":
        assert _move(game_id, state["availableMoves"][0]).status_code == 200
        state = client.get(f"/api/game/{game_id}").json()

    assert state["winner"] != "X"
    assert len(state["moveLog"]) <= 9
    stats = client.get("/api/stats").json()
    assert stats["totalGames"] == 1
    assert stats["scoreX"] == 0


def test_restart_clears_board():
    game_id = _new_game(mode="twoPlayer")["id"]
    _move(game_id, 0)
    response = client.post(f"/api/game/{game_id}/restart")
    assert response.status_code == 200
    state = response.json()
    assert state["cells"] == [""] * 9
    assert state["moveLog"] == []
    assert state["currentPlayer"] == "X"


def test_rejects_unknown_difficulty_and_mode():
    assert client.post("/api/game", json={"difficulty": "impossible"}).status_code == 422
    assert client.post("/api/game", json={"mode": "online"}).status_code == 422


def test_rejects_out_of_range_move():
    game_id = _new_game()["id"]
    assert _move(game_id, 9).status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/INVALID").status_code == 404
    assert client.post("/api/game/INVALID/restart").status_code == 404


def test_reset_stats():
    ui.STATS.record("O")
    response = client.delete("/api/stats")
    assert response.status_code == 200
    assert response.json()["totalGames"] == 0


def test_move_rejected_while_computer_is_thinking():
    game_id = _new_game(mode="singlePlayer")["id"]
    session = ui.SESSIONS[game_id]
    session.ai_pending = True

    response = _move(game_id, 0)
    assert response.status_code == 400
    assert response.json()["detail"] == "Computer is completing its move"
    state = client.get(f"/api/game/{game_id}").json()
    assert state["cells"] == [""] * 9
    assert state["moveLog"] == []


def test_move_rejected_on_computers_turn():
    game_id = _new_game(mode="singlePlayer")["id"]
    ui.SESSIONS[game_id].game.current_player = "O"

    response = _move(game_id, 0)
    assert response.status_code == 400
    assert response.json()["detail"] == "It is the computer's turn"
    assert client.get(f"/api/game/{game_id}").json()["cells"] == [""] * 9


def test_restart_before_computer_turn_runs():
    game_id = _new_game(mode="singlePlayer")["id"]
    session = ui.SESSIONS[game_id]
    tasks = BackgroundTasks()
    ui._apply_player_move(game_id, session, 0, tasks)
    assert session.ai_pending is True
    assert len(tasks.tasks) == 1

    client.post(f"/api/game/{game_id}/restart")
    ui._run_ai_turn(game_id)

    state = client.get(f"/api/game/{game_id}").json()
    assert state["cells"] == [""] * 9
    assert state["currentPlayer"] == "X"
    assert state["moveLog"] == []
    assert state["aiPending"] is False
    assert _move(game_id, 4).status_code == 200


def test_failed_computer_turn_does_not_lock_game(monkeypatch):
    game_id = _new_game(mode="singlePlayer")["id"]
    session = ui.SESSIONS[game_id]
    ui._apply_player_move(game_id, session, 0, BackgroundTasks())

    def broken_sleep(seconds):
        raise OverflowError("sleep length is too large")

    with monkeypatch.context() as patched:
        patched.setattr(ui.time, "sleep", broken_sleep)
        with pytest.raises(OverflowError):
            ui._run_ai_turn(game_id)
    assert session.ai_pending is False

    client.post(f"/api/game/{game_id}/restart")
    assert _move(game_id, 4).status_code == 200
