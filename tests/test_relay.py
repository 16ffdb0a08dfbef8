"""Tests for the websocket move relay (web/relay.py and the /ws endpoint)."""

import asyncio
import json
import random

from fastapi.testclient import TestClient

from chessrules.constants import Color
from web.app import app
from web.relay import GAME_ID_ALPHABET, GAME_ID_LENGTH, RelayHub, RelaySession

E2E4 = {"fromRow": 1, "fromCol": 4, "toRow": 3, "toCol": 4}


class FakeSocket:
    """Collects everything the hub sends to one client."""

    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_json(self, payload: dict) -> None:
        self.sent.append(payload)

    def types(self) -> list[str]:
        return [m["type"] for m in self.sent]


def _send(hub: RelayHub, session: RelaySession, message) -> None:
    raw = message if isinstance(message, str) else json.dumps(message)
    asyncio.run(hub.handle_message(session, raw))


def _paired() -> tuple[RelayHub, RelaySession, RelaySession, str]:
    hub = RelayHub(rng=random.Random(0))
    white = RelaySession(FakeSocket())
    black = RelaySession(FakeSocket())
    _send(hub, white, {"type": "create_game"})
    game_id = white.socket.sent[0]["gameId"]
    _send(hub, black, {"type": "join_game", "gameId": game_id})
    return hub, white, black, game_id


def test_create_game_assigns_white() -> None:
    hub = RelayHub(rng=random.Random(0))
    session = RelaySession(FakeSocket())
    _send(hub, session, {"type": "create_game"})
    msg = session.socket.sent[0]
    assert msg["type"] == "game_created"
    assert msg["color"] == "w"
    assert len(msg["gameId"]) == GAME_ID_LENGTH
    assert set(msg["gameId"]) <= set(GAME_ID_ALPHABET)
    assert session.color is Color.WHITE
    assert msg["gameId"] in hub.games


def test_join_notifies_both_players() -> None:
    _, white, black, game_id = _paired()
    assert black.socket.sent[0] == {"type": "game_created", "gameId": game_id, "color": "b"}
    assert white.socket.types() == ["game_created", "game_state", "player_joined"]
    assert black.socket.types() == ["game_created", "game_state", "player_joined"]
    assert white.socket.sent[1]["color"] == "w"
    assert white.socket.sent[1]["currentPlayer"] == "w"
    assert white.socket.sent[2]["color"] == "b"
    assert black.socket.sent[2]["color"] == "w"


def test_join_unknown_game() -> None:
    hub = RelayHub()
    session = RelaySession(FakeSocket())
    _send(hub, session, {"type": "join_game", "gameId": "NOPE00"})
    assert session.socket.sent == [{"type": "error", "message": "Game not found"}]


def test_join_full_game() -> None:
    hub, _, _, game_id = _paired()
    third = RelaySession(FakeSocket())
    _send(hub, third, {"type": "join_game", "gameId": game_id})
    assert third.socket.sent == [{"type": "error", "message": "Game is full"}]


def test_second_create_from_seated_client_is_refused() -> None:
    hub = RelayHub(rng=random.Random(0))
    session = RelaySession(FakeSocket())
    _send(hub, session, {"type": "create_game"})
    game_id = session.game_id
    _send(hub, session, {"type": "create_game"})
    assert session.socket.sent[-1] == {"type": "error", "message": "Already in a game"}
    assert list(hub.games) == [game_id]

    asyncio.run(hub.disconnect(session))
    assert hub.games == {}


def test_joining_own_game_is_refused() -> None:
    hub = RelayHub(rng=random.Random(0))
    session = RelaySession(FakeSocket())
    _send(hub, session, {"type": "create_game"})
    game_id = session.game_id
    _send(hub, session, {"type": "join_game", "gameId": game_id})
    assert session.socket.sent[-1] == {"type": "error", "message": "Already in a game"}
    assert hub.games[game_id].black is None
    assert session.color is Color.WHITE

    asyncio.run(hub.disconnect(session))
    assert hub.games == {}


def test_seated_client_cannot_join_another_game() -> None:
    hub, white, _, game_id = _paired()
    other = RelaySession(FakeSocket())
    _send(hub, other, {"type": "create_game"})
    _send(hub, white, {"type": "join_game", "gameId": other.game_id})
    assert white.socket.sent[-1] == {"type": "error", "message": "Already in a game"}
    assert hub.games[other.game_id].black is None
    assert white.game_id == game_id


def test_moves_alternate_and_are_broadcast() -> None:
    hub, white, black, game_id = _paired()
    _send(hub, black, {"type": "move", "move": E2E4})
    assert black.socket.sent[-1] == {"type": "error", "message": "Not your turn"}

    _send(hub, white, {"type": "move", "move": E2E4})
    expected = {"type": "move", "gameId": game_id, "move": E2E4, "currentPlayer": "b"}
    assert white.socket.sent[-1] == expected
    assert black.socket.sent[-1] == expected
    assert hub.games[game_id].moves == [E2E4]

    _send(hub, white, {"type": "move", "move": E2E4})
    assert white.socket.sent[-1] == {"type": "error", "message": "Not your turn"}


def test_relay_does_not_judge_legality() -> None:
    hub, white, _, _ = _paired()
    nonsense = {"fromRow": 4, "fromCol": 4, "toRow": 0, "toCol": 0}
    _send(hub, white, {"type": "move", "move": nonsense})
    assert white.socket.sent[-1]["type"] == "move"


def test_move_outside_a_game() -> None:
    hub = RelayHub()
    session = RelaySession(FakeSocket())
    _send(hub, session, {"type": "move", "move": E2E4})
    assert session.socket.sent == [{"type": "error", "message": "Invalid game"}]


def test_malformed_messages() -> None:
    hub, white, _, _ = _paired()
    _send(hub, white, "{not json")
    _send(hub, white, "[1, 2]")
    _send(hub, white, {"type": "move", "move": {"fromRow": 9}})
    _send(hub, white, {"type": "resign"})
    assert [m["message"] for m in white.socket.sent[-4:]] == [
        "Invalid message format",
        "Invalid message format",
        "Invalid message format",
        "Unknown message type",
    ]


def test_disconnect_notifies_opponent_and_drops_empty_game() -> None:
    hub, white, black, game_id = _paired()
    asyncio.run(hub.disconnect(black))
    assert white.socket.sent[-1] == {"type": "player_disconnected", "color": "b"}
    assert game_id in hub.games

    asyncio.run(hub.disconnect(white))
    assert game_id not in hub.games


def test_disconnect_without_game_is_quiet() -> None:
    hub = RelayHub()
    session = RelaySession(FakeSocket())
    asyncio.run(hub.disconnect(session))
    assert session.socket.sent == []


def test_websocket_endpoint_pairs_players() -> None:
    with TestClient(app) as client:
        with client.websocket_connect("/ws") as white:
            white.send_json({"type": "create_game"})
            created = white.receive_json()
            assert created["type"] == "game_created" and created["color"] == "w"

            with client.websocket_connect("/ws") as black:
                black.send_json({"type": "join_game", "gameId": created["gameId"]})
                assert black.receive_json()["color"] == "b"
                assert black.receive_json()["type"] == "game_state"
                assert black.receive_json()["type"] == "player_joined"
                assert white.receive_json()["type"] == "game_state"
                assert white.receive_json()["type"] == "player_joined"

                white.send_json({"type": "move", "move": E2E4})
                assert white.receive_json()["currentPlayer"] == "b"
                relayed = black.receive_json()
                assert relayed["type"] == "move" and relayed["move"] == E2E4
