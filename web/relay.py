"""
Move relay for networked two-player games.

The relay pairs two websocket clients into a game and forwards their
moves. It is deliberately thin: it tracks whose turn it is so a player
cannot move twice in a row, but it never checks whether a move is legal.
Each client validates relayed moves with its own RulesEngine
(RulesEngine.apply_remote_move) before showing them.

Wire protocol (JSON objects, one per websocket text frame):

    client -> relay
        {"type": "create_game"}
        {"type": "join_game", "gameId": "AB12CD"}
        {"type": "move", "move": {"fromRow": 1, "fromCol": 4, "toRow": 3, "toCol": 4}}

    relay -> client
        game_created        {gameId, color}        creator is "w", joiner "b"
        game_state          {gameId, color, moves, currentPlayer}
        player_joined       {gameId, color}
        move                {gameId, move, currentPlayer}
        player_disconnected {color}
        error               {message}

A client holds at most one seat; create_game and join_game from a seated
client are refused with "Already in a game". Games live in memory only.
A game is dropped once both seats are empty.
"""

import json
import logging
import random
import string
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from chessrules.constants import BOARD_SIZE, Color

_log = logging.getLogger(__name__)

GAME_ID_LENGTH: int = 6
GAME_ID_ALPHABET: str = string.ascii_uppercase + string.digits


class RelayMove(BaseModel):
    """A relayed move. Field names follow the browser client's wire format."""

    fromRow: int = Field(ge=0, lt=BOARD_SIZE)
    fromCol: int = Field(ge=0, lt=BOARD_SIZE)
    toRow: int = Field(ge=0, lt=BOARD_SIZE)
    toCol: int = Field(ge=0, lt=BOARD_SIZE)


@dataclass
class RelaySession:
    """
    One connected client.

    Attributes:
        socket:  Anything with an async send_json(dict) method (a Starlette
                 WebSocket in production).
        game_id: Game this client created or joined, if any.
        color:   Seat this client occupies in that game.
        closed:  Set once the client disconnected or a send to it failed.
    """

    socket: Any
    game_id: str | None = None
    color: Color | None = None
    closed: bool = False


@dataclass
class RelayGame:
    game_id: str
    white: RelaySession | None = None
    black: RelaySession | None = None
    moves: list[dict[str, int]] = field(default_factory=list)
    current_player: Color = Color.WHITE

    def seat(self, color: Color) -> RelaySession | None:
        return self.white if color is Color.WHITE else self.black

    def players(self) -> list[tuple[Color, RelaySession]]:
        seats = ((Color.WHITE, self.white), (Color.BLACK, self.black))
        return [(color, session) for color, session in seats if session is not None]


class RelayHub:
    """
    In-memory registry of relay games.

    Args:
        rng: Random source for game ids; pass a seeded Random in tests.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.games: dict[str, RelayGame] = {}
        self._rng = rng or random.Random()

    # -----------------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------------

    async def handle_message(self, session: RelaySession, raw: str) -> None:
        """Decode one text frame from `session` and act on it."""
        try:
            data = json.loads(raw)
        except ValueError:
            await self._error(session, "Invalid message format")
            return
        if not isinstance(data, dict):
            await self._error(session, "Invalid message format")
            return

        msg_type = data.get("type")
        if msg_type == "create_game":
            await self.create_game(session)
        elif msg_type == "join_game":
            await self.join_game(session, str(data.get("gameId", "")))
        elif msg_type == "move":
            try:
                move = RelayMove.model_validate(data.get("move"))
            except ValidationError:
                await self._error(session, "Invalid message format")
                return
            await self.relay_move(session, move)
        else:
            await self._error(session, "Unknown message type")

    async def disconnect(self, session: RelaySession) -> None:
        """Free the session's seat and tell the opponent, if any."""
        session.closed = True
        game = self.games.get(session.game_id) if session.game_id else None
        if game is None or session.color is None:
            return
        _log.info("Player %s left game %s", session.color, game.game_id)

        if session.color is Color.WHITE:
            game.white = None
        else:
            game.black = None
        for _, other in game.players():
            await self._send(other, {"type": "player_disconnected", "color": session.color.value})
        if game.white is None and game.black is None:
            del self.games[game.game_id]

    # -----------------------------------------------------------------------
    # Commands
    # -----------------------------------------------------------------------

    async def create_game(self, session: RelaySession) -> str | None:
        if session.game_id is not None:
            await self._error(session, "Already in a game")
            return None
        game_id = self._new_game_id()
        self.games[game_id] = RelayGame(game_id=game_id, white=session)
        session.game_id = game_id
        session.color = Color.WHITE
        _log.info("Game created: %s", game_id)
        await self._send(session, {"type": "game_created", "gameId": game_id,
                                   "color": Color.WHITE.value})
        return game_id

    async def join_game(self, session: RelaySession, game_id: str) -> None:
        if session.game_id is not None:
            # Covers joining the game this session created.
            await self._error(session, "Already in a game")
            return
        game = self.games.get(game_id)
        if game is None:
            await self._error(session, "Game not found")
            return
        if game.black is not None:
            await self._error(session, "Game is full")
            return

        game.black = session
        session.game_id = game_id
        session.color = Color.BLACK
        _log.info("Player joined game %s as black", game_id)
        await self._send(session, {"type": "game_created", "gameId": game_id,
                                   "color": Color.BLACK.value})

        for color, player in game.players():
            await self._send(player, {
                "type": "game_state",
                "gameId": game_id,
                "color": color.value,
                "moves": game.moves,
                "currentPlayer": game.current_player.value,
            })
        if game.white is not None:
            # Each side is told the colour of its opponent.
            await self._send(game.white, {"type": "player_joined", "gameId": game_id,
                                          "color": Color.BLACK.value})
            await self._send(session, {"type": "player_joined", "gameId": game_id,
                                       "color": Color.WHITE.value})

    async def relay_move(self, session: RelaySession, move: RelayMove) -> None:
        game = self.games.get(session.game_id) if session.game_id else None
        if game is None:
            await self._error(session, "Invalid game")
            return
        if session.color is not game.current_player:
            await self._error(session, "Not your turn")
            return

        payload = move.model_dump()
        game.moves.append(payload)
        game.current_player = game.current_player.opposite
        _log.info("Game %s: %d moves, %s to move", game.game_id, len(game.moves),
                  game.current_player)
        for _, player in game.players():
            await self._send(player, {
                "type": "move",
                "gameId": game.game_id,
                "move": payload,
                "currentPlayer": game.current_player.value,
            })

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def _new_game_id(self) -> str:
        while True:
            game_id = "".join(self._rng.choices(GAME_ID_ALPHABET, k=GAME_ID_LENGTH))
            if game_id not in self.games:
                return game_id

    async def _send(self, session: RelaySession, payload: dict[str, Any]) -> None:
        """Send to one client. A client whose socket already went away is skipped."""
        if session.closed:
            return
        try:
            await session.socket.send_json(payload)
        except Exception:
            _log.warning("Dropping %s message for a closed socket", payload.get("type"),
                         exc_info=True)
            session.closed = True

    async def _error(self, session: RelaySession, message: str) -> None:
        await self._send(session, {"type": "error", "message": message})
