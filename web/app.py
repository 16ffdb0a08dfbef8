"""
FastAPI web application for the chess rules engine.

Two surfaces:

- A stateless JSON rules API. The client posts a full FEN with each request;
  the server rebuilds a RulesEngine from it, answers, and keeps nothing.
    POST /api/move    validate and apply a move, return the new position
    POST /api/moves   legal destinations of the piece on one square
    POST /api/state   game status of a position
- A websocket move relay at /ws pairing two browsers into a game
  (see web.relay).

Architecture notes:
- Sync REST handlers: FastAPI runs them in a thread pool, which suits the
  CPU-bound terminal-state scan that follows each move.
- An illegal move is a normal 200 response with legal=false. Only a
  malformed FEN is a client error (400).
"""

import logging

import uvicorn
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, field_validator

from chessrules.board import Board
from chessrules.constants import BOARD_SIZE, Color, DrawReason, Phase
from chessrules.fen import STARTING_FEN
from chessrules.rules import RulesEngine
from web.relay import RelayHub, RelaySession

# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO)
_log = logging.getLogger(__name__)

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8080

app = FastAPI(title="Chess Rules", version="1.0.0")
hub = RelayHub()


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class PositionRequest(BaseModel):
    """
    A position to work on.

    Fields:
        fen: Full FEN string. Defaults to the standard starting position.
    """

    fen: str = STARTING_FEN

    @field_validator("fen")
    @classmethod
    def strip_fen(cls, v: str) -> str:
        """Drop surrounding whitespace pasted along with the FEN."""
        return v.strip()


class SquareRequest(PositionRequest):
    row: int = Field(ge=0, lt=BOARD_SIZE)
    col: int = Field(ge=0, lt=BOARD_SIZE)


class MoveRequest(PositionRequest):
    from_row: int = Field(ge=0, lt=BOARD_SIZE)
    from_col: int = Field(ge=0, lt=BOARD_SIZE)
    to_row: int = Field(ge=0, lt=BOARD_SIZE)
    to_col: int = Field(ge=0, lt=BOARD_SIZE)


class StatusResponse(BaseModel):
    """
    Game status of a position.

    Fields:
        fen:          Position the status describes.
        state:        ongoing / checkmate / stalemate / draw.
        winner:       "w" or "b" after checkmate, otherwise null.
        side_to_move: "w" or "b".
        draw_reason:  fifty_move / insufficient_material when drawn.
        in_check:     Whether the side to move is in check.
    """

    fen: str
    state: Phase
    winner: Color | None
    side_to_move: Color
    draw_reason: DrawReason | None = None
    in_check: bool


class MoveResponse(StatusResponse):
    """
    Result of a move attempt.

    Fields:
        legal:  False if the move was rejected; fen is then unchanged.
        events: Transitions the move caused (capture, castle, check, ...).
    """

    legal: bool
    events: list[str]


class DestinationsResponse(BaseModel):
    destinations: list[tuple[int, int]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load(fen: str) -> tuple[RulesEngine, Board]:
    try:
        return RulesEngine.from_fen(fen)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid FEN: {exc}") from exc


def _status(engine: RulesEngine, board: Board) -> dict:
    status = engine.get_game_state()
    return {
        "fen": engine.fen(board),
        "state": status.state,
        "winner": status.winner,
        "side_to_move": status.side_to_move,
        "draw_reason": status.draw_reason,
        "in_check": engine.is_in_check(board, status.side_to_move),
    }


# ---------------------------------------------------------------------------
# API routes
# ---------------------------------------------------------------------------


@app.post("/api/move", response_model=MoveResponse)
def api_move(request: MoveRequest) -> MoveResponse:
    """
    Validate a move on the posted position and apply it if legal.

    Raises:
        HTTPException 400: Malformed FEN.
    """
    engine, board = _load(request.fen)
    result = engine.try_move(board, request.from_row, request.from_col,
                             request.to_row, request.to_col)
    if not result.accepted:
        _log.info("Rejected move %s fen=%s", tuple(result.move), request.fen[:40])
    else:
        _log.info("Move %s events=%s", tuple(result.move),
                  sorted(e.value for e in result.events))
    return MoveResponse(
        **_status(engine, board),
        legal=result.accepted,
        events=sorted(e.value for e in result.events),
    )


@app.post("/api/moves", response_model=DestinationsResponse)
def api_moves(request: SquareRequest) -> DestinationsResponse:
    """Legal destinations for the piece on (row, col); empty if it cannot move."""
    engine, board = _load(request.fen)
    return DestinationsResponse(
        destinations=engine.legal_destinations(board, request.row, request.col),
    )


@app.post("/api/state", response_model=StatusResponse)
def api_state(request: PositionRequest) -> StatusResponse:
    """Classify the posted position."""
    engine, board = _load(request.fen)
    return StatusResponse(**_status(engine, board))


# ---------------------------------------------------------------------------
# Relay
# ---------------------------------------------------------------------------


@app.websocket("/ws")
async def relay_socket(websocket: WebSocket) -> None:
    """Forward relay messages for one client until it disconnects."""
    await websocket.accept()
    session = RelaySession(socket=websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            await hub.handle_message(session, raw)
    except WebSocketDisconnect:
        await hub.disconnect(session)


if __name__ == "__main__":
    uvicorn.run(app, host=DEFAULT_HOST, port=DEFAULT_PORT)
