"""
Whole-position FEN import and export.

Parsing and formatting are delegated to python-chess so the engine
accepts exactly the FEN dialect the rest of the chess tooling speaks.
The engine's own types are converted on the way in and out:

    FEN square e3  <->  (row 2, col 4)
    turn w / b     <->  Color.WHITE / Color.BLACK

python-chess drops castling rights whose king or rook is not on its
home square; this matches the engine, which also refuses to castle
without the rook in its corner.
"""

import chess

from chessrules.board import Board
from chessrules.constants import Color, Kind, Piece
from chessrules.state import CastlingRights, GameState


STARTING_FEN: str = chess.STARTING_FEN


def parse_fen(fen: str) -> tuple[Board, GameState]:
    """
    Parse a full FEN string into a board and a fresh GameState.

    The returned state's phase is left at its default; the rules engine
    classifies the position once it owns the state.

    Raises:
        ValueError: if python-chess rejects the FEN.
    """
    try:
        parsed = chess.Board(fen)
    except ValueError as exc:
        raise ValueError(f"Invalid FEN {fen!r}: {exc}") from exc

    board = Board.from_fen(parsed.board_fen())

    ep_square = parsed.ep_square
    state = GameState(
        side_to_move=Color.WHITE if parsed.turn == chess.WHITE else Color.BLACK,
        castling_rights={
            Color.WHITE: CastlingRights(
                king_side=parsed.has_kingside_castling_rights(chess.WHITE),
                queen_side=parsed.has_queenside_castling_rights(chess.WHITE),
            ),
            Color.BLACK: CastlingRights(
                king_side=parsed.has_kingside_castling_rights(chess.BLACK),
                queen_side=parsed.has_queenside_castling_rights(chess.BLACK),
            ),
        },
        en_passant_target=(
            None if ep_square is None
            else (chess.square_rank(ep_square), chess.square_file(ep_square))
        ),
        half_move_clock=parsed.halfmove_clock,
        full_move_number=parsed.fullmove_number,
    )
    for color in Color:
        square = board.find(Piece(color, Kind.KING))
        if square is not None:
            state.king_position[color] = square
    return board, state


def _castling_field(state: GameState) -> str:
    white = state.castling_rights[Color.WHITE]
    black = state.castling_rights[Color.BLACK]
    flags = (
        ("K", white.king_side),
        ("Q", white.queen_side),
        ("k", black.king_side),
        ("q", black.queen_side),
    )
    return "".join(symbol for symbol, allowed in flags if allowed) or "-"


def format_fen(board: Board, state: GameState) -> str:
    """Serialize a board and its GameState to a full FEN string."""
    out = chess.Board(None)
    out.set_board_fen(board.placement())
    out.turn = chess.WHITE if state.side_to_move is Color.WHITE else chess.BLACK
    out.set_castling_fen(_castling_field(state))
    target = state.en_passant_target
    out.ep_square = None if target is None else chess.square(target[1], target[0])
    out.halfmove_clock = state.half_move_clock
    out.fullmove_number = state.full_move_number
    # Keep the stored target even when no capture is currently possible.
    return out.fen(en_passant="fen")
