"""
Rules engine: move legality, move application and terminal-state detection.

RulesEngine owns the authoritative GameState for one game and operates on
a Board supplied by the caller (the board store). The presentation layer
calls is_valid_move() / make_move() in response to user intent and reads
get_game_state() / is_in_check() to drive the UI; the transport layer
uses apply_remote_move() for moves relayed from the other player.

Legality is decided in five ordered steps, stopping at the first failure:

    1. a piece occupies the source square
    2. it belongs to the side to move
    3. source and destination differ
    4. the piece's movement predicate accepts the destination
       (castling is checked here for two-column king moves)
    5. on a scratch copy of the board, with every side effect of the move
       applied, the mover's own king is not attacked

Rules violations are never raised: is_valid_move() returns False and
try_move() returns a MoveResult with accepted=False.

The mover's colour is always passed explicitly into the predicates, so
has_legal_moves() can probe either side without touching side_to_move.

After every state-updating move the position is classified:

    side to move in check, no legal moves      -> checkmate (other side wins)
    not in check, no legal moves               -> stalemate
    half-move clock >= 100 or dead material    -> draw
    otherwise                                  -> ongoing

Performance:
    has_legal_moves() tries every (from, to) pair for the side's pieces and
    clones the board for each candidate that passes its movement predicate.
    That is fine for interactive play and shallow perft; it is not meant
    for engine search.
"""

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from chessrules.board import Board, Square, on_board, square_color
from chessrules.constants import (
    BOARD_SIZE,
    FIFTY_MOVE_HALF_MOVES,
    HOME_ROW,
    KING_HOME_COL,
    KING_SIDE_ROOK_COL,
    MATING_KINDS,
    PROMOTION_KIND,
    PROMOTION_ROW,
    QUEEN_SIDE_ROOK_COL,
    Color,
    DrawReason,
    Kind,
    Phase,
    Piece,
)
from chessrules.fen import format_fen, parse_fen
from chessrules.movegen import is_castling_shape, is_square_attacked, piece_move
from chessrules.state import GameState, GameStatus

_log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


class GameEvent(str, Enum):
    """State transitions reported to the caller instead of being logged."""

    MOVE = "move"
    CAPTURE = "capture"
    CASTLE = "castle"
    EN_PASSANT = "en_passant"
    PROMOTION = "promotion"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"
    INVALID_MOVE = "invalid_move"


_PHASE_EVENTS: dict[Phase, GameEvent] = {
    Phase.CHECKMATE: GameEvent.CHECKMATE,
    Phase.STALEMATE: GameEvent.STALEMATE,
    Phase.DRAW: GameEvent.DRAW,
}


class Move(NamedTuple):
    from_row: int
    from_col: int
    to_row: int
    to_col: int

    @property
    def from_square(self) -> Square:
        return self.from_row, self.from_col

    @property
    def to_square(self) -> Square:
        return self.to_row, self.to_col


@dataclass(frozen=True)
class MoveResult:
    """
    Outcome of a move attempt.

    Attributes:
        accepted:    False only for try_move()/apply_remote_move() attempts
                     that failed validation; nothing was mutated then.
        move:        The attempted move.
        piece:       Piece that moved (None if the source square was empty).
        captured:    Captured piece, including a pawn taken en passant.
        promotion:   Piece the pawn became, when it promoted.
        events:      Everything that happened, e.g. {MOVE, CAPTURE, CHECK}.
    """

    accepted: bool
    move: Move
    piece: Piece | None = None
    captured: Piece | None = None
    promotion: Piece | None = None
    events: frozenset[GameEvent] = frozenset()


class _Applied(NamedTuple):
    captured: Piece | None
    promotion: Piece | None
    castled: bool
    en_passant: bool


# ---------------------------------------------------------------------------
# Board-level helpers (no game state involved)
# ---------------------------------------------------------------------------


def _apply_to_board(board: Board, frm: Square, to: Square) -> _Applied:
    """
    Perform a move's board mutations: rook relocation for castling, removal of
    a pawn captured en passant, the move itself and queen promotion.
    """
    piece = board[frm]
    captured = board[to]
    castled = en_passant = False

    if piece.kind is Kind.KING and is_castling_shape(frm, to):
        row = frm[0]
        if to[1] > frm[1]:
            board[row, frm[1] + 1] = board[row, KING_SIDE_ROOK_COL]
            board[row, KING_SIDE_ROOK_COL] = None
        else:
            board[row, frm[1] - 1] = board[row, QUEEN_SIDE_ROOK_COL]
            board[row, QUEEN_SIDE_ROOK_COL] = None
        castled = True
    elif piece.kind is Kind.PAWN and frm[1] != to[1] and captured is None:
        # Diagonal pawn move onto an empty square: en passant.
        captured = board[frm[0], to[1]]
        board[frm[0], to[1]] = None
        en_passant = True

    board[to] = piece
    board[frm] = None

    promotion = None
    if piece.kind is Kind.PAWN and to[0] == PROMOTION_ROW[piece.color]:
        promotion = Piece(piece.color, PROMOTION_KIND)
        board[to] = promotion

    return _Applied(captured, promotion, castled, en_passant)


def insufficient_material(board: Board) -> bool:
    """
    True if neither side has enough material to force checkmate.

    Recognised dead positions:
        K vs K
        K+B vs K, K+N vs K
        K+B vs K+B with both bishops on the same square colour

    Every other combination counts as sufficient, including K+N+N vs K and
    opposite-coloured bishops. Any queen, rook or pawn ends the scan.
    """
    minors: dict[Color, list[tuple[Kind, int]]] = {Color.WHITE: [], Color.BLACK: []}
    for row, col, piece in board.pieces():
        if piece.kind is Kind.KING:
            continue
        if piece.kind in MATING_KINDS:
            return False
        minors[piece.color].append((piece.kind, square_color(row, col)))

    white, black = minors[Color.WHITE], minors[Color.BLACK]
    if not white and not black:
        return True
    if not white or not black:
        # Bare king against a single bishop or knight.
        return len(white or black) == 1
    if len(white) == 1 and len(black) == 1:
        (w_kind, w_shade), (b_kind, b_shade) = white[0], black[0]
        return w_kind is Kind.BISHOP and b_kind is Kind.BISHOP and w_shade == b_shade
    return False


# ---------------------------------------------------------------------------
# Rules engine
# ---------------------------------------------------------------------------


class RulesEngine:
    """
    Authoritative rules and game state for one game.

    The engine never owns the board: every operation takes the board to
    inspect or mutate. reset_game() restores the state only; callers reset
    board occupancy separately (Board.starting()).
    """

    def __init__(self, state: GameState | None = None) -> None:
        self._state: GameState = state if state is not None else GameState()

    @classmethod
    def from_fen(cls, fen: str) -> tuple["RulesEngine", Board]:
        """
        Build an engine and its board from a full FEN string.

        The position is classified immediately, so a FEN of a mated
        position reports CHECKMATE from get_game_state().

        Raises:
            ValueError: for a malformed FEN.
        """
        board, state = parse_fen(fen)
        engine = cls(state)
        for color in Color:
            engine._king_square(board, color, repair=True)
        engine._classify(board)
        return engine, board

    def fen(self, board: Board) -> str:
        """Full FEN of `board` with this engine's game state."""
        return format_fen(board, self._state)

    @property
    def state(self) -> GameState:
        """Live game state. Read it freely; only the engine writes to it."""
        return self._state

    def copy(self) -> "RulesEngine":
        """Independent engine with a deep copy of the current state."""
        return RulesEngine(copy.deepcopy(self._state))

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def get_game_state(self) -> GameStatus:
        state = self._state
        return GameStatus(
            state=state.phase,
            winner=state.winner,
            side_to_move=state.side_to_move,
            draw_reason=state.draw_reason,
        )

    def is_valid_move(self, board: Board, from_row: int, from_col: int,
                      to_row: int, to_col: int) -> bool:
        """
        True if the side to move may play (from_row, from_col) -> (to_row, to_col).

        Never mutates the board or the game state. Off-board coordinates are
        simply not valid.
        """
        if not (on_board(from_row, from_col) and on_board(to_row, to_col)):
            return False
        piece = board[from_row, from_col]
        if piece is None or piece.color is not self._state.side_to_move:
            return False
        return self._is_legal(board, (from_row, from_col), (to_row, to_col), piece)

    def is_in_check(self, board: Board, color: Color) -> bool:
        """
        True if `color`'s king is attacked.

        Uses the cached king square when the board still agrees with it,
        otherwise scans the board and repairs the cache. A missing king is
        logged and reported as not in check.
        """
        king = self._king_square(board, color, repair=True)
        if king is None:
            return False
        return is_square_attacked(board, king, color.opposite)

    def has_legal_moves(self, board: Board, color: Color) -> bool:
        """True if `color` has at least one legal move, whoever is to move."""
        for row, col, piece in board.pieces():
            if piece.color is not color:
                continue
            for to_row in range(BOARD_SIZE):
                for to_col in range(BOARD_SIZE):
                    if self._is_legal(board, (row, col), (to_row, to_col), piece):
                        return True
        return False

    def legal_moves(self, board: Board, color: Color | None = None) -> list[Move]:
        """
        Every legal move for `color` (default: side to move), in board scan order.

        Promotions appear once; they always promote to a queen.
        """
        color = self._state.side_to_move if color is None else color
        moves = []
        for row, col, piece in board.pieces():
            if piece.color is not color:
                continue
            for to_row in range(BOARD_SIZE):
                for to_col in range(BOARD_SIZE):
                    if self._is_legal(board, (row, col), (to_row, to_col), piece):
                        moves.append(Move(row, col, to_row, to_col))
        return moves

    def legal_destinations(self, board: Board, row: int, col: int) -> list[Square]:
        """Squares the piece on (row, col) may move to; empty unless it is that side's turn."""
        return [
            (to_row, to_col)
            for to_row in range(BOARD_SIZE)
            for to_col in range(BOARD_SIZE)
            if self.is_valid_move(board, row, col, to_row, to_col)
        ]

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    def make_move(self, board: Board, from_row: int, from_col: int,
                  to_row: int, to_col: int, update_game_state: bool = True) -> MoveResult:
        """
        Apply a move to the board and, by default, advance the game state.

        The caller must have checked the move with is_valid_move(); it is not
        re-validated here. Board effects always happen: castling rook
        relocation, en-passant pawn removal, the move, queen promotion.

        With update_game_state=True the castling rights, en-passant target,
        clocks, side to move and phase are updated as well. Networked play
        passes False and flips the turn itself once the peer's broadcast
        arrives (see apply_remote_move()).

        Args:
            board:             Live board, mutated in place.
            from_row/from_col: Source square.
            to_row/to_col:     Destination square.
            update_game_state: Advance rights, clocks, turn and phase.

        Returns:
            MoveResult describing the move and the transitions it caused.

        Raises:
            IndexError: if a square is off the board.
            ValueError: if the source square is empty.
        """
        frm, to = (from_row, from_col), (to_row, to_col)
        if not (on_board(*frm) and on_board(*to)):
            raise IndexError(f"Move off the board: {frm} -> {to}")
        piece = board[frm]
        if piece is None:
            raise ValueError(f"No piece on {frm} to move")

        applied = _apply_to_board(board, frm, to)
        state = self._state
        if piece.kind is Kind.KING:
            state.king_position[piece.color] = to

        events = {GameEvent.MOVE}
        if applied.captured is not None:
            events.add(GameEvent.CAPTURE)
        if applied.castled:
            events.add(GameEvent.CASTLE)
        if applied.en_passant:
            events.add(GameEvent.EN_PASSANT)
        if applied.promotion is not None:
            events.add(GameEvent.PROMOTION)

        if update_game_state:
            self._update_castling_rights(piece, frm, to, applied.captured)

            state.en_passant_target = None
            if piece.kind is Kind.PAWN and abs(to_row - from_row) == 2:
                state.en_passant_target = ((from_row + to_row) // 2, to_col)

            if piece.kind is Kind.PAWN or applied.captured is not None:
                state.half_move_clock = 0
            else:
                state.half_move_clock += 1
            if piece.color is Color.BLACK:
                state.full_move_number += 1

            state.side_to_move = piece.color.opposite
            self._classify(board)
            if state.phase in _PHASE_EVENTS:
                events.add(_PHASE_EVENTS[state.phase])

        if self.is_in_check(board, piece.color.opposite):
            events.add(GameEvent.CHECK)

        _log.debug("%s %s -> %s events=%s", piece.code, frm, to,
                   sorted(e.value for e in events))
        return MoveResult(
            accepted=True,
            move=Move(from_row, from_col, to_row, to_col),
            piece=piece,
            captured=applied.captured,
            promotion=applied.promotion,
            events=frozenset(events),
        )

    def try_move(self, board: Board, from_row: int, from_col: int,
                 to_row: int, to_col: int) -> MoveResult:
        """
        Validate and apply a move as one step.

        An illegal move changes nothing and comes back with accepted=False and
        the INVALID_MOVE event. Once the game is over (checkmate, stalemate
        or a draw) every move is rejected that way.
        """
        if self._state.phase is not Phase.ONGOING:
            _log.info("Move after game end (%s) rejected", self._state.phase.value)
            return self._rejected(board, from_row, from_col, to_row, to_col)
        if not self.is_valid_move(board, from_row, from_col, to_row, to_col):
            return self._rejected(board, from_row, from_col, to_row, to_col)
        return self.make_move(board, from_row, from_col, to_row, to_col)

    def apply_remote_move(self, board: Board, from_row: int, from_col: int,
                          to_row: int, to_col: int) -> MoveResult:
        """
        Apply a move relayed from the networked opponent.

        The relay does not validate moves, so the move is checked locally
        first. It is then applied without a game-state update and the side
        to move is flipped here. The phase is reclassified for the new side
        to move. Relayed moves after the game has ended are rejected.
        """
        if self._state.phase is not Phase.ONGOING:
            _log.warning("Rejected relayed move after game end (%s)",
                         self._state.phase.value)
            return self._rejected(board, from_row, from_col, to_row, to_col)
        if not self.is_valid_move(board, from_row, from_col, to_row, to_col):
            _log.warning("Rejected relayed move %s,%s -> %s,%s",
                         from_row, from_col, to_row, to_col)
            return self._rejected(board, from_row, from_col, to_row, to_col)
        result = self.make_move(board, from_row, from_col, to_row, to_col,
                                update_game_state=False)
        self.flip_side_to_move()
        self._classify(board)
        phase_event = _PHASE_EVENTS.get(self._state.phase)
        if phase_event is None:
            return result
        return MoveResult(
            accepted=True,
            move=result.move,
            piece=result.piece,
            captured=result.captured,
            promotion=result.promotion,
            events=result.events | {phase_event},
        )

    def flip_side_to_move(self) -> None:
        """Hand the turn to the other colour without any other state change."""
        self._state.side_to_move = self._state.side_to_move.opposite

    def reset_game(self) -> None:
        """
        Restore the initial game state: White to move, full castling rights,
        no en-passant target, zeroed clocks, move 1, default king squares.

        The board is not touched; reset it with Board.starting().
        """
        self._state = GameState()

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _rejected(self, board: Board, from_row: int, from_col: int,
                  to_row: int, to_col: int) -> MoveResult:
        piece = board[from_row, from_col] if on_board(from_row, from_col) else None
        return MoveResult(
            accepted=False,
            move=Move(from_row, from_col, to_row, to_col),
            piece=piece,
            events=frozenset({GameEvent.INVALID_MOVE}),
        )

    def _is_legal(self, board: Board, frm: Square, to: Square, piece: Piece) -> bool:
        """Steps 3-5 of move legality for `piece` (of its own colour) on `frm`."""
        if frm == to:
            return False
        if piece.kind is Kind.KING and is_castling_shape(frm, to):
            if not self._can_castle(board, frm, to, piece.color):
                return False
        elif not piece_move(board, frm, to, self._state.en_passant_target):
            return False

        scratch = board.copy()
        _apply_to_board(scratch, frm, to)
        if piece.kind is Kind.KING:
            king = to
        else:
            king = self._king_square(scratch, piece.color, repair=False)
            if king is None:
                return True
        return not is_square_attacked(scratch, king, piece.color.opposite)

    def _can_castle(self, board: Board, frm: Square, to: Square, color: Color) -> bool:
        """
        Castling conditions: king on its home square, the right still held,
        the rook in its corner, the squares between them empty, the king not
        in check and the square it passes over not attacked. Whether the
        destination is attacked is left to the scratch-board test.
        """
        home = HOME_ROW[color]
        if frm != (home, KING_HOME_COL):
            return False

        king_side = to[1] > frm[1]
        rights = self._state.castling_rights[color]
        if not (rights.king_side if king_side else rights.queen_side):
            return False

        rook_col = KING_SIDE_ROOK_COL if king_side else QUEEN_SIDE_ROOK_COL
        if board[home, rook_col] != Piece(color, Kind.ROOK):
            return False
        low, high = sorted((frm[1], rook_col))
        if any(board[home, col] is not None for col in range(low + 1, high)):
            return False

        enemy = color.opposite
        if is_square_attacked(board, frm, enemy):
            return False
        transit = (home, frm[1] + (1 if king_side else -1))
        return not is_square_attacked(board, transit, enemy)

    def _king_square(self, board: Board, color: Color, repair: bool) -> Square | None:
        """
        Locate `color`'s king, trusting the cache while the board agrees.

        With repair=True a stale cache is corrected from the board scan and a
        missing king is logged. Scratch boards pass repair=False so
        hypothetical positions never leak into the live state or the log.
        """
        king = Piece(color, Kind.KING)
        cached = self._state.king_position[color]
        if board[cached] == king:
            return cached
        found = board.find(king)
        if found is None:
            if repair:
                _log.warning("King not found for %s", color)
            return None
        if repair:
            self._state.king_position[color] = found
        return found

    def _update_castling_rights(self, piece: Piece, frm: Square, to: Square,
                                captured: Piece | None) -> None:
        if piece.kind is Kind.KING:
            rights = self._state.castling_rights[piece.color]
            rights.king_side = rights.queen_side = False
        elif piece.kind is Kind.ROOK:
            self._clear_corner_right(piece.color, frm)
        if captured is not None and captured.kind is Kind.ROOK:
            self._clear_corner_right(captured.color, to)

    def _clear_corner_right(self, color: Color, square: Square) -> None:
        home = HOME_ROW[color]
        rights = self._state.castling_rights[color]
        if square == (home, QUEEN_SIDE_ROOK_COL):
            rights.queen_side = False
        elif square == (home, KING_SIDE_ROOK_COL):
            rights.king_side = False

    def _classify(self, board: Board) -> None:
        """Recompute phase, winner and draw reason for the side to move."""
        state = self._state
        color = state.side_to_move
        in_check = self.is_in_check(board, color)
        can_move = self.has_legal_moves(board, color)

        state.winner = None
        state.draw_reason = None
        if not can_move:
            if in_check:
                state.phase = Phase.CHECKMATE
                state.winner = color.opposite
            else:
                state.phase = Phase.STALEMATE
        elif state.half_move_clock >= FIFTY_MOVE_HALF_MOVES:
            state.phase = Phase.DRAW
            state.draw_reason = DrawReason.FIFTY_MOVE
        elif insufficient_material(board):
            state.phase = Phase.DRAW
            state.draw_reason = DrawReason.INSUFFICIENT_MATERIAL
        else:
            state.phase = Phase.ONGOING
