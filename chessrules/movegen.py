"""
Piece movement and attack predicates.

Every function here is a pure function of the board and the two squares
involved. None of them knows whose turn it is or whether a move would
expose the mover's king; the rules engine layers those checks on top.
The mover's colour is always read from the piece on the source square,
so the predicates are safe to call for either side at any time.

Two families:

    *_move(board, from, to)     -- can the piece on `from` move to `to`?
                                   Destination must be empty or enemy.
    attacks(board, from, to)    -- does the piece on `from` attack `to`?
                                   Used for check and castling transit
                                   tests. Pawns attack diagonally only,
                                   kings one square only (no castling),
                                   and the destination's occupant is
                                   ignored.

Callers guarantee that `from` holds a piece and that both squares are on
the board.
"""

from chessrules.board import Board, Square
from chessrules.constants import PAWN_DIRECTION, PAWN_START_ROW, Color, Kind


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def _path_clear(board: Board, frm: Square, to: Square) -> bool:
    """True if every square strictly between frm and to (a straight line) is empty."""
    step_row = _sign(to[0] - frm[0])
    step_col = _sign(to[1] - frm[1])
    row, col = frm[0] + step_row, frm[1] + step_col
    while (row, col) != to:
        if board[row, col] is not None:
            return False
        row += step_row
        col += step_col
    return True


def _lands(board: Board, color: Color, to: Square) -> bool:
    """Destination is empty or holds an enemy piece."""
    target = board[to]
    return target is None or target.color is not color


# ---------------------------------------------------------------------------
# Line geometry (shared by moves and attacks)
# ---------------------------------------------------------------------------


def _rook_reaches(board: Board, frm: Square, to: Square) -> bool:
    if frm == to or (frm[0] != to[0] and frm[1] != to[1]):
        return False
    return _path_clear(board, frm, to)


def _bishop_reaches(board: Board, frm: Square, to: Square) -> bool:
    d_row = abs(to[0] - frm[0])
    if d_row == 0 or d_row != abs(to[1] - frm[1]):
        return False
    return _path_clear(board, frm, to)


def _knight_reaches(frm: Square, to: Square) -> bool:
    return (abs(to[0] - frm[0]), abs(to[1] - frm[1])) in ((1, 2), (2, 1))


def _king_reaches(frm: Square, to: Square) -> bool:
    return frm != to and abs(to[0] - frm[0]) <= 1 and abs(to[1] - frm[1]) <= 1


# ---------------------------------------------------------------------------
# Movement predicates
# ---------------------------------------------------------------------------


def pawn_move(board: Board, frm: Square, to: Square, en_passant: Square | None = None) -> bool:
    """
    Pawn movement: single push, double push from the start rank, diagonal capture,
    or en passant onto the empty target square.

    En passant additionally requires an enemy pawn on the square the capture
    removes, i.e. beside the capturing pawn on its own row.

    Args:
        board:      Current board.
        frm:        Pawn's square.
        to:         Destination.
        en_passant: The current en-passant target square, or None.
    """
    color = board[frm].color
    direction = PAWN_DIRECTION[color]
    d_row = to[0] - frm[0]
    d_col = to[1] - frm[1]

    if d_col == 0:
        if d_row == direction:
            return board[to] is None
        if d_row == 2 * direction and frm[0] == PAWN_START_ROW[color]:
            return board[frm[0] + direction, frm[1]] is None and board[to] is None
        return False

    if abs(d_col) != 1 or d_row != direction:
        return False

    target = board[to]
    if target is not None:
        return target.color is not color
    if en_passant is None or to != en_passant:
        return False
    victim = board[frm[0], to[1]]
    return victim is not None and victim.kind is Kind.PAWN and victim.color is not color


def rook_move(board: Board, frm: Square, to: Square) -> bool:
    return _rook_reaches(board, frm, to) and _lands(board, board[frm].color, to)


def knight_move(board: Board, frm: Square, to: Square) -> bool:
    return _knight_reaches(frm, to) and _lands(board, board[frm].color, to)


def bishop_move(board: Board, frm: Square, to: Square) -> bool:
    return _bishop_reaches(board, frm, to) and _lands(board, board[frm].color, to)


def queen_move(board: Board, frm: Square, to: Square) -> bool:
    return rook_move(board, frm, to) or bishop_move(board, frm, to)


def king_step(board: Board, frm: Square, to: Square) -> bool:
    """One-square king move. Castling is decided by the rules engine."""
    return _king_reaches(frm, to) and _lands(board, board[frm].color, to)


def is_castling_shape(frm: Square, to: Square) -> bool:
    """A king move two columns sideways along its row."""
    return frm[0] == to[0] and abs(to[1] - frm[1]) == 2


def piece_move(board: Board, frm: Square, to: Square, en_passant: Square | None = None) -> bool:
    """
    Dispatch to the movement predicate for the piece on `frm`.

    Castling is NOT included: a two-column king move returns False here.
    """
    kind = board[frm].kind
    if kind is Kind.PAWN:
        return pawn_move(board, frm, to, en_passant)
    if kind is Kind.ROOK:
        return rook_move(board, frm, to)
    if kind is Kind.KNIGHT:
        return knight_move(board, frm, to)
    if kind is Kind.BISHOP:
        return bishop_move(board, frm, to)
    if kind is Kind.QUEEN:
        return queen_move(board, frm, to)
    return king_step(board, frm, to)


# ---------------------------------------------------------------------------
# Attack predicates
# ---------------------------------------------------------------------------


def attacks(board: Board, frm: Square, to: Square) -> bool:
    """True if the piece on `frm` attacks square `to`, whatever occupies it."""
    piece = board[frm]
    kind = piece.kind
    if kind is Kind.PAWN:
        return to[0] - frm[0] == PAWN_DIRECTION[piece.color] and abs(to[1] - frm[1]) == 1
    if kind is Kind.ROOK:
        return _rook_reaches(board, frm, to)
    if kind is Kind.KNIGHT:
        return _knight_reaches(frm, to)
    if kind is Kind.BISHOP:
        return _bishop_reaches(board, frm, to)
    if kind is Kind.QUEEN:
        return _rook_reaches(board, frm, to) or _bishop_reaches(board, frm, to)
    return _king_reaches(frm, to)


def is_square_attacked(board: Board, square: Square, by: Color) -> bool:
    """True if any piece of colour `by` attacks `square`."""
    for row, col, piece in board.pieces():
        if piece.color is by and attacks(board, (row, col), square):
            return True
    return False
