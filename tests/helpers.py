"""Shared helpers for the rules engine tests."""

from chessrules.board import Board, Square
from chessrules.rules import MoveResult, RulesEngine


def sq(name: str) -> Square:
    """Algebraic square name to (row, col): 'e2' -> (1, 4)."""
    return int(name[1]) - 1, ord(name[0]) - ord("a")


def play(engine: RulesEngine, board: Board, *moves: str) -> MoveResult:
    """
    Play moves given as 'e2e4' strings, asserting each one is legal.

    Returns the result of the last move.
    """
    result = None
    for text in moves:
        frm, to = sq(text[:2]), sq(text[2:4])
        assert engine.is_valid_move(board, *frm, *to), f"{text} should be legal"
        result = engine.make_move(board, *frm, *to)
    return result


def valid(engine: RulesEngine, board: Board, move: str) -> bool:
    return engine.is_valid_move(board, *sq(move[:2]), *sq(move[2:4]))
