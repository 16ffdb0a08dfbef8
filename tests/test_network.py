"""Networked play: moves applied without a state update and the remote turn flip."""

from chessrules.board import Board
from chessrules.constants import Color, Kind, Phase, Piece
from chessrules.rules import GameEvent, RulesEngine


def test_remote_move_is_validated_and_flips_turn(engine, board) -> None:
    result = engine.apply_remote_move(board, 1, 4, 3, 4)
    assert result.accepted
    assert board[3, 4] == Piece(Color.WHITE, Kind.PAWN)
    assert engine.state.side_to_move is Color.BLACK
    # Only the turn changes; rights, clocks and en passant stay put.
    assert engine.state.en_passant_target is None
    assert engine.state.half_move_clock == 0
    assert engine.state.full_move_number == 1


def test_illegal_remote_move_changes_nothing(engine, board) -> None:
    result = engine.apply_remote_move(board, 6, 4, 4, 4)
    assert not result.accepted
    assert GameEvent.INVALID_MOVE in result.events
    assert board == Board.starting()
    assert engine.state.side_to_move is Color.WHITE


def test_remote_moves_alternate(engine, board) -> None:
    assert engine.apply_remote_move(board, 1, 4, 3, 4).accepted
    assert engine.apply_remote_move(board, 6, 4, 4, 4).accepted
    assert not engine.apply_remote_move(board, 6, 3, 4, 3).accepted
    assert engine.state.side_to_move is Color.WHITE


def test_remote_checkmate_is_classified(engine, board) -> None:
    for move in ((1, 5, 2, 5), (6, 4, 4, 4), (1, 6, 3, 6)):
        assert engine.apply_remote_move(board, *move).accepted
    result = engine.apply_remote_move(board, 7, 3, 3, 7)
    assert GameEvent.CHECKMATE in result.events
    assert engine.get_game_state().state is Phase.CHECKMATE
    assert engine.get_game_state().winner is Color.BLACK


def test_flip_side_to_move_only_touches_turn() -> None:
    engine = RulesEngine()
    engine.flip_side_to_move()
    assert engine.state.side_to_move is Color.BLACK
    assert engine.state.phase is Phase.ONGOING


def test_remote_move_after_checkmate_is_rejected(engine, board) -> None:
    for move in ((1, 5, 2, 5), (6, 4, 4, 4), (1, 6, 3, 6), (7, 3, 3, 7)):
        assert engine.apply_remote_move(board, *move).accepted
    before = board.copy()
    result = engine.apply_remote_move(board, 1, 0, 2, 0)
    assert not result.accepted
    assert result.events == frozenset({GameEvent.INVALID_MOVE})
    assert board == before
    assert engine.get_game_state().state is Phase.CHECKMATE


def test_remote_move_after_draw_is_rejected() -> None:
    engine, board = RulesEngine.from_fen("4k3/8/8/8/8/8/4P3/4K3 w - - 100 90")
    result = engine.apply_remote_move(board, 1, 4, 3, 4)
    assert not result.accepted
    assert board[1, 4] == Piece(Color.WHITE, Kind.PAWN)
    assert engine.state.side_to_move is Color.WHITE
    assert engine.get_game_state().state is Phase.DRAW
