"""
Cross-check move generation against python-chess.

python-chess is used as an oracle: over seeded random games the engine's
legal move set must match python-chess's, with under-promotions removed
since the engine always promotes to a queen.
"""

import random

import chess
import pytest

from chessrules.constants import Phase
from chessrules.rules import Move, RulesEngine
from tools.perft import perft, reference_perft


def _oracle_moves(board: chess.Board) -> set[Move]:
    return {
        Move(chess.square_rank(m.from_square), chess.square_file(m.from_square),
             chess.square_rank(m.to_square), chess.square_file(m.to_square))
        for m in board.legal_moves
        if m.promotion in (None, chess.QUEEN)
    }


def _to_chess(move: Move, board: chess.Board) -> chess.Move:
    frm = chess.square(move.from_col, move.from_row)
    to = chess.square(move.to_col, move.to_row)
    promotion = None
    if board.piece_type_at(frm) == chess.PAWN and chess.square_rank(to) in (0, 7):
        promotion = chess.QUEEN
    return chess.Move(frm, to, promotion=promotion)


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_random_games_match_python_chess(seed: int) -> None:
    rng = random.Random(seed)
    engine, board = RulesEngine.from_fen(chess.STARTING_FEN)
    oracle = chess.Board()

    for _ in range(80):
        moves = engine.legal_moves(board)
        assert set(moves) == _oracle_moves(oracle), oracle.fen()

        if oracle.is_checkmate():
            assert engine.get_game_state().state is Phase.CHECKMATE
        if oracle.is_stalemate():
            assert engine.get_game_state().state is Phase.STALEMATE
        if not moves:
            break

        move = rng.choice(sorted(moves))
        engine.make_move(board, *move)
        oracle.push(_to_chess(move, oracle))
        assert engine.fen(board).split()[:4] == oracle.fen(en_passant="fen").split()[:4]


@pytest.mark.parametrize(
    "fen, depth",
    [
        (chess.STARTING_FEN, 2),
        ("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1", 1),
        ("8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1", 2),
        ("r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1", 2),
    ],
)
def test_perft_matches_reference(fen: str, depth: int) -> None:
    engine, board = RulesEngine.from_fen(fen)
    assert perft(engine, board, depth) == reference_perft(chess.Board(fen), depth)


def test_perft_start_depth_three(engine, board) -> None:
    assert perft(engine, board, 3) == 8902
