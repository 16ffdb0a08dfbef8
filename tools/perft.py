#!/usr/bin/env python3
"""
Perft: count leaf nodes of the legal move tree and compare with python-chess.

Perft is the standard correctness check for move generation. Any
difference from the reference count points at a bug in castling, en
passant, promotion or pin handling. The rules engine only promotes to a
queen, so the python-chess reference skips under-promotions.

The engine is built for interactive play (every legal-move scan tries all
64 destinations per piece and clones the board per candidate), so keep
the depth small.

Usage: python3 tools/perft.py [depth]
"""
import os
import sys
import time

# Make 'chessrules' importable when this script is run directly.
_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

import chess

from chessrules.board import Board
from chessrules.rules import RulesEngine

# Fixed positions covering castling, en passant, pins and promotion.
POSITIONS = [
    ("Start",      chess.STARTING_FEN),
    ("Kiwipete",   "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"),
    ("Endgame",    "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1"),
    ("Promotions", "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1"),
    ("En passant", "rnbqkbnr/ppp1p1pp/8/3pPp2/8/8/PPPP1PPP/RNBQKBNR w KQkq f6 0 3"),
]


def perft(engine: RulesEngine, board: Board, depth: int) -> int:
    """
    Count the leaf nodes `depth` plies below the current position.

    Each child gets its own engine and board copy, so the caller's
    position is never modified.
    """
    if depth == 0:
        return 1
    moves = engine.legal_moves(board)
    if depth == 1:
        return len(moves)
    total = 0
    for move in moves:
        child_engine = engine.copy()
        child_board = board.copy()
        child_engine.make_move(child_board, *move)
        total += perft(child_engine, child_board, depth - 1)
    return total


def reference_perft(board: chess.Board, depth: int) -> int:
    """python-chess perft counting queen promotions only."""
    if depth == 0:
        return 1
    total = 0
    for move in board.legal_moves:
        if move.promotion not in (None, chess.QUEEN):
            continue
        if depth == 1:
            total += 1
            continue
        board.push(move)
        total += reference_perft(board, depth - 1)
        board.pop()
    return total


def run_position(label: str, fen: str, depth: int) -> dict:
    """Run both counters on one position and return the metrics."""
    engine, board = RulesEngine.from_fen(fen)
    start = time.monotonic()
    nodes = perft(engine, board, depth)
    elapsed_ms = max(1, int((time.monotonic() - start) * 1000))
    expected = reference_perft(chess.Board(fen), depth)
    return {
        "label": label,
        "nodes": nodes,
        "expected": expected,
        "time_ms": elapsed_ms,
        "ok": nodes == expected,
    }


def main() -> None:
    """Run all positions and print a summary table."""
    depth = int(sys.argv[1]) if len(sys.argv) > 1 else 2
    print(f"Rules engine perft, depth {depth} ({sys.executable})")
    print()
    print(f"{'Position':<12} {'Nodes':>10} {'Expected':>10} {'Time(ms)':>9}  Result")
    print("-" * 54)

    failures = 0
    for label, fen in POSITIONS:
        r = run_position(label, fen, depth)
        failures += not r["ok"]
        print(
            f"{r['label']:<12} {r['nodes']:>10,} {r['expected']:>10,} "
            f"{r['time_ms']:>9,}  {'ok' if r['ok'] else 'MISMATCH'}"
        )
    print()
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
