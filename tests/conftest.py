import pytest

from chessrules.board import Board
from chessrules.rules import RulesEngine


@pytest.fixture
def engine() -> RulesEngine:
    """Fresh engine in the initial game state."""
    return RulesEngine()


@pytest.fixture
def board() -> Board:
    """Standard starting position."""
    return Board.starting()


@pytest.fixture
def castling_position() -> tuple[RulesEngine, Board]:
    """Kings and rooks only, every castle available to both sides."""
    return RulesEngine.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
