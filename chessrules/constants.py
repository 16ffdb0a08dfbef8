"""
Rules constants: colours, piece kinds, piece values, board geometry and draw limits.

Every number the rules engine depends on is defined here so the move
predicates and the game-state bookkeeping never carry magic numbers of
their own. Board coordinates follow the presentation layer's grid:

    row 0 = White's back rank, row 7 = Black's back rank
    col 0 = queen side (a-file), col 7 = king side (h-file)

Pieces are small immutable (colour, kind) values rather than the
two-character strings ("wp", "bk") that travel over the wire. The string
form is still available through Piece.code / Piece.from_code for
serialization.
"""

from enum import Enum
from typing import NamedTuple


# ---------------------------------------------------------------------------
# Colours and piece kinds
# ---------------------------------------------------------------------------


class Color(str, Enum):
    """Side colour. The value is the colour discriminator of a piece code."""

    WHITE = "w"
    BLACK = "b"

    @property
    def opposite(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    def __str__(self) -> str:
        return self.name.lower()


class Kind(str, Enum):
    """Piece kind. The value is the kind discriminator of a piece code."""

    PAWN = "p"
    ROOK = "r"
    KNIGHT = "n"
    BISHOP = "b"
    QUEEN = "q"
    KING = "k"


class Piece(NamedTuple):
    """An occupied cell: colour x kind."""

    color: Color
    kind: Kind

    @property
    def code(self) -> str:
        """Two-character wire code, e.g. 'wr' for a white rook."""
        return self.color.value + self.kind.value

    @classmethod
    def from_code(cls, code: str) -> "Piece":
        """
        Parse a two-character piece code.

        Raises:
            ValueError: if the code is not a known colour + kind pair.
        """
        if len(code) != 2:
            raise ValueError(f"Invalid piece code: {code!r}")
        return cls(Color(code[0]), Kind(code[1]))

    def __str__(self) -> str:
        return self.code


# ---------------------------------------------------------------------------
# Game phase
# ---------------------------------------------------------------------------
# The phase is derived after every state-updating move; the presentation
# layer only ever reads it.


class Phase(str, Enum):
    ONGOING = "ongoing"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"


class DrawReason(str, Enum):
    FIFTY_MOVE = "fifty_move"
    INSUFFICIENT_MATERIAL = "insufficient_material"


# ---------------------------------------------------------------------------
# Board geometry
# ---------------------------------------------------------------------------

BOARD_SIZE: int = 8
NUM_SQUARES: int = BOARD_SIZE * BOARD_SIZE

# Forward row direction of each colour's pawns.
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: 1, Color.BLACK: -1}

# Rank a pawn may double-step from.
PAWN_START_ROW: dict[Color, int] = {Color.WHITE: 1, Color.BLACK: 6}

# Rank a pawn promotes on.
PROMOTION_ROW: dict[Color, int] = {Color.WHITE: 7, Color.BLACK: 0}

# Back rank: home row of the king and rooks.
HOME_ROW: dict[Color, int] = {Color.WHITE: 0, Color.BLACK: 7}

KING_HOME_COL: int = 4
QUEEN_SIDE_ROOK_COL: int = 0
KING_SIDE_ROOK_COL: int = 7

# Default king squares restored by reset_game().
KING_START: dict[Color, tuple[int, int]] = {
    Color.WHITE: (HOME_ROW[Color.WHITE], KING_HOME_COL),
    Color.BLACK: (HOME_ROW[Color.BLACK], KING_HOME_COL),
}

# Back-rank layout from column 0 to column 7.
BACK_RANK: tuple[Kind, ...] = (
    Kind.ROOK, Kind.KNIGHT, Kind.BISHOP, Kind.QUEEN,
    Kind.KING, Kind.BISHOP, Kind.KNIGHT, Kind.ROOK,
)

# ---------------------------------------------------------------------------
# Draw rules
# ---------------------------------------------------------------------------
# 50 moves per side = 100 half-moves without a pawn move or capture.
FIFTY_MOVE_HALF_MOVES: int = 100

# Pieces whose presence on either side always means mating material exists.
MATING_KINDS: frozenset[Kind] = frozenset({Kind.QUEEN, Kind.ROOK, Kind.PAWN})

# Promotions are always to a queen; no under-promotion choice is exposed.
PROMOTION_KIND: Kind = Kind.QUEEN
