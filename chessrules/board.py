"""
Board store: an 8x8 grid of nullable pieces, mutated in place by the rules engine.

The grid is kept as one flat list of 64 cells (index = row * 8 + col) so a
scratch copy for check testing is a single list duplication. Legality
checks clone the board several thousand times per terminal-state scan,
so copy() must stay cheap.

Cells are addressed with a (row, col) pair:

    >>> board = Board.starting()
    >>> board[0, 4]
    Piece(color=<Color.WHITE: 'w'>, kind=<Kind.KING: 'k'>)
    >>> board[3, 4] is None
    True

FEN piece placement (the first FEN field) is parsed and produced through
python-chess, which maps a1 to (0, 0) and h8 to (7, 7).
"""

from typing import Iterator, Sequence

import chess

from chessrules.constants import BACK_RANK, BOARD_SIZE, NUM_SQUARES, Color, Kind, Piece


Square = tuple[int, int]


def on_board(row: int, col: int) -> bool:
    """True if (row, col) lies inside the 8x8 grid."""
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


def square_color(row: int, col: int) -> int:
    """Square shade: 0 for dark squares (a1 is dark), 1 for light squares."""
    return (row + col) % 2


class Board:
    """
    Mutable 8x8 board of Piece | None.

    Attributes:
        cells: Flat row-major list of 64 cells. Exposed for the rules
               engine's hot loops; everything else should use indexing.
    """

    __slots__ = ("cells",)

    def __init__(self, cells: Sequence[Piece | None] | None = None) -> None:
        if cells is None:
            self.cells: list[Piece | None] = [None] * NUM_SQUARES
        else:
            if len(cells) != NUM_SQUARES:
                raise ValueError(f"Board needs {NUM_SQUARES} cells, got {len(cells)}")
            self.cells = list(cells)

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    @classmethod
    def starting(cls) -> "Board":
        """Standard starting position, White on rows 0-1, Black on rows 6-7."""
        board = cls()
        for col, kind in enumerate(BACK_RANK):
            board[0, col] = Piece(Color.WHITE, kind)
            board[1, col] = Piece(Color.WHITE, Kind.PAWN)
            board[6, col] = Piece(Color.BLACK, Kind.PAWN)
            board[7, col] = Piece(Color.BLACK, kind)
        return board

    @classmethod
    def from_codes(cls, rows: Sequence[Sequence[str | None]]) -> "Board":
        """
        Build a board from rows of two-character piece codes.

        rows[0] is row 0 (White's back rank). Empty cells are None or "".
        This is the shape the presentation layer and the relay exchange.
        """
        if len(rows) != BOARD_SIZE or any(len(r) != BOARD_SIZE for r in rows):
            raise ValueError("Board rows must be 8 lists of 8 cells")
        board = cls()
        for row, cells in enumerate(rows):
            for col, code in enumerate(cells):
                if code:
                    board[row, col] = Piece.from_code(code)
        return board

    @classmethod
    def from_fen(cls, placement: str) -> "Board":
        """
        Build a board from the piece-placement field of a FEN string.

        Raises:
            ValueError: if python-chess rejects the placement.
        """
        parsed = chess.BaseBoard(placement)
        board = cls()
        for sq, piece in parsed.piece_map().items():
            color = Color.WHITE if piece.color == chess.WHITE else Color.BLACK
            kind = Kind(chess.piece_symbol(piece.piece_type))
            board[chess.square_rank(sq), chess.square_file(sq)] = Piece(color, kind)
        return board

    # -----------------------------------------------------------------------
    # Access
    # -----------------------------------------------------------------------

    def __getitem__(self, square: Square) -> Piece | None:
        row, col = square
        if not on_board(row, col):
            raise IndexError(f"Square off the board: {square!r}")
        return self.cells[row * BOARD_SIZE + col]

    def __setitem__(self, square: Square, piece: Piece | None) -> None:
        row, col = square
        if not on_board(row, col):
            raise IndexError(f"Square off the board: {square!r}")
        self.cells[row * BOARD_SIZE + col] = piece

    def copy(self) -> "Board":
        """Independent scratch copy. Mutating it never touches this board."""
        clone = Board.__new__(Board)
        clone.cells = self.cells[:]
        return clone

    def pieces(self) -> Iterator[tuple[int, int, Piece]]:
        """Yield (row, col, piece) for every occupied cell in row-major order."""
        for index, piece in enumerate(self.cells):
            if piece is not None:
                yield index // BOARD_SIZE, index % BOARD_SIZE, piece

    def find(self, piece: Piece) -> Square | None:
        """First square holding `piece`, scanning from row 0, or None."""
        try:
            index = self.cells.index(piece)
        except ValueError:
            return None
        return index // BOARD_SIZE, index % BOARD_SIZE

    # -----------------------------------------------------------------------
    # Serialization
    # -----------------------------------------------------------------------

    def to_codes(self) -> list[list[str | None]]:
        """Rows of two-character codes (None for empty), row 0 first."""
        return [
            [p.code if p is not None else None
             for p in self.cells[row * BOARD_SIZE:(row + 1) * BOARD_SIZE]]
            for row in range(BOARD_SIZE)
        ]

    def placement(self) -> str:
        """FEN piece-placement field for this board."""
        return self.to_chess().board_fen()

    def to_chess(self) -> chess.BaseBoard:
        """Equivalent python-chess BaseBoard (pieces only, no game state)."""
        out = chess.BaseBoard.empty()
        for row, col, piece in self.pieces():
            symbol = piece.kind.value.upper() if piece.color is Color.WHITE else piece.kind.value
            out.set_piece_at(chess.square(col, row), chess.Piece.from_symbol(symbol))
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.cells == other.cells

    def __str__(self) -> str:
        lines = []
        for row in range(BOARD_SIZE - 1, -1, -1):
            cells = self.cells[row * BOARD_SIZE:(row + 1) * BOARD_SIZE]
            lines.append(" ".join(p.code if p else ".." for p in cells))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"Board({self.placement()!r})"
