"""
Game state owned by the rules engine.

GameState holds everything about a position that is not piece placement:
whose turn it is, castling rights, the en-passant target, the move
counters and the cached king squares. The derived phase (ongoing,
checkmate, stalemate, draw) is stored next to them so readers never have
to recompute it.

Only the rules engine writes to these objects. The presentation and
transport layers read them through RulesEngine.state / get_game_state().
"""

from dataclasses import dataclass, field
from typing import NamedTuple

from chessrules.board import Square
from chessrules.constants import KING_START, Color, DrawReason, Phase


@dataclass
class CastlingRights:
    """
    Per-colour castling availability.

    A flag only ever turns False. Once a king or rook has moved, the right
    is gone for the rest of the game even if the piece returns home.
    """

    king_side: bool = True
    queen_side: bool = True


def _full_rights() -> dict[Color, CastlingRights]:
    return {color: CastlingRights() for color in Color}


def _default_kings() -> dict[Color, Square]:
    return dict(KING_START)


@dataclass
class GameState:
    """
    Mutable game state for one game.

    Attributes:
        side_to_move:      Colour whose turn it is.
        castling_rights:   Rights per colour; see CastlingRights.
        en_passant_target: Square passed over by a pawn that just advanced
                           two squares, valid for the immediate reply only.
        half_move_clock:   Half-moves since the last pawn move or capture.
        full_move_number:  Starts at 1, incremented after each Black move.
        king_position:     Cached king square per colour. Re-synced from
                           the board whenever it goes stale.
        phase:             Derived result of the last state-updating move.
        winner:            Winning colour when phase is CHECKMATE.
        draw_reason:       Why the game is drawn when phase is DRAW.
    """

    side_to_move: Color = Color.WHITE
    castling_rights: dict[Color, CastlingRights] = field(default_factory=_full_rights)
    en_passant_target: Square | None = None
    half_move_clock: int = 0
    full_move_number: int = 1
    king_position: dict[Color, Square] = field(default_factory=_default_kings)
    phase: Phase = Phase.ONGOING
    winner: Color | None = None
    draw_reason: DrawReason | None = None


class GameStatus(NamedTuple):
    """Read-only summary returned by RulesEngine.get_game_state()."""

    state: Phase
    winner: Color | None
    side_to_move: Color
    draw_reason: DrawReason | None = None
