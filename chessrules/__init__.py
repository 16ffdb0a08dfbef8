"""
Chess rules engine package.

This package implements the rules of chess for a two-player board game
front end: legal-move checks, move application with castling, en passant
and promotion, and detection of check, checkmate, stalemate and draws
(50-move rule, insufficient material).

Modules:
    constants - Colours, piece kinds, board geometry and draw limits
    board - 8x8 board store with cheap copies and FEN placement
    movegen - Pure movement and attack predicates per piece kind
    state - GameState, CastlingRights and the GameStatus summary
    rules - RulesEngine: validation, make_move, terminal states
    fen - Whole-position FEN import/export via python-chess
"""
