"""
Developer tools for the chess rules engine.

Modules:
    perft: Move-generation node counts checked against python-chess.
            Run as a script: python3 tools/perft.py [depth]
"""
