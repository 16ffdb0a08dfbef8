"""
Web application package for the chess rules engine.

Provides a FastAPI-based JSON rules API and the websocket move relay that
pairs two browsers into a networked game.
"""
