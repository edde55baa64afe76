"""
Exception hierarchy for the rules engine.

Gameplay operations reject invalid calls silently by returning False; these
errors are raised only at the setup, lookup and restore boundaries.
"""


class RedMonopolyError(Exception):
    """Base exception for all game-related errors."""


class InvalidSetupError(RedMonopolyError):
    """Players or configuration cannot form a valid game."""


class PlayerNotFoundError(RedMonopolyError):
    """Player does not exist."""


class InvalidActionError(RedMonopolyError):
    """Action type is not recognised by the rules surface."""


class SnapshotError(RedMonopolyError):
    """Snapshot data is malformed or does not match the game."""
