"""
Soviet Monopoly rules engine.

Exposes the game facade, setup primitives and the action surface.
"""

from redmonopoly.config import GameConfig
from redmonopoly.game import Game, create_game
from redmonopoly.player import PieceType, Player, PlayerState, Rank
from redmonopoly.rules import Action, ActionType, apply_action, get_legal_actions
from redmonopoly.snapshot import restore_snapshot, serialize_snapshot
from redmonopoly.state import TradeOffer

__all__ = [
    "Action",
    "ActionType",
    "Game",
    "GameConfig",
    "PieceType",
    "Player",
    "PlayerState",
    "Rank",
    "TradeOffer",
    "apply_action",
    "create_game",
    "get_legal_actions",
    "restore_snapshot",
    "serialize_snapshot",
]
