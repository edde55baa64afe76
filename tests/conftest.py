"""Shared test fixtures for the Soviet Monopoly engine."""

import pytest

from redmonopoly.config import GameConfig
from redmonopoly.game import create_game
from redmonopoly.player import PieceType, Player


@pytest.fixture
def game_config():
    """Default game configuration with fixed seed for reproducibility."""
    return GameConfig(seed=42)


@pytest.fixture
def four_players():
    """Four comrades, no Stalin."""
    return [
        Player(0, "Alice", PieceType.HAMMER),
        Player(1, "Boris", PieceType.SICKLE),
        Player(2, "Vera", PieceType.TANK),
        Player(3, "Dmitri", PieceType.IRON_CURTAIN),
    ]


@pytest.fixture
def game(game_config, four_players):
    """Four-player game with fixed seed."""
    return create_game(game_config, four_players)


@pytest.fixture
def game_with_stalin(game_config):
    """Stalin in seat 0 followed by three comrades."""
    players = [
        Player(0, "Stalin", is_stalin=True),
        Player(1, "Boris", PieceType.SICKLE),
        Player(2, "Vera", PieceType.BREAD_LOAF),
        Player(3, "Dmitri", PieceType.STATUE_OF_LENIN),
    ]
    return create_game(game_config, players)


def give_property(game, player_id, space_id, level=0, mortgaged=False):
    """Hand a space to a player directly, bypassing purchase rules."""
    game.economy.set_custodian(space_id, player_id)
    game.state.properties.update(space_id, collectivization_level=level, mortgaged=mortgaged)


def set_player(game, player_id, **changes):
    """Overwrite fields on a player record."""
    return game.state.players.update(player_id, **changes)
