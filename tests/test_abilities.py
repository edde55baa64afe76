"""
Tests for the piece ability table and active piece powers.
"""

from conftest import give_property, set_player

from redmonopoly.abilities import PIECE_ABILITIES, abilities_for
from redmonopoly.game import create_game
from redmonopoly.money import EventType
from redmonopoly.player import PieceType, Player
from redmonopoly.spaces import PropertyGroup


def test_every_piece_has_an_entry():
    assert set(PIECE_ABILITIES) == set(PieceType)
    assert abilities_for(None).name == "None"


def test_passive_modifiers(game):
    abilities = game.abilities
    alice, boris = game.get_player(0), game.get_player(1)
    assert abilities.stoy_bonus(alice) == 50
    assert abilities.stoy_bonus(boris) == 0
    assert abilities.quota_multiplier(boris, PropertyGroup.COLLECTIVE) == 0.5
    assert abilities.quota_multiplier(boris, PropertyGroup.MEDIA) == 1.0
    assert abilities.quota_multiplier(None, PropertyGroup.COLLECTIVE) == 1.0
    assert not abilities.can_own_group(game.get_player(2), PropertyGroup.COLLECTIVE)
    assert abilities.can_own_group(game.get_player(2), None)


def test_tank_requisition_takes_up_to_fifty(game):
    set_player(game, 0, rubles=30)
    assert game.tank_requisition(2, 0) == 30
    assert game.get_player(0).rubles == 0
    assert game.get_player(2).rubles == 1530
    assert game.state.event_log.get_events(EventType.ABILITY_USED)


def test_requisition_needs_the_tank(game):
    assert game.tank_requisition(1, 0) == 0
    assert game.tank_requisition(2, 2) == 0


def test_sickle_harvest_seizes_cheap_property(game):
    give_property(game, 3, 6)
    assert game.sickle_harvest(1, 6)
    assert game.state.properties.get(6).custodian_id == 1
    assert game.get_player(1).properties == (6,)
    assert game.get_player(3).properties == ()
    assert not game.sickle_harvest(1, 8)


def test_sickle_harvest_rejects_expensive_or_unheld(game):
    give_property(game, 3, 16)
    assert not game.sickle_harvest(1, 16)
    assert not game.sickle_harvest(1, 8)
    assert "sickle_harvest" not in game.get_player(1).used_abilities


def test_iron_curtain_returns_property_to_state(game):
    give_property(game, 0, 6, level=2)
    assert game.iron_curtain_disappear(3, 6)
    prop = game.state.properties.get(6)
    assert prop.custodian_id is None
    assert prop.collectivization_level == 0
    assert game.get_player(0).properties == ()
    assert not game.iron_curtain_disappear(3, 6)


def test_lenin_speech_collects_from_applauders(game_with_stalin):
    game = game_with_stalin
    set_player(game, 1, rubles=60)
    total = game.lenin_speech(3, [1, 2, 3, 0])
    assert total == 160
    assert game.get_player(3).rubles == 1660
    assert game.get_player(1).rubles == 0
    assert game.get_player(2).rubles == 1400
    assert game.lenin_speech(3, [1, 2]) == 0


def test_ability_status(game):
    assert game.ability_status(2) == "Tank: Gulag immunity available, Requisition available"
    game.tank_requisition(2, 0)
    assert game.ability_status(2) == "Tank: Gulag immunity available, Requisition used"
    assert game.ability_status(0).startswith("Hammer: ")


def test_ability_status_shows_starving_bread_loaf(game_with_stalin):
    game = game_with_stalin
    set_player(game, 2, rubles=99)
    assert game.ability_status(2) == "Bread Loaf: starving"
    assert game.ability_status(0) == "Stalin: supreme adjudicator"


def test_abilities_unavailable_once_eliminated(game_config):
    game = create_game(
        game_config,
        [
            Player(0, "Alice", PieceType.HAMMER),
            Player(1, "Vera", PieceType.TANK),
            Player(2, "Boris", PieceType.SICKLE),
        ],
    )
    game.execute_player(1)
    assert game.tank_requisition(1, 0) == 0
