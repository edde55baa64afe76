"""
Tests for Stalin's decrees: the Great Purge, the Five-Year Plan and Hero of
the Soviet Union.
"""

from conftest import set_player

from redmonopoly.abilities import GREAT_PURGE, TANK_GULAG_IMMUNITY
from redmonopoly.game import create_game
from redmonopoly.money import EventType
from redmonopoly.player import PieceType, Player


# Great Purge


def test_great_purge_sentences_the_most_voted(game_with_stalin):
    game = game_with_stalin
    assert game.initiate_great_purge()
    assert not game.initiate_great_purge()
    assert GREAT_PURGE in game.get_player(0).used_abilities

    assert game.vote_in_purge(1, 2)
    assert game.vote_in_purge(3, 2)
    assert game.vote_in_purge(2, 3)

    assert game.resolve_great_purge() == [2]
    assert game.get_player(2).in_gulag
    assert not game.get_player(3).in_gulag
    assert game.state.great_purge is None
    assert not game.initiate_great_purge()


def test_purge_tie_sentences_everyone_tied(game_with_stalin):
    game = game_with_stalin
    game.initiate_great_purge()
    game.vote_in_purge(1, 3)
    game.vote_in_purge(1, 2)
    game.vote_in_purge(2, 3)

    assert game.state.great_purge.vote_map() == {1: 2, 2: 3}
    assert game.resolve_great_purge() == [2, 3]
    assert game.get_player(2).in_gulag
    assert game.get_player(3).in_gulag


def test_purge_vote_guards(game_with_stalin):
    game = game_with_stalin
    assert not game.vote_in_purge(1, 2)

    game.initiate_great_purge()
    assert not game.vote_in_purge(1, 1)
    assert not game.vote_in_purge(1, 0)
    assert not game.vote_in_purge(0, 1)

    assert game.resolve_great_purge() == []
    assert "no votes" in game.state.event_log.get_events(EventType.GREAT_PURGE)[-1].message


def test_decrees_need_stalin(game):
    assert not game.initiate_great_purge()
    assert game.initiate_five_year_plan(500) is None
    assert game.grant_hero(1) is None


# Five-Year Plan


def test_met_plan_pays_every_comrade(game_with_stalin):
    game = game_with_stalin
    plan = game.initiate_five_year_plan(300)
    assert plan.target == 300
    assert game.initiate_five_year_plan(100) is None

    treasury = game.state.treasury.balance
    assert game.contribute_to_plan(1, 200)
    assert game.contribute_to_plan(2, 100)
    assert game.state.five_year_plan.is_met
    assert game.state.treasury.balance == treasury + 300

    assert game.resolve_five_year_plan() is True
    assert game.get_player(1).rubles == 1400
    assert game.get_player(2).rubles == 1500
    assert game.get_player(3).rubles == 1600
    assert game.state.five_year_plan is None
    assert game.resolve_five_year_plan() is None


def test_failed_plan_punishes_poorest_free_comrade(game_with_stalin):
    game = game_with_stalin
    set_player(game, 2, rubles=50)
    set_player(game, 3, rubles=10)
    game.stalin_decree(3)

    game.initiate_five_year_plan(1000)
    game.contribute_to_plan(1, 100)

    assert game.resolve_five_year_plan() is False
    assert game.get_player(2).in_gulag
    assert not game.get_player(1).in_gulag
    assert "Vera (poorest player)" in game.state.event_log.get_events(EventType.FIVE_YEAR_PLAN)[-1].message


def test_failed_plan_uses_up_tank_immunity(game_config):
    game = create_game(
        game_config,
        [
            Player(0, "Stalin", is_stalin=True),
            Player(1, "Boris", PieceType.SICKLE),
            Player(2, "Vera", PieceType.TANK),
        ],
    )
    set_player(game, 2, rubles=20)
    game.initiate_five_year_plan(500)

    assert game.resolve_five_year_plan() is False
    vera = game.get_player(2)
    assert not vera.in_gulag
    assert TANK_GULAG_IMMUNITY in vera.used_abilities
    assert "Tank immunity" in game.state.event_log.get_events(EventType.FIVE_YEAR_PLAN)[-1].message


def test_plan_contribution_guards(game_with_stalin):
    game = game_with_stalin
    assert not game.contribute_to_plan(1, 100)
    assert game.initiate_five_year_plan(0) is None

    game.initiate_five_year_plan(400)
    assert not game.contribute_to_plan(1, 0)
    assert not game.contribute_to_plan(1, 5000)
    assert not game.contribute_to_plan(0, 100)
    assert game.state.five_year_plan.collected == 0


# Hero of the Soviet Union


def test_hero_award_lasts_three_rounds(game_with_stalin):
    game = game_with_stalin
    award = game.grant_hero(2)
    assert award.granted_at_round == 1
    assert award.expires_at_round == 4
    assert game.is_hero(2)
    assert game.grant_hero(2) is None
    assert game.grant_hero(0) is None

    game.state.round_number = 4
    assert not game.is_hero(2)
    again = game.grant_hero(2)
    assert again.expires_at_round == 7
    assert game.state.heroes == [again]
