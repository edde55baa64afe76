"""
Tests for elimination, bankruptcy and the end of the game.
"""

from conftest import give_property, set_player

from redmonopoly.cards import DeckType
from redmonopoly.money import EventType
from redmonopoly.player import EliminationReason, GulagReason, Rank
from redmonopoly.state import GameEndCondition, GamePhase


def test_elimination_returns_properties_to_state(game):
    give_property(game, 1, 6, level=2)
    give_property(game, 1, 8, mortgaged=True)
    set_player(game, 1, rank=Rank.COMMISSAR)

    assert game.execute_player(1)
    player = game.get_player(1)
    assert player.is_eliminated
    assert player.properties == ()
    for space_id in (6, 8):
        prop = game.state.properties.get(space_id)
        assert prop.custodian_id is None
        assert prop.collectivization_level == 0
        assert not prop.mortgaged

    record = player.elimination
    assert record.reason == EliminationReason.EXECUTION
    assert record.final_rank == Rank.COMMISSAR
    assert record.final_property_count == 2
    assert record.final_wealth == 1500 + 100 + 2 * 50 + 100 // 2
    assert game.state.event_log.get_events(EventType.ELIMINATION)


def test_elimination_clears_gulag_state_and_cards(game):
    deck = game.state.decks[DeckType.PARTY_DIRECTIVE]
    card = deck.draw()
    deck.hold_card(card)
    set_player(game, 1, gulag_cards=1)
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)

    game.execute_player(1)
    player = game.get_player(1)
    assert not player.in_gulag
    assert player.gulag_cards == 0
    assert deck.held_cards == []
    assert card in deck.discard_pile


def test_elimination_lapses_vouchers(game):
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    game.gulag.create_voucher(1, 3)
    game.execute_player(1)
    assert not game.state.vouchers[0].is_active
    assert game.get_player(3).vouching_for is None


def test_cannot_eliminate_twice(game):
    assert game.execute_player(1)
    assert not game.execute_player(1)


def test_bankruptcy_requires_negative_rubles(game):
    assert not game.declare_bankruptcy(1)
    set_player(game, 1, rubles=-10)
    assert game.declare_bankruptcy(1)
    assert game.get_player(1).elimination.reason == EliminationReason.BANKRUPTCY


def test_voluntary_bankruptcy(game):
    assert game.declare_bankruptcy(2, voluntary=True)
    assert game.get_player(2).is_eliminated


def test_eliminating_current_player_ends_their_turn(game):
    game.roll_dice((1, 2))
    game.execute_player(0)
    assert game.pending_action is None
    assert game.end_turn()
    assert game.state.current_player_id == 1


def test_last_survivor_wins(game):
    game.execute_player(1)
    game.execute_player(2)
    assert not game.game_over
    game.execute_player(3)

    assert game.game_over
    assert game.state.game_phase == GamePhase.ENDED
    assert game.state.end_condition == GameEndCondition.SURVIVOR
    assert game.state.winner_id == 0
    assert game.roll_dice((1, 2)) is None


def test_stalin_wins_when_nobody_survives(game_with_stalin):
    game = game_with_stalin
    standing = game.standing
    for pid in (1, 2, 3):
        game.state.players.update(pid, is_eliminated=True)
    assert standing.check_game_end() == GameEndCondition.STALIN_WINS
    assert game.state.winner_id == 0


def test_unanimous_vote_ends_game(game):
    assert game.cast_end_vote(0, True) is None
    assert game.cast_end_vote(1, True) is None
    assert game.cast_end_vote(2, True) is None
    assert game.cast_end_vote(3, True) is True
    assert game.state.end_condition == GameEndCondition.UNANIMOUS
    assert game.state.winner_id is None


def test_failed_vote_clears_ballots(game):
    game.cast_end_vote(0, True)
    game.cast_end_vote(1, False)
    game.cast_end_vote(2, True)
    assert game.cast_end_vote(3, True) is False
    assert game.state.end_votes == {}
    assert not game.game_over


def test_eliminated_players_do_not_vote(game):
    game.cast_end_vote(1, False)
    game.execute_player(1)
    assert game.cast_end_vote(1, True) is None
    game.cast_end_vote(0, True)
    game.cast_end_vote(2, True)
    assert game.cast_end_vote(3, True) is True
