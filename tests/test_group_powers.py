"""
Tests for the powers granted by controlling the Siberian Camps, KGB
Headquarters, the Government Ministries and the State Media.
"""

from conftest import give_property

from redmonopoly.abilities import CAMP_LABOUR, KGB_PREVIEW, MINISTRY_REWRITE, PRAVDA_REVOTE
from redmonopoly.cards import DeckType
from redmonopoly.money import EventType
from redmonopoly.pending import Acknowledge, CampLabourApproval, PravdaRevote, RuleRewriteApproval, VerdictDecision
from redmonopoly.state import TurnPhase


def _settle_roll(game, dice=(1, 2)):
    assert game.roll_dice(dice) is not None
    if game.pending_action is not None:
        game.cancel_pending_action()
    assert game.state.turn_phase == TurnPhase.POST_TURN


# Siberian Camps


def test_camp_labour_with_stalins_approval(game_with_stalin):
    game = game_with_stalin
    give_property(game, 1, 1)
    give_property(game, 1, 3)
    assert not game.camp_labour(1, 2)

    _settle_roll(game)
    assert game.camp_labour(1, 2)
    assert game.pending_action == CampLabourApproval(1, 2)
    assert game.state.turn_phase == TurnPhase.AWAITING_INPUT

    assert game.resolve_pending_action(VerdictDecision(approved=True))
    assert game.get_player(2).in_gulag
    assert CAMP_LABOUR in game.get_player(1).used_abilities
    assert game.pending_action is None
    assert not game.camp_labour(1, 3)


def test_denied_camp_labour_keeps_the_power(game_with_stalin):
    game = game_with_stalin
    give_property(game, 1, 1)
    give_property(game, 1, 3)
    _settle_roll(game)

    game.camp_labour(1, 3)
    game.resolve_pending_action(VerdictDecision(approved=False))
    assert not game.get_player(3).in_gulag
    assert CAMP_LABOUR not in game.get_player(1).used_abilities
    assert game.group_powers.can_use_camp_labour(1)


def test_camp_labour_needs_both_camps_and_stalin(game, game_with_stalin):
    give_property(game_with_stalin, 1, 1)
    _settle_roll(game_with_stalin)
    assert not game_with_stalin.camp_labour(1, 2)

    give_property(game, 0, 1)
    give_property(game, 0, 3)
    _settle_roll(game)
    assert not game.camp_labour(0, 2)


def test_camp_labour_target_must_be_free(game_with_stalin):
    game = game_with_stalin
    give_property(game, 1, 1)
    give_property(game, 1, 3)
    game.stalin_decree(3)
    _settle_roll(game)

    assert not game.camp_labour(1, 3)
    assert not game.camp_labour(1, 1)
    assert game.pending_action is None


# KGB Headquarters


def test_kgb_preview_shows_next_test_question(game_with_stalin):
    game = game_with_stalin
    give_property(game, 2, 23)
    deck = game.state.decks[DeckType.COMMUNIST_TEST]
    upcoming = deck.cards[0]
    size = len(deck.cards)

    assert game.kgb_preview(2) == upcoming
    assert len(deck.cards) == size
    assert KGB_PREVIEW in game.get_player(2).used_abilities
    assert game.kgb_preview(2) is None
    assert game.kgb_preview(1) is None


# Government Ministries


def test_ministry_rewrite_is_logged_when_approved(game_with_stalin):
    game = game_with_stalin
    for space_id in (16, 18, 19):
        give_property(game, 1, space_id)
    _settle_roll(game)

    assert not game.ministry_rewrite(1, "   ")
    assert game.ministry_rewrite(1, "Bread lines are voluntary")
    assert game.pending_action == RuleRewriteApproval(1, "Bread lines are voluntary")

    assert game.resolve_pending_action(VerdictDecision(approved=True))
    assert MINISTRY_REWRITE in game.get_player(1).used_abilities
    event = game.state.event_log.get_events(EventType.ABILITY_USED)[-1]
    assert event.details["rule"] == "Bread lines are voluntary"


def test_vetoed_rewrite_can_be_tried_again(game_with_stalin):
    game = game_with_stalin
    for space_id in (16, 18, 19):
        give_property(game, 1, space_id)
    _settle_roll(game)

    game.ministry_rewrite(1, "Stalin must roll dice")
    game.resolve_pending_action(VerdictDecision(approved=False))
    assert MINISTRY_REWRITE not in game.get_player(1).used_abilities
    assert game.group_powers.can_rewrite_rule(1)


# State Media


def test_pravda_revote_strikes_recorded_votes(game_with_stalin):
    game = game_with_stalin
    for space_id in (26, 27, 29):
        give_property(game, 1, space_id)
    game.state.end_votes[2] = True
    game.initiate_great_purge()
    game.vote_in_purge(2, 3)
    _settle_roll(game)

    assert game.pravda_revote(1, "Should the game end?")
    assert game.state.end_votes == {}
    assert game.state.great_purge.votes == ()
    assert PRAVDA_REVOTE in game.get_player(1).used_abilities
    assert isinstance(game.pending_action, PravdaRevote)

    assert game.resolve_pending_action(Acknowledge())
    assert game.pending_action is None
    assert not game.pravda_revote(1, "Again")
