"""
Tests for Gulag confinement, escapes, vouchers, informing and bribes.
"""

import pytest

from conftest import set_player

from redmonopoly.game import create_game
from redmonopoly.gulag import required_doubles
from redmonopoly.money import EventType
from redmonopoly.pending import (
    BribeVerdict,
    ConfessionReview,
    EscapeDecision,
    EscapeMethod,
    GulagEscapeChoice,
    InformVerdict,
    PurchaseDecision,
    VerdictDecision,
    VoucherRequest,
)
from redmonopoly.player import EliminationReason, GulagReason, PieceType, Player, Rank
from redmonopoly.state import TurnPhase


def test_send_to_gulag_confines_and_demotes(game):
    set_player(game, 3, rank=Rank.COMMISSAR, position=23)
    assert game.send_to_gulag(3, GulagReason.ENEMY_OF_STATE)

    player = game.get_player(3)
    assert player.in_gulag
    assert player.position == 10
    assert player.gulag_turns == 0
    assert player.rank == Rank.PARTY_MEMBER
    assert game.state.event_log.get_events(EventType.GULAG_ENTRY)


def test_cannot_send_twice(game):
    assert game.send_to_gulag(3, GulagReason.ENEMY_OF_STATE)
    assert not game.send_to_gulag(3, GulagReason.STALIN_DECREE)


def test_pay_for_release(game):
    """1000 rubles, pay at turn 3: 500 left, free and one rank lower."""
    set_player(game, 3, rank=Rank.COMMISSAR)
    game.send_to_gulag(3, GulagReason.ENEMY_OF_STATE)
    set_player(game, 3, rubles=1000, gulag_turns=3)

    assert game.pay_for_release(3)
    player = game.get_player(3)
    assert player.rubles == 500
    assert not player.in_gulag
    assert player.gulag_turns == 0
    assert player.rank == Rank.PROLETARIAT


def test_pay_for_release_requires_funds(game):
    game.send_to_gulag(3, GulagReason.ENEMY_OF_STATE)
    set_player(game, 3, rubles=499)
    assert not game.pay_for_release(3)
    assert game.get_player(3).in_gulag


def test_tank_evades_first_sentence(game):
    """Tank at 12 is redirected to the nearest station and keeps its liberty."""
    set_player(game, 2, position=12, rank=Rank.PARTY_MEMBER)

    assert not game.send_to_gulag(2, GulagReason.ENEMY_OF_STATE)
    tank = game.get_player(2)
    assert tank.position == 15
    assert not tank.in_gulag
    assert "tank_gulag_immunity" in tank.used_abilities
    assert tank.rank == Rank.PROLETARIAT

    assert game.send_to_gulag(2, GulagReason.ENEMY_OF_STATE)
    assert game.get_player(2).in_gulag


def test_hammer_blocks_player_initiated_sentences(game):
    assert not game.send_to_gulag(0, GulagReason.DENOUNCEMENT_GUILTY)
    assert not game.send_to_gulag(0, GulagReason.THREE_DOUBLES)
    assert not game.get_player(0).in_gulag
    assert game.state.event_log.get_events(EventType.GULAG_BLOCKED)

    assert game.send_to_gulag(0, GulagReason.ENEMY_OF_STATE)
    assert game.get_player(0).in_gulag


@pytest.mark.parametrize(
    "turns, expected",
    [
        (0, (6,)),
        (1, (6,)),
        (2, (5, 6)),
        (3, (4, 5, 6)),
        (4, (3, 4, 5, 6)),
        (5, (1, 2, 3, 4, 5, 6)),
        (9, (1, 2, 3, 4, 5, 6)),
    ],
)
def test_required_doubles_widen_over_time(turns, expected):
    assert required_doubles(turns) == expected


def test_roll_escape_with_required_double(game):
    """Counter at 4: double threes are enough."""
    game.send_to_gulag(3, GulagReason.ENEMY_OF_STATE)
    set_player(game, 3, gulag_turns=4)

    assert game.gulag.attempt_roll_escape(3, (3, 3))
    player = game.get_player(3)
    assert not player.in_gulag
    assert player.gulag_turns == 0
    assert player.position == 10


def test_roll_escape_fails_below_required_face(game):
    game.send_to_gulag(3, GulagReason.ENEMY_OF_STATE)
    set_player(game, 3, gulag_turns=2)

    assert not game.gulag.attempt_roll_escape(3, (4, 4))
    assert not game.gulag.attempt_roll_escape(3, (5, 6))
    assert game.get_player(3).in_gulag


def test_gulag_turn_offers_escape_choice(game):
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)

    # Alice takes a plain turn
    game.roll_dice((1, 2))
    assert game.resolve_pending_action(PurchaseDecision(buy=False))
    assert game.end_turn()

    assert game.state.current_player_id == 1
    assert game.get_player(1).gulag_turns == 1
    pending = game.pending_action
    assert isinstance(pending, GulagEscapeChoice)
    assert pending.required_doubles == (6,)
    assert game.roll_dice((2, 3)) is None

    assert game.resolve_pending_action(EscapeDecision(EscapeMethod.ROLL, dice=(6, 6)))
    assert not game.get_player(1).in_gulag
    assert game.state.turn_phase == TurnPhase.POST_TURN


def test_gulag_timeout_eliminates(game):
    game.send_to_gulag(3, GulagReason.ENEMY_OF_STATE)
    set_player(game, 3, gulag_turns=9)

    assert not game.gulag.handle_gulag_turn(3)
    player = game.get_player(3)
    assert player.is_eliminated
    assert player.elimination.reason == EliminationReason.GULAG_TIMEOUT
    assert not player.in_gulag


def test_use_gulag_card(game):
    game.send_to_gulag(3, GulagReason.ENEMY_OF_STATE)
    assert not game.use_gulag_card(3)

    set_player(game, 3, gulag_cards=1)
    assert game.use_gulag_card(3)
    assert not game.get_player(3).in_gulag
    assert game.get_player(3).gulag_cards == 0


def test_red_star_executed_on_falling_to_proletariat(game_config):
    game = create_game(
        game_config,
        [
            Player(0, "Alice", PieceType.HAMMER),
            Player(1, "Boris", PieceType.RED_STAR),
            Player(2, "Vera", PieceType.TANK),
        ],
    )
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    player = game.get_player(1)
    assert player.is_eliminated
    assert player.elimination.reason == EliminationReason.RANK_COLLAPSE


# Vouchers


def _confine_current_player(game):
    pid = game.state.current_player_id
    game.send_to_gulag(pid, GulagReason.ENEMY_OF_STATE)
    game.state.set_pending(GulagEscapeChoice(pid, required_doubles(0)))
    return pid


def test_voucher_release_and_liability(game):
    prisoner = _confine_current_player(game)

    assert game.resolve_pending_action(EscapeDecision(EscapeMethod.VOUCH, voucher_id=3))
    assert isinstance(game.pending_action, VoucherRequest)
    assert game.resolve_pending_action(VerdictDecision(approved=True))

    assert not game.get_player(prisoner).in_gulag
    assert game.pending_action is None
    assert game.get_player(3).vouching_for == prisoner
    agreement = game.state.vouchers[0]
    assert agreement.expires_at_round == 4
    assert agreement.is_active

    # Another offence inside the window takes the voucher down too
    game.send_to_gulag(prisoner, GulagReason.PILFERING_CAUGHT)
    assert game.get_player(prisoner).in_gulag
    assert game.get_player(3).in_gulag
    assert game.get_player(3).vouching_for is None
    assert not game.state.vouchers[0].is_active
    assert game.state.event_log.get_events(EventType.VOUCHER_CONSEQUENCE)


def test_debt_default_does_not_trigger_voucher(game):
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    game.gulag.create_voucher(1, 3)

    game.send_to_gulag(1, GulagReason.DEBT_DEFAULT)
    assert game.get_player(1).in_gulag
    assert not game.get_player(3).in_gulag


def test_declined_voucher_returns_to_escape_choice(game):
    pid = _confine_current_player(game)

    assert game.resolve_pending_action(EscapeDecision(EscapeMethod.VOUCH, voucher_id=2))
    assert isinstance(game.pending_action, VoucherRequest)
    assert game.resolve_pending_action(VerdictDecision(approved=False))
    assert isinstance(game.pending_action, GulagEscapeChoice)
    assert game.get_player(pid).in_gulag


def test_voucher_eligibility(game):
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    game.send_to_gulag(2, GulagReason.ENEMY_OF_STATE)
    game.send_to_gulag(2, GulagReason.ENEMY_OF_STATE)

    assert game.gulag.eligible_vouchers(1) == [0, 3]
    game.gulag.create_voucher(1, 3)
    assert game.gulag.eligible_vouchers(2) == [0, 1, 3]


def test_one_voucher_can_stand_for_several_prisoners(game):
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    game.send_to_gulag(2, GulagReason.ENEMY_OF_STATE)

    assert game.gulag.create_voucher(1, 3) is not None
    assert game.gulag.create_voucher(2, 3) is not None
    assert [(v.prisoner_id, v.voucher_id) for v in game.state.vouchers] == [(1, 3), (2, 3)]
    assert game.get_player(3).vouching_for == 2

    game.send_to_gulag(2, GulagReason.PILFERING_CAUGHT)
    assert game.get_player(3).in_gulag
    assert game.state.vouchers[0].is_active
    assert not game.state.vouchers[1].is_active
    assert game.get_player(3).vouching_for == 1


def test_vouchers_expire_after_three_rounds(game):
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    game.gulag.create_voucher(1, 3)

    game.state.round_number = 4
    assert game.gulag.expire_vouchers() == []
    game.state.round_number = 5
    expired = game.gulag.expire_vouchers()
    assert len(expired) == 1
    assert game.get_player(3).vouching_for is None

    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    assert not game.get_player(3).in_gulag


# Informing and bribes


def test_inform_guilty_swaps_places(game_with_stalin):
    game = game_with_stalin
    informer = _confine_current_player(game)

    assert game.resolve_pending_action(EscapeDecision(EscapeMethod.INFORM, accused_id=3))
    assert isinstance(game.pending_action, InformVerdict)
    assert game.resolve_pending_action(VerdictDecision(approved=True))

    assert not game.get_player(informer).in_gulag
    assert game.get_player(3).in_gulag
    assert game.pending_action is None


def test_inform_guilty_pays_informant_bonus(game_with_stalin):
    game = game_with_stalin
    informer = _confine_current_player(game)
    treasury = game.state.treasury.balance

    game.resolve_pending_action(EscapeDecision(EscapeMethod.INFORM, accused_id=2))
    game.resolve_pending_action(VerdictDecision(approved=True))

    assert game.get_player(informer).rubles == 1600
    assert game.state.treasury.balance == treasury - 100
    release = game.state.event_log.get_events(EventType.GULAG_RELEASE)[-1]
    assert "100 rubles informant bonus" in release.message


def test_inform_innocent_adds_penalty_turns(game_with_stalin):
    game = game_with_stalin
    informer = _confine_current_player(game)
    set_player(game, informer, gulag_turns=3)

    game.resolve_pending_action(EscapeDecision(EscapeMethod.INFORM, accused_id=3))
    assert game.resolve_pending_action(VerdictDecision(approved=False))
    assert game.get_player(informer).gulag_turns == 5
    assert game.get_player(informer).in_gulag
    assert not game.get_player(3).in_gulag


def test_false_information_can_reach_timeout(game_with_stalin):
    game = game_with_stalin
    informer = _confine_current_player(game)
    set_player(game, informer, gulag_turns=8)

    game.resolve_pending_action(EscapeDecision(EscapeMethod.INFORM, accused_id=3))
    game.resolve_pending_action(VerdictDecision(approved=False))
    assert game.get_player(informer).is_eliminated


def test_bribe_is_forfeited_when_rejected(game_with_stalin):
    game = game_with_stalin
    pid = _confine_current_player(game)

    assert not game.gulag.submit_bribe(pid, 150)
    assert not game.gulag.submit_bribe(pid, 5000)
    assert game.resolve_pending_action(EscapeDecision(EscapeMethod.BRIBE, amount=300))
    assert isinstance(game.pending_action, BribeVerdict)
    assert game.get_player(pid).rubles == 1200

    assert game.resolve_pending_action(VerdictDecision(approved=False))
    assert game.get_player(pid).in_gulag
    assert game.get_player(pid).rubles == 1200


def test_accepted_bribe_releases(game_with_stalin):
    game = game_with_stalin
    pid = _confine_current_player(game)
    game.resolve_pending_action(EscapeDecision(EscapeMethod.BRIBE, amount=200))
    game.resolve_pending_action(VerdictDecision(approved=True))
    assert not game.get_player(pid).in_gulag
    assert game.get_player(pid).gulag_turns == 0


def test_stalin_decree(game_with_stalin):
    game = game_with_stalin
    assert game.stalin_decree(2, "Insufficient enthusiasm")
    assert game.get_player(2).in_gulag
    entry = game.state.event_log.get_events(EventType.GULAG_ENTRY)[-1]
    assert "Insufficient enthusiasm" in entry.message


# Confessions


def test_accepted_confession_rehabilitates(game_with_stalin):
    game = game_with_stalin
    pid = _confine_current_player(game)

    assert game.resolve_pending_action(
        EscapeDecision(EscapeMethod.CONFESSION, confession="I read Western newspapers")
    )
    assert game.pending_action == ConfessionReview(pid, "I read Western newspapers")
    assert game.resolve_pending_action(VerdictDecision(approved=True))

    assert not game.get_player(pid).in_gulag
    assert game.state.turn_phase == TurnPhase.POST_TURN
    confession = game.state.confessions[-1]
    assert confession.reviewed and confession.accepted


def test_rejected_confession_ends_the_turn(game_with_stalin):
    game = game_with_stalin
    pid = _confine_current_player(game)

    game.resolve_pending_action(EscapeDecision(EscapeMethod.CONFESSION, confession="I hid a radio"))
    game.resolve_pending_action(VerdictDecision(approved=False))

    assert game.get_player(pid).in_gulag
    assert game.pending_action is None
    assert game.state.turn_phase == TurnPhase.POST_TURN
    assert not game.state.confessions[-1].accepted
    assert not game.review_confession(pid, True)


def test_confession_needs_text_and_stalin(game, game_with_stalin):
    pid = _confine_current_player(game_with_stalin)
    assert not game_with_stalin.resolve_pending_action(EscapeDecision(EscapeMethod.CONFESSION, confession="  "))
    assert isinstance(game_with_stalin.pending_action, GulagEscapeChoice)

    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    assert not game.submit_confession(1, "I am sorry")
    assert game.state.confessions == []
    assert game_with_stalin.get_player(pid).in_gulag
