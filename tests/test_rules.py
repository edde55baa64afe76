"""
Tests for legal action detection and action application.
"""

import pytest

from conftest import give_property, set_player

from redmonopoly.exceptions import InvalidActionError
from redmonopoly.gulag import required_doubles
from redmonopoly.pending import GulagEscapeChoice
from redmonopoly.player import GulagReason
from redmonopoly.rules import Action, ActionType, apply_action, get_legal_actions
from redmonopoly.state import TradeOffer, TurnPhase


def _types(actions):
    return {a.action_type for a in actions}


def test_current_player_may_roll(game):
    assert ActionType.ROLL_DICE in _types(get_legal_actions(game, 0))
    assert ActionType.ROLL_DICE not in _types(get_legal_actions(game, 1))
    assert ActionType.END_TURN not in _types(get_legal_actions(game, 0))


def test_full_turn_through_actions(game):
    assert apply_action(game, Action(ActionType.ROLL_DICE, dice=(1, 2)))

    actions = _types(get_legal_actions(game, 0))
    assert actions == {ActionType.BUY_PROPERTY, ActionType.DECLINE_PURCHASE}
    assert get_legal_actions(game, 1) == []

    assert apply_action(game, Action(ActionType.BUY_PROPERTY, position=3))
    assert game.state.properties.get(3).custodian_id == 0
    assert ActionType.END_TURN in _types(get_legal_actions(game, 0))

    assert apply_action(game, Action(ActionType.END_TURN))
    assert game.state.current_player_id == 1


def test_actions_rejected_for_wrong_player(game):
    assert not apply_action(game, Action(ActionType.ROLL_DICE, dice=(1, 2)), player_id=1)
    apply_action(game, Action(ActionType.ROLL_DICE, dice=(1, 2)))
    assert not apply_action(game, Action(ActionType.BUY_PROPERTY), player_id=1)
    assert game.state.properties.get(3).custodian_id is None


def test_unknown_action_type_raises(game):
    with pytest.raises(InvalidActionError):
        apply_action(game, Action("bogus"))


def test_buy_not_offered_when_restricted(game):
    set_player(game, 0, position=28)
    game.resolve_landing(0)
    actions = _types(get_legal_actions(game, 0))
    assert ActionType.BUY_PROPERTY not in actions
    assert ActionType.DECLINE_PURCHASE in actions


def test_tax_offers_both_options(game):
    set_player(game, 0, position=4)
    game.resolve_landing(0)
    taxes = [a for a in get_legal_actions(game, 0) if a.action_type == ActionType.PAY_TAX]
    assert [a.params["amount"] for a in taxes] == [200, 225]

    assert apply_action(game, Action(ActionType.PAY_TAX, pay_alternative=True))
    assert game.get_player(0).rubles == 1275


def test_breadline_collected_through_action(game):
    set_player(game, 0, position=20)
    game.resolve_landing(0)
    action = get_legal_actions(game, 0)[0]
    assert action.action_type == ActionType.COLLECT_BREADLINE
    assert apply_action(game, action)
    assert game.get_player(0).rubles == 1650


def test_gulag_escape_options_without_stalin(game):
    game.send_to_gulag(0, GulagReason.ENEMY_OF_STATE)
    game.state.set_pending(GulagEscapeChoice(0, required_doubles(0)))

    actions = get_legal_actions(game, 0)
    types = _types(actions)
    assert ActionType.GULAG_ROLL in types
    assert ActionType.GULAG_PAY in types
    assert ActionType.GULAG_INFORM not in types
    assert ActionType.GULAG_BRIBE not in types
    assert ActionType.GULAG_CARD not in types
    vouchers = [a.params["voucher_id"] for a in actions if a.action_type == ActionType.GULAG_VOUCH]
    assert vouchers == [1, 2, 3]


def test_voucher_answers_voucher_request(game):
    game.send_to_gulag(0, GulagReason.ENEMY_OF_STATE)
    game.state.set_pending(GulagEscapeChoice(0, required_doubles(0)))
    assert apply_action(game, Action(ActionType.GULAG_VOUCH, voucher_id=3))

    assert get_legal_actions(game, 0) == []
    assert _types(get_legal_actions(game, 3)) == {ActionType.RESPOND}
    assert not apply_action(game, Action(ActionType.RESPOND, approved=True), player_id=0)
    assert apply_action(game, Action(ActionType.RESPOND, approved=True), player_id=3)
    assert not game.get_player(0).in_gulag


def test_stalin_judges_informers_and_bribes(game_with_stalin):
    game = game_with_stalin
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    game.state.set_pending(GulagEscapeChoice(1, required_doubles(0)))

    types = _types(get_legal_actions(game, 1))
    assert ActionType.GULAG_INFORM in types
    assert ActionType.GULAG_BRIBE in types

    assert apply_action(game, Action(ActionType.GULAG_BRIBE, amount=250))
    assert get_legal_actions(game, 1) == []
    assert _types(get_legal_actions(game, 0)) == {ActionType.RESPOND}
    assert apply_action(game, Action(ActionType.RESPOND, approved=True), player_id=0)
    assert not game.get_player(1).in_gulag


def test_stalin_acts_through_decrees(game_with_stalin):
    game = game_with_stalin
    assert _types(get_legal_actions(game, 0)) == {
        ActionType.INITIATE_GREAT_PURGE,
        ActionType.INITIATE_FIVE_YEAR_PLAN,
        ActionType.GRANT_HERO,
    }
    assert ActionType.ROLL_DICE not in _types(get_legal_actions(game, 0))

    assert not apply_action(game, Action(ActionType.INITIATE_GREAT_PURGE), player_id=1)
    assert apply_action(game, Action(ActionType.INITIATE_GREAT_PURGE), player_id=0)
    votes = [a.params["target_id"] for a in get_legal_actions(game, 1) if a.action_type == ActionType.PURGE_VOTE]
    assert votes == [2, 3]

    assert apply_action(game, Action(ActionType.PURGE_VOTE, target_id=2), player_id=1)
    assert apply_action(game, Action(ActionType.RESOLVE_GREAT_PURGE), player_id=0)
    assert game.get_player(2).in_gulag
    assert ActionType.INITIATE_GREAT_PURGE not in _types(get_legal_actions(game, 0))


def test_five_year_plan_and_hero_through_actions(game_with_stalin):
    game = game_with_stalin
    assert apply_action(game, Action(ActionType.INITIATE_FIVE_YEAR_PLAN, target=100), player_id=0)
    assert ActionType.CONTRIBUTE_TO_PLAN in _types(get_legal_actions(game, 2))
    assert apply_action(game, Action(ActionType.CONTRIBUTE_TO_PLAN, amount=100), player_id=2)
    assert apply_action(game, Action(ActionType.RESOLVE_FIVE_YEAR_PLAN), player_id=0)
    assert game.get_player(2).rubles == 1500
    assert game.get_player(3).rubles == 1600

    assert apply_action(game, Action(ActionType.GRANT_HERO, player_id=3), player_id=0)
    heroes = [a.params["player_id"] for a in get_legal_actions(game, 0) if a.action_type == ActionType.GRANT_HERO]
    assert heroes == [1, 2]


def test_trade_through_actions(game):
    give_property(game, 1, 1)
    assert (ActionType.PROPOSE_TRADE, 1) in {
        (a.action_type, a.params.get("recipient_id")) for a in get_legal_actions(game, 0)
    }
    offer = Action(
        ActionType.PROPOSE_TRADE,
        recipient_id=1,
        offer=TradeOffer(rubles=100),
        request=TradeOffer(properties=frozenset({1})),
    )
    assert apply_action(game, offer, player_id=0)

    assert (ActionType.CANCEL_TRADE, 1) in {(a.action_type, a.params.get("trade_id")) for a in get_legal_actions(game, 0)}
    answers = {(a.action_type, a.params.get("trade_id")) for a in get_legal_actions(game, 1)}
    assert (ActionType.ACCEPT_TRADE, 1) in answers
    assert (ActionType.REJECT_TRADE, 1) in answers

    assert not apply_action(game, Action(ActionType.ACCEPT_TRADE, trade_id=1), player_id=0)
    assert apply_action(game, Action(ActionType.ACCEPT_TRADE, trade_id=1), player_id=1)
    assert game.state.properties.get(1).custodian_id == 0
    assert game.get_player(1).rubles == 1600


def test_group_powers_offered_after_the_roll(game_with_stalin):
    game = game_with_stalin
    give_property(game, 1, 1)
    give_property(game, 1, 3)
    assert ActionType.CAMP_LABOUR not in _types(get_legal_actions(game, 1))

    game.state.turn_phase = TurnPhase.POST_TURN
    targets = [a.params["target_id"] for a in get_legal_actions(game, 1) if a.action_type == ActionType.CAMP_LABOUR]
    assert targets == [2, 3]

    assert apply_action(game, Action(ActionType.CAMP_LABOUR, target_id=3), player_id=1)
    assert _types(get_legal_actions(game, 0)) == {ActionType.RESPOND}
    assert apply_action(game, Action(ActionType.RESPOND, approved=True), player_id=0)
    assert game.get_player(3).in_gulag
    assert ActionType.CAMP_LABOUR not in _types(get_legal_actions(game, 1))


def test_confession_through_actions(game_with_stalin):
    game = game_with_stalin
    game.send_to_gulag(1, GulagReason.ENEMY_OF_STATE)
    game.state.set_pending(GulagEscapeChoice(1, required_doubles(0)))
    assert ActionType.GULAG_CONFESS in _types(get_legal_actions(game, 1))

    confess = Action(ActionType.GULAG_CONFESS, confession="I hoarded grain")
    assert apply_action(game, confess, player_id=1)
    assert _types(get_legal_actions(game, 0)) == {ActionType.RESPOND}
    assert apply_action(game, Action(ActionType.RESPOND, approved=True), player_id=0)
    assert not game.get_player(1).in_gulag


def test_property_management_actions(game):
    give_property(game, 0, 1)
    give_property(game, 0, 3)
    give_property(game, 0, 6, mortgaged=True)

    actions = get_legal_actions(game, 0)
    pairs = {(a.action_type, a.params.get("position")) for a in actions}
    assert (ActionType.COLLECTIVIZE, 1) in pairs
    assert (ActionType.MORTGAGE_PROPERTY, 1) in pairs
    assert (ActionType.UNMORTGAGE_PROPERTY, 6) in pairs
    assert (ActionType.COLLECTIVIZE, 6) not in pairs

    assert apply_action(game, Action(ActionType.COLLECTIVIZE, position=1), player_id=0)
    assert game.state.properties.get(1).collectivization_level == 1


def test_piece_power_actions(game):
    give_property(game, 0, 6)
    tank_targets = [
        a.params["target_id"] for a in get_legal_actions(game, 2) if a.action_type == ActionType.TANK_REQUISITION
    ]
    assert tank_targets == [0, 1, 3]
    assert (ActionType.SICKLE_HARVEST, 6) in {
        (a.action_type, a.params.get("position")) for a in get_legal_actions(game, 1)
    }
    assert (ActionType.IRON_CURTAIN_DISAPPEAR, 6) in {
        (a.action_type, a.params.get("position")) for a in get_legal_actions(game, 3)
    }

    assert apply_action(game, Action(ActionType.TANK_REQUISITION, target_id=1), player_id=2)
    assert game.get_player(1).rubles == 1450


def test_debt_and_bankruptcy_actions(game):
    game.economy.create_debt(1, None, 100, "tax")
    assert (ActionType.PAY_DEBT, 1) in {(a.action_type, a.params.get("debtor_id")) for a in get_legal_actions(game, 1)}
    assert apply_action(game, Action(ActionType.PAY_DEBT), player_id=1)
    assert game.get_player(1).debt is None

    set_player(game, 1, rubles=-5)
    assert ActionType.DECLARE_BANKRUPTCY in _types(get_legal_actions(game, 1))
    assert apply_action(game, Action(ActionType.DECLARE_BANKRUPTCY), player_id=1)
    assert game.get_player(1).is_eliminated


def test_denounce_through_actions(game):
    targets = [a.params["accused_id"] for a in get_legal_actions(game, 1) if a.action_type == ActionType.DENOUNCE]
    assert targets == [0, 2, 3]
    assert apply_action(game, Action(ActionType.DENOUNCE, accused_id=3, crime="Sabotage"), player_id=1)
    assert game.state.active_tribunal.crime == "Sabotage"


def test_no_actions_after_game_over(game):
    for pid in (1, 2, 3):
        game.execute_player(pid)
    assert get_legal_actions(game, 0) == []
