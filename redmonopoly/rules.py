"""
High-level rules API for controlling game flow.
This module provides the public interface for game actions and legal move detection.
"""

from enum import Enum
from typing import Any, List, Optional

from redmonopoly.abilities import (
    IRON_CURTAIN_DISAPPEAR,
    LENIN_SPEECH,
    SICKLE_HARVEST,
    SICKLE_HARVEST_MAX_COST,
    TANK_REQUISITION,
)
from redmonopoly.exceptions import InvalidActionError
from redmonopoly.game import Game
from redmonopoly.pending import (
    Acknowledge,
    BreadlineContribution,
    BreadlineDecision,
    BribeVerdict,
    CampLabourApproval,
    ConfessionReview,
    DrawCard,
    EscapeDecision,
    EscapeMethod,
    GulagEscapeChoice,
    InformVerdict,
    PendingAction,
    PilferDecision,
    PravdaRevote,
    PropertyPurchase,
    PurchaseDecision,
    QuotaPayment,
    RailwayFee,
    RuleRewriteApproval,
    StoyPilfer,
    TaxDecision,
    TaxPayment,
    UtilityFee,
    VerdictDecision,
    VoucherRequest,
)
from redmonopoly.state import TradeOffer, TurnPhase

# Pending actions answered by Stalin
STALIN_VERDICTS = (InformVerdict, BribeVerdict, ConfessionReview, CampLabourApproval, RuleRewriteApproval)


class ActionType(Enum):
    """Types of actions a player can take."""

    ROLL_DICE = "roll_dice"
    BUY_PROPERTY = "buy_property"
    DECLINE_PURCHASE = "decline_purchase"
    ATTEMPT_PILFER = "attempt_pilfer"
    DECLINE_PILFER = "decline_pilfer"
    PAY_FEE = "pay_fee"
    PAY_TAX = "pay_tax"
    DRAW_CARD = "draw_card"
    COLLECT_BREADLINE = "collect_breadline"
    GULAG_ROLL = "gulag_roll"
    GULAG_PAY = "gulag_pay"
    GULAG_VOUCH = "gulag_vouch"
    GULAG_INFORM = "gulag_inform"
    GULAG_BRIBE = "gulag_bribe"
    GULAG_CARD = "gulag_card"
    GULAG_CONFESS = "gulag_confess"
    RESPOND = "respond"
    ACKNOWLEDGE = "acknowledge"
    COLLECTIVIZE = "collectivize"
    SELL_COLLECTIVIZATION = "sell_collectivization"
    MORTGAGE_PROPERTY = "mortgage_property"
    UNMORTGAGE_PROPERTY = "unmortgage_property"
    PAY_DEBT = "pay_debt"
    DENOUNCE = "denounce"
    TANK_REQUISITION = "tank_requisition"
    SICKLE_HARVEST = "sickle_harvest"
    IRON_CURTAIN_DISAPPEAR = "iron_curtain_disappear"
    LENIN_SPEECH = "lenin_speech"
    CAMP_LABOUR = "camp_labour"
    KGB_PREVIEW = "kgb_preview"
    MINISTRY_REWRITE = "ministry_rewrite"
    PRAVDA_REVOTE = "pravda_revote"
    PROPOSE_TRADE = "propose_trade"
    ACCEPT_TRADE = "accept_trade"
    REJECT_TRADE = "reject_trade"
    CANCEL_TRADE = "cancel_trade"
    PURGE_VOTE = "purge_vote"
    CONTRIBUTE_TO_PLAN = "contribute_to_plan"
    INITIATE_GREAT_PURGE = "initiate_great_purge"
    RESOLVE_GREAT_PURGE = "resolve_great_purge"
    INITIATE_FIVE_YEAR_PLAN = "initiate_five_year_plan"
    RESOLVE_FIVE_YEAR_PLAN = "resolve_five_year_plan"
    GRANT_HERO = "grant_hero"
    DECLARE_BANKRUPTCY = "declare_bankruptcy"
    END_TURN = "end_turn"


class Action:
    """Represents a game action that can be taken."""

    def __init__(self, action_type: ActionType, **params: Any):
        self.action_type = action_type
        self.params = params

    def __repr__(self) -> str:
        return f"Action({self.action_type.value}, {self.params})"


def decider_for(game: Game, pending: PendingAction) -> Optional[int]:
    """The player who has to answer a pending action."""
    if isinstance(pending, VoucherRequest):
        return pending.voucher_id
    if isinstance(pending, STALIN_VERDICTS):
        stalin = game.state.players.stalin()
        return stalin.player_id if stalin else None
    return pending.player_id


def get_legal_actions(game: Game, player_id: int) -> List[Action]:
    """
    Get all legal actions available to a player.

    This is the main interface for controllers to determine valid moves.

    Args:
        game: Current game
        player_id: Player to get actions for

    Returns:
        List of legal Action objects
    """
    if game.game_over:
        return []

    player = game.get_player(player_id)
    if player is None:
        return []

    pending = game.pending_action
    if pending is not None:
        if decider_for(game, pending) != player_id:
            return []
        return _get_pending_actions(game, pending)

    if player.is_stalin:
        return _get_decree_actions(game)
    if not player.is_active:
        return []

    actions: List[Action] = []
    actions.extend(_get_anytime_actions(game, player_id))
    actions.extend(_get_trade_actions(game, player_id))

    if game.state.current_player_id != player_id:
        return actions

    if game.state.turn_phase == TurnPhase.PRE_ROLL and player.is_free:
        actions.append(Action(ActionType.ROLL_DICE))
    if game.state.turn_phase == TurnPhase.POST_TURN:
        actions.extend(_get_group_power_actions(game, player_id))
        actions.append(Action(ActionType.END_TURN))
    return actions


def _get_pending_actions(game: Game, pending: PendingAction) -> List[Action]:
    """Actions that answer the outstanding pending action."""
    actions: List[Action] = []
    player = game.get_player(pending.player_id)

    if isinstance(pending, StoyPilfer):
        actions.append(Action(ActionType.ATTEMPT_PILFER))
        actions.append(Action(ActionType.DECLINE_PILFER))
    elif isinstance(pending, PropertyPurchase):
        allowed, _ = game.economy.can_purchase(pending.player_id, pending.space_id)
        if allowed:
            actions.append(Action(ActionType.BUY_PROPERTY, position=pending.space_id))
        actions.append(Action(ActionType.DECLINE_PURCHASE, position=pending.space_id))
    elif isinstance(pending, (QuotaPayment, RailwayFee, UtilityFee)):
        actions.append(Action(ActionType.PAY_FEE, amount=pending.amount))
    elif isinstance(pending, TaxPayment):
        actions.append(Action(ActionType.PAY_TAX, pay_alternative=False, amount=pending.amount))
        if pending.alternative_amount is not None:
            actions.append(Action(ActionType.PAY_TAX, pay_alternative=True, amount=pending.alternative_amount))
    elif isinstance(pending, DrawCard):
        actions.append(Action(ActionType.DRAW_CARD, deck=pending.deck_type.value))
    elif isinstance(pending, BreadlineContribution):
        actions.append(Action(ActionType.COLLECT_BREADLINE, contributors=list(pending.contributor_ids)))
    elif isinstance(pending, GulagEscapeChoice):
        actions.append(Action(ActionType.GULAG_ROLL))
        if player.rubles >= game.config.gulag_escape_cost:
            actions.append(Action(ActionType.GULAG_PAY))
        for voucher_id in game.gulag.eligible_vouchers(player.player_id):
            actions.append(Action(ActionType.GULAG_VOUCH, voucher_id=voucher_id))
        if game.state.players.stalin() is not None:
            for other in game.state.players.active():
                if other.is_free and other.player_id != player.player_id:
                    actions.append(Action(ActionType.GULAG_INFORM, accused_id=other.player_id))
            if player.rubles >= game.config.bribe_minimum:
                actions.append(Action(ActionType.GULAG_BRIBE, minimum=game.config.bribe_minimum))
            actions.append(Action(ActionType.GULAG_CONFESS))
        if player.gulag_cards > 0:
            actions.append(Action(ActionType.GULAG_CARD))
    elif isinstance(pending, (VoucherRequest,) + STALIN_VERDICTS):
        actions.append(Action(ActionType.RESPOND, approved=True))
        actions.append(Action(ActionType.RESPOND, approved=False))
    elif isinstance(pending, PravdaRevote):
        actions.append(Action(ActionType.ACKNOWLEDGE))
    return actions


def _get_anytime_actions(game: Game, player_id: int) -> List[Action]:
    """Property management, debts, denouncements and piece abilities."""
    actions: List[Action] = []
    player = game.get_player(player_id)
    economy = game.economy

    for position in player.properties:
        prop = game.state.properties.get(position)
        if economy.can_collectivize(player_id, position):
            actions.append(Action(ActionType.COLLECTIVIZE, position=position))
        if prop.collectivization_level > 0:
            actions.append(Action(ActionType.SELL_COLLECTIVIZATION, position=position))
        if prop.collectivization_level == 0 and not prop.mortgaged:
            actions.append(Action(ActionType.MORTGAGE_PROPERTY, position=position))
        if prop.mortgaged and player.rubles >= economy.unmortgage_cost(position):
            actions.append(Action(ActionType.UNMORTGAGE_PROPERTY, position=position))

    for debtor in game.state.players.active():
        if debtor.debt is None:
            continue
        if debtor.player_id != player_id and not game.abilities.can_pay_others_debts(player):
            continue
        if player.rubles >= debtor.debt.amount:
            actions.append(Action(ActionType.PAY_DEBT, debtor_id=debtor.player_id))

    for accused_id in game.denounce_targets(player_id):
        actions.append(Action(ActionType.DENOUNCE, accused_id=accused_id))

    abilities = game.abilities
    others = [p for p in game.state.players.active() if p.player_id != player_id]
    if abilities.is_available(player, TANK_REQUISITION):
        for other in others:
            actions.append(Action(ActionType.TANK_REQUISITION, target_id=other.player_id))
    if abilities.is_available(player, SICKLE_HARVEST):
        for prop in game.state.properties.all():
            if prop.custodian_id not in (None, player_id) and (
                game.state.board.get_property_space(prop.space_id) is not None
                and game.state.board.base_cost(prop.space_id) < SICKLE_HARVEST_MAX_COST
            ):
                actions.append(Action(ActionType.SICKLE_HARVEST, position=prop.space_id))
    if abilities.is_available(player, IRON_CURTAIN_DISAPPEAR):
        for prop in game.state.properties.all():
            if prop.custodian_id is not None:
                actions.append(Action(ActionType.IRON_CURTAIN_DISAPPEAR, position=prop.space_id))
    if abilities.is_available(player, LENIN_SPEECH) and others:
        actions.append(Action(ActionType.LENIN_SPEECH, applauder_ids=[p.player_id for p in others]))

    if game.group_powers.can_preview_test(player_id):
        actions.append(Action(ActionType.KGB_PREVIEW))

    purge = game.state.great_purge
    if purge is not None:
        for other in others:
            actions.append(Action(ActionType.PURGE_VOTE, target_id=other.player_id))
    plan = game.state.five_year_plan
    if plan is not None and player.rubles > 0:
        actions.append(Action(ActionType.CONTRIBUTE_TO_PLAN, max_amount=player.rubles))

    if player.rubles < 0:
        actions.append(Action(ActionType.DECLARE_BANKRUPTCY))
    return actions


def _get_trade_actions(game: Game, player_id: int) -> List[Action]:
    """Answer open trades, or offer a new one to any other comrade."""
    actions: List[Action] = []

    for trade in game.trading.trades_for(player_id):
        if trade.recipient_id == player_id:
            actions.append(Action(ActionType.ACCEPT_TRADE, trade_id=trade.trade_id))
            actions.append(Action(ActionType.REJECT_TRADE, trade_id=trade.trade_id))
        else:
            actions.append(Action(ActionType.CANCEL_TRADE, trade_id=trade.trade_id))

    for other in game.state.players.active():
        if other.player_id != player_id:
            actions.append(Action(ActionType.PROPOSE_TRADE, recipient_id=other.player_id))
    return actions


def _get_group_power_actions(game: Game, player_id: int) -> List[Action]:
    """Custodianship powers usable once the roll is settled."""
    actions: List[Action] = []
    powers = game.group_powers

    if powers.can_use_camp_labour(player_id):
        for other in game.state.players.active():
            if other.is_free and other.player_id != player_id:
                actions.append(Action(ActionType.CAMP_LABOUR, target_id=other.player_id))
    if powers.can_rewrite_rule(player_id):
        actions.append(Action(ActionType.MINISTRY_REWRITE))
    if powers.can_force_revote(player_id):
        actions.append(Action(ActionType.PRAVDA_REVOTE))
    return actions


def _get_decree_actions(game: Game) -> List[Action]:
    """Stalin takes no turns and acts through decrees."""
    actions: List[Action] = []
    decrees = game.decrees

    if decrees.can_initiate_purge():
        actions.append(Action(ActionType.INITIATE_GREAT_PURGE))
    if game.state.great_purge is not None:
        actions.append(Action(ActionType.RESOLVE_GREAT_PURGE))
    if game.state.five_year_plan is None:
        actions.append(Action(ActionType.INITIATE_FIVE_YEAR_PLAN))
    else:
        actions.append(Action(ActionType.RESOLVE_FIVE_YEAR_PLAN))
    for comrade in game.state.players.active():
        if not game.is_hero(comrade.player_id):
            actions.append(Action(ActionType.GRANT_HERO, player_id=comrade.player_id))
    return actions


def apply_action(game: Game, action: Action, player_id: Optional[int] = None) -> bool:
    """
    Apply an action to the game.

    This is the main interface for executing moves.

    Args:
        game: Current game
        action: Action to apply
        player_id: Player executing the action (optional, defaults to current player)

    Returns:
        True if action was successful, False otherwise

    Raises:
        InvalidActionError: If the action type is not recognised
    """
    if not isinstance(action.action_type, ActionType):
        raise InvalidActionError(f"Unknown action type: {action.action_type!r}")
    if player_id is None:
        player_id = game.state.current_player_id

    action_type = action.action_type
    params = action.params

    if action_type == ActionType.ROLL_DICE:
        if game.state.current_player_id != player_id:
            return False
        return game.roll_dice(params.get("dice")) is not None

    elif action_type == ActionType.END_TURN:
        if game.state.current_player_id != player_id:
            return False
        return game.end_turn()

    elif action_type in _DECISIONS:
        pending = game.pending_action
        if pending is None or decider_for(game, pending) != player_id:
            return False
        return game.resolve_pending_action(_DECISIONS[action_type](params))

    elif action_type == ActionType.COLLECTIVIZE:
        return game.collectivize(player_id, params.get("position"))

    elif action_type == ActionType.SELL_COLLECTIVIZATION:
        return game.sell_collectivization(player_id, params.get("position"))

    elif action_type == ActionType.MORTGAGE_PROPERTY:
        return game.mortgage_property(player_id, params.get("position"))

    elif action_type == ActionType.UNMORTGAGE_PROPERTY:
        return game.unmortgage_property(player_id, params.get("position"))

    elif action_type == ActionType.PAY_DEBT:
        return game.pay_debt(params.get("debtor_id", player_id), player_id)

    elif action_type == ActionType.DENOUNCE:
        return game.denounce(player_id, params.get("accused_id"), params.get("crime", "")) is not None

    elif action_type == ActionType.TANK_REQUISITION:
        return game.tank_requisition(player_id, params.get("target_id")) > 0

    elif action_type == ActionType.SICKLE_HARVEST:
        return game.sickle_harvest(player_id, params.get("position"))

    elif action_type == ActionType.IRON_CURTAIN_DISAPPEAR:
        return game.iron_curtain_disappear(player_id, params.get("position"))

    elif action_type == ActionType.LENIN_SPEECH:
        return game.lenin_speech(player_id, params.get("applauder_ids", [])) > 0

    elif action_type == ActionType.CAMP_LABOUR:
        return game.camp_labour(player_id, params.get("target_id"))

    elif action_type == ActionType.KGB_PREVIEW:
        return game.kgb_preview(player_id) is not None

    elif action_type == ActionType.MINISTRY_REWRITE:
        return game.ministry_rewrite(player_id, params.get("new_rule", ""))

    elif action_type == ActionType.PRAVDA_REVOTE:
        return game.pravda_revote(player_id, params.get("decision", ""))

    elif action_type == ActionType.PROPOSE_TRADE:
        trade = game.propose_trade(
            player_id,
            params.get("recipient_id"),
            params.get("offer", TradeOffer()),
            params.get("request", TradeOffer()),
        )
        return trade is not None

    elif action_type == ActionType.ACCEPT_TRADE:
        return game.accept_trade(params.get("trade_id"), player_id)

    elif action_type == ActionType.REJECT_TRADE:
        return game.reject_trade(params.get("trade_id"), player_id)

    elif action_type == ActionType.CANCEL_TRADE:
        return game.cancel_trade(params.get("trade_id"), player_id)

    elif action_type == ActionType.PURGE_VOTE:
        return game.vote_in_purge(player_id, params.get("target_id"))

    elif action_type == ActionType.CONTRIBUTE_TO_PLAN:
        return game.contribute_to_plan(player_id, params.get("amount", 0))

    elif action_type == ActionType.DECLARE_BANKRUPTCY:
        return game.declare_bankruptcy(player_id, params.get("voluntary", False))

    elif action_type in _DECREES:
        player = game.get_player(player_id)
        if player is None or not player.is_stalin:
            return False
        return _DECREES[action_type](game, params)

    raise InvalidActionError(f"Unhandled action type: {action_type.value}")


_DECISIONS = {
    ActionType.BUY_PROPERTY: lambda params: PurchaseDecision(buy=True),
    ActionType.DECLINE_PURCHASE: lambda params: PurchaseDecision(buy=False),
    ActionType.ATTEMPT_PILFER: lambda params: PilferDecision(attempt=True, roll=params.get("roll")),
    ActionType.DECLINE_PILFER: lambda params: PilferDecision(attempt=False),
    ActionType.PAY_FEE: lambda params: Acknowledge(),
    ActionType.PAY_TAX: lambda params: TaxDecision(pay_alternative=params.get("pay_alternative", False)),
    ActionType.DRAW_CARD: lambda params: Acknowledge(),
    ActionType.COLLECT_BREADLINE: lambda params: BreadlineDecision(
        contributors=frozenset(params.get("contributors", ()))
    ),
    ActionType.GULAG_ROLL: lambda params: EscapeDecision(EscapeMethod.ROLL, dice=params.get("dice")),
    ActionType.GULAG_PAY: lambda params: EscapeDecision(EscapeMethod.PAY),
    ActionType.GULAG_VOUCH: lambda params: EscapeDecision(EscapeMethod.VOUCH, voucher_id=params.get("voucher_id")),
    ActionType.GULAG_INFORM: lambda params: EscapeDecision(EscapeMethod.INFORM, accused_id=params.get("accused_id")),
    ActionType.GULAG_BRIBE: lambda params: EscapeDecision(EscapeMethod.BRIBE, amount=params.get("amount", 0)),
    ActionType.GULAG_CARD: lambda params: EscapeDecision(EscapeMethod.CARD),
    ActionType.GULAG_CONFESS: lambda params: EscapeDecision(
        EscapeMethod.CONFESSION, confession=params.get("confession", "")
    ),
    ActionType.RESPOND: lambda params: VerdictDecision(approved=params.get("approved", False)),
    ActionType.ACKNOWLEDGE: lambda params: Acknowledge(),
}

_DECREES = {
    ActionType.INITIATE_GREAT_PURGE: lambda game, params: game.initiate_great_purge(),
    ActionType.RESOLVE_GREAT_PURGE: lambda game, params: game.state.great_purge is not None
    and game.resolve_great_purge() is not None,
    ActionType.INITIATE_FIVE_YEAR_PLAN: lambda game, params: game.initiate_five_year_plan(params.get("target", 0))
    is not None,
    ActionType.RESOLVE_FIVE_YEAR_PLAN: lambda game, params: game.resolve_five_year_plan() is not None,
    ActionType.GRANT_HERO: lambda game, params: game.grant_hero(params.get("player_id")) is not None,
}
