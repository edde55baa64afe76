"""
Landing resolution.

``resolve_landing`` decides what the space a player stopped on demands and,
when the player (or someone else) has to decide something, suspends the turn
on a typed pending action. The ``settle_*`` handlers carry out the decision
once it arrives.
"""

import logging
from typing import Optional

from redmonopoly.abilities import AbilityPolicy
from redmonopoly.cards import Card, DeckType
from redmonopoly.economy import EconomyEngine
from redmonopoly.gulag import GulagSubsystem
from redmonopoly.money import EventType
from redmonopoly.pending import (
    BreadlineContribution,
    BreadlineDecision,
    DrawCard,
    PendingAction,
    PilferDecision,
    PropertyPurchase,
    PurchaseDecision,
    QuotaPayment,
    RailwayFee,
    StoyPilfer,
    TaxDecision,
    TaxPayment,
    UtilityFee,
)
from redmonopoly.player import GulagReason
from redmonopoly.spaces import PropertySpace, RailwaySpace, SpaceType, TaxSpace, UtilitySpace
from redmonopoly.standing import StandingService
from redmonopoly.state import GameState, TurnPhase

logger = logging.getLogger(__name__)

CARD_SPACE_DECKS = {
    SpaceType.PARTY_DIRECTIVE: DeckType.PARTY_DIRECTIVE,
    SpaceType.COMMUNIST_TEST: DeckType.COMMUNIST_TEST,
}


class SpaceResolver:
    """Applies the effect of the space a player has landed on."""

    def __init__(
        self,
        state: GameState,
        abilities: AbilityPolicy,
        economy: EconomyEngine,
        standing: StandingService,
        gulag: GulagSubsystem,
    ):
        self.state = state
        self.abilities = abilities
        self.economy = economy
        self.standing = standing
        self.gulag = gulag

    def resolve_landing(self, player_id: int, dice_total: int = 0) -> Optional[PendingAction]:
        """
        Resolve the player's current space.

        Returns:
            The pending action the turn is now waiting on, or None if the
            landing was settled immediately
        """
        player = self.state.players.get(player_id)
        if player is None or not player.is_active:
            return None

        self.state.turn_phase = TurnPhase.RESOLVING
        space = self.state.board.get_space(player.position)
        self.state.event_log.log(
            EventType.LAND, player_id, f"{player.name} landed on {space.name}", position=space.position
        )

        pending: Optional[PendingAction] = None
        if space.space_type == SpaceType.STOY:
            pending = StoyPilfer(player_id)
        elif space.space_type == SpaceType.GULAG:
            logger.debug("Player %s is just visiting the Gulag", player_id)
        elif space.space_type == SpaceType.BREADLINE:
            contributors = tuple(
                p.player_id for p in self.state.players.active() if p.is_free and p.player_id != player_id
            )
            if contributors:
                pending = BreadlineContribution(player_id, contributors)
        elif space.space_type == SpaceType.ENEMY_OF_STATE:
            self.gulag.send_to_gulag(player_id, GulagReason.ENEMY_OF_STATE)
            return self.state.pending_action
        elif isinstance(space, (PropertySpace, RailwaySpace, UtilitySpace)):
            pending = self._resolve_ownable(player_id, space, dice_total)
        elif isinstance(space, TaxSpace):
            pending = self._resolve_tax(player_id, space)
        elif space.space_type in CARD_SPACE_DECKS:
            pending = DrawCard(player_id, CARD_SPACE_DECKS[space.space_type])

        self.state.set_pending(pending)
        return pending

    def _resolve_ownable(self, player_id: int, space, dice_total: int) -> Optional[PendingAction]:
        prop = self.state.properties.get(space.position)
        if prop.custodian_id is None:
            return PropertyPurchase(player_id, space.position, self.economy.purchase_price(player_id, space.position))
        if prop.custodian_id == player_id:
            return None
        if prop.mortgaged:
            self.state.event_log.log(
                EventType.LAND,
                player_id,
                f"{space.name} is mortgaged - no quota charged",
                position=space.position,
            )
            return None

        amount = self.economy.calculate_fee(space.position, player_id, dice_total)
        if isinstance(space, RailwaySpace):
            return RailwayFee(player_id, space.position, prop.custodian_id, amount)
        if isinstance(space, UtilitySpace):
            return UtilityFee(player_id, space.position, prop.custodian_id, amount, dice_total)
        return QuotaPayment(player_id, space.position, prop.custodian_id, amount)

    def _resolve_tax(self, player_id: int, space: TaxSpace) -> TaxPayment:
        amount = space.amount
        alternative = None
        demotes = False
        if space.has_choice:
            alternative = self.economy.revolutionary_contribution(player_id)
        if space.penalizes_wealthiest and self.economy.wealthiest_player_id() == player_id:
            amount *= 2
            demotes = True
        return TaxPayment(player_id, space.position, amount, alternative, demotes)

    # Settlement

    def settle_pilfer(self, pending: StoyPilfer, decision: PilferDecision) -> bool:
        """Try to pilfer from the treasury: one die at or above the threshold succeeds."""
        player_id = pending.player_id
        player = self.state.players.get(player_id)
        if not decision.attempt:
            self.state.set_pending(None)
            return False

        roll = decision.roll if decision.roll is not None else self.state.rng.randint(1, 6)
        if roll >= self.state.config.pilfer_dice_threshold:
            amount = self.state.config.pilfer_amount
            self.economy.transfer(None, player_id, amount)
            self.state.event_log.log(
                EventType.PILFER,
                player_id,
                f"{player.name} successfully pilfered {amount} rubles from the State Treasury!",
                roll=roll,
                amount=amount,
            )
            self.state.set_pending(None)
            return True

        self.state.event_log.log(
            EventType.PILFER, player_id, f"{player.name} was caught pilfering", roll=roll, amount=0
        )
        self.gulag.send_to_gulag(player_id, GulagReason.PILFERING_CAUGHT)
        self.state.set_pending(None)
        return False

    def settle_purchase(self, pending: PropertyPurchase, decision: PurchaseDecision) -> bool:
        bought = False
        if decision.buy:
            bought = self.economy.purchase_property(pending.player_id, pending.space_id)
        self.state.set_pending(None)
        return bought

    def settle_fee(self, pending: PendingAction) -> bool:
        """Pay a quota, railway or utility fee; a shortfall becomes a debt."""
        dice_total = getattr(pending, "dice_total", 0)
        paid = self.economy.pay_fee(pending.player_id, pending.space_id, dice_total)
        self.state.set_pending(None)
        return paid

    def settle_tax(self, pending: TaxPayment, decision: TaxDecision) -> bool:
        """Pay the flat amount or, where offered, the wealth share."""
        amount = pending.amount
        if decision.pay_alternative and pending.alternative_amount is not None:
            amount = pending.alternative_amount

        space = self.state.board.get_space(pending.space_id)
        paid = True
        if amount > 0:
            paid = self.economy.pay_to_state(pending.player_id, amount, space.name)
        if pending.demotes:
            self.standing.demote_player(pending.player_id)
        self.state.set_pending(None)
        return paid

    def settle_card(self, pending: DrawCard) -> Optional[Card]:
        """
        Draw from the deck. Keepable cards go into the player's hand, everything
        else is discarded; the card's effect is applied by the caller.
        """
        player = self.state.players.get(pending.player_id)
        deck = self.state.decks[pending.deck_type]
        card = deck.draw()
        if card is None:
            self.state.set_pending(None)
            return None

        if card.keepable:
            deck.hold_card(card)
            self.state.players.update(pending.player_id, gulag_cards=player.gulag_cards + 1)
        else:
            deck.discard(card)

        self.state.event_log.log(
            EventType.CARD_DRAW,
            pending.player_id,
            f"{player.name} drew {card.title or card.card_id}",
            card_id=card.card_id,
            deck=pending.deck_type.value,
        )
        self.state.set_pending(None)
        return card

    def settle_breadline(self, pending: BreadlineContribution, decision: BreadlineDecision) -> int:
        """
        Collect contributions for the lander. Players who refuse, or cannot
        afford to give, fall under suspicion.

        Returns:
            Total rubles received by the lander
        """
        lander = self.state.players.get(pending.player_id)
        amount = self.state.config.breadline_contribution
        received = 0
        for contributor_id in pending.contributor_ids:
            contributor = self.state.players.get(contributor_id)
            if contributor is None or not contributor.is_free:
                continue
            if contributor_id in decision.contributors and contributor.rubles >= amount:
                self.economy.transfer(contributor_id, pending.player_id, amount)
                received += amount
                self.state.event_log.log(
                    EventType.BREADLINE,
                    contributor_id,
                    f"{contributor.name} contributed {amount} rubles to {lander.name} at the Breadline",
                    amount=amount,
                )
            else:
                self.state.players.update(contributor_id, under_suspicion=True)
                self.state.event_log.log(
                    EventType.BREADLINE,
                    contributor_id,
                    f"{contributor.name} refused to contribute and is now under suspicion",
                    amount=0,
                )
        self.state.set_pending(None)
        return received
