"""
Trading between players.

Any active player may offer rubles, properties and Gulag release cards to
another active player in exchange for theirs. The recipient accepts or
rejects; the proposer may cancel. An accepted trade is re-validated against
the current state and then executed all at once.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from redmonopoly.economy import EconomyEngine
from redmonopoly.money import EventType
from redmonopoly.state import GameState, Trade, TradeOffer, TradeStatus

logger = logging.getLogger(__name__)


class TradeService:
    """Keeps the open trade offers and executes accepted ones."""

    def __init__(self, state: GameState, economy: EconomyEngine):
        self.state = state
        self.economy = economy

    # Validation

    def can_trade_property(self, player_id: int, space_id: int) -> bool:
        """Collectivized properties must be sold down before they change hands."""
        prop = self.state.properties.get(space_id)
        if prop is None or prop.custodian_id != player_id:
            return False
        return prop.collectivization_level == 0

    def validate_offer(self, giver_id: int, receiver_id: int, offer: TradeOffer) -> Tuple[bool, str]:
        """
        Check that ``giver_id`` can hand over ``offer`` and that ``receiver_id``
        may hold what they would receive.

        Returns:
            (valid, error_message) tuple
        """
        giver = self.state.players.get(giver_id)
        if giver is None or not giver.is_active:
            return False, "Player is not in the game"

        if offer.rubles < 0 or offer.gulag_cards < 0:
            return False, "Trade amounts cannot be negative"
        if offer.rubles > giver.rubles:
            return False, f"Insufficient rubles: has {giver.rubles}, offering {offer.rubles}"
        if offer.gulag_cards > giver.gulag_cards:
            return False, f"Insufficient Gulag cards: has {giver.gulag_cards}, offering {offer.gulag_cards}"

        for space_id in offer.properties:
            if space_id not in giver.properties:
                return False, f"{giver.name} does not control space {space_id}"
            if not self.can_trade_property(giver_id, space_id):
                name = self.state.board.get_space(space_id).name
                return False, f"Cannot trade {name}: it is collectivized"
            allowed, reason = self.economy.can_hold(receiver_id, space_id)
            if not allowed:
                return False, reason
        return True, ""

    def validate_trade(self, trade: Trade) -> Tuple[bool, str]:
        valid, error = self.validate_offer(trade.proposer_id, trade.recipient_id, trade.proposer_offer)
        if not valid:
            return False, f"Proposer validation failed: {error}"
        valid, error = self.validate_offer(trade.recipient_id, trade.proposer_id, trade.recipient_offer)
        if not valid:
            return False, f"Recipient validation failed: {error}"
        return True, ""

    # Lifecycle

    def propose(
        self,
        proposer_id: int,
        recipient_id: int,
        proposer_offer: TradeOffer,
        recipient_offer: TradeOffer,
    ) -> Optional[Trade]:
        """
        Open a trade offer.

        Returns:
            The new trade, or None if the offer is invalid
        """
        if proposer_id == recipient_id:
            return None
        recipient = self.state.players.get(recipient_id)
        if recipient is None or not recipient.is_active:
            return None
        if proposer_offer.is_empty() and recipient_offer.is_empty():
            return None

        trade = Trade(
            trade_id=self.state.next_trade_id,
            proposer_id=proposer_id,
            recipient_id=recipient_id,
            proposer_offer=proposer_offer,
            recipient_offer=recipient_offer,
            proposed_round=self.state.round_number,
        )
        valid, error = self.validate_trade(trade)
        if not valid:
            self.state.event_log.log(
                EventType.TRADE_FAILED, proposer_id, f"Trade rejected: {error}", reason=error
            )
            return None

        self.state.next_trade_id += 1
        self.state.trades[trade.trade_id] = trade
        proposer = self.state.players.get(proposer_id)
        self.state.event_log.log(
            EventType.TRADE_PROPOSED,
            proposer_id,
            f"{proposer.name} offers {recipient.name} {proposer_offer!r} for {recipient_offer!r}",
            trade_id=trade.trade_id,
            recipient_id=recipient_id,
        )
        return trade

    def get_trade(self, trade_id: int) -> Optional[Trade]:
        return self.state.trades.get(trade_id)

    def trades_for(self, player_id: int) -> List[Trade]:
        """Open trades the player proposed or received."""
        return [t for t in self.state.trades.values() if player_id in (t.proposer_id, t.recipient_id)]

    def accept(self, trade_id: int, player_id: int) -> bool:
        """The recipient accepts; items change hands if the trade is still valid."""
        trade = self.state.trades.get(trade_id)
        if trade is None or trade.recipient_id != player_id:
            return False

        valid, error = self.validate_trade(trade)
        if not valid:
            self.state.event_log.log(
                EventType.TRADE_FAILED, player_id, f"Trade #{trade_id} failed: {error}", trade_id=trade_id
            )
            logger.debug("Trade %s no longer valid: %s", trade_id, error)
            return False

        self._hand_over(trade.proposer_id, trade.recipient_id, trade.proposer_offer)
        self._hand_over(trade.recipient_id, trade.proposer_id, trade.recipient_offer)
        self._close(trade, TradeStatus.ACCEPTED)

        recipient = self.state.players.get(player_id)
        self.state.event_log.log(
            EventType.TRADE_ACCEPTED, player_id, f"{recipient.name} accepted trade #{trade_id}", trade_id=trade_id
        )
        logger.info("Trade %s executed", trade_id)
        return True

    def reject(self, trade_id: int, player_id: int) -> bool:
        trade = self.state.trades.get(trade_id)
        if trade is None or trade.recipient_id != player_id:
            return False
        self._close(trade, TradeStatus.REJECTED)
        recipient = self.state.players.get(player_id)
        self.state.event_log.log(
            EventType.TRADE_REJECTED, player_id, f"{recipient.name} rejected trade #{trade_id}", trade_id=trade_id
        )
        return True

    def cancel(self, trade_id: int, player_id: int) -> bool:
        trade = self.state.trades.get(trade_id)
        if trade is None or trade.proposer_id != player_id:
            return False
        self._close(trade, TradeStatus.CANCELLED)
        proposer = self.state.players.get(player_id)
        self.state.event_log.log(
            EventType.TRADE_CANCELLED, player_id, f"{proposer.name} withdrew trade #{trade_id}", trade_id=trade_id
        )
        return True

    def _close(self, trade: Trade, status: TradeStatus) -> None:
        del self.state.trades[trade.trade_id]
        self.state.trade_history.append(replace(trade, status=status))

    def _hand_over(self, giver_id: int, receiver_id: int, offer: TradeOffer) -> None:
        if offer.rubles > 0:
            self.economy.transfer(giver_id, receiver_id, offer.rubles)
        if offer.gulag_cards > 0:
            giver = self.state.players.get(giver_id)
            receiver = self.state.players.get(receiver_id)
            self.state.players.update(giver_id, gulag_cards=giver.gulag_cards - offer.gulag_cards)
            self.state.players.update(receiver_id, gulag_cards=receiver.gulag_cards + offer.gulag_cards)
        for space_id in sorted(offer.properties):
            self.economy.transfer_property(space_id, receiver_id)
