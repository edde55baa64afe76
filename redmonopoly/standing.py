"""
Rank changes, elimination and game-end detection.
"""

import logging
from dataclasses import replace
from typing import Optional

from redmonopoly.abilities import AbilityPolicy
from redmonopoly.cards import DeckType
from redmonopoly.economy import EconomyEngine
from redmonopoly.money import EventType
from redmonopoly.player import EliminationReason, EliminationRecord
from redmonopoly.state import GameEndCondition, GamePhase, GameState, TradeStatus

logger = logging.getLogger(__name__)

ELIMINATION_MESSAGES = {
    EliminationReason.BANKRUPTCY: "{name} has been eliminated due to bankruptcy. "
    "They have been declared an Enemy of the People.",
    EliminationReason.EXECUTION: "{name} has been executed by order of Stalin.",
    EliminationReason.GULAG_TIMEOUT: "{name} died in the Gulag after {turns} turns.",
    EliminationReason.RANK_COLLAPSE: "{name}'s Red Star has fallen to Proletariat - immediate execution!",
    EliminationReason.UNANIMOUS_VOTE: "{name} was unanimously voted out by all players.",
}


class StandingService:
    """Promotes, demotes and eliminates players, and decides when the game ends."""

    def __init__(self, state: GameState, abilities: AbilityPolicy, economy: EconomyEngine):
        self.state = state
        self.abilities = abilities
        self.economy = economy

    # Rank

    def promote_player(self, player_id: int) -> bool:
        """Raise a player's rank by one step; no-op at the Inner Circle."""
        player = self.state.players.get(player_id)
        if player is None or not player.is_active:
            return False
        new_rank = player.rank.promoted()
        if new_rank == player.rank:
            return False
        self.state.players.update(player_id, rank=new_rank)
        self.state.event_log.log(
            EventType.RANK_CHANGE,
            player_id,
            f"{player.name} promoted to {new_rank.value}",
            old_rank=player.rank.value,
            new_rank=new_rank.value,
        )
        return True

    def demote_player(self, player_id: int) -> bool:
        """
        Lower a player's rank by one step.

        Demotion from the Proletariat is a no-op. A piece that cannot survive
        at the Proletariat is eliminated when it arrives there.
        """
        player = self.state.players.get(player_id)
        if player is None or not player.is_active:
            return False
        new_rank = player.rank.demoted()
        if new_rank == player.rank:
            return False

        self.state.players.update(player_id, rank=new_rank)
        self.state.event_log.log(
            EventType.RANK_CHANGE,
            player_id,
            f"{player.name} demoted to {new_rank.value}",
            old_rank=player.rank.value,
            new_rank=new_rank.value,
        )

        if self.abilities.eliminated_at_rank(self.state.players.get(player_id), new_rank):
            self.eliminate_player(player_id, EliminationReason.RANK_COLLAPSE)
        return True

    # Elimination

    def eliminate_player(self, player_id: int, reason: EliminationReason) -> bool:
        """
        Remove a player from the game.

        Their properties return to the State unimproved and unmortgaged, any
        held release cards go back to the deck, vouchers involving them lapse
        and an active tribunal they are party to is dissolved.
        """
        player = self.state.players.get(player_id)
        if player is None or not player.is_active:
            return False

        record = EliminationRecord(
            reason=reason,
            turn=self.state.turn_number,
            final_wealth=self.economy.calculate_wealth(player_id),
            final_rank=player.rank,
            final_property_count=len(player.properties),
        )

        for space_id in player.properties:
            self.economy.set_custodian(space_id, None)

        for _ in range(player.gulag_cards):
            self.state.decks[DeckType.PARTY_DIRECTIVE].return_held_card()

        self.state.players.update(
            player_id,
            is_eliminated=True,
            elimination=record,
            properties=(),
            in_gulag=False,
            gulag_turns=0,
            gulag_cards=0,
            vouching_for=None,
            debt=None,
        )

        for index, voucher in enumerate(self.state.vouchers):
            if voucher.is_active and player_id in (voucher.prisoner_id, voucher.voucher_id):
                self._release_voucher(index)

        for trade in [t for t in self.state.trades.values() if player_id in (t.proposer_id, t.recipient_id)]:
            del self.state.trades[trade.trade_id]
            self.state.trade_history.append(replace(trade, status=TradeStatus.CANCELLED))

        tribunal = self.state.active_tribunal
        if tribunal is not None and player_id in (tribunal.accuser_id, tribunal.accused_id):
            self.state.active_tribunal = None

        self.state.end_votes.pop(player_id, None)

        self.state.event_log.log(
            EventType.ELIMINATION,
            player_id,
            ELIMINATION_MESSAGES[reason].format(
                name=player.name, turns=self.state.config.gulag_timeout_turns
            ),
            reason=reason.value,
            final_wealth=record.final_wealth,
        )
        logger.info("Player %s eliminated (%s)", player_id, reason.value)

        self.state.end_turn_now(player_id)
        self.check_game_end()
        return True

    def _release_voucher(self, index: int) -> None:
        voucher = self.state.vouchers[index]
        self.state.vouchers[index] = replace(voucher, is_active=False)
        self.state.sync_vouching_for(voucher.voucher_id)

    def declare_bankruptcy(self, player_id: int, voluntary: bool = False) -> bool:
        """Eliminate a player whose rubles are negative, or who gives up."""
        player = self.state.players.get(player_id)
        if player is None or not player.is_active:
            return False
        if player.rubles >= 0 and not voluntary:
            return False
        return self.eliminate_player(player_id, EliminationReason.BANKRUPTCY)

    def execute_player(self, player_id: int) -> bool:
        """Stalin's prerogative: eliminate a player outright."""
        return self.eliminate_player(player_id, EliminationReason.EXECUTION)

    # Game end

    def check_game_end(self) -> Optional[GameEndCondition]:
        """End the game when one or no non-Stalin players remain."""
        if self.state.game_over:
            return self.state.end_condition

        active = self.state.players.active()
        if len(active) == 1:
            self.end_game(GameEndCondition.SURVIVOR, active[0].player_id)
            return GameEndCondition.SURVIVOR
        if not active:
            stalin = self.state.players.stalin()
            self.end_game(GameEndCondition.STALIN_WINS, stalin.player_id if stalin else None)
            return GameEndCondition.STALIN_WINS
        return None

    def end_game(self, condition: GameEndCondition, winner_id: Optional[int]) -> None:
        self.state.game_phase = GamePhase.ENDED
        self.state.end_condition = condition
        self.state.winner_id = winner_id
        self.state.pending_action = None

        winner = self.state.players.get(winner_id)
        self.state.event_log.log(
            EventType.GAME_END,
            winner_id,
            f"Game over ({condition.value})" + (f": {winner.name} prevails" if winner else ""),
            condition=condition.value,
        )
        logger.info("Game ended: %s, winner %s", condition.value, winner_id)

    def cast_end_vote(self, player_id: int, vote: bool) -> Optional[bool]:
        """
        Record a vote to end the game.

        Returns:
            None while votes are outstanding, True if the vote ended the game,
            False if it failed (votes are then cleared)
        """
        player = self.state.players.get(player_id)
        if player is None or not player.is_active or self.state.game_over:
            return None

        self.state.end_votes[player_id] = vote
        self.state.event_log.log(
            EventType.END_VOTE,
            player_id,
            f"{player.name} voted {'YES' if vote else 'NO'} to end the game",
            vote=vote,
        )

        active_ids = [p.player_id for p in self.state.players.active()]
        if not all(pid in self.state.end_votes for pid in active_ids):
            return None

        if all(self.state.end_votes[pid] for pid in active_ids):
            self.end_game(GameEndCondition.UNANIMOUS, None)
            return True

        self.state.end_votes.clear()
        self.state.event_log.log(EventType.END_VOTE, None, "End vote failed - not unanimous")
        return False

