"""
Property-group powers.

Controlling certain spaces grants a power on top of the quota income:

- Siberian Camps (both camps): send a player to forced labour, once per game,
  if Stalin approves.
- KGB Headquarters: preview the next Communist Test question, once per round.
- Government Ministries (all three): rewrite a rule, once per game, if
  Stalin approves.
- State Media (all three): force a re-vote, once per game.

Powers that open a pending action are used from the custodian's own turn
once the roll has been settled.
"""

import logging
from typing import Optional

from redmonopoly.abilities import CAMP_LABOUR, KGB_PREVIEW, MINISTRY_REWRITE, PRAVDA_REVOTE, AbilityPolicy
from redmonopoly.cards import Card, DeckType
from redmonopoly.economy import EconomyEngine
from redmonopoly.gulag import GulagSubsystem
from redmonopoly.money import EventType
from redmonopoly.pending import CampLabourApproval, PravdaRevote, RuleRewriteApproval
from redmonopoly.player import GulagReason, PlayerState
from redmonopoly.spaces import PropertyGroup
from redmonopoly.state import GameState, GreatPurge, TurnPhase

logger = logging.getLogger(__name__)

KGB_HEADQUARTERS = 23


class GroupPowers:
    """Custodianship powers of the Siberian Camps, KGB, Ministries and State Media."""

    def __init__(
        self,
        state: GameState,
        abilities: AbilityPolicy,
        economy: EconomyEngine,
        gulag: GulagSubsystem,
    ):
        self.state = state
        self.abilities = abilities
        self.economy = economy
        self.gulag = gulag

    def _custodian(self, player_id: int, key: str, group: Optional[PropertyGroup]) -> Optional[PlayerState]:
        player = self.state.players.get(player_id)
        if player is None or not player.is_active or key in player.used_abilities:
            return None
        if group is not None and not self.economy.owns_complete_group(player_id, group):
            logger.debug("Player %s does not control the %s group", player_id, group.value)
            return None
        return player

    def _between_rolls(self, player_id: int) -> bool:
        """The custodian's own turn, roll settled, nothing pending."""
        return (
            not self.state.game_over
            and self.state.current_player_id == player_id
            and self.state.pending_action is None
            and self.state.turn_phase == TurnPhase.POST_TURN
        )

    # Siberian Camps

    def can_use_camp_labour(self, custodian_id: int) -> bool:
        return (
            self._custodian(custodian_id, CAMP_LABOUR, PropertyGroup.SIBERIAN) is not None
            and self.state.players.stalin() is not None
            and self._between_rolls(custodian_id)
        )

    def camp_labour(self, custodian_id: int, target_id: int) -> bool:
        """Ask Stalin to send ``target_id`` to the camps for forced labour."""
        if not self.can_use_camp_labour(custodian_id):
            return False
        target = self.state.players.get(target_id)
        if target is None or target_id == custodian_id or not target.is_free:
            return False

        custodian = self.state.players.get(custodian_id)
        self.state.event_log.log(
            EventType.ABILITY_USED,
            custodian_id,
            f"{custodian.name} requests forced labour for {target.name}. Stalin will decide.",
            ability=CAMP_LABOUR,
            target_id=target_id,
        )
        self.state.set_pending(CampLabourApproval(custodian_id, target_id))
        return True

    def resolve_camp_labour(self, pending: CampLabourApproval, approved: bool) -> bool:
        custodian = self.state.players.get(pending.player_id)
        target = self.state.players.get(pending.target_id)
        self.state.set_pending(None)
        if custodian is None or target is None:
            return False

        if not approved:
            self.state.event_log.log(
                EventType.ABILITY_USED,
                custodian.player_id,
                f"Stalin denied {custodian.name}'s request to send {target.name} to the Gulag",
                ability=CAMP_LABOUR,
                approved=False,
            )
            return False

        self.abilities.mark_used(custodian.player_id, CAMP_LABOUR)
        self.state.event_log.log(
            EventType.ABILITY_USED,
            custodian.player_id,
            f"{custodian.name} sent {target.name} to the Gulag for forced labour! (Siberian Camps)",
            ability=CAMP_LABOUR,
            approved=True,
        )
        self.gulag.send_to_gulag(target.player_id, GulagReason.CAMP_LABOUR)
        return True

    # KGB Headquarters

    def can_preview_test(self, player_id: int) -> bool:
        player = self._custodian(player_id, KGB_PREVIEW, None)
        if player is None:
            return False
        prop = self.state.properties.get(KGB_HEADQUARTERS)
        return prop is not None and prop.custodian_id == player_id

    def kgb_preview(self, player_id: int) -> Optional[Card]:
        """
        Look at the next Communist Test question without drawing it.

        Returns:
            The card that will be drawn next, or None if the power is unavailable
        """
        if not self.can_preview_test(player_id):
            return None
        card = self.state.decks[DeckType.COMMUNIST_TEST].peek()
        if card is None:
            return None

        self.abilities.mark_used(player_id, KGB_PREVIEW)
        player = self.state.players.get(player_id)
        self.state.event_log.log(
            EventType.ABILITY_USED,
            player_id,
            f"{player.name} used KGB Headquarters to preview a Communist Test question",
            ability=KGB_PREVIEW,
        )
        return card

    # Government Ministries

    def can_rewrite_rule(self, player_id: int) -> bool:
        return (
            self._custodian(player_id, MINISTRY_REWRITE, PropertyGroup.MINISTRY) is not None
            and self.state.players.stalin() is not None
            and self._between_rolls(player_id)
        )

    def ministry_rewrite(self, player_id: int, new_rule: str) -> bool:
        """Propose a rule rewrite for Stalin's approval."""
        if not new_rule.strip() or not self.can_rewrite_rule(player_id):
            return False
        self.state.set_pending(RuleRewriteApproval(player_id, new_rule.strip()))
        return True

    def resolve_rule_rewrite(self, pending: RuleRewriteApproval, approved: bool) -> bool:
        player = self.state.players.get(pending.player_id)
        self.state.set_pending(None)
        if player is None:
            return False

        if not approved:
            self.state.event_log.log(
                EventType.ABILITY_USED,
                player.player_id,
                f"Stalin vetoed {player.name}'s rule rewrite attempt",
                ability=MINISTRY_REWRITE,
                approved=False,
            )
            return False

        self.abilities.mark_used(player.player_id, MINISTRY_REWRITE)
        self.state.event_log.log(
            EventType.ABILITY_USED,
            player.player_id,
            f'{player.name} used Ministry of Truth to rewrite a rule: "{pending.new_rule}"',
            ability=MINISTRY_REWRITE,
            rule=pending.new_rule,
            approved=True,
        )
        return True

    # State Media

    def can_force_revote(self, player_id: int) -> bool:
        return (
            self._custodian(player_id, PRAVDA_REVOTE, PropertyGroup.MEDIA) is not None
            and self._between_rolls(player_id)
        )

    def pravda_revote(self, player_id: int, decision: str) -> bool:
        """
        Force a public re-vote: recorded end-game votes and any Great Purge
        votes are struck and must be cast again.
        """
        if not decision.strip() or not self.can_force_revote(player_id):
            return False

        self.abilities.mark_used(player_id, PRAVDA_REVOTE)
        self.state.end_votes.clear()
        if self.state.great_purge is not None:
            self.state.great_purge = GreatPurge()

        player = self.state.players.get(player_id)
        self.state.event_log.log(
            EventType.ABILITY_USED,
            player_id,
            f'{player.name} used Pravda Press to force a re-vote on: "{decision.strip()}" - The people demand it!',
            ability=PRAVDA_REVOTE,
            decision=decision.strip(),
        )
        self.state.set_pending(PravdaRevote(player_id, decision.strip()))
        return True
