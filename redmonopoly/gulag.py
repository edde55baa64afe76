"""
The Gulag: confinement, escape methods and voucher liability.

A confined player sits on position 10 and, on each of their turns, counts one
more Gulag turn and chooses an escape method. Escape by dice gets easier the
longer the player has been held; at the timeout the player perishes.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from redmonopoly.abilities import TANK_GULAG_IMMUNITY, AbilityPolicy
from redmonopoly.board import GULAG_POSITION
from redmonopoly.cards import DeckType
from redmonopoly.economy import EconomyEngine
from redmonopoly.money import EventType
from redmonopoly.pending import (
    BribeVerdict,
    ConfessionReview,
    EscapeMethod,
    GulagEscapeChoice,
    InformVerdict,
    VoucherRequest,
)
from redmonopoly.player import EliminationReason, GulagReason
from redmonopoly.standing import StandingService
from redmonopoly.state import Confession, GameState, VoucherAgreement

logger = logging.getLogger(__name__)

# Offences that make a voucher liable for the player they vouched for
VOUCHER_TRIGGER_REASONS = frozenset(
    {
        GulagReason.ENEMY_OF_STATE,
        GulagReason.THREE_DOUBLES,
        GulagReason.DENOUNCEMENT_GUILTY,
        GulagReason.PILFERING_CAUGHT,
        GulagReason.STALIN_DECREE,
        GulagReason.RAILWAY_CAPTURE,
        GulagReason.CAMP_LABOUR,
    }
)


def required_doubles(gulag_turns: int) -> Tuple[int, ...]:
    """
    Die faces that count as an escape double after ``gulag_turns`` turns.

    >>> required_doubles(1)
    (6,)
    >>> required_doubles(3)
    (4, 5, 6)
    """
    if gulag_turns <= 1:
        lowest = 6
    elif gulag_turns >= 5:
        lowest = 1
    else:
        lowest = 7 - gulag_turns
    return tuple(range(lowest, 7))


class GulagSubsystem:
    """Sends players to the Gulag and lets them out again."""

    def __init__(
        self,
        state: GameState,
        abilities: AbilityPolicy,
        economy: EconomyEngine,
        standing: StandingService,
    ):
        self.state = state
        self.abilities = abilities
        self.economy = economy
        self.standing = standing

    # Entry

    def send_to_gulag(self, player_id: int, reason: GulagReason, justification: Optional[str] = None) -> bool:
        """
        Confine a player, subject to piece abilities.

        Returns:
            True if the player was confined, False if nothing happened or the
            sentence was blocked or redirected
        """
        player = self.state.players.get(player_id)
        if player is None or not player.is_active or player.in_gulag:
            return False

        if self.abilities.blocks_gulag(player, reason):
            self.state.event_log.log(
                EventType.GULAG_BLOCKED,
                player_id,
                f"{player.name}'s Hammer protects them from Gulag! (Player-initiated imprisonment blocked)",
                reason=reason.value,
            )
            self.state.end_turn_now(player_id)
            return False

        if self.abilities.redirects_gulag(player):
            station = self.state.board.find_nearest_railway(player.position)
            self.state.players.update(
                player_id,
                position=station,
                used_abilities=player.used_abilities | {TANK_GULAG_IMMUNITY},
            )
            self.state.event_log.log(
                EventType.GULAG_REDIRECT,
                player_id,
                f"{player.name}'s Tank evades Gulag! Redirected to {self.state.board.get_space(station).name}",
                reason=reason.value,
                position=station,
            )
            self.standing.demote_player(player_id)
            self.state.end_turn_now(player_id)
            return False

        self.state.players.update(player_id, in_gulag=True, gulag_turns=0, position=GULAG_POSITION)
        self.state.event_log.log(
            EventType.GULAG_ENTRY,
            player_id,
            f"{player.name} sent to Gulag: {justification or reason.description}",
            reason=reason.value,
        )
        logger.info("Player %s sent to the Gulag (%s)", player_id, reason.value)

        self.standing.demote_player(player_id)
        self.check_voucher_consequences(player_id, reason)
        self.state.end_turn_now(player_id)
        return True

    def stalin_decree(self, player_id: int, justification: str = "") -> bool:
        """Stalin sends a player to the Gulag by decree."""
        return self.send_to_gulag(player_id, GulagReason.STALIN_DECREE, justification or None)

    # Turns in the Gulag

    def handle_gulag_turn(self, player_id: int) -> bool:
        """
        Count another Gulag turn at the start of a confined player's turn and
        offer the escape choice. Reaching the timeout eliminates the player.

        Returns:
            True if the player is still alive and awaiting an escape choice
        """
        player = self.state.players.get(player_id)
        if player is None or not player.in_gulag:
            return False

        turns = player.gulag_turns + 1
        self.state.players.update(player_id, gulag_turns=turns)
        self.state.event_log.log(
            EventType.GULAG_TURN, player_id, f"{player.name} endures Gulag turn {turns}", turns=turns
        )
        if self._check_timeout(player_id):
            return False

        self.state.set_pending(GulagEscapeChoice(player_id, required_doubles(turns)))
        return True

    def _check_timeout(self, player_id: int) -> bool:
        player = self.state.players.get(player_id)
        if player is None or not player.in_gulag:
            return False
        if player.gulag_turns < self.state.config.gulag_timeout_turns:
            return False
        self.standing.eliminate_player(player_id, EliminationReason.GULAG_TIMEOUT)
        return True

    def required_escape_doubles(self, player_id: int) -> Tuple[int, ...]:
        player = self.state.players.get(player_id)
        if player is None or not player.in_gulag:
            return ()
        return required_doubles(player.gulag_turns)

    # Release

    def release(self, player_id: int, method: EscapeMethod, message: str) -> bool:
        """Free a confined player. Every release resets the Gulag turn counter."""
        player = self.state.players.get(player_id)
        if player is None or not player.in_gulag:
            return False

        self.state.players.update(player_id, in_gulag=False, gulag_turns=0)
        self.state.event_log.log(EventType.GULAG_RELEASE, player_id, message, method=method.value)
        logger.info("Player %s released from the Gulag (%s)", player_id, method.value)

        released = self.state.players.get(player_id)
        if self.abilities.eliminated_at_rank(released, released.rank):
            self.standing.eliminate_player(player_id, EliminationReason.RANK_COLLAPSE)
        return True

    def attempt_roll_escape(self, player_id: int, dice: Optional[Tuple[int, int]] = None) -> bool:
        """
        Roll for doubles. Success needs a double whose face is in the current
        required set. The turn ends whatever the outcome.
        """
        player = self.state.players.get(player_id)
        if player is None or not player.in_gulag:
            return False

        if dice is None:
            dice = (self.state.rng.randint(1, 6), self.state.rng.randint(1, 6))
        self.state.last_dice_roll = tuple(dice)

        required = required_doubles(player.gulag_turns)
        escaped = dice[0] == dice[1] and dice[0] in required
        self.state.event_log.log(
            EventType.GULAG_ESCAPE_ATTEMPT,
            player_id,
            f"{player.name} rolled {dice[0]} and {dice[1]}",
            dice=list(dice),
            required=list(required),
            escaped=escaped,
        )

        if escaped:
            self.release(
                player_id, EscapeMethod.ROLL, f"{player.name} rolled double {dice[0]}s and escaped the Gulag!"
            )
        self.state.end_turn_now(player_id)
        return escaped

    def pay_for_release(self, player_id: int) -> bool:
        """Pay the rehabilitation fee to the State: released, but demoted."""
        player = self.state.players.get(player_id)
        cost = self.state.config.gulag_escape_cost
        if player is None or not player.in_gulag or player.rubles < cost:
            return False

        self.economy.transfer(player_id, None, cost)
        self.release(
            player_id,
            EscapeMethod.PAY,
            f"{player.name} paid {cost} rubles for rehabilitation and was released (with demotion)",
        )
        self.standing.demote_player(player_id)
        self.state.end_turn_now(player_id)
        return True

    def use_gulag_card(self, player_id: int) -> bool:
        """Spend a held release card."""
        player = self.state.players.get(player_id)
        if player is None or not player.in_gulag or player.gulag_cards <= 0:
            return False

        self.state.players.update(player_id, gulag_cards=player.gulag_cards - 1)
        self.state.decks[DeckType.PARTY_DIRECTIVE].return_held_card()
        self.release(
            player_id,
            EscapeMethod.CARD,
            f'{player.name} used "Get out of Gulag free" card and was immediately released!',
        )
        self.state.end_turn_now(player_id)
        return True

    # Vouchers

    def can_vouch(self, voucher_id: int, prisoner_id: int) -> bool:
        """Any free player may vouch; each agreement carries its own liability."""
        voucher = self.state.players.get(voucher_id)
        if voucher is None or voucher_id == prisoner_id:
            return False
        return voucher.is_free

    def eligible_vouchers(self, prisoner_id: int) -> List[int]:
        return [p.player_id for p in self.state.players.all() if self.can_vouch(p.player_id, prisoner_id)]

    def request_voucher(self, prisoner_id: int, voucher_id: int) -> bool:
        """Ask a free player to vouch; their answer resumes the turn."""
        prisoner = self.state.players.get(prisoner_id)
        if prisoner is None or not prisoner.in_gulag:
            return False
        if not self.can_vouch(voucher_id, prisoner_id):
            return False
        self.state.set_pending(VoucherRequest(prisoner_id, voucher_id))
        return True

    def respond_to_voucher(self, prisoner_id: int, voucher_id: int, accepted: bool) -> bool:
        """A declined request sends the prisoner back to choosing a method."""
        if accepted:
            return self.create_voucher(prisoner_id, voucher_id) is not None

        prisoner = self.state.players.get(prisoner_id)
        if prisoner is None or not prisoner.in_gulag:
            return False
        voucher = self.state.players.get(voucher_id)
        self.state.event_log.log(
            EventType.VOUCHER_CREATED,
            prisoner_id,
            f"{voucher.name if voucher else 'Nobody'} refused to vouch for {prisoner.name}",
            accepted=False,
        )
        self.state.set_pending(GulagEscapeChoice(prisoner_id, required_doubles(prisoner.gulag_turns)))
        return False

    def create_voucher(self, prisoner_id: int, voucher_id: int) -> Optional[VoucherAgreement]:
        """Release the prisoner immediately; the voucher is liable for three rounds."""
        prisoner = self.state.players.get(prisoner_id)
        voucher = self.state.players.get(voucher_id)
        if prisoner is None or not prisoner.in_gulag or not self.can_vouch(voucher_id, prisoner_id):
            return None

        agreement = VoucherAgreement(
            prisoner_id=prisoner_id,
            voucher_id=voucher_id,
            expires_at_round=self.state.round_number + self.state.config.voucher_rounds,
        )
        self.state.vouchers.append(agreement)
        self.state.players.update(voucher_id, vouching_for=prisoner_id)

        self.state.event_log.log(
            EventType.VOUCHER_CREATED,
            voucher_id,
            f"{voucher.name} vouched for {prisoner.name}'s release. WARNING: If {prisoner.name} "
            f"commits ANY offence in the next {self.state.config.voucher_rounds} rounds, "
            f"{voucher.name} goes to Gulag too!",
            prisoner_id=prisoner_id,
            expires_at_round=agreement.expires_at_round,
        )
        self.release(prisoner_id, EscapeMethod.VOUCH, f"{prisoner.name} released on {voucher.name}'s word")
        self.state.end_turn_now(prisoner_id)
        return agreement

    def check_voucher_consequences(self, player_id: int, reason: GulagReason) -> Optional[int]:
        """
        Send the voucher of a freshly confined player to the Gulag when the
        offence falls inside the voucher window.

        Returns:
            The liable voucher's id, if one was triggered
        """
        if reason not in VOUCHER_TRIGGER_REASONS:
            return None

        for index, agreement in enumerate(self.state.vouchers):
            if not agreement.is_active or agreement.prisoner_id != player_id:
                continue
            if self.state.round_number > agreement.expires_at_round:
                continue

            self.state.vouchers[index] = replace(agreement, is_active=False)
            self.state.sync_vouching_for(agreement.voucher_id)

            voucher = self.state.players.get(agreement.voucher_id)
            offender = self.state.players.get(player_id)
            self.state.event_log.log(
                EventType.VOUCHER_CONSEQUENCE,
                agreement.voucher_id,
                f"{voucher.name} sent to Gulag due to {offender.name}'s offence within voucher period!",
                prisoner_id=player_id,
            )
            self.send_to_gulag(agreement.voucher_id, GulagReason.VOUCHER_CONSEQUENCE)
            return agreement.voucher_id
        return None

    def expire_vouchers(self) -> List[VoucherAgreement]:
        """Lift the liability of every voucher whose window has passed."""
        expired: List[VoucherAgreement] = []
        for index, agreement in enumerate(self.state.vouchers):
            if not agreement.is_active or self.state.round_number <= agreement.expires_at_round:
                continue
            self.state.vouchers[index] = replace(agreement, is_active=False)
            expired.append(agreement)

            self.state.sync_vouching_for(agreement.voucher_id)
            voucher = self.state.players.get(agreement.voucher_id)
            prisoner = self.state.players.get(agreement.prisoner_id)
            if voucher is not None and prisoner is not None:
                self.state.event_log.log(
                    EventType.VOUCHER_EXPIRED,
                    agreement.voucher_id,
                    f"{voucher.name}'s voucher for {prisoner.name} has expired - liability lifted!",
                )
        return expired

    # Informing

    def inform_on_player(self, informer_id: int, accused_id: int) -> bool:
        """Accuse a free player from inside the Gulag; Stalin rules on it."""
        informer = self.state.players.get(informer_id)
        accused = self.state.players.get(accused_id)
        if informer is None or not informer.in_gulag:
            return False
        if accused is None or accused_id == informer_id or not accused.is_free:
            return False

        self.state.event_log.log(
            EventType.INFORM,
            informer_id,
            f"{informer.name} informs on {accused.name}. Stalin will judge.",
            accused_id=accused_id,
        )
        self.state.set_pending(InformVerdict(informer_id, accused_id))
        return True

    def resolve_inform(self, informer_id: int, accused_id: int, guilty: bool) -> bool:
        """
        Guilty: the informer walks free with the informant bonus and the
        accused takes their place. Innocent: the informer serves extra turns.
        """
        informer = self.state.players.get(informer_id)
        accused = self.state.players.get(accused_id)
        if informer is None or not informer.in_gulag or accused is None:
            return False

        if guilty:
            bonus = self.state.config.informant_bonus
            self.release(
                informer_id,
                EscapeMethod.INFORM,
                f"Stalin believes {informer.name}: {accused.name} is guilty. "
                f"{informer.name} receives {bonus} rubles informant bonus.",
            )
            if self.state.players.get(informer_id).is_active:
                self.economy.transfer(None, informer_id, bonus)
            self.state.end_turn_now(informer_id)
            self.send_to_gulag(accused_id, GulagReason.DENOUNCEMENT_GUILTY, f"Informed on by {informer.name}")
            return True

        penalty = self.state.config.inform_penalty_turns
        self.state.players.update(informer_id, gulag_turns=informer.gulag_turns + penalty)
        self.state.event_log.log(
            EventType.INFORM,
            informer_id,
            f"Stalin finds {accused.name} innocent. {informer.name} serves {penalty} extra turns for false information",
            accused_id=accused_id,
            guilty=False,
        )
        if not self._check_timeout(informer_id):
            self.state.end_turn_now(informer_id)
        return False

    # Bribes

    def submit_bribe(self, player_id: int, amount: int) -> bool:
        """Hand Stalin a bribe. The money is gone whatever he decides."""
        player = self.state.players.get(player_id)
        if player is None or not player.in_gulag:
            return False
        if amount < self.state.config.bribe_minimum or amount > player.rubles:
            return False

        self.economy.transfer(player_id, None, amount)
        self.state.event_log.log(
            EventType.BRIBE,
            player_id,
            f"{player.name} offers Stalin a bribe of {amount} rubles",
            amount=amount,
        )
        self.state.set_pending(BribeVerdict(player_id, amount))
        return True

    def respond_to_bribe(self, player_id: int, accepted: bool) -> bool:
        player = self.state.players.get(player_id)
        if player is None or not player.in_gulag:
            return False
        if accepted:
            self.release(player_id, EscapeMethod.BRIBE, f"Stalin accepts {player.name}'s bribe")
        else:
            self.state.event_log.log(
                EventType.BRIBE, player_id, f"Stalin rejects {player.name}'s bribe", accepted=False
            )
        self.state.end_turn_now(player_id)
        return accepted


    # Confessions

    def submit_confession(self, prisoner_id: int, confession: str) -> bool:
        """Put a written confession before Stalin for rehabilitation."""
        prisoner = self.state.players.get(prisoner_id)
        if prisoner is None or not prisoner.in_gulag or not confession.strip():
            return False
        if self.state.players.stalin() is None:
            return False

        self.state.confessions.append(
            Confession(prisoner_id=prisoner_id, text=confession.strip(), submitted_round=self.state.round_number)
        )
        self.state.event_log.log(
            EventType.CONFESSION,
            prisoner_id,
            f"{prisoner.name} submits a confession to Stalin",
            confession=confession.strip(),
        )
        self.state.set_pending(ConfessionReview(prisoner_id, confession.strip()))
        return True

    def review_confession(self, prisoner_id: int, accepted: bool) -> bool:
        """
        Stalin rules on the prisoner's latest unreviewed confession. An
        accepted confession rehabilitates the prisoner; either way the turn ends.
        """
        prisoner = self.state.players.get(prisoner_id)
        index = self._open_confession(prisoner_id)
        if prisoner is None or index is None:
            return False

        self.state.confessions[index] = replace(self.state.confessions[index], reviewed=True, accepted=accepted)
        if accepted and prisoner.in_gulag:
            self.release(
                prisoner_id,
                EscapeMethod.CONFESSION,
                f"Stalin accepts {prisoner.name}'s confession. {prisoner.name} is rehabilitated!",
            )
        else:
            self.state.event_log.log(
                EventType.CONFESSION,
                prisoner_id,
                f"Stalin rejects {prisoner.name}'s confession",
                accepted=False,
            )
        self.state.end_turn_now(prisoner_id)
        return accepted

    def _open_confession(self, prisoner_id: int) -> Optional[int]:
        for index in range(len(self.state.confessions) - 1, -1, -1):
            confession = self.state.confessions[index]
            if confession.prisoner_id == prisoner_id and not confession.reviewed:
                return index
        return None
