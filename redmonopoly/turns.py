"""
Turn and round scheduling.

A free player's turn runs pre-roll -> rolling -> moving -> resolving ->
post-turn, suspending in awaiting-input whenever a pending action is
outstanding. A confined player's turn opens directly on the Gulag escape
choice.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from redmonopoly.abilities import AbilityPolicy, AbilityScope
from redmonopoly.board import BOARD_SIZE, STOY_POSITION
from redmonopoly.economy import EconomyEngine
from redmonopoly.group_powers import GroupPowers
from redmonopoly.gulag import GulagSubsystem
from redmonopoly.money import EventType
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
from redmonopoly.player import GulagReason
from redmonopoly.resolver import SpaceResolver
from redmonopoly.standing import StandingService
from redmonopoly.state import GameState, TurnPhase

logger = logging.getLogger(__name__)

DICE_KEPT = 2


class TurnScheduler:
    """Drives the roll, move, resolve and end-turn cycle."""

    def __init__(
        self,
        state: GameState,
        abilities: AbilityPolicy,
        economy: EconomyEngine,
        standing: StandingService,
        gulag: GulagSubsystem,
        resolver: SpaceResolver,
        group_powers: GroupPowers,
    ):
        self.state = state
        self.abilities = abilities
        self.economy = economy
        self.standing = standing
        self.gulag = gulag
        self.resolver = resolver
        self.group_powers = group_powers

    # Seating

    def eligible_indices(self) -> List[int]:
        """Seats that take turns: not Stalin, not eliminated. Confined players still take turns."""
        return [
            index
            for index, pid in enumerate(self.state.players.order)
            if self.state.players.get(pid).is_active
        ]

    def next_eligible_index(self, after: int) -> Optional[int]:
        seats = len(self.state.players.order)
        eligible = set(self.eligible_indices())
        for step in range(1, seats + 1):
            index = (after + step) % seats
            if index in eligible:
                return index
        return None

    # Turn lifecycle

    def start_game(self) -> None:
        eligible = self.eligible_indices()
        if not eligible:
            return
        self.state.current_player_index = eligible[0]
        self.state.turn_number = 1
        self.state.event_log.log(
            EventType.GAME_START,
            None,
            f"Game started with {len(eligible)} comrades",
            players=[self.state.players.order[i] for i in eligible],
        )
        self.begin_turn()

    def begin_turn(self) -> None:
        """Open the current player's turn. A confined player counts a Gulag turn first."""
        if self.state.game_over:
            return
        player = self.state.get_current_player()
        self.state.turn_phase = TurnPhase.PRE_ROLL
        self.state.pending_action = None
        self.state.last_dice_roll = None
        self.state.event_log.log(
            EventType.TURN_START, player.player_id, f"{player.name}'s turn", turn=self.state.turn_number
        )

        if player.in_gulag and not self.gulag.handle_gulag_turn(player.player_id):
            # Perished in the Gulag
            self.end_turn()

    def roll_dice(self, dice: Optional[Sequence[int]] = None) -> Optional[Tuple[int, ...]]:
        """
        Roll for the current player and move them.

        Args:
            dice: Fixed faces to use instead of the game RNG

        Returns:
            The faces rolled, or None if a roll is not allowed right now
        """
        if self.state.game_over or self.state.turn_phase != TurnPhase.PRE_ROLL:
            return None
        if self.state.pending_action is not None:
            return None

        player = self.state.get_current_player()
        if not player.is_free:
            return None

        count = self.abilities.dice_count(player)
        if dice is None:
            faces = tuple(self.state.rng.randint(1, 6) for _ in range(count))
        else:
            faces = tuple(dice)
            if len(faces) != count or any(face < 1 or face > 6 for face in faces):
                return None

        self.state.turn_phase = TurnPhase.ROLLING
        self.state.last_dice_roll = faces
        kept = sorted(faces, reverse=True)[:DICE_KEPT]
        total = sum(kept)
        is_doubles = kept[0] == kept[1]

        self.state.event_log.log(
            EventType.DICE_ROLL,
            player.player_id,
            f"{player.name} rolled {', '.join(str(f) for f in faces)}",
            dice=list(faces),
            kept=kept,
            total=total,
            doubles=is_doubles,
        )

        if is_doubles:
            self.state.doubles_count += 1
            if self.state.doubles_count >= self.state.config.three_doubles_threshold:
                self.gulag.send_to_gulag(player.player_id, GulagReason.THREE_DOUBLES)
                self.state.end_turn_now(player.player_id)
                return faces
        else:
            self.state.doubles_count = 0

        self.move_player(player.player_id, total)
        self.resolver.resolve_landing(player.player_id, total)
        return faces

    def move_player(self, player_id: int, spaces: int) -> int:
        """
        Move a player forward. Passing STOY completes a lap: per-lap abilities
        recharge and, unless the player stops on STOY itself, the travel tax
        is charged.

        Returns:
            The new position
        """
        player = self.state.players.get(player_id)
        if player is None:
            return -1

        self.state.turn_phase = TurnPhase.MOVING
        old_position = player.position
        new_position = (old_position + spaces) % BOARD_SIZE
        passed_stoy = old_position != STOY_POSITION and old_position + spaces >= BOARD_SIZE

        changes = {"position": new_position}
        if passed_stoy:
            changes["laps_completed"] = player.laps_completed + 1
        self.state.players.update(player_id, **changes)

        self.state.event_log.log(
            EventType.MOVE,
            player_id,
            f"{player.name} moved from {self.state.board.get_space(old_position).name} "
            f"to {self.state.board.get_space(new_position).name}",
            from_position=old_position,
            to_position=new_position,
            spaces=spaces,
        )

        if passed_stoy:
            self.abilities.reset_scope(player_id, AbilityScope.PER_LAP)
            if new_position != STOY_POSITION:
                self._charge_stoy_toll(player_id)
        return new_position

    def _charge_stoy_toll(self, player_id: int) -> None:
        player = self.state.players.get(player_id)
        toll = self.state.config.stoy_travel_tax
        self.economy.transfer(player_id, None, toll)
        self.state.event_log.log(
            EventType.PASS_STOY, player_id, f"{player.name} paid {toll} rubles travel tax at STOY", amount=toll
        )

        bonus = self.abilities.stoy_bonus(player)
        if bonus:
            self.economy.transfer(None, player_id, bonus)
            self.state.event_log.log(
                EventType.PASS_STOY,
                player_id,
                f"{player.name}'s Hammer earns +{bonus} rubles bonus at STOY!",
                amount=bonus,
            )

    def end_turn(self) -> bool:
        """
        Finish the current turn. Doubles earn a free player another roll;
        otherwise play passes to the next eligible seat, and wrapping back
        past the end of the seating order starts a new round.
        """
        if self.state.game_over:
            return False
        if self.state.pending_action is not None or self.state.turn_phase != TurnPhase.POST_TURN:
            return False

        current = self.state.get_current_player()
        if self.state.doubles_count > 0 and current.is_free:
            self.state.turn_phase = TurnPhase.PRE_ROLL
            self.state.last_dice_roll = None
            return True

        next_index = self.next_eligible_index(self.state.current_player_index)
        if next_index is None:
            self.standing.check_game_end()
            return False

        previous_index = self.state.current_player_index
        self.state.current_player_index = next_index
        self.state.doubles_count = 0
        self.state.turn_number += 1
        # Seat order wrapped around the table
        if next_index <= previous_index:
            self.increment_round()
        self.begin_turn()
        return True

    def increment_round(self) -> None:
        """Round housekeeping: denouncements reset, per-round powers recharge, vouchers expire, debts default."""
        self.state.round_number += 1
        self.state.denouncement_counts.clear()
        for player in self.state.players.all():
            self.abilities.reset_scope(player.player_id, AbilityScope.PER_ROUND)
        self.state.event_log.log(
            EventType.ROUND_START, None, f"Round {self.state.round_number} begins", round=self.state.round_number
        )
        self.gulag.expire_vouchers()
        for debtor_id in self.economy.collect_overdue_debts():
            self.gulag.send_to_gulag(debtor_id, GulagReason.DEBT_DEFAULT)

    # Pending actions

    def resolve_pending_action(self, decision) -> bool:
        """
        Resume the turn with a decision for the outstanding pending action.

        Returns:
            True if the decision was accepted. A decision of the wrong type,
            or one whose guards fail, leaves the pending action in place.
        """
        pending = self.state.pending_action
        if pending is None or self.state.game_over:
            return False

        if isinstance(pending, StoyPilfer) and isinstance(decision, PilferDecision):
            self.resolver.settle_pilfer(pending, decision)
        elif isinstance(pending, PropertyPurchase) and isinstance(decision, PurchaseDecision):
            self.resolver.settle_purchase(pending, decision)
        elif isinstance(pending, (QuotaPayment, RailwayFee, UtilityFee)) and isinstance(decision, Acknowledge):
            self.resolver.settle_fee(pending)
        elif isinstance(pending, TaxPayment) and isinstance(decision, (TaxDecision, Acknowledge)):
            self.resolver.settle_tax(pending, decision if isinstance(decision, TaxDecision) else TaxDecision())
        elif isinstance(pending, DrawCard) and isinstance(decision, Acknowledge):
            self.resolver.settle_card(pending)
        elif isinstance(pending, BreadlineContribution) and isinstance(decision, BreadlineDecision):
            self.resolver.settle_breadline(pending, decision)
        elif isinstance(pending, GulagEscapeChoice) and isinstance(decision, EscapeDecision):
            self._attempt_escape(pending, decision)
        elif isinstance(pending, VoucherRequest) and isinstance(decision, VerdictDecision):
            self.gulag.respond_to_voucher(pending.player_id, pending.voucher_id, decision.approved)
        elif isinstance(pending, InformVerdict) and isinstance(decision, VerdictDecision):
            self.gulag.resolve_inform(pending.player_id, pending.accused_id, decision.approved)
        elif isinstance(pending, BribeVerdict) and isinstance(decision, VerdictDecision):
            self.gulag.respond_to_bribe(pending.player_id, decision.approved)
        elif isinstance(pending, ConfessionReview) and isinstance(decision, VerdictDecision):
            self.gulag.review_confession(pending.player_id, decision.approved)
        elif isinstance(pending, CampLabourApproval) and isinstance(decision, VerdictDecision):
            self.group_powers.resolve_camp_labour(pending, decision.approved)
        elif isinstance(pending, RuleRewriteApproval) and isinstance(decision, VerdictDecision):
            self.group_powers.resolve_rule_rewrite(pending, decision.approved)
        elif isinstance(pending, PravdaRevote) and isinstance(decision, Acknowledge):
            self.state.set_pending(None)
        else:
            logger.debug("Decision %r does not answer %r", decision, pending)
            return False

        return self.state.pending_action is not pending

    def _attempt_escape(self, pending: GulagEscapeChoice, decision: EscapeDecision) -> bool:
        player_id = pending.player_id
        if decision.method == EscapeMethod.ROLL:
            return self.gulag.attempt_roll_escape(player_id, decision.dice)
        if decision.method == EscapeMethod.PAY:
            return self.gulag.pay_for_release(player_id)
        if decision.method == EscapeMethod.VOUCH:
            return decision.voucher_id is not None and self.gulag.request_voucher(player_id, decision.voucher_id)
        if decision.method == EscapeMethod.INFORM:
            return decision.accused_id is not None and self.gulag.inform_on_player(player_id, decision.accused_id)
        if decision.method == EscapeMethod.BRIBE:
            return self.gulag.submit_bribe(player_id, decision.amount)
        if decision.method == EscapeMethod.CARD:
            return self.gulag.use_gulag_card(player_id)
        if decision.method == EscapeMethod.CONFESSION:
            return self.gulag.submit_confession(player_id, decision.confession)
        return False

    def cancel_pending_action(self) -> bool:
        """Drop the outstanding pending action; the turn moves to post-turn."""
        if self.state.pending_action is None:
            return False
        self.state.set_pending(None)
        return True
