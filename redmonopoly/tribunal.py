"""
Denouncements and the People's Tribunal.

At most one tribunal sits at a time. It moves through accusation, defence,
witnesses and judgement, one phase per ``advance_phase`` call, and is
dissolved once a verdict is rendered.
"""

import logging
from dataclasses import replace
from enum import Enum
from typing import List, Optional, Tuple

from redmonopoly.abilities import AbilityPolicy
from redmonopoly.economy import EconomyEngine
from redmonopoly.gulag import GulagSubsystem
from redmonopoly.money import EventType
from redmonopoly.player import GulagReason, Rank
from redmonopoly.standing import StandingService
from redmonopoly.state import (
    TRIBUNAL_PHASE_ORDER,
    GameState,
    Tribunal,
    TribunalPhase,
    WitnessRequirement,
    WitnessSide,
)

logger = logging.getLogger(__name__)

# Ranks that may denounce more than once per round
UNLIMITED_DENOUNCEMENT_RANK = Rank.COMMISSAR


class Verdict(Enum):
    GUILTY = "guilty"
    INNOCENT = "innocent"
    BOTH_GUILTY = "bothGuilty"
    INSUFFICIENT_EVIDENCE = "insufficientEvidence"


class TribunalSubsystem:
    """Runs the single active tribunal."""

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

    # Denouncement

    def can_denounce(self, accuser_id: int) -> Tuple[bool, str]:
        """Once per round, unless the accuser is a Commissar or higher."""
        accuser = self.state.players.get(accuser_id)
        if accuser is None or not accuser.is_active:
            return False, "Player not found"
        if accuser.in_gulag:
            return False, "Cannot denounce from the Gulag"
        if self.state.active_tribunal is not None:
            return False, "A tribunal is already in session"

        made = self.state.denouncement_counts.get(accuser_id, 0)
        if made > 0 and not accuser.rank.at_least(UNLIMITED_DENOUNCEMENT_RANK):
            return False, "You may only denounce once per round (unless Commissar+)"
        return True, ""

    def can_be_denounced_by(self, accused_id: int, accuser_id: int) -> Tuple[bool, str]:
        accuser = self.state.players.get(accuser_id)
        accused = self.state.players.get(accused_id)
        if accuser is None or accused is None:
            return False, "Player not found"
        if accused_id == accuser_id:
            return False, "Cannot denounce yourself"
        if accused.is_eliminated:
            return False, "Cannot denounce an eliminated player"
        if accused.in_gulag:
            return False, "Cannot denounce someone already in Gulag"
        if self.abilities.is_protected_from(accused, accuser):
            return False, f"{accused.name}'s Lenin Statue cannot be denounced by lower rank"
        return True, ""

    def denounce_targets(self, accuser_id: int) -> List[int]:
        """Players the accuser could put on trial right now."""
        allowed, _ = self.can_denounce(accuser_id)
        if not allowed:
            return []
        return [
            p.player_id
            for p in self.state.players.active()
            if self.can_be_denounced_by(p.player_id, accuser_id)[0]
        ]

    def initiate(self, accuser_id: int, accused_id: int, crime: str) -> Optional[Tribunal]:
        """
        Denounce a player and open a tribunal in the accusation phase.
        Denouncing Stalin sends the accuser to the Gulag instead.
        """
        accuser = self.state.players.get(accuser_id)
        accused = self.state.players.get(accused_id)
        if accuser is None or accused is None:
            return None

        allowed, reason = self.can_denounce(accuser_id)
        if not allowed:
            self.state.event_log.log(EventType.TRIBUNAL_START, accuser_id, f"Denouncement blocked: {reason}")
            logger.debug("Denouncement by %s rejected: %s", accuser_id, reason)
            return None

        if accused.is_stalin:
            self.state.event_log.log(
                EventType.TRIBUNAL_START,
                accuser_id,
                f"{accuser.name} foolishly attempted to denounce Stalin and was sent to Gulag",
            )
            self.gulag.send_to_gulag(
                accuser_id, GulagReason.STALIN_DECREE, "Attempted to denounce Comrade Stalin"
            )
            return None

        allowed, reason = self.can_be_denounced_by(accused_id, accuser_id)
        if not allowed:
            self.state.event_log.log(EventType.TRIBUNAL_START, accuser_id, f"Denouncement blocked: {reason}")
            return None

        tribunal = Tribunal(
            accuser_id=accuser_id,
            accused_id=accused_id,
            crime=crime,
            requirement=self.witness_requirement(accused_id),
        )
        self.state.active_tribunal = tribunal
        self.state.denouncement_counts[accuser_id] = self.state.denouncement_counts.get(accuser_id, 0) + 1

        self.state.event_log.log(
            EventType.TRIBUNAL_START,
            accuser_id,
            f'{accuser.name} has denounced {accused.name} for "{crime}". Tribunal is now in session!',
            accused_id=accused_id,
            crime=crime,
        )
        return tribunal

    def witness_requirement(self, accused_id: int) -> WitnessRequirement:
        accused = self.state.players.get(accused_id)
        if accused is None or accused.under_suspicion:
            return WitnessRequirement()
        if self.state.is_hero(accused_id):
            return WitnessRequirement(unanimous=True)
        if accused.rank == Rank.COMMISSAR:
            return WitnessRequirement(count=2)
        if accused.rank == Rank.INNER_CIRCLE:
            return WitnessRequirement(unanimous=True)
        return WitnessRequirement()

    # Proceedings

    def advance_phase(self) -> Optional[TribunalPhase]:
        tribunal = self.state.active_tribunal
        if tribunal is None:
            return None
        index = TRIBUNAL_PHASE_ORDER.index(tribunal.phase)
        if index + 1 >= len(TRIBUNAL_PHASE_ORDER):
            return tribunal.phase

        phase = TRIBUNAL_PHASE_ORDER[index + 1]
        self.state.active_tribunal = replace(tribunal, phase=phase)
        self.state.event_log.log(EventType.TRIBUNAL_PHASE, None, f"Tribunal moves to {phase.value}", phase=phase.value)
        return phase

    def eligible_witnesses(self) -> List[int]:
        """Free players who are not principals; those already testifying are included."""
        tribunal = self.state.active_tribunal
        if tribunal is None:
            return []
        return [
            p.player_id
            for p in self.state.players.active()
            if not p.in_gulag and p.player_id not in (tribunal.accuser_id, tribunal.accused_id)
        ]

    def add_witness(self, witness_id: int, side: WitnessSide) -> bool:
        """Testify on one side during the witnesses phase. Some pieces must testify for the accuser."""
        tribunal = self.state.active_tribunal
        witness = self.state.players.get(witness_id)
        if tribunal is None or witness is None or tribunal.phase != TribunalPhase.WITNESSES:
            return False
        if witness_id not in self.eligible_witnesses():
            return False

        side = self.abilities.forced_witness_side(witness) or side
        same, other = (
            (tribunal.witnesses_for, tribunal.witnesses_against)
            if side == WitnessSide.FOR_ACCUSER
            else (tribunal.witnesses_against, tribunal.witnesses_for)
        )
        if witness_id in same or witness_id in other:
            return False

        if side == WitnessSide.FOR_ACCUSER:
            tribunal = replace(tribunal, witnesses_for=tribunal.witnesses_for + (witness_id,))
        else:
            tribunal = replace(tribunal, witnesses_against=tribunal.witnesses_against + (witness_id,))
        self.state.active_tribunal = tribunal

        self.state.event_log.log(
            EventType.WITNESS,
            witness_id,
            f"{witness.name} testified "
            f"{'for the accuser' if side == WitnessSide.FOR_ACCUSER else 'for the accused'}",
            side=side.value,
        )
        return True

    def requirement_met(self) -> bool:
        tribunal = self.state.active_tribunal
        if tribunal is None:
            return False
        requirement = tribunal.requirement
        if requirement.is_zero:
            return True
        if requirement.unanimous:
            return len(tribunal.witnesses_for) == len(self.eligible_witnesses())
        return len(tribunal.witnesses_for) >= requirement.count

    def render_verdict(self, verdict: Verdict) -> bool:
        """
        Apply a verdict in the judgement phase and dissolve the tribunal.
        A guilty verdict without enough witnesses is rejected.
        """
        tribunal = self.state.active_tribunal
        if tribunal is None or tribunal.phase != TribunalPhase.JUDGEMENT:
            return False
        if verdict == Verdict.GUILTY and not self.requirement_met():
            logger.debug("Guilty verdict rejected: witness requirement not met")
            return False

        accuser = self.state.players.get(tribunal.accuser_id)
        accused = self.state.players.get(tribunal.accused_id)
        self.state.active_tribunal = None

        if verdict == Verdict.GUILTY:
            bonus = self.state.config.informant_bonus
            self.economy.transfer(None, accuser.player_id, bonus)
            message = (
                f"GUILTY! {accused.name} is condemned. {accuser.name} receives {bonus} rubles informant bonus."
            )
            self._log_verdict(verdict, accuser.player_id, message)
            self.gulag.send_to_gulag(accused.player_id, GulagReason.DENOUNCEMENT_GUILTY, tribunal.crime)
        elif verdict == Verdict.INNOCENT:
            self._log_verdict(
                verdict,
                accuser.player_id,
                f"INNOCENT! {accused.name} is innocent. {accuser.name} loses one rank for wasting the Party's time.",
            )
            self.standing.demote_player(accuser.player_id)
        elif verdict == Verdict.BOTH_GUILTY:
            self._log_verdict(
                verdict,
                accuser.player_id,
                f"BOTH GUILTY! {accuser.name} and {accused.name} are both sent to the Gulag.",
            )
            self.gulag.send_to_gulag(accused.player_id, GulagReason.DENOUNCEMENT_GUILTY, tribunal.crime)
            self.gulag.send_to_gulag(accuser.player_id, GulagReason.DENOUNCEMENT_GUILTY, "False accusation")
        else:
            self._log_verdict(
                verdict,
                accuser.player_id,
                f"INSUFFICIENT EVIDENCE. {accused.name} is placed under suspicion.",
            )
            self.state.players.update(accused.player_id, under_suspicion=True)
        return True

    def _log_verdict(self, verdict: Verdict, accuser_id: int, message: str) -> None:
        self.state.event_log.log(EventType.VERDICT, accuser_id, message, verdict=verdict.value)
        logger.info("Tribunal verdict: %s", verdict.value)
