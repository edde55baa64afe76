"""
Stalin's special decrees: the Great Purge, the Five-Year Plan and the Hero
of the Soviet Union. Each needs a Stalin at the table.
"""

import logging
from collections import Counter
from typing import List, Optional

from redmonopoly.abilities import GREAT_PURGE, TANK_GULAG_IMMUNITY, AbilityPolicy
from redmonopoly.economy import EconomyEngine
from redmonopoly.gulag import GulagSubsystem
from redmonopoly.money import EventType
from redmonopoly.player import GulagReason, PlayerState
from redmonopoly.state import FiveYearPlan, GameState, GreatPurge, HeroAward

logger = logging.getLogger(__name__)


class StalinDecrees:
    """Runs the decrees Stalin can issue at any point in the game."""

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

    def _comrade(self, player_id: Optional[int]) -> Optional[PlayerState]:
        player = self.state.players.get(player_id)
        if player is None or not player.is_active:
            return None
        return player

    # Great Purge

    def can_initiate_purge(self) -> bool:
        stalin = self.state.players.stalin()
        return (
            stalin is not None
            and GREAT_PURGE not in stalin.used_abilities
            and self.state.great_purge is None
            and not self.state.game_over
        )

    def initiate_great_purge(self) -> bool:
        """Open the once-per-game purge vote."""
        if not self.can_initiate_purge():
            return False
        self.abilities.mark_used(self.state.players.stalin().player_id, GREAT_PURGE)
        self.state.great_purge = GreatPurge()
        self.state.event_log.log(
            EventType.GREAT_PURGE,
            None,
            "THE GREAT PURGE HAS BEGUN! Every comrade must point at another player.",
        )
        return True

    def vote_in_purge(self, voter_id: int, target_id: int) -> bool:
        """Record or replace a vote."""
        purge = self.state.great_purge
        if purge is None or voter_id == target_id:
            return False
        if self._comrade(voter_id) is None or self._comrade(target_id) is None:
            return False

        votes = purge.vote_map()
        votes[voter_id] = target_id
        self.state.great_purge = GreatPurge(votes=tuple(sorted(votes.items())))
        return True

    def resolve_great_purge(self) -> List[int]:
        """
        Count the votes and sentence everyone tied for the most votes.

        Returns:
            Ids of the most-voted players, empty if nobody voted
        """
        purge = self.state.great_purge
        if purge is None:
            return []
        self.state.great_purge = None

        counts = Counter(target for _, target in purge.votes)
        if not counts:
            self.state.event_log.log(
                EventType.GREAT_PURGE, None, "The Great Purge ended with no votes cast. The Party is watching..."
            )
            return []

        most = max(counts.values())
        targets = [pid for pid in self.state.players.order if counts.get(pid) == most]
        for target_id in targets:
            target = self.state.players.get(target_id)
            if target is not None and target.is_free:
                self.gulag.send_to_gulag(target_id, GulagReason.STALIN_DECREE, "Purged by popular vote")

        names = " and ".join(self.state.players.get(pid).name for pid in targets)
        self.state.event_log.log(
            EventType.GREAT_PURGE,
            None,
            f"The Great Purge is complete. {names} received the most votes ({most}) and face the Gulag!",
            targets=targets,
            votes=most,
        )
        return targets

    # Five-Year Plan

    def initiate_five_year_plan(self, target: int) -> Optional[FiveYearPlan]:
        if self.state.players.stalin() is None or self.state.five_year_plan is not None:
            return None
        if target <= 0 or self.state.game_over:
            return None

        plan = FiveYearPlan(target=target, started_round=self.state.round_number)
        self.state.five_year_plan = plan
        self.state.event_log.log(
            EventType.FIVE_YEAR_PLAN,
            None,
            f"FIVE-YEAR PLAN INITIATED! The State requires {target} rubles from the collective.",
            target=target,
        )
        return plan

    def contribute_to_plan(self, player_id: int, amount: int) -> bool:
        """Hand rubles to the treasury towards the plan."""
        plan = self.state.five_year_plan
        player = self._comrade(player_id)
        if plan is None or player is None:
            return False
        if amount <= 0 or player.rubles < amount:
            return False

        self.economy.transfer(player_id, None, amount)
        collected = plan.collected + amount
        self.state.five_year_plan = FiveYearPlan(plan.target, plan.started_round, collected)
        self.state.event_log.log(
            EventType.FIVE_YEAR_PLAN,
            player_id,
            f"{player.name} contributed {amount} rubles to the Five-Year Plan ({collected}/{plan.target})",
            amount=amount,
            collected=collected,
        )
        return True

    def resolve_five_year_plan(self) -> Optional[bool]:
        """
        Close the plan. Success pays every comrade the plan bonus; failure
        punishes the poorest free comrade, trying the next poorest while a
        sentence has no effect.

        Returns:
            Whether the plan was met, or None if no plan was running
        """
        plan = self.state.five_year_plan
        if plan is None:
            return None
        self.state.five_year_plan = None

        if plan.is_met:
            bonus = self.state.config.five_year_plan_bonus
            for player in self.state.players.active():
                self.economy.transfer(None, player.player_id, bonus)
            self.state.event_log.log(
                EventType.FIVE_YEAR_PLAN,
                None,
                f"Five-Year Plan SUCCESSFUL! All players receive {bonus} rubles bonus for meeting the quota.",
                success=True,
            )
            return True

        candidates = sorted(
            (p for p in self.state.players.active() if p.is_free), key=lambda p: p.rubles
        )
        for candidate in candidates:
            punishment = self._punish_saboteur(candidate)
            if punishment is not None:
                self.state.event_log.log(
                    EventType.FIVE_YEAR_PLAN,
                    candidate.player_id,
                    f"Five-Year Plan FAILED! {candidate.name} (poorest player) has been {punishment} for sabotage.",
                    success=False,
                )
                return False

        if candidates:
            self.state.event_log.log(
                EventType.FIVE_YEAR_PLAN,
                None,
                "Five-Year Plan FAILED! No player could be sent to the Gulag (all protected).",
                success=False,
            )
        return False

    def _punish_saboteur(self, candidate: PlayerState) -> Optional[str]:
        had_immunity = self.abilities.redirects_gulag(candidate)
        confined = self.gulag.send_to_gulag(candidate.player_id, GulagReason.STALIN_DECREE, "Sabotage of the Plan")
        after = self.state.players.get(candidate.player_id)
        if after.is_eliminated:
            return "eliminated"
        if confined:
            return "sent to the Gulag"
        if had_immunity and TANK_GULAG_IMMUNITY in after.used_abilities:
            return "punished (redirected via Tank immunity)"
        return None

    # Hero of the Soviet Union

    def grant_hero(self, player_id: int) -> Optional[HeroAward]:
        """Decorate a comrade; while the award lasts only a unanimous tribunal can condemn them."""
        player = self._comrade(player_id)
        if player is None or self.state.players.stalin() is None:
            return None
        if self.state.is_hero(player_id):
            logger.debug("Player %s is already a Hero of the Soviet Union", player_id)
            return None

        self.state.heroes = [h for h in self.state.heroes if h.expires_at_round > self.state.round_number]
        rounds = self.state.config.hero_rounds
        award = HeroAward(
            player_id=player_id,
            granted_at_round=self.state.round_number,
            expires_at_round=self.state.round_number + rounds,
        )
        self.state.heroes.append(award)
        self.state.event_log.log(
            EventType.HERO,
            player_id,
            f"{player.name} has been declared a HERO OF THE SOVIET UNION! "
            f"Only a unanimous tribunal may condemn them for {rounds} rounds.",
            expires_at_round=award.expires_at_round,
        )
        return award
