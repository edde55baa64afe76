"""
Piece ability policy.

Every piece-specific rule lives in ``PIECE_ABILITIES``. Other services ask
``AbilityPolicy`` questions about a player and never compare piece types
themselves.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional

from redmonopoly.player import GulagReason, PieceType, PlayerState, Rank
from redmonopoly.spaces import PropertyGroup
from redmonopoly.state import GameState, WitnessSide

logger = logging.getLogger(__name__)


class AbilityScope(Enum):
    """How long a used ability stays used."""

    ONE_TIME = "one_time"
    PER_LAP = "per_lap"
    PER_ROUND = "per_round"


# Keys stored in PlayerState.used_abilities
TANK_GULAG_IMMUNITY = "tank_gulag_immunity"
TANK_REQUISITION = "tank_requisition"
SICKLE_HARVEST = "sickle_harvest"
IRON_CURTAIN_DISAPPEAR = "iron_curtain_disappear"
LENIN_SPEECH = "lenin_speech"

# Property-group powers, granted by custodianship rather than by piece
CAMP_LABOUR = "camp_labour"
KGB_PREVIEW = "kgb_preview"
MINISTRY_REWRITE = "ministry_rewrite"
PRAVDA_REVOTE = "pravda_revote"

# Stalin's decrees
GREAT_PURGE = "great_purge"

ABILITY_SCOPES: Dict[str, AbilityScope] = {
    TANK_GULAG_IMMUNITY: AbilityScope.ONE_TIME,
    TANK_REQUISITION: AbilityScope.PER_LAP,
    SICKLE_HARVEST: AbilityScope.ONE_TIME,
    IRON_CURTAIN_DISAPPEAR: AbilityScope.ONE_TIME,
    LENIN_SPEECH: AbilityScope.ONE_TIME,
    CAMP_LABOUR: AbilityScope.ONE_TIME,
    KGB_PREVIEW: AbilityScope.PER_ROUND,
    MINISTRY_REWRITE: AbilityScope.ONE_TIME,
    PRAVDA_REVOTE: AbilityScope.ONE_TIME,
    GREAT_PURGE: AbilityScope.ONE_TIME,
}

ABILITY_LABELS: Dict[str, str] = {
    TANK_GULAG_IMMUNITY: "Gulag immunity",
    TANK_REQUISITION: "Requisition",
    SICKLE_HARVEST: "Harvest",
    IRON_CURTAIN_DISAPPEAR: "Disappear",
    LENIN_SPEECH: "Inspiring speech",
    CAMP_LABOUR: "Camp labour",
    KGB_PREVIEW: "Test preview",
    MINISTRY_REWRITE: "Rewrite history",
    PRAVDA_REVOTE: "Propaganda re-vote",
    GREAT_PURGE: "Great Purge",
}

TANK_REQUISITION_AMOUNT = 50
SICKLE_HARVEST_MAX_COST = 150
LENIN_SPEECH_AMOUNT = 100


@dataclass(frozen=True)
class PieceAbilities:
    """Rule overrides for one piece."""

    name: str
    summary: str = ""
    starting_rank: Rank = Rank.PROLETARIAT
    stoy_bonus: int = 0
    quota_modifiers: Mapping[PropertyGroup, float] = field(default_factory=dict)
    blocked_gulag_reasons: FrozenSet[GulagReason] = frozenset()
    redirects_first_gulag: bool = False
    excluded_groups: FrozenSet[PropertyGroup] = frozenset()
    forced_witness_side: Optional[WitnessSide] = None
    eliminated_at_lowest_rank: bool = False
    protected_from_lower_ranks: bool = False
    wealth_cap: Optional[int] = None
    starving_threshold: Optional[int] = None
    pays_others_debts: bool = False
    dice_count: int = 2
    abilities: FrozenSet[str] = frozenset()


NO_ABILITIES = PieceAbilities(name="None")

PIECE_ABILITIES: Dict[PieceType, PieceAbilities] = {
    PieceType.HAMMER: PieceAbilities(
        name="Hammer",
        summary="+50 at STOY; immune to player-initiated Gulag; must testify for the accuser",
        stoy_bonus=50,
        blocked_gulag_reasons=frozenset(
            {GulagReason.DENOUNCEMENT_GUILTY, GulagReason.THREE_DOUBLES}
        ),
        forced_witness_side=WitnessSide.FOR_ACCUSER,
    ),
    PieceType.SICKLE: PieceAbilities(
        name="Sickle",
        summary="Pays half quota on Collective Farms; may harvest one cheap property",
        quota_modifiers={PropertyGroup.COLLECTIVE: 0.5},
        abilities=frozenset({SICKLE_HARVEST}),
    ),
    PieceType.RED_STAR: PieceAbilities(
        name="Red Star",
        summary="Starts as Party Member; executed on falling to Proletariat",
        starting_rank=Rank.PARTY_MEMBER,
        eliminated_at_lowest_rank=True,
    ),
    PieceType.TANK: PieceAbilities(
        name="Tank",
        summary="Evades the first Gulag sentence; requisitions once per lap; no Collective Farms",
        redirects_first_gulag=True,
        excluded_groups=frozenset({PropertyGroup.COLLECTIVE}),
        abilities=frozenset({TANK_GULAG_IMMUNITY, TANK_REQUISITION}),
    ),
    PieceType.BREAD_LOAF: PieceAbilities(
        name="Bread Loaf",
        summary="Holds at most 1000 rubles; starving below 100; may settle others' debts",
        wealth_cap=1000,
        starving_threshold=100,
        pays_others_debts=True,
    ),
    PieceType.IRON_CURTAIN: PieceAbilities(
        name="Iron Curtain",
        summary="May make one property disappear back to the State",
        abilities=frozenset({IRON_CURTAIN_DISAPPEAR}),
    ),
    PieceType.VODKA_BOTTLE: PieceAbilities(
        name="Vodka Bottle",
        summary="Rolls three dice and keeps the best two",
        dice_count=3,
    ),
    PieceType.STATUE_OF_LENIN: PieceAbilities(
        name="Statue of Lenin",
        summary="Cannot be denounced by lower ranks; one inspiring speech",
        protected_from_lower_ranks=True,
        abilities=frozenset({LENIN_SPEECH}),
    ),
}


def abilities_for(piece: Optional[PieceType]) -> PieceAbilities:
    """Look up the overrides for a piece; Stalin has none."""
    if piece is None:
        return NO_ABILITIES
    return PIECE_ABILITIES[piece]


class AbilityPolicy:
    """Answers rule questions about players from the piece ability table."""

    def __init__(self, state: GameState):
        self.state = state

    def for_player(self, player_id: int) -> PieceAbilities:
        player = self.state.players.get(player_id)
        if player is None:
            return NO_ABILITIES
        return abilities_for(player.piece)

    # Passive modifiers

    def quota_multiplier(self, player: Optional[PlayerState], group: PropertyGroup) -> float:
        if player is None:
            return 1.0
        return abilities_for(player.piece).quota_modifiers.get(group, 1.0)

    def stoy_bonus(self, player: PlayerState) -> int:
        return abilities_for(player.piece).stoy_bonus

    def dice_count(self, player: PlayerState) -> int:
        return abilities_for(player.piece).dice_count

    def is_protected_from(self, accused: PlayerState, accuser: PlayerState) -> bool:
        """Whether ``accused`` cannot be denounced by ``accuser`` because of rank."""
        if not abilities_for(accused.piece).protected_from_lower_ranks:
            return False
        return accuser.rank.level < accused.rank.level

    # Gulag interception

    def blocks_gulag(self, player: PlayerState, reason: GulagReason) -> bool:
        return reason in abilities_for(player.piece).blocked_gulag_reasons

    def redirects_gulag(self, player: PlayerState) -> bool:
        """Whether this sentence is redirected to a station instead."""
        if not abilities_for(player.piece).redirects_first_gulag:
            return False
        return TANK_GULAG_IMMUNITY not in player.used_abilities

    # Restrictions

    def can_own_group(self, player: PlayerState, group: Optional[PropertyGroup]) -> bool:
        if group is None:
            return True
        return group not in abilities_for(player.piece).excluded_groups

    def forced_witness_side(self, player: PlayerState) -> Optional[WitnessSide]:
        return abilities_for(player.piece).forced_witness_side

    def eliminated_at_rank(self, player: PlayerState, rank: Rank) -> bool:
        return abilities_for(player.piece).eliminated_at_lowest_rank and rank == Rank.PROLETARIAT

    def wealth_cap(self, player: PlayerState) -> Optional[int]:
        return abilities_for(player.piece).wealth_cap

    def is_starving(self, player: PlayerState) -> bool:
        threshold = abilities_for(player.piece).starving_threshold
        return threshold is not None and player.rubles < threshold

    def can_pay_others_debts(self, player: PlayerState) -> bool:
        return abilities_for(player.piece).pays_others_debts

    # Active abilities

    def has_ability(self, player: PlayerState, key: str) -> bool:
        return key in abilities_for(player.piece).abilities

    def is_available(self, player: PlayerState, key: str) -> bool:
        """Player owns the ability and has not used it in its current scope."""
        return self.has_ability(player, key) and key not in player.used_abilities

    def mark_used(self, player_id: int, key: str) -> None:
        player = self.state.players.get(player_id)
        if player is None:
            return
        self.state.players.update(player_id, used_abilities=player.used_abilities | {key})
        logger.debug("Player %s used ability %s", player_id, key)

    def reset_scope(self, player_id: int, scope: AbilityScope) -> None:
        """Forget every used ability of ``scope`` for a player."""
        player = self.state.players.get(player_id)
        if player is None:
            return
        kept = frozenset(k for k in player.used_abilities if ABILITY_SCOPES.get(k) != scope)
        if kept != player.used_abilities:
            self.state.players.update(player_id, used_abilities=kept)

    # Derived views

    def ability_status(self, player_id: int) -> str:
        """
        Human-readable status of a player's piece abilities, e.g.
        ``"Tank: Gulag immunity available, Requisition used"``.
        """
        player = self.state.players.get(player_id)
        if player is None:
            return ""
        if player.is_stalin:
            return "Stalin: supreme adjudicator"

        table = abilities_for(player.piece)
        parts: List[str] = []
        for key in sorted(table.abilities):
            state = "used" if key in player.used_abilities else "available"
            parts.append(f"{ABILITY_LABELS[key]} {state}")
        if self.is_starving(player):
            parts.append("starving")
        if not parts:
            return f"{table.name}: {table.summary}"
        return f"{table.name}: " + ", ".join(parts)
