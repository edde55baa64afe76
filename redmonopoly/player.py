"""
Player and property records.

Records are frozen; every change produces a whole new record through
``dataclasses.replace`` and is stored back into its registry.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class Rank(Enum):
    """Party standing, ordered from lowest to highest."""

    PROLETARIAT = "proletariat"
    PARTY_MEMBER = "partyMember"
    COMMISSAR = "commissar"
    INNER_CIRCLE = "innerCircle"

    @property
    def level(self) -> int:
        return RANK_ORDER.index(self)

    def promoted(self) -> "Rank":
        """Next rank up, clamped at the Inner Circle."""
        return RANK_ORDER[min(self.level + 1, len(RANK_ORDER) - 1)]

    def demoted(self) -> "Rank":
        """Next rank down, clamped at the Proletariat."""
        return RANK_ORDER[max(self.level - 1, 0)]

    def at_least(self, other: "Rank") -> bool:
        return self.level >= other.level


RANK_ORDER: Tuple[Rank, ...] = (
    Rank.PROLETARIAT,
    Rank.PARTY_MEMBER,
    Rank.COMMISSAR,
    Rank.INNER_CIRCLE,
)


class PieceType(Enum):
    """The eight playable pieces."""

    HAMMER = "hammer"
    SICKLE = "sickle"
    RED_STAR = "redStar"
    TANK = "tank"
    BREAD_LOAF = "breadLoaf"
    IRON_CURTAIN = "ironCurtain"
    VODKA_BOTTLE = "vodkaBottle"
    STATUE_OF_LENIN = "statueOfLenin"


class GulagReason(Enum):
    """Every way a player can be sent to the Gulag."""

    ENEMY_OF_STATE = "enemyOfState"
    THREE_DOUBLES = "threeDoubles"
    DENOUNCEMENT_GUILTY = "denouncementGuilty"
    DEBT_DEFAULT = "debtDefault"
    PILFERING_CAUGHT = "pilferingCaught"
    STALIN_DECREE = "stalinDecree"
    RAILWAY_CAPTURE = "railwayCapture"
    CAMP_LABOUR = "campLabour"
    VOUCHER_CONSEQUENCE = "voucherConsequence"

    @property
    def description(self) -> str:
        return GULAG_REASON_TEXT[self]


GULAG_REASON_TEXT = {
    GulagReason.ENEMY_OF_STATE: "Landed on Enemy of the State",
    GulagReason.THREE_DOUBLES: "Rolled three consecutive doubles",
    GulagReason.DENOUNCEMENT_GUILTY: "Found guilty in tribunal",
    GulagReason.DEBT_DEFAULT: "Failed to pay debt within one round",
    GulagReason.PILFERING_CAUGHT: "Caught stealing at STOY checkpoint",
    GulagReason.STALIN_DECREE: "Sent by Stalin",
    GulagReason.RAILWAY_CAPTURE: "Caught attempting to flee the motherland via railway",
    GulagReason.CAMP_LABOUR: "Sent for forced labour by Siberian Camp custodian",
    GulagReason.VOUCHER_CONSEQUENCE: "Voucher consequence - vouchee committed an offence",
}


class EliminationReason(Enum):
    """Why a player left the game."""

    BANKRUPTCY = "bankruptcy"
    EXECUTION = "execution"
    GULAG_TIMEOUT = "gulagTimeout"
    RANK_COLLAPSE = "rankCollapse"
    UNANIMOUS_VOTE = "unanimousVote"


@dataclass(frozen=True)
class Debt:
    """An unpaid obligation. ``creditor_id`` of None means the State."""

    debtor_id: int
    creditor_id: Optional[int]
    amount: int
    created_at_round: int
    reason: str


@dataclass(frozen=True)
class EliminationRecord:
    """Final standing captured when a player is eliminated."""

    reason: EliminationReason
    turn: int
    final_wealth: int
    final_rank: Rank
    final_property_count: int


@dataclass(frozen=True)
class PlayerState:
    """Complete state of a player in the game."""

    player_id: int
    name: str
    piece: Optional[PieceType] = None
    is_stalin: bool = False
    rank: Rank = Rank.PROLETARIAT
    rubles: int = 0
    position: int = 0
    properties: Tuple[int, ...] = ()
    in_gulag: bool = False
    gulag_turns: int = 0
    is_eliminated: bool = False
    elimination: Optional[EliminationRecord] = None
    used_abilities: FrozenSet[str] = field(default_factory=frozenset)
    debt: Optional[Debt] = None
    vouching_for: Optional[int] = None
    gulag_cards: int = 0
    under_suspicion: bool = False
    laps_completed: int = 0

    @property
    def is_active(self) -> bool:
        """Still playing: not eliminated and not the adjudicator."""
        return not self.is_eliminated and not self.is_stalin

    @property
    def is_free(self) -> bool:
        return self.is_active and not self.in_gulag

    def __repr__(self) -> str:
        return (
            f"PlayerState(id={self.player_id}, name='{self.name}', "
            f"rubles={self.rubles}, position={self.position}, rank={self.rank.value})"
        )


@dataclass(frozen=True)
class PropertyState:
    """Custodianship and improvement state of an ownable space."""

    space_id: int
    custodian_id: Optional[int] = None
    collectivization_level: int = 0
    mortgaged: bool = False

    def is_owned(self) -> bool:
        """Check if property has a custodian other than the State."""
        return self.custodian_id is not None


class Player:
    """
    Seat description used to set up a game.
    ``piece`` is None only for the adjudicator (Stalin).
    """

    def __init__(
        self,
        player_id: int,
        name: str,
        piece: Optional[PieceType] = None,
        is_stalin: bool = False,
    ):
        self.player_id = player_id
        self.name = name
        self.piece = piece
        self.is_stalin = is_stalin

    def __repr__(self) -> str:
        piece = self.piece.value if self.piece else "stalin"
        return f"Player(id={self.player_id}, name='{self.name}', piece={piece})"
