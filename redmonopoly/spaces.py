"""
Board space definitions and types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class SpaceType(Enum):
    """Types of spaces on the board."""

    STOY = "stoy"
    PROPERTY = "property"
    RAILWAY = "railway"
    UTILITY = "utility"
    TAX = "tax"
    PARTY_DIRECTIVE = "party_directive"
    COMMUNIST_TEST = "communist_test"
    GULAG = "gulag"
    BREADLINE = "breadline"
    ENEMY_OF_STATE = "enemy_of_state"


class PropertyGroup(Enum):
    """Property districts. Custodian of a whole district earns the group bonus."""

    SIBERIAN = "siberian"
    COLLECTIVE = "collective"
    INDUSTRIAL = "industrial"
    MINISTRY = "ministry"
    MILITARY = "military"
    MEDIA = "media"
    ELITE = "elite"
    KREMLIN = "kremlin"


# Quota multiplier per collectivization level (0-5)
COLLECTIVIZATION_MULTIPLIERS: Tuple[int, ...] = (1, 3, 9, 15, 20, 30)

COLLECTIVIZATION_LEVEL_NAMES: Tuple[str, ...] = (
    "Uncollectivized",
    "Worker's Committee",
    "Party Oversight",
    "Full Collectivization",
    "Model Soviet",
    "People's Palace",
)

MAX_COLLECTIVIZATION_LEVEL = len(COLLECTIVIZATION_MULTIPLIERS) - 1

# Railway fee by number of stations controlled (1-4)
RAILWAY_FEES: Tuple[int, ...] = (50, 100, 150, 200)


@dataclass
class Space:
    """Base class for a board space."""

    name: str
    position: int
    space_type: SpaceType

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', position={self.position})"


@dataclass
class StoySpace(Space):
    """STOY, the start space and travel-tax checkpoint."""

    def __init__(self, position: int = 0):
        super().__init__("STOY", position, SpaceType.STOY)


@dataclass
class PropertySpace(Space):
    """A property whose custodian collects quotas and may collectivize it."""

    group: PropertyGroup
    base_quota: int
    base_cost: int

    def __init__(self, name: str, position: int, group: PropertyGroup, base_quota: int, base_cost: int):
        super().__init__(name, position, SpaceType.PROPERTY)
        self.group = group
        self.base_quota = base_quota
        self.base_cost = base_cost

    @property
    def mortgage_value(self) -> int:
        return self.base_cost // 2

    def get_quota(self, collectivization_level: int, has_complete_group: bool) -> int:
        """
        Quota before piece and rank modifiers.

        The complete-group bonus only applies to an uncollectivized property;
        it never stacks with a collectivization multiplier.

        Args:
            collectivization_level: Improvement level (0-5)
            has_complete_group: Whether the custodian controls every property in the group

        Returns:
            Quota amount
        """
        if collectivization_level == 0:
            return self.base_quota * 2 if has_complete_group else self.base_quota
        return self.base_quota * COLLECTIVIZATION_MULTIPLIERS[collectivization_level]


@dataclass
class RailwaySpace(Space):
    """A railway station."""

    base_cost: int

    def __init__(self, name: str, position: int, base_cost: int = 200):
        super().__init__(name, position, SpaceType.RAILWAY)
        self.base_cost = base_cost

    @property
    def mortgage_value(self) -> int:
        return self.base_cost // 2

    def get_fee(self, stations_owned: int) -> int:
        """Calculate fee based on number of stations controlled by the custodian."""
        if stations_owned <= 0:
            return 0
        return RAILWAY_FEES[min(stations_owned, len(RAILWAY_FEES)) - 1]


@dataclass
class UtilitySpace(Space):
    """A means-of-production utility."""

    base_cost: int

    def __init__(self, name: str, position: int, base_cost: int = 150):
        super().__init__(name, position, SpaceType.UTILITY)
        self.base_cost = base_cost

    @property
    def mortgage_value(self) -> int:
        return self.base_cost // 2

    def get_fee(self, dice_total: int, utilities_owned: int) -> int:
        """Calculate fee based on dice roll and number of utilities controlled."""
        multiplier = 10 if utilities_owned >= 2 else 4
        return dice_total * multiplier


@dataclass
class TaxSpace(Space):
    """
    A tax space.

    ``has_choice`` lets the payer pick a share of their wealth instead of the
    flat amount; ``penalizes_wealthiest`` doubles the amount and demotes the
    wealthiest active player.
    """

    amount: int
    has_choice: bool = False
    penalizes_wealthiest: bool = False

    def __init__(
        self,
        name: str,
        position: int,
        amount: int,
        has_choice: bool = False,
        penalizes_wealthiest: bool = False,
    ):
        super().__init__(name, position, SpaceType.TAX)
        self.amount = amount
        self.has_choice = has_choice
        self.penalizes_wealthiest = penalizes_wealthiest


@dataclass
class PartyDirectiveSpace(Space):
    """A Party Directive card space."""

    def __init__(self, position: int):
        super().__init__("Party Directive", position, SpaceType.PARTY_DIRECTIVE)


@dataclass
class CommunistTestSpace(Space):
    """A Communist Test card space."""

    def __init__(self, position: int):
        super().__init__("Communist Test", position, SpaceType.COMMUNIST_TEST)


@dataclass
class GulagSpace(Space):
    """The Gulag. Landing here is only a visit."""

    def __init__(self, position: int = 10):
        super().__init__("The Gulag", position, SpaceType.GULAG)


@dataclass
class BreadlineSpace(Space):
    """The Breadline, where every comrade contributes to the lander."""

    def __init__(self, position: int = 20):
        super().__init__("Breadline", position, SpaceType.BREADLINE)


@dataclass
class EnemyOfStateSpace(Space):
    """Enemy of the State: go directly to the Gulag."""

    def __init__(self, position: int = 30):
        super().__init__("Enemy of the State", position, SpaceType.ENEMY_OF_STATE)
