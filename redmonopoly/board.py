from typing import Dict, List, Optional, Union

from redmonopoly.spaces import (
    Space,
    SpaceType,
    PropertyGroup,
    StoySpace,
    PropertySpace,
    RailwaySpace,
    UtilitySpace,
    TaxSpace,
    PartyDirectiveSpace,
    CommunistTestSpace,
    GulagSpace,
    BreadlineSpace,
    EnemyOfStateSpace,
)

BOARD_SIZE = 40
STOY_POSITION = 0
GULAG_POSITION = 10
BREADLINE_POSITION = 20
ENEMY_OF_STATE_POSITION = 30

OwnableSpace = Union[PropertySpace, RailwaySpace, UtilitySpace]


class Board:
    """The 40-space board of the Soviet Union."""

    def __init__(self):
        self.spaces: List[Space] = self._create_standard_board()
        self.groups: Dict[PropertyGroup, List[int]] = self._build_groups()

    def _create_standard_board(self) -> List[Space]:
        """Create the standard 40-space board."""
        return [
            # Bottom row (0-10)
            StoySpace(0),
            PropertySpace("Camp Vorkuta", 1, PropertyGroup.SIBERIAN, 2, 60),
            CommunistTestSpace(2),
            PropertySpace("Camp Kolyma", 3, PropertyGroup.SIBERIAN, 4, 60),
            TaxSpace("Revolutionary Contribution", 4, 200, has_choice=True),
            RailwaySpace("Moscow Station", 5),
            PropertySpace("Kolkhoz Sunrise", 6, PropertyGroup.COLLECTIVE, 6, 100),
            PartyDirectiveSpace(7),
            PropertySpace("Kolkhoz Progress", 8, PropertyGroup.COLLECTIVE, 6, 100),
            PropertySpace("Kolkhoz Victory", 9, PropertyGroup.COLLECTIVE, 8, 120),
            GulagSpace(10),
            # Left side (11-20)
            PropertySpace("Tractor Factory #47", 11, PropertyGroup.INDUSTRIAL, 10, 140),
            UtilitySpace("State Electricity Board", 12),
            PropertySpace("Steel Mill Molotov", 13, PropertyGroup.INDUSTRIAL, 10, 140),
            PropertySpace("Munitions Plant Kalashnikov", 14, PropertyGroup.INDUSTRIAL, 12, 160),
            RailwaySpace("Novosibirsk Station", 15),
            PropertySpace("Ministry of Truth", 16, PropertyGroup.MINISTRY, 14, 180),
            CommunistTestSpace(17),
            PropertySpace("Ministry of Plenty", 18, PropertyGroup.MINISTRY, 14, 180),
            PropertySpace("Ministry of Love", 19, PropertyGroup.MINISTRY, 16, 200),
            BreadlineSpace(20),
            # Top row (21-30)
            PropertySpace("Red Army Barracks", 21, PropertyGroup.MILITARY, 18, 220),
            PartyDirectiveSpace(22),
            PropertySpace("KGB Headquarters", 23, PropertyGroup.MILITARY, 18, 220),
            PropertySpace("Nuclear Bunker Arzamas-16", 24, PropertyGroup.MILITARY, 20, 240),
            RailwaySpace("Irkutsk Station", 25),
            PropertySpace("Pravda Printing Press", 26, PropertyGroup.MEDIA, 22, 260),
            PropertySpace("Radio Moscow", 27, PropertyGroup.MEDIA, 22, 260),
            UtilitySpace("People's Water Collective", 28),
            PropertySpace("State Television Center", 29, PropertyGroup.MEDIA, 22, 280),
            EnemyOfStateSpace(30),
            # Right side (31-39)
            PropertySpace("Politburo Apartments", 31, PropertyGroup.ELITE, 26, 300),
            PropertySpace("Dachas of the Nomenklatura", 32, PropertyGroup.ELITE, 26, 300),
            CommunistTestSpace(33),
            PropertySpace("The Lubyanka", 34, PropertyGroup.ELITE, 28, 320),
            RailwaySpace("Vladivostok Station", 35),
            PartyDirectiveSpace(36),
            PropertySpace("Lenin's Mausoleum", 37, PropertyGroup.KREMLIN, 35, 350),
            TaxSpace("Bourgeois Decadence Tax", 38, 100, penalizes_wealthiest=True),
            PropertySpace("Stalin's Private Office", 39, PropertyGroup.KREMLIN, 50, 400),
        ]

    def _build_groups(self) -> Dict[PropertyGroup, List[int]]:
        """Build a mapping of property groups to positions."""
        groups: Dict[PropertyGroup, List[int]] = {}
        for space in self.spaces:
            if isinstance(space, PropertySpace):
                groups.setdefault(space.group, []).append(space.position)
        return groups

    def get_space(self, position: int) -> Space:
        """Get the space at the given position."""
        return self.spaces[position % BOARD_SIZE]

    def get_property_space(self, position: int) -> Optional[PropertySpace]:
        """Get a property space, or None if not a property."""
        space = self.get_space(position)
        return space if isinstance(space, PropertySpace) else None

    def get_ownable_space(self, position: int) -> Optional[OwnableSpace]:
        """Get a property, railway or utility space, or None."""
        space = self.get_space(position)
        if isinstance(space, (PropertySpace, RailwaySpace, UtilitySpace)):
            return space
        return None

    def is_ownable(self, position: int) -> bool:
        return self.get_ownable_space(position) is not None

    def get_group(self, group: PropertyGroup) -> List[int]:
        """Get all property positions in a group."""
        return self.groups.get(group, [])

    def get_all_railways(self) -> List[int]:
        """Get positions of all railway stations."""
        return [s.position for s in self.spaces if s.space_type == SpaceType.RAILWAY]

    def get_all_utilities(self) -> List[int]:
        """Get positions of all utility spaces."""
        return [s.position for s in self.spaces if s.space_type == SpaceType.UTILITY]

    def get_ownable_positions(self) -> List[int]:
        return [s.position for s in self.spaces if self.is_ownable(s.position)]

    def find_nearest_railway(self, position: int) -> int:
        """
        Find the station with the smallest absolute distance from a position.
        Distance is measured along the board index, not around the loop;
        ties go to the lower station.
        """
        railways = self.get_all_railways()
        return min(railways, key=lambda station: (abs(position - station), station))

    def base_cost(self, position: int) -> int:
        space = self.get_ownable_space(position)
        return space.base_cost if space is not None else 0
