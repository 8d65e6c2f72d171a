"""
The 40-space board.
"""

from typing import Dict, List, Optional

from creditopoly.spaces import (
    OwnableSpace,
    PropertySpace,
    RailroadSpace,
    Space,
    SpaceType,
    TaxSpace,
    UtilitySpace,
    plain_space,
)

BOARD_SIZE = 40
JAIL_POSITION = 10


class Board:
    """The game board with 40 spaces."""

    def __init__(self):
        self.spaces: List[Space] = self._create_standard_board()
        self.color_groups: Dict[str, List[int]] = self._build_color_groups()

    def _create_standard_board(self) -> List[Space]:
        """Create the standard board, rent tables as (base, 1-4 houses, hotel)."""
        return [
            # Bottom row (0-10)
            plain_space("GO", 0, SpaceType.GO),
            PropertySpace("Mediterranean Avenue", 1, "brown", 60, (2, 10, 30, 90, 160, 250), 50, 30),
            plain_space("Community Chest", 2, SpaceType.COMMUNITY_CHEST),
            PropertySpace("Baltic Avenue", 3, "brown", 60, (4, 20, 60, 180, 320, 450), 50, 30),
            TaxSpace("Income Tax", 4, 200),
            RailroadSpace("Reading Railroad", 5),
            PropertySpace("Oriental Avenue", 6, "light_blue", 100, (6, 30, 90, 270, 400, 550), 50, 50),
            plain_space("Chance", 7, SpaceType.CHANCE),
            PropertySpace("Vermont Avenue", 8, "light_blue", 100, (6, 30, 90, 270, 400, 550), 50, 50),
            PropertySpace("Connecticut Avenue", 9, "light_blue", 120, (8, 40, 100, 300, 450, 600), 50, 60),
            plain_space("Jail / Just Visiting", 10, SpaceType.JAIL),
            # Left side (11-20)
            PropertySpace("St. Charles Place", 11, "pink", 140, (10, 50, 150, 450, 625, 750), 100, 70),
            UtilitySpace("Electric Company", 12),
            PropertySpace("States Avenue", 13, "pink", 140, (10, 50, 150, 450, 625, 750), 100, 70),
            PropertySpace("Virginia Avenue", 14, "pink", 160, (12, 60, 180, 500, 700, 900), 100, 80),
            RailroadSpace("Pennsylvania Railroad", 15),
            PropertySpace("St. James Place", 16, "orange", 180, (14, 70, 200, 550, 750, 950), 100, 90),
            plain_space("Community Chest", 17, SpaceType.COMMUNITY_CHEST),
            PropertySpace("Tennessee Avenue", 18, "orange", 180, (14, 70, 200, 550, 750, 950), 100, 90),
            PropertySpace("New York Avenue", 19, "orange", 200, (16, 80, 220, 600, 800, 1000), 100, 100),
            plain_space("Free Parking", 20, SpaceType.FREE_PARKING),
            # Top row (21-30)
            PropertySpace("Kentucky Avenue", 21, "red", 220, (18, 90, 250, 700, 875, 1050), 150, 110),
            plain_space("Chance", 22, SpaceType.CHANCE),
            PropertySpace("Indiana Avenue", 23, "red", 220, (18, 90, 250, 700, 875, 1050), 150, 110),
            PropertySpace("Illinois Avenue", 24, "red", 240, (20, 100, 300, 750, 925, 1100), 150, 120),
            RailroadSpace("B. & O. Railroad", 25),
            PropertySpace("Atlantic Avenue", 26, "yellow", 260, (22, 110, 330, 800, 975, 1150), 150, 130),
            PropertySpace("Ventnor Avenue", 27, "yellow", 260, (22, 110, 330, 800, 975, 1150), 150, 130),
            UtilitySpace("Water Works", 28),
            PropertySpace("Marvin Gardens", 29, "yellow", 280, (24, 120, 360, 850, 1025, 1200), 150, 140),
            plain_space("Go To Jail", 30, SpaceType.GO_TO_JAIL),
            # Right side (31-39)
            PropertySpace("Pacific Avenue", 31, "green", 300, (26, 130, 390, 900, 1100, 1275), 200, 150),
            PropertySpace("North Carolina Avenue", 32, "green", 300, (26, 130, 390, 900, 1100, 1275), 200, 150),
            plain_space("Community Chest", 33, SpaceType.COMMUNITY_CHEST),
            PropertySpace("Pennsylvania Avenue", 34, "green", 320, (28, 150, 450, 1000, 1200, 1400), 200, 160),
            RailroadSpace("Short Line", 35),
            plain_space("Chance", 36, SpaceType.CHANCE),
            PropertySpace("Park Place", 37, "dark_blue", 350, (35, 175, 500, 1100, 1300, 1500), 200, 175),
            TaxSpace("Luxury Tax", 38, 100),
            PropertySpace("Boardwalk", 39, "dark_blue", 400, (50, 200, 600, 1400, 1700, 2000), 200, 200),
        ]

    def _build_color_groups(self) -> Dict[str, List[int]]:
        """Build a mapping of color groups to property positions."""
        groups: Dict[str, List[int]] = {}
        for space in self.spaces:
            if isinstance(space, PropertySpace):
                groups.setdefault(space.color_group, []).append(space.position)
        return groups

    def get_space(self, position: int) -> Space:
        return self.spaces[position % BOARD_SIZE]

    def get_ownable_space(self, position: int) -> Optional[OwnableSpace]:
        """Get a purchasable space, or None if the position cannot be owned."""
        if not 0 <= position < BOARD_SIZE:
            return None
        space = self.spaces[position]
        return space if isinstance(space, OwnableSpace) else None

    def get_property_space(self, position: int) -> Optional[PropertySpace]:
        """Get a buildable street, or None."""
        if not 0 <= position < BOARD_SIZE:
            return None
        space = self.spaces[position]
        return space if isinstance(space, PropertySpace) else None

    def get_ownable_positions(self) -> List[int]:
        return [s.position for s in self.spaces if isinstance(s, OwnableSpace)]

    def positions_of(self, space_type: SpaceType) -> List[int]:
        return [s.position for s in self.spaces if s.space_type == space_type]

    def get_group_positions(self, color_group: Optional[str]) -> List[int]:
        if color_group is None:
            return []
        return list(self.color_groups.get(color_group, []))

    def nearest_ahead(self, space_type: SpaceType, position: int) -> int:
        """First space of the type ahead of the position, wrapping past GO."""
        positions = self.positions_of(space_type)
        return next((p for p in positions if p > position), positions[0])
