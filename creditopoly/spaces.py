"""
Board space definitions and types.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class SpaceType(Enum):
    """Types of spaces on the board."""

    GO = "go"
    PROPERTY = "property"
    RAILROAD = "railroad"
    UTILITY = "utility"
    TAX = "tax"
    CHANCE = "chance"
    COMMUNITY_CHEST = "community_chest"
    JAIL = "jail"
    GO_TO_JAIL = "go_to_jail"
    FREE_PARKING = "free_parking"


OWNABLE_TYPES = (SpaceType.PROPERTY, SpaceType.RAILROAD, SpaceType.UTILITY)


@dataclass
class Space:
    """Base class for a board space."""

    name: str
    position: int
    space_type: SpaceType

    @property
    def is_ownable(self) -> bool:
        return self.space_type in OWNABLE_TYPES

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', position={self.position})"


@dataclass(repr=False)
class OwnableSpace(Space):
    """A space that can be bought, mortgaged and insured."""

    price: int
    mortgage_value: int
    color_group: Optional[str] = None


@dataclass(repr=False)
class PropertySpace(OwnableSpace):
    """A street in a color group that can carry houses and a hotel."""

    rents: Tuple[int, ...] = ()
    building_cost: int = 0

    def __init__(
        self,
        name: str,
        position: int,
        color_group: str,
        price: int,
        rents: Tuple[int, int, int, int, int, int],
        building_cost: int,
        mortgage_value: int,
    ):
        super().__init__(name, position, SpaceType.PROPERTY, price, mortgage_value, color_group)
        self.rents = tuple(rents)
        self.building_cost = building_cost

    @property
    def base_rent(self) -> int:
        return self.rents[0]

    def get_rent(self, houses: int, hotel: bool, has_monopoly: bool) -> int:
        """
        Rent from the printed table.

        Args:
            houses: Number of houses (0-4)
            hotel: Whether a hotel stands on the property
            has_monopoly: Whether the owner holds the whole color group

        Returns:
            Rent amount before market modifiers
        """
        if hotel:
            return self.rents[5]
        if houses > 0:
            return self.rents[houses]
        return self.base_rent * 2 if has_monopoly else self.base_rent


@dataclass(repr=False)
class RailroadSpace(OwnableSpace):
    """A railroad space."""

    def __init__(self, name: str, position: int, price: int = 200, mortgage_value: int = 100):
        super().__init__(name, position, SpaceType.RAILROAD, price, mortgage_value)

    def get_rent(self, railroads_owned: int) -> int:
        """Rent doubles for each additional railroad: 25, 50, 100, 200."""
        if railroads_owned <= 0:
            return 0
        return 25 * (2 ** (railroads_owned - 1))


@dataclass(repr=False)
class UtilitySpace(OwnableSpace):
    """A utility space."""

    def __init__(self, name: str, position: int, price: int = 150, mortgage_value: int = 75):
        super().__init__(name, position, SpaceType.UTILITY, price, mortgage_value)

    def get_rent(self, dice_total: int, utilities_owned: int) -> int:
        """Dice total times 4 with one utility, times 10 with both."""
        multiplier = 10 if utilities_owned >= 2 else 4
        return dice_total * multiplier


@dataclass(repr=False)
class TaxSpace(Space):
    """A tax space."""

    amount: int = 0

    def __init__(self, name: str, position: int, amount: int):
        super().__init__(name, position, SpaceType.TAX)
        self.amount = amount

    @property
    def is_income_tax(self) -> bool:
        return self.name == "Income Tax"


def plain_space(name: str, position: int, space_type: SpaceType) -> Space:
    """GO, Jail, Free Parking, Go To Jail and card spaces carry no data."""
    return Space(name, position, space_type)
