"""
Economic rules as pure functions over a read-only game state.

Rent, monopoly and building checks, valuations, taxation and the
wealth-distribution metrics used by the market history.
"""

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from creditopoly import market
from creditopoly.spaces import PropertySpace, RailroadSpace, SpaceType, UtilitySpace

if TYPE_CHECKING:
    from creditopoly.game import GameState

JAIL_CARD_VALUE = 50
TEN_PERCENT = 0.10
CHAPTER_11_RENT_RATE = 0.5


def owned_positions(game: "GameState", player_id: int) -> List[int]:
    return sorted(pos for pos, state in game.property_states.items() if state.owner_id == player_id)


def has_monopoly(game: "GameState", player_id: Optional[int], color_group: Optional[str]) -> bool:
    """
    Owner holds every street of the color group.
    Mortgaged members count unless `mortgage_breaks_monopoly` is set.
    """
    if player_id is None or color_group is None:
        return False
    positions = game.board.get_group_positions(color_group)
    if not positions:
        return False
    for pos in positions:
        state = game.property_states[pos]
        if state.owner_id != player_id:
            return False
        if state.is_mortgaged and game.settings.mortgage_breaks_monopoly:
            return False
    return True


def monopolies(game: "GameState", player_id: int) -> List[str]:
    return [group for group in game.board.color_groups if has_monopoly(game, player_id, group)]


def count_owned(game: "GameState", player_id: int, positions: List[int]) -> int:
    return sum(1 for pos in positions if game.property_states[pos].owner_id == player_id)


def effective_value(game: "GameState", position: int) -> int:
    """Printed price scaled by the property's value multiplier when drift is enabled."""
    space = game.board.get_ownable_space(position)
    if space is None:
        return 0
    if not game.settings.enable_property_value_fluctuation:
        return space.price
    return int(round(space.price * game.property_states[position].value_multiplier))


def effective_mortgage_value(game: "GameState", position: int) -> int:
    space = game.board.get_ownable_space(position)
    if space is None:
        return 0
    if not game.settings.enable_property_value_fluctuation:
        return space.mortgage_value
    return int(round(space.mortgage_value * game.property_states[position].value_multiplier))


def unmortgage_cost(game: "GameState", position: int) -> int:
    """Mortgage value plus interest, rounded down."""
    return int(effective_mortgage_value(game, position) * (1 + game.config.mortgage_interest_rate))


def market_price(game: "GameState", position: int) -> int:
    """Effective value under the active economic events."""
    return int(round(effective_value(game, position) * market.price_modifier(game.economic_events)))


def building_cost(game: "GameState", position: int) -> int:
    space = game.board.get_property_space(position)
    if space is None:
        return 0
    return int(space.building_cost * market.building_cost_modifier(game.economic_events))


def building_refund(game: "GameState", position: int) -> int:
    """Buildings sell back to the bank at half their printed cost."""
    space = game.board.get_property_space(position)
    return space.building_cost // 2 if space else 0


def calculate_rent(game: "GameState", position: int, dice_total: Optional[int] = None) -> int:
    """
    Rent owed for landing on an owned space.

    Args:
        game: Current game state
        position: Space landed on
        dice_total: Dice total used to land (utilities), defaults to 7

    Returns:
        Rent after market modifiers; 0 for unowned or mortgaged spaces
    """
    space = game.board.get_ownable_space(position)
    if space is None:
        return 0
    state = game.property_states[position]
    if not state.is_owned() or state.is_mortgaged:
        return 0
    owner_id = state.owner_id

    if isinstance(space, PropertySpace):
        rent = space.get_rent(state.houses, state.hotel, has_monopoly(game, owner_id, space.color_group))
    elif isinstance(space, RailroadSpace):
        rent = space.get_rent(count_owned(game, owner_id, game.board.positions_of(SpaceType.RAILROAD)))
    elif isinstance(space, UtilitySpace):
        total = dice_total if dice_total is not None else 7
        if game.utility_multiplier_override is not None:
            rent = total * game.utility_multiplier_override
        else:
            rent = space.get_rent(total, count_owned(game, owner_id, game.board.positions_of(SpaceType.UTILITY)))
    else:
        return 0

    rent = int(rent * market.rent_modifier(game.economic_events))
    if game.settings.enable_property_value_fluctuation:
        rent = int(rent * state.value_multiplier)
    owner = game.players[owner_id]
    if owner.in_chapter_11:
        rent = int(rent * CHAPTER_11_RENT_RATE)
    return rent


def _group_states(game: "GameState", color_group: str):
    return [game.property_states[pos] for pos in game.board.get_group_positions(color_group)]


def can_build_house(game: "GameState", player_id: int, position: int) -> Tuple[bool, str]:
    """Monopoly, unmortgaged group, even build and supply checks for one house."""
    space = game.board.get_property_space(position)
    if space is None:
        return False, "Only streets can have buildings"
    state = game.property_states[position]
    if state.owner_id != player_id:
        return False, "You do not own this property"
    if not has_monopoly(game, player_id, space.color_group):
        return False, "You must own the whole color group to build"
    group = _group_states(game, space.color_group)
    if any(s.is_mortgaged for s in group):
        return False, "Cannot build while a group property is mortgaged"
    if state.hotel or state.houses >= 4:
        return False, "No room for another house"
    if state.houses > min(s.building_count() for s in group):
        return False, "You must build evenly across the color group"
    if game.settings.enable_housing_scarcity and not game.bank.has_supply(houses=1):
        return False, "No houses available"
    return True, ""


def can_build_hotel(game: "GameState", player_id: int, position: int) -> Tuple[bool, str]:
    space = game.board.get_property_space(position)
    if space is None:
        return False, "Only streets can have buildings"
    state = game.property_states[position]
    if state.owner_id != player_id:
        return False, "You do not own this property"
    if not has_monopoly(game, player_id, space.color_group):
        return False, "You must own the whole color group to build"
    if state.hotel:
        return False, "This property already has a hotel"
    if state.houses != 4:
        return False, "A hotel requires four houses"
    group = _group_states(game, space.color_group)
    if any(s.is_mortgaged for s in group):
        return False, "Cannot build while a group property is mortgaged"
    if any(not s.hotel and s.houses < 4 for s in group):
        return False, "Every property in the group needs four houses first"
    if game.settings.enable_housing_scarcity and not game.bank.has_supply(hotels=1):
        return False, "No hotels available"
    return True, ""


def can_sell_house(game: "GameState", player_id: int, position: int) -> Tuple[bool, str]:
    """Houses come off evenly: only from a property with the most buildings in its group."""
    space = game.board.get_property_space(position)
    if space is None:
        return False, "Only streets can have buildings"
    state = game.property_states[position]
    if state.owner_id != player_id:
        return False, "You do not own this property"
    if state.hotel or state.houses == 0:
        return False, "No house to sell"
    group = _group_states(game, space.color_group)
    if state.houses < max(s.building_count() for s in group):
        return False, "You must sell evenly across the color group"
    return True, ""


def _liquidation_value(game: "GameState", position: int) -> int:
    space = game.board.get_property_space(position)
    if space is None:
        return 0
    return (space.building_cost * game.property_states[position].building_count()) // 2


def calculate_net_worth(game: "GameState", player_id: int) -> int:
    """
    Net worth = cash
              + market price of each property (less mortgage value if mortgaged)
              + buildings at half cost (a hotel counts as five)
              + 50 per Get Out of Jail Free card
    """
    player = game.players[player_id]
    if player.is_bankrupt:
        return 0
    worth = player.cash
    for pos in owned_positions(game, player_id):
        state = game.property_states[pos]
        worth += market_price(game, pos)
        if state.is_mortgaged:
            worth -= effective_mortgage_value(game, pos)
        worth += _liquidation_value(game, pos)
    worth += player.get_out_of_jail_cards * JAIL_CARD_VALUE
    return int(round(worth))


def loan_net_worth(game: "GameState", player_id: int) -> int:
    """Collateral value the bank lends against, net of existing bank debt."""
    player = game.players[player_id]
    if player.is_bankrupt:
        return 0
    worth = player.cash
    for pos in owned_positions(game, player_id):
        state = game.property_states[pos]
        if not state.is_mortgaged:
            worth += effective_value(game, pos)
        worth += _liquidation_value(game, pos)
    return max(0, worth - player.total_debt)


def max_loan(game: "GameState", player_id: int) -> int:
    player = game.players[player_id]
    limit = int(loan_net_worth(game, player_id) * game.settings.max_loan_percent) - player.total_debt
    return max(0, limit)


def ten_percent_tax(game: "GameState", player_id: int) -> int:
    return int(calculate_net_worth(game, player_id) * TEN_PERCENT)


def optimal_tax_choice(game: "GameState", player_id: int) -> Tuple[str, int]:
    """The cheaper of the flat income tax and 10% of net worth."""
    flat = game.config.income_tax
    percentage = ten_percent_tax(game, player_id)
    if percentage < flat:
        return "percentage", percentage
    return "flat", flat


def calculate_go_salary(rounds_completed: int, base: int = 200, cap: int = 350) -> int:
    """Base salary plus 25 for every two completed rounds, capped."""
    return min(cap, base + 25 * (rounds_completed // 2))


def money_in_circulation(game: "GameState") -> int:
    return sum(p.cash for p in game.players.values() if not p.is_bankrupt)


def net_worth_ranking(game: "GameState") -> List[Dict[str, object]]:
    """Players by net worth, descending; ties share a rank."""
    rows = sorted(
        (
            {"player_id": pid, "name": p.name, "net_worth": calculate_net_worth(game, pid)}
            for pid, p in game.players.items()
        ),
        key=lambda row: row["net_worth"],
        reverse=True,
    )
    rank = 0
    previous = None
    for index, row in enumerate(rows):
        if row["net_worth"] != previous:
            rank = index + 1
            previous = row["net_worth"]
        row["rank"] = rank
    return rows


def gini_coefficient(game: "GameState") -> float:
    """Wealth inequality of the solvent players, 0 (equal) to 1."""
    worths = sorted(calculate_net_worth(game, pid) for pid, p in game.players.items() if not p.is_bankrupt)
    n = len(worths)
    total = sum(worths)
    if n <= 1 or total <= 0:
        return 0.0
    weighted = sum((2 * (i + 1) - n - 1) * w for i, w in enumerate(worths))
    return round(max(0.0, min(1.0, weighted / (n * total))), 4)
