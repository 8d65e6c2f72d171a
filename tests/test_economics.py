"""
Tests for net worth, taxation, GO salary and wealth metrics.
"""

from creditopoly import EngineSettings, GameConfig, GamePhase, Player, create_game
from creditopoly import economics
from creditopoly.money import EventType


def test_net_worth_counts_holdings(basic_game, give):
    """Cash + property value - mortgage + buildings at half cost + jail cards."""
    give(basic_game, 0, 1, 3, 39)
    basic_game.property_states[1].houses = 2
    basic_game.property_states[39].is_mortgaged = True
    basic_game.players[0].get_out_of_jail_cards = 1

    expected = 1500 + 60 + 60 + (400 - 200) + 50 + 50
    assert economics.calculate_net_worth(basic_game, 0) == expected


def test_bankrupt_net_worth_is_zero(basic_game):
    basic_game.players[1].is_bankrupt = True
    assert economics.calculate_net_worth(basic_game, 1) == 0


def test_go_salary_schedule():
    assert economics.calculate_go_salary(0) == 200
    assert economics.calculate_go_salary(1) == 200
    assert economics.calculate_go_salary(2) == 225
    assert economics.calculate_go_salary(9) == 300
    assert economics.calculate_go_salary(40) == 350


def test_optimal_tax_choice(basic_game):
    assert economics.optimal_tax_choice(basic_game, 0) == ("percentage", 150)
    basic_game.players[0].cash = 5000
    assert economics.optimal_tax_choice(basic_game, 0) == ("flat", 200)


def test_income_tax_decision_for_people(basic_game):
    basic_game.players[0].position = 4

    basic_game.resolve_space(0)

    assert basic_game.phase == GamePhase.AWAITING_TAX_DECISION
    assert basic_game.pending_tax_decision.flat_amount == 200
    assert basic_game.pending_tax_decision.percentage_amount == 150
    assert basic_game.choose_tax_option(0, "bribe") is False

    assert basic_game.choose_tax_option(0, "percentage")

    assert basic_game.players[0].cash == 1350
    assert basic_game.pending_tax_decision is None
    assert basic_game.phase == GamePhase.RESOLVING_SPACE
    assert basic_game.event_log.get_events(EventType.TAX_DECISION)


def test_ai_pays_cheaper_tax_automatically(settings):
    game = create_game(GameConfig(seed=42), [Player("Bot", is_ai=True), Player("Bob")], settings)
    game.players[0].position = 4

    game.resolve_space(0)

    assert game.phase != GamePhase.AWAITING_TAX_DECISION
    assert game.players[0].cash == 1350


def test_flat_income_tax_without_progressive_option(game_config, two_players):
    game = create_game(game_config, two_players, EngineSettings(_env_file=None, enable_progressive_tax=False))
    game.players[0].position = 4
    game.resolve_space(0)
    assert game.players[0].cash == 1300


def test_luxury_tax(basic_game):
    basic_game.players[0].position = 38
    basic_game.resolve_space(0)
    assert basic_game.players[0].cash == 1400
    assert basic_game.bank.sinks["tax"] == 100


def test_gini_coefficient(basic_game):
    assert economics.gini_coefficient(basic_game) == 0.0

    basic_game.players[0].cash = 0
    basic_game.players[1].cash = 3000
    assert economics.gini_coefficient(basic_game) == 0.5


def test_ranking_shares_rank_on_ties(three_player_game):
    three_player_game.players[2].cash = 2000

    ranking = economics.net_worth_ranking(three_player_game)

    assert [row["player_id"] for row in ranking] == [2, 0, 1]
    assert [row["rank"] for row in ranking] == [1, 2, 2]


def test_money_in_circulation_ignores_bankrupt(three_player_game):
    three_player_game.players[2].is_bankrupt = True
    assert economics.money_in_circulation(three_player_game) == 3000


def test_monopolies(basic_game, give):
    give(basic_game, 0, 1, 3, 37)
    assert economics.monopolies(basic_game, 0) == ["brown"]
    assert economics.has_monopoly(basic_game, 0, "dark_blue") is False
    assert economics.has_monopoly(basic_game, 0, None) is False
