"""
Tests for the pandas views of games and batches.
"""

from creditopoly import GamePhase, analysis


def test_events_frame(basic_game, rig_dice):
    rig_dice(basic_game, (2, 3))
    basic_game.roll_dice()

    frame = analysis.events_frame(basic_game)

    assert {"turn", "event_type", "player_id"} <= set(frame.columns)
    assert "game_start" in frame["event_type"].values
    assert (frame["event_type"] == "dice_roll").sum() == 1


def test_market_history_frame(basic_game):
    assert analysis.market_history_frame(basic_game).empty

    for _ in range(2):
        basic_game.phase = GamePhase.RESOLVING_SPACE
        basic_game.end_turn()

    frame = analysis.market_history_frame(basic_game)
    assert list(frame.index) == [1]
    assert frame.loc[1, "go_salary"] == 200
    assert frame.loc[1, "gini"] == 0.0
    assert frame.loc[1, "money_in_circulation"] == 3000


def test_standings_frame(three_player_game, give):
    give(three_player_game, 2, 39)
    three_player_game.players[1].cash = 1000

    frame = analysis.standings_frame(three_player_game)

    assert list(frame.index) == [2, 0, 1]
    assert list(frame["rank"]) == [1, 2, 3]
    assert frame.loc[2, "properties"] == 1
    assert frame.loc[2, "net_worth"] == 1900


def test_money_flow_frame(basic_game):
    basic_game.take_loan(0, 200)
    basic_game.players[0].position = 38
    basic_game.resolve_space(0)

    frame = analysis.money_flow_frame(basic_game)

    assert frame.loc["loan", "injected"] == 200
    assert frame.loc["loan", "collected"] == 0
    assert frame.loc["tax", "collected"] == 100


def test_summarize_games():
    results = [
        {"game_id": 1, "winner_name": "Alice", "turns": 100},
        {"game_id": 2, "winner_name": "Alice", "turns": 200},
        {"game_id": 3, "winner_name": None, "turns": 500},
        {"game_id": 4, "winner_name": "Bob", "turns": 50},
    ]

    summary = analysis.summarize_games(results)

    assert summary.index[0] == "Alice"
    assert summary.loc["Alice", "wins"] == 2
    assert summary.loc["Alice", "win_rate"] == 0.5
    assert summary.loc["Alice", "avg_turns"] == 150
    assert summary.loc["No winner", "wins"] == 1


def test_summarize_no_games():
    assert analysis.summarize_games([]).empty
