"""
Tests for the batch simulation runner.
"""

from creditopoly import EngineSettings
from creditopoly.agents import HeuristicAgent
from creditopoly.simulate import RandomAgent, create_agents, main, run_batch, run_single_game


def test_create_agents_by_role():
    agents = create_agents(["heuristic", "random", "heuristic"], seed=5)

    assert [type(a) for a in agents] == [HeuristicAgent, RandomAgent, HeuristicAgent]
    assert [a.player_id for a in agents] == [0, 1, 2]
    assert [a.name for a in agents] == ["Alice", "Bob", "Charlie"]


def test_run_single_game():
    settings = EngineSettings(_env_file=None)
    result = run_single_game(1, ["heuristic", "heuristic"], max_turns=30, seed=9, settings=settings)

    assert set(result) >= {"game_id", "seed", "turns", "rounds", "winner", "winner_name", "bankruptcies"}
    assert result["game_id"] == 1
    assert 1 < result["turns"] <= 31


def test_seeded_games_repeat():
    settings = EngineSettings(_env_file=None)
    first = run_single_game(1, ["heuristic", "random"], max_turns=40, seed=21, settings=settings)
    second = run_single_game(1, ["heuristic", "random"], max_turns=40, seed=21, settings=settings)

    for key in ("turns", "rounds", "winner", "bankruptcies"):
        assert first[key] == second[key]


def test_run_batch_orders_results():
    results = run_batch(3, ["heuristic", "heuristic"], max_turns=10, seed=1, verbose=False)

    assert [r["game_id"] for r in results] == [1, 2, 3]
    assert [r["seed"] for r in results] == [1, 2, 3]


def test_main(capsys):
    assert main(["-n", "1", "-t", "20", "--seed", "3"]) == 0
    assert "BATCH COMPLETE" in capsys.readouterr().out
