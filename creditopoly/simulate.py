#!/usr/bin/env python3
"""
Batch simulation of AI-only games.

Usage:
    # 10 games, 4 heuristic players, at most 300 turns each
    creditopoly-simulate --games 10 --players 4 --max-turns 300

    # Mix agents and fix the seeds for reproducible runs
    creditopoly-simulate -n 20 --roles heuristic,heuristic,random --seed 7

    # Run in parallel and turn a feature off for the whole batch
    CREDITOPOLY_ENABLE_BANK_LOANS=false creditopoly-simulate -n 50 -w 4
"""

import argparse
import logging
import random
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

from creditopoly.agents import Agent, HeuristicAgent
from creditopoly.analysis import summarize_games
from creditopoly.config import GameConfig
from creditopoly.game import GameState, create_game
from creditopoly.player import Player
from creditopoly.rules import apply_command, expected_actor, fallback_command, get_legal_commands
from creditopoly.settings import EngineSettings, get_engine_settings

logger = logging.getLogger(__name__)

PLAYER_NAMES = ["Alice", "Bob", "Charlie", "Diana", "Eve", "Frank", "Grace", "Hank"]
ROLES = ["heuristic", "random"]
MAX_COMMANDS_PER_TURN = 200


class RandomAgent(Agent):
    """Picks uniformly among the legal commands."""

    def __init__(self, player_id: int, name: str, seed: Optional[int] = None):
        super().__init__(player_id, name)
        self.rng = random.Random(seed)

    def choose_command(self, game, legal_commands):
        return self.rng.choice(legal_commands)


def create_agents(roles: List[str], seed: Optional[int] = None) -> List[Agent]:
    """Create one agent per seat from role names."""
    agents: List[Agent] = []
    for i, role in enumerate(roles):
        agent_seed = None if seed is None else seed + i
        if role == "random":
            agents.append(RandomAgent(i, PLAYER_NAMES[i], agent_seed))
        else:
            agents.append(HeuristicAgent(i, PLAYER_NAMES[i], agent_seed))
    return agents


def play_game(game: GameState, agents: List[Agent], max_turns: int) -> GameState:
    """
    Drive a game with agents until it ends or reaches `max_turns`.

    Every step asks the player the game is waiting on. A rejected command is
    replaced by the safe fallback so the game cannot stall.
    """
    commands_this_turn = 0
    last_turn = game.turn
    while not game.game_over and game.turn <= max_turns:
        actor = expected_actor(game)
        if actor is None:
            break
        if game.turn != last_turn:
            last_turn = game.turn
            commands_this_turn = 0
        commands_this_turn += 1

        legal = get_legal_commands(game, actor)
        command = None
        if legal and commands_this_turn <= MAX_COMMANDS_PER_TURN:
            command = agents[actor].choose_command(game, legal)
        if command is None or not apply_command(game, command, actor):
            fallback = fallback_command(game, actor)
            if fallback is None or not apply_command(game, fallback, actor):
                logger.warning(f"No command could advance the game for player {actor} in {game.phase.value}")
                break
    return game


def run_single_game(
    game_id: int,
    roles: List[str],
    max_turns: int,
    seed: Optional[int] = None,
    settings: Optional[EngineSettings] = None,
    verbose: bool = False,
) -> Dict[str, Any]:
    """Run a single game and return results."""
    players = [Player(PLAYER_NAMES[i], is_ai=True) for i in range(len(roles))]
    game = create_game(GameConfig(seed=seed), players, settings)
    agents = create_agents(roles, seed)

    start_time = time.time()
    play_game(game, agents, max_turns)
    elapsed = time.time() - start_time

    result = {
        "game_id": game_id,
        "seed": seed,
        "turns": game.turn,
        "rounds": game.rounds_completed,
        "winner": game.winner,
        "winner_name": game.players[game.winner].name if game.winner is not None else None,
        "bankruptcies": sum(1 for p in game.players.values() if p.is_bankrupt),
        "elapsed_seconds": round(elapsed, 2),
    }
    if verbose:
        winner_str = result["winner_name"] or "No winner"
        print(f"  Game {game_id}: {result['turns']} turns, Winner: {winner_str}, Time: {result['elapsed_seconds']}s")
    return result


def run_batch(
    num_games: int,
    roles: List[str],
    max_turns: int,
    seed: Optional[int] = None,
    workers: int = 1,
    verbose: bool = True,
) -> List[Dict[str, Any]]:
    """Run multiple games and return all results."""
    settings = get_engine_settings()
    configs = [
        {
            "game_id": i + 1,
            "roles": roles,
            "max_turns": max_turns,
            "seed": None if seed is None else seed + i,
            "settings": settings,
            "verbose": verbose and workers == 1,
        }
        for i in range(num_games)
    ]

    results: List[Dict[str, Any]] = []
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(run_single_game, **config): config for config in configs}
            for future in as_completed(futures):
                result = future.result()
                results.append(result)
                if verbose:
                    print(f"[{len(results)}/{num_games}] Game {result['game_id']}: {result['turns']} turns")
        results.sort(key=lambda r: r["game_id"])
    else:
        for config in configs:
            results.append(run_single_game(**config))
    return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run batches of AI-only Creditopoly games",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-n", "--games", type=int, default=5, help="Number of games to run (default: 5)")
    parser.add_argument(
        "-p", "--players", type=int, default=4, choices=range(2, 9), help="Number of players (default: 4)"
    )
    parser.add_argument("-t", "--max-turns", type=int, default=500, help="Maximum turns per game (default: 500)")
    parser.add_argument(
        "--roles",
        type=str,
        default=None,
        help="Comma-separated agent roles, e.g. 'heuristic,random' (overrides --players)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed of the first game; later games add 1")
    parser.add_argument("-w", "--workers", type=int, default=1, help="Parallel workers (default: 1)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.roles:
        roles = [r.strip() for r in args.roles.split(",") if r.strip()]
        unknown = [r for r in roles if r not in ROLES]
        if unknown:
            parser.error(f"unknown roles: {', '.join(unknown)} (choose from {', '.join(ROLES)})")
        if not 2 <= len(roles) <= 8:
            parser.error("between 2 and 8 roles are required")
    else:
        roles = ["heuristic"] * args.players

    print(f"\n{'=' * 60}")
    print("Creditopoly batch simulation")
    print(f"{'=' * 60}")
    print(f"Games: {args.games}  Players: {len(roles)}  Max turns: {args.max_turns}")
    print(f"Roles: {', '.join(roles)}")
    print(f"{'=' * 60}\n")

    start_time = time.time()
    results = run_batch(args.games, roles, args.max_turns, args.seed, args.workers)
    total_time = time.time() - start_time

    print(f"\n{'=' * 60}")
    print(f"BATCH COMPLETE in {total_time:.2f}s")
    print(f"{'=' * 60}")
    print(summarize_games(results).to_string())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
