"""
Tabular views of finished (or running) games.

Everything here returns pandas DataFrames so simulations can be compared
and aggregated with the usual groupby/describe tooling.
"""

import logging
from typing import Any, Dict, List

import pandas as pd

from creditopoly import economics
from creditopoly.game import GameState

logger = logging.getLogger(__name__)


def events_frame(game: GameState) -> pd.DataFrame:
    """One row per logged game event; event details are flattened into columns."""
    rows: List[Dict[str, Any]] = []
    for event in game.event_log.events:
        row = {"turn": event.turn, "event_type": event.event_type.value, "player_id": event.player_id}
        row.update(event.details)
        rows.append(row)
    return pd.DataFrame(rows) if rows else pd.DataFrame(columns=["turn", "event_type", "player_id"])


def market_history_frame(game: GameState) -> pd.DataFrame:
    """Per-round GO salary, Gini coefficient and money in circulation."""
    if not game.market_history:
        return pd.DataFrame(columns=["round", "go_salary", "gini", "money_in_circulation"])
    return pd.DataFrame(game.market_history).set_index("round")


def standings_frame(game: GameState) -> pd.DataFrame:
    """Players ranked by net worth with their cash, debts and holdings."""
    ranking = pd.DataFrame(economics.net_worth_ranking(game))
    details = pd.DataFrame(
        [
            {
                "player_id": pid,
                "cash": player.cash,
                "properties": len(player.properties),
                "monopolies": len(economics.monopolies(game, pid)),
                "bank_debt": player.total_debt,
                "iou_debt": player.iou_debt,
                "is_bankrupt": player.is_bankrupt,
            }
            for pid, player in sorted(game.players.items())
        ]
    )
    if ranking.empty:
        return details.set_index("player_id")
    frame = details.merge(ranking[["player_id", "net_worth", "rank"]], on="player_id", how="left")
    return frame.sort_values(["rank", "player_id"], na_position="last").set_index("player_id")


def money_flow_frame(game: GameState) -> pd.DataFrame:
    """Money created and destroyed by the bank, by reason."""
    injected = pd.Series(dict(game.bank.injections), name="injected", dtype="int64")
    collected = pd.Series(dict(game.bank.sinks), name="collected", dtype="int64")
    frame = pd.concat([injected, collected], axis=1).fillna(0).astype("int64")
    frame.index.name = "reason"
    return frame.sort_index()


def summarize_games(results: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Aggregate batch results (as produced by the simulation runner).

    Returns one row per winner name with the number of wins, the share of
    games won and the mean game length of those games.
    """
    if not results:
        return pd.DataFrame(columns=["wins", "win_rate", "avg_turns"])
    frame = pd.DataFrame(results)
    frame["winner_name"] = frame["winner_name"].fillna("No winner")
    summary = frame.groupby("winner_name").agg(wins=("game_id", "count"), avg_turns=("turns", "mean"))
    summary["win_rate"] = summary["wins"] / len(frame)
    logger.debug(f"Summarized {len(frame)} games")
    return summary[["wins", "win_rate", "avg_turns"]].sort_values("wins", ascending=False)
