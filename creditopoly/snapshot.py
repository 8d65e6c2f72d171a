"""
Snapshot serialization of GameState.

`serialize_snapshot` produces a plain, JSON-ready dict of the public game
state (deck order stays hidden). `viewer_snapshot` is the same view as seen
by one player, with opponents' wealth or holdings masked when the engine
settings ask for it.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from creditopoly import economics
from creditopoly.spaces import PropertySpace

if TYPE_CHECKING:
    from creditopoly.game import GameState


def _serialize_properties(game: GameState, positions) -> List[Dict[str, Any]]:
    props: List[Dict[str, Any]] = []
    for pos in sorted(positions):
        space = game.board.get_space(pos)
        state = game.property_states[pos]
        entry: Dict[str, Any] = {
            "position": pos,
            "name": space.name,
            "houses": state.houses,
            "hotel": state.hotel,
            "mortgaged": state.is_mortgaged,
            "insured": state.insured,
            "value_multiplier": state.value_multiplier,
        }
        if isinstance(space, PropertySpace):
            entry["color_group"] = space.color_group
        props.append(entry)
    return props


def _serialize_trade(game: GameState) -> Optional[Dict[str, Any]]:
    trade = game.trade
    if trade is None:
        return None

    def offer_dict(offer):
        return {
            "from_player": offer.from_player,
            "to_player": offer.to_player,
            "cash_offered": offer.cash_offered,
            "cash_requested": offer.cash_requested,
            "properties_offered": sorted(offer.properties_offered),
            "properties_requested": sorted(offer.properties_requested),
            "jail_cards_offered": offer.jail_cards_offered,
            "jail_cards_requested": offer.jail_cards_requested,
        }

    return {
        "status": trade.status.value,
        "offer": offer_dict(trade.offer),
        "counter_offer": offer_dict(trade.counter_offer) if trade.counter_offer else None,
        "awaiting_player": trade.awaiting_player,
    }


def serialize_snapshot(game: GameState) -> Dict[str, Any]:
    """Serialize a GameState into a public, stable JSON dict.

    The snapshot includes:
    - phase, turn, round and current player
    - players with cash, position, jail status, debts and properties
    - bank supply, money ledger and jackpot
    - the open auction, trade and pending decisions (if any)
    - active economic events and deck sizes (never their order)
    """
    players: List[Dict[str, Any]] = []
    for pid, pstate in sorted(game.players.items()):
        players.append(
            {
                "player_id": pid,
                "name": pstate.name,
                "token": pstate.token,
                "is_ai": pstate.is_ai,
                "cash": pstate.cash,
                "net_worth": economics.calculate_net_worth(game, pid),
                "position": pstate.position,
                "in_jail": pstate.in_jail,
                "jail_turns": pstate.jail_turns,
                "jail_cards": pstate.get_out_of_jail_cards,
                "is_bankrupt": pstate.is_bankrupt,
                "properties": _serialize_properties(game, pstate.properties),
                "loans": [
                    {"loan_id": loan.loan_id, "amount": loan.amount, "total_owed": loan.total_owed}
                    for loan in pstate.loans
                ],
                "total_debt": pstate.total_debt,
                "ious_payable": [
                    {"iou_id": iou.iou_id, "creditor_id": iou.creditor_id, "amount": iou.current_amount}
                    for iou in pstate.ious_payable
                ],
                "ious_receivable": [
                    {"iou_id": iou.iou_id, "debtor_id": iou.debtor_id, "amount": iou.current_amount}
                    for iou in pstate.ious_receivable
                ],
                "chapter_11": (
                    {
                        "turns_remaining": pstate.chapter_11_turns_remaining,
                        "debt_target": pstate.chapter_11_debt_target,
                    }
                    if pstate.in_chapter_11
                    else None
                ),
            }
        )

    auction = None
    if game.auction is not None:
        a = game.auction
        auction = {
            "property_position": a.property_position,
            "property_name": a.property_name,
            "current_bid": a.current_bid,
            "high_bidder": a.high_bidder,
            "active_bidder": a.active_bidder_id,
            "remaining_bidders": a.remaining_bidders,
            "minimum_bid": a.minimum_bid(),
        }

    negotiation = None
    if game.pending_rent_negotiation is not None:
        n = game.pending_rent_negotiation
        negotiation = {
            "debtor_id": n.debtor_id,
            "creditor_id": n.creditor_id,
            "property_position": n.property_position,
            "rent_amount": n.rent_amount,
            "status": n.status.value,
            "proposed_iou": (
                {
                    "partial_payment": n.proposed_iou.partial_payment,
                    "iou_amount": n.proposed_iou.iou_amount,
                    "interest_rate": n.proposed_iou.interest_rate,
                }
                if n.proposed_iou
                else None
            ),
        }

    pending_bankruptcy = None
    if game.pending_bankruptcy is not None:
        b = game.pending_bankruptcy
        pending_bankruptcy = {"player_id": b.player_id, "creditor_id": b.creditor_id, "debt_amount": b.debt_amount}

    pending_tax = None
    if game.pending_tax_decision is not None:
        t = game.pending_tax_decision
        pending_tax = {"player_id": t.player_id, "flat": t.flat_amount, "percentage": t.percentage_amount}

    snapshot: Dict[str, Any] = {
        "phase": game.phase.value,
        "turn": game.turn,
        "rounds_completed": game.rounds_completed,
        "current_player_id": game.current_player_index,
        "dice": list(game.dice) if game.dice else None,
        "go_salary": game.current_go_salary,
        "winner": game.winner,
        "players": players,
        "bank": {
            "houses_available": game.bank.houses_available,
            "hotels_available": game.bank.hotels_available,
            "injected": game.bank.injected,
            "collected": game.bank.collected,
        },
        "jackpot": game.jackpot,
        "auction": auction,
        "trade": _serialize_trade(game),
        "rent_negotiation": negotiation,
        "pending_bankruptcy": pending_bankruptcy,
        "pending_tax_decision": pending_tax,
        "economic_events": [
            {"event": e.event_type.value, "description": e.description, "rounds_remaining": e.rounds_remaining}
            for e in game.economic_events
        ],
        "last_card": game.last_card_drawn.text if game.last_card_drawn else None,
        "decks": {
            "chance": {"cards_remaining": len(game.chance_deck)},
            "community_chest": {"cards_remaining": len(game.community_chest_deck)},
        },
    }

    return snapshot


def viewer_snapshot(game: GameState, viewer_id: int) -> Dict[str, Any]:
    """The public snapshot as one player sees it, honouring the hide settings."""
    snapshot = copy.deepcopy(serialize_snapshot(game))
    settings = game.settings
    for entry in snapshot["players"]:
        if entry["player_id"] == viewer_id:
            continue
        if settings.hide_opponent_wealth:
            entry["cash"] = None
            entry["net_worth"] = None
            entry["loans"] = []
            entry["total_debt"] = None
        if settings.hide_opponent_properties:
            entry["properties"] = []
    return snapshot
