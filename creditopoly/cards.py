"""
Chance and Community Chest cards.

A card carries a `CardEffect`: plain data describing what happens. The engine
interprets it in one place (`GameState.apply_card_effect`), so decks hold no
behaviour and can be inspected or serialized freely.
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class DeckType(Enum):
    CHANCE = "chance"
    COMMUNITY_CHEST = "community_chest"


@dataclass(frozen=True)
class CardEffect:
    """
    Effect descriptor.

    Movement fields are mutually exclusive: `advance_to` (absolute position),
    `move_steps` (relative, may be negative), `advance_to_nearest`
    ("railroad" or "utility") or `go_to_jail`.
    """

    cash_change: int = 0
    advance_to: Optional[int] = None
    move_steps: Optional[int] = None
    advance_to_nearest: Optional[str] = None
    go_to_jail: bool = False
    pass_go_bonus: bool = True  # Collect salary when an absolute move wraps past GO
    jail_free_card: bool = False
    per_house_cost: int = 0
    per_hotel_cost: int = 0
    collect_from_each: int = 0
    pay_to_each: int = 0
    utility_multiplier: Optional[int] = None
    jackpot_percentage: float = 0.0
    trigger_space_resolution: bool = False

    @property
    def moves_player(self) -> bool:
        return (
            self.advance_to is not None
            or self.move_steps is not None
            or self.advance_to_nearest is not None
        )


@dataclass(frozen=True)
class Card:
    """A Chance or Community Chest card."""

    card_id: int
    deck: DeckType
    text: str
    effect: CardEffect = field(default_factory=CardEffect)

    def __repr__(self) -> str:
        return f"Card({self.card_id}, '{self.text}')"


class Deck:
    """A cyclable deck: the top card is drawn and goes to the bottom."""

    def __init__(self, cards: List[Card], rng: random.Random):
        self.cards = list(cards)
        self.rng = rng
        self.rng.shuffle(self.cards)

    def draw(self) -> Card:
        card = self.cards.pop(0)
        self.cards.append(card)
        return card

    def peek(self) -> Card:
        return self.cards[0]

    def stack(self, card_id: int) -> None:
        """Move a card to the top of the deck."""
        for index, card in enumerate(self.cards):
            if card.card_id == card_id:
                self.cards.insert(0, self.cards.pop(index))
                return
        raise KeyError(card_id)

    def __len__(self) -> int:
        return len(self.cards)


def _chance(card_id: int, text: str, **effect) -> Card:
    return Card(card_id, DeckType.CHANCE, text, CardEffect(**effect))


def _chest(card_id: int, text: str, **effect) -> Card:
    return Card(card_id, DeckType.COMMUNITY_CHEST, text, CardEffect(**effect))


def chance_cards(include_jackpot: bool = False) -> List[Card]:
    cards = [
        _chance(1, "Advance to Go (Collect salary)", advance_to=0),
        _chance(2, "Advance to Illinois Avenue", advance_to=24, trigger_space_resolution=True),
        _chance(3, "Advance to St. Charles Place", advance_to=11, trigger_space_resolution=True),
        _chance(
            4,
            "Advance token to nearest Utility. If owned, pay owner 10x the dice roll.",
            advance_to_nearest="utility",
            utility_multiplier=10,
            trigger_space_resolution=True,
        ),
        _chance(5, "Advance to nearest Railroad", advance_to_nearest="railroad", trigger_space_resolution=True),
        _chance(6, "Bank pays you dividend of 50", cash_change=50),
        _chance(7, "Get out of Jail Free", jail_free_card=True),
        _chance(8, "Go Back 3 Spaces", move_steps=-3, trigger_space_resolution=True),
        _chance(9, "Go to Jail", go_to_jail=True),
        _chance(
            10,
            "Make general repairs on all your property: 25 per house, 100 per hotel",
            per_house_cost=25,
            per_hotel_cost=100,
        ),
        _chance(11, "Pay poor tax of 15", cash_change=-15),
        _chance(12, "Take a trip to Reading Railroad", advance_to=5, trigger_space_resolution=True),
        _chance(13, "Take a walk on the Boardwalk", advance_to=39, trigger_space_resolution=True),
        _chance(14, "You have been elected Chairman of the Board. Pay each player 50", pay_to_each=50),
        _chance(15, "Your building loan matures. Collect 150", cash_change=150),
        _chance(16, "You have won a crossword competition. Collect 100", cash_change=100),
    ]
    if include_jackpot:
        cards += [
            _chance(100, "Won the Lottery! Collect 10% of the Jackpot", jackpot_percentage=0.10),
            _chance(101, "Won the Lottery! Collect 25% of the Jackpot", jackpot_percentage=0.25),
            _chance(102, "Won the Lottery! Collect 50% of the Jackpot", jackpot_percentage=0.50),
        ]
    return cards


def community_chest_cards() -> List[Card]:
    return [
        _chest(17, "Advance to Go (Collect salary)", advance_to=0),
        _chest(18, "Bank error in your favor. Collect 200", cash_change=200),
        _chest(19, "Doctor's fee. Pay 50", cash_change=-50),
        _chest(20, "From sale of stock you get 50", cash_change=50),
        _chest(21, "Get out of Jail Free", jail_free_card=True),
        _chest(22, "Go to Jail", go_to_jail=True),
        _chest(23, "Grand Opera Night. Collect 50 from every player", collect_from_each=50),
        _chest(24, "Holiday Fund matures. Collect 100", cash_change=100),
        _chest(25, "Income tax refund. Collect 20", cash_change=20),
        _chest(26, "It is your birthday. Collect 10 from every player", collect_from_each=10),
        _chest(27, "Life insurance matures. Collect 100", cash_change=100),
        _chest(28, "Pay hospital fees of 100", cash_change=-100),
        _chest(29, "Pay school fees of 50", cash_change=-50),
        _chest(30, "Receive 25 consultancy fee", cash_change=25),
        _chest(
            31,
            "You are assessed for street repairs: 40 per house, 115 per hotel",
            per_house_cost=40,
            per_hotel_cost=115,
        ),
        _chest(32, "You have won second prize in a beauty contest. Collect 10", cash_change=10),
        _chest(33, "You inherit 100", cash_change=100),
    ]


def create_chance_deck(rng: random.Random, include_jackpot: bool = False) -> Deck:
    return Deck(chance_cards(include_jackpot), rng)


def create_community_chest_deck(rng: random.Random) -> Deck:
    return Deck(community_chest_cards(), rng)
