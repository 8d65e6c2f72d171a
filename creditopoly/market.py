"""
Economic events and property value drift.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from creditopoly.player import PropertyState

MIN_VALUE_MULTIPLIER = 0.5
MAX_VALUE_MULTIPLIER = 2.0


class EconomicEventType(Enum):
    RECESSION = "recession"
    HOUSING_BOOM = "housing_boom"
    TAX_HOLIDAY = "tax_holiday"
    MARKET_CRASH = "market_crash"
    BULL_MARKET = "bull_market"
    BANKING_CRISIS = "banking_crisis"
    ECONOMIC_STIMULUS = "economic_stimulus"


@dataclass(frozen=True)
class EventTemplate:
    event_type: EconomicEventType
    description: str
    duration: int
    weight: int


EVENT_TEMPLATES: Dict[EconomicEventType, EventTemplate] = {
    t.event_type: t
    for t in (
        EventTemplate(EconomicEventType.RECESSION, "Recession: rents fall 25%", 3, 15),
        EventTemplate(EconomicEventType.HOUSING_BOOM, "Housing boom: building costs rise 50%", 2, 15),
        EventTemplate(EconomicEventType.TAX_HOLIDAY, "Tax holiday: no income tax", 2, 10),
        EventTemplate(EconomicEventType.MARKET_CRASH, "Market crash: property values fall 20%", 3, 10),
        EventTemplate(EconomicEventType.BULL_MARKET, "Bull market: rents and values rise 20%", 3, 15),
        EventTemplate(EconomicEventType.BANKING_CRISIS, "Banking crisis: loan interest doubles", 2, 10),
        EventTemplate(EconomicEventType.ECONOMIC_STIMULUS, "Economic stimulus: everyone receives 100", 0, 25),
    )
}

STIMULUS_AMOUNT = 100


@dataclass
class ActiveEvent:
    """An economic event in force for a number of rounds."""

    event_type: EconomicEventType
    description: str
    rounds_remaining: int


def pick_event(rng: random.Random) -> EventTemplate:
    """Weighted draw from the event table."""
    templates = list(EVENT_TEMPLATES.values())
    return rng.choices(templates, weights=[t.weight for t in templates], k=1)[0]


def is_active(events: Iterable[ActiveEvent], event_type: EconomicEventType) -> bool:
    return any(e.event_type == event_type for e in events)


def activate(events: List[ActiveEvent], template: EventTemplate) -> Optional[ActiveEvent]:
    """
    Put a timed event into force, extending it if it is already running.
    Immediate events (duration 0) are not stored and return None.
    """
    if template.duration <= 0:
        return None
    for event in events:
        if event.event_type == template.event_type:
            event.rounds_remaining += template.duration
            return event
    event = ActiveEvent(template.event_type, template.description, template.duration)
    events.append(event)
    return event


def tick(events: List[ActiveEvent]) -> List[ActiveEvent]:
    """Count down one round. Returns the events that ended."""
    ended = []
    for event in events:
        event.rounds_remaining -= 1
        if event.rounds_remaining <= 0:
            ended.append(event)
    events[:] = [e for e in events if e.rounds_remaining > 0]
    return ended


def rent_modifier(events: Iterable[ActiveEvent]) -> float:
    """A recession overrides a bull market; they never stack."""
    active = {event.event_type for event in events}
    if EconomicEventType.RECESSION in active:
        return 0.75
    if EconomicEventType.BULL_MARKET in active:
        return 1.2
    return 1.0


def price_modifier(events: Iterable[ActiveEvent]) -> float:
    modifier = 1.0
    for event in events:
        if event.event_type == EconomicEventType.MARKET_CRASH:
            modifier *= 0.8
        elif event.event_type == EconomicEventType.BULL_MARKET:
            modifier *= 1.2
    return modifier


def building_cost_modifier(events: Iterable[ActiveEvent]) -> float:
    return 1.5 if is_active(events, EconomicEventType.HOUSING_BOOM) else 1.0


def loan_interest_modifier(events: Iterable[ActiveEvent]) -> float:
    return 2.0 if is_active(events, EconomicEventType.BANKING_CRISIS) else 1.0


def _clamp(value: float) -> float:
    return round(min(MAX_VALUE_MULTIPLIER, max(MIN_VALUE_MULTIPLIER, value)), 2)


def appreciate(states: Iterable[PropertyState], rate: float) -> None:
    for state in states:
        state.value_multiplier = _clamp(state.value_multiplier + rate)


def depreciate(states: Iterable[PropertyState], rate: float = 0.05) -> None:
    for state in states:
        state.value_multiplier = _clamp(state.value_multiplier - rate)
