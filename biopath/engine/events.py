from __future__ import annotations

import logging
import random

from biopath.api.models import GameState
from biopath.assets.rules import (
    COMBO_SHIELD_TURNS,
    ENDLESS_BATCH_SIZE,
    ENDLESS_LEAD,
    ENDLESS_WINDOW,
    FIRST_EVENT_TURN,
    MAX_TURNS,
    PEEK_SIZE,
    TURN_EVENT_COUNT,
    TURN_EVENT_IDS,
    TurnEventId,
)

logger = logging.getLogger(__name__)


WAVE_EVENTS = frozenset({TurnEventId.cofactor_wave, TurnEventId.product_wave})
# Events that suspend the turn until the player answers.
PROMPT_EVENTS = frozenset({TurnEventId.hand_refresh, TurnEventId.insight})


def schedule_turn_events(
    rng: random.Random,
    *,
    last_turn: int = MAX_TURNS,
    count: int = TURN_EVENT_COUNT,
) -> dict[int, TurnEventId]:
    """Pick `count` distinct turns in [4, last_turn - 2] and give each a random event."""

    turns = sorted(rng.sample(range(FIRST_EVENT_TURN, last_turn - 1), k=count))
    return {t: rng.choice(TURN_EVENT_IDS) for t in turns}


def extend_schedule(state: GameState, rng: random.Random) -> list[int]:
    """Add a batch of events over the next window of unscheduled turns (endless play)."""

    start = state.total_turns + 2
    available = [t for t in range(start, start + ENDLESS_WINDOW + 1) if t not in state.turn_events]
    chosen = rng.sample(available, k=min(ENDLESS_BATCH_SIZE, len(available)))
    for t in chosen:
        state.turn_events[t] = rng.choice(TURN_EVENT_IDS)
    logger.debug("scheduled %d endless events from turn %d", len(chosen), start)
    return sorted(chosen)


def maybe_extend_schedule(state: GameState, rng: random.Random) -> list[int]:
    if not state.endless:
        return []
    farthest = max(state.turn_events, default=0)
    if state.total_turns >= farthest - ENDLESS_LEAD:
        return extend_schedule(state, rng)
    return []


def apply_event(state: GameState, event_id: TurnEventId) -> None:
    """Apply an event's immediate effect. Wave events only take effect in the draft."""

    state.active_event = event_id

    if event_id == TurnEventId.enzyme_boost:
        state.enzyme_boost_active = True
    elif event_id == TurnEventId.combo_shield:
        state.combo_shield_turns = COMBO_SHIELD_TURNS
    elif event_id == TurnEventId.hand_refresh:
        state.pending_refresh = True
    elif event_id == TurnEventId.insight:
        # Topmost card first; the deck itself is not reordered.
        state.deck_peek = list(reversed(state.deck[-PEEK_SIZE:])) if state.deck else []
        state.peek_pending = True


def is_wave_active(state: GameState) -> bool:
    return state.active_event in WAVE_EVENTS
