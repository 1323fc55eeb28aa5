from __future__ import annotations

import random

from biopath.api.models import CardInstance, GameState
from biopath.assets.registry import CardKind, ReferenceData
from biopath.assets.rules import DRAFT_SIZE, TurnEventId
from biopath.engine.deck import CardMaker
from biopath.engine.draw import recycle_discard
from biopath.engine.events import is_wave_active


def _clear_draft(state: GameState) -> None:
    state.draft_choices = []
    state.draft_pending = False


def start_draft(state: GameState, *, ref: ReferenceData, rng: random.Random, make_card: CardMaker) -> bool:
    """Offer the turn's draft. Returns False when no draft happens (full hand / no cards)."""

    if len(state.hand) >= state.hand_limit:
        _clear_draft(state)
        return False
    if not state.deck and state.discard:
        recycle_discard(state, rng)
    if not state.deck:
        _clear_draft(state)
        return False

    if is_wave_active(state):
        kind = CardKind.cofactor if state.active_event == TurnEventId.cofactor_wave else CardKind.product
        pool = ref.ids_of_kind(kind)
        # Fabricated cards: they never come from (or go back to) the deck.
        state.draft_choices = [make_card(pool[rng.randrange(len(pool))]) for _ in range(DRAFT_SIZE)]
    else:
        count = min(DRAFT_SIZE, len(state.deck))
        state.draft_choices = [state.deck.pop() for _ in range(count)]

    state.draft_pending = True
    return True


def pick_draft(state: GameState, index: int) -> CardInstance | None:
    if not state.draft_pending or not (0 <= index < len(state.draft_choices)):
        return None

    picked = state.draft_choices[index]
    state.hand.append(picked)

    if not is_wave_active(state):
        rest = [c for i, c in enumerate(state.draft_choices) if i != index]
        # Bottom of the deck; the earlier choice stays nearer the top.
        state.deck[:0] = list(reversed(rest))

    _clear_draft(state)
    return picked
