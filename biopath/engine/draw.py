from __future__ import annotations

import random

from biopath.api.models import CardInstance, GameState
from biopath.assets.registry import ReferenceData
from biopath.assets.rules import DRAW_SEARCH_DEPTH
from biopath.engine.deck import held_inventory


def recycle_discard(state: GameState, rng: random.Random) -> None:
    """Shuffle the whole discard pile into the deck."""

    state.deck = [*state.discard]
    state.discard = []
    rng.shuffle(state.deck)


def draw_card(state: GameState, *, ref: ReferenceData, rng: random.Random) -> CardInstance | None:
    """Move one card from the deck into the hand.

    Looks a few cards deep from the top and takes the one the player is least
    saturated on (held / cycle demand); ties keep the topmost. Returns None when
    there is nothing left to draw anywhere.
    """

    if not state.deck:
        if not state.discard:
            return None
        recycle_discard(state, rng)

    inv = held_inventory(state)
    top = len(state.deck) - 1
    depth = min(DRAW_SEARCH_DEPTH, len(state.deck))

    best_idx = top
    best_ratio = float("inf")
    for i in range(top, top - depth, -1):
        card_id = state.deck[i].card_id
        ratio = inv.get(card_id, 0) / ref.demand_for(card_id)
        if ratio < best_ratio:
            best_ratio = ratio
            best_idx = i

    drawn = state.deck.pop(best_idx)
    state.hand.append(drawn)
    return drawn


def draw_cards(state: GameState, n: int, *, ref: ReferenceData, rng: random.Random) -> list[CardInstance]:
    out: list[CardInstance] = []
    for _ in range(n):
        card = draw_card(state, ref=ref, rng=rng)
        if card is None:
            break
        out.append(card)
    return out
