from __future__ import annotations

import random
from collections import Counter
from collections.abc import Callable, Mapping

from biopath.api.models import CardInstance, GameState
from biopath.assets.registry import RING_SIZE, ReferenceData
from biopath.assets.rules import (
    DECK_SIZE,
    DIFFICULTY_TIERS,
    NEAR_STAGE_COUNT,
    PRODUCT_FAR_WEIGHT,
    PRODUCT_NEAR_WEIGHT,
    SATURATION_FLOOR,
    SATURATION_SLOPE,
    DifficultyTier,
)
from biopath.engine.scoring import round_half_up


CardMaker = Callable[[str], CardInstance]


def held_inventory(state: GameState) -> Counter[str]:
    """Count of each card id the player holds: hand plus everything staged on the ring."""

    inv: Counter[str] = Counter(c.card_id for c in state.hand)
    inv.update(c.card_id for c in state.all_staged())
    return inv


def difficulty_for_rotation(rotations: int) -> DifficultyTier:
    tier = DIFFICULTY_TIERS[0]
    for t in DIFFICULTY_TIERS:
        if rotations >= t.rotation:
            tier = t
    return tier


def saturation_multiplier(*, held: int, demand: int) -> float:
    if held <= 0:
        return 1.0
    return max(SATURATION_FLOOR, 1.0 - (held / max(demand, 1)) * SATURATION_SLOPE)


def build_deck_cards(
    *,
    ref: ReferenceData,
    current_stage: int,
    inventory: Mapping[str, int],
    tier: DifficultyTier,
    rng: random.Random,
    make_card: CardMaker,
    target_size: int = DECK_SIZE,
) -> list[CardInstance]:
    """Allocate the deck's cards in a fixed order, before shuffling.

    Products walk forward from the current stage (the next few weighted up),
    cofactors split the remaining budget by cycle demand, and a junk buffer of
    distant products / random cofactors scales with the difficulty tier.
    """

    deck: list[CardInstance] = []

    def add_cards(card_id: str, base_count: int) -> None:
        sat = saturation_multiplier(held=inventory.get(card_id, 0), demand=ref.demand_for(card_id))
        count = max(1, round_half_up(base_count * sat))
        deck.extend(make_card(card_id) for _ in range(count))

    for offset in range(RING_SIZE):
        stage = ref.stage((current_stage + offset) % RING_SIZE)
        weight = PRODUCT_NEAR_WEIGHT if offset < NEAR_STAGE_COUNT else PRODUCT_FAR_WEIGHT
        add_cards(stage.product_card, round_half_up(target_size * weight))

    cofactors = ref.cofactor_ids
    junk_count = round_half_up(target_size * tier.junk_rate)
    total_demand = sum(ref.demand_for(cf) for cf in cofactors)
    budget = (
        target_size
        - junk_count
        - RING_SIZE * round_half_up(target_size * PRODUCT_FAR_WEIGHT)
        - NEAR_STAGE_COUNT * round_half_up(target_size * (PRODUCT_NEAR_WEIGHT - PRODUCT_FAR_WEIGHT))
    )
    for cf in cofactors:
        share = ref.demand_for(cf) / total_demand
        add_cards(cf, max(1, round_half_up(budget * share)))

    for _ in range(junk_count):
        distant = ref.stage((current_stage + 4 + rng.randrange(4)) % RING_SIZE)
        if rng.random() < 0.5:
            deck.append(make_card(distant.product_card))
        else:
            deck.append(make_card(cofactors[rng.randrange(len(cofactors))]))

    return deck


def build_deck(
    *,
    ref: ReferenceData,
    current_stage: int,
    inventory: Mapping[str, int],
    tier: DifficultyTier,
    rng: random.Random,
    make_card: CardMaker,
    target_size: int = DECK_SIZE,
) -> list[CardInstance]:
    deck = build_deck_cards(
        ref=ref,
        current_stage=current_stage,
        inventory=inventory,
        tier=tier,
        rng=rng,
        make_card=make_card,
        target_size=target_size,
    )
    rng.shuffle(deck)
    return deck
