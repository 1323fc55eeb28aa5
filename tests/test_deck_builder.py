from __future__ import annotations

import random
from collections import Counter

from biopath.assets.registry import ReferenceData
from biopath.assets.rules import DIFFICULTY_TIERS
from biopath.engine.deck import build_deck, build_deck_cards, difficulty_for_rotation, saturation_multiplier


def _ids(cards) -> list[str]:
    return [c.card_id for c in cards]


def test_seeded_deck_is_reproducible(ref: ReferenceData, make_card) -> None:
    kwargs = dict(ref=ref, current_stage=0, inventory={}, tier=DIFFICULTY_TIERS[0], make_card=make_card)

    a = build_deck(rng=random.Random(42), **kwargs)
    b = build_deck(rng=random.Random(42), **kwargs)

    assert _ids(a) == _ids(b)
    # uids come from the maker, so every instance is distinct.
    assert len({c.uid for c in a + b}) == len(a) + len(b)


def test_next_stages_get_the_heavier_product_share(ref: ReferenceData, make_card) -> None:
    deck = build_deck_cards(
        ref=ref,
        current_stage=0,
        inventory={},
        tier=DIFFICULTY_TIERS[0],
        rng=random.Random(1),
        make_card=make_card,
    )
    counts = Counter(_ids(deck))

    # Products of stages 0..2 are near; junk only pulls from stages 4..7.
    assert counts["citrate"] == 5
    assert counts["isocitrate"] == 5
    assert counts["alpha-ketoglutarate"] == 5
    assert counts["succinyl-coa"] == 2
    # NAD+ is needed three times per cycle, so it gets the biggest cofactor share.
    assert counts["nad+"] >= 14
    assert counts["nad+"] > counts["fad"]


def test_held_cards_are_dampened_but_never_dropped(ref: ReferenceData, make_card) -> None:
    deck = build_deck_cards(
        ref=ref,
        current_stage=0,
        inventory={"citrate": 3},
        tier=DIFFICULTY_TIERS[0],
        rng=random.Random(1),
        make_card=make_card,
    )
    assert Counter(_ids(deck))["citrate"] == 1


def test_higher_tiers_add_junk(ref: ReferenceData, make_card) -> None:
    easy = build_deck_cards(
        ref=ref, current_stage=0, inventory={}, tier=DIFFICULTY_TIERS[0], rng=random.Random(3), make_card=make_card
    )
    hard = build_deck_cards(
        ref=ref, current_stage=0, inventory={}, tier=DIFFICULTY_TIERS[-1], rng=random.Random(3), make_card=make_card
    )
    assert len(hard) > len(easy)


def test_saturation_is_monotonic_with_floor() -> None:
    values = [saturation_multiplier(held=h, demand=3) for h in range(0, 20)]

    assert values[0] == 1.0
    assert all(a >= b for a, b in zip(values, values[1:]))
    assert min(values) == 0.15


def test_difficulty_tiers() -> None:
    assert difficulty_for_rotation(0).hand_limit == 5
    assert difficulty_for_rotation(5).junk_rate == 0.20
    assert difficulty_for_rotation(6).hand_limit == 4
    assert difficulty_for_rotation(11).hand_limit == 3
