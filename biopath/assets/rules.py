from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


DECK_SIZE = 60
BASE_HAND_LIMIT = 5
MAX_TURNS = 80

# Per-card share of the deck for products close to / far from the current stage.
PRODUCT_NEAR_WEIGHT = 0.08
PRODUCT_FAR_WEIGHT = 0.04
NEAR_STAGE_COUNT = 3
BASE_JUNK_RATE = 0.08

SATURATION_FLOOR = 0.15
SATURATION_SLOPE = 0.65

DRAW_SEARCH_DEPTH = 5
DRAFT_SIZE = 4
PEEK_SIZE = 8
REFRESH_DRAW_COUNT = 5
COMBO_SHIELD_TURNS = 3

STALL_LIMIT = 2
STALL_DECAY = 0.5
MIN_MULTIPLIER = 1.0


@dataclass(frozen=True, slots=True)
class DifficultyTier:
    rotation: int
    junk_rate: float
    hand_limit: int


DIFFICULTY_TIERS: tuple[DifficultyTier, ...] = (
    DifficultyTier(rotation=0, junk_rate=BASE_JUNK_RATE, hand_limit=BASE_HAND_LIMIT),
    DifficultyTier(rotation=4, junk_rate=0.20, hand_limit=5),
    DifficultyTier(rotation=6, junk_rate=0.25, hand_limit=4),
    DifficultyTier(rotation=8, junk_rate=0.25, hand_limit=4),
    DifficultyTier(rotation=10, junk_rate=0.30, hand_limit=3),
)

# (min combo, multiplier), ascending.
MULTIPLIER_LADDER: tuple[tuple[int, float], ...] = (
    (0, 1.0),
    (3, 1.5),
    (6, 2.0),
    (9, 2.5),
    (12, 3.0),
)


class TurnEventId(StrEnum):
    enzyme_boost = "enzyme_boost"
    cofactor_wave = "cofactor_wave"
    product_wave = "product_wave"
    combo_shield = "combo_shield"
    hand_refresh = "hand_refresh"
    insight = "insight"


@dataclass(frozen=True, slots=True)
class TurnEventSpec:
    id: TurnEventId
    name: str
    description: str
    icon: str


TURN_EVENTS: dict[TurnEventId, TurnEventSpec] = {
    TurnEventId.enzyme_boost: TurnEventSpec(TurnEventId.enzyme_boost, "Enzyme Boost", "Next advance yields 2x points", "E"),
    TurnEventId.cofactor_wave: TurnEventSpec(TurnEventId.cofactor_wave, "Cofactor Wave", "Draft shows only cofactors", "C"),
    TurnEventId.product_wave: TurnEventSpec(TurnEventId.product_wave, "Product Wave", "Draft shows only products", "P"),
    TurnEventId.combo_shield: TurnEventSpec(TurnEventId.combo_shield, "Combo Shield", "Combo protected for 3 turns", "S"),
    TurnEventId.hand_refresh: TurnEventSpec(TurnEventId.hand_refresh, "Hand Refresh", "Discard hand and redraw up to 5 (capped by hand limit)", "R"),
    TurnEventId.insight: TurnEventSpec(TurnEventId.insight, "Metabolic Insight", "Peek at top 8 cards in deck", "I"),
}

TURN_EVENT_IDS: tuple[TurnEventId, ...] = tuple(TURN_EVENTS)
TURN_EVENT_COUNT = 12
FIRST_EVENT_TURN = 4
ENDLESS_BATCH_SIZE = 8
ENDLESS_WINDOW = 40
ENDLESS_LEAD = 5
