from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from biopath.assets.registry import CardDefinition, CardKind, EnergyYield, YieldKind
from biopath.assets.rules import BASE_HAND_LIMIT, TurnEventId


class TurnPhase(StrEnum):
    draw = "draw"
    action = "action"
    resolution = "resolution"


class CardInstance(BaseModel):
    """One physical card. Instances sharing a definition are interchangeable for rules."""

    model_config = ConfigDict(frozen=True)

    uid: str
    definition: CardDefinition

    @property
    def card_id(self) -> str:
        return self.definition.id

    @property
    def kind(self) -> CardKind:
        return self.definition.kind

    @property
    def abbreviation(self) -> str:
        return self.definition.abbreviation


def _empty_tally() -> dict[YieldKind, int]:
    return {k: 0 for k in YieldKind}


class GameState(BaseModel):
    run_id: UUID
    created_at: datetime

    # For reproducibility/debugging.
    seed: int

    phase: TurnPhase = TurnPhase.draw

    current_stage: int = 0
    hand: list[CardInstance] = Field(default_factory=list)
    # Top of the deck is the end of the list.
    deck: list[CardInstance] = Field(default_factory=list)
    discard: list[CardInstance] = Field(default_factory=list)
    staged: dict[int, list[CardInstance]] = Field(default_factory=dict)

    score: int = 0
    combo: int = 0
    stalled_turns: int = 0
    total_turns: int = 0
    rotations: int = 0
    multiplier: float = 1.0
    hand_limit: int = BASE_HAND_LIMIT
    energy_tally: dict[YieldKind, int] = Field(default_factory=_empty_tally)

    # Turn number -> event. Open-ended once endless play starts.
    turn_events: dict[int, TurnEventId] = Field(default_factory=dict)
    active_event: TurnEventId | None = None
    enzyme_boost_active: bool = False
    combo_shield_turns: int = 0

    pending_refresh: bool = False
    deck_peek: list[CardInstance] = Field(default_factory=list)
    peek_pending: bool = False
    pending_chain_advance: bool = False

    draft_choices: list[CardInstance] = Field(default_factory=list)
    draft_pending: bool = False
    selected_card_index: int | None = None

    completed_stages: set[int] = Field(default_factory=set)

    endless: bool = False
    game_over: bool = False
    score_recorded: bool = False
    new_high_score: bool = False

    next_card_uid: int = 1

    def staged_at(self, stage_index: int) -> list[CardInstance]:
        return self.staged.setdefault(stage_index, [])

    def all_staged(self) -> list[CardInstance]:
        return [c for cards in self.staged.values() for c in cards]

    def card_count(self) -> int:
        return (
            len(self.hand)
            + len(self.deck)
            + len(self.discard)
            + len(self.draft_choices)
            + len(self.all_staged())
        )

    @property
    def shielded(self) -> bool:
        return self.combo_shield_turns > 0


class GameSnapshot(GameState):
    """Read-only copy handed to observers and drivers."""

    best_score: int = 0


class StageView(BaseModel):
    index: int
    id: str
    label: str
    abbreviation: str
    product_card: str
    cofactors: list[str]
    energy_yield: EnergyYield | None
    releases_co2: bool
    is_current: bool
    is_completed: bool
    staged: list[CardInstance]
    transition: str | None


class RunCreateRequest(BaseModel):
    seed: int | None = Field(default=None, ge=0)


class CommandRequest(BaseModel):
    index: int | None = None
    stage_index: int | None = None
    # Only read by `restart`.
    seed: int | None = Field(default=None, ge=0)


class CommandResponse(BaseModel):
    snapshot: GameSnapshot
    # None when the command was a no-op.
    result: dict[str, Any] | None = None


class RunListResponse(BaseModel):
    run_ids: list[UUID]


class HighScoreResponse(BaseModel):
    best_score: int
