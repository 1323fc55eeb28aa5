from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, ClassVar

from biopath.api.models import CardInstance
from biopath.assets.registry import YieldKind
from biopath.assets.rules import TurnEventId


@dataclass(frozen=True, slots=True)
class Advance:
    """Correct product on the current stage with every cofactor already staged."""

    type: ClassVar[str] = "advance"
    card: CardInstance
    stage_index: int


@dataclass(frozen=True, slots=True)
class AdvanceFromCofactor:
    """Cofactor on the current stage that completed it while its product was staged."""

    type: ClassVar[str] = "advance_from_cofactor"
    card: CardInstance
    stage_index: int


@dataclass(frozen=True, slots=True)
class StageProduct:
    type: ClassVar[str] = "stage_product"
    card: CardInstance
    stage_index: int


@dataclass(frozen=True, slots=True)
class CofactorStaged:
    type: ClassVar[str] = "cofactor_staged"
    card: CardInstance
    stage_index: int


@dataclass(frozen=True, slots=True)
class CofactorPreloaded:
    type: ClassVar[str] = "cofactor_preloaded"
    card: CardInstance
    stage_index: int


@dataclass(frozen=True, slots=True)
class Preload:
    type: ClassVar[str] = "preload"
    card: CardInstance
    stage_index: int


@dataclass(frozen=True, slots=True)
class Wrong:
    type: ClassVar[str] = "wrong"
    card: CardInstance
    stage_index: int


@dataclass(frozen=True, slots=True)
class Rejected:
    """Invalid placement. The card stays in hand and the turn is not spent."""

    type: ClassVar[str] = "rejected"
    card: CardInstance
    stage_index: int
    reason: str


PlacementOutcome = (
    Advance | AdvanceFromCofactor | StageProduct | CofactorStaged | CofactorPreloaded | Preload | Wrong | Rejected
)

ADVANCING = (Advance, AdvanceFromCofactor)
STALLING = (Preload, CofactorPreloaded)


@dataclass(frozen=True, slots=True)
class YieldGain:
    kind: YieldKind
    points: int


@dataclass(frozen=True, slots=True)
class RotationReport:
    rotation: int
    # New hand limit, or None when it did not change.
    hand_limit_changed: int | None


@dataclass(frozen=True, slots=True)
class AdvanceReport:
    type: ClassVar[str] = "advance_report"
    stage_index: int
    yield_gain: YieldGain | None
    rotation: RotationReport | None
    chain_pending: bool


@dataclass(frozen=True, slots=True)
class PlayResult:
    type: ClassVar[str] = "play"
    outcome: PlacementOutcome
    advance: AdvanceReport | None = None
    multiplier_decayed: bool = False


@dataclass(frozen=True, slots=True)
class ChainStep:
    type: ClassVar[str] = "chain_advance"
    stage_index: int
    yield_gain: YieldGain | None
    rotation: RotationReport | None
    combo: int
    multiplier: float
    has_more: bool


@dataclass(frozen=True, slots=True)
class Discarded:
    type: ClassVar[str] = "discard"
    card: CardInstance
    multiplier_decayed: bool


@dataclass(frozen=True, slots=True)
class DraftPicked:
    type: ClassVar[str] = "draft_pick"
    card: CardInstance


@dataclass(frozen=True, slots=True)
class HandRefreshed:
    type: ClassVar[str] = "hand_refresh"
    drawn: int


@dataclass(frozen=True, slots=True)
class TurnStarted:
    type: ClassVar[str] = "turn_started"
    turn: int
    event: TurnEventId | None
    # True when an event prompt (refresh / insight) holds the turn.
    suspended: bool
    draft_offered: bool


@dataclass(frozen=True, slots=True)
class PromptResolved:
    type: ClassVar[str] = "prompt_resolved"
    prompt: TurnEventId
    draft_offered: bool


@dataclass(frozen=True, slots=True)
class EndlessEntered:
    type: ClassVar[str] = "endless"
    scheduled_turns: list[int]


def result_payload(result: Any) -> Any:
    """JSON-friendly view of a result, tagged with its variant name."""

    if isinstance(result, CardInstance):
        return result.model_dump(mode="json")
    if hasattr(result, "__dataclass_fields__"):
        payload: dict[str, Any] = {}
        if hasattr(type(result), "type"):
            payload["type"] = type(result).type
        for f in fields(result):
            payload[f.name] = result_payload(getattr(result, f.name))
        return payload
    if isinstance(result, Enum):
        return result.value
    return result
